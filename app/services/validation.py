"""Input checks and sanitization for appointment submissions and admin edits.

Validation collects every applicable field error rather than stopping at the
first one. Free-text fields are sanitized first and checked afterwards;
escaping for HTML output happens separately, at render time (see ``escape_html``).
"""

import html
import re
from collections.abc import Mapping
from datetime import date
from typing import Any

import bleach

from app.core.exceptions import ValidationError
from app.models.appointment import AppointmentStatus

FULL_NAME_MIN = 2
FULL_NAME_MAX = 100
EMAIL_MAX = 254
PHONE_MIN_DIGITS = 10
# Column widths of appointments.phone and appointments.preferred_time
PHONE_MAX = 64
PREFERRED_TIME_MAX = 32
MESSAGE_MAX = 1000

_EMAIL_RE = re.compile(r"^[^\s@]+@[^\s@]+\.[^\s@]+$")
_NON_DIGIT_RE = re.compile(r"\D")
# bleach strips tags but keeps their text; script/style bodies go entirely
_SCRIPT_BLOCK_RE = re.compile(r"<(script|style)\b[^>]*>.*?</\1\s*>", re.IGNORECASE | re.DOTALL)

FREE_TEXT_FIELDS = ("full_name", "email", "phone", "message")

# Wire name (camelCase) -> stored attribute name
FIELD_NAMES = {
    "fullName": "full_name",
    "email": "email",
    "phone": "phone",
    "preferredDate": "preferred_date",
    "preferredTime": "preferred_time",
    "message": "message",
    "status": "status",
}
_WIRE_NAMES = {v: k for k, v in FIELD_NAMES.items()}
_REQUIRED = ("full_name", "email", "phone", "preferred_date", "preferred_time")


def sanitize_text(value: str) -> str:
    """Strip markup and script content from untrusted text.

    Returns plain text: bleach entity-encodes what it keeps, so the result is
    unescaped again. Escaping for HTML output is done by ``escape_html``.
    """
    without_scripts = _SCRIPT_BLOCK_RE.sub("", value)
    cleaned = bleach.clean(without_scripts, tags=[], attributes={}, strip=True)
    return html.unescape(cleaned).strip()


def escape_html(value: Any) -> str:
    """Entity-escape & < > " ' for interpolation into generated HTML."""
    if value is None:
        return ""
    return html.escape(str(value), quote=True)


def is_valid_email(email: str) -> bool:
    return bool(_EMAIL_RE.match(email))


def count_digits(phone: str) -> int:
    return len(_NON_DIGIT_RE.sub("", phone))


def parse_date(value: str) -> date | None:
    try:
        return date.fromisoformat(value)
    except ValueError:
        return None


def _text(raw: Mapping[str, Any], field: str) -> str:
    value = raw.get(field)
    return value.strip() if isinstance(value, str) else ""


def _error(errors: list[dict], field: str, message: str) -> None:
    errors.append({"field": _WIRE_NAMES.get(field, field), "message": message})


def _check_full_name(value: str, errors: list[dict]) -> None:
    if not value:
        _error(errors, "full_name", "Full name is required")
    elif len(value) < FULL_NAME_MIN:
        _error(errors, "full_name", f"Name must be at least {FULL_NAME_MIN} characters")
    elif len(value) > FULL_NAME_MAX:
        _error(errors, "full_name", f"Name must be at most {FULL_NAME_MAX} characters")


def _check_email(value: str, errors: list[dict]) -> None:
    if not value:
        _error(errors, "email", "Email is required")
    elif not is_valid_email(value):
        _error(errors, "email", "Invalid email format")
    elif len(value) > EMAIL_MAX:
        _error(errors, "email", "Email is too long")


def _check_phone(value: str, errors: list[dict]) -> None:
    if not value:
        _error(errors, "phone", "Phone number is required")
    elif count_digits(value) < PHONE_MIN_DIGITS:
        _error(errors, "phone", f"Phone must be at least {PHONE_MIN_DIGITS} digits")
    elif len(value) > PHONE_MAX:
        _error(errors, "phone", f"Phone must be at most {PHONE_MAX} characters")


def _check_date(value: str, errors: list[dict], today: date | None) -> None:
    if not value:
        _error(errors, "preferred_date", "Preferred date is required")
        return
    parsed = parse_date(value)
    if parsed is None:
        _error(errors, "preferred_date", "Preferred date must be a valid date (YYYY-MM-DD)")
    elif today is not None and parsed < today:
        _error(errors, "preferred_date", "Please select a future date")


def _check_time(value: str, errors: list[dict]) -> None:
    if not value:
        _error(errors, "preferred_time", "Preferred time is required")
    elif len(value) > PREFERRED_TIME_MAX:
        _error(errors, "preferred_time", f"Preferred time must be at most {PREFERRED_TIME_MAX} characters")


def _check_message(value: str, errors: list[dict]) -> None:
    if len(value) > MESSAGE_MAX:
        _error(errors, "message", f"Message must be at most {MESSAGE_MAX} characters")


def validate_submission(raw: Mapping[str, Any], today: date | None = None) -> dict[str, Any]:
    """Sanitize, then validate, a public booking submission keyed by stored field names.

    Checks run on the sanitized values, so what is stored always satisfies
    them. Returns the normalized fields or raises ValidationError carrying
    every field error found.
    """
    today = today or date.today()
    values = {field: _text(raw, field) for field in (*_REQUIRED, "message")}
    for field in FREE_TEXT_FIELDS:
        values[field] = sanitize_text(values[field])
    errors: list[dict] = []
    _check_full_name(values["full_name"], errors)
    _check_email(values["email"], errors)
    _check_phone(values["phone"], errors)
    _check_date(values["preferred_date"], errors, today)
    _check_time(values["preferred_time"], errors)
    _check_message(values["message"], errors)
    if errors:
        raise ValidationError(errors=errors)
    values["message"] = values["message"] or None
    return values


def validate_partial_update(raw: Mapping[str, Any]) -> dict[str, Any]:
    """Validate an admin edit. Only keys present in ``raw`` are checked and returned.

    Required fields may not be cleared; ``message`` may be set to None. Dates
    must parse but may lie in the past.
    """
    errors: list[dict] = []
    cleaned: dict[str, Any] = {}
    for field, value in raw.items():
        if field not in _WIRE_NAMES:
            continue
        if field == "message" and value is None:
            cleaned["message"] = None
            continue
        if not isinstance(value, str):
            _error(errors, field, f"{_WIRE_NAMES[field]} must be a string")
            continue
        value = value.strip()
        if field in FREE_TEXT_FIELDS:
            value = sanitize_text(value)
        if field == "full_name":
            _check_full_name(value, errors)
        elif field == "email":
            _check_email(value, errors)
        elif field == "phone":
            _check_phone(value, errors)
        elif field == "preferred_date":
            _check_date(value, errors, today=None)
        elif field == "preferred_time":
            _check_time(value, errors)
        elif field == "message":
            _check_message(value, errors)
            value = value or None
        elif field == "status":
            if value not in {s.value for s in AppointmentStatus}:
                _error(errors, "status", "Status must be one of: pending, confirmed, cancelled")
        cleaned[field] = value
    if errors:
        raise ValidationError(errors=errors)
    return cleaned
