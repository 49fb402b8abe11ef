import asyncio
import logging
import smtplib
from email.mime.multipart import MIMEMultipart
from email.mime.text import MIMEText
from typing import Protocol

from app.core.config import Settings
from app.models.appointment import Appointment, AppointmentStatus
from app.services.validation import escape_html

logger = logging.getLogger(__name__)

_PRIMARY = "#0ea5e9"
_DANGER = "#ef4444"
_WARNING = "#f59e0b"


class MailTransport(Protocol):
    def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        """Deliver one message; raise on failure."""


class SmtpTransport:
    """Blocking SMTP delivery. Called from a worker thread by NotificationDispatcher."""

    def __init__(self, settings: Settings) -> None:
        self.settings = settings

    def send(self, to_email: str, subject: str, html_body: str, text_body: str) -> None:
        s = self.settings
        msg = MIMEMultipart("alternative")
        msg["Subject"] = subject
        msg["From"] = f"{s.from_name} <{s.sender_email}>"
        msg["To"] = to_email
        msg.attach(MIMEText(text_body, "plain", "utf-8"))
        msg.attach(MIMEText(html_body, "html", "utf-8"))
        if s.smtp_secure:
            with smtplib.SMTP_SSL(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                server.login(s.smtp_user, s.smtp_password)
                server.sendmail(s.sender_email, [to_email], msg.as_string())
        else:
            with smtplib.SMTP(s.smtp_host, s.smtp_port, timeout=s.smtp_timeout_seconds) as server:
                server.starttls()
                server.login(s.smtp_user, s.smtp_password)
                server.sendmail(s.sender_email, [to_email], msg.as_string())


def _detail_rows(rows: list[tuple[str, str | None]]) -> str:
    return "".join(
        f"""
          <tr>
            <td style="padding:8px 0;color:#64748b;font-size:14px;width:120px;font-weight:600;">{escape_html(label)}</td>
            <td style="padding:8px 0;color:#0f172a;font-size:14px;">{escape_html(value)}</td>
          </tr>"""
        for label, value in rows
        if value
    )


def _layout(title: str, subtitle: str, color: str, body_html: str) -> str:
    return f"""<!DOCTYPE html>
<html>
<head>
  <meta charset="utf-8">
  <meta name="viewport" content="width=device-width, initial-scale=1.0">
  <title>{escape_html(title)}</title>
</head>
<body style="margin:0;font-family:system-ui,-apple-system,sans-serif;background:#f1f5f9;padding:24px;">
  <div style="max-width:560px;margin:0 auto;background:#ffffff;border-radius:12px;border:1px solid #e2e8f0;overflow:hidden;box-shadow:0 1px 3px rgba(0,0,0,0.06);">
    <div style="background:{color};color:#ffffff;padding:20px 24px;">
      <h1 style="margin:0;font-size:20px;font-weight:600;">{escape_html(title)}</h1>
      <p style="margin:8px 0 0;font-size:14px;opacity:0.95;">{escape_html(subtitle)}</p>
    </div>
    <div style="padding:24px;">
{body_html}
    </div>
  </div>
</body>
</html>
"""


def _footer(settings: Settings, sign_off: str) -> str:
    return f"""
      <div style="border-top:1px solid #e2e8f0;padding-top:16px;margin-top:24px;">
        <p style="margin:0 0 8px;color:#475569;font-size:14px;">{escape_html(sign_off)},</p>
        <p style="margin:0 0 4px;color:#0f172a;font-size:14px;font-weight:600;">{escape_html(settings.site_name)} Team</p>
        <p style="margin:0;font-size:13px;color:#64748b;">
          {escape_html(settings.contact_email)} &nbsp;&middot;&nbsp; {escape_html(settings.contact_phone)}<br>
          {escape_html(settings.contact_address)}
        </p>
      </div>"""


def build_patient_confirmation_html(settings: Settings, appointment: Appointment) -> str:
    slot_rows = _detail_rows([("Date", appointment.preferred_date), ("Time", appointment.preferred_time)])
    footer = _footer(settings, "Best regards")
    body = f"""
      <p style="margin:0 0 16px;color:#0f172a;font-size:16px;">Dear {escape_html(appointment.full_name)},</p>
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        We are pleased to inform you that your appointment at {escape_html(settings.site_name)} has been confirmed.
      </p>
      <div style="background:#f1f5f9;border-left:4px solid {_PRIMARY};padding:16px;margin:24px 0;border-radius:4px;">
        <p style="margin:0 0 12px;color:#0f172a;font-size:14px;font-weight:600;">Appointment Details:</p>
        <table style="width:100%;border-collapse:collapse;">{slot_rows}
        </table>
      </div>
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        We look forward to seeing you. If you need to reschedule, please contact us.
      </p>{footer}"""
    return _layout("Appointment Confirmed", settings.site_name, _PRIMARY, body)


def build_patient_cancellation_html(settings: Settings, appointment: Appointment) -> str:
    slot_rows = _detail_rows([("Date", appointment.preferred_date), ("Time", appointment.preferred_time)])
    footer = _footer(settings, "Kind regards")
    body = f"""
      <p style="margin:0 0 16px;color:#0f172a;font-size:16px;">Dear {escape_html(appointment.full_name)},</p>
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        We regret to inform you that your appointment has been cancelled.
      </p>
      <div style="background:#f1f5f9;border-left:4px solid {_DANGER};padding:16px;margin:24px 0;border-radius:4px;">
        <table style="width:100%;border-collapse:collapse;">{slot_rows}
        </table>
      </div>
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        If this was not requested or you would like to reschedule, please contact us at your earliest convenience.
        We apologize for any inconvenience.
      </p>{footer}"""
    return _layout("Appointment Cancelled", settings.site_name, _DANGER, body)


def _admin_detail_rows(appointment: Appointment) -> list[tuple[str, str | None]]:
    return [
        ("Client Name", appointment.full_name),
        ("Email", appointment.email),
        ("Phone", appointment.phone),
        ("Date", appointment.preferred_date),
        ("Time", appointment.preferred_time),
        ("Message", appointment.message),
    ]


def build_admin_new_request_html(settings: Settings, appointment: Appointment) -> str:
    detail_rows = _detail_rows(_admin_detail_rows(appointment))
    body = f"""
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        A new appointment has been submitted and is awaiting your review. Please confirm or cancel it.
      </p>
      <div style="background:#f1f5f9;border-left:4px solid {_WARNING};padding:16px;margin:24px 0;border-radius:4px;">
        <table style="width:100%;border-collapse:collapse;">{detail_rows}
        </table>
      </div>
      <p style="margin:0 0 16px;color:#475569;font-size:14px;line-height:1.6;">
        The client receives an email automatically once you confirm or cancel.
      </p>
      <p style="margin:0;color:#64748b;font-size:12px;">Appointment ID: {escape_html(appointment.id)}</p>"""
    return _layout("New Appointment Pending Review", f"{settings.site_name} Admin", _WARNING, body)


def build_admin_status_change_html(settings: Settings, appointment: Appointment, status: str) -> str:
    color = _PRIMARY if status == AppointmentStatus.confirmed.value else _DANGER
    detail_rows = _detail_rows(_admin_detail_rows(appointment) + [("Status", status.upper())])
    body = f"""
      <p style="margin:0 0 24px;color:#475569;font-size:14px;line-height:1.6;">
        An appointment has been {escape_html(status)}. Details below:
      </p>
      <table style="width:100%;border-collapse:collapse;background:#f1f5f9;border-radius:4px;padding:16px;">{detail_rows}
      </table>
      <p style="margin:16px 0 0;color:#64748b;font-size:12px;">Appointment ID: {escape_html(appointment.id)}</p>"""
    return _layout(f"Appointment {status.capitalize()}", f"{settings.site_name} Admin", color, body)


def _text_summary(appointment: Appointment, status: str | None = None) -> str:
    lines = [
        f"Client: {appointment.full_name}",
        f"Email: {appointment.email}",
        f"Phone: {appointment.phone}",
        f"Date: {appointment.preferred_date}",
        f"Time: {appointment.preferred_time}",
    ]
    if appointment.message:
        lines.append(f"Message: {appointment.message}")
    if status:
        lines.append(f"Status: {status.upper()}")
    lines.append(f"Appointment ID: {appointment.id}")
    return "\n".join(lines)


class NotificationDispatcher:
    """Composes and sends the four transactional emails.

    Every send returns True/False and never raises. Without a transport (SMTP
    credentials unset) nothing is attempted and False is returned.
    """

    def __init__(self, settings: Settings, transport: MailTransport | None = None) -> None:
        self.settings = settings
        if transport is None and settings.email_enabled:
            transport = SmtpTransport(settings)
        self.transport = transport

    async def _deliver(self, kind: str, to_email: str, subject: str, html_body: str, text_body: str) -> bool:
        if self.transport is None:
            logger.warning("Email not sent (%s): SMTP credentials not configured", kind)
            return False
        if not to_email:
            logger.warning("Email not sent (%s): no recipient address", kind)
            return False
        try:
            await asyncio.to_thread(self.transport.send, to_email, subject, html_body, text_body)
        except Exception as e:
            logger.exception("Failed to send %s email to %s: %s", kind, to_email, e)
            return False
        logger.info("Email sent (%s) to %s", kind, to_email)
        return True

    async def send_patient_confirmation(self, appointment: Appointment) -> bool:
        s = self.settings
        text = (
            f"Dear {appointment.full_name},\n\n"
            f"Your appointment at {s.site_name} has been confirmed.\n\n"
            f"Date: {appointment.preferred_date}\nTime: {appointment.preferred_time}\n\n"
            "If you need to reschedule, please contact us.\n\n"
            f"Best regards,\n{s.site_name} Team"
        )
        return await self._deliver(
            "patient confirmation",
            appointment.email,
            f"Your Appointment is Confirmed - {s.site_name}",
            build_patient_confirmation_html(s, appointment),
            text,
        )

    async def send_patient_cancellation(self, appointment: Appointment) -> bool:
        s = self.settings
        text = (
            f"Dear {appointment.full_name},\n\n"
            "We regret to inform you that your appointment has been cancelled.\n\n"
            f"Date: {appointment.preferred_date}\nTime: {appointment.preferred_time}\n\n"
            "If you would like to reschedule, please contact us.\n\n"
            f"Kind regards,\n{s.site_name} Team"
        )
        return await self._deliver(
            "patient cancellation",
            appointment.email,
            f"Appointment Cancelled - {s.site_name}",
            build_patient_cancellation_html(s, appointment),
            text,
        )

    async def send_admin_new_request(self, appointment: Appointment) -> bool:
        s = self.settings
        return await self._deliver(
            "admin new request",
            s.admin_alert_email,
            f"[NEW] Appointment from {appointment.full_name} - {appointment.preferred_date}",
            build_admin_new_request_html(s, appointment),
            "New Appointment Pending Review\n\n" + _text_summary(appointment),
        )

    async def send_admin_status_change(self, appointment: Appointment, status: str) -> bool:
        s = self.settings
        return await self._deliver(
            "admin status change",
            s.admin_alert_email,
            f"[Admin] Appointment {status.capitalize()} - {appointment.full_name}",
            build_admin_status_change_html(s, appointment, status),
            f"Appointment {status.capitalize()}\n\n" + _text_summary(appointment, status),
        )
