"""Tests for admin credentials, session tokens and required settings."""

from datetime import UTC, datetime, timedelta

import pytest
from pydantic import ValidationError as SettingsError
from sqlalchemy import update

from app.core.config import Settings
from app.core.security import create_session_token, hash_password
from app.models.admin_session import AdminSession
from app.services.auth_service import AdminSessionGuard
from tests.conftest import ADMIN_EMAIL, ADMIN_PASSWORD, make_settings


@pytest.fixture
def guard(settings, session_maker) -> AdminSessionGuard:
    return AdminSessionGuard(settings, session_maker)


class TestCredentials:
    async def test_exact_match(self, guard):
        assert guard.validate_credentials(ADMIN_EMAIL, ADMIN_PASSWORD) is True

    async def test_wrong_password(self, guard):
        assert guard.validate_credentials(ADMIN_EMAIL, "nope") is False

    async def test_wrong_email(self, guard):
        assert guard.validate_credentials("someone@else.test", ADMIN_PASSWORD) is False

    async def test_bcrypt_hash(self, session_maker):
        settings = make_settings(admin_password="", admin_password_hash=hash_password("s3cret!"))
        guard = AdminSessionGuard(settings, session_maker)
        assert guard.validate_credentials(ADMIN_EMAIL, "s3cret!") is True
        assert guard.validate_credentials(ADMIN_EMAIL, "wrong") is False


class TestSessions:
    async def test_created_session_verifies(self, guard):
        token = await guard.create_session(ADMIN_EMAIL)
        assert await guard.verify_session(token) is True
        assert await guard.get_session_email(token) == ADMIN_EMAIL

    async def test_missing_or_garbage_token(self, guard):
        assert await guard.verify_session(None) is False
        assert await guard.verify_session("not-a-jwt") is False

    async def test_token_signed_with_other_secret_is_rejected(self, guard):
        forged, _, _ = create_session_token(
            make_settings(secret_key="a-completely-different-secret"), ADMIN_EMAIL
        )
        assert await guard.verify_session(forged) is False

    async def test_validly_signed_but_unstored_token_is_rejected(self, guard, settings):
        token, _, _ = create_session_token(settings, ADMIN_EMAIL)
        assert await guard.verify_session(token) is False

    async def test_destroyed_session_is_revoked(self, guard):
        token = await guard.create_session(ADMIN_EMAIL)
        await guard.destroy_session(token)
        assert await guard.verify_session(token) is False

    async def test_expired_row_is_rejected(self, guard, session_maker):
        token = await guard.create_session(ADMIN_EMAIL)
        async with session_maker() as session:
            past = datetime.now(UTC).replace(tzinfo=None) - timedelta(minutes=1)
            await session.execute(update(AdminSession).values(expires_at=past))
            await session.commit()
        assert await guard.verify_session(token) is False


class TestRequiredSettings:
    def test_missing_admin_password_fails(self):
        with pytest.raises(SettingsError):
            make_settings(admin_password="", admin_password_hash="")

    def test_missing_secret_key_fails(self, monkeypatch):
        monkeypatch.delenv("SECRET_KEY", raising=False)
        with pytest.raises(SettingsError):
            Settings(
                _env_file=None,
                database_url="sqlite+aiosqlite:///:memory:",
                admin_email=ADMIN_EMAIL,
                admin_password=ADMIN_PASSWORD,
            )

    def test_short_secret_key_fails(self):
        with pytest.raises(SettingsError):
            make_settings(secret_key="short")
