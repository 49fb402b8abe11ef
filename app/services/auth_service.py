import logging
from datetime import UTC, datetime

from fastapi import Response
from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.config import Settings
from app.core.exceptions import TransientIOError
from app.core.security import (
    constant_time_equals,
    create_session_token,
    decode_session_token,
    verify_password,
)
from app.models.admin_session import AdminSession

logger = logging.getLogger(__name__)


def _utc_naive() -> datetime:
    """Naive UTC datetime for DB columns that are TIMESTAMP WITHOUT TIME ZONE."""
    return datetime.now(UTC).replace(tzinfo=None)


def _naive_utc(dt: datetime) -> datetime:
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.replace(tzinfo=None)


class AdminSessionGuard:
    """Single-admin login backed by signed, server-side revocable session tokens.

    A token is a JWT signed with the secret key. Its ``jti`` is stored in
    ``admin_sessions``; verification requires a valid signature, an unexpired
    ``exp``, and a stored row that is neither revoked nor expired.
    """

    def __init__(self, settings: Settings, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self.settings = settings
        self._session_maker = session_maker

    @property
    def cookie_name(self) -> str:
        return self.settings.session_cookie_name

    def validate_credentials(self, email: str, password: str) -> bool:
        s = self.settings
        email_ok = constant_time_equals(email, s.admin_email)
        if s.admin_password_hash:
            password_ok = verify_password(password, s.admin_password_hash)
        else:
            password_ok = constant_time_equals(password, s.admin_password)
        return email_ok and password_ok

    async def create_session(self, email: str) -> str:
        token, jti, expires_at = create_session_token(self.settings, email)
        row = AdminSession(jti=jti, email=email, expires_at=_naive_utc(expires_at))
        try:
            async with self._session_maker() as session:
                session.add(row)
                await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Storing admin session failed: %s", e)
            raise TransientIOError() from e
        logger.info("Admin session created for %s", email)
        return token

    async def get_session_email(self, token: str | None) -> str | None:
        """Returns the admin email for a live session token, else None."""
        if not token:
            return None
        subject, jti = decode_session_token(self.settings, token)
        if not subject or not jti:
            return None
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(AdminSession).where(
                        AdminSession.jti == jti,
                        AdminSession.revoked == False,  # noqa: E712
                        AdminSession.expires_at > _utc_naive(),
                    )
                )
                row = result.scalar_one_or_none()
        except SQLAlchemyError as e:
            logger.exception("Admin session lookup failed: %s", e)
            raise TransientIOError() from e
        return row.email if row else None

    async def verify_session(self, token: str | None) -> bool:
        return await self.get_session_email(token) is not None

    async def destroy_session(self, token: str | None) -> None:
        """Revoke the stored session, if any. Unknown or forged tokens are ignored."""
        if not token:
            return
        _, jti = decode_session_token(self.settings, token)
        if not jti:
            return
        try:
            async with self._session_maker() as session:
                result = await session.execute(select(AdminSession).where(AdminSession.jti == jti))
                row = result.scalar_one_or_none()
                if row:
                    row.revoked = True
                    session.add(row)
                    await session.commit()
        except SQLAlchemyError as e:
            logger.exception("Revoking admin session failed: %s", e)
            raise TransientIOError() from e

    def set_session_cookie(self, response: Response, token: str) -> None:
        response.set_cookie(
            key=self.cookie_name,
            value=token,
            max_age=self.settings.session_expire_days * 24 * 60 * 60,
            path="/",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )

    def clear_session_cookie(self, response: Response) -> None:
        response.delete_cookie(
            key=self.cookie_name,
            path="/",
            httponly=True,
            secure=self.settings.is_production,
            samesite="lax",
        )
