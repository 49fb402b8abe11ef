from datetime import UTC, datetime

from pydantic import NaiveDatetime
from sqlalchemy import DateTime
from sqlmodel import Field, SQLModel


def _naive_utc(dt: datetime) -> datetime:
    """For TIMESTAMP WITHOUT TIME ZONE: store as naive UTC."""
    if dt.tzinfo is not None:
        dt = dt.astimezone(UTC)
    return dt.replace(tzinfo=None)


def _utc_naive_now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class AdminSession(SQLModel, table=True):
    """Server-side record of an issued admin session token, keyed by its jti."""

    __tablename__ = "admin_sessions"
    id: int | None = Field(default=None, primary_key=True)
    jti: str = Field(unique=True, index=True, max_length=64)
    email: str = Field(max_length=320)
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime)
    expires_at: NaiveDatetime = Field(sa_type=DateTime, index=True)
    revoked: bool = False

    def model_post_init(self, __context: object) -> None:
        """Ensure expires_at is naive UTC for TIMESTAMP WITHOUT TIME ZONE."""
        if self.expires_at is not None:
            self.expires_at = _naive_utc(self.expires_at)
