import secrets
import time
from datetime import UTC, datetime
from enum import Enum

from pydantic import BaseModel, ConfigDict, NaiveDatetime
from pydantic.alias_generators import to_camel
from sqlalchemy import DateTime, Index
from sqlmodel import Field, SQLModel


def _utc_naive_now() -> datetime:
    """Naive UTC for TIMESTAMP WITHOUT TIME ZONE columns."""
    return datetime.now(UTC).replace(tzinfo=None)


def generate_appointment_id() -> str:
    """Time-based id with a random suffix, e.g. apt_1767225600000_3f9a1c2b7e."""
    return f"apt_{int(time.time() * 1000)}_{secrets.token_hex(5)}"


class AppointmentStatus(str, Enum):
    pending = "pending"
    confirmed = "confirmed"
    cancelled = "cancelled"


class Appointment(SQLModel, table=True):
    __tablename__ = "appointments"
    # Advisory slot lookups; deliberately not unique (see is_slot_booked)
    __table_args__ = (Index("ix_appointments_slot", "preferred_date", "preferred_time"),)

    id: str = Field(default_factory=generate_appointment_id, primary_key=True, max_length=64)
    full_name: str = Field(max_length=255)
    email: str = Field(max_length=320)
    phone: str = Field(max_length=64)
    preferred_date: str = Field(max_length=10)  # YYYY-MM-DD
    preferred_time: str = Field(max_length=32)  # slot label, e.g. "9:00 AM"
    message: str | None = None
    status: str = Field(default=AppointmentStatus.pending.value, max_length=16, index=True)
    created_at: NaiveDatetime = Field(default_factory=_utc_naive_now, sa_type=DateTime, index=True)


class AppointmentCreate(SQLModel):
    full_name: str
    email: str
    phone: str
    preferred_date: str
    preferred_time: str
    message: str | None = None


class AppointmentPublic(BaseModel):
    """JSON shape served to the admin dashboard (camelCase)."""

    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, from_attributes=True)

    id: str
    full_name: str
    email: str
    phone: str
    preferred_date: str
    preferred_time: str
    message: str | None = None
    status: AppointmentStatus
    created_at: datetime
