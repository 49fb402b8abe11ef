from pydantic import BaseModel, ConfigDict
from pydantic.alias_generators import to_camel

from app.models.appointment import AppointmentPublic


class CamelModel(BaseModel):
    model_config = ConfigDict(alias_generator=to_camel, populate_by_name=True, extra="ignore")


class AppointmentSubmission(CamelModel):
    """Public booking form. Everything is optional here; validation reports what is missing."""

    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    message: str | None = None


class AppointmentSubmitResponse(CamelModel):
    success: bool = True
    message: str = "Appointment request sent successfully. Awaiting admin confirmation."
    appointment_id: str


class AppointmentUpdateRequest(CamelModel):
    """Admin edit. Fields left out are not touched; an explicit null is an intent to change."""

    id: str | None = None
    full_name: str | None = None
    email: str | None = None
    phone: str | None = None
    preferred_date: str | None = None
    preferred_time: str | None = None
    message: str | None = None
    status: str | None = None


class StatusChangeRequest(CamelModel):
    appointment_id: str | None = None
    new_status: str | None = None


class AppointmentListResponse(CamelModel):
    appointments: list[AppointmentPublic]


class AppointmentUpdateResponse(CamelModel):
    success: bool = True
    appointment: AppointmentPublic
    # Patient email outcome for a status transition; None when nothing was sent
    email_sent: bool | None = None
    admin_notified: bool | None = None


class MessageResponse(CamelModel):
    success: bool = True
    message: str


class SlotInfo(CamelModel):
    time: str
    available: bool


class AvailableSlotsResponse(CamelModel):
    date: str  # YYYY-MM-DD
    slots: list[SlotInfo]
