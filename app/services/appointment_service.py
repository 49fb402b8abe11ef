import logging
from collections.abc import Mapping
from dataclasses import dataclass
from datetime import date
from typing import Any

from app.core.exceptions import ConflictError, NotFoundError, ValidationError
from app.models.appointment import Appointment, AppointmentCreate, AppointmentStatus
from app.services.appointment_store import AppointmentStore
from app.services.email_service import NotificationDispatcher
from app.services.validation import validate_partial_update, validate_submission

logger = logging.getLogger(__name__)

NOTIFYING_STATUSES = (AppointmentStatus.confirmed.value, AppointmentStatus.cancelled.value)


@dataclass
class UpdateResult:
    appointment: Appointment
    previous_status: str
    # None when no notifying transition happened
    patient_notified: bool | None = None
    admin_notified: bool | None = None

    @property
    def status_changed(self) -> bool:
        return self.appointment.status != self.previous_status


class AppointmentWorkflow:
    """Booking and admin workflow over the store and the notification dispatcher."""

    def __init__(self, store: AppointmentStore, notifier: NotificationDispatcher) -> None:
        self.store = store
        self.notifier = notifier

    async def submit(self, raw: Mapping[str, Any], today: date | None = None) -> Appointment:
        """Validate, check the slot, and persist a new pending appointment.

        The admin alert is not sent here; the caller schedules
        ``notify_new_request`` so the response never waits on it.
        """
        cleaned = validate_submission(raw, today=today)
        # Check-then-create is not atomic: two concurrent submissions for one
        # slot can both pass this check.
        if await self.store.is_slot_booked(cleaned["preferred_date"], cleaned["preferred_time"]):
            raise ConflictError()
        appointment = await self.store.create(AppointmentCreate(**cleaned))
        logger.info(
            "New appointment created: id=%s date=%s time=%s",
            appointment.id,
            appointment.preferred_date,
            appointment.preferred_time,
        )
        return appointment

    async def notify_new_request(self, appointment: Appointment) -> bool:
        sent = await self.notifier.send_admin_new_request(appointment)
        if sent:
            logger.info("Admin notification sent for new appointment %s", appointment.id)
        else:
            logger.warning("Admin notification not sent for new appointment %s", appointment.id)
        return sent

    async def list(self) -> list[Appointment]:
        return await self.store.list()

    async def update(self, appointment_id: str, raw_changes: Mapping[str, Any]) -> UpdateResult:
        """Apply a partial edit; notify patient and admin on a real status transition.

        Notification failures are reported on the result and never undo the
        committed update.
        """
        changes = validate_partial_update(raw_changes)
        original = await self.store.get_by_id(appointment_id)
        if original is None:
            raise NotFoundError()
        previous_status = original.status
        updated = await self.store.update(appointment_id, changes)
        if updated is None:
            # Deleted between the read and the write
            raise NotFoundError()
        result = UpdateResult(appointment=updated, previous_status=previous_status)
        new_status = changes.get("status")
        if new_status in NOTIFYING_STATUSES and new_status != previous_status:
            logger.info("Appointment %s status %s -> %s; sending emails", appointment_id, previous_status, new_status)
            result.patient_notified, result.admin_notified = await self._notify_transition(updated, new_status)
        return result

    async def change_status(self, appointment_id: str, new_status: str) -> UpdateResult:
        """Status-only transition to confirmed or cancelled; re-applying the current status is an error."""
        if new_status not in NOTIFYING_STATUSES:
            raise ValidationError(f"newStatus must be one of: {', '.join(NOTIFYING_STATUSES)}")
        original = await self.store.get_by_id(appointment_id)
        if original is None:
            raise NotFoundError()
        if original.status == new_status:
            raise ValidationError(f"Appointment is already {new_status}")
        return await self.update(appointment_id, {"status": new_status})

    async def delete(self, appointment_id: str) -> None:
        if not await self.store.delete(appointment_id):
            raise NotFoundError()
        logger.info("Appointment %s deleted", appointment_id)

    async def _notify_transition(self, appointment: Appointment, status: str) -> tuple[bool, bool]:
        if status == AppointmentStatus.confirmed.value:
            patient = await self.notifier.send_patient_confirmation(appointment)
        else:
            patient = await self.notifier.send_patient_cancellation(appointment)
        admin = await self.notifier.send_admin_status_change(appointment, status)
        if not patient:
            logger.warning("Patient %s email not sent for appointment %s", status, appointment.id)
        return patient, admin
