import logging
from collections.abc import Mapping
from typing import Any

from sqlalchemy import select
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.ext.asyncio import AsyncSession, async_sessionmaker

from app.core.exceptions import TransientIOError
from app.models.appointment import Appointment, AppointmentCreate, AppointmentStatus

logger = logging.getLogger(__name__)

# Fields an update may touch; id and created_at are never written after creation
UPDATABLE_FIELDS = frozenset(
    {"full_name", "email", "phone", "preferred_date", "preferred_time", "message", "status"}
)


class AppointmentStore:
    """Persistence for appointment records.

    Every call opens its own session and commits before returning. Database
    failures are logged and surfaced as TransientIOError, with no retry.
    """

    def __init__(self, session_maker: async_sessionmaker[AsyncSession]) -> None:
        self._session_maker = session_maker

    async def list(self) -> list[Appointment]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(Appointment).order_by(
                        Appointment.created_at.desc(), Appointment.id.desc()
                    )
                )
                return list(result.scalars().all())
        except SQLAlchemyError as e:
            logger.exception("List appointments failed: %s", e)
            raise TransientIOError() from e

    async def create(self, data: AppointmentCreate) -> Appointment:
        appointment = Appointment(
            full_name=data.full_name,
            email=data.email,
            phone=data.phone,
            preferred_date=data.preferred_date,
            preferred_time=data.preferred_time,
            message=data.message,
            status=AppointmentStatus.pending.value,
        )
        try:
            async with self._session_maker() as session:
                session.add(appointment)
                await session.commit()
                await session.refresh(appointment)
                return appointment
        except SQLAlchemyError as e:
            logger.exception("Create appointment failed: %s", e)
            raise TransientIOError("Failed to save appointment. Please try again.") from e

    async def get_by_id(self, appointment_id: str) -> Appointment | None:
        try:
            async with self._session_maker() as session:
                return await session.get(Appointment, appointment_id)
        except SQLAlchemyError as e:
            logger.exception("Get appointment %s failed: %s", appointment_id, e)
            raise TransientIOError() from e

    async def update(self, appointment_id: str, changes: Mapping[str, Any]) -> Appointment | None:
        """Apply the keys present in ``changes``; keys not present are left untouched."""
        try:
            async with self._session_maker() as session:
                appointment = await session.get(Appointment, appointment_id)
                if appointment is None:
                    return None
                for field, value in changes.items():
                    if field in UPDATABLE_FIELDS:
                        setattr(appointment, field, value)
                session.add(appointment)
                await session.commit()
                await session.refresh(appointment)
                return appointment
        except SQLAlchemyError as e:
            logger.exception("Update appointment %s failed: %s", appointment_id, e)
            raise TransientIOError() from e

    async def delete(self, appointment_id: str) -> bool:
        try:
            async with self._session_maker() as session:
                appointment = await session.get(Appointment, appointment_id)
                if appointment is None:
                    return False
                await session.delete(appointment)
                await session.commit()
                return True
        except SQLAlchemyError as e:
            logger.exception("Delete appointment %s failed: %s", appointment_id, e)
            raise TransientIOError() from e

    async def is_slot_booked(self, preferred_date: str, preferred_time: str) -> bool:
        """True if a non-cancelled appointment holds exactly this (date, time) pair.

        Advisory only: nothing at the storage layer stops two concurrent
        submissions for the same slot from both being created.
        """
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(Appointment.id)
                    .where(
                        Appointment.preferred_date == preferred_date,
                        Appointment.preferred_time == preferred_time,
                        Appointment.status != AppointmentStatus.cancelled.value,
                    )
                    .limit(1)
                )
                return result.first() is not None
        except SQLAlchemyError as e:
            logger.exception("Slot availability check failed: %s", e)
            raise TransientIOError() from e

    async def booked_times_on(self, preferred_date: str) -> set[str]:
        try:
            async with self._session_maker() as session:
                result = await session.execute(
                    select(Appointment.preferred_time).where(
                        Appointment.preferred_date == preferred_date,
                        Appointment.status != AppointmentStatus.cancelled.value,
                    )
                )
                return {row[0] for row in result.all()}
        except SQLAlchemyError as e:
            logger.exception("Booked slot lookup failed: %s", e)
            raise TransientIOError() from e
