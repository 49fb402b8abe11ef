"""Tests for AppointmentStore against an in-memory SQLite database."""

from datetime import UTC, datetime

import pytest
from sqlalchemy.ext.asyncio import create_async_engine

from app.core.db import create_session_maker
from app.core.exceptions import TransientIOError
from app.models.appointment import AppointmentCreate
from app.services.appointment_store import AppointmentStore


def _data(**overrides) -> AppointmentCreate:
    values = {
        "full_name": "Jo Lee",
        "email": "jo@x.com",
        "phone": "5551234567",
        "preferred_date": "2999-01-01",
        "preferred_time": "9:00 AM",
        "message": "First visit",
    }
    values.update(overrides)
    return AppointmentCreate(**values)


def _now() -> datetime:
    return datetime.now(UTC).replace(tzinfo=None)


class TestCreate:
    async def test_new_appointment_is_pending(self, store):
        started = _now()
        appointment = await store.create(_data())
        assert appointment.status == "pending"
        assert appointment.id.startswith("apt_")
        assert appointment.created_at >= started

    async def test_ids_are_unique(self, store):
        first = await store.create(_data())
        second = await store.create(_data(preferred_time="9:30 AM"))
        assert first.id != second.id

    async def test_list_returns_all(self, store):
        a = await store.create(_data())
        b = await store.create(_data(preferred_time="10:00 AM"))
        assert {x.id for x in await store.list()} == {a.id, b.id}


class TestUpdate:
    async def test_status_round_trip_keeps_id_and_created_at(self, store):
        created = await store.create(_data())
        await store.update(created.id, {"status": "confirmed"})
        fetched = await store.get_by_id(created.id)
        assert fetched.status == "confirmed"
        assert fetched.id == created.id
        assert fetched.created_at == created.created_at

    async def test_omitted_fields_are_untouched(self, store):
        created = await store.create(_data())
        updated = await store.update(created.id, {"phone": "555 987 6543"})
        assert updated.phone == "555 987 6543"
        assert updated.full_name == "Jo Lee"
        assert updated.message == "First visit"

    async def test_explicit_none_clears_message(self, store):
        created = await store.create(_data())
        updated = await store.update(created.id, {"message": None})
        assert updated.message is None

    async def test_id_and_created_at_cannot_be_overwritten(self, store):
        created = await store.create(_data())
        updated = await store.update(
            created.id, {"id": "apt_other", "created_at": datetime(2000, 1, 1)}
        )
        assert updated.id == created.id
        assert updated.created_at == created.created_at

    async def test_unknown_id_returns_none(self, store):
        assert await store.update("apt_missing", {"status": "confirmed"}) is None


class TestDelete:
    async def test_delete_existing(self, store):
        created = await store.create(_data())
        assert await store.delete(created.id) is True
        assert await store.get_by_id(created.id) is None

    async def test_delete_nonexistent_leaves_list_alone(self, store):
        created = await store.create(_data())
        assert await store.delete("apt_missing") is False
        assert [a.id for a in await store.list()] == [created.id]


class TestSlotBooking:
    async def test_matching_slot_is_booked(self, store):
        await store.create(_data())
        assert await store.is_slot_booked("2999-01-01", "9:00 AM") is True

    async def test_other_slot_is_free(self, store):
        await store.create(_data())
        assert await store.is_slot_booked("2999-01-01", "9:30 AM") is False
        assert await store.is_slot_booked("2999-01-02", "9:00 AM") is False

    async def test_no_normalization_of_time_labels(self, store):
        await store.create(_data())
        assert await store.is_slot_booked("2999-01-01", "09:00 AM") is False

    async def test_cancelled_appointment_frees_slot(self, store):
        created = await store.create(_data())
        await store.update(created.id, {"status": "cancelled"})
        assert await store.is_slot_booked("2999-01-01", "9:00 AM") is False

    async def test_booked_times_on(self, store):
        await store.create(_data())
        await store.create(_data(preferred_time="2:00 PM"))
        assert await store.booked_times_on("2999-01-01") == {"9:00 AM", "2:00 PM"}


class TestStorageFailure:
    async def test_connection_failure_becomes_transient_io_error(self):
        engine = create_async_engine("sqlite+aiosqlite:////nonexistent-dir/nested/db.sqlite")
        store = AppointmentStore(create_session_maker(engine))
        with pytest.raises(TransientIOError):
            await store.list()
        with pytest.raises(TransientIOError):
            await store.create(_data())
        await engine.dispose()
