from datetime import datetime, timedelta

from app.services.appointment_store import AppointmentStore

SLOT_DURATION_MINUTES = 30
# Morning and afternoon sessions; the clinic breaks for lunch 12:00-2:00 PM
_SESSIONS = ((9, 0, 12, 0), (14, 0, 17, 30))


def _format_label(t: datetime) -> str:
    """9:00 AM style label, without a leading zero on the hour."""
    return t.strftime("%I:%M %p").lstrip("0")


def slot_labels() -> list[str]:
    """Half-hour time labels offered by the booking form, in day order."""
    labels: list[str] = []
    delta = timedelta(minutes=SLOT_DURATION_MINUTES)
    for start_h, start_m, end_h, end_m in _SESSIONS:
        current = datetime(2000, 1, 1, start_h, start_m)
        end = datetime(2000, 1, 1, end_h, end_m)
        while current < end:
            labels.append(_format_label(current))
            current += delta
    return labels


TIME_SLOTS: tuple[str, ...] = tuple(slot_labels())


async def get_slot_availability(store: AppointmentStore, preferred_date: str) -> list[tuple[str, bool]]:
    """Returns [(time_label, available)] for every slot on the given date."""
    booked = await store.booked_times_on(preferred_date)
    return [(label, label not in booked) for label in TIME_SLOTS]
