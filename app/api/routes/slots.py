from datetime import date

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_store
from app.api.schemas.appointment import AvailableSlotsResponse, SlotInfo
from app.services.appointment_store import AppointmentStore
from app.services.slot_service import get_slot_availability

router = APIRouter(prefix="/appointments/slots", tags=["slots"])


@router.get("", response_model=AvailableSlotsResponse)
async def available_slots(
    date_param: date = Query(..., alias="date"),
    store: AppointmentStore = Depends(get_store),
) -> AvailableSlotsResponse:
    """Every bookable time label for the date, with whether a non-cancelled appointment holds it."""
    preferred_date = date_param.isoformat()
    availability = await get_slot_availability(store, preferred_date)
    return AvailableSlotsResponse(
        date=preferred_date,
        slots=[SlotInfo(time=label, available=available) for label, available in availability],
    )
