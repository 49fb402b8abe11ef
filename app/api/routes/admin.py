import logging

from fastapi import APIRouter, Depends, Query

from app.api.deps import get_workflow, require_admin
from app.api.schemas.appointment import (
    AppointmentListResponse,
    AppointmentUpdateRequest,
    AppointmentUpdateResponse,
    MessageResponse,
    StatusChangeRequest,
)
from app.core.exceptions import ValidationError
from app.models.appointment import AppointmentPublic
from app.services.appointment_service import AppointmentWorkflow, UpdateResult

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/admin/appointments", tags=["admin"], dependencies=[Depends(require_admin)])


def _to_response(result: UpdateResult) -> AppointmentUpdateResponse:
    return AppointmentUpdateResponse(
        appointment=AppointmentPublic.model_validate(result.appointment),
        email_sent=result.patient_notified,
        admin_notified=result.admin_notified,
    )


@router.get("", response_model=AppointmentListResponse)
async def list_appointments(
    workflow: AppointmentWorkflow = Depends(get_workflow),
) -> AppointmentListResponse:
    appointments = await workflow.list()
    return AppointmentListResponse(
        appointments=[AppointmentPublic.model_validate(a) for a in appointments]
    )


@router.put("", response_model=AppointmentUpdateResponse)
async def update_appointment(
    body: AppointmentUpdateRequest,
    workflow: AppointmentWorkflow = Depends(get_workflow),
) -> AppointmentUpdateResponse:
    changes = body.model_dump(exclude_unset=True)
    appointment_id = changes.pop("id", None)
    # A null status means "leave it alone"
    if changes.get("status", "") is None:
        del changes["status"]
    if not appointment_id:
        raise ValidationError("Appointment ID is required")
    result = await workflow.update(appointment_id, changes)
    return _to_response(result)


@router.post("/status", response_model=AppointmentUpdateResponse)
async def change_appointment_status(
    body: StatusChangeRequest,
    workflow: AppointmentWorkflow = Depends(get_workflow),
) -> AppointmentUpdateResponse:
    appointment_id = (body.appointment_id or "").strip()
    if not appointment_id:
        raise ValidationError("appointmentId is required and must be a non-empty string")
    result = await workflow.change_status(appointment_id, body.new_status or "")
    return _to_response(result)


@router.delete("", response_model=MessageResponse)
async def delete_appointment(
    appointment_id: str | None = Query(None, alias="id"),
    workflow: AppointmentWorkflow = Depends(get_workflow),
) -> MessageResponse:
    if not appointment_id:
        raise ValidationError("Appointment ID is required")
    await workflow.delete(appointment_id)
    return MessageResponse(message="Appointment deleted")
