import logging

from fastapi import APIRouter, BackgroundTasks, Depends

from app.api.deps import get_workflow
from app.api.schemas.appointment import AppointmentSubmission, AppointmentSubmitResponse
from app.core.rate_limit import enforce_rate_limit
from app.services.appointment_service import AppointmentWorkflow

logger = logging.getLogger(__name__)
router = APIRouter(prefix="/appointments", tags=["appointments"])


@router.post(
    "",
    response_model=AppointmentSubmitResponse,
    dependencies=[Depends(enforce_rate_limit)],
)
async def submit_appointment(
    body: AppointmentSubmission,
    background_tasks: BackgroundTasks,
    workflow: AppointmentWorkflow = Depends(get_workflow),
) -> AppointmentSubmitResponse:
    appointment = await workflow.submit(body.model_dump())
    # Runs after the response is sent; the outcome is only logged
    background_tasks.add_task(workflow.notify_new_request, appointment)
    return AppointmentSubmitResponse(appointment_id=appointment.id)
