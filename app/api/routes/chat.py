from fastapi import APIRouter, Depends

from app.api.deps import get_faq_responder
from app.api.schemas.chat import ChatRequest, ChatResponse
from app.core.exceptions import ValidationError
from app.core.rate_limit import enforce_rate_limit
from app.services.faq_service import FaqResponder

router = APIRouter(prefix="/chat", tags=["chat"])


@router.post("", response_model=ChatResponse, dependencies=[Depends(enforce_rate_limit)])
async def chat(
    body: ChatRequest,
    responder: FaqResponder = Depends(get_faq_responder),
) -> ChatResponse:
    if not body.message:
        raise ValidationError("Invalid message")
    result = responder.respond(body.message)
    return ChatResponse(
        answer=result.answer,
        message=result.matched_question or body.message,
    )
