from pydantic import BaseModel


class ChatRequest(BaseModel):
    message: str | None = None


class ChatResponse(BaseModel):
    success: bool = True
    source: str = "faq"
    answer: str
    # The matched catalogue question, or the visitor's own message on fallback
    message: str
