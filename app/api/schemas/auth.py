from pydantic import BaseModel


class LoginRequest(BaseModel):
    email: str | None = None
    password: str | None = None


class AdminPublic(BaseModel):
    email: str
