import hmac
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from jose import JWTError, jwt
from passlib.context import CryptContext

from app.core.config import Settings

pwd_context = CryptContext(schemes=["bcrypt"], deprecated="auto", bcrypt__rounds=12)

SESSION_TOKEN_TYPE = "admin_session"


def hash_password(password: str) -> str:
    return pwd_context.hash(password)


def verify_password(plain_password: str, hashed_password: str) -> bool:
    return pwd_context.verify(plain_password, hashed_password)


def constant_time_equals(a: str, b: str) -> bool:
    return hmac.compare_digest(a.encode("utf-8"), b.encode("utf-8"))


def create_session_token(settings: Settings, subject: str) -> tuple[str, str, datetime]:
    """Returns (token, jti, expires_at)."""
    expire = datetime.now(UTC) + timedelta(days=settings.session_expire_days)
    jti = str(uuid4())
    to_encode = {
        "sub": subject,
        "exp": expire,
        "type": SESSION_TOKEN_TYPE,
        "jti": jti,
    }
    token = jwt.encode(to_encode, settings.secret_key, algorithm=settings.algorithm)
    return token, jti, expire


def decode_session_token(settings: Settings, token: str) -> tuple[str | None, str | None]:
    """Returns (subject, jti) or (None, None) when the signature, expiry or type is wrong."""
    try:
        payload = jwt.decode(token, settings.secret_key, algorithms=[settings.algorithm])
    except JWTError:
        return None, None
    if payload.get("type") != SESSION_TOKEN_TYPE:
        return None, None
    return payload.get("sub"), payload.get("jti")
