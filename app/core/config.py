from functools import lru_cache
from pathlib import Path

from pydantic import Field, model_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

# Resolve .env from backend project root so it loads regardless of cwd
_BACKEND_ROOT = Path(__file__).resolve().parent.parent.parent
_ENV_FILE = _BACKEND_ROOT / ".env"


class Settings(BaseSettings):
    model_config = SettingsConfigDict(
        env_file=(str(_ENV_FILE), ".env", "../.env"),
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Database
    database_url: str
    auto_create_tables: bool = True

    # Admin identity and session signing. No fallbacks: startup fails when unset.
    secret_key: str = Field(min_length=16)
    admin_email: str = Field(min_length=3)
    admin_password: str = ""
    admin_password_hash: str = ""  # bcrypt; takes precedence over admin_password
    session_expire_days: int = 7
    session_cookie_name: str = "admin_session"
    algorithm: str = "HS256"

    # CORS
    cors_origins: str = "http://localhost:3000"

    # Env
    env: str = "development"

    # Email (SMTP). Leave smtp_user/smtp_password empty to disable sending.
    smtp_host: str = "smtp.gmail.com"
    smtp_port: int = 587
    smtp_secure: bool = False  # implicit TLS (port 465); otherwise STARTTLS
    smtp_user: str = ""
    smtp_password: str = ""
    smtp_timeout_seconds: float = 10.0
    from_email: str = ""
    from_name: str = "SmileCraft Dental"
    # Where new-request and status-change alerts go; defaults to the sender
    admin_notification_email: str = ""

    # Public rate limit (per client address, fixed window)
    rate_limit_window_seconds: int = 60
    rate_limit_max_requests: int = 10

    # Branding and contact in email footers
    site_name: str = "SmileCraft Dental"
    contact_email: str = "hello@smilecraftdental.com"
    contact_phone: str = "(555) 123-4567"
    contact_address: str = "123 Dental Way, Care City"

    @model_validator(mode="after")
    def _require_admin_password(self) -> "Settings":
        if not self.admin_password and not self.admin_password_hash:
            raise ValueError("ADMIN_PASSWORD or ADMIN_PASSWORD_HASH must be set")
        return self

    @property
    def cors_origins_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    @property
    def email_enabled(self) -> bool:
        return bool(self.smtp_host and self.smtp_user and self.smtp_password)

    @property
    def sender_email(self) -> str:
        return self.from_email or self.smtp_user

    @property
    def admin_alert_email(self) -> str:
        return self.admin_notification_email or self.sender_email

    @property
    def is_production(self) -> bool:
        return self.env == "production"


@lru_cache
def get_settings() -> Settings:
    return Settings()
