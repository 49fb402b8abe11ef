import pytest
from fastapi.testclient import TestClient

from app.core.config import Settings
from app.core.db import create_engine_from_settings, create_session_maker, init_db
from app.main import create_app
from app.services.appointment_store import AppointmentStore

ADMIN_EMAIL = "admin@smilecraft.test"
ADMIN_PASSWORD = "correct horse battery staple"

VALID_BOOKING = {
    "fullName": "Jo Lee",
    "email": "jo@x.com",
    "phone": "5551234567",
    "preferredDate": "2999-01-01",
    "preferredTime": "9:00 AM",
}


class RecordingTransport:
    """Mail transport double: records every send, optionally failing."""

    def __init__(self, fail: bool = False):
        self.fail = fail
        self.sent: list[dict] = []

    def send(self, to_email, subject, html_body, text_body):
        self.sent.append(
            {"to": to_email, "subject": subject, "html": html_body, "text": text_body}
        )
        if self.fail:
            raise ConnectionError("SMTP server unavailable")


def make_settings(**overrides) -> Settings:
    values = {
        "database_url": "sqlite+aiosqlite:///:memory:",
        "secret_key": "test-secret-key-that-is-long-enough",
        "admin_email": ADMIN_EMAIL,
        "admin_password": ADMIN_PASSWORD,
        "from_email": "clinic@smilecraft.test",
        "smtp_user": "",
        "smtp_password": "",
        "env": "test",
    }
    values.update(overrides)
    return Settings(_env_file=None, **values)


@pytest.fixture
def settings() -> Settings:
    return make_settings()


@pytest.fixture
def transport() -> RecordingTransport:
    return RecordingTransport()


@pytest.fixture
def client(settings, transport):
    app = create_app(settings, mail_transport=transport)
    with TestClient(app) as c:
        yield c


@pytest.fixture
def admin_client(client):
    resp = client.post("/admin/login", json={"email": ADMIN_EMAIL, "password": ADMIN_PASSWORD})
    assert resp.status_code == 200
    return client


@pytest.fixture
async def session_maker(settings):
    engine = create_engine_from_settings(settings)
    await init_db(engine)
    yield create_session_maker(engine)
    await engine.dispose()


@pytest.fixture
def store(session_maker) -> AppointmentStore:
    return AppointmentStore(session_maker)
