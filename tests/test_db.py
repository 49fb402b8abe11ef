"""Tests for database URL handling and column types."""

import pytest
from sqlalchemy import DateTime

from app.core.db import to_async_url
from app.models.admin_session import AdminSession
from app.models.appointment import Appointment


class TestToAsyncUrl:
    @pytest.mark.parametrize(
        "url,expected",
        [
            ("sqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
            ("sqlite:///./app.db", "sqlite+aiosqlite:///./app.db"),
            ("sqlite+aiosqlite:///:memory:", "sqlite+aiosqlite:///:memory:"),
            (
                "postgresql://user:pw@db.example.com:5432/clinic",
                "postgresql+asyncpg://user:pw@db.example.com:5432/clinic",
            ),
            (
                "postgres://user:pw@db.example.com/clinic",
                "postgresql+asyncpg://user:pw@db.example.com/clinic",
            ),
        ],
    )
    def test_driver_mapping(self, url, expected):
        assert to_async_url(url) == expected

    def test_psycopg_params_are_dropped(self):
        url = to_async_url(
            "postgresql://user:pw@db.example.com/clinic?sslmode=require&channel_binding=require&application_name=web"
        )
        assert url == "postgresql+asyncpg://user:pw@db.example.com/clinic?application_name=web"


class TestTimestampColumns:
    @pytest.mark.parametrize(
        "column",
        [
            Appointment.__table__.c.created_at,
            AdminSession.__table__.c.created_at,
            AdminSession.__table__.c.expires_at,
        ],
    )
    def test_naive_datetime_columns(self, column):
        assert isinstance(column.type, DateTime)
        assert column.type.timezone is False
