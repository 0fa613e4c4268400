"""
Tests for settings parsing and logging setup.
"""

import logging
from datetime import datetime, timedelta, timezone
from decimal import Decimal

from cinema.core.config import Settings
from cinema.core.logging import HANDLER_NAME, add_service_info, setup_logging, stringify_values


def test_plain_postgres_url_gets_async_driver():
    settings = Settings(DATABASE_URL="postgres://u:p@db:5432/cinema")
    assert settings.DATABASE_URL == "postgresql+asyncpg://u:p@db:5432/cinema"
    assert settings.is_sqlite is False


def test_sqlite_url_is_kept():
    settings = Settings(DATABASE_URL="sqlite+aiosqlite://")
    assert settings.DATABASE_URL == "sqlite+aiosqlite://"
    assert settings.is_sqlite is True


def test_seat_settings():
    settings = Settings(LOCK_HOLD_MINUTES=7, LOG_LEVEL="debug", CORS_ORIGINS="https://a.example, https://b.example")
    assert settings.lock_hold == timedelta(minutes=7)
    assert settings.MAX_SEATS_PER_REQUEST == 0
    assert settings.LOG_LEVEL == "DEBUG"
    assert settings.cors_origins == ["https://a.example", "https://b.example"]


def test_log_values_are_stringified():
    expires = datetime(2026, 1, 1, 12, 5, tzinfo=timezone.utc)
    event = stringify_values(None, "info", {"event": "seats_locked", "total": Decimal("200.00"), "expires_at": expires})
    assert event["total"] == "200.00"
    assert event["expires_at"] == "2026-01-01T12:05:00+00:00"


def test_service_info_does_not_override_bound_fields():
    event = add_service_info(None, "info", {"event": "x", "env": "staging"})
    assert event["env"] == "staging"
    assert event["service"] == "Cinema Booking API"


def test_setup_logging_installs_one_handler():
    setup_logging()
    setup_logging()
    root = logging.getLogger()
    ours = [h for h in root.handlers if h.get_name() == HANDLER_NAME]
    assert len(ours) == 1
    root.removeHandler(ours[0])
