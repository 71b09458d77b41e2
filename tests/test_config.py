"""Tests for settings and logging helpers."""

import json
import logging

import structlog

from hotel_ledger.config.logging import add_ledger_scope, build_handler, build_processors
from hotel_ledger.config.settings import (
    LedgerSettings,
    LoggingSettings,
    PricingSettings,
    Settings,
)


class TestSettings:
    """Tests for the pydantic-settings classes."""

    def test_defaults(self):
        """Test the ledger and pricing defaults."""
        ledger = LedgerSettings()

        assert ledger.lock_timeout_seconds == 2.0
        assert ledger.fallback_to_room_rate is True
        assert PricingSettings().weekend_days == [4, 5]
        assert LoggingSettings().quiet_loggers == ["uvicorn.access", "httpx"]

    def test_environment_overrides(self, monkeypatch):
        """Test prefixed environment variables override defaults."""
        monkeypatch.setenv("LEDGER_LOCK_TIMEOUT_SECONDS", "0.5")
        monkeypatch.setenv("PRICING_EARLY_BIRD_DAYS", "45")
        monkeypatch.setenv("LOG_QUIET_LOGGERS", '["urllib3"]')

        assert LedgerSettings().lock_timeout_seconds == 0.5
        assert PricingSettings().early_bird_days == 45
        assert LoggingSettings().quiet_loggers == ["urllib3"]

    def test_nested_override(self, monkeypatch):
        """Test the double-underscore delimiter reaches nested settings."""
        monkeypatch.setenv("API__PORT", "9000")

        assert Settings().api.port == 9000


class TestLedgerScope:
    """Tests for the add_ledger_scope processor."""

    def test_property_and_room(self):
        """Test both ids are joined into one prefix."""
        event = add_ledger_scope(
            None, "info", {"event": "Room dates held", "property_id": "P1", "room_id": "R1"}
        )

        assert event["event"] == "[P1/R1] Room dates held"

    def test_property_only(self):
        """Test a property-level event is prefixed with the property id."""
        event = add_ledger_scope(None, "info", {"event": "Reservation created", "property_id": "P1"})

        assert event["event"] == "[P1] Reservation created"

    def test_room_only(self):
        """Test a rejection that only knows the room is prefixed with it."""
        event = add_ledger_scope(None, "warning", {"event": "Room hold rejected", "room_id": "R2"})

        assert event["event"] == "[R2] Room hold rejected"

    def test_no_ids(self):
        """Test events without ids are left unchanged."""
        event = add_ledger_scope(None, "info", {"event": "Catalog loaded"})

        assert event["event"] == "Catalog loaded"


class TestLoggingSetup:
    """Tests for the processor chain and handler builders."""

    def test_json_chain_ends_with_json_renderer(self):
        """Test the json format renders with JSONRenderer after the scope prefix."""
        processors = build_processors("json")

        assert isinstance(processors[-1], structlog.processors.JSONRenderer)
        assert processors[-2] is add_ledger_scope

    def test_console_chain_ends_with_console_renderer(self):
        """Test the console format renders with ConsoleRenderer."""
        assert isinstance(build_processors("console")[-1], structlog.dev.ConsoleRenderer)

    def test_json_handler_writes_json_lines(self):
        """Test the json handler emits a parseable record with the message."""
        handler = build_handler("json", logging.INFO)
        record = logging.LogRecord("hotel_ledger", logging.INFO, __file__, 1, "Catalog loaded", None, None)

        payload = json.loads(handler.format(record))

        assert handler.level == logging.INFO
        assert payload["message"] == "Catalog loaded"
        assert payload["levelname"] == "INFO"

    def test_console_handler_is_plain_text(self):
        """Test the console handler emits the plain text layout."""
        handler = build_handler("console", logging.WARNING)
        record = logging.LogRecord("hotel_ledger", logging.WARNING, __file__, 1, "Busy", None, None)

        assert handler.format(record).endswith("hotel_ledger - WARNING - Busy")
