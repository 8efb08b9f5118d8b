"""Tests for error classification, public messages, settings and log formatting."""

import json
import logging

import pytest

from loremaker.config import Settings, gviz_url
from loremaker.errors import (
    GENERIC_FAILURE_MESSAGE,
    PUBLIC_AVAILABILITY_MESSAGE,
    BadEnvelopeError,
    CodexError,
    MissingConfigError,
    UnavailableUpstreamError,
    UpstreamFailureError,
    is_config_error,
    public_error_message,
)
from loremaker.utils.logging_config import JSONFormatter, SheetAdapter, get_logger, setup_logging


# ---------------------------------------------------------------------------
# Public messages
# ---------------------------------------------------------------------------

class TestPublicErrorMessage:

    @pytest.mark.parametrize("error", [
        MissingConfigError("SHEET_ID missing"),
        UpstreamFailureError(502),
        BadEnvelopeError("GViz format not recognised"),
        UnavailableUpstreamError(cause=UpstreamFailureError(500)),
    ])
    def test_engine_errors_never_leak_detail(self, error):
        assert public_error_message(error) == PUBLIC_AVAILABILITY_MESSAGE

    @pytest.mark.parametrize("text", [
        "SHEET_ID is not configured",
        "Missing sheet_tab",
        "Request failed with 503",
    ])
    def test_leaky_strings_are_replaced(self, text):
        assert public_error_message(text) == PUBLIC_AVAILABILITY_MESSAGE

    def test_plain_strings_pass_through(self):
        assert public_error_message("Try another search.") == "Try another search."

    @pytest.mark.parametrize("error", [None, "", "   ", ValueError("boom")])
    def test_everything_else_is_generic(self, error):
        assert public_error_message(error) == GENERIC_FAILURE_MESSAGE

    def test_error_codes(self):
        assert MissingConfigError().code == "MissingConfig"
        assert UpstreamFailureError(500).status == 500
        assert "500" in str(UpstreamFailureError(500))
        assert isinstance(UnavailableUpstreamError(), CodexError)

    def test_is_config_error(self):
        assert is_config_error(MissingConfigError())
        assert not is_config_error(UpstreamFailureError(500))
        assert not is_config_error("SHEET_ID")


# ---------------------------------------------------------------------------
# Settings
# ---------------------------------------------------------------------------

class TestSettings:

    def test_defaults(self, monkeypatch):
        monkeypatch.delenv("SHEET_ID", raising=False)
        monkeypatch.delenv("CACHE_TTL", raising=False)
        settings = Settings(_env_file=None)
        assert settings.sheet_id is None
        assert settings.cache_ttl == 600_000
        assert settings.fallback_roster_path.name == "fallback_characters.json"

    def test_environment(self, monkeypatch):
        monkeypatch.setenv("SHEET_ID", " abc123 ")
        monkeypatch.setenv("SHEET_TAB", "   ")
        monkeypatch.setenv("CACHE_TTL", "1000")
        settings = Settings(_env_file=None)
        assert settings.sheet_id == "abc123"
        assert settings.sheet_tab is None
        assert settings.cache_ttl == 1000

    def test_gviz_url(self):
        settings = Settings(_env_file=None, gviz_base_url="https://docs.example.com/d/")
        assert gviz_url(settings, "abc") == "https://docs.example.com/d/abc/gviz/tq"


# ---------------------------------------------------------------------------
# Logging
# ---------------------------------------------------------------------------

class TestLogging:

    def _record(self, **extra):
        record = logging.LogRecord("loremaker.sheets", logging.WARNING, __file__, 1,
                                   "candidate failed: %s", ("UpstreamFailureError",), None)
        for key, value in extra.items():
            setattr(record, key, value)
        return record

    def test_json_line_with_extras(self):
        line = JSONFormatter().format(self._record(sheet="Characters", status=500))
        entry = json.loads(line)
        assert entry["level"] == "WARNING"
        assert entry["logger"] == "loremaker.sheets"
        assert entry["message"] == "candidate failed: UpstreamFailureError"
        assert entry["sheet"] == "Characters"
        assert entry["status"] == 500
        assert "count" not in entry

    def test_sheet_adapter_injects_sheet(self):
        adapter = SheetAdapter(logging.getLogger("loremaker.test"), None)
        _, kwargs = adapter.process("hello", {"extra": {"count": 3}})
        assert kwargs["extra"] == {"count": 3, "sheet": "(default)"}

    def test_loggers_live_under_the_namespace(self):
        assert get_logger("sheets").name == "loremaker.sheets"
        assert get_logger("loremaker.api").name == "loremaker.api"

    def test_file_handler_is_attached_once(self, tmp_path):
        path = tmp_path / "codex.log"
        root = logging.getLogger("loremaker")
        try:
            setup_logging(str(path))
            setup_logging(str(path))
            appenders = [h for h in root.handlers if isinstance(h, logging.FileHandler)]
            assert len(appenders) == 1

            get_logger("test").info("roster loaded", extra={"count": 2})
            appenders[0].flush()
            entry = json.loads(path.read_text(encoding="utf-8").splitlines()[-1])
            assert entry["message"] == "roster loaded"
            assert entry["count"] == 2
        finally:
            for handler in [h for h in root.handlers if isinstance(h, logging.FileHandler)]:
                root.removeHandler(handler)
                handler.close()
