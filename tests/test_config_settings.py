"""Tests for runtime settings validation and logging configuration."""

from __future__ import annotations

import logging
from pathlib import Path

import pytest

from ticket_analytics.config import (
    AnalyticsLogFormatter,
    AppSettings,
    SettingsLoadError,
    config_configure_logging,
    config_load_settings,
)


@pytest.fixture(autouse=True)
def _isolated_environment(monkeypatch: pytest.MonkeyPatch, tmp_path: Path) -> None:
    """Run each test from an empty directory so no dotenv file is read."""

    monkeypatch.chdir(tmp_path)
    for variable_name in (
        "LOG_LEVEL",
        "ANALYTICS_PRINCIPAL_ID",
        "ANALYTICS_ADMIN_PRINCIPAL_IDS",
        "ANALYTICS_DEFAULT_CURRENCY",
        "ANALYTICS_NON_TICKET_ITEM_TYPES",
    ):
        monkeypatch.delenv(variable_name, raising=False)


def test_config_settings_defaults() -> None:
    """Load defaults with no administrators and boost as the only add-on type."""

    settings = config_load_settings()

    assert settings.log_level == "INFO"
    assert settings.analytics_principal_id == 0
    assert settings.analytics_admin_principal_ids == frozenset()
    assert settings.analytics_default_currency is None
    assert settings.analytics_non_ticket_item_types == frozenset({"boost"})


def test_config_settings_parses_comma_separated_values(monkeypatch: pytest.MonkeyPatch) -> None:
    """Parse comma-separated administrator ids and add-on item types."""

    monkeypatch.setenv("ANALYTICS_ADMIN_PRINCIPAL_IDS", "1, 7,")
    monkeypatch.setenv("ANALYTICS_NON_TICKET_ITEM_TYPES", "Boost,donation")
    monkeypatch.setenv("ANALYTICS_DEFAULT_CURRENCY", " aud ")

    settings = config_load_settings()

    assert settings.analytics_admin_principal_ids == frozenset({1, 7})
    assert settings.analytics_non_ticket_item_types == frozenset({"boost", "donation"})
    assert settings.analytics_default_currency == "AUD"


@pytest.mark.parametrize(
    ("variable_name", "value"),
    [
        ("LOG_LEVEL", "chatty"),
        ("ANALYTICS_ADMIN_PRINCIPAL_IDS", "1,0"),
        ("ANALYTICS_DEFAULT_CURRENCY", "dollars"),
        ("ANALYTICS_PRINCIPAL_ID", "-3"),
    ],
)
def test_config_settings_invalid_values_raise_load_error(
    monkeypatch: pytest.MonkeyPatch,
    variable_name: str,
    value: str,
) -> None:
    """Fail startup on invalid configuration values."""

    monkeypatch.setenv(variable_name, value)

    with pytest.raises(SettingsLoadError):
        config_load_settings()


def test_config_settings_normalizes_log_level() -> None:
    """Upper-case log level names."""

    assert AppSettings(log_level="debug").log_level == "DEBUG"


def test_config_logging_rejects_unknown_level() -> None:
    """Reject unknown logging level names."""

    with pytest.raises(ValueError):
        config_configure_logging("chatty")


def test_config_log_formatter_appends_sorted_analytics_payload() -> None:
    """Render the analytics payload as sorted key=value pairs."""

    record = logging.LogRecord("ticket_analytics.guard", logging.WARNING, __file__, 1, "Analytics guardrail violation.", None, None)
    record.analytics = {"violation_code": "start_after_end", "metric": "Gross Revenue"}

    rendered_line = AnalyticsLogFormatter().format(record)

    assert rendered_line.endswith("| metric=Gross Revenue violation_code=start_after_end")
