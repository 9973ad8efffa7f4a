"""Configuration package for runtime settings, logging and startup validation."""

from .logging_setup import AnalyticsLogFormatter, config_configure_logging, config_get_guard_logger
from .settings import AppSettings, SettingsLoadError, config_load_settings

__all__ = [
    "AppSettings",
    "SettingsLoadError",
    "config_load_settings",
    "AnalyticsLogFormatter",
    "config_configure_logging",
    "config_get_guard_logger",
]
