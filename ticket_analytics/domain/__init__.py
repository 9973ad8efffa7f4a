"""Domain models and exceptions used across analytics layer boundaries."""

from .exceptions import (
    AccessDeniedError,
    AnalyticsError,
    InvalidScopeError,
    InvalidTimeWindowError,
    InvariantViolationError,
    MissingCurrencyError,
)
from .models import (
    AnalyticsMetric,
    AnalyticsQuery,
    AnalyticsScope,
    CountRow,
    HealthStatus,
    MetricKind,
    MoneyRow,
    Principal,
)

__all__ = [
    "AnalyticsError",
    "InvalidScopeError",
    "AccessDeniedError",
    "InvalidTimeWindowError",
    "MissingCurrencyError",
    "InvariantViolationError",
    "AnalyticsMetric",
    "AnalyticsQuery",
    "AnalyticsScope",
    "CountRow",
    "HealthStatus",
    "MetricKind",
    "MoneyRow",
    "Principal",
]
