"""Project-native typed exceptions for analytics query failures.

Every exception here is a terminal domain failure. None of them is retryable
and none of them is caught inside the analytics engine.
"""

from __future__ import annotations


class AnalyticsError(RuntimeError):
    """Base exception for fail-closed analytics failures.

    Attributes:
        violation_code: Optional stable, non-PII violation code.
    """

    def __init__(self, message: str, violation_code: str | None = None):
        super().__init__(message)
        self.violation_code = violation_code


class InvalidScopeError(AnalyticsError):
    """Query scope is not one of the recognized scope variants."""


class AccessDeniedError(AnalyticsError):
    """Principal is not authorized to read the requested tenant scope.

    Callers must never translate this failure into an empty result set.
    """


class InvalidTimeWindowError(AnalyticsError):
    """Query time window is missing, negative, or has start after end."""


class MissingCurrencyError(AnalyticsError):
    """Money metric was requested without a currency."""


class InvariantViolationError(AnalyticsError):
    """Integrity breach detected while validating or aggregating a query.

    Raised for unknown metrics, currency mixing, unlinkable refunds, refunds
    exceeding gross revenue and anchoring misapplied to a non-anchored metric.
    """


__all__ = [
    "AnalyticsError",
    "InvalidScopeError",
    "AccessDeniedError",
    "InvalidTimeWindowError",
    "MissingCurrencyError",
    "InvariantViolationError",
]
