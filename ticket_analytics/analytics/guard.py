"""Fail-closed analytics guardrails.

The guard is the only analytics component that logs violations. Each
assertion writes exactly one structured record to the injected logger and
then raises a typed exception. The guard never reads storage; it inspects
only the values passed to it.
"""

from __future__ import annotations

import logging
import re
from dataclasses import dataclass
from typing import Any, Iterable

from ticket_analytics.domain import (
    AnalyticsMetric,
    AnalyticsQuery,
    InvalidTimeWindowError,
    InvariantViolationError,
    MetricKind,
    MissingCurrencyError,
    Principal,
)

_CURRENCY_CODE_PATTERN = re.compile(r"[A-Z]{3}")
_VIOLATION_MESSAGE = "Analytics guardrail violation."


@dataclass(frozen=True)
class GuardContext:
    """Audit context attached to every guard log record.

    Attributes:
        metric: Metric name as requested by the caller.
        scope: Raw scope value of the query.
        principal_id: Principal identifier, when known.
        store_ids: Requested store identifiers in ascending order.
    """

    metric: str
    scope: str | None = None
    principal_id: int | None = None
    store_ids: tuple[int, ...] = ()

    @classmethod
    def from_query(
        cls,
        metric: AnalyticsMetric | str,
        query: AnalyticsQuery,
        principal: Principal | None = None,
    ) -> GuardContext:
        """Build audit context for one query and principal.

        Args:
            metric: Metric member or raw metric name.
            query: Analytics query under validation.
            principal: Optional principal running the query.

        Returns:
            GuardContext: Immutable audit context.
        """

        return cls(
            metric=_metric_label(metric),
            scope=query.scope_value,
            principal_id=None if principal is None else principal.principal_id,
            store_ids=tuple(sorted(query.store_ids)),
        )


class AnalyticsQueryGuard:
    """Stateless invariant checker for analytics queries and aggregation."""

    def __init__(self, logger: logging.Logger):
        """Initialize guard with its violation log sink.

        Args:
            logger: Logger receiving one record per violation.

        Raises:
            ValueError: Raised when logger is None.
        """

        if logger is None:
            raise ValueError("logger must not be None")
        self._logger = logger

    def guard_assert_valid_time_window(
        self,
        start_ts: int | None,
        end_ts: int | None,
        context: GuardContext,
    ) -> None:
        """Validate an inclusive Unix-time reporting window.

        Args:
            start_ts: Inclusive window start in epoch seconds.
            end_ts: Inclusive window end in epoch seconds.
            context: Audit context.

        Raises:
            InvalidTimeWindowError: Raised when a bound is missing or negative, or start is after end.
        """

        window = {"start_ts": start_ts, "end_ts": end_ts}
        if start_ts is None or end_ts is None:
            self._guard_log_violation(logging.WARNING, "missing_range_timestamps", context, window)
            raise InvalidTimeWindowError("Range metrics require start_ts and end_ts.", "missing_range_timestamps")
        if start_ts < 0 or end_ts < 0:
            self._guard_log_violation(logging.WARNING, "negative_range_timestamps", context, window)
            raise InvalidTimeWindowError("Time window bounds must not be negative.", "negative_range_timestamps")
        if start_ts > end_ts:
            self._guard_log_violation(logging.WARNING, "start_after_end", context, window)
            raise InvalidTimeWindowError("Time window start must not be after its end.", "start_after_end")

    def guard_assert_currency_policy(
        self,
        metric_kind: MetricKind,
        currency: str | None,
        context: GuardContext,
    ) -> None:
        """Validate the currency policy of one metric kind.

        Money metrics require a three-letter upper-case ISO code. Count metrics
        must not carry any currency.

        Args:
            metric_kind: Unit family of the requested metric.
            currency: Query currency.
            context: Audit context.

        Raises:
            MissingCurrencyError: Raised when a money metric has no currency.
            InvariantViolationError: Raised for a malformed money currency, a count
                metric with a currency, or an unknown metric kind.
        """

        if metric_kind == MetricKind.MONEY:
            if currency is None or not currency.strip():
                self._guard_log_violation(logging.WARNING, "missing_currency", context)
                raise MissingCurrencyError("Currency is required for money metrics.", "missing_currency")
            if not _CURRENCY_CODE_PATTERN.fullmatch(currency):
                self._guard_log_violation(logging.WARNING, "invalid_currency_code", context, {"currency": currency})
                raise InvariantViolationError("Invalid currency code.", "invalid_currency_code")
            return

        if metric_kind == MetricKind.COUNT:
            if currency is not None:
                self._guard_log_violation(
                    logging.WARNING,
                    "currency_not_allowed_for_count_metric",
                    context,
                    {"currency": currency},
                )
                raise InvariantViolationError(
                    "Currency is not allowed for count metrics.",
                    "currency_not_allowed_for_count_metric",
                )
            return

        self._guard_log_violation(logging.ERROR, "unknown_metric_kind", context, {"metric_kind": str(metric_kind)})
        raise InvariantViolationError("Metric kind is unknown.", "unknown_metric_kind")

    def guard_assert_known_metric(
        self,
        metric: AnalyticsMetric | str,
        context: GuardContext | None = None,
    ) -> AnalyticsMetric:
        """Resolve a metric name against the closed allow-list.

        Args:
            metric: Metric member or raw metric name.
            context: Optional audit context.

        Returns:
            AnalyticsMetric: Resolved allow-listed metric.

        Raises:
            InvariantViolationError: Raised for any name outside the allow-list.
        """

        if isinstance(metric, AnalyticsMetric):
            return metric
        if isinstance(metric, str):
            try:
                return AnalyticsMetric(metric)
            except ValueError:
                pass

        self._guard_log_violation(
            logging.ERROR,
            "unknown_metric",
            context or GuardContext(metric=_metric_label(metric)),
        )
        raise InvariantViolationError("Unknown analytics metric.", "unknown_metric")

    def guard_assert_order_line_anchoring_applicable(
        self,
        metric: AnalyticsMetric | str,
        context: GuardContext | None = None,
    ) -> None:
        """Reject order-line anchoring for metrics that are not order-line anchored.

        Entity counts such as active events must never be filtered by
        ticket-level price or event-link rules.

        Args:
            metric: Metric member or raw metric name.
            context: Optional audit context.

        Raises:
            InvariantViolationError: Raised for unknown or non-anchored metrics.
        """

        resolved_metric = self.guard_assert_known_metric(metric, context)
        if not resolved_metric.order_line_anchored:
            self._guard_log_violation(
                logging.ERROR,
                "order_line_anchoring_not_applicable",
                context or GuardContext(metric=resolved_metric.value),
            )
            raise InvariantViolationError(
                "Order-line anchoring is not applicable for this metric.",
                "order_line_anchoring_not_applicable",
            )

    def guard_assert_ledger_currency(
        self,
        expected_currency: str,
        ledger_currency: str,
        context: GuardContext,
        source: str,
    ) -> None:
        """Reject a contributing ledger row whose currency differs from the query.

        Ledger codes are compared case-insensitively.

        Args:
            expected_currency: Query currency.
            ledger_currency: Currency stored on the ledger row.
            context: Audit context.
            source: Ledger row reference such as `order_line:17`.

        Raises:
            InvariantViolationError: Raised on currency mismatch.
        """

        if (ledger_currency or "").strip().upper() != expected_currency:
            self._guard_log_violation(
                logging.ERROR,
                "currency_mismatch",
                context,
                {"currency": expected_currency, "ledger_currency": ledger_currency, "source": source},
            )
            raise InvariantViolationError("Ledger currency does not match query currency.", "currency_mismatch")

    def guard_assert_non_negative_amount(self, amount_cents: int, context: GuardContext, source: str) -> None:
        """Reject a negative ledger amount.

        Raises:
            InvariantViolationError: Raised when amount_cents is negative.
        """

        if amount_cents < 0:
            self._guard_log_violation(
                logging.ERROR,
                "negative_amount",
                context,
                {"amount_cents": amount_cents, "source": source},
            )
            raise InvariantViolationError("Ledger amount must be non-negative.", "negative_amount")

    def guard_assert_refund_linked(
        self,
        refund_entry_id: int,
        linked_line_count: int,
        context: GuardContext,
    ) -> None:
        """Reject a refund entry that links to no order line.

        Args:
            refund_entry_id: Refund entry identifier.
            linked_line_count: Number of order lines sharing the refund's order and event.
            context: Audit context.

        Raises:
            InvariantViolationError: Raised when the refund is unlinkable.
        """

        if linked_line_count < 1:
            self._guard_log_violation(
                logging.ERROR,
                "refund_not_linked_to_order_line",
                context,
                {"refund_entry_id": refund_entry_id},
            )
            raise InvariantViolationError(
                "Refund entry cannot be linked to any order line.",
                "refund_not_linked_to_order_line",
            )

    def guard_assert_refund_within_gross(
        self,
        key: tuple[int, int],
        gross_cents: int,
        refund_cents: int,
        context: GuardContext,
    ) -> None:
        """Reject refunds exceeding the gross revenue they refund.

        Args:
            key: `(store_id, event_id)` aggregation key.
            gross_cents: Gross revenue for the key.
            refund_cents: Refund total for the key.
            context: Audit context.

        Raises:
            InvariantViolationError: Raised when refund exceeds gross.
        """

        if refund_cents > gross_cents:
            self._guard_log_violation(
                logging.ERROR,
                "refund_exceeds_gross",
                context,
                {"key": list(key), "gross_cents": gross_cents, "refund_cents": refund_cents},
            )
            raise InvariantViolationError("Refund amount exceeds gross revenue.", "refund_exceeds_gross")

    def guard_assert_refund_has_gross(
        self,
        refund_keys: Iterable[tuple[int, int]],
        gross_keys: Iterable[tuple[int, int]],
        context: GuardContext,
    ) -> None:
        """Reject refund keys with no matching gross revenue key.

        Args:
            refund_keys: Refund aggregation keys.
            gross_keys: Gross aggregation keys.
            context: Audit context.

        Raises:
            InvariantViolationError: Raised when any refund key has no gross.
        """

        orphan_keys = sorted(set(refund_keys) - set(gross_keys))
        if orphan_keys:
            self._guard_log_violation(
                logging.ERROR,
                "refund_without_gross",
                context,
                {"keys": [list(key) for key in orphan_keys]},
            )
            raise InvariantViolationError("Refund exists without gross revenue.", "refund_without_gross")

    def guard_assert_rows_within_scope(
        self,
        row_store_ids: Iterable[int],
        effective_store_ids: frozenset[int],
        context: GuardContext,
    ) -> None:
        """Reject result rows whose store lies outside the resolved scope.

        Args:
            row_store_ids: Store identifiers of the rows about to be returned.
            effective_store_ids: Resolved scope set.
            context: Audit context.

        Raises:
            InvariantViolationError: Raised on a tenant-boundary breach.
        """

        leaked_store_ids = sorted(set(row_store_ids) - effective_store_ids)
        if leaked_store_ids:
            self._guard_log_violation(
                logging.ERROR,
                "row_outside_scope",
                context,
                {"effective_store_ids": sorted(effective_store_ids), "leaked_store_ids": leaked_store_ids},
            )
            raise InvariantViolationError("Result row falls outside the resolved scope.", "row_outside_scope")

    def _guard_log_violation(
        self,
        level: int,
        violation_code: str,
        context: GuardContext,
        extra: dict[str, Any] | None = None,
    ) -> None:
        """Write one structured violation record to the injected logger.

        Args:
            level: Logging level of the record.
            violation_code: Stable, non-PII violation code.
            context: Audit context of the failing query.
            extra: Optional check-specific fields merged into the payload.
        """

        payload: dict[str, Any] = {
            "metric": context.metric,
            "violation_code": violation_code,
            "scope": context.scope,
            "principal_id": context.principal_id,
            "store_ids": list(context.store_ids),
        }
        if extra:
            payload.update(extra)
        self._logger.log(level, _VIOLATION_MESSAGE, extra={"analytics": payload})


def _metric_label(metric: Any) -> str:
    """Return the audit label of a metric member or raw metric name.

    Args:
        metric: Metric member or any caller-supplied value.

    Returns:
        str: Enum value for members, string form otherwise.
    """

    if isinstance(metric, AnalyticsMetric):
        return metric.value
    return str(metric)


__all__ = ["AnalyticsQueryGuard", "GuardContext"]
