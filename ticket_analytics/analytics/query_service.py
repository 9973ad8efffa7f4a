"""Analytics query service for order-line anchored marketplace metrics."""

from __future__ import annotations

from dataclasses import dataclass

from ticket_analytics.domain import (
    AnalyticsMetric,
    AnalyticsQuery,
    CountRow,
    MoneyRow,
    Principal,
)

from .guard import AnalyticsQueryGuard, GuardContext
from .interfaces import (
    LINE_KIND_TICKET,
    ORDER_STATE_COMPLETED,
    REFUND_STATUS_COMPLETED,
    IdentityProviderPort,
    LedgerOrderLineRecord,
    LedgerRefundEntryRecord,
    OrderLedgerPort,
    RefundLedgerPort,
)
from .scope_resolver import AnalyticsScopeResolver

AggregationKey = tuple[int, int]


@dataclass(frozen=True)
class _AnalyticsRun:
    """Validated state shared by one metric computation.

    Attributes:
        metric: Allow-listed metric being computed.
        query: Original analytics query.
        principal: Principal running the query.
        effective_store_ids: Authoritative store set from the scope resolver.
        context: Audit context handed to every guard assertion.
    """

    metric: AnalyticsMetric
    query: AnalyticsQuery
    principal: Principal
    effective_store_ids: frozenset[int]
    context: GuardContext

    @property
    def start_ts(self) -> int:
        """Return the inclusive window start as an integer."""

        return int(self.query.start_ts or 0)

    @property
    def end_ts(self) -> int:
        """Return the inclusive window end as an integer."""

        return int(self.query.end_ts or 0)

    @property
    def currency(self) -> str:
        """Return the validated query currency."""

        return str(self.query.currency or "")


class AnalyticsQueryService:
    """Compute gross revenue, refund amount, net revenue and tickets sold.

    Every operation validates the query through the guard and resolves scope
    before any ledger read. Failures are total: a violation anywhere discards
    all aggregation work and no rows are returned.
    """

    def __init__(
        self,
        guard: AnalyticsQueryGuard,
        scope_resolver: AnalyticsScopeResolver,
        identity_provider: IdentityProviderPort,
        order_ledger: OrderLedgerPort,
        refund_ledger: RefundLedgerPort,
    ):
        """Initialize query service dependencies.

        Args:
            guard: Invariant guard and violation log sink.
            scope_resolver: Scope resolver for effective store sets.
            identity_provider: Source of the current principal.
            order_ledger: Read-only order line ledger.
            refund_ledger: Read-only refund ledger.

        Raises:
            ValueError: Raised when any dependency is None.
        """

        dependencies = {
            "guard": guard,
            "scope_resolver": scope_resolver,
            "identity_provider": identity_provider,
            "order_ledger": order_ledger,
            "refund_ledger": refund_ledger,
        }
        for dependency_name, dependency in dependencies.items():
            if dependency is None:
                raise ValueError(f"{dependency_name} must not be None")

        self._guard = guard
        self._scope_resolver = scope_resolver
        self._identity_provider = identity_provider
        self._order_ledger = order_ledger
        self._refund_ledger = refund_ledger

    def analytics_get_gross_revenue(self, query: AnalyticsQuery) -> list[MoneyRow]:
        """Sum eligible order-line revenue per store and event.

        Args:
            query: Money metric query with currency and time window.

        Returns:
            list[MoneyRow]: Non-zero totals ordered by store and event.

        Raises:
            AnalyticsError: Raised by any guard or scope check, or on currency mixing.
            RuntimeError: Raised when a ledger read fails.
        """

        run = self._analytics_prepare_run(AnalyticsMetric.GROSS_REVENUE, query)
        order_lines = self._analytics_read_order_lines(run)
        gross_totals = self._analytics_sum_gross(run, order_lines)
        return self._analytics_build_money_rows(run, gross_totals)

    def analytics_get_refund_amount(self, query: AnalyticsQuery) -> list[MoneyRow]:
        """Sum completed refunds linked to eligible order lines per store and event.

        Args:
            query: Money metric query with currency and time window.

        Returns:
            list[MoneyRow]: Non-zero refund totals ordered by store and event.

        Raises:
            AnalyticsError: Raised by any guard or scope check, on currency mixing,
                or when a refund cannot be linked to an order line.
            RuntimeError: Raised when a ledger read fails.
        """

        run = self._analytics_prepare_run(AnalyticsMetric.REFUND_AMOUNT, query)
        order_lines = self._analytics_read_order_lines(run)
        refund_totals = self._analytics_sum_refunds(run, order_lines, self._analytics_read_refund_entries(run))
        return self._analytics_build_money_rows(run, refund_totals)

    def analytics_get_net_revenue(self, query: AnalyticsQuery) -> list[MoneyRow]:
        """Compute gross minus refunds per store and event.

        Keys whose net is zero are omitted. Refunds above gross, and refunds
        with no gross key at all, abort the call.

        Args:
            query: Money metric query with currency and time window.

        Returns:
            list[MoneyRow]: Non-zero net totals ordered by store and event.

        Raises:
            AnalyticsError: Raised by any guard or scope check, or on any
                reconciliation violation.
            RuntimeError: Raised when a ledger read fails.
        """

        run = self._analytics_prepare_run(AnalyticsMetric.NET_REVENUE, query)
        order_lines = self._analytics_read_order_lines(run)
        gross_totals = self._analytics_sum_gross(run, order_lines)
        refund_totals = self._analytics_sum_refunds(run, order_lines, self._analytics_read_refund_entries(run))

        self._guard.guard_assert_refund_has_gross(refund_totals.keys(), gross_totals.keys(), run.context)

        net_totals: dict[AggregationKey, int] = {}
        for key, gross_cents in gross_totals.items():
            refund_cents = refund_totals.get(key, 0)
            self._guard.guard_assert_refund_within_gross(key, gross_cents, refund_cents, run.context)
            net_totals[key] = gross_cents - refund_cents
        return self._analytics_build_money_rows(run, net_totals)

    def analytics_get_tickets_sold(self, query: AnalyticsQuery) -> list[CountRow]:
        """Count distinct eligible order lines per store and event.

        Quantities are ignored and refunds never reduce the count.

        Args:
            query: Count metric query without currency.

        Returns:
            list[CountRow]: Ticket counts ordered by store and event.

        Raises:
            AnalyticsError: Raised by any guard or scope check.
            RuntimeError: Raised when a ledger read fails.
        """

        run = self._analytics_prepare_run(AnalyticsMetric.TICKETS_SOLD, query)
        line_ids_by_key: dict[AggregationKey, set[int]] = {}
        for order_line in self._analytics_read_order_lines(run):
            if not analytics_is_eligible_order_line(order_line, run.effective_store_ids, run.start_ts, run.end_ts):
                continue
            line_ids_by_key.setdefault(_analytics_line_key(order_line), set()).add(order_line.order_line_id)

        rows = [
            CountRow(store_id=store_id, event_id=event_id, count=len(line_ids))
            for (store_id, event_id), line_ids in sorted(line_ids_by_key.items())
        ]
        self._guard.guard_assert_rows_within_scope((row.store_id for row in rows), run.effective_store_ids, run.context)
        return rows

    def _analytics_prepare_run(self, metric: AnalyticsMetric, query: AnalyticsQuery) -> _AnalyticsRun:
        """Run guard checks and scope resolution ahead of any ledger read.

        Args:
            metric: Metric to compute.
            query: Analytics query.

        Returns:
            _AnalyticsRun: Validated run state.

        Raises:
            AnalyticsError: Raised by the first failing check.
        """

        principal = self._identity_provider.identity_current_principal()
        context = GuardContext.from_query(metric, query, principal)

        self._guard.guard_assert_valid_time_window(query.start_ts, query.end_ts, context)
        self._guard.guard_assert_currency_policy(metric.kind, query.currency, context)
        resolved_metric = self._guard.guard_assert_known_metric(metric, context)
        self._guard.guard_assert_order_line_anchoring_applicable(resolved_metric, context)
        effective_store_ids = self._scope_resolver.scope_resolve_effective_store_ids(query, principal)

        return _AnalyticsRun(
            metric=resolved_metric,
            query=query,
            principal=principal,
            effective_store_ids=effective_store_ids,
            context=context,
        )

    def _analytics_read_order_lines(self, run: _AnalyticsRun) -> list[LedgerOrderLineRecord]:
        """Read order lines restricted to the resolved scope and window.

        Args:
            run: Validated run state.

        Returns:
            list[LedgerOrderLineRecord]: Order lines as returned by the ledger.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

        return self._order_ledger.ledger_order_line_list(
            store_ids=run.effective_store_ids,
            start_ts=run.start_ts,
            end_ts=run.end_ts,
        )

    def _analytics_read_refund_entries(self, run: _AnalyticsRun) -> list[LedgerRefundEntryRecord]:
        """Read refund entries restricted to the resolved scope and window.

        Args:
            run: Validated run state.

        Returns:
            list[LedgerRefundEntryRecord]: Refund entries of every status.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """

        return self._refund_ledger.ledger_refund_entry_list(
            store_ids=run.effective_store_ids,
            start_ts=run.start_ts,
            end_ts=run.end_ts,
        )

    def _analytics_sum_gross(
        self,
        run: _AnalyticsRun,
        order_lines: list[LedgerOrderLineRecord],
    ) -> dict[AggregationKey, int]:
        """Accumulate `unit_price_cents * quantity` for eligible order lines.

        Args:
            run: Validated run state.
            order_lines: Order lines read from the ledger.

        Returns:
            dict[AggregationKey, int]: Gross cents keyed by `(store_id, event_id)`.

        Raises:
            InvariantViolationError: Raised when an eligible line has another currency
                or a negative line total.
        """

        gross_totals: dict[AggregationKey, int] = {}
        for order_line in order_lines:
            if not analytics_is_eligible_order_line(order_line, run.effective_store_ids, run.start_ts, run.end_ts):
                continue
            source = f"order_line:{order_line.order_line_id}"
            self._guard.guard_assert_ledger_currency(run.currency, order_line.currency, run.context, source=source)
            line_total_cents = order_line.unit_price_cents * order_line.quantity
            self._guard.guard_assert_non_negative_amount(line_total_cents, run.context, source=source)
            key = _analytics_line_key(order_line)
            gross_totals[key] = gross_totals.get(key, 0) + line_total_cents
        return gross_totals

    def _analytics_sum_refunds(
        self,
        run: _AnalyticsRun,
        order_lines: list[LedgerOrderLineRecord],
        refund_entries: list[LedgerRefundEntryRecord],
    ) -> dict[AggregationKey, int]:
        """Accumulate completed refunds by the key of their linked eligible order lines.

        A refund links to the order lines sharing its order and event. When
        every linked line is ineligible (add-on kind, zero price, incomplete
        order, outside scope) the refund does not contribute.

        Args:
            run: Validated run state.
            order_lines: Order lines read from the ledger.
            refund_entries: Refund entries read from the ledger.

        Returns:
            dict[AggregationKey, int]: Refund cents keyed by `(store_id, event_id)`.

        Raises:
            InvariantViolationError: Raised on currency mismatch, negative amounts
                or unlinkable refunds.
        """

        lines_by_link: dict[tuple[int, int], list[LedgerOrderLineRecord]] = {}
        for order_line in order_lines:
            if order_line.event_id is None:
                continue
            lines_by_link.setdefault((order_line.order_id, order_line.event_id), []).append(order_line)

        refund_totals: dict[AggregationKey, int] = {}
        for refund_entry in refund_entries:
            if refund_entry.status.strip().lower() != REFUND_STATUS_COMPLETED:
                continue

            source = f"refund_entry:{refund_entry.refund_entry_id}"
            self._guard.guard_assert_ledger_currency(run.currency, refund_entry.currency, run.context, source=source)
            self._guard.guard_assert_non_negative_amount(refund_entry.amount_cents, run.context, source=source)

            linked_lines = lines_by_link.get((refund_entry.order_id, refund_entry.event_id), [])
            self._guard.guard_assert_refund_linked(refund_entry.refund_entry_id, len(linked_lines), run.context)

            eligible_lines = [
                order_line
                for order_line in linked_lines
                if analytics_is_eligible_order_line(order_line, run.effective_store_ids, run.start_ts, run.end_ts)
            ]
            if not eligible_lines:
                continue

            key = _analytics_line_key(eligible_lines[0])
            refund_totals[key] = refund_totals.get(key, 0) + refund_entry.amount_cents
        return refund_totals

    def _analytics_build_money_rows(self, run: _AnalyticsRun, totals: dict[AggregationKey, int]) -> list[MoneyRow]:
        """Build sorted money rows, drop zero totals and verify scope.

        Args:
            run: Validated run state.
            totals: Cents keyed by `(store_id, event_id)`.

        Returns:
            list[MoneyRow]: Non-zero rows ordered by store and event.

        Raises:
            InvariantViolationError: Raised when a row store lies outside the resolved scope.
        """

        rows = [
            MoneyRow(store_id=store_id, event_id=event_id, currency=run.currency, amount_cents=amount_cents)
            for (store_id, event_id), amount_cents in sorted(totals.items())
            if amount_cents != 0
        ]
        self._guard.guard_assert_rows_within_scope((row.store_id for row in rows), run.effective_store_ids, run.context)
        return rows


def analytics_is_eligible_order_line(
    order_line: LedgerOrderLineRecord,
    effective_store_ids: frozenset[int],
    start_ts: int,
    end_ts: int,
) -> bool:
    """Return whether one order line is anchored for per-event metrics.

    Args:
        order_line: Ledger order line.
        effective_store_ids: Resolved scope set.
        start_ts: Inclusive window start.
        end_ts: Inclusive window end.

    Returns:
        bool: True when the line belongs to a completed in-window order, is
        priced above zero, is a ticket line and links to an in-scope event.
    """

    if order_line.order_state.strip().lower() != ORDER_STATE_COMPLETED:
        return False
    if not start_ts <= order_line.placed_ts <= end_ts:
        return False
    if order_line.unit_price_cents <= 0:
        return False
    if order_line.line_kind.strip().lower() != LINE_KIND_TICKET:
        return False
    if order_line.event_id is None or order_line.event_store_id is None:
        return False
    return order_line.event_store_id in effective_store_ids


def _analytics_line_key(order_line: LedgerOrderLineRecord) -> AggregationKey:
    """Return the `(event_store_id, event_id)` aggregation key of one eligible line."""

    return (int(order_line.event_store_id or 0), int(order_line.event_id or 0))


__all__ = ["AnalyticsQueryService", "analytics_is_eligible_order_line"]
