"""Typed domain models shared across analytics layers.

This module provides the immutable query value object, the closed metric
vocabulary and the result row contracts returned by the query service.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Iterable


class AnalyticsScope(str, Enum):
    """Authorization mode of an analytics query."""

    ADMIN = "admin"
    VENDOR = "vendor"


class MetricKind(str, Enum):
    """Unit family of a metric, which decides its currency policy."""

    MONEY = "money"
    COUNT = "count"


class AnalyticsMetric(str, Enum):
    """Closed allow-list of analytics metric names.

    Adding a metric means adding a member here together with its kind and
    anchoring flag in `_METRIC_TRAITS`. Names are never inferred at runtime.
    """

    GROSS_REVENUE = "Gross Revenue"
    NET_REVENUE = "Net Revenue"
    REFUND_AMOUNT = "Refund Amount"
    TICKETS_SOLD = "Tickets Sold"
    RSVPS_RESERVED = "RSVPs (Reserved)"
    ACTIVE_EVENTS = "Active Events"
    CANCELLED_EVENTS = "Cancelled Events"

    @property
    def kind(self) -> MetricKind:
        """Return the unit family of this metric."""

        return _METRIC_TRAITS[self][0]

    @property
    def order_line_anchored(self) -> bool:
        """Return whether this metric is computed from anchored order lines."""

        return _METRIC_TRAITS[self][1]


_METRIC_TRAITS: dict[AnalyticsMetric, tuple[MetricKind, bool]] = {
    AnalyticsMetric.GROSS_REVENUE: (MetricKind.MONEY, True),
    AnalyticsMetric.NET_REVENUE: (MetricKind.MONEY, True),
    AnalyticsMetric.REFUND_AMOUNT: (MetricKind.MONEY, True),
    AnalyticsMetric.TICKETS_SOLD: (MetricKind.COUNT, True),
    AnalyticsMetric.RSVPS_RESERVED: (MetricKind.COUNT, False),
    AnalyticsMetric.ACTIVE_EVENTS: (MetricKind.COUNT, False),
    AnalyticsMetric.CANCELLED_EVENTS: (MetricKind.COUNT, False),
}


@dataclass(frozen=True)
class AnalyticsQuery:
    """Immutable description of one analytics request.

    The query records caller intent only. It is not self-validating: the
    guard checks structure and the scope resolver decides which stores are
    actually readable.

    Attributes:
        scope: Requested scope. Raw strings are accepted so that unknown
            values can be rejected uniformly by the scope resolver.
        store_ids: Requested store identifiers (admin scope only).
        start_ts: Inclusive window start in Unix epoch seconds.
        end_ts: Inclusive window end in Unix epoch seconds.
        currency: Optional ISO-4217 code, required for money metrics.
    """

    scope: AnalyticsScope | str
    store_ids: frozenset[int] = field(default_factory=frozenset)
    start_ts: int | None = None
    end_ts: int | None = None
    currency: str | None = None

    def __post_init__(self) -> None:
        """Normalize list or tuple store ids into a frozenset."""

        if not isinstance(self.store_ids, frozenset):
            object.__setattr__(self, "store_ids", _freeze_store_ids(self.store_ids))

    @property
    def scope_value(self) -> str:
        """Return the raw scope value for audit context."""

        if isinstance(self.scope, AnalyticsScope):
            return self.scope.value
        return str(self.scope)


@dataclass(frozen=True)
class Principal:
    """Identity on whose behalf a query runs.

    Attributes:
        principal_id: Account identifier; zero or negative means anonymous.
        is_administrator: Explicit administrator override from the identity provider.
    """

    principal_id: int
    is_administrator: bool = False


@dataclass(frozen=True)
class MoneyRow:
    """Money metric row grouped by store, event and currency.

    Attributes:
        store_id: Owning store of the event.
        event_id: Event identifier.
        currency: ISO currency code shared by every row of one query.
        amount_cents: Non-zero, non-negative amount in integer cents.
    """

    store_id: int
    event_id: int
    currency: str
    amount_cents: int


@dataclass(frozen=True)
class CountRow:
    """Count metric row grouped by store and event.

    Attributes:
        store_id: Owning store of the event.
        event_id: Event identifier.
        count: Number of distinct eligible order lines.
    """

    store_id: int
    event_id: int
    count: int


@dataclass(frozen=True)
class HealthStatus:
    """Health response contract used by health-check surfaces.

    Attributes:
        status: Overall status text for service health.
        detail: Additional message suitable for operational diagnostics.
    """

    status: str
    detail: str


def _freeze_store_ids(store_ids: Iterable[int] | None) -> frozenset[int]:
    """Normalize requested store ids into a frozenset of integers.

    Args:
        store_ids: Iterable of store ids, or None for no selection.

    Returns:
        frozenset[int]: Deduplicated store ids.

    Raises:
        ValueError: Raised when an id is not integer-like.
    """

    if store_ids is None:
        return frozenset()
    return frozenset(int(store_id) for store_id in store_ids)
