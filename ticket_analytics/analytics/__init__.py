"""Analytics layer package for guardrails, scope resolution and metric aggregation."""

from .guard import AnalyticsQueryGuard, GuardContext
from .interfaces import (
    IdentityProviderPort,
    LedgerOrderLineRecord,
    LedgerRefundEntryRecord,
    OrderLedgerPort,
    RefundLedgerPort,
    TenantDirectoryPort,
)
from .query_service import AnalyticsQueryService, analytics_is_eligible_order_line
from .scope_resolver import AnalyticsScopeResolver, scope_parse

__all__ = [
    "AnalyticsQueryGuard",
    "GuardContext",
    "AnalyticsScopeResolver",
    "scope_parse",
    "AnalyticsQueryService",
    "analytics_is_eligible_order_line",
    "IdentityProviderPort",
    "LedgerOrderLineRecord",
    "LedgerRefundEntryRecord",
    "OrderLedgerPort",
    "RefundLedgerPort",
    "TenantDirectoryPort",
]
