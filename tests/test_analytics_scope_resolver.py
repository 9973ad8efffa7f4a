"""Tests for the fail-closed analytics scope resolution state machine."""

from __future__ import annotations

import pytest

from ticket_analytics.analytics.scope_resolver import AnalyticsScopeResolver, scope_parse
from ticket_analytics.domain import (
    AccessDeniedError,
    AnalyticsQuery,
    AnalyticsScope,
    InvalidScopeError,
    Principal,
)


class _TenantDirectoryStub:
    """Tenant directory stub keyed by principal id."""

    def __init__(self, owned_store_ids: dict[int, set[int]]):
        self._owned_store_ids = owned_store_ids
        self.requested_principal_ids: list[int] = []

    def directory_owned_store_ids(self, principal_id: int) -> frozenset[int]:
        """Return deterministic owned stores for one principal."""
        self.requested_principal_ids.append(principal_id)
        return frozenset(self._owned_store_ids.get(principal_id, set()))


_ADMIN = Principal(principal_id=1, is_administrator=True)
_VENDOR = Principal(principal_id=2)


def _resolver(owned_store_ids: dict[int, set[int]] | None = None) -> AnalyticsScopeResolver:
    return AnalyticsScopeResolver(tenant_directory=_TenantDirectoryStub(owned_store_ids or {2: {20}}))


def test_scope_admin_with_override_returns_requested_store_ids_unchanged() -> None:
    """Return the exact requested set for an administrator."""

    query = AnalyticsQuery(scope=AnalyticsScope.ADMIN, store_ids=[20, 30, 20])

    assert _resolver().scope_resolve_effective_store_ids(query, _ADMIN) == frozenset({20, 30})


def test_scope_admin_with_empty_store_ids_is_denied() -> None:
    """Reject admin scope without explicit tenant selection."""

    query = AnalyticsQuery(scope=AnalyticsScope.ADMIN, store_ids=[])

    with pytest.raises(AccessDeniedError) as error_info:
        _resolver().scope_resolve_effective_store_ids(query, _ADMIN)

    assert error_info.value.violation_code == "admin_scope_missing_store_ids"


@pytest.mark.parametrize("store_ids", [[20], [30], [20, 30], []])
def test_scope_admin_without_override_is_denied_even_for_own_store(store_ids: list[int]) -> None:
    """Reject admin scope for vendors regardless of requested stores, including their own."""

    query = AnalyticsQuery(scope="admin", store_ids=store_ids)

    with pytest.raises(AccessDeniedError) as error_info:
        _resolver().scope_resolve_effective_store_ids(query, _VENDOR)

    assert error_info.value.violation_code == "admin_override_missing"


def test_scope_admin_rejects_non_positive_store_id() -> None:
    """Reject malformed store ids in admin scope."""

    query = AnalyticsQuery(scope=AnalyticsScope.ADMIN, store_ids=[20, 0])

    with pytest.raises(AccessDeniedError):
        _resolver().scope_resolve_effective_store_ids(query, _ADMIN)


def test_scope_vendor_ignores_requested_store_ids() -> None:
    """Resolve the single owned store and ignore caller-supplied ids."""

    directory = _TenantDirectoryStub({2: {20}})
    resolver = AnalyticsScopeResolver(tenant_directory=directory)
    query = AnalyticsQuery(scope=AnalyticsScope.VENDOR, store_ids=[30, 40])

    assert resolver.scope_resolve_effective_store_ids(query, _VENDOR) == frozenset({20})
    assert directory.requested_principal_ids == [2]


def test_scope_vendor_without_store_is_denied() -> None:
    """Reject vendors owning no store."""

    query = AnalyticsQuery(scope=AnalyticsScope.VENDOR)

    with pytest.raises(AccessDeniedError) as error_info:
        _resolver({2: set()}).scope_resolve_effective_store_ids(query, _VENDOR)

    assert error_info.value.violation_code == "vendor_scope_no_store"


def test_scope_vendor_with_ambiguous_ownership_is_denied() -> None:
    """Reject vendors owning more than one store."""

    query = AnalyticsQuery(scope=AnalyticsScope.VENDOR)

    with pytest.raises(AccessDeniedError) as error_info:
        _resolver({2: {20, 21}}).scope_resolve_effective_store_ids(query, _VENDOR)

    assert error_info.value.violation_code == "vendor_scope_ambiguous_store"


def test_scope_vendor_anonymous_principal_is_denied_without_directory_lookup() -> None:
    """Reject anonymous principals before reading the directory."""

    directory = _TenantDirectoryStub({0: {20}})
    resolver = AnalyticsScopeResolver(tenant_directory=directory)

    with pytest.raises(AccessDeniedError):
        resolver.scope_resolve_effective_store_ids(AnalyticsQuery(scope="vendor"), Principal(principal_id=0))

    assert directory.requested_principal_ids == []


@pytest.mark.parametrize("scope", ["platform", "ADMIN", "", "all"])
def test_scope_unrecognized_value_raises_invalid_scope(scope: str) -> None:
    """Reject unrecognized scope strings."""

    with pytest.raises(InvalidScopeError):
        _resolver().scope_resolve_effective_store_ids(AnalyticsQuery(scope=scope, store_ids=[20]), _ADMIN)


def test_scope_parse_accepts_members_and_values() -> None:
    """Parse enum members and their raw values."""

    assert scope_parse(AnalyticsScope.ADMIN) is AnalyticsScope.ADMIN
    assert scope_parse("vendor") is AnalyticsScope.VENDOR


def test_scope_resolver_requires_tenant_directory() -> None:
    """Reject construction without a tenant directory."""

    with pytest.raises(ValueError):
        AnalyticsScopeResolver(tenant_directory=None)
