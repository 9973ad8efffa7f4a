"""Fail-closed scope resolution for analytics queries.

Resolution never widens to an implicit "all stores" set. The resolver does
not log; violations it detects surface as typed exceptions only.
"""

from __future__ import annotations

from ticket_analytics.domain import (
    AccessDeniedError,
    AnalyticsQuery,
    AnalyticsScope,
    InvalidScopeError,
    Principal,
)

from .interfaces import TenantDirectoryPort


class AnalyticsScopeResolver:
    """Resolve the authoritative store set for one query and principal."""

    def __init__(self, tenant_directory: TenantDirectoryPort):
        """Initialize resolver dependencies.

        Args:
            tenant_directory: Store ownership directory.

        Raises:
            ValueError: Raised when tenant_directory is None.
        """

        if tenant_directory is None:
            raise ValueError("tenant_directory must not be None")
        self._tenant_directory = tenant_directory

    def scope_resolve_effective_store_ids(self, query: AnalyticsQuery, principal: Principal) -> frozenset[int]:
        """Resolve effective store identifiers for a query.

        Args:
            query: Analytics query carrying the requested scope.
            principal: Principal running the query.

        Returns:
            frozenset[int]: Non-empty authoritative store set.

        Raises:
            InvalidScopeError: Raised when the scope value is not recognized.
            AccessDeniedError: Raised when the principal may not read the requested scope.
        """

        scope = scope_parse(query.scope)
        if scope is AnalyticsScope.ADMIN:
            return self._scope_resolve_admin(query, principal)
        return self._scope_resolve_vendor(principal)

    def _scope_resolve_admin(self, query: AnalyticsQuery, principal: Principal) -> frozenset[int]:
        """Resolve admin scope after checking the administrator override.

        The override is checked before anything else, so a vendor requesting
        only its own store through admin scope is still rejected.
        """

        if not principal.is_administrator:
            raise AccessDeniedError("Admin scope is not permitted for this account.", "admin_override_missing")
        if not query.store_ids:
            raise AccessDeniedError("Admin scope requires one or more store IDs.", "admin_scope_missing_store_ids")
        if any(store_id <= 0 for store_id in query.store_ids):
            raise AccessDeniedError("Invalid store ID in admin scope.", "admin_scope_invalid_store_id")
        return query.store_ids

    def _scope_resolve_vendor(self, principal: Principal) -> frozenset[int]:
        """Resolve the single store owned by an authenticated vendor.

        Args:
            principal: Principal running the query.

        Returns:
            frozenset[int]: Exactly one owned store id.

        Raises:
            AccessDeniedError: Raised for anonymous principals and for zero or several owned stores.
        """

        if principal.principal_id <= 0:
            raise AccessDeniedError("Vendor scope requires an authenticated principal.", "vendor_scope_anonymous")

        owned_store_ids = frozenset(
            store_id
            for store_id in self._tenant_directory.directory_owned_store_ids(principal.principal_id)
            if store_id > 0
        )
        if not owned_store_ids:
            raise AccessDeniedError("No vendor store found for this account.", "vendor_scope_no_store")
        if len(owned_store_ids) > 1:
            raise AccessDeniedError("Vendor store ownership is ambiguous.", "vendor_scope_ambiguous_store")
        return owned_store_ids


def scope_parse(scope: AnalyticsScope | str) -> AnalyticsScope:
    """Parse a raw scope value into a recognized scope variant.

    Args:
        scope: Scope member or raw scope string.

    Returns:
        AnalyticsScope: Recognized scope.

    Raises:
        InvalidScopeError: Raised when the value is not a recognized scope.
    """

    if isinstance(scope, AnalyticsScope):
        return scope
    try:
        return AnalyticsScope(scope)
    except ValueError as error:
        raise InvalidScopeError("Invalid analytics scope.", "invalid_scope") from error


__all__ = ["AnalyticsScopeResolver", "scope_parse"]
