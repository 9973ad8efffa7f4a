"""Settings-backed identity provider for non-HTTP runtime surfaces."""

from __future__ import annotations

from ticket_analytics.analytics.interfaces import IdentityProviderPort
from ticket_analytics.domain import Principal


class SettingsIdentityProvider(IdentityProviderPort):
    """Identity provider returning one configured principal.

    The administrator override is an explicit attribute: it is granted only
    when the principal id appears in the configured administrator id set.
    """

    def __init__(self, principal_id: int, admin_principal_ids: frozenset[int] = frozenset()):
        """Initialize identity provider.

        Args:
            principal_id: Configured principal identifier; zero means anonymous.
            admin_principal_ids: Principal identifiers holding the administrator override.

        Raises:
            ValueError: Raised when principal_id is negative.
        """

        if principal_id < 0:
            raise ValueError("principal_id must not be negative")
        self._principal_id = principal_id
        self._admin_principal_ids = frozenset(admin_principal_ids)

    def identity_current_principal(self) -> Principal:
        """Return the configured principal.

        Returns:
            Principal: Principal with the administrator flag resolved from configuration.
        """

        return Principal(
            principal_id=self._principal_id,
            is_administrator=self._principal_id > 0 and self._principal_id in self._admin_principal_ids,
        )
