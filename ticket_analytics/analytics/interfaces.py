"""Typed interfaces for analytics-layer collaborators.

The query service reads external systems only through these narrow read-only
ports so that aggregation stays storage-agnostic.
"""

from dataclasses import dataclass
from typing import Protocol

from ticket_analytics.domain import Principal

ORDER_STATE_COMPLETED = "completed"
REFUND_STATUS_COMPLETED = "completed"
LINE_KIND_TICKET = "ticket"


@dataclass(frozen=True)
class LedgerOrderLineRecord:
    """One order line joined with its order and the owning store of its event.

    Attributes:
        order_line_id: Order line identifier.
        order_id: Parent order identifier.
        order_store_id: Store on which the order was placed.
        order_state: Order workflow state (`completed`, `draft`, `canceled`, ...).
        placed_ts: Order placement time in Unix epoch seconds.
        unit_price_cents: Unit price in integer cents.
        quantity: Purchased quantity.
        currency: ISO currency code of the unit price.
        event_id: Linked event identifier, or None for event-less lines.
        event_store_id: Owning store of the linked event, or None.
        line_kind: Line kind; `ticket` for tickets, add-on kinds otherwise.
    """

    order_line_id: int
    order_id: int
    order_store_id: int
    order_state: str
    placed_ts: int
    unit_price_cents: int
    quantity: int
    currency: str
    event_id: int | None
    event_store_id: int | None
    line_kind: str = LINE_KIND_TICKET


@dataclass(frozen=True)
class LedgerRefundEntryRecord:
    """One append-only refund ledger entry.

    Attributes:
        refund_entry_id: Refund entry identifier.
        order_id: Refunded order identifier.
        event_id: Refunded event identifier.
        vendor_id: Vendor account recorded on the refund.
        amount_cents: Refunded amount in integer cents.
        currency: ISO currency code of the refund.
        status: Refund status (`completed`, `pending`, `failed`, ...).
    """

    refund_entry_id: int
    order_id: int
    event_id: int
    vendor_id: int
    amount_cents: int
    currency: str
    status: str


class OrderLedgerPort(Protocol):
    """Port definition for read-only order line access."""

    def ledger_order_line_list(
        self,
        store_ids: frozenset[int],
        start_ts: int,
        end_ts: int,
    ) -> list[LedgerOrderLineRecord]:
        """List order lines of orders placed in an inclusive window.

        Args:
            store_ids: Effective store set; lines whose event belongs elsewhere may be omitted.
            start_ts: Inclusive window start in epoch seconds.
            end_ts: Inclusive window end in epoch seconds.

        Returns:
            list[LedgerOrderLineRecord]: Order lines; callers re-check every eligibility rule.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """


class RefundLedgerPort(Protocol):
    """Port definition for read-only refund ledger access."""

    def ledger_refund_entry_list(
        self,
        store_ids: frozenset[int],
        start_ts: int,
        end_ts: int,
    ) -> list[LedgerRefundEntryRecord]:
        """List refund entries for orders placed in an inclusive window.

        Args:
            store_ids: Effective store set matched against the refunded event's store.
            start_ts: Inclusive window start in epoch seconds.
            end_ts: Inclusive window end in epoch seconds.

        Returns:
            list[LedgerRefundEntryRecord]: Refund entries of every status.

        Raises:
            RuntimeError: Raised when the ledger read fails.
        """


class TenantDirectoryPort(Protocol):
    """Port definition for store ownership lookups."""

    def directory_owned_store_ids(self, principal_id: int) -> frozenset[int]:
        """Return the vendor stores owned by one principal.

        Args:
            principal_id: Account identifier.

        Returns:
            frozenset[int]: Owned store identifiers, possibly empty.

        Raises:
            RuntimeError: Raised when the directory read fails.
        """


class IdentityProviderPort(Protocol):
    """Port definition for the current principal."""

    def identity_current_principal(self) -> Principal:
        """Return the principal on whose behalf the current query runs.

        Returns:
            Principal: Current principal including the administrator override flag.

        Raises:
            RuntimeError: Raised when no identity can be established.
        """


__all__ = [
    "ORDER_STATE_COMPLETED",
    "REFUND_STATUS_COMPLETED",
    "LINE_KIND_TICKET",
    "LedgerOrderLineRecord",
    "LedgerRefundEntryRecord",
    "OrderLedgerPort",
    "RefundLedgerPort",
    "TenantDirectoryPort",
    "IdentityProviderPort",
]
