"""Database service for read-only analytics ledger and tenant directory access."""

from __future__ import annotations

from decimal import ROUND_HALF_UP, Decimal
from typing import Any

from sqlalchemy import Engine, bindparam, text
from sqlalchemy.exc import SQLAlchemyError

from ticket_analytics.analytics.interfaces import (
    LINE_KIND_TICKET,
    LedgerOrderLineRecord,
    LedgerRefundEntryRecord,
    OrderLedgerPort,
    RefundLedgerPort,
    TenantDirectoryPort,
)


class SQLAlchemyAnalyticsLedgerService(OrderLedgerPort, RefundLedgerPort, TenantDirectoryPort):
    """SQLAlchemy implementation of the analytics order, refund and tenant reads.

    Order items are linked to events through the target-event field table and
    events to their owning store through the event-store field table. Prices
    are stored as decimal units and converted to integer cents here.
    """

    _ORDER_LINE_LIST_QUERY = text(
        "SELECT "
        "oi.order_item_id AS order_item_id, oi.order_id AS order_id, "
        "o.store_id AS order_store_id, o.state AS order_state, "
        "o.placed AS placed_ts, oi.unit_price__number AS unit_price, oi.quantity AS quantity, "
        "oi.unit_price__currency_code AS currency, lnk.field_target_event_target_id AS event_id, "
        "nes.field_event_store_target_id AS event_store_id, oi.type AS item_type "
        "FROM commerce_order_item oi "
        "JOIN commerce_order o ON o.order_id = oi.order_id "
        "JOIN commerce_order_item__field_target_event lnk ON lnk.entity_id = oi.order_item_id "
        "JOIN node__field_event_store nes ON nes.entity_id = lnk.field_target_event_target_id "
        "WHERE o.placed >= :start_ts AND o.placed <= :end_ts "
        "AND nes.field_event_store_target_id IN :store_ids "
        "ORDER BY oi.order_item_id asc"
    ).bindparams(bindparam("store_ids", expanding=True))

    _REFUND_ENTRY_LIST_QUERY = text(
        "SELECT "
        "r.id AS refund_entry_id, r.order_id AS order_id, r.event_id AS event_id, r.vendor_uid AS vendor_uid, "
        "r.amount_cents AS amount_cents, r.currency AS currency, r.status AS status "
        "FROM myeventlane_refund_log r "
        "JOIN commerce_order o ON o.order_id = r.order_id "
        "JOIN node__field_event_store nes ON nes.entity_id = r.event_id "
        "WHERE o.placed >= :start_ts AND o.placed <= :end_ts "
        "AND nes.field_event_store_target_id IN :store_ids "
        "ORDER BY r.id asc"
    ).bindparams(bindparam("store_ids", expanding=True))

    _OWNED_STORE_LIST_QUERY = text(
        "SELECT DISTINCT store_id FROM commerce_store_field_data "
        "WHERE uid = :principal_id AND type = :store_type "
        "ORDER BY store_id asc"
    )

    def __init__(
        self,
        engine: Engine,
        non_ticket_item_types: frozenset[str] = frozenset({"boost"}),
        vendor_store_type: str = "online",
    ):
        """Initialize analytics ledger database service.

        Args:
            engine: SQLAlchemy engine used for reads.
            non_ticket_item_types: Order item types mapped to add-on line kinds.
            vendor_store_type: Store type that counts as a vendor-owned store.

        Raises:
            ValueError: Raised when engine or store type is invalid.
        """

        if engine is None:
            raise ValueError("engine must not be None")
        if not vendor_store_type.strip():
            raise ValueError("vendor_store_type must not be blank")
        self._engine = engine
        self._non_ticket_item_types = frozenset(item_type.strip().lower() for item_type in non_ticket_item_types)
        self._vendor_store_type = vendor_store_type.strip()

    def ledger_order_line_list(
        self,
        store_ids: frozenset[int],
        start_ts: int,
        end_ts: int,
    ) -> list[LedgerOrderLineRecord]:
        """List event-linked order lines for orders placed in an inclusive window.

        Args:
            store_ids: Effective store set matched against the event's store.
            start_ts: Inclusive window start in epoch seconds.
            end_ts: Inclusive window end in epoch seconds.

        Returns:
            list[LedgerOrderLineRecord]: Order lines ordered by order item id.

        Raises:
            ValueError: Raised when input values are invalid.
            RuntimeError: Raised when database read fails.
        """

        parameters = self._db_analytics_window_parameters(store_ids, start_ts, end_ts)
        if not parameters["store_ids"]:
            return []

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(self._ORDER_LINE_LIST_QUERY, parameters).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("analytics order line read failed") from error

        return [self._db_analytics_map_order_line_row(row) for row in rows]

    def ledger_refund_entry_list(
        self,
        store_ids: frozenset[int],
        start_ts: int,
        end_ts: int,
    ) -> list[LedgerRefundEntryRecord]:
        """List refund log entries for orders placed in an inclusive window.

        Args:
            store_ids: Effective store set matched against the refunded event's store.
            start_ts: Inclusive window start in epoch seconds.
            end_ts: Inclusive window end in epoch seconds.

        Returns:
            list[LedgerRefundEntryRecord]: Refund entries of every status ordered by id.

        Raises:
            ValueError: Raised when input values are invalid.
            RuntimeError: Raised when database read fails.
        """

        parameters = self._db_analytics_window_parameters(store_ids, start_ts, end_ts)
        if not parameters["store_ids"]:
            return []

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(self._REFUND_ENTRY_LIST_QUERY, parameters).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("analytics refund entry read failed") from error

        return [
            LedgerRefundEntryRecord(
                refund_entry_id=int(row["refund_entry_id"]),
                order_id=int(row["order_id"]),
                event_id=int(row["event_id"]),
                vendor_id=int(row["vendor_uid"] or 0),
                amount_cents=int(row["amount_cents"]),
                currency=str(row["currency"] or ""),
                status=str(row["status"] or ""),
            )
            for row in rows
        ]

    def directory_owned_store_ids(self, principal_id: int) -> frozenset[int]:
        """Return vendor stores owned by one principal.

        Args:
            principal_id: Account identifier.

        Returns:
            frozenset[int]: Owned store identifiers, possibly empty.

        Raises:
            ValueError: Raised when principal_id is not positive.
            RuntimeError: Raised when database read fails.
        """

        if principal_id <= 0:
            raise ValueError("principal_id must be positive")

        try:
            with self._engine.connect() as connection:
                rows = connection.execute(
                    self._OWNED_STORE_LIST_QUERY,
                    {"principal_id": principal_id, "store_type": self._vendor_store_type},
                ).mappings().all()
        except SQLAlchemyError as error:
            raise RuntimeError("analytics store ownership read failed") from error

        return frozenset(int(row["store_id"]) for row in rows)

    def _db_analytics_window_parameters(
        self,
        store_ids: frozenset[int],
        start_ts: int,
        end_ts: int,
    ) -> dict[str, Any]:
        """Validate window read inputs and build SQL parameters.

        Args:
            store_ids: Effective store set.
            start_ts: Inclusive window start.
            end_ts: Inclusive window end.

        Returns:
            dict[str, Any]: SQL-ready parameters with sorted store ids.

        Raises:
            ValueError: Raised when the window is inverted or negative.
        """

        if start_ts < 0 or end_ts < 0:
            raise ValueError("start_ts and end_ts must not be negative")
        if start_ts > end_ts:
            raise ValueError("start_ts must not be after end_ts")
        return {
            "store_ids": sorted(int(store_id) for store_id in store_ids),
            "start_ts": int(start_ts),
            "end_ts": int(end_ts),
        }

    def _db_analytics_map_order_line_row(self, row: Any) -> LedgerOrderLineRecord:
        """Map SQLAlchemy row to typed order line record.

        Args:
            row: SQLAlchemy row mapping.

        Returns:
            LedgerOrderLineRecord: Typed order line with price in cents.

        Raises:
            ValueError: Raised when price is not numeric or quantity is not integral.
        """

        item_type = str(row["item_type"] or "").strip().lower()
        return LedgerOrderLineRecord(
            order_line_id=int(row["order_item_id"]),
            order_id=int(row["order_id"]),
            order_store_id=int(row["order_store_id"]),
            order_state=str(row["order_state"] or ""),
            placed_ts=int(row["placed_ts"] or 0),
            unit_price_cents=db_analytics_decimal_to_cents(row["unit_price"]),
            quantity=db_analytics_integral_quantity(row["quantity"]),
            currency=str(row["currency"] or ""),
            event_id=None if row["event_id"] is None else int(row["event_id"]),
            event_store_id=None if row["event_store_id"] is None else int(row["event_store_id"]),
            line_kind=item_type if item_type in self._non_ticket_item_types else LINE_KIND_TICKET,
        )


def db_analytics_decimal_to_cents(value: Any) -> int:
    """Convert a decimal currency amount into integer cents.

    Args:
        value: Decimal, numeric or numeric text amount; None is zero.

    Returns:
        int: Amount in cents rounded half up.

    Raises:
        ValueError: Raised when value is not numeric.
    """

    if value is None:
        return 0
    try:
        amount = Decimal(str(value))
    except ArithmeticError as error:
        raise ValueError(f"invalid decimal amount={value}") from error
    return int((amount * 100).quantize(Decimal("1"), rounding=ROUND_HALF_UP))


def db_analytics_integral_quantity(value: Any) -> int:
    """Convert a stored order item quantity into an integer.

    Args:
        value: Decimal, numeric or numeric text quantity; None is zero.

    Returns:
        int: Whole-unit quantity.

    Raises:
        ValueError: Raised when value is not numeric or has a fractional part.
    """

    if value is None:
        return 0
    try:
        quantity = Decimal(str(value))
    except ArithmeticError as error:
        raise ValueError(f"invalid quantity={value}") from error
    if not quantity.is_finite() or quantity != quantity.to_integral_value():
        raise ValueError(f"non-integral quantity={value}")
    return int(quantity)


__all__ = ["SQLAlchemyAnalyticsLedgerService", "db_analytics_decimal_to_cents", "db_analytics_integral_quantity"]
