"""
Order Book
==========

The order being assembled: an ordered list of editable lines with a
subtotal per line and an aggregate total kept up to date on every change.

Invariants held after every public call:
- the book has at least one line (deleting or clearing everything leaves a
  fresh blank line behind)
- line ids come from a counter that only grows; ids are never reused
- ``total()`` equals the sum of ``pos_unit * quantity`` over all lines,
  valid or not
- insertion order is display order; row numbers are always 1..N

Mutations are serialized with a re-entrant lock and notify subscribers
after the lock is released. Subscribers receive copies, never the live
lines.
"""

import threading
from collections.abc import Callable, Mapping
from dataclasses import dataclass
from decimal import Decimal
from typing import Any, Literal

from order_entry.schemas.domain import (
    PRICE_FIELDS,
    LineData,
    OrderLine,
    OrderSnapshot,
    Product,
)
from order_entry.utils.logger import get_logger

logger = get_logger(__name__)

EventKind = Literal["added", "updated", "selected", "deleted", "cleared", "restored"]

EDITABLE_FIELDS: frozenset[str] = frozenset(LineData.model_fields)


@dataclass(frozen=True)
class OrderBookEvent:
    """
    Change notification sent to subscribers.

    Attributes:
        kind: What happened
        line_id: Line the change applies to (None for clear/restore)
        line: Copy of the line after the change (None when it was removed)
        total: Book total after the change
        line_count: Number of lines after the change
    """

    kind: EventKind
    line_id: int | None
    line: OrderLine | None
    total: Decimal
    line_count: int


Subscriber = Callable[[OrderBookEvent], None]


class OrderBook:
    """
    Mutable order owned by a single writer.

    Usage:
        book = OrderBook()
        line_id = book.lines()[0].id
        book.apply_product_selection(line_id, product)
        book.update_field(line_id, "quantity", 3)
        book.total()
    """

    def __init__(self, snapshot: OrderSnapshot | None = None) -> None:
        self._lock = threading.RLock()
        self._lines: list[OrderLine] = []
        self._by_id: dict[int, OrderLine] = {}
        self._subtotals: dict[int, Decimal] = {}
        self._total = Decimal("0")
        self._counter = 0
        self._subscribers: list[Subscriber] = []

        if snapshot is not None:
            self._load(snapshot)
        if not self._lines:
            self._append(LineData())

    # -------------------------------------------------------------------------
    # Mutations
    # -------------------------------------------------------------------------

    def add_line(self, seed: LineData | Mapping[str, Any] | None = None) -> int:
        """
        Append a new line.

        Args:
            seed: Initial field values; missing fields take their defaults
                  (quantity 1, prices 0, text ''). An ``id`` in the seed is
                  ignored.

        Returns:
            Id of the new line
        """
        data = _to_line_data(seed)
        with self._lock:
            line = self._append(data)
            event = self._event("added", line)
        self._notify(event)
        return line.id

    def update_field(self, line_id: int, field_name: str, value: Any) -> bool:
        """
        Change one field of one line.

        Quantity is coerced to an integer >= 1, prices through the price
        parser, modality to a known option. Unknown lines and fields are
        ignored.

        Returns:
            True if a line was changed
        """
        if field_name not in EDITABLE_FIELDS:
            logger.warning("Ignoring update of unknown field", field=field_name, line_id=line_id)
            return False

        with self._lock:
            line = self._by_id.get(line_id)
            if line is None:
                return False
            setattr(line, field_name, value)
            self._refresh_subtotal(line)
            event = self._event("updated", line)
        self._notify(event)
        return True

    def apply_product_selection(self, line_id: int, product: Product) -> bool:
        """
        Copy a product's code, name and eight prices onto a line.

        Quantity and the free-text fields are left alone. The line keeps no
        reference to the product, so later catalog changes do not affect it.

        Returns:
            True if the line exists
        """
        with self._lock:
            line = self._by_id.get(line_id)
            if line is None:
                return False
            line.code = product.code
            line.name = product.name
            for field_name in PRICE_FIELDS:
                setattr(line, field_name, getattr(product, field_name))
            self._refresh_subtotal(line)
            event = self._event("selected", line)
        self._notify(event)
        return True

    def delete_line(self, line_id: int) -> bool:
        """
        Remove a line; removing the last one leaves a new blank line.

        Returns:
            True if a line was removed
        """
        with self._lock:
            line = self._by_id.pop(line_id, None)
            if line is None:
                return False
            self._lines.remove(line)
            self._total -= self._subtotals.pop(line_id)
            events = [self._event("deleted", None, line_id=line_id)]
            if not self._lines:
                replacement = self._append(LineData())
                events.append(self._event("added", replacement))
        for event in events:
            self._notify(event)
        return True

    def duplicate_line(self, line_id: int) -> int | None:
        """
        Append a copy of a line (every field except the id).

        Returns:
            Id of the copy, or None if the source line does not exist
        """
        with self._lock:
            source = self._by_id.get(line_id)
            if source is None:
                return None
            data = source.data()
        return self.add_line(data)

    def clear(self) -> int:
        """
        Remove every line and start over with one blank line.

        The id counter keeps counting, so ids from before the clear are
        not handed out again.

        Returns:
            Id of the new blank line
        """
        with self._lock:
            self._lines.clear()
            self._by_id.clear()
            self._subtotals.clear()
            self._total = Decimal("0")
            line = self._append(LineData())
            event = self._event("cleared", line)
        self._notify(event)
        return line.id

    def restore(self, snapshot: OrderSnapshot) -> None:
        """Replace the whole book with a saved snapshot."""
        with self._lock:
            self._lines.clear()
            self._by_id.clear()
            self._subtotals.clear()
            self._total = Decimal("0")
            self._load(snapshot)
            if not self._lines:
                self._append(LineData())
            event = self._event("restored", None)
        self._notify(event)

    # -------------------------------------------------------------------------
    # Queries
    # -------------------------------------------------------------------------

    def lines(self) -> list[OrderLine]:
        """Copies of all lines in display order."""
        with self._lock:
            return [line.model_copy() for line in self._lines]

    def get(self, line_id: int) -> OrderLine | None:
        with self._lock:
            line = self._by_id.get(line_id)
            return line.model_copy() if line is not None else None

    def row_number(self, line_id: int) -> int | None:
        """1-based display position of a line."""
        with self._lock:
            for position, line in enumerate(self._lines, start=1):
                if line.id == line_id:
                    return position
        return None

    def subtotal(self, line_id: int) -> Decimal | None:
        with self._lock:
            return self._subtotals.get(line_id)

    def total(self) -> Decimal:
        """Running total over all lines, valid or not."""
        with self._lock:
            return self._total

    def recompute_total(self) -> Decimal:
        """Total computed from scratch; always equal to total()."""
        with self._lock:
            return sum((line.subtotal for line in self._lines), Decimal("0"))

    def valid_lines(self) -> list[OrderLine]:
        """Copies of the lines that have both a code and a name."""
        with self._lock:
            return [line.model_copy() for line in self._lines if line.is_valid]

    def valid_line_count(self) -> int:
        with self._lock:
            return sum(1 for line in self._lines if line.is_valid)

    @property
    def row_id_counter(self) -> int:
        return self._counter

    def __len__(self) -> int:
        return len(self._lines)

    def snapshot(self) -> OrderSnapshot:
        """Serializable copy of the lines and the id counter."""
        with self._lock:
            return OrderSnapshot(
                lines=[line.model_copy() for line in self._lines],
                row_id_counter=self._counter,
            )

    # -------------------------------------------------------------------------
    # Observers
    # -------------------------------------------------------------------------

    def subscribe(self, callback: Subscriber) -> Callable[[], None]:
        """
        Register a change listener.

        Returns:
            Function that removes the listener again
        """
        self._subscribers.append(callback)

        def unsubscribe() -> None:
            if callback in self._subscribers:
                self._subscribers.remove(callback)

        return unsubscribe

    # -------------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------------

    def _append(self, data: LineData) -> OrderLine:
        self._counter += 1
        line = OrderLine(id=self._counter, **data.model_dump())
        self._insert(line)
        return line

    def _insert(self, line: OrderLine) -> None:
        self._lines.append(line)
        self._by_id[line.id] = line
        subtotal = line.subtotal
        self._subtotals[line.id] = subtotal
        self._total += subtotal

    def _load(self, snapshot: OrderSnapshot) -> None:
        highest = snapshot.row_id_counter
        for saved in snapshot.lines:
            if saved.id in self._by_id:
                logger.warning("Skipping saved line with duplicate id", line_id=saved.id)
                continue
            self._insert(saved.model_copy())
            highest = max(highest, saved.id)
        self._counter = max(self._counter, highest)

    def _refresh_subtotal(self, line: OrderLine) -> None:
        subtotal = line.subtotal
        self._total += subtotal - self._subtotals[line.id]
        self._subtotals[line.id] = subtotal

    def _event(
        self,
        kind: EventKind,
        line: OrderLine | None,
        line_id: int | None = None,
    ) -> OrderBookEvent:
        return OrderBookEvent(
            kind=kind,
            line_id=line.id if line is not None else line_id,
            line=line.model_copy() if line is not None else None,
            total=self._total,
            line_count=len(self._lines),
        )

    def _notify(self, event: OrderBookEvent) -> None:
        for callback in list(self._subscribers):
            try:
                callback(event)
            except Exception:
                logger.exception("Order book subscriber failed", kind=event.kind)


def _to_line_data(seed: LineData | Mapping[str, Any] | None) -> LineData:
    if seed is None:
        return LineData()
    if isinstance(seed, LineData):
        return LineData.model_validate(seed.model_dump(exclude={"id"}))
    return LineData.model_validate({k: v for k, v in seed.items() if k != "id"})
