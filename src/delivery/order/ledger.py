"""Status ledger — the ordered, append-only record of every status an order
has entered.

Entries are never edited or removed. The ``sequence`` number orders them,
since child entities are not guaranteed to come back from storage in
insertion order.
"""

from datetime import UTC, datetime

from protean.fields import DateTime, Integer, String

from delivery.domain import delivery
from delivery.order.lifecycle import OrderStatus


@delivery.entity(part_of="Order")
class StatusEntry:
    """A status the order entered, with a human-readable note."""

    status = String(required=True, max_length=50, choices=OrderStatus)
    note = String(max_length=500)
    recorded_at = DateTime(required=True)
    sequence = Integer(required=True, min_value=1)


def history(order) -> list:
    """Entries in the order they were appended."""
    return sorted(order.status_history or [], key=lambda entry: entry.sequence)


def latest(order):
    entries = history(order)
    return entries[-1] if entries else None


def first_entry(order, status: OrderStatus):
    """The first time the order entered ``status``, or None if it never did."""
    for entry in history(order):
        if entry.status == status.value:
            return entry
    return None


def visited(order) -> set:
    return {OrderStatus(entry.status) for entry in order.status_history or []}


def append_entry(order, status: OrderStatus, note: str, at: datetime | None = None):
    entry = StatusEntry(
        status=status.value,
        note=note,
        recorded_at=at or datetime.now(UTC),
        sequence=len(order.status_history or []) + 1,
    )
    order.add_status_history(entry)
    return entry
