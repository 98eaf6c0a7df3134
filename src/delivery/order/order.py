"""Order aggregate (CQRS) — the core of the delivery domain.

An order is created at checkout, paid, bound to exactly one delivery agent
and driven to the student's door. Every status change is appended to the
order's own ledger in the same aggregate write, so current status and
history never disagree.

State Machine:
    PENDING → PENDING_DELIVERY → ASSIGNED → PICKED_UP → ON_THE_WAY → DELIVERED
    {ASSIGNED, PICKED_UP, ON_THE_WAY} → PENDING_DELIVERY
    any non-terminal state → CANCELLED
"""

import json
from datetime import UTC, datetime, timedelta
from uuid import uuid4

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import (
    DateTime,
    Float,
    HasMany,
    Identifier,
    Integer,
    String,
    ValueObject,
)

from delivery.domain import delivery, setting
from delivery.exceptions import IllegalTransitionError
from delivery.order.events import (
    AgentAssigned,
    DeliveryAttemptFailed,
    OrderCancelled,
    OrderDelivered,
    OrderOnTheWay,
    OrderPaid,
    OrderPickedUp,
    OrderPlaced,
)
from delivery.order.ledger import StatusEntry, append_entry, latest, visited
from delivery.order.lifecycle import (
    ACTIVE_ASSIGNMENT_STATUSES,
    LifecycleEvent,
    OrderStatus,
    next_status,
)


def generate_order_number() -> str:
    return f"order_{uuid4().hex[:9]}"


# ---------------------------------------------------------------------------
# Value Objects
# ---------------------------------------------------------------------------
@delivery.value_object(part_of="Order")
class DeliveryAddress:
    """Where on campus the order is handed over."""

    recipient_name = String(max_length=150)
    phone = String(max_length=20)
    hostel = String(required=True, max_length=100)
    room = String(max_length=20)


# ---------------------------------------------------------------------------
# Entities
# ---------------------------------------------------------------------------
@delivery.entity(part_of="Order")
class LineItem:
    """A product in the order, with the price captured at checkout."""

    product_id = Identifier(required=True)
    name = String(required=True, max_length=255)
    unit_price = Float(required=True, min_value=0.0)
    quantity = Integer(required=True, min_value=1)
    shop_id = Identifier(required=True)

    @property
    def subtotal(self) -> float:
        return self.unit_price * self.quantity


# ---------------------------------------------------------------------------
# Aggregate Root (CQRS)
# ---------------------------------------------------------------------------
@delivery.aggregate
class Order:
    order_number = String(required=True, max_length=20, unique=True)
    user_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = HasMany(LineItem)
    total_amount = Float(required=True, min_value=0.0)
    currency = String(max_length=3, default="INR")
    status = String(
        max_length=50,
        choices=OrderStatus,
        default=OrderStatus.PENDING.value,
    )
    delivery_address = ValueObject(DeliveryAddress)
    assigned_agent_id = Identifier()
    assigned_agent_name = String(max_length=150)
    assigned_agent_phone = String(max_length=20)
    payment_id = String(max_length=255)
    status_history = HasMany(StatusEntry)
    estimated_delivery_at = DateTime()
    created_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def active_order_names_its_agent(self):
        if OrderStatus(self.status) in ACTIVE_ASSIGNMENT_STATUSES and not self.assigned_agent_id:
            raise ValidationError({"assigned_agent_id": [f"An order in {self.status} state must name its agent"]})

    @invariant.post
    def ledger_ends_at_current_status(self):
        last = latest(self)
        if last is not None and last.status != self.status:
            raise ValidationError({"status_history": ["Latest ledger entry must match the order status"]})

    # -------------------------------------------------------------------
    # Factory method
    # -------------------------------------------------------------------
    @classmethod
    def place(
        cls,
        user_id: str,
        shop_id: str,
        items_data: list[dict],
        delivery_address: dict | None = None,
        order_number: str | None = None,
    ) -> "Order":
        """Create an order from a checked-out basket, waiting for payment."""
        if not items_data:
            raise ValidationError({"items": ["Order must contain at least one item"]})

        line_items = [LineItem(**{"shop_id": shop_id, **item_data}) for item_data in items_data]
        if any(str(item.shop_id) != str(shop_id) for item in line_items):
            raise ValidationError({"items": ["All items must come from the same shop"]})

        total = round(sum(item.subtotal for item in line_items), 2)
        now = datetime.now(UTC)
        minutes = setting("ESTIMATED_DELIVERY_MINUTES", 30)

        order = cls(
            order_number=order_number or generate_order_number(),
            user_id=user_id,
            shop_id=shop_id,
            total_amount=total,
            currency=setting("CURRENCY", "INR"),
            status=OrderStatus.PENDING.value,
            delivery_address=DeliveryAddress(**delivery_address) if delivery_address else None,
            estimated_delivery_at=now + timedelta(minutes=minutes),
            created_at=now,
            updated_at=now,
        )
        with atomic_change(order):
            for item in line_items:
                order.add_items(item)
            append_entry(order, OrderStatus.PENDING, "Order created, waiting for payment", now)

        order.raise_(
            OrderPlaced(
                order_id=str(order.id),
                order_number=order.order_number,
                user_id=str(user_id),
                shop_id=str(shop_id),
                items=json.dumps(items_data),
                item_count=len(line_items),
                total_amount=total,
                currency=order.currency,
                placed_at=now,
            )
        )
        return order

    # -------------------------------------------------------------------
    # State transition helpers
    # -------------------------------------------------------------------
    @property
    def holds_agent(self) -> bool:
        return OrderStatus(self.status) in ACTIVE_ASSIGNMENT_STATUSES

    def accepts(self, event: LifecycleEvent) -> bool:
        """True if ``event`` would change the order, False if it is a replay.

        Raises ``IllegalTransitionError`` when the event is not allowed at all.
        """
        return next_status(event, OrderStatus(self.status), visited(self)) is not None

    def _advance(self, event: LifecycleEvent, note: str, **changes) -> datetime | None:
        target = next_status(event, OrderStatus(self.status), visited(self))
        if target is None:
            return None

        now = datetime.now(UTC)
        with atomic_change(self):
            for field_name, value in changes.items():
                setattr(self, field_name, value)
            self.status = target.value
            self.updated_at = now
            append_entry(self, target, note, now)
        return now

    # -------------------------------------------------------------------
    # Payment
    # -------------------------------------------------------------------
    def confirm_payment(self, payment_id: str) -> bool:
        at = self._advance(
            LifecycleEvent.PAYMENT_CONFIRMED,
            "Payment confirmed, waiting for delivery partner",
            payment_id=payment_id,
        )
        if at is None:
            return False
        self.raise_(
            OrderPaid(
                order_id=str(self.id),
                payment_id=payment_id,
                amount=self.total_amount,
                paid_at=at,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Assignment
    # -------------------------------------------------------------------
    def bind_agent(self, agent_id: str, agent_name: str, agent_phone: str) -> bool:
        """Record the reserved agent and move to ASSIGNED.

        A repeated binding for the same agent changes nothing; a different
        agent cannot take over an order that already has one.
        """
        if not self.accepts(LifecycleEvent.ASSIGNMENT_SUCCEEDED):
            if str(self.assigned_agent_id) != str(agent_id):
                raise IllegalTransitionError(
                    {"assigned_agent_id": [f"Order {self.order_number} is already assigned to another agent"]}
                )
            return False

        at = self._advance(
            LifecycleEvent.ASSIGNMENT_SUCCEEDED,
            f"Assigned to {agent_name}",
            assigned_agent_id=agent_id,
            assigned_agent_name=agent_name,
            assigned_agent_phone=agent_phone,
        )
        self.raise_(
            AgentAssigned(
                order_id=str(self.id),
                order_number=self.order_number,
                agent_id=str(agent_id),
                agent_name=agent_name,
                agent_phone=agent_phone,
                assigned_at=at,
            )
        )
        return True

    def keep_queued(self) -> None:
        """Apply a failed assignment: the order stays in PENDING_DELIVERY.

        Raises ``IllegalTransitionError`` when the order was never paid.
        """
        self._advance(LifecycleEvent.ASSIGNMENT_FAILED, "No delivery partner available")

    # -------------------------------------------------------------------
    # Agent progress
    # -------------------------------------------------------------------
    def mark_picked_up(self) -> bool:
        at = self._advance(LifecycleEvent.AGENT_MARKS_PICKED_UP, "Picked up from the shop")
        if at is None:
            return False
        self.raise_(OrderPickedUp(order_id=str(self.id), agent_id=str(self.assigned_agent_id), picked_up_at=at))
        return True

    def mark_on_the_way(self) -> bool:
        at = self._advance(LifecycleEvent.AGENT_MARKS_EN_ROUTE, "Out for delivery")
        if at is None:
            return False
        self.raise_(OrderOnTheWay(order_id=str(self.id), agent_id=str(self.assigned_agent_id), departed_at=at))
        return True

    def mark_delivered(self) -> bool:
        at = self._advance(LifecycleEvent.AGENT_MARKS_DELIVERED, "Order delivered")
        if at is None:
            return False
        self.raise_(OrderDelivered(order_id=str(self.id), agent_id=str(self.assigned_agent_id), delivered_at=at))
        return True

    def report_failed_attempt(self, reason: str) -> bool:
        """Unbind the agent and put the order back in the dispatch queue."""
        agent_id = self.assigned_agent_id
        at = self._advance(
            LifecycleEvent.DELIVERY_ATTEMPT_FAILED,
            f"Delivery attempt failed: {reason}",
            assigned_agent_id=None,
            assigned_agent_name=None,
            assigned_agent_phone=None,
        )
        if at is None:
            return False
        self.raise_(
            DeliveryAttemptFailed(
                order_id=str(self.id),
                agent_id=str(agent_id),
                reason=reason,
                failed_at=at,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Cancellation
    # -------------------------------------------------------------------
    def cancel(self, reason: str, cancelled_by: str) -> bool:
        agent_id = self.assigned_agent_id if self.holds_agent else None
        at = self._advance(LifecycleEvent.CANCELLED, f"Cancelled by {cancelled_by}: {reason}")
        if at is None:
            return False
        self.raise_(
            OrderCancelled(
                order_id=str(self.id),
                reason=reason,
                cancelled_by=cancelled_by,
                agent_id=str(agent_id) if agent_id else None,
                cancelled_at=at,
            )
        )
        return True
