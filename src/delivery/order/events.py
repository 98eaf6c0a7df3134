"""Order domain events — immutable facts about an order's fulfillment.

Versioned and past tense; they feed the agent dashboard projection and any
notification handlers that subscribe to the delivery stream.
"""

from protean.fields import DateTime, Float, Identifier, Integer, String, Text

from delivery.domain import delivery


@delivery.event(part_of="Order")
class OrderPlaced:
    """A student checked out a basket from one shop."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    user_id = Identifier(required=True)
    shop_id = Identifier(required=True)
    items = Text(required=True)  # JSON list of item dicts
    item_count = Integer(required=True)
    total_amount = Float(required=True)
    currency = String(required=True)
    placed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderPaid:
    """Payment was confirmed; the order now waits for a delivery partner."""

    __version__ = 1

    order_id = Identifier(required=True)
    payment_id = String(required=True)
    amount = Float(required=True)
    paid_at = DateTime(required=True)


@delivery.event(part_of="Order")
class AgentAssigned:
    """A delivery agent was bound to the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    order_number = String(required=True)
    agent_id = Identifier(required=True)
    agent_name = String()
    agent_phone = String()
    assigned_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderPickedUp:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    picked_up_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderOnTheWay:
    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    departed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderDelivered:
    """The student received the order."""

    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    delivered_at = DateTime(required=True)


@delivery.event(part_of="Order")
class DeliveryAttemptFailed:
    """The agent could not complete the hand-over; the order goes back to the queue."""

    __version__ = 1

    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    reason = String(required=True)
    failed_at = DateTime(required=True)


@delivery.event(part_of="Order")
class OrderCancelled:
    __version__ = 1

    order_id = Identifier(required=True)
    reason = String(required=True)
    cancelled_by = String(required=True)
    agent_id = Identifier()  # set when an agent held the order
    cancelled_at = DateTime(required=True)
