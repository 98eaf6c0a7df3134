"""Order lifecycle state machine.

State Machine:
    PENDING → PENDING_DELIVERY → ASSIGNED → PICKED_UP → ON_THE_WAY → DELIVERED
    {ASSIGNED, PICKED_UP, ON_THE_WAY} → PENDING_DELIVERY   (failed delivery attempt)
    any non-terminal state → CANCELLED

Every input the order reacts to is one member of ``LifecycleEvent``; the
``_TRANSITIONS`` table is the single place that says which states accept it
and where it leads.
"""

from enum import Enum

from delivery.exceptions import IllegalTransitionError


class OrderStatus(Enum):
    PENDING = "pending"
    PENDING_DELIVERY = "pending_delivery"
    ASSIGNED = "assigned"
    PICKED_UP = "picked_up"
    ON_THE_WAY = "on_the_way"
    DELIVERED = "delivered"
    CANCELLED = "cancelled"


class LifecycleEvent(Enum):
    PAYMENT_CONFIRMED = "PaymentConfirmed"
    ASSIGNMENT_SUCCEEDED = "AssignmentSucceeded"
    ASSIGNMENT_FAILED = "AssignmentFailed"
    AGENT_MARKS_PICKED_UP = "AgentMarksPickedUp"
    AGENT_MARKS_EN_ROUTE = "AgentMarksEnRoute"
    AGENT_MARKS_DELIVERED = "AgentMarksDelivered"
    DELIVERY_ATTEMPT_FAILED = "DeliveryAttemptFailed"
    CANCELLED = "AdminOrAgentCancels"


TERMINAL_STATUSES = frozenset({OrderStatus.DELIVERED, OrderStatus.CANCELLED})

# States in which an order holds an agent
ACTIVE_ASSIGNMENT_STATUSES = frozenset(
    {
        OrderStatus.ASSIGNED,
        OrderStatus.PICKED_UP,
        OrderStatus.ON_THE_WAY,
    }
)

_NON_TERMINAL_STATUSES = frozenset(set(OrderStatus) - TERMINAL_STATUSES)

# event → (accepted source states, destination)
_TRANSITIONS = {
    LifecycleEvent.PAYMENT_CONFIRMED: (frozenset({OrderStatus.PENDING}), OrderStatus.PENDING_DELIVERY),
    LifecycleEvent.ASSIGNMENT_SUCCEEDED: (frozenset({OrderStatus.PENDING_DELIVERY}), OrderStatus.ASSIGNED),
    LifecycleEvent.ASSIGNMENT_FAILED: (frozenset({OrderStatus.PENDING_DELIVERY}), OrderStatus.PENDING_DELIVERY),
    LifecycleEvent.AGENT_MARKS_PICKED_UP: (frozenset({OrderStatus.ASSIGNED}), OrderStatus.PICKED_UP),
    LifecycleEvent.AGENT_MARKS_EN_ROUTE: (frozenset({OrderStatus.PICKED_UP}), OrderStatus.ON_THE_WAY),
    LifecycleEvent.AGENT_MARKS_DELIVERED: (frozenset({OrderStatus.ON_THE_WAY}), OrderStatus.DELIVERED),
    LifecycleEvent.DELIVERY_ATTEMPT_FAILED: (ACTIVE_ASSIGNMENT_STATUSES, OrderStatus.PENDING_DELIVERY),
    LifecycleEvent.CANCELLED: (_NON_TERMINAL_STATUSES, OrderStatus.CANCELLED),
}

# Position along the happy path, used to spot late duplicates
_PROGRESSION = {
    OrderStatus.PENDING: 0,
    OrderStatus.PENDING_DELIVERY: 1,
    OrderStatus.ASSIGNED: 2,
    OrderStatus.PICKED_UP: 3,
    OrderStatus.ON_THE_WAY: 4,
    OrderStatus.DELIVERED: 5,
}


def sources_for(event: LifecycleEvent) -> frozenset:
    return _TRANSITIONS[event][0]


def destination_for(event: LifecycleEvent) -> OrderStatus:
    return _TRANSITIONS[event][1]


def is_replay(event: LifecycleEvent, current: OrderStatus, visited: set) -> bool:
    """True when ``event`` already took effect on an order now in ``current``.

    Collaborators retry on timeout, so the same event can arrive twice or
    after the order moved on. It is a replay when its destination is already
    in the ledger and the order sits at, past, or terminally beyond it.
    """
    destination = destination_for(event)
    if destination not in visited:
        return False
    if current == destination or current in TERMINAL_STATUSES:
        return True
    return _PROGRESSION.get(current, -1) > _PROGRESSION.get(destination, -1)


def next_status(event: LifecycleEvent, current: OrderStatus, visited: set) -> OrderStatus | None:
    """Resolve ``event`` against the order's current status.

    Returns the status to move to, or None when nothing must be written
    (a replayed event, or a failed assignment that leaves the order queued).
    Raises ``IllegalTransitionError`` when the event is not acceptable.
    """
    sources, destination = _TRANSITIONS[event]
    if current in sources:
        return None if destination == current else destination
    if is_replay(event, current, visited):
        return None
    raise IllegalTransitionError(
        {"status": [f"Cannot apply {event.value} to an order in {current.value} state"]}
    )
