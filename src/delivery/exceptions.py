"""Errors raised by the delivery domain.

Validation problems and missing records use Protean's own
``ValidationError`` and ``ObjectNotFoundError``; the classes here cover the
lifecycle and dispatch conditions those two do not describe.
"""

from protean.exceptions import ValidationError


class UnauthorizedError(Exception):
    """The acting principal may not view or change the order or agent."""


class IllegalTransitionError(ValidationError):
    """A lifecycle event was presented against a state that does not accept it."""


class AssignmentFailed(Exception):
    """No eligible delivery agent could be reserved for the order.

    This is an expected operating condition: the order stays in
    ``pending_delivery`` and dispatch can be retried later.
    """

    def __init__(self, order_id, reason="No delivery partner available"):
        super().__init__(reason)
        self.order_id = order_id
        self.reason = reason


class ConflictError(Exception):
    """Agent reservation kept colliding with concurrent writers."""

    def __init__(self, order_id, attempts):
        super().__init__(f"Could not reserve an agent for order {order_id} after {attempts} attempts")
        self.order_id = order_id
        self.attempts = attempts
