"""Order cancellation — command and handler.

An admin or the agent holding the order may cancel it from any
non-terminal state. A held agent is released in the same unit of work.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.access import Principal, ensure_admin_or_bound_agent
from delivery.agent.agent import ReleaseOutcome
from delivery.dispatch.engine import AssignmentEngine
from delivery.domain import delivery
from delivery.order.order import Order


@delivery.command(part_of="Order")
class CancelOrder:
    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command_handler(part_of=Order)
class CancelOrderHandler:
    @handle(CancelOrder)
    def cancel_order(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        principal = Principal.of(command.actor_role, command.actor_id)
        ensure_admin_or_bound_agent(principal, order)

        held_by = order.assigned_agent_id if order.holds_agent else None
        changed = order.cancel(command.reason, cancelled_by=principal.role.value)
        if changed:
            repo.add(order)
            if held_by:
                AssignmentEngine().release(str(held_by), str(order.id), ReleaseOutcome.CANCELLED.value)
        return changed
