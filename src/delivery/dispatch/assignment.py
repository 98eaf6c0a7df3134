"""Dispatch — commands and handler that bind an agent to a paid order.

``DispatchOrder`` runs the round-robin engine; finding nobody available is
an expected outcome and leaves the order queued. ``AssignAgent`` is the
admin override for a chosen agent.
"""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.access import Principal, ensure_admin
from delivery.agent.agent import DeliveryAgent
from delivery.dispatch.engine import AssignmentEngine, AssignmentResult
from delivery.domain import delivery
from delivery.exceptions import AssignmentFailed
from delivery.order.order import Order

logger = structlog.get_logger(__name__)


@delivery.command(part_of="Order")
class DispatchOrder:
    order_id = Identifier(required=True)


@delivery.command(part_of="Order")
class AssignAgent:
    order_id = Identifier(required=True)
    agent_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command_handler(part_of=Order)
class DispatchHandler:
    @handle(DispatchOrder)
    def dispatch_order(self, command):
        order = current_domain.repository_for(Order).find_by_reference(command.order_id)
        try:
            return AssignmentEngine().assign(order)
        except AssignmentFailed as exc:
            order.keep_queued()
            logger.info(
                "No delivery partner available, order stays queued",
                order_id=str(order.id),
                order_number=order.order_number,
                reason=exc.reason,
            )
            return AssignmentResult.unassigned(str(order.id), exc.reason)

    @handle(AssignAgent)
    def assign_agent(self, command):
        ensure_admin(Principal.of(command.actor_role, command.actor_id))
        order = current_domain.repository_for(Order).find_by_reference(command.order_id)
        agent = current_domain.repository_for(DeliveryAgent).find_by_reference(command.agent_id)
        return AssignmentEngine().assign_to(order, agent)
