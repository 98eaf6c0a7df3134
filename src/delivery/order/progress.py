"""Agent progress — commands and handler for the delivery run.

Only the agent bound to the order may move it along. Reaching DELIVERED
frees the agent in the same unit of work; a failed hand-over unbinds the
agent and sends the order back to the dispatch queue.
"""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.access import Principal, ensure_admin_or_bound_agent, ensure_bound_agent
from delivery.agent.agent import ReleaseOutcome
from delivery.dispatch.engine import AssignmentEngine
from delivery.domain import delivery
from delivery.order.order import Order


@delivery.command(part_of="Order")
class MarkPickedUp:
    order_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command(part_of="Order")
class MarkOnTheWay:
    order_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command(part_of="Order")
class MarkDelivered:
    order_id = Identifier(required=True)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command(part_of="Order")
class ReportFailedDelivery:
    """The hand-over could not be completed (student unreachable, wrong room)."""

    order_id = Identifier(required=True)
    reason = String(required=True, max_length=500)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command_handler(part_of=Order)
class DeliveryProgressHandler:
    @handle(MarkPickedUp)
    def mark_picked_up(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        ensure_bound_agent(Principal.of(command.actor_role, command.actor_id), order)

        changed = order.mark_picked_up()
        if changed:
            repo.add(order)
        return changed

    @handle(MarkOnTheWay)
    def mark_on_the_way(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        ensure_bound_agent(Principal.of(command.actor_role, command.actor_id), order)

        changed = order.mark_on_the_way()
        if changed:
            repo.add(order)
        return changed

    @handle(MarkDelivered)
    def mark_delivered(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        ensure_bound_agent(Principal.of(command.actor_role, command.actor_id), order)

        changed = order.mark_delivered()
        if changed:
            repo.add(order)
            AssignmentEngine().release(str(order.assigned_agent_id), str(order.id), ReleaseOutcome.DELIVERED.value)
        return changed

    @handle(ReportFailedDelivery)
    def report_failed_delivery(self, command):
        repo = current_domain.repository_for(Order)
        order = repo.find_by_reference(command.order_id)
        ensure_admin_or_bound_agent(Principal.of(command.actor_role, command.actor_id), order)

        agent_id = order.assigned_agent_id
        changed = order.report_failed_attempt(command.reason)
        if changed:
            repo.add(order)
            AssignmentEngine().release(str(agent_id), str(order.id), ReleaseOutcome.FAILED_ATTEMPT.value)
        return changed
