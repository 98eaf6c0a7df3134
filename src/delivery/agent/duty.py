"""Duty status — command and handler for an agent going on or off duty."""

from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.access import Principal, ensure_self_or_admin
from delivery.agent.agent import DeliveryAgent, DutyStatus
from delivery.domain import delivery


@delivery.command(part_of="DeliveryAgent")
class ChangeDutyStatus:
    agent_id = Identifier(required=True)
    duty_status = String(required=True, max_length=20, choices=DutyStatus)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command_handler(part_of=DeliveryAgent)
class ChangeDutyStatusHandler:
    @handle(ChangeDutyStatus)
    def change_duty_status(self, command):
        repo = current_domain.repository_for(DeliveryAgent)
        agent = repo.find_by_reference(command.agent_id)
        ensure_self_or_admin(Principal.of(command.actor_role, command.actor_id), agent)

        changed = agent.change_duty(command.duty_status)
        if changed:
            repo.add(agent)
        return changed
