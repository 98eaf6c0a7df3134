"""Agent administration — admins enable or disable delivery partners."""

import structlog
from protean import handle
from protean.fields import Identifier, String
from protean.utils.globals import current_domain

from delivery.access import Principal, ensure_admin
from delivery.agent.agent import AdminControl, DeliveryAgent
from delivery.domain import delivery

logger = structlog.get_logger(__name__)


@delivery.command(part_of="DeliveryAgent")
class SetAgentAccess:
    agent_id = Identifier(required=True)
    admin_control = String(required=True, max_length=10, choices=AdminControl)
    actor_role = String(required=True, max_length=20)
    actor_id = Identifier()


@delivery.command_handler(part_of=DeliveryAgent)
class SetAgentAccessHandler:
    @handle(SetAgentAccess)
    def set_agent_access(self, command):
        ensure_admin(Principal.of(command.actor_role, command.actor_id))
        repo = current_domain.repository_for(DeliveryAgent)
        agent = repo.find_by_reference(command.agent_id)

        changed = agent.set_access(command.admin_control)
        if changed:
            repo.add(agent)
            logger.info("Agent access changed", agent_code=agent.agent_code, admin_control=agent.admin_control)
        return changed
