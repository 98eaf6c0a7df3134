"""Agent onboarding — command and handler."""

from protean import handle
from protean.fields import String
from protean.utils.globals import current_domain

from delivery.agent.agent import DeliveryAgent
from delivery.domain import delivery


@delivery.command(part_of="DeliveryAgent")
class OnboardAgent:
    """Register a delivery partner; an admin must activate them before dispatch."""

    agent_code = String(required=True, max_length=100)
    name = String(max_length=150)
    phone = String(max_length=20)
    email = String(max_length=254)
    location = String(max_length=100)


@delivery.command_handler(part_of=DeliveryAgent)
class OnboardAgentHandler:
    @handle(OnboardAgent)
    def onboard_agent(self, command):
        agent = DeliveryAgent.onboard(
            agent_code=command.agent_code,
            name=command.name,
            phone=command.phone,
            email=command.email,
            location=command.location,
        )
        current_domain.repository_for(DeliveryAgent).add(agent)
        return str(agent.id)
