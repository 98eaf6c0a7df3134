"""Repository for the DeliveryAgent aggregate."""

from protean.exceptions import ObjectNotFoundError

from delivery.agent.agent import AdminControl, DeliveryAgent, DutyStatus
from delivery.domain import delivery


@delivery.repository(part_of=DeliveryAgent)
class DeliveryAgentRepository:
    def find_by_reference(self, reference: str) -> DeliveryAgent:
        """Look up an agent by storage id, falling back to the agent code."""
        try:
            return self.get(reference)
        except ObjectNotFoundError:
            by_code = self._dao.query.filter(agent_code=reference).all().items
            if not by_code:
                raise ObjectNotFoundError(f"Delivery agent `{reference}` does not exist")
            return by_code[0]

    def eligible(self) -> list[DeliveryAgent]:
        """Active, available agents in stable agent-code order."""
        agents = (
            self._dao.query.filter(
                admin_control=AdminControl.ACTIVE.value,
                duty_status=DutyStatus.AVAILABLE.value,
            )
            .limit(None)
            .all()
            .items
        )
        return sorted(agents, key=lambda a: a.agent_code)
