"""Application tests for agent onboarding, duty and access commands."""

import pytest
from delivery.agent.administration import SetAgentAccess
from delivery.agent.agent import DeliveryAgent
from delivery.agent.duty import ChangeDutyStatus
from delivery.agent.onboarding import OnboardAgent
from delivery.exceptions import UnauthorizedError
from delivery.order import controller
from protean import current_domain
from protean.exceptions import ValidationError


def _agent(agent_id):
    return current_domain.repository_for(DeliveryAgent).get(agent_id)


class TestOnboarding:
    def test_defaults_for_missing_contact(self):
        agent_id = current_domain.process(OnboardAgent(agent_code="A1"), asynchronous=False)

        agent = _agent(agent_id)
        assert agent.name == "Delivery Partner"
        assert agent.phone == "No contact"
        assert agent.duty_status == "Not Available"
        assert agent.admin_control == "inactive"
        assert agent.onboarded_at is not None

    def test_lookup_by_code(self, onboard_agent):
        agent_id = onboard_agent("A42")
        found = current_domain.repository_for(DeliveryAgent).find_by_reference("A42")
        assert str(found.id) == agent_id


class TestDutyStatus:
    def test_agent_goes_on_duty(self, onboard_agent):
        agent_id = onboard_agent("A1", available=False)

        changed = current_domain.process(
            ChangeDutyStatus(agent_id=agent_id, duty_status="Available", actor_role="agent", actor_id=agent_id),
            asynchronous=False,
        )

        assert changed is True
        assert _agent(agent_id).duty_status == "Available"

    def test_same_status_is_a_no_op(self, onboard_agent):
        agent_id = onboard_agent("A1")
        changed = current_domain.process(
            ChangeDutyStatus(agent_id=agent_id, duty_status="Available", actor_role="admin"),
            asynchronous=False,
        )
        assert changed is False

    def test_agent_cannot_change_another_agent(self, onboard_agent):
        agent_id = onboard_agent("A1", available=False)
        other = onboard_agent("A2")

        with pytest.raises(UnauthorizedError):
            current_domain.process(
                ChangeDutyStatus(agent_id=agent_id, duty_status="Available", actor_role="agent", actor_id=other),
                asynchronous=False,
            )

    def test_busy_agent_cannot_go_off_duty(self, paid_order, onboard_agent):
        agent_id = onboard_agent("A1")
        controller.dispatch(paid_order())

        with pytest.raises(ValidationError):
            current_domain.process(
                ChangeDutyStatus(agent_id=agent_id, duty_status="Not Available", actor_role="agent", actor_id=agent_id),
                asynchronous=False,
            )
        assert _agent(agent_id).duty_status == "Busy"

    def test_unknown_status_is_rejected(self, onboard_agent):
        agent_id = onboard_agent("A1")
        with pytest.raises(ValidationError):
            ChangeDutyStatus(agent_id=agent_id, duty_status="On Break", actor_role="admin")


class TestAccess:
    def test_admin_deactivates_agent(self, onboard_agent):
        agent_id = onboard_agent("A1")

        current_domain.process(
            SetAgentAccess(agent_id=agent_id, admin_control="inactive", actor_role="admin"),
            asynchronous=False,
        )

        agent = _agent(agent_id)
        assert agent.admin_control == "inactive"
        assert agent.is_eligible is False

    def test_deactivated_agent_gets_no_orders(self, paid_order, onboard_agent):
        agent_id = onboard_agent("A1")
        current_domain.process(
            SetAgentAccess(agent_id=agent_id, admin_control="inactive", actor_role="admin"),
            asynchronous=False,
        )

        result = controller.dispatch(paid_order())

        assert result.assigned is False

    def test_only_admin_controls_access(self, onboard_agent):
        agent_id = onboard_agent("A1", active=False)

        with pytest.raises(UnauthorizedError):
            current_domain.process(
                SetAgentAccess(agent_id=agent_id, admin_control="active", actor_role="agent", actor_id=agent_id),
                asynchronous=False,
            )
        assert _agent(agent_id).admin_control == "inactive"
