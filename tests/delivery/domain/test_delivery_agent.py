"""Tests for the DeliveryAgent aggregate — onboarding, duty status and reservation."""

import pytest
from delivery.agent.agent import AdminControl, DeliveryAgent, DutyStatus, ReleaseOutcome
from delivery.agent.events import (
    AgentAccessChanged,
    AgentDutyChanged,
    AgentOnboarded,
    AgentReleased,
    AgentReserved,
)
from protean.exceptions import ValidationError


def _make_agent(**overrides):
    defaults = {"agent_code": "DEL-001", "name": "Ravi", "phone": "9000000001", "location": "North Campus"}
    defaults.update(overrides)
    return DeliveryAgent.onboard(**defaults)


def _eligible_agent():
    agent = _make_agent()
    agent.set_access(AdminControl.ACTIVE.value)
    agent.change_duty(DutyStatus.AVAILABLE.value)
    agent._events.clear()
    return agent


class TestOnboarding:
    def test_new_agent_is_inactive_and_off_duty(self):
        agent = _make_agent()
        assert agent.admin_control == "inactive"
        assert agent.duty_status == "Not Available"
        assert agent.is_eligible is False

    def test_defaults_for_missing_name_and_phone(self):
        agent = DeliveryAgent.onboard(agent_code="DEL-002")
        assert agent.name == "Delivery Partner"
        assert agent.phone == "No contact"

    def test_onboarded_event(self):
        agent = _make_agent()
        assert any(isinstance(e, AgentOnboarded) for e in agent._events)

    def test_agent_code_required(self):
        with pytest.raises(ValidationError):
            DeliveryAgent.onboard(agent_code=None)


class TestEligibility:
    def test_active_and_available_is_eligible(self):
        assert _eligible_agent().is_eligible is True

    def test_inactive_agent_is_never_eligible(self):
        agent = _make_agent()
        agent.change_duty(DutyStatus.AVAILABLE.value)
        assert agent.is_eligible is False

    def test_not_available_agent_is_not_eligible(self):
        agent = _make_agent()
        agent.set_access(AdminControl.ACTIVE.value)
        assert agent.is_eligible is False


class TestDutyStatus:
    def test_toggle_available_and_not_available(self):
        agent = _make_agent()
        assert agent.change_duty("Available") is True
        assert agent.change_duty("Not Available") is True
        assert agent.duty_status == "Not Available"
        assert len([e for e in agent._events if isinstance(e, AgentDutyChanged)]) == 2

    def test_same_status_is_a_no_op(self):
        agent = _make_agent()
        assert agent.change_duty("Not Available") is False

    def test_busy_cannot_be_set_by_hand(self):
        agent = _make_agent()
        with pytest.raises(ValidationError):
            agent.change_duty("Busy")

    def test_busy_agent_cannot_go_off_duty(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        with pytest.raises(ValidationError):
            agent.change_duty("Not Available")
        assert agent.duty_status == "Busy"

    def test_unknown_status_rejected(self):
        agent = _make_agent()
        with pytest.raises(ValueError):
            agent.change_duty("Sleeping")


class TestReservation:
    def test_reserve_makes_agent_busy(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        assert agent.duty_status == "Busy"
        assert agent.current_order_id == "ord-1"
        assert any(isinstance(e, AgentReserved) for e in agent._events)

    def test_reserve_requires_eligibility(self):
        agent = _make_agent()
        with pytest.raises(ValidationError):
            agent.reserve("ord-1")
        assert agent.duty_status == "Not Available"

    def test_busy_agent_cannot_be_reserved_again(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        with pytest.raises(ValidationError):
            agent.reserve("ord-2")
        assert agent.current_order_id == "ord-1"

    def test_release_returns_agent_to_available(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        assert agent.release("ord-1") is True
        assert agent.duty_status == "Available"
        assert agent.current_order_id is None
        assert any(isinstance(e, AgentReleased) for e in agent._events)

    def test_release_keeps_agent_busy_with_other_orders(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        assert agent.release("ord-1", remaining_order_ids=["ord-2"]) is False
        assert agent.duty_status == "Busy"
        assert agent.current_order_id == "ord-2"

        released = [e for e in agent._events if isinstance(e, AgentReleased)]
        assert len(released) == 1
        assert released[0].duty_status == "Busy"
        assert released[0].current_order_id == "ord-2"

    def test_release_records_outcome(self):
        agent = _eligible_agent()
        agent.reserve("ord-1", "ORD-0001")
        agent.release("ord-1", outcome=ReleaseOutcome.FAILED_ATTEMPT.value)

        reserved = next(e for e in agent._events if isinstance(e, AgentReserved))
        released = next(e for e in agent._events if isinstance(e, AgentReleased))
        assert reserved.order_number == "ORD-0001"
        assert released.outcome == "failed_attempt"
        assert released.duty_status == "Available"
        assert released.current_order_id is None

    def test_release_rejects_unknown_outcome(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        with pytest.raises(ValueError):
            agent.release("ord-1", outcome="lost")
        assert agent.duty_status == "Busy"

    def test_release_of_idle_agent_is_a_no_op(self):
        agent = _eligible_agent()
        assert agent.release("ord-1") is False
        assert agent.duty_status == "Available"


class TestAdminControl:
    def test_grant_and_revoke(self):
        agent = _make_agent()
        assert agent.set_access("active") is True
        assert agent.set_access("active") is False
        assert agent.set_access("inactive") is True
        assert len([e for e in agent._events if isinstance(e, AgentAccessChanged)]) == 2

    def test_busy_invariant(self):
        agent = _eligible_agent()
        agent.reserve("ord-1")
        with pytest.raises(ValidationError):
            agent.current_order_id = None
