"""Shared BDD fixtures and step definitions for the Delivery domain."""

import pytest
from delivery.agent.agent import DeliveryAgent
from delivery.agent.events import AgentDutyChanged, AgentReleased, AgentReserved
from delivery.order.events import (
    AgentAssigned,
    DeliveryAttemptFailed,
    OrderCancelled,
    OrderDelivered,
    OrderOnTheWay,
    OrderPaid,
    OrderPickedUp,
    OrderPlaced,
)
from delivery.order.ledger import history
from delivery.order.order import Order
from protean.exceptions import ValidationError
from pytest_bdd import given, parsers, then

# Map event name strings to classes for dynamic lookup in Then steps
_EVENT_CLASSES = {
    "OrderPlaced": OrderPlaced,
    "OrderPaid": OrderPaid,
    "AgentAssigned": AgentAssigned,
    "OrderPickedUp": OrderPickedUp,
    "OrderOnTheWay": OrderOnTheWay,
    "OrderDelivered": OrderDelivered,
    "DeliveryAttemptFailed": DeliveryAttemptFailed,
    "OrderCancelled": OrderCancelled,
    "AgentReserved": AgentReserved,
    "AgentReleased": AgentReleased,
    "AgentDutyChanged": AgentDutyChanged,
}

_ITEMS = [
    {"product_id": "prod-dosa", "name": "Masala Dosa", "unit_price": 80.0, "quantity": 2},
    {"product_id": "prod-coffee", "name": "Filter Coffee", "unit_price": 30.0, "quantity": 1},
]

_ADDRESS = {"recipient_name": "Kiran", "phone": "9123456780", "hostel": "Hostel C", "room": "101"}


# ---------------------------------------------------------------------------
# Fixtures
# ---------------------------------------------------------------------------
@pytest.fixture()
def error():
    """Container for captured validation errors."""
    return {"exc": None}


# ---------------------------------------------------------------------------
# Given steps
# ---------------------------------------------------------------------------
@given("a student has placed an order", target_fixture="order")
def placed_order():
    order = Order.place("stu-bdd", "shop-bdd", _ITEMS, _ADDRESS)
    order._events.clear()
    return order


@given("the order is paid")
def order_is_paid(order):
    order.confirm_payment("pay-bdd-001")
    order._events.clear()


@given(parsers.cfparse('the order is assigned to agent "{agent_id}"'))
def order_is_assigned(order, agent_id):
    order.bind_agent(agent_id, f"Agent {agent_id}", "9000000000")
    order._events.clear()


@given("the order is picked up")
def order_is_picked_up(order):
    order.mark_picked_up()
    order._events.clear()


@given("the order is on the way")
def order_is_on_the_way(order):
    order.mark_on_the_way()
    order._events.clear()


@given("the order is delivered")
def order_is_delivered(order):
    order.mark_delivered()
    order._events.clear()


@given(parsers.cfparse('an onboarded agent "{agent_code}"'), target_fixture="agent")
def onboarded_agent(agent_code):
    agent = DeliveryAgent.onboard(agent_code=agent_code)
    agent._events.clear()
    return agent


@given("the agent is activated by an admin")
def agent_is_activated(agent):
    agent.set_access("active")
    agent._events.clear()


@given(parsers.cfparse('the agent is "{duty_status}"'))
def agent_duty_is(agent, duty_status):
    agent.change_duty(duty_status)
    agent._events.clear()


@given(parsers.cfparse('the agent is reserved for order "{order_id}"'))
def agent_is_reserved(agent, order_id):
    agent.reserve(order_id)
    agent._events.clear()


# ---------------------------------------------------------------------------
# Then steps (shared)
# ---------------------------------------------------------------------------
@then("the action fails with a validation error")
def action_fails_with_validation_error(error):
    assert error["exc"] is not None, "Expected a validation error but none was raised"
    assert isinstance(error["exc"], ValidationError)


@then(parsers.cfparse('the order status is "{status}"'))
def order_status_is(order, status):
    assert order.status == status


@then(parsers.cfparse("the order history has {count:d} entries"))
def order_history_count(order, count):
    assert len(history(order)) == count


@then(parsers.cfparse('the latest history note is "{note}"'))
def latest_history_note(order, note):
    assert history(order)[-1].note == note


@then("no order event is raised")
def no_order_event(order):
    assert order._events == []


@then(parsers.cfparse('the agent duty status is "{duty_status}"'))
def agent_duty_status_is(agent, duty_status):
    assert agent.duty_status == duty_status


@then(parsers.cfparse("an order {event_type} event is raised"))
def order_event_raised(order, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in order._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in order._events]}"


@then(parsers.cfparse("an agent {event_type} event is raised"))
def agent_event_raised(agent, event_type):
    event_cls = _EVENT_CLASSES[event_type]
    assert any(
        isinstance(e, event_cls) for e in agent._events
    ), f"No {event_type} event found. Events: {[type(e).__name__ for e in agent._events]}"
