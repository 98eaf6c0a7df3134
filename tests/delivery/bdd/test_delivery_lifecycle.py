"""BDD tests for the order delivery lifecycle."""

from protean.exceptions import ValidationError
from pytest_bdd import parsers, scenarios, then, when

scenarios("features/delivery_lifecycle.feature")


# ---------------------------------------------------------------------------
# When steps
# ---------------------------------------------------------------------------
@when(parsers.cfparse('the payment "{payment_id}" is confirmed'))
def confirm_payment(order, payment_id, error):
    try:
        order.confirm_payment(payment_id)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('agent "{agent_id}" named "{name}" is bound to the order'))
def bind_agent(order, agent_id, name, error):
    try:
        order.bind_agent(agent_id, name, "9000000000")
    except ValidationError as exc:
        error["exc"] = exc


@when("the agent picks up the order")
def pick_up(order, error):
    try:
        order.mark_picked_up()
    except ValidationError as exc:
        error["exc"] = exc


@when("the agent heads out")
def head_out(order, error):
    try:
        order.mark_on_the_way()
    except ValidationError as exc:
        error["exc"] = exc


@when("the agent hands over the order")
def hand_over(order, error):
    try:
        order.mark_delivered()
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the hand-over fails because "{reason}"'))
def hand_over_fails(order, reason, error):
    try:
        order.report_failed_attempt(reason)
    except ValidationError as exc:
        error["exc"] = exc


@when(parsers.cfparse('the order is cancelled by "{actor}" because "{reason}"'))
def cancel(order, actor, reason, error):
    try:
        order.cancel(reason, cancelled_by=actor)
    except ValidationError as exc:
        error["exc"] = exc


# ---------------------------------------------------------------------------
# Then steps
# ---------------------------------------------------------------------------
@then("the order has no agent")
def order_has_no_agent(order):
    assert order.assigned_agent_id is None
    assert order.assigned_agent_name is None
