"""Lifecycle controller — application services that chain commands.

Each command runs in its own unit of work. Payment confirmation commits
first and dispatch follows, so a shortage of agents never undoes a
payment. Dispatch is retried when a concurrent writer wins the race on the
agent or the dispatch board.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ExpectedVersionError
from protean.utils.globals import current_domain

from delivery.access import Principal, Role, ensure_can_view, ensure_owner_or_admin
from delivery.dispatch.assignment import AssignAgent, DispatchOrder
from delivery.dispatch.board import ensure_board
from delivery.dispatch.engine import AssignmentResult
from delivery.domain import setting
from delivery.exceptions import ConflictError
from delivery.order.lifecycle import LifecycleEvent, OrderStatus
from delivery.order.order import Order
from delivery.order.payment import ConfirmPayment
from delivery.order.progress import ReportFailedDelivery
from delivery.payment import get_gateway

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class PaymentOutcome:
    order_id: str
    paid: bool
    payment_id: str | None = None
    failure_reason: str | None = None
    assignment: AssignmentResult | None = None


# ---------------------------------------------------------------------------
# Reads
# ---------------------------------------------------------------------------
def view_order(reference: str, principal: Principal) -> Order:
    order = current_domain.repository_for(Order).find_by_reference(reference)
    ensure_can_view(principal, order)
    return order


def list_orders(principal: Principal, user_id: str | None = None, shop_id: str | None = None) -> list[Order]:
    """Orders the principal may see: their own, their shop's, or what they hold."""
    repo = current_domain.repository_for(Order)
    if principal.role == Role.STUDENT:
        return repo.placed_by(principal.subject_id)
    if principal.role == Role.SHOPKEEPER:
        return repo.for_shop(principal.subject_id)
    if principal.role == Role.AGENT:
        return repo.active_for_agent(principal.subject_id)

    if user_id:
        return repo.placed_by(user_id)
    if shop_id:
        return repo.for_shop(shop_id)
    return repo.awaiting_dispatch()


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------
def dispatch(reference: str) -> AssignmentResult:
    ensure_board()
    attempts = setting("MAX_ASSIGNMENT_ATTEMPTS", 3)
    for attempt in range(1, attempts + 1):
        try:
            return current_domain.process(DispatchOrder(order_id=reference), asynchronous=False)
        except ExpectedVersionError:
            logger.warning("Dispatch lost a concurrent write, retrying", order=reference, attempt=attempt)
    raise ConflictError(reference, attempts)


def assign_agent(reference: str, agent_reference: str, principal: Principal) -> AssignmentResult:
    """Admin override: bind a chosen agent through the reservation path."""
    ensure_board()
    command = AssignAgent(
        order_id=reference,
        agent_id=agent_reference,
        actor_role=principal.role.value,
        actor_id=principal.subject_id,
    )
    return current_domain.process(command, asynchronous=False)


def redispatch_waiting_orders() -> list[AssignmentResult]:
    """Try again for every paid order still without an agent, oldest first."""
    results = []
    for order in current_domain.repository_for(Order).awaiting_dispatch():
        try:
            results.append(dispatch(str(order.id)))
        except ConflictError as exc:
            logger.warning("Redispatch gave up on order", order_id=str(order.id), attempts=exc.attempts)
            results.append(AssignmentResult.unassigned(str(order.id), str(exc)))
    return results


# ---------------------------------------------------------------------------
# Payment
# ---------------------------------------------------------------------------
def confirm_payment(reference: str, payment_id: str) -> AssignmentResult | None:
    """Apply a payment confirmation and dispatch the order if it is queued."""
    current_domain.process(ConfirmPayment(order_id=reference, payment_id=payment_id), asynchronous=False)

    order = current_domain.repository_for(Order).find_by_reference(reference)
    if OrderStatus(order.status) != OrderStatus.PENDING_DELIVERY:
        return None
    return dispatch(str(order.id))


def pay_for_order(reference: str, principal: Principal) -> PaymentOutcome:
    """Charge the student through the payment collaborator.

    A declined charge leaves the order pending so the student can retry.
    """
    order = current_domain.repository_for(Order).find_by_reference(reference)
    ensure_owner_or_admin(principal, order)

    if not order.accepts(LifecycleEvent.PAYMENT_CONFIRMED):
        return PaymentOutcome(order_id=str(order.id), paid=True, payment_id=order.payment_id)

    result = get_gateway().charge(str(order.id), order.total_amount, order.currency)
    if not result.success:
        logger.warning(
            "Payment failed",
            order_id=str(order.id),
            order_number=order.order_number,
            reason=result.failure_reason,
        )
        return PaymentOutcome(order_id=str(order.id), paid=False, failure_reason=result.failure_reason)

    assignment = confirm_payment(str(order.id), result.payment_id)
    return PaymentOutcome(
        order_id=str(order.id),
        paid=True,
        payment_id=result.payment_id,
        assignment=assignment,
    )


# ---------------------------------------------------------------------------
# Failed hand-over
# ---------------------------------------------------------------------------
def report_failed_delivery(reference: str, reason: str, principal: Principal) -> AssignmentResult | None:
    """Return the order to the queue and look for another agent."""
    changed = current_domain.process(
        ReportFailedDelivery(
            order_id=reference,
            reason=reason,
            actor_role=principal.role.value,
            actor_id=principal.subject_id,
        ),
        asynchronous=False,
    )
    if not changed:
        return None
    return dispatch(reference)
