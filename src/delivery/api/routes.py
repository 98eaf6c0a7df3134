"""FastAPI routes for the delivery domain.

The caller's identity travels in ``X-Actor-Role`` and ``X-Actor-Id``
headers; authentication itself happens upstream.
"""

import json
import os

from fastapi import APIRouter, Depends, Header, HTTPException, Request
from protean.utils.globals import current_domain

from delivery.access import Principal, Role, ensure_admin, ensure_self_or_admin
from delivery.agent.administration import SetAgentAccess
from delivery.agent.agent import DeliveryAgent
from delivery.agent.duty import ChangeDutyStatus
from delivery.agent.onboarding import OnboardAgent
from delivery.api.schemas import (
    AgentAccessRequest,
    AgentDashboardResponse,
    AgentIdResponse,
    AssignAgentRequest,
    AssignmentResponse,
    ConfigureGatewayRequest,
    DutyStatusRequest,
    OnboardAgentRequest,
    OrderIdResponse,
    OrderResponse,
    PaymentResponse,
    PaymentWebhookRequest,
    PlaceOrderRequest,
    ReasonRequest,
    RegisterShopRequest,
    ShopIdResponse,
    StatusResponse,
)
from delivery.exceptions import UnauthorizedError
from delivery.order import controller
from delivery.order.cancellation import CancelOrder
from delivery.order.checkout import PlaceOrder
from delivery.order.ledger import history
from delivery.order.order import Order
from delivery.order.progress import MarkDelivered, MarkOnTheWay, MarkPickedUp
from delivery.payment import get_gateway
from delivery.payment.fake_adapter import FakePaymentGateway
from delivery.projections.agent_dashboard import AgentDashboard
from delivery.shop.registration import RegisterShop


def current_principal(
    x_actor_role: str = Header(...),
    x_actor_id: str | None = Header(default=None),
) -> Principal:
    return Principal.of(x_actor_role, x_actor_id)


def _assignment_response(result) -> AssignmentResponse | None:
    if result is None:
        return None
    return AssignmentResponse(
        order_id=result.order_id,
        assigned=result.assigned,
        agent_id=result.agent_id,
        agent_code=result.agent_code,
        agent_name=result.agent_name,
        agent_phone=result.agent_phone,
        reason=result.reason,
    )


def _order_response(order: Order) -> OrderResponse:
    address = order.delivery_address
    return OrderResponse(
        order_id=str(order.id),
        order_number=order.order_number,
        user_id=str(order.user_id),
        shop_id=str(order.shop_id),
        status=order.status,
        total_amount=order.total_amount,
        currency=order.currency,
        items=[
            {
                "product_id": str(item.product_id),
                "name": item.name,
                "unit_price": item.unit_price,
                "quantity": item.quantity,
            }
            for item in order.items or []
        ],
        delivery_address=(
            {
                "recipient_name": address.recipient_name,
                "phone": address.phone,
                "hostel": address.hostel,
                "room": address.room,
            }
            if address
            else None
        ),
        assigned_agent_id=str(order.assigned_agent_id) if order.assigned_agent_id else None,
        assigned_agent_name=order.assigned_agent_name,
        assigned_agent_phone=order.assigned_agent_phone,
        payment_id=order.payment_id,
        estimated_delivery_at=order.estimated_delivery_at,
        status_history=[
            {"status": entry.status, "note": entry.note, "recorded_at": entry.recorded_at} for entry in history(order)
        ],
    )


# ---------------------------------------------------------------------------
# Order Router
# ---------------------------------------------------------------------------
order_router = APIRouter(prefix="/orders", tags=["orders"])


@order_router.post("", status_code=201, response_model=OrderIdResponse)
async def place_order(body: PlaceOrderRequest, principal: Principal = Depends(current_principal)) -> OrderIdResponse:
    """Check out one shop's items; the order waits for payment."""
    if principal.role == Role.STUDENT:
        user_id = principal.subject_id
    elif principal.is_admin and body.user_id:
        user_id = body.user_id
    else:
        raise UnauthorizedError("Only students can place orders")

    command = PlaceOrder(
        user_id=user_id,
        shop_id=body.shop_id,
        items=json.dumps([item.model_dump(exclude_none=True) for item in body.items]),
        delivery_address=body.delivery_address.model_dump_json() if body.delivery_address else None,
    )
    order_id = current_domain.process(command, asynchronous=False)
    order = current_domain.repository_for(Order).get(order_id)
    return OrderIdResponse(order_id=order_id, order_number=order.order_number)


@order_router.get("", response_model=list[OrderResponse])
async def list_orders(
    user_id: str | None = None,
    shop_id: str | None = None,
    principal: Principal = Depends(current_principal),
) -> list[OrderResponse]:
    return [_order_response(o) for o in controller.list_orders(principal, user_id=user_id, shop_id=shop_id)]


@order_router.post("/payments/webhook", response_model=StatusResponse)
async def payment_webhook(
    body: PaymentWebhookRequest,
    request: Request,
    x_payment_signature: str = Header(default=""),
) -> StatusResponse:
    """Payment gateway callback confirming a charge."""
    payload = (await request.body()).decode()
    if not get_gateway().verify_webhook_signature(payload, x_payment_signature):
        raise HTTPException(status_code=401, detail="Invalid payment webhook signature")

    if body.status != "captured":
        return StatusResponse(status="ignored")
    controller.confirm_payment(body.order_id, body.payment_id)
    return StatusResponse(status="payment_confirmed")


@order_router.post("/payments/gateway/configure", response_model=StatusResponse)
async def configure_gateway(body: ConfigureGatewayRequest) -> StatusResponse:
    """Flip the fake gateway between success and decline (development only)."""
    if os.environ.get("PROTEAN_ENV") == "production":
        raise HTTPException(status_code=403, detail="Gateway configuration not available in production")

    gateway = get_gateway()
    if not isinstance(gateway, FakePaymentGateway):
        raise HTTPException(status_code=400, detail="Gateway configuration only available for FakePaymentGateway")
    gateway.configure(should_succeed=body.should_succeed, failure_reason=body.failure_reason)
    return StatusResponse(status="configured")


@order_router.post("/dispatch/sweep", response_model=list[AssignmentResponse])
async def sweep_waiting_orders(principal: Principal = Depends(current_principal)) -> list[AssignmentResponse]:
    """Retry dispatch for every paid order still waiting for an agent."""
    ensure_admin(principal)
    return [_assignment_response(r) for r in controller.redispatch_waiting_orders()]


@order_router.get("/{reference}", response_model=OrderResponse)
async def get_order(reference: str, principal: Principal = Depends(current_principal)) -> OrderResponse:
    return _order_response(controller.view_order(reference, principal))


@order_router.post("/{reference}/pay", response_model=PaymentResponse)
async def pay_for_order(reference: str, principal: Principal = Depends(current_principal)) -> PaymentResponse:
    outcome = controller.pay_for_order(reference, principal)
    return PaymentResponse(
        order_id=outcome.order_id,
        paid=outcome.paid,
        payment_id=outcome.payment_id,
        failure_reason=outcome.failure_reason,
        assignment=_assignment_response(outcome.assignment),
    )


@order_router.post("/{reference}/dispatch", response_model=AssignmentResponse)
async def dispatch_order(reference: str, principal: Principal = Depends(current_principal)) -> AssignmentResponse:
    ensure_admin(principal)
    return _assignment_response(controller.dispatch(reference))


@order_router.put("/{reference}/assign", response_model=AssignmentResponse)
async def assign_agent(
    reference: str,
    body: AssignAgentRequest,
    principal: Principal = Depends(current_principal),
) -> AssignmentResponse:
    """Admin override: bind a specific agent."""
    return _assignment_response(controller.assign_agent(reference, body.agent_id, principal))


@order_router.put("/{reference}/pick-up", response_model=StatusResponse)
async def mark_picked_up(reference: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = MarkPickedUp(order_id=reference, actor_role=principal.role.value, actor_id=principal.subject_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="picked_up")


@order_router.put("/{reference}/en-route", response_model=StatusResponse)
async def mark_on_the_way(reference: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = MarkOnTheWay(order_id=reference, actor_role=principal.role.value, actor_id=principal.subject_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="on_the_way")


@order_router.put("/{reference}/deliver", response_model=StatusResponse)
async def mark_delivered(reference: str, principal: Principal = Depends(current_principal)) -> StatusResponse:
    command = MarkDelivered(order_id=reference, actor_role=principal.role.value, actor_id=principal.subject_id)
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="delivered")


@order_router.put("/{reference}/failed-attempt", response_model=AssignmentResponse | None)
async def report_failed_delivery(
    reference: str,
    body: ReasonRequest,
    principal: Principal = Depends(current_principal),
) -> AssignmentResponse | None:
    """Send the order back to the queue and try another agent."""
    return _assignment_response(controller.report_failed_delivery(reference, body.reason, principal))


@order_router.put("/{reference}/cancel", response_model=StatusResponse)
async def cancel_order(
    reference: str,
    body: ReasonRequest,
    principal: Principal = Depends(current_principal),
) -> StatusResponse:
    command = CancelOrder(
        order_id=reference,
        reason=body.reason,
        actor_role=principal.role.value,
        actor_id=principal.subject_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status="cancelled")


# ---------------------------------------------------------------------------
# Agent Router
# ---------------------------------------------------------------------------
agent_router = APIRouter(prefix="/agents", tags=["agents"])


@agent_router.post("", status_code=201, response_model=AgentIdResponse)
async def onboard_agent(body: OnboardAgentRequest) -> AgentIdResponse:
    """Register a delivery partner; they stay inactive until an admin approves."""
    command = OnboardAgent(
        agent_code=body.agent_code,
        name=body.name,
        phone=body.phone,
        email=body.email,
        location=body.location,
    )
    agent_id = current_domain.process(command, asynchronous=False)
    return AgentIdResponse(agent_id=agent_id)


@agent_router.put("/{agent_id}/duty", response_model=StatusResponse)
async def change_duty_status(
    agent_id: str,
    body: DutyStatusRequest,
    principal: Principal = Depends(current_principal),
) -> StatusResponse:
    command = ChangeDutyStatus(
        agent_id=agent_id,
        duty_status=body.duty_status,
        actor_role=principal.role.value,
        actor_id=principal.subject_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.duty_status)


@agent_router.put("/{agent_id}/access", response_model=StatusResponse)
async def set_agent_access(
    agent_id: str,
    body: AgentAccessRequest,
    principal: Principal = Depends(current_principal),
) -> StatusResponse:
    command = SetAgentAccess(
        agent_id=agent_id,
        admin_control=body.admin_control,
        actor_role=principal.role.value,
        actor_id=principal.subject_id,
    )
    current_domain.process(command, asynchronous=False)
    return StatusResponse(status=body.admin_control)


@agent_router.get("/{agent_id}/dashboard", response_model=AgentDashboardResponse)
async def get_agent_dashboard(agent_id: str, principal: Principal = Depends(current_principal)) -> AgentDashboardResponse:
    agent = current_domain.repository_for(DeliveryAgent).find_by_reference(agent_id)
    ensure_self_or_admin(principal, agent)

    view = current_domain.repository_for(AgentDashboard).get(str(agent.id))
    return AgentDashboardResponse(
        agent_id=str(view.agent_id),
        agent_code=view.agent_code,
        name=view.name,
        duty_status=view.duty_status,
        admin_control=view.admin_control,
        active_order_id=str(view.active_order_id) if view.active_order_id else None,
        active_order_number=view.active_order_number,
        assigned_count=view.assigned_count,
        delivered_count=view.delivered_count,
        failed_attempt_count=view.failed_attempt_count,
    )


# ---------------------------------------------------------------------------
# Shop Router
# ---------------------------------------------------------------------------
shop_router = APIRouter(prefix="/shops", tags=["shops"])


@shop_router.post("", status_code=201, response_model=ShopIdResponse)
async def register_shop(body: RegisterShopRequest, principal: Principal = Depends(current_principal)) -> ShopIdResponse:
    ensure_admin(principal)
    command = RegisterShop(name=body.name, owner_id=body.owner_id, location=body.location)
    shop_id = current_domain.process(command, asynchronous=False)
    return ShopIdResponse(shop_id=shop_id)
