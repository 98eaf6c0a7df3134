"""Pydantic API schemas for the delivery domain.

These are the external API contracts, separate from domain commands.
"""

from datetime import datetime

from pydantic import BaseModel, Field


# ---------------------------------------------------------------------------
# Request schemas
# ---------------------------------------------------------------------------
class LineItemRequest(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int
    shop_id: str | None = None


class DeliveryAddressRequest(BaseModel):
    recipient_name: str | None = None
    phone: str | None = None
    hostel: str
    room: str | None = None


class PlaceOrderRequest(BaseModel):
    shop_id: str
    items: list[LineItemRequest]
    delivery_address: DeliveryAddressRequest | None = None
    user_id: str | None = None  # admins placing on a student's behalf


class PaymentWebhookRequest(BaseModel):
    order_id: str
    payment_id: str
    status: str = "captured"


class AssignAgentRequest(BaseModel):
    agent_id: str


class ReasonRequest(BaseModel):
    reason: str = Field(min_length=1)


class OnboardAgentRequest(BaseModel):
    agent_code: str
    name: str | None = None
    phone: str | None = None
    email: str | None = None
    location: str | None = None


class DutyStatusRequest(BaseModel):
    duty_status: str


class AgentAccessRequest(BaseModel):
    admin_control: str


class RegisterShopRequest(BaseModel):
    name: str
    owner_id: str
    location: str | None = None


class ConfigureGatewayRequest(BaseModel):
    should_succeed: bool = True
    failure_reason: str = "Payment declined"


# ---------------------------------------------------------------------------
# Response schemas
# ---------------------------------------------------------------------------
class OrderIdResponse(BaseModel):
    order_id: str
    order_number: str


class AgentIdResponse(BaseModel):
    agent_id: str


class ShopIdResponse(BaseModel):
    shop_id: str


class StatusResponse(BaseModel):
    status: str


class AssignmentResponse(BaseModel):
    order_id: str
    assigned: bool
    agent_id: str | None = None
    agent_code: str | None = None
    agent_name: str | None = None
    agent_phone: str | None = None
    reason: str | None = None


class PaymentResponse(BaseModel):
    order_id: str
    paid: bool
    payment_id: str | None = None
    failure_reason: str | None = None
    assignment: AssignmentResponse | None = None


class StatusEntryResponse(BaseModel):
    status: str
    note: str | None = None
    recorded_at: datetime


class LineItemResponse(BaseModel):
    product_id: str
    name: str
    unit_price: float
    quantity: int


class OrderResponse(BaseModel):
    order_id: str
    order_number: str
    user_id: str
    shop_id: str
    status: str
    total_amount: float
    currency: str
    items: list[LineItemResponse]
    delivery_address: DeliveryAddressRequest | None = None
    assigned_agent_id: str | None = None
    assigned_agent_name: str | None = None
    assigned_agent_phone: str | None = None
    payment_id: str | None = None
    estimated_delivery_at: datetime | None = None
    status_history: list[StatusEntryResponse]


class AgentDashboardResponse(BaseModel):
    agent_id: str
    agent_code: str
    name: str | None = None
    duty_status: str
    admin_control: str
    active_order_id: str | None = None
    active_order_number: str | None = None
    assigned_count: int
    delivered_count: int
    failed_attempt_count: int
