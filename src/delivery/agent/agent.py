"""DeliveryAgent aggregate — a delivery partner and their availability.

Duty status is the agent's own switch between Available and Not Available;
Busy is entered only when the dispatch engine reserves the agent for an
order and left only when the agent holds no active order. The admin
control flag decides whether the agent may receive orders at all.
"""

from datetime import UTC, datetime
from enum import Enum

from protean import atomic_change, invariant
from protean.exceptions import ValidationError
from protean.fields import DateTime, Identifier, String

from delivery.agent.events import (
    AgentAccessChanged,
    AgentDutyChanged,
    AgentOnboarded,
    AgentReleased,
    AgentReserved,
)
from delivery.domain import delivery


class DutyStatus(Enum):
    AVAILABLE = "Available"
    BUSY = "Busy"
    NOT_AVAILABLE = "Not Available"


class AdminControl(Enum):
    ACTIVE = "active"
    INACTIVE = "inactive"


class ReleaseOutcome(Enum):
    DELIVERED = "delivered"
    FAILED_ATTEMPT = "failed_attempt"
    CANCELLED = "cancelled"


DEFAULT_AGENT_NAME = "Delivery Partner"
DEFAULT_AGENT_PHONE = "No contact"


@delivery.aggregate
class DeliveryAgent:
    agent_code = String(required=True, max_length=100, unique=True)
    name = String(max_length=150, default=DEFAULT_AGENT_NAME)
    phone = String(max_length=20, default=DEFAULT_AGENT_PHONE)
    email = String(max_length=254)
    location = String(max_length=100)
    duty_status = String(
        max_length=20,
        choices=DutyStatus,
        default=DutyStatus.NOT_AVAILABLE.value,
    )
    admin_control = String(
        max_length=10,
        choices=AdminControl,
        default=AdminControl.INACTIVE.value,
    )
    current_order_id = Identifier()
    onboarded_at = DateTime()
    updated_at = DateTime()

    @invariant.post
    def busy_agent_holds_an_order(self):
        if self.duty_status == DutyStatus.BUSY.value and not self.current_order_id:
            raise ValidationError({"current_order_id": ["A busy agent must hold an order"]})

    @classmethod
    def onboard(
        cls,
        agent_code: str,
        name: str | None = None,
        phone: str | None = None,
        email: str | None = None,
        location: str | None = None,
    ) -> "DeliveryAgent":
        """Register a delivery partner. New agents start inactive and off duty."""
        now = datetime.now(UTC)
        agent = cls(
            agent_code=agent_code,
            name=name or DEFAULT_AGENT_NAME,
            phone=phone or DEFAULT_AGENT_PHONE,
            email=email,
            location=location,
            onboarded_at=now,
            updated_at=now,
        )
        agent.raise_(
            AgentOnboarded(
                agent_id=str(agent.id),
                agent_code=agent.agent_code,
                name=agent.name,
                location=location,
                onboarded_at=now,
            )
        )
        return agent

    @property
    def is_eligible(self) -> bool:
        return self.admin_control == AdminControl.ACTIVE.value and self.duty_status == DutyStatus.AVAILABLE.value

    # -------------------------------------------------------------------
    # Dispatch
    # -------------------------------------------------------------------
    def reserve(self, order_id: str, order_number: str | None = None) -> None:
        if not self.is_eligible:
            raise ValidationError({"duty_status": [f"Agent {self.agent_code} is not available for assignment"]})

        now = datetime.now(UTC)
        with atomic_change(self):
            self.duty_status = DutyStatus.BUSY.value
            self.current_order_id = order_id
            self.updated_at = now
        self.raise_(
            AgentReserved(
                agent_id=str(self.id),
                order_id=str(order_id),
                order_number=order_number,
                reserved_at=now,
            )
        )

    def release(
        self,
        order_id: str,
        remaining_order_ids: list[str] | None = None,
        outcome: str = ReleaseOutcome.DELIVERED.value,
    ) -> bool:
        """Finish ``order_id``. Back to Available only if nothing else is held.

        Returns True when the agent became Available. Every release of a
        busy agent raises ``AgentReleased`` so the outcome is on record even
        when the agent stays Busy with another order.
        """
        if self.duty_status != DutyStatus.BUSY.value:
            return False

        outcome = ReleaseOutcome(outcome).value
        now = datetime.now(UTC)
        with atomic_change(self):
            if remaining_order_ids:
                self.current_order_id = remaining_order_ids[0]
            else:
                self.duty_status = DutyStatus.AVAILABLE.value
                self.current_order_id = None
            self.updated_at = now
        self.raise_(
            AgentReleased(
                agent_id=str(self.id),
                order_id=str(order_id),
                outcome=outcome,
                duty_status=self.duty_status,
                current_order_id=self.current_order_id,
                released_at=now,
            )
        )
        return self.duty_status == DutyStatus.AVAILABLE.value

    # -------------------------------------------------------------------
    # Self service
    # -------------------------------------------------------------------
    def change_duty(self, new_status: str) -> bool:
        target = DutyStatus(new_status)
        current = DutyStatus(self.duty_status)
        if target == DutyStatus.BUSY:
            raise ValidationError({"duty_status": ["Busy is set only by order assignment"]})
        if current == DutyStatus.BUSY:
            raise ValidationError({"duty_status": ["Cannot change duty status while on a delivery"]})
        if target == current:
            return False

        now = datetime.now(UTC)
        self.duty_status = target.value
        self.updated_at = now
        self.raise_(
            AgentDutyChanged(
                agent_id=str(self.id),
                previous_status=current.value,
                new_status=target.value,
                changed_at=now,
            )
        )
        return True

    # -------------------------------------------------------------------
    # Administration
    # -------------------------------------------------------------------
    def set_access(self, admin_control: str) -> bool:
        target = AdminControl(admin_control)
        if self.admin_control == target.value:
            return False

        now = datetime.now(UTC)
        self.admin_control = target.value
        self.updated_at = now
        self.raise_(AgentAccessChanged(agent_id=str(self.id), admin_control=target.value, changed_at=now))
        return True
