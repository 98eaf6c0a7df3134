"""Who may see or drive an order.

Every caller acts as a principal: a role plus the id of the student, shop
or agent it speaks for. Admins see and override everything.
"""

from dataclasses import dataclass
from enum import Enum

from delivery.exceptions import UnauthorizedError


class Role(Enum):
    STUDENT = "student"
    SHOPKEEPER = "shopkeeper"
    AGENT = "agent"
    ADMIN = "admin"


@dataclass(frozen=True)
class Principal:
    role: Role
    subject_id: str | None = None

    @classmethod
    def of(cls, role: str | None, subject_id: str | None = None) -> "Principal":
        try:
            return cls(role=Role(role), subject_id=str(subject_id) if subject_id else None)
        except ValueError as exc:
            raise UnauthorizedError(f"Unknown role: {role}") from exc

    @property
    def is_admin(self) -> bool:
        return self.role == Role.ADMIN

    def is_agent(self, agent_id) -> bool:
        return self.role == Role.AGENT and agent_id is not None and self.subject_id == str(agent_id)


def can_view_order(principal: Principal, order) -> bool:
    if principal.is_admin:
        return True
    if principal.role == Role.STUDENT:
        return principal.subject_id == str(order.user_id)
    if principal.role == Role.SHOPKEEPER:
        return principal.subject_id == str(order.shop_id)
    return principal.is_agent(order.assigned_agent_id)


def ensure_can_view(principal: Principal, order) -> None:
    if not can_view_order(principal, order):
        raise UnauthorizedError(f"Not allowed to view order {order.order_number}")


def ensure_bound_agent(principal: Principal, order) -> None:
    if not principal.is_agent(order.assigned_agent_id):
        raise UnauthorizedError(f"Only the agent assigned to order {order.order_number} may update it")


def ensure_admin_or_bound_agent(principal: Principal, order) -> None:
    if not (principal.is_admin or principal.is_agent(order.assigned_agent_id)):
        raise UnauthorizedError(f"Only an admin or the assigned agent may change order {order.order_number}")


def ensure_admin(principal: Principal) -> None:
    if not principal.is_admin:
        raise UnauthorizedError("Admin role required")


def ensure_self_or_admin(principal: Principal, agent) -> None:
    if not (principal.is_admin or principal.is_agent(agent.id)):
        raise UnauthorizedError(f"Not allowed to change agent {agent.agent_code}")


def ensure_owner_or_admin(principal: Principal, order) -> None:
    owns = principal.role == Role.STUDENT and principal.subject_id == str(order.user_id)
    if not (principal.is_admin or owns):
        raise UnauthorizedError(f"Only the student who placed order {order.order_number} may pay for it")
