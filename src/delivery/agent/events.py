"""Delivery agent domain events."""

from protean.fields import DateTime, Identifier, String

from delivery.domain import delivery


@delivery.event(part_of="DeliveryAgent")
class AgentOnboarded:
    """A delivery partner joined the registry, waiting for admin approval."""

    __version__ = 1

    agent_id = Identifier(required=True)
    agent_code = String(required=True)
    name = String(required=True)
    location = String()
    onboarded_at = DateTime(required=True)


@delivery.event(part_of="DeliveryAgent")
class AgentReserved:
    """The agent was made Busy for an order."""

    __version__ = 1

    agent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    order_number = String()
    reserved_at = DateTime(required=True)


@delivery.event(part_of="DeliveryAgent")
class AgentReleased:
    """The agent is done with one order.

    ``duty_status`` is where the agent ended up: Available when nothing
    else is held, otherwise still Busy with ``current_order_id``.
    """

    __version__ = 1

    agent_id = Identifier(required=True)
    order_id = Identifier(required=True)
    outcome = String(required=True)
    duty_status = String(required=True)
    current_order_id = Identifier()
    released_at = DateTime(required=True)


@delivery.event(part_of="DeliveryAgent")
class AgentDutyChanged:
    __version__ = 1

    agent_id = Identifier(required=True)
    previous_status = String(required=True)
    new_status = String(required=True)
    changed_at = DateTime(required=True)


@delivery.event(part_of="DeliveryAgent")
class AgentAccessChanged:
    """An admin enabled or disabled the agent."""

    __version__ = 1

    agent_id = Identifier(required=True)
    admin_control = String(required=True)
    changed_at = DateTime(required=True)
