"""Delivery bounded context — Campus Order Fulfillment and Agent Dispatch.

Tracks a campus order from checkout through payment, agent assignment and
hand-over to the student. The order carries its own status ledger, and
agent availability is kept in step with assignments by the dispatch engine
inside a single unit of work.
"""

from protean.domain import Domain

delivery = Domain(name="delivery")


def setting(name, default):
    """Read a value from the ``[custom]`` table of the domain config."""
    custom = delivery.config.get("custom") or {}
    return custom.get(name, default)
