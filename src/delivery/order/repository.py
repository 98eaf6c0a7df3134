"""Repository for the Order aggregate."""

from protean.exceptions import ObjectNotFoundError

from delivery.domain import delivery
from delivery.order.lifecycle import ACTIVE_ASSIGNMENT_STATUSES, OrderStatus
from delivery.order.order import Order


@delivery.repository(part_of=Order)
class OrderRepository:
    """Order lookups and the listings used by dispatch and the storefront."""

    def find_by_reference(self, reference: str) -> Order:
        """Resolve either the storage id or the human-readable order number."""
        by_number = self._dao.query.filter(order_number=reference).all().items
        if by_number:
            return by_number[0]
        try:
            return self.get(reference)
        except ObjectNotFoundError:
            raise ObjectNotFoundError(f"Order `{reference}` does not exist")

    def placed_by(self, user_id: str) -> list[Order]:
        orders = self._dao.query.filter(user_id=user_id).limit(None).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def for_shop(self, shop_id: str) -> list[Order]:
        orders = self._dao.query.filter(shop_id=shop_id).limit(None).all().items
        return sorted(orders, key=lambda o: o.created_at, reverse=True)

    def active_for_agent(self, agent_id: str, exclude_order_id: str | None = None) -> list[Order]:
        """Orders the agent currently holds, optionally ignoring one of them."""
        held = self._dao.query.filter(assigned_agent_id=agent_id).limit(None).all().items
        return [
            o
            for o in held
            if OrderStatus(o.status) in ACTIVE_ASSIGNMENT_STATUSES and str(o.id) != str(exclude_order_id)
        ]

    def awaiting_dispatch(self) -> list[Order]:
        """Paid orders still without an agent, oldest first."""
        waiting = self._dao.query.filter(status=OrderStatus.PENDING_DELIVERY.value).limit(None).all().items
        return sorted(waiting, key=lambda o: o.created_at)
