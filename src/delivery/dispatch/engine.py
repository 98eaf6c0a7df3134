"""Assignment engine — picks one delivery agent for an order and reserves them.

Selection is round-robin over eligible agents (active and Available) in
agent-code order, preferring agents at the shop's location. Reservation
stages the agent, the order and the dispatch board on the same unit of
work, so they commit together or not at all.

The candidate is re-read before it is reserved. If someone else took the
agent in the meantime, the next candidate from the remaining pool is tried,
up to ``MAX_ASSIGNMENT_ATTEMPTS``.
"""

from dataclasses import dataclass

import structlog
from protean.exceptions import ObjectNotFoundError
from protean.utils.globals import current_domain

from delivery.agent.agent import DeliveryAgent, ReleaseOutcome
from delivery.dispatch.board import DispatchBoard, load_board
from delivery.domain import setting
from delivery.exceptions import AssignmentFailed, ConflictError
from delivery.order.lifecycle import LifecycleEvent
from delivery.order.order import Order
from delivery.shop.shop import Shop

logger = structlog.get_logger(__name__)


@dataclass(frozen=True)
class AssignmentResult:
    """Outcome of a dispatch attempt."""

    order_id: str
    assigned: bool
    agent_id: str | None = None
    agent_code: str | None = None
    agent_name: str | None = None
    agent_phone: str | None = None
    reason: str | None = None

    @classmethod
    def bound(cls, order: Order, agent: DeliveryAgent | None = None) -> "AssignmentResult":
        return cls(
            order_id=str(order.id),
            assigned=True,
            agent_id=str(order.assigned_agent_id),
            agent_code=agent.agent_code if agent else None,
            agent_name=order.assigned_agent_name,
            agent_phone=order.assigned_agent_phone,
        )

    @classmethod
    def unassigned(cls, order_id: str, reason: str) -> "AssignmentResult":
        return cls(order_id=str(order_id), assigned=False, reason=reason)


class AssignmentEngine:
    def __init__(self, max_attempts: int | None = None) -> None:
        self.max_attempts = max_attempts or setting("MAX_ASSIGNMENT_ATTEMPTS", 3)

    # -------------------------------------------------------------------
    # Automatic dispatch
    # -------------------------------------------------------------------
    def assign(self, order: Order) -> AssignmentResult:
        """Reserve the next eligible agent for ``order``.

        Raises ``AssignmentFailed`` when nobody is eligible and
        ``ConflictError`` when every attempt lost its candidate.
        """
        if not order.accepts(LifecycleEvent.ASSIGNMENT_SUCCEEDED):
            return AssignmentResult.bound(order, self._agent_or_none(order.assigned_agent_id))

        pool = self._pool_for(order)
        if not pool:
            raise AssignmentFailed(str(order.id))

        board = load_board()
        agent_repo = current_domain.repository_for(DeliveryAgent)
        for attempt in range(1, self.max_attempts + 1):
            if not pool:
                raise AssignmentFailed(str(order.id))

            index = board.next_index(len(pool))
            candidate = agent_repo.get(pool[index].id)
            if not candidate.is_eligible:
                logger.warning(
                    "Dispatch candidate no longer eligible",
                    order_id=str(order.id),
                    agent_code=candidate.agent_code,
                    attempt=attempt,
                )
                pool = [a for a in pool if a.id != candidate.id]
                continue

            self._reserve(order, candidate, board, index)
            logger.info(
                "Order assigned",
                order_id=str(order.id),
                order_number=order.order_number,
                agent_code=candidate.agent_code,
                attempt=attempt,
            )
            return AssignmentResult.bound(order, candidate)

        raise ConflictError(str(order.id), self.max_attempts)

    # -------------------------------------------------------------------
    # Admin override
    # -------------------------------------------------------------------
    def assign_to(self, order: Order, agent: DeliveryAgent) -> AssignmentResult:
        """Bind a chosen agent through the same reservation path."""
        if not order.accepts(LifecycleEvent.ASSIGNMENT_SUCCEEDED):
            # Same agent again is a replay; a different one is rejected by the order
            order.bind_agent(str(agent.id), agent.name, agent.phone)
            return AssignmentResult.bound(order, agent)

        if not agent.is_eligible:
            raise AssignmentFailed(str(order.id), reason=f"Agent {agent.agent_code} is not available for assignment")

        board = load_board()
        self._reserve(order, agent, board, board.cursor)
        logger.info(
            "Order assigned by admin",
            order_id=str(order.id),
            order_number=order.order_number,
            agent_code=agent.agent_code,
        )
        return AssignmentResult.bound(order, agent)

    # -------------------------------------------------------------------
    # Release
    # -------------------------------------------------------------------
    def release(self, agent_id: str, order_id: str, outcome: str = ReleaseOutcome.DELIVERED.value) -> bool:
        """Free the agent of ``order_id``; Available again only if idle."""
        agent = self._agent_or_none(agent_id)
        if agent is None:
            logger.warning("Release for unknown agent", agent_id=str(agent_id), order_id=str(order_id))
            return False

        remaining = current_domain.repository_for(Order).active_for_agent(str(agent_id), exclude_order_id=order_id)
        released = agent.release(str(order_id), [str(o.id) for o in remaining], outcome=outcome)
        current_domain.repository_for(DeliveryAgent).add(agent)
        logger.info(
            "Agent released" if released else "Agent still holds orders",
            agent_code=agent.agent_code,
            order_id=str(order_id),
            remaining=len(remaining),
        )
        return released

    # -------------------------------------------------------------------
    # Internals
    # -------------------------------------------------------------------
    def _pool_for(self, order: Order) -> list[DeliveryAgent]:
        pool = current_domain.repository_for(DeliveryAgent).eligible()
        location = self._shop_location(order.shop_id)
        if location:
            nearby = [a for a in pool if a.location == location]
            if nearby:
                return nearby
        return pool

    def _shop_location(self, shop_id) -> str | None:
        try:
            return current_domain.repository_for(Shop).get(shop_id).location
        except ObjectNotFoundError:
            return None

    def _agent_or_none(self, agent_id) -> DeliveryAgent | None:
        if not agent_id:
            return None
        try:
            return current_domain.repository_for(DeliveryAgent).get(agent_id)
        except ObjectNotFoundError:
            return None

    def _reserve(self, order: Order, agent: DeliveryAgent, board: DispatchBoard, index: int) -> None:
        agent.reserve(str(order.id), order.order_number)
        order.bind_agent(str(agent.id), agent.name, agent.phone)
        board.advance(index)

        current_domain.repository_for(DeliveryAgent).add(agent)
        current_domain.repository_for(Order).add(order)
        current_domain.repository_for(DispatchBoard).add(board)
