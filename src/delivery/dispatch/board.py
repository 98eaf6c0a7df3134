"""DispatchBoard aggregate — the process-wide round-robin cursor.

There is exactly one board. It is written in the same unit of work as the
agent reservation, so two dispatches racing on stale cursors collide on
the board's version instead of silently picking the same slot. The board
is seeded with ``ensure_board`` before any dispatch runs, so that collision
is always a version conflict and never two competing first writes.
"""

import structlog
from protean.exceptions import ObjectNotFoundError, ValidationError
from protean.fields import Integer
from protean.utils.globals import current_domain

from delivery.domain import delivery

BOARD_ID = "dispatch-board"

logger = structlog.get_logger(__name__)


@delivery.aggregate
class DispatchBoard:
    cursor = Integer(default=-1)
    assignments_made = Integer(default=0, min_value=0)

    def next_index(self, pool_size: int) -> int:
        """Slot after the cursor, wrapped to the size of the current pool."""
        return (self.cursor + 1) % pool_size

    def advance(self, index: int) -> None:
        self.cursor = index
        self.assignments_made += 1


def _stored_board(repo) -> DispatchBoard | None:
    try:
        return repo.get(BOARD_ID)
    except ObjectNotFoundError:
        return None


def ensure_board() -> DispatchBoard:
    """Persist the board if it does not exist yet and return the stored copy."""
    repo = current_domain.repository_for(DispatchBoard)
    board = _stored_board(repo)
    if board is not None:
        return board

    try:
        repo.add(DispatchBoard(id=BOARD_ID))
    except ValidationError:
        # Another dispatcher seeded it between our read and write
        logger.info("Dispatch board already seeded", board_id=BOARD_ID)
    return repo.get(BOARD_ID)


def load_board() -> DispatchBoard:
    repo = current_domain.repository_for(DispatchBoard)
    board = _stored_board(repo)
    return board if board is not None else DispatchBoard(id=BOARD_ID)
