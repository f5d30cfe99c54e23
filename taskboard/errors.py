"""Error types for taskboard.

Two families live here:
- BoardError and its subclasses are runtime conditions the board recovers
  from (a rejected drop, a failed commit).
- KeyInvariantViolation is a programming-contract defect. It derives from
  AssertionError and is never caught inside the package.
"""

from typing import Optional


class BoardError(Exception):
    """Base class for recoverable board errors."""


class InvalidMove(BoardError):
    """A move request that cannot be realized.

    Attributes:
        reason: Short machine-readable reason (self_drop, task_not_found,
               neighbor_not_found)
        task_id: ID of the dragged task
    """

    def __init__(self, reason: str, task_id: Optional[int] = None, detail: str = ""):
        self.reason = reason
        self.task_id = task_id
        message = f"Invalid move of task #{task_id}: {reason}"
        if detail:
            message = f"{message} ({detail})"
        super().__init__(message)


class PersistenceFailure(BoardError):
    """The persistence layer rejected a commit."""

    def __init__(self, task_id: Optional[int], message: str):
        self.task_id = task_id
        super().__init__(message)


class KeyInvariantViolation(AssertionError):
    """Order keys were used in a way that would corrupt ordering."""


class MissingPositionKey(KeyInvariantViolation):
    """A task was observed without a usable position key."""

    def __init__(self, task_id: Optional[int], key: Optional[str]):
        self.task_id = task_id
        self.key = key
        super().__init__(f"Task #{task_id} has no usable position key: {key!r}")
