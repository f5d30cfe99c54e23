"""Time-boxed undo for committed moves.

An UndoHandle remembers the values a move overwrote. Reverting replays them
as an ordinary UpdatePayload through the same commit callable that moves
use, so a revert is just another update.
"""

import time
from enum import Enum
from typing import Any, Callable, Dict, Optional

import structlog

from taskboard.models import UpdatePayload

logger = structlog.get_logger(__name__)

DEFAULT_UNDO_SECONDS = 3.0

Commit = Callable[[UpdatePayload], None]
Clock = Callable[[], float]


class HandleState(Enum):
    """Lifecycle of an undo handle."""

    ARMED = "armed"
    REVERTED = "reverted"
    EXPIRED = "expired"
    DISMISSED = "dismissed"


class UndoHandle:
    """One-shot reversal of a single committed move.

    Attributes:
        payload: The diff that restores the pre-move values
        committed: The diff that was committed by the move
        expires_at: Clock reading after which the handle is inert
    """

    def __init__(
        self,
        payload: UpdatePayload,
        committed: UpdatePayload,
        commit: Commit,
        expires_at: float,
        clock: Clock,
    ):
        self.payload = payload
        self.committed = committed
        self.expires_at = expires_at
        self._commit = commit
        self._clock = clock
        self._state = HandleState.ARMED

    @property
    def task_id(self) -> int:
        return self.payload.task_id

    @property
    def state(self) -> HandleState:
        if self._state is HandleState.ARMED and self._clock() >= self.expires_at:
            self._state = HandleState.EXPIRED
            logger.debug("undo_expired", task_id=self.task_id)
        return self._state

    @property
    def is_active(self) -> bool:
        return self.state is HandleState.ARMED

    def revert(self) -> bool:
        """Restore the pre-move values.

        Returns:
            True if the revert was committed, False if the handle is inert

        Raises:
            PersistenceFailure: If the commit is rejected; the handle stays
                               armed so the caller may retry in the window
        """
        if not self.is_active:
            logger.info("undo_ignored", task_id=self.task_id, state=self._state.value)
            return False

        self._commit(self.payload)
        self._state = HandleState.REVERTED
        logger.info("undo_reverted", task_id=self.task_id, fields=sorted(self.payload.changes))
        return True

    def dismiss(self) -> None:
        """Make the handle inert without reverting."""
        if self.is_active:
            self._state = HandleState.DISMISSED


class UndoCoordinator:
    """Arms undo handles for committed moves.

    Args:
        commit: Callable used both for moves and for reverts
        ttl_seconds: How long a handle stays armed
        clock: Monotonic clock, injectable for tests
    """

    def __init__(
        self,
        commit: Commit,
        ttl_seconds: float = DEFAULT_UNDO_SECONDS,
        clock: Optional[Clock] = None,
    ):
        self.commit = commit
        self.ttl_seconds = ttl_seconds
        self.clock = clock or time.monotonic

    def arm(self, prior_fields: Dict[str, Any], committed_diff: UpdatePayload) -> UndoHandle:
        """Capture the values a committed diff overwrote.

        Args:
            prior_fields: Pre-move values, at least one per field in the diff
            committed_diff: The diff that was committed

        Returns:
            A fresh, independent UndoHandle

        Raises:
            ValueError: If prior_fields misses a field of the diff
        """
        missing = [name for name in committed_diff.changes if name not in prior_fields]
        if missing:
            raise ValueError(f"Prior values missing for fields: {', '.join(sorted(missing))}")

        restore = UpdatePayload(
            task_id=committed_diff.task_id,
            changes={name: prior_fields[name] for name in committed_diff.changes},
        )
        return UndoHandle(
            payload=restore,
            committed=committed_diff,
            commit=self.commit,
            expires_at=self.clock() + self.ttl_seconds,
            clock=self.clock,
        )
