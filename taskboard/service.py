"""Move pipeline for the board.

BoardService keeps the in-memory view of the tasks and runs each move
through the same steps:

1. reconcile the request into an UpdatePayload;
2. apply the payload to the in-memory task;
3. commit it through the persistence callable;
4. on failure, restore the exact pre-move values and tell the user;
   on success, arm an undo handle and tell the user.

Rejected moves (InvalidMove) are logged and leave everything untouched.
"""

import os
from dataclasses import dataclass
from typing import Callable, Dict, List, Optional

import structlog

from taskboard.errors import InvalidMove, PersistenceFailure
from taskboard.migration import plan_migration
from taskboard.models import (
    PROJECT_ID,
    STATUS,
    MoveRequest,
    Partition,
    Status,
    Task,
    UpdatePayload,
)
from taskboard.positions import ordered_within_partition
from taskboard.reconciler import BoardReconciler
from taskboard.repository import BoardRepository
from taskboard.undo import DEFAULT_UNDO_SECONDS, Clock, UndoCoordinator, UndoHandle

logger = structlog.get_logger(__name__)

Notifier = Callable[[str, Optional[UndoHandle]], None]
Commit = Callable[[UpdatePayload], Optional[bool]]

FAILED_MOVE_MESSAGE = "Failed to move task"
NO_PROJECT_NAME = "No Project"


def undo_seconds_from_env() -> float:
    """Read the undo window from TASKBOARD_UNDO_SECONDS."""
    value = os.environ.get("TASKBOARD_UNDO_SECONDS")
    if not value:
        return DEFAULT_UNDO_SECONDS
    try:
        return float(value)
    except ValueError:
        logger.warning("invalid_undo_seconds", value=value)
        return DEFAULT_UNDO_SECONDS


def _ignore_notification(message: str, handle: Optional[UndoHandle]) -> None:
    pass


@dataclass
class MoveResult:
    """Outcome of a committed move."""

    payload: UpdatePayload
    message: str
    undo: UndoHandle


class BoardService:
    """Runs moves against the board and keeps memory and storage in step.

    Attributes:
        repository: Source of truth for tasks and projects
        tasks: In-memory tasks keyed by ID
    """

    def __init__(
        self,
        repository: BoardRepository,
        notifier: Optional[Notifier] = None,
        commit: Optional[Commit] = None,
        undo_seconds: Optional[float] = None,
        clock: Optional[Clock] = None,
    ):
        """Initialize BoardService.

        Args:
            repository: Board repository; its commit is used unless one is given
            notifier: Receives (message, undo handle) for the user
            commit: Persistence callable for payloads
            undo_seconds: Undo window. If None, uses TASKBOARD_UNDO_SECONDS or 3
            clock: Monotonic clock for undo expiry
        """
        self.repository = repository
        self.notifier = notifier or _ignore_notification
        self.persist = commit or repository.commit
        self.reconciler = BoardReconciler()
        if undo_seconds is None:
            undo_seconds = undo_seconds_from_env()
        self.undo = UndoCoordinator(self._commit, ttl_seconds=undo_seconds, clock=clock)
        self.tasks: Dict[int, Task] = {}
        self.reload()

    def reload(self) -> None:
        """Refresh the in-memory tasks from the repository."""
        self.tasks = {task.id: task for task in self.repository.get_all_tasks()}

    def partition(self, partition: Partition) -> List[Task]:
        """Return the in-memory tasks of a partition in board order."""
        return ordered_within_partition(self.tasks.values(), partition)

    # -------------------- moves --------------------

    def move(self, request: MoveRequest) -> Optional[MoveResult]:
        """Reconcile and commit a drag-and-drop move.

        Returns:
            MoveResult, or None if the move was rejected

        Raises:
            PersistenceFailure: If the commit failed; the task is rolled back
        """
        return self._run(
            lambda: self.reconciler.reconcile_move(self.tasks.values(), request)
        )

    def change_status(self, task_id: int, status: Status) -> Optional[MoveResult]:
        """Move a task to the tail of another status (menu action)."""
        return self._run(
            lambda: self.reconciler.change_status(self.tasks.values(), task_id, status)
        )

    def change_project(self, task_id: int, project_id: Optional[int]) -> Optional[MoveResult]:
        """Move a task to the tail of another project (menu action)."""
        return self._run(
            lambda: self.reconciler.change_project(self.tasks.values(), task_id, project_id)
        )

    def _run(self, reconcile: Callable[[], UpdatePayload]) -> Optional[MoveResult]:
        try:
            payload = reconcile()
        except InvalidMove as exc:
            logger.warning("move_rejected", task_id=exc.task_id, reason=exc.reason)
            return None
        return self._commit_move(payload)

    def _commit_move(self, payload: UpdatePayload) -> MoveResult:
        task = self.tasks[payload.task_id]
        prior = payload.snapshot(task)
        message = self.describe(prior, payload)

        try:
            self._commit(payload)
        except PersistenceFailure:
            self.notifier(FAILED_MOVE_MESSAGE, None)
            raise

        handle = self.undo.arm(prior, payload)
        logger.info("move_committed", task_id=payload.task_id, fields=sorted(payload.changes))
        self.notifier(message, handle)
        return MoveResult(payload=payload, message=message, undo=handle)

    def _commit(self, payload: UpdatePayload) -> None:
        """Apply a payload in memory and persist it, all or nothing."""
        task = self.tasks.get(payload.task_id)
        if task is None:
            raise PersistenceFailure(payload.task_id, f"Task #{payload.task_id} is not loaded")

        prior = payload.snapshot(task)
        payload.apply_to(task)
        try:
            if self.persist(payload) is False:
                raise PersistenceFailure(payload.task_id, "Commit was rejected")
        except Exception as exc:
            for name, value in prior.items():
                setattr(task, name, value)
            logger.error("commit_failed", task_id=payload.task_id, error=str(exc))
            logger.info("move_rolled_back", task_id=payload.task_id, fields=sorted(prior))
            if isinstance(exc, PersistenceFailure):
                raise
            raise PersistenceFailure(payload.task_id, str(exc)) from exc

    # -------------------- migration --------------------

    def migrate(self) -> int:
        """Assign position keys to tasks that lack one.

        Returns:
            Number of tasks migrated
        """
        payloads = plan_migration(self.tasks.values())
        for payload in payloads:
            self._commit(payload)
        if payloads:
            logger.info("tasks_migrated", count=len(payloads))
        return len(payloads)

    # -------------------- messages --------------------

    def describe(self, prior: Dict[str, object], payload: UpdatePayload) -> str:
        """Build the user-facing message for a move."""
        if STATUS in payload:
            old_status = prior[STATUS]
            new_status = payload[STATUS]
            if new_status == Status.TODO and old_status == Status.DONE:
                return "Task marked as incomplete"
            return f"Task moved to {new_status.label}"

        if PROJECT_ID in payload:
            old_name = self._project_name(prior[PROJECT_ID])
            new_name = self._project_name(payload[PROJECT_ID])
            return f"Task moved from {old_name} to {new_name}"

        return "Task reordered"

    def _project_name(self, project_id: object) -> str:
        if project_id is None:
            return NO_PROJECT_NAME
        project = self.repository.get_project(project_id)
        return project.name if project else NO_PROJECT_NAME
