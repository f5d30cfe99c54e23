"""Move reconciliation.

Turns a MoveRequest into the smallest UpdatePayload that realizes it: a new
position key, plus status and project only when they actually change. Pure
reordering, status moves, project moves and combined moves all run through
the same steps; only the destination partition differs.
"""

from typing import Any, Dict, Iterable, List, Optional

import structlog

from taskboard.errors import InvalidMove
from taskboard.models import (
    COMPLETED,
    EXCLUDED_FROM_ACTIVE_VIEW,
    POSITION_KEY,
    PROJECT_ID,
    STATUS,
    MoveRequest,
    Partition,
    Status,
    Task,
    UpdatePayload,
)
from taskboard.ordering import generate_position
from taskboard.positions import assert_distinct_keys, key_of, ordered_within_partition

logger = structlog.get_logger(__name__)

TERMINAL_STATUS = Status.DONE
ACTIVE_STATUS = Status.ACTIVE


def status_side_effects(old: Status, new: Status) -> Dict[str, Any]:
    """Return the fields forced by a status transition.

    Args:
        old: Status before the move
        new: Status after the move

    Returns:
        Field values that must be committed together with the new status
    """
    effects: Dict[str, Any] = {}
    if old == new:
        return effects
    if new == TERMINAL_STATUS:
        effects[COMPLETED] = True
    elif old == TERMINAL_STATUS:
        effects[COMPLETED] = False
    if new == ACTIVE_STATUS:
        effects[EXCLUDED_FROM_ACTIVE_VIEW] = False
    return effects


class BoardReconciler:
    """Computes update payloads for drag-and-drop moves."""

    def reconcile_move(self, tasks: Iterable[Task], request: MoveRequest) -> UpdatePayload:
        """Compute the diff that realizes a move.

        Args:
            tasks: Current tasks on the board
            request: The normalized drop

        Returns:
            UpdatePayload for the dragged task

        Raises:
            InvalidMove: On a self-drop, a missing dragged task, or a neighbor
                        that is not in the destination partition
            KeyInvariantViolation: If a destination key is missing or
                                  shared by two tasks
        """
        task_id = request.dragged_task_id
        if request.neighbor_task_id is not None and request.neighbor_task_id == task_id:
            raise InvalidMove("self_drop", task_id)

        tasks = list(tasks)
        dragged = _find(tasks, task_id)
        if dragged is None:
            raise InvalidMove("task_not_found", task_id)

        destination = request.destination
        siblings = [
            task for task in ordered_within_partition(tasks, destination) if task.id != task_id
        ]
        assert_distinct_keys(siblings)

        index = self._insertion_index(siblings, request)
        before_key = key_of(siblings[index - 1]) if index > 0 else None
        after_key = key_of(siblings[index]) if index < len(siblings) else None
        new_key = generate_position(before_key, after_key)

        logger.debug(
            "move_reconciled",
            task_id=task_id,
            destination_status=destination.status.value,
            destination_project_id=destination.project_id,
            index=index,
            siblings=len(siblings),
            before_key=before_key,
            after_key=after_key,
            new_key=new_key,
        )

        changes: Dict[str, Any] = {POSITION_KEY: new_key}
        if destination.status != dragged.status:
            changes[STATUS] = destination.status
            changes.update(status_side_effects(dragged.status, destination.status))
        if destination.project_id != dragged.project_id:
            changes[PROJECT_ID] = destination.project_id

        return UpdatePayload(task_id=task_id, changes=changes)

    def change_status(self, tasks: Iterable[Task], task_id: int, status: Status) -> UpdatePayload:
        """Move a task to the tail of another status in its own project."""
        tasks = list(tasks)
        dragged = _find(tasks, task_id)
        if dragged is None:
            raise InvalidMove("task_not_found", task_id)
        request = MoveRequest(task_id, Partition(status, dragged.project_id))
        return self.reconcile_move(tasks, request)

    def change_project(
        self, tasks: Iterable[Task], task_id: int, project_id: Optional[int]
    ) -> UpdatePayload:
        """Move a task to the tail of another project, keeping its status."""
        tasks = list(tasks)
        dragged = _find(tasks, task_id)
        if dragged is None:
            raise InvalidMove("task_not_found", task_id)
        request = MoveRequest(task_id, Partition(dragged.status, project_id))
        return self.reconcile_move(tasks, request)

    @staticmethod
    def _insertion_index(siblings: List[Task], request: MoveRequest) -> int:
        if request.neighbor_task_id is None:
            return len(siblings)

        for position, task in enumerate(siblings):
            if task.id == request.neighbor_task_id:
                index = position + 1 if request.insert_after else position
                return max(0, min(index, len(siblings)))

        raise InvalidMove(
            "neighbor_not_found",
            request.dragged_task_id,
            f"task #{request.neighbor_task_id} is not in the destination partition",
        )


def _find(tasks: Iterable[Task], task_id: int) -> Optional[Task]:
    for task in tasks:
        if task.id == task_id:
            return task
    return None
