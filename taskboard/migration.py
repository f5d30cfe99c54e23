"""Migration from the legacy integer order to fractional order keys.

The position key is the canonical order. The integer ``order`` field is
kept for older readers only:
- on save it is derived as the task's index within its partition;
- it is read once, to place tasks that have no valid key yet.

Migration never rewrites a valid key. Unkeyed tasks of a partition are
appended after its keyed tasks, in legacy order.
"""

from collections import defaultdict
from typing import Dict, Iterable, List

from taskboard.models import POSITION_KEY, Partition, Task, UpdatePayload
from taskboard.ordering import generate_position, generate_sequence, is_valid_position


def _by_partition(tasks: Iterable[Task]) -> Dict[Partition, List[Task]]:
    groups: Dict[Partition, List[Task]] = defaultdict(list)
    for task in tasks:
        groups[task.partition].append(task)
    return groups


def needs_migration(task: Task) -> bool:
    return not is_valid_position(task.position_key)


def derive_legacy_order(tasks: Iterable[Task]) -> Dict[int, int]:
    """Map each keyed task ID to its index within its partition."""
    legacy: Dict[int, int] = {}
    for members in _by_partition(tasks).values():
        keyed = sorted(
            (task for task in members if not needs_migration(task)),
            key=lambda task: task.position_key,
        )
        for index, task in enumerate(keyed):
            if task.id is not None:
                legacy[task.id] = index
    return legacy


def plan_migration(tasks: Iterable[Task]) -> List[UpdatePayload]:
    """Return one payload per task lacking a valid position key.

    Args:
        tasks: All tasks on the board

    Returns:
        Payloads assigning tail keys, in commit order
    """
    payloads: List[UpdatePayload] = []
    for members in _by_partition(tasks).values():
        pending = [task for task in members if needs_migration(task)]
        if not pending:
            continue

        pending.sort(key=lambda task: (task.order, task.created_at, task.id or 0))

        keyed = [task.position_key for task in members if not needs_migration(task)]
        if keyed:
            last = max(keyed)
            keys = []
            for _ in pending:
                last = generate_position(last, None)
                keys.append(last)
        else:
            keys = generate_sequence(len(pending))

        for task, key in zip(pending, keys):
            payloads.append(UpdatePayload(task_id=task.id, changes={POSITION_KEY: key}))
    return payloads
