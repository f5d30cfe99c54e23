"""Position lookups over a collection of tasks.

Tasks are only ever ordered inside one explicit Partition; nothing here
compares keys of tasks from different partitions.
"""

from typing import Dict, Iterable, List, Optional

from taskboard.errors import KeyInvariantViolation, MissingPositionKey
from taskboard.models import Partition, Task
from taskboard.ordering import generate_position, is_valid_position


def key_of(task: Task) -> str:
    """Return the task's order key.

    Raises:
        MissingPositionKey: If the task has no usable key
    """
    key = task.position_key
    if not is_valid_position(key):
        raise MissingPositionKey(task.id, key)
    return key


def ordered_within_partition(tasks: Iterable[Task], partition: Partition) -> List[Task]:
    """Return the partition's tasks sorted by order key.

    The sort is stable, so tasks with equal keys keep their arrival order.
    """
    members = [task for task in tasks if partition.contains(task)]
    return sorted(members, key=key_of)


def assert_distinct_keys(ordered: List[Task]) -> None:
    """Fail loudly if two tasks of an ordered partition share a key."""
    seen: Dict[str, Optional[int]] = {}
    for task in ordered:
        key = key_of(task)
        if key in seen:
            raise KeyInvariantViolation(
                f"Tasks #{seen[key]} and #{task.id} share position key {key!r}"
            )
        seen[key] = task.id


def tail_key(tasks: Iterable[Task], partition: Partition) -> str:
    """Return a key that appends to the tail of the partition."""
    ordered = ordered_within_partition(tasks, partition)
    last = key_of(ordered[-1]) if ordered else None
    return generate_position(last, None)
