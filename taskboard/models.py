"""Core models for taskboard.

This module defines the core data structures for the board:
- Status: Enum for the three-state workflow
- Task: A dataclass representing a task card
- Project: A dataclass representing a project column
- Partition: The (status, project) pair a task is ordered within
- MoveRequest / DragSession: Input to move reconciliation
- UpdatePayload: The field diff produced by a move
- BoardData: Everything a storage backend persists
"""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Dict, Iterator, Optional


class Status(Enum):
    """Workflow status of a task."""

    ACTIVE = "active"
    TODO = "todo"
    DONE = "done"

    @property
    def label(self) -> str:
        return STATUS_LABELS[self]


STATUS_LABELS = {
    Status.ACTIVE: "Active",
    Status.TODO: "To Do",
    Status.DONE: "Done",
}

DEFAULT_PROJECT_COLOR = "#6B7280"

# Names of the task fields a move may touch
POSITION_KEY = "position_key"
STATUS = "status"
PROJECT_ID = "project_id"
COMPLETED = "completed"
EXCLUDED_FROM_ACTIVE_VIEW = "excluded_from_active_view"

MOVABLE_FIELDS = (POSITION_KEY, STATUS, PROJECT_ID, COMPLETED, EXCLUDED_FROM_ACTIVE_VIEW)


@dataclass
class Task:
    """Task model representing a single card on the board.

    Attributes:
        id: Unique identifier for the task (auto-generated if None)
        title: Task description/title
        status: Current workflow status
        project_id: Owning project, None for the "no project" bucket
        position_key: Order key within the task's partition
        completed: Forced by transitions into and out of DONE
        excluded_from_active_view: Hides the task from the active view
        order: Legacy integer order, derived from position_key on save
        created_at: Timestamp when the task was created
    """

    title: str
    status: Status = Status.TODO
    project_id: Optional[int] = None
    position_key: Optional[str] = None
    completed: bool = False
    excluded_from_active_view: bool = False
    order: int = 0
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)

    @property
    def partition(self) -> "Partition":
        return Partition(self.status, self.project_id)


@dataclass
class Project:
    """Project model; projects are ordered by their own display_order keys."""

    name: str
    color: str = DEFAULT_PROJECT_COLOR
    display_order: Optional[str] = None
    id: Optional[int] = None
    created_at: datetime = field(default_factory=datetime.now)


@dataclass(frozen=True)
class Partition:
    """An independently ordered sub-list of tasks.

    Keys are only comparable between tasks of the same partition.
    """

    status: Status
    project_id: Optional[int] = None

    def contains(self, task: Task) -> bool:
        return task.status == self.status and task.project_id == self.project_id


@dataclass(frozen=True)
class MoveRequest:
    """A normalized drop: where the dragged task should end up.

    Attributes:
        dragged_task_id: The task being moved
        destination: Partition the task should end up in
        neighbor_task_id: Task the drop landed on; None appends to the tail
        insert_after: Place after the neighbor instead of before it
    """

    dragged_task_id: int
    destination: Partition
    neighbor_task_id: Optional[int] = None
    insert_after: bool = False


@dataclass(frozen=True)
class DragSession:
    """Caller-owned state of one drag gesture."""

    dragged_task_id: int

    def drop(
        self,
        destination: Partition,
        neighbor_task_id: Optional[int] = None,
        insert_after: bool = False,
    ) -> MoveRequest:
        return MoveRequest(
            dragged_task_id=self.dragged_task_id,
            destination=destination,
            neighbor_task_id=neighbor_task_id,
            insert_after=insert_after,
        )


@dataclass
class UpdatePayload:
    """Minimal field diff for one task, committed as a single write.

    Attributes:
        task_id: Task the diff applies to
        changes: Mapping of field name to new value
    """

    task_id: int
    changes: Dict[str, Any] = field(default_factory=dict)

    def __contains__(self, name: object) -> bool:
        return name in self.changes

    def __getitem__(self, name: str) -> Any:
        return self.changes[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self.changes)

    def get(self, name: str, default: Any = None) -> Any:
        return self.changes.get(name, default)

    @property
    def position_key(self) -> Optional[str]:
        return self.changes.get(POSITION_KEY)

    def snapshot(self, task: Task) -> Dict[str, Any]:
        """Return the task's current values for every field in this diff."""
        return {name: getattr(task, name) for name in self.changes}

    def apply_to(self, task: Task) -> None:
        """Write every field of the diff onto the task."""
        for name, value in self.changes.items():
            setattr(task, name, value)


@dataclass
class BoardData:
    """Tasks and projects as persisted by a storage backend."""

    tasks: Dict[int, Task] = field(default_factory=dict)
    projects: Dict[int, Project] = field(default_factory=dict)
