"""Board repository for managing tasks and projects.

This module provides a high-level BoardRepository class on top of the
storage layer. It creates, reads, edits and deletes tasks and projects, and
it is the commit boundary for moves: ``apply`` writes a whole UpdatePayload
in a single save or nothing at all.
"""

from typing import Any, Dict, List, Optional

import structlog

from taskboard.errors import InvalidMove, PersistenceFailure
from taskboard.models import (
    DEFAULT_PROJECT_COLOR,
    MOVABLE_FIELDS,
    PROJECT_ID,
    STATUS,
    Partition,
    Project,
    Status,
    Task,
    UpdatePayload,
)
from taskboard.ordering import generate_position
from taskboard.positions import ordered_within_partition, tail_key
from taskboard.storage import JsonStorage, Storage

logger = structlog.get_logger(__name__)


class BoardRepository:
    """Repository for managing the board with a storage backend.

    Attributes:
        storage: Storage backend for persisting the board
    """

    def __init__(self, storage: Optional[Storage] = None):
        """Initialize BoardRepository with a storage backend.

        Args:
            storage: Storage implementation to use. If None, uses JsonStorage
                    with default file path.
        """
        self.storage = storage or JsonStorage()

    # -------------------- tasks --------------------

    def create_task(
        self,
        title: str,
        status: Status = Status.TODO,
        project_id: Optional[int] = None,
    ) -> Task:
        """Create a new task at the tail of its partition.

        Args:
            title: Task title/description
            status: Initial status (default: TODO)
            project_id: Owning project, None for no project

        Returns:
            The created Task object with assigned ID and position key

        Raises:
            ValueError: If the project doesn't exist
        """
        data = self.storage.load()
        if project_id is not None and project_id not in data.projects:
            raise ValueError(f"Project with ID {project_id} does not exist")

        next_id = max(data.tasks.keys(), default=0) + 1
        partition = Partition(status, project_id)

        task = Task(
            id=next_id,
            title=title,
            status=status,
            project_id=project_id,
            position_key=tail_key(data.tasks.values(), partition),
            completed=status == Status.DONE,
        )

        data.tasks[next_id] = task
        self.storage.save(data)

        return task

    def get_all_tasks(self) -> List[Task]:
        """Get all tasks, sorted by ID."""
        tasks = self.storage.load().tasks
        return [tasks[task_id] for task_id in sorted(tasks.keys())]

    def get_partition(self, partition: Partition) -> List[Task]:
        """Get the tasks of one partition in board order."""
        return ordered_within_partition(self.get_all_tasks(), partition)

    def get_task(self, task_id: int) -> Optional[Task]:
        """Get a specific task by ID.

        Returns:
            Task object if found, None otherwise
        """
        return self.storage.load().tasks.get(task_id)

    def rename_task(self, task_id: int, title: str) -> Optional[Task]:
        """Change a task's title. Its position is left untouched.

        Returns:
            Updated Task object if found, None if task doesn't exist
        """
        data = self.storage.load()
        task = data.tasks.get(task_id)
        if task is None:
            return None

        task.title = title
        self.storage.save(data)
        return task

    def delete_task(self, task_id: int) -> bool:
        """Delete a task by ID.

        Returns:
            True if task was deleted, False if task didn't exist
        """
        data = self.storage.load()

        if task_id not in data.tasks:
            return False

        del data.tasks[task_id]
        self.storage.save(data)

        return True

    def apply(self, task_id: int, changes: Dict[str, Any]) -> Task:
        """Commit a move diff atomically.

        Every field is validated before anything is written, and the board is
        saved once.

        Args:
            task_id: Task to update
            changes: Field name to new value

        Returns:
            The updated Task object

        Raises:
            PersistenceFailure: If the task or a referenced project doesn't
                               exist, a field is not movable, or the write fails
        """
        unknown = [name for name in changes if name not in MOVABLE_FIELDS]
        if unknown:
            raise PersistenceFailure(task_id, f"Fields cannot be moved: {', '.join(unknown)}")

        try:
            data = self.storage.load()
        except (OSError, ValueError) as exc:
            raise PersistenceFailure(task_id, f"Could not load board: {exc}") from exc

        task = data.tasks.get(task_id)
        if task is None:
            raise PersistenceFailure(task_id, f"Task with ID {task_id} does not exist")

        project_id = changes.get(PROJECT_ID)
        if project_id is not None and project_id not in data.projects:
            raise PersistenceFailure(task_id, f"Project with ID {project_id} does not exist")
        if STATUS in changes and not isinstance(changes[STATUS], Status):
            raise PersistenceFailure(task_id, f"Invalid status: {changes[STATUS]!r}")

        for name, value in changes.items():
            setattr(task, name, value)

        try:
            self.storage.save(data)
        except OSError as exc:
            raise PersistenceFailure(task_id, f"Could not save board: {exc}") from exc

        logger.debug("diff_applied", task_id=task_id, fields=sorted(changes))
        return task

    def commit(self, payload: UpdatePayload) -> None:
        """Commit an UpdatePayload; the signature the move pipeline expects."""
        self.apply(payload.task_id, payload.changes)

    # -------------------- projects --------------------

    def create_project(self, name: str, color: str = DEFAULT_PROJECT_COLOR) -> Project:
        """Create a new project as the last column."""
        data = self.storage.load()
        next_id = max(data.projects.keys(), default=0) + 1

        self._key_unordered_projects(data.projects)
        ordered = self._ordered_projects(data.projects)
        last = ordered[-1].display_order if ordered else None

        project = Project(
            id=next_id,
            name=name,
            color=color,
            display_order=generate_position(last, None),
        )
        data.projects[next_id] = project
        self.storage.save(data)
        return project

    def get_projects(self) -> List[Project]:
        """Get all projects in column order."""
        return self._ordered_projects(self.storage.load().projects)

    def get_project(self, project_id: int) -> Optional[Project]:
        return self.storage.load().projects.get(project_id)

    def rename_project(self, project_id: int, name: str) -> Optional[Project]:
        data = self.storage.load()
        project = data.projects.get(project_id)
        if project is None:
            return None

        project.name = name
        self.storage.save(data)
        return project

    def delete_project(self, project_id: int) -> bool:
        """Delete a project together with its tasks.

        Returns:
            True if the project was deleted, False if it didn't exist
        """
        data = self.storage.load()
        if project_id not in data.projects:
            return False

        del data.projects[project_id]
        data.tasks = {
            task_id: task for task_id, task in data.tasks.items() if task.project_id != project_id
        }
        self.storage.save(data)
        return True

    def move_project(self, project_id: int, neighbor_id: int, insert_after: bool) -> Project:
        """Move a project column next to another one.

        Raises:
            InvalidMove: If either project doesn't exist or they are the same
        """
        if project_id == neighbor_id:
            raise InvalidMove("self_drop", project_id)

        data = self.storage.load()
        project = data.projects.get(project_id)
        if project is None:
            raise InvalidMove("project_not_found", project_id)

        self._key_unordered_projects(data.projects)
        siblings = [p for p in self._ordered_projects(data.projects) if p.id != project_id]
        index = next((i for i, p in enumerate(siblings) if p.id == neighbor_id), None)
        if index is None:
            raise InvalidMove("neighbor_not_found", project_id, f"project #{neighbor_id}")
        if insert_after:
            index += 1

        before = siblings[index - 1].display_order if index > 0 else None
        after = siblings[index].display_order if index < len(siblings) else None
        project.display_order = generate_position(before, after)

        self.storage.save(data)
        return project

    @classmethod
    def _key_unordered_projects(cls, projects: Dict[int, Project]) -> None:
        """Give projects without a display_order tail keys, in ID order.

        Keyed projects are never rewritten.
        """
        ordered = cls._ordered_projects(projects)
        keyed = [p.display_order for p in ordered if p.display_order is not None]
        last = keyed[-1] if keyed else None
        for project in ordered:
            if project.display_order is None:
                last = generate_position(last, None)
                project.display_order = last

    @staticmethod
    def _ordered_projects(projects: Dict[int, Project]) -> List[Project]:
        # Projects without a key (legacy) sort last, by ID
        return sorted(
            projects.values(),
            key=lambda p: (p.display_order is None, p.display_order or "", p.id or 0),
        )
