"""Storage layer for taskboard.

This module provides an abstract storage interface and a JSON file
implementation. JsonStorage uses fcntl-based file locking and writes the
whole board in one save, so a commit either lands completely or not at all.
"""

import fcntl
import json
import os
import tempfile
from abc import ABC, abstractmethod
from datetime import datetime
from pathlib import Path
from typing import Any, Dict, Optional

from taskboard.migration import derive_legacy_order
from taskboard.models import BoardData, Project, Status, Task, DEFAULT_PROJECT_COLOR
from taskboard.ordering import is_valid_position

# Status values written by older versions of the board
LEGACY_STATUSES = {
    "pomodoro": Status.ACTIVE,
    "completed": Status.DONE,
}


def parse_status(value: str) -> Status:
    if value in LEGACY_STATUSES:
        return LEGACY_STATUSES[value]
    return Status(value)


class Storage(ABC):
    """Abstract base class for board storage implementations."""

    @abstractmethod
    def save(self, data: BoardData) -> None:
        """Save the board to storage.

        Args:
            data: Tasks and projects to persist
        """
        pass

    @abstractmethod
    def load(self) -> BoardData:
        """Load the board from storage.

        Returns:
            BoardData holding tasks and projects keyed by ID
        """
        pass

    @abstractmethod
    def delete(self) -> None:
        """Delete all data from storage."""
        pass


def _task_to_dict(task: Task, legacy_order: int) -> Dict[str, Any]:
    return {
        "id": task.id,
        "title": task.title,
        "status": task.status.value,
        "project_id": task.project_id,
        "position_key": task.position_key,
        "order": legacy_order,
        "completed": task.completed,
        "excluded_from_active_view": task.excluded_from_active_view,
        "created_at": task.created_at.isoformat(),
    }


def _task_from_dict(raw: Dict[str, Any]) -> Task:
    key = raw.get("position_key")
    return Task(
        id=raw["id"],
        title=raw["title"],
        status=parse_status(raw.get("status", Status.TODO.value)),
        project_id=raw.get("project_id"),
        position_key=key if is_valid_position(key) else None,
        completed=bool(raw.get("completed", False)),
        excluded_from_active_view=bool(raw.get("excluded_from_active_view", False)),
        order=int(raw.get("order", 0)),
        created_at=datetime.fromisoformat(raw["created_at"]),
    )


def _project_to_dict(project: Project) -> Dict[str, Any]:
    return {
        "id": project.id,
        "name": project.name,
        "color": project.color,
        "display_order": project.display_order,
        "created_at": project.created_at.isoformat(),
    }


def _project_from_dict(raw: Dict[str, Any]) -> Project:
    key = raw.get("display_order")
    return Project(
        id=raw["id"],
        name=raw["name"],
        color=raw.get("color", DEFAULT_PROJECT_COLOR),
        display_order=key if is_valid_position(key) else None,
        created_at=datetime.fromisoformat(raw["created_at"]),
    )


class JsonStorage(Storage):
    """JSON file-based storage implementation with file locking.

    Attributes:
        file_path: Path to the JSON storage file
    """

    def __init__(self, file_path: Optional[str] = None):
        """Initialize JsonStorage with a file path.

        Args:
            file_path: Path to the JSON file for storage. If None, uses
                      TASKBOARD_DB_PATH environment variable or defaults to
                      taskboard.json
        """
        if file_path is None:
            file_path = os.environ.get("TASKBOARD_DB_PATH", "taskboard.json")
        self.file_path = Path(file_path)

    def save(self, data: BoardData) -> None:
        """Save the board to the JSON file with file locking.

        The legacy integer order of each task is derived from its position
        key at save time.
        """
        self.file_path.parent.mkdir(parents=True, exist_ok=True)

        legacy_order = derive_legacy_order(data.tasks.values())
        serializable = {
            "tasks": {
                str(task_id): _task_to_dict(task, legacy_order.get(task_id, task.order))
                for task_id, task in data.tasks.items()
            },
            "projects": {
                str(project_id): _project_to_dict(project)
                for project_id, project in data.projects.items()
            },
        }

        # A failed write must leave the previous board file intact
        tmp = tempfile.NamedTemporaryFile(
            mode='w', dir=self.file_path.parent, suffix=".tmp", delete=False
        )
        try:
            with tmp as f:
                fcntl.flock(f.fileno(), fcntl.LOCK_EX)
                try:
                    json.dump(serializable, f, indent=2)
                    f.flush()
                    os.fsync(f.fileno())
                finally:
                    fcntl.flock(f.fileno(), fcntl.LOCK_UN)
            os.replace(tmp.name, self.file_path)
        except BaseException:
            os.unlink(tmp.name)
            raise

    def load(self) -> BoardData:
        """Load the board from the JSON file with file locking.

        Returns:
            BoardData. Empty if the file doesn't exist or is empty.
        """
        if not self.file_path.exists():
            return BoardData()

        with open(self.file_path, 'r') as f:
            fcntl.flock(f.fileno(), fcntl.LOCK_SH)
            try:
                content = f.read().strip()
                if not content:
                    return BoardData()

                raw = json.loads(content)
            finally:
                fcntl.flock(f.fileno(), fcntl.LOCK_UN)

        data = BoardData()
        for task_id_str, task_data in raw.get("tasks", {}).items():
            data.tasks[int(task_id_str)] = _task_from_dict(task_data)
        for project_id_str, project_data in raw.get("projects", {}).items():
            data.projects[int(project_id_str)] = _project_from_dict(project_data)
        return data

    def delete(self) -> None:
        """Delete the JSON storage file.

        If the file doesn't exist, this method does nothing.
        """
        if self.file_path.exists():
            self.file_path.unlink()
