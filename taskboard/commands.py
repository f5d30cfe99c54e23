"""Confirmable commands.

Destructive or renaming actions are wrapped in command objects. A command
asks a confirmer callable before it runs and reports whether it ran, so the
board never depends on a particular prompt or dialog.
"""

from abc import ABC, abstractmethod
from enum import Enum
from typing import Callable, Optional

from taskboard.repository import BoardRepository

Confirmer = Callable[[str], bool]


class CommandResult(Enum):
    """Outcome of a confirmable command."""

    CONFIRMED = "confirmed"
    CANCELLED = "cancelled"
    NOT_FOUND = "not_found"


def always_confirm(prompt: str) -> bool:
    return True


class Command(ABC):
    """Base class: subclasses provide prompt() and perform()."""

    def __init__(self, repository: BoardRepository):
        self.repository = repository

    @abstractmethod
    def prompt(self) -> Optional[str]:
        """Return the question to confirm, or None if the target is missing."""
        pass

    @abstractmethod
    def perform(self) -> bool:
        """Run the action.

        Returns:
            True if it ran, False if the target disappeared meanwhile
        """
        pass

    def execute(self, confirm: Confirmer = always_confirm) -> CommandResult:
        question = self.prompt()
        if question is None:
            return CommandResult.NOT_FOUND
        if not confirm(question):
            return CommandResult.CANCELLED
        if not self.perform():
            return CommandResult.NOT_FOUND
        return CommandResult.CONFIRMED


class DeleteTask(Command):
    def __init__(self, repository: BoardRepository, task_id: int):
        super().__init__(repository)
        self.task_id = task_id

    def prompt(self) -> Optional[str]:
        task = self.repository.get_task(self.task_id)
        if task is None:
            return None
        return f"Delete task #{task.id} \"{task.title}\"?"

    def perform(self) -> bool:
        return self.repository.delete_task(self.task_id)


class RenameProject(Command):
    def __init__(self, repository: BoardRepository, project_id: int, name: str):
        super().__init__(repository)
        self.project_id = project_id
        self.name = name

    def prompt(self) -> Optional[str]:
        project = self.repository.get_project(self.project_id)
        if project is None:
            return None
        return f"Rename project \"{project.name}\" to \"{self.name}\"?"

    def perform(self) -> bool:
        return self.repository.rename_project(self.project_id, self.name) is not None


class DeleteProject(Command):
    """Deletes a project and every task in it."""

    def __init__(self, repository: BoardRepository, project_id: int):
        super().__init__(repository)
        self.project_id = project_id

    def prompt(self) -> Optional[str]:
        project = self.repository.get_project(self.project_id)
        if project is None:
            return None
        count = sum(1 for task in self.repository.get_all_tasks() if task.project_id == project.id)
        return f"Delete project \"{project.name}\" and its {count} task(s)?"

    def perform(self) -> bool:
        return self.repository.delete_project(self.project_id)
