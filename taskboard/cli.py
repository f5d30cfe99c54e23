"""Command-line interface for taskboard.

This module provides the CLI for the board using argparse.
It supports the following commands:
- add: Create a new task at the tail of its column
- list: Show tasks grouped by status and project, in board order
- move: Move a task next to another one and/or to another column
- status: Change a task's status
- edit: Change a task's title
- delete: Delete a task
- project: Manage project columns (add, list, rename, delete, move)
- migrate: Assign order keys to tasks saved by older versions
"""

import argparse
import sys
from typing import List, Optional

from taskboard.commands import (
    CommandResult,
    Confirmer,
    DeleteProject,
    DeleteTask,
    RenameProject,
)
from taskboard.errors import BoardError
from taskboard.migration import needs_migration
from taskboard.models import MoveRequest, Partition, Status
from taskboard.observability import configure_logging
from taskboard.repository import BoardRepository
from taskboard.service import BoardService
from taskboard.undo import UndoHandle

STATUS_CHOICES = [status.value for status in Status]
NO_PROJECT = "none"


def project_arg(value: str) -> Optional[int]:
    """Parse a project ID, or 'none' for the no-project bucket."""
    if value.lower() == NO_PROJECT:
        return None
    try:
        return int(value)
    except ValueError:
        raise argparse.ArgumentTypeError(f"invalid project ID: {value!r}")


def create_parser() -> argparse.ArgumentParser:
    """Create and configure the argument parser.

    Returns:
        Configured ArgumentParser instance
    """
    parser = argparse.ArgumentParser(
        prog="taskboard",
        description="Task board with status and project columns"
    )

    subparsers = parser.add_subparsers(dest="command", help="Available commands")

    # Add command
    add_parser = subparsers.add_parser("add", help="Add a new task")
    add_parser.add_argument("title", help="Task title")
    add_parser.add_argument(
        "--status",
        choices=STATUS_CHOICES,
        default=Status.TODO.value,
        help="Initial status (default: todo)"
    )
    add_parser.add_argument("--project", type=project_arg, help="Project ID")

    # List command
    list_parser = subparsers.add_parser("list", help="List tasks in board order")
    list_parser.add_argument("--status", choices=STATUS_CHOICES, help="Only this status")
    list_parser.add_argument(
        "--project",
        type=project_arg,
        default=argparse.SUPPRESS,
        help="Only this project ID ('none' for tasks without a project)"
    )

    # Move command
    move_parser = subparsers.add_parser("move", help="Move a task")
    move_parser.add_argument("id", type=int, help="Task ID")
    move_parser.add_argument("--status", choices=STATUS_CHOICES, help="Destination status")
    move_parser.add_argument(
        "--project",
        type=project_arg,
        default=argparse.SUPPRESS,
        help="Destination project ID ('none' for no project)"
    )
    neighbor = move_parser.add_mutually_exclusive_group()
    neighbor.add_argument("--before", type=int, metavar="ID", help="Place before this task")
    neighbor.add_argument("--after", type=int, metavar="ID", help="Place after this task")

    # Status command
    status_parser = subparsers.add_parser("status", help="Change a task's status")
    status_parser.add_argument("id", type=int, help="Task ID")
    status_parser.add_argument("status", choices=STATUS_CHOICES, help="New status")

    # Edit command
    edit_parser = subparsers.add_parser("edit", help="Change a task's title")
    edit_parser.add_argument("id", type=int, help="Task ID")
    edit_parser.add_argument("title", help="New title")

    # Delete command
    delete_parser = subparsers.add_parser("delete", help="Delete a task")
    delete_parser.add_argument("id", type=int, help="Task ID")
    delete_parser.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    # Project commands
    project_parser = subparsers.add_parser("project", help="Manage projects")
    project_sub = project_parser.add_subparsers(dest="project_command", help="Project commands")

    project_add = project_sub.add_parser("add", help="Add a project")
    project_add.add_argument("name", help="Project name")
    project_add.add_argument("--color", default="#6B7280", help="Hex color")

    project_sub.add_parser("list", help="List projects in column order")

    project_rename = project_sub.add_parser("rename", help="Rename a project")
    project_rename.add_argument("id", type=int, help="Project ID")
    project_rename.add_argument("name", help="New name")
    project_rename.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    project_delete = project_sub.add_parser("delete", help="Delete a project and its tasks")
    project_delete.add_argument("id", type=int, help="Project ID")
    project_delete.add_argument("--yes", action="store_true", help="Do not ask for confirmation")

    project_move = project_sub.add_parser("move", help="Reorder a project column")
    project_move.add_argument("id", type=int, help="Project ID")
    side = project_move.add_mutually_exclusive_group(required=True)
    side.add_argument("--before", type=int, metavar="ID", help="Place before this project")
    side.add_argument("--after", type=int, metavar="ID", help="Place after this project")

    # Migrate command
    subparsers.add_parser("migrate", help="Assign order keys to legacy tasks")

    return parser


def confirm_prompt(question: str) -> bool:
    """Ask a yes/no question on the terminal."""
    answer = input(f"{question} [y/N] ").strip().lower()
    return answer in {"y", "yes"}


def _confirmer(args: argparse.Namespace) -> Confirmer:
    if getattr(args, "yes", False):
        return lambda question: True
    return confirm_prompt


def print_notification(message: str, handle: Optional[UndoHandle] = None) -> None:
    print(message)


def cmd_add(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'add' command.

    Args:
        args: Parsed command-line arguments
        service: BoardService instance

    Returns:
        Exit code (0 for success, 1 for error)
    """
    try:
        task = service.repository.create_task(
            title=args.title, status=Status(args.status), project_id=args.project
        )
    except ValueError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1

    print(f"Task added: #{task.id} {task.title} [{task.status.value}]")
    return 0


def cmd_list(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'list' command.

    Prints one block per (status, project) partition, tasks in board order.
    """
    projects = service.repository.get_projects()
    project_ids: List[Optional[int]] = [project.id for project in projects] + [None]
    names = {project.id: project.name for project in projects}

    if hasattr(args, "project"):
        project_ids = [args.project]
    statuses = [Status(args.status)] if args.status else list(Status)

    printed = False
    for project_id in project_ids:
        for status in statuses:
            tasks = service.partition(Partition(status, project_id))
            if not tasks:
                continue
            printed = True
            print(f"{names.get(project_id, 'No Project')} / {status.label}")
            for task in tasks:
                mark = "✓" if task.completed else " "
                print(f"  [{mark}] #{task.id} {task.title}")

    if not printed:
        print("No tasks found.")
    return 0


def cmd_move(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'move' command.

    Destination status and project default to the task's current ones.
    Without --before/--after the task goes to the tail.
    """
    task = service.tasks.get(args.id)
    if task is None:
        print(f"Error: Task #{args.id} not found.", file=sys.stderr)
        return 1

    status = Status(args.status) if args.status else task.status
    project_id = args.project if hasattr(args, "project") else task.project_id
    neighbor = args.before if args.before is not None else args.after

    request = MoveRequest(
        dragged_task_id=task.id,
        destination=Partition(status, project_id),
        neighbor_task_id=neighbor,
        insert_after=args.after is not None,
    )
    result = service.move(request)
    if result is None:
        print(f"Error: Task #{args.id} cannot be moved there.", file=sys.stderr)
        return 1
    return 0


def cmd_status(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'status' command."""
    if service.change_status(args.id, Status(args.status)) is None:
        print(f"Error: Task #{args.id} not found.", file=sys.stderr)
        return 1
    return 0


def cmd_edit(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'edit' command."""
    task = service.repository.rename_task(args.id, args.title)
    if task is None:
        print(f"Error: Task #{args.id} not found.", file=sys.stderr)
        return 1

    print(f"Task #{task.id} renamed: {task.title}")
    return 0


def cmd_delete(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'delete' command.

    Returns:
        Exit code (0 for success or cancel, 1 for error)
    """
    result = DeleteTask(service.repository, args.id).execute(_confirmer(args))

    if result is CommandResult.NOT_FOUND:
        print(f"Error: Task #{args.id} not found.", file=sys.stderr)
        return 1
    if result is CommandResult.CANCELLED:
        print("Cancelled.")
        return 0

    print(f"Task #{args.id} deleted.")
    return 0


def cmd_project(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'project' command group."""
    repo = service.repository

    if args.project_command == "add":
        project = repo.create_project(args.name, color=args.color)
        print(f"Project added: #{project.id} {project.name}")
        return 0

    if args.project_command == "list":
        projects = repo.get_projects()
        if not projects:
            print("No projects found.")
        for project in projects:
            print(f"#{project.id} {project.name} ({project.color})")
        return 0

    if args.project_command == "move":
        neighbor = args.before if args.before is not None else args.after
        project = repo.move_project(args.id, neighbor, insert_after=args.after is not None)
        print(f"Project #{project.id} moved.")
        return 0

    if args.project_command == "rename":
        command = RenameProject(repo, args.id, args.name)
        done = f"Project #{args.id} renamed: {args.name}"
    elif args.project_command == "delete":
        command = DeleteProject(repo, args.id)
        done = f"Project #{args.id} deleted."
    else:
        print("Error: Missing project command.", file=sys.stderr)
        return 1

    result = command.execute(_confirmer(args))
    if result is CommandResult.NOT_FOUND:
        print(f"Error: Project #{args.id} not found.", file=sys.stderr)
        return 1
    if result is CommandResult.CANCELLED:
        print("Cancelled.")
        return 0

    print(done)
    return 0


def cmd_migrate(args: argparse.Namespace, service: BoardService) -> int:
    """Handle the 'migrate' command."""
    count = service.migrate()
    print(f"Migrated {count} task(s).")
    return 0


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the CLI.

    Args:
        argv: Command-line arguments. If None, uses sys.argv[1:]

    Returns:
        Exit code (0 for success, non-zero for error)
    """
    parser = create_parser()
    args = parser.parse_args(argv)

    if args.command is None:
        parser.print_help()
        return 1

    configure_logging()
    service = BoardService(BoardRepository(), notifier=print_notification)

    # Tasks saved before order keys existed must be keyed before use
    if args.command != "migrate" and any(needs_migration(t) for t in service.tasks.values()):
        service.migrate()

    # Dispatch to command handlers
    commands = {
        "add": cmd_add,
        "list": cmd_list,
        "move": cmd_move,
        "status": cmd_status,
        "edit": cmd_edit,
        "delete": cmd_delete,
        "project": cmd_project,
        "migrate": cmd_migrate,
    }

    handler = commands.get(args.command)
    if handler is None:
        print(f"Error: Unknown command '{args.command}'", file=sys.stderr)
        return 1

    try:
        return handler(args, service)
    except BoardError as exc:
        print(f"Error: {exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
