"""
Command line front end for the Taskboard client.

Usage:
    taskboard login me@example.com
    taskboard list --status pending --priority high
    taskboard add "Write report" --priority high --due 2025-02-01
    taskboard done 12
"""
from __future__ import annotations

import argparse
import asyncio
import getpass
import logging
import sys
from typing import List, Optional, TextIO

from .client import TaskboardClient
from .errors import ApiError
from .logging_setup import setup_logging
from .schemas import Task, TaskFilter
from .settings import get_settings

logger = logging.getLogger(__name__)


def _format_task(task: Task) -> str:
    line = f"#{task.id} [{task.status}] {task.title} ({task.priority})"
    if task.due_date:
        line += f" due {task.due_date.isoformat()}"
    return line


def _fail(error: Optional[ApiError], out: TextIO) -> int:
    print(f"error: {error}", file=out)
    return 1


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="taskboard", description="Manage your tasks from the terminal.")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("login", help="Sign in and store the session")
    p.add_argument("email")
    p.add_argument("--password", help="Prompted for when omitted")

    p = sub.add_parser("register", help="Create an account and sign in")
    p.add_argument("name")
    p.add_argument("email")
    p.add_argument("--password", help="Prompted for when omitted")
    p.add_argument("--password-confirmation", default=None)

    sub.add_parser("logout", help="Sign out and forget the stored session")
    sub.add_parser("whoami", help="Show the signed-in user")

    p = sub.add_parser("list", help="List tasks")
    p.add_argument("--status", default="all", choices=["all", "pending", "completed"])
    p.add_argument("--priority", default="all", choices=["all", "low", "medium", "high"])
    p.add_argument("--search", default="")
    p.add_argument("--page", type=int)
    p.add_argument("--per-page", type=int)

    p = sub.add_parser("add", help="Create a task")
    p.add_argument("title")
    p.add_argument("--description")
    p.add_argument("--priority", default="medium", choices=["low", "medium", "high"])
    p.add_argument("--due", help="Due date, YYYY-MM-DD")

    p = sub.add_parser("done", help="Toggle a task between open and done")
    p.add_argument("task_id", type=int)

    p = sub.add_parser("rm", help="Delete a task")
    p.add_argument("task_id", type=int)

    sub.add_parser("stats", help="Show dashboard statistics")
    return parser


# PUBLIC_INTERFACE
async def run(args: argparse.Namespace, client: TaskboardClient, out: TextIO = sys.stdout) -> int:
    """Execute one parsed command against client; return the process exit code."""
    client.auth.restore_session()
    command = args.command

    if command == "login":
        password = args.password if args.password is not None else getpass.getpass()
        result = await client.auth.login(args.email, password)
        if not result.success:
            return _fail(result.error, out)
        print(f"Logged in as {result.data.user.get('name', args.email)}", file=out)
        return 0

    if command == "register":
        password = args.password if args.password is not None else getpass.getpass()
        result = await client.auth.register(args.name, args.email, password, args.password_confirmation)
        if not result.success:
            return _fail(result.error, out)
        print(f"Welcome, {result.data.user.get('name', args.name)}", file=out)
        return 0

    if command == "logout":
        await client.auth.logout()
        print("Logged out", file=out)
        return 0

    if command == "whoami":
        user = client.auth.current_user()
        if user is None:
            print("Not logged in", file=out)
            return 1
        print(f"{user.get('name', '')} <{user.get('email', '')}>", file=out)
        return 0

    if command == "list":
        task_filter = TaskFilter(
            status=args.status,
            priority=args.priority,
            search=args.search,
            page=args.page,
            per_page=args.per_page,
        )
        result = await client.tasks.list(task_filter)
        if not result.success:
            return _fail(result.error, out)
        if not result.data.items:
            print("No tasks", file=out)
        for task in result.data.items:
            print(_format_task(task), file=out)
        return 0

    if command == "add":
        payload = {"title": args.title, "description": args.description, "priority": args.priority, "due_date": args.due}
        result = await client.tasks.create(payload)
        if not result.success:
            return _fail(result.error, out)
        print(f"Created {_format_task(result.data)}", file=out)
        return 0

    if command == "done":
        fetched = await client.tasks.get(args.task_id)
        if not fetched.success:
            return _fail(fetched.error, out)
        result = await client.tasks.toggle_status(fetched.data)
        if not result.success:
            return _fail(result.error, out)
        print(_format_task(result.data), file=out)
        return 0

    if command == "rm":
        result = await client.tasks.delete(args.task_id)
        if not result.success:
            return _fail(result.error, out)
        print(f"Deleted #{args.task_id}", file=out)
        return 0

    if command == "stats":
        stats = await client.dashboard.stats()
        if not stats.success:
            return _fail(stats.error, out)
        priorities = await client.dashboard.priority_stats()
        if not priorities.success:
            return _fail(priorities.error, out)
        for key, value in stats.data.items():
            print(f"{key}: {value}", file=out)
        print(
            "priority: "
            + ", ".join(f"{p}={priorities.data.get(p, 0)}" for p in ("low", "medium", "high")),
            file=out,
        )
        return 0

    raise ValueError(f"Unknown command: {command}")


async def _main(args: argparse.Namespace) -> int:
    async with TaskboardClient() as client:
        return await run(args, client)


# PUBLIC_INTERFACE
def main(argv: Optional[List[str]] = None) -> int:
    args = build_parser().parse_args(argv)
    setup_logging(get_settings().log_level)
    logger.debug("Running command %s", args.command)
    return asyncio.run(_main(args))


if __name__ == "__main__":
    sys.exit(main())
