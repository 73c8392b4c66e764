"""
Aura CLI entry point.

Commands:
    aura version        — Show version
    aura tasks ...      — Manage agent tasks (list, add, edit, toggle, remove, clear)
    aura check          — Run every due task once and print the results
    aura run            — Run the scheduler in the foreground
"""

from __future__ import annotations

import asyncio
import logging
from contextlib import asynccontextmanager
from datetime import datetime
from pathlib import Path
from typing import AsyncIterator, Optional

import typer
from rich.console import Console
from rich.table import Table

from aura import __version__
from aura.core.config import AuraConfig
from aura.core.errors import AuraError
from aura.core.logging import setup_logging

app = typer.Typer(
    name="aura",
    help="Aura — recurring agent tasks for the assistant.",
    add_completion=False,
)
tasks_app = typer.Typer(help="Create, edit and remove agent tasks.")
app.add_typer(tasks_app, name="tasks")

console = Console()


def get_aura_home() -> Path:
    return Path.home() / ".aura"


def _load_config() -> AuraConfig:
    try:
        return AuraConfig.load()
    except AuraError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)


@asynccontextmanager
async def _open_lifecycle(config: AuraConfig) -> AsyncIterator:
    from aura.store.sqlite import SQLiteStorage
    from aura.tasks.lifecycle import TaskLifecycle
    from aura.tasks.store import TaskStore

    storage = SQLiteStorage(config.get_storage_path())
    try:
        yield TaskLifecycle(TaskStore(storage))
    finally:
        await storage.close()


def _run(coro) -> None:
    """Run a coroutine, turning Aura errors into a clean exit."""
    try:
        asyncio.run(coro)
    except AuraError as e:
        console.print(f"[red]{e.message}[/red]")
        raise typer.Exit(1)


def _fmt(value: datetime | None) -> str:
    return value.strftime("%Y-%m-%d %H:%M") if value else "—"


@app.command()
def version() -> None:
    """Show the Aura version."""
    console.print(f"aura {__version__}")


# ━━━ Task management ━━━


@tasks_app.command("list")
def list_tasks() -> None:
    """List agent tasks with their schedule and next run."""
    _run(_list_tasks(_load_config()))


async def _list_tasks(config: AuraConfig) -> None:
    from aura.scheduler.windows import is_due, next_window_start

    async with _open_lifecycle(config) as lifecycle:
        tasks = await lifecycle.list_tasks()

    if not tasks:
        console.print("[dim]No scheduled tasks.[/dim]")
        return

    now = datetime.now()
    table = Table(title="Agent tasks")
    table.add_column("ID", style="dim")
    table.add_column("Name", style="bold")
    table.add_column("Type")
    table.add_column("Schedule")
    table.add_column("Time")
    table.add_column("Enabled")
    table.add_column("Last run")
    table.add_column("Next run")
    for task in tasks:
        if not task.enabled:
            next_run = "—"
        elif is_due(task, now):
            next_run = "next check"
        else:
            next_run = _fmt(next_window_start(task, now))
        table.add_row(
            task.id,
            task.task_name,
            "search" if task.is_search else "chat",
            task.schedule.value,
            task.time,
            "[green]yes[/green]" if task.enabled else "[dim]no[/dim]",
            _fmt(task.last_run),
            next_run,
        )
    console.print(table)


@tasks_app.command("add")
def add_task(
    name: str = typer.Argument(..., help="Display name"),
    instructions: str = typer.Argument(..., help="Prompt sent to the assistant"),
    schedule: str = typer.Option("daily", "--schedule", "-s", help="daily, weekly or monthly"),
    time: str = typer.Option("09:00", "--time", "-t", help="Time of day, e.g. 09:00 or '9:00 AM'"),
    search: bool = typer.Option(False, "--search", help="Run as a web search instead of chat"),
    disabled: bool = typer.Option(False, "--disabled", help="Create the task disabled"),
) -> None:
    """Create an agent task."""
    _run(_add_task(_load_config(), name, instructions, schedule, time, search, not disabled))


async def _add_task(
    config: AuraConfig,
    name: str,
    instructions: str,
    schedule: str,
    time: str,
    search: bool,
    enabled: bool,
) -> None:
    async with _open_lifecycle(config) as lifecycle:
        task = await lifecycle.create_task(
            name, instructions, schedule, time, is_search=search, enabled=enabled
        )
    console.print(f"[green]Created[/green] {task.task_name!r} ({task.id}) — {task.schedule.value} at {task.time}")


@tasks_app.command("edit")
def edit_task(
    task_id: str = typer.Argument(..., help="Task id"),
    name: Optional[str] = typer.Option(None, "--name", help="New display name"),
    instructions: Optional[str] = typer.Option(None, "--instructions", help="New prompt"),
    schedule: Optional[str] = typer.Option(None, "--schedule", "-s", help="daily, weekly or monthly"),
    time: Optional[str] = typer.Option(None, "--time", "-t", help="New time of day"),
    search: Optional[bool] = typer.Option(None, "--search/--chat", help="Dispatch as web search or chat"),
    clear_last_run: bool = typer.Option(False, "--clear-last-run", help="Forget the last run"),
) -> None:
    """Edit fields of an agent task."""
    changes: dict = {}
    if name is not None:
        changes["task_name"] = name
    if instructions is not None:
        changes["instructions"] = instructions
    if schedule is not None:
        changes["schedule"] = schedule
    if time is not None:
        changes["time"] = time
    if search is not None:
        changes["is_search"] = search
    if clear_last_run:
        changes["last_run"] = None
    if not changes:
        console.print("[yellow]Nothing to change.[/yellow]")
        raise typer.Exit(0)
    _run(_edit_task(_load_config(), task_id, changes))


async def _edit_task(config: AuraConfig, task_id: str, changes: dict) -> None:
    async with _open_lifecycle(config) as lifecycle:
        task = await lifecycle.edit_task(task_id, **changes)
    console.print(f"[green]Updated[/green] {task.task_name!r} ({task.id})")


@tasks_app.command("toggle")
def toggle_task(task_id: str = typer.Argument(..., help="Task id")) -> None:
    """Enable a disabled task or disable an enabled one."""
    _run(_toggle_task(_load_config(), task_id))


async def _toggle_task(config: AuraConfig, task_id: str) -> None:
    async with _open_lifecycle(config) as lifecycle:
        task = await lifecycle.toggle_enabled(task_id)
    state = "[green]enabled[/green]" if task.enabled else "[dim]disabled[/dim]"
    console.print(f"{task.task_name!r} {state}")


@tasks_app.command("remove")
def remove_task(
    task_id: str = typer.Argument(..., help="Task id"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete an agent task."""
    if not yes and not typer.confirm(f"Delete task {task_id}?"):
        raise typer.Exit(0)
    _run(_remove_task(_load_config(), task_id))


async def _remove_task(config: AuraConfig, task_id: str) -> None:
    async with _open_lifecycle(config) as lifecycle:
        await lifecycle.delete_task(task_id)
    console.print(f"[green]Deleted[/green] {task_id}")


@tasks_app.command("clear")
def clear_tasks(
    yes: bool = typer.Option(False, "--yes", "-y", help="Do not ask for confirmation"),
) -> None:
    """Delete every agent task, including records that can no longer be read."""
    if not yes and not typer.confirm("Delete ALL agent tasks?"):
        raise typer.Exit(0)
    _run(_clear_tasks(_load_config()))


async def _clear_tasks(config: AuraConfig) -> None:
    from aura.store.sqlite import SQLiteStorage
    from aura.tasks.store import TaskStore

    storage = SQLiteStorage(config.get_storage_path())
    try:
        await TaskStore(storage).clear()
    finally:
        await storage.close()
    console.print("[green]All agent tasks cleared[/green]")


# ━━━ Scheduler ━━━


def _configure_logging(verbose: bool) -> None:
    setup_logging(
        log_dir=get_aura_home() / "logs",
        console_level=logging.DEBUG if verbose else logging.WARNING,
    )


@app.command()
def check(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Run every task that is due now, wait for the results and print them."""
    _configure_logging(verbose)
    _run(_check(_load_config()))


async def _check(config: AuraConfig) -> None:
    from aura.notifications.channels.console import ConsoleChannel
    from aura.session import AgentTaskSession

    session = AgentTaskSession.from_config(config)
    printer = ConsoleChannel(console)
    session.router.register(printer)
    try:
        started = await session.engine.scan()
        if not started:
            console.print("[dim]No tasks due.[/dim]")
            return
        console.print(f"[dim]Running {len(started)} task(s)...[/dim]")
        await session.dispatcher.wait_idle()
        if printer.delivered < len(started):
            console.print(
                f"[yellow]{len(started) - printer.delivered} task(s) produced no result "
                f"(see log for details)[/yellow]"
            )
    finally:
        await session.close()


@app.command()
def run(
    verbose: bool = typer.Option(False, "--verbose", "-v", help="Show debug output"),
) -> None:
    """Run the scheduler in the foreground until interrupted."""
    _configure_logging(verbose)
    config = _load_config()
    if not config.scheduler.enabled:
        console.print("[yellow]The scheduler is disabled in the configuration.[/yellow]")
        raise typer.Exit(1)
    try:
        _run(_serve(config))
    except KeyboardInterrupt:
        console.print("[dim]Stopped.[/dim]")


async def _serve(config: AuraConfig) -> None:
    from aura.notifications.channels.console import ConsoleChannel
    from aura.session import AgentTaskSession

    session = AgentTaskSession.from_config(config)
    printer = ConsoleChannel(console)
    session.router.register(printer)
    console.print(
        f"[bold]Aura[/bold] checking agent tasks every {config.scheduler.poll_interval}s "
        f"[dim](Ctrl+C to stop)[/dim]"
    )
    try:
        await session.start()
        await asyncio.Event().wait()
    finally:
        printer.set_active(False)
        await session.close()


if __name__ == "__main__":
    app()
