"""CLI commands for procrastinot using Typer."""

from __future__ import annotations

import asyncio
import logging
import sys
from pathlib import Path

import typer
from rich.console import Console
from rich.live import Live
from rich.panel import Panel
from rich.table import Table

from procrastinot import __version__
from procrastinot.core.config import get_config
from procrastinot.core.exceptions import ValidationError
from procrastinot.core.orchestrator import Orchestrator
from procrastinot.focus.display import (
    active_goals,
    completed_goals,
    delay_emoji,
    delaying_goals,
    format_duration,
    format_final_timer,
    is_critical,
    share_message,
)
from procrastinot.focus.goals import Goal
from procrastinot.focus.notifier import create_notifier
from procrastinot.focus.pomodoro import PomodoroState, Ticker, TimerMode

app = typer.Typer(
    name="procrastinot",
    help="Goal tracking that makes procrastination hard.",
    add_completion=False,
)

console = Console()

VIEWS = ("all", "active", "delaying", "completed")


def setup_logging(log_level: str, log_file: Path | None = None) -> None:
    """Configure logging for the application."""
    level = getattr(logging, log_level.upper(), logging.INFO)

    handlers: list[logging.Handler] = []

    # Keep the terminal for command output when a log file is available
    if log_file:
        handlers.append(logging.FileHandler(log_file))
    else:
        handlers.append(logging.StreamHandler())

    logging.basicConfig(
        level=level,
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
        handlers=handlers,
    )

    # Reduce noise from external libraries
    logging.getLogger("aiosqlite").setLevel(logging.WARNING)


def build_orchestrator() -> Orchestrator:
    """Create the orchestrator with terminal reactions to goal signals."""
    config = get_config()
    notifier = create_notifier(
        config.notifications.backend,
        enabled=config.notifications.enabled,
        console=console,
    )
    orchestrator = Orchestrator(config, notifier=notifier)

    controller = orchestrator.controller
    controller.on_goal_completed = lambda goal: console.print(
        f"[bold green]🎉 Completed:[/bold green] {goal.text} "
        f"({format_duration(goal.total_time_taken_minutes)})"
    )
    controller.on_goal_delayed = lambda goal: console.print(
        f"{delay_emoji(goal.delay_count) * 3} [yellow]Delayed {goal.delay_count} time(s):[/yellow] {goal.text}"
    )
    controller.on_final_warning = lambda goal: console.print(
        Panel(
            f"That was postponement #{goal.delay_count}. The final timer is running.\n"
            "No more delays are possible!",
            title="⚠️  Last chance",
            border_style="red",
        )
    )
    return orchestrator


def _run(coro_factory) -> None:
    """Run an async command body against a started orchestrator."""
    config = get_config()
    config.ensure_directories()
    setup_logging(config.log_level, config.log_dir / "procrastinot.log")

    async def runner():
        orchestrator = build_orchestrator()
        await orchestrator.start()
        try:
            await coro_factory(orchestrator)
        finally:
            await orchestrator.stop()

    try:
        asyncio.run(runner())
    except KeyboardInterrupt:
        console.print("\n[yellow]Stopped[/yellow]")
    except ValidationError as e:
        console.print(f"[red]Invalid goal: {e.message}[/red]")
        raise typer.Exit(1)
    except typer.Exit:
        raise
    except Exception as e:
        console.print(f"[red]Error: {e}[/red]")
        raise typer.Exit(1)


def _require_goal(orchestrator: Orchestrator, goal_id: int) -> Goal:
    goal = orchestrator.controller.get(goal_id)
    if goal is None:
        console.print(f"[red]Goal #{goal_id} not found[/red]")
        raise typer.Exit(1)
    return goal


def _goals_table(title: str, goals: list[Goal], orchestrator: Orchestrator) -> Table:
    now = orchestrator.clock.now()
    table = Table(title=title, show_header=True, header_style="bold cyan")
    table.add_column("ID")
    table.add_column("Goal")
    table.add_column("Est.")
    table.add_column("Importance")
    table.add_column("Delays")
    table.add_column("Status")
    table.add_column("🍅")

    for g in goals:
        if g.is_completed:
            status = f"[green]Done in {format_duration(g.total_time_taken_minutes)}[/green]"
            delays = "[green]🎯 done right away[/green]" if g.delay_count == 0 else str(g.delay_count)
        else:
            timer = format_final_timer(g, now)
            status = f"[red]🔥 {timer}[/red]" if timer else "[yellow]Active[/yellow]"
            color = "red" if is_critical(g) else "yellow"
            delays = f"[{color}]😱 {g.delay_count}x[/{color}]" if g.delay_count else "-"

        prefix = "✅" if g.is_completed else delay_emoji(g.delay_count)
        table.add_row(
            str(g.id),
            f"{prefix} {g.text}".strip(),
            f"{g.estimated_minutes}m",
            "⭐" * g.importance,
            delays,
            status,
            str(g.pomodoro_sessions),
        )

    return table


@app.command()
def add(
    text: str = typer.Argument(..., help="What you are going to do"),
    minutes: int = typer.Option(25, "--minutes", "-m", help="Estimated minutes to finish"),
    importance: int = typer.Option(3, "--importance", "-i", help="Importance from 1 to 5"),
) -> None:
    """Add a new goal."""

    async def body(orchestrator: Orchestrator):
        goal = await orchestrator.controller.create(text, minutes, importance)
        console.print(f"[green]Created goal #{goal.id}: {goal.text}[/green]")
        console.print(f"  Estimated: {minutes}m | Importance: {'⭐' * importance}")

    _run(body)


@app.command(name="list")
def list_goals(
    view: str = typer.Option("all", "--view", "-v", help="all, active, delaying or completed"),
) -> None:
    """List goals."""
    if view not in VIEWS:
        console.print(f"[red]Unknown view: {view}[/red]")
        console.print(f"Valid views: {', '.join(VIEWS)}")
        raise typer.Exit(1)

    async def body(orchestrator: Orchestrator):
        goals = orchestrator.controller.list_goals()
        if view == "active":
            selected, title = active_goals(goals), "Active Goals"
        elif view == "delaying":
            selected, title = delaying_goals(goals), "Postponed Goals"
        elif view == "completed":
            selected, title = completed_goals(goals), "Completed Goals"
        else:
            selected, title = goals, "All Goals"

        if not selected:
            console.print("[dim]No goals found. Create one with: procrastinot add \"Goal\"[/dim]")
            return

        console.print(_goals_table(title, selected, orchestrator))

    _run(body)


@app.command()
def complete(goal_id: int = typer.Argument(..., help="Goal ID")) -> None:
    """Mark a goal as completed."""

    async def body(orchestrator: Orchestrator):
        goal = _require_goal(orchestrator, goal_id)
        if await orchestrator.controller.complete(goal_id) is None:
            console.print(f"[dim]Goal #{goal.id} was already completed[/dim]")

    _run(body)


@app.command()
def delay(goal_id: int = typer.Argument(..., help="Goal ID")) -> None:
    """Postpone a goal, if the rules allow it."""

    async def body(orchestrator: Orchestrator):
        _require_goal(orchestrator, goal_id)
        decision = await orchestrator.controller.delay(goal_id)
        if decision is not None and not decision.allowed:
            console.print(f"[red]🚫 {decision.message}[/red]")
            raise typer.Exit(1)

    _run(body)


@app.command()
def delete(
    goal_id: int = typer.Argument(..., help="Goal ID"),
    yes: bool = typer.Option(False, "--yes", "-y", help="Skip confirmation"),
) -> None:
    """Delete a goal."""

    async def body(orchestrator: Orchestrator):
        goal = _require_goal(orchestrator, goal_id)
        if not yes and not typer.confirm(f"Delete goal #{goal.id} '{goal.text}'?"):
            console.print("[dim]Kept[/dim]")
            return
        await orchestrator.controller.delete(goal_id)
        console.print(f"[yellow]Deleted goal #{goal_id}[/yellow]")

    _run(body)


@app.command()
def share(goal_id: int = typer.Argument(..., help="Goal ID")) -> None:
    """Show the share card text for a goal."""

    async def body(orchestrator: Orchestrator):
        goal = _require_goal(orchestrator, goal_id)
        card = share_message(goal)
        console.print(
            Panel(
                f"{card.emoji}  [bold]{goal.text}[/bold]\n\n{card.message}",
                border_style=card.color,
            )
        )

    _run(body)


@app.command()
def stats() -> None:
    """Show completion statistics."""

    async def body(orchestrator: Orchestrator):
        s = orchestrator.statistics()
        daily = orchestrator.engine.daily_stats

        table = Table(title="Statistics", show_header=True, header_style="bold cyan")
        table.add_column("Metric")
        table.add_column("Value")

        table.add_row("Completed", str(s.total_completed))
        table.add_row("Completion Rate", f"{s.completion_rate}%")
        table.add_row("Current Streak", f"{s.current_streak} day(s)")
        table.add_row("Average Delays", f"{s.average_delays:.1f}")
        table.add_row("Pomodoros Today", str(daily.today_sessions))
        table.add_row("Total Focus Time", format_duration(daily.total_focus_minutes))

        console.print(table)

    _run(body)


def _status_line(state: PomodoroState) -> str:
    icon = "🍅" if state.mode == TimerMode.FOCUS else "☕"
    return (
        f"\r{icon} {state.mode.value:<11} {state.time_remaining_display} "
        f"({state.progress_percent:.0f}%) | sessions: {state.sessions_completed}    "
    )


@app.command()
def focus(
    goal_id: int = typer.Option(None, "--goal", "-g", help="Goal ID to credit focus sessions to"),
    auto: bool = typer.Option(False, "--auto", "-a", help="Start the next interval without asking"),
) -> None:
    """Run the Pomodoro timer in the foreground.

    Examples:
        procrastinot focus -g 1718000000000
        procrastinot focus --auto
    """

    async def body(orchestrator: Orchestrator):
        engine = orchestrator.engine
        finished = asyncio.Event()

        def on_tick(state: PomodoroState) -> None:
            sys.stdout.write(_status_line(state))
            sys.stdout.flush()

        engine.on_tick = on_tick
        engine.on_focus_complete = lambda count: finished.set()
        engine.on_break_complete = lambda mode: finished.set()

        if goal_id is not None:
            goal = _require_goal(orchestrator, goal_id)
            if not await orchestrator.binder.bind_and_start(goal_id):
                console.print(f"[red]Cannot focus on goal #{goal_id}, it is already completed[/red]")
                raise typer.Exit(1)
            console.print(f"[green]Focusing on:[/green] {goal.text}")
        else:
            await engine.start()

        console.print("Press Ctrl+C to stop\n")

        while True:
            await finished.wait()
            finished.clear()
            console.print()
            next_mode = engine.state.mode.value.replace("_", " ")
            if not auto and not typer.confirm(f"Start {next_mode}?", default=True):
                break
            await engine.start()

        if goal_id is not None:
            goal = orchestrator.controller.get(goal_id)
            if goal is not None:
                console.print(f"[bold]{goal.text}[/bold]: 🍅 {goal.pomodoro_sessions} session(s)")

    _run(body)


def _final_timer_table(orchestrator: Orchestrator) -> Table:
    locked = [g for g in active_goals(orchestrator.controller.list_goals()) if g.in_final_regime]
    return _goals_table("🔥 No More Delays", locked, orchestrator)


@app.command()
def watch() -> None:
    """Live view of goals whose final timer is running."""

    async def body(orchestrator: Orchestrator):
        ticker = Ticker(1.0)
        with Live(_final_timer_table(orchestrator), console=console, refresh_per_second=2) as live:

            async def refresh() -> None:
                # Goals may be delayed or completed from another terminal
                await orchestrator.store.load()
                live.update(_final_timer_table(orchestrator))

            await ticker.start(refresh)
            try:
                await asyncio.Event().wait()
            finally:
                await ticker.stop()

    _run(body)


@app.command(name="config-show")
def config_show() -> None:
    """Show current configuration."""
    config = get_config()

    table = Table(title="Configuration", show_header=True, header_style="bold cyan")
    table.add_column("Setting")
    table.add_column("Value")

    table.add_row("Data directory", str(config.data_dir))
    table.add_row("Database", str(config.db_path))
    table.add_row("Config file", str(config.config_file))
    table.add_row("Log level", config.log_level)
    table.add_row("Focus", f"{config.pomodoro.focus_minutes} min")
    table.add_row("Short break", f"{config.pomodoro.short_break_minutes} min")
    table.add_row("Long break", f"{config.pomodoro.long_break_minutes} min")
    table.add_row("Long break every", f"{config.pomodoro.pomodoros_until_long_break} pomodoros")
    table.add_row("Delay cooldown", f"{config.delay_policy.cooldown_minutes} min")
    table.add_row("Max delays", str(config.delay_policy.max_delays))
    table.add_row("Notifications", config.notifications.backend if config.notifications.enabled else "off")

    console.print(table)


@app.command()
def version() -> None:
    """Show version."""
    console.print(f"procrastinot {__version__}")


@app.callback()
def main_callback() -> None:
    """procrastinot - goal tracking that makes procrastination hard."""
    pass


if __name__ == "__main__":
    app()
