"""Read-only views and text for presenting goals."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from procrastinot.focus.goals import Goal

CRITICAL_DELAY_COUNT = 4

_DELAY_EMOJI = {0: "", 1: "😅", 2: "😰", 3: "😱"}


@dataclass(frozen=True)
class ShareMessage:
    """Content for the share card rendered by an external image renderer."""
    message: str
    emoji: str
    color: str


def delay_emoji(delay_count: int) -> str:
    """Escalating emoji for how often a goal was postponed."""
    return _DELAY_EMOJI.get(delay_count, "🔥")


def is_critical(goal: Goal) -> bool:
    return goal.delay_count >= CRITICAL_DELAY_COUNT


def share_message(goal: Goal) -> ShareMessage:
    count = goal.delay_count
    if count == 0:
        return ShareMessage("Just started this goal!\nCheer me on! 💪", "💪", "#10b981")
    elif count == 1:
        return ShareMessage("Put it off once,\nbut doing it soon!", "😅", "#fbbf24")
    elif count == 2:
        return ShareMessage("Put it off twice...\ngetting a bit worried", "😰", "#f59e0b")
    elif count == 3:
        return ShareMessage("Three delays already!\nHelp!", "😱", "#f97316")
    return ShareMessage(f"Put it off {count} times!\nWhat do I do!", "🔥", "#ef4444")


def format_final_timer(goal: Goal, now: datetime) -> str | None:
    """Elapsed time since the final timer started, as HH:MM:SS."""
    if goal.final_timer_started_at is None:
        return None
    elapsed = max(0, int((now - goal.final_timer_started_at).total_seconds()))
    hours, rest = divmod(elapsed, 3600)
    minutes, seconds = divmod(rest, 60)
    return f"{hours:02d}:{minutes:02d}:{seconds:02d}"


def format_duration(minutes: int | None) -> str:
    """Format minutes as 45m, 2h or 2h 5m."""
    if minutes is None:
        return "-"
    if minutes < 60:
        return f"{minutes}m"
    hours, mins = divmod(minutes, 60)
    return f"{hours}h {mins}m" if mins else f"{hours}h"


def active_goals(goals: list[Goal]) -> list[Goal]:
    return [g for g in goals if g.is_active]


def delaying_goals(goals: list[Goal]) -> list[Goal]:
    """Active goals that were postponed, most postponed first."""
    delayed = [g for g in goals if g.is_active and g.delay_count > 0]
    return sorted(delayed, key=lambda g: g.delay_count, reverse=True)


def completed_goals(goals: list[Goal]) -> list[Goal]:
    """Completed goals, most recently completed first."""
    done = [g for g in goals if g.is_completed]
    return sorted(done, key=lambda g: g.completed_at or g.created_at, reverse=True)
