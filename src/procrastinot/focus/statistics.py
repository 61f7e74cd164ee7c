"""Aggregate figures over the goal list."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime

from procrastinot.focus.goals import Goal, round_half_up


@dataclass
class GoalStatistics:
    """Figures shown on the statistics panel."""
    total_goals: int = 0
    active_goals: int = 0
    total_completed: int = 0
    completion_rate: int = 0  # percent
    current_streak: int = 0  # days
    average_delays: float = 0.0

    def to_dict(self) -> dict:
        return {
            "total_goals": self.total_goals,
            "active_goals": self.active_goals,
            "total_completed": self.total_completed,
            "completion_rate": self.completion_rate,
            "current_streak": self.current_streak,
            "average_delays": self.average_delays,
        }


def calculate_streak(goals: list[Goal], now: datetime) -> int:
    """Consecutive days, ending today, with at least one completion.

    Walks completions newest first. A completion exactly ``streak`` days
    back extends the streak, an older one ends it, and a newer one is a
    second completion on an already counted day.
    """
    completed = sorted(
        (g for g in goals if g.is_completed and g.completed_at),
        key=lambda g: g.completed_at,
        reverse=True,
    )

    today = now.date()
    streak = 0
    for goal in completed:
        days_back = (today - goal.completed_at.date()).days
        if days_back == streak:
            streak += 1
        elif days_back > streak:
            break

    return streak


def compute_statistics(goals: list[Goal], now: datetime) -> GoalStatistics:
    """Recompute every figure from the current goals."""
    completed = [g for g in goals if g.is_completed]
    active = [g for g in goals if g.is_active]
    total = len(goals)

    completion_rate = round_half_up(len(completed) / total * 100) if total else 0
    average_delays = (
        round(sum(g.delay_count for g in completed) / len(completed), 1) if completed else 0.0
    )

    return GoalStatistics(
        total_goals=total,
        active_goals=len(active),
        total_completed=len(completed),
        completion_rate=completion_rate,
        current_streak=calculate_streak(goals, now),
        average_delays=average_delays,
    )
