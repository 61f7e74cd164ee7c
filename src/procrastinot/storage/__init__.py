"""Storage layer for persisted documents."""

from procrastinot.storage.database import GOALS_KEY, POMODORO_STATS_KEY, Database

__all__ = ["Database", "GOALS_KEY", "POMODORO_STATS_KEY"]
