"""Goal lifecycle with delay gating and the Pomodoro focus timer."""

from procrastinot.focus.binder import GoalTimerBinder
from procrastinot.focus.delay_gate import DelayDecision, DelayPolicy, DenialReason, evaluate
from procrastinot.focus.goals import Goal, GoalStatus, GoalStore
from procrastinot.focus.lifecycle import GoalLifecycleController
from procrastinot.focus.pomodoro import PomodoroDailyStats, PomodoroEngine, PomodoroState, Ticker, TimerMode
from procrastinot.focus.statistics import GoalStatistics, compute_statistics

__all__ = [
    "GoalTimerBinder",
    "DelayDecision",
    "DelayPolicy",
    "DenialReason",
    "evaluate",
    "Goal",
    "GoalStatus",
    "GoalStore",
    "GoalLifecycleController",
    "PomodoroDailyStats",
    "PomodoroEngine",
    "PomodoroState",
    "Ticker",
    "TimerMode",
    "GoalStatistics",
    "compute_statistics",
]
