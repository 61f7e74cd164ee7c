"""Binding between the focus timer and a single goal."""

from __future__ import annotations

import logging

from procrastinot.focus.lifecycle import GoalLifecycleController
from procrastinot.focus.pomodoro import PomodoroEngine, TimerMode

logger = logging.getLogger(__name__)


class GoalTimerBinder:
    """Credits completed focus intervals to at most one goal.

    Binding a goal replaces any previous binding. Deleting the bound goal
    clears the binding before the timer can credit it again.
    """

    def __init__(self, engine: PomodoroEngine, controller: GoalLifecycleController):
        self.engine = engine
        self.controller = controller
        controller.add_deletion_listener(self._on_goal_deleted)

    @property
    def bound_goal_id(self) -> int | None:
        return self.engine.bound_goal_id

    async def bind_and_start(self, goal_id: int) -> bool:
        """Bind a goal and start a fresh focus interval for it."""
        goal = self.controller.get(goal_id)
        if goal is None:
            logger.warning(f"Cannot bind timer, goal {goal_id} not found")
            return False
        if goal.is_completed:
            logger.info(f"Cannot bind timer, goal {goal_id} already completed")
            return False

        previous = self.engine.bound_goal_id
        if previous is not None and previous != goal_id:
            logger.info(f"Timer moved from goal {previous} to goal {goal_id}")

        self.engine.bind_goal(goal_id)
        await self.engine.switch_mode(TimerMode.FOCUS)
        await self.engine.start()

        logger.info(f"Focus timer bound to goal {goal_id}: {goal.text}")
        return True

    async def unbind(self) -> None:
        """Clear the binding and pause without resetting elapsed time."""
        self.engine.bind_goal(None)
        await self.engine.pause()

    def _on_goal_deleted(self, goal_id: int) -> None:
        if self.engine.bound_goal_id == goal_id:
            self.engine.bind_goal(None)
            logger.info(f"Bound goal {goal_id} deleted, timer unbound")
