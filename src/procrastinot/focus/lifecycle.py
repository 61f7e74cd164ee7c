"""Goal creation, completion, postponement and deletion."""

from __future__ import annotations

import asyncio
import logging
from datetime import datetime

from procrastinot.core.callbacks import Callback, fire
from procrastinot.core.clock import Clock, SystemClock
from procrastinot.core.exceptions import ValidationError
from procrastinot.focus.delay_gate import DelayDecision, DelayPolicy, evaluate
from procrastinot.focus.goals import Goal, GoalStatus, GoalStore, round_half_up

logger = logging.getLogger(__name__)

MIN_IMPORTANCE = 1
MAX_IMPORTANCE = 5


class GoalLifecycleController:
    """Applies the goal lifecycle rules and emits the matching signals.

    Operations on an unknown goal id are logged no-ops. Every mutation is
    followed by a write of the full goal list.

    Usage:
        controller = GoalLifecycleController(store)
        controller.on_goal_completed = lambda goal: print("🎉", goal.text)

        goal = await controller.create("Clean the garage", estimated_minutes=60)
        decision = await controller.delay(goal.id)
        if not decision.allowed:
            print(decision.message)
        await controller.complete(goal.id)
    """

    def __init__(
        self,
        store: GoalStore,
        clock: Clock | None = None,
        policy: DelayPolicy | None = None,
    ):
        self.store = store
        self.clock = clock or SystemClock()
        self.policy = policy or DelayPolicy()
        self._lock = asyncio.Lock()

        # Callbacks
        self.on_goal_completed: Callback | None = None  # (goal)
        self.on_goal_delayed: Callback | None = None  # (goal)
        self.on_final_warning: Callback | None = None  # (goal)
        self.on_goal_deleted: Callback | None = None  # (goal_id)
        self._deletion_listeners: list[Callback] = []

    def add_deletion_listener(self, listener: Callback) -> None:
        """Register a collaborator notified of deletions, independent of ``on_goal_deleted``."""
        self._deletion_listeners.append(listener)

    def _now(self, now: datetime | None) -> datetime:
        return now if now is not None else self.clock.now()

    def get(self, goal_id: int) -> Goal | None:
        return self.store.get(goal_id)

    def list_goals(self) -> list[Goal]:
        return self.store.all()

    async def create(
        self,
        text: str,
        estimated_minutes: int,
        importance: int = 3,
        now: datetime | None = None,
    ) -> Goal:
        """Create a new active goal.

        Raises:
            ValidationError: blank text, non-positive estimate or importance out of range
        """
        text = (text or "").strip()
        if not text:
            raise ValidationError("text", "goal text must not be empty")
        if isinstance(estimated_minutes, bool) or not isinstance(estimated_minutes, int) or estimated_minutes <= 0:
            raise ValidationError("estimated_minutes", "estimate must be a positive whole number of minutes")
        if isinstance(importance, bool) or not isinstance(importance, int) or not MIN_IMPORTANCE <= importance <= MAX_IMPORTANCE:
            raise ValidationError("importance", f"importance must be between {MIN_IMPORTANCE} and {MAX_IMPORTANCE}")

        async with self._lock:
            now = self._now(now)
            # Ids taken by other processes must be visible to next_id
            await self.store.load()
            goal = Goal(
                id=self.store.next_id(now),
                text=text,
                estimated_minutes=estimated_minutes,
                importance=importance,
                created_at=now,
            )
            await self.store.add(goal)

        logger.info(f"Created goal {goal.id}: {goal.text} ({estimated_minutes} min)")
        return goal

    async def complete(self, goal_id: int, now: datetime | None = None) -> Goal | None:
        """Mark a goal completed. Returns None when nothing changed."""
        async with self._lock, self.store.locked():
            goal = self.store.get(goal_id)
            if goal is None:
                logger.warning(f"Complete ignored, goal {goal_id} not found")
                return None
            if goal.is_completed:
                logger.info(f"Complete ignored, goal {goal_id} already completed")
                return None

            now = self._now(now)
            goal.status = GoalStatus.COMPLETED
            goal.completed_at = now
            goal.total_time_taken_minutes = round_half_up((now - goal.effective_start).total_seconds() / 60)
            await self.store.save()

        logger.info(f"Goal {goal.id} completed in {goal.total_time_taken_minutes} min")
        await fire("on_goal_completed", self.on_goal_completed, goal)
        return goal

    async def delay(self, goal_id: int, now: datetime | None = None) -> DelayDecision | None:
        """Postpone a goal if the delay gate allows it.

        Returns:
            The gate's decision, or None if the goal does not exist
        """
        async with self._lock, self.store.locked():
            goal = self.store.get(goal_id)
            if goal is None:
                logger.warning(f"Delay ignored, goal {goal_id} not found")
                return None

            now = self._now(now)
            decision = evaluate(goal, now, self.policy)
            if not decision.allowed:
                logger.info(f"Delay denied for goal {goal_id}: {decision.reason.value}")
                return decision

            # Count and final-timer activation change together
            goal.delay_count += 1
            goal.last_delayed_at = now
            final = goal.delay_count == self.policy.max_delays
            if final:
                goal.final_timer_started_at = now
            await self.store.save()

        logger.info(f"Goal {goal.id} delayed ({goal.delay_count}/{self.policy.max_delays})")
        await fire("on_goal_delayed", self.on_goal_delayed, goal)
        if final:
            logger.warning(f"Goal {goal.id} reached its last postponement, final timer started")
            await fire("on_final_warning", self.on_final_warning, goal)
        return decision

    async def delete(self, goal_id: int) -> bool:
        """Remove a goal. The caller is responsible for confirming with the user."""
        async with self._lock:
            removed = await self.store.remove(goal_id)

        if removed is None:
            logger.warning(f"Delete ignored, goal {goal_id} not found")
            return False

        logger.info(f"Deleted goal {goal_id}")
        for listener in self._deletion_listeners:
            await fire("deletion listener", listener, goal_id)
        await fire("on_goal_deleted", self.on_goal_deleted, goal_id)
        return True
