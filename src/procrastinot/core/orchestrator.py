"""Owner of the goal and timer state for one process."""

from __future__ import annotations

import logging
from procrastinot.core.clock import Clock, SystemClock
from procrastinot.core.config import Config, get_config
from procrastinot.focus.binder import GoalTimerBinder
from procrastinot.focus.delay_gate import DelayPolicy
from procrastinot.focus.goals import GoalStore
from procrastinot.focus.lifecycle import GoalLifecycleController
from procrastinot.focus.notifier import Notifier, create_notifier
from procrastinot.focus.pomodoro import PomodoroEngine, Ticker
from procrastinot.focus.statistics import GoalStatistics, compute_statistics
from procrastinot.storage.database import Database

logger = logging.getLogger(__name__)


class Orchestrator:
    """Builds and owns the single goal store, lifecycle controller and timer.

    All mutation goes through the components held here, so one instance
    per process is the single writer of goals and timer state.

    Usage:
        orchestrator = Orchestrator(config)
        await orchestrator.start()
        goal = await orchestrator.controller.create("Inbox zero", 30)
        await orchestrator.binder.bind_and_start(goal.id)
        ...
        await orchestrator.stop()
    """

    def __init__(
        self,
        config: Config | None = None,
        db: Database | None = None,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config or get_config()
        self.clock = clock or SystemClock()
        self.db = db or Database(self.config.db_path)
        self._running = False

        policy = DelayPolicy(
            cooldown=self.config.delay_policy.cooldown,
            max_delays=self.config.delay_policy.max_delays,
        )
        if notifier is None:
            notifier = create_notifier(
                self.config.notifications.backend,
                enabled=self.config.notifications.enabled,
            )

        self.store = GoalStore(self.db)
        self.controller = GoalLifecycleController(self.store, clock=self.clock, policy=policy)
        self.engine = PomodoroEngine(
            self.config.pomodoro,
            db=self.db,
            goal_store=self.store,
            clock=self.clock,
            ticker=ticker,
            notifier=notifier,
        )
        self.binder = GoalTimerBinder(self.engine, self.controller)

    @property
    def is_running(self) -> bool:
        return self._running

    async def start(self) -> None:
        """Connect storage and load persisted state."""
        if self._running:
            logger.warning("Orchestrator already running")
            return

        await self.db.connect()
        goals = await self.store.load()
        await self.engine.initialize()
        self._running = True

        logger.info(f"Loaded {len(goals)} goals")

    async def stop(self) -> None:
        """Stop the timer and close storage."""
        if not self._running:
            return

        await self.engine.pause()
        await self.db.close()
        self._running = False

        logger.info("Orchestrator stopped")

    def statistics(self) -> GoalStatistics:
        return compute_statistics(self.store.all(), self.clock.now())
