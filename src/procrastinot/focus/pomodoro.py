"""Pomodoro timer state machine with configurable durations."""

from __future__ import annotations

import asyncio
import dataclasses
import logging
from dataclasses import dataclass
from datetime import date
from enum import Enum
from typing import Any, Awaitable, Callable

from procrastinot.core.callbacks import Callback, fire
from procrastinot.core.clock import Clock, SystemClock
from procrastinot.core.config import PomodoroConfig
from procrastinot.focus.goals import GoalStore
from procrastinot.focus.notifier import Notifier, NullNotifier
from procrastinot.storage.database import POMODORO_STATS_KEY, Database

logger = logging.getLogger(__name__)


class TimerMode(Enum):
    """Current mode of the Pomodoro timer."""
    FOCUS = "focus"
    SHORT_BREAK = "short_break"
    LONG_BREAK = "long_break"


@dataclass
class PomodoroState:
    """Current state of the Pomodoro timer."""
    mode: TimerMode = TimerMode.FOCUS
    running: bool = False
    remaining_seconds: int = 25 * 60
    total_seconds: int = 25 * 60
    sessions_completed: int = 0
    bound_goal_id: int | None = None

    @property
    def time_remaining_display(self) -> str:
        """Format time remaining as MM:SS."""
        minutes, seconds = divmod(self.remaining_seconds, 60)
        return f"{minutes:02d}:{seconds:02d}"

    @property
    def progress_percent(self) -> float:
        """Progress through current interval (0-100)."""
        if self.total_seconds <= 0:
            return 100.0
        elapsed = self.total_seconds - self.remaining_seconds
        return min(100.0, max(0.0, (elapsed / self.total_seconds) * 100))


@dataclass
class PomodoroDailyStats:
    """Persisted focus totals. Today's count resets on a new calendar day."""
    today_sessions: int = 0
    total_focus_minutes: int = 0
    last_session_date: str | None = None

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> PomodoroDailyStats:
        return cls(
            today_sessions=int(data.get("todaySessions", 0)),
            total_focus_minutes=int(data.get("totalFocusMinutes", 0)),
            last_session_date=data.get("lastSessionDate"),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "todaySessions": self.today_sessions,
            "totalFocusMinutes": self.total_focus_minutes,
            "lastSessionDate": self.last_session_date,
        }

    def roll_over(self, today: date) -> bool:
        """Zero today's count if the stored day is not ``today``."""
        if self.last_session_date != today.isoformat() and self.today_sessions:
            self.today_sessions = 0
            return True
        return False


class Ticker:
    """Calls an async callback once per interval until stopped.

    Only one countdown stream exists at a time: ``start`` stops the previous
    one first. Stopping from inside the callback lets the current call finish
    and ends the loop instead of cancelling it.
    """

    def __init__(self, interval_seconds: float = 1.0):
        self.interval_seconds = interval_seconds
        self._task: asyncio.Task | None = None

    @property
    def running(self) -> bool:
        return self._task is not None

    async def start(self, callback: Callable[[], Awaitable[None]]) -> None:
        await self.stop()
        self._task = asyncio.create_task(self._run(callback))

    async def stop(self) -> None:
        task, self._task = self._task, None
        if task is None or task is asyncio.current_task():
            return
        task.cancel()
        try:
            await task
        except asyncio.CancelledError:
            pass

    async def _run(self, callback: Callable[[], Awaitable[None]]) -> None:
        me = asyncio.current_task()
        try:
            while self._task is me:
                await asyncio.sleep(self.interval_seconds)
                if self._task is not me:
                    break
                await callback()
        except asyncio.CancelledError:
            raise
        except Exception as e:
            logger.error(f"Error in timer tick loop: {e}")


class PomodoroEngine:
    """Pomodoro timer with state machine and callbacks.

    Modes cycle Focus -> Break -> Focus, with a long break after every
    ``pomodoros_until_long_break`` focus intervals. A finished interval
    never starts the next one on its own.

    Usage:
        engine = PomodoroEngine(config, db=db, goal_store=store)
        engine.on_focus_complete = lambda count: print(f"Pomodoro #{count} done")

        await engine.initialize()
        await engine.start()
        # ... ticker calls engine.tick() every second ...
        await engine.pause()
        await engine.switch_mode(TimerMode.LONG_BREAK)
        await engine.reset()
    """

    def __init__(
        self,
        config: PomodoroConfig | None = None,
        db: Database | None = None,
        goal_store: GoalStore | None = None,
        clock: Clock | None = None,
        ticker: Ticker | None = None,
        notifier: Notifier | None = None,
    ):
        self.config = config or PomodoroConfig()
        self.db = db
        self.goal_store = goal_store
        self.clock = clock or SystemClock()
        self.ticker = ticker or Ticker()
        self.notifier = notifier or NullNotifier()
        self._daily = PomodoroDailyStats()
        self._lock = asyncio.Lock()

        duration = self.duration(TimerMode.FOCUS)
        self._state = PomodoroState(remaining_seconds=duration, total_seconds=duration)

        # Callbacks
        self.on_tick: Callback | None = None  # (state)
        self.on_focus_complete: Callback | None = None  # (sessions_completed)
        self.on_break_complete: Callback | None = None  # (completed mode)

    @property
    def state(self) -> PomodoroState:
        """Get current timer state (read-only copy)."""
        return dataclasses.replace(self._state)

    @property
    def daily_stats(self) -> PomodoroDailyStats:
        return dataclasses.replace(self._daily)

    @property
    def bound_goal_id(self) -> int | None:
        return self._state.bound_goal_id

    def bind_goal(self, goal_id: int | None) -> None:
        """Set the goal credited for completed focus intervals (None clears)."""
        self._state.bound_goal_id = goal_id

    def duration(self, mode: TimerMode) -> int:
        """Get duration in seconds for a mode."""
        return self.config.duration_seconds(mode.value)

    async def initialize(self) -> None:
        """Load persisted daily stats, zeroing today's count on a new day."""
        if not self.db:
            return

        data = await self.db.get_json(POMODORO_STATS_KEY)
        if data:
            self._daily = PomodoroDailyStats.from_dict(data)

        if self._daily.roll_over(self.clock.now().date()):
            logger.info("New day, daily focus sessions reset")
            await self._save_daily_stats()

    async def start(self) -> None:
        """Start or resume the countdown."""
        async with self._lock:
            if self._state.running:
                return

            self._state.running = True
            await self.ticker.start(self.tick)

            logger.info(f"Pomodoro timer started: {self._state.mode.value}")

    async def pause(self) -> None:
        """Stop the countdown, keeping the remaining time."""
        async with self._lock:
            if not self._state.running:
                return

            await self._halt()
            logger.info("Pomodoro timer paused")

    async def reset(self) -> None:
        """Stop and restore the full duration of the current mode."""
        async with self._lock:
            await self._halt()
            self._state.remaining_seconds = self._state.total_seconds

            logger.info(f"Pomodoro interval reset: {self._state.mode.value}")

    async def switch_mode(self, mode: TimerMode) -> None:
        """Stop and load a fresh interval of ``mode``."""
        async with self._lock:
            await self._halt()
            self._load_mode(mode)

            logger.info(f"Pomodoro switched to {mode.value}")

    async def tick(self) -> None:
        """Advance the countdown by one second."""
        async with self._lock:
            if not self._state.running:
                return

            self._state.remaining_seconds = max(0, self._state.remaining_seconds - 1)
            finished = self._state.remaining_seconds == 0

        await fire("on_tick", self.on_tick, self.state)

        if finished:
            await self._complete_interval()

    async def _halt(self) -> None:
        self._state.running = False
        await self.ticker.stop()

    def _load_mode(self, mode: TimerMode) -> None:
        duration = self.duration(mode)
        self._state.mode = mode
        self._state.total_seconds = duration
        self._state.remaining_seconds = duration

    async def _complete_interval(self) -> None:
        """Handle interval completion and choose the next mode."""
        async with self._lock:
            # A pause, reset or mode switch may have landed during on_tick
            if not self._state.running or self._state.remaining_seconds > 0:
                return

            await self._halt()
            completed = self._state.mode

            if completed == TimerMode.FOCUS:
                self._state.sessions_completed += 1
                self._record_focus_session()
                if self._state.sessions_completed % self.config.pomodoros_until_long_break == 0:
                    next_mode = TimerMode.LONG_BREAK
                else:
                    next_mode = TimerMode.SHORT_BREAK
            else:
                next_mode = TimerMode.FOCUS

            self._load_mode(next_mode)
            sessions = self._state.sessions_completed
            bound_goal_id = self._state.bound_goal_id

        if completed == TimerMode.FOCUS:
            logger.info(f"Focus interval #{sessions} complete! Next: {next_mode.value}")
            await self._save_daily_stats()
            if bound_goal_id is not None and self.goal_store is not None:
                await self.goal_store.increment_sessions(bound_goal_id)

            if next_mode == TimerMode.LONG_BREAK:
                body = "Great streak. Take a long break."
            else:
                body = "Nice work. Take a short break."
            self.notifier.notify("Focus complete", body)
            await fire("on_focus_complete", self.on_focus_complete, sessions)
        else:
            logger.info("Break complete! Ready for focus")
            self.notifier.notify("Break complete", "Time to get back to work.")
            await fire("on_break_complete", self.on_break_complete, completed)

    def _record_focus_session(self) -> None:
        today = self.clock.now().date()
        self._daily.roll_over(today)
        self._daily.today_sessions += 1
        self._daily.total_focus_minutes += self.config.focus_minutes
        self._daily.last_session_date = today.isoformat()

    async def _save_daily_stats(self) -> None:
        if self.db:
            await self.db.set_json(POMODORO_STATS_KEY, self._daily.to_dict())

    def get_summary(self) -> dict:
        """Get a summary of the timer and today's totals."""
        return {
            "mode": self._state.mode.value,
            "running": self._state.running,
            "time_remaining": self._state.time_remaining_display,
            "progress_percent": round(self._state.progress_percent, 1),
            "sessions_completed": self._state.sessions_completed,
            "bound_goal_id": self._state.bound_goal_id,
            "today_sessions": self._daily.today_sessions,
            "total_focus_minutes": self._daily.total_focus_minutes,
        }
