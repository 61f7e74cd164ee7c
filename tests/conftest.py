"""Shared fixtures: a controllable clock, a hand-cranked ticker and storage."""

from __future__ import annotations

from datetime import datetime, timedelta

import pytest

from procrastinot.core.config import PomodoroConfig
from procrastinot.focus.goals import GoalStore
from procrastinot.focus.lifecycle import GoalLifecycleController
from procrastinot.focus.pomodoro import PomodoroEngine
from procrastinot.storage.database import Database

T0 = datetime(2024, 3, 4, 9, 0, 0)


class FrozenClock:
    """Clock that only moves when told to."""

    def __init__(self, start: datetime = T0):
        self.current = start

    def now(self) -> datetime:
        return self.current

    def advance(self, **kwargs) -> datetime:
        self.current += timedelta(**kwargs)
        return self.current


class ManualTicker:
    """Ticker whose ticks are fired by the test."""

    def __init__(self):
        self.callback = None
        self.starts = 0

    @property
    def running(self) -> bool:
        return self.callback is not None

    async def start(self, callback) -> None:
        self.callback = callback
        self.starts += 1

    async def stop(self) -> None:
        self.callback = None

    async def fire(self, times: int = 1) -> int:
        """Fire up to ``times`` ticks, stopping early if the ticker stops."""
        fired = 0
        for _ in range(times):
            if self.callback is None:
                break
            await self.callback()
            fired += 1
        return fired

    async def run_out(self) -> int:
        """Fire until the countdown stops itself."""
        return await self.fire(10**6)


class RecordingNotifier:
    def __init__(self):
        self.sent: list[tuple[str, str]] = []

    def notify(self, title: str, body: str) -> None:
        self.sent.append((title, body))


@pytest.fixture
def anyio_backend():
    return "asyncio"


@pytest.fixture
def clock() -> FrozenClock:
    return FrozenClock()


@pytest.fixture
def ticker() -> ManualTicker:
    return ManualTicker()


@pytest.fixture
def notifier() -> RecordingNotifier:
    return RecordingNotifier()


@pytest.fixture
async def db(tmp_path):
    database = Database(tmp_path / "test.db")
    await database.connect()
    yield database
    await database.close()


@pytest.fixture
def store(db) -> GoalStore:
    return GoalStore(db)


@pytest.fixture
def controller(store, clock) -> GoalLifecycleController:
    return GoalLifecycleController(store, clock=clock)


@pytest.fixture
def engine(db, store, clock, ticker, notifier) -> PomodoroEngine:
    return PomodoroEngine(
        PomodoroConfig(),
        db=db,
        goal_store=store,
        clock=clock,
        ticker=ticker,
        notifier=notifier,
    )
