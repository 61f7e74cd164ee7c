"""Goal entity and the persisted goal collection."""

from __future__ import annotations

import asyncio
import logging
import math
from contextlib import asynccontextmanager
from dataclasses import dataclass, field, fields
from datetime import datetime
from enum import Enum
from typing import Any, AsyncIterator

from procrastinot.storage.database import GOALS_KEY, Database

logger = logging.getLogger(__name__)


class GoalStatus(Enum):
    """Lifecycle status of a goal. Completed is terminal."""
    ACTIVE = "active"
    COMPLETED = "completed"


def round_half_up(value: float) -> int:
    """Round to the nearest integer, halves away from zero for positives."""
    return math.floor(value + 0.5)


def _parse_instant(value: Any) -> datetime | None:
    if not value:
        return None
    parsed = datetime.fromisoformat(value)
    if parsed.tzinfo is not None:
        # Clock instants are naive local time
        parsed = parsed.astimezone().replace(tzinfo=None)
    return parsed


@dataclass
class Goal:
    """A task the user has committed to, with its postponement history.

    Example:
        goal = Goal(
            id=1718000000000,
            text="Write the quarterly report",
            estimated_minutes=45,
            importance=4,
        )
    """
    id: int
    text: str
    estimated_minutes: int
    importance: int = 3
    created_at: datetime = field(default_factory=datetime.now)
    status: GoalStatus = GoalStatus.ACTIVE
    delay_count: int = 0
    last_delayed_at: datetime | None = None
    final_timer_started_at: datetime | None = None
    completed_at: datetime | None = None
    total_time_taken_minutes: int | None = None
    pomodoro_sessions: int = 0

    @property
    def is_active(self) -> bool:
        return self.status == GoalStatus.ACTIVE

    @property
    def is_completed(self) -> bool:
        return self.status == GoalStatus.COMPLETED

    @property
    def in_final_regime(self) -> bool:
        """Whether postponement has been exhausted and the final timer runs."""
        return self.final_timer_started_at is not None

    @property
    def effective_start(self) -> datetime:
        """Instant the time-taken figure is measured from."""
        return self.final_timer_started_at or self.created_at

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> Goal:
        """Create from a stored record."""
        return cls(
            id=int(data["id"]),
            text=data.get("text", ""),
            estimated_minutes=int(data.get("estimatedTime", 0)),
            importance=int(data.get("importance", 3)),
            created_at=_parse_instant(data.get("createdAt")) or datetime.now(),
            status=GoalStatus(data.get("status", "active")),
            delay_count=int(data.get("delayCount", 0)),
            last_delayed_at=_parse_instant(data.get("lastDelayedAt")),
            final_timer_started_at=_parse_instant(data.get("finalTimerStartedAt")),
            completed_at=_parse_instant(data.get("completedAt")),
            total_time_taken_minutes=data.get("totalTimeTaken"),
            pomodoro_sessions=int(data.get("pomodoroSessions") or 0),
        )

    def to_dict(self) -> dict[str, Any]:
        """Convert to a JSON-serializable record. Absent fields are omitted."""
        data: dict[str, Any] = {
            "id": self.id,
            "text": self.text,
            "estimatedTime": self.estimated_minutes,
            "importance": self.importance,
            "createdAt": self.created_at.isoformat(),
            "delayCount": self.delay_count,
            "status": self.status.value,
            "pomodoroSessions": self.pomodoro_sessions,
        }
        if self.last_delayed_at:
            data["lastDelayedAt"] = self.last_delayed_at.isoformat()
        if self.final_timer_started_at:
            data["finalTimerStartedAt"] = self.final_timer_started_at.isoformat()
        if self.completed_at:
            data["completedAt"] = self.completed_at.isoformat()
        if self.total_time_taken_minutes is not None:
            data["totalTimeTaken"] = self.total_time_taken_minutes
        return data


class GoalStore:
    """Ordered goal collection persisted as one document.

    Every mutation rewrites the whole list, so the stored document never
    holds a partial update. Other processes may write the same document,
    so each read-modify-write reloads it first while holding the store
    lock. Reloading updates known goals in place, so references handed
    out earlier stay current.

    Usage:
        store = GoalStore(db)
        await store.load()

        goal = await store.add(Goal(id=store.next_id(now), text="Taxes", estimated_minutes=30))
        async with store.locked():
            goal.importance = 5
            await store.save()
    """

    def __init__(self, db: Database | None = None):
        """Initialize the store.

        Args:
            db: Database instance for persistence (optional for in-memory only)
        """
        self.db = db
        self._goals: list[Goal] = []
        self._lock = asyncio.Lock()

    async def load(self) -> list[Goal]:
        """Replace the in-memory goals with the stored document."""
        if not self.db:
            return list(self._goals)

        records = await self.db.get_json(GOALS_KEY, default=[]) or []
        known = {g.id: g for g in self._goals}
        goals = []
        for record in records:
            try:
                goal = Goal.from_dict(record)
            except (KeyError, ValueError, TypeError) as e:
                logger.warning(f"Skipping unreadable goal record: {e}")
                continue

            current = known.get(goal.id)
            if current is not None:
                for f in fields(Goal):
                    setattr(current, f.name, getattr(goal, f.name))
                goal = current
            goals.append(goal)

        self._goals = goals
        logger.debug(f"Loaded {len(goals)} goals")
        return list(self._goals)

    @asynccontextmanager
    async def locked(self) -> AsyncIterator[GoalStore]:
        """Hold the store lock with freshly loaded goals.

        Mutations made inside the block must be followed by ``save()``
        before it exits.
        """
        async with self._lock:
            await self.load()
            yield self

    async def save(self) -> None:
        """Write the full goal list."""
        if not self.db:
            return
        await self.db.set_json(GOALS_KEY, [g.to_dict() for g in self._goals])

    def all(self) -> list[Goal]:
        """All goals in insertion order."""
        return list(self._goals)

    def get(self, goal_id: int) -> Goal | None:
        for goal in self._goals:
            if goal.id == goal_id:
                return goal
        return None

    def next_id(self, now: datetime) -> int:
        """Creation timestamp in milliseconds, bumped until unused."""
        candidate = int(now.timestamp() * 1000)
        taken = {g.id for g in self._goals}
        while candidate in taken:
            candidate += 1
        return candidate

    async def add(self, goal: Goal) -> Goal:
        async with self.locked():
            if self.get(goal.id) is not None:
                raise ValueError(f"Duplicate goal id: {goal.id}")
            self._goals.append(goal)
            await self.save()
        return goal

    async def remove(self, goal_id: int) -> Goal | None:
        """Remove a goal. Returns the removed goal, or None if unknown."""
        async with self.locked():
            goal = self.get(goal_id)
            if goal is None:
                return None
            self._goals = [g for g in self._goals if g.id != goal_id]
            await self.save()
        return goal

    async def increment_sessions(self, goal_id: int) -> Goal | None:
        """Credit one completed focus interval to a goal."""
        async with self.locked():
            goal = self.get(goal_id)
            if goal is None:
                logger.warning(f"Cannot credit focus session, goal {goal_id} not found")
                return None
            goal.pomodoro_sessions += 1
            await self.save()
        return goal
