"""Postponement rules for goals."""

from __future__ import annotations

import math
from dataclasses import dataclass
from datetime import datetime, timedelta
from enum import Enum

from procrastinot.focus.goals import Goal


class DenialReason(Enum):
    """Why a postponement was refused."""
    ALREADY_COMPLETED = "goal already completed"
    ESTIMATE_NOT_ELAPSED = "estimated time not yet elapsed"
    COOLDOWN_ACTIVE = "cooldown active"
    MAX_DELAYS_REACHED = "maximum postponements reached"


@dataclass(frozen=True)
class DelayPolicy:
    """Cooldown between delays and the hard cap on their number."""
    cooldown: timedelta = timedelta(hours=1)
    max_delays: int = 5


@dataclass(frozen=True)
class DelayDecision:
    """Outcome of a delay request. A denial is a value, not an error."""
    allowed: bool
    reason: DenialReason | None = None
    retry_after_minutes: int | None = None

    @property
    def message(self) -> str:
        if self.allowed:
            return "Delay allowed"
        if self.retry_after_minutes is not None:
            return f"{self.reason.value.capitalize()}: try again in {self.retry_after_minutes} min"
        return self.reason.value.capitalize()


ALLOWED = DelayDecision(allowed=True)


def _ceil_minutes(remaining: timedelta) -> int:
    return math.ceil(remaining.total_seconds() / 60)


def evaluate(goal: Goal, now: datetime, policy: DelayPolicy = DelayPolicy()) -> DelayDecision:
    """Decide whether ``goal`` may be postponed at ``now``.

    Checks run in order and the first objection wins, so the cap is only
    reported when no timing rule applies.
    """
    if goal.is_completed:
        return DelayDecision(allowed=False, reason=DenialReason.ALREADY_COMPLETED)

    estimate = timedelta(minutes=goal.estimated_minutes)
    since_created = now - goal.created_at
    if since_created < estimate:
        return DelayDecision(
            allowed=False,
            reason=DenialReason.ESTIMATE_NOT_ELAPSED,
            retry_after_minutes=_ceil_minutes(estimate - since_created),
        )

    if goal.last_delayed_at is not None:
        since_delay = now - goal.last_delayed_at
        if since_delay < policy.cooldown:
            return DelayDecision(
                allowed=False,
                reason=DenialReason.COOLDOWN_ACTIVE,
                retry_after_minutes=_ceil_minutes(policy.cooldown - since_delay),
            )

    if goal.delay_count >= policy.max_delays:
        return DelayDecision(allowed=False, reason=DenialReason.MAX_DELAYS_REACHED)

    return ALLOWED
