"""Time source shared by the goal and timer state machines."""

from __future__ import annotations

from datetime import datetime
from typing import Protocol


class Clock(Protocol):
    """Read-only source of the current instant."""

    def now(self) -> datetime: ...


class SystemClock:
    """Wall clock in local time."""

    def now(self) -> datetime:
        return datetime.now()
