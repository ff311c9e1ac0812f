"""Adaptive poll schedule for the Schlüter cloud.

The schedule has three modes:

- ``normal``: poll every base interval.
- ``backoff``: the interval doubles after each cycle that failed to
  communicate or found no thermostat online, up to the cap.
- ``fixed``: once the cap is reached and failures persist, poll at the next
  00:00 or 12:00 local time instead of a fixed delay.

A single successful cycle with at least one online thermostat returns the
schedule to ``normal`` immediately.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from datetime import UTC, datetime, timedelta
from enum import StrEnum

from .const import (
    DEFAULT_POLL_INTERVAL,
    FIXED_POLL_HOURS,
    MAX_POLL_INTERVAL,
    MIN_POLL_INTERVAL,
)


class PollMode(StrEnum):
    """Poll schedule modes."""

    NORMAL = "normal"
    BACKOFF = "backoff"
    FIXED = "fixed"


def next_fixed_slot(now: datetime, hours: tuple[int, ...] = FIXED_POLL_HOURS) -> datetime:
    """Return the next occurrence of one of ``hours`` strictly after ``now``.

    Args:
        now: Current local time, timezone-aware.
        hours: Hours of the day at which fixed polls happen.

    Returns:
        The next slot, in the timezone of ``now``.

    """
    day = now.replace(minute=0, second=0, microsecond=0)
    for offset in (0, 1):
        base = day + timedelta(days=offset)
        for hour in sorted(hours):
            slot = base.replace(hour=hour)
            if slot > now:
                return slot
    return day + timedelta(days=1)


@dataclass
class PollState:
    """State machine behind the adaptive poll interval.

    Only the coordinator mutates it; it performs no I/O so transitions can be
    exercised without a network.
    """

    base_interval: int = DEFAULT_POLL_INTERVAL
    max_interval: int = MAX_POLL_INTERVAL
    interval: int = field(init=False)
    failures: int = field(default=0, init=False)
    mode: PollMode = field(default=PollMode.NORMAL, init=False)

    def __post_init__(self) -> None:
        self.base_interval = max(MIN_POLL_INTERVAL, int(self.base_interval))
        self.interval = self.base_interval

    def record_success(self, any_online: bool) -> None:
        """Record a cycle that reached the cloud.

        Args:
            any_online: True if at least one thermostat reported online.

        """
        self.failures = 0
        if any_online:
            self.reset()
        else:
            self._degrade()

    def record_failure(self) -> None:
        """Record a cycle that ended in a communication failure."""
        self.failures += 1
        self._degrade()

    def reset(self) -> None:
        """Return to the base interval."""
        self.interval = self.base_interval
        self.mode = PollMode.NORMAL

    def _degrade(self) -> None:
        if self.mode is PollMode.FIXED:
            return
        if self.interval >= self.max_interval:
            self.mode = PollMode.FIXED
            return
        self.interval = min(self.interval * 2, self.max_interval)
        self.mode = PollMode.BACKOFF

    def next_delay(self, now: datetime) -> timedelta:
        """Return the delay until the next cycle.

        Args:
            now: Current local time, timezone-aware; used in fixed mode.

        """
        if self.mode is PollMode.FIXED:
            slot = next_fixed_slot(now)
            return slot.astimezone(UTC) - now.astimezone(UTC)
        return timedelta(seconds=self.interval)
