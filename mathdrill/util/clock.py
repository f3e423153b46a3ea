from __future__ import annotations

"""Clock abstraction and pausable timer value object.

Session timing never reads wall-clock time directly; it asks a ``Clock``
for monotonic seconds so tests can advance time with ``FakeClock``.
"""

import time
from dataclasses import dataclass, replace
from typing import Optional


class Clock:
    """Source of monotonically increasing time in seconds."""

    def time(self) -> float:
        raise NotImplementedError


class MonotonicClock(Clock):
    def time(self) -> float:  # pragma: no cover - trivial wrapper
        return time.monotonic()


class FakeClock(Clock):
    """Clock that only moves when told to."""

    def __init__(self, start: float = 0.0) -> None:
        self._now = float(start)

    def time(self) -> float:
        return self._now

    def advance(self, seconds: float) -> None:
        if seconds < 0:
            raise ValueError("Cannot advance clock backwards")
        self._now += seconds


@dataclass(frozen=True)
class PausableTimer:
    """Elapsed-time accounting for one running segment.

    Elapsed time is ``now - segment_start - accumulated_pause``. While paused,
    ``paused_at`` holds the pause start and elapsed time stays frozen.
    """

    segment_start: float
    accumulated_pause: float = 0.0
    paused_at: Optional[float] = None

    @classmethod
    def started(cls, now: float) -> "PausableTimer":
        return cls(segment_start=now)

    @property
    def is_paused(self) -> bool:
        return self.paused_at is not None

    def paused(self, now: float) -> "PausableTimer":
        if self.paused_at is not None:
            return self
        return replace(self, paused_at=now)

    def resumed(self, now: float) -> "PausableTimer":
        if self.paused_at is None:
            return self
        pause = max(0.0, now - self.paused_at)
        return replace(self, accumulated_pause=self.accumulated_pause + pause, paused_at=None)

    def elapsed(self, now: float) -> float:
        """Elapsed seconds excluding pauses."""
        end = self.paused_at if self.paused_at is not None else now
        return max(0.0, end - self.segment_start - self.accumulated_pause)

    def elapsed_ms(self, now: float) -> int:
        return int(round(self.elapsed(now) * 1000))
