from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

from .cascade import ExplosionEvent
from .config import ANIMATION_DURATION, WAVE_GAP


@dataclass(frozen=True)
class ScheduledExplosion:
    start: float  # seconds after playback begins
    duration: float
    event: ExplosionEvent


def schedule_events(
    events: Sequence[ExplosionEvent],
    animation_duration: float = ANIMATION_DURATION,
    wave_gap: float = WAVE_GAP,
    lead_in: float = 0.0,
) -> List[ScheduledExplosion]:
    """Assigns each explosion a start offset. Waves play strictly in order; a wave's events start together."""
    step = animation_duration + wave_gap
    return [
        ScheduledExplosion(start=lead_in + ev.wave * step, duration=animation_duration, event=ev)
        for ev in events
    ]


class PlaybackSchedule:
    """
    Cosmetic, time-driven replay of an already resolved cascade.

    The game state is final before playback starts; this object only tells a
    renderer which explosions should be visible at a given time. Cancelling
    it (e.g. on reset) drops the remaining events and touches nothing else.
    """

    def __init__(
        self,
        events: Sequence[ExplosionEvent],
        started_at: float,
        animation_duration: float = ANIMATION_DURATION,
        wave_gap: float = WAVE_GAP,
        lead_in: float = 0.0,
    ) -> None:
        self.started_at = started_at
        self.items = schedule_events(events, animation_duration, wave_gap, lead_in)
        self._cursor = 0
        self.cancelled = False

    @property
    def total_duration(self) -> float:
        if not self.items:
            return 0.0
        last = self.items[-1]
        return last.start + last.duration

    def due(self, now: float) -> List[ExplosionEvent]:
        """Events whose start time has been reached and that were not returned before."""
        if self.cancelled:
            return []
        elapsed = now - self.started_at
        out: List[ExplosionEvent] = []
        while self._cursor < len(self.items) and self.items[self._cursor].start <= elapsed:
            out.append(self.items[self._cursor].event)
            self._cursor += 1
        return out

    def in_flight(self, now: float) -> List[Tuple[ExplosionEvent, float]]:
        """Started but unfinished explosions with their progress in [0, 1)."""
        if self.cancelled:
            return []
        elapsed = now - self.started_at
        out: List[Tuple[ExplosionEvent, float]] = []
        for item in self.items:
            if item.start > elapsed:
                break
            progress = (elapsed - item.start) / item.duration if item.duration > 0 else 1.0
            if progress < 1.0:
                out.append((item.event, progress))
        return out

    def finished(self, now: float) -> bool:
        return self.cancelled or now - self.started_at >= self.total_duration

    def cancel(self) -> None:
        self.cancelled = True

    def remaining(self) -> int:
        if self.cancelled:
            return 0
        return len(self.items) - self._cursor
