from __future__ import annotations

from contextlib import contextmanager
from dataclasses import dataclass
from datetime import datetime, timezone
from typing import Callable, Iterator, List


Clock = Callable[[], datetime]


def utc_now() -> datetime:
    return datetime.now(timezone.utc)


def utc_now_iso() -> str:
    return utc_now().isoformat()


@dataclass(frozen=True)
class PhaseTiming:
    phase: str
    started_at: datetime
    finished_at: datetime

    @property
    def duration_s(self) -> float:
        return (self.finished_at - self.started_at).total_seconds()


class PhaseTimer:
    """Records wall-clock time spent in each job phase."""

    def __init__(self, *, clock: Clock = utc_now) -> None:
        self._clock = clock
        self.phases: List[PhaseTiming] = []

    @contextmanager
    def phase(self, name: str) -> Iterator[None]:
        started_at = self._clock()
        try:
            yield
        finally:
            self.phases.append(
                PhaseTiming(
                    phase=name,
                    started_at=started_at,
                    finished_at=self._clock(),
                )
            )

    @property
    def total_s(self) -> float:
        return sum(p.duration_s for p in self.phases)

    def summary(self) -> str:
        return ", ".join(f"{p.phase}={p.duration_s:.2f}s" for p in self.phases)
