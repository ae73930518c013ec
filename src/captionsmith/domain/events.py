"""
Events emitted by the job orchestrator to its caller.

Every event carries a `kind` tag so observers can dispatch on it without
isinstance checks. Events are delivered through the observer callable the
caller passes to the orchestrator; there is no global bus.
"""

from __future__ import annotations

import threading
from dataclasses import dataclass, field
from enum import Enum
from typing import Callable, Literal, Union

from captionsmith.domain.artifacts import ArtifactRef
from captionsmith.domain.cue import Cue
from captionsmith.domain.job import JobPhase


class ChangeReason(str, Enum):
    CREATED = "CREATED"
    RENAMED = "RENAMED"
    DELETED = "DELETED"


@dataclass(frozen=True)
class ErrorInfo:
    kind: str
    message: str
    detail: str | None = None
    action_hint: str | None = None


@dataclass(frozen=True)
class ProgressEvent:
    job_id: str
    phase: JobPhase
    message: str
    percent: int | None = None
    kind: Literal["progress"] = "progress"


@dataclass(frozen=True)
class DoneEvent:
    job_id: str
    artifact: ArtifactRef
    preview: tuple[Cue, ...]
    kind: Literal["done"] = "done"


@dataclass(frozen=True)
class ErrorEvent:
    job_id: str
    error: ErrorInfo
    kind: Literal["error"] = "error"


@dataclass(frozen=True)
class ArtifactChangedEvent:
    reason: ChangeReason
    kind: Literal["artifact-changed"] = "artifact-changed"


Event = Union[ProgressEvent, DoneEvent, ErrorEvent, ArtifactChangedEvent]
EventObserver = Callable[[Event], None]


def null_observer(_event: Event) -> None:
    return None


@dataclass
class EventLog:
    """Observer that records every event it receives (thread-safe)."""

    events: list[Event] = field(default_factory=list)
    _lock: threading.Lock = field(default_factory=threading.Lock, repr=False)

    def __call__(self, event: Event) -> None:
        with self._lock:
            self.events.append(event)

    def for_job(self, job_id: str) -> list[Event]:
        with self._lock:
            return [e for e in self.events if getattr(e, "job_id", None) == job_id]

    def phases(self, job_id: str) -> list[JobPhase]:
        """Phase sequence for a job, collapsing repeated progress within one phase."""
        seen: list[JobPhase] = []
        for event in self.for_job(job_id):
            if isinstance(event, ProgressEvent) and (not seen or seen[-1] != event.phase):
                seen.append(event.phase)
        return seen

    def of_kind(self, kind: str) -> list[Event]:
        with self._lock:
            return [e for e in self.events if e.kind == kind]
