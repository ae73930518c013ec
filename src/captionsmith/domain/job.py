from __future__ import annotations

import uuid
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path


class SubtitleFormat(str, Enum):
    SRT = "srt"
    ASS = "ass"

    @property
    def extension(self) -> str:
        return f".{self.value}"


# whisper.cpp writes SRT natively
NATIVE_FORMAT = SubtitleFormat.SRT


class DensityPreset(str, Enum):
    LOW = "LOW"
    MEDIUM = "MEDIUM"
    HIGH = "HIGH"
    ULTRA = "ULTRA"


class JobPhase(str, Enum):
    PREPARING = "PREPARING"
    TRANSCRIBING = "TRANSCRIBING"
    CONVERTING = "CONVERTING"
    SAVING = "SAVING"
    DONE = "DONE"
    ERROR = "ERROR"
    CANCELLED = "CANCELLED"

    @property
    def terminal(self) -> bool:
        return self in TERMINAL_PHASES


TERMINAL_PHASES = frozenset({JobPhase.DONE, JobPhase.ERROR, JobPhase.CANCELLED})

_FORWARD: dict[JobPhase | None, frozenset[JobPhase]] = {
    None: frozenset({JobPhase.PREPARING}),
    JobPhase.PREPARING: frozenset({JobPhase.TRANSCRIBING}),
    JobPhase.TRANSCRIBING: frozenset({JobPhase.CONVERTING, JobPhase.SAVING}),
    JobPhase.CONVERTING: frozenset({JobPhase.SAVING}),
    JobPhase.SAVING: frozenset({JobPhase.DONE}),
}


@dataclass(frozen=True)
class TranscriptionRequest:
    audio_path: str | None
    output_path: str | None
    language: str = "pt"
    model_id: str = "small"
    format: str = SubtitleFormat.SRT.value
    density: str = DensityPreset.MEDIUM.value


@dataclass
class Job:
    audio_path: Path
    output_path: Path
    language: str
    model_id: str
    format: SubtitleFormat
    density: DensityPreset
    job_id: str = field(default_factory=lambda: uuid.uuid4().hex)
    phase: JobPhase | None = None

    @property
    def needs_conversion(self) -> bool:
        return self.format != NATIVE_FORMAT

    def advance(self, phase: JobPhase) -> None:
        """Move to `phase`. Terminal phases are final; ERROR/CANCELLED are reachable from any live phase."""
        current = self.phase
        if current is not None and current.terminal:
            raise RuntimeError(f"Job {self.job_id} already finished ({current.value}).")
        if phase in (JobPhase.ERROR, JobPhase.CANCELLED):
            self.phase = phase
            return
        if phase not in _FORWARD.get(current, frozenset()):
            previous = current.value if current else "NEW"
            raise RuntimeError(f"Illegal job transition {previous} -> {phase.value}.")
        self.phase = phase
