from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path
from typing import TYPE_CHECKING, Callable, Generic, Literal, Optional, Protocol, TypeVar, Union

from captionsmith.domain.events import ErrorInfo

if TYPE_CHECKING:
    from captionsmith.domain.job import DensityPreset

T = TypeVar("T")

OutputLineCallback = Callable[[str], None]


@dataclass(frozen=True)
class RunParams:
    audio_path: Path
    language: str
    model_id: str
    density: DensityPreset


class TranscriptionRunner(Protocol):
    """Supervises exactly one engine invocation. Create a fresh instance per job."""

    @property
    def active(self) -> bool: ...

    def run(self, params: RunParams, on_output_line: Optional[OutputLineCallback] = None) -> Path: ...

    def cancel(self) -> None: ...

    def cleanup(self) -> None: ...


RunnerFactory = Callable[[str], TranscriptionRunner]


@dataclass(frozen=True)
class Ok(Generic[T]):
    value: T
    ok: Literal[True] = True


@dataclass(frozen=True)
class Failure:
    error: ErrorInfo
    ok: Literal[False] = False


Result = Union[Ok[T], Failure]
