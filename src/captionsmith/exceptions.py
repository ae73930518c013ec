from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from captionsmith.domain.events import ErrorInfo


class ErrorCategory(str, Enum):
    CONFIG = "config"
    DEPENDENCY = "dependency"
    INPUT = "input"
    RUNTIME = "runtime"


DEFAULT_EXIT_CODES: dict[ErrorCategory, int] = {
    ErrorCategory.RUNTIME: 1,
    ErrorCategory.CONFIG: 2,
    ErrorCategory.DEPENDENCY: 3,
    ErrorCategory.INPUT: 4,
}


@dataclass
class CaptionsmithError(Exception):
    """Base exception for captionsmith with a stable error kind and category."""

    message: str
    kind: str = "INTERNAL_ERROR"
    category: ErrorCategory = ErrorCategory.RUNTIME
    exit_code: int | None = None
    detail: str | None = None
    action_hint: str | None = None

    def __post_init__(self) -> None:
        super().__init__(self.message)
        if self.exit_code is None:
            self.exit_code = DEFAULT_EXIT_CODES.get(self.category, 1)

    def __str__(self) -> str:
        return self.message

    def label(self) -> str:
        return {
            ErrorCategory.CONFIG: "Configuration error",
            ErrorCategory.DEPENDENCY: "Dependency error",
            ErrorCategory.INPUT: "Input error",
            ErrorCategory.RUNTIME: "Runtime error",
        }.get(self.category, "Error")

    def to_info(self) -> ErrorInfo:
        from captionsmith.domain.events import ErrorInfo

        return ErrorInfo(
            kind=self.kind,
            message=self.message,
            detail=self.detail,
            action_hint=self.action_hint,
        )


class ValidationError(CaptionsmithError):
    """Raised when caller input is missing or malformed."""

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(
            message,
            kind="VALIDATION_ERROR",
            category=ErrorCategory.INPUT,
            detail=detail,
        )


class NotFoundError(CaptionsmithError):
    """Raised when a catalog record or the file behind it is absent."""

    def __init__(self, message: str, *, detail: str | None = None) -> None:
        super().__init__(
            message,
            kind="FILE_NOT_FOUND",
            category=ErrorCategory.INPUT,
            detail=detail,
        )


class AudioNotSelectedError(CaptionsmithError):
    def __init__(self, message: str = "Select an audio file first.") -> None:
        super().__init__(
            message,
            kind="AUDIO_NOT_SELECTED",
            category=ErrorCategory.INPUT,
            action_hint="PICK_AUDIO",
        )


class OutputPathRequiredError(CaptionsmithError):
    def __init__(self, message: str = "Choose where to save the subtitles before generating.") -> None:
        super().__init__(
            message,
            kind="OUTPUT_PATH_REQUIRED",
            category=ErrorCategory.INPUT,
            action_hint="CHOOSE_OUTPUT",
        )


class TranscriptionFailedError(CaptionsmithError):
    """Raised when the recognition engine exits non-zero or cannot be spawned."""

    def __init__(self, message: str = "Transcription with whisper failed.", *, detail: str | None = None) -> None:
        super().__init__(
            message,
            kind="WHISPER_FAILED",
            category=ErrorCategory.RUNTIME,
            detail=detail,
        )


class CancelledError(CaptionsmithError):
    """Raised from a pending run when its job was cancelled."""

    def __init__(self, message: str = "Transcription cancelled.") -> None:
        super().__init__(
            message,
            kind="CANCELLED",
            category=ErrorCategory.RUNTIME,
            exit_code=130,
        )


class FileOperationFailedError(CaptionsmithError):
    """Raised when a rename/delete/copy fails at the OS level."""

    def __init__(self, message: str, *, kind: str = "FILE_OPERATION_FAILED", detail: str | None = None) -> None:
        super().__init__(
            message,
            kind=kind,
            category=ErrorCategory.RUNTIME,
            detail=detail,
        )


class DependencyMissingError(CaptionsmithError):
    """Raised when a required external dependency is missing."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            kind="DEPENDENCY_MISSING",
            category=ErrorCategory.DEPENDENCY,
            exit_code=exit_code,
        )


class ConfigurationError(CaptionsmithError):
    """Raised when configuration is invalid."""

    def __init__(self, message: str, *, exit_code: int | None = None) -> None:
        super().__init__(
            message,
            kind="CONFIG_ERROR",
            category=ErrorCategory.CONFIG,
            exit_code=exit_code,
        )


KIND_CATEGORIES: dict[str, ErrorCategory] = {
    "VALIDATION_ERROR": ErrorCategory.INPUT,
    "FILE_NOT_FOUND": ErrorCategory.INPUT,
    "AUDIO_NOT_SELECTED": ErrorCategory.INPUT,
    "OUTPUT_PATH_REQUIRED": ErrorCategory.INPUT,
    "DEPENDENCY_MISSING": ErrorCategory.DEPENDENCY,
    "CONFIG_ERROR": ErrorCategory.CONFIG,
}


def error_from_info(info: ErrorInfo) -> CaptionsmithError:
    """Rebuild an error from its wire form so callers get label() and exit_code back."""
    return CaptionsmithError(
        info.message,
        kind=info.kind,
        category=KIND_CATEGORIES.get(info.kind, ErrorCategory.RUNTIME),
        exit_code=130 if info.kind == "CANCELLED" else None,
        detail=info.detail,
        action_hint=info.action_hint,
    )
