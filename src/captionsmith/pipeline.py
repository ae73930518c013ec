"""
Job orchestration for captionsmith.

A job runs one transcription request end to end:

1) PREPARING     validate inputs, check the audio file
2) TRANSCRIBING  run whisper.cpp through a TranscriptionRunner
3) CONVERTING    SRT -> ASS (only when ASS was requested)
4) SAVING        copy to the requested path, add the catalog record
5) DONE          emit the result with a cue preview

Any failure ends in ERROR, an explicit cancel in CANCELLED. Both emit an
error event and re-raise the same CaptionsmithError to the caller.

Responsibilities:
- Own the active-job registry and the per-job phase sequence
- Emit progress/done/error/artifact-changed events in phase order

Does NOT:
- Build engine argv or parse engine output (runner, utils.engine)
- Touch the catalog file directly (GeneratedArtifactStore does)
"""

from __future__ import annotations

import logging
import shutil
import threading
import uuid
from concurrent.futures import Future, ThreadPoolExecutor
from dataclasses import dataclass, field
from pathlib import Path
from typing import Optional

from captionsmith.config.settings import Settings
from captionsmith.domain.artifacts import ArtifactRef, GeneratedArtifact
from captionsmith.domain.contracts import RunnerFactory, RunParams, TranscriptionRunner
from captionsmith.domain.cue import Cue
from captionsmith.domain.events import (
    ArtifactChangedEvent,
    ChangeReason,
    DoneEvent,
    ErrorEvent,
    Event,
    EventObserver,
    ProgressEvent,
    null_observer,
)
from captionsmith.domain.job import DensityPreset, Job, JobPhase, SubtitleFormat, TranscriptionRequest
from captionsmith.exceptions import (
    AudioNotSelectedError,
    CancelledError,
    CaptionsmithError,
    FileOperationFailedError,
    NotFoundError,
    OutputPathRequiredError,
    TranscriptionFailedError,
    ValidationError,
)
from captionsmith.services import codec
from captionsmith.services.runner import WhisperCppRunner
from captionsmith.services.store import GeneratedArtifactStore
from captionsmith.utils.engine import parse_progress_line
from captionsmith.utils.logging import get_logger
from captionsmith.utils.timing import PhaseTimer, utc_now_iso

log = get_logger(__name__)

PHASE_MESSAGES: dict[JobPhase, str] = {
    JobPhase.PREPARING: "Validating files and model...",
    JobPhase.TRANSCRIBING: "Transcribing audio (whisper)...",
    JobPhase.CONVERTING: "Converting subtitles...",
    JobPhase.SAVING: "Saving file...",
    JobPhase.DONE: "Done.",
}


class JobRegistry:
    """Active jobs by id. The only shared job state; guarded by one lock."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._runners: dict[str, TranscriptionRunner] = {}

    def register(self, job_id: str, runner: TranscriptionRunner) -> None:
        with self._lock:
            if job_id in self._runners:
                raise ValidationError("Job already registered.", detail=job_id)
            self._runners[job_id] = runner

    def deregister(self, job_id: str) -> Optional[TranscriptionRunner]:
        with self._lock:
            return self._runners.pop(job_id, None)

    def lookup(self, job_id: str) -> Optional[TranscriptionRunner]:
        with self._lock:
            return self._runners.get(job_id)

    def active_ids(self) -> list[str]:
        with self._lock:
            return list(self._runners)


@dataclass(frozen=True)
class JobOutcome:
    job_id: str
    artifact: GeneratedArtifact
    preview: tuple[Cue, ...]
    timings: str = ""


@dataclass
class JobHandle:
    job_id: str
    future: Future = field(repr=False)

    def result(self, timeout: float | None = None) -> JobOutcome:
        return self.future.result(timeout=timeout)

    def done(self) -> bool:
        return self.future.done()


class JobOrchestrator:
    """
    Composition root for transcription jobs.

    Notes:
    - The runner factory is injected so tests can swap in a fake engine.
    - `run` blocks the calling thread; `submit` runs the job on a worker
      thread and returns immediately with a JobHandle.
    """

    def __init__(
        self,
        *,
        store: GeneratedArtifactStore,
        settings: Settings | None = None,
        observer: EventObserver = null_observer,
        runner_factory: RunnerFactory | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store
        self.registry = JobRegistry()
        self._observer = observer
        self._runner_factory = runner_factory or self._default_runner_factory
        self._executor: ThreadPoolExecutor | None = None
        self._executor_lock = threading.Lock()

    def _default_runner_factory(self, job_id: str) -> TranscriptionRunner:
        return WhisperCppRunner(self.settings, job_id=job_id)

    # ------------------------------------------------------------------
    # Public API
    # ------------------------------------------------------------------
    def validate(self, request: TranscriptionRequest, job_id: str | None = None) -> Job:
        """Check preconditions and build a Job. Raises before any event or spawn."""
        if not (request.audio_path or "").strip():
            raise AudioNotSelectedError()
        if not (request.output_path or "").strip():
            raise OutputPathRequiredError()

        fmt_raw = (request.format or self.settings.default_format).strip().lower()
        try:
            fmt = SubtitleFormat(fmt_raw)
        except ValueError:
            raise ValidationError(f"Unsupported subtitle format '{request.format}'.", detail="Use srt or ass.") from None

        density_raw = (request.density or self.settings.default_density).strip().upper()
        try:
            density = DensityPreset(density_raw)
        except ValueError:
            raise ValidationError(
                f"Unknown density preset '{request.density}'.",
                detail="Use LOW, MEDIUM, HIGH or ULTRA.",
            ) from None

        return Job(
            audio_path=Path(request.audio_path).expanduser().resolve(),
            output_path=Path(request.output_path).expanduser().resolve(),
            language=(request.language or self.settings.default_language).strip(),
            model_id=(request.model_id or self.settings.default_model).strip(),
            format=fmt,
            density=density,
            job_id=job_id or uuid.uuid4().hex,
        )

    def run(self, request: TranscriptionRequest, job_id: str | None = None) -> JobOutcome:
        """Run a job on the calling thread and return its outcome."""
        job = self.validate(request, job_id)
        self._accept(job)
        return self._execute(job)

    def submit(self, request: TranscriptionRequest, job_id: str | None = None) -> JobHandle:
        """Validate now, run on a worker thread. Validation errors raise here."""
        job = self.validate(request, job_id)
        self._accept(job)
        try:
            future = self._get_executor().submit(self._execute, job)
        except Exception:
            self.registry.deregister(job.job_id)
            raise
        return JobHandle(job_id=job.job_id, future=future)

    def cancel(self, job_id: str) -> bool:
        """Request cancellation. Unknown or finished jobs are a no-op."""
        runner = self.registry.deregister(job_id)
        if runner is None:
            log.debug("Cancel for inactive job %s ignored.", job_id)
            return False
        log.info("Job %s: cancellation requested.", job_id)
        runner.cancel()
        return True

    def shutdown(self, wait: bool = True) -> None:
        with self._executor_lock:
            executor, self._executor = self._executor, None
        if executor is not None:
            executor.shutdown(wait=wait)

    # ------------------------------------------------------------------
    # Job lifecycle
    # ------------------------------------------------------------------
    def _get_executor(self) -> ThreadPoolExecutor:
        with self._executor_lock:
            if self._executor is None:
                self._executor = ThreadPoolExecutor(
                    max_workers=max(1, self.settings.max_workers),
                    thread_name_prefix="captionsmith-job",
                )
            return self._executor

    def _accept(self, job: Job) -> None:
        self.registry.register(job.job_id, self._runner_factory(job.job_id))
        log.info("Job %s accepted: %s -> %s (%s)", job.job_id, job.audio_path.name, job.output_path.name, job.format.value)

    def _execute(self, job: Job) -> JobOutcome:
        runner = self.registry.lookup(job.job_id)
        timer = PhaseTimer()
        try:
            if runner is None:
                raise CancelledError()

            with timer.phase(JobPhase.PREPARING.value):
                self._enter(job, JobPhase.PREPARING)
                if not job.audio_path.is_file():
                    raise NotFoundError("Audio file not found.", detail=str(job.audio_path))

            with timer.phase(JobPhase.TRANSCRIBING.value):
                self._enter(job, JobPhase.TRANSCRIBING)
                native_srt = runner.run(
                    RunParams(
                        audio_path=job.audio_path,
                        language=job.language,
                        model_id=job.model_id,
                        density=job.density,
                    ),
                    self._engine_line_observer(job),
                )

            source = native_srt
            if job.needs_conversion:
                with timer.phase(JobPhase.CONVERTING.value):
                    self._enter(job, JobPhase.CONVERTING)
                    source = codec.convert_srt_file_to_ass(native_srt, native_srt.with_suffix(job.format.extension))

            with timer.phase(JobPhase.SAVING.value):
                self._enter(job, JobPhase.SAVING)
                self._copy_output(source, job.output_path)
                preview = tuple(codec.read_srt(native_srt))
                self._commit(job)
                record = GeneratedArtifact.create(
                    id=uuid.uuid4().hex,
                    path=job.output_path,
                    format=job.format.value,
                    language=job.language,
                    model_id=job.model_id,
                    created_at=utc_now_iso(),
                )
                self.store.add(record)
                self._emit(ArtifactChangedEvent(reason=ChangeReason.CREATED))

            self._enter(job, JobPhase.DONE, cancellable=False)
            self._emit(
                DoneEvent(
                    job_id=job.job_id,
                    artifact=ArtifactRef(id=record.id, path=record.path, file_name=record.file_name),
                    preview=preview,
                )
            )
            log.info("Job %s done in %.2fs (%s)", job.job_id, timer.total_s, timer.summary())
            return JobOutcome(job_id=job.job_id, artifact=record, preview=preview, timings=timer.summary())
        except CancelledError as exc:
            self._fail(job, exc, JobPhase.CANCELLED)
            raise
        except CaptionsmithError as exc:
            self._fail(job, exc, JobPhase.ERROR)
            raise
        except OSError as exc:
            wrapped = self._wrap_os_error(job, exc)
            self._fail(job, wrapped, JobPhase.ERROR)
            raise wrapped from exc
        finally:
            self.registry.deregister(job.job_id)
            if runner is not None:
                runner.cleanup()

    def _commit(self, job: Job) -> None:
        """Take the job out of the registry before the record is persisted; a cancel after this is a no-op."""
        if self.registry.deregister(job.job_id) is None:
            job.output_path.unlink(missing_ok=True)
            raise CancelledError()

    def _enter(self, job: Job, phase: JobPhase, *, cancellable: bool = True) -> None:
        if cancellable and phase is not JobPhase.PREPARING and self.registry.lookup(job.job_id) is None:
            raise CancelledError()
        job.advance(phase)
        self._emit(ProgressEvent(job_id=job.job_id, phase=phase, message=PHASE_MESSAGES[phase]))

    def _fail(self, job: Job, exc: CaptionsmithError, phase: JobPhase) -> None:
        log.log(
            logging.INFO if phase is JobPhase.CANCELLED else logging.ERROR,
            "Job %s %s: %s%s",
            job.job_id,
            phase.value.lower(),
            exc.message,
            f" ({exc.detail.splitlines()[-1]})" if exc.detail else "",
        )
        self._emit(ErrorEvent(job_id=job.job_id, error=exc.to_info()))
        job.advance(phase)

    def _emit(self, event: Event) -> None:
        try:
            self._observer(event)
        except Exception:  # noqa: BLE001
            log.exception("Event observer failed on %s event.", event.kind)

    def _engine_line_observer(self, job: Job):
        last = {"percent": -1}

        def on_line(line: str) -> None:
            percent = parse_progress_line(line)
            if percent is None or percent == last["percent"]:
                return
            last["percent"] = percent
            self._emit(
                ProgressEvent(
                    job_id=job.job_id,
                    phase=JobPhase.TRANSCRIBING,
                    message=PHASE_MESSAGES[JobPhase.TRANSCRIBING],
                    percent=percent,
                )
            )

        return on_line

    @staticmethod
    def _copy_output(source: Path, target: Path) -> None:
        try:
            target.parent.mkdir(parents=True, exist_ok=True)
            shutil.copyfile(source, target)
        except OSError as exc:
            raise FileOperationFailedError(
                "Could not write the subtitle file.",
                kind="FILE_COPY_FAILED",
                detail=str(exc),
            ) from exc

    @staticmethod
    def _wrap_os_error(job: Job, exc: OSError) -> CaptionsmithError:
        if job.phase in (None, JobPhase.PREPARING, JobPhase.TRANSCRIBING):
            return TranscriptionFailedError(detail=str(exc))
        return FileOperationFailedError("File operation failed.", detail=str(exc))
