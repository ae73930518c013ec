"""
whisper.cpp runner for captionsmith.

Supervises one `whisper-cli` invocation: builds argv from the job
parameters, streams the engine's output line by line, and resolves with the
path to the SRT it wrote into a job-private working directory.

Notes:
- stderr is merged into stdout so progress and error lines arrive in order.
- cancel() only requests termination; run() notices the dead process and
  raises CancelledError.
"""

from __future__ import annotations

import subprocess
import threading
from collections import deque
from pathlib import Path
from typing import Optional

from captionsmith.config.settings import Settings
from captionsmith.domain.contracts import OutputLineCallback, RunParams
from captionsmith.domain.workspace import Workspace
from captionsmith.exceptions import CancelledError, TranscriptionFailedError
from captionsmith.utils.engine import build_whisper_cmd
from captionsmith.utils.logging import engine_logger, get_logger

log = get_logger(__name__)

DIAGNOSTIC_TAIL_LINES = 40


class WhisperCppRunner:
    """Single-use supervisor for one whisper.cpp process."""

    def __init__(self, settings: Settings, *, job_id: str) -> None:
        self._settings = settings
        self._job_id = job_id
        self._lock = threading.Lock()
        self._proc: subprocess.Popen[str] | None = None
        self._cancelled = False
        self._finished = False
        self._used = False
        self._workspace: Workspace | None = None
        self._tail: deque[str] = deque(maxlen=DIAGNOSTIC_TAIL_LINES)
        self._engine_log = engine_logger(job_id)

    @property
    def active(self) -> bool:
        with self._lock:
            return self._proc is not None and self._proc.poll() is None

    @property
    def workspace(self) -> Workspace | None:
        return self._workspace

    def build_cmd(self, params: RunParams, workspace: Workspace) -> list[str]:
        return build_whisper_cmd(
            engine=self._settings.engine_binary,
            model_path=self._settings.model_path(params.model_id),
            audio_path=params.audio_path,
            output_base=workspace.output_base,
            language=params.language,
            density=params.density,
            threads=self._settings.threads,
            print_progress=self._settings.print_progress,
        )

    def run(self, params: RunParams, on_output_line: Optional[OutputLineCallback] = None) -> Path:
        with self._lock:
            if self._used:
                raise RuntimeError("WhisperCppRunner is single-use; create a new runner per job.")
            self._used = True
            if self._cancelled:
                raise CancelledError()

        self._workspace = Workspace.create(self._job_id, self._settings.resolved_temp_dir())
        cmd = self.build_cmd(params, self._workspace)
        log.info("Job %s: starting engine (%s, model=%s, density=%s)", self._job_id, cmd[0], params.model_id, params.density.value)
        log.debug("Job %s: argv=%s", self._job_id, cmd)

        with self._lock:
            if self._cancelled:
                raise CancelledError()
            try:
                self._proc = subprocess.Popen(
                    cmd,
                    stdout=subprocess.PIPE,
                    stderr=subprocess.STDOUT,
                    stdin=subprocess.DEVNULL,
                    text=True,
                    encoding="utf-8",
                    errors="replace",
                    bufsize=1,
                    cwd=str(self._workspace.root),
                )
            except OSError as exc:
                self._finished = True
                raise TranscriptionFailedError(
                    "Could not start the whisper engine.",
                    detail=f"{cmd[0]}: {exc}",
                ) from exc
            proc = self._proc

        try:
            self._pump(proc, on_output_line)
            returncode = proc.wait()
        finally:
            with self._lock:
                self._proc = None
                self._finished = True
                cancelled = self._cancelled

        if cancelled:
            log.info("Job %s: engine stopped after cancellation.", self._job_id)
            raise CancelledError()
        if returncode != 0:
            raise TranscriptionFailedError(
                f"whisper exited with status {returncode}.",
                detail=self.diagnostic_tail() or None,
            )

        srt_path = self._workspace.transcript_srt
        if not srt_path.is_file():
            raise TranscriptionFailedError(
                "whisper finished without writing subtitles.",
                detail=self.diagnostic_tail() or f"Expected {srt_path}",
            )
        log.info("Job %s: engine finished (%s)", self._job_id, srt_path.name)
        return srt_path

    def _pump(self, proc: subprocess.Popen[str], on_output_line: Optional[OutputLineCallback]) -> None:
        if proc.stdout is None:
            return
        for raw in proc.stdout:
            line = raw.rstrip("\r\n")
            if not line:
                continue
            self._tail.append(line)
            self._engine_log.debug(line)
            if on_output_line is None:
                continue
            try:
                on_output_line(line)
            except Exception:  # noqa: BLE001
                # Output observers must never break transcription.
                log.exception("Job %s: output line callback failed.", self._job_id)
        proc.stdout.close()

    def cancel(self) -> None:
        with self._lock:
            if self._finished:
                return
            self._cancelled = True
            proc = self._proc
            if proc is None or proc.poll() is not None:
                return
            log.info("Job %s: terminating engine (pid=%s).", self._job_id, proc.pid)
            try:
                proc.terminate()
            except OSError as exc:
                log.warning("Job %s: terminate failed: %s", self._job_id, exc)

    def diagnostic_tail(self) -> str:
        return "\n".join(self._tail)

    def cleanup(self) -> None:
        if self._workspace is None or self._settings.keep_workdirs:
            return
        self._workspace.cleanup()
