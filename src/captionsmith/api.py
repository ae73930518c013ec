"""
Request/response surface for the presentation layer.

Every operation returns `Ok(value)` or `Failure(ErrorInfo)`; domain errors
never escape as exceptions. Unexpected exceptions still propagate.
"""

from __future__ import annotations

from typing import Callable, Optional, TypeVar

from captionsmith.config.settings import Settings
from captionsmith.domain.artifacts import ArtifactView
from captionsmith.domain.contracts import Failure, Ok, Result, RunnerFactory
from captionsmith.domain.events import EventObserver, null_observer
from captionsmith.domain.job import TranscriptionRequest
from captionsmith.exceptions import CaptionsmithError
from captionsmith.pipeline import JobHandle, JobOrchestrator, JobOutcome
from captionsmith.services.artifacts import ArtifactManager
from captionsmith.services.models import ModelInfo, list_models
from captionsmith.services.store import GeneratedArtifactStore

T = TypeVar("T")


def _call(fn: Callable[[], T]) -> Result[T]:
    try:
        return Ok(fn())
    except CaptionsmithError as exc:
        return Failure(exc.to_info())


class CaptionsmithApi:
    def __init__(
        self,
        *,
        settings: Settings | None = None,
        observer: EventObserver = null_observer,
        runner_factory: Optional[RunnerFactory] = None,
        store: GeneratedArtifactStore | None = None,
    ) -> None:
        self.settings = settings or Settings()
        self.store = store or GeneratedArtifactStore(self.settings.resolved_data_dir())
        self.orchestrator = JobOrchestrator(
            store=self.store,
            settings=self.settings,
            observer=observer,
            runner_factory=runner_factory,
        )
        self.artifacts = ArtifactManager(self.store, observer)

    def _request(
        self,
        audio_path: str | None,
        output_path: str | None,
        language: str | None,
        model_id: str | None,
        format: str | None,
        density: str | None,
    ) -> TranscriptionRequest:
        s = self.settings
        return TranscriptionRequest(
            audio_path=audio_path,
            output_path=output_path,
            language=language or s.default_language,
            model_id=model_id or s.default_model,
            format=format or s.default_format,
            density=density or s.default_density,
        )

    # ------------------------------------------------------------------
    # Jobs
    # ------------------------------------------------------------------
    def start_job(
        self,
        audio_path: str | None,
        output_path: str | None,
        language: str | None = None,
        model_id: str | None = None,
        format: str | None = None,
        density: str | None = None,
    ) -> Result[JobOutcome]:
        """Run a job to completion on the calling thread."""
        request = self._request(audio_path, output_path, language, model_id, format, density)
        return _call(lambda: self.orchestrator.run(request))

    def submit_job(
        self,
        audio_path: str | None,
        output_path: str | None,
        language: str | None = None,
        model_id: str | None = None,
        format: str | None = None,
        density: str | None = None,
    ) -> Result[JobHandle]:
        """Start a job in the background; the handle carries the job id."""
        request = self._request(audio_path, output_path, language, model_id, format, density)
        return _call(lambda: self.orchestrator.submit(request))

    def cancel_job(self, job_id: str) -> Result[None]:
        self.orchestrator.cancel(job_id)
        return Ok(None)

    # ------------------------------------------------------------------
    # Artifacts
    # ------------------------------------------------------------------
    def list_artifacts(self) -> Result[list[ArtifactView]]:
        return _call(self.artifacts.list_artifacts)

    def rename_artifact(self, artifact_id: str, new_base_name: str) -> Result[ArtifactView]:
        return _call(lambda: self.artifacts.rename(artifact_id, new_base_name))

    def delete_artifact(self, artifact_id: str) -> Result[None]:
        return _call(lambda: self.artifacts.delete(artifact_id))

    def open_artifact(self, artifact_id: str) -> Result[bool]:
        return _call(lambda: self.artifacts.open(artifact_id))

    def reveal_artifact(self, artifact_id: str) -> Result[bool]:
        return _call(lambda: self.artifacts.reveal(artifact_id))

    # ------------------------------------------------------------------
    # Models (read-only catalog)
    # ------------------------------------------------------------------
    def list_models(self) -> Result[list[ModelInfo]]:
        return Ok(list_models(self.settings))

    def close(self) -> None:
        self.orchestrator.shutdown(wait=True)
