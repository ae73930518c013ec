from __future__ import annotations

from pathlib import Path

from captionsmith.api import CaptionsmithApi
from captionsmith.domain.contracts import Failure, Ok
from captionsmith.domain.events import EventLog


def _api(settings, factory, events=None) -> CaptionsmithApi:  # noqa: ANN001
    return CaptionsmithApi(
        settings=settings,
        observer=events if events is not None else EventLog(),
        runner_factory=factory,
    )


def test_start_job_returns_ok(settings, audio_file, make_runner_factory, tmp_path: Path) -> None:
    api = _api(settings, make_runner_factory())
    result = api.start_job(str(audio_file), str(tmp_path / "o.srt"))
    api.close()

    assert isinstance(result, Ok)
    assert result.ok
    assert result.value.artifact.language == "pt"
    assert result.value.artifact.model_id == "small"
    assert [c.text for c in result.value.preview] == ["Hello", "World"]


def test_start_job_failure_is_tagged(settings, make_runner_factory, tmp_path: Path) -> None:
    api = _api(settings, make_runner_factory())
    result = api.start_job(None, str(tmp_path / "o.srt"))

    assert isinstance(result, Failure)
    assert not result.ok
    assert result.error.kind == "AUDIO_NOT_SELECTED"
    assert result.error.action_hint == "PICK_AUDIO"


def test_submit_and_cancel(settings, audio_file, make_runner_factory, tmp_path: Path) -> None:
    factory = make_runner_factory(block=True)
    api = _api(settings, factory)
    try:
        handle = api.submit_job(str(audio_file), str(tmp_path / "o.srt"), format="ass").value
        assert factory.runners[0].started.wait(timeout=5)
        assert isinstance(api.cancel_job(handle.job_id), Ok)
        assert isinstance(api.cancel_job(handle.job_id), Ok)
    finally:
        api.close()
    assert handle.done()


def test_artifact_operations(settings, audio_file, make_runner_factory, tmp_path: Path) -> None:
    api = _api(settings, make_runner_factory())
    outcome = api.start_job(str(audio_file), str(tmp_path / "o.srt")).value

    listed = api.list_artifacts().value
    assert [v.record.id for v in listed] == [outcome.artifact.id]
    assert listed[0].exists

    renamed = api.rename_artifact(outcome.artifact.id, "final")
    assert renamed.value.record.file_name == "final.srt"

    assert isinstance(api.delete_artifact(outcome.artifact.id), Ok)
    assert api.list_artifacts().value == []

    missing = api.delete_artifact(outcome.artifact.id)
    assert isinstance(missing, Failure)
    assert missing.error.kind == "FILE_NOT_FOUND"


def test_list_models(settings) -> None:
    models_dir = Path(settings.models_dir)
    models_dir.mkdir(parents=True)
    (models_dir / "ggml-base.bin").write_bytes(b"")

    infos = CaptionsmithApi(settings=settings).list_models().value
    assert [m.id for m in infos] == ["tiny", "base", "small", "medium"]
    assert [m.id for m in infos if m.installed] == ["base"]
