from __future__ import annotations

from pathlib import Path

import pytest

from captionsmith.domain.artifacts import GeneratedArtifact
from captionsmith.domain.events import ChangeReason, EventLog
from captionsmith.exceptions import FileOperationFailedError, NotFoundError, ValidationError
from captionsmith.services import artifacts as artifacts_module
from captionsmith.services.artifacts import ArtifactManager
from captionsmith.services.store import GeneratedArtifactStore


@pytest.fixture
def env(tmp_path: Path):
    store = GeneratedArtifactStore(tmp_path / "data")
    events = EventLog()
    manager = ArtifactManager(store, events)
    out_dir = tmp_path / "out"
    out_dir.mkdir()
    return store, events, manager, out_dir


def _add(store: GeneratedArtifactStore, path: Path, artifact_id: str = "a1") -> GeneratedArtifact:
    path.write_text("1\n00:00:00,000 --> 00:00:01,000\nHi\n", encoding="utf-8")
    return store.add(
        GeneratedArtifact.create(
            id=artifact_id,
            path=path,
            format=path.suffix.lstrip("."),
            language="pt",
            model_id="small",
            created_at="2024-01-01T00:00:00+00:00",
        )
    )


def test_list_reports_existence(env) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt", "a1")
    _add(store, out_dir / "b.srt", "b1")
    (out_dir / "b.srt").unlink()

    views = manager.list_artifacts()
    assert [(v.record.id, v.exists) for v in views] == [("a1", True), ("b1", False)]


def test_rename_keeps_extension_and_updates_catalog(env) -> None:
    store, events, manager, out_dir = env
    _add(store, out_dir / "a.ass")

    view = manager.rename("a1", "Episode: 1")
    assert view.record.file_name == "Episode 1.ass"
    assert (out_dir / "Episode 1.ass").is_file()
    assert not (out_dir / "a.ass").exists()
    assert store.get("a1").file_name == "Episode 1.ass"
    assert [e.reason for e in events.of_kind("artifact-changed")] == [ChangeReason.RENAMED]


def test_rename_resolves_collisions(env) -> None:
    store, _, manager, out_dir = env
    (out_dir / "X.srt").write_text("taken", encoding="utf-8")
    _add(store, out_dir / "a.srt", "a1")
    _add(store, out_dir / "b.srt", "b1")

    assert manager.rename("a1", "X").record.file_name == "X (1).srt"
    assert manager.rename("b1", "X").record.file_name == "X (2).srt"
    assert (out_dir / "X.srt").read_text(encoding="utf-8") == "taken"


def test_rename_to_same_name_is_noop(env) -> None:
    store, events, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    view = manager.rename("a1", "a")
    assert view.record.file_name == "a.srt"
    assert events.events == []


def test_rename_missing_file_raises_not_found(env) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    (out_dir / "a.srt").unlink()
    with pytest.raises(NotFoundError):
        manager.rename("a1", "b")


def test_rename_invalid_name(env) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    with pytest.raises(ValidationError):
        manager.rename("a1", "???")


def test_rename_os_failure(env, monkeypatch) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")

    def boom(*_args):  # noqa: ANN002
        raise PermissionError("denied")

    monkeypatch.setattr(artifacts_module.os, "rename", boom)
    with pytest.raises(FileOperationFailedError) as exc:
        manager.rename("a1", "b")
    assert exc.value.kind == "FILE_RENAME_FAILED"
    assert store.get("a1").file_name == "a.srt"


def test_delete_removes_file_and_record(env) -> None:
    store, events, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    manager.delete("a1")
    assert not (out_dir / "a.srt").exists()
    assert store.list() == []
    assert [e.reason for e in events.of_kind("artifact-changed")] == [ChangeReason.DELETED]


def test_delete_with_externally_removed_file(env) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    (out_dir / "a.srt").unlink()
    manager.delete("a1")
    assert store.list() == []


def test_delete_unknown_id(env) -> None:
    _, _, manager, _ = env
    with pytest.raises(NotFoundError):
        manager.delete("nope")


def test_open_and_reveal_use_system_launcher(env, monkeypatch) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    opened: list[Path] = []
    revealed: list[Path] = []
    monkeypatch.setattr(artifacts_module.system, "open_path", lambda p: opened.append(p) or True)
    monkeypatch.setattr(artifacts_module.system, "reveal_path", lambda p: revealed.append(p) or True)

    assert manager.open("a1") is True
    assert manager.reveal("a1") is True
    assert opened == [out_dir / "a.srt"]
    assert revealed == [out_dir / "a.srt"]


def test_open_missing_file_raises(env) -> None:
    store, _, manager, out_dir = env
    _add(store, out_dir / "a.srt")
    (out_dir / "a.srt").unlink()
    with pytest.raises(NotFoundError):
        manager.open("a1")
