from __future__ import annotations

import json
from pathlib import Path

import pytest

from captionsmith.domain.artifacts import GeneratedArtifact
from captionsmith.exceptions import NotFoundError, ValidationError
from captionsmith.services.store import CATALOG_FILE_NAME, GeneratedArtifactStore


def _record(artifact_id: str, path: Path) -> GeneratedArtifact:
    return GeneratedArtifact.create(
        id=artifact_id,
        path=path,
        format="srt",
        language="pt",
        model_id="small",
        created_at="2024-01-01T00:00:00+00:00",
    )


def test_missing_catalog_lists_empty(tmp_path: Path) -> None:
    assert GeneratedArtifactStore(tmp_path / "data").list() == []


def test_corrupt_catalog_lists_empty(tmp_path: Path) -> None:
    (tmp_path / CATALOG_FILE_NAME).write_text("{not json", encoding="utf-8")
    assert GeneratedArtifactStore(tmp_path).list() == []


def test_add_persists_in_insertion_order(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path / "data")
    store.add(_record("a", tmp_path / "a.srt"))
    store.add(_record("b", tmp_path / "b.srt"))

    reopened = GeneratedArtifactStore(tmp_path / "data")
    assert [r.id for r in reopened.list()] == ["a", "b"]
    payload = json.loads(store.path.read_text(encoding="utf-8"))
    assert payload["version"] == 1
    assert payload["items"][0]["file_name"] == "a.srt"


def test_add_duplicate_id_fails(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    store.add(_record("a", tmp_path / "a.srt"))
    with pytest.raises(ValidationError):
        store.add(_record("a", tmp_path / "other.srt"))
    assert len(store.list()) == 1


def test_update_replaces_record(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    store.add(_record("a", tmp_path / "a.srt"))
    updated = store.update("a", lambda r: r.with_path(tmp_path / "renamed.srt"))
    assert updated.file_name == "renamed.srt"
    assert store.get("a").path == str(tmp_path / "renamed.srt")


def test_update_unknown_id_raises_not_found(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    with pytest.raises(NotFoundError):
        store.update("missing", lambda r: r)


def test_update_cannot_change_id(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    store.add(_record("a", tmp_path / "a.srt"))
    with pytest.raises(ValidationError):
        store.update("a", lambda r: _record("b", Path(r.path)))


def test_remove_is_noop_when_absent(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    store.add(_record("a", tmp_path / "a.srt"))
    store.remove("missing")
    store.remove("a")
    assert store.list() == []


def test_save_leaves_no_temp_files(tmp_path: Path) -> None:
    store = GeneratedArtifactStore(tmp_path)
    store.add(_record("a", tmp_path / "a.srt"))
    store.add(_record("b", tmp_path / "b.srt"))
    assert sorted(p.name for p in tmp_path.iterdir()) == [CATALOG_FILE_NAME]


def test_malformed_entries_are_skipped(tmp_path: Path) -> None:
    good = _record("a", tmp_path / "a.srt").to_dict()
    (tmp_path / CATALOG_FILE_NAME).write_text(
        json.dumps({"version": 1, "items": [good, {"id": "broken"}]}),
        encoding="utf-8",
    )
    assert [r.id for r in GeneratedArtifactStore(tmp_path).list()] == ["a"]


def test_undecodable_catalog_lists_empty(tmp_path: Path) -> None:
    (tmp_path / CATALOG_FILE_NAME).write_bytes(b'{"items": ["\xff\xfe"]}')
    store = GeneratedArtifactStore(tmp_path)
    assert store.list() == []

    store.add(_record("a", tmp_path / "a.srt"))
    assert [r.id for r in store.list()] == ["a"]
