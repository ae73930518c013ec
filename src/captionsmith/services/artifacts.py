"""
Artifact management for captionsmith.

Rename, delete, open and reveal act on catalog records by id. Each operation
resolves the record first, re-checks the file on disk where it matters, does
the filesystem work, then updates the catalog and broadcasts the change.
"""

from __future__ import annotations

import os
from pathlib import Path

from captionsmith.domain.artifacts import ArtifactView, GeneratedArtifact
from captionsmith.domain.events import ArtifactChangedEvent, ChangeReason, EventObserver, null_observer
from captionsmith.exceptions import FileOperationFailedError, NotFoundError
from captionsmith.services.store import GeneratedArtifactStore
from captionsmith.utils import system
from captionsmith.utils.logging import get_logger
from captionsmith.utils.paths import resolve_non_colliding_path, sanitize_base_name

log = get_logger(__name__)


class ArtifactManager:
    def __init__(self, store: GeneratedArtifactStore, observer: EventObserver = null_observer) -> None:
        self._store = store
        self._observer = observer

    def list_artifacts(self) -> list[ArtifactView]:
        return [ArtifactView.of(record) for record in self._store.list()]

    def _require_file(self, record: GeneratedArtifact) -> Path:
        path = Path(record.path)
        if not path.is_file():
            raise NotFoundError("File no longer exists on disk.", detail=str(path))
        return path

    def rename(self, artifact_id: str, new_base_name: str) -> ArtifactView:
        record = self._store.get(artifact_id)
        current = self._require_file(record)
        base = sanitize_base_name(new_base_name)

        target = current.with_name(f"{base}{current.suffix}")
        if target == current:
            return ArtifactView(record=record, exists=True)
        final_path = resolve_non_colliding_path(target)

        try:
            os.rename(current, final_path)
        except OSError as exc:
            raise FileOperationFailedError(
                "Could not rename the file.",
                kind="FILE_RENAME_FAILED",
                detail=str(exc),
            ) from exc

        updated = self._store.update(artifact_id, lambda item: item.with_path(final_path))
        log.info("Renamed %s -> %s", current.name, final_path.name)
        self._observer(ArtifactChangedEvent(reason=ChangeReason.RENAMED))
        return ArtifactView(record=updated, exists=True)

    def delete(self, artifact_id: str) -> None:
        record = self._store.get(artifact_id)
        path = Path(record.path)
        try:
            path.unlink(missing_ok=True)
        except OSError as exc:
            raise FileOperationFailedError(
                "Could not delete the file.",
                kind="FILE_DELETE_FAILED",
                detail=str(exc),
            ) from exc

        self._store.remove(artifact_id)
        log.info("Deleted %s", record.file_name)
        self._observer(ArtifactChangedEvent(reason=ChangeReason.DELETED))

    def open(self, artifact_id: str) -> bool:
        path = self._require_file(self._store.get(artifact_id))
        return system.open_path(path)

    def reveal(self, artifact_id: str) -> bool:
        record = self._store.get(artifact_id)
        return system.reveal_path(Path(record.path))
