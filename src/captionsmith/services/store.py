"""
Generated-files catalog for captionsmith.

The catalog is a single JSON file in the per-user data directory and is the
only source of truth for which artifacts exist. A subtitle file on disk that
is not in the catalog is invisible to the rest of the system.

Every mutation is read-modify-write of the whole file, serialized by one
in-process lock and published with an atomic replace so readers never see a
partially written catalog.
"""

from __future__ import annotations

import json
import os
import tempfile
import threading
from pathlib import Path
from typing import Any, Callable

from captionsmith.domain.artifacts import GeneratedArtifact
from captionsmith.exceptions import NotFoundError, ValidationError
from captionsmith.utils.logging import get_logger

log = get_logger(__name__)

CATALOG_FILE_NAME = "generated-files.json"
CATALOG_VERSION = 1

Mutator = Callable[[GeneratedArtifact], GeneratedArtifact]


class GeneratedArtifactStore:
    def __init__(self, data_dir: Path) -> None:
        self._data_dir = Path(data_dir)
        self._path = self._data_dir / CATALOG_FILE_NAME
        self._lock = threading.RLock()

    @property
    def path(self) -> Path:
        return self._path

    # ------------------------------------------------------------------
    # Reads
    # ------------------------------------------------------------------
    def list(self) -> list[GeneratedArtifact]:
        """All records in insertion order. A missing or unreadable catalog is empty."""
        with self._lock:
            return self._load()

    def get(self, artifact_id: str) -> GeneratedArtifact:
        for record in self.list():
            if record.id == artifact_id:
                return record
        raise NotFoundError("File not found in history.", detail=artifact_id)

    # ------------------------------------------------------------------
    # Mutations
    # ------------------------------------------------------------------
    def add(self, record: GeneratedArtifact) -> GeneratedArtifact:
        with self._lock:
            items = self._load()
            if any(item.id == record.id for item in items):
                raise ValidationError("Duplicate artifact id.", detail=record.id)
            items.append(record)
            self._save(items)
        log.debug("Catalog: added %s (%s)", record.id, record.file_name)
        return record

    def update(self, artifact_id: str, mutator: Mutator) -> GeneratedArtifact:
        with self._lock:
            items = self._load()
            for position, item in enumerate(items):
                if item.id != artifact_id:
                    continue
                updated = mutator(item)
                if updated.id != artifact_id:
                    raise ValidationError("Artifact id is immutable.", detail=f"{artifact_id} -> {updated.id}")
                items[position] = updated
                self._save(items)
                log.debug("Catalog: updated %s", artifact_id)
                return updated
        raise NotFoundError("File not found in history.", detail=artifact_id)

    def remove(self, artifact_id: str) -> None:
        with self._lock:
            items = self._load()
            remaining = [item for item in items if item.id != artifact_id]
            if len(remaining) == len(items):
                return
            self._save(remaining)
        log.debug("Catalog: removed %s", artifact_id)

    # ------------------------------------------------------------------
    # Persistence
    # ------------------------------------------------------------------
    def _load(self) -> list[GeneratedArtifact]:
        try:
            raw = self._path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return []
        except (OSError, UnicodeDecodeError) as exc:
            log.warning("Catalog unreadable (%s); treating as empty.", exc)
            return []
        try:
            data: Any = json.loads(raw)
        except json.JSONDecodeError as exc:
            log.warning("Catalog %s is corrupt (%s); treating as empty.", self._path, exc)
            return []

        entries = data.get("items", []) if isinstance(data, dict) else data
        if not isinstance(entries, list):
            return []

        records: list[GeneratedArtifact] = []
        for entry in entries:
            try:
                records.append(GeneratedArtifact.from_dict(entry))
            except (KeyError, TypeError, AttributeError):
                log.warning("Skipping malformed catalog entry: %r", entry)
        return records

    def _save(self, items: list[GeneratedArtifact]) -> None:
        self._data_dir.mkdir(parents=True, exist_ok=True)
        payload = {
            "version": CATALOG_VERSION,
            "items": [item.to_dict() for item in items],
        }
        with tempfile.NamedTemporaryFile(
            "w",
            encoding="utf-8",
            dir=self._data_dir,
            prefix=".generated-files-",
            suffix=".tmp",
            delete=False,
        ) as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.flush()
            os.fsync(handle.fileno())
            tmp_path = Path(handle.name)
        try:
            os.replace(tmp_path, self._path)
        except OSError:
            tmp_path.unlink(missing_ok=True)
            raise
