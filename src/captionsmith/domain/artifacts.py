from __future__ import annotations

from dataclasses import asdict, dataclass, replace
from pathlib import Path
from typing import Any


@dataclass(frozen=True)
class GeneratedArtifact:
    """A subtitle file the system produced and catalogued."""

    id: str
    path: str
    file_name: str
    format: str
    language: str
    model_id: str
    created_at: str

    @classmethod
    def create(
        cls,
        *,
        id: str,
        path: Path | str,
        format: str,
        language: str,
        model_id: str,
        created_at: str,
    ) -> "GeneratedArtifact":
        resolved = Path(path)
        return cls(
            id=id,
            path=str(resolved),
            file_name=resolved.name,
            format=format,
            language=language,
            model_id=model_id,
            created_at=created_at,
        )

    def with_path(self, new_path: Path | str) -> "GeneratedArtifact":
        resolved = Path(new_path)
        return replace(self, path=str(resolved), file_name=resolved.name)

    def exists(self) -> bool:
        return Path(self.path).is_file()

    def to_dict(self) -> dict[str, Any]:
        return asdict(self)

    @classmethod
    def from_dict(cls, data: dict[str, Any]) -> "GeneratedArtifact":
        path = Path(data["path"])
        return cls(
            id=str(data["id"]),
            path=str(path),
            file_name=path.name,
            format=str(data["format"]),
            language=str(data.get("language", "")),
            model_id=str(data.get("model_id", "")),
            created_at=str(data.get("created_at", "")),
        )


@dataclass(frozen=True)
class ArtifactView:
    """A catalog record plus on-disk existence computed at read time."""

    record: GeneratedArtifact
    exists: bool

    @classmethod
    def of(cls, record: GeneratedArtifact) -> "ArtifactView":
        return cls(record=record, exists=record.exists())

    def to_dict(self) -> dict[str, Any]:
        payload = self.record.to_dict()
        payload["exists"] = self.exists
        return payload


@dataclass(frozen=True)
class ArtifactRef:
    id: str
    path: str
    file_name: str
