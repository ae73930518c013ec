from __future__ import annotations

import shutil
import tempfile
from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class Workspace:
    """Job-private working directory. Never shared between concurrent jobs."""

    root: Path
    job_id: str

    @classmethod
    def create(cls, job_id: str, temp_root: Path | None = None) -> "Workspace":
        root = Path(tempfile.mkdtemp(prefix=f"captionsmith-{job_id[:12]}-", dir=temp_root))
        return cls(root=root, job_id=job_id)

    def path(self, name: str) -> Path:
        p = self.root / name
        p.parent.mkdir(parents=True, exist_ok=True)
        return p

    @property
    def output_base(self) -> Path:
        # whisper.cpp appends the format extension to -of
        return self.root / "transcript"

    @property
    def transcript_srt(self) -> Path:
        return self.path("transcript.srt")

    @property
    def transcript_ass(self) -> Path:
        return self.path("transcript.ass")

    def cleanup(self) -> None:
        shutil.rmtree(self.root, ignore_errors=True)
