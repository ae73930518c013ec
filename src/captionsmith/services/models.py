"""
Static whisper.cpp model catalog.

Download and removal are handled outside captionsmith; the core only needs
a model id that resolves to a ggml file under `Settings.models_dir`.
"""

from __future__ import annotations

from dataclasses import asdict, dataclass

from captionsmith.config.settings import Settings


@dataclass(frozen=True)
class ModelInfo:
    id: str
    display_name: str
    size_mb: int
    installed: bool = False

    def to_dict(self) -> dict:
        return asdict(self)


KNOWN_MODELS: tuple[tuple[str, str, int], ...] = (
    ("tiny", "Tiny (very fast)", 75),
    ("base", "Base (fast)", 142),
    ("small", "Small (recommended)", 466),
    ("medium", "Medium (heavy)", 1530),
)


def list_models(settings: Settings) -> list[ModelInfo]:
    return [
        ModelInfo(
            id=model_id,
            display_name=display_name,
            size_mb=size_mb,
            installed=settings.model_path(model_id).is_file(),
        )
        for model_id, display_name, size_mb in KNOWN_MODELS
    ]
