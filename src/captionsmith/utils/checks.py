from __future__ import annotations

import shutil
from pathlib import Path

from captionsmith.exceptions import DependencyMissingError


def find_binary(binary: str) -> str | None:
    if Path(binary).is_absolute():
        return binary if Path(binary).is_file() else None
    return shutil.which(binary)


def require_binary(binary: str) -> str:
    resolved = find_binary(binary)
    if resolved is None:
        raise DependencyMissingError(
            f"Missing required dependency '{binary}'. Install whisper.cpp and try again."
        )
    return resolved
