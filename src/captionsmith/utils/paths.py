from __future__ import annotations

import re
from pathlib import Path

from captionsmith.exceptions import ValidationError

MAX_BASE_NAME_LENGTH = 120
MAX_COLLISION_ATTEMPTS = 999

_FORBIDDEN_CHARS_RE = re.compile(r'[<>:"/\\|?*\x00-\x1f]')


def sanitize_base_name(value: str | None) -> str:
    """Strip characters that are invalid in file names and collapse whitespace."""
    cleaned = _FORBIDDEN_CHARS_RE.sub("", (value or "").strip())
    cleaned = " ".join(cleaned.split())
    if not cleaned:
        raise ValidationError("Invalid name.", detail="The new name is empty after cleanup.")
    if len(cleaned) > MAX_BASE_NAME_LENGTH:
        raise ValidationError(
            "Name too long.",
            detail=f"{len(cleaned)} characters (max {MAX_BASE_NAME_LENGTH}).",
        )
    return cleaned


def resolve_non_colliding_path(path: Path, *, max_attempts: int = MAX_COLLISION_ATTEMPTS) -> Path:
    """
    Return `path` if free, else the first free `name (n).ext` for n = 1..max_attempts.

    Falls back to the original (colliding) path when every candidate is taken.
    """
    if not path.exists():
        return path
    stem = path.stem
    suffix = path.suffix
    for attempt in range(1, max_attempts + 1):
        candidate = path.with_name(f"{stem} ({attempt}){suffix}")
        if not candidate.exists():
            return candidate
    return path
