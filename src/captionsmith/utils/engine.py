from __future__ import annotations

import re
from dataclasses import dataclass
from pathlib import Path

from captionsmith.domain.job import DensityPreset


@dataclass(frozen=True)
class Segmentation:
    """whisper.cpp segmentation knobs. Smaller max_len means more, shorter cues."""

    max_len: int
    split_on_word: bool = True
    max_context: int | None = None


DENSITY_SEGMENTATION: dict[DensityPreset, Segmentation] = {
    # fewer, longer blocks
    DensityPreset.LOW: Segmentation(max_len=84),
    DensityPreset.MEDIUM: Segmentation(max_len=56),
    # fast speech and cuts
    DensityPreset.HIGH: Segmentation(max_len=36, max_context=64),
    # short-form video
    DensityPreset.ULTRA: Segmentation(max_len=20, max_context=0),
}

_PROGRESS_RE = re.compile(r"progress\s*=\s*(\d{1,3})\s*%")


def segmentation_for(density: DensityPreset) -> Segmentation:
    return DENSITY_SEGMENTATION[density]


def build_whisper_cmd(
    *,
    engine: str,
    model_path: Path,
    audio_path: Path,
    output_base: Path,
    language: str,
    density: DensityPreset,
    threads: int = 4,
    print_progress: bool = True,
) -> list[str]:
    seg = segmentation_for(density)
    cmd: list[str] = [
        engine,
        "-m",
        str(model_path),
        "-f",
        str(audio_path),
        "-l",
        language,
        "-t",
        str(max(1, threads)),
        "-osrt",
        "-of",
        str(output_base),
        "-ml",
        str(seg.max_len),
    ]
    if seg.split_on_word:
        cmd.append("-sow")
    if seg.max_context is not None:
        cmd += ["-mc", str(seg.max_context)]
    if print_progress:
        cmd.append("-pp")
    return cmd


def parse_progress_line(line: str) -> int | None:
    """Extract the percentage from a `whisper_print_progress_callback: progress = NN%` line."""
    match = _PROGRESS_RE.search(line)
    if not match:
        return None
    return max(0, min(100, int(match.group(1))))
