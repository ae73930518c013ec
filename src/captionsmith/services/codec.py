"""
Subtitle codec for captionsmith.

Parses the engine's native SRT output into Cue values and converts a cue
sequence to Advanced SubStation Alpha (ASS).

Responsibilities:
- Lossless timing: every well-formed block becomes exactly one Cue
- Skip malformed or empty blocks instead of failing the whole parse
- Pure, deterministic ASS output (same cues -> same bytes)

Does NOT:
- Re-segment, wrap or clean up caption text
- Touch the catalog or the engine
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Iterable, Sequence

from captionsmith.domain.cue import Cue
from captionsmith.utils.logging import get_logger

log = get_logger(__name__)

_TIME_RANGE_RE = re.compile(
    r"^\s*(\d{1,2}):(\d{2}):(\d{2})[,.](\d{1,3})\s*-->\s*(\d{1,2}):(\d{2}):(\d{2})[,.](\d{1,3})"
)

ASS_PLAY_RES_X = 1920
ASS_PLAY_RES_Y = 1080

ASS_STYLE_FORMAT = (
    "Format: Name, Fontname, Fontsize, PrimaryColour, SecondaryColour, "
    "OutlineColour, BackColour, Bold, Italic, Underline, StrikeOut, "
    "ScaleX, ScaleY, Spacing, Angle, BorderStyle, Outline, Shadow, "
    "Alignment, MarginL, MarginR, MarginV, Encoding"
)
ASS_DEFAULT_STYLE = (
    "Style: Default,Arial,56,"
    "&H00FFFFFF,&H000000FF,&H00000000,&H64000000,"
    "0,0,0,0,100,100,0,0,1,3,1,2,60,60,54,1"
)
ASS_EVENT_FORMAT = "Format: Layer, Start, End, Style, Name, MarginL, MarginR, MarginV, Effect, Text"


# ----------------------------------------------------------------------
# Time helpers
# ----------------------------------------------------------------------
def _to_ms(hours: str, minutes: str, seconds: str, millis: str) -> int:
    # "5" in "00:00:01,5" means 500 ms
    ms = int(millis.ljust(3, "0"))
    return ((int(hours) * 60 + int(minutes)) * 60 + int(seconds)) * 1000 + ms


def parse_time_range(line: str) -> tuple[int, int] | None:
    match = _TIME_RANGE_RE.match(line)
    if not match:
        return None
    g = match.groups()
    return _to_ms(*g[:4]), _to_ms(*g[4:])


def format_srt_time(ms: int) -> str:
    ms = max(0, int(ms))
    hours, remainder = divmod(ms, 3_600_000)
    minutes, remainder = divmod(remainder, 60_000)
    secs, millis = divmod(remainder, 1_000)
    return f"{hours:02}:{minutes:02}:{secs:02},{millis:03}"


def format_ass_time(ms: int) -> str:
    """H:MM:SS.cc. Centiseconds are truncated, never rounded up."""
    total_cs = max(0, int(ms)) // 10
    cs = total_cs % 100
    total_s = total_cs // 100
    s = total_s % 60
    total_m = total_s // 60
    m = total_m % 60
    h = total_m // 60
    return f"{h}:{m:02d}:{s:02d}.{cs:02d}"


# ----------------------------------------------------------------------
# SRT
# ----------------------------------------------------------------------
def _normalize_newlines(text: str) -> str:
    return text.lstrip("\ufeff").replace("\r\n", "\n").replace("\r", "\n")


def _split_blocks(text: str) -> list[list[str]]:
    blocks: list[list[str]] = []
    current: list[str] = []
    for line in _normalize_newlines(text).split("\n"):
        if line.strip():
            current.append(line.rstrip())
            continue
        if current:
            blocks.append(current)
            current = []
    if current:
        blocks.append(current)
    return blocks


def parse_srt(text: str) -> list[Cue]:
    """Parse SRT text into cues in file order. Malformed blocks are skipped."""
    cues: list[Cue] = []
    skipped = 0
    for position, lines in enumerate(_split_blocks(text), start=1):
        index_line: str | None = None
        bounds = parse_time_range(lines[0])
        body = lines[1:]
        if bounds is None and len(lines) > 1:
            index_line, body = lines[0], lines[2:]
            bounds = parse_time_range(lines[1])
        if bounds is None or bounds[1] < bounds[0]:
            skipped += 1
            continue

        index = int(index_line) if index_line and index_line.strip().isdecimal() else position
        cues.append(
            Cue(
                index=index,
                start_ms=bounds[0],
                end_ms=bounds[1],
                text="\n".join(body).strip() if body else "",
            )
        )
    if skipped:
        log.debug("Skipped %s malformed SRT block(s).", skipped)
    return cues


def read_srt(path: Path) -> list[Cue]:
    return parse_srt(path.read_text(encoding="utf-8", errors="replace"))


def format_srt(cues: Iterable[Cue]) -> str:
    chunks = []
    for position, cue in enumerate(cues, start=1):
        chunks.append(
            f"{position}\n"
            f"{format_srt_time(cue.start_ms)} --> {format_srt_time(cue.end_ms)}\n"
            f"{cue.text}\n"
        )
    return "\n".join(chunks)


# ----------------------------------------------------------------------
# ASS
# ----------------------------------------------------------------------
def _escape_ass_text(text: str) -> str:
    return (
        text.replace("\\", r"\\")
        .replace("{", r"\{")
        .replace("}", r"\}")
        .replace("\n", r"\N")
    )


def ass_header(title: str = "captionsmith") -> list[str]:
    return [
        "[Script Info]",
        f"Title: {title}",
        "ScriptType: v4.00+",
        "WrapStyle: 0",
        "ScaledBorderAndShadow: yes",
        f"PlayResX: {ASS_PLAY_RES_X}",
        f"PlayResY: {ASS_PLAY_RES_Y}",
        "",
        "[V4+ Styles]",
        ASS_STYLE_FORMAT,
        ASS_DEFAULT_STYLE,
        "",
        "[Events]",
        ASS_EVENT_FORMAT,
    ]


def dialogue_line(cue: Cue) -> str:
    return (
        f"Dialogue: 0,{format_ass_time(cue.start_ms)},{format_ass_time(cue.end_ms)},"
        f"Default,,0,0,0,,{_escape_ass_text(cue.text)}"
    )


def convert_srt_to_ass(cues: Sequence[Cue], *, title: str = "captionsmith") -> str:
    lines = ass_header(title)
    lines.extend(dialogue_line(cue) for cue in cues)
    return "\n".join(lines) + "\n"


def convert_srt_file_to_ass(srt_path: Path, ass_path: Path) -> Path:
    cues = read_srt(srt_path)
    ass_path.parent.mkdir(parents=True, exist_ok=True)
    ass_path.write_text(convert_srt_to_ass(cues), encoding="utf-8", newline="\n")
    log.debug("Converted %s cue(s) %s -> %s", len(cues), srt_path.name, ass_path.name)
    return ass_path
