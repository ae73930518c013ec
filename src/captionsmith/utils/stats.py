from __future__ import annotations

from dataclasses import asdict, dataclass
from typing import Sequence

from captionsmith.domain.cue import Cue

CPS_DANGER = 22.0
CPS_WARN = 18.0
MAX_CHARS_WARN = 100
VERY_SHORT_CHARS = 8
VERY_SHORT_RATE_WARN = 0.35


@dataclass(frozen=True)
class PreviewStats:
    cues: int
    duration_s: float
    total_chars: int
    total_words: int
    cps: float
    avg_chars_per_cue: float
    avg_words_per_cue: float
    max_chars_per_cue: int
    max_words_per_cue: int
    very_short_rate: float

    def to_dict(self) -> dict:
        return asdict(self)


@dataclass(frozen=True)
class DensityAlert:
    level: str
    text: str


def _cue_chars(cue: Cue) -> int:
    return len(" ".join(cue.text.split()))


def _cue_words(cue: Cue) -> int:
    return len(cue.text.split())


def preview_stats(cues: Sequence[Cue]) -> PreviewStats | None:
    if not cues:
        return None
    duration_s = max(0.1, max(c.end_ms for c in cues) / 1000.0)
    chars = [_cue_chars(c) for c in cues]
    words = [_cue_words(c) for c in cues]
    total_chars = sum(chars)
    total_words = sum(words)
    very_short = sum(1 for n in chars if 0 < n < VERY_SHORT_CHARS)
    return PreviewStats(
        cues=len(cues),
        duration_s=duration_s,
        total_chars=total_chars,
        total_words=total_words,
        cps=total_chars / duration_s,
        avg_chars_per_cue=total_chars / len(cues),
        avg_words_per_cue=total_words / len(cues),
        max_chars_per_cue=max(chars),
        max_words_per_cue=max(words),
        very_short_rate=very_short / len(cues),
    )


def density_alerts(stats: PreviewStats | None) -> list[DensityAlert]:
    if stats is None:
        return []
    alerts: list[DensityAlert] = []
    if stats.cps > CPS_DANGER:
        alerts.append(DensityAlert("danger", f"Very high CPS ({stats.cps:.1f}). Subtitles may be too fast to read."))
    elif stats.cps > CPS_WARN:
        alerts.append(DensityAlert("warn", f"High CPS ({stats.cps:.1f}). Consider a lower density or a manual review."))
    if stats.max_chars_per_cue > MAX_CHARS_WARN:
        alerts.append(DensityAlert("warn", f"Some blocks are very long (max {stats.max_chars_per_cue} chars)."))
    if stats.very_short_rate > VERY_SHORT_RATE_WARN:
        alerts.append(
            DensityAlert("warn", f"Many very short blocks ({round(stats.very_short_rate * 100)}%). Output may feel choppy.")
        )
    return alerts
