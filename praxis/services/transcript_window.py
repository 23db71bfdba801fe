from __future__ import annotations

from collections.abc import Sequence
from dataclasses import dataclass

from praxis.services.transcript import TranscriptItem

# Context is withheld until this much of the video has played.
MIN_ELAPSED_MS = 5 * 60 * 1000
DEFAULT_MAX_CHARS = 24000


@dataclass(frozen=True)
class TranscriptWindow:
    text: str
    start_ms: int
    end_ms: int


def select_window(
    transcript: Sequence[TranscriptItem],
    current_time_ms: int,
    minutes: float,
    max_chars: int = DEFAULT_MAX_CHARS,
) -> TranscriptWindow:
    """
    Text of the transcript items overlapping the last `minutes` before
    `current_time_ms`.

    Items are joined with single spaces; once the next item would push the
    text past `max_chars` it and everything after it are dropped. The
    returned bounds are those of the first/last selected item, or the
    requested window when nothing overlaps.
    """
    if not transcript:
        return TranscriptWindow(text="", start_ms=0, end_ms=0)

    if current_time_ms < MIN_ELAPSED_MS:
        return TranscriptWindow(text="", start_ms=0, end_ms=current_time_ms)

    window_start = max(0, int(current_time_ms - minutes * 60 * 1000))
    window_end = current_time_ms

    selected = [t for t in transcript if t.end_ms >= window_start and t.start_ms <= window_end]
    if not selected:
        return TranscriptWindow(text="", start_ms=window_start, end_ms=window_end)

    parts: list[str] = []
    length = 0
    for t in selected:
        if length + len(t.text) + 1 > max_chars:
            break
        parts.append(t.text)
        length += len(t.text) + (1 if len(parts) > 1 else 0)

    return TranscriptWindow(
        text=" ".join(parts),
        start_ms=selected[0].start_ms,
        end_ms=selected[-1].end_ms,
    )
