from __future__ import annotations

import logging
from collections.abc import Callable, Iterable, Sequence

from praxis.services.chapters import DEFAULT_WINDOW_MS, Chapter, ChapterResult, ChapterSource
from praxis.services.transcript import TranscriptItem

logger = logging.getLogger(__name__)

# Anchors closer than this to the last requested one are not re-requested.
DEBOUNCE_MS = 30_000

GenerateChapters = Callable[[Sequence[TranscriptItem], str | None, int, int], ChapterResult]


def merge_chapters(existing: Iterable[Chapter], incoming: Iterable[Chapter]) -> list[Chapter]:
    """Merge by start_ms; incoming entries replace existing ones at the same start."""
    by_start: dict[int, Chapter] = {c.start_ms: c for c in existing}
    for c in incoming:
        by_start[c.start_ms] = c
    return sorted(by_start.values(), key=lambda c: c.start_ms)


def plan_chapter_request(
    chapters: Sequence[Chapter],
    source: ChapterSource | None,
    current_time_ms: int,
    last_requested_start_ms: int | None,
) -> int | None:
    """
    Anchor (start_ms) of the next chapter window to request, or None.

    transcript: request once at most one known chapter lies ahead.
    description: request once playback passes the last known chapter start.
    """
    if source == "transcript":
        upcoming = sum(1 for c in chapters if c.start_ms >= current_time_ms)
        if upcoming > 1:
            return None
    elif source == "description":
        last_known_start = max((c.start_ms for c in chapters), default=0)
        if current_time_ms <= last_known_start:
            return None
    else:
        return None

    anchor = max(0, int(current_time_ms))
    if last_requested_start_ms is not None and abs(anchor - last_requested_start_ms) <= DEBOUNCE_MS:
        return None
    return anchor


class ChapterTracker:
    """
    Chapters for one watch session, extended as playback moves past what
    is already known.
    """

    def __init__(
        self,
        transcript: Sequence[TranscriptItem],
        generate_chapters: GenerateChapters,
        *,
        description: str | None = None,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> None:
        self.transcript = list(transcript)
        self.description = description
        self.window_ms = window_ms
        self._generate = generate_chapters

        self.chapters: list[Chapter] = []
        self.source: ChapterSource | None = None
        self.window: tuple[int, int] | None = None
        self.last_requested_start_ms: int | None = None

    def _request(self, description: str | None, start_ms: int) -> ChapterResult | None:
        try:
            return self._generate(self.transcript, description, start_ms, self.window_ms)
        except Exception:
            logger.exception("chapter window request failed (start_ms=%s)", start_ms)
            return None

    def load(self) -> None:
        if not self.transcript:
            return
        result = self._request(self.description, 0)
        if result is None:
            return
        self.chapters = list(result.chapters)
        self.source = result.source
        self.window = (result.window_start_ms, result.window_ms)

    def next_anchor(self, current_time_ms: int) -> int | None:
        return plan_chapter_request(self.chapters, self.source, current_time_ms, self.last_requested_start_ms)

    def on_playback(self, current_time_ms: int) -> bool:
        """Returns True when a new window was requested."""
        if not self.transcript:
            return False

        anchor = self.next_anchor(current_time_ms)
        if anchor is None:
            return False
        self.last_requested_start_ms = anchor

        if self.source == "transcript":
            result = self._request(self.description, anchor)
            if result is not None:
                self.chapters = list(result.chapters)
                self.window = (result.window_start_ms, result.window_ms)
            return True

        # description chapters are authoritative; supplement them from the transcript
        result = self._request(None, anchor)
        if result is not None and result.chapters:
            self.chapters = merge_chapters(self.chapters, result.chapters)
            self.window = (result.window_start_ms, result.window_ms)
        return True
