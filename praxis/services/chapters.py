from __future__ import annotations

import logging
import re
from collections.abc import Sequence
from dataclasses import dataclass
from typing import Literal

from pydantic import BaseModel, ConfigDict, Field

from praxis.core.config import settings
from praxis.services.llm import openai_client
from praxis.services.llm.prompts import CHAPTERS_SYSTEM, CHAPTERS_USER_TEMPLATE
from praxis.services.transcript import TranscriptItem

logger = logging.getLogger(__name__)

ChapterSource = Literal["description", "transcript"]

MAX_CHAPTERS = 20
DEFAULT_WINDOW_MS = 15 * 60 * 1000
MAX_EXCERPT_LINES = 2000

# [H:]M:SS with optional spaces around ':'; minutes/seconds capped at 59.
_TIMESTAMP_RE = re.compile(r"(?<!\d)(?:(\d{1,2})\s*:\s*)?([0-5]?\d)\s*:\s*([0-5]\d)(?!\d)")
_LEADING_SEP_RE = re.compile(r"^[\s\-–—:|)\].]+")
_TRAILING_SEP_RE = re.compile(r"[\s\-–—:|(\[]+$")


@dataclass(frozen=True)
class Chapter:
    title: str
    start_ms: int

    def to_dict(self) -> dict:
        return {"title": self.title, "startMs": self.start_ms}


@dataclass
class ChapterResult:
    chapters: list[Chapter]
    source: ChapterSource
    window_start_ms: int = 0
    window_ms: int = DEFAULT_WINDOW_MS


def _chapter_title(line: str, m: re.Match, hours: int | None, minutes: int, seconds: int) -> str:
    after = _LEADING_SEP_RE.sub("", line[m.end() :]).strip()
    if after:
        return after

    before = _TRAILING_SEP_RE.sub("", line[: m.start()]).strip()
    if before:
        return before

    if hours is not None:
        return f"Chapter {hours}:{minutes:02d}:{seconds:02d}"
    return f"Chapter {minutes:02d}:{seconds:02d}"


def parse_chapters(description: str) -> list[Chapter]:
    """
    Extract chapter markers from a free-text video description.

    Each non-empty line is searched for its first timestamp; the title is the
    text after it (or before it, or a synthesized "Chapter M:SS"). Repeated
    start times keep their first occurrence. Sorted by start, at most 20.
    """
    seen: set[int] = set()
    out: list[Chapter] = []

    for raw in (description or "").splitlines():
        line = raw.strip()
        if not line:
            continue

        m = _TIMESTAMP_RE.search(line)
        if not m:
            continue

        hours = int(m.group(1)) if m.group(1) is not None else None
        minutes = int(m.group(2))
        seconds = int(m.group(3))

        start_ms = int(((hours or 0) * 3600 + minutes * 60 + seconds) * 1000)
        if start_ms in seen:
            continue
        seen.add(start_ms)

        out.append(Chapter(title=_chapter_title(line, m, hours, minutes, seconds), start_ms=start_ms))

    out.sort(key=lambda c: c.start_ms)
    return out[:MAX_CHAPTERS]


# ----------------------------
# LLM-backed generation
# ----------------------------

class _GeneratedChapter(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    title: str
    start_ms: int = Field(alias="startMs", ge=0)


class _GeneratedChapters(BaseModel):
    chapters: list[_GeneratedChapter] = Field(min_length=3, max_length=MAX_CHAPTERS)


def _time_tagged_excerpt(items: Sequence[TranscriptItem]) -> str:
    lines = [f"[{round(t.start_ms / 1000)}s] {t.text}" for t in items[:MAX_EXCERPT_LINES]]
    return "\n".join(lines)


def generate_chapters(
    transcript: Sequence[TranscriptItem],
    description: str | None = None,
    start_ms: int = 0,
    window_ms: int = DEFAULT_WINDOW_MS,
    preferred_count: int = 6,
) -> ChapterResult:
    """
    Description chapters win when the description has any; otherwise the
    LLM chapters the transcript slice [start_ms, start_ms + window_ms).
    """
    start_ms = max(0, int(start_ms))

    if description:
        parsed = parse_chapters(description)
        if parsed:
            return ChapterResult(chapters=parsed, source="description", window_start_ms=start_ms, window_ms=window_ms)

    end_ms = start_ms + window_ms
    window_items = [t for t in transcript if start_ms <= t.start_ms < end_ms]
    if not window_items:
        return ChapterResult(chapters=[], source="transcript", window_start_ms=start_ms, window_ms=window_ms)

    generated = openai_client.generate_object(
        model=settings.chapters_model,
        schema=_GeneratedChapters,
        system=CHAPTERS_SYSTEM,
        prompt=CHAPTERS_USER_TEMPLATE.format(
            preferred_count=preferred_count,
            transcript=_time_tagged_excerpt(window_items),
        ),
        temperature=0.3,
    )

    by_start: dict[int, Chapter] = {}
    for c in generated.chapters:
        if not (start_ms <= c.start_ms < end_ms):
            continue
        by_start.setdefault(c.start_ms, Chapter(title=c.title.strip(), start_ms=c.start_ms))

    chapters = sorted(by_start.values(), key=lambda c: c.start_ms)[:MAX_CHAPTERS]
    logger.debug("generated %d transcript chapters for window %d+%d", len(chapters), start_ms, window_ms)
    return ChapterResult(chapters=chapters, source="transcript", window_start_ms=start_ms, window_ms=window_ms)
