from __future__ import annotations

import logging
from collections.abc import Sequence
from typing import Any, Literal

from praxis.client import PraxisAPIError, PraxisClient
from praxis.services.chapters import Chapter
from praxis.services.transcript import TranscriptItem
from praxis.services.transcript_window import MIN_ELAPSED_MS, select_window

logger = logging.getLogger(__name__)

QuizStep = Literal["setup", "generating", "quiz", "results"]
QuizScope = Literal["minutes", "chapter"]

MIN_CONTEXT_MINUTES = 3
MAX_CONTEXT_MINUTES = 30
MIN_MINUTES_SINCE_CHAPTER = 5


def latest_chapter_start_ms(chapters: Sequence[Chapter], current_time_ms: int) -> int | None:
    """Start of the last chapter at or before the playhead."""
    starts = [c.start_ms for c in chapters if c.start_ms <= current_time_ms]
    return max(starts) if starts else None


def minutes_since_chapter_start(chapters: Sequence[Chapter], current_time_ms: int) -> int:
    start = latest_chapter_start_ms(chapters, current_time_ms)
    if start is None:
        return 0
    return max(0, (current_time_ms - start) // 60_000)


def can_generate(
    scope: QuizScope,
    current_time_ms: int,
    chapters: Sequence[Chapter],
    minutes: int,
) -> bool:
    if scope == "minutes":
        return current_time_ms >= MIN_ELAPSED_MS and MIN_CONTEXT_MINUTES <= minutes <= MAX_CONTEXT_MINUTES

    if not chapters or latest_chapter_start_ms(chapters, current_time_ms) is None:
        return False
    return minutes_since_chapter_start(chapters, current_time_ms) >= MIN_MINUTES_SINCE_CHAPTER


class QuizFlow:
    """
    Drives one quiz attempt through setup -> generating -> quiz -> results.
    Any failed request drops back to setup.
    """

    def __init__(
        self,
        client: PraxisClient,
        youtube_id: str,
        transcript: Sequence[TranscriptItem],
        *,
        meta: dict[str, Any] | None = None,
        model: str = "openai/gpt-4.1-mini",
    ) -> None:
        self.client = client
        self.youtube_id = youtube_id
        self.transcript = list(transcript)
        self.meta = meta or {}
        self.model = model
        self.reset()

    def reset(self) -> None:
        self.step: QuizStep = "setup"
        self.quiz_id: int | None = None
        self.session_id: int | None = None
        self.question: dict[str, Any] | None = None
        self.progress: dict[str, int] = {"answered": 0, "total": 0}
        self.results: dict[str, Any] | None = None

    def _fail(self, what: str, err: Exception) -> None:
        logger.warning("quiz %s failed: %s", what, err)
        self.step = "setup"

    def generate(
        self,
        scope: QuizScope,
        current_time_ms: int,
        chapters: Sequence[Chapter] = (),
        *,
        minutes: int = 10,
        num_questions: int = 5,
        difficulty: str = "medium",
    ) -> bool:
        if not can_generate(scope, current_time_ms, chapters, minutes):
            return False

        if scope == "minutes":
            value = minutes
        else:
            value = max(MIN_MINUTES_SINCE_CHAPTER, minutes_since_chapter_start(chapters, current_time_ms))

        self.step = "generating"
        context = select_window(self.transcript, current_time_ms, value).text
        try:
            created = self.client.generate_quiz(
                {
                    "youtubeId": self.youtube_id,
                    "model": self.model,
                    "transcriptContext": context,
                    "contextSpec": {"type": scope, "value": value},
                    "numQuestions": num_questions,
                    "choicesCount": 4,
                    "difficulty": difficulty,
                    "meta": self.meta,
                }
            )
        except PraxisAPIError as e:
            self._fail("generate", e)
            return False

        self.quiz_id = created["quizId"]
        self.session_id = created["sessionId"]
        self.progress = {"answered": 0, "total": created["total"]}
        self.step = "quiz"
        return self._load_next()

    def _load_next(self) -> bool:
        try:
            self.question = self.client.next_question(self.session_id, self.quiz_id)
        except PraxisAPIError as e:
            self._fail("next", e)
            return False
        return True

    def answer(self, selected_index: int) -> bool:
        if self.step != "quiz" or self.question is None:
            return False

        try:
            ack = self.client.answer(self.session_id, self.question["questionId"], selected_index)
            self.progress = ack["progress"]
            if self.progress["answered"] >= self.progress["total"]:
                self.results = self.client.finish(self.session_id)
                self.step = "results"
                return True
        except PraxisAPIError as e:
            self._fail("answer", e)
            return False

        return self._load_next()
