from __future__ import annotations

from collections.abc import Sequence
from typing import Any

import httpx

from praxis.services.chapters import DEFAULT_WINDOW_MS, Chapter, ChapterResult
from praxis.services.transcript import TranscriptItem


class PraxisAPIError(Exception):
    """A Praxis call failed: transport error or non-2xx status."""

    def __init__(self, message: str, status_code: int | None = None) -> None:
        super().__init__(message)
        self.status_code = status_code


class PraxisClient:
    """
    Thin JSON client over the Praxis HTTP surface.

    `http` is anything with httpx.Client's request() signature (httpx.Client
    with a base_url, or a test client). Failures surface as PraxisAPIError
    whichever library sent the request.
    """

    def __init__(self, http: httpx.Client, token: str | None = None) -> None:
        self.http = http
        self.token = token

    def _headers(self) -> dict[str, str]:
        if not self.token:
            return {}
        return {"Authorization": f"Bearer {self.token}"}

    def _send(self, method: str, path: str, **kwargs: Any) -> Any:
        try:
            r = self.http.request(method, path, headers=self._headers(), **kwargs)
        except httpx.HTTPError as e:
            raise PraxisAPIError(f"{method} {path}: {e}") from e

        if not r.is_success:
            raise PraxisAPIError(f"{method} {path} -> {r.status_code}: {r.text[:200]}", status_code=r.status_code)
        return r.json()

    def _post(self, path: str, payload: dict[str, Any]) -> Any:
        return self._send("POST", path, json=payload)

    def _get(self, path: str, params: dict[str, Any]) -> Any:
        return self._send("GET", path, params=params)

    # chapters

    def generate_chapters(
        self,
        transcript: Sequence[TranscriptItem],
        description: str | None = None,
        start_ms: int = 0,
        window_ms: int = DEFAULT_WINDOW_MS,
    ) -> ChapterResult:
        payload: dict[str, Any] = {
            "transcript": [t.to_dict() for t in transcript],
            "startMs": start_ms,
            "windowMs": window_ms,
        }
        if description is not None:
            payload["description"] = description

        body = self._post("/api/chapters", payload)
        window = body.get("window") or {}
        return ChapterResult(
            chapters=[Chapter(title=c["title"], start_ms=int(c["startMs"])) for c in body.get("chapters") or []],
            source=body["source"],
            window_start_ms=int(window.get("startMs", start_ms)),
            window_ms=int(window.get("windowMs", window_ms)),
        )

    # quiz

    def generate_quiz(self, payload: dict[str, Any]) -> dict[str, Any]:
        return self._post("/api/quiz/generate", payload)

    def next_question(self, session_id: int, quiz_id: int) -> dict[str, Any] | None:
        return self._post("/api/quiz/next", {"sessionId": session_id, "quizId": quiz_id})

    def answer(self, session_id: int, question_id: int, selected_index: int) -> dict[str, Any]:
        return self._post(
            "/api/quiz/answer",
            {"sessionId": session_id, "questionId": question_id, "selectedIndex": selected_index},
        )

    def finish(self, session_id: int) -> dict[str, Any]:
        return self._post("/api/quiz/finish", {"sessionId": session_id})

    def session(self, session_id: int) -> dict[str, Any]:
        return self._get("/api/quiz/session", {"sessionId": session_id})
