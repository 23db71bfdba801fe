from __future__ import annotations

import json
import logging

from pydantic import BaseModel, Field
from sqlalchemy.exc import SQLAlchemyError
from sqlalchemy.orm import Session

from praxis.core.config import settings
from praxis.models.video_suggestion import VideoSuggestion
from praxis.services.llm import openai_client
from praxis.services.llm.prompts import SUGGESTIONS_SYSTEM, SUGGESTIONS_TAIL

logger = logging.getLogger(__name__)

NUM_SUGGESTIONS = 5
MAX_SAMPLE_CHARS = 4000


class _Suggestions(BaseModel):
    suggestions: list[str] = Field(min_length=NUM_SUGGESTIONS, max_length=NUM_SUGGESTIONS)


def get_cached(db: Session, youtube_id: str) -> list[str] | None:
    try:
        row = db.query(VideoSuggestion).filter(VideoSuggestion.youtube_id == youtube_id).first()
    except SQLAlchemyError:
        logger.exception("suggestions cache read failed for %s", youtube_id)
        db.rollback()
        return None
    if not row:
        return None

    try:
        data = json.loads(row.suggestions_json)
    except json.JSONDecodeError:
        return None
    if not isinstance(data, list) or not data:
        return None
    return [str(s) for s in data]


def upsert_cached(db: Session, youtube_id: str, suggestions: list[str]) -> None:
    try:
        row = db.query(VideoSuggestion).filter(VideoSuggestion.youtube_id == youtube_id).first()
        payload = json.dumps(suggestions, ensure_ascii=False)
        if row:
            row.suggestions_json = payload
        else:
            db.add(VideoSuggestion(youtube_id=youtube_id, suggestions_json=payload))
        db.commit()
    except SQLAlchemyError:
        # the cache is best effort
        logger.exception("suggestions cache write failed for %s", youtube_id)
        db.rollback()


def generate_suggestions(*, title: str, description: str | None = None, transcript_sample: str | None = None) -> list[str]:
    lines = [f"Title: {title}"]
    if description:
        lines.append(f"Description: {description}")
    if transcript_sample:
        lines.append(f"Transcript sample: {transcript_sample[:MAX_SAMPLE_CHARS]}")
    lines.append(SUGGESTIONS_TAIL)

    out = openai_client.generate_object(
        model=settings.suggestions_model,
        schema=_Suggestions,
        system=SUGGESTIONS_SYSTEM,
        prompt="\n".join(lines),
        temperature=0.4,
    )
    return [s.strip() for s in out.suggestions]


def suggestions_for_video(
    db: Session,
    *,
    title: str,
    youtube_id: str | None = None,
    description: str | None = None,
    transcript_sample: str | None = None,
) -> tuple[list[str], bool]:
    """Returns (suggestions, cached)."""
    if youtube_id:
        cached = get_cached(db, youtube_id)
        if cached:
            return cached, True

    suggestions = generate_suggestions(title=title, description=description, transcript_sample=transcript_sample)
    if youtube_id:
        upsert_cached(db, youtube_id, suggestions)
    return suggestions, False
