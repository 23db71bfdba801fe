import logging
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from pydantic import Field

from praxis.api.schemas import CamelModel, TranscriptItemIn
from praxis.core.auth import get_identity
from praxis.services.chapters import DEFAULT_WINDOW_MS, generate_chapters
from praxis.services.transcript import TranscriptItem

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chapters", tags=["chapters"], dependencies=[Depends(get_identity)])


class ChaptersRequest(CamelModel):
    transcript: list[TranscriptItemIn]
    description: str | None = None
    start_ms: int = Field(default=0, ge=0)
    window_ms: int = Field(default=DEFAULT_WINDOW_MS, gt=0)
    preferred_count: int = Field(default=6, ge=3, le=20)


class ChapterOut(CamelModel):
    title: str
    start_ms: int


class ChapterWindowOut(CamelModel):
    start_ms: int
    window_ms: int


class ChaptersResponse(CamelModel):
    chapters: list[ChapterOut]
    source: Literal["description", "transcript"]
    window: ChapterWindowOut


@router.post("", response_model=ChaptersResponse)
def chapters(req: ChaptersRequest) -> ChaptersResponse:
    transcript = [
        TranscriptItem(text=t.text, start_ms=t.start_ms, duration_ms=t.duration_ms, lang=t.lang) for t in req.transcript
    ]
    try:
        result = generate_chapters(
            transcript,
            description=req.description,
            start_ms=req.start_ms,
            window_ms=req.window_ms,
            preferred_count=req.preferred_count,
        )
    except Exception:
        logger.exception("[chapters] generation failed")
        raise HTTPException(status_code=500, detail="Internal error")

    return ChaptersResponse(
        chapters=[ChapterOut(title=c.title, start_ms=c.start_ms) for c in result.chapters],
        source=result.source,
        window=ChapterWindowOut(start_ms=result.window_start_ms, window_ms=result.window_ms),
    )
