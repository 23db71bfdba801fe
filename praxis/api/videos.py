import logging

from fastapi import APIRouter, Depends, HTTPException

from praxis.api.schemas import CamelModel, TranscriptItemIn
from praxis.core.auth import get_identity
from praxis.services.transcript import TranscriptNotFound, fetch_transcript
from praxis.services.youtube import extract_youtube_video_id, fetch_video_metadata

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/videos", tags=["videos"], dependencies=[Depends(get_identity)])


class VideoResponse(CamelModel):
    youtube_id: str
    title: str
    channel: str
    description: str
    duration_ms: int | None = None
    views: int | None = None
    thumbnail_url: str | None = None
    transcript: list[TranscriptItemIn] | None = None


@router.get("/{video_id}", response_model=VideoResponse)
def get_video(video_id: str) -> VideoResponse:
    """
    Watch-page payload. Metadata and transcript are both best effort; a
    missing transcript comes back as null.
    """
    vid = extract_youtube_video_id(video_id)
    if not vid:
        raise HTTPException(status_code=400, detail="Invalid YouTube video id")

    try:
        meta = fetch_video_metadata(vid)
    except RuntimeError as e:
        logger.warning("metadata lookup failed for %s: %s", vid, e)
        meta = {}

    try:
        items = fetch_transcript(vid)
        transcript = [
            TranscriptItemIn(text=t.text, start_ms=t.start_ms, duration_ms=t.duration_ms, lang=t.lang) for t in items
        ]
    except TranscriptNotFound as e:
        logger.info("no transcript for %s: %s", vid, e)
        transcript = None

    return VideoResponse(
        youtube_id=vid,
        title=meta.get("title") or "YouTube Video",
        channel=meta.get("channel") or "",
        description=meta.get("description") or "",
        duration_ms=meta.get("duration_ms"),
        views=meta.get("views"),
        thumbnail_url=meta.get("thumbnail_url"),
        transcript=transcript,
    )
