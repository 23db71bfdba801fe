import logging

from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session

from praxis.api.schemas import CamelModel
from praxis.core.auth import get_identity
from praxis.db.session import get_db
from praxis.services.suggestions import suggestions_for_video

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/suggestions", tags=["suggestions"], dependencies=[Depends(get_identity)])


class SuggestionsRequest(CamelModel):
    title: str
    youtube_id: str | None = None
    description: str | None = None
    transcript_sample: str | None = None


class SuggestionsResponse(CamelModel):
    suggestions: list[str]
    cached: bool = False


@router.post("", response_model=SuggestionsResponse)
def suggestions(req: SuggestionsRequest, db: Session = Depends(get_db)) -> SuggestionsResponse:
    try:
        items, cached = suggestions_for_video(
            db,
            title=req.title,
            youtube_id=req.youtube_id,
            description=req.description,
            transcript_sample=req.transcript_sample,
        )
    except Exception:
        logger.exception("[suggestions] failed for %s", req.youtube_id or req.title)
        raise HTTPException(status_code=500, detail="Internal error")
    return SuggestionsResponse(suggestions=items, cached=cached)
