import logging

from fastapi import APIRouter, Depends, HTTPException

from praxis.api.schemas import CamelModel
from praxis.core.auth import get_identity
from praxis.services.search import search_learning_videos

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/search", tags=["search"], dependencies=[Depends(get_identity)])


class SearchRequest(CamelModel):
    query: str = ""


class SearchPick(CamelModel):
    id: str
    title: str
    url: str
    channel: str
    duration_formatted: str | None = None
    views: int | None = None
    thumbnail_url: str | None = None
    reason: str | None = None


class SearchResponse(CamelModel):
    refined_query: str
    candidates_count: int
    picks: list[SearchPick]


@router.post("", response_model=SearchResponse)
def search(req: SearchRequest) -> SearchResponse:
    query = (req.query or "").strip()
    if not query:
        raise HTTPException(status_code=400, detail="Missing query")

    try:
        out = search_learning_videos(query)
    except Exception:
        logger.exception("[search] failed for %r", query)
        raise HTTPException(status_code=500, detail="Internal error")
    return SearchResponse(**out)
