import logging
from collections.abc import Iterator
from typing import Literal

from fastapi import APIRouter, Depends, HTTPException
from fastapi.responses import StreamingResponse
from pydantic import Field

from praxis.api.schemas import ChapterIn, CamelModel, VideoMeta
from praxis.core.auth import Identity, get_identity
from praxis.services.chapters import Chapter
from praxis.services.chat import stream_chat

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/api/chat", tags=["chat"])


class ChatMessage(CamelModel):
    role: Literal["user", "assistant"]
    content: str


class ChatContextSpec(CamelModel):
    type: Literal["minutes"] = "minutes"
    value: int = Field(ge=5, le=30)


class ChatRequest(CamelModel):
    messages: list[ChatMessage] = Field(min_length=1)
    model: str | None = None
    web_search: bool = False
    transcript_context: str | None = None
    context_spec: ChatContextSpec | None = None
    chapters: list[ChapterIn] = Field(default_factory=list)
    meta: VideoMeta | None = None


@router.post("")
def chat(req: ChatRequest, identity: Identity = Depends(get_identity)) -> StreamingResponse:
    try:
        chunks = stream_chat(
            [m.model_dump() for m in req.messages],
            model=req.model,
            web_search=req.web_search,
            transcript_context=req.transcript_context,
            context_spec=req.context_spec.model_dump() if req.context_spec else None,
            chapters=[Chapter(title=c.title, start_ms=c.start_ms) for c in req.chapters],
            meta=req.meta.model_dump() if req.meta else None,
        )
    except Exception:
        logger.exception("[chat] could not start stream for %s", identity.subject)
        raise HTTPException(status_code=500, detail="Internal error")

    def gen() -> Iterator[str]:
        try:
            yield from chunks
        except Exception:
            # headers are already sent; end the stream
            logger.exception("[chat] stream aborted for %s", identity.subject)

    return StreamingResponse(gen(), media_type="text/plain; charset=utf-8")
