from __future__ import annotations

import json
import logging
import time
from typing import Any

from pydantic import BaseModel, Field

from praxis.core.config import settings
from praxis.services.llm import openai_client
from praxis.services.llm.openai_client import LLMError
from praxis.services.llm.prompts import SEARCH_REFINE_SYSTEM, SEARCH_SELECT_SYSTEM
from praxis.services.youtube import parse_uploaded_at_to_ms, search_videos

logger = logging.getLogger(__name__)

MAX_CANDIDATES = 25
FINAL_PICKS = 5
MAX_AGE_MS = 3 * 365 * 24 * 60 * 60 * 1000


class _Pick(BaseModel):
    id: str
    reason: str = ""


class _Picks(BaseModel):
    picks: list[_Pick] = Field(min_length=1)


def refine_query(query: str) -> str:
    refined = openai_client.generate_text(
        model=settings.search_model,
        system=SEARCH_REFINE_SYSTEM,
        prompt=f'User query: "{query}"\nReturn only the improved search query.',
        temperature=0.2,
        max_tokens=64,
    )
    refined = refined.strip().strip('"').strip()
    return refined or query


def filter_candidates(raw: list[dict[str, Any]], now_ms: int) -> list[dict[str, Any]]:
    """Drop shorts and anything uploaded more than three years ago."""
    cutoff = now_ms - MAX_AGE_MS
    out = []
    for v in raw:
        if not v.get("id") or v.get("is_short"):
            continue
        uploaded_ms = parse_uploaded_at_to_ms(v.get("uploaded_at"), now_ms)
        if uploaded_ms is not None and uploaded_ms < cutoff:
            continue
        out.append({k: v.get(k) for k in ("id", "title", "url", "channel", "duration_formatted", "views", "thumbnail_url")})
    return out


def _pick_with_llm(refined_query: str, candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    try:
        picked = openai_client.generate_object(
            model=settings.search_model,
            schema=_Picks,
            system=SEARCH_SELECT_SYSTEM,
            prompt=json.dumps({"refinedQuery": refined_query, "candidates": candidates, "k": FINAL_PICKS}),
        )
    except LLMError as e:
        logger.warning("search pick failed, falling back to views: %s", e)
        return []

    by_id = {c["id"]: c for c in candidates}
    out = []
    for p in picked.picks[:FINAL_PICKS]:
        c = by_id.get(p.id)
        if c:
            out.append({**c, "reason": p.reason})
    return out


def _most_viewed(candidates: list[dict[str, Any]]) -> list[dict[str, Any]]:
    ranked = sorted(candidates, key=lambda c: c.get("views") or 0, reverse=True)
    return [dict(c) for c in ranked[:FINAL_PICKS]]


def search_learning_videos(query: str) -> dict[str, Any]:
    query = (query or "").strip()
    if not query:
        raise ValueError("Missing query")

    refined = refine_query(query)
    now_ms = int(time.time() * 1000)
    candidates = filter_candidates(search_videos(refined, limit=MAX_CANDIDATES), now_ms)

    selected = _pick_with_llm(refined, candidates) if candidates else []
    picks = selected if len(selected) == FINAL_PICKS else _most_viewed(candidates)

    return {"refined_query": refined, "candidates_count": len(candidates), "picks": picks}
