from __future__ import annotations

from collections.abc import Iterator, Sequence
from typing import Any

from praxis.core.config import settings
from praxis.services.chapters import Chapter
from praxis.services.llm import openai_client
from praxis.services.llm.prompts import CHAT_SYSTEM

MAX_META_DESCRIPTION_CHARS = 1000


def choose_model(model: str | None, web_search: bool) -> str:
    if web_search:
        return settings.web_search_model
    return model or settings.chat_model


def build_context_block(
    *,
    transcript_context: str | None = None,
    context_spec: dict[str, Any] | None = None,
    chapters: Sequence[Chapter] = (),
    meta: dict[str, Any] | None = None,
) -> str:
    """
    Grounding text appended to the conversation as one extra user turn.
    Empty when there is neither a transcript slice nor chapters.
    """
    spec = context_spec or {}
    window = ""
    if transcript_context:
        window = (
            f"\n\n[Context Window ({spec.get('type', 'minutes')}:{spec.get('value', '?')}):]\n"
            f"{transcript_context}"
        )

    outline = ""
    if chapters:
        lines = [f"- {c.title} @ {round(c.start_ms / 1000)}s" for c in chapters]
        outline = "\n\n[Chapters]\n" + "\n".join(lines)

    if not (window or outline):
        return ""

    video = ""
    if meta is not None:
        video = (
            "\n\n[Video Meta]\n"
            f"Title: {meta.get('title') or ''}\n"
            f"Channel: {meta.get('channel') or ''}\n"
            f"Description: {(meta.get('description') or '')[:MAX_META_DESCRIPTION_CHARS]}"
        )
    return window + outline + video


def build_messages(messages: Sequence[dict[str, str]], context_block: str) -> list[dict[str, str]]:
    out = [{"role": m["role"], "content": m["content"]} for m in messages]
    if context_block:
        out.append({"role": "user", "content": context_block})
    return out


def stream_chat(
    messages: Sequence[dict[str, str]],
    *,
    model: str | None = None,
    web_search: bool = False,
    transcript_context: str | None = None,
    context_spec: dict[str, Any] | None = None,
    chapters: Sequence[Chapter] = (),
    meta: dict[str, Any] | None = None,
) -> Iterator[str]:
    block = build_context_block(
        transcript_context=transcript_context,
        context_spec=context_spec,
        chapters=chapters,
        meta=meta,
    )
    return openai_client.stream_text(
        model=choose_model(model, web_search),
        messages=build_messages(messages, block),
        system=CHAT_SYSTEM,
    )
