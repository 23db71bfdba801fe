from __future__ import annotations

import json
import logging
from collections.abc import Iterator
from typing import Any, TypeVar

from openai import OpenAI, OpenAIError
from pydantic import BaseModel, ValidationError

from praxis.core.config import settings

logger = logging.getLogger(__name__)

T = TypeVar("T", bound=BaseModel)


class LLMError(RuntimeError):
    pass


def _build_openai_client() -> OpenAI:
    if not settings.openrouter_api_key:
        raise LLMError("OPENROUTER_API_KEY is missing")

    # Gateway errors surface to the route; no SDK-level retries.
    return OpenAI(
        api_key=settings.openrouter_api_key,
        base_url=settings.openrouter_base_url,
        timeout=settings.llm_timeout_sec,
        max_retries=0,
    )


def _create(client: OpenAI, **kwargs: Any) -> Any:
    try:
        return client.chat.completions.create(**kwargs)
    except OpenAIError as e:
        raise LLMError(f"LLM gateway error: {e}") from e


def _extract_json(text: str) -> dict[str, Any]:
    """
    Best-effort JSON extraction if model returns extra text.
    """
    text = (text or "").strip()
    if not text:
        raise LLMError("Empty response from model")

    # Fast path
    try:
        return json.loads(text)
    except Exception:
        pass

    # Strip ```json fences / prose around the outermost object
    start = text.find("{")
    end = text.rfind("}")
    if start >= 0 and end > start:
        try:
            return json.loads(text[start : end + 1])
        except json.JSONDecodeError as e:
            raise LLMError(f"Model returned malformed JSON: {e}") from e

    raise LLMError(f"Model returned non-JSON. First 200 chars: {text[:200]!r}")


def _messages(system: str | None, prompt: str | list[dict[str, Any]]) -> list[dict[str, Any]]:
    msgs: list[dict[str, Any]] = []
    if system:
        msgs.append({"role": "system", "content": system})
    if isinstance(prompt, str):
        msgs.append({"role": "user", "content": prompt})
    else:
        msgs.extend(prompt)
    return msgs


def generate_object(
    *,
    model: str,
    schema: type[T],
    prompt: str | list[dict[str, Any]],
    system: str | None = None,
    temperature: float = 0.3,
) -> T:
    """
    One JSON-mode completion validated against `schema`.

    `prompt` is either the user text or a full list of chat messages
    (used for multi-part content such as file/image attachments).
    """
    client = _build_openai_client()

    chat = _create(
        client,
        model=model,
        messages=_messages(system, prompt),
        temperature=temperature,
        response_format={"type": "json_object"},
    )
    raw_text = (chat.choices[0].message.content or "").strip()
    payload = _extract_json(raw_text)

    try:
        return schema.model_validate(payload)
    except ValidationError as e:
        logger.warning("model %s output failed %s validation: %s", model, schema.__name__, e)
        raise LLMError(f"Model output did not match {schema.__name__}") from e


def generate_text(
    *,
    model: str,
    prompt: str,
    system: str | None = None,
    temperature: float = 0.4,
    max_tokens: int | None = None,
) -> str:
    client = _build_openai_client()

    kwargs: dict[str, Any] = {}
    if max_tokens:
        kwargs["max_tokens"] = max_tokens

    chat = _create(
        client,
        model=model,
        messages=_messages(system, prompt),
        temperature=temperature,
        **kwargs,
    )
    return (chat.choices[0].message.content or "").strip()


def stream_text(
    *,
    model: str,
    messages: list[dict[str, Any]],
    system: str | None = None,
) -> Iterator[str]:
    """
    Opens the stream eagerly so gateway errors raise here; the returned
    iterator yields text deltas.
    """
    client = _build_openai_client()

    stream = _create(
        client,
        model=model,
        messages=_messages(system, messages),
        stream=True,
    )
    return _iter_deltas(stream)


def _iter_deltas(stream: Any) -> Iterator[str]:
    for chunk in stream:
        if not chunk.choices:
            continue
        delta = chunk.choices[0].delta.content
        if delta:
            yield delta
