from praxis.core.config import settings
from praxis.services.chapters import Chapter
from praxis.services.chat import build_context_block, choose_model
from praxis.services.llm import openai_client
from praxis.services.llm.openai_client import LLMError


def test_choose_model():
    assert choose_model(None, False) == settings.chat_model
    assert choose_model("openai/gpt-4o", False) == "openai/gpt-4o"
    assert choose_model("openai/gpt-4o", True) == "perplexity/sonar"


def test_context_block_sections():
    block = build_context_block(
        transcript_context="resistors oppose current",
        context_spec={"type": "minutes", "value": 10},
        chapters=[Chapter("Intro", 0), Chapter("Ohm", 61_500)],
        meta={"title": "Circuits", "channel": "EE", "description": "d" * 2000},
    )
    assert "[Context Window (minutes:10):]\nresistors oppose current" in block
    assert "- Ohm @ 62s" in block
    assert "Title: Circuits" in block
    assert "d" * 1001 not in block


def test_context_block_empty_without_grounding():
    assert build_context_block(meta={"title": "Only meta"}) == ""


def test_chat_streams_text(client, monkeypatch):
    seen = {}

    def fake_stream_text(*, model, messages, system=None):
        seen.update(model=model, messages=messages, system=system)
        return iter(["Ohm's law ", "says V = IR."])

    monkeypatch.setattr(openai_client, "stream_text", fake_stream_text)

    r = client.post(
        "/api/chat",
        json={
            "messages": [{"role": "user", "content": "What is Ohm's law?"}],
            "webSearch": True,
            "transcriptContext": "V equals I times R",
            "contextSpec": {"type": "minutes", "value": 10},
            "chapters": [{"title": "Intro", "startMs": 0}],
        },
    )
    assert r.status_code == 200
    assert r.text == "Ohm's law says V = IR."
    assert r.headers["content-type"].startswith("text/plain")

    assert seen["model"] == "perplexity/sonar"
    assert seen["system"].startswith("You are an AI learning companion")
    assert seen["messages"][0] == {"role": "user", "content": "What is Ohm's law?"}
    assert seen["messages"][-1]["role"] == "user"
    assert "V equals I times R" in seen["messages"][-1]["content"]


def test_chat_without_context_sends_messages_as_is(client, monkeypatch):
    seen = {}

    def fake_stream_text(*, model, messages, system=None):
        seen["messages"] = messages
        return iter(["ok"])

    monkeypatch.setattr(openai_client, "stream_text", fake_stream_text)
    r = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 200
    assert seen["messages"] == [{"role": "user", "content": "hi"}]


def test_chat_gateway_error_is_500(client, monkeypatch):
    def failing(**kwargs):
        raise LLMError("OPENROUTER_API_KEY is missing")

    monkeypatch.setattr(openai_client, "stream_text", failing)
    r = client.post("/api/chat", json={"messages": [{"role": "user", "content": "hi"}]})
    assert r.status_code == 500
    assert r.json() == {"detail": "Internal error"}


def test_chat_rejects_empty_messages(client):
    r = client.post("/api/chat", json={"messages": []})
    assert r.status_code == 400
