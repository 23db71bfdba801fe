import time

import httpx
import openai
import pytest

from praxis.services import search as search_mod
from praxis.services.llm import openai_client
from praxis.services.llm.openai_client import LLMError
from praxis.services.search import filter_candidates

NOW_MS = int(time.time() * 1000)


def _candidates():
    out = []
    for i in range(8):
        out.append(
            {
                "id": f"vid{i:08d}",
                "title": f"Video {i}",
                "url": f"https://www.youtube.com/watch?v=vid{i:08d}",
                "channel": "EE",
                "duration_formatted": "10:00",
                "views": i * 100,
                "thumbnail_url": None,
                "uploaded_at": "1 year ago",
                "is_short": False,
            }
        )
    out.append({**out[0], "id": "shortclip01", "is_short": True, "views": 10**9})
    out.append({**out[0], "id": "oldvideo001", "uploaded_at": "4 years ago", "views": 10**9})
    return out


def test_filter_candidates_drops_shorts_and_old_uploads():
    kept = filter_candidates(_candidates(), NOW_MS)
    ids = [c["id"] for c in kept]
    assert "shortclip01" not in ids
    assert "oldvideo001" not in ids
    assert len(kept) == 8
    assert "uploaded_at" not in kept[0]


def _patch_search(monkeypatch, picks_payload=None, pick_error=None):
    monkeypatch.setattr(openai_client, "generate_text", lambda **kwargs: '"ohms law basics"')
    seen = {}

    def fake_search_videos(query, *, limit=25):
        seen["query"] = query
        seen["limit"] = limit
        return _candidates()

    def fake_generate_object(*, model, schema, prompt, system=None, temperature=0.3):
        if pick_error:
            raise pick_error
        return schema.model_validate(picks_payload)

    monkeypatch.setattr(search_mod, "search_videos", fake_search_videos)
    monkeypatch.setattr(openai_client, "generate_object", fake_generate_object)
    return seen


def test_search_uses_llm_picks(client, monkeypatch):
    picks = {"picks": [{"id": f"vid{i:08d}", "reason": f"r{i}"} for i in (1, 3, 5, 7, 2)]}
    seen = _patch_search(monkeypatch, picks)

    r = client.post("/api/search", json={"query": "ohm's law"})
    assert r.status_code == 200
    body = r.json()
    assert seen == {"query": "ohms law basics", "limit": 25}
    assert body["refinedQuery"] == "ohms law basics"
    assert body["candidatesCount"] == 8
    assert [p["id"] for p in body["picks"]] == ["vid00000001", "vid00000003", "vid00000005", "vid00000007", "vid00000002"]
    assert body["picks"][0]["reason"] == "r1"
    assert body["picks"][0]["durationFormatted"] == "10:00"


def test_search_falls_back_to_most_viewed(client, monkeypatch):
    _patch_search(monkeypatch, pick_error=LLMError("bad json"))

    body = client.post("/api/search", json={"query": "ohm's law"}).json()
    assert [p["id"] for p in body["picks"]] == [f"vid{i:08d}" for i in (7, 6, 5, 4, 3)]
    assert body["picks"][0].get("reason") is None


def test_search_falls_back_when_picks_are_incomplete(client, monkeypatch):
    _patch_search(monkeypatch, {"picks": [{"id": "vid00000001"}, {"id": "not-a-candidate"}]})

    body = client.post("/api/search", json={"query": "ohm's law"}).json()
    assert len(body["picks"]) == 5
    assert body["picks"][0]["id"] == "vid00000007"


def test_search_requires_query(client):
    r = client.post("/api/search", json={"query": "   "})
    assert r.status_code == 400
    assert r.json() == {"detail": "Missing query"}


class _UnreachableGateway:
    """Stands in for the OpenAI client; every completion call fails to connect."""

    def __init__(self):
        self.chat = self
        self.completions = self

    def create(self, **kwargs):
        raise openai.APIConnectionError(request=httpx.Request("POST", "https://openrouter.test/chat/completions"))


def test_gateway_errors_surface_as_llm_error(monkeypatch):
    monkeypatch.setattr(openai_client, "_build_openai_client", lambda: _UnreachableGateway())

    with pytest.raises(LLMError) as exc:
        openai_client.generate_text(model="m", prompt="hi")
    assert isinstance(exc.value.__cause__, openai.APIConnectionError)


def test_search_falls_back_when_gateway_unreachable(client, monkeypatch):
    monkeypatch.setattr(openai_client, "generate_text", lambda **kwargs: "ohms law")
    monkeypatch.setattr(search_mod, "search_videos", lambda query, *, limit=25: _candidates())
    monkeypatch.setattr(openai_client, "_build_openai_client", lambda: _UnreachableGateway())

    r = client.post("/api/search", json={"query": "ohm's law"})
    assert r.status_code == 200
    assert [p["id"] for p in r.json()["picks"]] == [f"vid{i:08d}" for i in (7, 6, 5, 4, 3)]
