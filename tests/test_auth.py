import httpx
import pytest

from praxis.core.auth import Identity, NotAuthenticated, get_identity, resolve_identity
from praxis.core.config import settings


def _client(status=200, payload=None, seen=None):
    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        return httpx.Response(status, json=payload if payload is not None else {})

    return httpx.Client(transport=httpx.MockTransport(handler))


def test_resolve_identity_reads_subject_and_metadata():
    seen = []
    with _client(payload={"sub": "user_42", "public_metadata": {"subjects": ["Physics", 3]}}, seen=seen) as c:
        identity = resolve_identity("tok-abc", client=c)

    assert identity == Identity(subject="user_42", metadata={"subjects": ["Physics", 3]})
    assert identity.subjects == ["Physics"]
    assert str(seen[0].url) == settings.identity_userinfo_url
    assert seen[0].headers["Authorization"] == "Bearer tok-abc"


def test_rejected_token():
    with _client(status=401) as c:
        with pytest.raises(NotAuthenticated):
            resolve_identity("expired", client=c)


def test_missing_subject():
    with _client(payload={"email": "a@b.c"}) as c:
        with pytest.raises(NotAuthenticated):
            resolve_identity("tok", client=c)


def test_bearer_token_reaches_identity_provider(anon_client, monkeypatch):
    from praxis.core import auth as auth_mod

    tokens = []

    def fake_resolve(token, *, client=None):
        tokens.append(token)
        if token != "good":
            raise NotAuthenticated("nope")
        return Identity(subject="bearer_user")

    monkeypatch.setattr(auth_mod, "resolve_identity", fake_resolve)

    r = anon_client.post("/api/quiz/finish", json={"sessionId": 999_999}, headers={"Authorization": "Bearer bad"})
    assert r.status_code == 401
    assert r.json() == {"detail": "Unauthorized"}

    # authenticated, but the session does not exist
    r = anon_client.post("/api/quiz/finish", json={"sessionId": 999_999}, headers={"Authorization": "Bearer good"})
    assert r.status_code == 500
    assert tokens == ["bad", "good"]


def test_get_identity_without_credentials_raises_not_authenticated():
    # the app-level NotAuthenticated handler turns this into the 401
    with pytest.raises(NotAuthenticated):
        get_identity(None)
