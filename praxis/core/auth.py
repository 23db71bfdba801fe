from __future__ import annotations

import logging
from dataclasses import dataclass, field
from typing import Any

import httpx
from fastapi import Depends
from fastapi.security import HTTPAuthorizationCredentials, HTTPBearer
from sqlalchemy.orm import Session

from praxis.core.config import settings
from praxis.db.session import get_db
from praxis.services.users import upsert_current

logger = logging.getLogger(__name__)

security = HTTPBearer(auto_error=False)


class NotAuthenticated(Exception):
    pass


@dataclass
class Identity:
    subject: str
    # public metadata from the identity provider (onboarding answers etc.)
    metadata: dict[str, Any] = field(default_factory=dict)

    @property
    def subjects(self) -> list[str]:
        raw = self.metadata.get("subjects")
        if not isinstance(raw, list):
            return []
        return [s for s in raw if isinstance(s, str)]


def resolve_identity(token: str, *, client: httpx.Client | None = None) -> Identity:
    """
    Resolve a bearer token to the provider's stable subject via its
    OIDC userinfo endpoint.
    """
    if not token:
        raise NotAuthenticated("Missing token")
    if not settings.identity_userinfo_url:
        raise NotAuthenticated("IDENTITY_USERINFO_URL is not configured")

    own_client = client is None
    if own_client:
        client = httpx.Client(timeout=settings.identity_timeout_sec)
    try:
        r = client.get(settings.identity_userinfo_url, headers={"Authorization": f"Bearer {token}"})
    except httpx.HTTPError as e:
        raise NotAuthenticated(f"Identity provider unreachable: {e}") from e
    finally:
        if own_client:
            client.close()

    if r.status_code != 200:
        raise NotAuthenticated(f"Identity provider rejected token ({r.status_code})")

    data = r.json() or {}
    subject = (data.get("sub") or "").strip()
    if not subject:
        raise NotAuthenticated("Identity has no subject")

    metadata = data.get("public_metadata") or data.get("metadata") or {}
    if not isinstance(metadata, dict):
        metadata = {}
    return Identity(subject=subject, metadata=metadata)


def get_identity(credentials: HTTPAuthorizationCredentials | None = Depends(security)) -> Identity:
    """Resolved identity; NotAuthenticated is answered with a 401 by the app."""
    if credentials is None:
        raise NotAuthenticated("Missing bearer token")
    try:
        return resolve_identity(credentials.credentials)
    except NotAuthenticated as e:
        logger.info("identity resolution failed: %s", e)
        raise


def get_current_user_id(identity: Identity = Depends(get_identity), db: Session = Depends(get_db)) -> int:
    return upsert_current(db, identity.subject).id
