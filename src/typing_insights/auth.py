"""Authentication helpers: shared-secret checks and optional caller identity."""
from __future__ import annotations

import hmac
import logging
import threading
from typing import Dict, Iterable, Optional, Protocol

from fastapi import Request

logger = logging.getLogger(__name__)

SESSION_COOKIE = "__session"


def extract_token(request: Request) -> str | None:
    auth = request.headers.get("Authorization", "")
    if auth.lower().startswith("bearer "):
        return auth.split(" ", 1)[1].strip()
    api_key = request.headers.get("X-API-Key")
    if api_key:
        return api_key.strip()
    return None


def is_authorized(request: Request, tokens: Iterable[str]) -> bool:
    token = extract_token(request)
    if not token:
        return False
    return any(hmac.compare_digest(token, t) for t in tokens)


class IdentityVerifier(Protocol):
    """Resolves a session token to a user id, or None when it is not recognised."""

    def verify(self, token: str) -> Optional[str]:
        ...


# PUBLIC_INTERFACE
class SessionTokenRegistry:
    """In-memory token → user id mapping used as the default identity verifier."""

    def __init__(self) -> None:
        self._lock = threading.Lock()
        self._tokens: Dict[str, str] = {}

    def register(self, token: str, user_id: str) -> None:
        with self._lock:
            self._tokens[token] = user_id

    def revoke(self, token: str) -> None:
        with self._lock:
            self._tokens.pop(token, None)

    def verify(self, token: str) -> Optional[str]:
        with self._lock:
            return self._tokens.get(token)


# PUBLIC_INTERFACE
def resolve_identity(request: Request, verifier: IdentityVerifier) -> Optional[str]:
    """Return the authenticated user id for the request, or None.

    The ``__session`` cookie is checked first, then the bearer token.
    Verification errors are logged and treated as anonymous.
    """
    token = request.cookies.get(SESSION_COOKIE) or extract_token(request)
    if not token:
        return None
    try:
        return verifier.verify(token)
    except Exception as e:
        logger.warning("Auth verification error, continuing anonymously: %s", e)
        return None


session_registry = SessionTokenRegistry()
