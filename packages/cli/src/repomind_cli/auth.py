"""Session cookie resolution.

The backend authenticates with the opaque cookie issued at the end of its
GitHub OAuth flow. Copy it from the browser once with `repomind login`, or
export it for CI.

Resolution order (stops at first success):
  1. REPOMIND_SESSION environment variable (already folded into config)
  2. The cookie saved by `repomind login` in the durable state store
"""

from __future__ import annotations

import logging

from repomind_store.base import BaseStore

logger = logging.getLogger(__name__)

SESSION_COOKIE_KEY = "session_cookie"


def resolve_session_cookie(config: dict, store: BaseStore) -> str | None:
    """Return a session cookie or None if the user never logged in.

    Never raises — an unauthenticated request is classified by the backend's
    401, not guessed at here.
    """
    cookie = config.get("session_cookie")
    if cookie:
        return cookie

    stored = store.get(SESSION_COOKIE_KEY)
    if stored:
        logger.debug("Using session cookie saved by `repomind login`.")
        return stored

    return None


def save_session_cookie(store: BaseStore, cookie: str) -> None:
    store.set(SESSION_COOKIE_KEY, cookie.strip())


def clear_session_cookie(store: BaseStore) -> None:
    store.delete(SESSION_COOKIE_KEY)
