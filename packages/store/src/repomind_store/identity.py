"""Identity Store — which repository is selected and which conversation is active.

Two scopes, two backends:
  durable  — the selected repository (and the login cookie, see repomind_cli.auth).
             Survives restarts until explicitly replaced.
  session  — the chat conversation id. Lives as long as the session backend does
             (one terminal session in the CLI), never regenerated while present.

Nothing here is a global. Callers build an IdentityStore, then take an
immutable SessionContext snapshot with require_context() and pass that along.
"""

from __future__ import annotations

import logging
import uuid

from repomind_store.base import BaseStore
from repomind_store.models import RepositoryContext, SessionContext

logger = logging.getLogger(__name__)

REPOSITORY_KEY = "selected_repository"
CONVERSATION_KEY = "chat_conversation_id"

SELECT_REPO_ROUTE = "select-repo"


class MissingContextError(LookupError):
    """Raised when an operation needs a selected repository and there is none.

    The caller must send the user to repository selection instead of issuing
    a request that is bound to fail.
    """

    def __init__(self, message: str = "No repository selected.", redirect_to: str = SELECT_REPO_ROUTE):
        super().__init__(message)
        self.redirect_to = redirect_to


class IdentityStore:
    def __init__(self, durable: BaseStore, session: BaseStore):
        self._durable = durable
        self._session = session

    # ------------------------------------------------------------------ #
    # Repository selection (durable)                                       #
    # ------------------------------------------------------------------ #

    def get_repository_context(self) -> RepositoryContext | None:
        data = self._durable.get(REPOSITORY_KEY)
        if not isinstance(data, dict) or data.get("repository_id") is None:
            return None
        return RepositoryContext.from_dict(data)

    def set_repository_context(self, ctx: RepositoryContext) -> None:
        logger.debug("Selecting repository %s (%s)", ctx.repository_id, ctx.repository_name)
        self._durable.set(REPOSITORY_KEY, ctx.to_dict())

    def clear_repository_context(self) -> None:
        self._durable.delete(REPOSITORY_KEY)

    # ------------------------------------------------------------------ #
    # Conversation identity (session scoped)                               #
    # ------------------------------------------------------------------ #

    def get_or_create_conversation_id(self) -> str:
        """Return the session's conversation id, generating it on first use.

        Idempotent: once written, the stored value is returned unchanged for as
        long as the session backend keeps it.
        """
        existing = self._session.get(CONVERSATION_KEY)
        if existing:
            return existing
        new_id = str(uuid.uuid4())
        self._session.set(CONVERSATION_KEY, new_id)
        logger.debug("Started conversation %s", new_id)
        return new_id

    def reset_conversation(self) -> None:
        self._session.delete(CONVERSATION_KEY)

    # ------------------------------------------------------------------ #
    # Snapshot                                                             #
    # ------------------------------------------------------------------ #

    def require_repository(self) -> RepositoryContext:
        repository = self.get_repository_context()
        if repository is None:
            raise MissingContextError()
        return repository

    def require_context(self) -> SessionContext:
        """Return an immutable snapshot for a chat view, or raise MissingContextError.

        The repository is checked first so a missing selection never creates a
        conversation id as a side effect.
        """
        repository = self.require_repository()
        return SessionContext(repository=repository, conversation_id=self.get_or_create_conversation_id())
