"""Conversation Session — one chat conversation with the repository assistant.

Turn protocol:
    send_turn() → append user message (local echo)
                → POST /api/chat
                → append assistant answer, or an "Error: ..." notice on failure

The transcript is the single channel for answers and failure notices, so it is
always a complete linear record of the interaction. Callers that need to know
whether the last entry is an answer or a notice read TurnResult.failure (or
last_failure) instead of inspecting the text.

At most one turn is in flight per session; a second send_turn() while one is
pending raises ConcurrentOperationRejected without touching the transcript or
the network.
"""

from __future__ import annotations

import logging
import threading
from typing import TYPE_CHECKING

from repomind_core.classifier import classify
from repomind_core.errors import ConcurrentOperationRejected, SessionClosed, TransportError
from repomind_core.models import Message, Role, TurnResult

if TYPE_CHECKING:
    from repomind_core.classifier import Failure
    from repomind_core.gateway import RequestGateway
    from repomind_store.identity import IdentityStore
    from repomind_store.models import SessionContext

logger = logging.getLogger(__name__)

CHAT_PATH = "/api/chat"

DEFAULT_GREETING = (
    "Hi! I'm Repo Mind AI. Ask me anything about your codebase, "
    "and I'll provide context-aware answers using RAG."
)

ERROR_PREFIX = "Error: "


class ConversationSession:
    def __init__(
        self,
        gateway: RequestGateway,
        context: SessionContext,
        greeting: str | None = DEFAULT_GREETING,
        identity: IdentityStore | None = None,
    ):
        self._gateway = gateway
        self._context = context
        self._identity = identity
        self._messages: list[Message] = []
        if greeting:
            self._messages.append(Message(Role.ASSISTANT, greeting))
        self._turn_lock = threading.Lock()
        self._state_lock = threading.Lock()
        self._closed = False
        self._last_failure: Failure | None = None

    # ------------------------------------------------------------------ #
    # Read-only views                                                      #
    # ------------------------------------------------------------------ #

    @property
    def context(self) -> SessionContext:
        return self._context

    @property
    def conversation_id(self) -> str:
        return self._context.conversation_id

    @property
    def messages(self) -> list[Message]:
        with self._state_lock:
            return list(self._messages)

    @property
    def last_failure(self) -> Failure | None:
        return self._last_failure

    @property
    def in_flight(self) -> bool:
        return self._turn_lock.locked()

    @property
    def closed(self) -> bool:
        return self._closed

    # ------------------------------------------------------------------ #
    # Turn-taking                                                          #
    # ------------------------------------------------------------------ #

    def send_turn(self, text: str) -> TurnResult | None:
        """Send one user message and append the assistant's reply (or an error notice).

        Returns:
            TurnResult describing what was appended, or None if the session was
            closed (or the repository selection changed) before the reply
            arrived, in which case the reply is discarded.

        Raises:
            ValueError: If text is empty after trimming; nothing is sent.
            ConcurrentOperationRejected: If a turn is already in flight; nothing is sent.
            SessionClosed: If close() was already called; nothing is sent.
        """
        if not text or not text.strip():
            raise ValueError("Message must not be empty.")
        if self._closed:
            raise SessionClosed("Conversation session is closed.")
        if not self._turn_lock.acquire(blocking=False):
            raise ConcurrentOperationRejected("A message is already being answered. Wait for the reply.")

        try:
            with self._state_lock:
                self._messages.append(Message(Role.USER, text))

            payload = {
                "message": text,
                "repoId": self._context.repository.repository_id,
                "conversationId": self._context.conversation_id,
            }
            logger.debug(
                "Sending chat turn for repo %s, conversation %s",
                payload["repoId"],
                payload["conversationId"],
            )

            failure = None
            try:
                response = self._gateway.post(CHAT_PATH, payload)
                answer = response.data.get("answer") if isinstance(response.data, dict) else None
                if not isinstance(answer, str):
                    # 2xx without an answer counts as a malformed body.
                    raise TransportError(
                        "Chat response had no answer",
                        status_code=response.status_code,
                        malformed=True,
                    )
                text_out = answer
            except TransportError as e:
                failure = classify(e)
                logger.warning("Chat turn failed (%s): %s", failure.kind.value, e)
                text_out = ERROR_PREFIX + failure.message

            if not self._is_current():
                logger.warning("Discarding chat reply for stale conversation %s", self.conversation_id)
                return None

            with self._state_lock:
                self._messages.append(Message(Role.ASSISTANT, text_out))
                self._last_failure = failure
            return TurnResult(text=text_out, failure=failure)
        finally:
            self._turn_lock.release()

    def close(self) -> None:
        """Tear the session down; a reply still in flight will be discarded."""
        self._closed = True

    def _is_current(self) -> bool:
        if self._closed:
            return False
        if self._identity is not None:
            # Another command may have switched repositories while we waited.
            return self._identity.get_repository_context() == self._context.repository
        return True


def open_conversation(
    identity: IdentityStore,
    gateway: RequestGateway,
    greeting: str | None = DEFAULT_GREETING,
) -> ConversationSession:
    """Open a chat session for the selected repository.

    Raises MissingContextError (before any request is issued) when no
    repository is selected.
    """
    context = identity.require_context()
    return ConversationSession(gateway, context, greeting=greeting, identity=identity)
