"""Tests for the Conversation Session."""

from __future__ import annotations

import threading
import uuid

import pytest

from repomind_core.chat import CHAT_PATH, DEFAULT_GREETING, ConversationSession, open_conversation
from repomind_core.classifier import FailureKind
from repomind_core.errors import ConcurrentOperationRejected, MissingContextError, SessionClosed, TransportError
from repomind_core.gateway import GatewayResponse
from repomind_core.models import Message, Role
from repomind_store.models import RepositoryContext


def _answer(text):
    return GatewayResponse(200, {"answer": text})


# ---------------------------------------------------------------------------
# Opening a session
# ---------------------------------------------------------------------------


class TestOpenConversation:
    def test_missing_repository_redirects_without_requests(self, empty_identity, gateway):
        with pytest.raises(MissingContextError) as exc_info:
            open_conversation(empty_identity, gateway)
        assert exc_info.value.redirect_to == "select-repo"
        gateway.post.assert_not_called()
        gateway.get.assert_not_called()
        gateway.send.assert_not_called()

    def test_uses_stable_conversation_id(self, identity, gateway):
        first = open_conversation(identity, gateway)
        second = open_conversation(identity, gateway)
        assert first.conversation_id == second.conversation_id
        assert uuid.UUID(first.conversation_id).version == 4

    def test_starts_with_greeting(self, identity, gateway):
        session = open_conversation(identity, gateway)
        assert session.messages == [Message(Role.ASSISTANT, DEFAULT_GREETING)]

    def test_greeting_can_be_disabled(self, identity, gateway):
        assert open_conversation(identity, gateway, greeting=None).messages == []


# ---------------------------------------------------------------------------
# Turn protocol
# ---------------------------------------------------------------------------


class TestSendTurn:
    def test_payload_and_answer(self, identity, gateway):
        """The canonical auth-module example: exact payload, exact appended answer."""
        gateway.post.return_value = _answer("It validates JWTs.")
        session = open_conversation(identity, gateway)

        result = session.send_turn("What does the auth module do?")

        gateway.post.assert_called_once_with(
            CHAT_PATH,
            {
                "message": "What does the auth module do?",
                "repoId": 42,
                "conversationId": identity.get_or_create_conversation_id(),
            },
        )
        assert result.ok
        assert result.text == "It validates JWTs."
        assert session.messages[-1] == Message(Role.ASSISTANT, "It validates JWTs.")

    def test_appends_exactly_two_messages_in_order(self, identity, gateway):
        gateway.post.return_value = _answer("A1")
        session = open_conversation(identity, gateway)
        before = session.messages

        session.send_turn("Q1")

        after = session.messages
        assert len(after) == len(before) + 2
        assert after[: len(before)] == before
        assert after[-2:] == [Message(Role.USER, "Q1"), Message(Role.ASSISTANT, "A1")]

    def test_transcript_is_append_only_across_turns(self, identity, gateway):
        gateway.post.side_effect = [_answer("A1"), TransportError.unreachable("down"), _answer("A3")]
        session = open_conversation(identity, gateway, greeting=None)

        session.send_turn("Q1")
        snapshot = session.messages
        session.send_turn("Q2")
        session.send_turn("Q3")

        messages = session.messages
        assert messages[:2] == snapshot
        assert [m.role for m in messages] == [Role.USER, Role.ASSISTANT] * 3
        assert [m.content for m in messages[::2]] == ["Q1", "Q2", "Q3"]

    def test_user_text_sent_untrimmed(self, identity, gateway):
        gateway.post.return_value = _answer("ok")
        session = open_conversation(identity, gateway)
        session.send_turn("  spaced  ")
        assert gateway.post.call_args.args[1]["message"] == "  spaced  "

    @pytest.mark.parametrize("text", ["", "   ", "\n\t"])
    def test_empty_text_rejected(self, identity, gateway, text):
        session = open_conversation(identity, gateway)
        before = session.messages
        with pytest.raises(ValueError):
            session.send_turn(text)
        assert session.messages == before
        gateway.post.assert_not_called()

    def test_closed_session_rejects_new_turns(self, identity, gateway):
        session = open_conversation(identity, gateway)
        session.close()
        with pytest.raises(SessionClosed):
            session.send_turn("hello")
        gateway.post.assert_not_called()


# ---------------------------------------------------------------------------
# Failures become transcript entries
# ---------------------------------------------------------------------------


class TestFailures:
    def test_401_becomes_error_message(self, identity, gateway):
        gateway.post.side_effect = TransportError("HTTP 401", status_code=401, body={"message": "secret"})
        session = open_conversation(identity, gateway)

        result = session.send_turn("hi")

        assert result.failure.kind is FailureKind.UNAUTHENTICATED
        assert session.messages[-1] == Message(
            Role.ASSISTANT, "Error: Authentication required. Please login with GitHub."
        )
        assert session.last_failure == result.failure

    def test_server_message_surfaces(self, identity, gateway):
        gateway.post.side_effect = TransportError("HTTP 500", status_code=500, body={"message": "RAG index missing"})
        session = open_conversation(identity, gateway)
        assert session.send_turn("hi").text == "Error: RAG index missing"

    def test_network_failure(self, identity, gateway):
        gateway.post.side_effect = TransportError.unreachable("refused")
        session = open_conversation(identity, gateway)
        result = session.send_turn("hi")
        assert result.failure.kind is FailureKind.NETWORK_UNREACHABLE
        assert not result.ok

    def test_missing_answer_field_is_unknown_failure(self, identity, gateway):
        gateway.post.return_value = GatewayResponse(200, {"reply": "wrong key"})
        session = open_conversation(identity, gateway)
        result = session.send_turn("hi")
        assert result.failure.kind is FailureKind.UNKNOWN
        assert session.messages[-1].role is Role.ASSISTANT

    def test_success_clears_last_failure(self, identity, gateway):
        gateway.post.side_effect = [TransportError.unreachable("down"), _answer("back")]
        session = open_conversation(identity, gateway)
        session.send_turn("one")
        session.send_turn("two")
        assert session.last_failure is None

    def test_lock_released_after_failure(self, identity, gateway):
        gateway.post.side_effect = TransportError.unreachable("down")
        session = open_conversation(identity, gateway)
        session.send_turn("one")
        assert not session.in_flight


# ---------------------------------------------------------------------------
# Concurrency and stale replies
# ---------------------------------------------------------------------------


class _BlockingGateway:
    """Gateway double whose post() parks until released."""

    def __init__(self, answer="late answer"):
        self.entered = threading.Event()
        self.release = threading.Event()
        self.calls = []
        self._answer = answer

    def post(self, path, body=None):
        self.calls.append((path, body))
        self.entered.set()
        self.release.wait(timeout=5)
        return _answer(self._answer)


def _start_turn(session, text):
    results = {}
    thread = threading.Thread(target=lambda: results.setdefault("result", session.send_turn(text)))
    thread.start()
    return thread, results


class TestConcurrency:
    def test_second_turn_while_in_flight_rejected(self, identity):
        gw = _BlockingGateway()
        session = open_conversation(identity, gw, greeting=None)

        thread, _ = _start_turn(session, "first")
        assert gw.entered.wait(timeout=5)
        assert session.in_flight

        with pytest.raises(ConcurrentOperationRejected):
            session.send_turn("second")

        # No duplicate user message, no duplicate request.
        assert session.messages == [Message(Role.USER, "first")]
        assert len(gw.calls) == 1

        gw.release.set()
        thread.join(timeout=5)
        assert session.messages == [Message(Role.USER, "first"), Message(Role.ASSISTANT, "late answer")]

    def test_next_turn_allowed_after_resolution(self, identity):
        gw = _BlockingGateway()
        gw.release.set()
        session = open_conversation(identity, gw, greeting=None)
        session.send_turn("first")
        session.send_turn("second")
        assert len(gw.calls) == 2

    def test_reply_discarded_after_close(self, identity):
        gw = _BlockingGateway()
        session = open_conversation(identity, gw, greeting=None)

        thread, results = _start_turn(session, "first")
        assert gw.entered.wait(timeout=5)
        session.close()
        gw.release.set()
        thread.join(timeout=5)

        assert results["result"] is None
        assert session.messages == [Message(Role.USER, "first")]

    def test_reply_discarded_after_repository_change(self, identity):
        gw = _BlockingGateway()
        session = open_conversation(identity, gw, greeting=None)

        thread, results = _start_turn(session, "first")
        assert gw.entered.wait(timeout=5)
        identity.set_repository_context(RepositoryContext(7, "acme/other"))
        gw.release.set()
        thread.join(timeout=5)

        assert results["result"] is None
        assert Message(Role.ASSISTANT, "late answer") not in session.messages

    def test_session_without_identity_only_checks_close(self, identity, gateway):
        gateway.post.return_value = _answer("ok")
        session = ConversationSession(gateway, identity.require_context())
        identity.set_repository_context(RepositoryContext(7, "acme/other"))
        assert session.send_turn("hi").text == "ok"
