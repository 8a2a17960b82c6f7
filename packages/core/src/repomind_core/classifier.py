"""Failure Classifier — maps transport outcomes to user-facing error states.

Chat, pull-request listing, review and audit calls all go through classify()
so the same failure renders the same text whichever feature hit it.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass

from repomind_core.errors import NotFoundError, RequestFailed, TransportError

UNAUTHENTICATED_MESSAGE = "Authentication required. Please login with GitHub."
NOT_FOUND_MESSAGE = "No results found."
SERVER_REJECTED_FALLBACK = "The server rejected the request."
NETWORK_UNREACHABLE_MESSAGE = "Unable to reach the RepoMind service. Please check your connection."
UNKNOWN_MESSAGE = "Something went wrong. Please try again."


class FailureKind(str, enum.Enum):
    UNAUTHENTICATED = "unauthenticated"
    NOT_FOUND = "not_found"
    SERVER_REJECTED = "server_rejected"
    NETWORK_UNREACHABLE = "network_unreachable"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Failure:
    kind: FailureKind
    message: str


def not_found() -> Failure:
    """The NotFound failure for an empty result set (no HTTP 404 involved)."""
    return Failure(FailureKind.NOT_FOUND, NOT_FOUND_MESSAGE)


def classify(error: TransportError) -> Failure:
    """Map a TransportError to one of the five failure kinds.

    401 never echoes the server body: an unauthenticated response may be an
    HTML login page rather than structured JSON.
    """
    if not error.response_received:
        return Failure(FailureKind.NETWORK_UNREACHABLE, NETWORK_UNREACHABLE_MESSAGE)

    status = error.status_code
    if status == 401:
        return Failure(FailureKind.UNAUTHENTICATED, UNAUTHENTICATED_MESSAGE)
    if status == 404:
        return not_found()

    if status is not None and not 200 <= status < 300 and isinstance(error.body, dict):
        message = error.body.get("message")
        if not isinstance(message, str) or not message.strip():
            message = SERVER_REJECTED_FALLBACK
        return Failure(FailureKind.SERVER_REJECTED, message)

    return Failure(FailureKind.UNKNOWN, UNKNOWN_MESSAGE)


def to_exception(error: TransportError) -> RequestFailed:
    """Classify error and wrap it in the matching RequestFailed subclass."""
    failure = classify(error)
    if failure.kind is FailureKind.NOT_FOUND:
        return NotFoundError(failure)
    return RequestFailed(failure)
