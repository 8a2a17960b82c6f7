"""Exception hierarchy shared by every RepoMind client feature."""

from __future__ import annotations

from typing import TYPE_CHECKING, Any

from repomind_store.identity import MissingContextError

if TYPE_CHECKING:
    from repomind_core.classifier import Failure

__all__ = [
    "RepoMindError",
    "TransportError",
    "RequestFailed",
    "NotFoundError",
    "ConcurrentOperationRejected",
    "SessionClosed",
    "MissingContextError",
]


class RepoMindError(Exception):
    """Base class for errors raised by repomind_core."""


class TransportError(RepoMindError):
    """The only failure the request gateway ever raises.

    Exactly one of these holds:
      - no response was received (``response_received`` is False)
      - a non-2xx status came back (``status_code`` set, ``body`` decoded if JSON)
      - a 2xx came back but its body could not be decoded (``malformed`` is True)
    """

    def __init__(
        self,
        message: str,
        *,
        status_code: int | None = None,
        body: Any = None,
        response_received: bool = True,
        malformed: bool = False,
    ):
        super().__init__(message)
        self.status_code = status_code
        self.body = body
        self.response_received = response_received
        self.malformed = malformed

    @classmethod
    def unreachable(cls, message: str) -> TransportError:
        return cls(message, response_received=False)

    def __repr__(self) -> str:
        return (
            f"TransportError({str(self)!r}, status_code={self.status_code!r}, "
            f"response_received={self.response_received!r}, malformed={self.malformed!r})"
        )


class RequestFailed(RepoMindError):
    """A classified failure surfaced to the caller; ``failure.message`` is user-facing."""

    def __init__(self, failure: Failure):
        super().__init__(failure.message)
        self.failure = failure


class NotFoundError(RequestFailed):
    """The requested resource does not exist, or the result set was empty."""


class ConcurrentOperationRejected(RepoMindError):
    """A second turn or trigger was attempted while the first was still in flight."""


class SessionClosed(RepoMindError):
    """A turn was attempted on a conversation session that has been closed."""
