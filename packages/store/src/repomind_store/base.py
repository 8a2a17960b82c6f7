"""Abstract key/value store interface.

The Identity Store is backed by two of these: a durable one for state that
must survive restarts (the selected repository, the login cookie) and a
session-scoped one for state that lives only as long as the terminal session
(the chat conversation id). Both sides depend on BaseStore, not on a concrete
backend, so tests can run entirely in memory.
"""

from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any


class BaseStore(ABC):
    """Pluggable persistence layer for small JSON-serialisable values."""

    @abstractmethod
    def get(self, key: str) -> Any | None:
        """Return the value stored under key, or None if absent — never raises for a missing key."""

    @abstractmethod
    def set(self, key: str, value: Any) -> None:
        """Store value under key, replacing any previous value."""

    @abstractmethod
    def delete(self, key: str) -> None:
        """Remove key. Deleting a missing key is a no-op."""

    def close(self) -> None:
        """Release any resources held by the store (connections, file handles).

        Optional — subclasses that need cleanup should override this.
        Default is a no-op so callers can always call close() safely.
        """
