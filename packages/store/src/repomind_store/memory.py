"""In-memory store — volatile state scoped to the current process.

Used as the session-scoped half of the Identity Store when no session file is
configured, and as the default backend in tests.
"""

from __future__ import annotations

import copy
from typing import Any

from repomind_store.base import BaseStore


class MemoryStore(BaseStore):
    """Keeps values in a dict; everything is lost when the process exits."""

    def __init__(self, initial: dict[str, Any] | None = None):
        self._data: dict[str, Any] = dict(initial or {})

    def get(self, key: str) -> Any | None:
        # Callers always get a copy.
        return copy.deepcopy(self._data.get(key))

    def set(self, key: str, value: Any) -> None:
        self._data[key] = copy.deepcopy(value)

    def delete(self, key: str) -> None:
        self._data.pop(key, None)
