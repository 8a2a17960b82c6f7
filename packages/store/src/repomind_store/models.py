"""Identity data models.

Decoupled from repomind_core so the store layer can be used independently;
repomind_core consumes these types but the store has no knowledge of HTTP.
"""

from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True)
class RepositoryContext:
    """The repository the user selected. Every domain call is scoped to it."""

    repository_id: int
    repository_name: str

    def to_dict(self) -> dict:
        return {"repository_id": self.repository_id, "repository_name": self.repository_name}

    @classmethod
    def from_dict(cls, d: dict) -> RepositoryContext:
        return cls(repository_id=d["repository_id"], repository_name=d.get("repository_name") or "Repository")


@dataclass(frozen=True)
class SessionContext:
    """Immutable per-request context threaded into the conversation session.

    Built once from the Identity Store when a view opens; never read from
    ambient state afterwards.
    """

    repository: RepositoryContext
    conversation_id: str
