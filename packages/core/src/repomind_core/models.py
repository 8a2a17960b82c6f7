"""Domain models for the RepoMind client.

Wire payloads use the backend's camelCase keys; every model is built from a
decoded JSON dict via from_dict() with lenient defaults, and never mutated
client-side afterwards.
"""

from __future__ import annotations

import enum
import re
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import TYPE_CHECKING

if TYPE_CHECKING:
    from repomind_core.classifier import Failure


# ---------------------------------------------------------------------------
# Chat
# ---------------------------------------------------------------------------


class Role(str, enum.Enum):
    USER = "user"
    ASSISTANT = "assistant"


@dataclass(frozen=True)
class Message:
    role: Role
    content: str


@dataclass(frozen=True)
class TurnResult:
    """Outcome of one conversation turn.

    ``text`` is exactly what was appended to the transcript; ``failure`` is set
    when that text is an error notice rather than an assistant answer.
    """

    text: str
    failure: Failure | None = None

    @property
    def ok(self) -> bool:
        return self.failure is None


# ---------------------------------------------------------------------------
# Pull requests
# ---------------------------------------------------------------------------


@dataclass(frozen=True)
class PullRequestSummary:
    id: int
    number: int
    title: str
    author: str
    source_branch: str
    target_branch: str
    external_url: str

    @classmethod
    def from_dict(cls, d: dict) -> PullRequestSummary:
        return cls(
            id=d.get("id", 0),
            number=d.get("number", 0),
            title=d.get("title") or "",
            author=d.get("author") or "",
            source_branch=d.get("headBranch") or "",
            target_branch=d.get("baseBranch") or "",
            external_url=d.get("htmlUrl") or "",
        )


# ---------------------------------------------------------------------------
# Reviews
# ---------------------------------------------------------------------------


class Severity(str, enum.Enum):
    CRITICAL = "critical"
    WARNING = "warning"
    INFO = "info"
    OTHER = "other"

    @classmethod
    def parse(cls, raw: str | None) -> Severity:
        try:
            return cls((raw or "").strip().lower())
        except ValueError:
            return cls.OTHER


@dataclass(frozen=True)
class ReviewComment:
    id: int
    file_path: str
    line_number: int
    severity: Severity
    category: str
    body: str
    rationale: str
    suggestion: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> ReviewComment:
        return cls(
            id=d.get("id", 0),
            file_path=d.get("filePath") or "",
            line_number=d.get("lineNumber") or 0,
            severity=Severity.parse(d.get("severity")),
            category=d.get("category") or "",
            body=d.get("body") or "",
            rationale=d.get("rationale") or "",
            suggestion=d.get("suggestion") or None,
        )


@dataclass(frozen=True)
class ReviewResult:
    id: int
    summary: str
    comments: list[ReviewComment] = field(default_factory=list)
    comment_count: int = 0
    created_at: str = ""  # ISO-8601 as sent by the backend

    @classmethod
    def from_dict(cls, d: dict) -> ReviewResult:
        comments = [ReviewComment.from_dict(c) for c in d.get("comments") or []]
        count = d.get("commentCount")
        created_at = d.get("createdAt")
        return cls(
            id=d.get("id", 0),
            summary=d.get("summary") or "",
            comments=comments,
            comment_count=count if isinstance(count, int) else len(comments),
            created_at=created_at if isinstance(created_at, str) else "",
        )

    @property
    def created_at_datetime(self) -> datetime | None:
        return parse_timestamp(self.created_at)


class ReviewJobStatus(str, enum.Enum):
    IDLE = "idle"
    RUNNING = "running"
    SUCCEEDED = "succeeded"
    FAILED = "failed"


@dataclass(frozen=True)
class ReviewJobState:
    status: ReviewJobStatus = ReviewJobStatus.IDLE
    failure: Failure | None = None

    @property
    def is_running(self) -> bool:
        return self.status is ReviewJobStatus.RUNNING


IDLE = ReviewJobState()
RUNNING = ReviewJobState(ReviewJobStatus.RUNNING)
SUCCEEDED = ReviewJobState(ReviewJobStatus.SUCCEEDED)


# ---------------------------------------------------------------------------
# Audits
# ---------------------------------------------------------------------------

AUDIT_TERMINAL_STATUSES = frozenset({"COMPLETED", "FAILED"})


@dataclass(frozen=True)
class AuditStatus:
    id: int
    status: str
    progress: int = 0
    findings_count: int = 0
    error_message: str | None = None
    started_at: str = ""
    completed_at: str = ""

    @classmethod
    def from_dict(cls, d: dict) -> AuditStatus:
        return cls(
            id=d.get("auditId", d.get("id", 0)),
            status=(d.get("status") or "UNKNOWN").upper(),
            progress=d.get("progress") or 0,
            findings_count=d.get("findingsCount", d.get("totalFindings")) or 0,
            error_message=d.get("errorMessage") or None,
            started_at=d.get("startedAt") or "",
            completed_at=d.get("completedAt") or "",
        )

    @property
    def is_finished(self) -> bool:
        return self.status in AUDIT_TERMINAL_STATUSES


@dataclass(frozen=True)
class AuditFinding:
    id: int
    file_path: str
    line_number: int
    severity: str
    category: str
    title: str
    description: str
    recommendation: str | None = None

    @classmethod
    def from_dict(cls, d: dict) -> AuditFinding:
        return cls(
            id=d.get("id", 0),
            file_path=d.get("filePath") or "",
            line_number=d.get("lineNumber") or 0,
            severity=(d.get("severity") or "").upper(),
            category=d.get("category") or "",
            title=d.get("title") or "",
            description=d.get("description") or "",
            recommendation=d.get("recommendation") or None,
        )


@dataclass(frozen=True)
class FindingsPage:
    """One page of a Spring Data ``Page`` response."""

    items: list[AuditFinding]
    page: int = 0
    total_pages: int = 0
    total_elements: int = 0

    @classmethod
    def from_dict(cls, d: dict) -> FindingsPage:
        items = [AuditFinding.from_dict(f) for f in d.get("content") or []]
        return cls(
            items=items,
            page=d.get("number") or 0,
            total_pages=d.get("totalPages") or 0,
            total_elements=d.get("totalElements", len(items)) or 0,
        )

    @property
    def has_next(self) -> bool:
        return self.page + 1 < self.total_pages


# Seconds fraction of any precision; Java drops trailing zeros.
_FRACTION_RE = re.compile(r"(?<=:\d{2})\.(\d+)")


def _six_digit_fraction(match: re.Match) -> str:
    return "." + match.group(1)[:6].ljust(6, "0")


def parse_timestamp(value: str | None) -> datetime | None:
    """Parse an ISO-8601 timestamp; naive values are taken as UTC. Returns None if unparsable.

    Fractional seconds may have any number of digits; they are truncated to
    microseconds.
    """
    if not value or not isinstance(value, str):
        return None
    normalized = _FRACTION_RE.sub(_six_digit_fraction, value.strip().replace("Z", "+00:00"), count=1)
    try:
        parsed = datetime.fromisoformat(normalized)
    except ValueError:
        return None
    if parsed.tzinfo is None:
        parsed = parsed.replace(tzinfo=timezone.utc)
    return parsed
