"""Whole-repository code audits.

Unlike review runs, audits are job-queued on the server: start() returns an
audit id immediately and the client polls status() until the audit reaches a
terminal state. wait() implements that poll with a fixed interval.
"""

from __future__ import annotations

import logging
import time
from typing import TYPE_CHECKING, Callable

from repomind_core.classifier import to_exception
from repomind_core.errors import RepoMindError, TransportError
from repomind_core.models import AuditStatus, FindingsPage

if TYPE_CHECKING:
    from repomind_core.gateway import RequestGateway
    from repomind_store.models import RepositoryContext

logger = logging.getLogger(__name__)

DEFAULT_PAGE_SIZE = 20


class AuditTimeout(RepoMindError):
    """wait() gave up before the audit finished."""

    def __init__(self, status: AuditStatus):
        super().__init__(f"Audit {status.id} still {status.status} after waiting.")
        self.status = status


class AuditClient:
    def __init__(self, gateway: RequestGateway, repository: RepositoryContext):
        self._gateway = gateway
        self.repository = repository

    def start(self) -> int:
        """Queue an audit of the repository and return its id."""
        data = self._get_dict("POST", f"/api/audits/start/{self.repository.repository_id}")
        audit_id = data.get("auditId", data.get("id"))
        if not isinstance(audit_id, int):
            raise to_exception(TransportError("Start-audit response had no audit id", malformed=True))
        logger.info("Started audit %s for repository %s", audit_id, self.repository.repository_id)
        return audit_id

    def status(self, audit_id: int) -> AuditStatus:
        return AuditStatus.from_dict(self._get_dict("GET", f"/api/audits/{audit_id}/status"))

    def latest(self) -> AuditStatus:
        """Return the most recent audit of the repository; NotFoundError if it was never audited."""
        return AuditStatus.from_dict(self._get_dict("GET", f"/api/audits/latest/{self.repository.repository_id}"))

    def findings(
        self,
        audit_id: int,
        severity: str | None = None,
        category: str | None = None,
        page: int = 0,
        size: int = DEFAULT_PAGE_SIZE,
    ) -> FindingsPage:
        params: dict = {"page": page, "size": size}
        if severity:
            params["severity"] = severity.upper()
        if category:
            params["category"] = category
        return FindingsPage.from_dict(self._get_dict("GET", f"/api/audits/{audit_id}/findings", params=params))

    def wait(
        self,
        audit_id: int,
        interval: float = 5.0,
        timeout: float | None = None,
        sleep: Callable[[float], None] = time.sleep,
        on_poll: Callable[[AuditStatus], None] | None = None,
    ) -> AuditStatus:
        """Poll status() until the audit is COMPLETED or FAILED.

        Raises:
            AuditTimeout: If timeout elapses first (measured in accumulated sleep time).
        """
        waited = 0.0
        while True:
            status = self.status(audit_id)
            if on_poll is not None:
                on_poll(status)
            if status.is_finished:
                return status
            if timeout is not None and waited >= timeout:
                raise AuditTimeout(status)
            sleep(interval)
            waited += interval

    def _get_dict(self, method: str, path: str, params: dict | None = None) -> dict:
        try:
            response = self._gateway.send(method, path, params=params)
        except TransportError as e:
            raise to_exception(e) from e
        if not isinstance(response.data, dict):
            raise to_exception(
                TransportError(f"Expected an object from {path}", status_code=response.status_code, malformed=True)
            )
        return response.data
