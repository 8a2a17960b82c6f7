from __future__ import annotations

import logging
from typing import TYPE_CHECKING

from repomind_core.classifier import to_exception
from repomind_core.errors import TransportError
from repomind_core.models import PullRequestSummary

if TYPE_CHECKING:
    from repomind_core.gateway import RequestGateway
    from repomind_store.models import RepositoryContext

logger = logging.getLogger(__name__)


def pull_requests_path(repository_id: int) -> str:
    return f"/api/repos/{repository_id}/pull-requests"


def list_pull_requests(gateway: RequestGateway, repository: RepositoryContext) -> list[PullRequestSummary]:
    """Return the synced pull requests of a repository, in backend order.

    An empty list means the backend has not synced any yet — not an error.
    """
    try:
        response = gateway.get(pull_requests_path(repository.repository_id))
    except TransportError as e:
        raise to_exception(e) from e

    data = response.data or []
    if not isinstance(data, list):
        raise to_exception(
            TransportError("Pull request response was not an array", status_code=response.status_code, malformed=True)
        )
    prs = [PullRequestSummary.from_dict(d) for d in data if isinstance(d, dict)]
    logger.debug("Fetched %d pull requests for repository %s", len(prs), repository.repository_id)
    return prs
