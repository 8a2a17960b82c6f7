"""Review Job Controller — trigger AI reviews and fetch their latest result.

State machine per pull-request id:

    Idle ──trigger──▶ Running ──2xx──▶ Succeeded
                         └────failure──▶ Failed(failure)

Triggering is fire-and-confirm: one POST that returns once the backend
acknowledges the run finished. Re-triggering a pull request that is already
Running raises ConcurrentOperationRejected without a second request;
different pull requests may run concurrently.
"""

from __future__ import annotations

import logging
import threading
from datetime import datetime, timezone
from typing import TYPE_CHECKING

from repomind_core.classifier import Failure, classify, not_found, to_exception
from repomind_core.errors import ConcurrentOperationRejected, NotFoundError, TransportError
from repomind_core.models import IDLE, RUNNING, SUCCEEDED, ReviewJobState, ReviewJobStatus, ReviewResult

if TYPE_CHECKING:
    from repomind_core.gateway import RequestGateway
    from repomind_store.identity import IdentityStore
    from repomind_store.models import RepositoryContext

logger = logging.getLogger(__name__)

_EPOCH = datetime.min.replace(tzinfo=timezone.utc)


def run_review_path(pull_request_id: int) -> str:
    return f"/api/reviews/run/{pull_request_id}"


def reviews_path(pull_request_id: int) -> str:
    return f"/api/reviews/pr/{pull_request_id}"


def select_latest(results: list[ReviewResult]) -> ReviewResult | None:
    """Pick the most recent review run by createdAt.

    The sort is stable, so runs with equal (or unparsable) timestamps keep
    their array order and the last of them wins. Unparsable timestamps sort
    before every real one.
    """
    if not results:
        return None
    ordered = sorted(results, key=lambda r: r.created_at_datetime or _EPOCH)
    return ordered[-1]


class ReviewJobController:
    def __init__(self, gateway: RequestGateway, repository: RepositoryContext):
        self._gateway = gateway
        self.repository = repository
        self._states: dict[int, ReviewJobState] = {}
        # Pull requests with a request on the wire; survives leave().
        self._in_flight: set[int] = set()
        self._lock = threading.Lock()
        # Bumped by leave(); a trigger that started under an older epoch
        # must not write its outcome back.
        self._epoch = 0

    def state(self, pull_request_id: int) -> ReviewJobState:
        with self._lock:
            return self._states.get(pull_request_id, IDLE)

    def trigger_review(self, pull_request_id: int) -> ReviewJobState:
        """Run an AI review for a pull request and return the terminal state.

        Failures are not raised: they end in a Failed state carrying the
        classified failure. Nothing is retried.

        Raises:
            ConcurrentOperationRejected: If a review for this pull request is already running,
                including one started before leave() that has not resolved yet.
        """
        with self._lock:
            if pull_request_id in self._in_flight:
                raise ConcurrentOperationRejected(f"A review for pull request {pull_request_id} is already running.")
            self._in_flight.add(pull_request_id)
            self._states[pull_request_id] = RUNNING
            epoch = self._epoch

        logger.info("Triggering AI review for pull request %s", pull_request_id)
        outcome = IDLE
        try:
            self._gateway.post(run_review_path(pull_request_id))
            outcome = SUCCEEDED
        except TransportError as e:
            failure = classify(e)
            logger.warning("Review for pull request %s failed (%s): %s", pull_request_id, failure.kind.value, e)
            outcome = ReviewJobState(ReviewJobStatus.FAILED, failure)
        finally:
            with self._lock:
                self._in_flight.discard(pull_request_id)
                if epoch == self._epoch:
                    self._states[pull_request_id] = outcome
                else:
                    logger.warning("Discarding review outcome for pull request %s: view was left", pull_request_id)
        return outcome

    def fetch_latest_result(self, pull_request_id: int) -> ReviewResult:
        """Return the most recent review run for a pull request.

        Raises:
            NotFoundError: If the pull request has no review runs (or the backend returns 404).
            RequestFailed: For any other classified transport failure.
        """
        try:
            response = self._gateway.get(reviews_path(pull_request_id))
        except TransportError as e:
            raise to_exception(e) from e

        data = response.data
        if data is not None and not isinstance(data, list):
            raise to_exception(
                TransportError(
                    "Review list response was not an array",
                    status_code=response.status_code,
                    malformed=True,
                )
            )

        results = [ReviewResult.from_dict(d) for d in data or [] if isinstance(d, dict)]
        latest = select_latest(results)
        if latest is None:
            raise NotFoundError(not_found())
        logger.debug("Selected review %s of %d for pull request %s", latest.id, len(results), pull_request_id)
        return latest

    def leave(self) -> None:
        """Tear the view down: every state returns to Idle and in-flight outcomes are dropped.

        A pull request whose request is still on the wire stays blocked from
        re-triggering until that request resolves.
        """
        with self._lock:
            self._epoch += 1
            self._states.clear()

    def failure(self, pull_request_id: int) -> Failure | None:
        return self.state(pull_request_id).failure


def open_reviews(identity: IdentityStore, gateway: RequestGateway) -> ReviewJobController:
    """Open the review view for the selected repository.

    Raises MissingContextError (before any request is issued) when no
    repository is selected.
    """
    return ReviewJobController(gateway, identity.require_repository())
