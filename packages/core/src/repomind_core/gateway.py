"""Request Gateway — the single credentialed HTTP client every domain call goes through.

Authentication is an opaque session cookie set by the backend's GitHub OAuth
flow; no bearer header is ever sent. Which origin the backend lives at is a
configuration concern (see repomind_core.config) resolved before the gateway
is built.

Every call either returns a GatewayResponse or raises TransportError. No
retries happen here: a retry is always a user-initiated re-trigger.
"""

from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any
from urllib.parse import urlsplit

import requests

from repomind_core.errors import TransportError

logger = logging.getLogger(__name__)

DEFAULT_COOKIE_NAME = "JSESSIONID"
DEFAULT_TIMEOUT = 60


@dataclass
class GatewayResponse:
    status_code: int
    data: Any = None


class RequestGateway:
    """Thin wrapper over a requests.Session bound to one backend origin."""

    def __init__(
        self,
        base_url: str,
        session_cookie: str | None = None,
        cookie_name: str = DEFAULT_COOKIE_NAME,
        timeout: float = DEFAULT_TIMEOUT,
        session: requests.Session | None = None,
    ):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers.update({"Accept": "application/json"})

        if session_cookie:
            # Scoped to the backend host only.
            domain = urlsplit(self.base_url).hostname or ""
            self.session.cookies.set(cookie_name, session_cookie, domain=domain, path="/")
            logger.debug("Initialized gateway for %s with session cookie", self.base_url)
        else:
            logger.debug("Initialized gateway for %s without a session cookie", self.base_url)

    def get(self, path: str, params: dict | None = None) -> GatewayResponse:
        return self.send("GET", path, params=params)

    def post(self, path: str, body: Any = None) -> GatewayResponse:
        return self.send("POST", path, body)

    def send(self, method: str, path: str, body: Any = None, params: dict | None = None) -> GatewayResponse:
        """Issue one request and return its decoded response.

        Args:
            method: HTTP method
            path: Path relative to the backend origin, e.g. ``/api/chat``
            body: Optional JSON-serialisable request body
            params: Optional query parameters

        Returns:
            GatewayResponse with the decoded JSON body, or ``data=None`` for an empty body

        Raises:
            TransportError: On network failure, non-2xx status, or an undecodable 2xx body
        """
        url = self._url(path)
        logger.debug("%s %s", method, url)
        try:
            response = self.session.request(
                method,
                url,
                json=body,
                params=params,
                timeout=self.timeout,
            )
        except (requests.ConnectionError, requests.Timeout) as e:
            logger.warning("%s %s: no response (%s)", method, url, type(e).__name__)
            raise TransportError.unreachable(f"No response from {url}: {e}") from e
        except requests.RequestException as e:
            logger.error("%s %s failed: %s", method, url, e)
            raise TransportError.unreachable(f"Request to {url} failed: {e}") from e

        if not 200 <= response.status_code < 300:
            logger.warning("%s %s returned HTTP %d", method, url, response.status_code)
            raise TransportError(
                f"HTTP {response.status_code} from {url}",
                status_code=response.status_code,
                body=self._decode_error_body(response),
            )

        if not response.content or not response.content.strip():
            return GatewayResponse(status_code=response.status_code)

        try:
            data = response.json()
        except ValueError as e:
            logger.warning("%s %s returned a malformed body: %s", method, url, response.text[:200])
            raise TransportError(
                f"Malformed response body from {url}",
                status_code=response.status_code,
                malformed=True,
            ) from e
        return GatewayResponse(status_code=response.status_code, data=data)

    def close(self) -> None:
        self.session.close()

    def _url(self, path: str) -> str:
        return f"{self.base_url}/{path.lstrip('/')}"

    @staticmethod
    def _decode_error_body(response: requests.Response) -> Any:
        if not response.content:
            return None
        try:
            return response.json()
        except ValueError:
            return None
