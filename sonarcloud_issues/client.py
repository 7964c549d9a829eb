"""SonarCloud API client.

Usage:
    client = SonarCloudClient(token="xxx")
    data   = client.get("/api/issues/search", [("componentKeys", "acme_web"), ("ps", "100")])

One request per call; no pagination traversal, no retries.
"""

import logging
from typing import Any, Sequence

import requests

from sonarcloud_issues.config import DEFAULT_URL

logger = logging.getLogger(__name__)

Params = Sequence[tuple[str, str]]


# ---------------------------------------------------------------------------
# Exceptions
# ---------------------------------------------------------------------------

class SonarCloudError(Exception):
    """Base exception for all client errors."""


class HTTPStatusError(SonarCloudError):
    """Raised on any non-2xx response. The body is not parsed."""

    def __init__(self, status_code: int, reason: str, url: str) -> None:
        self.status_code = status_code
        self.reason = reason
        self.url = url
        super().__init__(f"SonarCloud API error: {status_code} {reason}".rstrip())


class AuthenticationError(HTTPStatusError):
    """Raised on HTTP 401: invalid or expired token."""


class NotFoundError(HTTPStatusError):
    """Raised on HTTP 404: organization, project or pull request not found."""


class NetworkError(SonarCloudError):
    """Raised on connection timeout or unreachable server."""


class ResponseParseError(SonarCloudError):
    """Raised when a 2xx response does not carry a JSON object."""


# ---------------------------------------------------------------------------
# Client
# ---------------------------------------------------------------------------

class SonarCloudClient:
    """Thin wrapper around the SonarCloud REST API using bearer tokens."""

    def __init__(
        self,
        token: str,
        url: str = DEFAULT_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
    ) -> None:
        self.base_url = url.rstrip("/")
        self._timeout = timeout
        self._session = session or requests.Session()
        self._headers = {
            "Authorization": f"Bearer {token}",
            "Accept":        "application/json",
        }

    def get(self, endpoint: str, params: Params | None = None) -> dict[str, Any]:
        """Perform a single GET request and return the parsed JSON object.

        ``params`` is a list of ``(key, value)`` pairs so repeated keys
        survive.

        Raises:
            AuthenticationError: HTTP 401
            NotFoundError:       HTTP 404
            HTTPStatusError:     Any other non-2xx response
            NetworkError:        Timeout or connection failure
            ResponseParseError:  Body is not a JSON object
        """
        url = f"{self.base_url}{endpoint}"
        logger.debug("GET %s params=%s", url, list(params or ()))
        try:
            response = self._session.get(
                url, params=list(params or ()), headers=self._headers, timeout=self._timeout,
            )
        except requests.exceptions.Timeout as exc:
            raise NetworkError(
                f"Request timed out after {self._timeout}s while contacting '{url}'"
            ) from exc
        except requests.exceptions.ConnectionError as exc:
            raise NetworkError(
                f"Unable to reach SonarCloud at '{self.base_url}'"
            ) from exc
        except requests.exceptions.RequestException as exc:
            raise NetworkError(f"Request to '{url}' failed: {exc}") from exc

        if not response.ok:
            error_cls = {401: AuthenticationError, 404: NotFoundError}.get(
                response.status_code, HTTPStatusError,
            )
            raise error_cls(response.status_code, response.reason or "", url)

        try:
            data = response.json()
        except ValueError as exc:
            raise ResponseParseError(f"Invalid JSON in response from {url}: {exc}") from exc

        if not isinstance(data, dict):
            raise ResponseParseError(
                f"Expected a JSON object from {url}, got {type(data).__name__}"
            )
        return data
