"""Issue fetching.

    IssueFetcher(...).fetch(query, token=None)   -> IssuePage   [fetch_sonarcloud_issues]

Credentials are resolved on every call, so environment changes between calls
are picked up.
"""

import logging
from typing import Any, Mapping

import requests

from sonarcloud_issues.client import (
    NetworkError,
    ResponseParseError,
    SonarCloudClient,
    SonarCloudError,
)
from sonarcloud_issues.config import DEFAULT_URL, resolve_credentials
from sonarcloud_issues.models import IssuePage, project_issue
from sonarcloud_issues.query import IssueQuery, encode_query

logger = logging.getLogger(__name__)

SEARCH_ENDPOINT = "/api/issues/search"


class IssueFetchError(SonarCloudError):
    """Raised when the search request fails in transport or parsing."""


class IssueFetcher:
    """Run a single ``/api/issues/search`` request and project the result."""

    def __init__(
        self,
        url: str = DEFAULT_URL,
        timeout: float | None = None,
        session: requests.Session | None = None,
        environ: Mapping[str, str] | None = None,
        defaults: Mapping[str, Any] | None = None,
    ) -> None:
        self.url = url
        self._timeout = timeout
        self.session = session or requests.Session()
        self._environ = environ
        self._defaults = defaults or {}

    def fetch(self, query: IssueQuery, token: str | None = None) -> IssuePage:
        """Fetch one page of issues matching *query*.

        Raises:
            ConfigError:     no token from argument, environment or defaults
            HTTPStatusError: non-2xx response (status code and reason kept)
            IssueFetchError: network failure or unparseable body
        """
        creds = resolve_credentials(
            token=token,
            organization=query.organization,
            environ=self._environ,
            defaults=self._defaults,
        )
        params = encode_query(query, creds.organization, creds.project_key)
        client = SonarCloudClient(
            token=creds.token, url=self.url, timeout=self._timeout, session=self.session,
        )

        try:
            data = client.get(SEARCH_ENDPOINT, params)
        except (NetworkError, ResponseParseError) as exc:
            raise IssueFetchError(f"Failed to fetch SonarCloud issues: {exc}") from exc

        return _build_page(data, creds.organization, creds.project_key, query.pull_request)

    def close(self) -> None:
        self.session.close()


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _build_page(
    data: dict[str, Any],
    organization: str | None,
    project_key: str | None,
    pull_request: str | None,
) -> IssuePage:
    raw_issues = data.get("issues") or []
    paging = data.get("paging") or {}
    if not isinstance(raw_issues, list) or not isinstance(paging, dict):
        raise IssueFetchError(
            "Failed to fetch SonarCloud issues: unexpected response shape"
        )

    issues = [project_issue(raw) for raw in raw_issues]
    total = data.get("total", paging.get("total", len(issues)))
    logger.debug("Fetched %d of %s issues", len(issues), total)

    return IssuePage(
        total=total,
        page=paging.get("pageIndex"),
        page_size=paging.get("pageSize"),
        paging_total=paging.get("total"),
        issues=issues,
        facets=data.get("facets"),
        organization=organization,
        project_key=project_key,
        pull_request=pull_request,
        effort_total=data.get("effortTotal"),
        debt_total=data.get("debtTotal"),
    )
