"""Tests for sonarcloud_issues/reports/issues.py"""

import json
from urllib.parse import parse_qsl, urlparse

import pytest
import requests

from sonarcloud_issues.client import AuthenticationError, HTTPStatusError
from sonarcloud_issues.config import ConfigError
from sonarcloud_issues.models import ISSUE_FIELDS, project_issue
from sonarcloud_issues.query import IssueQuery
from sonarcloud_issues.reports.issues import IssueFetcher, IssueFetchError

SEARCH_URL = "https://sonarcloud.io/api/issues/search"
PROJECT    = "acme_web"


# ---------------------------------------------------------------------------
# Helpers
# ---------------------------------------------------------------------------

def _raw_issue(key="AYx1", severity="MAJOR", type_="CODE_SMELL", status="OPEN") -> dict:
    return {
        "key": key, "rule": "python:S1192", "severity": severity,
        "component": f"{PROJECT}:src/app.py", "project": PROJECT,
        "line": 42, "hash": "abc123",
        "textRange": {"startLine": 42, "endLine": 42, "startOffset": 4, "endOffset": 20},
        "flows": [], "status": status, "message": "Define a constant",
        "effort": "5min", "debt": "5min", "tags": ["design"],
        "creationDate": "2026-09-01T10:00:00+0000",
        "updateDate": "2026-09-02T10:00:00+0000",
        "type": type_,
    }


def _page(issues: list, total: int | None = None) -> dict:
    total = len(issues) if total is None else total
    return {
        "total": total, "p": 1, "ps": 100,
        "paging": {"pageIndex": 1, "pageSize": 100, "total": total},
        "effortTotal": 15, "debtTotal": 15,
        "issues": issues, "components": [], "organizations": [],
        "facets": [{"property": "types", "values": [{"val": "CODE_SMELL", "count": total}]}],
    }


def _params(request) -> list[tuple[str, str]]:
    return parse_qsl(urlparse(request.url).query)


def _fetcher(**env) -> IssueFetcher:
    return IssueFetcher(environ={"SONARCLOUD_TOKEN": "sc_env", **env})


# ---------------------------------------------------------------------------
# Token handling
# ---------------------------------------------------------------------------

def test_missing_token_fails_before_any_request(requests_mock):
    requests_mock.get(SEARCH_URL, json=_page([]))
    with pytest.raises(ConfigError, match="token is required"):
        IssueFetcher(environ={}).fetch(IssueQuery())
    assert requests_mock.call_count == 0


def test_token_argument_used_as_bearer(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher().fetch(IssueQuery(), token="sc_arg")
    assert adapter.last_request.headers["Authorization"] == "Bearer sc_arg"
    assert adapter.last_request.headers["Accept"]        == "application/json"


def test_token_from_environment(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher().fetch(IssueQuery())
    assert adapter.last_request.headers["Authorization"] == "Bearer sc_env"


def test_process_environment_used_by_default(requests_mock, monkeypatch):
    monkeypatch.setenv("SONARCLOUD_TOKEN", "sc_process")
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    IssueFetcher().fetch(IssueQuery())
    assert adapter.last_request.headers["Authorization"] == "Bearer sc_process"


# ---------------------------------------------------------------------------
# Request parameters
# ---------------------------------------------------------------------------

def test_project_key_and_organization_from_environment(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher(SONARCLOUD_PROJECT_KEY=PROJECT, SONARCLOUD_ORGANISATION="acme").fetch(IssueQuery())

    params = dict(_params(adapter.last_request))
    assert params["componentKeys"] == PROJECT
    assert params["organization"]  == "acme"


def test_caller_component_keys_override_environment(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher(SONARCLOUD_PROJECT_KEY=PROJECT).fetch(IssueQuery(component_keys=["acme_api"]))
    assert dict(_params(adapter.last_request))["componentKeys"] == "acme_api"


def test_no_organization_or_component_when_unresolved(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher().fetch(IssueQuery())
    keys = [k for k, _ in _params(adapter.last_request)]
    assert "organization"  not in keys
    assert "componentKeys" not in keys


def test_repeated_author_reaches_the_wire(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    _fetcher().fetch(IssueQuery(author=["Zoe", "Al"], owasp_top10_2021=["a1"]))
    params = _params(adapter.last_request)
    assert [v for k, v in params if k == "author"] == ["Zoe", "Al"]
    assert ("owaspTop10-2021", "a1") in params


def test_defaults_file_supplies_credentials(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=_page([]))
    fetcher = IssueFetcher(environ={}, defaults={"token": "sc_file", "project_key": "file_key"})
    fetcher.fetch(IssueQuery())
    assert adapter.last_request.headers["Authorization"] == "Bearer sc_file"
    assert dict(_params(adapter.last_request))["componentKeys"] == "file_key"


def test_one_request_per_fetch(requests_mock):
    requests_mock.get(SEARCH_URL, json=_page([_raw_issue()], total=900))
    _fetcher().fetch(IssueQuery())
    assert requests_mock.call_count == 1


# ---------------------------------------------------------------------------
# Result shape
# ---------------------------------------------------------------------------

def test_page_shape(requests_mock):
    data = _page([_raw_issue("i1"), _raw_issue("i2", severity="BLOCKER", type_="BUG")])
    requests_mock.get(SEARCH_URL, json=data)

    page = _fetcher(SONARCLOUD_PROJECT_KEY=PROJECT, SONARCLOUD_ORGANIZATION="acme").fetch(
        IssueQuery(pull_request="42"),
    )
    result = page.to_dict()

    assert result["summary"] == {
        "total": 2, "organization": "acme", "projectKey": PROJECT, "pullRequest": "42",
    }
    assert result["pagination"] == {"page": 1, "pageSize": 100, "total": 2}
    assert result["facets"]     == data["facets"]
    assert [i["key"] for i in result["issues"]] == ["i1", "i2"]
    assert page.effort_total == 15
    assert page.debt_total   == 15


def test_unset_summary_members_are_omitted(requests_mock):
    requests_mock.get(SEARCH_URL, json=_page([]))
    result = _fetcher().fetch(IssueQuery()).to_dict()
    assert result["summary"] == {"total": 0}


def test_projection_keeps_declared_fields_only(requests_mock):
    requests_mock.get(SEARCH_URL, json=_page([_raw_issue()]))
    issue = _fetcher().fetch(IssueQuery()).issues[0]

    assert set(issue) == set(ISSUE_FIELDS)
    for dropped in ("project", "hash", "textRange", "flows", "debt"):
        assert dropped not in issue


def test_projection_does_not_invent_absent_fields():
    raw = {"key": "k", "rule": "python:S1", "severity": "INFO", "component": "c"}
    projected = project_issue(raw)
    assert projected == raw
    assert json.loads(json.dumps(projected)) == raw


def test_projection_keeps_null_values():
    projected = project_issue({"key": "k", "line": None})
    assert projected == {"key": "k", "line": None}


# ---------------------------------------------------------------------------
# Errors
# ---------------------------------------------------------------------------

def test_http_error_keeps_status(requests_mock):
    requests_mock.get(SEARCH_URL, status_code=400, reason="Bad Request", text="not parsed")
    with pytest.raises(HTTPStatusError, match="400 Bad Request") as info:
        _fetcher().fetch(IssueQuery())
    assert info.value.status_code == 400


def test_http_401(requests_mock):
    requests_mock.get(SEARCH_URL, status_code=401)
    with pytest.raises(AuthenticationError):
        _fetcher().fetch(IssueQuery())


def test_network_error_is_prefixed(requests_mock):
    requests_mock.get(SEARCH_URL, exc=requests.exceptions.ConnectionError)
    with pytest.raises(IssueFetchError, match="^Failed to fetch SonarCloud issues: "):
        _fetcher().fetch(IssueQuery())


def test_invalid_json_is_prefixed(requests_mock):
    requests_mock.get(SEARCH_URL, text="definitely not json")
    with pytest.raises(IssueFetchError, match="^Failed to fetch SonarCloud issues: "):
        _fetcher().fetch(IssueQuery())


def test_unexpected_shape_is_prefixed(requests_mock):
    requests_mock.get(SEARCH_URL, json={"issues": "nope"})
    with pytest.raises(IssueFetchError, match="unexpected response shape"):
        _fetcher().fetch(IssueQuery())


# ---------------------------------------------------------------------------
# Session lifecycle
# ---------------------------------------------------------------------------

def test_session_is_reused_across_fetches(requests_mock):
    requests_mock.get(SEARCH_URL, json=_page([]))
    fetcher = _fetcher()
    session = fetcher.session

    fetcher.fetch(IssueQuery())
    fetcher.fetch(IssueQuery())

    assert fetcher.session is session
    assert requests_mock.call_count == 2


def test_close_closes_the_session():
    closed = []

    class _Session(requests.Session):
        def close(self):
            closed.append(True)
            super().close()

    fetcher = IssueFetcher(session=_Session(), environ={})
    fetcher.close()
    assert closed == [True]
