"""Tests for sonarcloud_issues/tools.py"""

import json

import pytest

from sonarcloud_issues.config import ConfigError
from sonarcloud_issues.reports.issues import IssueFetcher
from sonarcloud_issues.tools import (
    FETCH_TOOL,
    SUMMARIZE_TOOL,
    TOOLS,
    UnknownToolError,
    call_tool,
)

SEARCH_URL = "https://sonarcloud.io/api/issues/search"

BODY = {
    "total": 2,
    "paging": {"pageIndex": 1, "pageSize": 100, "total": 2},
    "effortTotal": 10, "debtTotal": 10,
    "issues": [
        {"key": "a", "rule": "R1", "severity": "MAJOR", "type": "BUG",
         "status": "OPEN", "component": "p:a.py", "message": "m", "hash": "h"},
        {"key": "b", "rule": "R1", "severity": "INFO", "type": "CODE_SMELL",
         "status": "OPEN", "component": "p:b.py", "message": "m"},
    ],
    "facets": [],
}


@pytest.fixture
def fetcher() -> IssueFetcher:
    return IssueFetcher(environ={"SONARCLOUD_TOKEN": "t"})


# ---------------------------------------------------------------------------
# Definitions
# ---------------------------------------------------------------------------

def test_two_tools_are_defined():
    assert [t["name"] for t in TOOLS] == [FETCH_TOOL, SUMMARIZE_TOOL]


def test_fetch_schema_lists_literal_owasp_key():
    props = TOOLS[0]["inputSchema"]["properties"]
    assert "owaspTop10-2021" in props
    assert props["ps"]["maximum"] == 500
    assert "token" in props


def test_summarize_schema_is_restricted():
    props = TOOLS[1]["inputSchema"]["properties"]
    assert set(props) == {"pullRequest", "token", "impactSeverities", "sinceLeakPeriod", "issueStatuses"}


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def test_fetch_tool_returns_json_text(requests_mock, fetcher):
    requests_mock.get(SEARCH_URL, json=BODY)
    text = call_tool(FETCH_TOOL, {"pullRequest": "5"}, fetcher=fetcher)

    data = json.loads(text)
    assert data["summary"]["pullRequest"] == "5"
    assert data["pagination"]["total"]    == 2
    assert "hash" not in data["issues"][0]
    assert text.startswith("{\n  ")


def test_fetch_tool_token_argument(requests_mock):
    adapter = requests_mock.get(SEARCH_URL, json=BODY)
    call_tool(FETCH_TOOL, {"token": "arg_token"}, fetcher=IssueFetcher(environ={}))
    assert adapter.last_request.headers["Authorization"] == "Bearer arg_token"


def test_summarize_tool_returns_summary(requests_mock, fetcher):
    requests_mock.get(SEARCH_URL, json=BODY)
    data = json.loads(call_tool(SUMMARIZE_TOOL, {"issueStatuses": ["OPEN"]}, fetcher=fetcher))
    assert data["totalIssues"]      == 2
    assert data["highImpactIssues"] == 1
    assert data["infoIssues"]       == 1
    assert data["topRules"]         == [{"rule": "R1", "count": 2}]
    assert data["totalEffort"]      == "10"


def test_unknown_tool(requests_mock, fetcher):
    with pytest.raises(UnknownToolError, match="Unknown tool: delete_everything"):
        call_tool("delete_everything", {}, fetcher=fetcher)
    assert requests_mock.call_count == 0


def test_missing_token_surfaces_config_error(requests_mock):
    with pytest.raises(ConfigError):
        call_tool(SUMMARIZE_TOOL, {}, fetcher=IssueFetcher(environ={}))
    assert requests_mock.call_count == 0


def test_bad_argument_type(fetcher):
    with pytest.raises(ValueError, match="author"):
        call_tool(FETCH_TOOL, {"author": "someone"}, fetcher=fetcher)
