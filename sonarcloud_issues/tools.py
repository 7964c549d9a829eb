"""Tool definitions and dispatch.

    call_tool("fetch_sonarcloud_issues", {"pullRequest": "42"})      -> JSON text
    call_tool("summarize_sonarcloud_issues", {"pullRequest": "42"})  -> JSON text

Both the MCP server and the CLI go through ``call_tool``.
"""

import json
from typing import Any, Mapping

from sonarcloud_issues.query import IssueQuery
from sonarcloud_issues.reports.issues import IssueFetcher
from sonarcloud_issues.reports.summary import IssueSummarizer

FETCH_TOOL     = "fetch_sonarcloud_issues"
SUMMARIZE_TOOL = "summarize_sonarcloud_issues"


class UnknownToolError(Exception):
    """Raised when a tool name is not one of TOOLS."""


# ---------------------------------------------------------------------------
# Input schemas
# ---------------------------------------------------------------------------

def _array(description: str, enum: list[str] | None = None) -> dict[str, Any]:
    items: dict[str, Any] = {"type": "string"}
    if enum:
        items["enum"] = enum
    return {"type": "array", "items": items, "description": description}


def _prop(type_: str, description: str, **extra: Any) -> dict[str, Any]:
    return {"type": type_, "description": description, **extra}


_OWASP = [f"a{i}" for i in range(1, 11)]
_IMPACT_SEVERITIES = ["INFO", "LOW", "MEDIUM", "HIGH", "BLOCKER"]
_ISSUE_STATUSES = ["OPEN", "CONFIRMED", "FALSE_POSITIVE", "ACCEPTED", "FIXED"]

_TOKEN = _prop("string", "SonarCloud API token (optional if set in environment)")
_PULL_REQUEST = _prop("string", "Pull request id")
_SINCE_LEAK_PERIOD = _prop(
    "boolean",
    "To retrieve issues created since the leak period. If this parameter is set to a "
    "truthy value, createdAfter must not be set and one component id or key must be "
    "provided. (default: false)",
)

FETCH_PROPERTIES: dict[str, Any] = {
    "additionalFields": _array(
        "Optional fields to be returned in the response.",
        ["_all", "comments", "languages", "actionPlans", "rules",
         "ruleDescriptionContextKey", "transitions", "actions", "users"],
    ),
    "asc":       _prop("boolean", "Ascending sort (default: true)"),
    "assigned":  _prop("boolean", "To retrieve assigned or unassigned issues"),
    "assignees": _array(
        "Assignee logins. The value '__me__' can be used as a placeholder for the "
        "user who performs the request",
    ),
    "author": _array(
        "SCM accounts. Each value is sent as a separate 'author' parameter.",
    ),
    "branch": _prop("string", "Branch key"),
    "cleanCodeAttributeCategories": _array(
        "Clean code attribute categories.",
        ["ADAPTABLE", "CONSISTENT", "INTENTIONAL", "RESPONSIBLE"],
    ),
    "componentKeys": _array(
        "Component keys (project, directory or file). Issues of the components and all "
        "their descendants are returned. Defaults to SONARCLOUD_PROJECT_KEY.",
    ),
    "createdAfter": _prop(
        "string",
        "Issues created after the given date (inclusive). Date or datetime. "
        "Must not be combined with createdInLast.",
    ),
    "createdAt":     _prop("string", "Datetime to retrieve issues created during a specific analysis"),
    "createdBefore": _prop("string", "Issues created before the given date (inclusive)."),
    "createdInLast": _prop(
        "string",
        "Issues created during a time span before now (exclusive). Units: 'y', 'm', "
        "'w', 'd'. Must not be combined with createdAfter.",
    ),
    "cwe": _array("CWE identifiers. Use 'unknown' to select issues not associated to any CWE."),
    "facets": _array(
        "Facets to be computed. No facet is computed by default.",
        ["projects", "moduleUuids", "fileUuids", "assigned_to_me", "severities",
         "statuses", "issueStatuses", "resolutions", "rules", "assignees", "author",
         "directories", "languages", "tags", "types", "owaspTop10", "owaspTop10-2021",
         "cwe", "createdAt", "sonarsourceSecurity", "impactSoftwareQualities",
         "impactSeverities", "cleanCodeAttributeCategories"],
    ),
    "impactSeverities":        _array("Impact severities.", _IMPACT_SEVERITIES),
    "impactSoftwareQualities": _array(
        "Software qualities.", ["MAINTAINABILITY", "RELIABILITY", "SECURITY"],
    ),
    "issueStatuses": _array("Issue statuses", _ISSUE_STATUSES),
    "issues":        _array("Issue keys"),
    "languages":     _array("Languages"),
    "onComponentOnly": _prop(
        "boolean",
        "Return only issues at a component's level, not on its descendants. Only "
        "considered when componentKeys is set. (default: false)",
    ),
    "organization":    _prop("string", "Organization key"),
    "owaspTop10":      _array("OWASP Top 10 lowercase categories.", _OWASP),
    "owaspTop10-2021": _array("OWASP Top 10 - 2021 lowercase categories.", _OWASP),
    "p":  _prop("number", "1-based page number (default: 1)", minimum=1),
    "ps": _prop(
        "number",
        "Page size. Must be greater than 0 and less or equal than 500 (default: 100)",
        minimum=1, maximum=500,
    ),
    "pullRequest": _PULL_REQUEST,
    "resolved":    _prop("boolean", "To match resolved or unresolved issues"),
    "rules":       _array("Coding rule keys. Format is <repository>:<rule>"),
    "s": _prop(
        "string", "Sort field",
        enum=["CREATION_DATE", "ASSIGNEE", "STATUS", "UPDATE_DATE", "CLOSE_DATE",
              "HOTSPOTS", "FILE_LINE", "SEVERITY"],
    ),
    "sinceLeakPeriod": _SINCE_LEAK_PERIOD,
    "sonarsourceSecurity": _array(
        "SonarSource security categories. Use 'others' to select issues not associated "
        "with any category",
        ["buffer-overflow", "permission", "sql-injection", "command-injection",
         "path-traversal-injection", "ldap-injection", "xpath-injection", "rce", "dos",
         "ssrf", "csrf", "xss", "log-injection", "http-response-splitting",
         "open-redirect", "xxe", "object-injection", "weak-cryptography", "auth",
         "insecure-conf", "encrypt-data", "traceability", "file-manipulation", "others"],
    ),
    "tags":  _array("Tags."),
    "token": _TOKEN,
}

SUMMARIZE_PROPERTIES: dict[str, Any] = {
    "pullRequest":      _PULL_REQUEST,
    "token":            _TOKEN,
    "impactSeverities": _array("Impact severities.", _IMPACT_SEVERITIES),
    "sinceLeakPeriod":  _SINCE_LEAK_PERIOD,
    "issueStatuses":    _array("Issue statuses", _ISSUE_STATUSES),
}

TOOLS: list[dict[str, Any]] = [
    {
        "name":        FETCH_TOOL,
        "description": "Fetch SonarCloud issues for a specific pull request",
        "inputSchema": {"type": "object", "properties": FETCH_PROPERTIES, "required": []},
    },
    {
        "name":        SUMMARIZE_TOOL,
        "description": "Get a high-level summary of SonarCloud issues for a PR",
        "inputSchema": {"type": "object", "properties": SUMMARIZE_PROPERTIES, "required": []},
    },
]


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def call_tool(
    name: str,
    arguments: Mapping[str, Any] | None = None,
    fetcher: IssueFetcher | None = None,
) -> str:
    """Run tool *name* and return its result as indented JSON text.

    Raises:
        UnknownToolError: *name* is not a known tool.
        ValueError:       malformed arguments.
        ConfigError, SonarCloudError: from the fetch itself.
    """
    arguments = arguments or {}
    fetcher = fetcher or IssueFetcher()
    token = arguments.get("token")

    if name == FETCH_TOOL:
        page = fetcher.fetch(IssueQuery.from_arguments(arguments), token=token)
        result = page.to_dict()
    elif name == SUMMARIZE_TOOL:
        summary = IssueSummarizer(fetcher).summarize(
            IssueQuery.from_arguments(arguments), token=token,
        )
        result = summary.to_dict()
    else:
        raise UnknownToolError(f"Unknown tool: {name}")

    return json.dumps(result, indent=2, ensure_ascii=False)
