"""Issue search query model and URL parameter encoding.

Usage:
    query  = IssueQuery.from_arguments({"pullRequest": "42", "author": ["a", "b"]})
    params = encode_query(query, organization="acme", project_key="acme_web")
    # -> [("asc", "true"), ("author", "a"), ("author", "b"), ...]

The result is a list of ``(key, value)`` tuples so that ``requests`` keeps the
repeated ``author`` entries instead of collapsing them into a dict.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Sequence

# Wire name -> IssueQuery attribute. Looked up by the literal wire name, which
# is why "owaspTop10-2021" can be supported without a valid identifier.
ARGUMENT_NAMES: dict[str, str] = {
    "additionalFields":             "additional_fields",
    "asc":                          "asc",
    "assigned":                     "assigned",
    "assignees":                    "assignees",
    "author":                       "author",
    "branch":                       "branch",
    "cleanCodeAttributeCategories": "clean_code_attribute_categories",
    "componentKeys":                "component_keys",
    "createdAfter":                 "created_after",
    "createdAt":                    "created_at",
    "createdBefore":                "created_before",
    "createdInLast":                "created_in_last",
    "cwe":                          "cwe",
    "facets":                       "facets",
    "impactSeverities":             "impact_severities",
    "impactSoftwareQualities":      "impact_software_qualities",
    "issueStatuses":                "issue_statuses",
    "issues":                       "issues",
    "languages":                    "languages",
    "onComponentOnly":              "on_component_only",
    "organization":                 "organization",
    "owaspTop10":                   "owasp_top10",
    "owaspTop10-2021":              "owasp_top10_2021",
    "p":                            "p",
    "ps":                           "ps",
    "pullRequest":                  "pull_request",
    "resolved":                     "resolved",
    "rules":                        "rules",
    "s":                            "s",
    "sinceLeakPeriod":              "since_leak_period",
    "sonarsourceSecurity":          "sonarsource_security",
    "tags":                         "tags",
}

_ARRAY_ATTRIBUTES = frozenset({
    "additional_fields", "assignees", "author", "clean_code_attribute_categories",
    "component_keys", "cwe", "facets", "impact_severities", "impact_software_qualities",
    "issue_statuses", "issues", "languages", "owasp_top10", "owasp_top10_2021",
    "rules", "sonarsource_security", "tags",
})

_BOOLEAN_ATTRIBUTES = frozenset({
    "asc", "assigned", "on_component_only", "resolved", "since_leak_period",
})

_NUMBER_ATTRIBUTES = frozenset({"p", "ps"})


# ---------------------------------------------------------------------------
# Query model
# ---------------------------------------------------------------------------

@dataclass
class IssueQuery:
    """Filters, sort and paging accepted by ``/api/issues/search``.

    ``None`` means "not set" and is never sent. ``asc``, ``on_component_only``,
    ``since_leak_period``, ``p`` and ``ps`` carry the defaults callers see.
    """

    additional_fields: list[str] | None = None
    asc: bool | None = True
    assigned: bool | None = None
    assignees: list[str] | None = None
    author: list[str] | None = None
    branch: str | None = None
    clean_code_attribute_categories: list[str] | None = None
    component_keys: list[str] | None = None
    created_after: str | None = None
    created_at: str | None = None
    created_before: str | None = None
    created_in_last: str | None = None
    cwe: list[str] | None = None
    facets: list[str] | None = None
    impact_severities: list[str] | None = None
    impact_software_qualities: list[str] | None = None
    issue_statuses: list[str] | None = None
    issues: list[str] | None = None
    languages: list[str] | None = None
    on_component_only: bool | None = False
    organization: str | None = None
    owasp_top10: list[str] | None = None
    owasp_top10_2021: list[str] | None = None
    p: int | None = 1
    ps: int | None = 100
    pull_request: str | None = None
    resolved: bool | None = None
    rules: list[str] | None = None
    s: str | None = None
    since_leak_period: bool | None = False
    sonarsource_security: list[str] | None = None
    tags: list[str] | None = None

    @classmethod
    def from_arguments(cls, arguments: Mapping[str, Any] | None) -> "IssueQuery":
        """Build a query from a flat mapping keyed by API parameter names.

        Keys that are absent keep their default; keys explicitly set to
        ``None`` stay unset. Names the endpoint does not know are ignored.

        Raises:
            ValueError: if an array, boolean or number parameter has the
                        wrong JSON type.
        """
        kwargs: dict[str, Any] = {}
        for name, value in (arguments or {}).items():
            attr = ARGUMENT_NAMES.get(name)
            if attr is None:
                continue
            if attr in _ARRAY_ATTRIBUTES and value is not None:
                if isinstance(value, (str, bytes)) or not isinstance(value, Sequence):
                    raise ValueError(f"'{name}' must be an array of strings, got {value!r}")
                value = list(value)
            elif attr in _BOOLEAN_ATTRIBUTES and value is not None:
                if not isinstance(value, bool):
                    raise ValueError(f"'{name}' must be a boolean, got {value!r}")
            elif attr in _NUMBER_ATTRIBUTES and value is not None:
                if isinstance(value, bool) or not isinstance(value, (int, float)):
                    raise ValueError(f"'{name}' must be a number, got {value!r}")
            kwargs[attr] = value
        return cls(**kwargs)


# ---------------------------------------------------------------------------
# Encoding
# ---------------------------------------------------------------------------

class _QueryParams:
    """Ordered multi-valued parameter list with per-kind setters."""

    def __init__(self) -> None:
        self._items: list[tuple[str, str]] = []

    def set(self, key: str, value: str) -> None:
        self._items = [(k, v) for k, v in self._items if k != key]
        self._items.append((key, value))

    def append(self, key: str, value: str) -> None:
        self._items.append((key, value))

    def array(self, key: str, values: Sequence[Any] | None) -> None:
        if values:
            self.set(key, ",".join(str(v) for v in values))

    def string(self, key: str, value: str | None) -> None:
        if value is not None and value != "":
            self.set(key, str(value))

    def boolean(self, key: str, value: bool | None) -> None:
        if value is not None:
            self.set(key, "true" if value else "false")

    def number(self, key: str, value: int | float | None) -> None:
        if value is not None:
            if isinstance(value, float) and value.is_integer():
                value = int(value)
            self.set(key, str(value))

    def items(self) -> list[tuple[str, str]]:
        return list(self._items)


def encode_query(
    query: IssueQuery,
    organization: str | None = None,
    project_key: str | None = None,
) -> list[tuple[str, str]]:
    """Encode *query* as ``/api/issues/search`` parameters.

    Args:
        query:        The filters to encode.
        organization: Resolved organization key; omitted when falsy.
        project_key:  Used as ``componentKeys`` when the query has none.
    """
    params = _QueryParams()

    params.array("additionalFields", query.additional_fields)
    params.boolean("asc", query.asc)
    params.boolean("assigned", query.assigned)
    params.array("assignees", query.assignees)

    # SCM accounts: the parameter is repeated once per value, never joined
    for author in query.author or ():
        params.append("author", str(author))

    params.string("branch", query.branch)
    params.array("cleanCodeAttributeCategories", query.clean_code_attribute_categories)

    if query.component_keys:
        params.array("componentKeys", query.component_keys)
    elif project_key:
        params.set("componentKeys", project_key)

    params.string("createdAfter", query.created_after)
    params.string("createdAt", query.created_at)
    params.string("createdBefore", query.created_before)
    params.string("createdInLast", query.created_in_last)
    params.array("cwe", query.cwe)
    params.array("facets", query.facets)
    params.array("impactSeverities", query.impact_severities)
    params.array("impactSoftwareQualities", query.impact_software_qualities)
    params.array("issueStatuses", query.issue_statuses)
    params.array("issues", query.issues)
    params.array("languages", query.languages)
    params.boolean("onComponentOnly", query.on_component_only)

    if organization:
        params.set("organization", organization)

    params.array("owaspTop10", query.owasp_top10)
    params.array("owaspTop10-2021", query.owasp_top10_2021)
    params.number("p", query.p)
    params.number("ps", query.ps)
    params.string("pullRequest", query.pull_request)
    params.boolean("resolved", query.resolved)
    params.array("rules", query.rules)
    params.string("s", query.s)
    params.boolean("sinceLeakPeriod", query.since_leak_period)
    params.array("sonarsourceSecurity", query.sonarsource_security)
    params.array("tags", query.tags)

    return params.items()
