"""Issue summary.

    IssueSummarizer(fetcher).summarize(query, token=None)   -> IssueSummary   [summarize_sonarcloud_issues]

The summary is computed from a single page of at most MAX_PAGE_SIZE issues.
When the project has more, counts only cover the first page and the result
does not say so; a warning is logged.
"""

import dataclasses
import logging
from collections import Counter
from typing import Any, Iterable

from sonarcloud_issues.models import IssuePage, IssueSummary, RuleCount
from sonarcloud_issues.query import IssueQuery
from sonarcloud_issues.reports.issues import IssueFetcher

logger = logging.getLogger(__name__)

MAX_PAGE_SIZE = 500
TOP_RULES_LIMIT = 10

# Forced on every summary request, whatever the caller passed
SUMMARY_OVERRIDES: dict[str, Any] = {
    "additional_fields": ["_all"],
    "facets":            ["issueStatuses", "impactSeverities", "types", "rules"],
    "ps":                MAX_PAGE_SIZE,
}

# severity -> summary buckets. INFO lands in both "low" and "info".
_SEVERITY_BUCKETS: dict[str, tuple[str, ...]] = {
    "BLOCKER":  ("critical_issues",),
    "CRITICAL": ("high_impact_issues",),
    "MAJOR":    ("high_impact_issues",),
    "MINOR":    ("medium_impact_issues",),
    "INFO":     ("low_impact_issues", "info_issues"),
}

_TYPE_BUCKETS = {
    "BUG":              "bug_count",
    "VULNERABILITY":    "vulnerability_count",
    "CODE_SMELL":       "code_smell_count",
    "SECURITY_HOTSPOT": "security_hotspot_count",
}

_STATUS_BUCKETS = {
    "OPEN":      "open_issues",
    "CONFIRMED": "confirmed_issues",
}


class IssueSummarizer:
    """Summarize issues through an :class:`IssueFetcher`."""

    def __init__(self, fetcher: IssueFetcher) -> None:
        self.fetcher = fetcher

    @staticmethod
    def summary_query(query: IssueQuery) -> IssueQuery:
        """Return a copy of *query* with SUMMARY_OVERRIDES applied."""
        return dataclasses.replace(query, **SUMMARY_OVERRIDES)

    def summarize(self, query: IssueQuery, token: str | None = None) -> IssueSummary:
        page = self.fetcher.fetch(self.summary_query(query), token=token)
        if isinstance(page.total, int) and page.total > len(page.issues):
            logger.warning(
                "Summary covers %d of %d issues (single page of at most %d)",
                len(page.issues), page.total, MAX_PAGE_SIZE,
            )
        return build_summary(page)


# ---------------------------------------------------------------------------
# Aggregation
# ---------------------------------------------------------------------------

def build_summary(page: IssuePage) -> IssueSummary:
    summary = IssueSummary(
        total_issues=page.total,
        total_debt=_total(page.debt_total),
        total_effort=_total(page.effort_total),
        top_rules=top_rules(page.issues),
        files_affected=len({i["component"] for i in page.issues if "component" in i}),
    )

    for issue in page.issues:
        for bucket in _SEVERITY_BUCKETS.get(issue.get("severity"), ()):
            setattr(summary, bucket, getattr(summary, bucket) + 1)
        typ = _TYPE_BUCKETS.get(issue.get("type"))
        if typ:
            setattr(summary, typ, getattr(summary, typ) + 1)
        status = _STATUS_BUCKETS.get(issue.get("status"))
        if status:
            setattr(summary, status, getattr(summary, status) + 1)

    return summary


def top_rules(issues: Iterable[dict[str, Any]], limit: int = TOP_RULES_LIMIT) -> list[RuleCount]:
    """Most frequent rules, ties in first-seen order."""
    counts = Counter(i["rule"] for i in issues if i.get("rule") is not None)
    return [RuleCount(rule, count) for rule, count in counts.most_common(limit)]


def _total(value: Any) -> str:
    return "0" if value is None or value == "" else str(value)
