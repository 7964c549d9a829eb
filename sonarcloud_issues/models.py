"""Data models for SonarCloud issue results.

Contains the structures serialized into the tool output:
    - project_issue   raw issue -> reduced field set
    - IssuePage       one fetched page  (fetch_sonarcloud_issues)
    - RuleCount
    - IssueSummary    aggregates       (summarize_sonarcloud_issues)
"""

from dataclasses import dataclass, field
from typing import Any

# Fields kept from each raw SonarCloud issue, in output order
ISSUE_FIELDS = (
    "key", "rule", "severity", "type", "status", "message", "component",
    "line", "effort", "tags", "creationDate", "updateDate",
)


def project_issue(raw: dict[str, Any]) -> dict[str, Any]:
    """Keep only ISSUE_FIELDS. Fields missing on *raw* stay missing."""
    return {name: raw[name] for name in ISSUE_FIELDS if name in raw}


@dataclass
class IssuePage:
    total: int
    page: int | None
    page_size: int | None
    paging_total: int | None
    issues: list[dict[str, Any]] = field(default_factory=list)
    facets: list[Any] | None = None
    organization: str | None = None
    project_key: str | None = None
    pull_request: str | None = None
    effort_total: Any = None
    debt_total: Any = None

    def to_dict(self) -> dict[str, Any]:
        summary = {
            "total":        self.total,
            "organization": self.organization,
            "projectKey":   self.project_key,
            "pullRequest":  self.pull_request,
        }
        result: dict[str, Any] = {
            "summary":    {k: v for k, v in summary.items() if v is not None},
            "pagination": {
                "page":     self.page,
                "pageSize": self.page_size,
                "total":    self.paging_total,
            },
        }
        if self.facets is not None:
            result["facets"] = self.facets
        result["issues"] = self.issues
        return result


@dataclass
class RuleCount:
    rule: str
    count: int


@dataclass
class IssueSummary:
    total_issues: int
    critical_issues: int = 0
    high_impact_issues: int = 0
    medium_impact_issues: int = 0
    low_impact_issues: int = 0
    info_issues: int = 0
    bug_count: int = 0
    vulnerability_count: int = 0
    code_smell_count: int = 0
    security_hotspot_count: int = 0
    open_issues: int = 0
    confirmed_issues: int = 0
    total_debt: str = "0"
    total_effort: str = "0"
    top_rules: list[RuleCount] = field(default_factory=list)
    files_affected: int = 0

    def to_dict(self) -> dict[str, Any]:
        return {
            "totalIssues":          self.total_issues,
            "criticalIssues":       self.critical_issues,
            "highImpactIssues":     self.high_impact_issues,
            "mediumImpactIssues":   self.medium_impact_issues,
            "lowImpactIssues":      self.low_impact_issues,
            "infoIssues":           self.info_issues,
            "bugCount":             self.bug_count,
            "vulnerabilityCount":   self.vulnerability_count,
            "codeSmellCount":       self.code_smell_count,
            "securityHotspotCount": self.security_hotspot_count,
            "openIssues":           self.open_issues,
            "confirmedIssues":      self.confirmed_issues,
            "totalDebt":            self.total_debt,
            "totalEffort":          self.total_effort,
            "topRules":             [{"rule": r.rule, "count": r.count} for r in self.top_rules],
            "filesAffected":        self.files_affected,
        }
