from __future__ import annotations

import re
from typing import Dict, Iterable, List, Optional, Sequence, Tuple

from a11yreport.core.models import KNOWN_IMPACTS, Finding, Issue, Report, ReportSummary, utcnow
from a11yreport.enrichment.prompts import SOLUTION_DELIMITER
from a11yreport.report.translations import (
    GENERIC_DESCRIPTION,
    GENERIC_FIX,
    RECOMMENDATION_ALL_CLEAR,
    RECOMMENDATION_CRITICAL,
    RECOMMENDATION_EXPERT_AUDIT,
    RECOMMENDATION_FREQUENT,
    RECOMMENDATION_SERIOUS,
    RULE_DESCRIPTIONS,
    RULE_FIXES,
    RULE_TITLES,
)

EXAMPLE_LIMIT = 3
EXAMPLE_MAX_CHARS = 100
TRUNCATION_MARKER = "..."
EXPERT_AUDIT_THRESHOLD = 10
FREQUENT_MIN_OCCURRENCES = 2
FREQUENT_TOP_N = 3

_ASTERISK_RUNS = re.compile(r"\*+")
_MARKUP_CHARS = re.compile(r"[_~`#]+")
_WHITESPACE = re.compile(r"\s+")


def sanitize_text(text: str) -> str:
    """Strips Markdown emphasis characters and collapses whitespace."""
    text = _ASTERISK_RUNS.sub("", text or "")
    text = _MARKUP_CHARS.sub("", text)
    return _WHITESPACE.sub(" ", text).strip()


def truncate_example(html: str) -> str:
    if len(html) <= EXAMPLE_MAX_CHARS:
        return html
    return html[:EXAMPLE_MAX_CHARS] + TRUNCATION_MARKER


def finding_title(finding: Finding) -> str:
    title = RULE_TITLES.get(finding.id)
    if title:
        return sanitize_text(title)
    return sanitize_text(finding.help) or finding.id


def finding_description(finding: Finding) -> str:
    description = sanitize_text(RULE_DESCRIPTIONS.get(finding.id) or finding.description)
    return description or sanitize_text(finding.help) or GENERIC_DESCRIPTION


def finding_fix(finding: Finding) -> str:
    fix = RULE_FIXES.get(finding.id)
    if not fix and finding.nodes and finding.nodes[0].all_checks:
        fix = finding.nodes[0].all_checks[0].message
    return sanitize_text(fix or "") or GENERIC_FIX


def split_enrichment(text: str) -> Tuple[str, Optional[str]]:
    """Splits AI text on the first solution delimiter.

    Returns (description, fix); fix is None when the delimiter is absent.
    """
    head, delimiter, tail = text.partition(SOLUTION_DELIMITER)
    if not delimiter:
        return sanitize_text(text), None
    return sanitize_text(head), sanitize_text(tail)


def finding_to_issue(finding: Finding, enrichment: str = "") -> Issue:
    description = finding_description(finding)
    how_to_fix = finding_fix(finding)

    if enrichment and enrichment.strip():
        ai_description, ai_fix = split_enrichment(enrichment)
        if ai_description:
            description = ai_description
        if ai_fix:
            how_to_fix = ai_fix

    return Issue(
        id=finding.id,
        impact=finding.impact,
        title=finding_title(finding),
        description=description,
        how_to_fix=how_to_fix,
        affected_elements=len(finding.nodes),
        tags=list(finding.tags),
        help_url=finding.help_url,
        examples=[truncate_example(node.html) for node in finding.nodes[:EXAMPLE_LIMIT]],
    )


def frequent_issues(issues_by_impact: Dict[str, List[Issue]]) -> List[Tuple[str, int]]:
    counts: Dict[str, int] = {}
    for issues in issues_by_impact.values():
        for issue in issues:
            counts[issue.id] = counts.get(issue.id, 0) + 1
    repeated = [(rule_id, count) for rule_id, count in counts.items() if count >= FREQUENT_MIN_OCCURRENCES]
    # sorted() is stable: ties keep first-seen order.
    repeated.sort(key=lambda item: item[1], reverse=True)
    return repeated[:FREQUENT_TOP_N]


def generate_recommendations(summary: ReportSummary, issues_by_impact: Dict[str, List[Issue]]) -> List[str]:
    recommendations: List[str] = []
    if summary.critical > 0:
        recommendations.append(RECOMMENDATION_CRITICAL.format(count=summary.critical))
    if summary.serious > 0:
        recommendations.append(RECOMMENDATION_SERIOUS.format(count=summary.serious))
    if summary.total_issues > EXPERT_AUDIT_THRESHOLD:
        recommendations.append(RECOMMENDATION_EXPERT_AUDIT)

    common = frequent_issues(issues_by_impact)
    if common:
        items = ", ".join(f"{rule_id} ({count})" for rule_id, count in common)
        recommendations.append(RECOMMENDATION_FREQUENT.format(items=items))

    if not recommendations:
        recommendations.append(RECOMMENDATION_ALL_CLEAR)
    return recommendations


def simplified_report(report: Report) -> Dict[str, object]:
    """Size-reduced projection of a report used as the summary prompt."""
    return {
        "url": report.url,
        "total_issues": report.summary.total_issues,
        "critical": report.summary.critical,
        "serious": report.summary.serious,
        "moderate": report.summary.moderate,
        "minor": report.summary.minor,
        "issues": [
            {
                "impact": issue.impact,
                "title": issue.title,
                "description": issue.description,
                "count": issue.affected_elements,
            }
            for issue in report.iter_issues()
        ],
    }


class ReportBuilder:
    """Folds findings and their enrichment texts into a severity-bucketed report.

    Findings are added batch by batch in submission order; ``finish`` computes
    the recommendations once the whole issue set is known.
    """

    def __init__(self, job_id: str, url: str) -> None:
        self.job_id = job_id
        self.url = url
        self.summary = ReportSummary()
        self.issues_by_impact: Dict[str, List[Issue]] = {impact: [] for impact in KNOWN_IMPACTS}

    def add(self, finding: Finding, enrichment: str = "") -> Issue:
        issue = finding_to_issue(finding, enrichment)
        impact = finding.impact
        self.issues_by_impact.setdefault(impact, []).append(issue)

        self.summary.total_issues += 1
        self.summary.impact_scores[impact] = self.summary.impact_scores.get(impact, 0) + 1
        # Unknown severities are counted in total_issues and impact_scores only.
        if impact in KNOWN_IMPACTS:
            setattr(self.summary, impact, getattr(self.summary, impact) + 1)
        return issue

    def add_batch(self, findings: Sequence[Finding], enrichments: Sequence[str]) -> None:
        if len(findings) != len(enrichments):
            raise ValueError(f"Enrichment count mismatch: {len(enrichments)} texts for {len(findings)} findings")
        for finding, enrichment in zip(findings, enrichments):
            self.add(finding, enrichment)

    def finish(self) -> Report:
        return Report(
            id=self.job_id,
            url=self.url,
            created_at=utcnow(),
            summary=self.summary.model_copy(deep=True),
            issues_by_impact={impact: list(issues) for impact, issues in self.issues_by_impact.items()},
            recommendations=generate_recommendations(self.summary, self.issues_by_impact),
        )

    @classmethod
    def build(
        cls,
        job_id: str,
        url: str,
        findings: Sequence[Finding],
        enrichments: Optional[Iterable[str]] = None,
    ) -> Report:
        builder = cls(job_id, url)
        texts = list(enrichments) if enrichments is not None else [""] * len(findings)
        builder.add_batch(findings, texts)
        return builder.finish()
