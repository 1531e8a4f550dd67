from __future__ import annotations

import pytest

from a11yreport.core.models import Finding, ReportSummary
from a11yreport.enrichment.client import TextEnrichmentClient
from a11yreport.report.builder import (
    ReportBuilder,
    finding_to_issue,
    generate_recommendations,
    sanitize_text,
    simplified_report,
    split_enrichment,
    truncate_example,
)
from a11yreport.report.translations import (
    GENERIC_DESCRIPTION,
    GENERIC_FIX,
    RECOMMENDATION_ALL_CLEAR,
    RECOMMENDATION_EXPERT_AUDIT,
    RULE_FIXES,
    RULE_TITLES,
)


def _finding(rule_id="image-alt", impact="critical", nodes=1, **overrides):
    payload = {
        "id": rule_id,
        "impact": impact,
        "tags": ["wcag2a"],
        "description": f"{rule_id} description",
        "help": f"{rule_id} help",
        "helpUrl": f"https://dequeuniversity.com/rules/axe/4.8/{rule_id}",
        "nodes": [{"html": f"<div id='n{i}'></div>", "target": [f"#n{i}"]} for i in range(nodes)],
    }
    payload.update(overrides)
    return Finding.model_validate(payload)


def test_sanitize_text_removes_markup_and_is_idempotent():
    samples = [
        "**Важно**: __текст__ с `кодом` и ~~зачёркнутым~~",
        "### Заголовок\n\n  лишние   пробелы\t",
        "",
        "обычный текст",
    ]
    for sample in samples:
        cleaned = sanitize_text(sample)
        assert sanitize_text(cleaned) == cleaned
        for char in "*_~`#":
            assert char not in cleaned
        assert "  " not in cleaned
        assert cleaned == cleaned.strip()

    assert sanitize_text("**Важно**: __текст__") == "Важно: текст"


def test_truncate_example_keeps_short_html_and_cuts_long_html():
    short = "<img src='a.png'>"
    assert truncate_example(short) == short
    exact = "x" * 100
    assert truncate_example(exact) == exact

    long_html = "<div>" + "y" * 300 + "</div>"
    truncated = truncate_example(long_html)
    assert truncated == long_html[:100] + "..."
    assert len(truncated) <= 103


def test_split_enrichment_on_first_delimiter():
    description, fix = split_enrichment("Нет **alt**. Решение: добавьте alt. Решение: ещё")
    assert description == "Нет alt."
    assert fix == "добавьте alt. Решение: ещё"


def test_split_enrichment_without_delimiter_returns_no_fix():
    description, fix = split_enrichment("  Только описание  ")
    assert description == "Только описание"
    assert fix is None


def test_issue_uses_built_in_texts_without_enrichment():
    issue = finding_to_issue(_finding("image-alt", nodes=5))

    assert issue.title == RULE_TITLES["image-alt"]
    assert issue.how_to_fix == RULE_FIXES["image-alt"]
    assert issue.affected_elements == 5
    assert len(issue.examples) == 3
    assert issue.help_url.endswith("image-alt")


def test_issue_falls_back_for_unknown_rule():
    finding = _finding(
        "custom-rule",
        description="",
        help="Custom **help**",
        nodes=0,
    )
    issue = finding_to_issue(finding)

    assert issue.title == "Custom help"
    assert issue.description == "Custom help"
    assert issue.how_to_fix == GENERIC_FIX
    assert issue.examples == []


def test_issue_uses_first_node_check_message_as_fix():
    finding = Finding.model_validate(
        {
            "id": "custom-rule",
            "help": "Custom help",
            "nodes": [{"html": "<p>", "all": [{"id": "c", "message": "Fix *this* element"}]}],
        }
    )
    assert finding_to_issue(finding).how_to_fix == "Fix this element"


def test_issue_with_nothing_to_say_gets_generic_description():
    finding = Finding.model_validate({"id": "bare"})
    issue = finding_to_issue(finding)
    assert issue.title == "bare"
    assert issue.description == GENERIC_DESCRIPTION


def test_enrichment_overrides_description_and_fix():
    issue = finding_to_issue(_finding("label"), "Поле без метки. Решение: добавьте <label>.")
    assert issue.description == "Поле без метки."
    assert issue.how_to_fix == "добавьте <label>."


def test_enrichment_without_delimiter_keeps_built_in_fix():
    issue = finding_to_issue(_finding("label"), "Поле без метки.")
    assert issue.description == "Поле без метки."
    assert issue.how_to_fix == RULE_FIXES["label"]


def test_offline_client_text_yields_non_empty_issue_fields():
    client = TextEnrichmentClient(api_key="")
    findings = [_finding("image-alt"), _finding("unknown-rule", description="", help="")]
    texts = client.translate_batch([f.id for f in findings])

    for finding, text in zip(findings, texts):
        issue = finding_to_issue(finding, text)
        assert issue.title
        assert issue.description
        assert issue.how_to_fix


def test_report_counts_and_preserves_order():
    findings = [
        _finding("image-alt", "critical"),
        _finding("label", "minor"),
        _finding("button-name", "critical"),
    ]
    report = ReportBuilder.build("job-1", "https://example.com", findings)

    assert report.summary.critical == 2
    assert report.summary.serious == 0
    assert report.summary.minor == 1
    assert report.summary.total_issues == 3
    assert report.summary.impact_scores == {"critical": 2, "minor": 1}
    assert [issue.id for issue in report.issues_by_impact["critical"]] == ["image-alt", "button-name"]
    assert report.recommendations[0].startswith("[!] Обнаружено 2")
    assert not any(item.startswith("[!!]") for item in report.recommendations)


def test_zero_findings_give_empty_buckets_and_all_clear():
    report = ReportBuilder.build("job-1", "https://example.com", [])

    assert set(report.issues_by_impact) == {"critical", "serious", "moderate", "minor"}
    assert all(issues == [] for issues in report.issues_by_impact.values())
    assert report.summary.total_issues == 0
    assert report.recommendations == [RECOMMENDATION_ALL_CLEAR]


def test_unknown_severity_is_counted_in_total_only():
    report = ReportBuilder.build("job-1", "https://example.com", [_finding("x", "blocker"), _finding("y", "")])

    assert report.summary.total_issues == 2
    assert report.summary.critical + report.summary.serious + report.summary.moderate + report.summary.minor == 0
    assert report.summary.impact_scores == {"blocker": 1, "": 1}
    assert [issue.id for issue in report.issues_by_impact["blocker"]] == ["x"]
    assert [issue.id for issue in report.issues_by_impact[""]] == ["y"]


def test_frequent_issues_are_top_three_with_at_least_two_occurrences():
    ids = ["a", "a", "a", "b", "b", "c", "c", "c", "c", "d", "d", "e"]
    findings = [_finding(rule_id, "moderate") for rule_id in ids]
    report = ReportBuilder.build("job-1", "https://example.com", findings)

    frequent = [item for item in report.recommendations if item.startswith("[*]")]
    assert frequent == ["[*] Частые проблемы: c (4), a (3), b (2). Рассмотрите возможность автоматизации проверок."]


def test_expert_audit_recommended_above_threshold():
    summary = ReportSummary(total_issues=11, moderate=11)
    assert RECOMMENDATION_EXPERT_AUDIT in generate_recommendations(summary, {})

    summary = ReportSummary(total_issues=10, moderate=10)
    assert RECOMMENDATION_EXPERT_AUDIT not in generate_recommendations(summary, {})


def test_add_batch_rejects_mismatched_enrichments():
    builder = ReportBuilder("job-1", "https://example.com")
    with pytest.raises(ValueError):
        builder.add_batch([_finding()], [])


def test_finish_is_a_snapshot_of_the_builder():
    builder = ReportBuilder("job-1", "https://example.com")
    builder.add(_finding())
    report = builder.finish()
    builder.add(_finding("label", "serious"))

    assert report.summary.total_issues == 1
    assert report.issues_by_impact["serious"] == []


def test_simplified_report_projects_issue_fields():
    report = ReportBuilder.build(
        "job-1",
        "https://example.com",
        [_finding("image-alt", "critical", nodes=4)],
        ["Описание. Решение: исправить."],
    )
    payload = simplified_report(report)

    assert payload["url"] == "https://example.com"
    assert payload["total_issues"] == 1
    assert payload["critical"] == 1
    assert payload["issues"] == [
        {
            "impact": "critical",
            "title": RULE_TITLES["image-alt"],
            "description": "Описание.",
            "count": 4,
        }
    ]


def test_total_issues_matches_input_length_and_bucket_sizes():
    impacts = ["critical", "serious", "moderate", "minor", "blocker"]
    for count in range(1, 16):
        findings = [_finding(f"rule-{i % 4}", impacts[i % len(impacts)]) for i in range(count)]
        report = ReportBuilder.build("job-1", "https://example.com", findings)

        assert report.summary.total_issues == count
        assert sum(len(bucket) for bucket in report.issues_by_impact.values()) == count
