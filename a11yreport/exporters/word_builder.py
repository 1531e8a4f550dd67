# a11yreport/exporters/word_builder.py

from __future__ import annotations

from io import BytesIO

from docx import Document
from docx.enum.text import WD_ALIGN_PARAGRAPH

from a11yreport.core.errors import ReportExportError
from a11yreport.core.models import Issue, Report
from a11yreport.report.translations import IMPACT_LABELS


def _add_summary_section(doc: Document, report: Report) -> None:
    summary = report.summary
    doc.add_heading("Сводка", level=1)
    table = doc.add_table(rows=1, cols=2)
    table.style = "Table Grid"
    header = table.rows[0].cells
    header[0].text = "Показатель"
    header[1].text = "Значение"
    rows = [
        ("Всего проблем", summary.total_issues),
        (IMPACT_LABELS["critical"], summary.critical),
        (IMPACT_LABELS["serious"], summary.serious),
        (IMPACT_LABELS["moderate"], summary.moderate),
        (IMPACT_LABELS["minor"], summary.minor),
    ]
    for label, value in rows:
        cells = table.add_row().cells
        cells[0].text = label
        cells[1].text = str(value)


def _add_recommendations_section(doc: Document, report: Report) -> None:
    if not report.recommendations:
        return
    doc.add_heading("Рекомендации", level=1)
    for text in report.recommendations:
        doc.add_paragraph(text, style="List Bullet")


def _add_issue(doc: Document, issue: Issue, number: int) -> None:
    doc.add_heading(f"{number}. {issue.title}", level=3)
    meta = [f"Правило: {issue.id}", f"Элементов: {issue.affected_elements}"]
    if issue.tags:
        meta.append("Теги: " + ", ".join(issue.tags))
    doc.add_paragraph(" · ".join(meta))
    doc.add_paragraph(issue.description)
    p = doc.add_paragraph()
    p.add_run("Как исправить: ").bold = True
    p.add_run(issue.how_to_fix)
    for example in issue.examples:
        p = doc.add_paragraph()
        p.add_run(example).italic = True
    if issue.help_url:
        doc.add_paragraph(f"Подробнее: {issue.help_url}")


def _add_issues_section(doc: Document, report: Report) -> None:
    for impact, issues in report.issues_by_impact.items():
        if not issues:
            continue
        label = IMPACT_LABELS.get(impact, impact or "Без уровня")
        doc.add_heading(f"{label} ({len(issues)})", level=2)
        for number, issue in enumerate(issues, 1):
            _add_issue(doc, issue, number)


def build_docx_from_report(report: Report) -> bytes:
    """Конвертирует отчёт о доступности в форматированный .docx."""
    try:
        doc = Document()

        title = doc.add_heading("Отчёт о доступности", level=0)
        title.alignment = WD_ALIGN_PARAGRAPH.CENTER

        doc.add_paragraph(f"URL: {report.url}")
        doc.add_paragraph(f"Дата: {report.created_at.strftime('%d.%m.%Y %H:%M')}")

        _add_summary_section(doc, report)
        _add_recommendations_section(doc, report)
        doc.add_heading("Проблемы по уровню важности", level=1)
        _add_issues_section(doc, report)

        bio = BytesIO()
        doc.save(bio)
        bio.seek(0)
        return bio.read()
    except Exception as exc:
        raise ReportExportError(f"Failed to generate DOCX: {exc}") from exc
