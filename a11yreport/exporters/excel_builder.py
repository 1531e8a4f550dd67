# a11yreport/exporters/excel_builder.py

from __future__ import annotations

from io import BytesIO

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side

from a11yreport.core.errors import ReportExportError
from a11yreport.core.models import Report
from a11yreport.report.translations import IMPACT_LABELS

IMPACT_FILLS = {
    "critical": "C00000",
    "serious": "ED7D31",
    "moderate": "FFC000",
    "minor": "70AD47",
}


def _autosize_columns(ws) -> None:
    for col in ws.columns:
        max_length = 0
        column = col[0].column_letter
        for cell in col:
            if cell.value is not None and len(str(cell.value)) > max_length:
                max_length = len(str(cell.value))
        ws.column_dimensions[column].width = min(max_length + 2, 60)


def _apply_table_header(ws, headers: list[str]) -> Border:
    header_font = Font(bold=True, color="FFFFFF")
    header_fill = PatternFill(start_color="4472C4", end_color="4472C4", fill_type="solid")
    header_alignment = Alignment(horizontal="center", vertical="center")
    thin_border = Border(
        left=Side(style="thin"),
        right=Side(style="thin"),
        top=Side(style="thin"),
        bottom=Side(style="thin"),
    )
    ws.append(headers)
    for col, _ in enumerate(headers, 1):
        cell = ws.cell(row=1, column=col)
        cell.font = header_font
        cell.fill = header_fill
        cell.alignment = header_alignment
        cell.border = thin_border
    return thin_border


def _add_summary_sheet(wb: Workbook, report: Report) -> None:
    ws = wb.active
    ws.title = "Summary"
    thin_border = _apply_table_header(ws, ["Показатель", "Значение"])
    summary = report.summary
    rows = [
        ("URL", report.url),
        ("Отчёт", report.id),
        ("Создан", report.created_at.isoformat()),
        ("Всего проблем", summary.total_issues),
        (IMPACT_LABELS["critical"], summary.critical),
        (IMPACT_LABELS["serious"], summary.serious),
        (IMPACT_LABELS["moderate"], summary.moderate),
        (IMPACT_LABELS["minor"], summary.minor),
    ]
    for impact, count in summary.impact_scores.items():
        if impact not in IMPACT_LABELS:
            rows.append((f"Прочие ({impact or 'без уровня'})", count))
    for row, (label, value) in enumerate(rows, 2):
        ws.cell(row=row, column=1, value=label).border = thin_border
        ws.cell(row=row, column=2, value=value).border = thin_border
    _autosize_columns(ws)


def _add_issues_sheet(wb: Workbook, report: Report) -> None:
    ws = wb.create_sheet("Issues")
    headers = ["Уровень", "Правило", "Заголовок", "Описание", "Как исправить", "Элементов", "Теги", "Ссылка", "Пример"]
    thin_border = _apply_table_header(ws, headers)
    row = 2
    for impact, issues in report.issues_by_impact.items():
        for issue in issues:
            values = [
                impact,
                issue.id,
                issue.title,
                issue.description,
                issue.how_to_fix,
                issue.affected_elements,
                ", ".join(issue.tags),
                issue.help_url,
                issue.examples[0] if issue.examples else "",
            ]
            for col, value in enumerate(values, 1):
                ws.cell(row=row, column=col, value=value).border = thin_border
            fill = IMPACT_FILLS.get(impact)
            if fill:
                ws.cell(row=row, column=1).fill = PatternFill(start_color=fill, end_color=fill, fill_type="solid")
            row += 1
    _autosize_columns(ws)


def _add_recommendations_sheet(wb: Workbook, report: Report) -> None:
    ws = wb.create_sheet("Recommendations")
    _apply_table_header(ws, ["#", "Рекомендация"])
    for index, text in enumerate(report.recommendations, 1):
        ws.append([index, text])
    _autosize_columns(ws)


def build_xlsx_from_report(report: Report) -> bytes:
    """Конвертирует отчёт о доступности в .xlsx."""
    try:
        wb = Workbook()
        _add_summary_sheet(wb, report)
        _add_issues_sheet(wb, report)
        _add_recommendations_sheet(wb, report)

        bio = BytesIO()
        wb.save(bio)
        bio.seek(0)
        return bio.read()
    except Exception as exc:
        raise ReportExportError(f"Failed to generate XLSX: {exc}") from exc
