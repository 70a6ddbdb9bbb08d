"""Workbook rendering of purchase reports.

Each :class:`~shopreport.report.PurchaseReport` becomes one sheet laid out as:

  - the report title
  - "Top by purchases" and "Top by average check" blocks (top lists)
  - two banded tables (purchase count, average price) in alphabetical order
  - a bar chart next to each table
"""
from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Iterable, List, Optional

from openpyxl import Workbook, load_workbook
from openpyxl.chart import BarChart, Reference
from openpyxl.styles import Alignment, Font, PatternFill
from openpyxl.utils import get_column_letter

from .ranking import RankedGroup
from .report import AnalyticsReport, PurchaseReport


LOGGER_NAME = "shopreport.dashboard"

MONEY_FORMAT = "#,##0.00"
COUNT_FILL = "5B95F9"
AVG_FILL = "F46524"
COLUMN_WIDTH = 20
TABLE_OFFSET = 12
RIGHT_TABLE_OFFSET = 9


def _cell_value(value: object) -> object:
    # openpyxl cannot store NaN
    if isinstance(value, float) and math.isnan(value):
        return None
    return value


def _write_heading(ws, row: int, column: int, text: str, size: int = 12) -> None:
    cell = ws.cell(row=row, column=column, value=text)
    cell.font = Font(size=size, bold=True)


def _write_top_block(ws, row: int, column: int, heading: str, rows: List[RankedGroup], metric: str) -> None:
    _write_heading(ws, row, column, heading)
    for offset, ranked in enumerate(rows, start=1):
        ws.cell(row=row + offset, column=column + 1, value=ranked.key)
        cell = ws.cell(row=row + offset, column=column + 2, value=_cell_value(ranked.value(metric)))
        if metric == "avg_price":
            cell.number_format = MONEY_FORMAT


def _write_table(
    ws, row: int, column: int, headers: Iterable[str], rows: List[RankedGroup], metric: str, fill_hex: str
) -> int:
    """Write a header band plus rows; return the last row written."""

    fill = PatternFill("solid", fgColor=fill_hex)
    for idx, header in enumerate(headers):
        cell = ws.cell(row=row, column=column + idx, value=header)
        cell.fill = fill
        cell.alignment = Alignment(horizontal="center", vertical="center")
    for offset, ranked in enumerate(rows, start=1):
        ws.cell(row=row + offset, column=column, value=ranked.key)
        cell = ws.cell(row=row + offset, column=column + 1, value=_cell_value(ranked.value(metric)))
        if metric == "avg_price":
            cell.number_format = MONEY_FORMAT
    return row + len(rows)


def _add_bar_chart(ws, header_row: int, last_row: int, column: int, anchor_column: int, title: str) -> None:
    if last_row <= header_row:
        return
    chart = BarChart()
    chart.type = "bar"
    chart.style = 2
    chart.title = title
    chart.legend = None
    data = Reference(ws, min_col=column + 1, min_row=header_row, max_row=last_row)
    categories = Reference(ws, min_col=column, min_row=header_row + 1, max_row=last_row)
    chart.add_data(data, titles_from_data=True)
    chart.set_categories(categories)
    chart.height = 10.5
    chart.width = 10.5
    ws.add_chart(chart, f"{get_column_letter(anchor_column)}{header_row}")


def render_purchase_report(ws, report: PurchaseReport, first_row: int = 4, first_column: int = 2) -> None:
    """Lay out one purchase report on ``ws`` starting at the given 1-based cell."""

    _write_heading(ws, first_row, first_column + 2, report.title, size=16)
    for offset in (0, 1, RIGHT_TABLE_OFFSET, RIGHT_TABLE_OFFSET + 1):
        ws.column_dimensions[get_column_letter(first_column + offset)].width = COLUMN_WIDTH

    _write_top_block(ws, first_row + 2, first_column, "Top by purchases", report.top_by_count, "count")
    _write_top_block(ws, first_row + 7, first_column, "Top by average check", report.top_by_avg_price, "avg_price")

    table_row = first_row + TABLE_OFFSET
    right_column = first_column + RIGHT_TABLE_OFFSET
    last_count_row = _write_table(
        ws, table_row, first_column, ("Group", "Purchases"), report.table_by_count, "count", COUNT_FILL
    )
    last_avg_row = _write_table(
        ws, table_row, right_column, ("Group", "Average price"), report.table_by_avg_price, "avg_price", AVG_FILL
    )
    _add_bar_chart(ws, table_row, last_count_row, first_column, first_column + 2, "Purchases")
    _add_bar_chart(ws, table_row, last_avg_row, right_column, right_column + 2, "Average price")


def write_report_workbook(
    report: AnalyticsReport, path: str | Path, logger: Optional[logging.Logger] = None
) -> Path:
    """Write every report in ``report`` to its own sheet of the workbook at ``path``.

    An existing workbook is updated in place; sheets sharing a report title are
    replaced, other sheets are kept.
    """

    logger = logger or logging.getLogger(LOGGER_NAME)
    output_path = Path(path)
    output_path.parent.mkdir(parents=True, exist_ok=True)

    if output_path.is_file():
        workbook = load_workbook(output_path)
    else:
        workbook = Workbook()
        workbook.remove(workbook.active)

    for purchase_report in report:
        if purchase_report.title in workbook.sheetnames:
            workbook.remove(workbook[purchase_report.title])
        ws = workbook.create_sheet(purchase_report.title)
        render_purchase_report(ws, purchase_report)
        workbook.active = workbook.sheetnames.index(ws.title)
        logger.info("Rendered sheet '%s'", ws.title)

    workbook.save(output_path)
    logger.info("Report workbook saved to %s", output_path)
    return output_path
