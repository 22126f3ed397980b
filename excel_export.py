"""
Excel export functionality for TripLedger
"""
from __future__ import annotations
import logging
from datetime import date
from typing import Optional

from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from models import SUPPORTED_CURRENCIES, TripLedger
from computations import aggregate_balances, calculate_category_stats, plan_all_settlements
from queries import by_date_range, sort_expenses

logger = logging.getLogger(__name__)


def _style_header(ws, row=1):
    """Apply header styling to worksheet row"""
    header_font = Font(bold=True, color="FFFFFF")
    fill = PatternFill("solid", fgColor="4F81BD")
    align = Alignment(horizontal="center", vertical="center")
    thin = Side(style="thin", color="A0A0A0")
    border = Border(left=thin, right=thin, top=thin, bottom=thin)
    for cell in ws[row]:
        cell.font = header_font
        cell.fill = fill
        cell.alignment = align
        cell.border = border


def _autosize_columns(ws, min_width=10, max_width=45):
    """Auto-size columns based on content"""
    for col in range(1, ws.max_column + 1):
        letter = get_column_letter(col)
        max_len = 0
        for cell in ws[letter]:
            v = cell.value
            if v is None:
                continue
            max_len = max(max_len, len(str(v)))
        ws.column_dimensions[letter].width = max(min_width, min(max_width, max_len + 2))


def _money_columns(ws, cols, first_row=2):
    for r in range(first_row, ws.max_row + 1):
        for c in cols:
            ws.cell(r, c).number_format = "#,##0.00"


def export_excel(
    ledger: TripLedger,
    filepath: str,
    start: Optional[date] = None,
    end: Optional[date] = None
) -> None:
    """
    Export ledger to Excel file with sheets:
    - Expenses (every record, oldest first, unsupported currencies included)
    - Balances THB / Balances HKD
    - Settlements
    - Categories
    """
    wb = Workbook()
    wb.remove(wb.active)

    exps = by_date_range(ledger.expenses, start, end)
    report = aggregate_balances(exps, ledger.participants)
    settlements = plan_all_settlements(report)

    ws = wb.create_sheet("Expenses")
    ws.append(["Date", "Time", "Description", "Category", "Amount", "Currency",
               "Paid By", "Split Among", "Split Type", "Notes"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    unsupported = {id(e) for e in report.unsupported}
    for e in sort_expenses(exps, "date", "asc"):
        ws.append([e.date, e.time, e.description, e.category, e.total_amount, e.currency,
                   e.paid_by, ", ".join(e.split_among), e.split_type, e.notes])
        if id(e) in unsupported:
            ws.cell(ws.max_row, 6).font = Font(italic=True, color="C00000")
    _money_columns(ws, [5])
    _autosize_columns(ws)

    for cur in SUPPORTED_CURRENCIES:
        ws = wb.create_sheet(f"Balances {cur}")
        ws.append(["Person", "Paid", "Owed", "Balance (Paid-Owed)"])
        _style_header(ws, 1)
        ws.freeze_panes = "A2"
        for b in report.people.values():
            ws.append([b.name, b.paid[cur], b.owed[cur], b.balance[cur]])
            if b.balance[cur] < 0:
                ws.cell(ws.max_row, 4).font = Font(color="C00000")
        if ws.max_row >= 2:
            last = ws.max_row
            ws.append(["TOTALS"] + [f"=SUM({get_column_letter(c)}2:{get_column_letter(c)}{last})" for c in (2, 3, 4)])
            ws.cell(ws.max_row, 1).font = Font(bold=True)
        _money_columns(ws, [2, 3, 4])
        _autosize_columns(ws)

    ws = wb.create_sheet("Settlements")
    ws.append(["From (Debtor)", "To (Creditor)", "Amount", "Currency"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for cur in SUPPORTED_CURRENCIES:
        for s in settlements[cur]:
            ws.append([s.from_person, s.to_person, round(s.amount, 2), s.currency])
    _money_columns(ws, [3])
    _autosize_columns(ws)

    ws = wb.create_sheet("Categories")
    ws.append(["Currency", "Category", "Total", "Count", "Share %"])
    _style_header(ws, 1)
    ws.freeze_panes = "A2"
    for cur, cats in calculate_category_stats(exps).items():
        for name, st in sorted(cats.items(), key=lambda kv: -kv[1].total):
            ws.append([cur, name, st.total, st.count, round(st.percentage, 1)])
    _money_columns(ws, [3])
    _autosize_columns(ws)

    wb.save(filepath)
    logger.info("Exported %d expenses to %s", len(exps), filepath)
