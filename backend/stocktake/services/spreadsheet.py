"""Inventory Spreadsheet — builds the aggregated .xlsx export in memory.

Invariants:
    - Exactly one worksheet, header row first, one row per ExportRow
    - Header labels and column widths are part of the export contract
    - Returns complete bytes: callers purge only after this returns

Design Decisions:
    - openpyxl write path into BytesIO: no temp files, nothing to clean up on failure
"""

import io
from datetime import date, datetime, timezone
from typing import Sequence

from openpyxl import Workbook
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from stocktake.core.domain_types import ExportRow

XLSX_MEDIA_TYPE = (
    "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
)
SHEET_TITLE = "Productos Escaneados"

# (header, width)
COLUMNS = (
    ("Código", 15),
    ("Nombre", 50),
    ("Cantidad Total", 15),
)


def build_inventory_workbook(rows: Sequence[ExportRow]) -> bytes:
    """Render aggregated rows to xlsx bytes."""
    wb = Workbook()
    ws = wb.active
    ws.title = SHEET_TITLE

    for col_idx, (header, width) in enumerate(COLUMNS, 1):
        cell = ws.cell(row=1, column=col_idx, value=header)
        cell.font = Font(bold=True)
        ws.column_dimensions[get_column_letter(col_idx)].width = width

    for row_idx, row in enumerate(rows, 2):
        ws.cell(row=row_idx, column=1, value=row.code)
        ws.cell(row=row_idx, column=2, value=row.name)
        ws.cell(row=row_idx, column=3, value=row.total_quantity)

    output = io.BytesIO()
    wb.save(output)
    return output.getvalue()


def export_filename(today: date | None = None) -> str:
    """inventario_<ISO date>.xlsx, UTC date by default."""
    today = today or datetime.now(timezone.utc).date()
    return f"inventario_{today.isoformat()}.xlsx"
