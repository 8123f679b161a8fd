"""
XLSX source: load one worksheet into a DataTable (openpyxl, read-only).

source options:
  sheet: 0-based sheet index (int) or sheet name (str). Default: active sheet.
  skip_rows: rows to skip at the top of the sheet before the header. Default: 0.
  header_row: 0-based row index (after skip_rows) holding column names. Default: 0.

Header cells are whitespace-normalized; blank headers become ``Column_<n>``
and duplicates get a ``_<k>`` suffix. Rows with no values are skipped. Empty
cells are null; other cells keep the type openpyxl reports (int, float,
datetime, str, bool).
"""

from __future__ import annotations

import re
from pathlib import Path
from typing import Any

import openpyxl

from rowbind_kernel.logging_config import get_logger

from rowbind_sources.data_table import DataTable

logger = get_logger("sources.xlsx")


def _normalize_header_cell(value: Any) -> str:
    if value is None:
        return ""
    return re.sub(r"\s+", " ", str(value)).strip()


def _cell_value(value: Any) -> Any:
    if isinstance(value, str):
        value = value.strip()
        return value or None
    return value


def _headers(header_cells: tuple[Any, ...]) -> list[str]:
    width = 0
    for c, v in enumerate(header_cells):
        if _normalize_header_cell(v):
            width = c + 1
    headers: list[str] = []
    for c in range(width):
        key = _normalize_header_cell(header_cells[c]) or f"Column_{c + 1}"
        base = key
        cnt = 0
        while key.casefold() in (h.casefold() for h in headers):
            cnt += 1
            key = f"{base}_{cnt}"
        headers.append(key)
    return headers


def _get_sheet(wb: Any, options: dict[str, Any]) -> Any:
    sheet_ref = options.get("sheet")
    if sheet_ref is None:
        return wb.active
    if isinstance(sheet_ref, int):
        return wb.worksheets[sheet_ref]
    return wb[sheet_ref]


def read_xlsx_table(source_path: Path | str, options: dict[str, Any] | None = None) -> DataTable:
    """Load a worksheet into an untyped DataTable."""
    options = options or {}
    source_path = Path(source_path)
    wb = openpyxl.load_workbook(source_path, read_only=True, data_only=True)
    try:
        sheet = _get_sheet(wb, options)
        skip_rows = int(options.get("skip_rows", 0))
        header_row = int(options.get("header_row", 0))

        rows = sheet.iter_rows(min_row=1 + skip_rows, values_only=True)
        for _ in range(header_row):
            next(rows, None)
        header_cells = next(rows, None)
        table = DataTable(_headers(header_cells or ()), name=source_path.stem)

        width = len(table.columns)
        skipped = 0
        for cells in rows:
            values = [_cell_value(v) for v in cells[:width]]
            if not any(v is not None for v in values):
                skipped += 1
                continue
            table.add_row(values)
    finally:
        wb.close()

    logger.debug(
        "xlsx_loaded",
        extra={"path": str(source_path), "records": len(table), "blank_rows_skipped": skipped},
    )
    return table
