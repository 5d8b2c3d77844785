"""Spreadsheet export of the current inventory table."""

from __future__ import annotations

import io
from pathlib import Path
from typing import Dict, List, Sequence

import pandas as pd

DEFAULT_SHEET_NAME = "Chemical Data"
DEFAULT_FILENAME = "chemical_labels_data.xlsx"


class ExportAdapter:
    """Write inventory rows to an .xlsx workbook.

    One row per record and one column per column-set entry, both in the
    order given. Missing values are written as blank cells.

    Args:
        sheet_name: Name of the single worksheet.
        filename: Default file name offered for downloads.
    """

    def __init__(self, sheet_name: str = DEFAULT_SHEET_NAME, filename: str = DEFAULT_FILENAME):
        self.sheet_name = sheet_name
        self.filename = filename

    def _frame(self, rows: Sequence[Dict[str, str]], columns: List[str]) -> pd.DataFrame:
        if not rows:
            raise ValueError("There are no records to export.")
        frame = pd.DataFrame(list(rows), columns=list(columns))
        return frame.fillna("")

    def _write(self, frame: pd.DataFrame, target) -> None:
        with pd.ExcelWriter(target, engine="openpyxl") as writer:
            frame.to_excel(writer, index=False, sheet_name=self.sheet_name)

    def to_bytes(self, rows: Sequence[Dict[str, str]], columns: List[str]) -> bytes:
        """Return the workbook as bytes."""
        buffer = io.BytesIO()
        self._write(self._frame(rows, columns), buffer)
        return buffer.getvalue()

    def write(self, rows: Sequence[Dict[str, str]], columns: List[str], path: str | Path) -> Path:
        """Write the workbook to disk and return its path."""
        target = Path(path)
        target.parent.mkdir(parents=True, exist_ok=True)
        self._write(self._frame(rows, columns), target)
        return target
