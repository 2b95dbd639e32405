"""Encode report rows as XLSX or CSV bytes."""

from io import BytesIO

import pandas as pd
from openpyxl.styles import Font
from openpyxl.utils import get_column_letter

from .models import ExportFormat

SHEET_NAME = "Report"


def build_report_dataframe(rows: list[dict], columns: list[str] | None = None) -> pd.DataFrame:
    """Rows -> DataFrame with a stable column order. Empty rows keep the header columns."""
    if not rows:
        return pd.DataFrame(columns=columns or [])
    df = pd.DataFrame(rows)
    if columns:
        for c in columns:
            if c not in df.columns:
                df[c] = ""
        extra = [c for c in df.columns if c not in columns]
        df = df[list(columns) + extra]
    return df


def _set_column_widths(ws) -> None:
    """Set each column width to the max character length in that column."""
    for col_idx in range(1, ws.max_column + 1):
        col_letter = get_column_letter(col_idx)
        max_len = 0
        for row in range(1, ws.max_row + 1):
            val = ws.cell(row=row, column=col_idx).value
            if val is not None:
                max_len = max(max_len, len(str(val)))
        if max_len > 0:
            ws.column_dimensions[col_letter].width = min(max_len + 2, 255)


def _set_auto_filter(ws) -> None:
    """Turn on Excel auto-filter for the used range (all column headers)."""
    if ws.max_row < 1 or ws.max_column < 1:
        return
    last_col = get_column_letter(ws.max_column)
    ws.auto_filter.ref = f"A1:{last_col}{ws.max_row}"


def write_xlsx(df: pd.DataFrame) -> bytes:
    buffer = BytesIO()
    with pd.ExcelWriter(buffer, engine="openpyxl") as writer:
        df.to_excel(writer, sheet_name=SHEET_NAME, index=False)
        ws = writer.sheets[SHEET_NAME]
        # Bold header row
        for cell in ws[1]:
            cell.font = Font(bold=True)
        _set_column_widths(ws)
        _set_auto_filter(ws)
    return buffer.getvalue()


def write_csv(df: pd.DataFrame) -> bytes:
    return df.to_csv(index=False).encode("utf-8")


def encode_rows(rows: list[dict], fmt: "str | ExportFormat", columns: list[str] | None = None) -> bytes:
    """Serialise report rows in the requested format (xlsx or csv)."""
    export_format = ExportFormat.parse(fmt)
    df = build_report_dataframe(rows, columns)
    if export_format is ExportFormat.CSV:
        return write_csv(df)
    return write_xlsx(df)
