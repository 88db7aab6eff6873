# catalog_import/sources/spreadsheet_reader.py
# --------------------------------------------------------------------------------------
# Load the first sheet of an Excel export into row dicts keyed by header.
# --------------------------------------------------------------------------------------
from __future__ import annotations

import logging
import math
import os
from typing import Any, Dict, Iterable, List

import pandas as pd

from catalog_import.errors import MissingSourceFile

logger = logging.getLogger(__name__)

Row = Dict[str, Any]


def _cell(value: Any) -> Any:
    """pandas cell -> plain python value, or None for an empty cell."""
    if value is None:
        return None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if isinstance(value, str):
        return value if value.strip() else None
    try:
        if pd.isna(value):
            return None
    except (TypeError, ValueError):
        pass
    # numpy scalars
    if hasattr(value, "item"):
        try:
            return _cell(value.item())
        except Exception:
            return value
    return value


def frame_to_rows(
    df: pd.DataFrame,
    id_column: str | None = None,
    skip_values: Iterable[str] = (),
) -> List[Row]:
    """
    Sparse row dicts: empty cells become absent keys, fully empty rows are dropped,
    and rows whose ID cell repeats a header label are skipped.
    """
    headers = [str(c).strip() for c in df.columns]
    skip = {str(s).strip() for s in skip_values}
    if id_column:
        skip.add(id_column)

    rows: List[Row] = []
    skipped_headers = 0
    for values in df.itertuples(index=False, name=None):
        row: Row = {}
        for header, raw in zip(headers, values):
            if not header or header.startswith("Unnamed:"):
                continue
            v = _cell(raw)
            if v is not None:
                row[header] = v
        if not row:
            continue
        if id_column and str(row.get(id_column, "")).strip() in skip:
            skipped_headers += 1
            continue
        rows.append(row)

    if skipped_headers:
        logger.debug("Skipped %d repeated header rows", skipped_headers)
    return rows


def read_sheet(
    path: str,
    header_row: int = 0,
    *,
    id_column: str | None = None,
    skip_values: Iterable[str] = (),
    required: bool = False,
) -> List[Row]:
    """
    Read the first worksheet with headers on `header_row` (0-based).

    A missing optional file is reported and yields no rows; a missing required
    file raises MissingSourceFile so the run aborts before writing anything.
    """
    if not path or not os.path.isfile(path):
        if required:
            raise MissingSourceFile(path)
        logger.warning(f"Warning: File not found {path}")
        return []

    df = pd.read_excel(path, sheet_name=0, header=header_row, dtype=object, engine="openpyxl")
    rows = frame_to_rows(df, id_column=id_column, skip_values=skip_values)
    logger.info("[READ] %s: %d rows (header row %d)", os.path.basename(path), len(rows), header_row)
    return rows
