"""Load CSV / XLSX files into ``Table`` objects using pandas."""

import zipfile
from pathlib import Path
from typing import Any, Optional, Union

import pandas as pd
from openpyxl.utils.exceptions import InvalidFileException

from dupscan.dedup.models import Table
from dupscan.errors import TableLoadError
from dupscan.utils.logger import log_info, log_warning

SUPPORTED_EXTENSIONS = (".csv", ".xlsx")


def _cell(value: Any) -> Optional[str]:
    if value is None or (not isinstance(value, str) and pd.isna(value)):
        return None
    text = str(value).strip()
    return text or None


def table_from_dataframe(df: pd.DataFrame) -> Table:
    """Convert a DataFrame to a ``Table``; blank and NaN cells become ``None``."""
    headers = [str(column) for column in df.columns]
    rows = [
        {header: _cell(value) for header, value in zip(headers, record)}
        for record in df.itertuples(index=False, name=None)
    ]
    return Table(headers=headers, rows=rows)


def read_dataframe(path: Union[str, Path]) -> pd.DataFrame:
    """Read the file at ``path`` with every cell kept as text.

    Only the first worksheet of a workbook is read.
    """
    path = Path(path)
    ext = path.suffix.lower()

    try:
        if ext == ".csv":
            return pd.read_csv(path, dtype=str, keep_default_na=False, skip_blank_lines=True)
        if ext == ".xlsx":
            # Requires: openpyxl
            return pd.read_excel(path, sheet_name=0, dtype=str, engine="openpyxl")
    except pd.errors.EmptyDataError:
        return pd.DataFrame()
    except (OSError, ValueError, zipfile.BadZipFile, InvalidFileException) as e:
        raise TableLoadError(f"Failed to process file {path.name}: {e}") from e

    raise TableLoadError(
        f"Unsupported file format: {ext or '<none>'} (expected one of {', '.join(SUPPORTED_EXTENSIONS)})"
    )


def load_table(path: Union[str, Path]) -> Table:
    """Load a CSV or XLSX file into a ``Table``.

    Fully blank rows are dropped.
    """
    df = read_dataframe(path)
    table = table_from_dataframe(df)
    rows = [row for row in table.rows if any(v is not None for v in row.values())]
    if len(rows) < len(table.rows):
        log_warning("Blank rows skipped", file=Path(path).name, count=len(table.rows) - len(rows))
    table.rows = rows

    log_info("Table loaded", file=Path(path).name, rows=len(table.rows), columns=len(table.headers))
    return table
