from __future__ import annotations

import io
import math
from pathlib import Path
from typing import Any

import pandas as pd

from student_import.models.config_models import ImportConfig

"""Excel reader for the student import template.

Only the first sheet is read. Row 0 of the result is the header row, data rows
follow in file order. Cells come back as Python values: empty cells as None,
whole floats as int (numeric NIS columns are often stored as floats).

File-level problems (wrong extension, oversize, unreadable bytes) raise
FileRejectedError before any row is looked at.
"""

__all__ = [
    "FileRejectedError",
    "check_file",
    "read_excel_rows",
    "normalize_cell",
]

# pandas engine per extension
_ENGINES = {
    ".xlsx": "openpyxl",
    ".xls": "xlrd",
}


class FileRejectedError(Exception):
    """Raised when an uploaded file cannot be imported at all."""


def check_file(file_name: str, size: int, config: ImportConfig | None = None) -> None:
    """Validate extension and size of an uploaded file.

    Parameters
    ----------
    file_name: uploaded file name (only the suffix is inspected)
    size: file size in bytes
    config: import config (defaults: .xlsx/.xls, 5 MB)
    """
    cfg = config or ImportConfig()
    suffix = Path(file_name).suffix.lower()
    if suffix not in cfg.allowed_extensions:
        allowed = ", ".join(cfg.allowed_extensions)
        raise FileRejectedError(f"File harus berformat Excel ({allowed}): {file_name}")
    if size > cfg.max_file_size_bytes:
        raise FileRejectedError(
            f"Ukuran file maksimal {cfg.max_file_size_mb:g}MB: {file_name} ({size} bytes)"
        )


def normalize_cell(value: Any) -> Any:
    """Convert a raw pandas cell to a plain Python value."""
    if value is None:
        return None
    if isinstance(value, str):
        # empty cells arrive as "" because default NA parsing is disabled
        return value if value != "" else None
    if isinstance(value, float):
        if math.isnan(value):
            return None
        if value.is_integer():
            return int(value)
        return value
    if pd.isna(value):
        return None
    return value


def read_excel_rows(
    source: Path | bytes,
    file_name: str | None = None,
    config: ImportConfig | None = None,
) -> list[list[Any]]:
    """Read the first sheet of an Excel file into a list of rows.

    Parameters
    ----------
    source: path to the file, or its raw bytes
    file_name: name used for extension/size checks and messages
        (required when source is bytes)
    config: import config for the acceptance checks
    """
    if isinstance(source, Path):
        name = file_name or source.name
        try:
            data = source.read_bytes()
        except OSError as e:
            raise FileRejectedError(f"cannot read {name}: {e}") from e
    else:
        if not file_name:
            raise FileRejectedError("file_name is required when reading raw bytes")
        name = file_name
        data = source

    check_file(name, len(data), config)

    engine = _ENGINES.get(Path(name).suffix.lower())
    try:
        # keep_default_na=False: strings such as "NA" or "null" stay strings
        df = pd.read_excel(
            io.BytesIO(data),
            sheet_name=0,
            header=None,
            dtype=object,
            keep_default_na=False,
            engine=engine,
        )
    except Exception as e:
        raise FileRejectedError(f"Gagal memproses file Excel {name}: {e}") from e

    rows: list[list[Any]] = []
    for raw in df.itertuples(index=False, name=None):
        rows.append([normalize_cell(v) for v in raw])
    return rows
