from __future__ import annotations

import logging
import re
from collections.abc import Iterable, Sequence
from typing import Any

from ..models.config_models import DEFAULT_EXPECTED_HEADERS
from ..models.import_row import DUPLICATE_IN_FILE, DuplicateRow, ImportRow, RowError
from ..models.processing_result import ValidationOutcome
from ..models.student import GENDER_FEMALE, GENDER_MALE, StudentRecord

"""Import validation: header contract, per-row field rules, duplicate checks.

Pipeline for one file (all in memory, against a snapshot of the store):

1. header check on row 0; a mismatch rejects the whole file
2. per-row field validation, every violation of a row collected
3. NIS already accepted into valid_students earlier in the file -> error
4. NIS of an active stored student -> duplicate, otherwise valid

Rows without any non-blank cell are skipped and never reported.
"""

__all__ = [
    "ImportHeaderError",
    "EXPECTED_HEADERS",
    "GENDER_TOKENS",
    "check_header",
    "is_empty_row",
    "validate_row",
    "validate_import",
]

logger = logging.getLogger(__name__)

EXPECTED_HEADERS = DEFAULT_EXPECTED_HEADERS

# accepted token -> stored value; abbreviations are case-sensitive
GENDER_TOKENS: dict[str, str] = {
    GENDER_MALE: GENDER_MALE,
    GENDER_FEMALE: GENDER_FEMALE,
    "L": GENDER_MALE,
    "P": GENDER_FEMALE,
}

MIN_NAME_LENGTH = 2

# ASCII digits only; str.isdigit() would also accept other scripts' digits
_NIS_PATTERN = re.compile(r"[0-9]+")

MSG_NIS_EMPTY = "NIS kosong"
MSG_NIS_NOT_NUMERIC = "NIS harus berupa angka"
MSG_NAME_EMPTY = "Nama kosong"
MSG_NAME_TOO_SHORT = "Nama terlalu pendek"
MSG_CLASS_EMPTY = "Kelas kosong"
MSG_GENDER_INVALID = 'Jenis kelamin harus "Laki-laki" atau "Perempuan"'


class ImportHeaderError(Exception):
    """Raised when the header row does not match the import template."""

    def __init__(self, expected: Sequence[str]) -> None:
        self.expected = tuple(expected)
        super().__init__(f"Header harus: {', '.join(self.expected)}")


def _cell_text(value: Any) -> str:
    """Trimmed text of a cell; None -> ''."""
    if value is None:
        return ""
    if isinstance(value, float) and value.is_integer():
        value = int(value)
    return str(value).strip()


def check_header(header_row: Sequence[Any] | None, expected: Sequence[str] = EXPECTED_HEADERS) -> bool:
    """Case-insensitive substring match of each expected label, column by column."""
    if not header_row:
        return False
    for index, label in enumerate(expected):
        if index >= len(header_row) or header_row[index] is None:
            return False
        if label.lower() not in str(header_row[index]).lower():
            return False
    return True


def is_empty_row(cells: Sequence[Any] | None) -> bool:
    return not cells or all(_cell_text(c) == "" for c in cells)


def validate_row(cells: Sequence[Any], row_number: int) -> ImportRow | list[str]:
    """Validate one data row.

    Returns the normalized ImportRow, or the list of every violation found.
    Missing trailing cells count as blank.
    """
    padded = list(cells[:4]) + [None] * (4 - min(len(cells), 4))
    nis, name, class_name, gender = (_cell_text(c) for c in padded)

    violations: list[str] = []
    if nis == "":
        violations.append(MSG_NIS_EMPTY)
    elif not _NIS_PATTERN.fullmatch(nis):
        violations.append(MSG_NIS_NOT_NUMERIC)

    if name == "":
        violations.append(MSG_NAME_EMPTY)
    elif len(name) < MIN_NAME_LENGTH:
        violations.append(MSG_NAME_TOO_SHORT)

    if class_name == "":
        violations.append(MSG_CLASS_EMPTY)

    if gender not in GENDER_TOKENS:
        violations.append(MSG_GENDER_INVALID)

    if violations:
        return violations
    return ImportRow(
        row_number=row_number,
        student_id=nis,
        name=name,
        class_name=class_name,
        gender=GENDER_TOKENS[gender],
    )


def validate_import(
    raw_rows: Sequence[Sequence[Any]],
    existing_students: Iterable[StudentRecord],
    expected_headers: Sequence[str] = EXPECTED_HEADERS,
) -> ValidationOutcome:
    """Partition spreadsheet rows into valid / duplicate / error buckets.

    Parameters
    ----------
    raw_rows: rows as returned by the spreadsheet reader; row 0 is the header
    existing_students: store snapshot, read once; inactive records are ignored
    expected_headers: header labels in column order

    Raises
    ------
    ImportHeaderError: header row missing or not matching; no partial result
    """
    if not raw_rows or not check_header(raw_rows[0], expected_headers):
        raise ImportHeaderError(expected_headers)

    by_nis: dict[str, StudentRecord] = {
        s.student_id: s for s in existing_students if s.is_active
    }

    valid: list[ImportRow] = []
    duplicates: list[DuplicateRow] = []
    row_errors: list[RowError] = []
    seen: set[str] = set()

    for index, cells in enumerate(raw_rows[1:]):
        if is_empty_row(cells):
            continue
        row_number = index + 2  # header is row 1
        result = validate_row(cells, row_number)
        if isinstance(result, list):
            row_errors.append(RowError(row_number, tuple(result)))
            continue

        if result.student_id in seen:
            row_errors.append(
                RowError(
                    row_number,
                    (f'NIS "{result.student_id}" duplikat dalam file',),
                    DUPLICATE_IN_FILE,
                )
            )
            continue

        existing = by_nis.get(result.student_id)
        if existing is not None:
            duplicates.append(DuplicateRow.from_row(result, existing.id, existing.name))
        else:
            # only rows accepted as new students block later rows with the same NIS
            seen.add(result.student_id)
            valid.append(result)

    outcome = ValidationOutcome(valid_students=valid, duplicates=duplicates, row_errors=row_errors)
    logger.debug(
        f"validated rows={outcome.total_rows} valid={len(valid)} "
        f"duplicates={len(duplicates)} errors={len(row_errors)}"
    )
    return outcome
