from __future__ import annotations

from dataclasses import dataclass

from .student import NewStudent

"""Row-level models produced by the import validator.

ImportRow is the normalized form of one spreadsheet data row that passed
field validation. DuplicateRow carries the same incoming values plus the
stored student it collides with. RowError groups every violation of one
rejected row.

row_number is the 1-based position in the original file: the header is row 1,
so the first data row is reported as row 2.
"""

__all__ = [
    "ImportRow",
    "DuplicateRow",
    "RowError",
    "ROW_VALIDATION",
    "DUPLICATE_IN_FILE",
]

ROW_VALIDATION = "ROW_VALIDATION"
DUPLICATE_IN_FILE = "DUPLICATE_IN_FILE"


@dataclass(frozen=True)
class ImportRow:
    """A validated, trimmed row ready to be inserted as a new student."""
    row_number: int
    student_id: str  # NIS, digits only
    name: str
    class_name: str
    gender: str  # canonical full word

    def to_new_student(self) -> NewStudent:
        return NewStudent(
            student_id=self.student_id,
            name=self.name,
            class_name=self.class_name,
            gender=self.gender,
        )


@dataclass(frozen=True)
class DuplicateRow:
    """Incoming row whose NIS already belongs to an active stored student."""
    row_number: int
    student_id: str
    name: str
    class_name: str
    gender: str
    existing_id: str  # store primary key of the colliding student
    existing_name: str

    @classmethod
    def from_row(cls, row: ImportRow, existing_id: str, existing_name: str) -> DuplicateRow:
        return cls(
            row_number=row.row_number,
            student_id=row.student_id,
            name=row.name,
            class_name=row.class_name,
            gender=row.gender,
            existing_id=existing_id,
            existing_name=existing_name,
        )


@dataclass(frozen=True)
class RowError:
    """All violations found on a single rejected row."""
    row_number: int
    messages: tuple[str, ...]
    error_type: str = ROW_VALIDATION

    def __str__(self) -> str:
        return f"Baris {self.row_number}: {', '.join(self.messages)}"
