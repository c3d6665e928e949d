from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum

from .import_row import DuplicateRow, ImportRow, RowError

"""Result models for the two phases of an import: validation and commit.

ValidationOutcome is the three-way partition shown to the user as a preview.
CommitResult aggregates what the store actually accepted once the user picked
a duplicate resolution policy.
"""

__all__ = [
    "ValidationOutcome",
    "ResolutionPolicy",
    "CommitFailure",
    "CommitResult",
    "INSERT_FAILED",
    "UPDATE_FAILED",
]

INSERT_FAILED = "INSERT_FAILED"
UPDATE_FAILED = "UPDATE_FAILED"


@dataclass(frozen=True)
class ValidationOutcome:
    """Partition of the data rows of one file (valid / duplicate / error).

    Every non-empty data row lands in exactly one of the three lists.
    Equality is structural, so validating the same rows against the same
    snapshot twice gives equal outcomes.
    """
    valid_students: list[ImportRow] = field(default_factory=list)
    duplicates: list[DuplicateRow] = field(default_factory=list)
    row_errors: list[RowError] = field(default_factory=list)

    @property
    def errors(self) -> list[str]:
        """Human-readable error lines, one per rejected row."""
        return [str(e) for e in self.row_errors]

    @property
    def total_rows(self) -> int:
        return len(self.valid_students) + len(self.duplicates) + len(self.row_errors)

    @property
    def has_errors(self) -> bool:
        return bool(self.row_errors)


class ResolutionPolicy(str, Enum):
    """How duplicates are treated at commit time."""
    SKIP = "skip"
    UPDATE = "update"


@dataclass(frozen=True)
class CommitFailure:
    target: str  # NIS of the row that failed
    reason: str
    error_type: str = INSERT_FAILED
    row_number: int = -1  # spreadsheet row, -1 when unknown


@dataclass(frozen=True)
class CommitResult:
    """Outcome of a commit. Counts only include operations that succeeded."""
    policy: ResolutionPolicy
    inserted_count: int
    updated_count: int
    failures: list[CommitFailure] = field(default_factory=list)

    @property
    def processed_count(self) -> int:
        return self.inserted_count + self.updated_count

    @property
    def has_failures(self) -> bool:
        return bool(self.failures)
