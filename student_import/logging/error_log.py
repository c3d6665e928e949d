from __future__ import annotations

from datetime import UTC, datetime
from pathlib import Path

from student_import.models.error_record import ErrorRecord
from student_import.models.processing_result import CommitFailure, ValidationOutcome

"""Error log generation & buffering.

- JSON Lines with a fixed schema (see ErrorRecord)
- One `logs/errors-YYYYMMDD-HHMMSS.log` (UTC) per run, created on first flush
- Records are buffered and written in one go at the end of a preview or commit
"""

__all__ = [
    "ErrorRecord",
    "ErrorLogBuffer",
]

LOGS_DIR = Path("./logs")
TIMESTAMP_FMT = "%Y%m%d-%H%M%S"


class ErrorLogBuffer:
    """In-memory buffer for error records. Flush writes JSON Lines.

    - flush() appends everything buffered to the run's file and clears the buffer
    - the file path is decided on first access
    - not thread-safe (one import runs at a time)
    """
    def __init__(self, logs_dir: Path | None = None) -> None:
        self._records: list[ErrorRecord] = []
        self._file_path: Path | None = None
        self._logs_dir = logs_dir or LOGS_DIR

    @property
    def file_path(self) -> Path:
        if self._file_path is None:
            self._logs_dir.mkdir(parents=True, exist_ok=True)
            stamp = datetime.now(UTC).strftime(TIMESTAMP_FMT)
            self._file_path = self._logs_dir / f"errors-{stamp}.log"
        return self._file_path

    @property
    def records(self) -> list[ErrorRecord]:
        return list(self._records)

    def append(self, record: ErrorRecord) -> None:
        self._records.append(record)

    def add_outcome(self, file: str, outcome: ValidationOutcome) -> None:
        """Buffer one record per rejected row of a validation outcome."""
        for err in outcome.row_errors:
            self.append(ErrorRecord.create(file, err.row_number, err.error_type, ", ".join(err.messages)))

    def add_failure(self, file: str, failure: CommitFailure) -> None:
        message = f"{failure.target}: {failure.reason}"
        self.append(ErrorRecord.create(file, failure.row_number, failure.error_type, message))

    def __len__(self) -> int:  # pragma: no cover (trivial)
        return len(self._records)

    def flush(self) -> Path:
        if not self._records:
            return self.file_path
        fp = self.file_path
        with fp.open("a", encoding="utf-8") as f:
            for r in self._records:
                f.write(r.to_json_line() + "\n")
        self._records.clear()
        return fp
