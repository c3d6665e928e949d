from __future__ import annotations

import logging
from enum import Enum
from pathlib import Path

from ..db.store import StudentStore
from ..excel.reader import FileRejectedError, read_excel_rows
from ..logging.error_log import ErrorLogBuffer
from ..models.config_models import ImportConfig
from ..models.error_record import ErrorRecord
from ..models.processing_result import CommitResult, ResolutionPolicy, ValidationOutcome
from .commit import commit_import
from .validator import ImportHeaderError, check_header, validate_import

"""Import session: one file from selection to commit.

State transitions:

    IDLE -> FILE_SELECTED -> HEADER_CHECKED -> ROWS_VALIDATED -> PREVIEW_READY
    PREVIEW_READY -> (cancel) -> IDLE
    PREVIEW_READY -> COMMITTING -> IDLE

A rejected file or header mismatch returns straight to IDLE without touching
the store. COMMITTING always ends in IDLE, whatever failed inside it.
"""

__all__ = [
    "ImportState",
    "ImportStateError",
    "ImportSession",
]

logger = logging.getLogger(__name__)


class ImportState(Enum):
    IDLE = "idle"
    FILE_SELECTED = "file_selected"
    HEADER_CHECKED = "header_checked"
    ROWS_VALIDATED = "rows_validated"
    PREVIEW_READY = "preview_ready"
    COMMITTING = "committing"


class ImportStateError(Exception):
    """Operation not allowed in the current session state."""


class ImportSession:
    """Drives a single administrator's import, one file at a time."""

    def __init__(
        self,
        store: StudentStore,
        config: ImportConfig | None = None,
        error_log: ErrorLogBuffer | None = None,
    ) -> None:
        self.store = store
        self.config = config or ImportConfig()
        self.error_log = error_log
        self.state = ImportState.IDLE
        self.file_name: str | None = None
        self.outcome: ValidationOutcome | None = None

    def _require(self, state: ImportState, action: str) -> None:
        if self.state is not state:
            raise ImportStateError(f"cannot {action} in state {self.state.value}")

    def _reset(self) -> None:
        self.state = ImportState.IDLE
        self.file_name = None
        self.outcome = None

    def _log_file_error(self, error_type: str, message: str) -> None:
        if self.error_log is not None and self.file_name is not None:
            self.error_log.append(ErrorRecord.create(self.file_name, -1, error_type, message))

    def preview(self, source: Path | bytes, file_name: str | None = None) -> ValidationOutcome:
        """Read and validate a file against a fresh snapshot of active students."""
        self._require(ImportState.IDLE, "preview")
        self.state = ImportState.FILE_SELECTED
        self.file_name = file_name or (source.name if isinstance(source, Path) else "<upload>")
        try:
            rows = read_excel_rows(source, file_name=self.file_name, config=self.config)
            # checked before the snapshot query so rejected files never hit the store
            if not rows or not check_header(rows[0], self.config.expected_headers):
                raise ImportHeaderError(self.config.expected_headers)
            self.state = ImportState.HEADER_CHECKED
            existing = self.store.list_active_students()
            outcome = validate_import(rows, existing, self.config.expected_headers)
        except FileRejectedError as e:
            logger.error(f"file rejected: {e}")
            self._log_file_error("FILE_REJECTED", str(e))
            self._reset()
            raise
        except ImportHeaderError as e:
            logger.error(f"header mismatch in {self.file_name}: {e}")
            self._log_file_error("HEADER_MISMATCH", str(e))
            self._reset()
            raise
        except Exception:
            self._reset()
            raise

        self.state = ImportState.ROWS_VALIDATED
        if self.error_log is not None:
            self.error_log.add_outcome(self.file_name, outcome)
        self.outcome = outcome
        self.state = ImportState.PREVIEW_READY
        return outcome

    def cancel(self) -> None:
        """Discard the preview. Nothing is written."""
        if self.state is not ImportState.IDLE:
            logger.info(f"import of {self.file_name} cancelled")
        self._reset()

    def commit(self, policy: ResolutionPolicy | str) -> CommitResult:
        self._require(ImportState.PREVIEW_READY, "commit")
        policy = ResolutionPolicy(policy)
        outcome = self.outcome or ValidationOutcome()
        self.state = ImportState.COMMITTING
        try:
            return commit_import(
                outcome,
                policy,
                self.store,
                error_log=self.error_log,
                file_name=self.file_name or "<upload>",
            )
        finally:
            self._reset()
