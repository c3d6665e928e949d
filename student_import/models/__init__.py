"""Domain models for the student spreadsheet import tool.

This package contains the domain model classes used throughout the application:
configuration, validated rows, the validation partition and commit results.
"""

from .config_models import DatabaseConfig, ImportConfig
from .error_record import ErrorRecord
from .import_row import DuplicateRow, ImportRow, RowError
from .processing_result import CommitFailure, CommitResult, ResolutionPolicy, ValidationOutcome
from .student import NewStudent, StudentRecord

__all__ = [
    # Configuration models
    "DatabaseConfig",
    "ImportConfig",
    # Row models
    "ImportRow",
    "DuplicateRow",
    "RowError",
    # Result models
    "ValidationOutcome",
    "ResolutionPolicy",
    "CommitFailure",
    "CommitResult",
    # Store models
    "StudentRecord",
    "NewStudent",
    # Logging
    "ErrorRecord",
]
