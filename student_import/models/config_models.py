from __future__ import annotations

from dataclasses import dataclass, field

"""Config dataclasses for the student import tool.

These are filled by student_import.config.loader from config/import.yml. The
defaults reproduce the import template: four fixed columns, Excel files only,
5 MB upload limit.
"""

DEFAULT_EXPECTED_HEADERS: tuple[str, ...] = ("NIS", "Nama Lengkap", "Kelas", "Jenis Kelamin")
DEFAULT_ALLOWED_EXTENSIONS: tuple[str, ...] = (".xlsx", ".xls")
DEFAULT_MAX_FILE_SIZE_MB = 5


@dataclass(frozen=True)
class DatabaseConfig:
    """Database connection configuration.

    Used as fallback when environment variables are not set.
    Environment variables take precedence over these values.
    """
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class ImportConfig:
    """Root configuration object for a student import."""
    expected_headers: tuple[str, ...] = DEFAULT_EXPECTED_HEADERS
    allowed_extensions: tuple[str, ...] = DEFAULT_ALLOWED_EXTENSIONS
    max_file_size_mb: float = DEFAULT_MAX_FILE_SIZE_MB
    table: str = "students"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)

    @property
    def max_file_size_bytes(self) -> int:
        return int(self.max_file_size_mb * 1024 * 1024)
