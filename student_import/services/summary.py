from __future__ import annotations

from ..models.processing_result import CommitResult, ValidationOutcome

"""Summary line rendering for the import CLI.

Line bodies (logged with log_summary, which adds the SUMMARY label):

    file={name} rows={n} valid={v} duplicates={d} errors={e}
    file={name} policy={p} inserted={i} updated={u} failed={f} processed={i+u} elapsed_sec={s}
"""


def _format_seconds(elapsed: float) -> str:
    # Handle very small numbers and integer values without scientific notation
    if elapsed == 0:
        return "0"
    if elapsed == int(elapsed):
        return str(int(elapsed))
    if elapsed < 0.01:
        return f"{elapsed:.6f}".rstrip("0").rstrip(".")
    return f"{elapsed:.3f}".rstrip("0").rstrip(".")


def render_preview_line(file_name: str, outcome: ValidationOutcome) -> str:
    """Render the SUMMARY body of a preview.

    Examples:
        >>> from student_import.models.processing_result import ValidationOutcome
        >>> render_preview_line("siswa.xlsx", ValidationOutcome())
        'file=siswa.xlsx rows=0 valid=0 duplicates=0 errors=0'
    """
    return (
        f"file={file_name} "
        f"rows={outcome.total_rows} "
        f"valid={len(outcome.valid_students)} "
        f"duplicates={len(outcome.duplicates)} "
        f"errors={len(outcome.row_errors)}"
    )


def render_commit_line(file_name: str, result: CommitResult, elapsed_seconds: float) -> str:
    """Render the SUMMARY body of a commit."""
    return (
        f"file={file_name} "
        f"policy={result.policy.value} "
        f"inserted={result.inserted_count} "
        f"updated={result.updated_count} "
        f"failed={len(result.failures)} "
        f"processed={result.processed_count} "
        f"elapsed_sec={_format_seconds(elapsed_seconds)}"
    )
