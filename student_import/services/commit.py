from __future__ import annotations

import logging

from ..db.store import StoreError, StudentStore
from ..logging.error_log import ErrorLogBuffer
from ..models.import_row import ImportRow
from ..models.processing_result import (
    INSERT_FAILED,
    UPDATE_FAILED,
    CommitFailure,
    CommitResult,
    ResolutionPolicy,
    ValidationOutcome,
)
from .progress import ProgressTracker

"""Commit of a previewed import.

Best-effort, not transactional: the bulk insert of new students and each
duplicate update are independent store operations. A failing operation is
recorded as a CommitFailure and the remaining operations still run. Nothing
is retried.

The store is not re-read here. If another writer inserted one of the NIS values
after the preview, the bulk insert fails on the unique constraint; rows are
then inserted one at a time so only the conflicting rows are reported.
Duplicate updates reuse the values validated during preview.
"""

__all__ = [
    "commit_import",
]

logger = logging.getLogger(__name__)


def _insert_rows(
    rows: list[ImportRow], store: StudentStore, failures: list[CommitFailure], progress: ProgressTracker
) -> int:
    if not rows:
        return 0
    try:
        inserted = store.insert_students([r.to_new_student() for r in rows])
        progress.advance(len(rows))
        return inserted
    except StoreError as e:
        logger.warning(f"bulk insert of {len(rows)} students failed, retrying row by row: {e}")

    inserted = 0
    for row in rows:
        try:
            inserted += store.insert_students([row.to_new_student()])
        except StoreError as e:
            logger.warning(f"insert failed for NIS {row.student_id} (row {row.row_number}): {e}")
            failures.append(
                CommitFailure(
                    target=row.student_id,
                    reason=str(e),
                    error_type=INSERT_FAILED,
                    row_number=row.row_number,
                )
            )
        progress.advance()
    return inserted


def commit_import(
    outcome: ValidationOutcome,
    policy: ResolutionPolicy | str,
    store: StudentStore,
    error_log: ErrorLogBuffer | None = None,
    file_name: str = "<import>",
) -> CommitResult:
    """Apply a validation outcome to the store.

    Args:
        outcome: preview produced by validate_import
        policy: "skip" ignores duplicates; "update" overwrites name, class and
            gender of each existing student with the incoming values
        store: record store
        error_log: optional buffer receiving one ErrorRecord per failure
        file_name: file name used in error records

    Returns:
        CommitResult with counts of operations that actually succeeded

    Raises:
        ValueError: unknown policy
    """
    policy = ResolutionPolicy(policy)
    failures: list[CommitFailure] = []
    updates = outcome.duplicates if policy is ResolutionPolicy.UPDATE else []

    total_ops = len(outcome.valid_students) + len(updates)
    with ProgressTracker(total_ops, description="Committing students") as progress:
        inserted = _insert_rows(list(outcome.valid_students), store, failures, progress)

        updated = 0
        for dup in updates:
            try:
                store.update_student(
                    dup.existing_id, name=dup.name, class_name=dup.class_name, gender=dup.gender
                )
                updated += 1
            except StoreError as e:
                logger.warning(f"update failed for NIS {dup.student_id} ({dup.existing_name}): {e}")
                failures.append(
                    CommitFailure(
                        target=dup.student_id,
                        reason=str(e),
                        error_type=UPDATE_FAILED,
                        row_number=dup.row_number,
                    )
                )
            progress.advance()
            progress.set_postfix(updated=updated, failed=len(failures))

    if error_log is not None:
        for failure in failures:
            error_log.add_failure(file_name, failure)

    result = CommitResult(
        policy=policy,
        inserted_count=inserted,
        updated_count=updated,
        failures=failures,
    )
    logger.info(
        f"commit policy={policy.value} inserted={inserted} updated={updated} failed={len(failures)}"
    )
    return result
