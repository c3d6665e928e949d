from __future__ import annotations

import pytest

from student_import.logging.error_log import ErrorLogBuffer
from student_import.models.processing_result import (
    INSERT_FAILED,
    UPDATE_FAILED,
    ResolutionPolicy,
)
from student_import.services.commit import commit_import
from student_import.services.validator import validate_import

HEADER = ["NIS", "Nama Lengkap", "Kelas", "Jenis Kelamin"]


@pytest.fixture()
def outcome(existing_students):
    rows = [
        HEADER,
        ["12345", "Ahmad Rizki", "7A", "L"],
        ["12346", "Siti Nurhaliza", "7B", "P"],
        ["11111", "Rina Wati Baru", "8C", "P"],
        ["22222", "Joko Susilo", "9A", "L"],
        ["bad", "", "", ""],
    ]
    return validate_import(rows, existing_students)


def test_skip_inserts_valid_only(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students)
    result = commit_import(outcome, "skip", store)

    assert result.policy is ResolutionPolicy.SKIP
    assert result.inserted_count == len(outcome.valid_students) == 2
    assert result.updated_count == 0
    assert result.failures == []
    assert result.processed_count == 2
    assert store.insert_calls == [["12345", "12346"]]
    assert store.update_calls == []
    # untouched duplicate
    rina = next(s for s in store.students if s.student_id == "11111")
    assert rina.name == "Rina Wati"


def test_update_overwrites_duplicates(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students)
    result = commit_import(outcome, ResolutionPolicy.UPDATE, store)

    assert result.inserted_count == 2
    assert result.updated_count == len(outcome.duplicates) == 2
    assert store.update_calls == ["1", "2"]
    rina = next(s for s in store.students if s.student_id == "11111")
    assert (rina.name, rina.class_name, rina.gender) == ("Rina Wati Baru", "8C", "Perempuan")
    assert result.processed_count == 4


def test_failed_update_does_not_block_others(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students, fail_update_ids={"1"})
    result = commit_import(outcome, "update", store)

    assert len(store.update_calls) == len(outcome.duplicates)
    assert result.inserted_count == 2
    assert result.updated_count == 1
    assert len(result.failures) == 1
    failure = result.failures[0]
    assert failure.target == "11111"
    assert failure.error_type == UPDATE_FAILED
    assert "rejected" in failure.reason
    joko = next(s for s in store.students if s.student_id == "22222")
    assert joko.class_name == "9A"


def test_bulk_insert_conflict_falls_back_to_single_rows(outcome, existing_students, recording_store_cls):
    # another writer inserted 12346 between preview and commit
    store = recording_store_cls(existing_students, fail_insert_nis={"12346"})
    result = commit_import(outcome, "update", store)

    assert store.insert_calls == [["12345", "12346"], ["12345"], ["12346"]]
    assert result.inserted_count == 1
    assert result.updated_count == 2
    assert [(f.target, f.error_type) for f in result.failures] == [("12346", INSERT_FAILED)]


def test_insert_failure_does_not_block_updates(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students, fail_insert_nis={"12345", "12346"})
    result = commit_import(outcome, "update", store)
    assert result.inserted_count == 0
    assert result.updated_count == 2
    assert len(result.failures) == 2


def test_empty_outcome_commits_nothing(recording_store_cls):
    store = recording_store_cls()
    result = commit_import(validate_import([HEADER], []), "update", store)
    assert result.processed_count == 0
    assert store.insert_calls == []
    assert store.update_calls == []


def test_unknown_policy_raises(outcome, store):
    with pytest.raises(ValueError):
        commit_import(outcome, "merge", store)


def test_failures_are_written_to_error_log(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students, fail_update_ids={"2"})
    buf = ErrorLogBuffer()
    commit_import(outcome, "update", store, error_log=buf, file_name="siswa.xlsx")
    records = buf.records
    assert len(records) == 1
    assert records[0].file == "siswa.xlsx"
    assert records[0].row == 5
    assert records[0].error_type == UPDATE_FAILED
    assert records[0].message.startswith("22222:")


def test_insert_failure_logged_at_its_row(outcome, existing_students, recording_store_cls):
    store = recording_store_cls(existing_students, fail_insert_nis={"12346"})
    buf = ErrorLogBuffer()
    result = commit_import(outcome, "skip", store, error_log=buf, file_name="siswa.xlsx")
    assert [(f.target, f.row_number) for f in result.failures] == [("12346", 3)]
    assert [(r.row, r.error_type) for r in buf.records] == [(3, INSERT_FAILED)]
    assert buf.records[0].message.startswith("12346:")
