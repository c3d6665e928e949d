from __future__ import annotations

import json
import pathlib

import jsonschema
import pytest

from student_import.logging.error_log import ErrorLogBuffer
from student_import.models.error_record import ErrorRecord
from student_import.services.session import ImportSession
from student_import.services.validator import ImportHeaderError

"""Error log JSON schema contract test."""

SCHEMA_PATH = pathlib.Path(__file__).parent / "error_log_schema.json"


@pytest.fixture(scope="module")
def schema() -> dict:
    return json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))


def test_error_log_schema_valid_example(schema):
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "siswa.xlsx",
        "row": 2,
        "error_type": "ROW_VALIDATION",
        "message": "NIS kosong, Nama kosong",
    }
    jsonschema.validate(record, schema)


def test_error_log_schema_rejects_extra_key(schema):
    record = {
        "timestamp": "2025-09-26T10:12:33Z",
        "file": "siswa.xlsx",
        "row": 2,
        "error_type": "ROW_VALIDATION",
        "message": "NIS kosong",
        "sheet": "Sheet1",
    }
    with pytest.raises(jsonschema.exceptions.ValidationError):
        jsonschema.validate(record, schema)


def test_created_record_matches_schema(schema):
    rec = ErrorRecord.create("siswa.xlsx", -1, "UPDATE_FAILED", "11111: student 1 not found")
    jsonschema.validate(json.loads(rec.to_json_line()), schema)


def test_flushed_file_matches_schema(schema, store, make_excel, temp_workdir):
    rows = [
        ["NIS", "Nama Lengkap", "Kelas", "Jenis Kelamin"],
        ["12345", "Ahmad Rizki", "7A", "L"],
        ["12AB", "Budi", "8A", "X"],
        ["12345", "Ahmad Lagi", "7A", "L"],
    ]
    buf = ErrorLogBuffer()
    ImportSession(store, error_log=buf).preview(make_excel("siswa.xlsx", rows))
    bad = make_excel("bad.xlsx", [["ID", "Nama", "Kelas", "JK"]])
    with pytest.raises(ImportHeaderError):
        ImportSession(store, error_log=buf).preview(bad)

    lines = buf.flush().read_text(encoding="utf-8").splitlines()
    assert len(lines) == 3
    for raw in lines:
        jsonschema.validate(json.loads(raw), schema)
