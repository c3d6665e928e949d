from __future__ import annotations

import json

from student_import.models.error_record import ErrorRecord

"""Unit tests for the ErrorRecord model."""


def test_error_record_creation_and_json_line():
    rec = ErrorRecord.create(
        file="siswa.xlsx",
        row=4,
        error_type="ROW_VALIDATION",
        message='Jenis kelamin harus "Laki-laki" atau "Perempuan"',
    )
    data = json.loads(rec.to_json_line())
    assert data["file"] == "siswa.xlsx"
    assert data["row"] == 4
    assert data["error_type"] == "ROW_VALIDATION"
    assert data["message"] == 'Jenis kelamin harus "Laki-laki" atau "Perempuan"'
    assert data["timestamp"].endswith("Z")
    assert set(data.keys()) == {"timestamp", "file", "row", "error_type", "message"}


def test_error_record_row_minus_one_support():
    """row=-1 marks a file-level error."""
    rec = ErrorRecord.create(
        file="data.csv",
        row=-1,
        error_type="FILE_REJECTED",
        message="File harus berformat Excel (.xlsx atau .xls)",
    )
    assert rec.row == -1
    assert json.loads(rec.to_json_line())["row"] == -1


def test_error_record_keeps_non_ascii():
    rec = ErrorRecord.create("daftar_siswa_é.xlsx", 2, "ROW_VALIDATION", "Nama kosong")
    assert "daftar_siswa_é.xlsx" in rec.to_json_line()
