# Shared pytest fixtures
from __future__ import annotations
import tempfile
from pathlib import Path

import pandas as pd
import pytest

from student_import.db.store import InMemoryStudentStore, StoreError
from student_import.logging.init import reset_logging
from student_import.models.student import StudentRecord

HEADER = ["NIS", "Nama Lengkap", "Kelas", "Jenis Kelamin"]


@pytest.fixture()
def temp_workdir(monkeypatch) -> Path:
    with tempfile.TemporaryDirectory() as d:
        p = Path(d)
        (p / "config").mkdir()
        (p / "data").mkdir()
        monkeypatch.chdir(p)
        yield p


@pytest.fixture(autouse=True)
def _clean_logging():
    reset_logging()
    yield
    reset_logging()


@pytest.fixture()
def sample_config_yaml() -> str:
    return """expected_headers: ["NIS", "Nama Lengkap", "Kelas", "Jenis Kelamin"]
allowed_extensions: [".xlsx", ".xls"]
max_file_size_mb: 5
table: students
database:
  host: localhost
  port: 5432
  user: appuser
  password: secret
  database: school
"""


@pytest.fixture()
def write_config(temp_workdir: Path, sample_config_yaml: str) -> Path:
    cfg = temp_workdir / "config" / "import.yml"
    cfg.write_text(sample_config_yaml, encoding="utf-8")
    return cfg


def _make_excel(directory: Path, name: str, rows: list[list[object]]) -> Path:
    """Write rows (header included) to the first sheet of a new workbook."""
    p = directory / name
    with pd.ExcelWriter(p, engine="openpyxl") as writer:
        pd.DataFrame(rows).to_excel(writer, sheet_name="Sheet1", header=False, index=False)
    return p


@pytest.fixture()
def make_excel(temp_workdir: Path):
    """Builder writing workbooks into the data/ directory of the temp workdir."""
    def build(name: str, rows: list[list[object]]) -> Path:
        return _make_excel(temp_workdir / "data", name, rows)
    return build


@pytest.fixture()
def existing_students() -> list[StudentRecord]:
    return [
        StudentRecord(id="1", student_id="11111", name="Rina Wati", class_name="7A", gender="Perempuan"),
        StudentRecord(id="2", student_id="22222", name="Joko Susilo", class_name="8B", gender="Laki-laki"),
        StudentRecord(
            id="3", student_id="33333", name="Lama Keluar", class_name="9A", gender="Laki-laki", is_active=False
        ),
    ]


@pytest.fixture()
def store(existing_students) -> InMemoryStudentStore:
    return InMemoryStudentStore(existing_students)


class RecordingStore(InMemoryStudentStore):
    """In-memory store that counts calls and can be told to fail."""

    def __init__(self, students=(), fail_update_ids=(), fail_bulk=False, fail_insert_nis=()):
        super().__init__(students)
        self.insert_calls: list[list[str]] = []
        self.update_calls: list[str] = []
        self.fail_update_ids = set(fail_update_ids)
        self.fail_bulk = fail_bulk
        self.fail_insert_nis = set(fail_insert_nis)

    def insert_students(self, rows):
        self.insert_calls.append([r.student_id for r in rows])
        if self.fail_bulk and len(rows) > 1:
            raise StoreError("bulk insert rejected")
        bad = self.fail_insert_nis.intersection(r.student_id for r in rows)
        if bad:
            raise StoreError(f"duplicate key value violates unique constraint: {sorted(bad)}")
        return super().insert_students(rows)

    def update_student(self, student_pk, *, name, class_name, gender):
        self.update_calls.append(student_pk)
        if student_pk in self.fail_update_ids:
            raise StoreError(f"update of {student_pk} rejected")
        super().update_student(student_pk, name=name, class_name=class_name, gender=gender)


@pytest.fixture()
def recording_store_cls():
    return RecordingStore
