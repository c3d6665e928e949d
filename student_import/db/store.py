from __future__ import annotations

import itertools
import logging
from collections.abc import Sequence
from dataclasses import replace
from typing import Any, Protocol

from student_import.models.student import NewStudent, StudentRecord

from .batch_insert import BatchInsertError, batch_insert

"""Record store for students.

The import services only talk to the StudentStore protocol:

- list_active_students(): snapshot used for duplicate detection
- insert_students(rows): bulk insert, all or nothing per call
- update_student(pk, ...): overwrite name / class / gender of one record
- deactivate_student(pk): soft delete (is_active -> false)

Every failure surfaces as StoreError so callers can record it per item.
PostgresStudentStore is the production store; InMemoryStudentStore backs the
CLI mock mode and the tests.
"""

__all__ = [
    "StoreError",
    "StudentStore",
    "PostgresStudentStore",
    "InMemoryStudentStore",
    "INSERT_COLUMNS",
]

logger = logging.getLogger(__name__)

INSERT_COLUMNS = ("student_id", "name", "class_name", "gender", "is_active")


class StoreError(Exception):
    """A store operation failed; nothing from that operation was persisted."""


class StudentStore(Protocol):
    def list_active_students(self) -> list[StudentRecord]: ...

    def insert_students(self, rows: Sequence[NewStudent]) -> int: ...

    def update_student(self, student_pk: str, *, name: str, class_name: str, gender: str) -> None: ...

    def deactivate_student(self, student_pk: str) -> None: ...


class PostgresStudentStore:
    """StudentStore over a psycopg2 connection.

    Each public method is its own transaction: commit on success, rollback and
    StoreError on failure. A unique constraint on student_id is expected.
    """

    def __init__(self, conn: Any, table: str = "students") -> None:
        self._conn = conn
        self._table = table

    def _rollback(self) -> None:
        try:
            self._conn.rollback()
        except Exception as e:  # pragma: no cover
            logger.warning(f"rollback failed: {e}")

    def list_active_students(self) -> list[StudentRecord]:
        sql = (
            f"SELECT id, student_id, name, class_name, gender, is_active FROM {self._table} "
            "WHERE is_active = TRUE ORDER BY name"
        )
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql)
                rows = cur.fetchall()
        except Exception as e:
            self._rollback()
            raise StoreError(f"failed loading students: {e}") from e
        return [
            StudentRecord(
                id=str(r[0]),
                student_id=str(r[1]),
                name=r[2],
                class_name=r[3],
                gender=r[4],
                is_active=bool(r[5]),
            )
            for r in rows
        ]

    def insert_students(self, rows: Sequence[NewStudent]) -> int:
        if not rows:
            return 0
        try:
            with self._conn.cursor() as cur:
                result = batch_insert(cur, self._table, INSERT_COLUMNS, [r.as_tuple() for r in rows])
            self._conn.commit()
        except BatchInsertError as e:
            self._rollback()
            raise StoreError(str(e)) from e
        except Exception as e:
            self._rollback()
            raise StoreError(f"insert failed: {e}") from e
        return result.inserted_rows

    def update_student(self, student_pk: str, *, name: str, class_name: str, gender: str) -> None:
        sql = f"UPDATE {self._table} SET name = %s, class_name = %s, gender = %s WHERE id = %s"
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, (name, class_name, gender, student_pk))
                if cur.rowcount == 0:
                    raise StoreError(f"student {student_pk} not found")
            self._conn.commit()
        except StoreError:
            self._rollback()
            raise
        except Exception as e:
            self._rollback()
            raise StoreError(str(e)) from e

    def deactivate_student(self, student_pk: str) -> None:
        sql = f"UPDATE {self._table} SET is_active = FALSE WHERE id = %s"
        try:
            with self._conn.cursor() as cur:
                cur.execute(sql, (student_pk,))
                if cur.rowcount == 0:
                    raise StoreError(f"student {student_pk} not found")
            self._conn.commit()
        except StoreError:
            self._rollback()
            raise
        except Exception as e:
            self._rollback()
            raise StoreError(str(e)) from e


class InMemoryStudentStore:
    """Dict-backed StudentStore with the same unique-NIS rule as the table."""

    def __init__(self, students: Sequence[StudentRecord] = ()) -> None:
        self._students: dict[str, StudentRecord] = {s.id: s for s in students}
        self._ids = itertools.count(len(self._students) + 1)

    @property
    def students(self) -> list[StudentRecord]:
        """All records, inactive included."""
        return list(self._students.values())

    def list_active_students(self) -> list[StudentRecord]:
        return sorted((s for s in self._students.values() if s.is_active), key=lambda s: s.name)

    def insert_students(self, rows: Sequence[NewStudent]) -> int:
        taken = {s.student_id for s in self._students.values() if s.is_active}
        batch = [r.student_id for r in rows]
        clash = sorted(taken.intersection(batch) | {n for n in batch if batch.count(n) > 1})
        if clash:
            raise StoreError(f"duplicate key value violates unique constraint: student_id {clash}")
        for r in rows:
            pk = str(next(self._ids))
            self._students[pk] = StudentRecord(
                id=pk,
                student_id=r.student_id,
                name=r.name,
                class_name=r.class_name,
                gender=r.gender,
                is_active=r.is_active,
            )
        return len(rows)

    def update_student(self, student_pk: str, *, name: str, class_name: str, gender: str) -> None:
        current = self._students.get(student_pk)
        if current is None:
            raise StoreError(f"student {student_pk} not found")
        self._students[student_pk] = replace(current, name=name, class_name=class_name, gender=gender)

    def deactivate_student(self, student_pk: str) -> None:
        current = self._students.get(student_pk)
        if current is None:
            raise StoreError(f"student {student_pk} not found")
        self._students[student_pk] = replace(current, is_active=False)
