from __future__ import annotations

from collections.abc import Iterable, Sequence
from dataclasses import dataclass
from typing import Any

"""DB batch insert.

New students of one import are written with a single
psycopg2.extras.execute_values statement. Transaction boundaries belong to the
caller (PostgresStudentStore commits or rolls back around this call).
"""

try:  # pragma: no cover - psycopg2 is only needed against a live database
    from psycopg2.extras import execute_values
except ImportError:  # pragma: no cover
    execute_values = None  # type: ignore


class BatchInsertError(Exception):
    pass


@dataclass(frozen=True)
class InsertResult:
    inserted_rows: int
    returned_values: list[tuple[Any, ...]] | None = None


def batch_insert(
    cursor: Any,
    table: str,
    columns: Sequence[str],
    rows: Iterable[Sequence[Any]],
    returning: bool = False,
    page_size: int = 1000,
) -> InsertResult:
    """Perform batched INSERT using psycopg2.extras.execute_values.

    Parameters
    ----------
    cursor: psycopg2 cursor
    table: target table (validated identifier from config)
    columns: insert columns
    rows: value rows, same order as columns
    returning: append RETURNING id and fetch the generated keys
    page_size: execute_values page size
    """
    if execute_values is None:
        raise BatchInsertError("psycopg2 not available")

    rows_list = list(rows)
    if not rows_list:
        return InsertResult(inserted_rows=0, returned_values=[] if returning else None)

    cols_sql = ",".join(f'"{c}"' for c in columns)
    base_sql = f"INSERT INTO {table} ({cols_sql}) VALUES %s"
    if returning:
        base_sql += " RETURNING id"

    try:
        execute_values(cursor, base_sql, rows_list, page_size=page_size)
    except Exception as e:
        raise BatchInsertError(str(e)) from e

    returned = None
    if returning:
        try:
            returned = cursor.fetchall()
        except Exception as e:  # pragma: no cover
            raise BatchInsertError(f"failed fetching RETURNING rows: {e}") from e

    return InsertResult(inserted_rows=len(rows_list), returned_values=returned)
