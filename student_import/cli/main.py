from __future__ import annotations

import argparse
import os
import sys
import time
from collections.abc import Iterator
from contextlib import contextmanager
from pathlib import Path
from typing import Any

import psycopg2
from dotenv import load_dotenv

from student_import.config.loader import DEFAULT_CONFIG_PATH, ConfigError, load_config
from student_import.db.store import InMemoryStudentStore, PostgresStudentStore, StoreError, StudentStore
from student_import.excel.reader import FileRejectedError
from student_import.excel.template import write_template
from student_import.logging.error_log import ErrorLogBuffer
from student_import.logging.init import log_summary, setup_logging
from student_import.models.config_models import ImportConfig
from student_import.models.processing_result import ResolutionPolicy, ValidationOutcome
from student_import.services.session import ImportSession
from student_import.services.summary import render_commit_line, render_preview_line
from student_import.services.validator import ImportHeaderError

"""CLI entrypoint.

Commands:
- preview FILE                       validate a file and print the three buckets
- commit FILE --policy skip|update   validate then write to the store
- template OUT                       write the import template workbook

Exit codes: 0 everything accepted, 1 fatal (config, file, header, database),
2 completed but some rows were rejected or some store operations failed.
"""

EXIT_SUCCESS_ALL = 0
EXIT_FATAL = 1
EXIT_PARTIAL_FAILURE = 2


@contextmanager
def _db_connection(cfg: ImportConfig) -> Iterator[Any]:  # pragma: no cover (thin wrapper)
    """Provide a psycopg2 connection.

    Resolution order:
        1. DATABASE_URL / PGDSN (full DSN), then config database.dsn
        2. PGHOST / PGPORT / PGUSER / PGPASSWORD / PGDATABASE
        3. config/import.yml database section for whatever is still missing
    """
    db_cfg = cfg.database
    dsn = os.getenv("DATABASE_URL") or os.getenv("PGDSN") or db_cfg.dsn
    if not dsn:
        host = os.getenv("PGHOST", db_cfg.host or "localhost")
        port = os.getenv("PGPORT", str(db_cfg.port) if db_cfg.port else "5432")
        user = os.getenv("PGUSER", db_cfg.user or "postgres")
        password = os.getenv("PGPASSWORD", db_cfg.password or "")
        database = os.getenv("PGDATABASE", db_cfg.database or "postgres")
        dsn = f"host={host} port={port} user={user} dbname={database}"
        if password:
            dsn += f" password={password}"

    conn = psycopg2.connect(dsn)
    conn.autocommit = False  # the store commits per operation
    try:
        yield conn
    finally:
        conn.close()


def _load_env_file(path: Path, override: bool = True) -> None:
    """Load .env using python-dotenv; .env values win over the environment."""
    if path.exists():
        load_dotenv(dotenv_path=path, override=override)


def _parse_args(argv: list[str]) -> argparse.Namespace:
    p = argparse.ArgumentParser(prog="student-import", description="Student spreadsheet importer")
    p.add_argument("--debug", action="store_true", help="Enable debug logging")
    p.add_argument("--config", type=Path, default=DEFAULT_CONFIG_PATH, help="Path to import.yml")
    sub = p.add_subparsers(dest="command", required=True)

    prev = sub.add_parser("preview", help="Validate a file without writing anything")
    prev.add_argument("file", type=Path)

    com = sub.add_parser("commit", help="Validate a file and write it to the store")
    com.add_argument("file", type=Path)
    com.add_argument(
        "--policy",
        choices=[p.value for p in ResolutionPolicy],
        default=ResolutionPolicy.SKIP.value,
        help="skip: leave existing students untouched; update: overwrite them",
    )

    tpl = sub.add_parser("template", help="Write the import template workbook")
    tpl.add_argument("output", type=Path)
    tpl.add_argument("--no-instructions", action="store_true", help="Omit the filling instructions")
    return p.parse_args(argv)


def _print_outcome(logger: Any, outcome: ValidationOutcome) -> None:
    for row in outcome.valid_students:
        logger.info(f"valid row={row.row_number} nis={row.student_id} name={row.name} "
                    f"class={row.class_name} gender={row.gender}")
    for dup in outcome.duplicates:
        logger.warning(f"duplicate row={dup.row_number} nis={dup.student_id} name={dup.name} "
                       f"existing={dup.existing_name}")
    for line in outcome.errors:
        logger.error(line)


def _run(args: argparse.Namespace, cfg: ImportConfig, store: StudentStore, logger: Any) -> int:
    error_log = ErrorLogBuffer()
    session = ImportSession(store, cfg, error_log=error_log)
    try:
        outcome = session.preview(args.file)
    except (FileRejectedError, ImportHeaderError) as e:
        logger.error(f"import: {e}")
        if len(error_log):
            error_log.flush()
        return EXIT_FATAL
    except StoreError as e:
        logger.error(f"store: {e}")
        return EXIT_FATAL

    _print_outcome(logger, outcome)
    log_summary(render_preview_line(args.file.name, outcome))

    if args.command == "preview":
        session.cancel()
        code = EXIT_PARTIAL_FAILURE if outcome.has_errors else EXIT_SUCCESS_ALL
    else:
        started = time.monotonic()
        result = session.commit(args.policy)
        elapsed = time.monotonic() - started
        for failure in result.failures:
            logger.error(f"{failure.error_type.lower()}: nis={failure.target} {failure.reason}")
        log_summary(render_commit_line(args.file.name, result, elapsed))
        partial = result.has_failures or outcome.has_errors
        code = EXIT_PARTIAL_FAILURE if partial else EXIT_SUCCESS_ALL

    if len(error_log):
        path = error_log.flush()
        logger.info(f"error log written to {path}")
    return code


def main(argv: list[str] | None = None) -> int:
    logger = setup_logging()

    # None only: an explicit [] must not pick up pytest's own arguments
    if argv is None:
        argv = sys.argv[1:]
    args = _parse_args(argv)

    if args.debug:
        for h in logger.handlers:
            h.setLevel("DEBUG")
        logger.setLevel("DEBUG")
        logger.debug("debug mode enabled")

    if args.command == "template":
        path = write_template(args.output, include_instructions=not args.no_instructions)
        logger.info(f"template written to {path}")
        return EXIT_SUCCESS_ALL

    _load_env_file(Path(".env"), override=True)
    try:
        cfg = load_config(args.config)
    except ConfigError as e:
        logger.error(f"config: {e}")
        return EXIT_FATAL

    # DISABLE_DB_CONNECT=1: in-memory store, nothing is persisted
    if os.getenv("DISABLE_DB_CONNECT") == "1":
        logger.debug("DB connect disabled via DISABLE_DB_CONNECT=1 -> mock mode")
        return _run(args, cfg, InMemoryStudentStore(), logger)

    try:
        with _db_connection(cfg) as conn:
            logger.info("mode=live")
            return _run(args, cfg, PostgresStudentStore(conn, cfg.table), logger)
    except psycopg2.Error as e:
        if args.command == "commit":
            logger.error(f"database: {e}")
            return EXIT_FATAL
        logger.info(f"DB connection failed -> preview against an empty store: {e}")
        return _run(args, cfg, InMemoryStudentStore(), logger)
