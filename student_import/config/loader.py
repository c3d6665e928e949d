from __future__ import annotations

import json
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

from student_import.models.config_models import (
    DEFAULT_ALLOWED_EXTENSIONS,
    DEFAULT_EXPECTED_HEADERS,
    DEFAULT_MAX_FILE_SIZE_MB,
    DatabaseConfig,
    ImportConfig,
)

"""Config loader.

Responsibilities:
- Load YAML config/import.yml
- Validate against the packaged JSON schema (import_schema.json)
- Apply defaults for every omitted key (an empty file is a valid config)
"""

SCHEMA_PATH = Path(__file__).parent / "import_schema.json"
DEFAULT_CONFIG_PATH = Path("config/import.yml")


class ConfigError(Exception):
    pass


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against JSON schema.

    Raises:
        ConfigError: If the schema file is missing or not valid JSON, or the
            config data fails schema validation (unknown keys, wrong types).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")

    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path) -> ImportConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping, got {type(data).__name__}")

    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    db = DatabaseConfig(
        host=db_raw.get("host"),
        port=db_raw.get("port"),
        user=db_raw.get("user"),
        password=db_raw.get("password"),
        database=db_raw.get("database"),
        dsn=db_raw.get("dsn"),
    )
    extensions = data.get("allowed_extensions", DEFAULT_ALLOWED_EXTENSIONS)
    return ImportConfig(
        expected_headers=tuple(data.get("expected_headers", DEFAULT_EXPECTED_HEADERS)),
        allowed_extensions=tuple(e.lower() for e in extensions),
        max_file_size_mb=data.get("max_file_size_mb", DEFAULT_MAX_FILE_SIZE_MB),
        table=data.get("table", "students"),
        database=db,
    )
