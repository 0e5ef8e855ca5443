"""Load and save the table metadata (data/tables.json).

Each table entry looks like::

    "User": {
      "columns": [{"name": "Brand_ID", "namePascal": "BrandId", ...}],
      "procedures": {"Insert": {"key": "UserInsert", "parameters": [...]}}
    }
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any, Iterator

from .config import GeneratorConfig


class MetadataError(ValueError):
    """Raised when table metadata is missing or malformed."""


def load_tables(path: Path) -> dict[str, Any]:
    """Load tables.json from disk."""
    try:
        with open(path, encoding="utf-8") as f:
            tables = json.load(f)
    except FileNotFoundError as exc:
        raise MetadataError(f"Table metadata not found: {path} (run 'jfwgen build-metadata' first)") from exc
    except json.JSONDecodeError as exc:
        raise MetadataError(f"Invalid JSON in {path}: {exc}") from exc

    if not isinstance(tables, dict):
        raise MetadataError(f"{path} must contain an object keyed by table name")
    for table_name, table in tables.items():
        if not isinstance(table, dict) or not isinstance(table.get("columns"), list):
            raise MetadataError(f"Table '{table_name}' has no 'columns' list")
    return tables


def dump_tables(tables: dict[str, Any], path: Path) -> None:
    """Write tables.json with every object key sorted."""
    path.parent.mkdir(parents=True, exist_ok=True)
    path.write_text(json.dumps(tables, indent=2, sort_keys=True), encoding="utf-8")


def iter_tables(tables: dict[str, Any], config: GeneratorConfig) -> Iterator[str]:
    """Yield table names that pass the include/exclude lists, in file order."""
    for table_name in tables:
        if config.included_entities and table_name not in config.included_entities:
            continue
        if table_name in config.excluded_entities:
            continue
        yield table_name


def get_columns(tables: dict[str, Any], table_name: str) -> list[dict[str, Any]]:
    """Return a table's columns; a missing table is a metadata error."""
    try:
        return tables[table_name]["columns"]
    except KeyError as exc:
        raise MetadataError(f"Table '{table_name}' is referenced but not present in tables.json") from exc


def get_procedure(table: dict[str, Any], kind: str) -> dict[str, Any] | None:
    """Return the Insert/Update/... procedure of a table, if it has one."""
    return (table.get("procedures") or {}).get(kind)


def find_column(table: dict[str, Any], name_pascal: str) -> dict[str, Any] | None:
    for column in table["columns"]:
        if column["namePascal"] == name_pascal:
            return column
    return None
