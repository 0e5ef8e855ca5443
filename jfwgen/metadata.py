"""Reshape raw SQL Server extraction dumps into tables.json.

Input rows come from two queries run against the database:

- column info:    TableName, ColumnName, DataType, IsNullable, MaxLength, DefaultValue
- parameter info: ProcedureName, ParameterName, DataType, MaxLength, DefaultValue

Procedures are named asp_<Table>_<Kind> and are attached to <Table>.
"""

from __future__ import annotations

import json
import logging
from pathlib import Path
from typing import Any, Iterable

from .config import GeneratorConfig
from .loader import MetadataError
from .naming import camel_case, pascal_case, sql_type_with_length, to_dotnet_type, upper_first

logger = logging.getLogger(__name__)

COLUMN_INFO_FILE = "table-column-info.json"
PARAMETER_INFO_FILE = "procedure-parameter-info.json"

# Columns the framework manages itself
_READ_ONLY_COLUMNS = {"ID", "Is_System", "Modified_Date", "Created_Date"}

_FLAG_FIELDS = {
    "encrypted": "isEncrypted",
    "read_only": "isReadOnly",
    "protected": "isProtected",
}


def load_rows(path: Path) -> list[dict[str, Any]]:
    """Load a raw extraction dump (a JSON array of row objects)."""
    try:
        with open(path, encoding="utf-8") as f:
            rows = json.load(f)
    except FileNotFoundError as exc:
        raise MetadataError(f"Extraction dump not found: {path}") from exc
    except json.JSONDecodeError as exc:
        raise MetadataError(f"Invalid JSON in {path}: {exc}") from exc
    if not isinstance(rows, list):
        raise MetadataError(f"{path} must contain a JSON array of rows")
    return rows


def _bool_default(dotnet_type: str, value: str | None) -> str | None:
    if dotnet_type == "bool":
        if value == "0":
            return "false"
        if value == "1":
            return "true"
    return value


def _column_flags(config: GeneratorConfig, table_name: str, column_name: str) -> dict[str, bool]:
    flags = {
        "isEncrypted": False,
        "isReadOnly": column_name in _READ_ONLY_COLUMNS,
        "isProtected": False,
    }
    configured = (config.column_flags.get(table_name) or {}).get(column_name) or []
    for flag in configured:
        try:
            flags[_FLAG_FIELDS[flag]] = True
        except KeyError:
            logger.warning(
                "Unknown column flag '%s' on %s.%s (expected one of: %s)",
                flag, table_name, column_name, ", ".join(_FLAG_FIELDS),
            )
    return flags


def build_column(row: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    """Build one column record from a column info row."""
    try:
        table_name = row["TableName"]
        column_name = row["ColumnName"]
        data_type = row["DataType"]
    except KeyError as exc:
        raise MetadataError(f"Column row is missing {exc}: {row!r}") from exc

    is_nullable = bool(row.get("IsNullable"))
    dotnet_type = to_dotnet_type(data_type)
    default = row.get("DefaultValue")
    if default is not None:
        default = default.replace("(", "").replace(")", "")
    default = _bool_default(dotnet_type, default)

    if is_nullable and dotnet_type != "string":
        dotnet_type += "?"

    column = {
        "name": column_name,
        "nameCamel": camel_case(column_name),
        "namePascal": pascal_case(column_name),
        "dataTypeSql": data_type,
        "dataTypeSqlWithLength": sql_type_with_length(data_type, row.get("MaxLength")),
        "dataTypeDotNet": dotnet_type,
        "defaultValue": default,
        "isNullable": is_nullable,
    }
    column.update(_column_flags(config, table_name, column_name))
    return column


def build_parameter(row: dict[str, Any]) -> dict[str, Any]:
    """Build one procedure parameter record from a parameter info row."""
    data_type = row["DataType"]
    dotnet_type = to_dotnet_type(data_type)
    default = (row.get("DefaultValue") or "").replace("\r", "")
    default = _bool_default(dotnet_type, default)

    return {
        "name": row["ParameterName"],
        "nameCamel": camel_case(row["ParameterName"]),
        "namePascal": pascal_case(row["ParameterName"]),
        "dataTypeSql": data_type,
        "dataTypeSqlWithLength": sql_type_with_length(data_type, row.get("MaxLength")),
        "dataTypeDotNet": dotnet_type,
        "defaultValue": default,
        "isRequired": default == "",
    }


def build_tables(
    column_rows: Iterable[dict[str, Any]],
    parameter_rows: Iterable[dict[str, Any]],
    config: GeneratorConfig,
) -> dict[str, Any]:
    """Group column rows by table and attach each procedure's parameters."""
    tables: dict[str, Any] = {}

    for row in column_rows:
        column = build_column(row, config)
        tables.setdefault(row["TableName"], {"columns": []})["columns"].append(column)

    for row in parameter_rows:
        try:
            procedure_name = row["ProcedureName"]
        except KeyError as exc:
            raise MetadataError(f"Parameter row is missing {exc}: {row!r}") from exc

        parts = procedure_name.split("_")
        if len(parts) < 3:
            logger.warning("Procedure name does not follow asp_<Table>_<Kind>: %s", procedure_name)
            continue
        table_name, kind = parts[1], parts[2]

        if table_name not in tables:
            logger.error("Procedure name does not match table name - %s", table_name)
            continue

        procedures = tables[table_name].setdefault("procedures", {})
        procedure = procedures.setdefault(kind, {
            "key": table_name + upper_first(camel_case(kind)),
            "name": procedure_name,
            "nameWithSchema": f"[{config.table_schema}].[{procedure_name}]",
            "parameters": [],
        })
        procedure["parameters"].append(build_parameter(row))

    logger.info("Built metadata for %d tables", len(tables))
    return tables


def build_tables_from_dumps(data_dir: Path, config: GeneratorConfig) -> dict[str, Any]:
    """Build tables from the two raw dumps stored in data_dir."""
    return build_tables(
        load_rows(data_dir / COLUMN_INFO_FILE),
        load_rows(data_dir / PARAMETER_INFO_FILE),
        config,
    )
