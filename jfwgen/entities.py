"""Generate the Jfw.Models entity sources.

Per table:
  Entities/Interfaces/I<T>Entity.Generated.cs   - property contract
  Entities/Implements/<T>Entity.Generated.cs    - constants, parsing, SP parameters
  Entities/Implements/<T>Entity.cs              - properties and encrypted accessors
"""

from __future__ import annotations

import logging
from typing import Any

from .config import GeneratorConfig
from .loader import find_column, get_procedure, iter_tables
from .naming import csharp_literal, is_date_time, nullable
from .templating import GENERATED_SUFFIX, OutputFile, Renderer

logger = logging.getLogger(__name__)

MODELS_DIR = "Jfw.Models/Entities"

# Columns inherited from IBaseEntity
_BASE_COLUMNS = {"ID", "Modified_By", "Modified_Date", "Created_By", "Created_Date"}

# Columns whose C# type keeps its nullability in the implementation
_FIXED_TYPE_COLUMNS = {"ID", "Is_System", "Modified_Date", "Created_Date"}

# Encrypted columns stored case-insensitively
_LOWERCASE_COLUMNS = {"Username", "Email_Address"}

_PARTIAL_USINGS = [
    "System",
    "System.Collections.Generic",
    "System.Data",
    "Jfw.Models.Entities.Interfaces",
]


def interface_context(table_name: str, table: dict[str, Any]) -> dict[str, Any]:
    usings: list[str] = []
    inherited = [f"IBaseEntity<I{table_name}Entity>"]
    columns = []

    for column in table["columns"]:
        if column["name"] in _BASE_COLUMNS:
            continue
        if column["name"] == "Is_System":
            inherited.append("IHasIsSystem")
            continue
        if "System" not in usings and is_date_time(column["dataTypeDotNet"]):
            usings.append("System")

        columns.append({
            "name": column["name"],
            "pascal": column["namePascal"],
            "type": nullable(column["dataTypeDotNet"]),
            "encrypted": column["isEncrypted"],
        })

    return {
        "entity_name": table_name,
        "usings": usings,
        "inherited_interfaces": inherited,
        "columns": columns,
    }


def _parameter_default(column: dict[str, Any]) -> str:
    """Fallback appended to a parameter value: '', ' ?? <literal>' or ' ?? DBNull'."""
    default = column["defaultValue"]
    if column["name"] == "Is_System":
        return ""
    if not column["isNullable"] and default is None:
        return ""
    literal = csharp_literal(default) if default is not None else None
    if literal is not None:
        return f" ?? {literal}"
    # Expression defaults (newid, getutcdate) are left to the table
    return " ?? (object)DBNull.Value"


def _procedure_parameters(table_name: str, table: dict[str, Any], kind: str) -> list[dict[str, str]]:
    procedure = get_procedure(table, kind)
    if procedure is None:
        logger.warning("%s procedure for %s is not defined", kind, table_name)
        return []

    parameters = []
    for parameter in procedure["parameters"]:
        column = find_column(table, parameter["namePascal"])
        if column is None:
            logger.warning("Column %s not found in %s", parameter["namePascal"], table_name)
            continue
        prefix = "Encrypted" if column["isEncrypted"] else ""
        parameters.append({
            "pascal": parameter["namePascal"],
            "value": f"{prefix}{parameter['namePascal']}{_parameter_default(column)}",
        })
    return parameters


def partial_context(table_name: str, table: dict[str, Any]) -> dict[str, Any]:
    columns = table["columns"]
    return {
        "entity_name": table_name,
        "usings": list(_PARTIAL_USINGS),
        "constants": [
            {"name": c["name"], "pascal": c["namePascal"]}
            for c in columns
            if c["name"] != "ID"
        ],
        "parsings": [
            {"pascal": c["namePascal"], "type": c["dataTypeDotNet"], "encrypted": c["isEncrypted"]}
            for c in columns
        ],
        "insert_parameters": _procedure_parameters(table_name, table, "Insert"),
        "update_parameters": _procedure_parameters(table_name, table, "Update"),
    }


def implement_context(table_name: str, table: dict[str, Any]) -> dict[str, Any]:
    usings = ["Jfw.Models.Entities.Interfaces"]
    columns = []

    for column in table["columns"]:
        column_type = column["dataTypeDotNet"]
        to_lower = ""
        if column["name"] in _LOWERCASE_COLUMNS:
            to_lower = ".ToLower()"
        elif column["name"] not in _FIXED_TYPE_COLUMNS:
            column_type = nullable(column_type)

        if column["isEncrypted"] and "Jfw.Helpers" not in usings:
            usings.insert(0, "Jfw.Helpers")
        if "System" not in usings and is_date_time(column["dataTypeDotNet"]):
            usings.insert(0, "System")

        columns.append({
            "pascal": column["namePascal"],
            "camel": column["nameCamel"],
            "type": column_type,
            "encrypted": column["isEncrypted"],
            "to_lower": to_lower,
        })

    return {
        "entity_name": table_name,
        "usings": usings,
        "columns": columns,
        "encrypted_columns": [c for c in columns if c["encrypted"]],
    }


def generate_entities(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    """Render the three entity files for every selected table."""
    files = []
    for table_name in iter_tables(tables, config):
        table = tables[table_name]
        files.append(OutputFile(
            f"{MODELS_DIR}/Interfaces/I{table_name}Entity{GENERATED_SUFFIX}.cs",
            renderer.render("entities/interface.cs.j2", **interface_context(table_name, table)),
        ))
        files.append(OutputFile(
            f"{MODELS_DIR}/Implements/{table_name}Entity{GENERATED_SUFFIX}.cs",
            renderer.render("entities/partial.cs.j2", **partial_context(table_name, table)),
        ))
        files.append(OutputFile(
            f"{MODELS_DIR}/Implements/{table_name}Entity.cs",
            renderer.render("entities/implement.cs.j2", **implement_context(table_name, table)),
        ))
    return files
