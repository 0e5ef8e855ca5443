"""Generate the stored-procedure SQL scripts and their C# constants.

One script file per procedure kind under sp/, each holding the script of
every selected table separated by a blank line. The procedure constants
and their XML documentation are written to Jfw.Models.
"""

from __future__ import annotations

import logging
import textwrap
import xml.etree.ElementTree as ET
from typing import Any

from .config import GeneratorConfig
from .loader import get_columns, iter_tables
from .naming import is_date_time, is_sql_literal
from .templating import GENERATED_SUFFIX, OutputFile, Renderer, replace_template

logger = logging.getLogger(__name__)

SP_DIR = "sp"
CONSTANTS_PATH = f"Jfw.Models/StoredProcedureConstants{GENERATED_SUFFIX}.cs"
XML_PATH = "Jfw.Models/StoredProcedures.xml"

PROCEDURE_SUMMARY = "This maps to the stored procedure with the same name of the value."

SCRIPT_KINDS = ("insert", "update", "delete", "get", "list", "view")

# Maintained by the procedures themselves
_WRITE_SKIPPED_COLUMNS = {"ID", "UID", "Modified_By", "Modified_Date", "Created_By", "Created_Date"}

# Filtered by the common List/View parameters
_AUDIT_COLUMNS = {"Modified_By", "Modified_Date", "Created_By", "Created_Date"}

_INSERT_ZERO_DEFAULTS = {"Is_Default", "Is_System"}

_BIT_DEFAULTS = {"false": "0", "true": "1"}

LIST_VARCHAR = "VARCHAR(MAX)"


def _sql_default(column: dict[str, Any]) -> str:
    """' = <default>', ' = NULL' for nullable columns, or '' when required."""
    default = column["defaultValue"]
    if default is not None and default != "":
        default = _BIT_DEFAULTS.get(default, default)
        if is_sql_literal(default):
            return f" = {default}"
        # Expressions such as getutcdate are evaluated by the table default
        return " = NULL"
    return " = NULL" if column["isNullable"] else ""


def write_parameters(columns: list[dict[str, Any]], insert: bool = False) -> list[dict[str, str]]:
    parameters = []
    for column in columns:
        name = column["name"]
        if name in _WRITE_SKIPPED_COLUMNS:
            continue
        if insert and name in _INSERT_ZERO_DEFAULTS:
            default = " = 0"
        else:
            default = _sql_default(column)
        parameters.append({
            "name": name,
            "type": column["dataTypeSqlWithLength"].upper(),
            "default": default,
        })
    return parameters


def custom_criteria(config: GeneratorConfig, filter_criteria: str) -> str:
    """Configured SQL fragment with the schema filled in, indented into the body."""
    text = replace_template(filter_criteria.strip("\n"), {"schema": config.table_schema})
    return textwrap.indent(text, "    ")


class _SearchBuilder:
    """Parameters and filter criteria of a List or View procedure."""

    def __init__(self, config: GeneratorConfig) -> None:
        self.config = config
        self.parameters: list[dict[str, str]] = []
        self.criterias: list[dict[str, str]] = []
        self._names: set[str] = set()

    def _add_parameter(self, name: str, data_type: str) -> None:
        if name in self._names:
            return
        self._names.add(name)
        self.parameters.append({"name": name, "type": data_type})

    def add_custom(self, parameter: dict[str, Any]) -> None:
        # Custom criteria run before the column criteria, in declaration order
        if parameter["name"] in self._names:
            logger.warning("Custom parameter %s is declared twice", parameter["name"])
            return
        self._add_parameter(parameter["name"], parameter["type"])
        self.criterias.append({
            "kind": "custom",
            "text": custom_criteria(self.config, parameter.get("filter_criteria") or ""),
        })

    def add_column(self, column: dict[str, Any], alias: str = "") -> None:
        name = column["name"]
        if name in self._names or f"{name}_From" in self._names:
            logger.debug("Skipping duplicate search column %s", name)
            return

        if name in ("ID", "UID") or "_ID" in name:
            self._add_parameter(name, LIST_VARCHAR)
            kind = "list"
        elif is_date_time(column["dataTypeDotNet"]):
            data_type = column["dataTypeSqlWithLength"].upper()
            self._add_parameter(f"{name}_From", data_type)
            self._add_parameter(f"{name}_To", data_type)
            kind = "date_range"
        else:
            self._add_parameter(name, column["dataTypeSqlWithLength"].upper())
            kind = "plain"

        self.criterias.append({"kind": kind, "name": name, "alias": alias})


def list_context(table_name: str, tables: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    builder = _SearchBuilder(config)
    for parameter in config.custom_parameters(table_name):
        builder.add_custom(parameter)
    for column in get_columns(tables, table_name):
        if column["name"] not in _AUDIT_COLUMNS:
            builder.add_column(column)
    return {
        "entity_name": table_name,
        "parameters": builder.parameters,
        "filter_criterias": builder.criterias,
    }


def view_context(table_name: str, tables: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    """View procedure: the table joined with its child tables under their aliases."""
    entity_alias = config.alias(table_name, table_name)
    if not entity_alias:
        logger.warning("No alias configured for %s, using the table name", table_name)
        entity_alias = table_name

    builder = _SearchBuilder(config)
    for parameter in config.custom_parameters(table_name):
        builder.add_custom(parameter)
    for column in get_columns(tables, table_name):
        if column["name"] not in _AUDIT_COLUMNS:
            builder.add_column(column, entity_alias)

    children = []
    for child in config.child_tables(table_name):
        child_alias = config.alias(table_name, child)
        children.append({"name": child, "alias": child_alias})
        for column in get_columns(tables, child):
            name = column["name"]
            if name in _AUDIT_COLUMNS or name in ("ID", "UID", f"{table_name}_ID"):
                continue
            builder.add_column(column, child_alias)

    precondition = config.custom(table_name).get("precondition") or ""
    if precondition:
        precondition = custom_criteria(config, precondition)

    return {
        "entity_name": table_name,
        "entity_alias": entity_alias,
        "precondition": precondition,
        "parameters": builder.parameters,
        "filter_criterias": builder.criterias,
        "children": children,
    }


def delete_mode(table_name: str, config: GeneratorConfig) -> str:
    if table_name in config.soft_delete_tables:
        return "by_status"
    if config.is_child_table(table_name):
        return "commented"
    return "default"


def script_for(kind: str, table_name: str, tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> str:
    """Render one table's script of the given kind."""
    template = f"sp/{kind}.sql.j2"
    if kind == "insert":
        columns = get_columns(tables, table_name)
        return renderer.render(template, entity_name=table_name, parameters=write_parameters(columns, insert=True))
    if kind == "update":
        columns = get_columns(tables, table_name)
        return renderer.render(template, entity_name=table_name, parameters=write_parameters(columns))
    if kind == "delete":
        return renderer.render(template, entity_name=table_name, mode=delete_mode(table_name, config))
    if kind == "get":
        return renderer.render(template, entity_name=table_name)
    if kind == "list":
        return renderer.render(template, **list_context(table_name, tables, config))
    if kind == "view":
        return renderer.render(template, **view_context(table_name, tables, config))
    raise ValueError(f"Unknown stored procedure kind: {kind}")


def generate_sql_scripts(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    files = []
    table_names = list(iter_tables(tables, config))
    for kind in SCRIPT_KINDS:
        selected = table_names
        if kind == "view":
            selected = [t for t in table_names if t in config.view_tables]
        scripts = [script_for(kind, t, tables, config, renderer) for t in selected]
        if not scripts:
            logger.info("No tables selected for %s procedures", kind)
            continue
        files.append(OutputFile(f"{SP_DIR}/{kind}-stored-procedures.sql", "\n\n".join(scripts)))
    return files


def procedure_constants(tables: dict[str, Any], config: GeneratorConfig) -> list[dict[str, Any]]:
    """Every procedure of the selected tables, in metadata order."""
    procedures = []
    for table_name in iter_tables(tables, config):
        table_procedures = tables[table_name].get("procedures") or {}
        if not table_procedures:
            logger.info("No stored procedures found for %s", table_name)
            continue
        for procedure in table_procedures.values():
            procedures.append({
                "key": procedure["key"],
                "name": procedure["nameWithSchema"],
                "parameters": procedure.get("parameters") or [],
            })
    return procedures


def procedures_xml(procedures: list[dict[str, Any]]) -> str:
    """XML documentation included by the constants' <include> tags."""
    root = ET.Element("root")
    for procedure in procedures:
        node = ET.SubElement(root, "procedure", key=procedure["key"])
        summary = ET.SubElement(node, "summary")
        summary.text = PROCEDURE_SUMMARY
        items = ET.SubElement(summary, "list", type="number")
        for parameter in procedure["parameters"]:
            item = ET.SubElement(items, "item")
            term = parameter["name"] + ("*" if parameter.get("isRequired") else "")
            ET.SubElement(item, "term").text = term
            ET.SubElement(item, "description").text = parameter["dataTypeSqlWithLength"]

    ET.indent(ET.ElementTree(root), space="  ")
    return '<?xml version="1.0" encoding="UTF-8"?>\n' + ET.tostring(root, encoding="unicode") + "\n"


def generate_sp_constants(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    procedures = procedure_constants(tables, config)
    return [
        OutputFile(CONSTANTS_PATH, renderer.render("sp/constants.cs.j2", procedures=procedures)),
        OutputFile(XML_PATH, procedures_xml(procedures)),
    ]
