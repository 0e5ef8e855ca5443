"""Generate the Jfw.Core entity-class sources.

- EntityClasses/Interfaces/IEntityClassInterfaces.Generated.cs
- EntityClasses/Interfaces/Models/I<T>Model.Generated.cs
- EntityClasses/<folder>/<T><suffix>.cs scaffolding (hand-editable)
- EntityClasses/<folder>/<T>.Properties[.<ChildSuffix>].cs
"""

from __future__ import annotations

import logging
from typing import Any

from .config import GeneratorConfig
from .loader import get_columns, iter_tables
from .naming import indefinite_article, is_date_time, nullable
from .templating import GENERATED_SUFFIX, OutputFile, Renderer

logger = logging.getLogger(__name__)

CORE_DIR = "Jfw.Core/EntityClasses"

# Output suffix -> template
SCAFFOLD_TEMPLATES = {
    "": "core/entity_class.cs.j2",
    ".Constants": "core/constants.cs.j2",
    ".Exceptions": "core/exceptions.cs.j2",
    ".Errors": "core/errors.cs.j2",
    ".Overrides": "core/overrides.cs.j2",
    ".Validations": "core/validations.cs.j2",
    ".UnitTest": "core/unit_test.cs.j2",
}

PROPERTIES_USINGS = [
    "System",
    "Jfw.Core.EntityClasses.Interfaces",
    "Jfw.Models.Entities.Implements",
    "Jfw.Models.Entities.Interfaces",
    "Jfw.Repositories.Interfaces",
]

_CHILD_DROPPED_USINGS = {"Jfw.Core.EntityClasses.Interfaces", "Jfw.Repositories.Interfaces"}

# Columns whose C# type is used as declared
_FIXED_TYPE_COLUMNS = {"Is_System", "Modified_Date", "Created_Date"}

# Audit columns propagated from a parent to its attached child entities
_PROPAGATED_COLUMNS = {"Modified_By", "Created_By"}


def class_folder(config: GeneratorConfig, table_name: str) -> str:
    """EntityClasses sub-folder of a table ('' keeps it at the root)."""
    folder = config.table_paths.get(table_name, "").strip("/")
    return f"{CORE_DIR}/{folder}" if folder else CORE_DIR


def core_suffixes(config: GeneratorConfig) -> list[str]:
    """Scaffolding suffixes selected by the include/exclude lists."""
    suffixes = []
    for suffix in SCAFFOLD_TEMPLATES:
        if config.included_core_suffixes and suffix not in config.included_core_suffixes:
            continue
        if suffix in config.excluded_core_suffixes:
            continue
        suffixes.append(suffix)
    return suffixes


def _property_type(column: dict[str, Any]) -> str:
    if column["name"] in _FIXED_TYPE_COLUMNS:
        return column["dataTypeDotNet"]
    return nullable(column["dataTypeDotNet"])


def model_interface_context(table_name: str, tables: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    ignored = {"ID"}
    if config.is_child_table(table_name):
        ignored.update(config.sp_child_tables[table_name].get("ignored_columns") or [])

    usings: list[str] = []
    columns = []
    for column in get_columns(tables, table_name):
        if column["name"] in ignored:
            continue
        if "System" not in usings and is_date_time(column["dataTypeDotNet"]):
            usings.append("System")
        columns.append({
            "name": column["name"],
            "pascal": column["namePascal"],
            "type": _property_type(column),
            "settable": not column["isReadOnly"],
            "encrypted": column["isEncrypted"],
        })

    return {
        "entity_name": table_name,
        "usings": usings,
        "inherited_interfaces": [f"I{child}Model" for child in config.child_tables(table_name)],
        "columns": columns,
    }


def _accessors(column: dict[str, Any], source: str) -> tuple[dict[str, Any], list[dict[str, str]]]:
    """Property and obsolete accessor methods for one attached column."""
    pascal = column["namePascal"]
    column_type = _property_type(column)
    prop = {"pascal": pascal, "type": column_type, "source": source}

    if column["isEncrypted"]:
        return {**prop, "kind": "encrypted"}, [{"kind": "get_encrypted", "pascal": pascal, "type": column_type}]
    if column["isProtected"]:
        return {**prop, "kind": "protected"}, []
    if column["isReadOnly"]:
        return {**prop, "kind": "read_only"}, [{"kind": "get", "pascal": pascal, "type": column_type}]
    return {**prop, "kind": "full"}, [
        {"kind": "get", "pascal": pascal, "type": column_type},
        {"kind": "set", "pascal": pascal, "type": column_type},
    ]


def properties_context(table_name: str, tables: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    """Attached properties of a parent (non-child) entity class."""
    children = config.child_tables(table_name)
    properties = []
    methods = []

    for column in get_columns(tables, table_name):
        name = column["name"]
        if name == "ID":
            if children:
                properties.append({
                    "kind": "extended_id",
                    "extra_setters": [f"Attached{child}Entity.{table_name}Id" for child in children],
                })
            continue

        prop, accessors = _accessors(column, "AttachedEntity")
        if children and name in _PROPAGATED_COLUMNS:
            prop = {
                **prop,
                "kind": "extended",
                "extra_setters": [f"Attached{child}Entity.{column['namePascal']}" for child in children],
            }
        properties.append(prop)
        methods.extend(accessors)

    return {
        "entity_name": table_name,
        "parent_name": "",
        "usings": list(PROPERTIES_USINGS),
        "properties": properties,
        "methods": methods,
    }


def child_properties_context(
    parent_name: str, child_name: str, tables: dict[str, Any], config: GeneratorConfig
) -> dict[str, Any]:
    """Properties a parent entity class exposes from one attached child entity."""
    ignored = {"ID"}
    ignored.update((config.sp_child_tables.get(child_name) or {}).get("ignored_columns") or [])

    properties = []
    methods = []
    for column in get_columns(tables, child_name):
        if column["name"] in ignored:
            continue
        prop, accessors = _accessors(column, f"Attached{child_name}Entity")
        properties.append(prop)
        methods.extend(accessors)

    return {
        "entity_name": child_name,
        "parent_name": parent_name,
        "usings": [u for u in PROPERTIES_USINGS if u not in _CHILD_DROPPED_USINGS],
        "properties": properties,
        "methods": methods,
    }


def child_suffix(config: GeneratorConfig, parent_name: str, child_name: str) -> str:
    suffix = (config.sp_child_tables.get(child_name) or {}).get("suffix")
    if suffix:
        return suffix
    logger.warning("No suffix configured for child table %s, deriving it from the name", child_name)
    return child_name[len(parent_name):] if child_name.startswith(parent_name) else child_name


def generate_core_models(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    """Entity-class interface list and one model interface per table."""
    table_names = list(iter_tables(tables, config))
    files = [OutputFile(
        f"{CORE_DIR}/Interfaces/IEntityClassInterfaces{GENERATED_SUFFIX}.cs",
        renderer.render("core/entity_class_interfaces.cs.j2", entity_names=table_names),
    )]
    for table_name in table_names:
        files.append(OutputFile(
            f"{CORE_DIR}/Interfaces/Models/I{table_name}Model{GENERATED_SUFFIX}.cs",
            renderer.render("core/model_interface.cs.j2", **model_interface_context(table_name, tables, config)),
        ))
    return files


def generate_entity_classes(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    """Scaffolding and attached-property files for every entity class."""
    suffixes = core_suffixes(config)
    files = []

    for table_name in iter_tables(tables, config):
        folder = class_folder(config, table_name)
        for suffix in suffixes:
            files.append(OutputFile(
                f"{folder}/{table_name}{suffix}.cs",
                renderer.render(
                    SCAFFOLD_TEMPLATES[suffix],
                    entity_name=table_name,
                    article=indefinite_article(table_name),
                ),
            ))

        if config.is_child_table(table_name):
            continue

        files.append(OutputFile(
            f"{folder}/{table_name}.Properties.cs",
            renderer.render("core/properties.cs.j2", **properties_context(table_name, tables, config)),
        ))
        for child in config.child_tables(table_name):
            files.append(OutputFile(
                f"{folder}/{table_name}.Properties.{child_suffix(config, table_name, child)}.cs",
                renderer.render("core/properties.cs.j2", **child_properties_context(table_name, child, tables, config)),
            ))

    return files
