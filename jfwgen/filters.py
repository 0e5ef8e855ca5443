"""Generate Jfw.Models/Filters/<T>Filter.Generated.cs.

A filter exposes one property per filterable column of the table (and of
its configured child tables) and turns the properties that are set into
the parameters of the List/View stored procedures.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import GeneratorConfig
from .loader import get_columns, iter_tables
from .naming import is_date_time, nullable
from .templating import GENERATED_SUFFIX, OutputFile, Renderer

logger = logging.getLogger(__name__)

FILTERS_DIR = "Jfw.Models/Filters"

DEFAULT_USINGS = ["System.Collections.Generic", "Jfw.Models.Filters.Interfaces"]

# Audit columns are filtered by the common List parameters
_SKIPPED_COLUMNS = {"ID", "Created_By", "Created_Date", "Modified_By", "Modified_Date"}

_FLAG_INTERFACES = {
    "Is_Default": "IHasDefaultFilter",
    "Is_System": "IHasSystemFilter",
}

# Encrypted values are stored lower-cased for these columns
_LOWERCASE_COLUMNS = {"Username", "Email_Address"}


class _FilterBuilder:
    """Accumulates the template context of one filter class."""

    def __init__(self, table_name: str) -> None:
        self.table_name = table_name
        self.usings: list[str] = []
        self.inherited = ["IFilter"]
        self.seen: set[str] = set()
        self.column_names: list[str] = []
        self.parameter_names: list[str] = []
        self.properties: list[dict[str, Any]] = []
        self.conditions: list[dict[str, Any]] = []
        self.list_setters: list[dict[str, str]] = []

    def _use(self, *namespaces: str) -> None:
        for namespace in namespaces:
            if namespace not in self.usings:
                self.usings.append(namespace)

    def add_custom_parameter(self, parameter: dict[str, Any]) -> None:
        name = parameter["name"]
        if name in self.seen:
            return
        self.seen.add(name)

        property_type = parameter.get("property_type") or "string"
        if is_date_time(property_type):
            self._use("System")

        self.column_names.append(name)
        self.parameter_names.append(name)
        self.properties.append({
            "name": name,
            "pascal": parameter["property_name"],
            "type": property_type,
            "date_range": False,
            "list": False,
        })
        self.conditions.append({
            "name": name,
            "pascal": parameter["property_name"],
            "kind": "string" if property_type == "string" else "other",
            "to_lower": "",
        })

    def add_column(self, column: dict[str, Any], is_child: bool = False) -> None:
        name = column["name"]
        if name in _SKIPPED_COLUMNS:
            return
        if is_child and name == f"{self.table_name}_ID":
            return
        if name in self.seen:
            logger.debug("Skipping duplicate filter column %s on %s", name, self.table_name)
            return
        self.seen.add(name)

        pascal = column["namePascal"]
        dotnet_type = column["dataTypeDotNet"]
        in_interface = True
        is_list = False

        if name in _FLAG_INTERFACES:
            if _FLAG_INTERFACES[name] not in self.inherited:
                self.inherited.append(_FLAG_INTERFACES[name])
            in_interface = False
        elif name == "UID" or "_ID" in name:
            dotnet_type = "string"
            is_list = True
            self.list_setters.append({
                "pascal": pascal,
                "element": "Guid" if name == "UID" else "long",
            })
            if name == "UID":
                self._use("System")

        date_range = is_date_time(dotnet_type)
        if date_range:
            self._use("System", "System.Data.SqlTypes")

        self.column_names.append(name)
        if date_range:
            self.parameter_names.extend([f"{name}_From", f"{name}_To"])
        else:
            self.parameter_names.append(name)

        if in_interface:
            self.properties.append({
                "name": name,
                "pascal": pascal,
                "type": nullable(dotnet_type),
                "date_range": date_range,
                "list": is_list,
            })

        if column["isEncrypted"]:
            self._use("Jfw.Helpers")
            kind = "encrypted"
        elif date_range:
            kind = "date"
        elif dotnet_type == "string":
            kind = "string"
        else:
            kind = "other"

        self.conditions.append({
            "name": name,
            "pascal": pascal,
            "kind": kind,
            "to_lower": ".ToLower()" if name in _LOWERCASE_COLUMNS else "",
        })

    def context(self) -> dict[str, Any]:
        return {
            "entity_name": self.table_name,
            "usings": self.usings + [u for u in DEFAULT_USINGS if u not in self.usings],
            "inherited_interfaces": self.inherited,
            "column_names": self.column_names,
            "parameter_names": self.parameter_names,
            "properties": self.properties,
            "conditions": self.conditions,
            "list_setters": self.list_setters,
            "has_date_range": any(c["kind"] == "date" for c in self.conditions),
        }


def filter_context(table_name: str, tables: dict[str, Any], config: GeneratorConfig) -> dict[str, Any]:
    """Custom parameters first, then the table's columns, then its child tables' columns."""
    builder = _FilterBuilder(table_name)

    for parameter in config.custom_parameters(table_name):
        builder.add_custom_parameter(parameter)
    for column in get_columns(tables, table_name):
        builder.add_column(column)
    for child in config.child_tables(table_name):
        for column in get_columns(tables, child):
            builder.add_column(column, is_child=True)

    return builder.context()


def generate_filters(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    return [
        OutputFile(
            f"{FILTERS_DIR}/{table_name}Filter{GENERATED_SUFFIX}.cs",
            renderer.render("filters/filter.cs.j2", **filter_context(table_name, tables, config)),
        )
        for table_name in iter_tables(tables, config)
    ]
