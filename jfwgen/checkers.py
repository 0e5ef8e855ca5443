"""Consistency checks over tables.json.

The checks only report; nothing is modified. Each returns a list of
Finding records which the CLI prints and logs.
"""

from __future__ import annotations

import logging
from typing import Any, Callable, NamedTuple

from .config import GeneratorConfig
from .loader import iter_tables
from .naming import is_date_time

logger = logging.getLogger(__name__)

INFO = "info"
WARNING = "warning"

# Paging and sorting parameters of the List procedures
LIST_PAGING_PARAMETERS = ("@Limit", "@Page_Size", "@Page_Number", "@Sort_Data_Field", "@Sort_Order")


class Finding(NamedTuple):
    table: str
    subject: str
    message: str
    level: str = WARNING

    def __str__(self) -> str:
        return f"[{self.level.upper()}] {self.table} - {self.subject}: {self.message}"


def _column_report(table_name: str, table: dict[str, Any], names: tuple[str, ...]) -> list[Finding]:
    findings = []
    for column in table["columns"]:
        if column["name"] in names:
            findings.append(Finding(
                table_name,
                column["name"],
                f"Data Type: {column['dataTypeDotNet']}; Default Value: {column['defaultValue']}",
                INFO,
            ))
    return findings


def check_audit_dates(tables: dict[str, Any], config: GeneratorConfig) -> list[Finding]:
    """Report the type and default of Modified_Date and Created_Date."""
    findings = []
    for table_name in iter_tables(tables, config):
        findings.extend(_column_report(table_name, tables[table_name], ("Modified_Date", "Created_Date")))
    return findings


def check_system_flags(tables: dict[str, Any], config: GeneratorConfig) -> list[Finding]:
    """Report the type and default of Is_System and Is_Default."""
    findings = []
    for table_name in iter_tables(tables, config):
        findings.extend(_column_report(table_name, tables[table_name], ("Is_System", "Is_Default")))
    return findings


def expected_parameter_count(
    kind: str, table_name: str, columns: list[dict[str, Any]], config: GeneratorConfig
) -> int | None:
    """Number of parameters a procedure should declare, or None if not checked."""
    if kind in ("Get", "Delete"):
        return 1

    if kind == "Insert":
        return sum(1 for c in columns if not (c["isReadOnly"] and not c["isProtected"]))

    if kind == "Update":
        return sum(
            1 for c in columns
            if c["name"] == "ID" or not (c["isReadOnly"] or c["name"] == "Created_By")
        )

    if kind == "List":
        expected = sum(1 for c in columns if c["name"] != "ID")
        # DateTime columns are filtered by a _From/_To pair
        expected += sum(1 for c in columns if is_date_time(c["dataTypeDotNet"]))
        expected += len(LIST_PAGING_PARAMETERS)
        expected += int((config.checks.get("list_extra_parameters") or {}).get(table_name, 0))
        return expected

    return None


def check_procedure_parameters(tables: dict[str, Any], config: GeneratorConfig) -> list[Finding]:
    """Compare procedure parameter counts and types with the table columns."""
    findings = []
    for table_name in iter_tables(tables, config):
        table = tables[table_name]
        columns = table["columns"]
        procedures = table.get("procedures")
        if not procedures:
            findings.append(Finding(table_name, "procedures", "Table does not have procedures", INFO))
            continue

        by_pascal = {c["namePascal"]: c for c in columns}
        for kind, procedure in procedures.items():
            parameters = procedure["parameters"]
            subject = f"{kind} - {procedure['nameWithSchema']}"

            expected = expected_parameter_count(kind, table_name, columns, config)
            if kind in ("Get", "Delete") and len(parameters) != 1:
                findings.append(Finding(table_name, subject, "Should have only one parameter - the id"))
            elif expected is not None and len(parameters) != expected:
                findings.append(Finding(
                    table_name, subject, f"Should have {expected} parameters - {len(parameters)}",
                ))

            for parameter in parameters:
                if parameter["name"] in LIST_PAGING_PARAMETERS:
                    continue
                column = by_pascal.get(parameter["namePascal"])
                if column is None:
                    continue
                if column["dataTypeSql"] != parameter["dataTypeSql"]:
                    findings.append(Finding(
                        table_name,
                        kind,
                        f"Parameter {parameter['name']} {parameter['dataTypeSql']} "
                        f"does not match column {column['name']} {column['dataTypeSql']}",
                    ))
    return findings


CHECKS: dict[str, Callable[[dict[str, Any], GeneratorConfig], list[Finding]]] = {
    "audit-dates": check_audit_dates,
    "system-flags": check_system_flags,
    "procedure-parameters": check_procedure_parameters,
}


def run_checks(tables: dict[str, Any], config: GeneratorConfig, names: list[str] | None = None) -> list[Finding]:
    findings = []
    for name in names or list(CHECKS):
        results = CHECKS[name](tables, config)
        warnings = sum(1 for f in results if f.level == WARNING)
        logger.info("Check %s: %d findings, %d warnings", name, len(results), warnings)
        findings.extend(results)
    return findings
