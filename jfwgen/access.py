"""Generate the repository (Jfw.Repositories) and DAO (Jfw.DataAccess) layers.

Files without the .Generated suffix are hand-editable partials; they are
produced once and kept by the copy task when asked to.
"""

from __future__ import annotations

import logging
from typing import Any

from .config import GeneratorConfig
from .loader import get_procedure, iter_tables
from .templating import GENERATED_SUFFIX, OutputFile, Renderer

logger = logging.getLogger(__name__)

REPOSITORIES_DIR = "Jfw.Repositories"
DATA_ACCESS_DIR = "Jfw.DataAccess"

OPERATIONS = ("Insert", "Update", "Delete", "Get", "List", "View")


def access_context(table_name: str, table: dict[str, Any]) -> dict[str, Any]:
    """Operations backed by a stored procedure, with their constant keys."""
    operations = []
    keys = {}
    for kind in OPERATIONS:
        procedure = get_procedure(table, kind)
        if procedure is None:
            continue
        operations.append(kind)
        keys[kind] = procedure["key"]

    if not operations:
        logger.warning("%s has no stored procedures, data access will be empty", table_name)

    return {"entity_name": table_name, "operations": operations, "keys": keys}


def generate_repositories(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    files = []
    for table_name in iter_tables(tables, config):
        context = access_context(table_name, tables[table_name])
        files.extend([
            OutputFile(
                f"{REPOSITORIES_DIR}/Interfaces/I{table_name}Repository.cs",
                renderer.render("access/repository_interface.cs.j2", **context),
            ),
            OutputFile(
                f"{REPOSITORIES_DIR}/Implements/{table_name}Repository{GENERATED_SUFFIX}.cs",
                renderer.render("access/repository_generated.cs.j2", **context),
            ),
            OutputFile(
                f"{REPOSITORIES_DIR}/Implements/{table_name}Repository.cs",
                renderer.render("access/repository_implement.cs.j2", **context),
            ),
        ])
    return files


def generate_daos(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer) -> list[OutputFile]:
    files = []
    for table_name in iter_tables(tables, config):
        context = access_context(table_name, tables[table_name])
        files.extend([
            OutputFile(
                f"{DATA_ACCESS_DIR}/Interfaces/I{table_name}Dao.cs",
                renderer.render("access/dao_interface.cs.j2", **context),
            ),
            OutputFile(
                f"{DATA_ACCESS_DIR}/Implements/{table_name}Dao.cs",
                renderer.render("access/dao_implement.cs.j2", **context),
            ),
            OutputFile(
                f"{DATA_ACCESS_DIR}/Implements/{table_name}Dao{GENERATED_SUFFIX}.cs",
                renderer.render("access/dao_generated.cs.j2", **context),
            ),
        ])
    return files
