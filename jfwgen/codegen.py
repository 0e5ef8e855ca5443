"""Run the enabled generators and write their output.

Each generator takes (tables, config, renderer) and returns OutputFile
records; nothing touches the disk until write_files.
"""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Iterable

from .access import generate_daos, generate_repositories
from .config import GeneratorConfig
from .core import generate_core_models, generate_entity_classes
from .entities import generate_entities
from .filters import generate_filters
from .procedures import generate_sp_constants, generate_sql_scripts
from .templating import OutputFile, Renderer

logger = logging.getLogger(__name__)

Generator = Callable[[dict[str, Any], GeneratorConfig, Renderer], list[OutputFile]]

# Toggle name -> generators, in run order
GENERATORS: dict[str, tuple[Generator, ...]] = {
    "entity_models": (generate_entities,),
    "filters": (generate_filters,),
    "repository": (generate_repositories,),
    "data_access": (generate_daos,),
    "core_models": (generate_core_models,),
    "entity_classes": (generate_entity_classes,),
    "stored_procedures": (generate_sql_scripts, generate_sp_constants),
}


def render_all(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer | None = None) -> list[OutputFile]:
    """Render every enabled generator's files without writing them."""
    renderer = renderer or Renderer(config)
    files: list[OutputFile] = []
    for toggle, generators in GENERATORS.items():
        if not config.enabled(toggle):
            logger.info("Skipping %s (disabled)", toggle)
            continue
        for generator in generators:
            produced = generator(tables, config, renderer)
            logger.debug("%s produced %d files", generator.__name__, len(produced))
            files.extend(produced)
    return files


def write_files(files: Iterable[OutputFile], output_dir: Path) -> int:
    count = 0
    for output in files:
        path = output_dir / output.path
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(output.content, encoding="utf-8")
        logger.debug("Wrote %s", path)
        count += 1
    return count


def generate(tables: dict[str, Any], config: GeneratorConfig, renderer: Renderer | None = None) -> int:
    """Render and write every enabled generator's output; returns the file count."""
    count = write_files(render_all(tables, config, renderer), config.output_dir)
    print(f"Generated {count} files in {config.output_dir}")
    return count
