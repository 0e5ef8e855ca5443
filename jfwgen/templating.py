"""Template rendering for generated C# and SQL files.

File templates live in templates/ and are rendered with Jinja2. Short
snippets kept in configuration (custom SQL filter criteria, file headers)
use plain {{key}} substitution through replace_template.
"""

from __future__ import annotations

from pathlib import Path
from typing import Any, Iterable, Mapping, NamedTuple

import jinja2

from .config import GeneratorConfig

TEMPLATE_DIR = Path(__file__).parent / "templates"

# Suffix of files that are always overwritten by the generator
GENERATED_SUFFIX = ".Generated"


class OutputFile(NamedTuple):
    """A generated file, path relative to the output folder."""

    path: str
    content: str


def replace_template(template: str, replacements: Mapping[str, Any], replace_tab: bool = True) -> str:
    """Replace every {{key}} in template with its value.

    Placeholders without a replacement are left untouched.
    """
    if not isinstance(template, str):
        raise TypeError("The template must be a string")

    result = template
    for key, value in replacements.items():
        result = result.replace("{{" + key + "}}", str(value))

    if replace_tab:
        result = result.replace("\t", "    ")
    return result


def using_block(usings: Iterable[str]) -> str:
    """Render C# using directives followed by a blank line."""
    usings = list(usings)
    if not usings:
        return ""
    return "".join(f"using {u};\n" for u in usings) + "\n"


def inheritance_clause(interfaces: Iterable[str]) -> str:
    """Render ' : IFoo, IBar' for a class or interface declaration."""
    interfaces = list(interfaces)
    if not interfaces:
        return ""
    return " : " + ", ".join(interfaces)


def create_environment(template_dir: Path | None = None) -> jinja2.Environment:
    env = jinja2.Environment(
        loader=jinja2.FileSystemLoader(str(template_dir or TEMPLATE_DIR)),
        keep_trailing_newline=True,
        trim_blocks=True,
        lstrip_blocks=True,
        undefined=jinja2.StrictUndefined,
    )
    env.filters["using_block"] = using_block
    env.filters["inheritance"] = inheritance_clause
    return env


class Renderer:
    """Renders templates with the author, date and schema globals set."""

    def __init__(self, config: GeneratorConfig, template_dir: Path | None = None) -> None:
        self.env = create_environment(template_dir)
        self.env.globals.update(
            schema=config.table_schema,
            author=config.author.login,
            author_full_name=config.author.full_name,
            author_dev_code=config.author.dev_code,
            current_date=config.current_date,
        )

    def render(self, template_name: str, **context: Any) -> str:
        output = self.env.get_template(template_name).render(**context)
        return output.replace("\t", "    ")
