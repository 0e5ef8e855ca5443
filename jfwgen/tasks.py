"""File maintenance tasks around the generated output.

clean_output         - delete and recreate the output folder
merge_sp_scripts     - concatenate sp/*.sql into sp/merged-stored-procedures.sql
copy_to_framework    - copy the output tree into the framework folder
fill_missing_headers - prepend the standard header to framework .cs files without one
"""

from __future__ import annotations

import datetime
import logging
import shutil
from pathlib import Path

from .config import GeneratorConfig
from .templating import GENERATED_SUFFIX, replace_template

logger = logging.getLogger(__name__)

MERGED_SP_FILE = "merged-stored-procedures.sql"

HEADER_TEMPLATE = """/*
* Description: This file...
* Author: {{AuthorFullName}}.
* History:
* - {{CreatedDate}}: Created - {{AuthorDevCode}}.
* - {{CurrentDate}}: Added the file header - {{AuthorDevCode}}.
*/

"""

_BOM = "\ufeff"


def clean_output(output_dir: Path) -> None:
    logger.info("Cleaning output folder %s", output_dir)
    if output_dir.exists():
        shutil.rmtree(output_dir)
    output_dir.mkdir(parents=True)
    logger.info("Output folder created")


def merge_sp_scripts(output_dir: Path) -> Path:
    """Merge every SQL script in sp/ (except a previous merge) into one file."""
    sp_dir = output_dir / "sp"
    if not sp_dir.is_dir():
        raise FileNotFoundError(f"No stored procedure scripts in {sp_dir} (run 'jfwgen generate' first)")

    scripts = sorted(p for p in sp_dir.glob("*.sql") if p.name != MERGED_SP_FILE)
    contents = [p.read_text(encoding="utf-8") for p in scripts]

    merged_path = sp_dir / MERGED_SP_FILE
    merged_path.write_text("\n".join(contents), encoding="utf-8")
    logger.info("Merged %d scripts into %s", len(scripts), merged_path)
    return merged_path


def is_hand_editable(path: Path) -> bool:
    """C# files without the .Generated suffix are meant to be edited by hand."""
    return path.suffix == ".cs" and not path.stem.endswith(GENERATED_SUFFIX)


def copy_to_framework(output_dir: Path, framework_dir: Path, preserve_custom: bool = False) -> tuple[int, int]:
    """Copy the output tree into the framework folder.

    With preserve_custom, hand-editable files that already exist in the
    framework are left alone. Returns (copied, skipped).
    """
    if not output_dir.is_dir():
        raise FileNotFoundError(f"Output folder not found: {output_dir}")

    logger.info("Copying files from %s to %s", output_dir, framework_dir)
    copied = skipped = 0
    for source in sorted(output_dir.rglob("*")):
        if not source.is_file():
            continue
        target = framework_dir / source.relative_to(output_dir)
        if preserve_custom and target.exists() and is_hand_editable(target):
            logger.debug("Keeping existing %s", target)
            skipped += 1
            continue
        target.parent.mkdir(parents=True, exist_ok=True)
        shutil.copyfile(source, target)
        logger.debug("Copied %s -> %s", source, target)
        copied += 1

    logger.info("Copied %d files, kept %d existing files", copied, skipped)
    return copied, skipped


def _created_date(path: Path) -> str:
    # st_birthtime is not available on every platform; fall back to the oldest timestamp
    stat = path.stat()
    timestamp = getattr(stat, "st_birthtime", None) or min(stat.st_mtime, stat.st_ctime)
    return datetime.datetime.fromtimestamp(timestamp, tz=datetime.timezone.utc).strftime("%Y-%m-%d")


def file_header(config: GeneratorConfig, created_date: str) -> str:
    return replace_template(HEADER_TEMPLATE, {
        "AuthorFullName": config.author.full_name,
        "AuthorDevCode": config.author.dev_code,
        "CreatedDate": created_date,
        "CurrentDate": config.current_date,
    })


def fill_missing_headers(root: Path, config: GeneratorConfig) -> list[Path]:
    """Prepend the file header to every .cs file under root that has no block comment."""
    if not root.is_dir():
        raise FileNotFoundError(f"Framework folder not found: {root}")

    updated = []
    for path in sorted(root.rglob("*.cs")):
        try:
            content = path.read_text(encoding="utf-8")
        except UnicodeDecodeError:
            logger.warning("Skipping %s: not a UTF-8 file", path)
            continue
        if "/*" in content:
            continue
        header = file_header(config, _created_date(path))
        path.write_text(header + content.removeprefix(_BOM), encoding="utf-8")
        logger.info("Writing file header to %s", path)
        updated.append(path)
    return updated
