"""Entry point: python -m jfwgen <command>

  generate        render every enabled generator into the output folder
  build-metadata  reshape the raw extraction dumps into data/tables.json
  check           report metadata inconsistencies
  clean           delete and recreate the output folder
  merge-sp        merge the SQL scripts into sp/merged-stored-procedures.sql
  copy            copy the output folder into the framework folder
  fill-headers    add the file header to framework .cs files missing one
"""

from __future__ import annotations

import argparse
import logging
import sys

from .checkers import CHECKS, WARNING, run_checks
from .codegen import generate
from .config import ConfigError, GeneratorConfig, load_config
from .loader import MetadataError, dump_tables, load_tables
from .metadata import build_tables_from_dumps
from .tasks import clean_output, copy_to_framework, fill_missing_headers, merge_sp_scripts

logger = logging.getLogger("jfwgen")


def _generate(config: GeneratorConfig, args: argparse.Namespace) -> int:
    if args.clean:
        clean_output(config.output_dir)
    generate(load_tables(config.tables_path), config)
    return 0


def _build_metadata(config: GeneratorConfig, args: argparse.Namespace) -> int:
    tables = build_tables_from_dumps(config.data_dir, config)
    dump_tables(tables, config.tables_path)
    print(f"Wrote {len(tables)} tables to {config.tables_path}")
    return 0


def _check(config: GeneratorConfig, args: argparse.Namespace) -> int:
    findings = run_checks(load_tables(config.tables_path), config, args.only)
    for finding in findings:
        print(finding)
    warnings = sum(1 for f in findings if f.level == WARNING)
    print(f"{len(findings)} findings, {warnings} warnings")
    return 1 if args.strict and warnings else 0


def _clean(config: GeneratorConfig, args: argparse.Namespace) -> int:
    clean_output(config.output_dir)
    return 0


def _merge_sp(config: GeneratorConfig, args: argparse.Namespace) -> int:
    print(f"Merged stored procedures written to: {merge_sp_scripts(config.output_dir)}")
    return 0


def _copy(config: GeneratorConfig, args: argparse.Namespace) -> int:
    copied, skipped = copy_to_framework(config.output_dir, config.framework_dir, args.preserve_custom)
    print(f"Copied {copied} files to {config.framework_dir} ({skipped} kept)")
    return 0


def _fill_headers(config: GeneratorConfig, args: argparse.Namespace) -> int:
    updated = fill_missing_headers(config.framework_dir, config)
    print(f"Added headers to {len(updated)} files")
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog="jfwgen", description=__doc__.splitlines()[0])
    parser.add_argument("--config", help="Path to config.yaml (default: config/config.yaml)")
    parser.add_argument("-v", "--verbose", action="store_true", help="Enable debug logging")
    sub = parser.add_subparsers(dest="command", required=True)

    p = sub.add_parser("generate", help="Generate C# and SQL files into the output folder")
    p.add_argument("--clean", action="store_true", help="Clean the output folder first")
    p.set_defaults(func=_generate)

    p = sub.add_parser("build-metadata", help="Build data/tables.json from the raw extraction dumps")
    p.set_defaults(func=_build_metadata)

    p = sub.add_parser("check", help="Report metadata inconsistencies")
    p.add_argument("--only", action="append", choices=sorted(CHECKS), help="Run only this check (repeatable)")
    p.add_argument("--strict", action="store_true", help="Exit with status 1 when a warning is found")
    p.set_defaults(func=_check)

    p = sub.add_parser("clean", help="Delete and recreate the output folder")
    p.set_defaults(func=_clean)

    p = sub.add_parser("merge-sp", help="Merge the stored procedure scripts into one file")
    p.set_defaults(func=_merge_sp)

    p = sub.add_parser("copy", help="Copy the output folder into the framework folder")
    p.add_argument(
        "--preserve-custom", action="store_true",
        help="Keep hand-editable files that already exist in the framework",
    )
    p.set_defaults(func=_copy)

    p = sub.add_parser("fill-headers", help="Add the file header to framework .cs files missing one")
    p.set_defaults(func=_fill_headers)

    return parser


def main(argv: list[str] | None = None) -> int:
    args = build_parser().parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        config = load_config(args.config)
        return args.func(config, args)
    except (ConfigError, MetadataError, FileNotFoundError) as exc:
        logger.error("%s", exc)
        return 1


if __name__ == "__main__":
    sys.exit(main())
