"""Load generator configuration.

Precedence: ENV > config/config.local.yaml > config/config.yaml
"""

from __future__ import annotations

import datetime
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import yaml

ROOT_DIR = Path(__file__).parent.parent
CONFIG_PATH = ROOT_DIR / "config" / "config.yaml"

# Environment variable -> (section, key); section None means top level
_ENV_OVERRIDES: dict[str, tuple[str | None, str]] = {
    "JFW_TABLE_SCHEMA": (None, "table_schema"),
    "JFW_DATA_DIR": ("paths", "data_dir"),
    "JFW_OUTPUT_DIR": ("paths", "output_dir"),
    "JFW_FRAMEWORK_DIR": ("paths", "framework_dir"),
}

_TOGGLES = (
    "entity_models",
    "filters",
    "repository",
    "data_access",
    "core_models",
    "entity_classes",
    "stored_procedures",
)


class ConfigError(ValueError):
    """Raised when the configuration is missing or malformed."""


@dataclass
class Author:
    login: str = "jin.jackson"
    full_name: str = "Jin Jackson"
    dev_code: str = "dev22"


@dataclass
class GeneratorConfig:
    table_schema: str = "JFW"
    author: Author = field(default_factory=Author)
    current_date: str = ""
    data_dir: Path = ROOT_DIR / "data"
    output_dir: Path = ROOT_DIR / "output"
    framework_dir: Path = ROOT_DIR.parent / "jframework" / "Framework"
    included_entities: list[str] = field(default_factory=list)
    excluded_entities: list[str] = field(default_factory=lambda: ["LOG4NET"])
    included_core_suffixes: list[str] = field(default_factory=list)
    excluded_core_suffixes: list[str] = field(default_factory=list)
    toggles: dict[str, bool] = field(default_factory=lambda: dict.fromkeys(_TOGGLES, True))
    table_paths: dict[str, str] = field(default_factory=dict)
    column_flags: dict[str, dict[str, list[str]]] = field(default_factory=dict)
    soft_delete_tables: list[str] = field(default_factory=list)
    view_tables: list[str] = field(default_factory=list)
    sp_custom: dict[str, dict[str, Any]] = field(default_factory=dict)
    sp_child_tables: dict[str, dict[str, Any]] = field(default_factory=dict)
    checks: dict[str, Any] = field(default_factory=dict)

    def __post_init__(self) -> None:
        if not self.current_date:
            self.current_date = datetime.datetime.now(datetime.timezone.utc).strftime("%Y-%m-%d")

    @property
    def tables_path(self) -> Path:
        return self.data_dir / "tables.json"

    def enabled(self, toggle: str) -> bool:
        return bool(self.toggles.get(toggle, False))

    def custom(self, table_name: str) -> dict[str, Any]:
        """Return the stored-procedure customization of a table (empty if none)."""
        return self.sp_custom.get(table_name) or {}

    def child_tables(self, table_name: str) -> list[str]:
        return list(self.custom(table_name).get("child_tables") or [])

    def custom_parameters(self, table_name: str) -> list[dict[str, Any]]:
        """Custom List/View parameters of a table, in declaration order."""
        return list((self.custom(table_name).get("custom_parameters") or {}).values())

    def alias(self, table_name: str, name: str) -> str:
        """Alias of a table (or one of its child tables) inside the View procedure."""
        return (self.custom(table_name).get("alias") or {}).get(name, "")

    def is_child_table(self, table_name: str) -> bool:
        return table_name in self.sp_child_tables


def _deep_merge(a: dict, b: dict) -> dict:
    """Deep merge b into a (b wins)."""
    result = dict(a)
    for key, val in b.items():
        if isinstance(val, dict) and isinstance(result.get(key), dict):
            result[key] = _deep_merge(result[key], val)
        else:
            result[key] = val
    return result


def _load_yaml(path: Path) -> dict:
    if not path.exists():
        return {}
    try:
        with open(path, encoding="utf-8") as f:
            data = yaml.safe_load(f)
    except yaml.YAMLError as exc:
        raise ConfigError(f"Invalid YAML in {path}: {exc}") from exc
    if data is None:
        return {}
    if not isinstance(data, dict):
        raise ConfigError(f"{path} must contain a mapping at the top level")
    return data


def _apply_env_overrides(raw: dict) -> None:
    for env_name, (section, key) in _ENV_OVERRIDES.items():
        value = os.environ.get(env_name)
        if value is None:
            continue
        if section is None:
            raw[key] = value
        else:
            raw.setdefault(section, {})[key] = value


def _resolve_dir(value: Any, base: Path, default: Path) -> Path:
    if not value:
        return default
    path = Path(value)
    return path if path.is_absolute() else base / path


def _as_list(raw: dict, key: str) -> list[str]:
    value = raw.get(key) or []
    if not isinstance(value, list):
        raise ConfigError(f"'{key}' must be a list, got {type(value).__name__}")
    return [str(v) for v in value]


def _as_dict(raw: dict, key: str) -> dict:
    value = raw.get(key) or {}
    if not isinstance(value, dict):
        raise ConfigError(f"'{key}' must be a mapping, got {type(value).__name__}")
    return value


_CUSTOM_PARAMETER_KEYS = ("name", "type", "property_name")


def _check_sp_custom(sp_custom: dict) -> dict[str, dict[str, Any]]:
    """Validate sp_custom so generators can index it without guarding."""
    checked = {}
    for table_name, custom in sp_custom.items():
        custom = custom or {}
        where = f"sp_custom.{table_name}"
        if not isinstance(custom, dict):
            raise ConfigError(f"{where} must be a mapping, got {type(custom).__name__}")
        alias = _as_dict(custom, "alias")
        child_tables = _as_list(custom, "child_tables")
        for child in child_tables:
            if child not in alias:
                raise ConfigError(f"{where}: child table '{child}' has no alias")

        parameters = custom.get("custom_parameters") or {}
        if not isinstance(parameters, dict):
            raise ConfigError(f"{where}.custom_parameters must be a mapping keyed by parameter id")
        for parameter_id, parameter in parameters.items():
            if not isinstance(parameter, dict):
                raise ConfigError(f"{where}.custom_parameters.{parameter_id} must be a mapping")
            for key in _CUSTOM_PARAMETER_KEYS:
                if not isinstance(parameter.get(key), str) or not parameter[key]:
                    raise ConfigError(f"{where}.custom_parameters.{parameter_id}: '{key}' is required")

        checked[table_name] = {**custom, "alias": alias, "child_tables": child_tables}
    return checked


def from_dict(raw: dict[str, Any], base_dir: Path = ROOT_DIR) -> GeneratorConfig:
    """Build a GeneratorConfig from an already merged raw mapping."""
    defaults = GeneratorConfig()
    paths = _as_dict(raw, "paths")
    author = _as_dict(raw, "author")

    toggles = dict.fromkeys(_TOGGLES, True)
    for name, value in _as_dict(raw, "toggles").items():
        if name not in toggles:
            raise ConfigError(f"Unknown toggle '{name}' (expected one of: {', '.join(_TOGGLES)})")
        toggles[name] = bool(value)

    sp_custom = _check_sp_custom(_as_dict(raw, "sp_custom"))
    sp_child_tables = {}
    for table_name, child in _as_dict(raw, "sp_child_tables").items():
        if child is not None and not isinstance(child, dict):
            raise ConfigError(f"sp_child_tables.{table_name} must be a mapping")
        sp_child_tables[table_name] = child or {}

    current_date = raw.get("current_date")
    if isinstance(current_date, datetime.date):
        current_date = current_date.strftime("%Y-%m-%d")

    return GeneratorConfig(
        table_schema=str(raw.get("table_schema") or defaults.table_schema),
        author=Author(
            login=str(author.get("login", defaults.author.login)),
            full_name=str(author.get("full_name", defaults.author.full_name)),
            dev_code=str(author.get("dev_code", defaults.author.dev_code)),
        ),
        current_date=str(current_date or ""),
        data_dir=_resolve_dir(paths.get("data_dir"), base_dir, defaults.data_dir),
        output_dir=_resolve_dir(paths.get("output_dir"), base_dir, defaults.output_dir),
        framework_dir=_resolve_dir(paths.get("framework_dir"), base_dir, defaults.framework_dir),
        included_entities=_as_list(raw, "included_entities"),
        excluded_entities=_as_list(raw, "excluded_entities"),
        included_core_suffixes=_as_list(raw, "included_core_suffixes"),
        excluded_core_suffixes=_as_list(raw, "excluded_core_suffixes"),
        toggles=toggles,
        table_paths={str(k): str(v or "") for k, v in _as_dict(raw, "table_paths").items()},
        column_flags=_as_dict(raw, "column_flags"),
        soft_delete_tables=_as_list(raw, "soft_delete_tables"),
        view_tables=_as_list(raw, "view_tables"),
        sp_custom=sp_custom,
        sp_child_tables=sp_child_tables,
        checks=_as_dict(raw, "checks"),
    )


def load_config(path: Path | None = None) -> GeneratorConfig:
    """Load config.yaml, merge config.local.yaml beside it, then apply env overrides."""
    config_file = Path(path) if path else CONFIG_PATH
    if path and not config_file.exists():
        raise ConfigError(f"Config file not found: {config_file}")

    raw = _load_yaml(config_file)
    local_file = config_file.with_name("config.local.yaml")
    raw = _deep_merge(raw, _load_yaml(local_file))
    _apply_env_overrides(raw)

    # Relative paths are resolved against the repository root when using
    # the bundled config, otherwise against the config file's parent folder.
    base_dir = ROOT_DIR if config_file.parent == CONFIG_PATH.parent else config_file.parent
    return from_dict(raw, base_dir=base_dir)
