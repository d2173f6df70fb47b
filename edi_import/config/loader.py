from __future__ import annotations

import json
import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

import jsonschema
import yaml
from jsonschema.exceptions import ValidationError

"""Configuration loader.

Responsibilities:
- Load YAML config/edi_import.yml
- Merge config/edi_import.<environment>.yml over it for non-production runs
- Apply EDI_IMPORT_<KEY> environment overrides for top-level scalar keys
- Validate against config_schema.json
- Apply defaults (company=1, dfm_id=15, environment=production)
"""

SCHEMA_PATH = Path(__file__).with_name("config_schema.json")
DEFAULT_CONFIG_PATH = Path("config/edi_import.yml")

ENVIRONMENTS = ("development", "staging", "production")
ENVIRONMENT_VAR = "EDI_IMPORT_ENVIRONMENT"
ENV_PREFIX = "EDI_IMPORT_"
_ENV_KEYS = ("company", "dfm_id", "input_file_location", "disabled", "disabled_file_location")

_TRUE = {"1", "true", "yes", "on"}
_FALSE = {"0", "false", "no", "off", ""}


class ConfigError(Exception):
    pass


@dataclass(frozen=True)
class DatabaseConfig:
    host: str | None = None
    port: int | None = None
    user: str | None = None
    password: str | None = None
    database: str | None = None
    dsn: str | None = None


@dataclass(frozen=True)
class LogConfig:
    level: str = "INFO"
    file_path: str | None = None      # directory for the rotating log file; None disables it
    file_name: str = "EdiImport.log"
    max_file_size_mb: int = 10        # 0 disables rotation
    error_log_dir: str = "logs"       # JSON Lines error log directory


@dataclass(frozen=True)
class AppConfig:
    input_file_location: str
    company: str = "1"
    dfm_id: str = "15"
    disabled: bool = False
    disabled_file_location: str = ""
    environment: str = "production"
    database: DatabaseConfig = field(default_factory=DatabaseConfig)
    logging: LogConfig = field(default_factory=LogConfig)


def current_environment(default: str = "production") -> str:
    return (os.getenv(ENVIRONMENT_VAR) or default).strip().lower()


def overlay_path(path: Path, environment: str) -> Path:
    """config/edi_import.yml -> config/edi_import.<environment>.yml"""
    return path.with_name(f"{path.stem}.{environment}{path.suffix}")


def config_paths(path: Path, environment: str) -> list[Path]:
    """Files that make up the effective configuration, base first."""
    paths = [path]
    if environment != "production":
        paths.append(overlay_path(path, environment))
    return paths


def _read_yaml(path: Path) -> dict[str, Any]:
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise ConfigError(f"invalid yaml in {path}: {e}") from e
    if not isinstance(data, dict):
        raise ConfigError(f"config root must be a mapping: {path}")
    return data


def _deep_merge(base: dict[str, Any], overlay: dict[str, Any]) -> dict[str, Any]:
    merged = dict(base)
    for key, value in overlay.items():
        if isinstance(value, dict) and isinstance(merged.get(key), dict):
            merged[key] = _deep_merge(merged[key], value)
        else:
            merged[key] = value
    return merged


def _parse_bool(name: str, raw: str) -> bool:
    value = raw.strip().lower()
    if value in _TRUE:
        return True
    if value in _FALSE:
        return False
    raise ConfigError(f"invalid boolean for {name}: {raw!r}")


def _apply_env_overrides(data: dict[str, Any]) -> dict[str, Any]:
    result = dict(data)
    for key in _ENV_KEYS:
        name = ENV_PREFIX + key.upper()
        raw = os.getenv(name)
        if raw is None:
            continue
        result[key] = _parse_bool(name, raw) if key == "disabled" else raw
    return result


def _validate_config_schema(data: dict[str, Any]) -> None:
    """Validate config data against the bundled JSON schema.

    Raises:
        ConfigError: the schema file is missing or invalid, or the data
            fails validation (missing required keys, wrong types, unknown keys).
    """
    if not SCHEMA_PATH.exists():
        raise ConfigError(f"config schema not found: {SCHEMA_PATH}")
    try:
        schema = json.loads(SCHEMA_PATH.read_text(encoding="utf-8"))
        jsonschema.validate(data, schema)
    except json.JSONDecodeError as e:
        raise ConfigError(f"invalid schema file: {e}") from e
    except ValidationError as e:
        raise ConfigError(f"config validation failed: {e.message}") from e


def load_config(path: Path = DEFAULT_CONFIG_PATH, environment: str | None = None) -> AppConfig:
    if not path.exists():
        raise ConfigError(f"config file not found: {path}")
    data = _read_yaml(path)

    env = (environment or current_environment(str(data.get("environment") or "production"))).lower()
    if env not in ENVIRONMENTS:
        raise ConfigError(f"invalid environment: {env}")
    for extra in config_paths(path, env)[1:]:
        if extra.exists():
            data = _deep_merge(data, _read_yaml(extra))

    data = _apply_env_overrides(data)
    data["environment"] = env
    _validate_config_schema(data)

    db_raw = data.get("database") or {}
    log_raw = data.get("logging") or {}
    return AppConfig(
        input_file_location=data["input_file_location"],
        company=str(data.get("company", "1")),
        dfm_id=str(data.get("dfm_id", "15")),
        disabled=bool(data.get("disabled", False)),
        disabled_file_location=data.get("disabled_file_location") or "",
        environment=env,
        database=DatabaseConfig(
            host=db_raw.get("host"),
            port=db_raw.get("port"),
            user=db_raw.get("user"),
            password=db_raw.get("password"),
            database=db_raw.get("database"),
            dsn=db_raw.get("dsn"),
        ),
        logging=LogConfig(
            level=log_raw.get("level", "INFO"),
            file_path=log_raw.get("file_path"),
            file_name=log_raw.get("file_name", "EdiImport.log"),
            max_file_size_mb=log_raw.get("max_file_size_mb", 10),
            error_log_dir=log_raw.get("error_log_dir", "logs"),
        ),
    )
