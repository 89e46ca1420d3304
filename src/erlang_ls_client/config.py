from __future__ import annotations

import os
from dataclasses import dataclass, fields, replace
from datetime import date, datetime, time
from pathlib import Path
from typing import Mapping, TypeAlias
import tomllib

from erlang_ls_client.exceptions import ConfigError

DEFAULT_CONFIG_NAME = "erlang_ls.toml"
CONFIG_SECTION = "erlang_ls"

TomlScalar: TypeAlias = str | int | float | bool | None | date | datetime | time
TomlValue: TypeAlias = TomlScalar | list["TomlValue"] | dict[str, "TomlValue"]
TomlTable: TypeAlias = dict[str, TomlValue]

# Table keys keep the editor-settings spelling.
_SETTING_KEYS: dict[str, str] = {
    "serverPath": "server_path",
    "logLevel": "log_level",
    "logPath": "log_path",
    "escriptPath": "escript_path",
}
_ENV_KEYS: dict[str, str] = {
    "ERLANG_LS_SERVER_PATH": "server_path",
    "ERLANG_LS_LOG_LEVEL": "log_level",
    "ERLANG_LS_LOG_PATH": "log_path",
    "ERLANG_LS_ESCRIPT_PATH": "escript_path",
}


@dataclass(frozen=True)
class ClientConfig:
    """Settings consumed by the launcher.

    Empty strings mean "not configured": the launcher derives the bundled
    server path, omits the log directory flag, and falls back to the
    platform ``escript`` command.
    """

    server_path: str = ""
    log_level: str = "none"
    log_path: str = ""
    escript_path: str = ""


def _load_toml(path: Path) -> TomlTable:
    try:
        raw = path.read_text(encoding="utf-8")
    except FileNotFoundError:
        return {}
    except OSError as exc:
        raise ConfigError(f"Cannot read config file {path}: {exc}") from exc
    try:
        data = tomllib.loads(raw)
    except tomllib.TOMLDecodeError as exc:
        raise ConfigError(f"Malformed config file {path}: {exc}") from exc
    return data if isinstance(data, dict) else {}


def load_config(root: Path | None = None, config_path: Path | None = None) -> TomlTable:
    if config_path is None:
        base = root if root is not None else Path.cwd()
        config_path = base / DEFAULT_CONFIG_NAME
    return _load_toml(config_path)


def client_section(
    root: Path | None = None, config_path: Path | None = None
) -> TomlTable:
    data = load_config(root=root, config_path=config_path)
    section = data.get(CONFIG_SECTION, {})
    return section if isinstance(section, dict) else {}


def _as_setting(name: str, value: TomlValue) -> str:
    if not isinstance(value, str):
        raise ConfigError(
            f"Setting {name!r} must be a string, got {type(value).__name__}"
        )
    return value


def client_config(
    root: Path | None = None,
    config_path: Path | None = None,
    env: Mapping[str, str] | None = None,
) -> ClientConfig:
    section = client_section(root=root, config_path=config_path)
    values: dict[str, str] = {}
    for key, field_name in _SETTING_KEYS.items():
        if key in section:
            values[field_name] = _as_setting(key, section[key])
    environ = os.environ if env is None else env
    for env_key, field_name in _ENV_KEYS.items():
        raw = environ.get(env_key)
        if raw is not None:
            values[field_name] = raw
    return ClientConfig(**values)


def merge_overrides(config: ClientConfig, **overrides: str | None) -> ClientConfig:
    known = {item.name for item in fields(ClientConfig)}
    unknown = sorted(key for key in overrides if key not in known)
    if unknown:
        raise ConfigError(f"Unknown settings: {', '.join(unknown)}")
    changes = {key: value for key, value in overrides.items() if value is not None}
    return replace(config, **changes)
