"""Top-level relayer configuration read from a JSON file."""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass, field
from typing import Any, Mapping

from relaybridge.chain_config import ConfigError

_TRACE = 5

_LOG_LEVELS = {
    "trace": _TRACE,
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warn": logging.WARNING,
    "error": logging.ERROR,
    "fatal": logging.CRITICAL,
    "panic": logging.CRITICAL,
    "disabled": logging.CRITICAL + 10,
    "": logging.NOTSET,
}


@dataclass
class RelayerConfig:
    """Relayer-wide settings."""

    open_telemetry_collector_url: str = ""
    log_level: int = logging.INFO
    log_file: str = "out.log"
    env: str = ""
    id: str = ""


@dataclass
class Config:
    """Relayer settings and the raw settings of every configured chain."""

    relayer_config: RelayerConfig = field(default_factory=RelayerConfig)
    chain_configs: list[dict[str, Any]] = field(default_factory=list)


def parse_log_level(name: str) -> int:
    """Map a level name such as ``info`` or ``warn`` to a logging level."""
    try:
        return _LOG_LEVELS[name]
    except KeyError:
        raise ConfigError(f"unknown log level: {name}") from None


def _lookup(raw: Mapping[str, Any], key: str) -> Any:
    if key in raw:
        return raw[key]
    wanted = key.lower()
    for k, value in raw.items():
        if isinstance(k, str) and k.lower() == wanted:
            return value
    return None


def _string(raw: Mapping[str, Any], key: str) -> str:
    value = _lookup(raw, key)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise ConfigError(f"'{key}' expected type 'string', got {type(value).__name__}")
    return value


def new_relayer_config(raw: Mapping[str, Any] | None) -> RelayerConfig:
    """Build relayer settings from the ``relayer`` section of the file."""
    raw = raw or {}
    if not isinstance(raw, Mapping):
        raise ConfigError("relayer configuration must be an object")
    level_name = _string(raw, "LogLevel") or "info"
    return RelayerConfig(
        open_telemetry_collector_url=_string(raw, "OpenTelemetryCollectorURL"),
        log_level=parse_log_level(level_name),
        log_file=_string(raw, "LogFile") or "out.log",
        env=_string(raw, "Env"),
        id=_string(raw, "Id"),
    )


def get_config(path: str) -> Config:
    """Read, validate and parse the JSON configuration file at ``path``."""
    with open(path, encoding="utf-8") as handle:
        text = handle.read()
    try:
        document = json.loads(text)
    except json.JSONDecodeError as err:
        raise ConfigError(f"invalid configuration file: {err}") from err
    if not isinstance(document, dict):
        raise ConfigError("configuration file must hold a JSON object")

    relayer_config = new_relayer_config(_lookup(document, "relayer"))

    chains = _lookup(document, "chains") or []
    if not isinstance(chains, list) or not all(isinstance(c, dict) for c in chains):
        raise ConfigError("'chains' must be a list of objects")
    for chain in chains:
        if chain.get("type") in ("", None):
            raise ConfigError("Chain 'type' must be provided for every configured chain")

    return Config(relayer_config=relayer_config, chain_configs=chains)