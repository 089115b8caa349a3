import json
import logging

import pytest

from relaybridge.app_config import (
    Config,
    RelayerConfig,
    get_config,
    new_relayer_config,
    parse_log_level,
)
from relaybridge.chain_config import ConfigError


def _write(tmp_path, relayer, chains):
    path = tmp_path / "test.json"
    path.write_text(json.dumps({"relayer": relayer, "chains": chains}))
    return str(path)


def _relayer(log_level=""):
    return {
        "opentelemetryCollectorURL": "",
        "logLevel": log_level,
        "logFile": "",
        "env": "",
        "id": "",
    }


def test_invalid_path(tmp_path):
    with pytest.raises(OSError):
        get_config(str(tmp_path / "invalid"))


def test_missing_chain_type(tmp_path):
    path = _write(tmp_path, _relayer(), [{"name": "chain1"}])
    with pytest.raises(ConfigError) as err:
        get_config(path)
    assert str(err.value) == "Chain 'type' must be provided for every configured chain"


def test_invalid_relayer_config(tmp_path):
    path = _write(tmp_path, _relayer("invalid"), [{"name": "chain1"}])
    with pytest.raises(ConfigError) as err:
        get_config(path)
    assert str(err.value) == "unknown log level: invalid"


def test_valid_config(tmp_path):
    path = _write(tmp_path, _relayer("info"), [{"type": "evm", "name": "evm1"}])
    assert get_config(path) == Config(
        relayer_config=RelayerConfig(
            log_level=logging.INFO,
            log_file="out.log",
            open_telemetry_collector_url="",
        ),
        chain_configs=[{"type": "evm", "name": "evm1"}],
    )


def test_not_json_raises_config_error(tmp_path):
    path = tmp_path / "broken.json"
    path.write_text("{not json")
    with pytest.raises(ConfigError):
        get_config(str(path))


@pytest.mark.parametrize(
    "name, level",
    [
        ("debug", logging.DEBUG),
        ("info", logging.INFO),
        ("warn", logging.WARNING),
        ("error", logging.ERROR),
    ],
)
def test_parse_log_level(name, level):
    assert parse_log_level(name) == level


def test_parse_log_level_is_case_sensitive():
    with pytest.raises(ConfigError, match="unknown log level: INFO"):
        parse_log_level("INFO")


def test_new_relayer_config_defaults_and_values():
    config = new_relayer_config({"LogLevel": "debug", "Env": "dev", "Id": "relayer-1"})
    assert config == RelayerConfig(log_level=logging.DEBUG, log_file="out.log", env="dev", id="relayer-1")
    assert new_relayer_config(None) == RelayerConfig()