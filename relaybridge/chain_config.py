"""Chain configuration: general settings, EVM settings and command-line overrides."""

from __future__ import annotations

from dataclasses import dataclass
from datetime import timedelta
from typing import Any, Callable, Mapping

CONFIG_FLAG_NAME = "config"
KEYSTORE_FLAG_NAME = "keystore"
BLOCKSTORE_FLAG_NAME = "blockstore"
FRESH_START_FLAG_NAME = "fresh"
LATEST_BLOCK_FLAG_NAME = "latest"


class ConfigError(ValueError):
    """Raised when configuration cannot be decoded or fails validation."""


@dataclass
class Flags:
    """Command-line options of the relayer, with their defaults."""

    config: str = "."
    keystore: str = "./keys"
    blockstore: str = "./lvldbdata"
    fresh: bool = False
    latest: bool = False


@dataclass
class GeneralChainConfig:
    """Settings shared by every kind of chain."""

    name: str = ""
    id: int | None = None
    endpoint: str = ""
    type: str = ""
    blockstore_path: str = ""
    fresh_start: bool = False
    latest_block: bool = False
    key: str = ""
    insecure: bool = False

    def validate(self) -> None:
        """Raise ConfigError if a required field is missing."""
        if self.id is None:
            raise ConfigError(f"required field domain.Id empty for chain {self.id}")
        if not self.endpoint:
            raise ConfigError(f"required field chain.Endpoint empty for chain {self.id}")
        if not self.name:
            raise ConfigError(f"required field chain.Name empty for chain {self.id}")

    def apply_flags(self, flags: Flags) -> None:
        """Let command-line options override the file settings."""
        if flags.blockstore:
            self.blockstore_path = flags.blockstore
        if flags.fresh:
            self.fresh_start = True
        if flags.latest:
            self.latest_block = True


@dataclass
class EVMConfig:
    """Validated settings of an EVM chain."""

    general_chain_config: GeneralChainConfig
    from_address: str = ""
    bridge: str = ""
    erc20_handler: str = ""
    erc721_handler: str = ""
    generic_handler: str = ""
    max_gas_price: int = 20000000000
    gas_multiplier: float = 1.0
    gas_price_increase_factor: int = 15
    gas_limit: int = 2000000
    start_block: int = 0
    block_confirmations: int = 10
    block_interval: int = 5
    block_retry_interval: timedelta = timedelta(seconds=5)


def _type_error(key: str, expected: str, value: Any) -> ConfigError:
    return ConfigError(f"'{key}' expected type '{expected}', got {type(value).__name__}")


def _string(key: str, value: Any) -> str:
    if not isinstance(value, str):
        raise _type_error(key, "string", value)
    return value


def _boolean(key: str, value: Any) -> bool:
    if not isinstance(value, bool):
        raise _type_error(key, "bool", value)
    return value


def _integer(key: str, value: Any) -> int:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _type_error(key, "int64", value)
    try:
        return int(value)
    except (OverflowError, ValueError) as err:
        raise ConfigError(f"cannot parse '{key}': {err}") from err


def _unsigned(key: str, value: Any) -> int:
    number = _integer(key, value)
    if number < 0:
        raise ConfigError(f"cannot parse '{key}', {value} overflows uint")
    return number


def _domain_id(key: str, value: Any) -> int:
    number = _unsigned(key, value)
    if number > 0xFF:
        raise ConfigError(f"cannot parse '{key}', {value} overflows uint8")
    return number


def _number(key: str, value: Any) -> float:
    if isinstance(value, bool) or not isinstance(value, (int, float)):
        raise _type_error(key, "float64", value)
    return float(value)


_Spec = tuple[tuple[str, str, Callable[[str, Any], Any]], ...]

_GENERAL_SPEC: _Spec = (
    ("name", "name", _string),
    ("id", "id", _domain_id),
    ("endpoint", "endpoint", _string),
    ("type", "type", _string),
    ("blockstorePath", "blockstore_path", _string),
    ("fresh", "fresh_start", _boolean),
    ("latest", "latest_block", _boolean),
    ("key", "key", _string),
    ("insecure", "insecure", _boolean),
)

_EVM_SPEC: _Spec = (
    ("from", "from_address", _string),
    ("bridge", "bridge", _string),
    ("erc20Handler", "erc20_handler", _string),
    ("erc721Handler", "erc721_handler", _string),
    ("genericHandler", "generic_handler", _string),
    ("maxGasPrice", "max_gas_price", _integer),
    ("gasPriceIncreaseFactor", "gas_price_increase_factor", _integer),
    ("gasMultiplier", "gas_multiplier", _number),
    ("gasLimit", "gas_limit", _integer),
    ("startBlock", "start_block", _integer),
    ("blockConfirmations", "block_confirmations", _integer),
    ("blockInterval", "block_interval", _integer),
    ("blockRetryInterval", "block_retry_interval", _unsigned),
)

_EVM_DEFAULTS: dict[str, Any] = {
    "max_gas_price": 20000000000,
    "gas_price_increase_factor": 15,
    "gas_multiplier": 1.0,
    "gas_limit": 2000000,
    "block_confirmations": 10,
    "block_interval": 5,
    "block_retry_interval": 5,
}


def _decode(raw: Mapping[str, Any], spec: _Spec) -> dict[str, Any]:
    """Pick the keys of ``spec`` out of ``raw``, matching names case-insensitively."""
    lowered = {k.lower(): v for k, v in raw.items() if isinstance(k, str)}
    decoded: dict[str, Any] = {}
    for key, attr, convert in spec:
        value = raw[key] if key in raw else lowered.get(key.lower())
        if value is not None:
            decoded[attr] = convert(key, value)
    return decoded


def new_evm_config(chain_config: Mapping[str, Any], flags: Flags | None = None) -> EVMConfig:
    """Decode, default and validate an EVM chain configuration.

    When ``flags`` is given, its options override the matching file settings.
    """
    if not isinstance(chain_config, Mapping):
        raise ConfigError("chain configuration must be a mapping")
    general = GeneralChainConfig(**_decode(chain_config, _GENERAL_SPEC))
    values = _decode(chain_config, _EVM_SPEC)
    for attr, default in _EVM_DEFAULTS.items():
        if not values.get(attr):
            values[attr] = default

    general.validate()
    if not values.get("bridge"):
        raise ConfigError(f"required field chain.Bridge empty for chain {general.id}")
    confirmations = values["block_confirmations"]
    if confirmations != 0 and confirmations < 1:
        raise ConfigError("blockConfirmations has to be >=1")

    if flags is not None:
        general.apply_flags(flags)
    retry_seconds = values.pop("block_retry_interval")
    return EVMConfig(
        general_chain_config=general,
        block_retry_interval=timedelta(seconds=retry_seconds),
        **values,
    )