from __future__ import annotations

import json
from dataclasses import dataclass
from pathlib import Path
from typing import List, NoReturn

from ledgerlight.consensus.registry import ConfigError, ValidatorRegistry
from ledgerlight.consensus.signing import DEFAULT_SCHEME, KEY_SCHEMES
from ledgerlight.utils.env import _env_float, _env_int, _env_list, _env_str


@dataclass(frozen=True)
class GatewayConfig:
    base_url: str
    timeout_s: float


@dataclass(frozen=True)
class ApiConfig:
    host: str
    port: int


@dataclass(frozen=True)
class LightClientConfig:
    registry: ValidatorRegistry
    gateway: GatewayConfig
    api: ApiConfig


def _die(msg: str) -> NoReturn:
    raise SystemExit(f"[ledgerlight] {msg}")


def _read_keys_file(path: str) -> List[str]:
    """Read validator keys from a JSON list or a file with one key per line."""
    p = Path(path).expanduser()
    if not p.is_file():
        _die(f"LEDGERLIGHT_VALIDATOR_KEYS_FILE does not exist: {path!r}")
    text = p.read_text(encoding="utf-8")
    if text.lstrip().startswith("["):
        try:
            data = json.loads(text)
        except ValueError as exc:
            _die(f"LEDGERLIGHT_VALIDATOR_KEYS_FILE is not valid JSON: {exc}")
        if not isinstance(data, list) or not all(isinstance(k, str) for k in data):
            _die("LEDGERLIGHT_VALIDATOR_KEYS_FILE must contain a JSON list of hex strings.")
        return data
    lines = (line.strip() for line in text.splitlines())
    return [line for line in lines if line and not line.startswith("#")]


def load_registry_env() -> ValidatorRegistry:
    """Build the validator registry from env/.env. Any problem is fatal."""
    scheme = (_env_str("LEDGERLIGHT_KEY_SCHEME", DEFAULT_SCHEME) or DEFAULT_SCHEME).lower()
    if scheme not in KEY_SCHEMES:
        _die(f"Invalid LEDGERLIGHT_KEY_SCHEME={scheme!r} (expected one of {sorted(KEY_SCHEMES)}).")

    keys = _env_list("LEDGERLIGHT_VALIDATOR_KEYS")
    keys_file = _env_str("LEDGERLIGHT_VALIDATOR_KEYS_FILE", "")
    if keys and keys_file:
        _die("Set only one of LEDGERLIGHT_VALIDATOR_KEYS and LEDGERLIGHT_VALIDATOR_KEYS_FILE.")
    if keys_file:
        keys = _read_keys_file(keys_file)
    if not keys:
        _die("Missing validator keys: set LEDGERLIGHT_VALIDATOR_KEYS or LEDGERLIGHT_VALIDATOR_KEYS_FILE.")

    try:
        return ValidatorRegistry.load(keys, scheme=scheme)
    except ConfigError as exc:
        _die(f"Invalid validator registry: {exc}")


def load_client_env() -> LightClientConfig:
    """
    Load light-client configuration from env/.env with strict validation.

    The registry is built here, once, and must match the network's genesis
    validator set for the lifetime of the process.
    """
    registry = load_registry_env()

    base_url = _env_str("LEDGERLIGHT_GATEWAY_URL", "").rstrip("/")
    if not base_url:
        _die("Missing required env var: LEDGERLIGHT_GATEWAY_URL.")
    if not base_url.startswith("http"):
        _die(f"LEDGERLIGHT_GATEWAY_URL must be http(s). Got: {base_url!r}")

    timeout_s = _env_float("LEDGERLIGHT_GATEWAY_TIMEOUT_S", 5.0)
    timeout_s = max(0.5, min(60.0, timeout_s))

    host = _env_str("LEDGERLIGHT_API_HOST", "127.0.0.1") or "127.0.0.1"
    port = _env_int("LEDGERLIGHT_API_PORT", 8280)
    if not 0 < port < 65536:
        _die(f"LEDGERLIGHT_API_PORT out of range: {port}")

    return LightClientConfig(
        registry=registry,
        gateway=GatewayConfig(base_url=base_url, timeout_s=float(timeout_s)),
        api=ApiConfig(host=host, port=int(port)),
    )
