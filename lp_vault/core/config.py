import json
import os
from pathlib import Path
from typing import Any

from eth_utils import is_address, to_checksum_address
from pydantic import BaseModel, Field, ValidationError, field_validator

from lp_vault.core.constants.base import DEFAULT_DEADLINE_BUFFER_S, DEFAULT_SLIPPAGE_BPS
from lp_vault.core.errors import ConfigurationError

_CONFIG_ENV_KEYS = ("LP_VAULT_CONFIG_PATH", "LP_VAULT_CONFIG")
_DEFAULT_CONFIG_FILENAME = "config.json"
_VAULT_KEY = "vault"
_PRIVATE_KEY_ENV = "LP_VAULT_PRIVATE_KEY"


def _find_project_root(start: Path) -> Path | None:
    cur = start.resolve()
    for parent in [cur, *cur.parents]:
        if (parent / "pyproject.toml").exists():
            return parent
    return None


def _project_root() -> Path | None:
    return _find_project_root(Path.cwd()) or _find_project_root(Path(__file__).parent)


def resolve_config_path(path: str | Path | None = None) -> Path:
    if path is not None:
        return Path(path).expanduser()

    env_path = next(
        (os.getenv(k, "").strip() for k in _CONFIG_ENV_KEYS if os.getenv(k)), ""
    )
    if env_path:
        p = Path(env_path).expanduser()
        if p.is_absolute():
            return p
        root = _project_root()
        return (root / p) if root else p

    root = _project_root()
    return (root / _DEFAULT_CONFIG_FILENAME) if root else Path(_DEFAULT_CONFIG_FILENAME)


def load_config_json(
    path: str | Path | None = None, *, require_exists: bool = False
) -> dict[str, Any]:
    cfg_path = resolve_config_path(path)
    if not cfg_path.exists():
        if require_exists:
            raise FileNotFoundError(f"Config file not found: {cfg_path}")
        return {}
    try:
        return json.loads(cfg_path.read_text())
    except json.JSONDecodeError as exc:
        raise ConfigurationError(f"Invalid JSON in {cfg_path}: {exc}") from exc


CONFIG: dict[str, Any] = {}


def set_config(config: dict[str, Any]) -> None:
    """Replace the global CONFIG dict in-place.

    This allows code that imported CONFIG at module import time to see updates.
    """
    CONFIG.clear()
    CONFIG.update(config)


def load_config(
    path: str | Path | None = None, *, require_exists: bool = False
) -> None:
    """Load config from disk into the global CONFIG dict."""
    set_config(load_config_json(path, require_exists=require_exists))


def get_rpc_urls() -> dict[str, Any]:
    return CONFIG.get(_VAULT_KEY, {}).get("rpc_urls", {})


def get_private_key() -> str | None:
    value = CONFIG.get(_VAULT_KEY, {}).get("private_key")
    if isinstance(value, str) and value.strip():
        return value.strip()
    env_value = os.environ.get(_PRIVATE_KEY_ENV, "").strip()
    return env_value or None


def _checksum(value: str) -> str:
    if not is_address(value):
        raise ValueError(f"not an address: {value!r}")
    return to_checksum_address(value)


class VaultSettings(BaseModel):
    chain_id: int = Field(..., gt=0)
    reference_asset: str
    token0: str
    token1: str
    router: str
    vault_address: str
    managers: list[str] = []
    deadline_buffer_s: int = Field(DEFAULT_DEADLINE_BUFFER_S, ge=0)
    slippage_bps: int = Field(DEFAULT_SLIPPAGE_BPS, ge=0, le=10_000)
    rpc_urls: dict[str, list[str] | str] = {}

    model_config = {"frozen": True}

    @field_validator("reference_asset", "token0", "token1", "router", "vault_address")
    @classmethod
    def _validate_address(cls, value: str) -> str:
        return _checksum(value)

    @field_validator("managers")
    @classmethod
    def _validate_managers(cls, value: list[str]) -> list[str]:
        return [_checksum(v) for v in value]


def get_vault_settings(config: dict[str, Any] | None = None) -> VaultSettings:
    section = (CONFIG if config is None else config).get(_VAULT_KEY)
    if not isinstance(section, dict):
        raise ConfigurationError(f"Missing '{_VAULT_KEY}' section in config")
    try:
        return VaultSettings.model_validate(
            {k: v for k, v in section.items() if k != "private_key"}
        )
    except ValidationError as exc:
        raise ConfigurationError(f"Invalid vault config: {exc}") from exc
