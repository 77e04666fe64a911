from __future__ import annotations

import os
from functools import lru_cache

from dotenv import find_dotenv, load_dotenv
from pydantic import BaseModel, ConfigDict, Field, ValidationError

from nodepulse_core.rpc import DEFAULT_METHOD
from nodepulse_core.sampler import DEFAULT_PENALTY_MS, DEFAULT_ROUND_SIZE
from nodepulse_core.status import (
    DEFAULT_OK_THRESHOLD_MS,
    DEFAULT_WARN_THRESHOLD_MS,
    StatusThresholds,
)

RPC_URL_ENV = "ETH_RPC"
CHAIN_NAME_ENV = "CHAIN_NAME"
RPC_METHOD_ENV = "NODEPULSE_RPC_METHOD"
RPC_TIMEOUT_SECONDS_ENV = "NODEPULSE_RPC_TIMEOUT_SECONDS"
ROUND_SIZE_ENV = "NODEPULSE_ROUND_SIZE"
PENALTY_MS_ENV = "NODEPULSE_PENALTY_MS"
OK_THRESHOLD_MS_ENV = "NODEPULSE_OK_THRESHOLD_MS"
WARN_THRESHOLD_MS_ENV = "NODEPULSE_WARN_THRESHOLD_MS"
HOST_ENV = "NODEPULSE_HOST"
PORT_ENV = "NODEPULSE_PORT"

DEFAULT_RPC_URL = "http://127.0.0.1:8545"
DEFAULT_CHAIN_NAME = "unknown"
DEFAULT_RPC_TIMEOUT_SECONDS = 2.0
DEFAULT_HOST = "127.0.0.1"
DEFAULT_PORT = 3000


class NodeSettings(BaseModel):
    model_config = ConfigDict(extra="forbid", frozen=True)

    rpc_url: str = Field(default=DEFAULT_RPC_URL, min_length=1)
    chain_name: str = DEFAULT_CHAIN_NAME
    rpc_method: str = Field(default=DEFAULT_METHOD, min_length=1)
    rpc_timeout_seconds: float = Field(default=DEFAULT_RPC_TIMEOUT_SECONDS, gt=0)
    round_size: int = Field(default=DEFAULT_ROUND_SIZE, ge=0)
    penalty_ms: float = Field(default=DEFAULT_PENALTY_MS, ge=0)
    thresholds: StatusThresholds = StatusThresholds()
    host: str = DEFAULT_HOST
    port: int = Field(default=DEFAULT_PORT, ge=1, le=65535)


def _env_str(name: str, default: str) -> str:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    return value.strip()


def _env_number(name: str, default: float, cast: type[int] | type[float]) -> int | float:
    value = os.getenv(name)
    if value is None or not value.strip():
        return default
    try:
        return cast(value.strip())
    except ValueError as exc:
        raise ValueError(f"invalid {name} value: {value}") from exc


def load_settings() -> NodeSettings:
    try:
        return NodeSettings(
            rpc_url=_env_str(RPC_URL_ENV, DEFAULT_RPC_URL),
            chain_name=_env_str(CHAIN_NAME_ENV, DEFAULT_CHAIN_NAME),
            rpc_method=_env_str(RPC_METHOD_ENV, DEFAULT_METHOD),
            rpc_timeout_seconds=_env_number(
                RPC_TIMEOUT_SECONDS_ENV, DEFAULT_RPC_TIMEOUT_SECONDS, float
            ),
            round_size=_env_number(ROUND_SIZE_ENV, DEFAULT_ROUND_SIZE, int),
            penalty_ms=_env_number(PENALTY_MS_ENV, DEFAULT_PENALTY_MS, float),
            thresholds=StatusThresholds(
                ok_ms=_env_number(OK_THRESHOLD_MS_ENV, DEFAULT_OK_THRESHOLD_MS, float),
                warn_ms=_env_number(WARN_THRESHOLD_MS_ENV, DEFAULT_WARN_THRESHOLD_MS, float),
            ),
            host=_env_str(HOST_ENV, DEFAULT_HOST),
            port=_env_number(PORT_ENV, DEFAULT_PORT, int),
        )
    except ValidationError as exc:
        raise ValueError(f"invalid nodepulse settings: {exc}") from exc


def reset_settings_cache() -> None:
    get_settings.cache_clear()


@lru_cache(maxsize=1)
def get_settings() -> NodeSettings:
    return load_settings()


def load_env_file() -> bool:
    """Load ``.env`` from the working directory (or a parent) without overriding
    variables already set in the process environment."""
    path = find_dotenv(usecwd=True)
    if not path:
        return False
    return load_dotenv(path, override=False)
