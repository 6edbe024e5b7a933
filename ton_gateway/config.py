"""
Configuration helpers for the TON transfer gateway.

This module centralizes RPC endpoint selection, API key loading, timeouts and
wallet constants. No secrets are stored in the repository; the toncenter API
key is read from environment or a local file if present.
"""

from __future__ import annotations

import os
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

# Default connection settings
DEFAULT_API_URL = os.getenv("TON_API_URL", "https://testnet.toncenter.com/api/v2")
DEFAULT_INDEX_URL = os.getenv("TON_INDEX_URL", "https://testnet.toncenter.com/api/v3")


def _load_testnet() -> bool:
    raw = os.getenv("TON_TESTNET")
    if raw is None:
        return "testnet" in DEFAULT_API_URL
    return raw.strip().lower() in {"1", "true", "yes"}


TESTNET = _load_testnet()


def _load_float(env_var: str, default: float) -> float:
    raw = os.getenv(env_var)
    if raw:
        try:
            return float(raw)
        except ValueError:
            return default
    return default


def _load_int(env_var: str, default: int) -> int:
    raw = os.getenv(env_var)
    if raw:
        try:
            return int(raw)
        except ValueError:
            return default
    return default


def _load_timeout() -> float:
    return _load_float("TON_HTTP_TIMEOUT", 10.0)


def _parse_origins(raw: Optional[str]) -> List[str]:
    if not raw:
        return ["*"]
    origins = [item.strip() for item in raw.split(",") if item.strip()]
    return origins or ["*"]


DEFAULT_TIMEOUT = _load_timeout()
DEFAULT_REQUEST_DEADLINE = _load_float("TON_REQUEST_DEADLINE", 30.0)

# API key handling
API_KEY_ENV_VAR = "TON_API_KEY"
API_KEY_FILE_ENV_VAR = "TON_API_KEY_FILE"
DEFAULT_API_KEY_FILE = "apikey.txt"

# Wallet v3 constants
DEFAULT_WORKCHAIN = _load_int("TON_WORKCHAIN", 0)
DEFAULT_SUBWALLET_ID = _load_int("TON_SUBWALLET_ID", 698983191)
DEFAULT_MESSAGE_TTL = _load_int("TON_MESSAGE_TTL", 60)
# Pay fees separately, ignore action-phase errors.
DEFAULT_SEND_MODE = 3

HISTORY_PAGE_SIZE = _load_int("TON_HISTORY_PAGE_SIZE", 50)
CORS_ORIGINS = _parse_origins(os.getenv("TON_GATEWAY_CORS_ORIGINS"))
LOG_LEVEL = os.getenv("TON_GATEWAY_LOG_LEVEL", "INFO")
LOG_FORMAT = os.getenv("TON_GATEWAY_LOG_FORMAT", "json")  # json or plain
PORT = _load_int("PORT", 8080)


def load_api_key() -> Optional[str]:
    """
    Load the toncenter API key from environment or a local file.

    Returns:
        The API key string if available, otherwise None. The key is never logged
        or returned to callers.
    """
    env_key = os.getenv(API_KEY_ENV_VAR)
    if env_key:
        return env_key.strip()

    key_path = os.getenv(API_KEY_FILE_ENV_VAR, DEFAULT_API_KEY_FILE)
    if key_path:
        path = Path(key_path)
        if path.is_file():
            return path.read_text(encoding="utf-8").strip() or None

    return None


@dataclass(slots=True)
class GatewayConfig:
    """Runtime configuration for the gateway and its toncenter access."""

    api_url: str = DEFAULT_API_URL
    index_url: str = DEFAULT_INDEX_URL
    testnet: bool = TESTNET
    timeout: float = DEFAULT_TIMEOUT
    request_deadline: float = DEFAULT_REQUEST_DEADLINE
    api_key: Optional[str] = field(default_factory=load_api_key, repr=False)
    workchain: int = DEFAULT_WORKCHAIN
    subwallet_id: int = DEFAULT_SUBWALLET_ID
    message_ttl: int = DEFAULT_MESSAGE_TTL
    send_mode: int = DEFAULT_SEND_MODE
    history_page_size: int = HISTORY_PAGE_SIZE
    cors_origins: List[str] = field(default_factory=lambda: list(CORS_ORIGINS))
    log_level: str = LOG_LEVEL
    log_format: str = LOG_FORMAT
    port: int = PORT


default_config = GatewayConfig()
