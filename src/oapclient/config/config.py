"""
Administrator connection settings.

The resolved :class:`AdministratorConfig` is an immutable value passed to
the session manager at construction. Values are resolved once with
priority env vars > ``~/.oapclient/config.json`` > built-in defaults.

Credential management lives in ``credentials.py``.
"""

from __future__ import annotations

__all__ = [
    "AdministratorConfig",
    "get_administrator_config",
    "logout",
    "reset_all",
    "save_administrator_config",
]

import logging
import os
from dataclasses import dataclass

from ..constants import (
    DEFAULT_ADMINISTRATOR_ADDRESS,
    DEFAULT_ADMINISTRATOR_PORT,
    DEFAULT_TIMEOUT,
    ENV_ADDRESS,
    ENV_PORT,
    ENV_TIMEOUT,
    MAX_PORT,
    MAX_TIMEOUT,
    MIN_PORT,
    MIN_TIMEOUT,
)
from ..errors import ConfigError
from ._storage import load_config, load_raw_config, save_config

_logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class AdministratorConfig:
    """Where the administrator daemon listens.

    Attributes:
        address: Host name or IP address.
        port: TCP port.
        timeout: Socket timeout and per-reply read limit, in seconds.
    """

    address: str = DEFAULT_ADMINISTRATOR_ADDRESS
    port: int = DEFAULT_ADMINISTRATOR_PORT
    timeout: int = DEFAULT_TIMEOUT

    def __post_init__(self) -> None:
        if not self.address:
            raise ConfigError("Administrator address must not be empty")
        if not MIN_PORT <= self.port <= MAX_PORT:
            raise ConfigError(f"Port {self.port} out of range [{MIN_PORT}, {MAX_PORT}]")
        if not MIN_TIMEOUT <= self.timeout <= MAX_TIMEOUT:
            raise ConfigError(
                f"Timeout {self.timeout} out of range [{MIN_TIMEOUT}, {MAX_TIMEOUT}]"
            )


def _env_int(name: str, low: int, high: int) -> int | None:
    """Read an integer env var, ignoring malformed or out-of-range values."""
    raw = os.environ.get(name, "").strip()
    if not raw:
        return None
    try:
        value = int(raw)
    except ValueError:
        _logger.warning("Invalid %s value %r, ignoring", name, raw)
        return None
    if value < low or value > high:
        _logger.warning("%s=%d out of range [%d, %d], ignoring", name, value, low, high)
        return None
    return value


def get_administrator_config() -> AdministratorConfig:
    """
    Resolve the administrator address, port and timeout.

    Priority: env vars > config file > defaults. Each value is resolved
    independently.
    """
    config = load_config()

    address = os.environ.get(ENV_ADDRESS, "").strip() or config.get(
        "address", DEFAULT_ADMINISTRATOR_ADDRESS
    )

    port = _env_int(ENV_PORT, MIN_PORT, MAX_PORT)
    if port is None:
        port = config.get("port", DEFAULT_ADMINISTRATOR_PORT)

    timeout = _env_int(ENV_TIMEOUT, MIN_TIMEOUT, MAX_TIMEOUT)
    if timeout is None:
        timeout = config.get("timeout", DEFAULT_TIMEOUT)

    return AdministratorConfig(address=address, port=port, timeout=timeout)


def save_administrator_config(admin: AdministratorConfig) -> None:
    """Persist the administrator address, port and timeout."""
    config = load_raw_config()
    config["address"] = admin.address
    config["port"] = admin.port
    config["timeout"] = admin.timeout
    save_config(config)
    _logger.info("Saved administrator config: %s:%d", admin.address, admin.port)


def reset_all() -> None:
    """Clear all config: credentials and administrator settings."""
    from .credentials import clear_credentials

    clear_credentials()
    save_config({})


def logout() -> None:
    """Clear saved credentials, preserving the administrator settings."""
    from .credentials import clear_credentials

    clear_credentials()
