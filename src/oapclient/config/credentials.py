"""
Credential management for the oapclient CLI.

The username is kept in the config file; the password lives only in the
system keychain (keyring). If the keychain is unusable the password is not
stored and the CLI prompts for it instead.
"""

from __future__ import annotations

__all__ = [
    "clear_credentials",
    "get_credential_storage_info",
    "get_credentials",
    "get_saved_username",
    "resolve_credentials",
    "save_credentials",
]

import logging
import os

import keyring
from keyring.errors import KeyringError

from ..constants import ENV_PASS, ENV_USER
from ._storage import load_config, load_raw_config, save_config

# Keyring service name for credential storage
_KEYRING_SERVICE = "oapclient"

_logger = logging.getLogger(__name__)


def _keyring_delete(username: str) -> None:
    """Delete a single keyring entry for the given username (best-effort)."""
    if not username:
        return
    try:
        keyring.delete_password(_KEYRING_SERVICE, username)
        _logger.debug("Deleted keyring entry")
    except KeyringError as e:
        _logger.debug("No keyring entry to delete: %s", e)
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring delete failed: %s", e)


def get_credential_storage_info() -> str:
    """Return a human-readable name of the keychain backend."""
    backend = keyring.get_keyring()
    module = type(backend).__module__ or ""
    if "macOS" in module:
        return "macOS Keychain"
    if "Windows" in module or "WinVault" in module:
        return "Windows Credential Manager"
    if "SecretService" in module:
        return "Linux Secret Service"
    if "KWallet" in module:
        return "KDE Wallet"
    return f"System keychain ({type(backend).__name__})"


def get_saved_username() -> str | None:
    """Return the saved username without touching the keychain."""
    return load_config().get("username") or None


def get_credentials() -> tuple[str | None, str | None]:
    """
    Get saved credentials.

    Returns:
        (username, password) where:
        - (None, None) if no username is saved.
        - (username, None) if the keychain has no password or is unusable.
        - (username, password) if both are available.
    """
    username = get_saved_username()
    if username is None:
        return None, None

    try:
        password = keyring.get_password(_KEYRING_SERVICE, username)
    except KeyringError as e:
        _logger.debug("Keyring read failed: %s", e)
        return username, None
    except (OSError, RuntimeError) as e:
        _logger.debug("Keyring backend error: %s", e)
        return username, None
    return username, password or None


def resolve_credentials() -> tuple[str, str]:
    """Resolve credentials from env vars or saved config.

    Priority: env vars > saved credentials (partial merge allowed --
    e.g. username from env, password from the keychain).

    Returns:
        (username, password) -- may be empty strings if not configured.
    """
    user = os.environ.get(ENV_USER, "").strip()
    pwd = os.environ.get(ENV_PASS, "").strip()

    if not user or not pwd:
        saved_user, saved_pass = get_credentials()
        if saved_user and not user:
            user = saved_user
        if saved_pass and not pwd:
            pwd = saved_pass

    _logger.debug("resolve_credentials: has_user=%s, has_pwd=%s", bool(user), bool(pwd))
    return user, pwd


def save_credentials(username: str, password: str) -> bool:
    """
    Save the username to config and the password to the keychain.

    If the username changed since the last save, the old keyring entry is
    removed.

    Returns:
        True if the password was stored in the keychain, False if only the
        username could be saved.
    """
    config = load_raw_config()
    old_username = config.get("username")
    if isinstance(old_username, str) and old_username != username:
        _keyring_delete(old_username)

    config["username"] = username
    save_config(config)

    try:
        keyring.set_password(_KEYRING_SERVICE, username, password)
    except KeyringError as e:
        _logger.warning("Keyring save failed, password not stored: %s", e)
        return False
    except (OSError, RuntimeError) as e:
        _logger.warning("Keyring backend error, password not stored: %s", e)
        return False
    return True


def clear_credentials() -> None:
    """Remove the saved username and its keychain entry."""
    config = load_raw_config()
    username = config.pop("username", None)
    if isinstance(username, str):
        _keyring_delete(username)
    save_config(config)
    _logger.info("Cleared saved credentials")
