"""
Configuration and credential management.

Unified API for all config-related functionality. Instead of importing
from individual submodules (config, credentials), import from this
package directly.
"""

from __future__ import annotations

# Administrator connection settings
from ._storage import CONFIG_FILE
from .config import (
    AdministratorConfig,
    get_administrator_config,
    logout,
    reset_all,
    save_administrator_config,
)

# Credentials management
from .credentials import (
    clear_credentials,
    get_credential_storage_info,
    get_credentials,
    get_saved_username,
    resolve_credentials,
    save_credentials,
)

__all__ = [
    "CONFIG_FILE",
    "AdministratorConfig",
    "clear_credentials",
    "get_administrator_config",
    "get_credential_storage_info",
    "get_credentials",
    "get_saved_username",
    "logout",
    "reset_all",
    "resolve_credentials",
    "save_administrator_config",
    "save_credentials",
]
