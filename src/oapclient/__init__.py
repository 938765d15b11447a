"""
oapclient -- Python client for the OAP administrator protocol.

Lists and synchronizes vulnerability feeds, reads and saves global
settings, and configures LDAP/ADS authentication on a scanner's
administrator daemon over TLS.
"""

from __future__ import annotations

from .api import make_client, run_operation
from .config.config import AdministratorConfig, get_administrator_config
from .constants import __version__
from .core.credentials import Credentials
from .core.operations import OapClient, Reply, ReplyOutcome
from .core.params import Param, Params
from .errors import (
    AuthError,
    ConfigError,
    ConnectError,
    OapError,
    ReadError,
    RenderError,
    SendError,
    ValidationError,
)
from .network.session import SessionManager

__all__ = [
    "AdministratorConfig",
    "AuthError",
    "ConfigError",
    "ConnectError",
    "Credentials",
    "OapClient",
    "OapError",
    "Param",
    "Params",
    "ReadError",
    "RenderError",
    "Reply",
    "ReplyOutcome",
    "SendError",
    "SessionManager",
    "ValidationError",
    "__version__",
    "get_administrator_config",
    "make_client",
    "run_operation",
]
