"""High-level convenience API for administrator operations.

Provides :func:`make_client` and :func:`run_operation`, which handle
config resolution, credential lookup and transport creation
automatically.

For lower-level control, construct a
:class:`~oapclient.network.session.SessionManager` and
:class:`~oapclient.core.operations.OapClient` directly.
"""

from __future__ import annotations

__all__ = [
    "OPERATIONS",
    "PassthroughRenderer",
    "make_client",
    "make_credentials",
    "run_operation",
]

import logging
from dataclasses import replace
from typing import TYPE_CHECKING

from .config import get_administrator_config, resolve_credentials
from .constants import ADMIN_ROLE, ENV_PASS, ENV_USER
from .core.credentials import Credentials
from .core.operations import OapClient
from .errors import AuthError
from .network.session import SessionManager

if TYPE_CHECKING:
    from .config.config import AdministratorConfig
    from .core.operations import Reply
    from .core.params import Params
    from .network.protocol import Renderer, TokenRegistry, Transport

_logger = logging.getLogger(__name__)

# Operations that may be invoked by name
OPERATIONS = (
    "get_feed",
    "sync_feed",
    "get_settings",
    "edit_settings",
    "save_settings",
    "modify_auth",
)


class PassthroughRenderer:
    """Renderer that returns result documents unchanged."""

    def transform(self, xml: str) -> str:
        return xml


# ---------------------------------------------------------------------------
# Private resolution helpers
# ---------------------------------------------------------------------------


def _resolve_config(
    config: AdministratorConfig | None,
    address: str | None,
    port: int | None,
    timeout: int | None,
) -> AdministratorConfig:
    """Resolve the administrator config, letting explicit arguments win.

    Raises:
        ConfigError: If an explicit value is out of range.
    """
    resolved = config if config is not None else get_administrator_config()
    overrides: dict[str, object] = {}
    if address is not None:
        overrides["address"] = address
    if port is not None:
        overrides["port"] = port
    if timeout is not None:
        overrides["timeout"] = timeout
    if overrides:
        resolved = replace(resolved, **overrides)
    return resolved


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------


def make_client(
    renderer: Renderer | None = None,
    *,
    config: AdministratorConfig | None = None,
    address: str | None = None,
    port: int | None = None,
    timeout: int | None = None,
    transport: Transport | None = None,
    token_registry: TokenRegistry | None = None,
) -> OapClient:
    """Create an :class:`OapClient` for the configured administrator.

    Administrator resolution (first match wins per value):
        1. Explicit ``address`` / ``port`` / ``timeout`` arguments.
        2. ``config`` if given, else env vars and the saved config file.
        3. Built-in defaults (``127.0.0.1:9393``).

    Args:
        renderer: Turns result documents into output. Defaults to
            :class:`PassthroughRenderer`.
        config: Explicit administrator config.
        address: Administrator host, overriding the config.
        port: Administrator port, overriding the config.
        timeout: Socket and read timeout in seconds, overriding the config.
        transport: Channel factory; defaults to TLS via tlslite-ng.
        token_registry: Web login registry for forced logouts.

    Returns:
        A ready client. No connection is opened until an operation runs.

    Raises:
        ConfigError: If the resolved config is invalid.
    """
    resolved = _resolve_config(config, address, port, timeout)
    if renderer is None:
        renderer = PassthroughRenderer()
    _logger.debug("Client for administrator at %s:%d", resolved.address, resolved.port)
    sessions = SessionManager(
        resolved,
        transport=transport,
        token_registry=token_registry,
        renderer=renderer,
    )
    return OapClient(sessions, renderer)


def make_credentials(
    username: str | None = None,
    password: str | None = None,
    *,
    role: str = ADMIN_ROLE,
) -> Credentials:
    """Build caller credentials, filling gaps from env vars and the keychain.

    Raises:
        AuthError: If no username or password can be found.
    """
    if username is None or password is None:
        saved_user, saved_pass = resolve_credentials()
        username = username or saved_user
        password = password or saved_pass
    if not username or not password:
        raise AuthError(
            f"No credentials configured. Set {ENV_USER} and {ENV_PASS}, "
            "or run `oapclient setup`."
        )
    return Credentials(username=username, password=password, role=role)


def run_operation(
    client: OapClient,
    name: str,
    credentials: Credentials,
    params: Params | None = None,
    **kwargs: str,
) -> Reply:
    """Run an operation by name.

    Args:
        client: Client to run the operation on.
        name: One of :data:`OPERATIONS`.
        credentials: Caller identity.
        params: Request parameters.
        **kwargs: Extra operation arguments (``kind`` for feed operations).

    Raises:
        ValueError: If ``name`` is not a known operation.
    """
    if name not in OPERATIONS:
        raise ValueError(f"Unknown operation {name!r}. Expected one of: {', '.join(OPERATIONS)}")
    operation = getattr(client, name)
    return operation(credentials, params, **kwargs)
