"""
Session establishment with the administrator daemon.

:meth:`SessionManager.connect` opens a channel, authenticates, and
classifies the result as one of three outcomes. A :class:`Session` is a
context manager so the channel is released on every exit path.
"""

from __future__ import annotations

__all__ = [
    "AuthFailed",
    "ConnectFailed",
    "ConnectOutcome",
    "Connected",
    "Session",
    "SessionManager",
    "omp_authenticate",
]

import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..core.rendering import login_page, transform
from ..errors import ConnectError, OapError, ReadError, SendError
from . import commands
from .reader import ReadFailed, read_response
from .transport import TlsTransport

if TYPE_CHECKING:
    from types import TracebackType

    from ..config.config import AdministratorConfig
    from ..core.credentials import Credentials
    from .protocol import Authenticator, Channel, Renderer, TokenRegistry, Transport

_logger = logging.getLogger(__name__)

_SERVICE_DOWN = "Logged out. OAP service is down."


def omp_authenticate(channel: Channel, username: str, password: str) -> bool:
    """Run the ``<authenticate>`` handshake.

    A reply status starting with ``2`` means the credentials were accepted.
    Send or read failures count as rejection.
    """
    try:
        channel.send(commands.authenticate(username, password).encode("utf-8"))
    except SendError as exc:
        _logger.warning("Failed to send authenticate command: %s", exc)
        return False

    result = read_response(channel)
    if isinstance(result, ReadFailed):
        return False
    status = result.status or ""
    _logger.debug("Authenticate status: %s", status or "<none>")
    return status.startswith("2")


class Session:
    """An authenticated channel owned by exactly one operation.

    Closing is idempotent; a closed session refuses to send or read.
    """

    def __init__(self, channel: Channel, timeout: int) -> None:
        self._channel = channel
        self.timeout = timeout
        self.closed = False

    def send(self, xml: str) -> None:
        """Send a command document as UTF-8.

        Raises:
            SendError: If the session is closed or the write fails.
        """
        if self.closed:
            raise SendError("Session is closed")
        data = xml.encode("utf-8")
        _logger.debug("Sending command: %d bytes", len(data))
        self._channel.send(data)

    def recv(self, size: int) -> bytes:
        if self.closed:
            raise ReadError("Session is closed")
        return self._channel.recv(size)

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        self._channel.close()

    def __enter__(self) -> Session:
        return self

    def __exit__(
        self,
        exc_type: type[BaseException] | None,
        exc: BaseException | None,
        tb: TracebackType | None,
    ) -> None:
        self.close()


@dataclass(frozen=True)
class Connected:
    session: Session


@dataclass(frozen=True)
class ConnectFailed:
    """The administrator could not be reached.

    Attributes:
        content: Rendered forced-logout page, when one could be produced.
        reason: Transport diagnostic.
    """

    content: str | None = None
    reason: str = ""


@dataclass(frozen=True)
class AuthFailed:
    """The administrator rejected the credentials."""


ConnectOutcome = Connected | ConnectFailed | AuthFailed


class SessionManager:
    """Opens authenticated sessions to one administrator.

    Args:
        config: Administrator address, port and timeout.
        transport: Channel factory; defaults to tlslite-ng TLS.
        authenticator: Handshake primitive; defaults to :func:`omp_authenticate`.
        token_registry: Web login registry; tokens are evicted when the
            administrator is unreachable.
        renderer: Used to render the forced-logout page.
    """

    def __init__(
        self,
        config: AdministratorConfig,
        *,
        transport: Transport | None = None,
        authenticator: Authenticator | None = None,
        token_registry: TokenRegistry | None = None,
        renderer: Renderer | None = None,
    ) -> None:
        self.config = config
        self._transport: Transport = transport if transport is not None else TlsTransport()
        self._authenticator: Authenticator = (
            authenticator if authenticator is not None else omp_authenticate
        )
        self._token_registry = token_registry
        self._renderer = renderer

    def connect(self, credentials: Credentials, *, render_fallback: bool = True) -> ConnectOutcome:
        """
        Open and authenticate a session.

        Args:
            credentials: Caller identity.
            render_fallback: Whether the caller can use a rendered
                forced-logout page when the administrator is down.

        Returns:
            Connected, ConnectFailed or AuthFailed. No channel is left open
            unless the outcome is Connected.
        """
        address, port = self.config.address, self.config.port
        try:
            channel = self._transport.open(address, port, self.config.timeout)
        except ConnectError as exc:
            _logger.warning("Administrator at %s:%d unreachable: %s", address, port, exc)
            content = self._service_down(credentials, render_fallback)
            return ConnectFailed(content=content, reason=str(exc))

        try:
            accepted = self._authenticator(channel, credentials.username, credentials.password)
        except OapError as exc:
            _logger.warning("Authentication handshake failed: %s", exc)
            accepted = False
        if not accepted:
            _logger.warning("Authentication failed for %s", credentials.username)
            channel.close()
            return AuthFailed()

        _logger.debug("Session to %s:%d authenticated", address, port)
        return Connected(Session(channel, self.config.timeout))

    def _service_down(self, credentials: Credentials, render_fallback: bool) -> str | None:
        """Evict the caller's token and render the forced-logout page if possible."""
        if credentials.token is None:
            return None

        evicted = self._token_registry is not None and self._token_registry.evict(
            credentials.token
        )
        if not evicted:
            _logger.warning("Could not evict session token after connect failure")
            return None
        _logger.info("Evicted session token: administrator is down")

        if not render_fallback or self._renderer is None:
            return None
        return transform(self._renderer, login_page(_SERVICE_DOWN))
