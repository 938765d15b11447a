# pyright: reportUnknownMemberType=false, reportUnknownVariableType=false, reportUnknownArgumentType=false
"""TLS transport to the administrator daemon using tlslite-ng.

The administrator speaks OAP over a raw TLS socket (no HTTP framing).
tlslite-ng's pure-Python TLS stack gives a socket-like connection with
``sendall``/``recv``/``close``, wrapped here as a :class:`TlsChannel`.
"""

from __future__ import annotations

__all__ = ["TlsChannel", "TlsTransport", "make_handshake_settings"]

import logging
import socket

from tlslite import HandshakeSettings, TLSConnection
from tlslite.errors import BaseTLSException

from ..errors import ConnectError, ReadError, SendError

_logger = logging.getLogger(__name__)


def make_handshake_settings() -> HandshakeSettings:
    """Build client handshake settings accepting TLS 1.0 and newer."""
    settings = HandshakeSettings()
    settings.minVersion = (3, 1)  # TLS 1.0
    return settings


class TlsChannel:
    """An established TLS connection to the administrator."""

    def __init__(self, sock: socket.socket, tls: TLSConnection, peer: str) -> None:
        self._sock = sock
        self._tls = tls
        self.peer = peer
        self.closed = False

    def send(self, data: bytes) -> None:
        if self.closed:
            raise SendError(f"Channel to {self.peer} is closed")
        try:
            self._tls.sendall(data)
        except (OSError, BaseTLSException) as exc:
            raise SendError(f"Send to {self.peer} failed: {exc}") from exc
        _logger.debug("Sent %d bytes to %s", len(data), self.peer)

    def recv(self, size: int) -> bytes:
        if self.closed:
            raise ReadError(f"Channel to {self.peer} is closed")
        try:
            return bytes(self._tls.recv(size))
        except TimeoutError as exc:
            raise ReadError(f"Read from {self.peer} timed out") from exc
        except (OSError, BaseTLSException) as exc:
            raise ReadError(f"Read from {self.peer} failed: {exc}") from exc

    def close(self) -> None:
        if self.closed:
            return
        self.closed = True
        try:
            self._tls.close()
        except (OSError, BaseTLSException) as exc:
            _logger.debug("TLS shutdown with %s failed: %s", self.peer, exc)
        finally:
            self._sock.close()
        _logger.debug("Closed channel to %s", self.peer)


class TlsTransport:
    """Opens :class:`TlsChannel` connections with tlslite-ng."""

    def __init__(self, settings: HandshakeSettings | None = None) -> None:
        self._settings = settings

    def open(self, address: str, port: int, timeout: int) -> TlsChannel:
        """
        Connect to ``address:port`` and complete the TLS handshake.

        Raises:
            ConnectError: On connection or TLS handshake failures.
        """
        peer = f"{address}:{port}"
        _logger.debug("Opening TLS channel to %s (timeout=%ds)", peer, timeout)

        try:
            sock = socket.create_connection((address, port), timeout=timeout)
        except TimeoutError as exc:
            raise ConnectError(
                f"Connection to {peer} timed out after {timeout}s",
                retryable=True,
            ) from exc
        except OSError as exc:
            raise ConnectError(f"Cannot connect to {peer}: {exc}", retryable=True) from exc

        try:
            tls = TLSConnection(sock)
            # The daemon may drop TCP without a close_notify alert after its
            # last reply; without this the final recv() raises.
            tls.ignoreAbruptClose = True
            # NOTE: the administrator presents a locally generated certificate;
            # tlslite-ng does not verify it.
            tls.handshakeClientCert(settings=self._settings or make_handshake_settings())
        except TimeoutError as exc:
            sock.close()
            raise ConnectError(
                f"TLS handshake with {peer} timed out after {timeout}s",
                retryable=True,
            ) from exc
        except (OSError, BaseTLSException) as exc:
            sock.close()
            raise ConnectError(f"TLS handshake with {peer} failed: {exc}") from exc

        _logger.debug("TLS channel to %s established", peer)
        return TlsChannel(sock, tls, peer)
