"""
Collaborator interfaces for the OAP client.

The client depends on these protocols, not on concrete implementations:
a transport that opens encrypted channels, the authentication primitive,
the web layer's token registry, and the renderer that turns result XML into
pages.
"""

from __future__ import annotations

from typing import Protocol


class Channel(Protocol):
    """An open, encrypted byte stream to the administrator."""

    def send(self, data: bytes) -> None:
        """Write all of ``data``.

        Raises:
            SendError: If the data could not be written.
        """
        ...

    def recv(self, size: int) -> bytes:
        """Read up to ``size`` bytes; ``b""`` means the peer closed the stream.

        Raises:
            ReadError: On transport failure.
        """
        ...

    def close(self) -> None:
        """Release the channel. Must be safe to call more than once."""
        ...


class Transport(Protocol):
    """Opens channels to the administrator daemon."""

    def open(self, address: str, port: int, timeout: int) -> Channel:
        """
        Open an encrypted channel.

        Args:
            address: Host name or IP address.
            port: TCP port.
            timeout: Socket timeout in seconds.

        Returns:
            An open Channel.

        Raises:
            ConnectError: If the connection or TLS handshake fails.
        """
        ...


class Authenticator(Protocol):
    """Authentication primitive run over a freshly opened channel."""

    def __call__(self, channel: Channel, username: str, password: str) -> bool:
        """Return True if the administrator accepted the credentials."""
        ...


class TokenRegistry(Protocol):
    """The web layer's registry of logged-in session tokens."""

    def evict(self, token: str) -> bool:
        """Remove a token. Returns True if it was removed."""
        ...


class Renderer(Protocol):
    """Turns a result document into output for the user (e.g. via XSLT)."""

    def transform(self, xml: str) -> str:
        """
        Render an XML document.

        Raises:
            RenderError: If the document could not be rendered.
        """
        ...
