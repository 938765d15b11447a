"""Network transport and OAP wire protocol layer."""

from __future__ import annotations

from .protocol import Authenticator, Channel, Renderer, TokenRegistry, Transport
from .transport import TlsTransport

__all__ = ["Authenticator", "Channel", "Renderer", "TlsTransport", "TokenRegistry", "Transport"]
