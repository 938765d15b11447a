"""Shared test fixtures for the oapclient test suite."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from oapclient.config.config import AdministratorConfig
from oapclient.core.credentials import Credentials
from oapclient.core.operations import OapClient
from oapclient.network.session import SessionManager

# Administrator reply to a successful <authenticate>
AUTH_OK = b'<authenticate_response status="200" status_text="OK"/>'


class FakeChannel:
    """Scripted channel: ``recv`` hands out queued chunks, then EOF.

    Queued exceptions are raised instead of returned.
    """

    def __init__(self, *chunks: bytes | Exception, send_error: Exception | None = None):
        self.chunks = list(chunks)
        self.send_error = send_error
        self.sent: list[bytes] = []
        self.closed = False
        self.close_calls = 0

    def send(self, data: bytes) -> None:
        if self.send_error is not None:
            raise self.send_error
        self.sent.append(data)

    def recv(self, size: int) -> bytes:
        if not self.chunks:
            return b""
        chunk = self.chunks.pop(0)
        if isinstance(chunk, Exception):
            raise chunk
        return chunk

    def close(self) -> None:
        self.closed = True
        self.close_calls += 1

    @property
    def sent_text(self) -> str:
        return b"".join(self.sent).decode("utf-8")


@pytest.fixture
def admin_config():
    return AdministratorConfig()


@pytest.fixture
def admin_credentials():
    return Credentials(
        username="admin",
        password="secret",
        token="tok-1",
        caller="/omp?cmd=get_feeds",
        timezone="UTC",
        role="Admin",
        capabilities="<help_response/>",
    )


@pytest.fixture
def user_credentials():
    return Credentials(username="bob", password="pw", token="tok-2", role="User")


@pytest.fixture
def renderer():
    """Renderer mock that returns documents unchanged."""
    mock = Mock()
    mock.transform.side_effect = lambda xml: xml
    return mock


@pytest.fixture
def token_registry():
    mock = Mock()
    mock.evict.return_value = True
    return mock


@pytest.fixture
def make_client(admin_config, renderer, token_registry):
    """Build an OapClient whose transport hands out the given channel.

    Pass ``channel=None`` with ``connect_error`` set to simulate an
    unreachable administrator. The authenticator accepts unless
    ``accepted=False``.
    """

    def _make(channel=None, *, accepted=True, connect_error=None):
        transport = Mock()
        if connect_error is not None:
            transport.open.side_effect = connect_error
        else:
            transport.open.return_value = channel
        authenticator = Mock(return_value=accepted)
        sessions = SessionManager(
            admin_config,
            transport=transport,
            authenticator=authenticator,
            token_registry=token_registry,
            renderer=renderer,
        )
        return OapClient(sessions, renderer), transport

    return _make
