"""Tests for oapclient.network.session -- connect, authenticate, session lifetime."""

from __future__ import annotations

from unittest.mock import Mock

import pytest

from oapclient.core.credentials import Credentials
from oapclient.errors import ConnectError, ReadError, RenderError, SendError
from oapclient.network.session import (
    AuthFailed,
    ConnectFailed,
    Connected,
    Session,
    SessionManager,
    omp_authenticate,
)

from .conftest import AUTH_OK, FakeChannel


def _manager(admin_config, *, channel=None, accepted=True, connect_error=None, **kwargs):
    transport = Mock()
    if connect_error is not None:
        transport.open.side_effect = connect_error
    else:
        transport.open.return_value = channel
    authenticator = Mock(return_value=accepted)
    manager = SessionManager(
        admin_config, transport=transport, authenticator=authenticator, **kwargs
    )
    return manager, transport, authenticator


# ── omp_authenticate ─────────────────────────────────────────────────


def test_authenticate_accepted():
    channel = FakeChannel(AUTH_OK)
    assert omp_authenticate(channel, "admin", "secret") is True
    assert "<username>admin</username>" in channel.sent_text
    assert "<password>secret</password>" in channel.sent_text


@pytest.mark.parametrize(
    "reply",
    [
        b'<authenticate_response status="400" status_text="Authentication failed"/>',
        b"<authenticate_response/>",
    ],
    ids=["status-400", "no-status"],
)
def test_authenticate_rejected(reply):
    assert omp_authenticate(FakeChannel(reply), "admin", "wrong") is False


def test_authenticate_unreadable_reply():
    assert omp_authenticate(FakeChannel(b"<authenticate_"), "admin", "secret") is False


def test_authenticate_send_failure():
    channel = FakeChannel(send_error=SendError("broken pipe"))
    assert omp_authenticate(channel, "admin", "secret") is False


# ── Session ──────────────────────────────────────────────────────────


def test_session_send_encodes_utf8():
    channel = FakeChannel()
    session = Session(channel, 30)
    session.send("<value>Zürich</value>")
    assert channel.sent == ["<value>Zürich</value>".encode()]


def test_session_context_manager_closes():
    channel = FakeChannel()
    with Session(channel, 30) as session:
        assert session.closed is False
    assert session.closed is True
    assert channel.closed is True


def test_session_closes_on_exception():
    channel = FakeChannel()
    with pytest.raises(RuntimeError), Session(channel, 30):
        raise RuntimeError("boom")
    assert channel.closed is True


def test_session_close_idempotent():
    channel = FakeChannel()
    session = Session(channel, 30)
    session.close()
    session.close()
    assert channel.close_calls == 1


def test_closed_session_refuses_io():
    session = Session(FakeChannel(b"<a/>"), 30)
    session.close()
    with pytest.raises(SendError):
        session.send("<commands/>")
    with pytest.raises(ReadError):
        session.recv(10)


# ── SessionManager.connect ───────────────────────────────────────────


def test_connect_success(admin_config, admin_credentials):
    channel = FakeChannel()
    manager, transport, authenticator = _manager(admin_config, channel=channel)

    outcome = manager.connect(admin_credentials)

    assert isinstance(outcome, Connected)
    assert outcome.session.timeout == admin_config.timeout
    transport.open.assert_called_once_with("127.0.0.1", 9393, admin_config.timeout)
    authenticator.assert_called_once_with(channel, "admin", "secret")
    assert channel.closed is False


def test_connect_auth_failure_closes_channel(admin_config, admin_credentials):
    channel = FakeChannel()
    manager, _, _ = _manager(admin_config, channel=channel, accepted=False)

    outcome = manager.connect(admin_credentials)

    assert isinstance(outcome, AuthFailed)
    assert channel.closed is True


def test_connect_authenticator_error_is_auth_failure(admin_config, admin_credentials):
    channel = FakeChannel()
    manager, _, authenticator = _manager(admin_config, channel=channel)
    authenticator.side_effect = ReadError("reset")

    assert isinstance(manager.connect(admin_credentials), AuthFailed)
    assert channel.closed is True


def test_connect_failure_evicts_token_and_renders_login(
    admin_config, admin_credentials, renderer, token_registry
):
    manager, _, _ = _manager(
        admin_config,
        connect_error=ConnectError("refused"),
        token_registry=token_registry,
        renderer=renderer,
    )

    outcome = manager.connect(admin_credentials)

    assert isinstance(outcome, ConnectFailed)
    token_registry.evict.assert_called_once_with("tok-1")
    assert outcome.content is not None
    assert "Logged out. OAP service is down." in outcome.content
    assert outcome.content.startswith("<login_page>")
    assert "refused" in outcome.reason


def test_connect_failure_without_render_fallback(
    admin_config, admin_credentials, renderer, token_registry
):
    manager, _, _ = _manager(
        admin_config,
        connect_error=ConnectError("refused"),
        token_registry=token_registry,
        renderer=renderer,
    )

    outcome = manager.connect(admin_credentials, render_fallback=False)

    assert isinstance(outcome, ConnectFailed)
    assert outcome.content is None
    token_registry.evict.assert_called_once_with("tok-1")
    renderer.transform.assert_not_called()


def test_connect_failure_eviction_failed(admin_config, admin_credentials, renderer, token_registry):
    token_registry.evict.return_value = False
    manager, _, _ = _manager(
        admin_config,
        connect_error=ConnectError("refused"),
        token_registry=token_registry,
        renderer=renderer,
    )

    outcome = manager.connect(admin_credentials)

    assert isinstance(outcome, ConnectFailed)
    assert outcome.content is None
    token_registry.evict.assert_called_once_with("tok-1")


def test_connect_failure_without_token(admin_config, renderer, token_registry):
    credentials = Credentials(username="admin", password="secret", role="Admin")
    manager, _, _ = _manager(
        admin_config,
        connect_error=ConnectError("refused"),
        token_registry=token_registry,
        renderer=renderer,
    )

    outcome = manager.connect(credentials)

    assert isinstance(outcome, ConnectFailed)
    assert outcome.content is None
    token_registry.evict.assert_not_called()


def test_connect_failure_render_error(admin_config, admin_credentials, token_registry):
    renderer = Mock()
    renderer.transform.side_effect = RenderError("xslt failed")
    manager, _, _ = _manager(
        admin_config,
        connect_error=ConnectError("refused"),
        token_registry=token_registry,
        renderer=renderer,
    )

    outcome = manager.connect(admin_credentials)

    assert isinstance(outcome, ConnectFailed)
    assert outcome.content is None
