"""Tests for oapclient.api -- high-level convenience functions."""

from __future__ import annotations

from unittest.mock import Mock, patch

import pytest

from oapclient.api import (
    OPERATIONS,
    PassthroughRenderer,
    make_client,
    make_credentials,
    run_operation,
)
from oapclient.config.config import AdministratorConfig
from oapclient.core.operations import OapClient, ReplyOutcome
from oapclient.errors import AuthError, ConfigError

from .conftest import FakeChannel


def test_passthrough_renderer():
    assert PassthroughRenderer().transform("<x/>") == "<x/>"


# ── make_client ──────────────────────────────────────────────────────


def test_make_client_uses_resolved_config():
    config = AdministratorConfig("scanner.local", 9390, 60)
    with patch("oapclient.api.get_administrator_config", return_value=config):
        client = make_client()
    assert isinstance(client, OapClient)
    assert client._sessions.config == config


def test_make_client_explicit_overrides():
    with patch("oapclient.api.get_administrator_config", return_value=AdministratorConfig()):
        client = make_client(address="10.0.0.9", port=9390)
    assert client._sessions.config == AdministratorConfig("10.0.0.9", 9390, 30)


def test_make_client_explicit_config_skips_lookup():
    config = AdministratorConfig("h", 1, 1)
    with patch("oapclient.api.get_administrator_config") as lookup:
        client = make_client(config=config, timeout=5)
    lookup.assert_not_called()
    assert client._sessions.config == AdministratorConfig("h", 1, 5)


def test_make_client_invalid_override():
    with (
        patch("oapclient.api.get_administrator_config", return_value=AdministratorConfig()),
        pytest.raises(ConfigError),
    ):
        make_client(port=0)


def test_make_client_end_to_end(admin_credentials):
    channel = FakeChannel(b"<settings/>")
    transport = Mock()
    transport.open.return_value = channel

    with patch("oapclient.network.session.omp_authenticate", return_value=True):
        client = make_client(config=AdministratorConfig(), transport=transport)
        reply = client.get_settings(admin_credentials)

    assert reply.outcome is ReplyOutcome.OK
    assert reply.content.endswith("<settings/></envelope>")


# ── make_credentials ─────────────────────────────────────────────────


def test_make_credentials_explicit():
    credentials = make_credentials("admin", "pw")
    assert credentials.username == "admin"
    assert credentials.is_admin is True


def test_make_credentials_resolves_missing():
    with patch("oapclient.api.resolve_credentials", return_value=("saved", "savedpw")):
        credentials = make_credentials()
    assert (credentials.username, credentials.password) == ("saved", "savedpw")


def test_make_credentials_none_available():
    with (
        patch("oapclient.api.resolve_credentials", return_value=("", "")),
        pytest.raises(AuthError, match="No credentials"),
    ):
        make_credentials()


# ── run_operation ────────────────────────────────────────────────────


@pytest.mark.parametrize("name", OPERATIONS)
def test_run_operation_dispatches(name, admin_credentials):
    client = Mock(spec=OapClient)
    run_operation(client, name, admin_credentials, None)
    getattr(client, name).assert_called_once_with(admin_credentials, None)


def test_run_operation_passes_kind(admin_credentials):
    client = Mock(spec=OapClient)
    run_operation(client, "sync_feed", admin_credentials, None, kind="cert")
    client.sync_feed.assert_called_once_with(admin_credentials, None, kind="cert")


def test_run_operation_unknown(admin_credentials):
    with pytest.raises(ValueError, match="Unknown operation"):
        run_operation(Mock(spec=OapClient), "delete_everything", admin_credentials)
