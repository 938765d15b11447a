"""Tests for oapclient.config -- config storage and administrator settings."""

from __future__ import annotations

import json
import os
from unittest.mock import patch

import pytest

from oapclient.config._storage import load_config, load_raw_config, save_config
from oapclient.config.config import (
    AdministratorConfig,
    get_administrator_config,
    logout,
    reset_all,
    save_administrator_config,
)
from oapclient.errors import ConfigError


@pytest.fixture
def config_dir(tmp_path):
    """Redirect config to a temp directory and keep the keychain out of it."""
    config_file = tmp_path / "config.json"
    with (
        patch("oapclient.config._storage.CONFIG_DIR", tmp_path),
        patch("oapclient.config._storage.CONFIG_FILE", config_file),
        patch("oapclient.config.credentials._keyring_delete"),
        patch.dict(
            "os.environ", {"OAP_ADDRESS": "", "OAP_PORT": "", "OAP_TIMEOUT": ""}
        ),
    ):
        yield tmp_path, config_file


# ── load_config / save_config ─────────────────────────────────────


def test_load_empty(config_dir):
    """Loading when no config file exists should return empty dict."""
    assert load_config() == {}


def test_save_and_load(config_dir):
    _, config_file = config_dir
    save_config({"address": "10.0.0.5", "port": 9390, "username": "admin"})
    assert config_file.exists()

    loaded = load_config()
    assert loaded.get("address") == "10.0.0.5"
    assert loaded.get("port") == 9390
    assert loaded.get("username") == "admin"


def test_load_config_drops_unknown_and_mistyped(config_dir):
    save_config({"address": "", "port": "9390", "timeout": True, "extra": 1})
    assert load_config() == {}
    assert load_raw_config()["extra"] == 1


def test_load_corrupt_json(config_dir):
    _, config_file = config_dir
    config_file.write_text("{broken json", encoding="utf-8")
    assert load_config() == {}


def test_load_raw_config_os_error(config_dir):
    """OSError when reading config file should return empty dict."""
    _, config_file = config_dir
    config_file.write_text('{"address": "h"}', encoding="utf-8")
    with patch.object(type(config_file), "read_text", side_effect=OSError("permission denied")):
        assert load_raw_config() == {}


@pytest.mark.parametrize(
    ("key", "value"),
    [("timeout", 99999), ("timeout", 0), ("port", 70000), ("port", 0)],
    ids=["timeout-high", "timeout-zero", "port-high", "port-zero"],
)
def test_load_config_out_of_range(config_dir, key, value):
    save_config({key: value})
    assert key not in load_config()


def test_save_config_write_failure_cleans_up(config_dir):
    """Exception during write should clean up temp file and re-raise."""
    tmp_path, _config_file = config_dir

    def failing_fdopen(fd, *args, **kwargs):
        raise OSError("disk full")

    with patch("os.fdopen", failing_fdopen), pytest.raises(OSError, match="disk full"):
        save_config({"address": "h"})

    assert list(tmp_path.glob("*.tmp")) == []


def test_config_file_permissions(config_dir):
    if os.name == "nt":
        pytest.skip("permission bits not applicable on Windows")
    _, config_file = config_dir
    save_config({"address": "h"})
    assert config_file.stat().st_mode & 0o777 == 0o600


def test_config_is_valid_json(config_dir):
    _, config_file = config_dir
    save_config({"address": "h", "port": 1})
    assert json.loads(config_file.read_text(encoding="utf-8")) == {"address": "h", "port": 1}


# ── AdministratorConfig ──────────────────────────────────────────────


def test_administrator_defaults():
    config = AdministratorConfig()
    assert config.address == "127.0.0.1"
    assert config.port == 9393
    assert config.timeout == 30


@pytest.mark.parametrize(
    "kwargs",
    [{"address": ""}, {"port": 0}, {"port": 65536}, {"timeout": 0}],
    ids=["empty-address", "port-zero", "port-high", "timeout-zero"],
)
def test_administrator_config_rejects(kwargs):
    with pytest.raises(ConfigError):
        AdministratorConfig(**kwargs)


def test_administrator_config_is_frozen():
    config = AdministratorConfig()
    with pytest.raises(AttributeError):
        config.port = 1  # type: ignore[misc]


# ── get_administrator_config ─────────────────────────────────────────


def test_get_administrator_config_defaults(config_dir):
    assert get_administrator_config() == AdministratorConfig()


def test_get_administrator_config_from_file(config_dir):
    save_config({"address": "scanner.local", "port": 9390, "timeout": 60})
    assert get_administrator_config() == AdministratorConfig("scanner.local", 9390, 60)


def test_get_administrator_config_env_overrides_file(config_dir):
    save_config({"address": "scanner.local", "port": 9390})
    with patch.dict("os.environ", {"OAP_ADDRESS": "10.1.1.1", "OAP_PORT": "9999"}):
        config = get_administrator_config()
    assert config.address == "10.1.1.1"
    assert config.port == 9999


@pytest.mark.parametrize(
    ("env", "expected_port"),
    [("abc", 9390), ("0", 9390), ("70000", 9390)],
    ids=["malformed", "zero", "too-high"],
)
def test_get_administrator_config_ignores_bad_env(config_dir, env, expected_port):
    save_config({"port": 9390})
    with patch.dict("os.environ", {"OAP_PORT": env}):
        assert get_administrator_config().port == expected_port


def test_save_administrator_config_preserves_other_keys(config_dir):
    save_config({"username": "admin"})
    save_administrator_config(AdministratorConfig("h", 9390, 45))

    loaded = load_config()
    assert loaded == {"address": "h", "port": 9390, "timeout": 45, "username": "admin"}


# ── logout / reset_all ───────────────────────────────────────────────


def test_logout_keeps_administrator(config_dir):
    save_config({"address": "h", "port": 9390, "username": "admin"})
    logout()
    loaded = load_config()
    assert "username" not in loaded
    assert loaded.get("address") == "h"


def test_reset_all_clears_everything(config_dir):
    save_config({"address": "h", "username": "admin"})
    reset_all()
    assert load_config() == {}
