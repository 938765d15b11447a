"""
Interactive setup wizard for the oapclient CLI.

Configures the administrator address and credentials.
"""

from __future__ import annotations

import sys
from typing import TYPE_CHECKING

from ...api import make_client
from ...config import (
    CONFIG_FILE,
    AdministratorConfig,
    get_administrator_config,
    get_saved_username,
    save_administrator_config,
)
from ...constants import ADMIN_ROLE, ENV_ADDRESS, ENV_PORT
from ...core.credentials import Credentials
from ...core.operations import ReplyOutcome
from ...errors import ConfigError
from ..helpers import offer_save_credentials, prompt_credentials, safe_input

if TYPE_CHECKING:
    import argparse

# ── Setup steps ──────────────────────────────────────────────────────


def _choose_administrator(current: AdministratorConfig) -> AdministratorConfig:
    """
    Step 1: Ask for the administrator address and port.

    Empty input keeps the current value.
    """
    address = safe_input(f"Administrator address [{current.address}]: ")
    if address is None:
        sys.exit(1)
    port_text = safe_input(f"Administrator port [{current.port}]: ")
    if port_text is None:
        sys.exit(1)

    try:
        port = int(port_text) if port_text else current.port
        return AdministratorConfig(
            address=address or current.address, port=port, timeout=current.timeout
        )
    except ValueError:
        print(f"Invalid port: {port_text}", file=sys.stderr)
        sys.exit(1)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)


def _check_login(admin: AdministratorConfig, username: str, password: str) -> None:
    """
    Step 3: Log in and list the settings to prove the configuration works.

    Exits on failure.
    """
    print(f"\nContacting {admin.address}:{admin.port}...", end=" ", flush=True)
    client = make_client(config=admin)
    credentials = Credentials(username=username, password=password, role=ADMIN_ROLE)
    reply = client.get_settings(credentials)

    if reply.ok:
        print("OK")
        return

    print("FAILED")
    if reply.outcome is ReplyOutcome.ACCESS_REFUSED:
        print("  The administrator rejected the credentials.", file=sys.stderr)
    else:
        print(f"  {reply.outcome.value}", file=sys.stderr)
    print("\nCheck the address and credentials and try again.", file=sys.stderr)
    sys.exit(1)


# ── Main setup command ───────────────────────────────────────────────


def cmd_setup(args: argparse.Namespace) -> None:
    """Interactive setup wizard -- configure the administrator and credentials."""
    print("oapclient Setup Wizard")
    print("=" * 40)
    print()

    current = get_administrator_config()
    saved_user = get_saved_username()
    print("Current configuration:")
    print(f"  Administrator: {current.address}:{current.port}")
    if saved_user:
        print(f"  Credentials:   saved (user: {saved_user})")
    print(f"  Config file:   {CONFIG_FILE}")
    print()

    # Step 1: Administrator
    admin = _choose_administrator(current)

    # Step 2: Credentials
    print()
    username, password = prompt_credentials()

    # Step 3: Verify
    _check_login(admin, username, password)

    # Step 4: Save
    save_administrator_config(admin)
    print(f"\nSaved to {CONFIG_FILE}")
    print(f"  Administrator: {admin.address}:{admin.port}")
    print(f"Override anytime with {ENV_ADDRESS} / {ENV_PORT} env variables.")

    offer_save_credentials(username, password)
