"""
Command-line interface for oapclient.

Argument parsing, dispatch, and the session-management subcommands.
Operation commands live in ``admin``.
"""

from __future__ import annotations

import argparse
import logging
import sys

from ...config import get_administrator_config
from ...constants import __version__
from ...network.commands import FEED_KINDS
from .admin import cmd_operation
from .setup import cmd_setup

_OPERATION_COMMANDS = (
    "feeds",
    "sync",
    "settings",
    "edit-settings",
    "save-settings",
    "modify-auth",
)


def _cmd_logout() -> None:
    """Clear credentials, keeping the administrator configuration."""
    from ...config import logout

    logout()
    print("Logged out. Administrator configuration preserved.")
    print("Run 'oapclient setup' to log in again.")


def _add_kind(parser: argparse.ArgumentParser) -> None:
    parser.add_argument(
        "-k",
        "--kind",
        choices=sorted(FEED_KINDS),
        default="nvt",
        help="Feed kind (default: nvt)",
    )


def _build_parser() -> argparse.ArgumentParser:
    admin = get_administrator_config()

    parser = argparse.ArgumentParser(
        prog="oapclient",
        description="Client for the OAP administrator protocol.",
        epilog=(
            "Environment variables:\n"
            "  OAP_USER     Administrator username\n"
            "  OAP_PASS     Administrator password\n"
            f"  OAP_ADDRESS  Administrator address (current: {admin.address})\n"
            f"  OAP_PORT     Administrator port (current: {admin.port})\n"
            f"  OAP_TIMEOUT  Timeout in seconds (current: {admin.timeout})\n"
        ),
        formatter_class=argparse.RawDescriptionHelpFormatter,
    )
    parser.add_argument("-V", "--version", action="version", version=f"oapclient {__version__}")
    parser.add_argument(
        "-v",
        "--verbose",
        action="store_true",
        default=False,
        help="Log protocol activity to stderr",
    )
    parser.add_argument("--address", default=None, help="Administrator address override")
    parser.add_argument("--port", type=int, default=None, help="Administrator port override")
    parser.add_argument("--timeout", type=int, default=None, help="Timeout override in seconds")

    sub = parser.add_subparsers(dest="command", help="Available commands")

    # feeds / sync
    _add_kind(sub.add_parser("feeds", help="Describe a feed"))
    _add_kind(sub.add_parser("sync", help="Synchronize a feed"))

    # settings
    sub.add_parser("settings", help="List global settings")
    sub.add_parser("edit-settings", help="Fetch global settings for editing")
    p_save = sub.add_parser("save-settings", help="Save global settings")
    p_save.add_argument(
        "settings",
        nargs="+",
        metavar="NAME=VALUE",
        help="Settings to save, e.g. method_data:max_rows=1000",
    )

    # modify-auth
    p_auth = sub.add_parser("modify-auth", help="Configure LDAP/ADS authentication")
    p_auth.add_argument(
        "--group",
        required=True,
        help="Authentication method (ldap, ads, ldap_connect)",
    )
    p_auth.add_argument("--host", default=None, help="LDAP/ADS host")
    p_auth.add_argument("--authdn", default=None, help="Bind DN (LDAP methods)")
    p_auth.add_argument("--domain", default=None, help="Domain (ADS)")
    p_auth.add_argument(
        "--enable",
        action=argparse.BooleanOptionalAction,
        default=True,
        help="Enable or disable the method (default: enable)",
    )

    # setup / logout
    sub.add_parser("setup", help="Configure the administrator and credentials")
    sub.add_parser("logout", help="Log out (clear credentials, keep administrator config)")

    return parser


def main() -> None:
    parser = _build_parser()
    args = parser.parse_args()

    if args.verbose:
        logging.basicConfig(level=logging.DEBUG, format="%(name)s: %(message)s")

    if args.command in _OPERATION_COMMANDS:
        cmd_operation(args)
    elif args.command == "setup":
        cmd_setup(args)
    elif args.command == "logout":
        _cmd_logout()
    else:
        parser.print_help()
        sys.exit(1)


if __name__ == "__main__":
    main()
