"""Operation command handlers for the oapclient CLI."""

from __future__ import annotations

import argparse
import logging
import sys

from ...api import make_client, run_operation
from ...config import resolve_credentials
from ...constants import ADMIN_ROLE
from ...core.credentials import Credentials
from ...core.params import Params
from ...errors import ConfigError
from ..helpers import offer_save_credentials, prompt_credentials

_logger = logging.getLogger(__name__)


def _printable(name: str, value: str) -> bool:
    """Reject control characters in command-line values."""
    return value.isprintable()


def _get_credentials() -> tuple[Credentials, bool]:
    """Get credentials from env vars, saved config, or an interactive prompt.

    Returns:
        (credentials, prompted) where ``prompted`` is True if the user had
        to type anything.
    """
    username, password = resolve_credentials()
    prompted = not (username and password)
    if prompted:
        username, password = prompt_credentials(username or None, password or None)
    return Credentials(username=username, password=password, role=ADMIN_ROLE), prompted


def _parse_assignments(assignments: list[str]) -> Params:
    """Turn ``NAME=VALUE`` arguments into request parameters.

    Raises:
        ValueError: If an argument has no ``=``.
    """
    params = Params()
    for assignment in assignments:
        name, sep, value = assignment.partition("=")
        if not sep or not name:
            raise ValueError(f"Expected NAME=VALUE, got {assignment!r}")
        params.add_request_value(name, value)
    return params


def _auth_params(args: argparse.Namespace) -> Params:
    params = Params()
    params.add("group", args.group)
    if args.host is not None:
        params.add("ldaphost", args.host)
    if args.authdn is not None:
        params.add("authdn", args.authdn)
    if args.domain is not None:
        params.add("domain", args.domain)
    params.add("enable", "1" if args.enable else "0")
    return params


def build_params(args: argparse.Namespace) -> Params:
    """Request parameters for the selected command, validated.

    Raises:
        ValueError: If ``save-settings`` arguments are malformed.
    """
    if args.command == "save-settings":
        params = _parse_assignments(args.settings)
    elif args.command == "modify-auth":
        params = _auth_params(args)
    else:
        params = Params()
    if not params.validate(_printable):
        _logger.debug("Some parameters were rejected by validation")
    return params


# Subcommand -> operation name
_COMMAND_OPERATIONS = {
    "feeds": "get_feed",
    "sync": "sync_feed",
    "settings": "get_settings",
    "edit-settings": "edit_settings",
    "save-settings": "save_settings",
    "modify-auth": "modify_auth",
}


def cmd_operation(args: argparse.Namespace) -> None:
    """Run one administrator operation and print the resulting document."""
    try:
        params = build_params(args)
    except ValueError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    try:
        client = make_client(address=args.address, port=args.port, timeout=args.timeout)
    except ConfigError as e:
        print(f"Error: {e}", file=sys.stderr)
        sys.exit(1)

    credentials, prompted = _get_credentials()

    operation = _COMMAND_OPERATIONS[args.command]
    kwargs = {"kind": args.kind} if operation in ("get_feed", "sync_feed") else {}
    reply = run_operation(client, operation, credentials, params, **kwargs)

    print(reply.content)
    if not reply.ok:
        print(f"Operation failed: {reply.outcome.value}", file=sys.stderr)
        sys.exit(1)

    if prompted:
        offer_save_credentials(credentials.username, credentials.password)
