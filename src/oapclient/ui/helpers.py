"""
Common CLI helper functions for oapclient.

Prompting and credential handling shared by the setup wizard and the
operation commands.
"""

from __future__ import annotations

import getpass
import sys

from ..constants import ENV_PASS, ENV_USER

__all__ = [
    "confirm_choice",
    "offer_save_credentials",
    "prompt_credentials",
    "safe_input",
]


def safe_input(prompt: str) -> str | None:
    """Prompt user for input, returning None on EOF/KeyboardInterrupt.

    Prints a newline on interrupt to keep the terminal tidy.

    Args:
        prompt: The prompt string to display.

    Returns:
        Stripped user input, or None if cancelled (Ctrl-C, Ctrl-D).
    """
    try:
        return input(prompt).strip()
    except (EOFError, KeyboardInterrupt):
        print()
        return None


def confirm_choice(message: str, default_yes: bool = True) -> bool:
    """
    Prompt user for yes/no confirmation.

    Args:
        message: Question to ask the user (without the [Y/n] suffix).
        default_yes: If True, empty input defaults to yes. If False, defaults to no.

    Returns:
        True if the user confirmed, False otherwise.
    """
    suffix = "[Y/n]" if default_yes else "[y/N]"
    try:
        answer = input(f"{message} {suffix} ").strip().lower()
    except (EOFError, KeyboardInterrupt):
        print()
        return False

    if default_yes:
        return answer in ("", "y", "yes")
    return answer in ("y", "yes")


def prompt_credentials(username: str | None = None, password: str | None = None) -> tuple[str, str]:
    """
    Prompt for username and/or password interactively.

    Skips the prompt for any value already provided.

    Returns:
        (username, password) tuple.

    Raises:
        SystemExit: If the user cancels (Ctrl-C, Ctrl-D) or provides empty input.
    """
    if not username:
        try:
            username = input("Administrator username: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            sys.exit(1)

    if not password:
        try:
            password = getpass.getpass("Administrator password: ").strip()
        except (EOFError, KeyboardInterrupt):
            print()
            sys.exit(1)

    if not username or not password:
        print("Error: username and password are required.", file=sys.stderr)
        sys.exit(1)

    return username, password


def offer_save_credentials(username: str, password: str) -> None:
    """Ask the user if they want to save credentials for future use.

    On confirmation, saves via the config module and prints storage info.
    """
    from ..config import get_credential_storage_info, save_credentials

    if not confirm_choice("\nSave credentials for future use?"):
        print("Credentials not saved.")
        return

    if save_credentials(username, password):
        print(f"Credentials saved to: {get_credential_storage_info()}")
    else:
        print("Username saved; the system keychain is unavailable, so the password was not.")
    print(f"  (env vars {ENV_USER}/{ENV_PASS} always take priority)")

