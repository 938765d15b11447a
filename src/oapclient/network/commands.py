"""OAP command builders.

Every builder escapes the text and attribute values it is given -- callers
pass raw user input and do NOT escape it themselves. Builders return XML
fragments; :func:`commands` batches fragments into one ``<commands>``
envelope, which the administrator executes in document order.
"""

from __future__ import annotations

__all__ = [
    "FEED_KINDS",
    "authenticate",
    "commands",
    "describe_auth",
    "describe_feed",
    "element",
    "get_settings",
    "get_users",
    "modify_auth",
    "modify_settings",
    "sync_feed",
    "xml_escape",
]

from typing import TYPE_CHECKING
from xml.sax.saxutils import escape as _xml_escape

if TYPE_CHECKING:
    from collections.abc import Iterable

    from ..core.params import Params

# Feed kind -> (describe command, sync command)
FEED_KINDS: dict[str, tuple[str, str]] = {
    "nvt": ("describe_feed", "sync_feed"),
    "scap": ("describe_scap", "sync_scap"),
    "cert": ("describe_cert", "sync_cert"),
}


def xml_escape(s: str) -> str:
    """Escape XML special characters for text and attribute content."""
    return _xml_escape(s, {'"': "&quot;", "'": "&apos;"})


def element(tag: str, text: str | None = None, /, **attrs: str) -> str:
    """Build one element with escaped attributes and text.

    Elements without text are self-closing. Attribute order follows the
    keyword order.
    """
    attr_part = "".join(f' {name}="{xml_escape(value)}"' for name, value in attrs.items())
    if text is None:
        return f"<{tag}{attr_part}/>"
    return f"<{tag}{attr_part}>{xml_escape(text)}</{tag}>"


def commands(*parts: str) -> str:
    """Wrap command fragments in a ``<commands>`` envelope, order preserved."""
    return "<commands>" + "".join(parts) + "</commands>"


def _feed_commands(kind: str) -> tuple[str, str]:
    try:
        return FEED_KINDS[kind]
    except KeyError:
        raise ValueError(
            f"Unknown feed kind {kind!r}. Expected one of: {', '.join(FEED_KINDS)}"
        ) from None


# ── Feeds ───────────────────────────────────────────────────────────


def describe_feed(kind: str = "nvt") -> str:
    """``<describe_feed/>``, ``<describe_scap/>`` or ``<describe_cert/>``."""
    return element(_feed_commands(kind)[0])


def sync_feed(kind: str = "nvt") -> str:
    """``<sync_feed/>``, ``<sync_scap/>`` or ``<sync_cert/>``."""
    return element(_feed_commands(kind)[1])


# ── Settings ────────────────────────────────────────────────────────


def get_settings() -> str:
    return element("get_settings")


def modify_settings(settings: Params | None) -> str:
    """Build ``<modify_settings>`` with one ``<setting>`` per entry.

    Entries are emitted in the collection's storage order; none are skipped.
    """
    rows: list[str] = []
    if settings is not None:
        for name, setting in settings.items():
            rows.append(
                "<setting>" + element("name", name) + element("value", setting.text) + "</setting>"
            )
    return "<modify_settings>" + "".join(rows) + "</modify_settings>"


# ── Users and authentication configuration ─────────────────────────


def get_users() -> str:
    return element("get_users")


def describe_auth() -> str:
    return element("describe_auth")


def modify_auth(group: str, settings: Iterable[tuple[str, str]]) -> str:
    """Build ``<modify_auth>`` for one configuration group.

    Args:
        group: Group name, e.g. ``method:ldap``.
        settings: ``(key, value)`` pairs, emitted in the given order as
            ``<auth_conf_setting key=".." value=".."/>``.
    """
    body = "".join(element("auth_conf_setting", key=key, value=value) for key, value in settings)
    return "<modify_auth>" + f'<group name="{xml_escape(group)}">' + body + "</group></modify_auth>"


def authenticate(username: str, password: str) -> str:
    """Build the ``<authenticate>`` handshake command."""
    return (
        "<authenticate><credentials>"
        + element("username", username)
        + element("password", password)
        + "</credentials></authenticate>"
    )
