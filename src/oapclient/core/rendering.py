"""
Result documents handed to the rendering collaborator.

Wraps administrator replies in the ``<envelope>`` the page templates
expect, builds status and error documents, and guarantees non-empty
output: if the renderer fails on a document it is asked to render an
internal-error page, and if that fails too a fixed HTML string is
returned.
"""

from __future__ import annotations

__all__ = [
    "INTERNAL_ERROR_HTML",
    "access_refused",
    "envelope",
    "invalid_parameters",
    "login_page",
    "render_envelope",
    "render_message",
    "transform",
]

import logging
import time
from typing import TYPE_CHECKING

from ..constants import BACK_URL_TASKS
from ..network.commands import xml_escape

if TYPE_CHECKING:
    from ..network.protocol import Renderer
    from .credentials import Credentials

_logger = logging.getLogger(__name__)

_TRANSFORM_FAILED = "An internal server error has occurred during XSL transformation."

# Last resort when the renderer cannot render even the error page
INTERNAL_ERROR_HTML = f"<html><body>{_TRANSFORM_FAILED}</body></html>"

_INVALID_PARAM_STATUS = "Invalid parameter"
_INVALID_PARAM_TEXT = (
    "At least one entered value contains invalid characters or exceeds a size limit. "
    "You may use the Back button of your browser to adjust the entered values. "
    "If in doubt, the online help of the respective section will lead you to "
    "the appropriate help page."
)


# ── Documents ───────────────────────────────────────────────────────


def envelope(credentials: Credentials, xml: str, now: str | None = None) -> str:
    """Wrap a result fragment with the caller's context.

    Context fields are escaped; ``capabilities`` and ``xml`` are XML
    fragments and are embedded verbatim.
    """
    if now is None:
        now = time.ctime()
    return (
        "<envelope>"
        f"<token>{xml_escape(credentials.token or '')}</token>"
        f"<caller>{xml_escape(credentials.caller or '')}</caller>"
        f"<time>{xml_escape(now)}</time>"
        f"<timezone>{xml_escape(credentials.timezone or '')}</timezone>"
        f"<login>{xml_escape(credentials.username)}</login>"
        f"<role>{xml_escape(credentials.role)}</role>"
        f"<capabilities>{credentials.capabilities}</capabilities>"
        f"{xml}"
        "</envelope>"
    )


def access_refused(operation: str, detail: str) -> str:
    """``gsad_msg`` telling a non-administrator the operation is refused."""
    return (
        f'<gsad_msg status_text="Access refused." operation="{xml_escape(operation)}">'
        f"{xml_escape(detail)}</gsad_msg>"
    )


def invalid_parameters(operation: str) -> str:
    """``gsad_msg`` reporting rejected request parameters."""
    return (
        f'<gsad_msg status_text="{_INVALID_PARAM_STATUS}" operation="{xml_escape(operation)}">'
        f"{_INVALID_PARAM_TEXT}</gsad_msg>"
    )


def login_page(message: str, now: str | None = None) -> str:
    """Login page document shown after a forced logout."""
    if now is None:
        now = time.ctime()
    return (
        "<login_page>"
        f"<message>{xml_escape(message)}</message>"
        "<token></token>"
        f"<time>{xml_escape(now)}</time>"
        "</login_page>"
    )


def _gsad_response(title: str, message: str, back_url: str) -> str:
    return (
        "<gsad_response>"
        f"<title>{xml_escape(title)}</title>"
        f"<message>{xml_escape(message)}</message>"
        f"<backurl>{xml_escape(back_url)}</backurl>"
        "</gsad_response>"
    )


# ── Rendering ───────────────────────────────────────────────────────


def transform(renderer: Renderer, xml: str) -> str | None:
    """Render a document, returning None if the renderer fails or yields nothing."""
    try:
        output = renderer.transform(xml)
    except Exception as exc:
        _logger.warning("Rendering failed: %s: %s", type(exc).__name__, exc)
        return None
    if not output:
        _logger.warning("Renderer returned empty output")
        return None
    return output


def render_envelope(
    renderer: Renderer, credentials: Credentials, xml: str, now: str | None = None
) -> str:
    """Render a fragment inside the caller's envelope. Never returns empty output."""
    output = transform(renderer, envelope(credentials, xml, now))
    if output is not None:
        return output

    fallback = _gsad_response("Internal Error", _TRANSFORM_FAILED, BACK_URL_TASKS)
    output = transform(renderer, fallback)
    if output is not None:
        return output
    return INTERNAL_ERROR_HTML


def render_message(
    renderer: Renderer,
    credentials: Credentials,
    title: str,
    message: str,
    back_url: str,
    now: str | None = None,
) -> str:
    """Render an error page with a title, diagnostic message and back link."""
    return render_envelope(renderer, credentials, _gsad_response(title, message, back_url), now)
