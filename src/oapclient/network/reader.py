"""Administrator reply reader.

Replies are single XML documents with no length prefix, so the reader
feeds received bytes to an incremental parser until the root element
closes. Parsing goes through defusedxml so a hostile peer cannot expand
entities or pull in external resources.

The public readers never raise: failures come back as :class:`ReadFailed`
so callers can branch and close the session.
"""

from __future__ import annotations

__all__ = ["CommandResult", "ReadFailed", "read_response", "read_text"]

import logging
import time
from dataclasses import dataclass
from typing import Protocol
from xml.etree.ElementTree import Element, ParseError, TreeBuilder

from defusedxml import DefusedXmlException
from defusedxml.ElementTree import DefusedXMLParser

from ..constants import (
    BYTES_PER_MB,
    DEFAULT_TIMEOUT,
    MAX_RESPONSE_SIZE,
    RECV_BUFFER_SIZE,
    XML_PREVIEW_LENGTH,
)
from ..errors import OapError, ReadError

_logger = logging.getLogger(__name__)


class _Readable(Protocol):
    def recv(self, size: int) -> bytes: ...


@dataclass(frozen=True)
class CommandResult:
    """A complete reply: parsed document plus the exact text received."""

    document: Element
    text: str

    @property
    def status(self) -> str | None:
        """The root element's ``status`` attribute (e.g. ``"200"``)."""
        return self.document.get("status")

    @property
    def status_text(self) -> str | None:
        return self.document.get("status_text")


@dataclass(frozen=True)
class ReadFailed:
    """The reply could not be read or parsed."""

    reason: str


class _ReplyTarget:
    """Parser target that tracks element depth and optionally builds a tree."""

    def __init__(self, build_tree: bool) -> None:
        self._builder = TreeBuilder() if build_tree else None
        self.depth = 0
        self.complete = False

    def start(self, tag: str, attrib: dict[str, str]) -> None:
        self.depth += 1
        if self._builder is not None:
            self._builder.start(tag, attrib)

    def end(self, tag: str) -> None:
        self.depth -= 1
        if self.depth == 0:
            self.complete = True
        if self._builder is not None:
            self._builder.end(tag)

    def data(self, text: str) -> None:
        if self._builder is not None:
            self._builder.data(text)

    def close(self) -> Element | None:
        return self._builder.close() if self._builder is not None else None


def _read_reply(
    channel: _Readable, *, build_tree: bool, timeout: int = DEFAULT_TIMEOUT
) -> tuple[str, Element | None]:
    """Read one reply document from the channel.

    Returns:
        (raw text, root element or None when ``build_tree`` is False).

    Raises:
        ReadError: On transport failure, early EOF, malformed or forbidden
            XML, size-limit or wall-clock violations.
    """
    target = _ReplyTarget(build_tree)
    parser = DefusedXMLParser(target=target)
    chunks: list[bytes] = []
    total_size = 0
    deadline = time.monotonic() + timeout

    while not target.complete:
        if time.monotonic() > deadline:
            raise ReadError(f"Reply exceeded {timeout}s wall-clock timeout")
        chunk = channel.recv(RECV_BUFFER_SIZE)
        if not chunk:
            raise ReadError(f"Connection closed after {total_size} bytes, reply incomplete")
        total_size += len(chunk)
        if total_size > MAX_RESPONSE_SIZE:
            raise ReadError(f"Reply exceeds {MAX_RESPONSE_SIZE // BYTES_PER_MB} MB limit")
        chunks.append(chunk)
        try:
            parser.feed(chunk)
            # Expat >= 2.6 may defer small chunks; flush so the root end is seen.
            if hasattr(parser, "flush"):
                parser.flush()
        except ParseError as exc:
            # Bytes after a finished root element are not part of this reply.
            if not target.complete:
                raw = b"".join(chunks).decode("utf-8", errors="replace")
                _logger.debug("Malformed reply: %s", raw[:XML_PREVIEW_LENGTH])
                raise ReadError(f"Malformed reply: {exc}") from exc
        except DefusedXmlException as exc:
            raise ReadError(f"Forbidden XML construct in reply: {exc}") from exc

    text = b"".join(chunks).decode("utf-8", errors="replace")
    _logger.debug("Read reply: %d bytes", total_size)
    return text, target.close()


def read_response(channel: _Readable, timeout: int = DEFAULT_TIMEOUT) -> CommandResult | ReadFailed:
    """Read a reply into a parsed document plus its raw text."""
    try:
        text, document = _read_reply(channel, build_tree=True, timeout=timeout)
    except OapError as exc:
        _logger.warning("Failed to read administrator reply: %s", exc)
        return ReadFailed(str(exc))
    if document is None:
        return ReadFailed("Reply contained no document")
    return CommandResult(document=document, text=text)


def read_text(channel: _Readable, timeout: int = DEFAULT_TIMEOUT) -> str | ReadFailed:
    """Read a reply as raw text for splicing into a larger document.

    Only tracks where the reply ends; no tree is built.
    """
    try:
        text, _ = _read_reply(channel, build_tree=False, timeout=timeout)
    except OapError as exc:
        _logger.warning("Failed to read administrator reply: %s", exc)
        return ReadFailed(str(exc))
    return text
