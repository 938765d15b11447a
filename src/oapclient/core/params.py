"""
Request parameter store.

Holds the HTTP-style parameters of one inbound request: plain scalars,
binary uploads, and multi-valued collections (``prefix:key`` fields and
``name:`` arrays) that expand into repeated elements of outgoing commands.
"""

from __future__ import annotations

__all__ = ["Param", "ParamValidator", "Params"]

import logging
from collections.abc import Callable, Iterator, Mapping
from dataclasses import dataclass

_logger = logging.getLogger(__name__)

# Separates a multi-value prefix from the entry key in a field name
_PREFIX_SEPARATOR = ":"

ParamValidator = Callable[[str, str], bool]
"""Predicate ``(name, value) -> bool`` used by :meth:`Params.validate`."""


@dataclass
class Param:
    """One request parameter.

    Attributes:
        value: Current value. ``bytes`` for binary uploads, ``None`` for a
            multi-value container or a value rejected by validation.
        original_value: Value as received, before validation.
        filename: Upload filename, if the value came from a file field.
        values: Nested parameters for multi-valued fields, else None.
        valid: Validation flag.
        valid_utf8: Whether the value is well-formed UTF-8.
        value_size: Byte length of the value.
        array_len: Number of entries added to an array-style field.
    """

    value: str | bytes | None
    original_value: str | bytes | None
    filename: str | None = None
    values: Params | None = None
    valid: bool = True
    valid_utf8: bool = True
    value_size: int = 0
    array_len: int = 0

    @property
    def text(self) -> str:
        """Value as text; binary values are decoded leniently, missing ones are empty."""
        if self.value is None:
            return ""
        if isinstance(self.value, bytes):
            return self.value.decode("utf-8", errors="replace")
        return self.value


def _byte_size(value: str | bytes | None) -> int:
    if value is None:
        return 0
    if isinstance(value, bytes):
        return len(value)
    return len(value.encode("utf-8", errors="surrogatepass"))


class Params(Mapping[str, Param]):
    """Mapping of parameter name to :class:`Param`.

    Lookup is by exact name. Iteration follows storage order, which callers
    must not rely on for meaning.
    """

    def __init__(self) -> None:
        self._params: dict[str, Param] = {}

    def __repr__(self) -> str:
        return f"Params({self._params!r})"

    # ── Mapping protocol ─────────────────────────────────────────────

    def __getitem__(self, name: str) -> Param:
        return self._params[name]

    def __iter__(self) -> Iterator[str]:
        return iter(self._params)

    def __len__(self) -> int:
        return len(self._params)

    # ── Insertion ────────────────────────────────────────────────────

    def add(self, name: str, value: str | bytes | None) -> Param:
        """Insert or overwrite a parameter.

        The value is stored as both current and original value and the
        parameter is marked valid until it is revalidated.
        """
        param = Param(value=value, original_value=value, value_size=_byte_size(value))
        self._params[name] = param
        return param

    def append_binary(
        self,
        name: str,
        chunk: bytes,
        chunk_size: int,
        chunk_offset: int = 0,
        filename: str | None = None,
    ) -> Param:
        """Accumulate one chunk of a binary upload.

        The first chunk creates the parameter. Later chunks are written at
        ``chunk_offset``; the declared ``chunk_size`` bounds how much of
        ``chunk`` is used, so embedded NUL bytes survive intact. A
        ``filename`` given with any chunk is recorded on the parameter.
        """
        data = chunk[:chunk_size]
        param = self._params.get(name)
        if param is None or not isinstance(param.value, bytes):
            param = self.add(name, bytes(data))
            param.filename = filename
            return param

        if filename is not None:
            param.filename = filename

        buf = bytearray(param.value)
        buf[chunk_offset : chunk_offset + len(data)] = data
        param.value = bytes(buf)
        param.original_value = param.value
        param.value_size = len(buf)
        return param

    def add_request_value(self, name: str, value: str | bytes) -> Param:
        """Store a value received from an HTTP request.

        Field names follow the form conventions:

        - ``prefix:key`` stores ``key`` in the collection under ``prefix:``
          (e.g. ``method_data:max_hosts``).
        - ``name:`` is an array field; each value gets the next index as key
          and the container's ``array_len`` counts the entries.
        - anything else is a plain scalar.
        """
        sep = name.find(_PREFIX_SEPARATOR)
        if sep <= 0:
            return self.add(name, value)

        prefix = name[: sep + 1]
        key = name[sep + 1 :]
        container = self._params.get(prefix)
        entries = container.values if container is not None else None
        if container is None or entries is None:
            entries = Params()
            container = Param(value=None, original_value=None, values=entries)
            self._params[prefix] = container

        if not key:
            container.array_len += 1
            key = str(container.array_len)
        _logger.debug("Multi-value parameter %s entry %s", prefix, key)
        return entries.add(key, value)

    # ── Lookup ───────────────────────────────────────────────────────

    def given(self, name: str) -> bool:
        return name in self._params

    def value(self, name: str) -> str | bytes | None:
        param = self._params.get(name)
        return param.value if param is not None else None

    def original_value(self, name: str) -> str | bytes | None:
        param = self._params.get(name)
        return param.original_value if param is not None else None

    def filename(self, name: str) -> str | None:
        param = self._params.get(name)
        return param.filename if param is not None else None

    def value_size(self, name: str) -> int:
        param = self._params.get(name)
        return param.value_size if param is not None else 0

    def valid(self, name: str) -> bool:
        param = self._params.get(name)
        return param.valid if param is not None else False

    def values_under(self, name: str) -> Params | None:
        """Return the nested collection for a multi-valued name, or None."""
        param = self._params.get(name)
        return param.values if param is not None else None

    # ── Validation ───────────────────────────────────────────────────

    def mark_validated(self, name: str, valid: bool, valid_utf8: bool) -> None:
        """Record validation flags without touching the stored value."""
        param = self._params.get(name)
        if param is None:
            return
        param.valid = valid
        param.valid_utf8 = valid_utf8

    def validate(self, validator: ParamValidator, *, _prefix: str = "") -> bool:
        """Validate every parameter, nested collections included.

        Nested entries are checked under their full field name
        (``prefix:key``). A rejected parameter loses its current value but
        keeps ``original_value``. A container is valid only if all of its
        entries are.

        Returns:
            True if every parameter passed.
        """
        all_valid = True
        for name, param in self._params.items():
            full_name = f"{_prefix}{name}"
            if param.values is not None:
                param.valid = param.values.validate(validator, _prefix=full_name)
                all_valid = all_valid and param.valid
                continue

            text, param.valid_utf8 = _decode(param.original_value)
            param.valid = param.valid_utf8 and validator(full_name, text)
            param.value = param.original_value if param.valid else None
            if not param.valid:
                _logger.debug("Parameter %s failed validation", full_name)
                all_valid = False
        return all_valid


def _decode(value: str | bytes | None) -> tuple[str, bool]:
    """Return (text, is_valid_utf8) for a stored value."""
    if value is None:
        return "", True
    if isinstance(value, str):
        return value, True
    try:
        return value.decode("utf-8"), True
    except UnicodeDecodeError:
        return value.decode("utf-8", errors="replace"), False
