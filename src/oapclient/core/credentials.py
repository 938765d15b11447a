"""Caller identity borrowed by each administrator operation."""

from __future__ import annotations

__all__ = ["Credentials"]

from dataclasses import dataclass

from ..constants import ADMIN_ROLE


@dataclass(frozen=True)
class Credentials:
    """Identity and context of the user driving an operation.

    Owned by the calling layer. The client reads it for the duration of one
    operation and never stores it.

    Attributes:
        username: Login name sent in the authentication handshake.
        password: Password sent in the authentication handshake.
        token: Session token of the web login, if any. Evicted from the
            token registry when the administrator turns out to be down.
        caller: URL of the page that issued the request.
        timezone: User timezone, echoed to the renderer.
        role: Role name; only the administrator role may run operations.
        capabilities: Capability list as an XML fragment, echoed verbatim.
    """

    username: str
    password: str
    token: str | None = None
    caller: str | None = None
    timezone: str | None = None
    role: str = ""
    capabilities: str = ""

    @property
    def is_admin(self) -> bool:
        return self.role.strip().lower() == ADMIN_ROLE.lower()

    def __repr__(self) -> str:
        return (
            f"Credentials(username={self.username!r}, role={self.role!r}, "
            f"has_token={self.token is not None})"
        )
