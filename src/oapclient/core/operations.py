"""
Administrator operations.

Each public method of :class:`OapClient` runs one request/response cycle:
authorization gate, connect, send, read, close, render. Every exit path
closes the session it opened and returns a :class:`Reply` whose content is
renderable output; protocol failures never escape as exceptions.

Mutating operations validate their request parameters first. Invalid
input is answered with a read-only listing plus an invalid-parameter
message and no mutating command is sent.
"""

from __future__ import annotations

__all__ = ["OapClient", "Reply", "ReplyOutcome"]

import enum
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING

from ..constants import BACK_URL_CONFIGS, BACK_URL_TASKS, SETTINGS_PREFIX
from ..errors import SendError, ValidationError
from ..network import commands
from ..network.reader import ReadFailed, read_response, read_text
from ..network.session import AuthFailed, ConnectFailed
from .rendering import access_refused, invalid_parameters, render_envelope, render_message

if TYPE_CHECKING:
    from ..network.protocol import Renderer
    from ..network.session import SessionManager
    from .credentials import Credentials
    from .params import Params

_logger = logging.getLogger(__name__)

_CONNECT_FAILURE = "Failure to connect to administrator daemon."
_SEND_FAILURE = "Failure to send command to administrator daemon."
_RECEIVE_FAILURE = "Failure to receive response from administrator daemon."

_FEED_REFUSAL = "Only users given the Administrator role may access Feed Administration."


class ReplyOutcome(enum.Enum):
    OK = "ok"
    CONNECT_FAILED = "connect_failed"
    ACCESS_REFUSED = "access_refused"
    SEND_FAILED = "send_failed"
    READ_FAILED = "read_failed"
    INVALID_PARAMETERS = "invalid_parameters"


@dataclass(frozen=True)
class Reply:
    """Result of one operation: how it ended and what to show."""

    outcome: ReplyOutcome
    content: str

    @property
    def ok(self) -> bool:
        return self.outcome is ReplyOutcome.OK


@dataclass(frozen=True)
class _Activity:
    """Wording of one operation's refusal and error pages.

    Attributes:
        operation: Operation label, e.g. "List Feeds".
        refusal: Access-refused explanation.
        doing: What was being attempted, completing "occurred while ...".
        consequence: What the user cannot get as a result, if worth saying.
    """

    operation: str
    refusal: str
    doing: str
    consequence: str = ""


# Feed kind -> (list activity, sync activity)
_FEED_ACTIVITIES: dict[str, tuple[_Activity, _Activity]] = {
    "nvt": (
        _Activity(
            "List Feeds",
            _FEED_REFUSAL,
            "getting the feed list",
            "The current list of feeds is not available.",
        ),
        _Activity(
            "Synchronize Feed",
            _FEED_REFUSAL,
            "synchronizing with the NVT feed",
            "Feed synchronization is currently not available.",
        ),
    ),
    "scap": (
        _Activity(
            "List SCAP Feeds",
            _FEED_REFUSAL,
            "getting the SCAP feed list",
            "The current list of SCAP feeds is not available.",
        ),
        _Activity(
            "Synchronize SCAP Feed",
            _FEED_REFUSAL,
            "synchronizing with the SCAP feed",
            "SCAP Feed synchronization is currently not available.",
        ),
    ),
    "cert": (
        _Activity(
            "List CERT Feeds",
            _FEED_REFUSAL,
            "getting the CERT feed list",
            "The current list of CERT feeds is not available.",
        ),
        _Activity(
            "Synchronize CERT Feed",
            _FEED_REFUSAL,
            "synchronizing with the CERT feed",
            "CERT Feed synchronization is currently not available.",
        ),
    ),
}

_GET_SETTINGS = _Activity(
    "List Configurations",
    "Only users given the Administrator role may access the settings list.",
    "getting the settings list",
    "The current list of settings is not available.",
)
_EDIT_SETTINGS = _Activity(
    "Edit Settings",
    "Only users given the Administrator role may edit the settings.",
    "getting the settings",
    "The current list of settings is not available.",
)
_SAVE_SETTINGS = _Activity(
    "Save Settings",
    "Only users given the Administrator role may save the settings.",
    "saving the settings",
    "The settings have not been saved.",
)
_MODIFY_AUTH = _Activity(
    "Save Settings",
    "Only users given the Administrator role may save the settings.",
    "saving the ldap settings",
    "The settings have not been saved.",
)

_MODIFY_AUTH_OPERATION = "Modify Authentication Configuration"

_ADS_METHOD = "method:ads"


def _feed_activity(kind: str, index: int) -> _Activity:
    try:
        return _FEED_ACTIVITIES[kind][index]
    except KeyError:
        raise ValueError(
            f"Unknown feed kind {kind!r}. Expected one of: {', '.join(_FEED_ACTIVITIES)}"
        ) from None


def _param_text(params: Params | None, name: str) -> str | None:
    """Current value of a parameter as text, or None if absent or rejected."""
    if params is None:
        return None
    param = params.get(name)
    if param is None or param.value is None:
        return None
    return param.text


def _auth_settings(params: Params | None) -> tuple[str, list[tuple[str, str]]]:
    """Derive the ``modify_auth`` group and settings from request parameters.

    ``method:ads`` is configured by domain; every other method by bind DN
    (``method:ldap_connect`` included).

    Raises:
        ValidationError: If a required field is missing.
    """
    ldaphost = _param_text(params, "ldaphost")
    method = _param_text(params, "group")
    if ldaphost is None or method is None:
        raise ValidationError("Both ldaphost and group are required")

    group = method if method.startswith("method:") else f"method:{method}"
    if group == _ADS_METHOD:
        key, value = "domain", _param_text(params, "domain")
    else:
        key, value = "authdn", _param_text(params, "authdn")
    if value is None:
        raise ValidationError(f"{key} is required for {group}")

    enable = "true" if _param_text(params, "enable") == "1" else "false"
    return group, [("enable", enable), ("ldaphost", ldaphost), (key, value)]


def _settings_rows(params: Params | None) -> Params:
    """Return the settings rows to save.

    Raises:
        ValidationError: If the rows are missing or any row failed validation.
    """
    rows = params.values_under(SETTINGS_PREFIX) if params is not None else None
    if rows is None:
        raise ValidationError(f"No {SETTINGS_PREFIX} settings given")
    invalid = [name for name, row in rows.items() if not row.valid]
    if invalid:
        raise ValidationError(f"Invalid settings: {', '.join(invalid)}")
    return rows


class OapClient:
    """Runs administrator operations on behalf of web requests.

    Args:
        sessions: Opens one authenticated session per operation.
        renderer: Turns result documents into output.
    """

    def __init__(self, sessions: SessionManager, renderer: Renderer) -> None:
        self._sessions = sessions
        self._renderer = renderer

    # ── Feeds ───────────────────────────────────────────────────────

    def get_feed(
        self, credentials: Credentials, params: Params | None = None, kind: str = "nvt"
    ) -> Reply:
        """Describe the NVT, SCAP or CERT feed."""
        activity = _feed_activity(kind, 0)
        return self._simple(
            credentials, activity, commands.commands(commands.describe_feed(kind))
        )

    def sync_feed(
        self, credentials: Credentials, params: Params | None = None, kind: str = "nvt"
    ) -> Reply:
        """Synchronize a feed, then describe it in the same batch."""
        activity = _feed_activity(kind, 1)
        return self._simple(
            credentials,
            activity,
            commands.commands(commands.sync_feed(kind), commands.describe_feed(kind)),
        )

    # ── Settings ────────────────────────────────────────────────────

    def get_settings(self, credentials: Credentials, params: Params | None = None) -> Reply:
        return self._simple(
            credentials, _GET_SETTINGS, commands.commands(commands.get_settings())
        )

    def edit_settings(self, credentials: Credentials, params: Params | None = None) -> Reply:
        """Fetch the settings and wrap them for the edit form."""
        result = self._exchange(credentials, _EDIT_SETTINGS, commands.get_settings(), raw=True)
        if isinstance(result, Reply):
            return result
        return self._ok(credentials, _EDIT_SETTINGS, f"<edit_settings>{result}</edit_settings>")

    def save_settings(self, credentials: Credentials, params: Params | None) -> Reply:
        """Save the ``method_data:`` rows, then read the settings back."""
        try:
            rows = _settings_rows(params)
        except ValidationError as exc:
            _logger.info("Save Settings rejected: %s", exc)
            return self._invalid(
                credentials,
                _SAVE_SETTINGS,
                "Save Settings",
                commands.commands(commands.get_settings()),
                doing="getting the settings",
            )

        command = commands.commands(commands.modify_settings(rows), commands.get_settings())
        return self._simple(
            credentials,
            _SAVE_SETTINGS,
            command,
            send_back_url=BACK_URL_CONFIGS,
            read_doing="getting the settings",
        )

    # ── Authentication configuration ────────────────────────────────

    def modify_auth(self, credentials: Credentials, params: Params | None) -> Reply:
        """Save one authentication method's configuration.

        Sends ``get_users``, ``modify_auth`` and ``describe_auth`` in one
        batch so the reply shows the state after the change.
        """
        try:
            group, settings = _auth_settings(params)
        except ValidationError as exc:
            _logger.info("%s rejected: %s", _MODIFY_AUTH_OPERATION, exc)
            return self._invalid(
                credentials,
                _MODIFY_AUTH,
                _MODIFY_AUTH_OPERATION,
                commands.commands(commands.get_users(), commands.describe_auth()),
                doing="getting the users list",
            )

        command = commands.commands(
            commands.get_users(),
            commands.modify_auth(group, settings),
            commands.describe_auth(),
        )
        return self._simple(
            credentials,
            _MODIFY_AUTH,
            command,
            send_back_url=BACK_URL_CONFIGS,
            read_doing="getting the ldap settings",
        )

    # ── Request/response cycle ──────────────────────────────────────

    def _simple(
        self,
        credentials: Credentials,
        activity: _Activity,
        command: str,
        *,
        send_back_url: str = BACK_URL_TASKS,
        read_doing: str | None = None,
    ) -> Reply:
        """Run one exchange and render the reply as-is."""
        result = self._exchange(
            credentials,
            activity,
            command,
            send_back_url=send_back_url,
            read_doing=read_doing,
        )
        if isinstance(result, Reply):
            return result
        return self._ok(credentials, activity, result)

    def _invalid(
        self,
        credentials: Credentials,
        activity: _Activity,
        operation: str,
        command: str,
        *,
        doing: str,
    ) -> Reply:
        """Answer rejected input with a read-only listing and a warning."""
        read_only = _Activity(activity.operation, activity.refusal, doing)
        result = self._exchange(credentials, read_only, command, raw=True)
        if isinstance(result, Reply):
            return result
        content = render_envelope(
            self._renderer, credentials, invalid_parameters(operation) + result
        )
        return Reply(ReplyOutcome.INVALID_PARAMETERS, content)

    def _exchange(
        self,
        credentials: Credentials,
        activity: _Activity,
        command: str,
        *,
        raw: bool = False,
        send_back_url: str = BACK_URL_TASKS,
        read_doing: str | None = None,
    ) -> Reply | str:
        """Connect, send ``command`` and read the reply.

        Returns:
            The raw reply text, or a failure Reply. The session is closed
            before this returns either way.
        """
        if not credentials.is_admin:
            _logger.info("%s refused for role %r", activity.operation, credentials.role)
            return self._refused(credentials, activity)

        outcome = self._sessions.connect(credentials)
        if isinstance(outcome, ConnectFailed):
            if outcome.content:
                return Reply(ReplyOutcome.CONNECT_FAILED, outcome.content)
            return self._failure(
                credentials, activity, ReplyOutcome.CONNECT_FAILED, _CONNECT_FAILURE
            )
        if isinstance(outcome, AuthFailed):
            return self._refused(credentials, activity)

        with outcome.session as session:
            try:
                session.send(command)
            except SendError as exc:
                _logger.warning("%s: send failed: %s", activity.operation, exc)
                return self._failure(
                    credentials,
                    activity,
                    ReplyOutcome.SEND_FAILED,
                    _SEND_FAILURE,
                    back_url=send_back_url,
                )
            if raw:
                result = read_text(session, session.timeout)
            else:
                result = read_response(session, session.timeout)

        if isinstance(result, ReadFailed):
            # A mutating batch was already sent, so its effect is unknown.
            return self._failure(
                credentials,
                activity,
                ReplyOutcome.READ_FAILED,
                _RECEIVE_FAILURE,
                doing=read_doing,
                consequence=read_doing is None,
            )
        return result if isinstance(result, str) else result.text

    # ── Replies ─────────────────────────────────────────────────────

    def _ok(self, credentials: Credentials, activity: _Activity, xml: str) -> Reply:
        _logger.info("%s completed", activity.operation)
        return Reply(ReplyOutcome.OK, render_envelope(self._renderer, credentials, xml))

    def _refused(self, credentials: Credentials, activity: _Activity) -> Reply:
        xml = access_refused(activity.operation, activity.refusal)
        return Reply(ReplyOutcome.ACCESS_REFUSED, render_envelope(self._renderer, credentials, xml))

    def _failure(
        self,
        credentials: Credentials,
        activity: _Activity,
        outcome: ReplyOutcome,
        diagnostic: str,
        *,
        back_url: str = BACK_URL_TASKS,
        doing: str | None = None,
        consequence: bool = True,
    ) -> Reply:
        sentences = [f"An internal error occurred while {doing or activity.doing}."]
        if consequence and activity.consequence:
            sentences.append(activity.consequence)
        sentences.append(f"Diagnostics: {diagnostic}")
        message = " ".join(sentences)
        content = render_message(self._renderer, credentials, "Internal error", message, back_url)
        return Reply(outcome, content)
