"""Session middleware — signed cookie sessions that may be absent.

Session data is serialized as JSON and signed using ``itsdangerous``.
A session *exists* for a request only when the request carried a valid
session cookie, or when code asks for one with ``get_session()``.
Read-only consumers call ``get_session(create=False)`` and get ``None``
instead of a fresh session, so merely looking never creates a cookie.
"""

from contextvars import ContextVar
from dataclasses import dataclass
from time import time
from typing import Any, Literal, overload

from itsdangerous import BadData, URLSafeTimedSerializer

from perch.errors import ConfigurationError
from perch.http.request import Request
from perch.http.response import Response
from perch.middleware.protocol import Next


@dataclass(slots=True)
class _SessionSlot:
    """Per-request holder: the session dict, or ``None`` while absent."""

    data: dict[str, Any] | None = None


_slot_var: ContextVar[_SessionSlot | None] = ContextVar("perch_session", default=None)


@overload
def get_session(*, create: Literal[True] = ...) -> dict[str, Any]: ...
@overload
def get_session(*, create: bool) -> dict[str, Any] | None: ...


def get_session(*, create: bool = True) -> dict[str, Any] | None:
    """Return the current session dict.

    With ``create=False`` returns ``None`` when the request has no
    session (or when no ``SessionMiddleware`` is active). With the
    default ``create=True`` a missing session is started; that raises
    ``LookupError`` outside a ``SessionMiddleware`` scope.
    """
    slot = _slot_var.get()
    if slot is None:
        if not create:
            return None
        msg = (
            "No active session scope. Ensure SessionMiddleware wraps "
            "the action before accessing the session."
        )
        raise LookupError(msg)
    if slot.data is None and create:
        slot.data = {}
    return slot.data


def invalidate_session() -> None:
    """Discard the current session; the response expires its cookie."""
    slot = _slot_var.get()
    if slot is not None:
        slot.data = None


# -- Configuration --


@dataclass(frozen=True, slots=True)
class SessionConfig:
    """Session middleware configuration.

    ``secret_key`` is required. Sessions are signed, not encrypted.
    """

    secret_key: str
    cookie_name: str = "perch_session"
    max_age: int = 86400  # 24 hours
    path: str = "/"
    domain: str | None = None
    secure: bool = False
    httponly: bool = True
    samesite: str = "lax"
    idle_timeout_seconds: int | None = None
    absolute_timeout_seconds: int | None = None
    created_at_key: str = "__created_at"
    last_seen_at_key: str = "__last_seen_at"


# -- Middleware --


class SessionMiddleware:
    """Signed cookie session middleware.

    Reads the session cookie, verifies the signature, exposes the
    session through ``get_session()``, then writes it back on the
    response when one exists.

    Usage::

        from perch.middleware.sessions import SessionConfig, SessionMiddleware

        sessions = SessionMiddleware(SessionConfig(secret_key="my-secret-key"))
        response = await sessions(request, handle)
    """

    __slots__ = ("_config", "_serializer")

    def __init__(self, config: SessionConfig) -> None:
        if not config.secret_key:
            msg = "SessionConfig.secret_key must not be empty."
            raise ConfigurationError(msg)

        self._config = config
        self._serializer = URLSafeTimedSerializer(config.secret_key)

    def _load_session(self, request: Request) -> dict[str, Any] | None:
        """Deserialize and verify the session cookie; ``None`` when absent or invalid."""
        cookie_value = request.cookies.get(self._config.cookie_name)
        if not cookie_value:
            return None

        try:
            data = self._serializer.loads(cookie_value, max_age=self._config.max_age)
        except BadData:
            return None

        if not isinstance(data, dict) or self._expired(data):
            return None
        return data

    def _expired(self, data: dict[str, Any]) -> bool:
        cfg = self._config
        if cfg.idle_timeout_seconds is None and cfg.absolute_timeout_seconds is None:
            return False
        now = time()
        try:
            created_ts = float(data.get(cfg.created_at_key, now))
            last_seen_ts = float(data.get(cfg.last_seen_at_key, now))
        except (TypeError, ValueError):
            return True
        absolute = cfg.absolute_timeout_seconds
        if absolute is not None and now - created_ts > absolute:
            return True
        idle = cfg.idle_timeout_seconds
        return idle is not None and now - last_seen_ts > idle

    def _touch(self, session: dict[str, Any]) -> None:
        cfg = self._config
        if cfg.idle_timeout_seconds is None and cfg.absolute_timeout_seconds is None:
            return
        now = time()
        session.setdefault(cfg.created_at_key, now)
        session[cfg.last_seen_at_key] = now

    def _save_session(self, response: Response, session: dict[str, Any]) -> Response:
        """Serialize the session dict and set the cookie on the response."""
        cfg = self._config
        return response.with_cookie(
            name=cfg.cookie_name,
            value=self._serializer.dumps(session),
            max_age=cfg.max_age,
            path=cfg.path,
            domain=cfg.domain,
            secure=cfg.secure,
            httponly=cfg.httponly,
            samesite=cfg.samesite,
        )

    def _expire_cookie(self, response: Response) -> Response:
        cfg = self._config
        return response.with_cookie(name=cfg.cookie_name, value="", max_age=0, path=cfg.path)

    async def __call__(self, request: Request, next: Next) -> Response:
        """Load session, dispatch, then save session to response."""
        loaded = self._load_session(request)
        slot = _SessionSlot(data=loaded)
        token = _slot_var.set(slot)

        try:
            response = await next(request)
        finally:
            _slot_var.reset(token)

        if slot.data is None:
            # Had a cookie, no longer a session: invalidated or rejected
            if request.cookies.get(self._config.cookie_name):
                return self._expire_cookie(response)
            return response

        # Refresh the signature timestamp for sliding expiration
        self._touch(slot.data)
        return self._save_session(response, slot.data)
