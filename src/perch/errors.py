"""Perch exception hierarchy.

Shared by the dispatchers, the processor, and the session middleware so
every module raises and catches the same types.
"""

from dataclasses import dataclass


class PerchError(Exception):
    """Base for all perch-specific errors."""


class ConfigurationError(PerchError):
    """Raised when library configuration is invalid.

    Typically raised while building a ``DispatchConfig`` or a
    ``SessionMiddleware``, before any request is served.
    """


@dataclass(frozen=True, slots=True)
class HTTPError(PerchError):
    """An error that maps directly to an HTTP status code.

    Raised by dispatchers, middleware, or actions. ``ActionProcessor``
    catches these and turns them into a response.
    """

    status: int
    detail: str = ""
    headers: tuple[tuple[str, str], ...] = ()

    def __str__(self) -> str:
        if self.detail:
            return f"{self.status}: {self.detail}"
        return str(self.status)


@dataclass(frozen=True, slots=True)
class DispatchError(HTTPError):
    """A request could not be dispatched to a handler method.

    Carries the action path and the raw dispatch configuration string
    so a misconfigured mapping can be diagnosed from the log line alone.
    Always a server-side failure.
    """

    status: int = 500
    path: str = ""
    parameter: str | None = None


@dataclass(frozen=True, slots=True)
class MissingDispatchParameter(DispatchError):
    """The mapping has no dispatch configuration string.

    A setup defect: raised before any request parameter is inspected.
    """


@dataclass(frozen=True, slots=True)
class MissingDispatchTarget(DispatchError):
    """No configured key matched the request and no usable default exists."""


@dataclass(frozen=True, slots=True)
class UnknownDispatchMethod(DispatchError):
    """The resolved method name is not a registered dispatch target."""

    method: str = ""


@dataclass(frozen=True, slots=True)
class RecursiveDispatch(DispatchError):
    """The resolved method name would re-enter the dispatcher (``execute``)."""

    method: str = ""
