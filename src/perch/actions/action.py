"""Action base class and the ``@dispatch_target`` marker.

Dispatch targets are collected into a per-class table when the subclass
is defined. Dispatchers invoke handlers only through that table, so a
request parameter can never reach an arbitrary attribute.
"""

from collections.abc import Awaitable, Callable, Mapping
from types import MappingProxyType
from typing import Any, ClassVar

from perch.actions.mapping import ActionForward, ActionMapping
from perch.http.request import Request

_TARGET_ATTR = "__perch_dispatch_target__"

type ActionResult = ActionForward | None | Awaitable[ActionForward | None]


def dispatch_target[F: Callable[..., Any]](
    func: F | None = None, *, name: str | None = None
) -> F | Callable[[F], F]:
    """Mark an ``Action`` method as reachable by dispatchers.

    The method keeps the ``execute`` signature ``(mapping, form, request)``
    and may be sync or async. The dispatch name defaults to the method
    name::

        class SubscriptionAction(Action):
            @dispatch_target
            def save(self, mapping, form, request): ...

            @dispatch_target(name="recalculate")
            async def recalc_totals(self, mapping, form, request): ...
    """

    def decorate(fn: F) -> F:
        setattr(fn, _TARGET_ATTR, name or fn.__name__)
        return fn

    if func is None:
        return decorate
    return decorate(func)


class Action:
    """Base class for request actions.

    Subclasses override ``execute`` and return an ``ActionForward`` (or
    ``None`` when the response is already complete). Actions hold no
    per-request state; one instance serves every request for its mapping.
    """

    _dispatch_targets: ClassVar[Mapping[str, str]] = MappingProxyType({})

    def __init_subclass__(cls, **kwargs: Any) -> None:
        super().__init_subclass__(**kwargs)
        table: dict[str, str] = {}
        # Base classes first so subclasses can re-point a name
        for klass in reversed(cls.__mro__):
            for attr, value in vars(klass).items():
                target = getattr(value, _TARGET_ATTR, None)
                if isinstance(target, str):
                    table[target] = attr
        cls._dispatch_targets = MappingProxyType(table)

    @classmethod
    def dispatch_targets(cls) -> Mapping[str, str]:
        """Public dispatch name -> attribute name, for this class."""
        return cls._dispatch_targets

    def execute(self, mapping: ActionMapping, form: Any, request: Request) -> ActionResult:
        """Process the request and choose where control goes next."""
        raise NotImplementedError
