"""ActionDispatcher — pick and run one handler method per request.

An action that groups related operations (save, delete, recalculate)
delegates its ``execute`` to a dispatcher, which chooses a method name
from the mapping and the request and invokes the matching
``@dispatch_target``.

Flavors:
    DISPATCH -- ``mapping.parameter`` names a request parameter whose
                value is the method name (``?method=save``).
    MAPPING  -- ``mapping.parameter`` is the method name itself; one
                action class backs several mappings.
    EVENT    -- ``mapping.parameter`` lists submit-button keys; see
                ``perch.actions.event``.
"""

import logging
from collections.abc import Callable, Mapping
from enum import Enum
from typing import Any

from perch._internal.invoke import invoke
from perch.actions.action import Action
from perch.actions.mapping import ActionForward, ActionMapping
from perch.config import DEFAULT_CONFIG, DispatchConfig
from perch.errors import (
    MissingDispatchParameter,
    MissingDispatchTarget,
    RecursiveDispatch,
    UnknownDispatchMethod,
)
from perch.http.request import Request

logger = logging.getLogger("perch.actions")


class DispatchFlavor(Enum):
    """How the method name is derived from the mapping and request."""

    DISPATCH = "dispatch"
    MAPPING = "mapping"
    EVENT = "event"


class ActionDispatcher:
    """Dispatch requests to an action's registered handler methods.

    Usage::

        class SubscriptionAction(Action):
            def __init__(self) -> None:
                self.dispatcher = ActionDispatcher(self)

            def execute(self, mapping, form, request):
                return self.dispatcher.execute(mapping, form, request)

            @dispatch_target
            def save(self, mapping, form, request):
                return mapping.find_forward("success")
    """

    __slots__ = ("_action", "_config", "_flavor", "_handlers")

    def __init__(
        self,
        action: Action,
        flavor: DispatchFlavor = DispatchFlavor.DISPATCH,
        *,
        config: DispatchConfig | None = None,
    ) -> None:
        self._action = action
        self._flavor = flavor
        self._config = config or DEFAULT_CONFIG
        self._handlers: dict[str, Callable[..., Any]] = {}

    @property
    def flavor(self) -> DispatchFlavor:
        return self._flavor

    @property
    def config(self) -> DispatchConfig:
        return self._config

    async def execute(
        self, mapping: ActionMapping, form: Any, request: Request
    ) -> ActionForward | None:
        """Resolve the method name for this request and run it."""
        params = await request.parameters()

        if mapping.cancellable and self.is_cancelled(params):
            handler = self._lookup(self._config.cancelled_method)
            if handler is not None:
                return await invoke(handler, mapping, form, request)

        parameter = self.get_parameter(mapping)
        name = self.get_method_name(mapping, params, parameter)
        return await self.dispatch_method(mapping, form, request, name)

    def is_cancelled(self, params: Mapping[str, str]) -> bool:
        """True when the form was submitted with its cancel button."""
        return self._config.cancel_parameter in params

    def get_parameter(self, mapping: ActionMapping) -> str:
        """Return the mapping's dispatch parameter, stripped.

        Raises:
            MissingDispatchParameter: If the mapping has none, or it is blank.
        """
        parameter = (mapping.parameter or "").strip()
        if not parameter:
            logger.error("Action %s has no dispatch parameter configured", mapping.path)
            raise MissingDispatchParameter(
                detail=f"Action {mapping.path} has no dispatch parameter configured",
                path=mapping.path,
                parameter=mapping.parameter,
            )
        return parameter

    def get_method_name(
        self, mapping: ActionMapping, params: Mapping[str, str], parameter: str
    ) -> str | None:
        """Return the handler name for this request, per the dispatcher's flavor.

        ``None`` means "not specified" and falls through to the
        ``unspecified`` target in ``dispatch_method``.
        """
        if self._flavor is DispatchFlavor.MAPPING:
            return parameter
        if self._flavor is DispatchFlavor.EVENT:
            from perch.actions.event import resolve_method_name

            return resolve_method_name(
                parameter,
                params,
                path=mapping.path,
                default_key=self._config.default_key,
                image_suffix=self._config.image_suffix,
            )
        return params.get(parameter)

    async def dispatch_method(
        self, mapping: ActionMapping, form: Any, request: Request, name: str | None
    ) -> ActionForward | None:
        """Invoke the dispatch target registered under *name*.

        Raises:
            MissingDispatchTarget: *name* is empty and the action has no
                ``unspecified`` target.
            RecursiveDispatch: *name* would re-enter ``execute``.
            UnknownDispatchMethod: *name* is not a registered target.
        """
        if not name:
            handler = self._lookup(self._config.unspecified_method)
            if handler is None:
                logger.error(
                    "Request for %s did not specify a method (parameter %r)",
                    mapping.path,
                    mapping.parameter,
                )
                raise MissingDispatchTarget(
                    detail=f"Request for {mapping.path} did not specify a method",
                    path=mapping.path,
                    parameter=mapping.parameter,
                )
            return await invoke(handler, mapping, form, request)

        if name in self._config.reserved_methods:
            logger.error("Recursive dispatch to %r refused for %s", name, mapping.path)
            raise RecursiveDispatch(
                detail=f"Method {name!r} cannot be a dispatch target",
                path=mapping.path,
                parameter=mapping.parameter,
                method=name,
            )

        handler = self._lookup(name)
        if handler is None:
            logger.error("Action %s has no dispatch target %r", mapping.path, name)
            raise UnknownDispatchMethod(
                detail=f"Action {mapping.path} has no method {name!r}",
                path=mapping.path,
                parameter=mapping.parameter,
                method=name,
            )
        return await invoke(handler, mapping, form, request)

    def _lookup(self, name: str) -> Callable[..., Any] | None:
        """Bound handler for dispatch *name*, cached per dispatcher."""
        cached = self._handlers.get(name)
        if cached is not None:
            return cached
        attr = type(self._action).dispatch_targets().get(name)
        if attr is None:
            return None
        handler = getattr(self._action, attr)
        self._handlers[name] = handler
        return handler
