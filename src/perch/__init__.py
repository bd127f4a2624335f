"""Perch — form actions that dispatch on the button the user pressed.

Basic usage::

    from perch import Action, ActionMapping, EventActionDispatcher, dispatch_target

    class SubscriptionAction(Action):
        def __init__(self) -> None:
            self.dispatcher = EventActionDispatcher(self)

        def execute(self, mapping, form, request):
            return self.dispatcher.execute(mapping, form, request)

        @dispatch_target
        def save(self, mapping, form, request):
            return mapping.find_forward("success")

    mapping = ActionMapping(path="/subscription", parameter="save,default=save")
    response = await ActionProcessor().process(SubscriptionAction(), mapping, request)
"""

__version__ = "0.1.0"
__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionForward",
    "ActionMapping",
    "ActionProcessor",
    "ConfigurationError",
    "DispatchConfig",
    "DispatchError",
    "DispatchFlavor",
    "DispatchSpec",
    "EventActionDispatcher",
    "HTTPError",
    "MissingDispatchParameter",
    "MissingDispatchTarget",
    "PerchError",
    "RecursiveDispatch",
    "Request",
    "Response",
    "SelectChannelAction",
    "UnknownDispatchMethod",
    "dispatch_target",
    "resolve_method_name",
]

_ACTIONS = frozenset(
    {
        "Action",
        "ActionDispatcher",
        "ActionForward",
        "ActionMapping",
        "DispatchFlavor",
        "DispatchSpec",
        "EventActionDispatcher",
        "dispatch_target",
        "resolve_method_name",
    }
)

_ERRORS = frozenset(
    {
        "ConfigurationError",
        "DispatchError",
        "HTTPError",
        "MissingDispatchParameter",
        "MissingDispatchTarget",
        "PerchError",
        "RecursiveDispatch",
        "UnknownDispatchMethod",
    }
)


def __getattr__(name: str) -> object:
    """Lazy imports for public API.

    Keeps ``import perch`` fast while providing a clean top-level API.
    """
    if name in _ACTIONS:
        from perch import actions as _actions

        return getattr(_actions, name)

    if name in _ERRORS:
        from perch import errors as _errors

        return getattr(_errors, name)

    if name == "ActionProcessor":
        from perch.processor import ActionProcessor

        return ActionProcessor

    if name == "DispatchConfig":
        from perch.config import DispatchConfig

        return DispatchConfig

    if name == "Request":
        from perch.http.request import Request

        return Request

    if name == "Response":
        from perch.http.response import Response

        return Response

    if name == "SelectChannelAction":
        from perch.channel import SelectChannelAction

        return SelectChannelAction

    msg = f"module {__name__!r} has no attribute {name!r}"
    raise AttributeError(msg)
