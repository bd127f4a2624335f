"""Actions — request handlers and the dispatchers that pick their methods.

An ``Action`` receives ``(mapping, form, request)`` and returns an
``ActionForward``. Dispatchers let one action expose several handler
methods, chosen per request:

    ActionDispatcher -- by a request parameter's value, or by the mapping
    EventActionDispatcher -- by which submit button was pressed
"""

from perch.actions.action import Action, dispatch_target
from perch.actions.dispatcher import ActionDispatcher, DispatchFlavor
from perch.actions.event import DispatchSpec, EventActionDispatcher, resolve_method_name
from perch.actions.mapping import ActionForward, ActionMapping, forwards

__all__ = [
    "Action",
    "ActionDispatcher",
    "ActionForward",
    "ActionMapping",
    "DispatchFlavor",
    "DispatchSpec",
    "EventActionDispatcher",
    "dispatch_target",
    "forwards",
    "resolve_method_name",
]
