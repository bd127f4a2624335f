"""Invoke helpers — call sync or async handlers uniformly.

Actions and their dispatch targets can be ``def`` or ``async def``.
Any code that calls one must handle both cases, so the check lives here.

Usage::

    from perch._internal.invoke import invoke

    forward = await invoke(action.execute, mapping, form, request)
"""

import inspect
from typing import Any


async def invoke(handler: Any, *args: Any, **kwargs: Any) -> Any:
    """Call a handler and await the result if it's a coroutine.

    Works with both sync and async callables::

        class Subscription(Action):
            @dispatch_target
            def save(self, mapping, form, request):
                return mapping.find_forward("success")

            @dispatch_target
            async def recalculate(self, mapping, form, request):
                await totals.refresh()
                return mapping.find_forward("success")
    """
    result = handler(*args, **kwargs)
    if inspect.isawaitable(result):
        result = await result
    return result
