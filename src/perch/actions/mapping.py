"""ActionMapping and ActionForward frozen dataclasses.

A mapping is the per-route configuration an action runs under: its
path, the raw dispatch ``parameter`` string, the named outcomes it may
forward to, and the optional form dataclass the processor binds.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass, field, replace
from types import MappingProxyType

logger = logging.getLogger("perch.actions")


@dataclass(frozen=True, slots=True)
class ActionForward:
    """A named outcome: where control goes after the action returns.

    ``redirect=True`` asks the client to fetch ``path`` itself; otherwise
    the host renders the view named by ``path``.
    """

    name: str
    path: str
    redirect: bool = False


@dataclass(frozen=True, slots=True)
class ActionMapping:
    """A frozen action configuration.

    Usage::

        mapping = ActionMapping(
            path="/saveSubscription",
            parameter="save,back,recalc=recalculate,default=save",
            forwards=forwards(success="/subscription.html", failed="/error.html"),
        )
    """

    path: str
    parameter: str | None = None
    forwards: Mapping[str, ActionForward] = field(default_factory=dict)
    form: type | None = None
    input: str | None = None
    cancellable: bool = True

    def __post_init__(self) -> None:
        object.__setattr__(self, "forwards", MappingProxyType(dict(self.forwards)))

    def find_forward(self, name: str) -> ActionForward | None:
        """Return the forward registered under *name*, or ``None``.

        An unknown name is a configuration slip, not a request error:
        it is logged and the action completes without a forward.
        """
        forward = self.forwards.get(name)
        if forward is None:
            logger.warning("Unable to find %r forward for action %s", name, self.path)
        return forward

    def with_forward(self, name: str, path: str, *, redirect: bool = False) -> ActionMapping:
        """Return a new mapping with an additional (or replaced) forward."""
        updated = {**self.forwards, name: ActionForward(name, path, redirect)}
        return replace(self, forwards=updated)

    def with_parameter(self, parameter: str | None) -> ActionMapping:
        """Return a new mapping with a different dispatch parameter."""
        return replace(self, parameter=parameter)

    def input_forward(self) -> ActionForward | None:
        """Forward back to the input view (form re-display), if one is set."""
        if not self.input:
            return None
        return ActionForward("input", self.input)


def forwards(**paths: str) -> dict[str, ActionForward]:
    """Build a forwards table from ``name=path`` keywords.

    A path prefixed with ``redirect:`` becomes a redirect forward::

        forwards(success="/done.html", back="redirect:/list")
    """
    table: dict[str, ActionForward] = {}
    for name, path in paths.items():
        if path.startswith("redirect:"):
            table[name] = ActionForward(name, path.removeprefix("redirect:"), redirect=True)
        else:
            table[name] = ActionForward(name, path)
    return table
