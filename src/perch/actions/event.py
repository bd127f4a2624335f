"""Event dispatch — choose a handler from which submit button was pressed.

A form with several submit buttons (or image buttons, or submit links)
sends the name of the one that was used. The mapping's ``parameter``
lists the button names to look for, in priority order::

    parameter="save,back,recalc=recalculate,default=save"

- ``save`` -- a ``save`` parameter runs the ``save`` target.
- ``recalc=recalculate`` -- an alias: a ``recalc`` parameter runs the
  ``recalculate`` target, so form names need not expose method names.
- ``default=save`` -- nothing matched (the user pressed Enter): run
  ``save``. Without a default, an unmatched request is an error.

Keys are tried in the order written and the first present one wins, so
a request that somehow carries two buttons is still deterministic. An
image button named ``save`` submits ``save.x``/``save.y`` instead of
``save``; ``save.x`` counts as ``save``.
"""

from __future__ import annotations

import logging
from collections.abc import Mapping
from dataclasses import dataclass
from typing import TYPE_CHECKING

from perch.actions.dispatcher import ActionDispatcher, DispatchFlavor
from perch.errors import MissingDispatchParameter, MissingDispatchTarget

if TYPE_CHECKING:
    from perch.actions.action import Action
    from perch.config import DispatchConfig

logger = logging.getLogger("perch.actions")

DEFAULT_METHOD_KEY = "default"
IMAGE_BUTTON_SUFFIX = ".x"


@dataclass(frozen=True, slots=True)
class DispatchSpec:
    """A parsed dispatch configuration string.

    ``pairs`` keeps source order and any duplicate keys: resolution
    depends on sequence, so it is never folded into a dict.
    """

    raw: str
    pairs: tuple[tuple[str, str], ...]
    default: str | None = None

    @classmethod
    def parse(
        cls,
        parameter: str | None,
        *,
        path: str = "",
        default_key: str = DEFAULT_METHOD_KEY,
    ) -> DispatchSpec:
        """Parse ``key[=target]`` tokens separated by commas.

        Raises:
            MissingDispatchParameter: If *parameter* is ``None`` or blank.
        """
        raw = (parameter or "").strip()
        if not raw:
            logger.error("Action %s has no event dispatch keys configured", path)
            raise MissingDispatchParameter(
                detail=f"Action {path} has no event dispatch keys configured",
                path=path,
                parameter=parameter,
            )

        pairs: list[tuple[str, str]] = []
        default: str | None = None
        for token in raw.split(","):
            key, sep, target = token.partition("=")
            key = key.strip()
            if not key:
                continue
            target = target.strip() if sep else key
            if key == default_key:
                default = target
            pairs.append((key, target))

        return cls(raw=raw, pairs=tuple(pairs), default=default)

    @property
    def keys(self) -> tuple[str, ...]:
        """Dispatch keys in declaration order, ``default`` included."""
        return tuple(key for key, _ in self.pairs)

    def match(
        self, params: Mapping[str, str], *, image_suffix: str = IMAGE_BUTTON_SUFFIX
    ) -> str | None:
        """Target of the first key present in *params*, or ``None``."""
        for key, target in self.pairs:
            if key in params or f"{key}{image_suffix}" in params:
                return target
        return None

    def resolve(
        self,
        params: Mapping[str, str],
        *,
        path: str = "",
        image_suffix: str = IMAGE_BUTTON_SUFFIX,
    ) -> str:
        """Return the handler name for *params*.

        Raises:
            MissingDispatchTarget: No key matched and no non-empty default.
        """
        target = self.match(params, image_suffix=image_suffix)
        if target is not None:
            return target
        if self.default:
            return self.default

        logger.error("Request for %s matched no event dispatch key %s", path, self.raw)
        raise MissingDispatchTarget(
            detail=f"Request for {path} matched no event dispatch key",
            path=path,
            parameter=self.raw,
        )


def resolve_method_name(
    parameter: str | None,
    params: Mapping[str, str],
    *,
    path: str = "",
    default_key: str = DEFAULT_METHOD_KEY,
    image_suffix: str = IMAGE_BUTTON_SUFFIX,
) -> str:
    """Parse *parameter* and resolve it against *params* in one step.

    Pure: *params* is only read, and the same inputs always give the
    same name or the same error.
    """
    spec = DispatchSpec.parse(parameter, path=path, default_key=default_key)
    return spec.resolve(params, path=path, image_suffix=image_suffix)


class EventActionDispatcher(ActionDispatcher):
    """Dispatcher that resolves the method from the pressed submit button.

    Usage::

        class SubscriptionAction(Action):
            def __init__(self) -> None:
                self.dispatcher = EventActionDispatcher(self)

            def execute(self, mapping, form, request):
                return self.dispatcher.execute(mapping, form, request)

            @dispatch_target
            def save(self, mapping, form, request): ...

            @dispatch_target
            def recalculate(self, mapping, form, request): ...
    """

    __slots__ = ()

    def __init__(self, action: Action, *, config: DispatchConfig | None = None) -> None:
        super().__init__(action, DispatchFlavor.EVENT, config=config)
