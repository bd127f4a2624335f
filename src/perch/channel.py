"""Channel selection — remember a user's channel (theme) choice in the session.

``SelectChannelAction`` stores the submitted ``channel`` parameter under
``FACTORY_SELECTOR_KEY``; layout code reads it back with
``selected_channel()``. Both sides must use the same key. The value is
not validated here: whatever consults the key decides which channels exist.
"""

import logging
from collections.abc import Mapping
from typing import Any

from perch.actions.action import Action
from perch.actions.mapping import ActionForward, ActionMapping
from perch.http.request import Request
from perch.middleware.sessions import get_session

logger = logging.getLogger("perch.channel")

FACTORY_SELECTOR_KEY = "perch.channel.FACTORY_SELECTOR_KEY"
CHANNEL_PARAMETER = "channel"


class SelectChannelAction(Action):
    """Store the requested channel in the current session.

    Forwards to ``failed`` when no ``channel`` parameter was sent, else
    to ``success``. An existing session is updated; a session is never
    started just to hold the choice.
    """

    async def execute(
        self, mapping: ActionMapping, form: Any, request: Request
    ) -> ActionForward | None:
        params = await request.parameters()
        requested = params.get(CHANNEL_PARAMETER)
        if requested is None:
            return mapping.find_forward("failed")

        session = get_session(create=False)
        if session is not None:
            session[FACTORY_SELECTOR_KEY] = requested
        logger.debug("Set channel to %r", requested)
        return mapping.find_forward("success")


def selected_channel(
    session: Mapping[str, Any] | None, default: str | None = None
) -> str | None:
    """The channel stored by ``SelectChannelAction``, or *default*."""
    if session is None:
        return default
    value = session.get(FACTORY_SELECTOR_KEY)
    return value if isinstance(value, str) else default
