"""ActionProcessor — run one action for one request and produce a Response.

The pipeline per request:

1. Wrap the middleware chain (sessions, for instance) around the action.
2. Bind ``mapping.form`` from the request parameters, if set. A binding
   failure re-displays ``mapping.input`` or becomes a 400.
3. Run ``action.execute`` (sync or async).
4. Turn the returned ``ActionForward`` into a response: redirects become
   302s, other forwards go to the host's ``render`` callable.
5. Map ``HTTPError`` (dispatch errors included) and unexpected
   exceptions to error responses.
"""

import logging
from collections.abc import Awaitable, Callable, Sequence
from typing import Any

from perch._internal.invoke import invoke
from perch.actions.action import Action
from perch.actions.mapping import ActionForward, ActionMapping
from perch.errors import HTTPError
from perch.http.forms import FormBindingError, form_from
from perch.http.request import Request
from perch.http.response import Redirect, Response
from perch.middleware.protocol import Next
from perch.server.errors import ErrorHandlers, handle_http_error, handle_internal_error

logger = logging.getLogger("perch.server")

type Renderer = Callable[[ActionForward, Request], Response | str | Awaitable[Response | str]]


class ActionProcessor:
    """Executes actions and translates their outcomes into responses.

    Usage::

        processor = ActionProcessor(
            render=lambda forward, request: templates.render(forward.path),
            middleware=(SessionMiddleware(SessionConfig(secret_key="s3cr3t")),),
        )

        @processor.error(MissingDispatchTarget)
        def no_button(request, exc):
            return Response("Please use one of the form's buttons.", status=400)

        response = await processor.process(action, mapping, request)
    """

    __slots__ = ("_debug", "_error_handlers", "_middleware", "_render")

    def __init__(
        self,
        *,
        render: Renderer | None = None,
        middleware: Sequence[Callable[..., Any]] = (),
        debug: bool = False,
    ) -> None:
        self._render = render
        self._middleware = tuple(middleware)
        self._debug = debug
        self._error_handlers: ErrorHandlers = {}

    def error(
        self, code_or_exception: int | type
    ) -> Callable[[Callable[..., Any]], Callable[..., Any]]:
        """Register an error handler for a status code or exception type."""

        def decorator(func: Callable[..., Any]) -> Callable[..., Any]:
            self._error_handlers[code_or_exception] = func
            return func

        return decorator

    async def process(self, action: Action, mapping: ActionMapping, request: Request) -> Response:
        """Process a single request through the full pipeline."""

        async def dispatch(req: Request) -> Response:
            form = None
            if mapping.form is not None:
                try:
                    form = await form_from(req, mapping.form)
                except FormBindingError as exc:
                    return await self._binding_failed(exc, mapping, req)
            forward = await invoke(action.execute, mapping, form, req)
            return await self.forward(forward, req)

        # Wrap middleware around the dispatch
        handler: Next = dispatch
        for mw in reversed(self._middleware):
            outer = handler

            async def make_next(req: Request, _mw: Any = mw, _next: Next = outer) -> Response:
                return await _mw(req, _next)

            handler = make_next

        try:
            return await handler(request)
        except HTTPError as exc:
            return await handle_http_error(exc, request, self._error_handlers, self._debug)
        except Exception as exc:
            return await handle_internal_error(exc, request, self._error_handlers, self._debug)

    async def forward(self, forward: ActionForward | None, request: Request) -> Response:
        """Translate an action's outcome into a Response."""
        if forward is None:
            # The action completed the response itself
            return Response(status=204)
        if forward.redirect:
            return Redirect(forward.path).to_response()
        if self._render is None:
            return Response(body=forward.path, content_type="text/plain; charset=utf-8")
        result = await invoke(self._render, forward, request)
        if isinstance(result, Response):
            return result
        return Response(body=result)

    async def _binding_failed(
        self, exc: FormBindingError, mapping: ActionMapping, request: Request
    ) -> Response:
        input_forward = mapping.input_forward()
        if input_forward is None:
            raise HTTPError(status=400, detail=str(exc)) from exc
        logger.debug("Form binding failed for %s, re-displaying %s", mapping.path, mapping.input)
        return await self.forward(input_forward, request)
