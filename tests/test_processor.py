"""Tests for perch.processor — running actions and building responses."""

import logging
from dataclasses import dataclass

import pytest

from perch.actions import (
    Action,
    ActionForward,
    ActionMapping,
    EventActionDispatcher,
    dispatch_target,
    forwards,
)
from perch.errors import HTTPError, MissingDispatchTarget
from perch.http.request import Request
from perch.http.response import Response
from perch.processor import ActionProcessor
from perch.testing import make_request


@dataclass(frozen=True, slots=True)
class TodoForm:
    title: str


class TodoAction(Action):
    def __init__(self) -> None:
        self.dispatcher = EventActionDispatcher(self)
        self.forms: list[object] = []

    def execute(self, mapping, form, request):
        self.forms.append(form)
        return self.dispatcher.execute(mapping, form, request)

    @dispatch_target
    def add(self, mapping, form, request):
        return mapping.find_forward("list")

    @dispatch_target
    def preview(self, mapping, form, request):
        return mapping.find_forward("preview")

    @dispatch_target
    def done(self, mapping, form, request):
        return None

    @dispatch_target
    def broken(self, mapping, form, request):
        raise RuntimeError("database is down")


MAPPING = ActionMapping(
    path="/todos",
    parameter="add,preview,done,broken",
    forwards=forwards(list="redirect:/todos", preview="todos/preview.html"),
)


class TestForwards:
    async def test_redirect_forward(self) -> None:
        response = await ActionProcessor().process(
            TodoAction(), MAPPING, make_request("POST", "/todos", form={"add": "Add"})
        )
        assert response.status == 302
        assert response.header("Location") == "/todos"

    async def test_view_forward_without_renderer(self) -> None:
        response = await ActionProcessor().process(
            TodoAction(), MAPPING, make_request("POST", "/todos", form={"preview": "1"})
        )
        assert response.status == 200
        assert response.text == "todos/preview.html"

    async def test_view_forward_with_renderer(self) -> None:
        def render(forward: ActionForward, request: Request) -> str:
            return f"<h1>{forward.path}</h1>"

        response = await ActionProcessor(render=render).process(
            TodoAction(), MAPPING, make_request("POST", "/todos", form={"preview": "1"})
        )
        assert response.text == "<h1>todos/preview.html</h1>"

    async def test_async_renderer_returning_response(self) -> None:
        async def render(forward: ActionForward, request: Request) -> Response:
            return Response("rendered").with_status(201)

        response = await ActionProcessor(render=render).process(
            TodoAction(), MAPPING, make_request("POST", "/todos", form={"preview": "1"})
        )
        assert response.status == 201

    async def test_no_forward_is_204(self) -> None:
        response = await ActionProcessor().process(
            TodoAction(), MAPPING, make_request("POST", "/todos", form={"done": "1"})
        )
        assert response.status == 204

    async def test_unknown_forward_name_logs(self, caplog: pytest.LogCaptureFixture) -> None:
        no_list = ActionMapping(path="/todos", parameter="add", forwards={})
        with caplog.at_level(logging.WARNING, logger="perch.actions"):
            response = await ActionProcessor().process(
                TodoAction(), no_list, make_request(query={"add": "1"})
            )
        assert response.status == 204
        assert "'list'" in caplog.text


class TestDispatchErrors:
    async def test_unmatched_request_is_500(self) -> None:
        response = await ActionProcessor().process(TodoAction(), MAPPING, make_request())
        assert response.status == 500
        assert response.text == "Internal Server Error"

    async def test_debug_shows_detail(self) -> None:
        response = await ActionProcessor(debug=True).process(TodoAction(), MAPPING, make_request())
        assert response.status == 500
        assert "/todos" in response.text

    async def test_error_handler_by_type(self) -> None:
        processor = ActionProcessor()

        @processor.error(MissingDispatchTarget)
        def no_button(request: Request, exc: MissingDispatchTarget) -> Response:
            return Response(f"Pick a button ({exc.parameter})", status=400)

        response = await processor.process(TodoAction(), MAPPING, make_request())
        assert response.status == 400
        assert response.text == "Pick a button (add,preview,done,broken)"

    async def test_error_handler_by_status_keeps_status(self) -> None:
        processor = ActionProcessor()

        @processor.error(500)
        def server_error() -> str:
            return "oops"

        response = await processor.process(TodoAction(), MAPPING, make_request())
        assert response.status == 500
        assert response.text == "oops"

    async def test_dispatch_error_logged_at_raise_site(
        self, caplog: pytest.LogCaptureFixture
    ) -> None:
        with caplog.at_level(logging.ERROR, logger="perch.actions"):
            await ActionProcessor().process(TodoAction(), MAPPING, make_request())
        assert "add,preview,done,broken" in caplog.text


class TestUnexpectedErrors:
    async def test_exception_becomes_500(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.ERROR, logger="perch.server"):
            response = await ActionProcessor().process(
                TodoAction(), MAPPING, make_request(query={"broken": "1"})
            )
        assert response.status == 500
        assert response.text == "Internal Server Error"
        assert "500 GET /" in caplog.text

    async def test_debug_names_exception(self) -> None:
        response = await ActionProcessor(debug=True).process(
            TodoAction(), MAPPING, make_request(query={"broken": "1"})
        )
        assert "RuntimeError: database is down" in response.text

    async def test_http_error_from_action(self) -> None:
        class Forbidden(Action):
            def execute(self, mapping, form, request):
                raise HTTPError(status=403, detail="Not yours")

        response = await ActionProcessor().process(Forbidden(), MAPPING, make_request())
        assert response.status == 403
        assert response.text == "Not yours"


class TestFormBinding:
    async def test_form_is_bound(self) -> None:
        action = TodoAction()
        mapping = ActionMapping(
            path="/todos", parameter="add", form=TodoForm, forwards=MAPPING.forwards
        )
        await ActionProcessor().process(
            action, mapping, make_request("POST", "/todos", form={"title": "Milk", "add": "Add"})
        )
        assert action.forms == [TodoForm(title="Milk")]

    async def test_binding_failure_redisplays_input(self) -> None:
        action = TodoAction()
        mapping = ActionMapping(
            path="/todos", parameter="add", form=TodoForm, input="todos/form.html"
        )
        response = await ActionProcessor().process(
            action, mapping, make_request("POST", "/todos", form={"add": "Add"})
        )
        assert response.text == "todos/form.html"
        assert action.forms == []

    async def test_binding_failure_without_input_is_400(self) -> None:
        mapping = ActionMapping(path="/todos", parameter="add", form=TodoForm)
        response = await ActionProcessor().process(
            TodoAction(), mapping, make_request("POST", "/todos", form={"add": "Add"})
        )
        assert response.status == 400
        assert "title" in response.text


class TestMiddleware:
    async def test_runs_in_order(self) -> None:
        calls: list[str] = []

        def tracer(label: str):
            async def mw(request, next):
                calls.append(f"{label}:before")
                response = await next(request)
                calls.append(f"{label}:after")
                return response.with_header(f"X-{label}", "1")

            return mw

        processor = ActionProcessor(middleware=(tracer("outer"), tracer("inner")))
        response = await processor.process(TodoAction(), MAPPING, make_request(query={"done": "1"}))
        assert calls == ["outer:before", "inner:before", "inner:after", "outer:after"]
        assert response.header("X-outer") == "1"
        assert response.header("X-inner") == "1"
