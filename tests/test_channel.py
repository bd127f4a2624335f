"""Tests for perch.channel — storing the channel choice in the session."""

import logging

import pytest
from itsdangerous import URLSafeTimedSerializer

from perch.actions.mapping import ActionMapping, forwards
from perch.channel import FACTORY_SELECTOR_KEY, SelectChannelAction, selected_channel
from perch.middleware.sessions import SessionConfig, SessionMiddleware, get_session
from perch.processor import ActionProcessor
from perch.testing import cookie_value, make_request

SECRET = "test-secret"
MAPPING = ActionMapping(
    path="/selectChannel",
    forwards=forwards(success="/index.html", failed="/error.html"),
)


def signed(data: dict) -> str:
    return URLSafeTimedSerializer(SECRET).dumps(data)


def unsigned(value: str) -> dict:
    return URLSafeTimedSerializer(SECRET).loads(value)


def processor() -> ActionProcessor:
    return ActionProcessor(middleware=(SessionMiddleware(SessionConfig(secret_key=SECRET)),))


class TestSelectChannelAction:
    async def test_existing_session_stores_channel(self) -> None:
        request = make_request(
            query={"channel": "blue"},
            cookies={"perch_session": signed({"user": "alice"})},
        )
        response = await processor().process(SelectChannelAction(), MAPPING, request)

        assert response.text == "/index.html"
        session = unsigned(cookie_value(response, "perch_session"))
        assert session[FACTORY_SELECTOR_KEY] == "blue"
        assert session["user"] == "alice"

    async def test_overwrites_previous_choice(self) -> None:
        request = make_request(
            query={"channel": "wml"},
            cookies={"perch_session": signed({FACTORY_SELECTOR_KEY: "html"})},
        )
        response = await processor().process(SelectChannelAction(), MAPPING, request)
        assert unsigned(cookie_value(response, "perch_session"))[FACTORY_SELECTOR_KEY] == "wml"

    async def test_missing_parameter_fails_without_session_write(self) -> None:
        original = {"user": "alice"}
        request = make_request(cookies={"perch_session": signed(original)})
        response = await processor().process(SelectChannelAction(), MAPPING, request)

        assert response.text == "/error.html"
        assert unsigned(cookie_value(response, "perch_session")) == original

    async def test_no_session_succeeds_without_creating_one(self) -> None:
        request = make_request(query={"channel": "blue"})
        response = await processor().process(SelectChannelAction(), MAPPING, request)

        assert response.text == "/index.html"
        assert cookie_value(response, "perch_session") is None

    async def test_tampered_session_counts_as_absent(self) -> None:
        request = make_request(
            query={"channel": "blue"},
            cookies={"perch_session": "tampered-value"},
        )
        response = await processor().process(SelectChannelAction(), MAPPING, request)
        assert response.text == "/index.html"
        # The bad cookie is expired, never replaced with a new session
        assert cookie_value(response, "perch_session") == ""

    async def test_channel_from_form_body(self) -> None:
        request = make_request(
            "POST",
            "/selectChannel",
            form={"channel": "blue"},
            cookies={"perch_session": signed({})},
        )
        response = await processor().process(SelectChannelAction(), MAPPING, request)
        assert unsigned(cookie_value(response, "perch_session"))[FACTORY_SELECTOR_KEY] == "blue"

    async def test_empty_value_is_stored(self) -> None:
        request = make_request(query={"channel": ""}, cookies={"perch_session": signed({})})
        response = await processor().process(SelectChannelAction(), MAPPING, request)
        assert response.text == "/index.html"
        assert unsigned(cookie_value(response, "perch_session"))[FACTORY_SELECTOR_KEY] == ""

    async def test_without_session_middleware(self) -> None:
        action = SelectChannelAction()
        forward = await action.execute(MAPPING, None, make_request(query={"channel": "blue"}))
        assert forward is not None
        assert forward.name == "success"

    async def test_writes_into_current_session(self) -> None:
        middleware = SessionMiddleware(SessionConfig(secret_key=SECRET))
        request = make_request(query={"channel": "blue"}, cookies={"perch_session": signed({})})
        seen: dict = {}

        async def handle(req):
            await SelectChannelAction().execute(MAPPING, None, req)
            seen.update(get_session(create=False) or {})
            return await ActionProcessor().forward(None, req)

        await middleware(request, handle)
        assert seen == {FACTORY_SELECTOR_KEY: "blue"}

    async def test_logs_selected_channel(self, caplog: pytest.LogCaptureFixture) -> None:
        with caplog.at_level(logging.DEBUG, logger="perch.channel"):
            request = make_request(query={"channel": "blue"})
            await SelectChannelAction().execute(MAPPING, None, request)
        assert "Set channel to 'blue'" in caplog.text


class TestSelectedChannel:
    def test_reads_shared_key(self) -> None:
        assert selected_channel({FACTORY_SELECTOR_KEY: "blue"}) == "blue"

    def test_default_when_unset(self) -> None:
        assert selected_channel({}, default="html") == "html"

    def test_default_without_session(self) -> None:
        assert selected_channel(None, default="html") == "html"
        assert selected_channel(None) is None
