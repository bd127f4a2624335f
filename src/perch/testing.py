"""Test helpers — build requests without an HTTP server.

Uses the same ``Request`` type as production, built from an ASGI-style
scope and receive callable.
"""

from collections.abc import Mapping
from typing import Any
from urllib.parse import urlencode

from perch._internal.asgi import Scope
from perch.http.request import Request
from perch.http.response import Response


def make_request(
    method: str = "GET",
    path: str = "/",
    *,
    query: Mapping[str, str] | list[tuple[str, str]] | None = None,
    form: Mapping[str, str] | list[tuple[str, str]] | None = None,
    body: bytes | None = None,
    content_type: str | None = None,
    headers: Mapping[str, str] | None = None,
    cookies: Mapping[str, str] | None = None,
) -> Request:
    """Build a ``Request`` as the ASGI server would deliver it.

    ``form`` is URL-encoded into the body (and sets the content type);
    pass ``body`` and ``content_type`` directly for anything else::

        request = make_request("POST", "/subscription", form={"save": "Save"})
    """
    raw_headers: list[tuple[bytes, bytes]] = [
        (name.lower().encode("latin-1"), value.encode("latin-1"))
        for name, value in (headers or {}).items()
    ]
    if form is not None:
        body = urlencode(form).encode("utf-8")
        content_type = content_type or "application/x-www-form-urlencoded"
    if content_type is not None:
        raw_headers.append((b"content-type", content_type.encode("latin-1")))
    if cookies:
        cookie_header = "; ".join(f"{name}={value}" for name, value in cookies.items())
        raw_headers.append((b"cookie", cookie_header.encode("latin-1")))

    scope: Scope = {
        "type": "http",
        "method": method,
        "path": path,
        "query_string": urlencode(query or {}).encode("latin-1"),
        "headers": tuple(raw_headers),
        "client": ("127.0.0.1", 50000),
    }

    messages = [{"type": "http.request", "body": body or b"", "more_body": False}]

    async def receive() -> dict[str, Any]:
        if messages:
            return messages.pop(0)
        return {"type": "http.disconnect"}

    return Request.from_asgi(scope, receive)


def cookie_value(response: Response, name: str) -> str | None:
    """Value of the last ``Set-Cookie`` for *name* on *response*."""
    for cookie in reversed(response.cookies):
        if cookie.name == name:
            return cookie.value
    return None
