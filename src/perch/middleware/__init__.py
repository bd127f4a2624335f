"""Middleware — Protocol-based, no inheritance required.

A middleware is any callable matching:
    async def mw(request: Request, next: Next) -> Response

Built-in middleware:
    SessionMiddleware -- Signed cookie sessions (itsdangerous)
"""

from perch.middleware.protocol import Middleware, Next
from perch.middleware.sessions import SessionConfig, SessionMiddleware, get_session

__all__ = [
    "Middleware",
    "Next",
    "SessionConfig",
    "SessionMiddleware",
    "get_session",
]
