"""
Request limits middleware.

Races every HTTP request against a per-route timeout (504 on expiry) and
rejects bodies whose declared ``Content-Length`` exceeds the route limit (413).
"""

import asyncio
import re
from dataclasses import dataclass
from typing import Optional

from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from app.core.config import settings
from app.core.logging import get_logger

logger = get_logger("request_limits")

MB = 1024 * 1024


@dataclass(frozen=True)
class RequestLimit:
    timeout: float
    max_body_bytes: int


# First matching pattern wins.
ROUTE_LIMITS: list[tuple[str, RequestLimit]] = [
    (r"^/api/candidates/resume$", RequestLimit(timeout=60, max_body_bytes=10 * MB)),
    (r"^/api/candidates/onboarding$", RequestLimit(timeout=120, max_body_bytes=60 * MB)),
    (r"^/api/jobs/generate$", RequestLimit(timeout=45, max_body_bytes=1 * MB)),
]


def resolve_limit(path: str, routes: Optional[list[tuple[str, RequestLimit]]] = None) -> RequestLimit:
    for pattern, limit in ROUTE_LIMITS if routes is None else routes:
        if re.match(pattern, path):
            return limit
    return RequestLimit(
        timeout=settings.REQUEST_TIMEOUT_SECONDS,
        max_body_bytes=settings.MAX_BODY_BYTES,
    )


class RequestLimitsMiddleware:
    def __init__(self, app: ASGIApp, routes: Optional[list[tuple[str, RequestLimit]]] = None):
        self.app = app
        self.routes = routes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        path = scope.get("path", "")
        limit = resolve_limit(path, self.routes)

        content_length = dict(scope.get("headers") or []).get(b"content-length")
        if content_length and content_length.isdigit() and int(content_length) > limit.max_body_bytes:
            response = JSONResponse(
                {"error": "Request body too large", "maxBytes": limit.max_body_bytes},
                status_code=413,
            )
            await response(scope, receive, send)
            return

        response_started = False
        response_sent = asyncio.Event()

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)
            if message["type"] == "http.response.body" and not message.get("more_body", False):
                response_sent.set()

        # Only the response is raced against the deadline; background tasks
        # queued by the handler run to completion after it has been sent.
        app_task = asyncio.ensure_future(self.app(scope, receive, send_wrapper))
        sent_waiter = asyncio.ensure_future(response_sent.wait())
        await asyncio.wait(
            {app_task, sent_waiter},
            timeout=limit.timeout,
            return_when=asyncio.FIRST_COMPLETED,
        )
        sent_waiter.cancel()

        if app_task.done() or response_sent.is_set():
            await app_task
            return

        app_task.cancel()
        try:
            await app_task
        except asyncio.CancelledError:
            pass

        logger.warning(f"Request timeout after {limit.timeout}s: {scope.get('method')} {path}")
        if response_started:
            return
        response = JSONResponse(
            {"error": "Request timeout", "message": "The request took too long to process"},
            status_code=504,
        )
        await response(scope, receive, send)
