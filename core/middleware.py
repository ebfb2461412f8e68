from typing import Optional

import anyio
from fastapi.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from core.config import config
from core.logging import get_logger

logger = get_logger(__name__)


class RequestDeadlineMiddleware:
    """
    Cancel a request that runs past REQUEST_TIMEOUT_SECONDS and answer 504.

    Runs the endpoint in the same task, so the deadline cancels the handler
    and its store call rather than only the wait on it. A cancelled session
    rolls back, so nothing from the timed-out request is committed.
    """

    def __init__(self, app: ASGIApp, timeout: Optional[float] = None):
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        # Read per request so the setting can change without rebuilding the app
        timeout = self.timeout if self.timeout is not None else config.REQUEST_TIMEOUT_SECONDS
        response_started = False

        async def send_wrapper(message: Message) -> None:
            nonlocal response_started
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        try:
            with anyio.fail_after(timeout):
                await self.app(scope, receive, send_wrapper)
        except TimeoutError:
            logger.error(f"{scope['method']} {scope['path']} timed out after {timeout}s")
            if response_started:
                # Too late for a 504; the client sees a truncated response
                return
            response = JSONResponse(
                status_code=504,
                content={
                    "error_code": "REQUEST_TIMEOUT",
                    "message": "The request took too long",
                    "data": {},
                },
            )
            await response(scope, receive, send)
