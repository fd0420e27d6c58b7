"""
ASGI middleware that bounds how long a request may go without a response.
"""

from __future__ import annotations

import asyncio
import logging
from typing import Optional

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)

TIMEOUT_STATUS_CODE = 504
TIMEOUT_DETAIL = "Gateway Timeout"


def _consume_result(task: asyncio.Task) -> None:
    if task.cancelled():
        return
    exc = task.exception()
    if exc is not None:
        logger.warning(
            "Request handler failed after the timeout response was sent: %r", exc
        )


class TimeoutGuard:
    """
    Race each HTTP request against a deadline.

    The downstream app runs as its own task. If the deadline passes before the
    app has started a response, the guard takes over the connection: later
    messages from the app are dropped, the task is cancelled and a single 504
    is sent. Cancelling the task does not interrupt work already running in a
    worker thread; that work finishes in the background and its output is
    discarded. Once a response has started it is always allowed to finish.
    """

    def __init__(self, app: ASGIApp, timeout: Optional[float] = 10.0) -> None:
        self.app = app
        self.timeout = timeout

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or not self.timeout or self.timeout <= 0:
            await self.app(scope, receive, send)
            return

        response_started = False
        timed_out = False

        async def guarded_send(message: Message) -> None:
            nonlocal response_started
            if timed_out:
                return
            if message["type"] == "http.response.start":
                response_started = True
            await send(message)

        task = asyncio.create_task(self.app(scope, receive, guarded_send))
        try:
            done, _ = await asyncio.wait({task}, timeout=self.timeout)
        except asyncio.CancelledError:
            task.cancel()
            raise

        if task in done:
            # Re-raises whatever the app raised.
            task.result()
            return
        if response_started:
            await task
            return

        # No await between the check above and this flag, so the app can no
        # longer start a response of its own.
        timed_out = True
        task.add_done_callback(_consume_result)
        task.cancel()
        logger.warning(
            "%s %s exceeded %ss; sending %d",
            scope.get("method", ""),
            scope.get("path", ""),
            self.timeout,
            TIMEOUT_STATUS_CODE,
        )
        response = JSONResponse(
            status_code=TIMEOUT_STATUS_CODE, content={"detail": TIMEOUT_DETAIL}
        )
        await response(scope, receive, send)
