"""
Request timeout middleware.

uvicorn has no per-request read or write deadline, so this ASGI middleware
provides both:
- read timeout: every receive() call must yield a message within read_timeout,
  otherwise the client is reported as disconnected
- write timeout: the whole request/response exchange must finish within write_timeout

A request that exceeds the write deadline is aborted. If the response has not
started yet the server answers 500, otherwise it closes the connection.
"""

import asyncio
import logging

from starlette.types import ASGIApp, Message, Receive, Scope, Send

logger = logging.getLogger(__name__)


class RequestTimeoutMiddleware:
    """
    Pure ASGI middleware bounding the time spent reading and serving a request.

    Configuration:
        - read_timeout: Seconds allowed for each chunk of the request to arrive
        - write_timeout: Seconds allowed for the full exchange
    """

    def __init__(self, app: ASGIApp, read_timeout: float, write_timeout: float):
        self.app = app
        self.read_timeout = read_timeout
        self.write_timeout = write_timeout

        logger.info(
            f"Request timeout middleware initialized: read={read_timeout}s, "
            f"write={write_timeout}s"
        )

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http":
            await self.app(scope, receive, send)
            return

        async def receive_with_timeout() -> Message:
            try:
                return await asyncio.wait_for(receive(), timeout=self.read_timeout)
            except asyncio.TimeoutError:
                logger.warning(
                    f"Read timeout after {self.read_timeout}s: path={scope.get('path')}"
                )
                # A stalled client is treated as gone
                return {"type": "http.disconnect"}

        try:
            await asyncio.wait_for(
                self.app(scope, receive_with_timeout, send), timeout=self.write_timeout
            )
        except asyncio.TimeoutError:
            logger.warning(
                f"Write timeout after {self.write_timeout}s: "
                f"method={scope.get('method')}, path={scope.get('path')}"
            )
            raise
