"""
Request body size guard for the MediaVault API.

Multipart parsing spools the whole body before any route code runs, so the
upload size limit enforced during staging comes too late to stop a large
unauthenticated request. This ASGI middleware rejects bodies above a byte
limit at the transport: requests declaring a larger Content-Length get a 413
without the body being read, and bodies without a usable Content-Length are
cut off once the streamed bytes pass the limit.
"""

import logging

from starlette.responses import JSONResponse
from starlette.types import ASGIApp, Message, Receive, Scope, Send

from mediavault.core.exceptions import UploadTooLargeError


logger = logging.getLogger(__name__)

BODY_METHODS = frozenset({"POST", "PUT", "PATCH"})

# Room for multipart boundaries and part headers around the file itself
MULTIPART_OVERHEAD_BYTES = 1024 * 1024


class RequestSizeLimitMiddleware:
    """
    Reject request bodies larger than ``max_body_bytes``.

    Example usage:
        ```python
        app.add_middleware(RequestSizeLimitMiddleware, max_body_bytes=settings_limit)
        ```
    """

    def __init__(self, app: ASGIApp, max_body_bytes: int) -> None:
        self.app = app
        self.max_body_bytes = max_body_bytes

    async def __call__(self, scope: Scope, receive: Receive, send: Send) -> None:
        if scope["type"] != "http" or scope["method"] not in BODY_METHODS:
            await self.app(scope, receive, send)
            return

        declared = self._declared_length(scope)
        if declared is not None and declared > self.max_body_bytes:
            logger.warning(
                "Rejected oversized request",
                extra={"path": scope.get("path"), "content_length": declared},
            )
            await self._reject(scope, receive, send)
            return

        received = 0

        async def limited_receive() -> Message:
            nonlocal received
            message = await receive()
            if message["type"] == "http.request":
                received += len(message.get("body", b""))
                if received > self.max_body_bytes:
                    raise UploadTooLargeError(self._message())
            return message

        await self.app(scope, limited_receive, send)

    @staticmethod
    def _declared_length(scope: Scope) -> int | None:
        for name, value in scope.get("headers", []):
            if name == b"content-length":
                try:
                    return int(value)
                except ValueError:
                    return None
        return None

    def _message(self) -> str:
        return f"Request body exceeds the maximum size of {self.max_body_bytes} bytes"

    async def _reject(self, scope: Scope, receive: Receive, send: Send) -> None:
        error = UploadTooLargeError(self._message())
        response = JSONResponse(status_code=error.status_code, content=error.to_dict())
        await response(scope, receive, send)
