"""Request ID middleware.

Forwards the caller's request id (or mints one) and echoes it on the
response. The id is bound to the logging context for the duration of the
request so gate decisions logged by services carry it. Raw ASGI so
streaming responses are not buffered.
"""

import re
import uuid
from typing import Callable

from sqlgate.shared.telemetry.logging import reset_request_id, set_request_id

REQUEST_ID_MAX_LENGTH = 64
_SAFE_REQUEST_ID = re.compile(r"[A-Za-z0-9_-]+")


def sanitize_request_id(raw: str | None) -> str:
    """Return raw if it is a safe id; otherwise a new UUID4 string.

    Anything outside [A-Za-z0-9_-] or longer than REQUEST_ID_MAX_LENGTH is
    replaced so it cannot inject fake lines into the log stream.
    """
    candidate = (raw or "").strip()
    if len(candidate) > REQUEST_ID_MAX_LENGTH or not _SAFE_REQUEST_ID.fullmatch(candidate):
        return str(uuid.uuid4())
    return candidate


def RequestIDMiddleware(app: Callable, header_name: str = "X-Request-ID") -> Callable:
    """Wrap app so every HTTP exchange has a request id."""
    header_key = header_name.lower().encode()

    async def asgi_app(scope: dict, receive: Callable, send: Callable) -> None:
        if scope["type"] != "http":
            await app(scope, receive, send)
            return

        raw = next(
            (v.decode("utf-8", errors="replace") for k, v in scope.get("headers", []) if k.lower() == header_key),
            None,
        )
        request_id = sanitize_request_id(raw)
        scope.setdefault("state", {})["request_id"] = request_id

        async def send_with_id(message: dict) -> None:
            if message["type"] == "http.response.start":
                message["headers"] = [
                    *message.get("headers", []),
                    (header_name.encode(), request_id.encode()),
                ]
            await send(message)

        token = set_request_id(request_id)
        try:
            await app(scope, receive, send_with_id)
        finally:
            reset_request_id(token)

    return asgi_app
