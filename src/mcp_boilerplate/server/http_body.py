from __future__ import annotations

from dataclasses import dataclass

from starlette.requests import Request


@dataclass(frozen=True)
class BodyTooLargeError(Exception):
    max_body_bytes: int

    def __str__(self) -> str:
        return f"Request body exceeds {self.max_body_bytes} bytes"


async def read_request_body(request: Request, *, max_body_bytes: int) -> bytes:
    """Read a request body, refusing to buffer more than ``max_body_bytes``.

    A declared Content-Length over the limit is rejected before reading; an
    invalid one is ignored and the limit is enforced while streaming.
    """
    content_length = request.headers.get("content-length")
    if content_length is not None and content_length.isdigit() and int(content_length) > max_body_bytes:
        raise BodyTooLargeError(max_body_bytes)

    body = bytearray()
    async for chunk in request.stream():
        if len(body) + len(chunk) > max_body_bytes:
            raise BodyTooLargeError(max_body_bytes)
        body.extend(chunk)
    return bytes(body)
