"""
HTTP transport helpers.

:class:`ResponseBodyLimitedTransport` caps how much of any response body can
be read, so a misbehaving server cannot make the client buffer without
bound. :class:`ResponseBodyReader` exposes a streamed response as a
:class:`~delegated_routing.io.abc.ReadCloser` for the JSON iterators.
"""

from collections.abc import (
    AsyncIterator,
)
import logging

import httpx

from delegated_routing.io.abc import (
    ReadCloser,
)

from .config import (
    DEFAULT_RESPONSE_BODY_LIMIT,
)
from .errors import (
    ResponseBodyTooLargeError,
)

logger = logging.getLogger(__name__)


class _LimitedByteStream(httpx.AsyncByteStream):
    def __init__(self, stream: httpx.AsyncByteStream, limit_bytes: int) -> None:
        self._stream = stream
        self._limit_bytes = limit_bytes

    async def __aiter__(self) -> AsyncIterator[bytes]:
        read = 0
        async for chunk in self._stream:
            read += len(chunk)
            if read > self._limit_bytes:
                raise ResponseBodyTooLargeError(
                    f"reached read limit of {self._limit_bytes} bytes "
                    f"after reading {read} bytes"
                )
            yield chunk

    async def aclose(self) -> None:
        await self._stream.aclose()


class ResponseBodyLimitedTransport(httpx.AsyncBaseTransport):
    def __init__(
        self,
        transport: httpx.AsyncBaseTransport | None = None,
        limit_bytes: int = DEFAULT_RESPONSE_BODY_LIMIT,
    ) -> None:
        self.transport = transport or httpx.AsyncHTTPTransport()
        self.limit_bytes = limit_bytes

    async def handle_async_request(self, request: httpx.Request) -> httpx.Response:
        response = await self.transport.handle_async_request(request)
        if not isinstance(response.stream, httpx.AsyncByteStream):
            raise TypeError("transport returned a response without an async stream")
        return httpx.Response(
            status_code=response.status_code,
            headers=response.headers,
            stream=_LimitedByteStream(response.stream, self.limit_bytes),
            extensions=response.extensions,
            request=request,
        )

    async def aclose(self) -> None:
        await self.transport.aclose()


def new_default_http_client() -> httpx.AsyncClient:
    return httpx.AsyncClient(transport=ResponseBodyLimitedTransport())


class ResponseBodyReader(ReadCloser):
    """Reads a response opened with ``stream=True``; closing closes the response."""

    def __init__(self, response: httpx.Response) -> None:
        self.response = response
        self._chunks = response.aiter_bytes()
        self._pending = b""

    async def read(self, n: int | None = None) -> bytes:
        while not self._pending:
            try:
                self._pending = await self._chunks.__anext__()
            except StopAsyncIteration:
                return b""
        if n is None or n >= len(self._pending):
            data, self._pending = self._pending, b""
        else:
            data, self._pending = self._pending[:n], self._pending[n:]
        return data

    async def close(self) -> None:
        try:
            await self._chunks.aclose()
        finally:
            await self.response.aclose()
            logger.debug("closed response body from %s", self.response.url)
