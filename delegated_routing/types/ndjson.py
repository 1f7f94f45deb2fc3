"""
Streaming (NDJSON) decoders for provider records.

Each decoder pulls one untyped envelope at a time from a :class:`JSONIter`,
reads its ``Schema`` and re-decodes the envelope's raw bytes into the matching
record class. Unknown schemas come back as the envelope itself.
"""

from collections.abc import (
    Callable,
)
import logging
from typing import (
    Generic,
    TypeVar,
)

import trio

from delegated_routing.io.abc import (
    Reader,
)

from .iter import (
    JSONIter,
    ResultIter,
)
from .records import (
    ProvideResult,
    ProviderResponse,
    UnknownProviderRecord,
    WriteProviderRecord,
    decode_provide_result,
    decode_provider_response,
    decode_write_provider_record,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")


class SchemaDispatchIter(ResultIter[T], Generic[T]):
    """
    Two-stage decoder: envelope first, then the concrete record variant.

    Exhaustion and errors of the inner iterator pass through unchanged. A
    record with a known schema but a malformed body ends the iteration with
    the decoding error (normally :class:`RecordDecodeError`) and releases the
    stream.
    """

    def __init__(
        self,
        inner: JSONIter[UnknownProviderRecord],
        decode: Callable[[UnknownProviderRecord], T],
    ) -> None:
        self._inner = inner
        self._decode = decode
        self._done = False

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration
        try:
            envelope = await self._inner.__anext__()
        except BaseException:
            self._done = True
            raise

        try:
            return self._decode(envelope)
        except Exception as e:
            logger.debug("decoding %r record failed: %s", envelope.schema, e)
            self._done = True
            await self._inner.aclose()
            raise

    async def aclose(self) -> None:
        self._done = True
        await self._inner.aclose()


def _envelopes(
    reader: Reader, cancel_scope: trio.CancelScope | None
) -> JSONIter[UnknownProviderRecord]:
    return JSONIter(
        reader, cancel_scope=cancel_scope, loads=UnknownProviderRecord.unmarshal_json
    )


def new_read_providers_response_iter(
    reader: Reader, cancel_scope: trio.CancelScope | None = None
) -> SchemaDispatchIter[ProviderResponse]:
    return SchemaDispatchIter(
        _envelopes(reader, cancel_scope), decode_provider_response
    )


def new_write_providers_request_iter(
    reader: Reader, cancel_scope: trio.CancelScope | None = None
) -> SchemaDispatchIter[WriteProviderRecord]:
    return SchemaDispatchIter(
        _envelopes(reader, cancel_scope), decode_write_provider_record
    )


def new_write_providers_response_iter(
    reader: Reader, cancel_scope: trio.CancelScope | None = None
) -> SchemaDispatchIter[ProvideResult]:
    return SchemaDispatchIter(_envelopes(reader, cancel_scope), decode_provide_result)
