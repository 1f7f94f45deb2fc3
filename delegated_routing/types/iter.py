"""
Pull-based iterators over routing results.

Every iterator here follows one contract. A pull (``__anext__``) either
returns the next value, raises ``StopAsyncIteration`` when the source is
exhausted, or raises a terminal error. Once exhausted or failed, every later
pull raises ``StopAsyncIteration``.

Two producers implement it: :class:`SliceIter` walks a list that is already
in memory, and :class:`JSONIter` decodes whitespace-delimited JSON values off
a byte stream one at a time, owning (and eventually closing) that stream.
"""

from abc import (
    ABC,
    abstractmethod,
)
from collections.abc import (
    Callable,
    Sequence,
)
import codecs
import json
import logging
import threading
from types import (
    TracebackType,
)
from typing import (
    Any,
    Generic,
    TypeVar,
)

import trio

from delegated_routing.io.abc import (
    Closer,
    Reader,
)

from .exceptions import (
    IteratorCancelledError,
    IteratorDecodeError,
)

logger = logging.getLogger(__name__)

T = TypeVar("T")

DEFAULT_READ_SIZE = 4096
JSON_WHITESPACE = " \t\n\r"
# Values starting with these are only complete once their closing token is seen.
_DELIMITED_VALUE_STARTS = '{["'


class ResultIter(ABC, Generic[T]):
    """Async pull interface shared by batch and streaming results."""

    def __aiter__(self) -> "ResultIter[T]":
        return self

    @abstractmethod
    async def __anext__(self) -> T: ...

    async def aclose(self) -> None:
        """Stop iterating early and release anything the iterator owns."""

    async def __aenter__(self) -> "ResultIter[T]":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()


class SliceIter(ResultIter[T]):
    """
    Iterator over an ordered, fully materialized sequence.

    The cursor is guarded by a lock so several tasks or threads may pull from
    the same instance; each element is handed out exactly once.
    """

    def __init__(self, items: Sequence[T]) -> None:
        self.items: list[T] = list(items)
        self._index = 0
        self._lock = threading.Lock()

    def __len__(self) -> int:
        return len(self.items)

    async def __anext__(self) -> T:
        with self._lock:
            if self._index >= len(self.items):
                raise StopAsyncIteration
            value = self.items[self._index]
            self._index += 1
        return value

    async def aclose(self) -> None:
        with self._lock:
            self._index = len(self.items)


def from_slice(items: Sequence[T]) -> SliceIter[T]:
    return SliceIter(items)


class _JSONStreamDecoder:
    """
    Incrementally splits a byte stream into whitespace-delimited JSON values.

    Only the bytes of the value currently being decoded are buffered.
    """

    def __init__(self, reader: Reader, read_size: int = DEFAULT_READ_SIZE) -> None:
        self._reader = reader
        self._read_size = read_size
        self._decoder = json.JSONDecoder()
        self._utf8 = codecs.getincrementaldecoder("utf-8")()
        self._buffer = ""
        self._eof = False

    async def next_value(self) -> bytes | None:
        """Return the raw bytes of the next value, or None at a clean end of stream."""
        while True:
            self._buffer = self._buffer.lstrip(JSON_WHITESPACE)
            if self._buffer:
                end = self._scan()
                if end is not None:
                    raw = self._buffer[:end]
                    self._buffer = self._buffer[end:]
                    return raw.encode("utf-8")
            elif self._eof:
                return None
            await self._fill()

    def _scan(self) -> int | None:
        try:
            _, end = self._decoder.raw_decode(self._buffer)
        except json.JSONDecodeError as e:
            if self._eof or not self._may_be_truncated(e):
                raise
            return None
        if (
            end == len(self._buffer)
            and not self._eof
            and self._buffer[0] not in _DELIMITED_VALUE_STARTS
        ):
            # A bare scalar such as ``12`` may continue in the next chunk.
            return None
        return end

    def _may_be_truncated(self, error: json.JSONDecodeError) -> bool:
        """
        Whether ``error`` could go away once more bytes arrive.

        A value cut off by a read boundary fails inside an open string or in
        a token that runs up to the end of the buffer. An error followed by
        whitespace is final.
        """
        if error.msg.startswith("Unterminated string"):
            return True
        tail = self._buffer[error.pos :]
        return not any(c in JSON_WHITESPACE for c in tail)

    async def _fill(self) -> None:
        chunk = await self._reader.read(self._read_size)
        if chunk:
            self._buffer += self._utf8.decode(chunk)
        else:
            self._eof = True
            self._buffer += self._utf8.decode(b"", final=True)


class JSONIter(ResultIter[T]):
    """
    Iterates over whitespace-delimited JSON values of a byte stream.

    The iterator owns ``reader``: it is closed (when it is a
    :class:`~delegated_routing.io.abc.Closer`) exactly once, as soon as the
    iterator reaches the end of the stream, fails, is cancelled or is closed by
    the caller. ``cancel_scope`` is consulted before every decode; once
    ``cancel_called`` is set the next pull fails with
    :class:`IteratorCancelledError`.

    Not safe for concurrent pulls.
    """

    def __init__(
        self,
        reader: Reader,
        cancel_scope: trio.CancelScope | None = None,
        loads: Callable[[bytes], T] = json.loads,
        read_size: int = DEFAULT_READ_SIZE,
    ) -> None:
        self.reader = reader
        self._cancel_scope = cancel_scope
        self._loads = loads
        self._decoder = _JSONStreamDecoder(reader, read_size)
        self._done = False
        self._closed = False

    @property
    def done(self) -> bool:
        return self._done

    async def __anext__(self) -> T:
        if self._done:
            raise StopAsyncIteration

        if self._cancel_scope is not None and self._cancel_scope.cancel_called:
            await self._close()
            raise IteratorCancelledError("json iterator: cancelled")

        try:
            raw = await self._decoder.next_value()
            value = self._loads(raw) if raw is not None else None
        except Exception as e:
            await self._close()
            raise IteratorDecodeError(f"json iterator: {e}") from e
        except BaseException:
            await self._close()
            raise

        if raw is None:
            await self._close()
            raise StopAsyncIteration
        return value  # type: ignore[return-value]

    async def aclose(self) -> None:
        await self._close()

    async def _close(self) -> None:
        self._done = True
        if self._closed:
            return
        self._closed = True
        if not isinstance(self.reader, Closer):
            return
        with trio.CancelScope(shield=True):
            try:
                await self.reader.close()
            except Exception:
                logger.warning("json iterator: error closing reader", exc_info=True)


def from_reader_json(
    reader: Reader,
    cancel_scope: trio.CancelScope | None = None,
    loads: Callable[[bytes], Any] = json.loads,
) -> JSONIter[Any]:
    return JSONIter(reader, cancel_scope=cancel_scope, loads=loads)
