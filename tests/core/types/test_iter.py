import json
import logging

import pytest
import trio

from delegated_routing.io.abc import (
    ReadCloser,
)
from delegated_routing.types.exceptions import (
    IteratorCancelledError,
    IteratorDecodeError,
)
from delegated_routing.types.iter import (
    JSONIter,
    SliceIter,
    from_reader_json,
    from_slice,
)
from tests.utils.factories import (
    BytesReadCloser,
)


async def drain(it):
    return [value async for value in it]


@pytest.mark.trio
async def test_slice_iter_yields_in_order_then_stops():
    it = from_slice([1, 2, 3])

    assert await it.__anext__() == 1
    assert await it.__anext__() == 2
    assert await it.__anext__() == 3
    for _ in range(3):
        with pytest.raises(StopAsyncIteration):
            await it.__anext__()


@pytest.mark.trio
async def test_slice_iter_empty():
    assert await drain(from_slice([])) == []


@pytest.mark.trio
async def test_slice_iter_copies_input():
    items = ["a", "b"]
    it = SliceIter(items)
    items.append("c")

    assert len(it) == 2
    assert await drain(it) == ["a", "b"]


@pytest.mark.trio
async def test_slice_iter_aclose_stops_iteration():
    it = from_slice([1, 2, 3])
    assert await it.__anext__() == 1

    await it.aclose()
    await it.aclose()

    with pytest.raises(StopAsyncIteration):
        await it.__anext__()


@pytest.mark.trio
async def test_slice_iter_hands_out_each_value_once_across_tasks():
    it = from_slice(list(range(100)))
    seen = []

    async def worker():
        async for value in it:
            seen.append(value)
            await trio.sleep(0)

    async with trio.open_nursery() as nursery:
        for _ in range(4):
            nursery.start_soon(worker)

    assert sorted(seen) == list(range(100))


@pytest.mark.trio
async def test_json_iter_decodes_values_in_order():
    reader = BytesReadCloser(b'{"a":1}\n{"a":2}\n\n  [3]\n"four" 5\n')
    it = JSONIter(reader)

    assert await drain(it) == [{"a": 1}, {"a": 2}, [3], "four", 5]
    assert it.done
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_closes_reader_exactly_once():
    reader = BytesReadCloser(b'{"a":1}\n')
    it = JSONIter(reader)

    assert await it.__anext__() == {"a": 1}
    assert reader.close_count == 0
    for _ in range(3):
        with pytest.raises(StopAsyncIteration):
            await it.__anext__()
    await it.aclose()

    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_empty_stream():
    reader = BytesReadCloser(b"")
    it = JSONIter(reader)

    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_whitespace_only_stream():
    reader = BytesReadCloser(b" \n\r\n\t ")
    assert await drain(JSONIter(reader)) == []
    assert reader.close_count == 1


@pytest.mark.parametrize("chunk_size", (1, 2, 3, 7))
@pytest.mark.trio
async def test_json_iter_values_split_across_reads(chunk_size):
    values = [{"name": "ünïcødé ✓", "n": 12345}, [1, 22, 333], 4096, "x y"]
    data = "\n".join(json.dumps(v, ensure_ascii=False) for v in values).encode()
    reader = BytesReadCloser(data, chunk_size=chunk_size)

    assert await drain(JSONIter(reader, read_size=chunk_size)) == values


@pytest.mark.trio
async def test_json_iter_malformed_value_is_terminal():
    reader = BytesReadCloser(b'{"a":1}\n{"a":\n{"a":3}\n')
    it = JSONIter(reader)

    assert await it.__anext__() == {"a": 1}
    with pytest.raises(IteratorDecodeError):
        await it.__anext__()
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_truncated_value_fails_at_end_of_stream():
    reader = BytesReadCloser(b'{"a":1}\n{"a":2', chunk_size=4)
    it = JSONIter(reader)

    assert await it.__anext__() == {"a": 1}
    with pytest.raises(IteratorDecodeError):
        await it.__anext__()
    assert reader.close_count == 1


class EndlessLinesReader(ReadCloser):
    """Serves ``first`` and then valid NDJSON lines forever."""

    def __init__(self, first):
        self.first = first
        self.reads = 0
        self.close_count = 0

    async def read(self, n=None):
        self.reads += 1
        await trio.sleep(0)
        if self.reads == 1:
            return self.first
        return b'{"a":1}\n'

    async def close(self):
        self.close_count += 1


@pytest.mark.parametrize(
    "first_line",
    (b'{"a":}\n', b'{"a" 1}\n', b"[1,,2]\n", b"nope\n", b'{"a":"x\n'),
)
@pytest.mark.trio
async def test_json_iter_malformed_value_fails_without_reading_ahead(first_line):
    reader = EndlessLinesReader(first_line)
    it = JSONIter(reader)

    with trio.fail_after(1):
        with pytest.raises(IteratorDecodeError):
            await it.__anext__()

    assert reader.reads == 1
    assert reader.close_count == 1


@pytest.mark.parametrize("chunk_size", (1, 2, 5))
@pytest.mark.trio
async def test_json_iter_tokens_split_across_reads(chunk_size):
    data = b'{"ok": true, "n": -1.5e3, "none": null}\n[false, "a\\u00e9b"]\n'
    reader = BytesReadCloser(data, chunk_size=chunk_size)

    values = await drain(JSONIter(reader, read_size=chunk_size))

    assert values == [{"ok": True, "n": -1500.0, "none": None}, [False, "aéb"]]


@pytest.mark.trio
async def test_json_iter_invalid_utf8():
    reader = BytesReadCloser(b'"\xff\xfe"')
    with pytest.raises(IteratorDecodeError):
        await JSONIter(reader).__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_loads_failure_is_a_decode_error():
    def loads(raw):
        raise ValueError(f"refusing {raw!r}")

    reader = BytesReadCloser(b"{}")
    it = from_reader_json(reader, loads=loads)

    with pytest.raises(IteratorDecodeError, match="refusing"):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_loads_receives_raw_bytes():
    raws = []

    def loads(raw):
        raws.append(raw)
        return json.loads(raw)

    reader = BytesReadCloser(b'{ "a" : 1 }\n[ 2 ]')
    await drain(JSONIter(reader, loads=loads))

    assert raws == [b'{ "a" : 1 }', b"[ 2 ]"]


@pytest.mark.trio
async def test_json_iter_cancelled_before_first_pull():
    cancel_scope = trio.CancelScope()
    cancel_scope.cancel()
    reader = BytesReadCloser(b'{"a":1}\n')
    it = JSONIter(reader, cancel_scope=cancel_scope)

    with pytest.raises(IteratorCancelledError):
        await it.__anext__()
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_cancelled_mid_stream():
    cancel_scope = trio.CancelScope()
    reader = BytesReadCloser(b"1 2 3 4")
    it = JSONIter(reader, cancel_scope=cancel_scope)

    assert await it.__anext__() == 1
    cancel_scope.cancel()

    with pytest.raises(IteratorCancelledError):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_json_iter_aclose_mid_stream():
    reader = BytesReadCloser(b"1 2 3")
    async with JSONIter(reader) as it:
        assert await it.__anext__() == 1

    assert reader.close_count == 1
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()


@pytest.mark.trio
async def test_json_iter_logs_close_failure(caplog):
    class FailingClose(BytesReadCloser):
        async def close(self):
            await super().close()
            raise OSError("boom")

    reader = FailingClose(b"1")
    with caplog.at_level(logging.WARNING, logger="delegated_routing.types.iter"):
        assert await drain(JSONIter(reader)) == [1]

    assert reader.close_count == 1
    assert "error closing reader" in caplog.text
