import pytest

from delegated_routing.types.exceptions import (
    IteratorDecodeError,
    RecordDecodeError,
)
from delegated_routing.types.iter import (
    JSONIter,
)
from delegated_routing.types.ndjson import (
    SchemaDispatchIter,
    new_read_providers_response_iter,
    new_write_providers_request_iter,
    new_write_providers_response_iter,
)
from delegated_routing.types.records import (
    SCHEMA_BITSWAP,
    ReadBitswapProviderRecord,
    UnknownProviderRecord,
    WriteBitswapProviderRecord,
    WriteBitswapProviderRecordResponse,
)
from tests.utils.factories import (
    BytesReadCloser,
    IDFactory,
)


async def drain(it):
    return [value async for value in it]


@pytest.mark.trio
async def test_read_providers_dispatches_on_schema():
    peer_id = IDFactory()
    unknown = b'{"Schema":"carrier-pigeon","Protocol":"coo","Nest":{"z":1, "a":[]}}'
    data = (
        b'{"Protocol":"transport-bitswap","Schema":"bitswap/transport",'
        b'"ID":"' + str(peer_id).encode() + b'",'
        b'"Addrs":["/ip4/127.0.0.1/tcp/4001"]}\n' + unknown + b"\n"
    )
    reader = BytesReadCloser(data, chunk_size=5)

    records = await drain(new_read_providers_response_iter(reader))

    assert len(records) == 2
    bitswap, other = records
    assert isinstance(bitswap, ReadBitswapProviderRecord)
    assert bitswap.schema == SCHEMA_BITSWAP
    assert bitswap.id == peer_id
    assert [str(addr) for addr in bitswap.addrs] == ["/ip4/127.0.0.1/tcp/4001"]
    assert isinstance(other, UnknownProviderRecord)
    assert other.schema == "carrier-pigeon"
    assert other.protocol == "coo"
    assert other.marshal_json() == unknown
    assert reader.close_count == 1


@pytest.mark.trio
async def test_record_without_schema_is_unknown():
    reader = BytesReadCloser(b'{"Protocol":"transport-bitswap"}\n')

    (record,) = await drain(new_read_providers_response_iter(reader))

    assert isinstance(record, UnknownProviderRecord)
    assert record.schema == ""


@pytest.mark.trio
async def test_malformed_known_schema_ends_iteration():
    reader = BytesReadCloser(
        b'{"Schema":"bitswap/transport","ID":42}\n'
        b'{"Schema":"bitswap/transport"}\n'
    )
    it = new_read_providers_response_iter(reader)

    with pytest.raises(RecordDecodeError):
        await it.__anext__()
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_envelope_that_is_not_an_object_is_a_decode_error():
    reader = BytesReadCloser(b'{"Schema":"x"}\n[1, 2]\n')
    it = new_read_providers_response_iter(reader)

    assert isinstance(await it.__anext__(), UnknownProviderRecord)
    with pytest.raises(IteratorDecodeError):
        await it.__anext__()
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
    assert reader.close_count == 1


@pytest.mark.trio
async def test_aclose_releases_stream():
    reader = BytesReadCloser(b'{"Schema":"a"}\n{"Schema":"b"}\n')
    it = new_read_providers_response_iter(reader)

    assert (await it.__anext__()).schema == "a"
    await it.aclose()

    assert reader.close_count == 1
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()


@pytest.mark.trio
async def test_write_providers_response_iter():
    reader = BytesReadCloser(
        b'{"Protocol":"transport-bitswap","Schema":"bitswap/transport",'
        b'"AdvisoryTTL":"1h0m0s"}\n'
        b'{"Schema":"later","Extra":true}\n'
    )

    first, second = await drain(new_write_providers_response_iter(reader))

    assert isinstance(first, WriteBitswapProviderRecordResponse)
    assert first.advisory_ttl.total_seconds() == 3600
    assert isinstance(second, UnknownProviderRecord)


@pytest.mark.trio
async def test_write_providers_request_iter_keeps_signed_payload():
    reader = BytesReadCloser(
        b'{"Schema":"bitswap/transport","Protocol":"transport-bitswap",'
        b'"Signature":"mAAAA","Payload":{"Keys":[], "ID":null}}\n'
    )

    (record,) = await drain(new_write_providers_request_iter(reader))

    assert isinstance(record, WriteBitswapProviderRecord)
    assert record.raw_payload == b'{"Keys":[], "ID":null}'
    assert record.signature == "mAAAA"


@pytest.mark.trio
async def test_out_of_range_ttl_ends_iteration_and_releases_stream():
    reader = BytesReadCloser(
        b'{"Schema":"bitswap/transport","AdvisoryTTL":"99999999999999h"}\n'
        b'{"Schema":"bitswap/transport","AdvisoryTTL":"1h"}\n'
    )
    it = new_write_providers_response_iter(reader)

    with pytest.raises(RecordDecodeError, match="out of range"):
        await it.__anext__()
    assert reader.close_count == 1
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()


@pytest.mark.trio
async def test_any_decoder_failure_releases_stream():
    def explode(envelope):
        raise ValueError(f"cannot decode {envelope.schema}")

    reader = BytesReadCloser(b'{"Schema":"a"}\n{"Schema":"b"}\n')
    it = SchemaDispatchIter(
        JSONIter(reader, loads=UnknownProviderRecord.unmarshal_json), explode
    )

    with pytest.raises(ValueError, match="cannot decode a"):
        await it.__anext__()
    assert reader.close_count == 1
    with pytest.raises(StopAsyncIteration):
        await it.__anext__()
