import httpx
import pytest

from delegated_routing.client import (
    Client,
    ResponseBodyTooLargeError,
)
from delegated_routing.client.transport import (
    ResponseBodyLimitedTransport,
    ResponseBodyReader,
)
from tests.utils.factories import (
    BASE_URL,
    CIDFactory,
    ChunkedStream,
)


def limited_client(respond, limit_bytes):
    transport = ResponseBodyLimitedTransport(
        httpx.MockTransport(respond), limit_bytes=limit_bytes
    )
    return httpx.AsyncClient(transport=transport)


@pytest.mark.trio
async def test_body_within_limit():
    async with limited_client(
        lambda request: httpx.Response(200, content=b"0123456789"), limit_bytes=10
    ) as client:
        response = await client.get(BASE_URL)

    assert response.content == b"0123456789"


@pytest.mark.trio
async def test_body_over_limit():
    async with limited_client(
        lambda request: httpx.Response(
            200, stream=ChunkedStream([b"01234", b"56789x"])
        ),
        limit_bytes=10,
    ) as client:
        with pytest.raises(ResponseBodyTooLargeError, match="read limit of 10 bytes"):
            await client.get(BASE_URL)


@pytest.mark.trio
async def test_client_batch_response_over_limit(metrics, clock):
    body = b'{"Providers":[' + b",".join([b'{"Schema":"x"}'] * 100) + b"]}"
    http_client = limited_client(
        lambda request: httpx.Response(
            200, headers={"Content-Type": "application/json"}, content=body
        ),
        limit_bytes=512,
    )
    client = Client(BASE_URL, http_client=http_client, metrics=metrics, clock=clock)

    with pytest.raises(ResponseBodyTooLargeError):
        await client.find_providers(CIDFactory())
    await http_client.aclose()


@pytest.mark.trio
async def test_response_body_reader_reads_in_pieces():
    stream = ChunkedStream([b"abcdef", b"gh"])
    async with httpx.AsyncClient(
        transport=httpx.MockTransport(
            lambda request: httpx.Response(200, stream=stream)
        )
    ) as client:
        request = client.build_request("GET", BASE_URL)
        response = await client.send(request, stream=True)
        reader = ResponseBodyReader(response)

        assert await reader.read(4) == b"abcd"
        assert await reader.read(4) == b"ef"
        assert await reader.read() == b"gh"
        assert await reader.read() == b""
        await reader.close()

    assert stream.closed
    assert response.is_closed
