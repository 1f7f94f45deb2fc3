"""
HTTP client for delegated content routing.

The client looks up the providers of a CID and announces ("provides") CIDs
held by the local peer. Provider lookups negotiate between a streamed NDJSON
response, decoded lazily while the caller iterates, and a single JSON batch.
"""

from collections.abc import (
    Callable,
    Sequence,
)
from datetime import (
    timedelta,
)
import logging
from types import (
    TracebackType,
)

import httpx
import multiaddr
import trio

from delegated_routing.cid import (
    CID,
)
from delegated_routing.crypto.keys import (
    PrivateKey,
)
from delegated_routing.peer.id import (
    ID,
)
from delegated_routing.records.pubkey import (
    PublicKeyValidator,
)
from delegated_routing.records.validator import (
    NamespacedValidator,
    Validator,
)
from delegated_routing.routing.interfaces import (
    IRoutingClient,
)
from delegated_routing.types.iter import (
    ResultIter,
    SliceIter,
    from_slice,
)
from delegated_routing.types.messages import (
    ReadProvidersResponse,
    WriteProvidersRequest,
    WriteProvidersResponse,
)
from delegated_routing.types.ndjson import (
    new_read_providers_response_iter,
)
from delegated_routing.types.records import (
    PROTOCOL_BITSWAP,
    SCHEMA_BITSWAP,
    BitswapPayload,
    ProviderResponse,
    WriteBitswapProviderRecord,
    WriteBitswapProviderRecordResponse,
)
from delegated_routing.utils.clock import (
    Clock,
    SystemClock,
)

from .config import (
    BATCH_ONLY_ACCEPTS,
    DEFAULT_ACCEPTS,
    MAX_ERROR_BODY_SIZE,
    MEDIA_TYPE_JSON,
    PROVIDE_PATH,
    ClientConfig,
    MediaType,
)
from .errors import (
    ClientConfigurationError,
    HTTPError,
    ProvideResultError,
    UnexpectedContentTypeError,
)
from .measures import (
    ClientMetrics,
    Measurement,
    default_metrics,
)
from .transport import (
    ResponseBodyReader,
    new_default_http_client,
)

logger = logging.getLogger(__name__)


def default_validator() -> Validator:
    return NamespacedValidator({"pk": PublicKeyValidator()})


def parse_media_type(content_type: str) -> str:
    media_type = content_type.split(";", 1)[0].strip().lower()
    if "/" not in media_type:
        raise UnexpectedContentTypeError(
            f"parsing Content-Type: no media type in {content_type!r}"
        )
    return media_type


async def read_http_error(response: httpx.Response) -> HTTPError:
    """Build an :class:`HTTPError` from ``response`` and close it."""
    reader = ResponseBodyReader(response)
    body = b""
    try:
        while len(body) < MAX_ERROR_BODY_SIZE:
            chunk = await reader.read(MAX_ERROR_BODY_SIZE - len(body))
            if not chunk:
                break
            body += chunk
        message = body.decode("utf-8", errors="replace")
    except Exception as e:
        message = f"error reading body: {e}"
    finally:
        await reader.close()
    return HTTPError(response.status_code, message)


class Client(IRoutingClient):
    """
    Delegated routing HTTP API client.

    ``identity`` and ``peer_id`` are optional, but :meth:`provide_bitswap`
    refuses to run without both. When an HTTP client is passed in, the caller
    keeps ownership of it; otherwise the client builds one with a capped
    response body size and closes it in :meth:`aclose`.
    """

    # Called right after a provide record is signed and before it is sent.
    # Only tests set this, e.g. to mangle the signature.
    _after_sign_callback: Callable[[WriteBitswapProviderRecord], None] | None = None

    def __init__(
        self,
        base_url: str,
        *,
        http_client: httpx.AsyncClient | None = None,
        identity: PrivateKey | None = None,
        peer_id: ID | None = None,
        addrs: Sequence[multiaddr.Multiaddr] = (),
        streaming: bool = True,
        accepts: Sequence[str] | None = None,
        clock: Clock | None = None,
        validator: Validator | None = None,
        metrics: ClientMetrics | None = None,
    ) -> None:
        if (
            identity is not None
            and peer_id is not None
            and len(peer_id) > 0
            and not peer_id.matches_public_key(identity.get_public_key())
        ):
            raise ClientConfigurationError("identity does not match provider")

        if accepts is None:
            accepts = DEFAULT_ACCEPTS if streaming else BATCH_ONLY_ACCEPTS
        if not accepts:
            raise ClientConfigurationError("at least one media type must be accepted")

        self._owns_http_client = http_client is None
        self.config = ClientConfig(
            base_url=base_url.rstrip("/"),
            http_client=http_client or new_default_http_client(),
            validator=validator or default_validator(),
            clock=clock or SystemClock(),
            accepts=tuple(accepts),
            peer_id=peer_id,
            addrs=tuple(addrs),
            identity=identity,
        )
        self._metrics = metrics or default_metrics()

    async def aclose(self) -> None:
        if self._owns_http_client:
            await self.config.http_client.aclose()

    async def __aenter__(self) -> "Client":
        return self

    async def __aexit__(
        self,
        exc_type: type[BaseException] | None,
        exc_value: BaseException | None,
        traceback: TracebackType | None,
    ) -> None:
        await self.aclose()

    async def find_providers(
        self, key: CID, cancel_scope: trio.CancelScope | None = None
    ) -> ResultIter[ProviderResponse]:
        """
        Look up providers of ``key``.

        A JSON batch response is read in full and returned as a
        :class:`SliceIter`. An NDJSON response is decoded lazily; the returned
        iterator owns the response and closes it once drained, failed, or
        closed by the caller. ``cancel_scope`` is checked before every
        streamed record.
        """
        measurement = Measurement("FindProviders")
        providers: ResultIter[ProviderResponse] | None = None
        try:
            providers = await self._find_providers(key, cancel_scope, measurement)
            return providers
        except BaseException as e:
            measurement.error = e
            raise
        finally:
            if isinstance(providers, SliceIter):
                measurement.length = len(providers)
            measurement.record(self._metrics)

    async def _find_providers(
        self,
        key: CID,
        cancel_scope: trio.CancelScope | None,
        measurement: Measurement,
    ) -> ResultIter[ProviderResponse]:
        config = self.config
        url = f"{config.base_url}{PROVIDE_PATH}/{key}"
        request = config.http_client.build_request(
            "GET", url, headers={"Accept": config.accept_header}
        )
        measurement.host = request.url.host

        start = config.clock.now()
        try:
            response = await config.http_client.send(request, stream=True)
        finally:
            measurement.latency = config.clock.since(start)

        measurement.status_code = response.status_code
        if response.status_code == httpx.codes.NOT_FOUND:
            await response.aclose()
            logger.debug("no providers found for %s", key)
            return from_slice([])

        if not response.is_success:
            raise await read_http_error(response)

        content_type = response.headers.get("Content-Type", "")
        try:
            media_type = parse_media_type(content_type)
        except UnexpectedContentTypeError:
            await response.aclose()
            raise

        match media_type:
            case MediaType.JSON:
                try:
                    body = await response.aread()
                finally:
                    await response.aclose()
                parsed = ReadProvidersResponse.unmarshal_json(body)
                return from_slice(parsed.providers)

            case MediaType.NDJSON:
                return new_read_providers_response_iter(
                    ResponseBodyReader(response), cancel_scope=cancel_scope
                )

            case _:
                await response.aclose()
                logger.error(
                    "unknown media type %s (Content-Type: %s)",
                    media_type,
                    content_type,
                )
                raise UnexpectedContentTypeError(
                    f"unknown content type {content_type!r}"
                )

    async def provide_bitswap(self, keys: Sequence[CID], ttl: timedelta) -> timedelta:
        """
        Announce that the local peer serves ``keys`` over Bitswap.

        Returns the advisory TTL the server granted, or ``timedelta(0)`` when
        it gave none.
        """
        measurement = Measurement("ProvideBitswap")
        try:
            return await self._provide_bitswap(keys, ttl, measurement)
        except BaseException as e:
            measurement.error = e
            raise
        finally:
            measurement.record(self._metrics)

    async def _provide_bitswap(
        self, keys: Sequence[CID], ttl: timedelta, measurement: Measurement
    ) -> timedelta:
        config = self.config
        if config.identity is None:
            raise ClientConfigurationError(
                "cannot provide Bitswap records without an identity"
            )
        if config.peer_id is None or len(config.peer_id) == 0:
            raise ClientConfigurationError(
                "cannot provide Bitswap records without a peer ID"
            )

        record = WriteBitswapProviderRecord(
            protocol=PROTOCOL_BITSWAP,
            schema=SCHEMA_BITSWAP,
            payload=BitswapPayload(
                keys=tuple(keys),
                advisory_ttl=ttl,
                timestamp=config.clock.now(),
                id=config.peer_id,
                addrs=config.addrs,
            ),
        )
        record.sign(config.peer_id, config.identity)

        if self._after_sign_callback is not None:
            self._after_sign_callback(record)

        return await self._provide_signed_bitswap_record(record, measurement)

    async def _provide_signed_bitswap_record(
        self, record: WriteBitswapProviderRecord, measurement: Measurement
    ) -> timedelta:
        config = self.config
        body = WriteProvidersRequest(providers=[record]).marshal_json()
        request = config.http_client.build_request(
            "POST",
            f"{config.base_url}{PROVIDE_PATH}",
            content=body,
            headers={"Content-Type": MEDIA_TYPE_JSON, "Accept": MEDIA_TYPE_JSON},
        )
        measurement.host = request.url.host

        start = config.clock.now()
        try:
            response = await config.http_client.send(request, stream=True)
        finally:
            measurement.latency = config.clock.since(start)

        measurement.status_code = response.status_code
        if not response.is_success:
            raise await read_http_error(response)

        try:
            data = await response.aread()
        finally:
            await response.aclose()

        provide_result = WriteProvidersResponse.unmarshal_json(data)
        results = provide_result.provide_results
        if len(results) != 1:
            raise ProvideResultError(f"expected 1 result but got {len(results)}")

        result = results[0]
        if not isinstance(result, WriteBitswapProviderRecordResponse):
            raise ProvideResultError("expected AdvisoryTTL field")

        logger.debug(
            "provided %d keys, advisory TTL %s",
            len(record.payload.keys),
            result.advisory_ttl,
        )
        if result.advisory_ttl is not None:
            return result.advisory_ttl
        return timedelta(0)
