"""
Content routing backed by a delegated routing client.

:class:`ContentRouter` lets code written against :class:`IContentRouting`
announce and look up content through an HTTP routing server instead of a DHT.
"""

from collections.abc import (
    AsyncIterator,
    Sequence,
)
from datetime import (
    timedelta,
)
import logging

import trio

from delegated_routing.cid import (
    CID,
    CODEC_RAW,
    make_cid_v1,
)
from delegated_routing.exceptions import (
    MultiError,
)
from delegated_routing.peer.peerinfo import (
    PeerInfo,
)
from delegated_routing.routing.interfaces import (
    IContentRouting,
    IRoutingClient,
)
from delegated_routing.types.records import (
    ReadBitswapProviderRecord,
)

logger = logging.getLogger(__name__)

TTL = timedelta(hours=24)
DEFAULT_MAX_PROVIDE_CONCURRENCY = 5
DEFAULT_MAX_PROVIDE_BATCH_SIZE = 100


class ContentRouter(IContentRouting):
    def __init__(
        self,
        client: IRoutingClient,
        max_provide_concurrency: int = DEFAULT_MAX_PROVIDE_CONCURRENCY,
        max_provide_batch_size: int = DEFAULT_MAX_PROVIDE_BATCH_SIZE,
    ) -> None:
        if max_provide_concurrency < 1:
            raise ValueError("max_provide_concurrency must be at least 1")
        if max_provide_batch_size < 1:
            raise ValueError("max_provide_batch_size must be at least 1")
        self.client = client
        self.max_provide_concurrency = max_provide_concurrency
        self.max_provide_batch_size = max_provide_batch_size

    def ready(self) -> bool:
        return True

    async def provide(self, cid: CID, announce: bool = True) -> None:
        # Nothing is tracked locally, so a provide without announcing is a no-op.
        if not announce:
            return
        await self.client.provide_bitswap([cid], TTL)

    async def provide_many(self, multihashes: Sequence[bytes]) -> None:
        """
        Announce every multihash in ``multihashes``, as CIDv1 raw CIDs.

        Keys are split into batches of at most ``max_provide_batch_size`` and
        at most ``max_provide_concurrency`` batches are in flight at once.
        When batches fail, the remaining ones still run; a single failure is
        re-raised as is, several are combined into a :class:`MultiError`.
        """
        keys = [make_cid_v1(CODEC_RAW, mh) for mh in multihashes]
        if not keys:
            return
        if len(keys) <= self.max_provide_batch_size:
            await self.client.provide_bitswap(keys, TTL)
            return

        batches = [
            keys[i : i + self.max_provide_batch_size]
            for i in range(0, len(keys), self.max_provide_batch_size)
        ]
        limiter = trio.CapacityLimiter(self.max_provide_concurrency)
        errors: list[Exception] = []

        async def provide_batch(batch: list[CID]) -> None:
            async with limiter:
                try:
                    await self.client.provide_bitswap(batch, TTL)
                except Exception as e:
                    logger.debug("providing batch of %d keys failed: %s", len(batch), e)
                    errors.append(e)

        async with trio.open_nursery() as nursery:
            for batch in batches:
                nursery.start_soon(provide_batch, batch)

        if len(errors) == 1:
            raise errors[0]
        if errors:
            raise MultiError(errors)

    async def find_provider_iter(
        self, cid: CID, count: int = 0
    ) -> AsyncIterator[PeerInfo]:
        """
        Yield peers serving ``cid`` over Bitswap, at most ``count`` if positive.

        Lookup and decoding failures are logged and end the iteration.
        """
        try:
            records = await self.client.find_providers(cid)
        except Exception as e:
            logger.warning("error finding providers for %s: %s", cid, e)
            return

        found = 0
        try:
            while True:
                try:
                    record = await records.__anext__()
                except StopAsyncIteration:
                    return
                except Exception as e:
                    logger.warning("error iterating providers for %s: %s", cid, e)
                    return

                if not isinstance(record, ReadBitswapProviderRecord):
                    logger.debug("skipping record with schema %r", record.schema)
                    continue
                if record.id is None:
                    continue

                yield PeerInfo(record.id, record.addrs)
                found += 1
                if count > 0 and found >= count:
                    return
        finally:
            with trio.CancelScope(shield=True):
                await records.aclose()
