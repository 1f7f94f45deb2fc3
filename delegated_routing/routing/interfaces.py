from abc import ABC, abstractmethod
from collections.abc import AsyncIterator, Sequence
from datetime import timedelta

import trio

from delegated_routing.cid import CID
from delegated_routing.peer.peerinfo import PeerInfo
from delegated_routing.types.iter import ResultIter
from delegated_routing.types.records import ProviderResponse


class IRoutingClient(ABC):
    @abstractmethod
    async def find_providers(
        self, key: CID, cancel_scope: trio.CancelScope | None = None
    ) -> ResultIter[ProviderResponse]:
        """
        Look up the providers of ``key`` on the routing server.

        Returns an iterator over the provider records found; an unknown key
        yields an empty iterator.
        """

    @abstractmethod
    async def provide_bitswap(self, keys: Sequence[CID], ttl: timedelta) -> timedelta:
        """
        Announce that the local peer serves ``keys`` over Bitswap.

        Returns the advisory TTL granted by the server.
        """


class IContentRouting(ABC):
    @abstractmethod
    async def provide(self, cid: CID, announce: bool = True) -> None:
        """
        Provide adds the given cid to the content routing system. If announce is True,
        it also announces it, otherwise it is just kept in the local
        accounting of which objects are being provided.
        """

    @abstractmethod
    def find_provider_iter(self, cid: CID, count: int = 0) -> AsyncIterator[PeerInfo]:
        """
        Search for peers who are able to provide a given key
        returns an async iterator of PeerInfo
        """
