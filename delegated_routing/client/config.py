"""
Configuration for the delegated routing HTTP client.

Reference: https://specs.ipfs.tech/routing/http-routing-v1/
"""

from dataclasses import (
    dataclass,
)

import httpx
import multiaddr

from delegated_routing.crypto.keys import (
    PrivateKey,
)
from delegated_routing.peer.id import (
    ID,
)
from delegated_routing.records.validator import (
    Validator,
)
from delegated_routing.utils.clock import (
    Clock,
)


class MediaType:
    JSON = "application/json"
    NDJSON = "application/x-ndjson"


MEDIA_TYPE_JSON = MediaType.JSON
MEDIA_TYPE_NDJSON = MediaType.NDJSON

# Preferred first: stream results when the server can, fall back to a batch.
DEFAULT_ACCEPTS = (MEDIA_TYPE_NDJSON, MEDIA_TYPE_JSON)
BATCH_ONLY_ACCEPTS = (MEDIA_TYPE_JSON,)

PROVIDE_PATH = "/routing/v1/providers"

# Response bodies are capped at 1 MiB unless the caller supplies a transport.
DEFAULT_RESPONSE_BODY_LIMIT = 1 << 20

# Only this much of an error response is quoted back in HTTPError.
MAX_ERROR_BODY_SIZE = 1024


@dataclass(frozen=True)
class ClientConfig:
    """
    Immutable settings of a :class:`~delegated_routing.client.client.Client`.

    Attributes:
        base_url: Root URL of the routing server, without a trailing slash.
        http_client: Executes requests; shared across concurrent calls.
        validator: Record validator for keys fetched through this client.
            Reserved: provider lookups carry no signed records, so nothing
            calls it yet.
        clock: Time source for record timestamps and call latency.
        accepts: Acceptable response media types, most preferred first.
        peer_id: Local peer announced by provide calls.
        addrs: Addresses advertised for ``peer_id``.
        identity: Key that signs provide records; must match ``peer_id``.

    """

    base_url: str
    http_client: httpx.AsyncClient
    validator: Validator
    clock: Clock
    accepts: tuple[str, ...] = DEFAULT_ACCEPTS
    peer_id: ID | None = None
    addrs: tuple[multiaddr.Multiaddr, ...] = ()
    identity: PrivateKey | None = None

    @property
    def accept_header(self) -> str:
        return ",".join(self.accepts)
