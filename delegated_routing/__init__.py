"""Client for the delegated content routing HTTP API."""

from importlib.metadata import (
    PackageNotFoundError,
    version as __version,
)

from delegated_routing.cid import (
    CID,
)
from delegated_routing.client import (
    Client,
)
from delegated_routing.contentrouter import (
    ContentRouter,
)
from delegated_routing.peer.id import (
    ID,
)
from delegated_routing.utils.logging import (
    setup_logging,
)

# Initialize logging configuration
setup_logging()

try:
    __version__ = __version("delegated-routing")
except PackageNotFoundError:
    __version__ = "0.0.0"

__all__ = [
    "CID",
    "ID",
    "Client",
    "ContentRouter",
    "__version__",
]
