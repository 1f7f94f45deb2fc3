from .client import (
    Client,
)
from .config import (
    DEFAULT_ACCEPTS,
    MEDIA_TYPE_JSON,
    MEDIA_TYPE_NDJSON,
    ClientConfig,
    MediaType,
)
from .errors import (
    ClientConfigurationError,
    ClientError,
    HTTPError,
    ProvideResultError,
    ResponseBodyTooLargeError,
    UnexpectedContentTypeError,
)
from .measures import (
    ClientMetrics,
    Measurement,
)
from .transport import (
    ResponseBodyLimitedTransport,
    new_default_http_client,
)

__all__ = [
    "DEFAULT_ACCEPTS",
    "MEDIA_TYPE_JSON",
    "MEDIA_TYPE_NDJSON",
    "Client",
    "ClientConfig",
    "ClientConfigurationError",
    "ClientError",
    "ClientMetrics",
    "HTTPError",
    "Measurement",
    "MediaType",
    "ProvideResultError",
    "ResponseBodyLimitedTransport",
    "ResponseBodyTooLargeError",
    "UnexpectedContentTypeError",
    "new_default_http_client",
]
