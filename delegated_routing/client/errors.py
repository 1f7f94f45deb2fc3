from delegated_routing.exceptions import (
    BaseRoutingError,
)


class ClientError(BaseRoutingError):
    pass


class ClientConfigurationError(ClientError):
    """The client lacks something an operation needs; nothing was sent."""


class HTTPError(ClientError):
    """The server answered with a non-success status."""

    def __init__(self, status_code: int, body: str) -> None:
        self.status_code = status_code
        self.body = body
        super().__init__(f"HTTP error with StatusCode={status_code}: {body}")


class UnexpectedContentTypeError(ClientError):
    pass


class ProvideResultError(ClientError):
    """The provide response did not hold exactly one Bitswap result."""


class ResponseBodyTooLargeError(ClientError):
    pass
