from delegated_routing.exceptions import (
    BaseRoutingError,
)


class IteratorError(BaseRoutingError):
    pass


class IteratorDecodeError(IteratorError):
    """A value on the stream could not be decoded."""


class IteratorCancelledError(IteratorError):
    """The iterator's cancellation signal fired before the next decode."""


class RecordError(BaseRoutingError):
    pass


class RecordDecodeError(RecordError):
    """A record payload does not match the shape its schema promises."""


class SignatureError(RecordError):
    pass
