from delegated_routing.exceptions import (
    BaseRoutingError,
)


class CryptographyError(BaseRoutingError):
    pass


class MissingDeserializerError(CryptographyError):
    """
    Raise if the requested deserialization routine is missing for some type
    of cryptographic key.
    """
