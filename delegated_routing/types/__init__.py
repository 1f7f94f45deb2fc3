"""
Record types, wire encodings and result iterators of the delegated routing
HTTP API.
"""

from .exceptions import (
    IteratorCancelledError,
    IteratorDecodeError,
    IteratorError,
    RecordDecodeError,
    RecordError,
    SignatureError,
)
from .iter import (
    JSONIter,
    ResultIter,
    SliceIter,
    from_reader_json,
    from_slice,
)
from .records import (
    PROTOCOL_BITSWAP,
    SCHEMA_BITSWAP,
    BitswapPayload,
    ProvideResult,
    ProviderResponse,
    ReadBitswapProviderRecord,
    Schema,
    UnknownProviderRecord,
    WriteBitswapProviderRecord,
    WriteBitswapProviderRecordResponse,
    WriteProviderRecord,
)

__all__ = [
    "PROTOCOL_BITSWAP",
    "SCHEMA_BITSWAP",
    "BitswapPayload",
    "IteratorCancelledError",
    "IteratorDecodeError",
    "IteratorError",
    "JSONIter",
    "ProvideResult",
    "ProviderResponse",
    "ReadBitswapProviderRecord",
    "RecordDecodeError",
    "RecordError",
    "ResultIter",
    "Schema",
    "SignatureError",
    "SliceIter",
    "UnknownProviderRecord",
    "WriteBitswapProviderRecord",
    "WriteBitswapProviderRecordResponse",
    "WriteProviderRecord",
    "from_reader_json",
    "from_slice",
]
