"""
Content identifiers.

A CID is either a bare sha2-256 multihash (version 0, rendered in base58btc
as ``Qm...``) or ``<version><codec><multihash>`` with varint-encoded version
and codec (version 1, rendered in multibase, base32 by default).
"""

import hashlib
import io

import base58
import multibase
import varint

from delegated_routing.exceptions import (
    ParseError,
)

CID_V0 = 0
CID_V1 = 1

# Multicodec constants
CODEC_DAG_PB = 0x70
CODEC_RAW = 0x55

# Multihash constants
HASH_SHA256 = 0x12
SHA256_LENGTH = 32

DEFAULT_CID_V1_ENCODING = "base32"


class InvalidCIDError(ParseError):
    """Raised when a CID cannot be parsed."""


class CID:
    version: int
    codec: int
    multihash: bytes

    def __init__(self, version: int, codec: int, multihash: bytes) -> None:
        if version == CID_V0:
            if codec != CODEC_DAG_PB:
                raise InvalidCIDError("CIDv0 must use the dag-pb codec")
            if (
                len(multihash) != SHA256_LENGTH + 2
                or multihash[0] != HASH_SHA256
                or multihash[1] != SHA256_LENGTH
            ):
                raise InvalidCIDError("CIDv0 must be a sha2-256 multihash")
        elif version != CID_V1:
            raise InvalidCIDError(f"unsupported CID version {version}")
        if not multihash:
            raise InvalidCIDError("empty multihash")
        self.version = version
        self.codec = codec
        self.multihash = multihash

    @classmethod
    def from_bytes(cls, data: bytes) -> "CID":
        if len(data) == SHA256_LENGTH + 2 and data[0] == HASH_SHA256:
            return cls(CID_V0, CODEC_DAG_PB, data)

        stream = io.BytesIO(data)
        try:
            version = varint.decode_stream(stream)
            codec = varint.decode_stream(stream)
        except (EOFError, TypeError) as e:
            raise InvalidCIDError(f"truncated CID prefix: {e}") from e
        return cls(version, codec, data[stream.tell() :])

    @classmethod
    def from_string(cls, value: str) -> "CID":
        if not value:
            raise InvalidCIDError("empty CID string")
        if len(value) == 46 and value.startswith("Qm"):
            try:
                return cls.from_bytes(base58.b58decode(value))
            except ValueError as e:
                raise InvalidCIDError(f"invalid CIDv0 {value!r}: {e}") from e
        try:
            data = multibase.decode(value)
        except ValueError as e:
            raise InvalidCIDError(f"invalid CID {value!r}: {e}") from e
        return cls.from_bytes(data)

    def to_bytes(self) -> bytes:
        if self.version == CID_V0:
            return self.multihash
        return varint.encode(self.version) + varint.encode(self.codec) + self.multihash

    def encode(self, encoding: str = DEFAULT_CID_V1_ENCODING) -> str:
        if self.version == CID_V0:
            return base58.b58encode(self.multihash).decode()
        encoded = multibase.encode(encoding, self.to_bytes())
        return encoded.decode() if isinstance(encoded, bytes) else encoded

    def __str__(self) -> str:
        return self.encode()

    def __repr__(self) -> str:
        return f"CID({self!s})"

    def __eq__(self, other: object) -> bool:
        if not isinstance(other, CID):
            return NotImplemented
        return (
            self.version == other.version
            and self.codec == other.codec
            and self.multihash == other.multihash
        )

    def __hash__(self) -> int:
        return hash((self.version, self.codec, self.multihash))


def sha256_multihash(data: bytes) -> bytes:
    digest = hashlib.sha256(data).digest()
    # <hash-type><hash-length><hash-digest>
    return bytes([HASH_SHA256, len(digest)]) + digest


def make_cid_v1(codec: int, multihash: bytes) -> CID:
    return CID(CID_V1, codec, multihash)


def compute_cid_v0(data: bytes) -> CID:
    return CID(CID_V0, CODEC_DAG_PB, sha256_multihash(data))


def compute_cid_v1(data: bytes, codec: int = CODEC_RAW) -> CID:
    return make_cid_v1(codec, sha256_multihash(data))
