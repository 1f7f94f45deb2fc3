"""
Provider record types of the delegated routing HTTP API.

Every record on the wire is a JSON object carrying a ``Schema`` discriminator.
Records with a known schema decode into a concrete class; anything else is
kept as an :class:`UnknownProviderRecord` holding the original bytes, so newer
schemas pass through older clients untouched.
"""

from dataclasses import (
    dataclass,
    field,
)
from datetime import (
    datetime,
    timedelta,
)
import hashlib
import json
from typing import (
    Any,
)

import multiaddr
import multibase

from delegated_routing.cid import (
    CID,
)
from delegated_routing.crypto.keys import (
    PrivateKey,
)
from delegated_routing.peer.id import (
    ID,
)

from .encoding import (
    format_duration,
    format_time,
    load_object,
    marshal_json_bytes,
    optional,
    parse_cid,
    parse_duration,
    parse_list,
    parse_multiaddr,
    parse_peer_id,
    parse_time,
    raw_members,
)
from .exceptions import (
    RecordDecodeError,
    SignatureError,
)


class Schema:
    BITSWAP = "bitswap/transport"


SCHEMA_BITSWAP = Schema.BITSWAP
PROTOCOL_BITSWAP = "transport-bitswap"

SIGNATURE_ENCODING = "base64"


def _string_field(obj: dict[str, Any], name: str) -> str:
    value = obj.get(name)
    if value is None:
        return ""
    if not isinstance(value, str):
        raise RecordDecodeError(f"{name} must be a string, got {value!r}")
    return value


@dataclass(frozen=True)
class UnknownProviderRecord:
    """
    A record whose schema this client does not model.

    ``raw`` is the record exactly as received; marshalling returns it
    unchanged.
    """

    protocol: str
    schema: str
    raw: bytes = field(repr=False)

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "UnknownProviderRecord":
        obj = load_object(data)
        return cls(
            protocol=_string_field(obj, "Protocol"),
            schema=_string_field(obj, "Schema"),
            raw=bytes(data),
        )

    def marshal_json(self) -> bytes:
        return self.raw

    def to_dict(self) -> dict[str, Any]:
        return json.loads(self.raw)


@dataclass(frozen=True)
class ReadBitswapProviderRecord:
    """A provider found for a CID, reachable over Bitswap."""

    protocol: str
    schema: str
    id: ID | None
    addrs: tuple[multiaddr.Multiaddr, ...] = ()

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "ReadBitswapProviderRecord":
        return cls(
            protocol=_string_field(obj, "Protocol"),
            schema=_string_field(obj, "Schema"),
            id=optional(obj.get("ID"), parse_peer_id),
            addrs=tuple(parse_list(obj.get("Addrs"), parse_multiaddr)),
        )

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "ReadBitswapProviderRecord":
        return cls.from_dict(load_object(data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "Protocol": self.protocol,
            "Schema": self.schema,
            "ID": str(self.id) if self.id is not None else None,
            "Addrs": [str(addr) for addr in self.addrs],
        }

    def marshal_json(self) -> bytes:
        return marshal_json_bytes(self.to_dict())


@dataclass(frozen=True)
class BitswapPayload:
    keys: tuple[CID, ...] = ()
    timestamp: datetime | None = None
    advisory_ttl: timedelta | None = None
    id: ID | None = None
    addrs: tuple[multiaddr.Multiaddr, ...] = ()

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "BitswapPayload":
        return cls(
            keys=tuple(parse_list(obj.get("Keys"), parse_cid)),
            timestamp=optional(obj.get("Timestamp"), parse_time),
            advisory_ttl=optional(obj.get("AdvisoryTTL"), parse_duration),
            id=optional(obj.get("ID"), parse_peer_id),
            addrs=tuple(parse_list(obj.get("Addrs"), parse_multiaddr)),
        )

    def to_dict(self) -> dict[str, Any]:
        return {
            "Keys": [str(key) for key in self.keys],
            "Timestamp": (
                format_time(self.timestamp) if self.timestamp is not None else None
            ),
            "AdvisoryTTL": (
                format_duration(self.advisory_ttl)
                if self.advisory_ttl is not None
                else None
            ),
            "ID": str(self.id) if self.id is not None else None,
            "Addrs": [str(addr) for addr in self.addrs],
        }


@dataclass
class WriteBitswapProviderRecord:
    """
    A signed announcement that ``payload.id`` serves ``payload.keys`` over
    Bitswap.

    ``raw_payload`` holds the exact payload bytes the signature covers. It is
    filled in by :meth:`sign` on the sending side and by
    :meth:`unmarshal_json` on the receiving side.
    """

    protocol: str
    schema: str
    payload: BitswapPayload
    signature: str = ""
    raw_payload: bytes = field(default=b"", repr=False)

    def is_signed(self) -> bool:
        return bool(self.signature)

    def sign(self, peer_id: ID, key: PrivateKey | None) -> None:
        if self.is_signed():
            raise SignatureError("already signed")
        if key is None:
            raise SignatureError("no key provided")
        if not peer_id.matches_public_key(key.get_public_key()):
            raise SignatureError("not the correct signing key")

        payload_bytes = marshal_json_bytes(self.payload.to_dict())
        signature = key.sign(hashlib.sha256(payload_bytes).digest())
        encoded = multibase.encode(SIGNATURE_ENCODING, signature)
        self.signature = encoded.decode() if isinstance(encoded, bytes) else encoded
        self.raw_payload = payload_bytes

    def verify(self) -> None:
        """Raise :class:`SignatureError` unless the record is validly signed."""
        if not self.is_signed():
            raise SignatureError("not signed")
        if self.payload.id is None:
            raise SignatureError("peer ID must be specified")

        try:
            public_key = self.payload.id.extract_public_key()
        except Exception as e:
            raise SignatureError(f"extracting public key from peer ID: {e}") from e

        try:
            signature = multibase.decode(self.signature)
        except ValueError as e:
            raise SignatureError(f"decoding signature: {e}") from e

        digest = hashlib.sha256(self.raw_payload).digest()
        if not public_key.verify(digest, signature):
            raise SignatureError("signature failed to verify")

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "WriteBitswapProviderRecord":
        obj = load_object(data)
        raw_payload = raw_members(data).get("Payload", b"null")
        payload_obj = json.loads(raw_payload)
        if payload_obj is None:
            payload = BitswapPayload()
        elif isinstance(payload_obj, dict):
            payload = BitswapPayload.from_dict(payload_obj)
        else:
            raise RecordDecodeError("Payload must be a JSON object")
        return cls(
            protocol=_string_field(obj, "Protocol"),
            schema=_string_field(obj, "Schema"),
            payload=payload,
            signature=_string_field(obj, "Signature"),
            raw_payload=raw_payload,
        )

    def marshal_json(self) -> bytes:
        payload = self.raw_payload or marshal_json_bytes(self.payload.to_dict())
        rest = marshal_json_bytes(
            {
                "Protocol": self.protocol,
                "Schema": self.schema,
                "Signature": self.signature,
            }
        )
        # "Payload" sorts before the remaining keys.
        return b'{"Payload":' + payload + b"," + rest[1:]


@dataclass(frozen=True)
class WriteBitswapProviderRecordResponse:
    protocol: str
    schema: str
    advisory_ttl: timedelta | None = None

    @classmethod
    def from_dict(cls, obj: dict[str, Any]) -> "WriteBitswapProviderRecordResponse":
        return cls(
            protocol=_string_field(obj, "Protocol"),
            schema=_string_field(obj, "Schema"),
            advisory_ttl=optional(obj.get("AdvisoryTTL"), parse_duration),
        )

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "WriteBitswapProviderRecordResponse":
        return cls.from_dict(load_object(data))

    def to_dict(self) -> dict[str, Any]:
        return {
            "Protocol": self.protocol,
            "Schema": self.schema,
            "AdvisoryTTL": (
                format_duration(self.advisory_ttl)
                if self.advisory_ttl is not None
                else None
            ),
        }

    def marshal_json(self) -> bytes:
        return marshal_json_bytes(self.to_dict())


ProviderResponse = ReadBitswapProviderRecord | UnknownProviderRecord
WriteProviderRecord = WriteBitswapProviderRecord | UnknownProviderRecord
ProvideResult = WriteBitswapProviderRecordResponse | UnknownProviderRecord


def decode_provider_response(envelope: UnknownProviderRecord) -> ProviderResponse:
    match envelope.schema:
        case Schema.BITSWAP:
            return ReadBitswapProviderRecord.unmarshal_json(envelope.raw)
        case _:
            return envelope


def decode_write_provider_record(
    envelope: UnknownProviderRecord,
) -> WriteProviderRecord:
    match envelope.schema:
        case Schema.BITSWAP:
            return WriteBitswapProviderRecord.unmarshal_json(envelope.raw)
        case _:
            return envelope


def decode_provide_result(envelope: UnknownProviderRecord) -> ProvideResult:
    match envelope.schema:
        case Schema.BITSWAP:
            return WriteBitswapProviderRecordResponse.unmarshal_json(envelope.raw)
        case _:
            return envelope