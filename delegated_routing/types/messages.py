"""Batch (``application/json``) documents of the delegated routing API."""

from collections.abc import (
    Sequence,
)
from dataclasses import (
    dataclass,
    field,
)
from typing import (
    Any,
)

from .encoding import (
    raw_elements,
    raw_members,
)
from .records import (
    ProvideResult,
    ProviderResponse,
    UnknownProviderRecord,
    WriteProviderRecord,
    decode_provide_result,
    decode_provider_response,
    decode_write_provider_record,
)


def _records(data: bytes, member: str) -> list[UnknownProviderRecord]:
    raw = raw_members(data).get(member, b"null")
    return [UnknownProviderRecord.unmarshal_json(item) for item in raw_elements(raw)]


def _join(member: str, records: Sequence[Any]) -> bytes:
    body = b",".join(record.marshal_json() for record in records)
    return b'{"' + member.encode() + b'":[' + body + b"]}"


@dataclass
class ReadProvidersResponse:
    providers: list[ProviderResponse] = field(default_factory=list)

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "ReadProvidersResponse":
        return cls(
            [decode_provider_response(record) for record in _records(data, "Providers")]
        )

    def marshal_json(self) -> bytes:
        return _join("Providers", self.providers)


@dataclass
class WriteProvidersRequest:
    providers: list[WriteProviderRecord] = field(default_factory=list)

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "WriteProvidersRequest":
        return cls(
            [
                decode_write_provider_record(record)
                for record in _records(data, "Providers")
            ]
        )

    def marshal_json(self) -> bytes:
        return _join("Providers", self.providers)


@dataclass
class WriteProvidersResponse:
    provide_results: list[ProvideResult] = field(default_factory=list)

    @classmethod
    def unmarshal_json(cls, data: bytes) -> "WriteProvidersResponse":
        return cls(
            [
                decode_provide_result(record)
                for record in _records(data, "ProvideResults")
            ]
        )

    def marshal_json(self) -> bytes:
        return _join("ProvideResults", self.provide_results)
