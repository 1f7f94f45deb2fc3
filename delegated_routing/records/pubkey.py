from delegated_routing.crypto.serialization import deserialize_public_key
from delegated_routing.peer.id import ID
from delegated_routing.records.utils import InvalidRecordType, split_key
from delegated_routing.records.validator import Validator


class PublicKeyValidator(Validator):
    """
    Validator for public key records stored under ``/pk/<peer id bytes>``.
    """

    def validate(self, key: str, value: bytes) -> None:
        """
        Validate a public key record.

        Args:
            key (str): The key associated with the record.
            value (bytes): The value of the record, expected to be a public key.

        Raises:
            InvalidRecordType: If the namespace is not 'pk', the public key
                cannot be unmarshaled, or it does not match the storage key.

        """
        ns, rest = split_key(key)
        if ns != "pk":
            raise InvalidRecordType("namespace not 'pk'")

        try:
            keyhash = bytes.fromhex(rest)
        except ValueError:
            raise InvalidRecordType("key did not contain valid multihash")

        try:
            pubkey = deserialize_public_key(value)
        except Exception:
            raise InvalidRecordType("Unable to unmarshal public key")

        if ID.from_pubkey(pubkey).to_bytes() != keyhash:
            raise InvalidRecordType("public key does not match storage key")

    def select(self, key: str, values: list[bytes]) -> int:
        return 0  # All public keys are treated identical
