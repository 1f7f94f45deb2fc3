from delegated_routing.crypto.ed25519 import (
    create_new_key_pair,
)
from delegated_routing.crypto.keys import (
    KeyType,
)
from delegated_routing.crypto.pb import (
    crypto_pb2,
)
from delegated_routing.crypto.serialization import (
    deserialize_private_key,
    deserialize_public_key,
)


def test_public_key_serialize_deserialize_round_trip():
    public_key = create_new_key_pair().public_key

    another_public_key = deserialize_public_key(public_key.serialize())

    assert public_key == another_public_key
    assert another_public_key.get_type() is KeyType.Ed25519


def test_private_key_serialize_deserialize_round_trip():
    private_key = create_new_key_pair().private_key

    another_private_key = deserialize_private_key(private_key.serialize())

    assert private_key == another_private_key


def test_sign_and_verify():
    key_pair = create_new_key_pair()
    signature = key_pair.private_key.sign(b"payload")

    assert len(signature) == 64
    assert key_pair.public_key.verify(b"payload", signature)
    assert not key_pair.public_key.verify(b"other payload", signature)
    assert not key_pair.public_key.verify(b"payload", signature[:10])


def test_public_key_wire_format():
    public_key = create_new_key_pair().public_key

    # key_type = Ed25519 (field 1), data = 32 raw bytes (field 2)
    assert public_key.serialize() == b"\x08\x01\x12\x20" + public_key.to_bytes()


def test_key_type_values_match_protobuf_enum():
    assert crypto_pb2.KeyType.Name(KeyType.Ed25519.value) == "Ed25519"
    assert crypto_pb2.DESCRIPTOR.package == "crypto.pb"
