import base58
import multihash
import pytest

from delegated_routing.crypto.ed25519 import (
    create_new_key_pair,
)
from delegated_routing.peer.id import (
    ID,
    PeerIDError,
)
from delegated_routing.peer.peerinfo import (
    PeerInfo,
)


def test_ed25519_peer_id_inlines_the_key():
    key_pair = create_new_key_pair()

    peer_id = ID.from_pubkey(key_pair.public_key)

    assert peer_id.to_bytes()[0] == 0x00
    assert peer_id.to_base58().startswith("12D3KooW")
    assert peer_id.extract_public_key() == key_pair.public_key
    assert peer_id.matches_public_key(key_pair.public_key)
    assert not peer_id.matches_public_key(create_new_key_pair().public_key)


def test_seeded_keys_are_stable():
    seed = b"\x01" * 32

    assert ID.from_pubkey(create_new_key_pair(seed).public_key) == ID.from_pubkey(
        create_new_key_pair(seed).public_key
    )


def test_base58_round_trip():
    peer_id = ID.from_pubkey(create_new_key_pair().public_key)

    assert ID.from_base58(str(peer_id)) == peer_id
    assert peer_id == str(peer_id)
    assert peer_id == peer_id.to_bytes()
    assert len({peer_id, ID.from_base58(str(peer_id))}) == 1


@pytest.mark.parametrize("text", ("", "0OIl", "not base58!"))
def test_from_base58_rejects(text):
    with pytest.raises(PeerIDError):
        ID.from_base58(text)


def test_hashed_peer_id_has_no_key():
    peer_id = ID(multihash.digest(b"some key", multihash.Func.sha2_256).encode())

    with pytest.raises(PeerIDError):
        peer_id.extract_public_key()


def test_peer_info():
    peer_id = ID(base58.b58decode("QmYyQSo1c1Ym7orWxLYvCrM2EmxFTANf8wXmmE7DWjhx5N"))
    info = PeerInfo(peer_id, ())

    assert info == PeerInfo(peer_id, [])
    assert "QmYyQSo1c1Ym7orWxLYvCrM2EmxFTANf8wXmmE7DWjhx5N" in repr(info)
