import base58
import multihash

from delegated_routing.crypto.keys import (
    PublicKey,
)
from delegated_routing.crypto.serialization import (
    deserialize_public_key,
)

# NOTE: enabling to be interoperable w/ the Go implementation
# See: https://github.com/libp2p/specs/issues/138
ENABLE_INLINING = True
MAX_INLINE_KEY_LENGTH = 42

IDENTITY_MULTIHASH_CODE = 0x00

if ENABLE_INLINING:

    class IdentityHash:
        _digest: bytes

        def __init__(self) -> None:
            self._digest = b""

        def update(self, input: bytes) -> None:
            self._digest += input

        def digest(self) -> bytes:
            return self._digest

    multihash.FuncReg.register(
        IDENTITY_MULTIHASH_CODE, "identity", hash_new=lambda: IdentityHash()
    )


class PeerIDError(ValueError):
    pass


class ID:
    _bytes: bytes
    _b58_str: str | None = None

    def __init__(self, peer_id_bytes: bytes) -> None:
        self._bytes = peer_id_bytes

    def to_bytes(self) -> bytes:
        return self._bytes

    def to_base58(self) -> str:
        if not self._b58_str:
            self._b58_str = base58.b58encode(self._bytes).decode()
        return self._b58_str

    def __len__(self) -> int:
        return len(self._bytes)

    def __repr__(self) -> str:
        return f"<delegated_routing.peer.id.ID ({self!s})>"

    __str__ = pretty = to_string = to_base58

    def __eq__(self, other: object) -> bool:
        if isinstance(other, str):
            return self.to_base58() == other
        elif isinstance(other, bytes):
            return self._bytes == other
        elif isinstance(other, ID):
            return self._bytes == other._bytes
        else:
            return NotImplemented

    def __hash__(self) -> int:
        return hash(self._bytes)

    def extract_public_key(self) -> PublicKey:
        """
        Recover the public key inlined in this peer ID.

        Only peer IDs built with the identity multihash carry their key;
        hashed IDs raise :class:`PeerIDError`.
        """
        if not self._bytes or self._bytes[0] != IDENTITY_MULTIHASH_CODE:
            raise PeerIDError(f"public key is not embedded in peer ID {self}")
        try:
            mh = multihash.decode(self._bytes)
        except ValueError as e:
            raise PeerIDError(f"invalid peer ID multihash: {e}") from e
        return deserialize_public_key(mh.digest)

    def matches_public_key(self, key: PublicKey) -> bool:
        return self == ID.from_pubkey(key)

    @classmethod
    def from_base58(cls, b58_encoded_peer_id_str: str) -> "ID":
        try:
            peer_id_bytes = base58.b58decode(b58_encoded_peer_id_str)
        except ValueError as e:
            raise PeerIDError(
                f"invalid peer ID {b58_encoded_peer_id_str!r}: {e}"
            ) from e
        if not peer_id_bytes:
            raise PeerIDError("empty peer ID")
        return ID(peer_id_bytes)

    @classmethod
    def from_pubkey(cls, key: PublicKey) -> "ID":
        serialized_key = key.serialize()
        algo = multihash.Func.sha2_256
        if ENABLE_INLINING and len(serialized_key) <= MAX_INLINE_KEY_LENGTH:
            algo = IDENTITY_MULTIHASH_CODE
        mh_digest = multihash.digest(serialized_key, algo)
        return cls(mh_digest.encode())
