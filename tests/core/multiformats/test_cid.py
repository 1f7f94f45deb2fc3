import base58
import pytest

from delegated_routing.cid import (
    CID,
    CID_V0,
    CID_V1,
    CODEC_DAG_PB,
    CODEC_RAW,
    InvalidCIDError,
    compute_cid_v0,
    compute_cid_v1,
    make_cid_v1,
    sha256_multihash,
)


def test_sha256_multihash_prefix():
    mh = sha256_multihash(b"hello")

    assert mh[:2] == b"\x12\x20"
    assert len(mh) == 34


def test_cid_v1_string_form():
    cid = compute_cid_v1(b"hello")

    text = str(cid)

    assert text.startswith("bafkrei")
    assert CID.from_string(text) == cid
    assert CID.from_bytes(cid.to_bytes()) == cid
    assert cid.to_bytes()[:2] == bytes([CID_V1, CODEC_RAW])


def test_cid_v0_string_form():
    cid = compute_cid_v0(b"hello")

    text = str(cid)

    assert text.startswith("Qm")
    assert len(text) == 46
    assert base58.b58decode(text) == cid.multihash
    assert CID.from_string(text) == cid
    assert CID.from_bytes(cid.to_bytes()) == cid
    assert cid.version == CID_V0
    assert cid.codec == CODEC_DAG_PB


def test_cid_v1_dag_pb_is_not_v0():
    mh = sha256_multihash(b"hello")

    assert make_cid_v1(CODEC_DAG_PB, mh) != compute_cid_v0(b"hello")
    assert str(make_cid_v1(CODEC_DAG_PB, mh)).startswith("bafybei")


def test_cids_are_hashable():
    assert len({compute_cid_v1(b"a"), compute_cid_v1(b"a"), compute_cid_v1(b"b")}) == 2


def test_base58_encoding_of_v1():
    cid = compute_cid_v1(b"hello")

    encoded = cid.encode("base58btc")

    assert encoded.startswith("z")
    assert CID.from_string(encoded) == cid


@pytest.mark.parametrize("text", ("", "bafy", "Qm" + "0" * 44, "not a cid"))
def test_from_string_rejects(text):
    with pytest.raises(InvalidCIDError):
        CID.from_string(text)


def test_constructor_rejects():
    mh = sha256_multihash(b"x")
    with pytest.raises(InvalidCIDError):
        CID(CID_V0, CODEC_RAW, mh)
    with pytest.raises(InvalidCIDError):
        CID(CID_V0, CODEC_DAG_PB, b"\x12\x01x")
    with pytest.raises(InvalidCIDError):
        CID(2, CODEC_RAW, mh)
    with pytest.raises(InvalidCIDError):
        CID(CID_V1, CODEC_RAW, b"")
