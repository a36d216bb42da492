import hashlib
import logging
import pickle

import pytest
from hypothesis import given, strategies as st

from filcid import FilecoinCode, Multihash, StandardCode, multihash
from filcid.errors import (
    DigestTooLong, TrailingBytes, TruncatedInput, UnknownAlgorithmCode,
    UnsupportedDigest
)
from filcid.multihash import (
    CODE_HASHES, FILECOIN_RANGE, IDENTITY, SHA2_256,
    code_to_integer, integer_to_code
)

from strategies import multihashes

def test_filecoin_unsealed_is_identity():
    h = multihash.digest(FilecoinCode.FC_UNSEALED_V1, b'\x01'*32)
    assert h.digest == b'\x01'*32
    assert h.code is FilecoinCode.FC_UNSEALED_V1
    assert h.buffer == bytes([0xc1, 0x1f, 0x20]) + b'\x01'*32

def test_filecoin_sealed_is_identity():
    h = FilecoinCode.FC_SEALED_V1.digest(b'\x02'*32)
    assert h.digest == b'\x02'*32
    assert h.buffer == bytes([0xc2, 0x1f, 0x20]) + b'\x02'*32

def test_filecoin_digest_logs_label(caplog):
    with caplog.at_level(logging.DEBUG, logger='filcid.multihash'):
        FilecoinCode.FC_UNSEALED_V1.digest(b'\x01'*32)
    record, = caplog.records
    assert record.args == ('fc-unsealed-v1',)
    assert "fc-unsealed-v1" in record.getMessage()

def test_reserved_filecoin_codes_wrap():
    h = multihash.digest(FilecoinCode.FC_RESERVED10, b'abc')
    assert h.buffer == bytes([0xca, 0x1f, 0x03]) + b'abc'

def test_sha2_256():
    h = multihash.digest('sha2-256', b'')
    assert h.code is SHA2_256
    assert h.buffer.hex() == (
        '1220e3b0c44298fc1c149afbf4c8996fb92427ae41e4649b934ca495991b7852b855'
    )

@pytest.mark.parametrize("name, expected", [
    ('sha1', hashlib.sha1(b'abc').digest()),
    ('sha2-512', hashlib.sha512(b'abc').digest()),
    ('sha3-256', hashlib.sha3_256(b'abc').digest()),
    ('blake2b-256', hashlib.blake2b(b'abc', digest_size=32).digest()),
    ('blake2s-128', hashlib.blake2s(b'abc', digest_size=16).digest()),
    ('shake-128', hashlib.shake_128(b'abc').digest(32)),
    ('dbl-sha2-256', hashlib.sha256(hashlib.sha256(b'abc').digest()).digest()),
    ('identity', b'abc'),
])
def test_standard_digests(name, expected):
    h = multihash.digest(name, b'abc')
    assert h.name == name
    assert h.digest == expected

def test_trunc254_clears_top_bits():
    h = multihash.digest('sha2-256-trunc254-padded', b'abc')
    assert h.size == 32
    assert h.digest[-1] & 0xc0 == 0
    assert h.digest[:-1] == hashlib.sha256(b'abc').digest()[:-1]

def test_known_code_without_provider():
    with pytest.raises(UnsupportedDigest):
        multihash.digest('keccak-256', b'abc')
    # Still representable and decodable
    h = Multihash('keccak-256', b'\0'*32)
    assert Multihash.from_bytes(h.buffer) == h

def test_identity_too_long():
    with pytest.raises(DigestTooLong):
        multihash.digest(IDENTITY, b'x'*65)

def test_integer_dispatch():
    assert integer_to_code(0xfc1) is FilecoinCode.FC_UNSEALED_V1
    assert integer_to_code(0xfca) is FilecoinCode.FC_RESERVED10
    assert integer_to_code(0x12) is SHA2_256
    assert code_to_integer(FilecoinCode.FC_SEALED_V1) == 0xfc2
    for n in (0xfc0, 0xfcb, 0x7f, 2**40):
        with pytest.raises(UnknownAlgorithmCode):
            integer_to_code(n)

def test_filecoin_range_never_resolves_to_standard():
    assert [int(c) for c in FilecoinCode] == list(FILECOIN_RANGE)
    for n in FILECOIN_RANGE:
        code = integer_to_code(n)
        assert isinstance(code, FilecoinCode)
        assert not isinstance(code, StandardCode)

@given(st.sampled_from(sorted(CODE_HASHES)))
def test_standard_codes_never_resolve_to_filecoin(n):
    code = integer_to_code(n)
    assert isinstance(code, StandardCode)
    assert n not in FILECOIN_RANGE
    assert code_to_integer(code) == n

def test_labels():
    assert SHA2_256.label == 'sha2-256'
    assert StandardCode['BLAKE2B_256'].label == 'blake2b-256'
    assert FilecoinCode.FC_UNSEALED_V1.label == 'fc-unsealed-v1'
    assert Multihash('fc-sealed-v1', b'').code is FilecoinCode.FC_SEALED_V1

@given(multihashes())
def test_bytes_roundtrip(mh):
    assert Multihash.from_bytes(mh.buffer) == mh
    assert Multihash(bytes(mh)) == mh
    assert Multihash.validate(mh.buffer)

@given(multihashes(), st.binary(min_size=1, max_size=8))
def test_trailing_bytes(mh, extra):
    with pytest.raises(TrailingBytes):
        Multihash.from_bytes(mh.buffer + extra)

def test_parse_errors():
    with pytest.raises(TruncatedInput):
        Multihash.from_bytes(b'\x12\x20' + b'\0'*31)
    with pytest.raises(TruncatedInput):
        Multihash.from_bytes(b'\x12')
    with pytest.raises(UnknownAlgorithmCode):
        Multihash.from_bytes(b'\x7f\x00')
    with pytest.raises(DigestTooLong):
        Multihash.from_bytes(b'\x00\x41' + b'\0'*65)
    assert not Multihash.validate(b'\x12\x21' + b'\0'*32)

def test_string_forms():
    h = multihash.digest('sha2-256', b'')
    assert Multihash.from_hex(h.hex()) == h
    assert Multihash.from_b58(h.encode()) == h
    assert str(h) == h.encode('b58')
    assert h.encode('hex') == h.hex()
    with pytest.raises(ValueError):
        h.encode('base99')

def test_constructor_forms():
    h = Multihash(0x12, 'ab'*32)
    assert h.digest == b'\xab'*32
    assert Multihash(h) is h
    assert Multihash(SHA2_256, b'\xab'*32) == h
    assert repr(h) == f"Multihash('sha2-256', digest={'ab'*32!r})"
    with pytest.raises(ValueError):
        Multihash('no-such-hash', b'')
    with pytest.raises(TypeError):
        Multihash(h, b'')
    with pytest.raises(TypeError):
        Multihash(0x12) # type: ignore[call-overload]
    with pytest.raises(TypeError):
        Multihash(True, b'') # type: ignore[call-overload]

def test_value_semantics():
    a = multihash.digest('sha2-256', b'a')
    b = multihash.digest('sha2-256', b'b')
    with pytest.raises(TypeError):
        a.digest = b'' # type: ignore[misc]
    assert a != b
    assert sorted([b, a]) == sorted([a, b])
    assert len({a, multihash.digest('sha2-256', b'a')}) == 1
    assert pickle.loads(pickle.dumps(a)) == a
    code, digest = a
    assert (code, digest) == (SHA2_256, a.digest)
    assert len(a) == 34

def test_builder():
    built = multihash.multihash('sha2-256').update(b'ab').update(b'c').finalize()
    assert built == multihash.digest('sha2-256', b'abc')
    assert multihash.multihash(FilecoinCode.FC_UNSEALED_V1, b'x').finalize().digest == b'x'
    with pytest.raises(UnsupportedDigest):
        multihash.multihash('blake3')
