from io import BytesIO

import pytest
from hypothesis import given, strategies as st

from filcid import varint
from filcid.errors import InvalidVarint, TruncatedInput

@pytest.mark.parametrize("number, encoded", [
    (0, b'\x00'),
    (1, b'\x01'),
    (127, b'\x7f'),
    (128, b'\x80\x01'),
    (300, b'\xac\x02'),
    (0xfc1, b'\xc1\x1f'),
    (2**63 - 1, b'\xff'*8 + b'\x7f'),
])
def test_known_encodings(number, encoded):
    assert varint.encode(number) == encoded
    assert varint.decode(encoded) == number

@given(st.integers(0, 2**63 - 1))
def test_roundtrip(number):
    assert varint.decode_bytes(varint.encode(number)) == number

def test_encode_rejects_negative():
    with pytest.raises(ValueError):
        varint.encode(-1)

def test_encode_rejects_over_63_bits():
    with pytest.raises(InvalidVarint):
        varint.encode(2**63)

def test_truncated():
    with pytest.raises(TruncatedInput):
        varint.decode(b'\x80')
    with pytest.raises(TruncatedInput):
        varint.decode(b'')

def test_not_minimal():
    with pytest.raises(InvalidVarint):
        varint.decode(b'\x81\x00')

def test_too_long():
    with pytest.raises(InvalidVarint):
        varint.decode(b'\x80'*9 + b'\x01')

def test_stream_consumes_only_the_varint():
    bio = BytesIO(b'\xac\x02rest')
    assert varint.decode(bio) == 300
    assert bio.read() == b'rest'

def test_iterable_source():
    assert varint.decode(iter([0xac, 0x02])) == 300

def test_unsupported_source():
    with pytest.raises(TypeError):
        varint.decode(1.5) # type: ignore[arg-type]
