import pytest
from hypothesis import given, strategies as st

from filcid import multibase
from filcid.errors import InvalidBaseEncoding, InvalidMultibasePrefix

NAMES = [
    name for name, base in multibase.ENCODINGS.items()
    if not isinstance(base, multibase.ReservedBase)
]

@pytest.mark.parametrize("encoding, data, encoded", [
    ('base2', b'\x01', '000000001'),
    ('base16', b'hello', 'f68656c6c6f'),
    ('base16upper', b'hello', 'F68656C6C6F'),
    ('base32', b'hello', 'bnbswy3dp'),
    ('base32upper', b'hello', 'BNBSWY3DP'),
    ('base32', b'f', 'bmy'),
    ('base32pad', b'f', 'cmy======'),
    ('base32hexpad', b'f', 'tco======'),
    ('base64', b'hello', 'maGVsbG8'),
    ('base64pad', b'hello', 'MaGVsbG8='),
    ('base64url', b'\xfb\xff', 'u-_8'),
    ('base58btc', b'hello world', 'zStV1DL6CwTryKyV'),
    ('base58btc', b'\0\0\x01', 'z112'),
])
def test_known_encodings(encoding, data, encoded):
    assert multibase.encode(encoding, data) == encoded
    assert multibase.decode(encoded) == data

@pytest.mark.parametrize("name", NAMES)
@given(data=st.binary(max_size=80))
def test_roundtrip(name, data):
    encoded = multibase.encode(name, data)
    base, decoded = multibase.decode_base(encoded)
    assert decoded == data
    assert base is multibase.codec(name)

def test_codec_of():
    assert multibase.codec_of('bafy') is multibase.base32
    assert multibase.codec_of('zQm') is multibase.base58btc
    assert multibase.codec_of('\0abc') is multibase.identity

def test_is_encoded():
    assert multibase.is_encoded('bafy')
    assert not multibase.is_encoded('Qmabc')
    assert not multibase.is_encoded('')
    assert not multibase.is_encoded('!abc')

@pytest.mark.parametrize("data", ['', '!abc', 'Qmf5Qzp6', '1abc', '/ipfs'])
def test_bad_prefix(data):
    with pytest.raises(InvalidMultibasePrefix):
        multibase.decode(data)

@pytest.mark.parametrize("data", ['z0OIl', 'b!!!!', 'f0g'])
def test_bad_digits(data):
    with pytest.raises(InvalidBaseEncoding):
        multibase.decode(data)

def test_unknown_encoding_name():
    with pytest.raises(ValueError):
        multibase.encode('base45', b'x') # type: ignore[arg-type]
    with pytest.raises(ValueError):
        multibase.codec('<reserved-Q>') # type: ignore[call-overload]

def test_identity():
    assert multibase.encode_identity(b'abc') == b'\0abc'
    assert multibase.decode_identity(b'\0abc') == b'abc'
    with pytest.raises(InvalidMultibasePrefix):
        multibase.decode_identity(b'abc')
    with pytest.raises(InvalidMultibasePrefix):
        multibase.decode_identity(b'')

@pytest.mark.parametrize("data", [
    'bmy' + 'a',       # digit which can't complete a byte
    'bmz',             # unused low bits set
    'f6',              # half a byte
    'maGVsbG9',        # unused low bits set
    'cmy=====',        # short padding
    'cmy',             # missing padding
    'cmy=======',      # extra padding
    'MaGVsbG8==',
])
def test_rejects_non_canonical(data):
    with pytest.raises(InvalidBaseEncoding):
        multibase.decode(data)

def test_identity_has_no_text_form():
    with pytest.raises(InvalidMultibasePrefix):
        multibase.encode('identity', b'abc') # type: ignore[arg-type]
    with pytest.raises(InvalidMultibasePrefix):
        multibase.decode('\0abc')
    assert multibase.codec('identity') is multibase.identity
