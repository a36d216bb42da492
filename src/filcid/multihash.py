from enum import IntEnum
from functools import partial
from io import BytesIO
from typing import IO, Any, Callable, Optional, Protocol, Self, overload
import hashlib
import logging

from . import varint, multibase
from ._common import Immutable
from .errors import (
    CIDError, DigestTooLong, TrailingBytes, TruncatedInput,
    UnknownAlgorithmCode, UnsupportedDigest
)

__all__ = (
    'HASH_CODES', 'CODE_HASHES', 'MAX_DIGEST_SIZE', 'FILECOIN_RANGE',
    'HashFunction', 'StandardCode', 'FilecoinCode', 'HashCode',
    'IDENTITY', 'SHA2_256',
    'integer_to_code', 'code_to_integer', 'digest', 'decode',
    'Multihash', 'MultihashBuilder', 'multihash'
)

logger = logging.getLogger(__name__)

MAX_DIGEST_SIZE = 64
'''Largest digest a multihash may carry, in bytes.'''

HASH_CODES: dict[str, int] = {
    'identity': 0,
    'sha1': 0x11,
    'sha2-256': 0x12,
    'sha2-512': 0x13,
    'sha3-512': 0x14,
    'sha3-384': 0x15,
    'sha3-256': 0x16,
    'sha3-224': 0x17,
    'shake-128': 0x18,
    'shake-256': 0x19,
    'keccak-224': 0x1a,
    'keccak-256': 0x1b,
    'keccak-384': 0x1c,
    'keccak-512': 0x1d,
    'blake3': 0x1e,
    'sha2-384': 0x20,
    'murmur3-x64-64': 0x22,
    'murmur3-32': 0x23,
    'dbl-sha2-256': 0x56, # draft
    'md4': 0xd4, # draft
    'md5': 0xd5, # draft
    'sha2-256-trunc254-padded': 0x1012, # zeros 2 most significant bits
    'sha2-224': 0x1013,
    'sha2-512-224': 0x1014,
    'sha2-512-256': 0x1015,
    **{f"blake2b-{i*8}"  : 0xb200 + i for i in range(1, 0x41)},
    **{f"blake2s-{i*8}"  : 0xb240 + i for i in range(1, 0x21)},
    **{f"skein256-{i*8}" : 0xb300 + i for i in range(1, 0x21)},
    **{f"skein512-{i*8}" : 0xb320 + i for i in range(1, 0x41)},
    **{f"skein1024-{i*8}": 0xb360 + i for i in range(1, 0x81)},
    'poseidon-bls12_381-a2-fc1': 0xb401,
}
CODE_HASHES: dict[int, str] = {
    v: k for k, v in HASH_CODES.items()
}

class HashFunction(IntEnum):
    '''
    Behavior shared by every multihash code, whether it's from the standard
    table or the Filecoin extension block. Has no members of its own.
    '''

    @property
    def label(self) -> str:
        '''Multihash table name of the code.'''
        return CODE_HASHES.get(self.value) or self.name.lower().replace('_', '-')

    def digest(self, data: bytes) -> 'Multihash':
        '''Hash `data` and wrap the result in a multihash.'''
        return digest(self, data)

StandardCode = HashFunction('StandardCode', {
    name.upper().replace('-', '_'): code for name, code in HASH_CODES.items()
}, module=__name__)
'''Codes from the standard multihash table.'''

class FilecoinCode(HashFunction):
    '''
    Filecoin proof codes, occupying a reserved block the standard table never
    uses. The digests are piece or replica commitments computed elsewhere, so
    hashing with them wraps the input as-is.
    '''
    FC_UNSEALED_V1 = 0xfc1
    '''Merkle proofs of unsealed data'''
    FC_SEALED_V1 = 0xfc2
    '''Merkle proofs of sealed replicated data'''
    FC_RESERVED3 = 0xfc3
    FC_RESERVED4 = 0xfc4
    FC_RESERVED5 = 0xfc5
    FC_RESERVED6 = 0xfc6
    FC_RESERVED7 = 0xfc7
    FC_RESERVED8 = 0xfc8
    FC_RESERVED9 = 0xfc9
    FC_RESERVED10 = 0xfca

type HashCode = StandardCode | FilecoinCode # type: ignore[valid-type]
'''Any multihash code this package can represent.'''

FILECOIN_RANGE = range(0xfc1, 0xfc1 + 10)
'''Integers reserved for Filecoin codes.'''

_FILECOIN_CODES: dict[int, FilecoinCode] = {
    code.value: code for code in FilecoinCode
}
assert list(_FILECOIN_CODES) == list(FILECOIN_RANGE), \
    'Filecoin codes must fill the reserved range exactly'
assert not any(code in FILECOIN_RANGE for code in CODE_HASHES), \
    'Standard codes must not overlap the Filecoin range'

IDENTITY = StandardCode['IDENTITY']
SHA2_256 = StandardCode['SHA2_256']

def integer_to_code(code: int) -> HashCode:
    """
    Resolve a multihash integer to its code. The Filecoin block is checked
    first, then the standard table.

    :raises UnknownAlgorithmCode: neither table has the code
    """
    if code in FILECOIN_RANGE:
        return _FILECOIN_CODES[code]
    try: return StandardCode(code)
    except ValueError:
        raise UnknownAlgorithmCode(code) from None

def code_to_integer(code: HashCode) -> int:
    """The integer a code is written as on the wire."""
    return int(code)

def _resolve(code: 'HashCode|int|str') -> HashCode:
    match code:
        case HashFunction(): return code
        case bool(): raise TypeError("Multihash code can't be a bool")
        case int(): return integer_to_code(code)
        case str():
            if (n := HASH_CODES.get(code)) is not None:
                return StandardCode(n)
            for fc in FilecoinCode:
                if fc.label == code:
                    return fc
            raise ValueError(f"Unknown hash function: {code}")
    raise TypeError(
        f"Expected multihash code as int or str, got {type(code).__name__}"
    )

class _Hasher(Protocol):
    def update(self, data: bytes, /) -> Any: ...
    def digest(self) -> bytes: ...

class _Identity:
    '''Hasher that returns its input.'''
    def __init__(self): self.buf = bytearray()
    def update(self, data: bytes): self.buf += data
    def digest(self): return bytes(self.buf)

class _Wrapped:
    '''A hashlib object whose digest needs a final transform.'''
    def __init__(self, hash, finish: Callable[[Any], bytes]):
        self.hash = hash
        self.finish = finish

    def update(self, data: bytes): self.hash.update(data)
    def digest(self): return self.finish(self.hash)

def _trunc254(h) -> bytes:
    d = bytearray(h.digest())
    d[-1] &= 0x3f
    return bytes(d)

_PROVIDERS: dict[str, Callable[[], _Hasher]] = {
    'identity': _Identity,
    'sha1': hashlib.sha1,
    'sha2-224': hashlib.sha224,
    'sha2-256': hashlib.sha256,
    'sha2-384': hashlib.sha384,
    'sha2-512': hashlib.sha512,
    'sha2-512-224': partial(hashlib.new, 'sha512_224'),
    'sha2-512-256': partial(hashlib.new, 'sha512_256'),
    'sha3-224': hashlib.sha3_224,
    'sha3-256': hashlib.sha3_256,
    'sha3-384': hashlib.sha3_384,
    'sha3-512': hashlib.sha3_512,
    'shake-128': lambda: _Wrapped(hashlib.shake_128(), lambda h: h.digest(32)),
    'shake-256': lambda: _Wrapped(hashlib.shake_256(), lambda h: h.digest(64)),
    'md5': hashlib.md5,
    'dbl-sha2-256': lambda: _Wrapped(
        hashlib.sha256(), lambda h: hashlib.sha256(h.digest()).digest()
    ),
    'sha2-256-trunc254-padded': lambda: _Wrapped(hashlib.sha256(), _trunc254),
    **{f"blake2b-{i*8}": partial(hashlib.blake2b, digest_size=i) for i in range(1, 0x41)},
    **{f"blake2s-{i*8}": partial(hashlib.blake2s, digest_size=i) for i in range(1, 0x21)},
}

def _hasher(code: HashCode) -> _Hasher:
    if isinstance(code, FilecoinCode):
        logger.debug("Wrapping %s commitment as-is", code.label)
        return _Identity()
    if (provider := _PROVIDERS.get(code.label)) is None:
        raise UnsupportedDigest(f"No digest provider for {code.label}")
    return provider()

def digest(code: 'HashCode|int|str', data: bytes) -> 'Multihash':
    """
    Hash `data` with the function named by `code`.

    :raises UnsupportedDigest: the code is known but can't be computed here
    :raises DigestTooLong: an identity digest is over MAX_DIGEST_SIZE
    """
    code = _resolve(code)
    h = _hasher(code)
    h.update(data)
    return Multihash(code, h.digest())

def decode(buffer: bytes) -> 'Multihash':
    """Parse a complete multihash from its canonical bytes."""
    return Multihash.from_bytes(buffer)

def _pack_mh(code: int, digest: bytes) -> bytes:
    return varint.encode(code) + varint.encode(len(digest)) + digest

class Multihash(Immutable):
    '''A digest tagged with the code of the function which produced it.'''
    # Unlike CID, we can't store just the buffer because the code is
    #  a varint, so there otherwise can't be O(1) access to these.
    __slots__ = ("code", "digest")
    __match_args__ = ("code", "digest")

    code: HashCode
    digest: bytes

    def __new__(cls, code: 'HashCode|int|str|bytes|Multihash', digest: str|bytes|None = None) -> 'Multihash':
        if isinstance(code, Multihash):
            if digest is not None:
                raise TypeError("Copy constructor does not accept digest argument")
            return code
        if digest is None:
            if isinstance(code, bytes):
                return cls.from_bytes(code)
            raise TypeError("Multihash() missing digest")
        return super().__new__(cls)

    @overload
    def __init__(self, code: 'HashCode|int|str', digest: str|bytes): ...
    @overload
    def __init__(self, buffer: 'bytes|Multihash', /): ...

    def __init__(self, code, digest=None):
        # Already initialized by the copy constructor or from_bytes
        if digest is None:
            return

        code = _resolve(code)
        if isinstance(digest, str):
            digest = bytes.fromhex(digest)

        # Sanity checks because these fields are immutable and if they're wrong
        #  they float around in the codebase as tiny bombs
        if not isinstance(digest, bytes):
            raise TypeError(
                f"Expected digest to be bytes, got {type(digest).__name__}"
            )
        if len(digest) > MAX_DIGEST_SIZE:
            raise DigestTooLong(
                f"Digest of {len(digest)} bytes exceeds {MAX_DIGEST_SIZE}"
            )

        object.__setattr__(self, 'code', code)
        object.__setattr__(self, 'digest', digest)

    def __len__(self): return len(self.buffer)
    def __hash__(self): return hash(self._key())
    def __bytes__(self): return self.buffer
    def __str__(self): return self.encode()

    def __iter__(self):
        yield self.code
        yield self.digest

    def _key(self):
        return (int(self.code), len(self.digest), self.digest)

    def __eq__(self, other):
        if isinstance(other, Multihash):
            return self._key() == other._key()
        return NotImplemented

    def __lt__(self, other):
        if isinstance(other, Multihash):
            return self._key() < other._key()
        return NotImplemented

    def __reduce__(self):
        return (Multihash, (int(self.code), self.digest))

    def __repr__(self):
        return f"Multihash({self.name!r}, digest={self.digest.hex()!r})"

    @property
    def name(self) -> str:
        return self.code.label

    @property
    def size(self) -> int:
        '''Length of the digest in bytes.'''
        return len(self.digest)

    @property
    def buffer(self) -> bytes:
        """
        Returns the multihash buffer as bytes
        """
        return _pack_mh(int(self.code), self.digest)

    def hex(self):
        """
        Returns the multihash buffer as a hex string
        """
        return self.buffer.hex()

    def encode(self, codec: str = 'b58') -> str:
        """
        Encode the multihash to a string using the specified codec

        :param codec: The codec to use for encoding, either 'hex' or 'b58'
        :return: Encoded multihash string
        :rtype: str
        """
        match codec:
            case 'hex': return self.buffer.hex()
            case 'b58': return multibase.base58.encode(self.buffer)
            case _:
                raise ValueError(f"Unsupported codec: {codec}")

    @classmethod
    def read(cls, stream: IO[bytes]) -> Self:
        """
        Read one multihash from `stream`, leaving anything after it unread.

        :raises UnknownAlgorithmCode: the code isn't in either table
        :raises TruncatedInput: the stream ends before the digest does
        """
        code = integer_to_code(varint.decode_stream(stream))
        length = varint.decode_stream(stream)
        if length > MAX_DIGEST_SIZE:
            raise DigestTooLong(
                f"Multihash declares {length} byte digest, max is {MAX_DIGEST_SIZE}"
            )
        if len(digest := stream.read(length)) != length:
            raise TruncatedInput(
                f"Multihash declares {length} byte digest, got {len(digest)}"
            )
        return cls(code, digest)

    @classmethod
    def from_bytes(cls, buffer: bytes) -> Self:
        """
        Parse a multihash which must span all of `buffer`.

        :raises TrailingBytes: there's data after the digest
        """
        bio = BytesIO(buffer)
        mh = cls.read(bio)
        if rest := bio.read():
            raise TrailingBytes(f"{len(rest)} bytes after multihash")
        return mh

    @classmethod
    def from_hex(cls, hex_string: str) -> Self:
        """
        Create a Multihash from a hex encoded string

        :param hex_string: Hex encoded multihash string
        :return: Multihash object
        """
        return cls.from_bytes(bytes.fromhex(hex_string))

    @classmethod
    def from_b58(cls, b58_string: str) -> Self:
        """
        Create a Multihash from a base58 encoded string

        :param b58_string: Base58 encoded multihash string
        :return: Multihash object
        """
        return cls.from_bytes(multibase.base58.decode(b58_string))

    @staticmethod
    def validate(multihash: bytes) -> bool:
        try: Multihash.from_bytes(multihash)
        except CIDError:
            return False
        return True

class MultihashBuilder:
    """Incremental hashing with a specific hash function."""

    def __init__(self, code: 'HashCode|int|str'):
        self.code = _resolve(code)
        self.hash = _hasher(self.code)

    def update(self, data: bytes) -> Self:
        """Update the hash with the given data."""
        self.hash.update(data)
        return self

    def finalize(self) -> Multihash:
        """Return the digest so far as a Multihash."""
        return Multihash(self.code, self.hash.digest())

    def __repr__(self):
        return f"MultihashBuilder({self.code.label!r})"

def multihash(code: 'HashCode|int|str', data: Optional[bytes]=None) -> MultihashBuilder:
    """
    Create a multihash builder for the given hash function.

    :param code: Hash function code or name (e.g., 'sha2-256')
    :param data: Data to update the hash
    :return: MultihashBuilder object
    """
    builder = MultihashBuilder(code)
    if data is not None:
        builder.update(data)
    return builder
