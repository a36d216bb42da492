'''
Multibase text encodings. A multibase string is a one character prefix
naming the base followed by the data in that base. The identity base is
special, its "text" is the raw bytes behind a 0x00 prefix.
'''

from abc import ABC, abstractmethod
from copy import copy
from typing import Literal, overload
import math

from .errors import InvalidBaseEncoding, InvalidMultibasePrefix

__all__ = (
    'Base', 'IdBase', 'BitpackBase', 'SimpleBase', 'ReservedBase',
    'Encoding', 'ENCODINGS', 'CODES',
    'codec', 'codec_of', 'is_encoded', 'encode', 'decode', 'decode_base',
    'encode_identity', 'decode_identity',
    'identity', 'base2', 'base8', 'base10', 'base16', 'base16upper',
    'base32hex', 'base32hexupper', 'base32hexpad', 'base32hexpadupper',
    'base32', 'base32upper', 'base32pad', 'base32padupper', 'base32z',
    'base36', 'base36upper', 'base58', 'base58btc', 'base58flickr',
    'base64', 'base64pad', 'base64url', 'base64urlpad'
)

class Base(ABC):
    '''A text encoding with a single character multibase prefix.'''
    __name__: str
    code: str

    def __call__(self, x: bytes, /) -> str:
        return self.encode(x)

    @abstractmethod
    def encode(self, x: bytes, /) -> str:
        """Encode bytes without the multibase prefix."""

    @abstractmethod
    def decode(self, x: str, /) -> bytes:
        """Decode text which has had its multibase prefix removed."""

    def __repr__(self):
        return f"multibase.{self.__name__}"

class IdBase:
    '''
    The identity "base" leaves data untouched. It doesn't produce text, so
    it sits outside the Base hierarchy.
    '''
    __name__ = 'identity'
    code = '\0'

    @overload
    def encode(self, x: str) -> str: ...
    @overload
    def encode(self, x: bytes) -> bytes: ...

    def encode(self, x): return x

    @overload
    def decode(self, x: str) -> str: ...
    @overload
    def decode(self, x: bytes) -> bytes: ...

    def decode(self, x): return x

    def __repr__(self):
        return "multibase.identity"

class DigitBase(Base):
    '''A base with an alphabet, one character per digit value.'''
    digits: str
    padding: str = ''

    def __init__(self, code: str, digits: str):
        assert len(code) == 1, 'multibase prefixes are one character'
        self.code = code
        self.digits = digits
        self._values = {d: i for i, d in enumerate(digits)}

    def _index(self, digit: str) -> int:
        if (i := self._values.get(digit)) is None:
            raise InvalidBaseEncoding(
                f'{self.__name__}: invalid digit {digit!r}'
            )
        return i

    def upper(self, code: str|None = None) -> 'DigitBase':
        '''Same base with an uppercase alphabet.'''
        clone = copy(self)
        clone.code = code or self.code.upper()
        clone.digits = self.digits.upper()
        clone._values = {d: i for i, d in enumerate(clone.digits)}
        return clone

    def padded(self, code: str, padding: str = '=') -> 'DigitBase':
        '''Same base, padded to whole groups.'''
        clone = copy(self)
        clone.code = code
        clone.padding = padding
        return clone

class BitpackBase(DigitBase):
    '''RFC 4648 style base where every digit holds a fixed number of bits.'''

    def __init__(self, code: str, bits: int, digits: str):
        assert len(digits) == 1 << bits, 'alphabet must cover every bit pattern'
        super().__init__(code, digits)
        self.bits = bits
        # Digits per whole number of bytes, the unit padding fills up to
        self.group = math.lcm(8, bits) // bits

    def encode(self, bs: bytes) -> str:
        mask = (1 << self.bits) - 1
        acc = width = 0
        out = []
        for byte in bs:
            acc = (acc << 8) | byte
            width += 8
            while width >= self.bits:
                width -= self.bits
                out.append(self.digits[(acc >> width) & mask])
            acc &= (1 << width) - 1

        if width:
            out.append(self.digits[(acc << (self.bits - width)) & mask])
        if self.padding:
            out.append(self.padding * (-len(out) % self.group))
        return ''.join(out)

    def decode(self, s: str) -> bytes:
        """
        Decode canonical text only. Every digit must contribute to a byte,
        the unused low bits of the last digit must be zero and padded bases
        must be padded to exactly a whole group.
        """
        if self.padding:
            body = s.rstrip(self.padding)
            if len(s) - len(body) != -len(body) % self.group:
                raise InvalidBaseEncoding(
                    f'{self.__name__}: expected {-len(body) % self.group} '
                    f'padding characters, got {len(s) - len(body)}'
                )
            s = body

        acc = width = 0
        out = bytearray()
        for digit in s:
            acc = (acc << self.bits) | self._index(digit)
            width += self.bits
            if width >= 8:
                width -= 8
                out.append(acc >> width)
                acc &= (1 << width) - 1

        if width >= self.bits:
            raise InvalidBaseEncoding(
                f'{self.__name__}: trailing digit does not complete a byte'
            )
        if acc:
            raise InvalidBaseEncoding(
                f'{self.__name__}: non-zero bits after the last byte'
            )
        return bytes(out)

class SimpleBase(DigitBase):
    '''
    Positional base treating the data as one big-endian integer. Each
    leading zero byte becomes a leading zero digit and vice versa.
    '''

    def encode(self, bs: bytes) -> str:
        radix = len(self.digits)
        zeros = len(bs) - len(bs.lstrip(b'\0'))
        n = int.from_bytes(bs, 'big')
        out = []
        while n:
            n, d = divmod(n, radix)
            out.append(self.digits[d])
        return self.digits[0]*zeros + ''.join(reversed(out))

    def decode(self, s: str) -> bytes:
        radix = len(self.digits)
        rest = s.lstrip(self.digits[0])
        n = 0
        for digit in rest:
            n = n*radix + self._index(digit)
        return b'\0'*(len(s) - len(rest)) + n.to_bytes((n.bit_length() + 7) // 8, 'big')

class ReservedBase(Base):
    '''A prefix that may never start a multibase string.'''

    def __init__(self, code: str):
        self.code = code

    def encode(self, bs: bytes) -> str:
        raise InvalidMultibasePrefix(f"{self.code!r} is a reserved multibase prefix")

    def decode(self, s: str) -> bytes:
        raise InvalidMultibasePrefix(f"{self.code!r} is a reserved multibase prefix")

_dec = '0123456789'
_hex = _dec + 'abcdef'
_low = 'abcdefghijklmnopqrstuvwxyz'
_b58 = _dec[1:] + 'ABCDEFGHJKLMNPQRSTUVWXYZ' + 'abcdefghijkmnopqrstuvwxyz'
_b64 = _low.upper() + _low + _dec

identity = IdBase()
base2 = BitpackBase('0', 1, '01')
base8 = BitpackBase('7', 3, _dec[:8])
base10 = SimpleBase('9', _dec)
base16 = BitpackBase('f', 4, _hex)
base16upper = base16.upper()
base32hex = BitpackBase('v', 5, _dec + _low[:22])
base32hexupper = base32hex.upper()
base32hexpad = base32hex.padded('t')
base32hexpadupper = base32hexpad.upper()
base32 = BitpackBase('b', 5, _low + '234567')
base32upper = base32.upper()
base32pad = base32.padded('c')
base32padupper = base32pad.upper()
base32z = BitpackBase('h', 5, 'ybndrfg8ejkmcpqxot1uwisza345h769')
base36 = SimpleBase('k', _dec + _low)
base36upper = base36.upper()
base58btc = SimpleBase('z', _b58)
base58flickr = SimpleBase('Z', _b58[:9] + _b58[33:] + _b58[9:33])
base64 = BitpackBase('m', 6, _b64 + '+/')
base64pad = base64.padded('M')
base64url = BitpackBase('u', 6, _b64 + '-_')
base64urlpad = base64url.padded('U')

base58 = base58btc

ENCODINGS: dict[str, Base] = {}
'''Every text base by name, including the reserved prefixes.'''
CODES: dict[str, Base] = {}
'''Every text base by prefix character.'''

def _register(name: str, base: Base):
    assert base.code not in CODES, f'duplicate multibase prefix {base.code!r}'
    base.__name__ = name
    ENCODINGS[name] = base
    CODES[base.code] = base

for _name, _base in list(globals().items()):
    if _name.startswith('base') and _name != 'base58' and isinstance(_base, Base):
        _register(_name, _base)

# libp2p peer ids, legacy CIDv0 and paths
for _code in '1Q/':
    _register(f'<reserved-{_code}>', ReservedBase(_code))
del _name, _base, _code

type Encoding = Literal[
    'base2', 'base8', 'base10', 'base16', 'base16upper',
    'base32hex', 'base32hexupper', 'base32hexpad', 'base32hexpadupper',
    'base32', 'base32upper', 'base32pad', 'base32padupper', 'base32z',
    'base36', 'base36upper', 'base58btc', 'base58flickr',
    'base64', 'base64pad', 'base64url', 'base64urlpad'
]
'''Names of the usable text bases.'''

@overload
def codec(name: Literal['identity']) -> IdBase: ...
@overload
def codec(name: Encoding) -> Base: ...

def codec(name: str) -> Base|IdBase:
    """Look up a usable base by name."""
    if name == 'identity':
        return identity
    if (base := ENCODINGS.get(name)) and not isinstance(base, ReservedBase):
        return base
    raise ValueError(f'Unknown multibase encoding {name!r}')

def codec_of(data: str) -> Base|IdBase:
    """
    The base named by the prefix of data.

    :raises InvalidMultibasePrefix: data is empty or the prefix is unknown
    """
    if not data:
        raise InvalidMultibasePrefix('Empty multibase string')
    if data[0] == identity.code:
        return identity
    if (base := CODES.get(data[0])) is None:
        raise InvalidMultibasePrefix(f'Unknown multibase prefix {data[0]!r}')
    return base

def is_encoded(data: str) -> bool:
    """Whether data starts with the prefix of a usable text base."""
    base = CODES.get(data[:1])
    return base is not None and not isinstance(base, ReservedBase)

def encode_identity(data: bytes) -> bytes:
    return b'\0' + data

def decode_identity(data: bytes) -> bytes:
    if not data.startswith(b'\0'):
        raise InvalidMultibasePrefix('Missing identity multibase prefix 0x00')
    return data[1:]

def encode(encoding: Encoding|Base, data: bytes) -> str:
    """
    Encode data with its multibase prefix.

    :raises InvalidMultibasePrefix: identity, which only has a binary form
    """
    base = codec(encoding) if isinstance(encoding, str) else encoding
    if isinstance(base, IdBase):
        raise InvalidMultibasePrefix(
            'identity multibase has no text form, use encode_identity'
        )
    return base.code + base.encode(data)

def decode_base(data: str) -> tuple[Base, bytes]:
    """
    Decode a multibase string, returning the base it used as well.

    :raises InvalidMultibasePrefix: unknown, reserved or identity prefix
    :raises InvalidBaseEncoding: characters outside the base's alphabet
    """
    base = codec_of(data)
    if isinstance(base, IdBase):
        raise InvalidMultibasePrefix(
            'identity multibase has no text form, use decode_identity'
        )
    return base, base.decode(data[1:])

def decode(data: str) -> bytes:
    """Decode a multibase string."""
    return decode_base(data)[1]
