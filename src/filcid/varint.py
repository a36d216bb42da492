'''
Unsigned LEB128 varints as used throughout multiformats.

Decoding is strict: at most 9 bytes and minimally encoded, so every value
has exactly one encoding.
'''

from collections.abc import Iterable, Iterator
from typing import IO

from .errors import InvalidVarint, TruncatedInput

__all__ = (
    'MAX_VARINT_LEN',
    'encode_iter', 'decode_iter',
    'decode_stream', 'decode_bytes',
    'encode', 'decode'
)

MAX_VARINT_LEN = 9
'''Longest varint in bytes, which carries 63 bits.'''

def encode_iter(number: int) -> Iterator[int]:
    """Yield the varint bytes of `number`, least significant group first."""
    if number < 0:
        raise ValueError(f"Varints are unsigned, got {number}")
    if number >> 7*MAX_VARINT_LEN:
        raise InvalidVarint(f"{number} doesn't fit in {MAX_VARINT_LEN} varint bytes")
    while number > 0x7f:
        yield (number & 0x7f) | 0x80
        number >>= 7
    yield number

def decode_iter(it: Iterable[int]) -> int:
    """Read one varint from an iterable of byte values, stopping at its end."""
    result = 0
    for n, byte in enumerate(it):
        result |= (byte & 0x7f) << 7*n
        if byte < 0x80:
            # A trailing zero group could have been left off
            if byte == 0 and n:
                raise InvalidVarint("Varint is not minimally encoded")
            return result
        if n + 1 == MAX_VARINT_LEN:
            raise InvalidVarint(f"Varint is longer than {MAX_VARINT_LEN} bytes")
    raise TruncatedInput("Input ends inside a varint")

def _stream_bytes(stream: IO[bytes]) -> Iterator[int]:
    while b := stream.read(1):
        yield b[0]

def decode_stream(stream: IO[bytes]) -> int:
    """Read a varint from `stream`, consuming only its bytes."""
    return decode_iter(_stream_bytes(stream))

def decode_bytes(buf: bytes) -> int:
    """Read the varint at the start of `buf`."""
    return decode_iter(buf)

def encode(number: int) -> bytes:
    return bytes(encode_iter(number))

def decode(src: bytes | IO[bytes] | Iterable[int]) -> int:
    """Read a varint from bytes, a binary stream or an iterable of ints."""
    match src:
        case bytes() | bytearray() | memoryview():
            return decode_bytes(bytes(src))
        case _ if hasattr(src, 'read'):
            return decode_stream(src) # type: ignore[arg-type]
        case Iterable():
            return decode_iter(src)
    raise TypeError(f"Can't read a varint from {type(src).__name__}")
