'''
CIDs embedded in CBOR documents.

As with all IPLD formats, DAG-CBOR must be able to encode links. A link is
a byte string tagged 42 holding the binary CID behind an identity multibase
prefix (0x00), which must not be omitted.
'''

from typing import Any, Iterator
import math
import struct

import cbor2

from ._common import decodec, IPLData
from .cid import CID
from .errors import CIDError, MalformedEmbedding
from . import multibase

__all__ = (
    'LINK_TAG',
    'link_bytes', 'encode_link', 'decode_link',
    'marshal', 'unmarshal'
)

LINK_TAG = 42
'''DAG-CBOR tag for links.'''

def link_bytes(cid: CID) -> bytes:
    """Payload of a link, the binary CID behind the identity multibase."""
    return multibase.encode_identity(cid.buffer)

def encode_link(cid: CID) -> cbor2.CBORTag:
    """Tagged CBOR value for a link."""
    return cbor2.CBORTag(LINK_TAG, link_bytes(cid))

def decode_link(value: cbor2.CBORTag|bytes) -> CID:
    """
    Read a CID from a tag 42 value, or from an already untagged payload.

    :raises MalformedEmbedding: wrong tag, non-bytes payload, missing 0x00
    """
    if isinstance(value, cbor2.CBORTag):
        if value.tag != LINK_TAG:
            raise MalformedEmbedding(
                f'Expected tag {LINK_TAG} for CID, got {value.tag}'
            )
        value = value.value

    if not isinstance(value, bytes):
        raise MalformedEmbedding(
            f'CID link must be a byte string, got {type(value).__name__}'
        )
    if not value or value[0] != 0:
        raise MalformedEmbedding(
            'raw binary multibase identity 0x00 must not be omitted'
        )

    try: return CID.from_bytes(value[1:])
    except CIDError as e:
        raise MalformedEmbedding(f'Expected CID bytes: {e}') from e

# cbor2's canonical mode writes floats in their smallest lossless width but
# DAG-CBOR requires 64-bit floats, so encoding is done here and cbor2 only
# decodes. Keys sort length-first then bytewise, as canonical CBOR does.

def _encode_head(major: int, value: int) -> bytes:
    if value < 24:
        return bytes([major << 5 | value])
    for minor, fmt in enumerate('BHIQ'):
        if value < 1 << (8 << minor):
            return bytes([major << 5 | (24 + minor)]) + struct.pack(f'>{fmt}', value)
    raise ValueError(f'DAG-CBOR integers are limited to 64 bits, got {value}')

def _encode_item(obj: Any) -> Iterator[bytes]:
    match obj:
        case None: yield b'\xf6'
        case True: yield b'\xf5'
        case False: yield b'\xf4'
        case int():
            if obj < 0:
                yield _encode_head(1, -1 - obj)
            else:
                yield _encode_head(0, obj)
        case float():
            if not math.isfinite(obj):
                raise ValueError(f'DAG-CBOR does not support {obj!r}')
            yield b'\xfb' + struct.pack('>d', obj)
        case str():
            utf8 = obj.encode('utf-8')
            yield _encode_head(3, len(utf8))
            yield utf8
        case bytes():
            yield _encode_head(2, len(obj))
            yield obj
        case CID():
            # major 6, minor 24 with the one byte tag 42
            yield b'\xd8' + bytes([LINK_TAG])
            yield from _encode_item(link_bytes(obj))
        case list() | tuple():
            yield _encode_head(4, len(obj))
            for item in obj:
                yield from _encode_item(item)
        case dict():
            if not all(isinstance(k, str) for k in obj):
                raise TypeError('DAG-CBOR map keys must be strings')
            keys = sorted((k.encode('utf-8'), k) for k in obj)
            keys.sort(key=lambda kv: len(kv[0]))
            yield _encode_head(5, len(obj))
            for utf8, key in keys:
                yield _encode_head(3, len(utf8))
                yield utf8
                yield from _encode_item(obj[key])
        case _:
            raise TypeError(
                f'DAG-CBOR cannot represent {type(obj).__name__}'
            )

@decodec("DAG-CBOR")
def _dagcbor_decode(data):
    match data:
        case cbor2.CBORTag():
            if data.tag == LINK_TAG:
                return decode_link(data)
            raise MalformedEmbedding(
                f'DAG-CBOR forbids all tags except {LINK_TAG} (CID). Got {data.tag}'
            )
        case bytes(): return data
        case None | bool() | int() | float() | str() | list() | dict():
            return None
    # cbor2 resolves the tags it knows (datetimes, decimals, sets...) itself
    raise MalformedEmbedding(
        f'DAG-CBOR has no {type(data).__name__} values, only tag {LINK_TAG} is allowed'
    )

def marshal(data: IPLData) -> bytes:
    """Marshal data with embedded CIDs to canonical DAG-CBOR."""
    return b''.join(_encode_item(data))

def unmarshal(data: bytes) -> Any:
    """
    Unmarshal DAG-CBOR, turning tag 42 links back into CIDs.

    Only the canonical encoding is accepted, so input which cbor2 can read
    but which doesn't re-encode to the same bytes is rejected. This covers
    tags cbor2 resolves to plain values, such as bignums.

    :raises MalformedEmbedding: invalid or non-canonical CBOR, foreign tags
    """
    try: doc = cbor2.loads(data)
    except cbor2.CBORDecodeError as e:
        raise MalformedEmbedding(f'Invalid CBOR: {e}') from e
    doc = _dagcbor_decode(doc)
    try: canonical = marshal(doc)
    except (TypeError, ValueError) as e:
        raise MalformedEmbedding(f'Not representable in DAG-CBOR: {e}') from e
    if canonical != data:
        raise MalformedEmbedding('DAG-CBOR input is not in canonical form')
    return doc
