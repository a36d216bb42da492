'''
Multicodec is a protocol for identifying data formats and protocols.
This module provides the codec table used for the content type of a CID.
Any non-negative integer is a valid codec, codes missing from the table are
simply nameless so data using newer codecs still round-trips.
'''

from typing import Any, Optional

from ._common import Immutable

__all__ = (
    'CODECS', 'NAMES', 'Codec',
    'RAW', 'DAG_PB', 'DAG_CBOR', 'DAG_JSON',
    'integer_to_codec', 'codec_to_integer', 'is_codec'
)

CODECS: dict[str, int] = {
    # serialization
    'cbor': 0x51,
    'json': 0x0200,

    # ipld
    'raw': 0x55,
    'dag-pb': 0x70,
    'dag-cbor': 0x71,
    'libp2p-key': 0x72,
    'git-raw': 0x78,
    'torrent-info': 0x7b,
    'torrent-file': 0x7c,
    'leofcoin-block': 0x81,
    'leofcoin-tx': 0x82,
    'leofcoin-pr': 0x83,
    'dag-jose': 0x85,
    'dag-cose': 0x86,
    'eth-block': 0x90,
    'eth-block-list': 0x91,
    'eth-tx-trie': 0x92,
    'eth-tx': 0x93,
    'eth-tx-receipt-trie': 0x94,
    'eth-tx-receipt': 0x95,
    'eth-state-trie': 0x96,
    'eth-account-snapshot': 0x97,
    'eth-storage-trie': 0x98,
    'bitcoin-block': 0xb0,
    'bitcoin-tx': 0xb1,
    'zcash-block': 0xc0,
    'zcash-tx': 0xc1,
    'stellar-block': 0xd0,
    'stellar-tx': 0xd1,
    'decred-block': 0xe0,
    'decred-tx': 0xe1,
    'dash-block': 0xf0,
    'dash-tx': 0xf1,
    'swarm-manifest': 0xfa,
    'swarm-feed': 0xfb,
    'dag-json': 0x0129,

    # filecoin
    'fil-commitment-unsealed': 0xf101,
    'fil-commitment-sealed': 0xf102,
}
NAMES = {v: n for n, v in CODECS.items()}

class Codec(Immutable):
    '''
    Content type of the data a CID refers to. Wraps the multicodec integer,
    which is preserved exactly even when it isn't in the table.
    '''

    __slots__ = ("code",)
    __match_args__ = ("code",)

    code: int

    def __init__(self, codec: 'int|str|Codec'):
        match codec:
            case Codec():
                code = codec.code
            case bool():
                raise TypeError("Codec requires int or str, got bool")
            case int():
                if codec < 0:
                    raise ValueError(f"Codec must be non-negative, got {codec}")
                code = codec
            case str():
                if (code := CODECS.get(codec)) is None:
                    raise ValueError(f"Unknown codec name {codec!r}")
            case _:
                raise TypeError(
                    f"Codec requires int or str, got {type(codec).__name__}"
                )
        object.__setattr__(self, 'code', code)

    @property
    def name(self) -> Optional[str]:
        '''Multicodec name, or None for codes not in the table.'''
        return NAMES.get(self.code)

    @property
    def known(self) -> bool:
        return self.code in NAMES

    def __int__(self): return self.code
    def __index__(self): return self.code
    def __hash__(self): return hash(self.code)

    def __eq__(self, other: Any):
        match other:
            case Codec(): return self.code == other.code
            case bool(): return NotImplemented
            case int(): return self.code == other
        return NotImplemented

    def __lt__(self, other: Any):
        if isinstance(other, Codec):
            return self.code < other.code
        return NotImplemented

    def __reduce__(self):
        return (Codec, (self.code,))

    def __str__(self):
        return self.name or f"0x{self.code:x}"

    def __repr__(self):
        if name := self.name:
            return f"Codec({name!r})"
        return f"Codec(0x{self.code:x})"

RAW = Codec('raw')
DAG_PB = Codec('dag-pb')
DAG_CBOR = Codec('dag-cbor')
DAG_JSON = Codec('dag-json')

def integer_to_codec(code: int) -> Codec:
    """Returns the codec for a multicodec integer, known or not."""
    return Codec(code)

def codec_to_integer(codec: Codec) -> int:
    """Returns the exact multicodec integer of the codec."""
    return codec.code

def is_codec(name: str) -> bool:
    """Check if the codec is a valid codec or not"""
    return name in CODECS
