'''
Exceptions raised while building, parsing and converting CIDs.

Every failure is a validation failure of the input, so they all derive from
`ValueError` and none of them are worth retrying.
'''

__all__ = (
    'CIDError',
    'InvalidCIDVersion', 'InvalidCIDv0', 'UnknownAlgorithmCode',
    'TruncatedInput', 'TrailingBytes', 'InvalidVarint', 'DigestTooLong',
    'UnsupportedDigest', 'InvalidMultibasePrefix', 'InvalidBaseEncoding',
    'MalformedEmbedding'
)

class CIDError(ValueError):
    '''Base class for all CID validation failures.'''

class InvalidCIDVersion(CIDError):
    '''The version field is not 0 or 1.'''

class InvalidCIDv0(CIDError):
    '''A CIDv0 must be dag-pb with a 32 byte sha2-256 multihash.'''

class UnknownAlgorithmCode(CIDError):
    '''Multihash code is neither a Filecoin code nor a standard one.'''

    def __init__(self, code: int):
        super().__init__(f"Unknown multihash code 0x{code:x}")
        self.code = code

class TruncatedInput(CIDError):
    '''Fewer bytes are available than a varint or length prefix needs.'''

class TrailingBytes(CIDError):
    '''Bytes remain after a complete value was parsed.'''

class InvalidVarint(CIDError):
    '''Varint is overlong, not minimally encoded, or out of range.'''

class DigestTooLong(CIDError):
    '''Digest exceeds the maximum multihash digest size.'''

class UnsupportedDigest(CIDError):
    '''The hash code is known but there's no local digest provider for it.'''

class InvalidMultibasePrefix(CIDError):
    '''The leading character doesn't name a usable multibase.'''

class InvalidBaseEncoding(CIDError):
    '''The payload contains characters outside the base's alphabet.'''

class MalformedEmbedding(CIDError):
    '''A CBOR or JSON link doesn't have the expected shape.'''
