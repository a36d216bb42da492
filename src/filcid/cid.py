from enum import IntEnum
from functools import total_ordering
from io import BytesIO
from typing import Any, Optional, Self, overload
import logging

from pydantic import GetCoreSchemaHandler, GetJsonSchemaHandler
from pydantic.json_schema import JsonSchemaValue
from pydantic_core import core_schema

from ._common import Immutable
from .errors import (
    InvalidCIDv0, InvalidCIDVersion, TrailingBytes, TruncatedInput
)
from .multicodec import Codec, DAG_CBOR, DAG_PB
from .multihash import HashCode, Multihash, SHA2_256, digest
from . import multibase, varint

__all__ = (
    'DEFAULT_ENCODING', 'Version', 'CID'
)

logger = logging.getLogger(__name__)

DEFAULT_ENCODING: multibase.Encoding = 'base32'
'''Multibase used for CIDv1 strings unless another is requested.'''

class Version(IntEnum):
    '''CID format generation.'''
    V0 = 0
    '''Legacy: bare base58btc sha2-256 multihash, implicitly dag-pb.'''
    V1 = 1
    '''Explicit version and codec, any multihash, multibase prefixed.'''

@total_ordering
class CID(Immutable):
    '''
    Content identifier, a self-describing reference to content by its hash.
    Equality and ordering compare version, codec and multihash in turn, so
    a CIDv0 never equals its CIDv1 counterpart.
    '''

    __slots__ = ("version", "codec", "multihash")
    __match_args__ = ("version", "codec", "multihash")

    version: Version
    codec: Codec
    multihash: Multihash

    @overload
    def __new__(cls, cid: 'CID', /) -> 'CID': ...
    @overload
    def __new__(cls, data: str|bytes, /) -> 'CID': ...
    @overload
    def __new__(cls, codec: int|str|Codec, multihash: bytes|Multihash, /) -> 'CID': ...
    @overload
    def __new__(cls, version: int, codec: int|str|Codec, multihash: bytes|Multihash, /) -> 'CID': ...
    @overload
    def __new__(cls, *, version: int=1, codec: int|str|Codec, multihash: bytes|Multihash) -> 'CID': ...

    def __new__(cls, *args, **kwargs) -> 'CID':
        # Copy constructor and parsing are the only single argument forms
        if len(args) == 1 and not kwargs:
            match arg := args[0]:
                case CID(): return arg
                case str(): return cls.from_str(arg)
                case bytes(): return cls.from_bytes(arg)
            raise TypeError(
                f"CID() received unexpected argument {arg!r} of type {type(arg)}"
            )
        return super().__new__(cls)

    def __init__(self, *args, **kwargs):
        # Already built by __new__
        if len(args) == 1 and not kwargs:
            return

        # We basically want to "peel off" args from the right
        args = list(args)
        if (multihash := kwargs.pop('multihash', None)) is None:
            if not args:
                raise TypeError("CID construction requires multihash.")
            multihash = args.pop()

        if (codec := kwargs.pop('codec', None)) is None:
            if args:
                codec = args.pop()
            elif kwargs.get('version') == 0:
                codec = DAG_PB
            else:
                raise TypeError("CID construction requires codec.")

        if (version := kwargs.pop('version', None)) is None:
            version = args.pop() if args else Version.V1

        if args or kwargs:
            raise TypeError(
                f"CID() received unexpected arguments: {args}, {kwargs}"
            )

        try: version = Version(version)
        except ValueError:
            raise InvalidCIDVersion(
                f"Unsupported CID version {version!r}, expected 0 or 1"
            ) from None

        codec = Codec(codec)

        match multihash:
            case Multihash(): pass
            case bytes(): multihash = Multihash.from_bytes(multihash)
            case str(): multihash = Multihash.from_b58(multihash)
            case _: raise TypeError(
                f"CID requires multihash as bytes or Multihash, got {type(multihash)}"
            )

        if version == Version.V0:
            if codec != DAG_PB:
                raise InvalidCIDv0(f"CIDv0 requires codec dag-pb, got {codec}")
            if multihash.code != SHA2_256 or multihash.size != 32:
                raise InvalidCIDv0(
                    f"CIDv0 requires a 32 byte sha2-256 multihash, got {multihash!r}"
                )

        object.__setattr__(self, 'version', version)
        object.__setattr__(self, 'codec', codec)
        object.__setattr__(self, 'multihash', multihash)

    @property
    def buffer(self) -> bytes:
        '''Canonical binary form of the CID.'''
        if self.version == Version.V0:
            return self.multihash.buffer
        return (
            varint.encode(self.version) +
            varint.encode(self.codec.code) +
            self.multihash.buffer
        )

    def encode(self, encoding: 'Optional[multibase.Encoding|multibase.Base]'=None) -> str:
        """
        Multibase encoded representation of the CID. CIDv0 can only be
        encoded as unprefixed base58btc.

        :param encoding: the encoding to use, defaults to DEFAULT_ENCODING
        :raises InvalidCIDv0: CIDv0 with an encoding other than base58btc
        """
        if encoding is None:
            encoding = multibase.base58btc if self.version == Version.V0 else DEFAULT_ENCODING
        base = multibase.codec(encoding) if isinstance(encoding, str) else encoding

        if self.version == Version.V0:
            if base is not multibase.base58btc:
                raise InvalidCIDv0(
                    f"CIDv0 can only be encoded as base58btc, not {base!r}"
                )
            return base.encode(self.buffer)
        return multibase.encode(base, self.buffer)

    def to_v0(self) -> 'CID':
        """
        Legacy form of this CID.

        :raises InvalidCIDv0: the codec isn't dag-pb or the hash isn't sha2-256
        """
        if self.version == Version.V0:
            return self
        return CID(Version.V0, self.codec, self.multihash)

    def to_v1(self) -> 'CID':
        """CIDv1 form of this CID, always possible."""
        if self.version == Version.V1:
            return self
        return CID(Version.V1, self.codec, self.multihash)

    def _key(self):
        return (int(self.version), self.codec.code, self.multihash._key())

    def __len__(self):
        return len(self.buffer)

    def __iter__(self):
        yield self.version
        yield self.codec
        yield self.multihash

    def __repr__(self):
        return f"CID({self.version}, {self.codec!r}, {self.multihash!r})"

    def __eq__(self, other):
        if not isinstance(other, CID):
            return NotImplemented
        return self._key() == other._key()

    def __lt__(self, other: Any) -> bool:
        if not isinstance(other, CID):
            return NotImplemented
        return self._key() < other._key()

    def __hash__(self):
        return hash(self._key())

    def __reduce__(self):
        return (CID, (self.buffer,))

    def __str__(self):
        return self.encode()

    def __bytes__(self):
        """
        Returns the raw byte representation of the CID.
        This is useful for serialization and storage.
        """
        return self.buffer

    def hex(self) -> str:
        """
        Returns the hexadecimal representation of the CID.
        This is useful for debugging and logging.
        """
        return self.buffer.hex()

    @classmethod
    def from_bytes(cls, data: bytes) -> Self:
        """
        Parse the canonical binary form of a CID. A leading sha2-256 code
        means a bare CIDv0 multihash, anything else must be a CIDv1.

        :raises TruncatedInput: data ends early
        :raises TrailingBytes: data continues after the multihash
        :raises InvalidCIDVersion: the version varint isn't 1
        """
        if not data:
            raise TruncatedInput("Empty CID")

        # No valid version is 0x12, so this can only be a CIDv0
        if data[0] == SHA2_256:
            logger.debug("Parsing CIDv0 bytes")
            return cls(Version.V0, DAG_PB, Multihash.from_bytes(data))

        bio = BytesIO(data)
        if (version := varint.decode_stream(bio)) != Version.V1:
            raise InvalidCIDVersion(
                f"Unsupported CID version {version}, expected 0 or 1"
            )
        codec = Codec(varint.decode_stream(bio))
        multihash = Multihash.read(bio)
        if rest := bio.read():
            raise TrailingBytes(f"{len(rest)} bytes after CID")
        return cls(Version.V1, codec, multihash)

    @classmethod
    def from_str(cls, data: str) -> Self:
        """
        Parse a CID string, either a legacy 46 character "Qm..." CIDv0 or
        a multibase encoded CIDv1.

        :raises InvalidMultibasePrefix: no usable multibase prefix
        :raises InvalidBaseEncoding: characters outside the base's alphabet
        """
        if len(data) == 46 and data.startswith("Qm"):
            logger.debug("Parsing legacy base58btc CIDv0 string")
            cid = cls.from_bytes(multibase.base58btc.decode(data))
            if cid.version != Version.V0:
                raise InvalidCIDv0(f"{data!r} is not a CIDv0")
            return cid

        base, raw = multibase.decode_base(data)
        logger.debug("Parsing %r CID string", base)
        return cls.from_bytes(raw)

    @classmethod
    def decode(cls, data: str|bytes) -> Self:
        """Parse a CID from its string or binary form."""
        match data:
            case str(): return cls.from_str(data)
            case bytes(): return cls.from_bytes(data)
        raise TypeError(f"Expected str or bytes, got {type(data).__name__}")

    @classmethod
    def is_cid(cls, cidstr: str|bytes) -> bool:
        """
        Checks if a given input is a valid encoded CID or not.

        :param cidstr: input which can be a
            - base58-encoded CIDv0
            - multibase-encoded CID
            - binary CID
        :return: if the value is a valid CID or not
        """
        try: return bool(cls.decode(cidstr))
        except (TypeError, ValueError):
            return False

    @staticmethod
    def hash(data: bytes, *,
            version: int=1,
            codec: Optional[int|str|Codec]=None,
            function: 'HashCode|int|str'='sha2-256'
        ) -> 'CID':
        """
        Create a CID from the given data using the specified hash function.
        :param data: The data to hash.
        :param version: The CID version (0 or 1).
        :param codec: The codec for the CID, dag-pb for v0 and dag-cbor for v1 by default.
        :param function: The hash function to use (default is 'sha2-256').
        :return: A CID object.
        """
        if codec is None:
            codec = DAG_PB if version == 0 else DAG_CBOR
        return CID(version, codec, digest(function, data))

    @classmethod
    def __get_pydantic_core_schema__(
        cls, source_type: Any, handler: GetCoreSchemaHandler
    ) -> core_schema.CoreSchema:
        """
        Integrates the CID class with Pydantic's validation and serialization.
        Accepts CID objects, strings and binary CIDs, and always serializes
        to the string form.
        """
        def validate_cid(value: Any) -> 'CID':
            """Validate and convert input to a CID object."""
            try: return cls.decode(value)
            except Exception as e:
                raise ValueError(f"Invalid CID: {value!r}") from e

        from_input = core_schema.no_info_plain_validator_function(validate_cid)
        return core_schema.json_or_python_schema(
            json_schema=core_schema.no_info_after_validator_function(
                validate_cid, core_schema.str_schema()
            ),
            python_schema=core_schema.union_schema([
                # Accept existing CID objects
                core_schema.is_instance_schema(CID),
                # Accept strings and bytes that can be converted to CID
                from_input
            ]),
            serialization=core_schema.plain_serializer_function_ser_schema(
                str, return_schema=core_schema.str_schema(),
            )
        )

    @classmethod
    def __get_pydantic_json_schema__(
            cls, schema: core_schema.CoreSchema, handler: GetJsonSchemaHandler
        ) -> JsonSchemaValue:
        """
        Describes CIDs in JSON schemas as strings in either legacy base58btc
        or multibase form.
        """
        return {
            'type': 'string',
            'format': 'cid',
            'pattern': r'^(Qm[1-9A-HJ-NP-Za-km-z]{44}|[0-9A-Za-z].+)$',
            'description': 'Content Identifier (CID) of any version - a self-describing content-addressed identifier',
            'examples': [
                'QmYwAPJzv5CZsnA625s3Xf2nemtYgPpHdWEz79ojWnPbdG',
                'bafkreie5qrjvaw64n4tjm6hbnm7fnqvcssfed4whsjqxzslbd3jwhsk3mm'
            ],
            'title': 'CID'
        }
