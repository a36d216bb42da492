'''
Content identifiers with Filecoin multihash extensions.
'''

from .cid import CID, Version, DEFAULT_ENCODING
from .multicodec import Codec
from .multihash import (
    Multihash, MultihashBuilder, HashCode, StandardCode, FilecoinCode
)
from .errors import *
# These contain lots of stuff which we don't want to import directly
from . import (
    dagcbor, dagjson, multibase, multicodec, multihash, varint, errors
)

__all__ = (
    'CID', 'Version', 'DEFAULT_ENCODING',
    'Codec',
    'Multihash', 'MultihashBuilder', 'HashCode', 'StandardCode',
    'FilecoinCode',
    'dagcbor', 'dagjson', 'multibase', 'multicodec', 'multihash', 'varint',
    'errors',
    *errors.__all__
)
