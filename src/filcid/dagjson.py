'''
CIDs embedded in JSON documents as {"/": "<cid string>"}.
'''

from typing import Any
import json

from ._common import encodec, decodec, IPLData
from .cid import CID
from .errors import MalformedEmbedding

__all__ = (
    'encode_link', 'decode_link',
    'marshal', 'unmarshal'
)

def encode_link(cid: CID) -> dict[str, str]:
    """JSON object for a link."""
    return {"/": str(cid)}

def decode_link(obj: Any) -> CID:
    """
    Read a CID from a link object. The object must have exactly the "/" key
    and its value must be a CID string.

    :raises MalformedEmbedding: the object isn't a link
    """
    match obj:
        case {"/": str(link)} if len(obj) == 1:
            return CID.from_str(link)
        case {"/": link} if len(obj) == 1:
            raise MalformedEmbedding(
                '{"/": ...} Expected string for CID, got ' + type(link).__name__
            )
        case dict():
            raise MalformedEmbedding(
                f'CID link must have only the "/" key, got {sorted(obj)}'
            )
    raise MalformedEmbedding(
        f'CID link must be an object, got {type(obj).__name__}'
    )

@encodec("DAG-JSON")
def _dagjson_encode(data):
    match data:
        case CID(): return encode_link(data)
        case {"/": _}:
            raise TypeError("DAG-JSON doesn't support '/' keys")

@decodec("DAG-JSON")
def _dagjson_decode(data):
    match data:
        case {"/": _}: return decode_link(data)

def marshal(data: IPLData) -> str:
    """Marshal data with embedded CIDs to a JSON string."""
    return json.dumps(_dagjson_encode(data), sort_keys=True, separators=(',', ':'))

def unmarshal(data: str|bytes) -> Any:
    """Unmarshal a JSON string, turning link objects back into CIDs."""
    if isinstance(data, bytes):
        data = data.decode('utf-8')
    return _dagjson_decode(json.loads(data))
