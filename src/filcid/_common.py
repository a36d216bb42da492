from functools import wraps
from math import isfinite
from typing import TYPE_CHECKING, Any, Callable, Self

if TYPE_CHECKING:
    from typing import Mapping, Iterable
    from .cid import CID

type IPLData = Mapping[str, IPLData]|Iterable[IPLData]|CID|bytes|str|int|float|bool|None
'''Documents which may embed CIDs as links.'''

type Hook = Callable[[Any], Any]

class Immutable:
    '''
    Base for value types. Attributes are assigned once with
    object.__setattr__ during construction and never again.
    '''
    __slots__ = ()

    def __setattr__(self, name, value, /) -> None:
        raise TypeError(f"{type(self).__name__} objects are immutable.")

    def __delattr__(self, name, /) -> None:
        raise TypeError(f"{type(self).__name__} objects are immutable.")

    def __copy__(self) -> Self:
        return self

    def __deepcopy__(self, memo) -> Self:
        return self

def _walker(name: str, hook: Hook, sequences: tuple[type, ...]) -> Hook:
    '''
    Build a recursive transform over a document. The hook sees every node
    first and replaces it by returning anything other than None.
    '''
    @wraps(hook)
    def transform(data: Any) -> Any:
        if (d := hook(data)) is not None:
            return d

        match data:
            case float() if not isfinite(data):
                raise ValueError(f'{name} does not support {data!r}')
            case None | bool() | int() | float() | str():
                return data
            case dict():
                return {str(k): transform(v) for k, v in data.items()}
            case _ if isinstance(data, sequences):
                return [transform(v) for v in data]
        raise TypeError(f'{name} cannot represent {type(data).__name__}')
    return transform

def encodec(name: str):
    '''Decorate a pre-encoding hook for the dag-* format called name.'''
    return lambda hook: _walker(name, hook, (list, tuple))

def decodec(name: str):
    '''Decorate a post-decoding hook for the dag-* format called name.'''
    return lambda hook: _walker(name, hook, (list,))
