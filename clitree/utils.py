"""
clitree utilities shared by the data model, the registration engine and the parser.

- Unset: "argument not given" marker, distinct from None (None is a valid description,
  callback result or slot value). Falsy, printed as "Unset", usable in PEP 604 unions for
  isinstance checks (str | Unset).
- coalesce(value, default): materialize Unset, keep every other value, falsy ones included.
- rename(callable, name) / @rename(name): fix __name__ and __qualname__ of generated functions.
- mirror(name): read-only property over self._<name>. Lists come out as tuples and dicts as
  mapping proxies, so command collections can only grow through clitree.registry.

    >>> coalesce(Unset, "reuse"), coalesce(None, "reuse")
    ('reuse', None)
"""
import builtins
import functools
from collections.abc import Mapping, Sequence, Set
from types import MappingProxyType
from typing import final


@final
class UnsetType:
    """
    Type of the Unset marker; a single instance exists per process and it cannot be subclassed.
    """

    @functools.cache
    def __new__(cls):
        return super().__new__(cls)

    def __init_subclass__(cls, **options):
        raise TypeError("type 'UnsetType' is not an acceptable base type")

    def __bool__(self):
        return False

    def __repr__(self):
        return "Unset"

    # unions: Slot | Unset and Unset | Slot both yield Slot | UnsetType
    def __or__(self, other, /):
        try:
            return other | type(self)
        except TypeError:
            return NotImplemented

    __ror__ = __or__

    # copies and pickles resolve to the module-level instance
    def __copy__(self):
        return self

    def __deepcopy__(self, memo, /):
        return self

    def __reduce__(self):
        return "Unset"


Unset = UnsetType()


def coalesce(object, default=None, /):
    """
    return default when object is Unset, object otherwise.
    """
    return default if object is Unset else object


def rename(*parameters):
    """
    rename(callable, name) → callable, or rename(name) → decorator.

    raises TypeError for non-callables, non-string names or read-only callables.
    """
    if len(parameters) == 1:
        name, = parameters
        if not isinstance(name, str):
            raise TypeError("@rename() argument must be a string")
        return rename(lambda callable: rename(callable, name), "rename")

    if len(parameters) != 2:
        raise TypeError("rename takes 1 to 2 arguments but %d were given" % len(parameters))

    callable, name = parameters
    if not builtins.callable(callable):
        raise TypeError("rename() first argument must be callable")
    if not isinstance(name, str):
        raise TypeError("rename() second argument must be a string")
    try:
        callable.__name__ = callable.__qualname__ = name
    except (AttributeError, TypeError):
        raise TypeError("rename() first argument must be a updatable callable") from None
    return callable


def _freeze(object):
    if isinstance(object, (str, bytes, bytearray)):
        return object
    if isinstance(object, Sequence):
        return tuple(object)
    if isinstance(object, Mapping):
        return MappingProxyType(dict(object))
    if isinstance(object, Set):
        return frozenset(object)
    return object


def mirror(name, /):
    """
    property returning a frozen snapshot of self._<name>.
    """
    if not isinstance(name, str):
        raise TypeError("mirror() argument must be a string")

    @rename(name)
    def getter(self):
        return _freeze(getattr(self, "_" + name))

    return property(getter)


__all__ = (
    "coalesce",
    "rename",
    "mirror",
    "UnsetType",
    "Unset",
)
