"""
clitree tree specs: what a command accepts.

- Option: short flag (-o) with an optional long alias (--output). Its Action says what a match
  does and its Requirement whether it takes an argument. Values land in a typed Slot.
- Argument: named positional, rendered in help and usage only (never bound to a value).

Validation on construction (TypeError for wrong types, ValueError for malformed values)
- flag: one printable, non-space character other than '-', ':' and '?' (scanner metacharacters).
- long: non-empty, no '=', no whitespace, no leading '-'.
- descr: str or rich Text; strings are stripped and must not end up empty.
- slot: mandatory unless the action is HELP.

    >>> verbose = Slot(ValueType.UINT)
    >>> Option("v", "verbose", "more output", action=Action.ACCUMULATE, slot=verbose)
    option(flag='v', long='verbose', descr='more output', ...)
"""
import functools
import operator
import re
from enum import Enum

from rich.text import Text

from .coercion import Slot, ValueType
from .utils import *


class Requirement(Enum):
    """
    argument requirement of an option.
    """
    NONE     = "none"
    REQUIRED = "required"
    OPTIONAL = "optional"


class Action(Enum):
    """
    behavior triggered by a matched option.
    """
    HELP       = "help"
    STORE      = "store"
    ACCUMULATE = "accumulate"


class SpecType(type):
    """
    Metaclass of the tree specs (Option, Argument, Command).

    - __typename__: lowercase, hyphenated class name ("option", "command") for messages.
    - every name in __introspectable__ becomes a read-only property over "_<name>".
    - __repr__ / __rich_repr__ list __displayable__ when set, else __introspectable__.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        properties = {field: mirror(field) for field in namespace.get("__introspectable__", ())}
        typename = re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower()
        self = super().__new__(cls, name, bases, {**namespace, "__typename__": typename, **properties})

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for field in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield field, getattr(self, field)

        @rename("__repr__")
        def __repr__(self):
            # option(flag='v', long='verbose', ...)
            return f"{type(self).__typename__}({', '.join(map(functools.partial(operator.mod, '%s=%r'), self.__rich_repr__()))})"

        self.__rich_repr__ = __rich_repr__
        self.__repr__ = __repr__
        return self


def _sanitize_descr(cls, metadata, /):
    """
    Internal: validate and normalize the shared 'descr' field.

    - Unset becomes None.
    - Strings are trimmed and must not be empty.
    """
    if not isinstance(descr := metadata["descr"], str | Text | Unset):
        raise TypeError(f"{cls.__typename__} 'descr' must be a string")
    elif isinstance(descr, str) and not (descr := descr.strip()):
        raise ValueError(f"{cls.__typename__} 'descr' cannot be empty")
    metadata["descr"] = coalesce(descr)


def _sanitize_option_metadata(cls, metadata, /):
    """
    Internal: validate option flag/long/requirement/action/slot.

    Raises
    - TypeError: on wrong types, or when a STORE/ACCUMULATE option has no slot.
    - ValueError: on malformed flag or long names.
    """
    if not isinstance(flag := metadata["flag"], str):
        raise TypeError(f"{cls.__typename__} 'flag' must be a string")
    elif len(flag) != 1 or flag in "-:?" or not flag.isprintable() or flag.isspace():
        raise ValueError(f"{cls.__typename__} 'flag' must be a single printable character other than '-', ':' or '?'")

    if not isinstance(long := metadata["long"], str | Unset):
        raise TypeError(f"{cls.__typename__} 'long' must be a string")
    elif isinstance(long, str) and not re.fullmatch(r"[^\s=-][^\s=]*", long):
        raise ValueError(f"{cls.__typename__} 'long' must be a non-empty name without '=', spaces or leading '-'")
    metadata["long"] = coalesce(long)

    if not isinstance(metadata["requirement"], Requirement):
        raise TypeError(f"{cls.__typename__} 'requirement' must be a requirement")
    if not isinstance(action := metadata["action"], Action):
        raise TypeError(f"{cls.__typename__} 'action' must be an action")

    if not isinstance(slot := metadata["slot"], Slot | Unset):
        raise TypeError(f"{cls.__typename__} 'slot' must be a slot")
    elif action is not Action.HELP and slot is Unset:
        raise TypeError(f"{cls.__typename__} 'slot' is required for {action.value} actions")
    metadata["slot"] = coalesce(slot)


class Option(metaclass=SpecType):
    """
    Named option specification: -<flag> and optionally --<long>.

    Properties
    - The names listed in __introspectable__ are exposed as read-only attributes
      on instances, mirroring the sanitized metadata values.
    - type: the ValueType of the bound slot (None for slot-less HELP options).
    """

    __introspectable__ = (
        "flag",
        "long",
        "descr",
        "requirement",
        "action",
        "slot",
    )

    def __new__(
            cls,
            flag,
            long=Unset,
            /,
            descr=Unset,
            *,
            requirement=Requirement.NONE,
            action=Action.STORE,
            slot=Unset,
    ):
        metadata = {
            "flag": flag,
            "long": long,
            "descr": descr,
            "requirement": requirement,
            "action": action,
            "slot": slot,
        }
        _sanitize_descr(cls, metadata)
        _sanitize_option_metadata(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    @property
    def type(self):
        return self._slot.type if self._slot is not None else None

    @property
    def names(self):
        """
        display names: ('-f',) or ('-f', '--long').
        """
        return ("-" + self._flag,) + (("--" + self._long,) if self._long else ())


class Argument(metaclass=SpecType):
    """
    Positional argument specification (rendered in help, not bound to values).
    """

    __introspectable__ = (
        "name",
        "descr",
        "type",
    )

    def __new__(cls, name, /, descr=Unset, type=ValueType.STRING):
        metadata = {
            "name": name,
            "descr": descr,
            "type": type,
        }
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not (name := name.strip()):
            raise ValueError(f"{cls.__typename__} 'name' cannot be empty")
        metadata["name"] = name
        if not isinstance(type, ValueType):
            raise TypeError(f"{cls.__typename__} 'type' must be a value-type")
        _sanitize_descr(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


__all__ = (
    "Requirement",
    "Action",
    "Option",
    "Argument",
)
