"""
clitree registration engine: link options, positional arguments and subcommands into a command.

Every collection of a command is an ordered, duplicate-free list:
- options: ascending by short flag,
- arguments: lexicographic by name,
- subcommands: lexicographic by name.

Insertion walks the whole collection once. It looks for the insertion point and, at the same
time, for any element that conflicts with the newcomer anywhere in the list (not only next to
the insertion point), so a rejected insertion leaves the collection untouched.

Errors
- InvalidArgumentError: absent command or element, wrong element type, a command linked to
  itself (or to one of its ancestors), or a subcommand already linked under another parent.
- NotUniqueError: the element is already present, or an element with the same identity key
  (flag or long name for options; name for arguments and subcommands) exists.

Batch variants stop at the first failure and raise it; the insertions made before the failure
stay committed.
"""
import logging
from collections.abc import Iterable

from .arguments import Argument, Option
from .faults import InvalidArgumentError, NotUniqueError
from .utils import Unset

logger = logging.getLogger(__name__)


def _command_type():
    from .commands import Command
    return Command


def _require(object, kind, name, /):
    if object is None or object is Unset:
        raise InvalidArgumentError("%s is required" % name)
    if not isinstance(object, kind):
        raise InvalidArgumentError("%s must be %s, not %s" % (name, kind.__typename__, type(object).__name__))
    return object


def _insert(collection, element, key, conflict, /):
    """
    insert element into the sorted list in place.

    - key(element) gives the sort key; the element goes before the first greater key.
    - conflict(existing, element) returns a message when both cannot coexist, else None.
    """
    index = None
    for position, existing in enumerate(collection):
        if existing is element:
            raise NotUniqueError("%s is already registered" % type(element).__typename__)
        if message := conflict(existing, element):
            raise NotUniqueError(message)
        if index is None and key(existing) > key(element):
            index = position
    collection.insert(len(collection) if index is None else index, element)
    return element


def _option_conflict(existing, option):
    if existing.flag == option.flag:
        return "short flag '-%s' is already in use" % option.flag
    if option.long is not None and existing.long == option.long:
        return "long name '--%s' is already in use" % option.long
    return None


def _name_conflict(existing, element):
    if existing.name == element.name:
        return "%s name %r is already in use" % (type(element).__typename__, element.name)
    return None


def add_option(command, option, /):
    """
    add an option to a command, keeping options sorted by short flag.
    """
    command = _require(command, _command_type(), "command")
    option = _require(option, Option, "option")
    _insert(command._options, option, lambda x: x.flag, _option_conflict)
    logger.debug("registered option %s on command %r", "/".join(option.names), command.name)
    return option


def add_argument(command, argument, /):
    """
    add a positional argument to a command, keeping arguments sorted by name.
    """
    command = _require(command, _command_type(), "command")
    argument = _require(argument, Argument, "argument")
    _insert(command._arguments, argument, lambda x: x.name, _name_conflict)
    logger.debug("registered argument %r on command %r", argument.name, command.name)
    return argument


def add_subcommand(command, subcommand, /):
    """
    link subcommand as a child of command, keeping children sorted by name.
    """
    command = _require(command, _command_type(), "command")
    subcommand = _require(subcommand, _command_type(), "subcommand")

    if subcommand in command.path:
        raise InvalidArgumentError("command %r cannot be linked under itself" % subcommand.name)
    if subcommand.parent is not None and subcommand.parent is not command:
        raise InvalidArgumentError(
            "command %r is already linked under %r" % (subcommand.name, subcommand.parent.name)
        )

    _insert(command._subcommands, subcommand, lambda x: x.name, _name_conflict)
    subcommand._parent = command
    logger.debug("linked subcommand %r under command %r", subcommand.name, command.name)
    return subcommand


def _add_many(function, command, elements, name, /):
    _require(command, _command_type(), "command")
    if elements is None or elements is Unset:
        raise InvalidArgumentError("%s are required" % name)
    if not isinstance(elements, Iterable) or isinstance(elements, str):
        raise InvalidArgumentError("%s must be an iterable" % name)
    return tuple(function(command, element) for element in elements)


def add_options(command, options, /):
    """
    add several options; stops at (and raises) the first failure without rolling back.
    """
    return _add_many(add_option, command, options, "options")


def add_arguments(command, arguments, /):
    """
    add several positional arguments; stops at (and raises) the first failure.
    """
    return _add_many(add_argument, command, arguments, "arguments")


def add_subcommands(command, subcommands, /):
    """
    link several subcommands; stops at (and raises) the first failure.
    """
    return _add_many(add_subcommand, command, subcommands, "subcommands")


__all__ = (
    "add_option",
    "add_options",
    "add_argument",
    "add_arguments",
    "add_subcommand",
    "add_subcommands",
)
