"""
clitree command layer: command tree nodes, the parse/dispatch loop and the top-level runner.

What this module provides
- Command: one node of a static command tree. It owns ordered options, positional arguments
  and subcommands (see clitree.registry), plus an optional callback and an opaque context.
- parse(command, argv, program): scan argv, apply option actions, then either recurse into
  the matched subcommand or run the terminal callback. Returns an Outcome(status, fault).
- invoke(command, argv): convenience runner over sys.argv returning the exit status.

Parse level, step by step
- Scanning: tokens are read through a Scanner built for this level only.
  • (":", name) → MissingArgumentError  "Missing argument for option '-l'"
  • ("?", name) → UnknownOptionError    "Invalid option '-x'"
  • any other flag resolves to its Option and is dispatched on its Action:
      – HELP: full help on standard output; scanning goes on.
      – STORE: coerce the argument into the slot (a bool slot without argument becomes True).
      – ACCUMULATE: add the argument (or 1) to the slot; bool slots flip.
- Positional resolution: the first remaining token must name a subcommand exactly; the rest of
  argv is parsed by that subcommand (its name becomes argv[0] there) and its Outcome is
  returned as is. Otherwise "Unknown subcommand: <token>".
- Terminal node: callback(command, context); an int result becomes the exit status.

Faults
- Usage errors print "<program>: <message>" then this level's help on the error console
  and return status 64. Configuration defects found while parsing (STORE without argument
  requirement, ACCUMULATE into a string) return status 65 without help; scratch allocation
  failures return 75.

Quick start
    from clitree import Command, Option, Slot, ValueType, Requirement, Action, invoke

    reuse = Command("reuse", "REUSE helper")
    reuse.add_option(Option("h", "help", "show this help", action=Action.HELP))
    reuse.add_option(Option("l", "ll", "long listing", requirement=Requirement.REQUIRED,
                            slot=(listing := Slot(ValueType.STRING))))
    reuse.add_subcommand(Command("init", "initialize REUSE project"))

    if __name__ == "__main__":
        raise SystemExit(invoke(reuse))
"""
import logging
import sys
from collections import namedtuple
from collections.abc import Sequence

from .arguments import Action, Requirement, SpecType, _sanitize_descr
from .coercion import ValueType
from .faults import *
from .helper import render_help
from .program import Program, resolve_program
from .registry import *
from .scanner import Scanner, ScannerSpec
from .utils import *

logger = logging.getLogger(__name__)


class Outcome(namedtuple("Outcome", ("status", "fault"))):
    """
    result of a parse: the exit status and the fault that ended it (None on success).
    """
    __slots__ = ()

    @property
    def ok(self):
        return self.fault is None


class Command(metaclass=SpecType):
    """
    Node of a command tree.

    Parameters
    - name: non-empty token matched (exactly) against argv when dispatching subcommands.
    - descr: optional free-form, possibly multi-line description.
    - callback: optional callable(command, context) run when this node is the terminal match.
    - context: opaque object handed to the callback.

    Collections are read-only tuples; grow them through add_option(s), add_argument(s) and
    add_subcommand(s), which keep them sorted and duplicate-free.
    """

    __introspectable__ = (
        "name",
        "descr",
        "options",
        "arguments",
        "subcommands",
        "parent",
        "callback",
    )

    # parent is left out to keep representations finite
    __displayable__ = (
        "name",
        "descr",
        "options",
        "arguments",
        "subcommands",
    )

    def __new__(cls, name, /, descr=Unset, *, callback=Unset, context=None):
        metadata = {
            "name": name,
            "descr": descr,
            "callback": callback,
        }
        if not isinstance(name, str):
            raise TypeError(f"{cls.__typename__} 'name' must be a string")
        elif not name or name.startswith("-") or any(character.isspace() for character in name):
            raise ValueError(f"{cls.__typename__} 'name' must be a non-empty token not starting with '-'")
        _sanitize_descr(cls, metadata)
        if callback is not Unset and not callable(callback):
            raise TypeError(f"{cls.__typename__} 'callback' must be callable")
        metadata["callback"] = coalesce(callback)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        self._context = context
        self._options = []
        self._arguments = []
        self._subcommands = []
        self._parent = None
        return self

    @property
    def context(self):
        return self._context

    @property
    def root(self):
        """
        Return the topmost command of this node's tree.
        """
        child, parent = self, self._parent
        while parent:
            child, parent = parent, parent._parent
        return child

    @property
    def path(self):
        """
        Return the ancestry from the root to this command as a tuple.
        """
        path = [command := self]
        while command._parent:
            path.append(command := command._parent)
        return tuple(reversed(path))

    def add_option(self, option, /):
        return add_option(self, option)

    def add_options(self, options, /):
        return add_options(self, options)

    def add_argument(self, argument, /):
        return add_argument(self, argument)

    def add_arguments(self, arguments, /):
        return add_arguments(self, arguments)

    def add_subcommand(self, subcommand, /):
        return add_subcommand(self, subcommand)

    def add_subcommands(self, subcommands, /):
        return add_subcommands(self, subcommands)

    def parse(self, argv, /, program=Unset):
        return parse(self, argv, program)


def _write(console, text):
    # help is an exact-byte layout; bypass rich rendering (tab expansion, wrapping)
    console.file.write(text)


def _report(fault, program, command=None, route=None):
    """
    print a parse fault on the error console and wrap it into an Outcome.

    usage errors are followed by the help text of the command they occurred in.
    """
    report(
        fault, console=program.stderr, program=program.short, colorful=program.colorful, codes=program.codes
    )
    if isinstance(fault, UsageError) and command is not None:
        _write(program.stderr, render_help(command, route))
    logger.debug("parse failed at %r with %s (status %d)", route, type(fault).__name__, fault.status)
    return Outcome(fault.status, fault)


def _dispatch(command, option, text, program, route):
    """
    apply the action of a matched option.
    """
    match option.action:
        case Action.HELP:
            _write(program.stdout, render_help(command, route))
            return
        case Action.STORE:
            if option.requirement is Requirement.NONE:
                raise InvalidArgumentError(
                    "Option '-%s' stores a value but takes no argument" % option.flag
                )
            if text is None and option.type is not ValueType.BOOL:
                raise MissingArgumentError("Missing argument for option '-%s'" % option.flag)
            write = option.slot.store
        case Action.ACCUMULATE:
            if option.type is ValueType.STRING:
                raise InvalidArgumentError("Option '-%s' cannot accumulate into a string" % option.flag)
            write = option.slot.accumulate

    try:
        value = write(text)
    except InvalidValueError as fault:
        if text is None:
            message = "Value overflow for option '-%s'" % option.flag
        else:
            message = "Invalid value '%s' for option '-%s'" % (text, option.flag)
        raise InvalidValueError(message, input=text, reason=str(fault)) from fault
    logger.debug("option -%s (%s) set to %r", option.flag, option.action.value, value)


def _scan(command, argv, program, route):
    """
    run the option scan of one level; return the index of the first unconsumed token.
    """
    options = {option.flag: option for option in command._options}
    scanner = Scanner(ScannerSpec.build(command._options), argv)

    for flag, text in scanner:
        match flag:
            case ":":
                raise MissingArgumentError("Missing argument for option '%s'" % text, input=text)
            case "?":
                raise UnknownOptionError("Invalid option '%s'" % text, input=text)
        _dispatch(command, options[flag], text, program, route)
    return scanner.index


def _parse_level(command, argv, program, route):
    logger.debug("parsing %r as %r", list(argv), route)
    try:
        index = _scan(command, argv, program, route)
    except CommandException as fault:
        return _report(fault, program, command, route)

    if index < len(argv):
        token = argv[index]
        for subcommand in command._subcommands:
            if subcommand.name == token:
                logger.debug("dispatching %r to subcommand %r", route, token)
                return _parse_level(subcommand, argv[index:], program, route + " " + token)
        return _report(
            UnknownSubcommandError("Unknown subcommand: %s" % token, input=token), program, command, route
        )

    if command.callback is None:
        return Outcome(ExitStatus.OK, None)

    logger.debug("running callback of %r", route)
    status = command.callback(command, command.context)
    # bool is an int subclass; True/False are not exit statuses
    if not isinstance(status, int) or isinstance(status, bool):
        status = ExitStatus.OK
    return Outcome(status, None)


def parse(command, argv, /, program=Unset):
    """
    parse argv against the command tree rooted at command.

    Parameters
    - command: the root Command.
    - argv: sequence of strings; argv[0] is the program name.
    - program: Program context, a program name (str), or Unset to resolve it from argv[0].

    Returns
    - Outcome(status, fault): fault is None on success; status follows ExitStatus.

    Raises
    - TypeError / ValueError: when the arguments themselves are malformed.
    """
    if not isinstance(command, Command):
        raise TypeError("parse() first argument must be a command")
    if isinstance(argv, str) or not isinstance(argv, Sequence) or not all(isinstance(x, str) for x in argv):
        raise TypeError("parse() second argument must be a sequence of strings")
    elif not argv:
        raise ValueError("parse() second argument cannot be empty")

    if program is Unset:
        program = resolve_program(argv[0])
    elif isinstance(program, str):
        program = resolve_program(program)
    elif not isinstance(program, Program):
        raise TypeError("parse() 'program' must be a program or a string")

    return _parse_level(command, tuple(argv), program, program.name)


def invoke(command, argv=Unset, /):
    """
    parse argv (sys.argv when omitted) and return the integer exit status.

    Example
        raise SystemExit(invoke(root))
    """
    return int(parse(command, coalesce(argv, sys.argv)).status)


__all__ = (
    "Command",
    "Outcome",
    "parse",
    "invoke",
)
