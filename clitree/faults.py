"""
clitree faults (errors) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every fault the engine can produce.
  Codes are grouped by domain to keep logs and searches predictable.
- ExitStatus: the sysexits-style process status each fault maps to.
- CommandException and its subclasses: carry a message plus options and know how to
  render themselves (rich) as a one-line “<program>: <message>” diagnostic.
- report(): central entry point to print a fault on a console.

Taxonomy
- Registration (structural, programmer errors; raised, never retried)
  • InvalidArgumentError: absent or self-referential registration, or a type/action
    combination that is not representable (accumulate into a string, store without argument).
  • NotUniqueError: duplicate flag, long name, positional or subcommand name within one level.
- Resources
  • OutOfMemoryError: scratch allocation failed while preparing a parse level.
- Usage (anything the end user can trigger; help is printed to the error stream)
  • MissingArgumentError, UnknownOptionError, InvalidValueError, UnknownSubcommandError.
"""
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console
from rich.text import Text

from .utils import Unset

console = Console(stderr=True)


class ExitStatus(IntEnum):
    """
    process exit statuses (sysexits.h values).
    """
    OK       = 0
    USAGE    = 64
    DATAERR  = 65
    TEMPFAIL = 75


class FaultCode(IntEnum):
    """
    canonical fault codes used across the engine (stable identifiers).

    grouping (by high-level domain)
    - routing (1110x): UNKNOWN_SUBCOMMAND
    - options (1111x): MISSING_ARGUMENT, UNKNOWN_OPTION, INVALID_VALUE
    - registration (1120x): INVALID_ARGUMENT, NOT_UNIQUE
    - resources (1130x): OUT_OF_MEMORY

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- routing errors (1110x) ---
    UNKNOWN_SUBCOMMAND = 11102

    # --- option errors (1111x) ---
    MISSING_ARGUMENT   = 11111
    UNKNOWN_OPTION     = 11112
    INVALID_VALUE      = 11113

    # --- registration errors (1120x) ---
    INVALID_ARGUMENT   = 11201
    NOT_UNIQUE         = 11202

    # --- resource errors (1130x) ---
    OUT_OF_MEMORY      = 11301

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class CommandException(Exception):
    """
    base fault: a message plus free-form options (program, colorful, input, ...).

    subclasses pin a FaultCode (code) and an ExitStatus (status).
    """
    code = Unset
    status = ExitStatus.DATAERR

    def __init__(self, message=Unset, /, **options):
        assert isinstance(message, str | Unset)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return str(self.message) if self.message is not Unset else ""

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-message": "#FF4DA6",  # friendly pinky message
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", False)

        def text(fragment, style):
            return Text(str(fragment), styles[style] if colorful else "")

        parts = []
        if program := self.options.get("program"):
            parts += [text(program, "prog-name"), ": "]
        # "[11102] " ahead of the message when the host asks for codes
        if self.options.get("codes", False) and self.code is not Unset:
            parts += ["[", text(self.code.normalize(), "code"), "] "]
        return Text.assemble(*parts, text(self, "error-message"))

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class InvalidArgumentError(CommandException):
    code = FaultCode.INVALID_ARGUMENT
    status = ExitStatus.DATAERR


class NotUniqueError(CommandException):
    code = FaultCode.NOT_UNIQUE
    status = ExitStatus.DATAERR


class OutOfMemoryError(CommandException):
    code = FaultCode.OUT_OF_MEMORY
    status = ExitStatus.TEMPFAIL


class UsageError(CommandException):
    status = ExitStatus.USAGE


class MissingArgumentError(UsageError):
    code = FaultCode.MISSING_ARGUMENT


class UnknownOptionError(UsageError):
    code = FaultCode.UNKNOWN_OPTION


class InvalidValueError(UsageError):
    code = FaultCode.INVALID_VALUE


class UnknownSubcommandError(UsageError):
    code = FaultCode.UNKNOWN_SUBCOMMAND


def report(fault, /, console=console, **options):
    """
    print a fault as a single diagnostic line on the given console.

    contract
    - fault must provide __rich__ and __replace__ methods (see CommandException).
    - options are merged into the fault via __replace__(**options) before rendering;
      typical options are program (short program name), colorful and codes (prefix the
      message with the normalized fault code).
    """
    if (
        not hasattr(fault, "__rich__") or
        not callable(fault.__rich__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("report() argument must have a __rich__ and __replace__ methods")
    console.print(fault.__replace__(**options), soft_wrap=True, highlight=False)


__all__ = (
    "ExitStatus",
    "FaultCode",
    "CommandException",
    "InvalidArgumentError",
    "NotUniqueError",
    "OutOfMemoryError",
    "UsageError",
    "MissingArgumentError",
    "UnknownOptionError",
    "InvalidValueError",
    "UnknownSubcommandError",
    "report",
)
