"""
clitree scanner: option specification builder and getopt_long-style token scanner.

Specification
- build_shortopts(options) → "+:" followed by each flag, with ':' (required argument) or
  '::' (optional argument). '+' keeps POSIX ordering (the first non-option stops the scan)
  and the leading ':' keeps scan errors silent: they are yielded, never printed.
- build_longopts(options) → one LongOption(name, requirement, flag) per option that has a
  long name. Long options resolve to their short flag, so there is a single dispatch path.
- ScannerSpec.build(options) bundles both for one parse level.

Scanning
- argv[0] is the program (or subcommand) name and is skipped.
- The scan stops, without consuming, at the first non-option token or a lone '-'.
  A '--' token is consumed and stops the scan.
- Short options may be clustered (-ab) and take their argument inline (-lfoo) or, when
  required, from the next token whatever it looks like (-l -x stores "-x").
- Long options accept --name=value, or --name value when the argument is required.
  Unambiguous prefixes are accepted; an exact name always wins over a prefix.
- Errors are yielded as (":", name) for a missing argument and ("?", name) for an unknown or
  ambiguous option or an unexpected '=value', where name is the offending -x or --name text.
"""
from collections import namedtuple

from .arguments import Requirement
from .faults import OutOfMemoryError

_SUFFIXES = {
    Requirement.NONE: "",
    Requirement.REQUIRED: ":",
    Requirement.OPTIONAL: "::",
}

LongOption = namedtuple("LongOption", ("name", "requirement", "flag"))


def build_shortopts(options, /):
    """
    return the short-option specification string for options.

    Example
    - [-h, -l (required), -v (optional)] → "+:hl:v::"
    """
    return "+:" + "".join(option.flag + _SUFFIXES[option.requirement] for option in options)


def build_longopts(options, /):
    """
    return the long-option table (LongOption entries) for options, in option order.
    """
    return tuple(
        LongOption(option.long, option.requirement, option.flag) for option in options if option.long
    )


class ScannerSpec(namedtuple("ScannerSpec", ("shortopts", "longopts"))):
    """
    scanner specification of one parse level (short-option string + long-option table).
    """
    __slots__ = ()

    @classmethod
    def build(cls, options, /):
        try:
            return cls(build_shortopts(options), build_longopts(options))
        except MemoryError:
            raise OutOfMemoryError("Out of memory while preparing the option scanner") from None


def _parse_shortopts(shortopts):
    # "+:ab:c::" → {"a": NONE, "b": REQUIRED, "c": OPTIONAL}
    if shortopts.startswith("+"):
        shortopts = shortopts[1:]
    if shortopts.startswith(":"):
        shortopts = shortopts[1:]

    flags = {}
    position = 0
    while position < len(shortopts):
        flag = shortopts[position]
        colons = len(shortopts[position + 1:]) - len(shortopts[position + 1:].lstrip(":"))
        flags[flag] = (Requirement.NONE, Requirement.REQUIRED, Requirement.OPTIONAL)[min(colons, 2)]
        position += 1 + colons
    return flags


class Scanner:
    """
    Iterate over the option tokens of argv, yielding (flag, argument) pairs.

    argument is None when the option received no argument. After iteration, index is the
    position of the first token that was not consumed (len(argv) when all were).
    """

    def __init__(self, spec, argv, /):
        if not isinstance(spec, ScannerSpec):
            raise TypeError("scanner 'spec' must be a scanner-spec")
        self._flags = _parse_shortopts(spec.shortopts)
        self._longs = {entry.name: entry for entry in spec.longopts}
        self._argv = tuple(argv)
        self.index = 1

    def _take(self):
        # next token as an option argument, or None when argv is exhausted
        if self.index < len(self._argv):
            self.index += 1
            return self._argv[self.index - 1]
        return None

    def _short(self, cluster):
        position = 0
        while position < len(cluster):
            flag = cluster[position]
            position += 1

            if (requirement := self._flags.get(flag)) is None:
                yield "?", "-" + flag
                continue
            if requirement is Requirement.NONE:
                yield flag, None
                continue

            # the rest of the cluster, if any, is the argument
            if rest := cluster[position:]:
                yield flag, rest
            elif requirement is Requirement.OPTIONAL:
                yield flag, None
            elif (text := self._take()) is not None:
                yield flag, text
            else:
                yield ":", "-" + flag
            return

    def _long(self, body):
        name, equals, text = body.partition("=")

        if (entry := self._longs.get(name)) is None:
            candidates = [entry for long, entry in self._longs.items() if name and long.startswith(name)]
            if len(candidates) != 1:
                return "?", "--" + name
            entry, = candidates

        if entry.requirement is Requirement.NONE:
            return ("?", "--" + entry.name) if equals else (entry.flag, None)
        if equals:
            return entry.flag, text
        if entry.requirement is Requirement.OPTIONAL:
            return entry.flag, None
        if (text := self._take()) is not None:
            return entry.flag, text
        return ":", "--" + entry.name

    def __iter__(self):
        while self.index < len(self._argv):
            token = self._argv[self.index]
            if token == "--":
                self.index += 1
                return
            if token == "-" or not token.startswith("-"):
                return

            self.index += 1
            if token.startswith("--"):
                yield self._long(token[2:])
            else:
                yield from self._short(token[1:])


__all__ = (
    "LongOption",
    "ScannerSpec",
    "Scanner",
    "build_shortopts",
    "build_longopts",
)
