"""
clitree program context: display name and output consoles of one process run.
"""
import functools
import os.path

from rich.console import Console

from .utils import Unset


class Program:
    """
    Display/output context handed to the parser.

    Parameters
    - argv0: the program name as invoked (argv[0]); used in usage lines.
    - stdout / stderr: rich consoles for help output and diagnostics
      (defaults: Console() and Console(stderr=True)).
    - colorful: style diagnostics with the package palette.
    - codes: prefix diagnostics with the fault code ("reuse: [11102] Unknown subcommand: x").

    Properties
    - name: argv0 as given.
    - short: basename of argv0, used to prefix diagnostics ("reuse: Unknown subcommand: x").
    """

    def __init__(self, argv0, /, *, stdout=Unset, stderr=Unset, colorful=False, codes=False):
        if not isinstance(argv0, str):
            raise TypeError("program 'argv0' must be a string")
        elif not argv0:
            raise ValueError("program 'argv0' cannot be empty")
        if not isinstance(stdout, Console | Unset) or not isinstance(stderr, Console | Unset):
            raise TypeError("program 'stdout' and 'stderr' must be consoles")
        if not isinstance(colorful, bool) or not isinstance(codes, bool):
            raise TypeError("program 'colorful' and 'codes' must be booleans")

        self._name = argv0
        self._short = os.path.basename(argv0.rstrip("/")) or argv0
        self._stdout = stdout if stdout is not Unset else Console()
        self._stderr = stderr if stderr is not Unset else Console(stderr=True)
        self._colorful = colorful
        self._codes = codes

    @property
    def name(self):
        return self._name

    @property
    def short(self):
        return self._short

    @property
    def stdout(self):
        return self._stdout

    @property
    def stderr(self):
        return self._stderr

    @property
    def colorful(self):
        return self._colorful

    @property
    def codes(self):
        return self._codes

    def __repr__(self):
        return "program(name=%r, short=%r, colorful=%r)" % (self._name, self._short, self._colorful)


@functools.cache
def resolve_program(argv0, /):
    """
    return the default Program for argv0 (memoized: same argv0, same object).
    """
    return Program(argv0)


__all__ = (
    "Program",
    "resolve_program",
)
