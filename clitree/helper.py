"""
clitree help renderer.

Layout (every line ends with a newline; empty sections are omitted with their header):

    Usage: <program> [OPTIONS]... [<arg1> <arg2>]...

    <description>

    Arguments:
      <name>  <description>

    Options:
      -f, --long arg  <description>

    Subcommands:
      <name>  <description>

The first column of each section is left-justified to the widest cell of that section.
Rows without a description carry no padding.
"""
from .arguments import Requirement

_INDENT = "  "
_GUTTER = "  "

_PLACEHOLDERS = {
    Requirement.NONE: "",
    Requirement.REQUIRED: " arg",
    Requirement.OPTIONAL: " (arg)",
}


def _option_cell(option):
    cell = "-" + option.flag
    if option.long:
        cell += ", --" + option.long + _PLACEHOLDERS[option.requirement]
    return cell


def _section(header, rows):
    # rows: (cell, descr | None) pairs
    width = max(len(cell) for cell, _ in rows)
    lines = ["", header + ":"]
    for cell, descr in rows:
        if descr is None:
            lines.append(_INDENT + cell)
        else:
            lines.append(_INDENT + cell.ljust(width) + _GUTTER + str(descr))
    return lines


def render_usage(command, program, /):
    """
    return the usage line of command, e.g. "Usage: reuse init [OPTIONS]... [<file>]...".
    """
    usage = "Usage: " + str(program)
    if command.options:
        usage += " [OPTIONS]..."
    if command.arguments:
        usage += " [%s]..." % " ".join("<%s>" % argument.name for argument in command.arguments)
    return usage + "\n"


def render_help(command, program, /):
    """
    return the full help text of command.
    """
    lines = [render_usage(command, program).rstrip("\n")]

    if command.descr is not None:
        lines += ["", str(command.descr)]

    if arguments := command.arguments:
        lines += _section("Arguments", [(argument.name, argument.descr) for argument in arguments])
    if options := command.options:
        lines += _section("Options", [(_option_cell(option), option.descr) for option in options])
    if subcommands := command.subcommands:
        lines += _section("Subcommands", [(subcommand.name, subcommand.descr) for subcommand in subcommands])

    return "\n".join(lines) + "\n"


__all__ = (
    "render_usage",
    "render_help",
)
