"""
Commands module behavioral tests (parse loop, dispatch, diagnostics, callbacks).

Scope
- Validate option actions (help, store, accumulate) and their faults.
- Validate subcommand dispatch, unknown subcommands and nested failures.
- Validate diagnostics ("<program>: <message>") and help on the error console.
- Validate callbacks, exit statuses and the invoke() runner.

Conventions
- Test method names follow CamelCase per project convention.
- Output is captured with rich consoles writing into io.StringIO.
"""

from __future__ import annotations

import io
import sys
import unittest
from unittest import TestCase, mock

from rich.console import Console

from clitree import (
    Command,
    Option,
    Argument,
    Slot,
    ValueType,
    Action,
    Requirement,
    Program,
    parse,
    invoke,
    render_help,
    resolve_program,
)
from clitree.faults import (
    ExitStatus,
    InvalidArgumentError,
    InvalidValueError,
    MissingArgumentError,
    OutOfMemoryError,
    UnknownOptionError,
    UnknownSubcommandError,
)


def _program(argv0="reuse", **options):
    return Program(
        argv0,
        stdout=Console(file=io.StringIO()),
        stderr=Console(file=io.StringIO()),
        **options,
    )


def _output(console):
    return console.file.getvalue()


class ReuseTestCase(TestCase):
    """Shared fixture: the reuse tree (root options, init with positionals, longlong)."""

    def setUp(self):
        self.listing = Slot(ValueType.STRING)
        self.root = Command("reuse", "REUSE helper")
        self.root.add_options([
            Option("h", "help", "Print this help output", action=Action.HELP),
            Option("l", "ll", "Long argument", requirement=Requirement.REQUIRED, slot=self.listing),
        ])
        self.init = Command("init", "initialize REUSE project")
        self.init.add_arguments([Argument("file", "hello world"), Argument("other thing")])
        self.root.add_subcommands([self.init, Command("longlong")])
        self.program = _program()

    def parse(self, *argv):
        return parse(self.root, ["reuse", *argv], self.program)

    @property
    def stdout(self):
        return _output(self.program.stdout)

    @property
    def stderr(self):
        return _output(self.program.stderr)


class TestScenarios(ReuseTestCase):
    """End-to-end scenarios on the reuse tree."""

    def testStoreRequiredArgument(self):
        outcome = self.parse("-l", "foo")
        self.assertTrue(outcome.ok)
        self.assertEqual(outcome.status, ExitStatus.OK)
        self.assertEqual(self.listing.value, "foo")
        self.assertEqual((self.stdout, self.stderr), ("", ""))

    def testRecurseWithoutCallback(self):
        outcome = self.parse("init")
        self.assertEqual(outcome, (0, None))
        self.assertEqual((self.stdout, self.stderr), ("", ""))

    def testUnknownSubcommand(self):
        outcome = self.parse("bogus")
        self.assertFalse(outcome.ok)
        self.assertEqual(outcome.status, 64)
        self.assertIsInstance(outcome.fault, UnknownSubcommandError)
        self.assertEqual(self.stderr, "reuse: Unknown subcommand: bogus\n" + render_help(self.root, "reuse"))
        self.assertEqual(self.stdout, "")

    def testMissingArgument(self):
        outcome = self.parse("-l")
        self.assertEqual(outcome.status, ExitStatus.USAGE)
        self.assertIsInstance(outcome.fault, MissingArgumentError)
        self.assertTrue(self.stderr.startswith("reuse: Missing argument for option '-l'\n"))

    def testLongOptionStore(self):
        self.assertTrue(self.parse("--ll=bar").ok)
        self.assertEqual(self.listing.value, "bar")


class TestHelp(ReuseTestCase):
    """Behavioral tests for the help action."""

    def testHelpGoesToStdout(self):
        outcome = self.parse("-h")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.stdout, render_help(self.root, "reuse"))
        self.assertEqual(self.stderr, "")

    def testHelpTwiceIsIdentical(self):
        self.parse("--help", "--help")
        text = render_help(self.root, "reuse")
        self.assertEqual(self.stdout, text + text)

    def testScanningContinuesAfterHelp(self):
        outcome = self.parse("-h", "-l", "foo", "init")
        self.assertTrue(outcome.ok)
        self.assertEqual(self.listing.value, "foo")

    def testSubcommandHelpShowsRoute(self):
        self.init.add_option(Option("h", "help", action=Action.HELP))
        self.parse("init", "-h")
        self.assertTrue(self.stdout.startswith("Usage: reuse init [OPTIONS]... [<file> <other thing>]...\n"))

    def testHelpWrittenVerbatim(self):
        root = Command("reuse")
        root.add_option(Option("h", "help", "show\thelp", action=Action.HELP))
        program = _program()
        parse(root, ["reuse", "-h"], program)
        text = render_help(root, "reuse")
        self.assertIn("show\thelp", text)
        self.assertEqual(_output(program.stdout), text)

    def testHelpAfterDiagnosticWrittenVerbatim(self):
        root = Command("reuse")
        root.add_option(Option("h", "help", "show\thelp", action=Action.HELP))
        program = _program()
        parse(root, ["reuse", "-z"], program)
        self.assertEqual(_output(program.stderr), "reuse: Invalid option '-z'\n" + render_help(root, "reuse"))


class TestFaults(ReuseTestCase):
    """Behavioral tests for parse-time faults."""

    def testUnknownOption(self):
        outcome = self.parse("-z")
        self.assertEqual(outcome.status, 64)
        self.assertIsInstance(outcome.fault, UnknownOptionError)
        self.assertEqual(self.stderr, "reuse: Invalid option '-z'\n" + render_help(self.root, "reuse"))

    def testUnknownOptionInSubcommandPrintsSubcommandHelp(self):
        outcome = self.parse("init", "-x")
        self.assertEqual(outcome.status, 64)
        self.assertEqual(self.stderr, "reuse: Invalid option '-x'\n" + render_help(self.init, "reuse init"))

    def testNestedUnknownSubcommand(self):
        outcome = self.parse("init", "bogus")
        self.assertIsInstance(outcome.fault, UnknownSubcommandError)
        self.assertIn("Usage: reuse init", self.stderr)

    def testInvalidValue(self):
        count = Slot(ValueType.U8)
        self.root.add_option(Option("n", "count", requirement=Requirement.REQUIRED, slot=count))
        outcome = self.parse("-n", "256")
        self.assertEqual(outcome.status, 64)
        self.assertIsInstance(outcome.fault, InvalidValueError)
        self.assertTrue(self.stderr.startswith("reuse: Invalid value '256' for option '-n'\n"))
        self.assertEqual(count.value, 0)

    def testStoreWithoutArgumentRequirementIsConfigurationError(self):
        self.root.add_option(Option("s", slot=Slot(ValueType.STRING)))
        outcome = self.parse("-s")
        self.assertEqual(outcome.status, ExitStatus.DATAERR)
        self.assertIsInstance(outcome.fault, InvalidArgumentError)
        self.assertNotIn("Usage:", self.stderr)

    def testAccumulateIntoStringIsConfigurationError(self):
        self.root.add_option(Option("s", slot=Slot(ValueType.STRING), action=Action.ACCUMULATE))
        outcome = self.parse("-s")
        self.assertEqual(outcome.status, 65)
        self.assertIsInstance(outcome.fault, InvalidArgumentError)

    def testOutOfMemoryWhilePreparingScanner(self):
        with mock.patch("clitree.scanner.build_shortopts", side_effect=MemoryError):
            outcome = self.parse("init")
        self.assertEqual(outcome.status, ExitStatus.TEMPFAIL)
        self.assertIsInstance(outcome.fault, OutOfMemoryError)
        self.assertNotIn("Usage:", self.stderr)

    def testShortProgramNameInDiagnostics(self):
        self.program = _program("/usr/local/bin/reuse")
        outcome = parse(self.root, ["/usr/local/bin/reuse", "bogus"], self.program)
        self.assertEqual(outcome.status, 64)
        self.assertTrue(self.stderr.startswith("reuse: Unknown subcommand: bogus\nUsage: /usr/local/bin/reuse "))

    def testFaultCodesInDiagnostics(self):
        self.program = _program(codes=True)
        outcome = self.parse("bogus")
        self.assertEqual(outcome.status, 64)
        self.assertTrue(self.stderr.startswith("reuse: [11102] Unknown subcommand: bogus\nUsage: reuse "))

    def testColorfulDiagnostics(self):
        self.program = Program(
            "reuse",
            stdout=Console(file=io.StringIO()),
            stderr=Console(file=io.StringIO(), force_terminal=True, color_system="truecolor"),
            colorful=True,
        )
        self.parse("bogus")
        self.assertIn("\x1b[", self.stderr)


class TestActions(ReuseTestCase):
    """Behavioral tests for store/accumulate dispatch."""

    def testAccumulateCounts(self):
        verbosity = Slot(ValueType.UINT)
        self.root.add_option(Option("v", "verbose", action=Action.ACCUMULATE, slot=verbosity))
        self.assertTrue(self.parse("-vvv", "--verbose").ok)
        self.assertEqual(verbosity.value, 4)

    def testAccumulateDelta(self):
        total = Slot(ValueType.I32)
        self.root.add_option(Option("d", action=Action.ACCUMULATE, requirement=Requirement.REQUIRED, slot=total))
        self.assertTrue(self.parse("-d", "5", "-d", "-2").ok)
        self.assertEqual(total.value, 3)

    def testOptionalBoolWithoutArgumentIsTrue(self):
        flag = Slot(ValueType.BOOL)
        self.root.add_option(Option("f", "force", requirement=Requirement.OPTIONAL, slot=flag))
        self.assertTrue(self.parse("-f").ok)
        self.assertIs(flag.value, True)

    def testOptionalBoolWithArgument(self):
        flag = Slot(ValueType.BOOL, default=True)
        self.root.add_option(Option("f", "force", requirement=Requirement.OPTIONAL, slot=flag))
        self.assertTrue(self.parse("--force=false").ok)
        self.assertIs(flag.value, False)

    def testAccumulateBoolIgnoresArgument(self):
        flag = Slot(ValueType.BOOL)
        self.root.add_option(Option("t", action=Action.ACCUMULATE, requirement=Requirement.REQUIRED, slot=flag))
        self.assertTrue(self.parse("-t", "false").ok)
        self.assertIs(flag.value, True)
        self.assertTrue(self.parse("-t", "true").ok)
        self.assertIs(flag.value, False)

    def testOptionalNonBoolWithoutArgumentIsMissing(self):
        self.root.add_option(Option("j", requirement=Requirement.OPTIONAL, slot=Slot(ValueType.INT)))
        outcome = self.parse("-j")
        self.assertIsInstance(outcome.fault, MissingArgumentError)
        self.assertEqual(outcome.status, 64)

    def testDoubleDashEndsOptions(self):
        outcome = self.parse("--", "init")
        self.assertTrue(outcome.ok)

    def testOptionsAfterSubcommandBelongToSubcommand(self):
        outcome = self.parse("init", "-l", "foo")
        self.assertIsInstance(outcome.fault, UnknownOptionError)
        self.assertIsNone(self.listing.value)


class TestCallbacks(ReuseTestCase):
    """Behavioral tests for terminal callbacks."""

    def testCallbackReceivesCommandAndContext(self):
        calls = []
        leaf = self.root.add_subcommand(Command(
            "lint", callback=lambda command, context: calls.append((command, context)), context={"k": 1}
        ))
        outcome = self.parse("lint")
        self.assertTrue(outcome.ok)
        self.assertEqual(calls, [(leaf, {"k": 1})])

    def testCallbackStatusBecomesExitStatus(self):
        self.root.add_subcommand(Command("lint", callback=lambda command, context: 3))
        self.assertEqual(self.parse("lint"), (3, None))

    def testBooleanCallbackResultIsSuccess(self):
        self.root.add_subcommand(Command("lint", callback=lambda command, context: True))
        outcome = self.parse("lint")
        self.assertEqual(outcome, (0, None))
        self.assertIs(type(outcome.status), ExitStatus)

    def testRootCallbackSkippedWhenDispatching(self):
        calls = []
        root = Command("reuse", callback=lambda command, context: calls.append("root"))
        root.add_subcommand(Command("init", callback=lambda command, context: calls.append("init")))
        parse(root, ["reuse", "init"], _program())
        self.assertEqual(calls, ["init"])

    def testCallbackNotRunOnFailure(self):
        calls = []
        leaf = Command("lint", callback=lambda command, context: calls.append(command))
        leaf.add_option(Option("n", requirement=Requirement.REQUIRED, slot=Slot(ValueType.INT)))
        self.root.add_subcommand(leaf)
        self.parse("lint", "-n", "x")
        self.assertEqual(calls, [])


class TestEntryPoints(ReuseTestCase):
    """Behavioral tests for parse()/invoke() argument handling."""

    def testCommandParseDelegates(self):
        self.assertTrue(self.root.parse(["reuse", "-l", "foo"], self.program).ok)
        self.assertEqual(self.listing.value, "foo")

    def testInvokeReturnsStatus(self):
        self.assertEqual(invoke(self.root, ["reuse", "-l", "foo"]), 0)

    def testInvokeReadsSysArgv(self):
        with mock.patch.object(sys, "argv", ["reuse", "-l", "baz"]):
            self.assertEqual(invoke(self.root), 0)
        self.assertEqual(self.listing.value, "baz")

    def testResolveProgramIsMemoized(self):
        self.assertIs(resolve_program("reuse"), resolve_program("reuse"))
        self.assertEqual(resolve_program("/bin/reuse").short, "reuse")

    def testMalformedArguments(self):
        with self.assertRaises(TypeError):
            parse("reuse", ["reuse"])
        with self.assertRaises(TypeError):
            parse(self.root, "reuse")
        with self.assertRaises(TypeError):
            parse(self.root, ["reuse", 1])
        with self.assertRaises(ValueError):
            parse(self.root, [])

    def testTreeNotMutatedByParsing(self):
        before = (self.root.options, self.root.subcommands, self.init.arguments)
        self.parse("init", "bogus")
        self.assertEqual(before, (self.root.options, self.root.subcommands, self.init.arguments))


class TestCommand(TestCase):
    """Behavioral tests for Command construction."""

    def testNameValidated(self):
        for name in ("", "-x", "two words"):
            with self.assertRaises(ValueError):
                Command(name)
        with self.assertRaises(TypeError):
            Command(42)

    def testCallbackValidated(self):
        with self.assertRaises(TypeError):
            Command("tool", callback="nope")

    def testDescrStripped(self):
        self.assertEqual(Command("tool", "  text \n").descr, "text")

    def testRepr(self):
        self.assertEqual(
            repr(Command("init", "initialize REUSE project")),
            "command(name='init', descr='initialize REUSE project', options=(), arguments=(), subcommands=())",
        )


if __name__ == "__main__":
    unittest.main()
