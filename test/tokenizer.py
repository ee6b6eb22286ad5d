"""
Tokenizer module behavioral tests (GNU/POSIX option lexing).

Scope
- Validate long, short and clustered forms for every argument discipline.
- Validate permutation of non-options, the "--" terminator and the lone "-".
- Validate flag lookup through parent tokenizers and command lookup.
- Validate unknown/missing/invalid argument faults and their hints.

Conventions
- Test method names follow CamelCase per project convention.
"""

import unittest
from unittest import TestCase

from fieldargs import InvalidValueError, MissingValueError, UnknownOptionError
from fieldargs.tokenizer import Discipline, Event, Flag, Tokenizer

SHORTS = (
    Flag("v", Discipline.NONE),
    Flag("o", Discipline.REQUIRED),
    Flag("c", Discipline.OPTIONAL),
)
LONGS = (
    Flag("verbose", Discipline.NONE),
    Flag("output", Discipline.REQUIRED),
    Flag("color", Discipline.OPTIONAL),
)


def tokenize(*args):
    tokenizer = Tokenizer(args, SHORTS, LONGS)
    return list(tokenizer), tokenizer.remaining


class TestLongOptions(TestCase):
    """Behavioral tests for --name forms."""

    def testFlag(self):
        self.assertEqual(tokenize("--verbose"), ([Event("--verbose", False, None)], []))

    def testSeparateArgument(self):
        self.assertEqual(tokenize("--output", "x"), ([Event("--output", True, "x")], []))

    def testAttachedArgument(self):
        self.assertEqual(tokenize("--output=x=y"), ([Event("--output", True, "x=y")], []))

    def testEmptyAttachedArgument(self):
        self.assertEqual(tokenize("--output="), ([Event("--output", True, "")], []))

    def testArgumentMayLookLikeAnOption(self):
        self.assertEqual(tokenize("--output", "--verbose"), ([Event("--output", True, "--verbose")], []))

    def testOptionalArgument(self):
        self.assertEqual(tokenize("--color"), ([Event("--color", False, None)], []))
        self.assertEqual(tokenize("--color=always"), ([Event("--color", True, "always")], []))
        self.assertEqual(tokenize("--color", "always"), ([Event("--color", False, None)], ["always"]))

    def testMissingArgument(self):
        with self.assertRaises(MissingValueError) as context:
            tokenize("--output")
        self.assertEqual(context.exception.message, "option requires an argument: --output")

    def testArgumentToFlag(self):
        with self.assertRaises(InvalidValueError) as context:
            tokenize("--verbose=yes")
        self.assertEqual(
            context.exception.message,
            "invalid argument for --verbose: option does not take an argument",
        )

    def testUnknown(self):
        with self.assertRaises(UnknownOptionError) as context:
            tokenize("--bogus")
        self.assertEqual(context.exception.message, "unrecognized argument: --bogus")
        self.assertEqual(context.exception.options["option"], "--bogus")

    def testUnknownHint(self):
        with self.assertRaises(UnknownOptionError) as context:
            tokenize("--verbos")
        self.assertEqual(context.exception.options["hint"], "did you mean '--verbose'?")


class TestShortOptions(TestCase):
    """Behavioral tests for -x forms and clusters."""

    def testFlag(self):
        self.assertEqual(tokenize("-v"), ([Event("-v", False, None)], []))

    def testSeparateAndAttachedArgument(self):
        self.assertEqual(tokenize("-o", "x"), ([Event("-o", True, "x")], []))
        self.assertEqual(tokenize("-ox"), ([Event("-o", True, "x")], []))

    def testCluster(self):
        self.assertEqual(
            tokenize("-vox"),
            ([Event("-v", False, None), Event("-o", True, "x")], []),
        )
        self.assertEqual(
            tokenize("-vo", "x"),
            ([Event("-v", False, None), Event("-o", True, "x")], []),
        )
        self.assertEqual(
            tokenize("-vv"),
            ([Event("-v", False, None), Event("-v", False, None)], []),
        )

    def testOptionalArgument(self):
        self.assertEqual(tokenize("-c"), ([Event("-c", False, None)], []))
        self.assertEqual(tokenize("-calways"), ([Event("-c", True, "always")], []))
        self.assertEqual(tokenize("-c", "always"), ([Event("-c", False, None)], ["always"]))

    def testMissingArgument(self):
        with self.assertRaises(MissingValueError) as context:
            tokenize("-v", "-o")
        self.assertEqual(context.exception.message, "option requires an argument: -o")

    def testUnknownInCluster(self):
        with self.assertRaises(UnknownOptionError) as context:
            tokenize("-vz")
        self.assertEqual(context.exception.message, "unrecognized argument: -z")


class TestNonOptions(TestCase):
    """Behavioral tests for positional tokens."""

    def testPermutation(self):
        self.assertEqual(
            tokenize("a", "-v", "b", "--output", "x", "c"),
            ([Event("-v", False, None), Event("--output", True, "x")], ["a", "b", "c"]),
        )

    def testTerminator(self):
        self.assertEqual(
            tokenize("-v", "--", "-o", "x", "--"),
            ([Event("-v", False, None)], ["-o", "x", "--"]),
        )

    def testLoneDash(self):
        self.assertEqual(tokenize("-", "-v"), ([Event("-v", False, None)], ["-"]))

    def testEmptyToken(self):
        self.assertEqual(tokenize(""), ([], [""]))


class TestCommands(TestCase):
    """Behavioral tests for subordinate tokenizers."""

    def testParentFallback(self):
        root = Tokenizer((), shorts=[Flag("v", Discipline.NONE)])
        child = Tokenizer(["-v", "--port", "80"], longs=[Flag("port", Discipline.REQUIRED)])
        self.assertIs(root.add_command("server", child), child)
        self.assertIs(child.parent, root)
        self.assertEqual(
            list(child),
            [Event("-v", False, None), Event("--port", True, "80")],
        )

    def testParentDoesNotSeeChildFlags(self):
        root = Tokenizer(["--port", "80"])
        root.add_command("server", Tokenizer((), longs=[Flag("port", Discipline.REQUIRED)]))
        with self.assertRaises(UnknownOptionError):
            list(root)

    def testCommandLookup(self):
        root = Tokenizer(())
        first = root.add_command("run", Tokenizer(()))
        second = root.add_command("RUN", Tokenizer(()))
        self.assertIs(root.command("run"), first)
        self.assertIs(root.command("RUN"), second)
        self.assertIs(root.command("Run"), first)
        self.assertIsNone(root.command("walk"))
        self.assertEqual(root.commands, ("run", "RUN"))

    def testLookup(self):
        root = Tokenizer((), longs=[Flag("verbose", Discipline.NONE)])
        child = root.add_command("server", Tokenizer(()))
        self.assertEqual(child.lookup("verbose", long=True), Flag("verbose", Discipline.NONE))
        self.assertIsNone(child.lookup("verbose", long=False))


class TestTables(TestCase):
    """Behavioral tests for flag table validation."""

    def testMappingTables(self):
        tokenizer = Tokenizer(["-v"], shorts={"v": Flag("v", Discipline.NONE)})
        self.assertEqual(list(tokenizer), [Event("-v", False, None)])

    def testInvalidShortName(self):
        with self.assertRaises(ValueError):
            Tokenizer((), shorts=[Flag("ab", Discipline.NONE)])
        with self.assertRaises(ValueError):
            Tokenizer((), shorts=[Flag("-", Discipline.NONE)])

    def testInvalidLongName(self):
        with self.assertRaises(ValueError):
            Tokenizer((), longs=[Flag("a=b", Discipline.NONE)])
        with self.assertRaises(ValueError):
            Tokenizer((), longs=[Flag("", Discipline.NONE)])

    def testInvalidEntries(self):
        with self.assertRaises(TypeError):
            Tokenizer((), shorts=["v"])
        with self.assertRaises(TypeError):
            Tokenizer((), shorts=[Flag("v", 0)])


class TestLogging(TestCase):
    """Behavioral tests for debug tracing."""

    def testEventsAreTraced(self):
        with self.assertLogs("fieldargs.tokenizer", level="DEBUG") as logs:
            tokenize("-v", "file")
        self.assertTrue(any("short option -v" in line for line in logs.output))
        self.assertTrue(any("non-option 'file'" in line for line in logs.output))


if __name__ == "__main__":
    unittest.main()
