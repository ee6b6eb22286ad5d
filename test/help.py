"""
Help module behavioral tests (usage line and help sections).

Scope
- Validate the usage line for root and subcommand paths, including wrapping.
- Validate help sections: description, positionals, options, built-ins,
  global options, commands and epilog.
- Validate placeholders, defaults and environment annotations.

Conventions
- Test method names follow CamelCase per project convention.
- Output is rendered without colors into an in-memory sink.
"""

import io
import unittest
from unittest import TestCase

from rich.console import Group

from fieldargs import Config, Parser, Record, arg, HelpRequested


class Serve(Record):
    port: int = arg("-p,--port", default="8080", help="port to listen on")
    host: str = arg("-h,--host", help="interface")
    root: str = arg("positional,required", help="document root")


class Tool(Record):
    verbose: bool = arg("-v,--verbose", help="verbose output")
    token: str = arg("--token,env:API_TOKEN,required", help="api token")
    serve: Serve | None = arg("subcommand", help="serve files")


class Placeholder(Record):
    listen: str = arg("--listen", placeholder="ADDR")
    files: list[str] = arg("positional", placeholder="FILE")


class Wide(Record):
    alpha_option: str
    bravo_option: str
    charlie_option: str
    delta_option: str


def config(**options):
    return Config("tool", description="Demo tool", epilog="See docs", colorful=False, **options)


def render(parser, method="write_help"):
    sink = io.StringIO()
    getattr(parser, method)(sink)
    return sink.getvalue()


class TestUsage(TestCase):
    """Behavioral tests for the usage line."""

    def testRoot(self):
        self.assertEqual(
            render(Parser(config(), Tool), "write_usage").rstrip(),
            "Usage: tool [--verbose] --token TOKEN <command> [<args>]",
        )

    def testSubcommand(self):
        parser = Parser(config(), Tool)
        with self.assertRaises(HelpRequested):
            parser.parse(["serve", "--help"])
        self.assertEqual(
            render(parser, "write_usage").rstrip(),
            "Usage: tool [--verbose] --token TOKEN serve [--port PORT] [--host HOST] ROOT",
        )

    def testPlaceholders(self):
        self.assertEqual(
            render(Parser(config(), Placeholder), "write_usage").rstrip(),
            "Usage: tool [--listen ADDR] [FILE [FILE ...]]",
        )

    def testWrapping(self):
        lines = render(Parser(config(), Wide), "write_usage").rstrip().splitlines()
        self.assertEqual(len(lines), 2)
        self.assertTrue(lines[0].startswith("Usage: tool [--alpha-option ALPHA_OPTION]"))
        self.assertTrue(lines[1].startswith(" " * 12 + "[--charlie-option CHARLIE_OPTION]"))


class TestHelp(TestCase):
    """Behavioral tests for the help sections."""

    def testRootSections(self):
        output = render(Parser(config(), Tool))
        self.assertTrue(output.startswith("Usage: tool"))
        self.assertIn("Demo tool", output)
        self.assertIn("Options:", output)
        self.assertRegex(output, r"--verbose, -v +verbose output")
        self.assertRegex(output, r"--token TOKEN +api token \[env: API_TOKEN\]")
        self.assertRegex(output, r"--help, -h +display this help and exit")
        self.assertIn("Commands:", output)
        self.assertRegex(output, r"serve +serve files")
        self.assertTrue(output.rstrip().endswith("See docs"))
        self.assertNotIn("Positional arguments:", output)
        self.assertNotIn("Global options:", output)
        self.assertNotIn("--version", output)

    def testSubcommandSections(self):
        parser = Parser(config(), Tool)
        with self.assertRaises(HelpRequested):
            parser.parse(["serve", "--help"])
        output = render(parser)
        self.assertIn("serve files", output)
        self.assertIn("Positional arguments:", output)
        self.assertRegex(output, r"ROOT +document root")
        self.assertRegex(output, r"--port PORT, -p PORT +port to listen on \[default: 8080\]")
        self.assertRegex(output, r"--host HOST, -h HOST +interface")
        self.assertRegex(output, r"--help +display this help and exit")
        self.assertNotIn("--help, -h", output)
        self.assertIn("Global options:", output)
        self.assertRegex(output, r"--verbose, -v +verbose output")
        self.assertNotIn("Commands:", output)
        self.assertNotIn("Demo tool", output)

    def testVersionEntry(self):
        output = render(Parser(config(version="1.0"), Tool))
        self.assertRegex(output, r"--version +display version and exit")

    def testRenderHelp(self):
        self.assertIsInstance(Parser(config(), Tool).render_help(), Group)

    def testLongLabelsMoveDescriptionDown(self):
        class Long(Record):
            configuration_file: str = arg("--configuration-file", help="settings")

        lines = render(Parser(config(), Long)).splitlines()
        index = next(index for index, line in enumerate(lines) if line.startswith("  --configuration-file"))
        self.assertEqual(lines[index + 1].strip(), "settings")
        self.assertTrue(lines[index + 1].startswith(" " * 26))


if __name__ == "__main__":
    unittest.main()
