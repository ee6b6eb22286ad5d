"""
fieldargs faults (errors and requests) and rendering.

Scope
- FaultCode: canonical, stable numeric identifiers for every user-facing fault.
  Codes are grouped by domain to keep copy consistent and make logs/searches
  predictable.
- ParseError: base type carrying a message + context options. Every subclass
  fixes a `kind` label so rendered messages read "<program>: <kind>: <detail>"
  and stay greppable for downstream tools.
- trigger(): central entry point to surface a fault (raise it, or print it
  and hand the exit status to the configured exit hook).

Propagation
- First fault wins: the parser raises as soon as one is found and never
  recovers silently.
- HelpRequested and VersionRequested are not errors per se, but they travel
  through the same channel so callers relying on exit status can react.

Integration
- Parser.parse() raises; must_parse() and Parser.fail() call trigger(fault,
  shell=True, ...) which renders through rich on stderr.
"""
import copy
import sys
from collections import defaultdict
from enum import IntEnum
from types import MappingProxyType

from rich.console import Console, Group
from rich.panel import Panel
from rich.text import Text

from .utils import Unset, coalesce

console = Console(stderr=True, highlight=False)


class FaultCode(IntEnum):
    """
    canonical fault codes used across the parser (stable identifiers).

    grouping (by high-level domain)
    - metadata (101xx)
      • METADATA
    - routing (111xx)
      • UNKNOWN_SUBCOMMAND, AMBIGUOUS_SUBCOMMAND
    - options (1111x)
      • UNKNOWN_OPTION, MISSING_VALUE, INVALID_VALUE
    - positionals (1112x)
      • UNEXPECTED_POSITIONAL
    - resolution (1113x)
      • MISSING_REQUIRED, CONFLICTING_OPTIONS
    - requests (131xx)
      • HELP_REQUESTED, VERSION_REQUESTED

    normalize() allows host remapping to custom labels while keeping code-stability.
    """
    # --- metadata errors (10xxx) ---
    METADATA                = 10101

    # --- routing errors (11xxx) ---
    UNKNOWN_SUBCOMMAND      = 11102
    AMBIGUOUS_SUBCOMMAND    = 11103

    # --- option errors (11xxx) ---
    UNKNOWN_OPTION          = 11112
    MISSING_VALUE           = 11117
    INVALID_VALUE           = 11118

    # --- positional errors (11xxx) ---
    UNEXPECTED_POSITIONAL   = 11121

    # --- resolution errors (11xxx) ---
    MISSING_REQUIRED        = 11131
    CONFLICTING_OPTIONS     = 11132

    # --- requests (13xxx) ---
    HELP_REQUESTED          = 13101
    VERSION_REQUESTED       = 13102

    def normalize(self):
        """
        return a host-normalized string for this code.

        the host application can provide a __codes__ mapping in __main__
        to override numeric ids with friendlier labels. when no mapping
        is present, the numeric value is returned as a string.
        """
        return str(getattr(__import__("__main__"), "__codes__", {}).get(self, self.value))


class ParseError(Exception):
    """
    base of every fault raised by fieldargs.

    attributes
    - kind: fixed, lowercased label of the fault family ("unknown option", ...).
    - code: FaultCode of the family.
    - status: exit status handed to the exit hook when triggered in shell mode.
    - message: the detail text ("unrecognized argument: --foo").
    - options: read-only context (option, field, hint, program, ...).
    """
    kind = "error"
    code = Unset
    status = 1

    def __init__(self, message="", /, **options):
        assert isinstance(message, str)
        super().__init__(message)
        self.message = message
        self.options = MappingProxyType(options)

    def __str__(self):
        return "%s: %s" % (self.kind, self.message)

    def render(self, program=Unset):
        """
        return the canonical single-line form "<program>: <kind>: <detail>".
        """
        program = coalesce(program, self.options.get("program"))
        if not program:
            return str(self)
        return "%s: %s" % (program, self)

    def __rich__(self):
        main = __import__("__main__")

        styles = defaultdict(str, {
            # header parts
            "prog-name": "bold #E6E6F0",  # near-white program name
            "code": "bold #00E5FF",  # neon cyan fault code
            "error-title": "bold #FF4DA6",  # friendly pinky title

            # body
            "error-message": "#C8C8D0",  # soft light gray message
            "hint-arrow": "#9CE19C dim",  # gentle green arrow
            "hint": "italic #9CE19C",  # gentle green hint text
        } | getattr(main, "__styles__", {}))

        colorful = self.options.get("colorful", True)

        def styler(style):
            return styles[style] if colorful else ""

        def text(fragment, style=""):
            if not fragment:
                return Text("")
            if isinstance(fragment, Text):
                return fragment
            return Text(str(fragment), style)

        program = getattr(main, "__prog__", self.options.get("program") or "")

        line = Text.assemble(
            text(program, styler("prog-name")),
            ": " if program else "",
            text(self.kind, styler("error-title")),
            ": ",
            text(self.message, styler("error-message")),
        )

        if not (hint := self.options.get("hint")):
            return line

        hint = Text.assemble(text(" → ", styler("hint-arrow")), text(hint, styler("hint")))

        if self.options.get("fancy"):
            header = Text.assemble(
                "[ ",
                text(program or "error", styler("prog-name")),
                " — ",
                text(self.code.normalize() if self.code else "", styler("code")),
                " | ",
                text(self.kind.title(), styler("error-title")),
                " ]"
            )
            return Panel(Group(line, hint), title=header, title_align="left")

        return Group(line, hint)

    def __trigger__(self):
        if not self.options.get("shell"):
            raise self from None
        self.options.get("console", console).print(self)
        self.options.get("exit", sys.exit)(self.status)

    def __replace__(self, *unused, **overrides):
        assert not unused, "unused arguments are not allowed"
        return type(self)(self.message, **{**self.options, **overrides})


class MetadataError(ParseError, TypeError):
    kind = "metadata error"
    code = FaultCode.METADATA


class UnknownOptionError(ParseError):
    kind = "unknown option"
    code = FaultCode.UNKNOWN_OPTION


class MissingValueError(ParseError):
    kind = "missing value"
    code = FaultCode.MISSING_VALUE


class InvalidValueError(ParseError):
    kind = "invalid value"
    code = FaultCode.INVALID_VALUE


class MissingRequiredError(ParseError):
    kind = "missing required"
    code = FaultCode.MISSING_REQUIRED


class UnknownSubcommandError(ParseError):
    kind = "unknown subcommand"
    code = FaultCode.UNKNOWN_SUBCOMMAND


class AmbiguousSubcommandError(ParseError):
    kind = "ambiguous subcommand"
    code = FaultCode.AMBIGUOUS_SUBCOMMAND


class UnexpectedPositionalError(ParseError):
    kind = "unexpected positional"
    code = FaultCode.UNEXPECTED_POSITIONAL


class ConflictingOptionsError(ParseError):
    kind = "conflicting options"
    code = FaultCode.CONFLICTING_OPTIONS


class HelpRequested(ParseError):
    """
    raised when the built-in help flag is seen.

    when triggered in shell mode, the help of the active command (carried in
    the 'tool' and 'path' options) is rendered instead of an error line.
    """
    kind = "help requested"
    code = FaultCode.HELP_REQUESTED

    def __rich__(self):
        try:
            return self.options["tool"].render_help(self.options.get("path"))
        except KeyError:
            return super().__rich__()


class VersionRequested(ParseError):
    """
    raised when the built-in version flag is seen (exit status 0).
    """
    kind = "version requested"
    code = FaultCode.VERSION_REQUESTED
    status = 0

    def __rich__(self):
        if version := self.options.get("version"):
            return Text(str(version))
        return super().__rich__()


def trigger(fault, /, **options):
    """
    surface a fault with the given runtime options.

    contract
    - fault must provide __trigger__ and __replace__ methods (see ParseError).
    - options are merged into the fault via copy.replace(fault, **options) before triggering.
    - with shell=True the fault is printed on stderr and its exit status is handed
      to the 'exit' option (sys.exit by default); otherwise the fault is raised.

    typical options
    - tool, path, program, shell, exit, console, colorful, fancy, hint.
    """
    if (
        not hasattr(fault, "__trigger__") or
        not callable(fault.__trigger__) or
        not hasattr(fault, "__replace__") or
        not callable(fault.__replace__)
    ):
        raise TypeError("trigger() argument must have a __trigger__ and __replace__ methods")
    copy.replace(fault, **options).__trigger__()


__all__ = (
    "ParseError",
    "MetadataError",
    "UnknownOptionError",
    "MissingValueError",
    "InvalidValueError",
    "MissingRequiredError",
    "UnknownSubcommandError",
    "AmbiguousSubcommandError",
    "UnexpectedPositionalError",
    "ConflictingOptionsError",
    "HelpRequested",
    "VersionRequested",
    "FaultCode",
    "trigger",
)
