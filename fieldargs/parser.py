"""
fieldargs parser: configuration, dispatch and the caller surface.

Dispatch (one parse call)
- S0/S1: walk argv for the first non-flag token of each command level (skipping values of
  flags that require one); a matching subcommand (exact, then case-insensitive) is
  instantiated if needed and becomes the active command. A non-matching token where
  subcommands exist raises UnknownSubcommandError. "--" stops the walk.
- S2: tokenize argv (minus the subcommand tokens) with one tokenizer per active command,
  the leaf falling back to its ancestors for inherited flags.
- S3: each option event is coerced and written into the record of the nearest active
  command owning the flag; built-in --help/-h and --version raise HelpRequested and
  VersionRequested.
- S4: the remaining non-option tokens fill the positional slots of the leaf command in order;
  a list slot drains the rest; surplus tokens raise UnexpectedPositionalError.
- S5: environment, defaults, required and exclusivity checks for every active command,
  leaves first.

Caller surface
- parse(record), parse_args(record, argv): parse into record and return it; raise on error.
- must_parse(record, config): on error print the diagnostic (help on a help request, the
  version on a version request) and call config.exit with the fault status.
- new_parser(config, record) / Parser(config, record): reusable parser.
"""
import collections
import copy
import difflib
import logging
import os
import sys

from rich.console import Console

from . import faults
from . import help as helper
from .coercion import coerce
from .faults import *
from .metadata import Discipline, extract
from .options import chain, merge
from .records import RecordType, SpecType
from .resolver import resolve
from .utils import *

logger = logging.getLogger(__name__)


def _sanitize_strings(cls, metadata, /):
    for name in ("program", "description", "version", "epilog"):
        if not isinstance(value := metadata[name], str | UnsetType):
            raise TypeError(f"{cls.__typename__} '{name}' must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise ValueError(f"{cls.__typename__} '{name}' cannot be empty")
        metadata[name] = coalesce(value)

    if metadata["program"] is None:
        metadata["program"] = os.path.basename(sys.argv[0]) if sys.argv and sys.argv[0] else "program"


def _sanitize_hooks(cls, metadata, /):
    metadata["exit"] = coalesce(metadata["exit"], sys.exit)
    metadata["getenv"] = coalesce(metadata["getenv"], os.environ.get)
    for name in ("exit", "getenv"):
        if not callable(metadata[name]):
            raise TypeError(f"{cls.__typename__} '{name}' must be callable")


class Config(metaclass=SpecType):
    """
    Immutable parser configuration.

    Properties
    - program: display name (defaults to the basename of sys.argv[0]).
    - description, epilog: help header and footer text.
    - version: version string; enables the built-in --version flag.
    - ignore_env, ignore_default: skip the environment or default stages.
    - exit: hook called with the exit status by must_parse() and Parser.fail() (sys.exit).
    - getenv: environment lookup returning text or None (os.environ.get).
    - colorful: style help and diagnostics.
    - fancy: frame diagnostics that carry a hint in a panel titled with the fault code.
    """
    __introspectable__ = (
        "program",
        "description",
        "version",
        "ignore_env",
        "ignore_default",
        "exit",
        "getenv",
        "epilog",
        "colorful",
        "fancy",
    )

    def __new__(
            cls,
            program=Unset,
            description=Unset,
            version=Unset,
            *,
            ignore_env=False,
            ignore_default=False,
            exit=Unset,
            getenv=Unset,
            epilog=Unset,
            colorful=True,
            fancy=False,
    ):
        metadata = {
            "program": program,
            "description": description,
            "version": version,
            "ignore_env": bool(ignore_env),
            "ignore_default": bool(ignore_default),
            "exit": exit,
            "getenv": getenv,
            "epilog": epilog,
            "colorful": bool(colorful),
            "fancy": bool(fancy),
        }
        _sanitize_strings(cls, metadata)
        _sanitize_hooks(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self


class Parser:
    """
    Reusable parser bound to a configuration and a target record.

    Metadata errors surface on construction. After a parse, subcommand() returns the record
    of the deepest active command and subcommand_names() the names of the active subcommands.
    """

    def __init__(self, config, record, /):
        if isinstance(record, RecordType):
            record = record()
        self._config = coalesce(config, None) or Config()
        if not isinstance(self._config, Config):
            raise TypeError("parser config must be a Config")
        self._root = extract(record)
        self._record = record
        self._path = (self._root,)
        self._records = (record,)

    @property
    def config(self):
        return self._config

    @property
    def record(self):
        return self._record

    def parse(self, argv=Unset, /):
        """
        Parse argv (sys.argv[1:] by default) into the record; raise a ParseError subclass on failure.
        """
        argv = list(coalesce(argv, sys.argv[1:]))
        try:
            self._parse(argv)
        except ParseError as fault:
            if fault.options.get("program"):
                raise
            raise copy.replace(fault, program=self._config.program) from None
        return self._record

    def _parse(self, argv):
        logger.debug("parsing %r", argv)
        path, records, consumed = self._descend(argv)
        self._path, self._records = tuple(path), tuple(records)

        tokens = [token for index, token in enumerate(argv) if index not in consumed]
        tokenizer = chain(self._path, tokens, bool(self._config.version))

        touched = [set() for _ in path]
        for event in tokenizer:
            for depth in reversed(range(len(path))):
                if (field := path[depth].owns(event.name)) is not None:
                    break
            else:
                self._builtin(event)
                continue

            value = coerce(event.argument if event.has_argument else None, field)
            logger.debug("%s = %r (command %r)", field.display, value, path[depth].name)
            setattr(records[depth], field.name, value)
            touched[depth].add(field.name)

        queue = collections.deque(tokenizer.remaining)
        for field in path[-1].positionals:
            if not queue:
                break
            if field.category == "list":
                value = []
                while queue:
                    value.extend(coerce(queue.popleft(), field))
            else:
                value = coerce(queue.popleft(), field)
            logger.debug("positional %s = %r", field.display, value)
            setattr(records[-1], field.name, value)
            touched[-1].add(field.name)
        if queue:
            raise UnexpectedPositionalError(
                f"too many positional arguments at {queue[0]!r}",
                value=queue[0],
                hint=f"run '{self._route()} --help' to see the expected usage",
            )

        for command, record, names in reversed(list(zip(path, records, touched))):
            resolve(
                command,
                record,
                names,
                getenv=self._config.getenv,
                ignore_env=self._config.ignore_env,
                ignore_default=self._config.ignore_default,
            )

    def _descend(self, argv):
        path, records, consumed = [self._root], [self._record], set()

        index = 0
        while index < len(argv) and path[-1].subcommands:
            token = argv[index]
            if token == "--":
                break
            if token.startswith("-") and token != "-":
                index += 1 + self._arity(token, path)
                continue

            if (child := path[-1].find(token)) is None:
                names = [command.name for command in path[-1].subcommands.values()]
                raise UnknownSubcommandError(
                    f"invalid subcommand: {token}",
                    value=token,
                    hint="run '%s --help' to see available commands (%s)" % (self._route(path), ", ".join(names)),
                )

            if (record := getattr(records[-1], child.field.name)) is None:
                record = child.record()
                setattr(records[-1], child.field.name, record)
            logger.debug("entering subcommand %r", child.name)
            path.append(child)
            records.append(record)
            consumed.add(index)
            index += 1

        return path, records, consumed

    def _arity(self, token, path):
        """
        Number of following tokens consumed by a flag token under the tables of a path (0 or 1).

        A flag unknown to every command of the path raises UnknownOptionError, so a subcommand
        flag written before its subcommand name is reported as such.
        """
        tables = merge(path, bool(self._config.version))
        if token.startswith("--"):
            name, equals, _ = token[2:].partition("=")
            if (flag := tables.longs.get(name)) is None:
                self._unknown("--" + name, tables)
            return int(not equals and flag.discipline is Discipline.REQUIRED)
        for position, char in enumerate(token[1:], 2):
            if (flag := tables.shorts.get(char)) is None:
                self._unknown("-" + char, tables)
            if flag.discipline is not Discipline.NONE:
                return int(flag.discipline is Discipline.REQUIRED and position == len(token))
        return 0

    def _unknown(self, name, tables):
        known = [*("--" + key for key in tables.longs), *("-" + key for key in tables.shorts)]
        hint = None
        if suggestions := difflib.get_close_matches(name, known, 1):
            hint = "did you mean %r?" % suggestions[0]
        raise UnknownOptionError(f"unrecognized argument: {name}", option=name, hint=hint)

    def _builtin(self, event):
        if event.name in ("--help", "-h"):
            raise HelpRequested(
                "help requested by user",
                tool=self,
                path=self._path,
                program=self._config.program,
            )
        if event.name == "--version":
            raise VersionRequested(
                "version requested by user",
                version=self._config.version,
                program=self._config.program,
            )
        raise UnknownOptionError(f"unrecognized argument: {event.name}", option=event.name)

    def _route(self, path=Unset):
        path = coalesce(path, self._path)
        return " ".join([self._config.program, *(command.name for command in path[1:])])

    def subcommand(self):
        """
        Return the record of the deepest active subcommand of the last parse, or None.
        """
        return self._records[-1] if len(self._records) > 1 else None

    def subcommand_names(self):
        """
        Return the names of the active subcommands of the last parse, outermost first.
        """
        return [command.name for command in self._path[1:]]

    def render_help(self, path=None, /):
        return helper.render_help(path or self._path, self._config)

    def write_help(self, sink=Unset, /):
        helper.write_help(coalesce(sink, sys.stdout), self._path, self._config)

    def write_usage(self, sink=Unset, /):
        helper.write_usage(coalesce(sink, sys.stdout), self._path, self._config)

    def fail(self, message, /):
        """
        Print the usage and "<program>: error: <message>" to stderr, then call the exit hook with 1.
        """
        faults.console.print(helper.render_usage(self._path, self._config))
        trigger(
            ParseError(message),
            shell=True,
            program=self._config.program,
            colorful=self._config.colorful,
            fancy=self._config.fancy,
            exit=self._config.exit,
        )


def new_parser(config, record, /):
    """
    Build a reusable parser; metadata errors raise immediately.
    """
    return Parser(config, record)


def parse(record, /):
    """
    Parse sys.argv[1:] into record and return it.
    """
    return Parser(None, record).parse()


def parse_args(record, argv, /):
    """
    Parse an explicit argument vector into record and return it.
    """
    return Parser(None, record).parse(argv)


def must_parse(record, config=Unset, /):
    """
    Parse sys.argv[1:] into record; on failure print to stderr and call config.exit.

    - help requests print the help of the active command (exit status 1);
    - version requests print the version on stdout (exit status 0);
    - any other fault prints "<program>: <kind>: <detail>" with a hint (exit status 1).
    Returns the parser.
    """
    config = coalesce(config, None) or Config()
    try:
        parser = Parser(config, record)
    except MetadataError as fault:
        trigger(
            fault,
            shell=True,
            program=config.program,
            colorful=config.colorful,
            fancy=config.fancy,
            exit=config.exit,
        )
        raise

    try:
        parser.parse()
    except VersionRequested as fault:
        trigger(fault, shell=True, console=Console(), exit=config.exit)
    except HelpRequested as fault:
        trigger(fault, shell=True, exit=config.exit)
    except ParseError as fault:
        options = {"shell": True, "colorful": config.colorful, "fancy": config.fancy, "exit": config.exit}
        if not fault.options.get("hint"):
            options["hint"] = f"run '{parser._route()} --help' for usage"
        trigger(fault, **options)
    return parser


__all__ = (
    "Config",
    "Parser",
    "new_parser",
    "parse",
    "parse_args",
    "must_parse",
)
