r"""
fieldargs low-level option tokenizer (GNU/POSIX style).

Contract
- Flag(name, discipline): a short (one character) or long flag with its argument discipline.
- Tokenizer(args, shorts, longs): iterating yields Event(name, has_argument, argument) in argv
  order; name is the dashed spelling ("-v", "--verbose").
- Non-option tokens are permuted out of the way and collected in .remaining (in order),
  together with everything after a literal "--". A lone "-" is a non-option.
- Unknown flags raise UnknownOptionError, a missing required argument raises
  MissingValueError, at the failing event.

Forms
- --name, --name=value, --name value (required discipline only; optional needs '=').
- -x, -xVALUE, -x VALUE (required discipline only; optional needs the attached form).
- clusters: -abc is -a -b -c; the first flag taking an argument absorbs the rest
  of the cluster ("-vp9000") or the following token ("-vp 9000").

Commands
- add_command(name, tokenizer) registers a subordinate tokenizer and makes this one its parent.
- command(name) looks a registered tokenizer up (exact match first, then case-insensitive).
- Flags not found locally are looked up through the parent chain, so a subordinate
  tokenizer recognizes the flags of its ancestors.
"""
import collections
import difflib
import logging
from collections.abc import Mapping

from .faults import InvalidValueError, MissingValueError, UnknownOptionError
from .metadata import Discipline

logger = logging.getLogger(__name__)

Flag = collections.namedtuple("Flag", ("name", "discipline"))
Event = collections.namedtuple("Event", ("name", "has_argument", "argument"))


def _table(flags, short):
    if isinstance(flags, Mapping):
        flags = flags.values()

    table = {}
    for flag in flags:
        if not isinstance(flag, Flag):
            raise TypeError("flag tables must contain Flag instances")
        if not isinstance(flag.discipline, Discipline):
            raise TypeError(f"flag {flag.name!r} has an invalid discipline")
        if short and (len(flag.name) != 1 or flag.name in "-=" or flag.name.isspace()):
            raise ValueError(f"invalid short option: {flag.name!r}")
        if not short and (not flag.name or "=" in flag.name or any(map(str.isspace, flag.name))):
            raise ValueError(f"invalid long option: {flag.name!r}")
        table[flag.name] = flag
    return table


class Tokenizer:
    """
    Lazy GNU-style option lexer over one argument vector.

    The iterator can be consumed once; .remaining is complete after exhaustion.
    """

    def __init__(self, args, shorts=(), longs=()):
        self._args = list(args)
        self._shorts = _table(shorts, True)
        self._longs = _table(longs, False)
        self._remaining = []
        self._commands = {}
        self._parent = None

    @property
    def remaining(self):
        return list(self._remaining)

    @property
    def parent(self):
        return self._parent

    @property
    def commands(self):
        return tuple(self._commands)

    def add_command(self, name, tokenizer, /):
        if not isinstance(tokenizer, Tokenizer):
            raise TypeError("add_command() second argument must be a tokenizer")
        tokenizer._parent = self
        self._commands[name] = tokenizer
        return tokenizer

    def command(self, name, /):
        try:
            return self._commands[name]
        except KeyError:
            pass
        for key, tokenizer in self._commands.items():
            if key.casefold() == name.casefold():
                return tokenizer
        return None

    def lookup(self, name, /, *, long):
        """
        Return the Flag for a bare name, searching this tokenizer then its parents, or None.
        """
        node = self
        while node is not None:
            if (flag := (node._longs if long else node._shorts).get(name)) is not None:
                return flag
            node = node._parent
        return None

    def _hint(self, name):
        known = []
        node = self
        while node is not None:
            known.extend("--" + key for key in node._longs)
            known.extend("-" + key for key in node._shorts)
            node = node._parent
        if suggestions := difflib.get_close_matches(name, known, 1):
            return "did you mean %r?" % suggestions[0]
        return None

    def __iter__(self):
        args = self._args
        index = 0
        while index < len(args):
            token = args[index]
            index += 1

            if token == "--":
                logger.debug("end of options at position %d", index - 1)
                self._remaining.extend(args[index:])
                return

            if token.startswith("--"):
                event, index = self._long(token[2:], args, index)
                yield event
            elif token.startswith("-") and token != "-":
                word = token[1:]
                while word:
                    event, word, index = self._short(word, args, index)
                    yield event
            else:
                logger.debug("non-option %r", token)
                self._remaining.append(token)

    def _long(self, word, args, index):
        name, equals, argument = word.partition("=")
        if (flag := self.lookup(name, long=True)) is None:
            raise UnknownOptionError(f"unrecognized argument: --{name}", option="--" + name, hint=self._hint("--" + name))

        logger.debug("long option --%s (%s)", name, flag.discipline.name.lower())
        match flag.discipline:
            case Discipline.NONE:
                if equals:
                    raise InvalidValueError(
                        f"invalid argument for --{name}: option does not take an argument",
                        option="--" + name,
                    )
                return Event("--" + name, False, None), index
            case Discipline.REQUIRED:
                if equals:
                    return Event("--" + name, True, argument), index
                if index >= len(args):
                    raise MissingValueError(f"option requires an argument: --{name}", option="--" + name)
                return Event("--" + name, True, args[index]), index + 1
            case _:
                if equals:
                    return Event("--" + name, True, argument), index
                return Event("--" + name, False, None), index

    def _short(self, word, args, index):
        name, rest = word[0], word[1:]
        if (flag := self.lookup(name, long=False)) is None:
            raise UnknownOptionError(f"unrecognized argument: -{name}", option="-" + name, hint=self._hint("-" + name))

        logger.debug("short option -%s (%s), cluster rest %r", name, flag.discipline.name.lower(), rest)
        match flag.discipline:
            case Discipline.NONE:
                return Event("-" + name, False, None), rest, index
            case Discipline.REQUIRED:
                if rest:
                    return Event("-" + name, True, rest), "", index
                if index >= len(args):
                    raise MissingValueError(f"option requires an argument: -{name}", option="-" + name)
                return Event("-" + name, True, args[index]), "", index + 1
            case _:
                if rest:
                    return Event("-" + name, True, rest), "", index
                return Event("-" + name, False, None), "", index


__all__ = (
    "Discipline",
    "Flag",
    "Event",
    "Tokenizer",
)
