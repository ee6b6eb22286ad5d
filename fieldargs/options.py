"""
fieldargs option maps: CommandSpec → tokenizer tables.

- option_map(command): short table (char → Flag), long table (name → Flag) and the
  positional slots of one command.
- merge(path, version=False): tables of every command on a path merged ancestors first,
  plus the built-in flags.
- builtins(path, version=False): --help, -h unless a field on the path owns it, and
  --version when a version is configured (and no field owns it).
- chain(path, args, version=False): one Tokenizer per command on the path, linked through
  add_command() so the leaf falls back to its ancestors; returns the leaf.
"""
import collections
import functools

from .metadata import Discipline
from .tokenizer import Flag, Tokenizer

OptionMap = collections.namedtuple("OptionMap", ("shorts", "longs", "positionals"))


@functools.cache
def option_map(command, /):
    shorts, longs = {}, {}
    for option in command.options:
        if option.short is not None:
            shorts[option.short] = Flag(option.short, option.discipline)
        if option.long is not None:
            longs[option.long] = Flag(option.long, option.discipline)
    return OptionMap(shorts, longs, command.positionals)


def builtins(path, /, version=False):
    """
    Return the (shorts, longs) built-in flag tables for a command path.
    """
    owned = set()
    for command in path:
        owned.update("-" + option.short for option in command.options if option.short is not None)
        owned.update("--" + option.long for option in command.options if option.long is not None)

    shorts, longs = {}, {}
    if "--help" not in owned:
        longs["help"] = Flag("help", Discipline.NONE)
    if "-h" not in owned:
        shorts["h"] = Flag("h", Discipline.NONE)
    if version and "--version" not in owned:
        longs["version"] = Flag("version", Discipline.NONE)
    return shorts, longs


def merge(path, /, version=False):
    shorts, longs = builtins(path, version)
    for command in path:
        tables = option_map(command)
        shorts |= tables.shorts
        longs |= tables.longs
    return OptionMap(shorts, longs, path[-1].positionals)


def chain(path, args, /, version=False):
    extra_shorts, extra_longs = builtins(path, version)

    tokenizer = None
    for index, command in enumerate(path):
        tables = option_map(command)
        shorts, longs = dict(tables.shorts), dict(tables.longs)
        if index == len(path) - 1:
            shorts |= extra_shorts
            longs |= extra_longs
        node = Tokenizer(args if index == len(path) - 1 else (), shorts, longs)
        tokenizer = node if tokenizer is None else tokenizer.add_command(command.name, node)
    return tokenizer


__all__ = (
    "OptionMap",
    "option_map",
    "builtins",
    "merge",
    "chain",
)
