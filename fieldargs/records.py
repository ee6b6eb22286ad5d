r"""
fieldargs records and field tags.

Overview
- Record
  • Base class for user-defined argument records. Every annotated class attribute
    whose name does not start with an underscore is a field.
  • Instantiating a record sets every field to its initial value: the zero value of
    its annotation for tagged or bare fields, or the plain class-level value otherwise
    (lists are copied per instance).
  • Records compare structurally and have a readable repr.

- arg(tokens, **secondary)
  • Field tag: a comma-separated token list plus secondary attributes.
    Tokens: "-x", "--name", "positional", "required", "env", "env:NAME",
    "subcommand", "subcommand:name".
    Secondary: help, default, placeholder, min, max, minlen, maxlen, exclusive.
  • arg.parse('arg:"-v,--verbose" help:"be loud"') builds a tag from a struct-tag string.

- SpecType
  • Metaclass shared by tags and compiled specs: derives __typename__, exposes the
    names of __introspectable__ as read-only properties, and wires __repr__/__rich_repr__.

Quick example:
    >>> from fieldargs import Record, arg
    >>> class Args(Record):
    ...     verbose: bool = arg("-v,--verbose", help="verbose output")
    ...     output: str = arg("-o,--output", default="out.txt")
    ...     files: list[str] = arg("positional")
    >>> Args()
    Args(verbose=False, output='', files=[])
"""
import builtins
import collections
import copy
import functools
import operator
import re
import typing

from .faults import MetadataError
from .utils import *

Field = collections.namedtuple("Field", ("name", "annotation", "tag", "initial"))


class SpecType(type):
    """
    Metaclass that turns tags and specs into introspectable, read-only objects.

    Conventions
    - __typename__ is derived from the class name (camel-case split with hyphens)
      and used in messages and representations.
    - __displayable__ (if set) narrows which properties are shown by __rich_repr__;
      otherwise __introspectable__ is used.
    """
    __introspectable__ = ()
    __displayable__ = Unset

    def __new__(cls, name, bases, namespace, **options):
        self = super().__new__(
            cls,
            name,
            bases,
            namespace | {
                "__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower(),
            } | {
                name: mirror(name) for name in namespace.get("__introspectable__", ())
            },
        )

        @rename("__repr__")
        def __repr__(self):
            """
            Return a concise, stable representation with key metadata.
            """
            return f"{type(self).__typename__}({
                ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
            })"
        self.__repr__ = __repr__

        @rename("__rich_repr__")
        def __rich_repr__(self):
            for name in coalesce(type(self).__displayable__, type(self).__introspectable__):
                yield name, getattr(self, name)
        self.__rich_repr__ = __rich_repr__

        return self


def _sanitize_tokens(cls, metadata, tokens, /):
    """
    Internal: split and validate the comma-separated token list of a tag.

    The metadata dict is filled in place with short/long/positional/required/env/subcommand.
    An empty env or subcommand name means "derive it from the field name".
    """
    if not isinstance(tokens, str):
        raise MetadataError(f"{cls.__typename__} tokens must be a string")

    for token in filter(None, map(str.strip, tokens.split(","))):
        if token.startswith("--"):
            if not re.fullmatch(r"[^\W\d_](-?[^\W_]+)*", long := token[2:]):
                raise MetadataError(f"invalid long option name: {token}")
            if metadata["long"] is not None:
                raise MetadataError(f"duplicate long option name: {token}")
            metadata["long"] = long
        elif token.startswith("-"):
            if len(short := token[1:]) != 1 or short == "-":
                raise MetadataError(f"short option must be single character, got: {short}")
            if metadata["short"] is not None:
                raise MetadataError(f"duplicate short option name: {token}")
            metadata["short"] = short
        elif token in ("positional", "required"):
            metadata[token] = True
        elif token == "env" or token.startswith("env:"):
            metadata["env"] = token.partition(":")[2].strip()
        elif token == "subcommand" or token.startswith("subcommand:"):
            metadata["subcommand"] = token.partition(":")[2].strip()
        elif token == "separate":
            raise MetadataError(f"unsupported tag token: {token}")
        else:
            raise MetadataError(f"unknown tag token: {token}")

    if metadata["positional"] and (metadata["short"] is not None or metadata["long"] is not None):
        raise MetadataError("positional argument cannot have option flags")
    if metadata["subcommand"] is not None and (
        metadata["positional"] or
        metadata["short"] is not None or
        metadata["long"] is not None
    ):
        raise MetadataError("subcommand cannot be an option or a positional")


def _sanitize_secondary(cls, metadata, /):
    """
    Internal: normalize secondary attributes.

    - help/placeholder/exclusive: trimmed non-empty strings when provided.
    - default: kept as text (numbers and booleans are converted with str()).
    - min/max/minlen/maxlen: kept as text; interpreted per field category at extraction.
    """
    for name in ("help", "placeholder", "exclusive"):
        if not isinstance(value := metadata[name], str | UnsetType):
            raise MetadataError(f"{cls.__typename__} '{name}' must be a string")
        elif isinstance(value, str) and not (value := value.strip()):
            raise MetadataError(f"{cls.__typename__} '{name}' cannot be empty")
        metadata[name] = coalesce(value)

    for name in ("default", "min", "max", "minlen", "maxlen"):
        if not isinstance(value := metadata[name], str | int | float | UnsetType):
            raise MetadataError(f"{cls.__typename__} '{name}' must be a string or a number")
        if isinstance(value, builtins.bool):
            value = str(value).lower()
        metadata[name] = None if value is Unset else str(value)


class arg(metaclass=SpecType):
    """
    Field tag describing how one record field is parsed.

    Properties
    - short, long: option names without dashes (None when absent).
    - positional, required: booleans.
    - env: None (no fallback), "" (derive UPPER_SNAKE from the field name) or a variable name.
    - subcommand: None, "" (derive from the field name) or a command name.
    - help, default, placeholder, min, max, minlen, maxlen, exclusive: text or None.
    """
    __introspectable__ = (
        "short",
        "long",
        "positional",
        "required",
        "env",
        "subcommand",
        "help",
        "default",
        "placeholder",
        "min",
        "max",
        "minlen",
        "maxlen",
        "exclusive",
    )

    def __new__(
            cls,
            tokens="",
            /,
            *,
            help=Unset,
            default=Unset,
            placeholder=Unset,
            min=Unset,
            max=Unset,
            minlen=Unset,
            maxlen=Unset,
            exclusive=Unset,
    ):
        metadata = {
            "short": None,
            "long": None,
            "positional": False,
            "required": False,
            "env": None,
            "subcommand": None,
            "help": help,
            "default": default,
            "placeholder": placeholder,
            "min": min,
            "max": max,
            "minlen": minlen,
            "maxlen": maxlen,
            "exclusive": exclusive,
        }
        _sanitize_tokens(cls, metadata, tokens)
        _sanitize_secondary(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)
        return self

    def __eq__(self, other):
        if not isinstance(other, arg):
            return NotImplemented
        return all(getattr(self, name) == getattr(other, name) for name in type(self).__introspectable__)

    def __hash__(self):
        return hash(tuple(getattr(self, name) for name in type(self).__introspectable__))

    @classmethod
    def parse(cls, tag, /):
        """
        Build a tag from a struct-tag string such as 'arg:"-p,--port" default:"8080" help:"port"'.

        Keys other than arg/help/default/placeholder/min/max/minlen/maxlen/exclusive
        are ignored so tags shared with other tools stay usable.
        """
        if not isinstance(tag, str):
            raise MetadataError("arg.parse() argument must be a string")

        options = {}
        position = 0
        for match in re.finditer(r'\s*(?P<key>[A-Za-z_]\w*):"(?P<value>(?:[^"\\]|\\.)*)"', tag):
            if match.start() != position:
                break
            position = match.end()
            options[match["key"]] = re.sub(r"\\(.)", r"\1", match["value"])
        if tag[position:].strip():
            raise MetadataError(f"malformed struct tag: {tag!r}")

        tokens = options.pop("arg", "")
        return cls(tokens, **{
            key: value for key, value in options.items() if key in (
                "help", "default", "placeholder", "min", "max", "minlen", "maxlen", "exclusive"
            )
        })


def zero(annotation, /):
    """
    Zero value of an annotation (False, 0, 0.0, "", [] or None).
    """
    if typing.get_origin(annotation) is typing.Annotated:
        annotation = annotation.__origin__
    if annotation is builtins.bool:
        return False
    if annotation is int:
        return 0
    if annotation is float:
        return 0.0
    if annotation is str:
        return ""
    if annotation is list or typing.get_origin(annotation) is list:
        return []
    return None


@functools.cache
def fields(cls, /):
    """
    Return the ordered fields of a record type as a tuple of Field(name, annotation, tag, initial).

    Annotations are resolved with typing.get_type_hints(include_extras=True); inherited
    fields come first, names starting with an underscore and ClassVar annotations are skipped.
    """
    if not isinstance(cls, RecordType):
        raise TypeError("fields() argument must be a record type")

    try:
        hints = typing.get_type_hints(cls, include_extras=True)
    except NameError as error:
        raise MetadataError(f"cannot resolve annotations of {cls.__name__}: {error}") from None

    result = []
    for name, annotation in hints.items():
        if name.startswith("_") or typing.get_origin(annotation) is typing.ClassVar:
            continue
        match getattr(cls, name, Unset):
            case arg() as tag:
                result.append(Field(name, annotation, tag, zero(annotation)))
            case UnsetType():
                result.append(Field(name, annotation, None, zero(annotation)))
            case initial:
                result.append(Field(name, annotation, None, initial))
    return tuple(result)


class RecordType(type):
    """
    Metaclass of argument records.

    Exposes __typename__ (hyphenated class name) and __fields__ (resolved lazily on first
    use so annotations may reference types defined after the record).
    """

    def __new__(cls, name, bases, namespace, **options):
        return super().__new__(
            cls,
            name,
            bases,
            namespace | {"__typename__": re.sub(r"(?<!^)(?=[A-Z])", r"-", name).lower()},
            **options
        )

    @property
    def __fields__(self):
        return fields(self)


class Record(metaclass=RecordType):
    """
    Base class of user-defined argument records.

    Keyword arguments given to the constructor override the initial values, which is
    mostly useful to build expected records in tests:
        >>> Args(verbose=True) == Args(verbose=True)
        True
    """

    def __init__(self, **values):
        names = set()
        for field in type(self).__fields__:
            names.add(field.name)
            setattr(self, field.name, values[field.name] if field.name in values else copy.copy(field.initial))
        for name in values.keys() - names:
            raise TypeError(f"{type(self).__name__}() got an unexpected keyword argument {name!r}")

    def __eq__(self, other):
        if type(self) is not type(other):
            return NotImplemented
        return all(getattr(self, field.name) == getattr(other, field.name) for field in type(self).__fields__)

    __hash__ = None

    def __rich_repr__(self):
        for field in type(self).__fields__:
            yield field.name, getattr(self, field.name)

    def __repr__(self):
        return f"{type(self).__name__}({
            ", ".join(map(functools.partial(operator.mod, "%s=%r"), self.__rich_repr__()))
        })"


__all__ = (
    "Record",
    "RecordType",
    "arg",
    "fields",
)
