r"""
fieldargs metadata extraction.

Overview
- FieldSpec: compiled, read-only description of one record field (names, discipline,
  category, bounds, env/default, exclusivity group).
- CommandSpec: compiled, read-only description of one command node (root or subcommand):
  ordered options and positionals, subcommand children keyed by lowercased name,
  upward parent link.
- extract(record): build (once per record type) the CommandSpec tree of a record type.

Validation (MetadataError)
- positional with short/long, subcommand on anything but an optional record,
  short names longer than one character, defaults on list fields or defaults that
  cannot be coerced, positionals after a list positional, duplicate names within
  a command or redeclared from an ancestor, subcommand names colliding up to case,
  unsupported types, bad bounds, and cycles through subcommand record types.
"""
import enum
import functools

from . import coercion
from .faults import InvalidValueError, MetadataError
from .records import RecordType, SpecType, fields
from .utils import *


class Discipline(enum.Enum):
    """
    argument discipline of an option: no argument, a required one, or an optional one.
    """
    NONE = 0
    REQUIRED = 1
    OPTIONAL = 2


class FieldSpec(metaclass=SpecType):
    """
    Compiled description of one record field.

    Properties
    - name, annotation, info (coercion.TypeInfo)
    - short, long (bare names), positional, subcommand (command name or None)
    - discipline, required, env (variable name or None), default (text or None)
    - help, placeholder, exclusive
    - min, max (numbers), minlen, maxlen (integers)

    Derived
    - category: info.category
    - display: "--long", else "-short", else the upper-cased field name
    - repeatable: list-typed options
    """
    __introspectable__ = (
        "name",
        "annotation",
        "short",
        "long",
        "positional",
        "subcommand",
        "discipline",
        "required",
        "env",
        "default",
        "help",
        "placeholder",
        "exclusive",
        "min",
        "max",
        "minlen",
        "maxlen",
    )
    __displayable__ = (
        "name",
        "short",
        "long",
        "positional",
        "subcommand",
        "discipline",
        "required",
        "env",
        "default",
    )

    def __new__(cls, field, /):
        tag = field.tag
        metadata = {
            "name": field.name,
            "annotation": field.annotation,
            "info": coercion.classify(field.annotation),
            "short": tag.short if tag else None,
            "long": tag.long if tag else None,
            "positional": tag.positional if tag else False,
            "subcommand": tag.subcommand if tag else None,
            "discipline": Discipline.NONE,
            "required": tag.required if tag else False,
            "env": tag.env if tag else None,
            "default": tag.default if tag else None,
            "help": tag.help if tag else None,
            "placeholder": tag.placeholder if tag else None,
            "exclusive": tag.exclusive if tag else None,
            "min": tag.min if tag else None,
            "max": tag.max if tag else None,
            "minlen": tag.minlen if tag else None,
            "maxlen": tag.maxlen if tag else None,
        }
        _sanitize_kind(cls, metadata)
        _sanitize_names(cls, metadata)
        _sanitize_bounds(cls, metadata)

        self = super().__new__(cls)
        for name, object in metadata.items():
            setattr(self, "_" + name, object)

        if self.default is not None:
            _sanitize_default(self)
        return self

    @property
    def info(self):
        return self._info

    @property
    def category(self):
        return self._info.category

    @property
    def display(self):
        if self._long is not None:
            return "--" + self._long
        if self._short is not None:
            return "-" + self._short
        return self._name.upper()

    @property
    def repeatable(self):
        return self._info.category == "list" and not self._positional


def _sanitize_kind(cls, metadata, /):
    """
    Internal: settle what a field is (option, positional or subcommand) and its discipline.
    """
    name = metadata["name"]
    category = metadata["info"].category

    if metadata["subcommand"] is not None:
        if category != "record" or not metadata["info"].optional:
            raise MetadataError(f"subcommand field {name!r} must be an optional record (Record | None)")
        if metadata["required"] or metadata["env"] is not None or metadata["default"] is not None:
            raise MetadataError(f"subcommand field {name!r} cannot be required, have env or a default")
        metadata["subcommand"] = metadata["subcommand"] or name.lower()
        return

    if category == "record":
        raise MetadataError(f"record field {name!r} must be tagged as a subcommand")

    if metadata["positional"]:
        if metadata["env"] is not None:
            raise MetadataError(f"positional field {name!r} cannot have an environment fallback")
        return

    metadata["discipline"] = Discipline.NONE if category == "bool" else Discipline.REQUIRED


def _sanitize_names(cls, metadata, /):
    """
    Internal: derive the default long name and environment variable name.

    An option keeps its explicit long name; otherwise the long name is the field
    name lowercased with underscores turned into hyphens.
    """
    if metadata["subcommand"] is not None or metadata["positional"]:
        return
    if metadata["long"] is None:
        metadata["long"] = kebab(metadata["name"])
    if metadata["env"] == "":
        metadata["env"] = screaming(metadata["name"])


def _sanitize_bounds(cls, metadata, /):
    """
    Internal: interpret min/max/minlen/maxlen text for the field category.
    """
    for bound in ("min", "max", "minlen", "maxlen"):
        try:
            metadata[bound] = coercion.parse_bound(metadata[bound], metadata["info"], bound)
        except MetadataError as error:
            raise MetadataError(f"field {metadata['name']!r}: {error.message}") from None

    if metadata["min"] is not None and metadata["max"] is not None and metadata["min"] > metadata["max"]:
        raise MetadataError(f"field {metadata['name']!r}: 'min' bound is greater than 'max' bound")
    if metadata["minlen"] is not None and metadata["maxlen"] is not None and metadata["minlen"] > metadata["maxlen"]:
        raise MetadataError(f"field {metadata['name']!r}: 'minlen' bound is greater than 'maxlen' bound")


def _sanitize_default(self, /):
    """
    Internal: a default must be coercible to the field type and is forbidden on lists.
    """
    if self.category == "list":
        raise MetadataError(f"field {self.name!r}: default values are not supported for list fields")
    try:
        coercion.coerce(self.default, self)
    except InvalidValueError as error:
        raise MetadataError(f"invalid default for {self.display}: {error.message}") from None


class CommandSpec(metaclass=SpecType):
    """
    Compiled description of one command node.

    Properties
    - name: command name ("" for the root), record: record type
    - field: FieldSpec holding this command in its parent record (None for the root)
    - parent: parent CommandSpec (None for the root)
    - options, positionals: ordered FieldSpecs
    - subcommands: mapping of lowercased name to child CommandSpec

    Derived
    - path: commands from the root down to this one
    - help: help text of the holding field
    """
    __introspectable__ = (
        "name",
        "record",
        "field",
        "parent",
        "options",
        "positionals",
        "subcommands",
    )
    __displayable__ = (
        "name",
        "record",
        "options",
        "positionals",
        "subcommands",
    )

    def __new__(cls, record, /, *, field=None, parent=None, stack=(), inherited=frozenset()):
        if record in stack:
            raise MetadataError(f"subcommand cycle through {record.__name__}")

        self = super().__new__(cls)
        self._name = field.subcommand if field is not None else ""
        self._record = record
        self._field = field
        self._parent = parent

        options, positionals, subcommands = [], [], []
        for compiled in map(FieldSpec, fields(record)):
            if compiled.subcommand is not None:
                subcommands.append(compiled)
            elif compiled.positional:
                positionals.append(compiled)
            else:
                options.append(compiled)

        _sanitize_options(cls, options, inherited)
        _sanitize_positionals(cls, positionals)

        self._options = tuple(options)
        self._positionals = tuple(positionals)
        self._subcommands = {}

        names = inherited | {"-" + option.short for option in options if option.short is not None}
        names |= {"--" + option.long for option in options if option.long is not None}
        for compiled in subcommands:
            if (key := compiled.subcommand.lower()) in self._subcommands:
                raise MetadataError(f"duplicate subcommand name (case-insensitive): {compiled.subcommand}")
            self._subcommands[key] = CommandSpec(
                compiled.info.target,
                field=compiled,
                parent=self,
                stack=(*stack, record),
                inherited=names,
            )
        return self

    @property
    def path(self):
        path = []
        node = self
        while node is not None:
            path.insert(0, node)
            node = node._parent
        return tuple(path)

    @property
    def help(self):
        return self._field.help if self._field is not None else None

    def find(self, name, /):
        """
        Return the child command matching name (exact first, then case-insensitive) or None.
        """
        for child in self._subcommands.values():
            if child.name == name:
                return child
        return self._subcommands.get(name.lower())

    def owns(self, name, /):
        """
        Return the option FieldSpec declared here for a dashed name ("-v", "--verbose") or None.
        """
        for option in self._options:
            if name == "--" + (option.long or "") or name == "-" + (option.short or ""):
                return option
        return None


def _sanitize_options(cls, options, inherited, /):
    seen = set()
    for option in options:
        for name in ("-" + option.short if option.short is not None else None,
                     "--" + option.long if option.long is not None else None):
            if name is None:
                continue
            if name in seen:
                raise MetadataError(f"duplicate option name: {name}")
            if name in inherited:
                raise MetadataError(f"option {name} is already defined by a parent command")
            seen.add(name)


def _sanitize_positionals(cls, positionals, /):
    for index, positional in enumerate(positionals):
        if positional.category == "list" and index != len(positionals) - 1:
            raise MetadataError(f"list positional {positional.display} must be the last positional")


@functools.cache
def _extract(record, /):
    return CommandSpec(record)


def extract(record, /):
    """
    Return the CommandSpec tree of a record type (or of the type of a record instance).

    Trees are built once per record type and shared read-only afterwards.
    """
    if not isinstance(record, RecordType):
        record = type(record)
    if not isinstance(record, RecordType):
        raise MetadataError("extract() argument must be a record or a record type")
    return _extract(record)


__all__ = (
    "Discipline",
    "FieldSpec",
    "CommandSpec",
    "extract",
)
