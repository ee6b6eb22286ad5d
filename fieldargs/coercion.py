"""
fieldargs type coercion.

Scope
- classify(annotation): map a field annotation to a TypeInfo
  (category, width, element, target, optional).
- convert(text, info): text → value for one scalar category; raises ValueError with a reason.
- coerce(text, field): convert + bounds checks for a compiled field; raises InvalidValueError
  with the canonical "invalid argument for <name>: <reason>" detail.

Categories
- bool, int (width 8/16/32/64), uint (width 8/16/32/64), float (width 32/64), str,
  list (of a scalar or user category), record (subcommand target), user (__unmarshal__).

Width aliases
- int8, int16, int32, int64, uint, uint8, uint16, uint32, uint64, float32, float64
  are typing.Annotated aliases; plain int is int64 and plain float is float64.

User types
- A class exposing __unmarshal__ is a user type. A classmethod/staticmethod form returns the
  value; an instance method form is called on a fresh (uninitialized) instance which then
  becomes the value.
"""
import collections
import inspect
import math
import re
import types
import typing

from .faults import InvalidValueError, MetadataError
from .records import RecordType

Kind = collections.namedtuple("Kind", ("category", "width"))
TypeInfo = collections.namedtuple("TypeInfo", ("category", "width", "element", "target", "optional"))

int8 = typing.Annotated[int, Kind("int", 8)]
int16 = typing.Annotated[int, Kind("int", 16)]
int32 = typing.Annotated[int, Kind("int", 32)]
int64 = typing.Annotated[int, Kind("int", 64)]
uint = typing.Annotated[int, Kind("uint", 64)]
uint8 = typing.Annotated[int, Kind("uint", 8)]
uint16 = typing.Annotated[int, Kind("uint", 16)]
uint32 = typing.Annotated[int, Kind("uint", 32)]
uint64 = typing.Annotated[int, Kind("uint", 64)]
float32 = typing.Annotated[float, Kind("float", 32)]
float64 = typing.Annotated[float, Kind("float", 64)]

_FLOAT32_MAX = 3.4028234663852886e38

_TRUTHY = frozenset(("1", "t", "true", "yes", "on"))
_FALSY = frozenset(("0", "f", "false", "no", "off"))


def classify(annotation, /, *, optional=False):
    """
    Map an annotation to a TypeInfo; raises MetadataError for unsupported annotations.
    """
    kind = None
    if typing.get_origin(annotation) is typing.Annotated:
        kind = next((marker for marker in annotation.__metadata__ if isinstance(marker, Kind)), None)
        annotation = annotation.__origin__

    if typing.get_origin(annotation) in (typing.Union, types.UnionType):
        members = [member for member in typing.get_args(annotation) if member is not type(None)]
        if len(members) != 1 or len(members) == len(typing.get_args(annotation)) or optional:
            raise MetadataError(f"unsupported field type: {annotation!r}")
        return classify(members[0], optional=True)

    if kind is not None:
        if annotation is not (float if kind.category == "float" else int):
            raise MetadataError(f"width marker {kind!r} does not apply to {annotation!r}")
        return TypeInfo(kind.category, kind.width, None, annotation, optional)

    if annotation is bool:
        return TypeInfo("bool", None, None, bool, optional)
    if annotation is int:
        return TypeInfo("int", 64, None, int, optional)
    if annotation is float:
        return TypeInfo("float", 64, None, float, optional)
    if annotation is str:
        return TypeInfo("str", None, None, str, optional)

    if typing.get_origin(annotation) is list:
        match typing.get_args(annotation):
            case (element,):
                element = classify(element)
            case _:
                raise MetadataError(f"list field type must declare its element type: {annotation!r}")
        if element.category in ("list", "record") or element.optional:
            raise MetadataError(f"unsupported list element type: {annotation!r}")
        return TypeInfo("list", None, element, list, optional)
    if annotation is list:
        raise MetadataError("list field type must declare its element type: list")

    if isinstance(annotation, RecordType):
        return TypeInfo("record", None, None, annotation, optional)
    if isinstance(annotation, type) and hasattr(annotation, "__unmarshal__"):
        return TypeInfo("user", None, None, annotation, optional)

    raise MetadataError(f"unsupported field type: {annotation!r}")


def _integer(text, info):
    if not re.fullmatch(r"[+-]?[0-9]+" if info.category == "int" else r"\+?[0-9]+", text):
        if info.category == "uint" and re.fullmatch(r"-[0-9]+", text):
            raise ValueError(f"negative value {text!r} for unsigned integer")
        raise ValueError(f"{text!r} is not a valid integer")
    value = int(text)
    if info.category == "int":
        low, high = -(1 << (info.width - 1)), (1 << (info.width - 1)) - 1
    else:
        low, high = 0, (1 << info.width) - 1
    if not low <= value <= high:
        raise ValueError(f"value {text} out of range for {info.category}{info.width}")
    return value


def _float(text, info):
    if text != text.strip() or "_" in text:
        raise ValueError(f"{text!r} is not a valid number")
    try:
        value = float(text)
    except ValueError:
        raise ValueError(f"{text!r} is not a valid number") from None
    if math.isinf(value) and text.lstrip("+-").lower() not in ("inf", "infinity"):
        raise ValueError(f"value {text} out of range for float{info.width}")
    if info.width == 32 and math.isfinite(value) and abs(value) > _FLOAT32_MAX:
        raise ValueError(f"value {text} out of range for float32")
    return value


def _boolean(text):
    if (lowered := text.lower()) in _TRUTHY:
        return True
    if lowered in _FALSY:
        return False
    raise ValueError(f"{text!r} is not a valid boolean")


def _unmarshal(text, target):
    if not hasattr(target, "__unmarshal__"):
        raise ValueError("type does not support textual unmarshaling")
    if isinstance(inspect.getattr_static(target, "__unmarshal__"), classmethod | staticmethod):
        return target.__unmarshal__(text)
    instance = target.__new__(target)
    instance.__unmarshal__(text)
    return instance


def convert(text, info, /):
    """
    Convert text to a value of the given TypeInfo; raises ValueError with a reason.

    For a list info, the result is a one-element list (one emission replaces the list).
    """
    if not isinstance(text, str):
        raise TypeError("convert() first argument must be a string")

    match info.category:
        case "bool":
            return _boolean(text)
        case "int" | "uint":
            return _integer(text, info)
        case "float":
            return _float(text, info)
        case "str":
            return text
        case "list":
            return [convert(text, info.element)]
        case "user":
            try:
                return _unmarshal(text, info.target)
            except (ValueError, TypeError) as error:
                raise ValueError(str(error) or "cannot unmarshal %r" % text) from None
        case _:
            raise ValueError("type does not support textual unmarshaling")


def _check_bounds(value, field):
    if isinstance(value, float) and math.isnan(value) and (field.min is not None or field.max is not None):
        raise ValueError("NaN is not comparable with bounds")
    if field.min is not None and value < field.min:
        raise ValueError(f"{value} is less than minimum {field.min}")
    if field.max is not None and value > field.max:
        raise ValueError(f"{value} is greater than maximum {field.max}")


def _check_lengths(value, field):
    if field.minlen is not None and len(value) < field.minlen:
        raise ValueError(f"length {len(value)} is less than minimum length {field.minlen}")
    if field.maxlen is not None and len(value) > field.maxlen:
        raise ValueError(f"length {len(value)} is greater than maximum length {field.maxlen}")


def coerce(text, field, /):
    """
    Convert text for a compiled field and enforce its bounds.

    - text None means "flag seen without argument" and is only valid for bool fields.
    - Failures raise InvalidValueError("invalid argument for <name>: <reason>").
    """
    try:
        if text is None:
            if field.info.category != "bool":
                raise ValueError("an argument is required")
            return True

        value = convert(text, field.info)
        for item in value if field.info.category == "list" else (value,):
            if isinstance(item, int | float) and not isinstance(item, bool):
                _check_bounds(item, field)
            elif isinstance(item, str):
                _check_lengths(item, field)
        return value
    except ValueError as error:
        raise InvalidValueError(
            f"invalid argument for {field.display}: {error}",
            option=field.display,
            field=field.name,
            value=text,
        ) from None


def parse_bound(text, info, name, /):
    """
    Interpret a bound attribute for a field category at extraction time.

    - min/max: integers for int/uint categories, floats for float (lists use their element).
    - minlen/maxlen: non-negative integers for str (lists use their element).
    """
    if text is None:
        return None
    if info.category == "list":
        info = info.element

    if name in ("min", "max"):
        if info.category not in ("int", "uint", "float"):
            raise MetadataError(f"'{name}' bound only applies to numeric fields")
        try:
            if info.category == "float":
                return _float(text, info)
            if not re.fullmatch(r"[+-]?[0-9]+", text):
                raise ValueError(text)
            return int(text)
        except ValueError:
            raise MetadataError(f"invalid '{name}' bound: {text!r}") from None

    if info.category != "str":
        raise MetadataError(f"'{name}' bound only applies to string fields")
    if not re.fullmatch(r"\+?[0-9]+", text):
        raise MetadataError(f"invalid '{name}' bound: {text!r}")
    return int(text)


__all__ = (
    "int8",
    "int16",
    "int32",
    "int64",
    "uint",
    "uint8",
    "uint16",
    "uint32",
    "uint64",
    "float32",
    "float64",
    "classify",
    "convert",
    "coerce",
    "TypeInfo",
)
