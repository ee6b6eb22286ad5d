"""
fieldargs value resolution after the command line has been consumed.

For one command and its record, in order (the parser calls it for the deepest command first):
1. environment fallback (unless ignore_env): option fields with an env variable, not set
   on the command line and still zero, take the coerced variable value; list fields split
   the variable as CSV.
2. defaults (unless ignore_default): fields with a default still zero take the coerced default.
3. required: a required field must have been set (command line or environment) or be non-zero,
   otherwise MissingRequiredError("<name> is required").
4. exclusivity: at most one field of each exclusive group may be set by command line or
   environment, otherwise ConflictingOptionsError.
"""
import csv
import logging

from .coercion import coerce
from .faults import ConflictingOptionsError, InvalidValueError, MissingRequiredError
from .records import zero

logger = logging.getLogger(__name__)


def _is_zero(value, field):
    if value is None:
        return True
    return type(value) is type(initial := zero(field.annotation)) and value == initial


def _from_env(text, field):
    if field.category != "list":
        return coerce(text, field)
    values = []
    for item in next(csv.reader([text]), []):
        values.extend(coerce(item, field))
    return values


def resolve(command, record, touched, /, *, getenv, ignore_env=False, ignore_default=False):
    """
    Apply environment fallback, defaults, required checks and exclusivity to one record.

    - touched: names of the fields set from the command line in this record.
    - getenv: lookup function returning the variable text or None.
    Returns the names of the fields set from the environment.
    """
    environ = set()
    fields = (*command.options, *command.positionals)

    if not ignore_env:
        for field in command.options:
            if field.env is None or field.name in touched or not _is_zero(getattr(record, field.name), field):
                continue
            if (text := getenv(field.env)) is None:
                continue
            logger.debug("%s taken from environment variable %s", field.display, field.env)
            try:
                setattr(record, field.name, _from_env(text, field))
            except InvalidValueError as error:
                raise InvalidValueError(
                    f"{error.message} (from environment variable {field.env})",
                    **{**error.options, "env": field.env},
                ) from None
            environ.add(field.name)

    if not ignore_default:
        for field in fields:
            if field.default is None or field.name in touched or field.name in environ:
                continue
            if _is_zero(getattr(record, field.name), field):
                logger.debug("%s takes its default %r", field.display, field.default)
                setattr(record, field.name, coerce(field.default, field))

    for field in fields:
        if not field.required or field.name in touched or field.name in environ:
            continue
        if _is_zero(getattr(record, field.name), field):
            raise MissingRequiredError(
                f"{field.display} is required",
                option=field.display,
                field=field.name,
                hint=f"set it with the {field.env} environment variable" if field.env else None,
            )

    groups = {}
    for field in fields:
        if field.exclusive is not None and (field.name in touched or field.name in environ):
            groups.setdefault(field.exclusive, []).append(field)
    for group, members in groups.items():
        if len(members) > 1:
            raise ConflictingOptionsError(
                f"{members[0].display} and {members[1].display} are mutually exclusive",
                group=group,
                options=tuple(member.display for member in members),
            )

    return environ


__all__ = (
    "resolve",
)
