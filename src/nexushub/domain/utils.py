"""Domain layer utilities.

Conversion between document dataclasses and the plain JSON-compatible
dicts the stores persist.
"""

from collections.abc import Callable
from dataclasses import MISSING, fields, is_dataclass
from datetime import datetime, timezone
from enum import Enum
from types import NoneType, UnionType
from typing import Any, TypeVar, Union, cast, get_args, get_origin, get_type_hints

D = TypeVar("D")


def dict_to_dataclass(dc_type: type[D], values: dict[str, Any]) -> D:
    """Recursively build a dataclass instance from a nested dict.

    Args:
        dc_type: The dataclass type to build.
        values: The dict containing the data.

    Returns:
        An instance of dc_type populated with data from values.

    Note:
        - Fields in values that are not in dc_type are ignored.
        - All fields without defaults must be present in values.
        - Missing optional fields get the dataclass default.
        - ISO strings become aware datetimes, lists become tuples and raw
          values become enum members where the annotation asks for them.
    """

    if not is_dataclass(dc_type):
        raise TypeError(f"{dc_type} is not a dataclass type")
    type_hints = get_type_hints(dc_type)
    kwargs = {}
    for field in fields(dc_type):
        if not field.init:
            continue
        field_type = type_hints.get(field.name, field.type)
        if field.name in values:
            kwargs[field.name] = _coerce(field_type, values[field.name])
        elif field.default is not MISSING:
            kwargs[field.name] = field.default
        elif field.default_factory is not MISSING:
            factory = cast(Callable[[], Any], field.default_factory)
            kwargs[field.name] = factory()
        else:
            raise KeyError(f"Missing required field '{field.name}'")
    return cast(D, dc_type(**kwargs))


def dataclass_to_dict(obj: Any) -> dict[str, Any]:
    """Flatten a dataclass instance into JSON-compatible primitives."""
    if not is_dataclass(obj) or isinstance(obj, type):
        raise TypeError(f"{obj!r} is not a dataclass instance")
    return {f.name: to_primitive(getattr(obj, f.name)) for f in fields(obj)}


def parse_datetime(value: str | datetime) -> datetime:
    """Parse an ISO-8601 timestamp, assuming UTC when no offset is given."""
    if isinstance(value, str):
        value = datetime.fromisoformat(value.replace("Z", "+00:00"))
    if value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value.astimezone(timezone.utc)


def to_primitive(value: Any) -> Any:
    """Convert enums, datetimes, tuples and dataclasses to JSON primitives."""
    if is_dataclass(value) and not isinstance(value, type):
        return dataclass_to_dict(value)
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, datetime):
        return parse_datetime(value).isoformat(timespec="microseconds")
    if isinstance(value, (list, tuple)):
        return [to_primitive(v) for v in value]
    return value


def _coerce(field_type: Any, value: Any) -> Any:
    if value is None:
        return None
    target = _strip_optional(field_type)
    origin = get_origin(target)
    if origin is tuple:
        args = [a for a in get_args(target) if a is not Ellipsis]
        item_type = args[0] if args else Any
        return tuple(_coerce(item_type, v) for v in value)
    if is_dataclass(target) and isinstance(value, dict):
        return dict_to_dataclass(cast(type[Any], target), value)
    if isinstance(target, type) and issubclass(target, Enum):
        return target(value)
    if target is datetime:
        return parse_datetime(value)
    return value


def _strip_optional(field_type: Any) -> Any:
    origin = get_origin(field_type)
    if origin is Union or origin is UnionType:
        args = [arg for arg in get_args(field_type) if arg is not NoneType]
        if len(args) == 1:
            return args[0]
    return field_type
