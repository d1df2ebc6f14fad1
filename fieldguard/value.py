"""
Classification of raw JSON values and of decode targets.
"""

from collections.abc import Mapping, Sequence
from datetime import datetime
from enum import Enum
from typing import Any, Union, get_args, get_origin
import dataclasses
import types

class TargetKind(Enum):
    """
    Runtime kind of the value that a decode attempt should produce.
    """

    INT = 'int'
    DOUBLE = 'double'
    BOOL = 'bool'
    STRING = 'string'
    DATETIME = 'datetime'
    LIST = 'list'
    OBJECT = 'object'
    OTHER = 'other'

class JsonKind(Enum):
    """
    Tag of a raw JSON value as produced by a JSON parser.
    """

    NULL = 'null'
    BOOLEAN = 'boolean'
    INTEGER = 'integer'
    FLOAT = 'float'
    STRING = 'string'
    LIST = 'list'
    OBJECT = 'object'
    DATETIME = 'datetime'
    OTHER = 'other'

    @property
    def target(self) -> TargetKind:
        """
        The target kind that a value with this tag would satisfy without any
        conversion.
        """

        return _TARGETS[self]

_TARGETS = {
    JsonKind.NULL: TargetKind.OTHER,
    JsonKind.BOOLEAN: TargetKind.BOOL,
    JsonKind.INTEGER: TargetKind.INT,
    JsonKind.FLOAT: TargetKind.DOUBLE,
    JsonKind.STRING: TargetKind.STRING,
    JsonKind.LIST: TargetKind.LIST,
    JsonKind.OBJECT: TargetKind.OBJECT,
    JsonKind.DATETIME: TargetKind.DATETIME,
    JsonKind.OTHER: TargetKind.OTHER
}

def kind_of(value: Any) -> JsonKind:
    """
    Determine the tag of a raw JSON `value`.
    """

    if value is None:
        return JsonKind.NULL
    # Booleans are integers in Python, so they must be checked first
    if isinstance(value, bool):
        return JsonKind.BOOLEAN
    if isinstance(value, int):
        return JsonKind.INTEGER
    if isinstance(value, float):
        return JsonKind.FLOAT
    if isinstance(value, str):
        return JsonKind.STRING
    if isinstance(value, list):
        return JsonKind.LIST
    if isinstance(value, Mapping):
        return JsonKind.OBJECT
    if isinstance(value, datetime):
        return JsonKind.DATETIME
    return JsonKind.OTHER

_SCALARS: dict[Any, TargetKind] = {
    bool: TargetKind.BOOL,
    int: TargetKind.INT,
    float: TargetKind.DOUBLE,
    str: TargetKind.STRING,
    datetime: TargetKind.DATETIME
}

def strip_optional(target: Any) -> tuple[Any, bool]:
    """
    Remove `None` from a union type annotation. Returns the remaining type and
    whether the annotation allowed `None`.
    """

    origin = get_origin(target)
    if origin is Union or origin is types.UnionType:
        args = tuple(arg for arg in get_args(target) if arg is not type(None))
        nullable = len(args) < len(get_args(target))
        if len(args) == 1:
            return args[0], nullable
        return Union[args], nullable # type: ignore[return-value]
    return target, False

def target_kind(target: Any) -> TargetKind:
    """
    Determine the kind of a decode `target`, which is a Python type or
    a typing construct such as `list[int]` or `Optional[str]`.
    """

    target = strip_optional(target)[0]
    if target in _SCALARS:
        return _SCALARS[target]

    origin = get_origin(target)
    if origin is not None:
        target = origin
    if isinstance(target, type):
        if issubclass(target, (str, bytes)):
            return TargetKind.OTHER
        if issubclass(target, Mapping) or dataclasses.is_dataclass(target):
            return TargetKind.OBJECT
        if issubclass(target, Sequence):
            return TargetKind.LIST
    return TargetKind.OTHER
