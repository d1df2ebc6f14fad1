"""
Lenient conversions of raw JSON values to common scalar types.
"""

from collections.abc import Callable
from datetime import datetime, timezone
import math
from typing import Any
import dateutil.parser
from .value import JsonKind, TargetKind, kind_of

MILLISECONDS_BOUNDARY = 1_000_000_000_000

TRUE_VALUES = ('true', '1', 'yes')
FALSE_VALUES = ('false', '0', 'no')

BOOL_SPELLINGS = (
    'true, 1, "1", "true", "TRUE", "yes", "YES"',
    'false, 0, "0", "false", "FALSE", "no", "NO"'
)
DATETIME_FORMATS = (
    '"2023-10-27T10:30:00Z" (ISO 8601 string)',
    '"2023-10-27 10:30:00" (ISO 8601 with a space separator)',
    '1698402600 (Unix timestamp in seconds)',
    '1698402600000 (Unix timestamp in milliseconds)'
)

class CoercionError(ValueError):
    """
    A value has a format that a lenient conversion does not recognize.
    """

    def __init__(self, value: Any, kind: TargetKind,
                 accepted: tuple[str, ...]) -> None:
        super().__init__(f"Cannot convert {value!r} "
                         f"({type(value).__name__}) to {kind.value}")
        self.value = value
        self.kind = kind
        self.accepted = accepted

def to_str(value: Any) -> str:
    """
    Accept only text values.
    """

    if kind_of(value) != JsonKind.STRING:
        raise TypeError(f'Expected str, got {type(value).__name__}')
    return str(value)

def to_int(value: Any) -> int:
    """
    Convert a JSON number to an integer. Decimal numbers are truncated toward
    zero, so that for example `99.0` becomes `99`.
    """

    kind = kind_of(value)
    if kind == JsonKind.INTEGER:
        return int(value)
    if kind == JsonKind.FLOAT:
        if not math.isfinite(value):
            raise ValueError(f'Cannot convert non-finite number {value} to int')
        return int(value)
    raise TypeError(f'Expected a number, got {type(value).__name__}')

def to_float(value: Any) -> float:
    """
    Convert a JSON number to a floating point number.
    """

    if kind_of(value) in (JsonKind.INTEGER, JsonKind.FLOAT):
        return float(value)
    raise TypeError(f'Expected a number, got {type(value).__name__}')

def to_bool(value: Any) -> bool:
    """
    Convert a JSON value to a boolean. Besides literal booleans, integers are
    true when nonzero and the strings "true", "1", "yes", "false", "0" and
    "no" are accepted regardless of letter case.
    """

    kind = kind_of(value)
    if kind == JsonKind.BOOLEAN:
        return bool(value)
    if kind == JsonKind.INTEGER:
        return value != 0
    if kind == JsonKind.STRING:
        lower = value.lower()
        if lower in TRUE_VALUES:
            return True
        if lower in FALSE_VALUES:
            return False
    raise CoercionError(value, TargetKind.BOOL, BOOL_SPELLINGS)

def to_datetime(value: Any) -> datetime:
    """
    Convert a JSON value to a date and time. Accepts ISO 8601 strings and
    Unix timestamps, which are in milliseconds when their magnitude is larger
    than `MILLISECONDS_BOUNDARY` and in seconds otherwise. Timestamps result in
    a timezone-aware datetime in UTC.
    """

    kind = kind_of(value)
    if kind == JsonKind.DATETIME:
        return value
    if kind == JsonKind.STRING:
        try:
            return dateutil.parser.isoparse(value)
        except (ValueError, OverflowError) as error:
            raise CoercionError(value, TargetKind.DATETIME,
                                DATETIME_FORMATS) from error
    if kind == JsonKind.INTEGER:
        seconds = value / 1000 if abs(value) > MILLISECONDS_BOUNDARY \
            else value
        try:
            return datetime.fromtimestamp(seconds, tz=timezone.utc)
        except (ValueError, OverflowError, OSError) as error:
            raise CoercionError(value, TargetKind.DATETIME,
                                DATETIME_FORMATS) from error
    raise CoercionError(value, TargetKind.DATETIME, DATETIME_FORMATS)

COERCERS: dict[TargetKind, Callable[[Any], Any]] = {
    TargetKind.STRING: to_str,
    TargetKind.INT: to_int,
    TargetKind.DOUBLE: to_float,
    TargetKind.BOOL: to_bool,
    TargetKind.DATETIME: to_datetime
}
