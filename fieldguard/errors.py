"""
Decode failure classification and the error type that carries reports.
"""

from dataclasses import dataclass
from enum import Enum
from typing import Any, Optional
from .value import TargetKind

class DecodeFailureKind(Enum):
    """
    Classification of a failed decode attempt.
    """

    MISSING_KEY = 'missing key'
    NULL_VALUE = 'required value is null'
    TYPE_MISMATCH = 'type mismatch'
    LIST_ITEM_MISMATCH = 'invalid list item'
    NOT_A_LIST = 'value is not a list'
    NOT_AN_OBJECT = 'value is not an object'
    UNPARSABLE_FORMAT = 'unrecognized format'

@dataclass(frozen=True)
class FieldContext:
    """
    Context of a single decode attempt of a field.
    """

    key: str
    raw_value: Any
    target_label: str
    target_kind: TargetKind

@dataclass(frozen=True)
class FieldHint:
    """
    Optional additional description of a field for use in reports.
    """

    description: Optional[str] = None
    expected_format: Optional[str] = None
    common_values: tuple[str, ...] = ()

class DecodeError(ValueError):
    """
    A JSON value could not be decoded. The message of the error is the entire
    diagnostic report.
    """

    def __init__(self, report: str, kind: DecodeFailureKind,
                 context: FieldContext) -> None:
        super().__init__(report)
        self.report = report
        self.kind = kind
        self.context = context

    def __str__(self) -> str:
        return self.report
