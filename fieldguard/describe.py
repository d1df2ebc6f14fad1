"""
Human-readable descriptions of decode targets and raw JSON values.
"""

from typing import Any
from .value import JsonKind, TargetKind, kind_of, strip_optional, target_kind

_LABELS = {
    TargetKind.INT: 'a whole number (like 42)',
    TargetKind.DOUBLE: 'a decimal number (like 3.14)',
    TargetKind.STRING: "text (like 'hello')",
    TargetKind.BOOL: 'true or false',
    TargetKind.DATETIME: 'a date/time',
    TargetKind.LIST: 'a list of items',
    TargetKind.OBJECT: 'an object with keys and values'
}

_EXPLANATIONS = {
    TargetKind.INT: 'a whole number (no decimal point)',
    TargetKind.DOUBLE: 'a number that can have a decimal point',
    TargetKind.STRING: 'text wrapped in quotes',
    TargetKind.BOOL: 'either true or false',
    TargetKind.DATETIME: 'a date and time',
    TargetKind.LIST: 'a list (array) of items',
    TargetKind.OBJECT: 'an object (mapping) of keys to values'
}

def type_name(target: Any) -> str:
    """
    Retrieve a short name of a Python type or typing construct.
    """

    if isinstance(target, type):
        return target.__name__
    return str(target).replace('typing.', '')

def kind_label(kind: TargetKind, fallback: str = 'another type') -> str:
    """
    Retrieve the label of a target kind, for example 'a whole number (like
    42)'. Kinds without a label use the `fallback` text.
    """

    return _LABELS.get(kind, fallback)

def kind_explanation(kind: TargetKind, fallback: str = 'another type') -> str:
    """
    Retrieve a longer explanation of what values of a target kind look like.
    """

    return _EXPLANATIONS.get(kind, f'a {fallback}')

def target_label(target: Any) -> str:
    """
    Retrieve the label of a decode target type. Types that do not correspond
    to a known kind are described by their type name.
    """

    if target is None:
        return 'the expected type'
    kind = target_kind(target)
    return kind_label(kind, fallback=type_name(strip_optional(target)[0]))

def value_label(value: Any) -> str:
    """
    Retrieve the label of the kind of a raw JSON value.
    """

    kind = kind_of(value)
    if kind == JsonKind.NULL:
        return 'nothing (null)'
    return kind_label(kind.target, fallback=type(value).__name__)

def value_explanation(value: Any) -> str:
    """
    Describe a raw JSON value in plain language, including the value itself.
    """

    kind = kind_of(value)
    if kind == JsonKind.STRING:
        return f"text: '{value}'"
    if kind == JsonKind.INTEGER:
        return f'a whole number: {value}'
    if kind == JsonKind.FLOAT:
        return f'a decimal number: {value}'
    if kind == JsonKind.BOOLEAN:
        return f'true/false: {str(value).lower()}'
    if kind == JsonKind.LIST:
        return f'a list with {len(value)} items'
    if kind == JsonKind.OBJECT:
        return f'an object with {len(value)} keys'
    if kind == JsonKind.NULL:
        return 'nothing (null)'
    return f'a {type(value).__name__}: {value}'
