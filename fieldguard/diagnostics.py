"""
Assembly of diagnostic reports for failed decode attempts.

A report consists of a fixed header line and a number of sections. Which
sections are present depends only on the kind of failure:

- DIAGNOSIS: always, restates the failure in structured form.
- COMPARISON: type mismatches and unrecognized formats, compares the expected
  type with the actual value.
- SUGGESTIONS: missing keys, lists similar keys or explains a naming
  convention mismatch.
- HOW TO FIX: always, with fixes specific to the expected and actual types.
- TECHNICAL DETAILS: the underlying error, if there is one.

Reports are built from the arguments only, so the same input always produces
the same text.
"""

from collections.abc import Callable, Sequence
from typing import Any, Optional
from .coercion import DATETIME_FORMATS
from .describe import kind_explanation, kind_label, value_explanation, \
    value_label
from .errors import DecodeFailureKind, FieldContext, FieldHint
from .similarity import find_case_match, find_convention_match, \
    find_similar_keys, naming_style
from .value import TargetKind, kind_of

HEADER = 'JSON DECODE ERROR: the data does not have the shape the model ' \
    'expects.'

Lines = list[str]
Template = Callable[[FieldContext], Lines]

class Report:
    """
    Builder of the text of a diagnostic report.
    """

    def __init__(self) -> None:
        self._lines: Lines = [HEADER]

    def section(self, title: str, lines: Sequence[str]) -> None:
        """
        Add a section with a `title` and indented `lines`. Sections without any
        lines are left out.
        """

        if not lines:
            return

        self._lines.extend(('', title))
        self._lines.extend(f'  {line}' if line else '' for line in lines)

    def __str__(self) -> str:
        return '\n'.join(self._lines)

def _join(keys: Sequence[str]) -> str:
    return ', '.join(keys) if keys else '(none)'

def _quoted(keys: Sequence[str]) -> str:
    return ', '.join(f"'{key}'" for key in keys)

def _attempt(convert: Callable[[Any], Any], value: Any) -> str:
    try:
        return repr(convert(value))
    except (TypeError, ValueError, OverflowError):
        return 'an error'

def _diagnosis(kind: DecodeFailureKind, context: FieldContext,
               missing_keys: Sequence[str], available_keys: Sequence[str],
               index: Optional[int], item: Any) -> Lines:
    missing = kind == DecodeFailureKind.MISSING_KEY
    lines = [f'Problem: {kind.value}']
    if len(missing_keys) > 1:
        lines.append(f'Fields: {_quoted(missing_keys)}')
    else:
        lines.append(f"Field: '{context.key}'")
    lines.extend([
        f"Exists in JSON: {'no' if missing else 'yes'}",
        f"Name matches: {'no' if missing else 'yes'}",
        'Type matches: no'
    ])

    if missing:
        lines.append(f'Available keys: {_join(available_keys)}')
    elif kind == DecodeFailureKind.NULL_VALUE:
        lines.append('Value: null')
    elif kind in (DecodeFailureKind.NOT_A_LIST,
                  DecodeFailureKind.NOT_AN_OBJECT):
        lines.extend([
            f'Expected: {context.target_label}',
            f'Found: {value_label(context.raw_value)}',
            f'Value: {context.raw_value}'
        ])
    elif kind == DecodeFailureKind.LIST_ITEM_MISMATCH:
        lines.extend([
            f'Index: {index}',
            f'Item value: {item}',
            f'Item type: {value_label(item)}',
            f'Expected item type: {context.target_label}',
            f'Full list: {context.raw_value}'
        ])

    return lines

def _comparison(context: FieldContext, hint: Optional[FieldHint]) -> Lines:
    lines = [
        f'Expected: {context.target_label}',
        f'Actual: {value_label(context.raw_value)}',
        f'Value: {context.raw_value}',
        f"Meaning: the model expects '{context.key}' to be "
        f"{kind_explanation(context.target_kind, context.target_label)}, but "
        f"the data contains {value_explanation(context.raw_value)}"
    ]
    if hint is not None:
        if hint.description is not None:
            lines.append(f'Field description: {hint.description}')
        if hint.expected_format is not None:
            lines.append(f'Expected format: {hint.expected_format}')
        if hint.common_values:
            values = ', '.join(hint.common_values)
            lines.append(f'Common valid values: {values}')

    return lines

def _key_suggestions(key: str, available_keys: Sequence[str]) -> Lines:
    convention = find_convention_match(key, available_keys)
    if convention is not None:
        return [
            'Likely cause: naming convention mismatch',
            f"The model uses '{key}' ({naming_style(key)})",
            f"The data uses '{convention}' ({naming_style(convention)})"
        ]

    lines: Lines = []
    case = find_case_match(key, available_keys)
    similar = find_similar_keys(key, available_keys)
    if case is not None:
        lines.extend([
            'Likely cause: letter case mismatch',
            f"The data uses '{case}' with different capitalization"
        ])
    elif similar:
        lines.append('Likely cause: the key was renamed, shortened or '
                     'misspelled')
    else:
        lines.append('Likely cause: the key is absent from the data or was '
                     'renamed')

    lines.extend(f"Did you mean '{suggestion}'?" for suggestion in similar)
    return lines

def _batch_suggestions(missing_keys: Sequence[str],
                       available_keys: Sequence[str]) -> Lines:
    lines: Lines = []
    for key in missing_keys:
        convention = find_convention_match(key, available_keys)
        similar = find_similar_keys(key, available_keys)
        if convention is not None:
            lines.append(f"'{key}': naming convention mismatch, the data uses "
                         f"'{convention}'")
        elif similar:
            lines.append(f"'{key}': did you mean {_quoted(similar)}?")
        else:
            lines.append(f"'{key}': no similar keys")

    return lines

def _fix_int_from_string(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    return [
        f"1. Convert the text to a number: int('{value}') gives "
        f"{_attempt(int, value)}",
        f"2. Use a converting accessor: obj.get_value('{key}', int)",
        f"3. Ask the data source to send a number instead of '{value}'",
        f"Model field: {key}: int = json_field(parser=int)"
    ]

def _fix_double_from_string(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    return [
        f"1. Convert the text to a decimal number: float('{value}') gives "
        f"{_attempt(float, value)}",
        f"2. Use a converting accessor: obj.get_value('{key}', float)",
        f"3. Ask the data source to send a decimal number instead of '{value}'",
        f"Model field: {key}: float = json_field(parser=float)"
    ]

def _fix_bool_from_int(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    return [
        f'1. Compare the number: {value} != 0 gives {value != 0} '
        '(1 means true, 0 means false)',
        '2. Use the coercing accessor, which handles 0/1: '
        f"obj.get_bool('{key}')",
        f'3. Ask the data source to send true/false instead of {value}'
    ]

def _fix_bool_from_string(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    return [
        f"1. Compare the text: '{value}'.lower() == 'true'",
        f"2. Use the coercing accessor: obj.get_bool('{key}') accepts "
        "'true'/'false', 'yes'/'no' and '1'/'0'",
        f"3. Ask the data source to send true/false instead of '{value}'"
    ]

def _fix_datetime_from_string(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    lines = [
        f"1. Parse the text: dateutil.parser.isoparse('{value}')",
        f"2. Use the coercing accessor: obj.get_datetime('{key}'), which "
        'accepts:'
    ]
    lines.extend(f'   - {accepted}' for accepted in DATETIME_FORMATS)
    lines.append('3. Ask the data source which date format it uses')
    return lines

def _fix_string_from_number(context: FieldContext) -> Lines:
    key = context.key
    value = context.raw_value
    return [
        f"1. Convert the number to text: str({value}) gives '{value}'",
        f"2. Use a converting accessor: obj.get_value('{key}', str)",
        f'3. Ask the data source to send text instead of {value}'
    ]

def _fix_generic(context: FieldContext) -> Lines:
    key = context.key
    return [
        f"1. Check whether '{key}' should really be {context.target_label}",
        '2. Write a custom converter: '
        f"obj.get_value('{key}', lambda value: ...)",
        '3. Confirm the expected shape of the data with its source'
    ]

TEMPLATES: dict[tuple[TargetKind, TargetKind], Template] = {
    (TargetKind.INT, TargetKind.STRING): _fix_int_from_string,
    (TargetKind.DOUBLE, TargetKind.STRING): _fix_double_from_string,
    (TargetKind.BOOL, TargetKind.INT): _fix_bool_from_int,
    (TargetKind.BOOL, TargetKind.STRING): _fix_bool_from_string,
    (TargetKind.DATETIME, TargetKind.STRING): _fix_datetime_from_string,
    (TargetKind.STRING, TargetKind.INT): _fix_string_from_number,
    (TargetKind.STRING, TargetKind.DOUBLE): _fix_string_from_number
}

def _fix_mismatch(context: FieldContext) -> Lines:
    actual = kind_of(context.raw_value).target
    template = TEMPLATES.get((context.target_kind, actual), _fix_generic)
    return template(context)

def _fix_unparsable(context: FieldContext, accepted: Sequence[str]) -> Lines:
    key = context.key
    lines = [f'Accepted values for {kind_label(context.target_kind)}:']
    lines.extend(f'   - {value}' for value in accepted)
    lines.extend([
        f"1. Change the value of '{key}' in the data to an accepted value",
        '2. Write a custom converter: '
        f"obj.get_value('{key}', lambda value: ...)",
        '3. Ask the data source which format it uses'
    ])
    return lines

def _fix_missing(key: str, available_keys: Sequence[str]) -> Lines:
    convention = find_convention_match(key, available_keys)
    if convention is not None:
        return [
            '1. Map the model field to the key in the data: '
            f"{key} = json_field(name='{convention}')",
            '2. Or read the key that the data uses: '
            f"obj.get_value('{convention}', convert)",
            f"3. Or rename the model field to '{convention}'"
        ]

    lines = [
        f"1. Check the spelling and capitalization of '{key}'",
        '2. Compare with the available keys listed above',
        '3. If the field is optional, use a nullable accessor: '
        f"obj.get_nullable_value('{key}', convert)"
    ]
    similar = find_case_match(key, available_keys)
    if similar is None:
        similar = next(iter(find_similar_keys(key, available_keys)), None)
    if similar is not None:
        lines.append('4. Or use the most similar key: '
                     f"{key} = json_field(name='{similar}')")
    return lines

def _fix_batch(missing_keys: Sequence[str]) -> Lines:
    return [
        '1. Check the spelling and capitalization of each missing key',
        '2. Compare with the available keys listed above',
        '3. Ask the data source whether these keys should exist',
        f'4. Remove optional keys ({_join(missing_keys)}) from the required '
        'keys and read them with a nullable accessor'
    ]

def _fix_null(context: FieldContext) -> Lines:
    key = context.key
    return [
        '1. If the field is optional, use a nullable accessor: '
        f"obj.get_nullable_value('{key}', convert)",
        f'2. Declare the model field as Optional: {key}: Optional[...] = None',
        f"3. Ask the data source to always send a value for '{key}'"
    ]

def _fix_not_a_list(context: FieldContext) -> Lines:
    key = context.key
    return [
        f"1. Check whether '{key}' should really be a list",
        '2. If the data sends a single item, wrap it: '
        f"obj.get_value('{key}', lambda value: [value])",
        '3. Confirm the expected shape of the data with its source'
    ]

def _fix_not_an_object(context: FieldContext) -> Lines:
    key = context.key
    return [
        f"1. Check whether '{key}' should really be a nested object",
        '2. If the data sends a plain value, read it with a converter: '
        f"obj.get_value('{key}', convert)",
        '3. Confirm the expected shape of the data with its source'
    ]

def _fix_list_item(context: FieldContext, index: Optional[int]) -> Lines:
    key = context.key
    return [
        f'1. Fix or remove the item at index {index} in the data',
        '2. Use an item converter that accepts this value: '
        f"obj.get_list('{key}', convert)",
        '3. Decoding stops at the first invalid item, so later items are not '
        'checked yet'
    ]

def _technical(cause: Optional[BaseException]) -> Lines:
    if cause is None:
        return []

    message = str(cause).splitlines() or ['']
    lines = [f'Original error: {type(cause).__name__}: {message[0]}']
    lines.extend(f'  {line}' if line else '' for line in message[1:])
    return lines

def build_report(kind: DecodeFailureKind, context: FieldContext, *,
                 cause: Optional[BaseException] = None,
                 available_keys: Sequence[str] = (),
                 missing_keys: Sequence[str] = (),
                 index: Optional[int] = None, item: Any = None,
                 accepted: Sequence[str] = (),
                 hint: Optional[FieldHint] = None) -> str:
    """
    Build the text of a diagnostic report for a failure of the given `kind`.

    The `context` describes the field and the raw value. Depending on the kind,
    additional arguments are used: `available_keys` and `missing_keys` for
    missing keys, `index` and `item` for list items, `accepted` for values of
    an unrecognized format and `hint` for type comparisons. The `cause` is the
    underlying error of the conversion, if any.
    """

    report = Report()
    report.section('DIAGNOSIS', _diagnosis(kind, context, missing_keys,
                                           available_keys, index, item))

    if kind in (DecodeFailureKind.TYPE_MISMATCH,
                DecodeFailureKind.UNPARSABLE_FORMAT):
        report.section('COMPARISON', _comparison(context, hint))

    if kind == DecodeFailureKind.MISSING_KEY:
        if len(missing_keys) > 1:
            report.section('SUGGESTIONS',
                           _batch_suggestions(missing_keys, available_keys))
            fixes = _fix_batch(missing_keys)
        else:
            report.section('SUGGESTIONS',
                           _key_suggestions(context.key, available_keys))
            fixes = _fix_missing(context.key, available_keys)
    elif kind == DecodeFailureKind.TYPE_MISMATCH:
        fixes = _fix_mismatch(context)
    elif kind == DecodeFailureKind.UNPARSABLE_FORMAT:
        fixes = _fix_unparsable(context, accepted)
    elif kind == DecodeFailureKind.NULL_VALUE:
        fixes = _fix_null(context)
    elif kind == DecodeFailureKind.NOT_A_LIST:
        fixes = _fix_not_a_list(context)
    elif kind == DecodeFailureKind.NOT_AN_OBJECT:
        fixes = _fix_not_an_object(context)
    else:
        fixes = _fix_list_item(context, index)

    report.section('HOW TO FIX', fixes)
    report.section('TECHNICAL DETAILS', _technical(cause))
    return str(report)
