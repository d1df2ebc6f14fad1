"""
Generation of model source code from a sample JSON object.
"""

from collections.abc import Mapping, Sequence
import keyword
import re
from typing import Any, Optional
from .similarity import to_pascal_case, to_snake_case
from .value import JsonKind, kind_of

_INVALID = re.compile(r'\W')

_TYPES = {
    JsonKind.NULL: 'Optional[Any]',
    JsonKind.BOOLEAN: 'bool',
    JsonKind.INTEGER: 'int',
    JsonKind.FLOAT: 'float',
    JsonKind.STRING: 'str',
    JsonKind.OBJECT: 'dict[str, Any]',
    JsonKind.DATETIME: 'datetime',
    JsonKind.OTHER: 'Any'
}

def python_type(value: Any) -> str:
    """
    Determine a type annotation for a sample JSON `value`. Lists are typed by
    their first item.
    """

    kind = kind_of(value)
    if kind == JsonKind.LIST:
        if not value:
            return 'list[Any]'
        return f'list[{python_type(value[0])}]'
    return _TYPES[kind]

def attribute_name(key: str) -> str:
    """
    Convert a JSON key to a Python attribute name in snake_case.
    """

    name = _INVALID.sub('_', to_snake_case(key))
    if not name or name[0].isdigit():
        name = f'_{name}'
    if keyword.iskeyword(name):
        name = f'{name}_'
    return name

def _unique(name: str, used: set[str]) -> str:
    unique = name
    suffix = 2
    while unique in used:
        unique = f'{name}_{suffix}'
        suffix += 1
    used.add(unique)
    return unique

def scaffold_model(class_name: str, data: Mapping[str, Any],
                   expected: Optional[Sequence[str]] = None) -> str:
    """
    Generate the source code of a dataclass model named `class_name` which
    has a field for each key of a sample JSON object `data`. Keys with null
    values become optional fields at the end of the model.

    If `expected` keys are given, then keys of the sample that are not
    expected also become optional fields, and expected keys that are absent
    from the sample are added as optional fields of any type. Keys whose
    attribute names collide receive a numeric suffix.
    """

    class_name = to_pascal_case(class_name)
    fields = list(data.items())
    if expected is not None:
        fields.extend((key, None) for key in dict.fromkeys(expected)
                      if key not in data)

    used: set[str] = set()
    required: list[str] = []
    optional: list[str] = []
    annotations: list[str] = []
    for key, value in fields:
        name = _unique(attribute_name(key), used)
        annotation = python_type(value)
        options = [f"name='{key}'"] if name != key else []
        if value is None or (expected is not None and key not in expected):
            if not annotation.startswith('Optional['):
                annotation = f'Optional[{annotation}]'
            options.append('default=None')
            optional.append(f'    {name}: {annotation} = '
                            f"json_field({', '.join(options)})")
        elif options:
            required.append(f'    {name}: {annotation} = '
                            f"json_field({', '.join(options)})")
        else:
            required.append(f'    {name}: {annotation}')
        annotations.append(annotation)

    names = ('Any', 'Optional')
    typing = [name for name in names
              if any(name in annotation for annotation in annotations)]
    lines = [
        '"""',
        f'{class_name} model generated from a JSON sample.',
        '"""',
        '',
        'from dataclasses import dataclass'
    ]
    if any('datetime' in annotation for annotation in annotations):
        lines.append('from datetime import datetime')
    if typing:
        lines.append(f"from typing import {', '.join(typing)}")
    imports = 'json_field, safe_json_parsing' \
        if any('json_field(' in line for line in required + optional) \
        else 'safe_json_parsing'
    lines.extend([
        f'from fieldguard import {imports}',
        '',
        '@dataclass',
        '@safe_json_parsing()',
        f'class {class_name}:',
        '    """',
        f'    {class_name} model.',
        '    """',
        ''
    ])
    lines.extend(required + optional or ['    pass'])
    lines.extend([
        '',
        f'# Decode with {class_name}.from_json_safe(data) to obtain detailed '
        'reports',
        '# of any mismatch between the data and the model.',
        ''
    ])
    return '\n'.join(lines)
