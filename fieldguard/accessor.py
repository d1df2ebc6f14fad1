"""
Typed read access to JSON objects.
"""

from collections.abc import Callable, Iterator, Mapping, Sequence
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, TypeVar
from .coercion import to_bool, to_datetime, to_float, to_int, to_str
from .describe import kind_label
from .errors import DecodeError, DecodeFailureKind, FieldContext, FieldHint
from .guard import FieldGuard, create_context, failure, infer_target
from .scaffold import scaffold_model
from .similarity import find_similar_keys
from .value import TargetKind

T = TypeVar('T')

Factory = Callable[["JsonObject"], T]

__all__ = ["JsonObject", "PropertyMapping"]

@dataclass(frozen=True)
class PropertyMapping:
    """
    Comparison of the keys that a model expects with the keys of a JSON
    object.
    """

    expected: tuple[str, ...]
    matched: tuple[str, ...]
    missing: tuple[str, ...]
    extra: tuple[str, ...]

    @property
    def perfect(self) -> bool:
        """
        Whether the JSON object has exactly the expected keys.
        """

        return not self.missing and not self.extra

class JsonObject(Mapping[str, Any]):
    """
    Read-only view of a JSON object with typed accessors. Accessors raise
    a `DecodeError` with a diagnostic report if a value does not have the
    requested type, while nullable accessors return `None` if the key is
    missing or the value is null.
    """

    def __init__(self, data: Mapping[str, Any]) -> None:
        self._data = data

    @classmethod
    def of(cls, value: Any, key: str = '<root>') -> "JsonObject":
        """
        Wrap a raw JSON value, which must be an object. The `key` names the
        value in the report if it is not an object.
        """

        if isinstance(value, JsonObject):
            return value
        if not isinstance(value, Mapping):
            context = FieldContext(key=key, raw_value=value,
                                   target_label=kind_label(TargetKind.OBJECT),
                                   target_kind=TargetKind.OBJECT)
            raise failure(DecodeFailureKind.NOT_AN_OBJECT, context)

        return cls(value)

    def __getitem__(self, key: str) -> Any:
        return self._data[key]

    def __iter__(self) -> Iterator[str]:
        return iter(self._data)

    def __len__(self) -> int:
        return len(self._data)

    def __repr__(self) -> str:
        return f'JsonObject({self._data!r})'

    def _missing(self, key: str, target: Any) -> DecodeError:
        return failure(DecodeFailureKind.MISSING_KEY,
                       create_context(key, None, target),
                       available_keys=list(self._data))

    def _require(self, key: str, target: Any = None) -> Any:
        if key not in self._data:
            raise self._missing(key, target)
        return self._data[key]

    def get_value(self, key: str, convert: Callable[[Any], T],
                  target: Any = None) -> T:
        """
        Retrieve the value of a `key` converted with a `convert` function.
        The `target` type is used in reports and is inferred from the
        conversion function if it is not provided.
        """

        value = self._require(key, infer_target(convert, target))
        return FieldGuard.guard_not_null(key, value, convert, target=target)

    def get_nullable_value(self, key: str, convert: Callable[[Any], T],
                           target: Any = None) -> Optional[T]:
        """
        Retrieve the value of a `key` converted with a `convert` function, or
        `None` if the key is missing or its value is null.
        """

        value = self._data.get(key)
        if value is None:
            return None
        return FieldGuard.guard(key, value, convert, target=target)

    def get_with_context(self, key: str, convert: Callable[[Any], T],
                         description: Optional[str] = None,
                         expected_format: Optional[str] = None,
                         common_values: Sequence[str] = (),
                         target: Any = None) -> T:
        """
        Retrieve the value of a `key` like `get_value`, with a description of
        the field, its expected format and common valid values to include in
        the report if the value cannot be converted.
        """

        hint = FieldHint(description=description,
                         expected_format=expected_format,
                         common_values=tuple(common_values))
        value = self._require(key, infer_target(convert, target))
        return FieldGuard.guard_not_null(key, value, convert, target=target,
                                         hint=hint)

    def get_nullable_with_context(self, key: str, convert: Callable[[Any], T],
                                  description: Optional[str] = None,
                                  expected_format: Optional[str] = None,
                                  common_values: Sequence[str] = (),
                                  target: Any = None) -> Optional[T]:
        """
        Retrieve the value of a `key` like `get_with_context`, or `None` if the
        key is missing or its value is null.
        """

        value = self._data.get(key)
        if value is None:
            return None
        hint = FieldHint(description=description,
                         expected_format=expected_format,
                         common_values=tuple(common_values))
        return FieldGuard.guard_with_context(key, value, convert, hint,
                                             target=target)

    def get_list(self, key: str, item_convert: Callable[[Any], T],
                 target: Any = None) -> list[T]:
        """
        Retrieve the list value of a `key` with each item converted by the
        `item_convert` function. The `target` is the type of the items.
        """

        value = self._require(key, list)
        if value is None:
            context = create_context(key, value, list)
            raise failure(DecodeFailureKind.NULL_VALUE, context)
        return FieldGuard.guard_list(key, value, item_convert, target=target)

    def get_nullable_list(self, key: str, item_convert: Callable[[Any], T],
                          target: Any = None) -> Optional[list[T]]:
        """
        Retrieve the list value of a `key` like `get_list`, or `None` if the
        key is missing or its value is null.
        """

        value = self._data.get(key)
        if value is None:
            return None
        return FieldGuard.guard_list(key, value, item_convert, target=target)

    @staticmethod
    def _build(factory: Factory[T]) -> Callable[[Any], T]:
        def build(value: Any) -> T:
            if not isinstance(value, Mapping):
                raise TypeError('Expected an object, got '
                                f'{type(value).__name__}')
            return factory(JsonObject(value))

        return build

    def get_object(self, key: str, factory: Factory[T],
                   target: Any = None) -> T:
        """
        Retrieve the nested object value of a `key`, decoded by a `factory`
        function which receives the object as a `JsonObject`.
        """

        value = self._require(key, dict)
        if value is None:
            context = create_context(key, value, dict)
            raise failure(DecodeFailureKind.NULL_VALUE, context)
        return FieldGuard.guard_object(key, value, self._build(factory),
                                       target=target or dict)

    def get_nullable_object(self, key: str, factory: Factory[T],
                            target: Any = None) -> Optional[T]:
        """
        Retrieve the nested object value of a `key` like `get_object`, or
        `None` if the key is missing or its value is null.
        """

        value = self._data.get(key)
        if value is None:
            return None
        return FieldGuard.guard_object(key, value, self._build(factory),
                                       target=target or dict)

    def get_object_list(self, key: str, factory: Factory[T],
                        target: Any = None) -> list[T]:
        """
        Retrieve the list value of a `key` where each item is an object that is
        decoded by the `factory` function.
        """

        return self.get_list(key, self._build(factory), target=target or dict)

    def get_nullable_object_list(self, key: str, factory: Factory[T],
                                 target: Any = None) -> Optional[list[T]]:
        """
        Retrieve the list of objects of a `key` like `get_object_list`, or
        `None` if the key is missing or its value is null.
        """

        return self.get_nullable_list(key, self._build(factory),
                                      target=target or dict)

    def get_string(self, key: str) -> str:
        """
        Retrieve the text value of a `key`.
        """

        return self.get_value(key, to_str)

    def get_nullable_string(self, key: str) -> Optional[str]:
        """
        Retrieve the text value of a `key` or `None`.
        """

        return self.get_nullable_value(key, to_str)

    def get_int(self, key: str) -> int:
        """
        Retrieve the numeric value of a `key` as an integer.
        """

        return self.get_value(key, to_int)

    def get_nullable_int(self, key: str) -> Optional[int]:
        """
        Retrieve the numeric value of a `key` as an integer or `None`.
        """

        return self.get_nullable_value(key, to_int)

    def get_double(self, key: str) -> float:
        """
        Retrieve the numeric value of a `key` as a floating point number.
        """

        return self.get_value(key, to_float)

    def get_nullable_double(self, key: str) -> Optional[float]:
        """
        Retrieve the numeric value of a `key` as a floating point number or
        `None`.
        """

        return self.get_nullable_value(key, to_float)

    def get_bool(self, key: str) -> bool:
        """
        Retrieve the value of a `key` as a boolean. Integers and common text
        representations of booleans are accepted.
        """

        return self.get_value(key, to_bool)

    def get_nullable_bool(self, key: str) -> Optional[bool]:
        """
        Retrieve the value of a `key` as a boolean or `None`.
        """

        return self.get_nullable_value(key, to_bool)

    def get_datetime(self, key: str) -> datetime:
        """
        Retrieve the value of a `key` as a date and time. ISO 8601 strings and
        Unix timestamps in seconds or milliseconds are accepted.
        """

        return self.get_value(key, to_datetime)

    def get_nullable_datetime(self, key: str) -> Optional[datetime]:
        """
        Retrieve the value of a `key` as a date and time or `None`.
        """

        return self.get_nullable_value(key, to_datetime)

    def require_keys(self, keys: Sequence[str]) -> None:
        """
        Check that all the `keys` are present in the object. If any are
        missing, then a single `DecodeError` reports all of them.
        """

        missing = [key for key in keys if key not in self._data]
        if not missing:
            return

        context = FieldContext(key=', '.join(missing), raw_value=None,
                               target_label='the expected type',
                               target_kind=TargetKind.OTHER)
        raise failure(DecodeFailureKind.MISSING_KEY, context,
                      available_keys=list(self._data), missing_keys=missing)

    def get_structure_summary(self) -> str:
        """
        Describe the keys of the object and the types of their values.
        """

        types = {key: type(value).__name__ for key, value in self._data.items()}
        return f'Keys: {list(self._data)}, Types: {types}'

    def map_properties(self, expected: Sequence[str]) -> PropertyMapping:
        """
        Compare the keys that a model `expected` with the keys of the object.
        """

        return PropertyMapping(
            expected=tuple(expected),
            matched=tuple(key for key in expected if key in self._data),
            missing=tuple(key for key in expected if key not in self._data),
            extra=tuple(key for key in self._data if key not in expected)
        )

    def _describe_key(self, key: str) -> str:
        value = self._data[key]
        return f"'{key}': {type(value).__name__} = {value}"

    def analyze_property_mapping(self, expected: Sequence[str]) -> str:
        """
        Describe how well the keys of the object match the keys that a model
        `expected`: which are present, which are missing and which keys are
        not expected at all, followed by a summary.
        """

        mapping = self.map_properties(expected)
        keys = list(self._data)
        lines = ['PROPERTY MAPPING ANALYSIS', '',
                 f'MATCHING PROPERTIES ({len(mapping.matched)}):']
        lines.extend(f'  + {self._describe_key(key)}'
                     for key in mapping.matched)

        lines.extend(['', f'MISSING PROPERTIES ({len(mapping.missing)}):'])
        for key in mapping.missing:
            lines.append(f"  - '{key}': expected by the model but not in the "
                         'data')
            similar = find_similar_keys(key, keys)
            if similar:
                lines.append(f"    Similar: {', '.join(similar)}")

        lines.extend(['', f'EXTRA PROPERTIES ({len(mapping.extra)}):'])
        lines.extend(f'  * {self._describe_key(key)}' for key in mapping.extra)
        if mapping.extra:
            lines.append('  Extra properties do not cause errors, but may mean '
                         'that the model is missing fields or that the data '
                         'source uses another version')

        lines.extend([
            '',
            f'Summary: {len(mapping.matched)}/{len(mapping.expected)} '
            f'matching, {len(mapping.missing)} missing, '
            f'{len(mapping.extra)} extra'
        ])
        if mapping.perfect:
            lines.append('The data matches the model exactly.')
        elif not mapping.missing:
            lines.append('The data has extra keys but no missing keys.')
        else:
            lines.append('Missing keys cause decode errors unless the fields '
                         'are nullable.')

        return '\n'.join(lines)

    def generate_model(self, class_name: str,
                       expected: Optional[Sequence[str]] = None) -> str:
        """
        Generate the source code of a dataclass model that decodes objects
        with the same structure as this object. Keys outside of `expected`,
        if given, become optional fields and absent expected keys are added.
        """

        return scaffold_model(class_name, self._data, expected=expected)
