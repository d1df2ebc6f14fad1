"""
Choke point for conversions of raw JSON values with diagnostic reporting.
"""

from collections.abc import Callable, Mapping
import logging
from typing import Any, Optional, TypeVar, get_type_hints
from .coercion import CoercionError
from .describe import kind_label, target_label
from .diagnostics import build_report
from .errors import DecodeError, DecodeFailureKind, FieldContext, FieldHint
from .value import TargetKind, target_kind

T = TypeVar('T')

LOGGER = logging.getLogger(__name__)

def infer_target(convert: Callable[[Any], Any],
                 target: Any = None) -> Any:
    """
    Determine the type that a conversion function produces. An explicit
    `target` takes precedence, then the function itself if it is a type, then
    its return type annotation. If none of these are known, then `None` is
    returned.
    """

    if target is not None:
        return target
    if isinstance(convert, type):
        return convert
    try:
        return get_type_hints(convert).get('return')
    except (TypeError, NameError, AttributeError):
        return None

def create_context(key: str, value: Any, target: Any) -> FieldContext:
    """
    Create the context of a decode attempt of a field `key` with a raw `value`
    that should be converted to the `target` type.
    """

    return FieldContext(key=key, raw_value=value,
                        target_label=target_label(target),
                        target_kind=target_kind(target))

def failure(kind: DecodeFailureKind, context: FieldContext,
            **details: Any) -> DecodeError:
    """
    Build the diagnostic report for a failure and create the error which
    carries it. Additional `details` are passed to the report builder.
    """

    report = build_report(kind, context, **details)
    LOGGER.debug('Decoding %r failed: %s', context.key, kind.value)
    return DecodeError(report, kind, context)

class FieldGuard:
    """
    Conversion of JSON values where each failure is classified and reported.
    """

    @staticmethod
    def _convert(key: str, value: Any, convert: Callable[[Any], T],
                 target: Any, hint: Optional[FieldHint]) -> T:
        try:
            return convert(value)
        except DecodeError:
            raise
        except Exception as error: # pylint: disable=broad-exception-caught
            context = create_context(key, value, infer_target(convert, target))
            if isinstance(error, CoercionError):
                raise failure(DecodeFailureKind.UNPARSABLE_FORMAT, context,
                              cause=error, accepted=error.accepted,
                              hint=hint) from error
            raise failure(DecodeFailureKind.TYPE_MISMATCH, context,
                          cause=error, hint=hint) from error

    @staticmethod
    def guard(key: str, value: Any, convert: Callable[[Any], T],
              target: Any = None) -> T:
        """
        Convert a raw JSON `value` of the field `key` using a `convert`
        function. If the conversion fails, then a `DecodeError` is raised with
        a report on the failure. The `target` type is only used in the report
        and is inferred from the conversion function if not provided.
        """

        return FieldGuard._convert(key, value, convert, target, None)

    @staticmethod
    def guard_with_context(key: str, value: Any, convert: Callable[[Any], T],
                           hint: FieldHint, target: Any = None) -> T:
        """
        Convert a raw JSON `value` like `guard`, with additional description
        of the field in the report if the conversion fails.
        """

        return FieldGuard._convert(key, value, convert, target, hint)

    @staticmethod
    def guard_not_null(key: str, value: Any, convert: Callable[[Any], T],
                       target: Any = None,
                       hint: Optional[FieldHint] = None) -> T:
        """
        Convert a raw JSON `value` like `guard`, but raise a `DecodeError` if
        the value is null.
        """

        if value is None:
            context = create_context(key, value, infer_target(convert, target))
            raise failure(DecodeFailureKind.NULL_VALUE, context)

        return FieldGuard._convert(key, value, convert, target, hint)

    @staticmethod
    def guard_list(key: str, value: Any, item_convert: Callable[[Any], T],
                   target: Any = None) -> list[T]:
        """
        Convert each item of a raw JSON list `value` using an `item_convert`
        function. Conversion stops at the first item that fails, which is
        reported along with its index. The `target` is the type of the items.
        """

        if not isinstance(value, list):
            context = FieldContext(key=key, raw_value=value,
                                   target_label=kind_label(TargetKind.LIST),
                                   target_kind=TargetKind.LIST)
            raise failure(DecodeFailureKind.NOT_A_LIST, context)

        result: list[T] = []
        for index, item in enumerate(value):
            try:
                result.append(item_convert(item))
            except Exception as error: # pylint: disable=broad-exception-caught
                context = create_context(key, value,
                                         infer_target(item_convert, target))
                raise failure(DecodeFailureKind.LIST_ITEM_MISMATCH, context,
                              cause=error, index=index, item=item) from error

        return result

    @staticmethod
    def guard_object(key: str, value: Any,
                     factory: Callable[[Mapping[str, Any]], T],
                     target: Any = None) -> T:
        """
        Convert a raw JSON object `value` using a `factory` function. If the
        value is not an object, then a `DecodeError` is raised. Errors from
        the factory which are not yet classified are reported as a type
        mismatch of the field.
        """

        if not isinstance(value, Mapping):
            context = FieldContext(key=key, raw_value=value,
                                   target_label=kind_label(TargetKind.OBJECT),
                                   target_kind=TargetKind.OBJECT)
            raise failure(DecodeFailureKind.NOT_AN_OBJECT, context)

        return FieldGuard._convert(key, value, factory, target, None)
