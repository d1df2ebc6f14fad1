"""
Guarded JSON decoding of dataclass models with diagnostic reports.
"""

from .accessor import JsonObject, PropertyMapping
from .coercion import CoercionError
from .decoder import DecoderConfig, DecoderRegistry, decode, json_field, \
    safe_json_parsing
from .errors import DecodeError, DecodeFailureKind, FieldContext, FieldHint
from .guard import FieldGuard

__all__ = [
    "CoercionError", "DecodeError", "DecodeFailureKind", "DecoderConfig",
    "DecoderRegistry", "FieldContext", "FieldGuard", "FieldHint", "JsonObject",
    "PropertyMapping", "decode", "json_field", "safe_json_parsing"
]
__version__ = "0.1.0"
