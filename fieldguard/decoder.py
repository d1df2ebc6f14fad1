"""
Decoders of JSON objects to dataclass models.

Models are decoded field by field through `JsonObject` accessors that match
the declared type and nullability of each field. The same accessor calls are
planned for decoders that are created at runtime and for decoders that are
generated as source code, so that both report failures in the same way.
"""

from collections.abc import Callable, Iterator, Mapping
import dataclasses
from dataclasses import MISSING, dataclass
from enum import Enum
import logging
import sys
from typing import Any, Optional, TypeVar, get_args, get_type_hints, overload
from .accessor import JsonObject
from .coercion import COERCERS
from .errors import FieldHint
from .similarity import to_snake_case
from .value import TargetKind, strip_optional, target_kind

T = TypeVar('T')

Decoder = Callable[[JsonObject], Any]

METADATA_KEY = 'fieldguard'
CONFIG_ATTRIBUTE = '__safe_json__'

LOGGER = logging.getLogger(__name__)

@dataclass(frozen=True)
class DecoderConfig:
    """
    Options for decoders of a model.

    - `null_safety`: Use nullable accessors for fields that allow `None`.
      Otherwise, null values and missing keys are errors for every field
      without a default value.
    - `validate_required_keys`: Check that all required keys are present before
      decoding any field, so that all missing keys are reported at once.
    - `method_name`: Name of the decoder method that is added to the model.
    - `generate_both_methods`: Also add a `from_json` method that reads the
      keys directly, without conversions or reports.
    """

    null_safety: bool = True
    validate_required_keys: bool = False
    method_name: str = 'from_json_safe'
    generate_both_methods: bool = True

@dataclass(frozen=True)
class FieldOptions:
    """
    Decoding options of a single model field.
    """

    name: Optional[str] = None
    description: Optional[str] = None
    expected_format: Optional[str] = None
    common_values: tuple[str, ...] = ()
    parser: Optional[Callable[[Any], Any]] = None

    @property
    def hint(self) -> Optional[FieldHint]:
        """
        Additional description of the field for reports, if any is provided.
        """

        if self.description is None and self.expected_format is None and \
            not self.common_values:
            return None
        return FieldHint(description=self.description,
                         expected_format=self.expected_format,
                         common_values=self.common_values)

def json_field(*, name: Optional[str] = None,
               description: Optional[str] = None,
               expected_format: Optional[str] = None,
               common_values: tuple[str, ...] = (),
               parser: Optional[Callable[[Any], Any]] = None,
               default: Any = MISSING,
               default_factory: Any = MISSING) -> Any:
    """
    Declare a dataclass field with decoding options. The `name` is the key
    in the JSON object if it differs from the attribute name. A `description`,
    `expected_format` and `common_values` are included in reports. A `parser`
    function replaces the conversion that is otherwise based on the type.
    Fields with a `default` or `default_factory` are optional in the JSON.
    """

    options = FieldOptions(name=name, description=description,
                           expected_format=expected_format,
                           common_values=tuple(common_values), parser=parser)
    return dataclasses.field(default=default, default_factory=default_factory,
                             metadata={METADATA_KEY: options})

@dataclass(frozen=True)
class FieldSpec:
    """
    Declared shape of a model field.
    """

    attribute: str
    key: str
    kind: TargetKind
    nullable: bool = False
    optional: bool = False
    item_kind: Optional[TargetKind] = None
    reference: Any = None
    parser: Any = None
    hint: Optional[FieldHint] = None

class Converter(Enum):
    """
    Conversion function that is passed to an accessor.
    """

    NONE = 'none'
    COERCE = 'coerce'
    MODEL = 'model'
    MAPPING = 'mapping'
    CONSTRUCT = 'construct'
    PARSER = 'parser'
    IDENTITY = 'identity'

@dataclass(frozen=True)
class AccessorCall:
    """
    Planned accessor method call to decode a field.
    """

    method: str
    key: str
    converter: Converter
    kind: TargetKind = TargetKind.OTHER
    reference: Any = None
    hint: Optional[FieldHint] = None

_SCALAR_METHODS = {
    TargetKind.STRING: 'string',
    TargetKind.INT: 'int',
    TargetKind.DOUBLE: 'double',
    TargetKind.BOOL: 'bool',
    TargetKind.DATETIME: 'datetime'
}

def is_nullable(spec: FieldSpec, config: DecoderConfig) -> bool:
    """
    Determine whether a field is read with a nullable accessor.
    """

    return spec.optional or (spec.nullable and config.null_safety)

def required_keys(specs: tuple[FieldSpec, ...],
                  config: DecoderConfig) -> list[str]:
    """
    Retrieve the JSON keys that must be present to decode the fields.
    """

    return [spec.key for spec in specs if not is_nullable(spec, config)]

def _plan_list(spec: FieldSpec) -> tuple[str, Converter, TargetKind]:
    item_kind = spec.item_kind or TargetKind.OTHER
    if item_kind == TargetKind.OBJECT:
        converter = Converter.MAPPING if spec.reference is None \
            else Converter.MODEL
        return 'object_list', converter, item_kind
    if item_kind in COERCERS:
        return 'list', Converter.COERCE, item_kind
    if spec.reference is not None:
        return 'list', Converter.CONSTRUCT, item_kind
    return 'list', Converter.IDENTITY, item_kind

def plan_field(spec: FieldSpec, config: DecoderConfig) -> AccessorCall:
    """
    Select the accessor method and conversion that decodes a field.
    """

    kind = spec.kind
    reference = spec.reference
    if spec.parser is not None:
        method, converter, reference = 'value', Converter.PARSER, spec.parser
    elif kind == TargetKind.LIST:
        method, converter, kind = _plan_list(spec)
    elif kind == TargetKind.OBJECT:
        method = 'object'
        converter = Converter.MAPPING if reference is None else Converter.MODEL
    elif kind in _SCALAR_METHODS:
        if spec.hint is None:
            method, converter = _SCALAR_METHODS[kind], Converter.NONE
        else:
            method, converter = 'with_context', Converter.COERCE
    elif reference is not None:
        method, converter = 'value', Converter.CONSTRUCT
    else:
        method, converter = 'value', Converter.IDENTITY

    if spec.hint is not None and method == 'value':
        method = 'with_context'
    prefix = 'get_nullable_' if is_nullable(spec, config) else 'get_'
    return AccessorCall(method=f'{prefix}{method}', key=spec.key,
                        converter=converter, kind=kind, reference=reference,
                        hint=spec.hint)

def identity(value: T) -> T:
    """
    Keep a JSON value as it is.
    """

    return value

def resolve_fields(cls: type) -> tuple[FieldSpec, ...]:
    """
    Determine the shape of the fields of a dataclass model from its type
    annotations and field options.
    """

    if not dataclasses.is_dataclass(cls):
        raise TypeError(f'{cls.__name__} is not a dataclass')

    hints = get_type_hints(cls)
    return tuple(_resolve_field(field, hints[field.name])
                 for field in dataclasses.fields(cls) if field.init)

def _resolve_field(field: dataclasses.Field, annotation: Any) -> FieldSpec:
    options: FieldOptions = field.metadata.get(METADATA_KEY, FieldOptions())
    annotation, nullable = strip_optional(annotation)
    kind = target_kind(annotation)
    item_kind: Optional[TargetKind] = None
    reference: Any = None
    if kind == TargetKind.LIST:
        args = get_args(annotation)
        item = strip_optional(args[0])[0] if args else Any
        item_kind = target_kind(item)
        if dataclasses.is_dataclass(item) or \
            (item_kind == TargetKind.OTHER and isinstance(item, type)):
            reference = item
    elif kind == TargetKind.OBJECT:
        if dataclasses.is_dataclass(annotation):
            reference = annotation
    elif kind == TargetKind.OTHER and isinstance(annotation, type):
        reference = annotation

    optional = field.default is not MISSING or \
        field.default_factory is not MISSING
    return FieldSpec(attribute=field.name, key=options.name or field.name,
                     kind=kind, nullable=nullable, optional=optional,
                     item_kind=item_kind, reference=reference,
                     parser=options.parser, hint=options.hint)

def _converter_function(call: AccessorCall) -> Optional[Callable[[Any], Any]]:
    if call.converter == Converter.NONE:
        return None
    if call.converter == Converter.COERCE:
        return COERCERS[call.kind]
    if call.converter == Converter.MODEL:
        model = call.reference
        return lambda nested: decode(model, nested)
    if call.converter == Converter.MAPPING:
        return dict
    if call.converter == Converter.IDENTITY:
        return identity
    return call.reference

def invoke(obj: JsonObject, call: AccessorCall) -> Any:
    """
    Perform a planned accessor method call on a JSON object.
    """

    method = getattr(obj, call.method)
    function = _converter_function(call)
    if function is None:
        return method(call.key)

    keywords: dict[str, Any] = {}
    if call.hint is not None and call.method.endswith('with_context'):
        keywords.update(description=call.hint.description,
                        expected_format=call.hint.expected_format,
                        common_values=call.hint.common_values)
    if call.converter == Converter.MODEL:
        keywords['target'] = call.reference
    return method(call.key, function, **keywords)

def decode_fields(cls: type[T], data: Mapping[str, Any],
                  config: DecoderConfig) -> T:
    """
    Decode a JSON object to a dataclass model by reading each field with the
    accessor that matches its declaration.
    """

    obj = JsonObject.of(data, key=cls.__name__)
    specs = resolve_fields(cls)
    LOGGER.debug('Decoding %s with %d fields', cls.__name__, len(specs))
    if config.validate_required_keys:
        obj.require_keys(required_keys(specs, config))

    values: dict[str, Any] = {}
    for spec in specs:
        value = invoke(obj, plan_field(spec, config))
        if value is None and spec.optional:
            continue
        values[spec.attribute] = value

    return cls(**values)

def decode_plain(cls: type[T], data: Mapping[str, Any]) -> T:
    """
    Create a dataclass model from the keys of a JSON object without any
    conversions or reports.
    """

    return cls(**{
        spec.attribute: data[spec.key] for spec in resolve_fields(cls)
        if not spec.optional or spec.key in data
    })

def decode(cls: type[T], data: Mapping[str, Any]) -> T:
    """
    Decode a JSON object to a dataclass model. Models decorated with
    `safe_json_parsing` use their own decoder method, while other dataclasses
    are decoded with the default configuration.
    """

    config: Optional[DecoderConfig] = getattr(cls, CONFIG_ATTRIBUTE, None)
    if config is not None:
        return getattr(cls, config.method_name)(data)
    return decode_fields(cls, data, DecoderConfig())

def generated_name(class_name: str, method_name: str) -> str:
    """
    Retrieve the function name of a generated decoder.
    """

    return f'{to_snake_case(class_name)}_{method_name}'

def _generated(cls: type, method_name: str) -> Optional[Callable[..., Any]]:
    module = sys.modules.get(cls.__module__)
    return getattr(module, generated_name(cls.__name__, method_name), None)

@overload
def safe_json_parsing(cls: type[T], /) -> type[T]:
    ...

@overload
def safe_json_parsing(*, null_safety: bool = True,
                      validate_required_keys: bool = False,
                      method_name: str = 'from_json_safe',
                      generate_both_methods: bool = True) \
        -> Callable[[type[T]], type[T]]:
    ...

def safe_json_parsing(cls: Optional[type[T]] = None, /, *,
                      null_safety: bool = True,
                      validate_required_keys: bool = False,
                      method_name: str = 'from_json_safe',
                      generate_both_methods: bool = True) -> Any:
    """
    Class decorator which adds a decoder method to a dataclass model.

    If a generated decoder for the model is available in the module of the
    class, then that decoder is used as the method. Otherwise, the method
    decodes the fields based on their declarations at runtime. Both variants
    call the same accessors and raise the same reports.
    """

    config = DecoderConfig(null_safety=null_safety,
                           validate_required_keys=validate_required_keys,
                           method_name=method_name,
                           generate_both_methods=generate_both_methods)

    def decorator(model: type[T]) -> type[T]:
        setattr(model, CONFIG_ATTRIBUTE, config)
        generated = _generated(model, config.method_name)
        if generated is not None:
            setattr(model, config.method_name, staticmethod(generated))
        else:
            setattr(model, config.method_name,
                    classmethod(lambda owner, data: decode_fields(owner, data,
                                                                  config)))

        if config.generate_both_methods and not hasattr(model, 'from_json'):
            plain = _generated(model, 'from_json')
            setattr(model, 'from_json',
                    classmethod(decode_plain) if plain is None
                    else staticmethod(plain))

        return model

    if cls is None:
        return decorator
    return decorator(cls)

class DecoderRegistry:
    """
    Collection of decoders for model types. Types without a registered
    decoder are decoded with `decode` if they are dataclasses.
    """

    def __init__(self) -> None:
        self._decoders: dict[type, Decoder] = {}

    def register(self, cls: type) -> Callable[[Decoder], Decoder]:
        """
        Register a decoder function for a type.
        """

        def decorator(decoder: Decoder) -> Decoder:
            self._decoders[cls] = decoder
            return decoder

        return decorator

    def __contains__(self, cls: object) -> bool:
        return cls in self._decoders

    def __iter__(self) -> Iterator[type]:
        return iter(self._decoders)

    def get(self, cls: type[T]) -> Callable[[JsonObject], T]:
        """
        Retrieve the decoder function for a type.
        """

        if cls in self._decoders:
            return self._decoders[cls]
        if dataclasses.is_dataclass(cls):
            return lambda obj: decode(cls, obj)
        raise LookupError(f'No decoder registered for {cls.__name__}')

    def decode(self, cls: type[T], data: Any) -> T:
        """
        Decode a JSON object to an instance of a type.
        """

        return self.get(cls)(JsonObject.of(data, key=cls.__name__))
