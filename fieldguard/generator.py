"""
Generation of decoder modules for model classes.

Model modules are parsed without importing them. Each class that carries the
companion decorator receives a decoder function in a generated module next to
the model module, which the model module includes with a star import.
"""

import ast
import builtins
from dataclasses import dataclass, replace
import logging
import os
from pathlib import Path
from typing import Any, Optional, Union
from .decoder import AccessorCall, Converter, DecoderConfig, FieldSpec, \
    generated_name, plan_field, required_keys
from .errors import FieldHint
from .value import TargetKind

LOGGER = logging.getLogger(__name__)

HEADER = '# Code generated by fieldguard. Do not modify by hand.'

_SCALARS = {
    'int': TargetKind.INT,
    'float': TargetKind.DOUBLE,
    'bool': TargetKind.BOOL,
    'str': TargetKind.STRING,
    'datetime': TargetKind.DATETIME
}
_SEQUENCES = {'list', 'List', 'Sequence', 'MutableSequence', 'tuple', 'Tuple'}
_MAPPINGS = {'dict', 'Dict', 'Mapping', 'MutableMapping'}
_CONSTRUCTORS = {'Decimal', 'UUID', 'Path'}
_IGNORED = {'ClassVar', 'InitVar'}
_FIELD_FUNCTIONS = {'json_field', 'field'}
_OPTIONS = ('name', 'description', 'expected_format', 'common_values')
_COERCERS = {
    TargetKind.STRING: 'to_str',
    TargetKind.INT: 'to_int',
    TargetKind.DOUBLE: 'to_float',
    TargetKind.BOOL: 'to_bool',
    TargetKind.DATETIME: 'to_datetime'
}

class GeneratorError(ValueError):
    """
    Model source code that cannot be read without importing the module.
    """

class Expression(str):
    """
    Source code of a field option that is not a literal value. It is rendered
    as is in generated code, where it is evaluated in the model module.
    """

    def __repr__(self) -> str:
        return str(self)

@dataclass(frozen=True)
class ModelSource:
    """
    Model class found in a source module. References of the fields are source
    code expressions rather than objects.
    """

    name: str
    config: DecoderConfig
    fields: tuple[FieldSpec, ...]

@dataclass(frozen=True)
class GeneratedModule:
    """
    Generated decoder module for a model module.
    """

    source: Path
    target: Path
    content: str
    models: tuple[str, ...]

def _name(node: ast.expr) -> str:
    if isinstance(node, ast.Name):
        return node.id
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Call):
        return _name(node.func)
    return ''

def _is_none(node: ast.expr) -> bool:
    return isinstance(node, ast.Constant) and node.value is None

def _union_members(node: ast.expr) -> Optional[list[ast.expr]]:
    if isinstance(node, ast.BinOp) and isinstance(node.op, ast.BitOr):
        return (_union_members(node.left) or [node.left]) + \
            (_union_members(node.right) or [node.right])
    if isinstance(node, ast.Subscript) and _name(node.value) == 'Union':
        if isinstance(node.slice, ast.Tuple):
            return list(node.slice.elts)
        return [node.slice]
    return None

def _strip_optional(node: ast.expr) -> tuple[ast.expr, bool]:
    if isinstance(node, ast.Constant) and isinstance(node.value, str):
        node = ast.parse(node.value, mode='eval').body
    if isinstance(node, ast.Subscript) and _name(node.value) == 'Optional':
        return _strip_optional(node.slice)[0], True

    members = _union_members(node)
    if members is not None:
        types = [member for member in members if not _is_none(member)]
        nullable = len(types) < len(members)
        if len(types) == 1:
            return _strip_optional(types[0])[0], nullable
        return node, nullable

    return node, False

def _classify(node: ast.expr, models: dict[str, bool]) \
        -> tuple[TargetKind, Optional[str]]:
    if _union_members(node) is not None:
        return TargetKind.OTHER, None

    base = node.value if isinstance(node, ast.Subscript) else node
    name = _name(base)
    if name in _SCALARS:
        return _SCALARS[name], None
    if name in _SEQUENCES:
        return TargetKind.LIST, None
    if name in _MAPPINGS:
        return TargetKind.OBJECT, None
    if name in ('', 'Any', 'object') or isinstance(node, ast.Subscript):
        return TargetKind.OTHER, None
    if name in _CONSTRUCTORS or models.get(name) is False:
        return TargetKind.OTHER, ast.unparse(node)
    return TargetKind.OBJECT, ast.unparse(node)

def _constants(tree: ast.Module) -> dict[str, Any]:
    constants: dict[str, Any] = {}
    for node in tree.body:
        if isinstance(node, ast.Assign) and len(node.targets) == 1:
            target, value = node.targets[0], node.value
        elif isinstance(node, ast.AnnAssign) and node.value is not None:
            target, value = node.target, node.value
        else:
            continue
        if not isinstance(target, ast.Name):
            continue
        try:
            constants[target.id] = ast.literal_eval(value)
        except (ValueError, TypeError, SyntaxError):
            constants.pop(target.id, None)

    return constants

def _literal(node: ast.expr, constants: dict[str, Any]) -> Any:
    if isinstance(node, ast.Name) and node.id in constants:
        return constants[node.id]
    return ast.literal_eval(node)

def _option(node: ast.expr, constants: dict[str, Any]) -> Any:
    try:
        return _literal(node, constants)
    except (ValueError, TypeError, SyntaxError):
        return Expression(ast.unparse(node))

def _keywords(node: Optional[ast.expr]) -> Optional[dict[str, ast.expr]]:
    if not isinstance(node, ast.Call) or \
        _name(node.func) not in _FIELD_FUNCTIONS:
        return None
    return {
        keyword.arg: keyword.value for keyword in node.keywords
        if keyword.arg is not None
    }

def _hint(options: dict[str, Any]) -> Optional[FieldHint]:
    if options.get('description') is None and \
        options.get('expected_format') is None and \
        not options.get('common_values'):
        return None
    common_values = options.get('common_values', ())
    if not isinstance(common_values, Expression):
        common_values = tuple(common_values)
    return FieldHint(description=options.get('description'),
                     expected_format=options.get('expected_format'),
                     common_values=common_values)

def parse_field(node: ast.AnnAssign, models: dict[str, bool],
                constants: Optional[dict[str, Any]] = None) \
        -> Optional[FieldSpec]:
    """
    Determine the shape of a field from an annotated assignment in the body of
    a model class. Returns `None` if the assignment does not declare a field
    that is passed to the constructor.

    Field options are literal values or names of module-level `constants`.
    Other option expressions are kept as `Expression` source code.
    """

    if constants is None:
        constants = {}

    if not isinstance(node.target, ast.Name):
        return None
    annotation, nullable = _strip_optional(node.annotation)
    base = annotation.value if isinstance(annotation, ast.Subscript) \
        else annotation
    if _name(base) in _IGNORED:
        return None

    keywords = _keywords(node.value)
    options: dict[str, Any] = {}
    parser: Optional[str] = None
    if keywords is None:
        optional = node.value is not None
    else:
        init = keywords.get('init')
        if init is not None and _option(init, constants) is False:
            return None
        optional = 'default' in keywords or 'default_factory' in keywords
        options = {
            option: _option(keywords[option], constants)
            for option in _OPTIONS if option in keywords
        }
        if 'parser' in keywords:
            parser = ast.unparse(keywords['parser'])

    kind, reference = _classify(annotation, models)
    item_kind: Optional[TargetKind] = None
    if kind == TargetKind.LIST and isinstance(annotation, ast.Subscript):
        item = annotation.slice
        if isinstance(item, ast.Tuple):
            item = item.elts[0]
        item = _strip_optional(item)[0]
        item_kind, reference = _classify(item, models)
    elif kind == TargetKind.LIST:
        item_kind = TargetKind.OTHER

    attribute = node.target.id
    return FieldSpec(attribute=attribute, key=options.get('name') or attribute,
                     kind=kind, nullable=nullable, optional=optional,
                     item_kind=item_kind, reference=reference, parser=parser,
                     hint=_hint(options))

def _decorator_config(node: ast.ClassDef, companion: str, base: DecoderConfig,
                      constants: dict[str, Any]) -> Optional[DecoderConfig]:
    for decorator in node.decorator_list:
        if _name(decorator) != companion:
            continue
        if not isinstance(decorator, ast.Call):
            return base
        overrides: dict[str, Any] = {}
        for keyword in decorator.keywords:
            if keyword.arg is None:
                raise GeneratorError(f'{node.name}: keyword unpacking in '
                                     f'@{companion} is not supported')
            try:
                overrides[keyword.arg] = _literal(keyword.value, constants)
            except (ValueError, TypeError, SyntaxError) as error:
                raise GeneratorError(f'{node.name}: option {keyword.arg} of '
                                     f'@{companion} must be a literal value '
                                     'or a module constant') from error
        try:
            return replace(base, **overrides)
        except TypeError as error:
            raise GeneratorError(f'{node.name}: {error}') from error

    return None

def parse_models(source: str, config: Optional[DecoderConfig] = None,
                 companion: str = 'safe_json_parsing') -> list[ModelSource]:
    """
    Find the model classes in the Python `source` code of a module. Classes
    are models if they have the `companion` decorator, whose keyword arguments
    override the options of the `config`. Raises `GeneratorError` if those
    arguments are not literal values or names of module-level constants.
    """

    if config is None:
        config = DecoderConfig()

    tree = ast.parse(source)
    constants = _constants(tree)
    classes = [node for node in tree.body if isinstance(node, ast.ClassDef)]
    known = {
        node.name: any(_name(decorator) in ('dataclass', companion)
                       for decorator in node.decorator_list)
        for node in classes
    }
    models: list[ModelSource] = []
    for node in classes:
        model_config = _decorator_config(node, companion, config, constants)
        if model_config is None:
            continue

        fields = tuple(
            spec for spec in (
                parse_field(statement, known, constants)
                for statement in node.body
                if isinstance(statement, ast.AnnAssign)
            ) if spec is not None
        )
        models.append(ModelSource(name=node.name, config=model_config,
                                  fields=fields))

    return models

def _free_names(expression: str) -> set[str]:
    tree = ast.parse(expression, mode='eval')
    bound = {
        argument.arg for node in ast.walk(tree)
        if isinstance(node, ast.Lambda) for argument in node.args.args
    }
    return {
        node.id for node in ast.walk(tree)
        if isinstance(node, ast.Name) and isinstance(node.ctx, ast.Load) and
        node.id not in bound and not hasattr(builtins, node.id)
    }

def _converter_source(call: AccessorCall) -> Optional[str]:
    if call.converter == Converter.NONE:
        return None
    if call.converter == Converter.COERCE:
        return _COERCERS[call.kind]
    if call.converter == Converter.MODEL:
        return f'lambda nested: decode({call.reference}, nested)'
    if call.converter == Converter.MAPPING:
        return 'dict'
    if call.converter == Converter.IDENTITY:
        return 'identity'
    return str(call.reference)

def call_source(call: AccessorCall) -> str:
    """
    Render a planned accessor call as source code on a JSON object `obj`.
    """

    arguments = [repr(call.key)]
    function = _converter_source(call)
    if function is not None:
        arguments.append(function)
    if call.hint is not None and call.method.endswith('with_context'):
        if call.hint.description is not None:
            arguments.append(f'description={call.hint.description!r}')
        if call.hint.expected_format is not None:
            arguments.append(f'expected_format={call.hint.expected_format!r}')
        if call.hint.common_values:
            arguments.append(f'common_values={call.hint.common_values!r}')
    if call.converter == Converter.MODEL:
        arguments.append(f'target={call.reference}')

    return f"obj.{call.method}({', '.join(arguments)})"

def _expression_names(spec: FieldSpec) -> set[str]:
    options: list[Any] = [spec.key]
    if spec.hint is not None:
        options.extend([spec.hint.description, spec.hint.expected_format,
                        spec.hint.common_values])
    names: set[str] = set()
    for option in options:
        if isinstance(option, Expression):
            names.update(_free_names(option))
    return names

def _import_line(model: ModelSource, calls: list[AccessorCall],
                 module: str) -> str:
    names = {model.name}
    for spec, call in zip(model.fields, calls):
        names.update(_expression_names(spec))
        if call.converter in (Converter.MODEL, Converter.CONSTRUCT,
                              Converter.PARSER):
            names.update(_free_names(str(call.reference)))
    return f"    from {module} import {', '.join(sorted(names))}"

def _safe_function(model: ModelSource, module: str) -> list[str]:
    config = model.config
    calls = [plan_field(spec, config) for spec in model.fields]
    lines = [
        f'def {generated_name(model.name, config.method_name)}'
        f'(data: Any) -> "{model.name}":',
        '    """',
        f'    Decode a {model.name} model from JSON data. Mismatches between '
        'the data',
        '    and the model raise a `DecodeError` with a detailed report.',
        '    """',
        '',
        _import_line(model, calls, module),
        '',
        f'    obj = JsonObject.of(data, key={model.name!r})'
    ]
    keys = required_keys(model.fields, config)
    if config.validate_required_keys and keys:
        lines.append(f'    obj.require_keys({keys!r})')

    lines.append('    values: dict[str, Any] = {')
    lines.extend(f'        {spec.attribute!r}: {call_source(call)},'
                 for spec, call in zip(model.fields, calls)
                 if not spec.optional)
    lines.append('    }')
    for spec, call in zip(model.fields, calls):
        if spec.optional:
            lines.extend([
                f'    value = {call_source(call)}',
                '    if value is not None:',
                f'        values[{spec.attribute!r}] = value'
            ])

    lines.append(f'    return {model.name}(**values)')
    return lines

def _plain_function(model: ModelSource, module: str) -> list[str]:
    names = {model.name}
    for spec in model.fields:
        names.update(_expression_names(spec))
    lines = [
        f"def {generated_name(model.name, 'from_json')}"
        f'(data: Mapping[str, Any]) -> "{model.name}":',
        '    """',
        f'    Create a {model.name} model from the keys of JSON data without '
        'conversions.',
        '    """',
        '',
        f"    from {module} import {', '.join(sorted(names))}",
        '',
        '    values: dict[str, Any] = {'
    ]
    lines.extend(f'        {spec.attribute!r}: data[{spec.key!r}],'
                 for spec in model.fields if not spec.optional)
    lines.append('    }')
    for spec in model.fields:
        if spec.optional:
            lines.extend([
                f'    if {spec.key!r} in data:',
                f'        values[{spec.attribute!r}] = data[{spec.key!r}]'
            ])

    lines.append(f'    return {model.name}(**values)')
    return lines

def function_names(model: ModelSource) -> list[str]:
    """
    Retrieve the names of the functions that are generated for a model.
    """

    names = [generated_name(model.name, model.config.method_name)]
    if model.config.generate_both_methods:
        names.append(generated_name(model.name, 'from_json'))
    return names

def render_module(models: list[ModelSource], module: str,
                  title: str = 'models') -> str:
    """
    Generate the source code of a decoder module for `models` which are
    defined in the `module`, given as it is imported from the generated module.
    """

    names = [name for model in models for name in function_names(model)]
    lines = [
        HEADER,
        '"""',
        f'Decoders for {title}.',
        '"""',
        '',
        'from collections.abc import Mapping',
        'from typing import Any',
        'from fieldguard.accessor import JsonObject',
        'from fieldguard.coercion import to_bool, to_datetime, to_float, '
        'to_int, to_str',
        'from fieldguard.decoder import decode, identity',
        '',
        f'__all__ = {names!r}'
    ]
    for model in models:
        lines.extend(['', ''])
        lines.extend(_safe_function(model, module))
        if model.config.generate_both_methods:
            lines.extend(['', ''])
            lines.extend(_plain_function(model, module))

    lines.append('')
    return '\n'.join(lines)

def is_package(path: Path) -> bool:
    """
    Check whether a module path is part of a package.
    """

    return (path.parent / '__init__.py').exists()

def find_sources(root: Path, suffix: str = '_safe_json') -> list[Path]:
    """
    Find the Python modules in a directory tree, in a stable order. Hidden
    directories, caches and generated modules are skipped. Symbolic links to
    directories are not followed.
    """

    excluded = (f'{suffix}.py', '_pb2.py')
    sources: list[Path] = []
    for directory, subdirectories, files in os.walk(root):
        subdirectories[:] = sorted(
            name for name in subdirectories
            if not name.startswith('.') and name != '__pycache__'
        )
        sources.extend(Path(directory, name) for name in sorted(files)
                       if name.endswith('.py') and not name.endswith(excluded))

    return sources

def companion_module(path: Path, suffix: str) -> str:
    """
    Retrieve the module name of the generated decoders of a model module as it
    is imported from the model module.
    """

    name = f'{path.stem}{suffix}'
    return f'.{name}' if is_package(path) else name

def generate_module(path: Path, config: Optional[DecoderConfig] = None,
                    suffix: str = '_safe_json',
                    companion: str = 'safe_json_parsing') \
        -> Optional[GeneratedModule]:
    """
    Generate the decoder module for a model module at `path`. Returns `None`
    if the module has no model classes.
    """

    with path.open('r', encoding='utf-8') as source_file:
        models = parse_models(source_file.read(), config, companion)
    if not models:
        return None

    module = f'.{path.stem}' if is_package(path) else path.stem
    content = render_module(models, module, title=f'models in {path.name}')
    return GeneratedModule(source=path,
                           target=path.with_name(f'{path.stem}{suffix}.py'),
                           content=content,
                           models=tuple(model.name for model in models))

def generate(paths: list[Union[str, Path]],
             config: Optional[DecoderConfig] = None,
             suffix: str = '_safe_json',
             companion: str = 'safe_json_parsing',
             write: bool = True) -> list[GeneratedModule]:
    """
    Generate decoder modules for the model modules in `paths`, which may be
    files or directories to scan. The modules are written unless `write` is
    disabled.
    """

    generated: list[GeneratedModule] = []
    for path in paths:
        path = Path(path)
        sources = [path] if path.is_file() else find_sources(path, suffix)
        for source in sources:
            try:
                module = generate_module(source, config, suffix, companion)
            except (SyntaxError, GeneratorError) as error:
                LOGGER.warning('Skipping %s: %s', source, error)
                continue
            if module is None:
                continue

            generated.append(module)
            if write:
                with module.target.open('w', encoding='utf-8') as target_file:
                    target_file.write(module.content)
                LOGGER.info('Generated %s for %s', module.target,
                            ', '.join(module.models))

    return generated
