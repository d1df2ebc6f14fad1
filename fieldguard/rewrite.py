"""
Rewriting of model modules to add decoder declarations.
"""

import ast
from dataclasses import dataclass
import logging
import os
from pathlib import Path
from typing import Optional, Union
from .generator import companion_module, find_sources

DECORATOR = 'safe_json_parsing'
LOGGER = logging.getLogger(__name__)

@dataclass(frozen=True)
class InitOptions:
    """
    Options for adding decoder declarations to the models in a project.
    """

    project_root: Union[str, os.PathLike]
    target_directory: str = '.'
    apply_changes: bool = True
    verbose: bool = False
    marker: str = 'dataclass'
    companion: str = 'safe_json_parsing'
    suffix: str = '_safe_json'

@dataclass(frozen=True)
class FileChange:
    """
    Updates that were made to a single module.
    """

    path: str
    added_decorator: bool
    added_import: bool

    @property
    def has_updates(self) -> bool:
        """
        Whether the module was changed at all.
        """

        return self.added_decorator or self.added_import

@dataclass(frozen=True)
class InitReport:
    """
    Outcome of adding decoder declarations to the modules of a directory.
    """

    changes: tuple[FileChange, ...]
    skipped_paths: tuple[str, ...]

    @property
    def has_updates(self) -> bool:
        """
        Whether any module was changed.
        """

        return any(change.has_updates for change in self.changes)

    @property
    def processed_count(self) -> int:
        """
        Number of modules that were inspected.
        """

        return len(self.changes) + len(self.skipped_paths)

@dataclass(frozen=True)
class Transformation:
    """
    Rewritten source code of a module.
    """

    content: str
    added_decorator: bool
    added_import: bool

    @property
    def has_changes(self) -> bool:
        """
        Whether the source code differs from the original.
        """

        return self.added_decorator or self.added_import

def _name(node: ast.expr) -> str:
    if isinstance(node, ast.Call):
        return _name(node.func)
    if isinstance(node, ast.Attribute):
        return node.attr
    if isinstance(node, ast.Name):
        return node.id
    return ''

def _marked_classes(tree: ast.Module, marker: str) -> list[ast.ClassDef]:
    return [
        node for node in tree.body if isinstance(node, ast.ClassDef) and
        any(_name(decorator) == marker for decorator in node.decorator_list)
    ]

def _imports(tree: ast.Module, module: str) -> bool:
    level = len(module) - len(module.lstrip('.'))
    name = module.lstrip('.')
    return any(
        isinstance(node, ast.ImportFrom) and node.module == name and
        node.level == level for node in tree.body
    )

def _imports_name(tree: ast.Module, name: str) -> bool:
    return any(
        isinstance(node, (ast.Import, ast.ImportFrom)) and
        any((alias.asname or alias.name) == name for alias in node.names)
        for node in tree.body
    )

def _insertion_line(tree: ast.Module, lines: list[str]) -> int:
    last_import: Optional[int] = None
    for node in tree.body:
        if isinstance(node, (ast.Import, ast.ImportFrom)):
            last_import = node.end_lineno
        elif isinstance(node, (ast.ClassDef, ast.FunctionDef,
                               ast.AsyncFunctionDef)):
            break
    if last_import is not None:
        return last_import

    if tree.body and isinstance(tree.body[0], ast.Expr) and \
        isinstance(tree.body[0].value, ast.Constant) and \
        isinstance(tree.body[0].value.value, str):
        return tree.body[0].end_lineno or 0

    position = 0
    while position < len(lines) and lines[position].startswith('#'):
        position += 1
    return position

def transform_source(content: str, module: str, marker: str = 'dataclass',
                     companion: str = 'safe_json_parsing') -> Transformation:
    """
    Add the `companion` decorator to classes with the `marker` decorator, as
    well as imports of the decorator and of the generated decoder `module`.
    The decorator is only imported from fieldguard when it is `DECORATOR`;
    other companions are defined by the project itself.
    Declarations which are already present are not added again, and modules
    without marked classes are left as they are.
    """

    tree = ast.parse(content)
    lines = content.splitlines(keepends=True)
    if lines and not lines[-1].endswith('\n'):
        lines[-1] += '\n'

    classes = _marked_classes(tree, marker)
    if not classes:
        return Transformation(content=content, added_decorator=False,
                              added_import=False)

    insertions: list[tuple[int, str]] = []
    for node in classes:
        if any(_name(decorator) == companion
               for decorator in node.decorator_list):
            continue
        decorator = next(decorator for decorator in node.decorator_list
                         if _name(decorator) == marker)
        indent = ' ' * node.col_offset
        insertions.append((decorator.end_lineno or decorator.lineno,
                           f'{indent}@{companion}()\n'))

    added_decorator = bool(insertions)
    imports: list[str] = []
    if added_decorator and companion == DECORATOR and \
        not _imports_name(tree, companion):
        imports.append(f'from fieldguard import {companion}\n')
    if not _imports(tree, module):
        imports.append(f'from {module} import *\n')
    if imports:
        insertions.append((_insertion_line(tree, lines), ''.join(imports)))

    if not insertions:
        return Transformation(content=content, added_decorator=False,
                              added_import=False)

    for line, text in sorted(insertions, key=lambda insertion: insertion[0],
                             reverse=True):
        lines.insert(line, text)

    return Transformation(content=''.join(lines),
                          added_decorator=added_decorator,
                          added_import=bool(imports))

def run_init(options: InitOptions) -> InitReport:
    """
    Add decoder declarations to all model modules in the target directory of
    a project. Modules without model classes or with syntax errors are
    skipped. Changes are only written if `apply_changes` is enabled.
    """

    root = Path(options.project_root)
    target = root / options.target_directory
    if not target.is_dir():
        raise FileNotFoundError(f'Target directory "{options.target_directory}"'
                                f' does not exist under {root}')

    changes: list[FileChange] = []
    skipped: list[str] = []
    for path in find_sources(target, options.suffix):
        relative = Path(os.path.relpath(path, root)).as_posix()
        with path.open('r', encoding='utf-8') as source_file:
            content = source_file.read()
        try:
            tree = ast.parse(content)
        except SyntaxError as error:
            LOGGER.warning('Skipping %s: %s', relative, error)
            skipped.append(relative)
            continue
        if not _marked_classes(tree, options.marker):
            skipped.append(relative)
            continue

        transformation = transform_source(content,
                                          companion_module(path,
                                                           options.suffix),
                                          marker=options.marker,
                                          companion=options.companion)
        if transformation.has_changes:
            if options.apply_changes:
                with path.open('w', encoding='utf-8') as source_file:
                    source_file.write(transformation.content)
            LOGGER.debug('Updated %s', relative)
            changes.append(FileChange(
                path=relative,
                added_decorator=transformation.added_decorator,
                added_import=transformation.added_import
            ))
        elif options.verbose:
            skipped.append(relative)

    return InitReport(changes=tuple(changes), skipped_paths=tuple(skipped))
