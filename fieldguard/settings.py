"""
Layered settings for the decoder generator and the model rewriter.

Values are looked up in `settings.toml` in the working directory, then in the
`[tool.fieldguard]` tables of `pyproject.toml` and finally in the defaults
that are shipped with the package. Any value from the first file can be
overridden by a `FIELDGUARD_<SECTION>_<KEY>` environment variable.
"""

import os
from pathlib import Path
from typing import Optional
import tomlkit
from tomlkit.items import Comment, Item, Table
from typing_extensions import Required, TypedDict, Union
from .coercion import CoercionError, to_bool
from .decoder import DecoderConfig
from .rewrite import InitOptions

class SettingsSource(TypedDict, total=False):
    """
    Location of a TOML file in the lookup chain of settings.
    """

    path: Required[Union[str, os.PathLike]]
    environment: bool
    prefix: tuple[str, ...]

Chain = tuple[SettingsSource, ...]

class Settings:
    """
    Settings of the `init` and `generate` sections, read from a chain of TOML
    files with environment variable overrides.
    """

    FILES: Chain = (
        {
            'path': 'settings.toml'
        },
        {
            'path': 'pyproject.toml',
            'environment': False,
            'prefix': ('tool', 'fieldguard')
        },
        {
            'path': Path(__file__).parent / 'settings.toml',
            'environment': False
        }
    )
    ENV_PREFIX = 'FIELDGUARD'
    _files: dict[int, "Settings"] = {}

    @classmethod
    def get_settings(cls) -> "Settings":
        """
        Retrieve the settings singleton, which reads the first file in the
        lookup chain and falls back to the other files.
        """

        return cls._get_fallback(cls.FILES)

    @classmethod
    def _get_fallback(cls, fallbacks: Chain) -> "Settings":
        key = hash(tuple(tuple(file.values()) for file in fallbacks))
        if key not in cls._files:
            cls._files[key] = cls(fallbacks=fallbacks[1:], **fallbacks[0])

        return cls._files[key]

    @classmethod
    def clear(cls) -> None:
        """
        Forget the singleton and its fallbacks, so that files and environment
        variables are read again.
        """

        cls._files = {}

    def __init__(self, path: Union[str, os.PathLike] = 'settings.toml',
                 environment: bool = True, prefix: tuple[str, ...] = (),
                 fallbacks: Chain = ()) -> None:
        if environment:
            path = os.getenv(f'{self.ENV_PREFIX}_SETTINGS_FILE', path)

        try:
            with Path(path).open('r', encoding='utf-8') as settings_file:
                self.document = tomlkit.load(settings_file)
        except FileNotFoundError:
            self.document = tomlkit.TOMLDocument()

        sections = self.document
        for group in prefix:
            sections = sections.get(group, {})
        self.sections: dict[str, dict[str, str]] = sections

        self.environment = environment
        self.fallbacks = fallbacks
        self.prefix = prefix

    def _env_name(self, section: str, key: str) -> str:
        return f"{self.ENV_PREFIX}_{section.upper()}_" \
            f"{key.upper().replace('-', '_')}"

    def get(self, section: str, key: str) -> str:
        """
        Retrieve a settings value as text by its `section` table and `key`.
        An environment variable takes precedence over the first file, and
        fallback files provide the value when the key is absent.
        """

        env_name = self._env_name(section, key)
        if self.environment and env_name in os.environ:
            return os.environ[env_name]
        group = self.sections.get(section)
        if not isinstance(group, dict) or key not in group:
            if self.fallbacks:
                return self._get_fallback(self.fallbacks).get(section, key)
            raise KeyError(f'{section} is not a section or does not have {key}')
        return str(group[key])

    def get_bool(self, section: str, key: str) -> bool:
        """
        Retrieve a settings value as a boolean. The same spellings as lenient
        boolean fields are accepted, such as "true", "no" or "1". A ValueError
        names the setting when the value is not one of them.
        """

        value = self.get(section, key)
        try:
            return to_bool(value)
        except CoercionError as error:
            raise ValueError(f'Setting {key} in section {section} must be '
                             f'one of {", ".join(error.accepted)}, '
                             f'got {value!r}') from error

    def get_path(self, section: str, key: str,
                 override: Optional[str] = None) -> Path:
        """
        Retrieve a settings value as a path, unless `override` is given,
        for example from a command line argument.
        """

        return Path(override or self.get(section, key))

    def decoder_config(self) -> DecoderConfig:
        """
        Create the options of runtime and generated decoders from the
        `generate` section.
        """

        return DecoderConfig(
            null_safety=self.get_bool('generate', 'null_safety'),
            validate_required_keys=self.get_bool('generate',
                                                 'validate_required_keys'),
            method_name=self.get('generate', 'method_name'),
            generate_both_methods=self.get_bool('generate',
                                                'generate_both_methods')
        )

    def init_options(self, project_root: Union[str, os.PathLike] = '.',
                     target_directory: Optional[str] = None,
                     apply_changes: bool = True,
                     verbose: bool = False) -> InitOptions:
        """
        Create the options for adding decoder declarations to models from the
        `init` section and the module suffix of the `generate` section.
        A `target_directory` replaces the configured path to scan.
        """

        return InitOptions(
            project_root=project_root,
            target_directory=target_directory or self.get('init', 'path'),
            apply_changes=apply_changes,
            verbose=verbose,
            marker=self.get('init', 'marker'),
            companion=self.get('init', 'companion'),
            suffix=self.get('generate', 'suffix')
        )

    def get_comments(self) -> dict[str, dict[str, list[Comment]]]:
        """
        Retrieve the comments that precede each setting, grouped by section
        and key. Comments of fallback files are included for keys that the
        file itself does not document.
        """

        comment: list[Comment] = []
        comments: dict[str, dict[str, list[Comment]]] = {}
        if self.fallbacks:
            comments = self._get_fallback(self.fallbacks).get_comments()
        for table, section in self.sections.items():
            comments.setdefault(table, {})
            if not isinstance(section, Table):
                continue
            for key, value in section.value.body:
                if isinstance(value, Comment):
                    comment.append(value)
                elif isinstance(value, Item) and key is not None:
                    comments[table].setdefault(str(key), [])
                    comments[table][str(key)].extend(comment)
                    comment = []

        return comments

    def get_document(self) -> tomlkit.TOMLDocument:
        """
        Build a TOML document with the effective value of every setting,
        including environment overrides and fallback defaults, with the
        comments of the files that define them.
        """

        if self.fallbacks:
            document = self._get_fallback(self.fallbacks).get_document()
        else:
            document = tomlkit.document()

        comments = self.get_comments()
        for section, table in self.sections.items():
            table_comments = comments.get(section, {})
            document.setdefault(section, tomlkit.table())
            for key in table:
                if key not in document[section]:
                    for comment in table_comments.get(key, []):
                        document[section].add(comment)
                document[section][key] = self.get(section, key)

        return document
