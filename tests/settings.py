"""
Tests for settings module.
"""

from collections.abc import Callable
from pathlib import Path
from typing import Any, TypeVar, cast, final
import unittest
from unittest.mock import patch
from typing_extensions import override
import tomlkit
from tomlkit.items import Table
from fieldguard.decoder import DecoderConfig
from fieldguard.rewrite import InitOptions
from fieldguard.settings import Settings

CT = TypeVar("CT", bound=Callable[..., Any])

def patch_settings(settings: dict[str, str]) -> Callable[[CT], CT]:
    """
    Patch the environment variables with overrides for settings.
    """

    def decorator(test_method: CT) -> CT:
        return cast(CT, patch.dict("os.environ", settings)(test_method))

    return decorator

class SettingsTestCase(unittest.TestCase):
    """
    Test case base class which replaces the settings file with example settings.
    """

    @override
    def setUp(self) -> None:
        super().setUp()
        Settings.clear()
        patcher = patch.dict('os.environ',
                             {'FIELDGUARD_SETTINGS_FILE':
                                  'tests/settings.toml'})
        cast(Callable[[], None], patcher.start)()
        self.addCleanup(cast(Callable[[], None], patcher.stop))

    @override
    def tearDown(self) -> None:
        super().tearDown()
        Settings.clear()

@final
class SettingsTest(SettingsTestCase):
    """
    Tests for settings reader and provider.
    """

    def test_get_settings(self) -> None:
        """
        Test retrieving the settings singleton.
        """

        settings = Settings.get_settings()
        self.assertIs(settings, Settings.get_settings())

    def test_clear(self) -> None:
        """
        Test clearing the singleton instance.
        """

        settings = Settings.get_settings()
        Settings.clear()
        self.assertIsNot(settings, Settings.get_settings())

    def test_get(self) -> None:
        """
        Test retrieving a settings item.
        """

        settings = Settings.get_settings()
        self.assertEqual(settings.get('init', 'path'), 'models')
        with patch.dict('os.environ', {'FIELDGUARD_INIT_PATH': '/tmp'}):
            self.assertEqual(settings.get('init', 'path'), '/tmp')

        with self.assertRaises(KeyError):
            _ = settings.get('missing', 'path')

        for section in ('init', 'other'):
            pattern = f'{section} is not a section or does not have ?'
            with self.assertRaisesRegex(KeyError, pattern):
                _ = settings.get(section, '?')

        self.assertEqual(settings.get('generate', 'method_name'),
                         'decode_safe')

        # Defaults from fallback chain
        self.assertEqual(settings.get('init', 'marker'), 'dataclass')
        self.assertEqual(settings.get('generate', 'suffix'), '_safe_json')

        # Custom property
        self.assertEqual(settings.get('generate', '_custom_prop'), 'ignore')

    def test_get_prefix(self) -> None:
        """
        Test retrieving a settings item from a settings file with prefixes.
        """

        prefix_settings = Settings(path='tests/settings.missing.toml',
                                   environment=False,
                                   fallbacks=(
                                       {
                                           'path': 'tests/settings.prefix.toml',
                                           'environment': False,
                                           'prefix': ('tool', 'fieldguard')
                                       },
                                       {
                                           'path': 'fieldguard/settings.toml',
                                           'environment': False
                                       }
                                   ))
        self.assertEqual(prefix_settings.get('init', 'marker'), 'model')
        self.assertEqual(prefix_settings.get('init', 'companion'), 'guarded')
        self.assertEqual(prefix_settings.get('init', 'path'), '.')

        chain_settings = Settings(path='tests/settings.missing.toml',
                                  environment=False,
                                  fallbacks=(
                                      {
                                          'path': 'tests/settings.prefix.toml',
                                          'environment': False
                                      },
                                  ))
        # A fallback with different parameters remains unique
        with self.assertRaises(KeyError):
            _ = chain_settings.get('init', 'marker')

    def test_get_missing(self) -> None:
        """
        Test retrieving a settings item with a missing settings file.
        """

        environ = {
            'FIELDGUARD_SETTINGS_FILE': 'tests/settings.toml.missing',
            'FIELDGUARD_GENERATE_NULL_SAFETY': 'false'
        }
        with patch.dict('os.environ', environ):
            settings = Settings.get_settings()
            self.assertEqual(settings.get('generate', 'null_safety'), 'false')
            self.assertEqual(settings.get('init', 'path'), '.')
            with self.assertRaises(KeyError):
                _ = settings.get('missing', 'path')

    def test_get_bool(self) -> None:
        """
        Test retrieving a settings item as a boolean.
        """

        settings = Settings.get_settings()
        self.assertTrue(settings.get_bool('generate', 'null_safety'))
        self.assertFalse(settings.get_bool('generate',
                                           'validate_required_keys'))
        environ = {
            'FIELDGUARD_GENERATE_NULL_SAFETY': 'No',
            'FIELDGUARD_GENERATE_VALIDATE_REQUIRED_KEYS': '1'
        }
        with patch.dict('os.environ', environ):
            self.assertFalse(settings.get_bool('generate', 'null_safety'))
            self.assertTrue(settings.get_bool('generate',
                                              'validate_required_keys'))

        with patch.dict('os.environ',
                        {'FIELDGUARD_GENERATE_NULL_SAFETY': 'maybe'}):
            pattern = "Setting null_safety in section generate must be .*yes"
            with self.assertRaisesRegex(ValueError, pattern):
                settings.get_bool('generate', 'null_safety')

        with self.assertRaises(KeyError):
            settings.get_bool('generate', 'missing')

    def test_get_path(self) -> None:
        """
        Test retrieving a settings item as a path with an optional override.
        """

        settings = Settings.get_settings()
        self.assertEqual(settings.get_path('init', 'path'), Path('models'))
        self.assertEqual(settings.get_path('init', 'path', ''),
                         Path('models'))
        self.assertEqual(settings.get_path('init', 'path', 'src/models'),
                         Path('src/models'))

    def test_decoder_config(self) -> None:
        """
        Test creating decoder options from the generate section.
        """

        settings = Settings.get_settings()
        self.assertEqual(settings.decoder_config(),
                         DecoderConfig(method_name='decode_safe'))

        environ = {
            'FIELDGUARD_GENERATE_NULL_SAFETY': 'false',
            'FIELDGUARD_GENERATE_VALIDATE_REQUIRED_KEYS': 'yes',
            'FIELDGUARD_GENERATE_GENERATE_BOTH_METHODS': '0',
            'FIELDGUARD_GENERATE_METHOD_NAME': 'parse'
        }
        with patch.dict('os.environ', environ):
            self.assertEqual(settings.decoder_config(),
                             DecoderConfig(null_safety=False,
                                           validate_required_keys=True,
                                           method_name='parse',
                                           generate_both_methods=False))

        with patch.dict('os.environ',
                        {'FIELDGUARD_GENERATE_GENERATE_BOTH_METHODS': 'both'}):
            with self.assertRaisesRegex(ValueError, 'generate_both_methods'):
                settings.decoder_config()

    def test_init_options(self) -> None:
        """
        Test creating options for adding decoder declarations from the init
        section.
        """

        settings = Settings.get_settings()
        self.assertEqual(settings.init_options(),
                         InitOptions(project_root='.',
                                     target_directory='models'))

        environ = {
            'FIELDGUARD_INIT_MARKER': 'model',
            'FIELDGUARD_INIT_COMPANION': 'guarded',
            'FIELDGUARD_GENERATE_SUFFIX': '_decoders'
        }
        with patch.dict('os.environ', environ):
            options = settings.init_options(project_root='project',
                                            target_directory='src',
                                            apply_changes=False,
                                            verbose=True)
            self.assertEqual(options,
                             InitOptions(project_root='project',
                                         target_directory='src',
                                         apply_changes=False, verbose=True,
                                         marker='model', companion='guarded',
                                         suffix='_decoders'))

    def test_get_comments(self) -> None:
        """
        Test retrieving comments of the settings by section.
        """

        comments = Settings.get_settings().get_comments()
        self.assertEqual(set(comments['init']),
                         {'path', 'marker', 'companion'})
        self.assertIn('_custom_prop', comments['generate'])
        self.assertEqual(comments['_other'], {})

        custom = ''.join(comment.as_string()
                         for comment in comments['generate']['_custom_prop'])
        self.assertIn('Some property that does not exist in the fallbacks.',
                      custom)
        marker = ''.join(comment.as_string()
                         for comment in comments['init']['marker'])
        self.assertIn('Decorator that marks a class as a model', marker)

    def test_get_document(self) -> None:
        """
        Test reconstructing a TOML document with overrides, default values and
        comments from fallbacks.
        """

        settings = Settings.get_settings()
        with patch.dict('os.environ', {'FIELDGUARD_INIT_PATH': '/tmp'}):
            document = settings.get_document()
            init = document['init']
            if not isinstance(init, Table):
                self.fail("Expected section table for init")
            self.assertEqual(init['path'], '/tmp')

            with self.assertRaises(KeyError):
                self.assertIsNotNone(document['missing'])
            with self.assertRaises(KeyError):
                self.assertIsNotNone(init['?'])

            generate = document['generate']
            if not isinstance(generate, Table):
                self.fail("Expected section table for generate")

            # Defaults from fallback chain
            self.assertEqual(generate['suffix'], '_safe_json')
            self.assertEqual(generate['method_name'], 'decode_safe')

            # Custom property
            self.assertEqual(generate['_custom_prop'], 'ignore')

    def test_get_document_defaults(self) -> None:
        """
        Test reconstructing a TOML document with comments and complete file
        layout from default settings.
        """

        defaults = Settings(**Settings.FILES[-1])
        defaults_path = Path('fieldguard/settings.toml')
        with defaults_path.open("r", encoding="utf-8") as defaults_file:
            expected = tomlkit.load(defaults_file)
        document = defaults.get_document()
        self.assertEqual(document.unwrap(), expected.unwrap())
        self.assertIn("# Module name suffix of generated decoder modules.",
                      document.as_string())
