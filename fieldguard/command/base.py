"""
Base for fieldguard subcommands.
"""

from argparse import ArgumentParser
import logging
import os
from pathlib import Path
from typing import Any, Callable, ClassVar, Optional, Union
from typing_extensions import TypedDict
import yaml
from .. import __name__ as NAME, __version__ as VERSION
from ..errors import DecodeError
from ..settings import Settings

class SubparserKeywords(TypedDict, total=False):
    """
    Keyword arguments for the subparser of a subcommand.
    """

    help: str
    description: str

ArgumentSpec = tuple[Union[str, tuple[str, ...]], dict[str, Any]]
SubparserArguments = list[ArgumentSpec]

LOG_LEVELS = ["CRITICAL", "ERROR", "WARNING", "INFO", "DEBUG"]

class Base:
    """
    Abstract command handling.
    """

    _commands: ClassVar[dict[str, type['Base']]] = {}
    program: ClassVar[str] = NAME
    subcommand: ClassVar[str] = ''
    subparser_keywords: ClassVar[SubparserKeywords] = {}
    subparser_arguments: ClassVar[SubparserArguments] = []

    @classmethod
    def register(cls, name: str) -> Callable[[type['Base']], type['Base']]:
        """
        Register a subcommand.
        """

        def decorator(subclass: type['Base']) -> type['Base']:
            cls._commands[name] = subclass
            return subclass

        return decorator

    @classmethod
    def get_command(cls, name: str) -> 'Base':
        """
        Create a command instance for the given subcommand name.
        """

        return cls._commands[name]()

    @classmethod
    def register_arguments(cls) -> ArgumentParser:
        """
        Create an argument parser for all registered subcommands.
        """

        parser = ArgumentParser(prog=NAME,
                                description='Guarded JSON decoding of models')
        parser.add_argument('--version', action='version',
                            version=f'{NAME} {VERSION}')
        parser.add_argument('--log', choices=LOG_LEVELS, default='INFO',
                            help='Log level')
        subparsers = parser.add_subparsers(dest='subcommand',
                                           help='Subcommands')
        for name, command in cls._commands.items():
            subparser = subparsers.add_parser(name,
                                              **command.subparser_keywords)
            for names, keywords in command.subparser_arguments:
                if isinstance(names, str):
                    names = (names,)
                subparser.add_argument(*names, **keywords)

        return parser

    @classmethod
    def start(cls, executable: str, argv: list[str]) -> None:
        """
        Parse command line arguments, register them to the command and execute
        the action of the command.
        """

        if Path(argv[0]).name == '__main__.py':
            path = Path(executable)
            if str(path.parent) in os.get_exec_path():
                executable = path.name
            cls.program = f'{executable} -m {NAME}'
        else:
            cls.program = Path(argv[0]).name

        parser = cls.register_arguments()
        arguments = parser.parse_args(argv[1:])
        subcommand: Optional[str] = getattr(arguments, 'subcommand', None)
        if subcommand is None:
            parser.print_usage()
            return

        logging.getLogger(NAME).setLevel(arguments.log)
        cls.subcommand = subcommand
        command = cls.get_command(subcommand)
        for key, value in vars(arguments).items():
            setattr(command, key, value)

        try:
            command.run()
        except (DecodeError, OSError, yaml.YAMLError) as error:
            logging.error('%s failed: %s', subcommand, error)
            parser.exit(1)

    def __init__(self) -> None:
        self.settings = Settings.get_settings()

    def run(self) -> None:
        """
        Execute the command.
        """

        raise NotImplementedError('Must be implemented by subclasses')
