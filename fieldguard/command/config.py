"""
Subcommand to generate an amalgamate settings file.
"""

import tomlkit
from tomlkit.container import Container
from tomlkit.items import Table
from .base import Base, SubparserArguments, SubparserKeywords
from ..settings import Settings

@Base.register("config")
class Config(Base):
    """
    Obtain settings file representation.
    """

    subparser_keywords: SubparserKeywords = {
        'help': 'Obtain settings representation',
        'description': 'Generate settings TOML representation with comments.'
    }
    subparser_arguments: SubparserArguments = [
        (('section',), {
            'metavar': 'SECTION',
            'nargs': '?',
            'help': 'Optional table section name to filter on'
        }),
        (('key',), {
            'metavar': 'KEY',
            'nargs': '?',
            'help': 'Optional settings key to filter on'
        }),
        (('-f', '--file'), {
            'help': 'Generate based on specific TOML file'
        }),
        (('-p', '--prefix'), {
            'nargs': '+',
            'default': (),
            'help': 'Section prefixes in specific TOML file to look up'
        })
    ]

    def __init__(self) -> None:
        super().__init__()
        self.section: str = ''
        self.key: str = ''
        self.file: str = ''
        self.prefix: tuple[str, ...] = ()

    def run(self) -> None:
        if self.file:
            settings = Settings(path=self.file, environment=False,
                                prefix=tuple(self.prefix))
        else:
            settings = self.settings
        document = settings.get_document()

        if self.section:
            container = Container()
            table = document.get(self.section)
            if isinstance(table, Table):
                table.trivia.indent = ''
                if self.key:
                    comments = settings.get_comments()
                    item = tomlkit.table()
                    if self.key in table:
                        for comment in comments.get(self.section, {}) \
                                .get(self.key, []):
                            item.add(comment)
                        item[self.key] = table[self.key]
                    table = item
                if table:
                    container[self.section] = table

            print(container.as_string())
            return

        print(document.as_string())
