"""
Subcommand to inspect the structure of a JSON document.
"""

import json
from pathlib import Path
import yaml
from .base import Base, SubparserArguments, SubparserKeywords
from ..accessor import JsonObject

@Base.register("inspect")
class Inspect(Base):
    """
    Describe a JSON object, compare it with expected keys or scaffold a model.
    """

    subparser_keywords: SubparserKeywords = {
        'help': 'Inspect a JSON document',
        'description': 'Summarize the keys and value types of a JSON object, '
                       'compare them with the keys of a model or generate '
                       'a model for them.'
    }
    subparser_arguments: SubparserArguments = [
        (('file',), {
            'help': 'JSON or YAML file with an object at the top level'
        }),
        (('-e', '--expect'), {
            'metavar': 'KEY',
            'nargs': '+',
            'default': [],
            'help': 'Keys that a model expects, to analyze the mapping'
        }),
        (('-m', '--model'), {
            'metavar': 'CLASS',
            'help': 'Generate a model class with this name, with optional '
                    'fields for keys that are not expected'
        })
    ]

    def __init__(self) -> None:
        super().__init__()
        self.file: str = ''
        self.expect: list[str] = []
        self.model: str = ''

    def run(self) -> None:
        path = Path(self.file)
        with path.open('r', encoding='utf-8') as json_file:
            if path.suffix == '.json':
                data = json.load(json_file)
            else:
                data = yaml.safe_load(json_file)

        obj = JsonObject.of(data, key=path.name)
        if self.model:
            print(obj.generate_model(self.model,
                                     expected=self.expect or None))
        elif self.expect:
            print(obj.analyze_property_mapping(self.expect))
        else:
            print(obj.get_structure_summary())
