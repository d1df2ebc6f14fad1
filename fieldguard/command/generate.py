"""
Subcommand to generate decoder modules for models.
"""

import logging
from .base import Base, SubparserArguments, SubparserKeywords
from ..generator import generate

@Base.register("generate")
class Generate(Base):
    """
    Generate decoder modules next to model modules.
    """

    subparser_keywords: SubparserKeywords = {
        'help': 'Generate decoder modules',
        'description': 'Generate a decoder module for each module with model '
                       'classes that have the decoder decorator.'
    }
    subparser_arguments: SubparserArguments = [
        (('-p', '--path'), {
            'help': 'Model module or directory to scan'
        }),
        (('-n', '--dry-run'), {
            'action': 'store_true',
            'default': False,
            'help': 'Print the generated modules instead of writing them'
        })
    ]

    def __init__(self) -> None:
        super().__init__()
        self.path: str = ''
        self.dry_run = False

    def run(self) -> None:
        path = self.settings.get_path('init', 'path', self.path)
        modules = generate([path],
                           config=self.settings.decoder_config(),
                           suffix=self.settings.get('generate', 'suffix'),
                           companion=self.settings.get('init', 'companion'),
                           write=not self.dry_run)
        if not modules:
            logging.warning('No models with the %s decorator found in %s',
                            self.settings.get('init', 'companion'), path)
        for module in modules:
            if self.dry_run:
                print(f'# {module.target}')
                print(module.content)
            else:
                print(f"Generated {module.target} for "
                      f"{', '.join(module.models)}")
