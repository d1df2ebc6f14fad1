"""
Subcommand to add decoder declarations to model modules.
"""

from .base import Base, SubparserArguments, SubparserKeywords
from ..rewrite import run_init

@Base.register("init")
class Init(Base):
    """
    Add the companion decorator and decoder imports to models.
    """

    subparser_keywords: SubparserKeywords = {
        'help': 'Add decoder declarations to models',
        'description': 'Add the decoder decorator to model classes and import '
                       'the generated decoder modules in their modules.'
    }
    subparser_arguments: SubparserArguments = [
        (('-p', '--path'), {
            'help': 'Directory to scan relative to the project root'
        }),
        (('-r', '--root'), {
            'default': '.',
            'help': 'Project root directory'
        }),
        (('-n', '--dry-run'), {
            'action': 'store_true',
            'default': False,
            'help': 'Report the changes without writing them'
        }),
        (('-v', '--verbose'), {
            'action': 'store_true',
            'default': False,
            'help': 'Also report modules that need no changes'
        })
    ]

    def __init__(self) -> None:
        super().__init__()
        self.path: str = ''
        self.root: str = '.'
        self.dry_run = False
        self.verbose = False

    def run(self) -> None:
        options = self.settings.init_options(project_root=self.root,
                                             target_directory=self.path,
                                             apply_changes=not self.dry_run,
                                             verbose=self.verbose)
        report = run_init(options)

        verb = 'Would update' if self.dry_run else 'Updated'
        for change in report.changes:
            updates = []
            if change.added_decorator:
                updates.append('added decorator')
            if change.added_import:
                updates.append('added import')
            print(f"{verb} {change.path}: {', '.join(updates)}")
        if self.verbose:
            for path in report.skipped_paths:
                print(f'Skipped {path}')

        print(f'Processed {report.processed_count} modules, '
              f'{len(report.changes)} with changes.')
        if report.has_updates and not self.dry_run:
            print(f'Run `{self.program} generate` to create the decoder '
                  'modules.')
