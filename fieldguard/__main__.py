"""
Command entry point.
"""

import logging
import sys
from .command import Base

def main() -> None:
    """
    Main entry point for fieldguard subcommands.
    """

    logging.basicConfig(format='%(levelname)s: %(message)s')
    Base.start(sys.executable, sys.argv)

if __name__ == "__main__":
    main()
