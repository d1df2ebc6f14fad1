"""
Subcommand collection package.
"""

from .base import Base
from .config import Config
from .generate import Generate
from .init import Init
from .inspect import Inspect

__all__ = ["Base", "Config", "Generate", "Init", "Inspect"]
