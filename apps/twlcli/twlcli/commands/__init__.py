"""CLI commands"""

from .build import build_command
from .list import list_command
from .run import run_command
from .validate import validate_command

__all__ = ["build_command", "list_command", "run_command", "validate_command"]
