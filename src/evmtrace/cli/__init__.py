"""
CLI module for evmtrace.

Commands:
- export: decode an arena dump and print Parity/Geth/tree/arena JSON
- show: print the decoded call tree
- account: fetch account state through the blocking provider
"""

from .main import main, build_parser
from .export import export_command
from .show import show_command, render_arena
from .account import account_command

__all__ = [
    'main',
    'build_parser',
    'export_command',
    'show_command',
    'render_arena',
    'account_command',
]
