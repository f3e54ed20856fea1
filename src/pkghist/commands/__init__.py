"""
pkghist commands module.

This module provides the command implementations for the pkghist CLI.
"""

from pkghist.commands.query_cmd import cmd_query
from pkghist.commands.serve_cmd import cmd_serve

__all__ = [
    "cmd_query",
    "cmd_serve",
]
