"""
Command model, grammar parser, registry and executor.

The executor and system commands import the natural-language package
lazily; import them from their modules directly.
"""

from .types import *
from .handlers import CancellationToken, CommandHandler, FunctionHandler
from .registry import CommandRegistry, CommandEntry
from .parser import CommandParser, tokenize, parse_value
