"""Heuristic help-text parser."""

from helpscope.parser.help_parser import HelpParser
from helpscope.parser.tables import detect_table_columns
from helpscope.parser.types import (
    BlockRole,
    HeuristicWeights,
    ParsedCommand,
    ParsedHelpDocument,
    ParsedOption,
    UsagePattern,
)

__all__ = [
    "BlockRole",
    "HelpParser",
    "HeuristicWeights",
    "ParsedCommand",
    "ParsedHelpDocument",
    "ParsedOption",
    "UsagePattern",
    "detect_table_columns",
]
