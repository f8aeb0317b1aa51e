"""helpscope: introspect arbitrary command-line programs from their help text.

Public API:
    HelpParser().parse(text) -> ParsedHelpDocument
    CLIIntrospector(executor).get_command_structure() -> CommandStructure
    discover_clis(options) -> list[DiscoveredCLI]
"""

from helpscope.discovery import DiscoveredCLI, DiscoveryOptions, discover_clis
from helpscope.introspection import CLIIntrospector, CommandStructure
from helpscope.parser import HelpParser, ParsedHelpDocument

__version__ = "0.1.0"

__all__ = [
    "CLIIntrospector",
    "CommandStructure",
    "DiscoveredCLI",
    "DiscoveryOptions",
    "HelpParser",
    "ParsedHelpDocument",
    "discover_clis",
]
