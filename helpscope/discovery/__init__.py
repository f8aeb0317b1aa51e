"""Search-path discovery and ranking of command-line programs."""

from helpscope.discovery.cache import DiscoveryCache
from helpscope.discovery.orchestrator import (
    discover_clis,
    make_help_probe,
    probe_help_support,
    register_cli,
)
from helpscope.discovery.types import (
    DiscoveredCLI,
    DiscoveryOptions,
    HelpQuality,
    InstallCategory,
)

__all__ = [
    "DiscoveredCLI",
    "DiscoveryCache",
    "DiscoveryOptions",
    "HelpQuality",
    "InstallCategory",
    "discover_clis",
    "make_help_probe",
    "register_cli",
    "probe_help_support",
]
