"""Types for executable discovery."""

from dataclasses import dataclass, field
from enum import StrEnum

from helpscope.core.config import get_settings


class HelpQuality(StrEnum):
    RICH = "rich"
    BASIC = "basic"
    NONE = "none"


class InstallCategory(StrEnum):
    USER_INSTALLED = "user-installed"
    LANGUAGE_TOOL = "language-tool"
    SYSTEM = "system"
    UNKNOWN = "unknown"


@dataclass(frozen=True)
class Candidate:
    """An executable found on the search path, before any probing."""

    name: str
    path: str


@dataclass
class DiscoveredCLI:
    """A scored executable. Identity is `name`; first on the search path wins."""

    name: str
    path: str
    score: int
    has_help: bool
    help_quality: HelpQuality
    category: InstallCategory

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "path": self.path,
            "score": self.score,
            "has_help": self.has_help,
            "help_quality": self.help_quality.value,
            "category": self.category.value,
        }


def _settings_default(name: str):
    return field(default_factory=lambda: getattr(get_settings(), name))


@dataclass
class DiscoveryOptions:
    """Options for `discover_clis`. Unset fields fall back to Settings.

    timeout and cache_ttl are seconds.
    """

    max_concurrent: int = _settings_default("discovery_max_concurrent")
    timeout: float = _settings_default("discovery_timeout")
    min_score: int = _settings_default("discovery_min_score")
    limit: int = _settings_default("discovery_limit")
    use_cache: bool = True
    cache_ttl: float = _settings_default("discovery_cache_ttl")

    def __post_init__(self) -> None:
        if self.max_concurrent < 1:
            raise ValueError(f"max_concurrent must be at least 1, got {self.max_concurrent}")
        if self.timeout <= 0:
            raise ValueError(f"timeout must be positive, got {self.timeout}")
        if self.limit < 0:
            raise ValueError(f"limit must not be negative, got {self.limit}")
        if self.cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive, got {self.cache_ttl}")

