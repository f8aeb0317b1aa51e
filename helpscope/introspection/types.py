"""Types for the CLI introspector.

`CommandStructure` is built in one piece per cache miss and replaced
whole on refresh; nothing updates it in place after it is returned.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional

from helpscope.parser.types import ParseTelemetry


class CommandCategory(StrEnum):
    BASIC = "basic"
    ADVANCED = "advanced"


@dataclass
class Command:
    """A top-level command of the target program."""

    name: str
    description: str
    category: CommandCategory
    confidence: float
    section_index: int
    has_subcommands: bool = False

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "category": self.category.value,
            "has_subcommands": self.has_subcommands,
            "confidence": round(self.confidence, 2),
            "section_index": self.section_index,
        }


@dataclass
class Subcommand:
    name: str
    description: str
    confidence: float
    path: list[str]

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "confidence": round(self.confidence, 2),
            "path": list(self.path),
        }


@dataclass(frozen=True)
class ProbeEvent:
    """One attempted invocation of the target program."""

    path: tuple[str, ...]
    args: tuple[str, ...]
    exit_code: int
    duration_seconds: float
    success: bool

    def to_dict(self) -> dict:
        return {
            "path": list(self.path),
            "args": list(self.args),
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "success": self.success,
        }


@dataclass
class HelpCapture:
    path: list[str]
    args: list[str]
    stdout: str = ""
    exit_code: int = -1
    duration_seconds: float = 0.0

    @property
    def has_output(self) -> bool:
        return bool(self.stdout.strip())


@dataclass
class IntrospectionTelemetry:
    """Parse telemetry per probed path plus the raw probe log.

    `subcommands` is keyed by the space-joined command path.
    """

    root: Optional[ParseTelemetry] = None
    subcommands: dict[str, ParseTelemetry] = field(default_factory=dict)
    probes: list[ProbeEvent] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "root": self.root.to_dict() if self.root else None,
            "subcommands": {k: v.to_dict() for k, v in self.subcommands.items()},
            "probes": [p.to_dict() for p in self.probes],
        }


@dataclass
class CommandStructure:
    commands: list[Command] = field(default_factory=list)
    subcommands: dict[str, list[Subcommand]] = field(default_factory=dict)
    telemetry: IntrospectionTelemetry = field(default_factory=IntrospectionTelemetry)
    # Wall-clock time (epoch seconds) the structure was built
    timestamp: float = 0.0

    def to_dict(self) -> dict:
        return {
            "commands": [c.to_dict() for c in self.commands],
            "subcommands": {
                name: [s.to_dict() for s in subs] for name, subs in self.subcommands.items()
            },
            "telemetry": self.telemetry.to_dict(),
            "timestamp": self.timestamp,
        }
