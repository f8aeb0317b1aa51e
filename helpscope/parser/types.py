"""Types for the help-text parser.

Line-level types (`LineToken`, `HelpLine`) are immutable once produced.
Structural types (`HelpBlock`, `HelpSection`) are built up during
segmentation and then left alone. Entity types (`ParsedCommand`,
`ParsedOption`, `UsagePattern`) carry a confidence in [0, 1] and the
`BlockOrigin` they were extracted from.
"""

from dataclasses import dataclass, field
from enum import StrEnum
from typing import Optional


class TokenKind(StrEnum):
    FLAG = "flag"
    WORD = "word"
    ARG = "arg"
    PUNCT = "punct"
    COMMA = "comma"
    COLON = "colon"
    EQ = "eq"
    BULLET = "bullet"


class BlockRole(StrEnum):
    """Structural role assigned to a block of contiguous help lines."""

    OPTION_LIST = "option-list"
    COMMAND_LIST = "command-list"
    COMMA_LIST = "comma-list"
    USAGE = "usage"
    TABLE = "table"
    KV = "kv"
    PARAGRAPH = "paragraph"


@dataclass(frozen=True)
class LineToken:
    value: str
    kind: TokenKind
    column: int


@dataclass(frozen=True)
class HelpLine:
    """One normalized line.

    raw: the line as captured (right-trimmed, ANSI stripped).
    text: raw with tabs expanded; all column/indent math uses this.
    indent: count of leading whitespace characters in `text`.
    index: position in the normalized document (pre-reflow numbering).
    """

    raw: str
    text: str
    indent: int
    tokens: tuple[LineToken, ...]
    index: int

    @property
    def stripped(self) -> str:
        return self.text.strip()

    @property
    def is_blank(self) -> bool:
        return not self.text.strip()


@dataclass
class BlockScore:
    """Per-block averages of the six line features."""

    option: float = 0.0
    command: float = 0.0
    comma: float = 0.0
    usage: float = 0.0
    table: float = 0.0
    kv: float = 0.0

    def to_dict(self) -> dict:
        return {
            "option": round(self.option, 3),
            "command": round(self.command, 3),
            "comma": round(self.comma, 3),
            "usage": round(self.usage, 3),
            "table": round(self.table, 3),
            "kv": round(self.kv, 3),
        }


@dataclass
class HelpBlock:
    role: BlockRole
    lines: list[HelpLine]
    score: BlockScore
    start_line: int
    end_line: int

    def to_dict(self) -> dict:
        return {
            "role": self.role.value,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "line_count": len(self.lines),
            "score": self.score.to_dict(),
        }


@dataclass
class HelpSection:
    """A (possibly headerless) region of the document.

    depth 0 is the synthetic document root; headed sections start at 1.
    """

    depth: int
    start_line: int
    end_line: int
    header: Optional[str] = None
    blocks: list[HelpBlock] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "header": self.header,
            "depth": self.depth,
            "start_line": self.start_line,
            "end_line": self.end_line,
            "blocks": [b.to_dict() for b in self.blocks],
        }


@dataclass(frozen=True)
class BlockOrigin:
    section_index: int
    block_index: int
    line_index: int

    def to_dict(self) -> dict:
        return {
            "section_index": self.section_index,
            "block_index": self.block_index,
            "line_index": self.line_index,
        }


@dataclass
class ParsedCommand:
    name: str
    description: str
    confidence: float
    origin: BlockOrigin
    aliases: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "name": self.name,
            "description": self.description,
            "aliases": list(self.aliases),
            "confidence": round(self.confidence, 2),
            "origin": self.origin.to_dict(),
        }


@dataclass
class ParsedOption:
    description: str
    confidence: float
    origin: BlockOrigin
    long: Optional[str] = None
    short: Optional[str] = None
    aliases: list[str] = field(default_factory=list)
    takes_value: bool = False
    argument: Optional[str] = None
    default_value: Optional[str] = None

    @property
    def identity_key(self) -> str:
        """Sorted, case-folded union of every spelling of this option."""
        names = [n for n in (self.long, self.short, *self.aliases) if n]
        return "|".join(sorted(n.casefold() for n in names))

    def to_dict(self) -> dict:
        return {
            "long": self.long,
            "short": self.short,
            "aliases": list(self.aliases),
            "takes_value": self.takes_value,
            "argument": self.argument,
            "default_value": self.default_value,
            "description": self.description,
            "confidence": round(self.confidence, 2),
            "origin": self.origin.to_dict(),
        }


@dataclass(frozen=True)
class UsagePattern:
    raw: str
    tokens: tuple[str, ...]
    confidence: float
    origin: BlockOrigin

    def to_dict(self) -> dict:
        return {
            "raw": self.raw,
            "tokens": list(self.tokens),
            "confidence": self.confidence,
            "origin": self.origin.to_dict(),
        }


@dataclass
class ParseTelemetry:
    document_lines: int = 0
    normalized_lines: int = 0
    sections_detected: int = 0
    command_blocks: int = 0
    option_blocks: int = 0
    usage_blocks: int = 0
    table_blocks: int = 0
    paragraph_blocks: int = 0
    average_command_confidence: float = 0.0
    average_option_confidence: float = 0.0
    warnings: list[str] = field(default_factory=list)

    def to_dict(self) -> dict:
        return {
            "document_lines": self.document_lines,
            "normalized_lines": self.normalized_lines,
            "sections_detected": self.sections_detected,
            "command_blocks": self.command_blocks,
            "option_blocks": self.option_blocks,
            "usage_blocks": self.usage_blocks,
            "table_blocks": self.table_blocks,
            "paragraph_blocks": self.paragraph_blocks,
            "average_command_confidence": round(self.average_command_confidence, 3),
            "average_option_confidence": round(self.average_option_confidence, 3),
            "warnings": list(self.warnings),
        }


@dataclass
class ParsedHelpDocument:
    """Parser output. Built fresh on every parse and never mutated afterwards."""

    commands: list[ParsedCommand] = field(default_factory=list)
    options: list[ParsedOption] = field(default_factory=list)
    usages: list[UsagePattern] = field(default_factory=list)
    sections: list[HelpSection] = field(default_factory=list)
    telemetry: ParseTelemetry = field(default_factory=ParseTelemetry)

    def to_dict(self) -> dict:
        return {
            "commands": [c.to_dict() for c in self.commands],
            "options": [o.to_dict() for o in self.options],
            "usages": [u.to_dict() for u in self.usages],
            "sections": [s.to_dict() for s in self.sections],
            "telemetry": self.telemetry.to_dict(),
        }


@dataclass(frozen=True)
class TableColumnBoundary:
    start: int
    end: int


@dataclass(frozen=True)
class HeuristicWeights:
    """Empirical weights and thresholds used by classification and extraction.

    The defaults are a starting calibration, not derived optima; pass an
    override to `HelpParser(weights=...)` to experiment.
    """

    # Block role decision
    role_threshold: float = 0.15
    option_bonus: float = 0.5
    option_bonus_trigger: float = 0.3
    command_bonus: float = 0.4
    command_bonus_comma_ceiling: float = 0.05
    comma_trigger: float = 0.08
    comma_multiplier: float = 5.0
    usage_prefix_bonus: float = 1.0
    usage_section_bonus: float = 0.5
    density_floor: int = 20

    # Command extraction
    command_base: float = 0.4
    command_gap_bonus: float = 0.25
    command_letter_bonus: float = 0.05
    command_short_line_bonus: float = 0.05
    command_short_line_length: int = 80
    command_cap: float = 0.95
    inline_comma_command_confidence: float = 0.45
    comma_list_confidence: float = 0.4

    # Option extraction
    option_base: float = 0.5
    option_alias_step: float = 0.1
    option_argument_bonus: float = 0.1
    option_bonus_cap: float = 0.4

    # Usage extraction
    usage_confidence: float = 0.6
