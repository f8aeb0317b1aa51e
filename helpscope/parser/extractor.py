"""Entity extraction from classified blocks.

Each block role has its own extractor; roles without entities (table, kv,
paragraph) contribute only to telemetry counters. After extraction,
commands and options are merged by identity and sorted by confidence.
"""

import re
from dataclasses import dataclass, field, replace
from typing import Callable, Optional

from helpscope.parser.classifier import DEFAULT_WEIGHTS
from helpscope.parser.types import (
    BlockOrigin,
    BlockRole,
    HelpBlock,
    HelpSection,
    HeuristicWeights,
    ParsedCommand,
    ParsedOption,
    UsagePattern,
)

_COMMAND_HEAD = re.compile(r"^(\S+)(\s{2,})(.+)$")
_COMMA_SPLIT = re.compile(r"[,，]")
_COMMA_TOKEN = re.compile(r"^[-_A-Za-z0-9]+$")
_TWO_SPACES = re.compile(r"\s{2,}")
_LETTER = re.compile(r"[A-Za-z]")
_SHORT_FLAG = re.compile(r"^-[^-]$")
_VALUE_HINT = re.compile(r"\s(?:=|to)\s+", re.IGNORECASE)
_INLINE_DEFAULT = re.compile(r"default\s*[=:]?\s*([^,;\s)]+)", re.IGNORECASE)
_USAGE_PREFIX = re.compile(r"^usage\s*:\s*", re.IGNORECASE)
_OPTION_HEAD = re.compile(
    r"^(?P<flags>-{1,2}[\w-]+(?:\s*,\s*-{1,2}[\w-]+)*)"
    r"(?:"
    r"[=\s]+(?P<arg><[^>]+>|\[[^\]]+\]|[A-Z][A-Z0-9_-]+\b)"
    r"|[=\s](?P<typed>[a-z][\w.-]*)(?=\s{2,}|$)"
    r")?"
    r"\s*(?P<tail>.*)$"
)


@dataclass
class OptionHead:
    long: Optional[str]
    short: Optional[str]
    aliases: list[str]
    argument: Optional[str]
    tail: str
    takes_value: bool
    default_value: Optional[str]
    confidence: float


@dataclass
class ExtractionResult:
    commands: list[ParsedCommand] = field(default_factory=list)
    options: list[ParsedOption] = field(default_factory=list)
    usages: list[UsagePattern] = field(default_factory=list)
    warnings: list[str] = field(default_factory=list)
    command_blocks: int = 0
    option_blocks: int = 0
    usage_blocks: int = 0
    table_blocks: int = 0
    paragraph_blocks: int = 0


# ---------------------------------------------------------------------------
# Line-level helpers
# ---------------------------------------------------------------------------

def compute_command_confidence(
    line: str, weights: HeuristicWeights = DEFAULT_WEIGHTS
) -> float:
    w = weights
    confidence = w.command_base
    if _TWO_SPACES.search(line):
        confidence += w.command_gap_bonus
    if _LETTER.search(line):
        confidence += w.command_letter_bonus
    if len(line) < w.command_short_line_length:
        confidence += w.command_short_line_bonus
    return min(w.command_cap, confidence)


def extract_inline_default(text: str) -> Optional[str]:
    match = _INLINE_DEFAULT.search(text)
    return match.group(1) if match else None


def parse_option_head(
    line: str, weights: HeuristicWeights = DEFAULT_WEIGHTS
) -> Optional[OptionHead]:
    """Parse ``-x, --long ARG  description`` into its parts, or None."""
    match = _OPTION_HEAD.match(line)
    if not match:
        return None

    names = [n for n in re.split(r"\s*,\s*", match.group("flags")) if n]
    long = next((n for n in names if n.startswith("--")), None)
    short = next((n for n in names if _SHORT_FLAG.match(n)), None)
    aliases = [n for n in names if n != long and n != short]
    argument = (match.group("arg") or match.group("typed") or "").strip() or None
    tail = match.group("tail") or ""

    w = weights
    bonus = len(names) * w.option_alias_step + (w.option_argument_bonus if argument else 0.0)
    return OptionHead(
        long=long,
        short=short,
        aliases=aliases,
        argument=argument,
        tail=tail,
        takes_value=bool(argument) or bool(_VALUE_HINT.search(line)),
        default_value=extract_inline_default(tail),
        confidence=w.option_base + min(w.option_bonus_cap, bonus),
    )


def tokenize_usage(line: str) -> tuple[str, ...]:
    return tuple(line.split())


# ---------------------------------------------------------------------------
# Per-role extractors
# ---------------------------------------------------------------------------

def extract_commands(
    block: HelpBlock,
    section_index: int,
    block_index: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[ParsedCommand]:
    """Extract ``name  description`` rows, inline comma lists and continuations."""
    commands: list[ParsedCommand] = []
    pending: Optional[ParsedCommand] = None

    for line_index, line in enumerate(block.lines):
        trimmed = line.stripped
        if not trimmed:
            continue

        head = _COMMAND_HEAD.match(trimmed)
        if head:
            if pending is not None:
                commands.append(pending)
            pending = ParsedCommand(
                name=head.group(1),
                description=head.group(3).strip(),
                confidence=compute_command_confidence(trimmed, weights),
                origin=BlockOrigin(section_index, block_index, line_index),
            )
            continue

        parts = [p.strip() for p in _COMMA_SPLIT.split(trimmed)]
        if len(parts) > 2:
            for name in parts:
                if name:
                    commands.append(
                        ParsedCommand(
                            name=name,
                            description="",
                            confidence=weights.inline_comma_command_confidence,
                            origin=BlockOrigin(section_index, block_index, line_index),
                        )
                    )
            pending = None
            continue

        if pending is not None and line.indent > 0:
            pending.description = f"{pending.description} {trimmed}".strip()

    if pending is not None:
        commands.append(pending)
    return commands


def extract_comma_list(
    block: HelpBlock,
    section_index: int,
    block_index: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[ParsedCommand]:
    combined = " ".join(line.text for line in block.lines)
    names = [t.strip() for t in _COMMA_SPLIT.split(combined)]
    return [
        ParsedCommand(
            name=name,
            description="",
            confidence=weights.comma_list_confidence,
            origin=BlockOrigin(section_index, block_index, idx),
        )
        for idx, name in enumerate(n for n in names if n and _COMMA_TOKEN.match(n))
    ]


def extract_options(
    block: HelpBlock,
    section_index: int,
    block_index: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[ParsedOption]:
    """Extract option rows; deeper-indented lines continue the current option."""
    options: list[ParsedOption] = []
    current: Optional[ParsedOption] = None
    baseline_indent = 0

    for line_index, line in enumerate(block.lines):
        trimmed = line.stripped
        if not trimmed:
            continue

        head = parse_option_head(trimmed, weights)
        if head is not None:
            if current is not None:
                options.append(current)
            current = ParsedOption(
                long=head.long,
                short=head.short,
                aliases=head.aliases,
                takes_value=head.takes_value,
                argument=head.argument,
                default_value=head.default_value,
                description=head.tail.strip(),
                confidence=head.confidence,
                origin=BlockOrigin(section_index, block_index, line_index),
            )
            baseline_indent = line.indent
            continue

        if current is not None and line.indent > baseline_indent:
            current.description = f"{current.description} {trimmed}".strip()
            if not current.default_value:
                current.default_value = extract_inline_default(trimmed)

    if current is not None:
        options.append(current)
    return options


def extract_usages(
    block: HelpBlock,
    section_index: int,
    block_index: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[UsagePattern]:
    usages: list[UsagePattern] = []
    for line_index, line in enumerate(block.lines):
        raw = _USAGE_PREFIX.sub("", line.stripped, count=1).strip()
        if not raw:
            continue
        usages.append(
            UsagePattern(
                raw=raw,
                tokens=tokenize_usage(raw),
                confidence=weights.usage_confidence,
                origin=BlockOrigin(section_index, block_index, line_index),
            )
        )
    return usages


# ---------------------------------------------------------------------------
# Merging
# ---------------------------------------------------------------------------

def merge_descriptions(a: str, b: str) -> str:
    if not a:
        return b
    if not b:
        return a
    if b in a:
        return a
    if a in b:
        return b
    return f"{a}; {b}"


def _union(first: list[str], second: list[str]) -> list[str]:
    return list(dict.fromkeys([*first, *second]))


def merge_commands(commands: list[ParsedCommand]) -> list[ParsedCommand]:
    """Merge commands whose names match case-insensitively.

    Keeps the max confidence, unions aliases and combines descriptions.
    Output is sorted by descending confidence; ties keep first-seen order.
    """
    merged: dict[str, ParsedCommand] = {}
    for command in commands:
        key = command.name.casefold()
        existing = merged.get(key)
        if existing is None:
            merged[key] = replace(command, aliases=list(command.aliases))
            continue
        existing.description = merge_descriptions(existing.description, command.description)
        existing.confidence = max(existing.confidence, command.confidence)
        existing.aliases = _union(existing.aliases, command.aliases)
    return sorted(merged.values(), key=lambda c: c.confidence, reverse=True)


def merge_options(options: list[ParsedOption]) -> list[ParsedOption]:
    """Merge options sharing the same set of spellings.

    Besides the command merge rules, missing long/short forms, arguments and
    defaults are back-filled and `takes_value` is OR-ed.
    """
    merged: dict[str, ParsedOption] = {}
    for option in options:
        key = option.identity_key
        existing = merged.get(key)
        if existing is None:
            merged[key] = replace(option, aliases=list(option.aliases))
            continue
        existing.description = merge_descriptions(existing.description, option.description)
        existing.confidence = max(existing.confidence, option.confidence)
        existing.default_value = existing.default_value or option.default_value
        existing.argument = existing.argument or option.argument
        existing.takes_value = existing.takes_value or option.takes_value
        existing.aliases = _union(existing.aliases, option.aliases)
        existing.long = existing.long or option.long
        existing.short = existing.short or option.short
    return sorted(merged.values(), key=lambda o: o.confidence, reverse=True)


# ---------------------------------------------------------------------------
# Dispatch
# ---------------------------------------------------------------------------

def extract_entities(
    sections: list[HelpSection], weights: HeuristicWeights = DEFAULT_WEIGHTS
) -> ExtractionResult:
    result = ExtractionResult()

    def on_commands(block: HelpBlock, si: int, bi: int) -> None:
        result.command_blocks += 1
        result.commands.extend(extract_commands(block, si, bi, weights))

    def on_comma_list(block: HelpBlock, si: int, bi: int) -> None:
        extracted = extract_comma_list(block, si, bi, weights)
        if extracted:
            result.command_blocks += 1
            result.commands.extend(extracted)

    def on_options(block: HelpBlock, si: int, bi: int) -> None:
        result.option_blocks += 1
        result.options.extend(extract_options(block, si, bi, weights))

    def on_usage(block: HelpBlock, si: int, bi: int) -> None:
        result.usage_blocks += 1
        result.usages.extend(extract_usages(block, si, bi, weights))

    def on_table(block: HelpBlock, si: int, bi: int) -> None:
        result.table_blocks += 1

    def on_paragraph(block: HelpBlock, si: int, bi: int) -> None:
        result.paragraph_blocks += 1

    def on_kv(block: HelpBlock, si: int, bi: int) -> None:
        pass

    handlers: dict[BlockRole, Callable[[HelpBlock, int, int], None]] = {
        BlockRole.COMMAND_LIST: on_commands,
        BlockRole.COMMA_LIST: on_comma_list,
        BlockRole.OPTION_LIST: on_options,
        BlockRole.USAGE: on_usage,
        BlockRole.TABLE: on_table,
        BlockRole.KV: on_kv,
        BlockRole.PARAGRAPH: on_paragraph,
    }

    total_blocks = 0
    for section_index, section in enumerate(sections):
        for block_index, block in enumerate(section.blocks):
            total_blocks += 1
            handlers[block.role](block, section_index, block_index)

    if result.paragraph_blocks:
        result.warnings.append(
            f"{result.paragraph_blocks} of {total_blocks} block(s) below the "
            f"classification threshold"
        )
    if total_blocks and not (result.commands or result.options or result.usages):
        result.warnings.append("no commands, options or usage patterns detected")

    result.commands = merge_commands(result.commands)
    result.options = merge_options(result.options)
    return result
