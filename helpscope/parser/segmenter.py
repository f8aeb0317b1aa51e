"""Split normalized lines into a tree of sections and classified blocks.

A header line opens a new section whose depth comes from its indentation.
Between headers, contiguous non-blank lines form blocks; a blank line or a
header closes the current block. Every block's role is scored as lines are
appended and fixed once the block closes.
"""

import re
from typing import Optional

from helpscope.parser.classifier import DEFAULT_WEIGHTS, BlockAccumulator, classify_block
from helpscope.parser.types import BlockRole, HelpBlock, HelpLine, HelpSection, HeuristicWeights

MAX_CAPS_HEADER_LENGTH = 50

_TITLE_CASE = re.compile(r"^(?:[A-Z][A-Za-z0-9\-]*)(?:\s+[A-Z][A-Za-z0-9\-]*)*$")
_ALL_CAPS = re.compile(r"^[A-Z0-9 \-]+$")
_UNDERLINE = re.compile(r"^[-=]{3,}\s*$")


def is_underline(line: Optional[HelpLine]) -> bool:
    return line is not None and bool(_UNDERLINE.match(line.stripped))


def is_header_line(line: HelpLine, nxt: Optional[HelpLine] = None) -> bool:
    trimmed = line.stripped
    if not trimmed:
        return False
    if is_underline(nxt):
        return True
    if trimmed.endswith(":"):
        return True
    title_case = bool(_TITLE_CASE.match(trimmed))
    all_caps = bool(_ALL_CAPS.match(trimmed)) and len(trimmed) <= MAX_CAPS_HEADER_LENGTH
    return (title_case or all_caps) and nxt is not None and nxt.indent > line.indent


class _BlockBuilder:
    def __init__(self, first: HelpLine, header: Optional[str], weights: HeuristicWeights):
        self.lines: list[HelpLine] = []
        self.start_line = first.index
        self.end_line = first.index
        self._header = header
        self._weights = weights
        self._acc = BlockAccumulator(weights)

    def append(self, line: HelpLine) -> None:
        self.lines.append(line)
        self._acc.add(line)
        self.end_line = line.index

    def build(self) -> HelpBlock:
        score = self._acc.score
        return HelpBlock(
            role=classify_block(score, self._header, self._weights),
            lines=self.lines,
            score=score,
            start_line=self.start_line,
            end_line=self.end_line,
        )


def segment_sections(
    lines: list[HelpLine],
    indent_unit: int,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[HelpSection]:
    """Build the section list in discovery order.

    The synthetic root (depth 0) is first in the list whenever it received
    blocks or no headed section exists, so the result is never empty.
    """
    root = HelpSection(depth=0, start_line=0, end_line=max(len(lines) - 1, 0))
    sections: list[HelpSection] = []
    stack: list[HelpSection] = [root]
    unit = max(indent_unit, 1)

    current = root
    block: Optional[_BlockBuilder] = None

    def flush() -> None:
        nonlocal block
        if block is not None:
            current.blocks.append(block.build())
            block = None

    i = 0
    while i < len(lines):
        line = lines[i]
        nxt = lines[i + 1] if i + 1 < len(lines) else None

        if line.is_blank:
            flush()
            i += 1
            continue

        if is_header_line(line, nxt):
            flush()
            depth = 1 + line.indent // unit
            section = HelpSection(
                header=line.stripped.removesuffix(":").strip() or None,
                depth=depth,
                start_line=line.index,
                end_line=line.index,
            )
            while stack and stack[-1].depth >= depth:
                stack.pop()
            if stack:
                parent = stack[-1]
                parent.end_line = max(parent.end_line, line.index - 1)
            sections.append(section)
            stack.append(section)
            current = section
            # An underline belongs to its header, not to the first block.
            i += 2 if is_underline(nxt) else 1
            continue

        if block is None:
            block = _BlockBuilder(line, current.header, weights)
        block.append(line)
        i += 1

    flush()

    if root.blocks or not sections:
        sections.insert(0, root)
    return sections


def count_roles(sections: list[HelpSection]) -> dict[BlockRole, int]:
    counts = {role: 0 for role in BlockRole}
    for section in sections:
        for block in section.blocks:
            counts[block.role] += 1
    return counts
