"""Line normalization for raw help output.

Steps, in order:
1. Strip ANSI escape sequences and backspace overstrike.
2. Split on line breaks and right-trim every line.
3. Drop pager artifacts (``--More--``).
4. Expand tabs and tokenize each line.
5. Detect the dominant indent unit and, if present, a soft-wrap width.
6. Reflow lines that the terminal wrapped at that width.

Tokenization is lossy and overlapping: one substring may yield several
tokens. Classification only relies on aggregate counts.
"""

import re
from collections import Counter
from dataclasses import dataclass, field
from typing import Optional

from helpscope.parser.types import HelpLine, LineToken, TokenKind

WRAP_WIDTH_MIN = 60
WRAP_WIDTH_MAX = 120
WRAP_MIN_OCCURRENCES = 3
WRAP_SLACK_BELOW = 8
WRAP_SLACK_ABOVE = 4
DEFAULT_INDENT_UNIT = 2
TAB_EXPANSION = "  "

_ANSI_PATTERN = re.compile(
    r"\x1b\[[0-?]*[ -/]*[@-~]"          # CSI (colours, cursor movement)
    r"|\x1b\][^\x07\x1b]*(?:\x07|\x1b\\)"  # OSC (hyperlinks, titles)
    r"|\x1b[@-Z\\-_]"                  # two-character escapes
)
_OVERSTRIKE_PATTERN = re.compile(r".\x08")
_LINE_BREAK = re.compile(r"\r?\n")
_PAGER_ARTIFACT = re.compile(r"^--More--", re.IGNORECASE)
_TERMINAL_PUNCTUATION = re.compile(r"[.;:]\s*$")

_FLAG_TOKEN = re.compile(r"(?:^|\s)(-{1,2}[A-Za-z0-9][\w-]*)(?=[\s,]|$)")
_ARG_TOKEN = re.compile(r"<[^>]+>|\[[^\]]+\]|\b[A-Z][A-Z0-9_-]{2,}\b")
_WORD_TOKEN = re.compile(r"\b[^\W_][\w-]+\b")
_PUNCT_KINDS = {",": TokenKind.COMMA, ":": TokenKind.COLON, "=": TokenKind.EQ}
_BULLET_CHARS = "-•*"


@dataclass
class NormalizedDocument:
    lines: list[HelpLine]
    indent_unit: int
    wrap_width: Optional[int] = None
    warnings: list[str] = field(default_factory=list)


def strip_ansi(text: str) -> str:
    """Remove terminal escape sequences and man-page overstrike."""
    text = _ANSI_PATTERN.sub("", text)
    # Overstrike pairs ("X\bX" bold, "_\bX" underline) keep the second char.
    while "\x08" in text:
        stripped = _OVERSTRIKE_PATTERN.sub("", text)
        if stripped == text:
            text = text.replace("\x08", "")
            break
        text = stripped
    return text


def split_lines(text: str) -> list[str]:
    return _LINE_BREAK.split(text)


def tokenize_line(text: str) -> tuple[LineToken, ...]:
    """Extract flag, punctuation, bullet, argument and word tokens.

    Tokens are sorted by column; ties keep extraction order.
    """
    if not text.strip():
        return ()

    tokens: list[LineToken] = []

    for match in _FLAG_TOKEN.finditer(text):
        tokens.append(LineToken(match.group(1), TokenKind.FLAG, match.start(1)))

    for i, char in enumerate(text):
        kind = _PUNCT_KINDS.get(char)
        if kind is not None:
            tokens.append(LineToken(char, kind, i))
        elif char in _BULLET_CHARS and (i == 0 or text[i - 1] == " "):
            tokens.append(LineToken(char, TokenKind.BULLET, i))

    for match in _ARG_TOKEN.finditer(text):
        tokens.append(LineToken(match.group(0), TokenKind.ARG, match.start()))

    for match in _WORD_TOKEN.finditer(text):
        tokens.append(LineToken(match.group(0), TokenKind.WORD, match.start()))

    tokens.sort(key=lambda t: t.column)
    return tuple(tokens)


def make_line(raw: str, index: int) -> HelpLine:
    text = raw.replace("\t", TAB_EXPANSION)
    indent = len(text) - len(text.lstrip())
    return HelpLine(
        raw=raw,
        text=text,
        indent=indent,
        tokens=tokenize_line(text),
        index=index,
    )


def dominant_indent(candidates: list[int]) -> Optional[int]:
    """Most frequent indent width; widths above 8 are halved into buckets.

    Ties go to the bucket seen first. Returns None when nothing is indented.
    """
    if not candidates:
        return None
    counts: Counter = Counter()
    for value in candidates:
        counts[value if value <= 8 else round(value / 2)] += 1

    best, best_count = candidates[0], 0
    for width, count in counts.items():
        if count > best_count:
            best, best_count = width, count
    return best or None


def detect_wrap_width(texts: list[str]) -> Optional[int]:
    """Return a line length that recurs often enough to be a wrap column."""
    histogram: Counter = Counter()
    for text in texts:
        length = len(text.rstrip())
        if WRAP_WIDTH_MIN <= length <= WRAP_WIDTH_MAX:
            histogram[length] += 1

    best_width: Optional[int] = None
    best_count = WRAP_MIN_OCCURRENCES
    for width, count in histogram.items():
        if count > best_count:
            best_width, best_count = width, count
    return best_width


def _should_join(line: HelpLine, nxt: Optional[HelpLine], wrap_width: int) -> bool:
    if nxt is None or nxt.is_blank:
        return False
    length = len(line.text)
    if not (wrap_width - WRAP_SLACK_BELOW <= length <= wrap_width + WRAP_SLACK_ABOVE):
        return False
    if nxt.indent <= line.indent:
        return False
    return not _TERMINAL_PUNCTUATION.search(line.stripped)


def reflow(lines: list[HelpLine], wrap_width: int) -> tuple[list[HelpLine], int]:
    """Merge soft-wrapped continuation lines back onto their first line.

    Returns the reflowed lines and the number of joins performed.
    """
    reflowed: list[HelpLine] = []
    joins = 0
    i = 0
    while i < len(lines):
        line = lines[i]
        nxt = lines[i + 1] if i + 1 < len(lines) else None
        if not line.is_blank and _should_join(line, nxt, wrap_width):
            # Only the seam is collapsed; inner column gaps must survive.
            joined = f"{line.text.rstrip()} {nxt.stripped}"
            reflowed.append(
                HelpLine(
                    raw=joined,
                    text=joined,
                    indent=line.indent,
                    tokens=tokenize_line(joined),
                    index=line.index,
                )
            )
            joins += 1
            i += 2
            continue
        reflowed.append(line)
        i += 1
    return reflowed, joins


def normalize_lines(raw_lines: list[str]) -> NormalizedDocument:
    """Turn already ANSI-stripped raw lines into a NormalizedDocument."""
    warnings: list[str] = []
    trimmed = [line.rstrip() for line in raw_lines]
    kept = [line for line in trimmed if not _PAGER_ARTIFACT.match(line.strip())]
    dropped = len(trimmed) - len(kept)
    if dropped:
        warnings.append(f"dropped {dropped} pager artifact line(s)")

    lines = [make_line(raw, index) for index, raw in enumerate(kept)]
    indent_unit = dominant_indent([l.indent for l in lines if l.indent > 0]) or DEFAULT_INDENT_UNIT

    wrap_width = detect_wrap_width([l.text for l in lines])
    if wrap_width:
        lines, joins = reflow(lines, wrap_width)
        if joins:
            warnings.append(f"reflowed {joins} soft-wrapped line(s) at width {wrap_width}")

    return NormalizedDocument(
        lines=lines,
        indent_unit=indent_unit,
        wrap_width=wrap_width,
        warnings=warnings,
    )
