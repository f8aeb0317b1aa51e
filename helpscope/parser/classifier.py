"""Block shape heuristics.

Each non-blank line contributes six features. A block's score is the
running average of those features over its lines, and its role is the
best-scoring candidate among six shapes, or `paragraph` when nothing
clears the threshold. Paragraph blocks yield no entities.
"""

import re
from dataclasses import dataclass
from typing import Optional

from helpscope.parser.types import BlockRole, BlockScore, HeuristicWeights, HelpLine

DEFAULT_WEIGHTS = HeuristicWeights()

_FLAG_HEAD = re.compile(r"^-{1,2}[\w?]")
_HEAD_GAP = re.compile(r"\S\s{2,}\S")
_USAGE_PUNCT = re.compile(r"[\[\]<>|]")
_PIPES = re.compile(r"[│|]")
_SEPARATOR = re.compile(r"^\s*[-=]{3,}$")
_KEY_VALUE = re.compile(r"\b\w+\s*[=:]\s*\S+")
_USAGE_PREFIX = re.compile(r"^usage\s*:", re.IGNORECASE)
_USAGE_HEADER = re.compile(r"^usage\b", re.IGNORECASE)


@dataclass(frozen=True)
class LineFeatures:
    flag_head: bool
    head_gap: bool
    comma_density: float
    punct_density: float
    kv_likelihood: float
    table_likelihood: float
    usage_prefix: bool


def compute_line_features(
    line: HelpLine, weights: HeuristicWeights = DEFAULT_WEIGHTS
) -> LineFeatures:
    trimmed = line.stripped
    length = max(len(trimmed), weights.density_floor)
    tokens = line.tokens
    commas = sum(1 for t in tokens if t.value == ",")
    table = bool(_PIPES.search(trimmed) or _SEPARATOR.match(trimmed))
    return LineFeatures(
        flag_head=bool(_FLAG_HEAD.match(trimmed)),
        head_gap=bool(_HEAD_GAP.search(trimmed)),
        comma_density=commas / length,
        punct_density=len(_USAGE_PUNCT.findall(trimmed)) / length,
        kv_likelihood=1.0 if _KEY_VALUE.search(trimmed) else 0.0,
        table_likelihood=1.0 if table else 0.0,
        usage_prefix=bool(_USAGE_PREFIX.match(trimmed)),
    )


class BlockAccumulator:
    """Running feature sums for a block; `score` is their average.

    Appending a line is O(1), so rescoring after every line stays cheap.
    """

    def __init__(self, weights: HeuristicWeights = DEFAULT_WEIGHTS) -> None:
        self._weights = weights
        self._count = 0
        self._sums = BlockScore()

    def add(self, line: HelpLine) -> None:
        self._count += 1
        if line.is_blank:
            return
        f = compute_line_features(line, self._weights)
        s = self._sums
        s.option += 1.0 if f.flag_head else 0.0
        s.command += 1.0 if f.head_gap else 0.0
        s.comma += f.comma_density
        s.usage += f.punct_density + (self._weights.usage_prefix_bonus if f.usage_prefix else 0.0)
        s.table += f.table_likelihood
        s.kv += f.kv_likelihood

    @property
    def score(self) -> BlockScore:
        if not self._count:
            return BlockScore()
        factor = 1.0 / self._count
        s = self._sums
        return BlockScore(
            option=s.option * factor,
            command=s.command * factor,
            comma=s.comma * factor,
            usage=s.usage * factor,
            table=s.table * factor,
            kv=s.kv * factor,
        )


def accumulate_scores(
    lines: list[HelpLine], weights: HeuristicWeights = DEFAULT_WEIGHTS
) -> BlockScore:
    acc = BlockAccumulator(weights)
    for line in lines:
        acc.add(line)
    return acc.score


def role_scores(
    score: BlockScore,
    header: Optional[str] = None,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> list[tuple[BlockRole, float]]:
    """Candidate score per role, in a fixed tie-breaking order."""
    w = weights
    option = score.option + (w.option_bonus if score.option > w.option_bonus_trigger else 0.0)
    command = score.command + (
        w.command_bonus if score.comma < w.command_bonus_comma_ceiling else 0.0
    )
    comma = score.comma * w.comma_multiplier if score.comma > w.comma_trigger else 0.0
    usage = score.usage
    if header and _USAGE_HEADER.match(header):
        usage += w.usage_section_bonus
    return [
        (BlockRole.OPTION_LIST, option),
        (BlockRole.COMMAND_LIST, command),
        (BlockRole.COMMA_LIST, comma),
        (BlockRole.USAGE, usage),
        (BlockRole.TABLE, score.table),
        (BlockRole.KV, score.kv),
    ]


def classify_block(
    score: BlockScore,
    header: Optional[str] = None,
    weights: HeuristicWeights = DEFAULT_WEIGHTS,
) -> BlockRole:
    """Pick the best role, or PARAGRAPH when it scores below the threshold.

    On equal scores the earlier role in `role_scores` wins.
    """
    best_role, best_value = BlockRole.PARAGRAPH, 0.0
    for role, value in role_scores(score, header, weights):
        if value > best_value:
            best_role, best_value = role, value
    if best_value < weights.role_threshold:
        return BlockRole.PARAGRAPH
    return best_role
