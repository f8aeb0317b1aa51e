"""Candidate scoring: help quality, name shape and install location."""

import re
from typing import Optional

from helpscope.discovery.types import (
    Candidate,
    DiscoveredCLI,
    HelpQuality,
    InstallCategory,
)

HELP_PRESENT_SCORE = 10
RICH_HELP_SCORE = 8
BASIC_HELP_SCORE = 4
RICH_HELP_MIN_LENGTH = 500
BASIC_HELP_MIN_LENGTH = 100
DISCARD_BELOW = -5

CATEGORY_SCORES = {
    InstallCategory.USER_INSTALLED: 5,
    InstallCategory.LANGUAGE_TOOL: 3,
    InstallCategory.UNKNOWN: 1,
    InstallCategory.SYSTEM: -2,
}

_STRUCTURE_KEYWORDS = re.compile(
    r"SYNOPSIS|USAGE|DESCRIPTION|OPTIONS|COMMANDS|EXAMPLES", re.IGNORECASE
)
_FLAG_LIKE = re.compile(r"--?\w+")
_VERSION_SUFFIX = re.compile(r"\d+(?:\.\d+)*$")
_HYPHENATED = re.compile(r"^[a-z]+-[a-z]+")
_LANGUAGE_TOOL_DIRS = ("cargo/bin", "node_modules/.bin", ".npm/", "go/bin", "gems/bin")


def assess_help_quality(output: Optional[str]) -> tuple[HelpQuality, int]:
    """Return the richness tier of `output` and the points it earns."""
    if output is None:
        return HelpQuality.NONE, 0
    score = HELP_PRESENT_SCORE
    if len(output) > RICH_HELP_MIN_LENGTH and _STRUCTURE_KEYWORDS.search(output):
        return HelpQuality.RICH, score + RICH_HELP_SCORE
    if len(output) > BASIC_HELP_MIN_LENGTH or _FLAG_LIKE.search(output):
        return HelpQuality.BASIC, score + BASIC_HELP_SCORE
    return HelpQuality.NONE, score


def score_name(name: str) -> int:
    score = 0
    if len(name) <= 2:
        score -= 5
    if 3 <= len(name) <= 15:
        score += 2
    if _VERSION_SUFFIX.search(name):
        score -= 3
    if _HYPHENATED.match(name):
        score += 2
    if name.isupper():
        score -= 2
    return score


def detect_category(path: str) -> InstallCategory:
    normalized = path.lower()
    if "local/bin" in normalized:
        return InstallCategory.USER_INSTALLED
    if any(d in normalized for d in _LANGUAGE_TOOL_DIRS) or (
        "python" in normalized and "site-packages" in normalized
    ):
        return InstallCategory.LANGUAGE_TOOL
    if "/usr/bin" in normalized or "/bin" in normalized:
        return InstallCategory.SYSTEM
    return InstallCategory.UNKNOWN


def score_candidate(candidate: Candidate, help_output: Optional[str]) -> Optional[DiscoveredCLI]:
    """Score a probed candidate, or None when it falls below DISCARD_BELOW."""
    quality, score = assess_help_quality(help_output)
    category = detect_category(candidate.path)
    score += score_name(candidate.name) + CATEGORY_SCORES[category]
    if score < DISCARD_BELOW:
        return None
    return DiscoveredCLI(
        name=candidate.name,
        path=candidate.path,
        score=score,
        has_help=help_output is not None,
        help_quality=quality,
        category=category,
    )


def filter_and_limit(
    clis: list[DiscoveredCLI], min_score: int = 0, limit: int = 100
) -> list[DiscoveredCLI]:
    """Keep scores >= min_score, best first, at most `limit` entries."""
    kept = [cli for cli in clis if cli.score >= min_score]
    kept.sort(key=lambda cli: cli.score, reverse=True)
    return kept[:limit]
