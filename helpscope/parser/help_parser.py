"""HelpParser: raw help text in, ParsedHelpDocument out.

Pipeline: strip ANSI -> normalize lines -> segment sections ->
extract entities -> telemetry. No I/O and no state between calls, so one
parser instance can be shared across threads.
"""

import logging
from typing import Optional

from helpscope.parser.classifier import DEFAULT_WEIGHTS
from helpscope.parser.extractor import extract_entities
from helpscope.parser.normalizer import normalize_lines, split_lines, strip_ansi
from helpscope.parser.segmenter import segment_sections
from helpscope.parser.types import HeuristicWeights, ParsedHelpDocument, ParseTelemetry

logger = logging.getLogger(__name__)


def _average(values: list[float]) -> float:
    return sum(values) / len(values) if values else 0.0


class HelpParser:
    def __init__(self, weights: Optional[HeuristicWeights] = None) -> None:
        self.weights = weights or DEFAULT_WEIGHTS

    def parse(self, raw_output: str) -> ParsedHelpDocument:
        raw_lines = split_lines(strip_ansi(raw_output or ""))
        normalized = normalize_lines(raw_lines)
        sections = segment_sections(normalized.lines, normalized.indent_unit, self.weights)
        extracted = extract_entities(sections, self.weights)

        telemetry = ParseTelemetry(
            document_lines=len(raw_lines),
            normalized_lines=len(normalized.lines),
            sections_detected=len(sections),
            command_blocks=extracted.command_blocks,
            option_blocks=extracted.option_blocks,
            usage_blocks=extracted.usage_blocks,
            table_blocks=extracted.table_blocks,
            paragraph_blocks=extracted.paragraph_blocks,
            average_command_confidence=_average([c.confidence for c in extracted.commands]),
            average_option_confidence=_average([o.confidence for o in extracted.options]),
            warnings=[*normalized.warnings, *extracted.warnings],
        )
        logger.debug(
            "Parsed help text: %d lines, %d sections, %d commands, %d options",
            telemetry.document_lines,
            telemetry.sections_detected,
            len(extracted.commands),
            len(extracted.options),
        )
        return ParsedHelpDocument(
            commands=extracted.commands,
            options=extracted.options,
            usages=extracted.usages,
            sections=sections,
            telemetry=telemetry,
        )
