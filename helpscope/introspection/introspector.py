"""CLIIntrospector: learn a program's command tree from its help output.

Flow for one discovery run:
1. Capture root help by trying the help probes in order.
2. Parse it and turn confident commands into `Command`s.
3. Walk subcommands breadth-first from every root command with
   confidence >= SUBCOMMAND_SEED_CONFIDENCE, bounded by
   MAX_SUBCOMMAND_PROBES captures and MAX_SUBCOMMAND_DEPTH levels.
4. Mark root commands that turned out to have subcommands.

Probes for one target are issued sequentially. Probe failures are
recorded in telemetry and treated as empty output; they never abort the
walk. The finished CommandStructure is cached per target for
`cache_ttl` seconds.
"""

import logging
import time
from collections import deque
from typing import Callable, Optional

from helpscope.core.cache import TTLCache
from helpscope.executor.types import ExecutionError, Executor
from helpscope.introspection.probes import build_probe_attempts, probe_timeout
from helpscope.introspection.types import (
    Command,
    CommandCategory,
    CommandStructure,
    HelpCapture,
    IntrospectionTelemetry,
    ProbeEvent,
    Subcommand,
)
from helpscope.parser import HelpParser, ParsedHelpDocument

logger = logging.getLogger(__name__)

STRUCTURE_CACHE_TTL = 300.0

MIN_COMMAND_CONFIDENCE = 0.35
SUBCOMMAND_SEED_CONFIDENCE = 0.45
SUBCOMMAND_ENQUEUE_CONFIDENCE = 0.5
MAX_SUBCOMMAND_DEPTH = 2
MAX_SUBCOMMAND_PROBES = 14


def to_commands(parsed: ParsedHelpDocument) -> list[Command]:
    """Root commands sorted by confidence.

    Commands from the earliest section that has any are `basic`; commands
    from every later section are `advanced`.
    """
    section_order = sorted({c.origin.section_index for c in parsed.commands})
    first_section = section_order[0] if section_order else None

    commands = [
        Command(
            name=c.name,
            description=c.description,
            category=(
                CommandCategory.BASIC
                if c.origin.section_index == first_section
                else CommandCategory.ADVANCED
            ),
            confidence=c.confidence,
            section_index=c.origin.section_index,
        )
        for c in parsed.commands
        if c.confidence >= MIN_COMMAND_CONFIDENCE
    ]
    commands.sort(key=lambda c: c.confidence, reverse=True)
    return commands


def to_subcommands(parsed: ParsedHelpDocument, path: list[str]) -> list[Subcommand]:
    """Direct subcommands of `path`, minus self-references and duplicates."""
    parent = path[-1]
    seen: set[str] = set()
    subcommands: list[Subcommand] = []
    for c in parsed.commands:
        if c.confidence < MIN_COMMAND_CONFIDENCE or c.name == parent:
            continue
        key = c.name.lower()
        if key in seen:
            continue
        seen.add(key)
        subcommands.append(
            Subcommand(
                name=c.name,
                description=c.description,
                confidence=c.confidence,
                path=[*path, c.name],
            )
        )
    subcommands.sort(key=lambda s: s.confidence, reverse=True)
    return subcommands


class CLIIntrospector:
    def __init__(
        self,
        executor: Executor,
        parser: Optional[HelpParser] = None,
        cache: Optional[TTLCache] = None,
        cache_ttl: float = STRUCTURE_CACHE_TTL,
        target: Optional[str] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if cache_ttl <= 0:
            raise ValueError(f"cache_ttl must be positive, got {cache_ttl}")
        self.executor = executor
        self.parser = parser or HelpParser()
        self.cache_ttl = cache_ttl
        self.cache = cache or TTLCache(default_ttl=cache_ttl)
        self.target = target or getattr(executor, "command", None) or repr(executor)
        self._clock = clock
        self._last_telemetry = IntrospectionTelemetry()

    @property
    def cache_key(self) -> tuple[str, str]:
        return ("structure", self.target)

    def get_command_structure(self) -> CommandStructure:
        """Return the cached structure, rediscovering it once the TTL lapses."""
        return self.cache.get(self.cache_key, self.discover_structure, ttl=self.cache_ttl)

    def clear_cache(self) -> None:
        self.cache.invalidate(self.cache_key)

    def get_telemetry(self) -> IntrospectionTelemetry:
        cached = self.cache.peek(self.cache_key)
        return cached.telemetry if cached is not None else self._last_telemetry

    # ------------------------------------------------------------------
    # Discovery
    # ------------------------------------------------------------------

    def discover_structure(self) -> CommandStructure:
        """Run a full, uncached discovery of the target's command tree."""
        logger.info("Introspecting %s", self.target)
        telemetry = IntrospectionTelemetry()
        self._last_telemetry = telemetry

        root_capture = self.capture_help([], telemetry)
        parsed_root = self.parser.parse(root_capture.stdout)
        telemetry.root = parsed_root.telemetry

        commands = to_commands(parsed_root)
        subcommands = self.discover_subcommands(commands, telemetry)
        for command in commands:
            if command.name in subcommands:
                command.has_subcommands = True

        logger.info(
            "Introspected %s: %d commands, %d with subcommands, %d probes",
            self.target,
            len(commands),
            len(subcommands),
            len(telemetry.probes),
        )
        return CommandStructure(
            commands=commands,
            subcommands=subcommands,
            telemetry=telemetry,
            timestamp=self._clock(),
        )

    def discover_subcommands(
        self, commands: list[Command], telemetry: IntrospectionTelemetry
    ) -> dict[str, list[Subcommand]]:
        """Bounded breadth-first walk below the root commands.

        Only depth-1 results are published in the returned map; deeper
        levels only leave parse telemetry behind.
        """
        queue: deque[tuple[list[str], int]] = deque(
            ([c.name], 1) for c in commands if c.confidence >= SUBCOMMAND_SEED_CONFIDENCE
        )
        visited: set[str] = set()
        subcommand_map: dict[str, list[Subcommand]] = {}
        probes_used = 0

        while queue and probes_used < MAX_SUBCOMMAND_PROBES:
            path, depth = queue.popleft()
            key = " ".join(path)
            if depth > MAX_SUBCOMMAND_DEPTH or key in visited:
                continue
            visited.add(key)
            probes_used += 1

            capture = self.capture_help(path, telemetry)
            if not capture.has_output:
                continue

            parsed = self.parser.parse(capture.stdout)
            telemetry.subcommands[key] = parsed.telemetry

            subcommands = to_subcommands(parsed, path)
            if not subcommands:
                continue

            if depth == 1:
                subcommand_map[path[-1]] = subcommands

            if depth < MAX_SUBCOMMAND_DEPTH:
                for sub in subcommands:
                    if sub.confidence >= SUBCOMMAND_ENQUEUE_CONFIDENCE:
                        queue.append((sub.path, depth + 1))

        if queue:
            logger.debug(
                "Subcommand budget exhausted for %s with %d paths queued",
                self.target,
                len(queue),
            )
        return subcommand_map

    def capture_help(
        self, path: list[str], telemetry: IntrospectionTelemetry
    ) -> HelpCapture:
        """Try each help probe for `path` until one prints something.

        Every attempt appends a ProbeEvent to `telemetry`. Returns the first
        capture with non-blank stdout, else the last capture made, else an
        empty placeholder capture.
        """
        path = [segment for segment in path if segment]
        timeout = probe_timeout(len(path))
        fallback: Optional[HelpCapture] = None

        for args in build_probe_attempts(path):
            try:
                result = self.executor.execute(
                    args, timeout=timeout, accept_output_on_error=True
                )
            except (ExecutionError, OSError) as exc:
                logger.debug("Probe %s %s failed: %s", self.target, args, exc)
                telemetry.probes.append(
                    ProbeEvent(
                        path=tuple(path),
                        args=tuple(args),
                        exit_code=-1,
                        duration_seconds=0.0,
                        success=False,
                    )
                )
                continue

            capture = HelpCapture(
                path=path,
                args=args,
                stdout=result.stdout,
                exit_code=result.exit_code,
                duration_seconds=result.duration_seconds,
            )
            telemetry.probes.append(
                ProbeEvent(
                    path=tuple(path),
                    args=tuple(args),
                    exit_code=result.exit_code,
                    duration_seconds=result.duration_seconds,
                    success=capture.has_output,
                )
            )
            logger.debug("Probe %s %s exited %d", self.target, args, result.exit_code)
            if capture.has_output:
                return capture
            fallback = capture

        return fallback or HelpCapture(path=path, args=[*path, "--help"])
