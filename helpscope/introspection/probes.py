"""Help-probe argument patterns and per-depth timeouts."""

HELP_PROBES: tuple[tuple[str, ...], ...] = (
    ("--help",),
    ("-h",),
    ("help",),
    ("--help", "all"),
    ("--help", "full"),
    ("--long",),
)

MAX_PROBE_ATTEMPTS = 6

BASE_PROBE_TIMEOUT = 5.0
PROBE_TIMEOUT_STEP = 1.0
MAX_PROBE_TIMEOUT = 8.0


def build_probe_attempts(path: list[str]) -> list[list[str]]:
    """Ordered, de-duplicated argument vectors to try for `path`.

    Each probe is prefixed by the path. For a non-empty path the fused
    forms ``help <path>`` and ``<path> --help=<topic>`` are tried right
    after their plain counterparts. The list is cut to MAX_PROBE_ATTEMPTS
    before duplicates are removed.
    """
    attempts: list[list[str]] = []
    for probe in HELP_PROBES:
        attempts.append([*path, *probe])
        if probe == ("help",) and path:
            attempts.append(["help", *path])
        if len(probe) == 2 and probe[0] == "--help" and path:
            attempts.append([*path, f"{probe[0]}={probe[1]}"])

    unique: list[list[str]] = []
    seen: set[tuple[str, ...]] = set()
    for args in attempts[:MAX_PROBE_ATTEMPTS]:
        key = tuple(args)
        if key not in seen:
            seen.add(key)
            unique.append(args)
    return unique


def probe_timeout(depth: int) -> float:
    """Seconds allowed for one probe at `depth` path segments."""
    return min(MAX_PROBE_TIMEOUT, BASE_PROBE_TIMEOUT + PROBE_TIMEOUT_STEP * depth)
