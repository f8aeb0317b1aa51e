"""discover_clis: find, probe and rank command-line programs on the search path.

Phases:
1. Serve from the discovery cache when it is fresh for this search path.
2. Scan the search path and drop obvious noise before spawning anything.
3. Probe survivors for help support in bounded concurrent batches.
4. Score, persist the full scored set, then filter/sort/limit for the caller.

Each probe runs in a scrubbed environment with its own hard timeout; a
hanging candidate only delays its own batch slot.
"""

import logging
import os
import shutil
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from helpscope.core.config import get_settings
from helpscope.discovery.cache import DiscoveryCache
from helpscope.discovery.noise import is_likely_noise
from helpscope.discovery.scanner import scan_path_directories
from helpscope.discovery.scoring import filter_and_limit, score_candidate
from helpscope.discovery.types import Candidate, DiscoveredCLI, DiscoveryOptions
from helpscope.sandbox import build_limit_applier, build_sandbox_env, run_sandboxed

logger = logging.getLogger(__name__)

HELP_FLAGS = ("--help", "-h", "-?")
MIN_HELP_OUTPUT = 10
REGISTER_TIMEOUT = 1.5

# (path, timeout) -> help text or None
HelpProbe = Callable[[str, float], Optional[str]]
ProgressCallback = Callable[[int, int], None]


def probe_help_support(
    path: str,
    timeout: float,
    env: Optional[dict[str, str]] = None,
    limits: Optional[Callable[[int], None]] = None,
) -> Optional[str]:
    """Try the help flags one at a time and return the first usable output.

    Output counts when it is longer than MIN_HELP_OUTPUT characters after
    stripping whitespace. Flags are never probed in parallel for one
    candidate. Without `env` a fresh sandbox environment is built.
    """
    env = env if env is not None else build_sandbox_env()
    for flag in HELP_FLAGS:
        output = run_sandboxed(path, [flag], timeout, env=env, limits=limits)
        if output and len(output.strip()) > MIN_HELP_OUTPUT:
            return output
    return None


def make_help_probe() -> HelpProbe:
    """Build the sandbox environment and rlimit hook once for many probes."""
    settings = get_settings()
    env = build_sandbox_env()
    limits = build_limit_applier(settings.probe_cpu_seconds, settings.probe_memory_bytes)

    def probe(path: str, timeout: float) -> Optional[str]:
        return probe_help_support(path, timeout, env=env, limits=limits)

    return probe


def _default_cache() -> DiscoveryCache:
    return DiscoveryCache(get_settings().discovery_cache_path)


def _probe_and_score(candidate: Candidate, probe: HelpProbe, timeout: float) -> Optional[DiscoveredCLI]:
    return score_candidate(candidate, probe(candidate.path, timeout))


def perform_discovery(
    options: DiscoveryOptions,
    search_path: str,
    probe: Optional[HelpProbe] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> list[DiscoveredCLI]:
    """Scan, filter, probe and score without touching any cache.

    Returns every candidate that survived scoring, best first.
    """
    scanned = scan_path_directories(search_path)
    candidates = [c for c in scanned if not is_likely_noise(c.name, c.path)]
    logger.info(
        "Discovery: %d executables on search path, %d after noise filter",
        len(scanned),
        len(candidates),
    )
    probe = probe or make_help_probe()

    discovered: list[DiscoveredCLI] = []
    processed = 0
    batch_size = options.max_concurrent
    with ThreadPoolExecutor(max_workers=batch_size) as pool:
        for start in range(0, len(candidates), batch_size):
            batch = candidates[start:start + batch_size]
            results = pool.map(
                lambda c: _probe_and_score(c, probe, options.timeout), batch
            )
            discovered.extend(r for r in results if r is not None)
            processed += len(batch)
            if on_progress is not None:
                on_progress(processed, len(candidates))

    discovered.sort(key=lambda cli: cli.score, reverse=True)
    logger.info("Discovery: %d candidates scored", len(discovered))
    return discovered


def discover_clis(
    options: Optional[DiscoveryOptions] = None,
    *,
    search_path: Optional[str] = None,
    probe: Optional[HelpProbe] = None,
    cache: Optional[DiscoveryCache] = None,
    on_progress: Optional[ProgressCallback] = None,
) -> list[DiscoveredCLI]:
    """Return ranked CLIs on `search_path` (default: $PATH).

    With `options.use_cache`, a fresh cache entry for the same search path
    is returned without spawning anything; otherwise the full scored set
    is rediscovered and written back before filtering.
    """
    options = options or DiscoveryOptions()
    search_path = os.environ.get("PATH", "") if search_path is None else search_path

    if options.use_cache:
        cache = cache or _default_cache()
        cached = cache.get(search_path, options.cache_ttl)
        if cached is not None:
            return filter_and_limit(cached, options.min_score, options.limit)

    discovered = perform_discovery(options, search_path, probe, on_progress)

    if options.use_cache:
        cache.save(discovered, search_path)

    return filter_and_limit(discovered, options.min_score, options.limit)


def register_cli(
    name: str,
    *,
    search_path: Optional[str] = None,
    probe: Optional[HelpProbe] = None,
    cache: Optional[DiscoveryCache] = None,
) -> Optional[DiscoveredCLI]:
    """Probe one named CLI and upsert it into the discovery cache file.

    Used when a program is launched by name before discovery has seen it.
    Returns the stored entry, or None when the name does not resolve or
    scores too low. Cache I/O problems are logged, never raised.
    """
    search_path = os.environ.get("PATH", "") if search_path is None else search_path
    path = shutil.which(name, path=search_path)
    if path is None:
        logger.debug("register_cli: %s not found on search path", name)
        return None

    probe = probe or make_help_probe()
    cli = score_candidate(Candidate(name=name, path=path), probe(path, REGISTER_TIMEOUT))
    if cli is None:
        return None

    cache = cache or _default_cache()
    loaded = cache.load()
    clis = [record.to_cli() for record in loaded.clis] if loaded else []
    clis = [existing for existing in clis if existing.name != name]
    clis.append(cli)
    clis.sort(key=lambda c: c.score, reverse=True)
    cache.save(clis, search_path)
    logger.info("Registered %s (score=%d)", name, cli.score)
    return cli
