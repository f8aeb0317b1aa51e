"""Resource limits for help-probe child processes.

`build_limit_applier()` returns a callable taking a child pid. It is
called from the parent right after the child is spawned and sets
RLIMIT_CPU and, when configured, RLIMIT_AS on that pid with
`resource.prlimit`. Nothing runs in the child between fork and exec, so
probes can be spawned from several worker threads at once. The
wall-clock timeout in the sandbox runner is the primary guard; rlimits
bound CPU spin and memory blow-ups underneath it.

Platform notes:
  - Linux: rlimits are enforced via `resource.prlimit`.
  - macOS / other POSIX: no `prlimit`; `build_limit_applier()` returns None.
  - Windows: no `resource` module; `build_limit_applier()` returns None.

Both limits come from Settings (``HELPSCOPE_PROBE_CPU_SECONDS`` and
``HELPSCOPE_PROBE_MEMORY_BYTES``). A memory limit of 0 or less skips
RLIMIT_AS: Node- and JVM-based CLIs reserve several GB of virtual address
space just to print their help.
"""

import logging
import sys
from typing import Callable, Optional

logger = logging.getLogger(__name__)


def build_limit_applier(
    cpu_seconds: int, memory_bytes: int = 0
) -> Optional[Callable[[int], None]]:
    """Resolve limits once and return the per-pid hook, or None."""
    if sys.platform == "win32":
        return None

    cpu_limit = cpu_seconds if cpu_seconds and cpu_seconds > 0 else None
    mem_limit = memory_bytes if memory_bytes and memory_bytes > 0 else None
    if cpu_limit is None and mem_limit is None:
        return None

    try:
        import resource
    except ImportError:
        return None
    if not hasattr(resource, "prlimit"):
        logger.debug("resource.prlimit unavailable on %s; probe rlimits disabled", sys.platform)
        return None

    def apply_probe_limits(pid: int) -> None:
        try:
            if mem_limit:
                resource.prlimit(pid, resource.RLIMIT_AS, (mem_limit, resource.RLIM_INFINITY))
            if cpu_limit:
                resource.prlimit(pid, resource.RLIMIT_CPU, (cpu_limit, resource.RLIM_INFINITY))
        except ProcessLookupError:
            # Child already exited
            return
        except (ValueError, OSError) as exc:
            logger.warning("Failed to apply probe resource limits to pid %d: %s", pid, exc)

    return apply_probe_limits
