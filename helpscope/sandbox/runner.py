"""Kill-on-timeout output capture for untrusted executables.

`run_sandboxed()` never raises for process-level problems: a spawn
failure, a timeout or empty output all return None. Each child leads its
own session, so on timeout the whole process group gets SIGTERM, then
SIGKILL after a short grace period, and no grandchild is left holding the
stdout pipe. stdout is capped at MAX_OUTPUT_BYTES; stderr is discarded so
a chatty child cannot block on a full pipe.

No Python code runs in the child before exec, so several threads may
call `run_sandboxed()` at once.
"""

import logging
import os
import signal
import subprocess
import threading
from typing import Callable, Optional

from helpscope.sandbox.env import build_sandbox_env

logger = logging.getLogger(__name__)

MAX_OUTPUT_BYTES = 100_000
KILL_GRACE_SECONDS = 0.1
_READ_CHUNK = 8192
_SIGKILL = getattr(signal, "SIGKILL", signal.SIGTERM)


def _signal_group(proc: subprocess.Popen, sig: int) -> None:
    if os.name != "posix":
        if proc.poll() is None:
            proc.send_signal(sig)
        return
    try:
        os.killpg(proc.pid, sig)
    except (ProcessLookupError, PermissionError):
        # Group already gone
        pass


def _terminate(proc: subprocess.Popen) -> None:
    _signal_group(proc, signal.SIGTERM)
    try:
        proc.wait(timeout=KILL_GRACE_SECONDS)
    except subprocess.TimeoutExpired:
        pass
    _signal_group(proc, _SIGKILL)
    proc.wait()


def _close_pipe(proc: subprocess.Popen, reader: threading.Thread) -> None:
    reader.join(timeout=KILL_GRACE_SECONDS)
    if reader.is_alive():
        logger.debug("stdout of pid %d still open after kill", proc.pid)
        return
    proc.stdout.close()


def run_sandboxed(
    path: str,
    args: list[str],
    timeout: float,
    env: Optional[dict[str, str]] = None,
    limits: Optional[Callable[[int], None]] = None,
) -> Optional[str]:
    """Run ``path *args`` and return its stdout, or None.

    `limits` is called with the child's pid right after it starts (see
    `build_limit_applier`). None means the process could not start, timed
    out, or printed nothing but whitespace.
    """
    if timeout <= 0:
        raise ValueError(f"timeout must be positive, got {timeout}")

    try:
        proc = subprocess.Popen(
            [path, *args],
            stdin=subprocess.DEVNULL,
            stdout=subprocess.PIPE,
            stderr=subprocess.DEVNULL,
            env=env if env is not None else build_sandbox_env(),
            start_new_session=os.name == "posix",
        )
    except OSError as exc:
        logger.debug("Could not start %s: %s", path, exc)
        return None

    if limits is not None:
        limits(proc.pid)

    chunks: list[bytes] = []
    captured = 0

    def drain() -> None:
        nonlocal captured
        for chunk in iter(lambda: proc.stdout.read(_READ_CHUNK), b""):
            room = MAX_OUTPUT_BYTES - captured
            if room > 0:
                chunks.append(chunk[:room])
                captured += min(len(chunk), room)

    reader = threading.Thread(target=drain, daemon=True)
    reader.start()

    try:
        proc.wait(timeout=timeout)
    except subprocess.TimeoutExpired:
        logger.debug("Probe %s %s timed out after %.1fs", path, args, timeout)
        _terminate(proc)
        _close_pipe(proc, reader)
        return None

    # Grandchildren can keep the pipe open after the child exits.
    reader.join(timeout=timeout)
    if reader.is_alive():
        _terminate(proc)
    _close_pipe(proc, reader)
    output = b"".join(chunks).decode("utf-8", errors="replace")
    return output if output.strip() else None
