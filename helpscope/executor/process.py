"""Subprocess-backed executor for one target program.

`execute()` runs ``[command, *default_args, *args]`` with a hard timeout,
captures stdout/stderr as text and either returns an ExecutionResult or
raises ExecutionError. A non-zero exit still counts as success when the
caller sets `accept_output_on_error` and stdout is non-empty; many CLIs
exit 1 after printing their help.
"""

import logging
import os
import re
import shutil
import subprocess
import time
from typing import Optional

from helpscope.executor.types import ExecutionError, ExecutionResult, ExecutionTimeout

logger = logging.getLogger(__name__)

DEFAULT_TIMEOUT = 30.0
VERSION_TIMEOUT = 5.0
VERSION_FLAGS = ("--version", "-v", "version", "-V")
MAX_VERSION_LINE = 100

_SEMVER = re.compile(r"v?(\d+\.\d+\.\d+)", re.IGNORECASE)


class CommandExecutor:
    def __init__(self, command: str, default_args: Optional[list[str]] = None):
        self.command = command
        self.default_args = list(default_args or [])

    def execute(
        self,
        args: list[str],
        *,
        timeout: float = DEFAULT_TIMEOUT,
        accept_output_on_error: bool = False,
        env: Optional[dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> ExecutionResult:
        if timeout <= 0:
            raise ValueError(f"timeout must be positive, got {timeout}")

        argv = [self.command, *self.default_args, *args]
        run_env = {**os.environ, **env} if env else None
        logger.debug("Executing %s (timeout=%.1fs)", argv, timeout)
        start = time.monotonic()

        try:
            result = subprocess.run(
                argv,
                cwd=cwd,
                env=run_env,
                stdin=subprocess.DEVNULL,
                capture_output=True,
                text=True,
                errors="replace",
                timeout=timeout,
            )
        except subprocess.TimeoutExpired as exc:
            raise ExecutionTimeout(
                f"Command timed out after {timeout} seconds",
                args=argv,
                exit_code=-1,
                stdout=_as_text(exc.stdout),
                stderr=_as_text(exc.stderr),
            ) from exc
        except OSError as exc:
            raise ExecutionError(
                f"Failed to start {self.command}: {exc}", args=argv
            ) from exc

        duration = time.monotonic() - start
        stdout = result.stdout.strip()
        stderr = result.stderr.strip()

        if result.returncode == 0 or (accept_output_on_error and stdout):
            return ExecutionResult(
                stdout=stdout,
                stderr=stderr,
                exit_code=result.returncode,
                duration_seconds=duration,
            )

        raise ExecutionError(
            f"Command failed with exit code {result.returncode}",
            args=argv,
            exit_code=result.returncode,
            stdout=stdout,
            stderr=stderr,
        )

    @staticmethod
    def is_available(command: str) -> bool:
        return shutil.which(command) is not None

    @staticmethod
    def get_version(command: str) -> Optional[str]:
        """Return a version string for `command`, or None.

        Tries the common version flags in order and returns the first
        semantic version found, falling back to a short first output line.
        """
        executor = CommandExecutor(command)
        for flag in VERSION_FLAGS:
            try:
                result = executor.execute(
                    [flag], timeout=VERSION_TIMEOUT, accept_output_on_error=True
                )
            except ExecutionError as exc:
                logger.debug("Version probe %s %s failed: %s", command, flag, exc)
                continue

            match = _SEMVER.search(result.stdout)
            if match:
                return match.group(1)
            first_line = result.stdout.split("\n", 1)[0].strip()
            if first_line and len(first_line) < MAX_VERSION_LINE:
                return first_line
        return None


def _as_text(value) -> str:
    if value is None:
        return ""
    if isinstance(value, bytes):
        return value.decode("utf-8", errors="replace")
    return value
