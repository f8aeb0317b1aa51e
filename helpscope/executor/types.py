"""Types for running a target program and capturing its output."""

from dataclasses import dataclass
from typing import Optional, Protocol


@dataclass
class ExecutionResult:
    """Captured output of one finished process.

    stdout/stderr are whitespace-trimmed text; duration is wall-clock seconds.
    """

    stdout: str
    stderr: str
    exit_code: int
    duration_seconds: float

    def to_dict(self) -> dict:
        return {
            "exit_code": self.exit_code,
            "duration_seconds": round(self.duration_seconds, 3),
            "stdout_lines": self.stdout.count("\n") + 1 if self.stdout else 0,
            "stderr_lines": self.stderr.count("\n") + 1 if self.stderr else 0,
        }


class ExecutionError(Exception):
    """Raised when a process cannot be spawned or fails without usable output."""

    def __init__(
        self,
        message: str,
        args: Optional[list[str]] = None,
        exit_code: Optional[int] = None,
        stdout: str = "",
        stderr: str = "",
    ):
        self.command_args = list(args or [])
        self.exit_code = exit_code
        self.stdout = stdout
        self.stderr = stderr
        super().__init__(message)


class ExecutionTimeout(ExecutionError):
    """Raised when a process was killed at its deadline."""


class Executor(Protocol):
    """Anything that can run the target program with extra arguments."""

    def execute(
        self,
        args: list[str],
        *,
        timeout: float,
        accept_output_on_error: bool = False,
        env: Optional[dict[str, str]] = None,
        cwd: Optional[str] = None,
    ) -> ExecutionResult:
        ...
