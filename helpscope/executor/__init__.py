"""Process execution for target programs."""

from helpscope.executor.process import CommandExecutor
from helpscope.executor.types import (
    ExecutionError,
    ExecutionResult,
    ExecutionTimeout,
    Executor,
)

__all__ = [
    "CommandExecutor",
    "ExecutionError",
    "ExecutionResult",
    "ExecutionTimeout",
    "Executor",
]
