from typing import Callable, Optional, Union

import pytest

from helpscope.executor.types import ExecutionError, ExecutionResult, ExecutionTimeout

Response = Union[str, Exception, Callable[[list[str]], str]]


class FakeExecutor:
    """Scripted stand-in for CommandExecutor.

    `responses` maps an argument tuple to stdout text, an exception to raise,
    or a callable producing stdout. Unscripted calls use `default`.
    """

    def __init__(
        self,
        responses: Optional[dict[tuple[str, ...], Response]] = None,
        default: Response = "",
        command: str = "tool",
    ) -> None:
        self.responses = responses or {}
        self.default = default
        self.command = command
        self.calls: list[list[str]] = []
        self.timeouts: list[float] = []

    def execute(self, args, *, timeout, accept_output_on_error=False, env=None, cwd=None):
        self.calls.append(list(args))
        self.timeouts.append(timeout)
        response = self.responses.get(tuple(args), self.default)
        if isinstance(response, Exception):
            raise response
        if callable(response):
            response = response(list(args))
        return ExecutionResult(stdout=response, stderr="", exit_code=0, duration_seconds=0.01)


@pytest.fixture
def fake_executor_factory():
    return FakeExecutor


@pytest.fixture
def timeout_error():
    return ExecutionTimeout("Command timed out after 5.0 seconds", args=["tool"], exit_code=-1)


@pytest.fixture
def spawn_error():
    return ExecutionError("Failed to start tool: not found", args=["tool"])


@pytest.fixture(autouse=True)
def isolated_home(tmp_path, monkeypatch):
    """Keep Settings and the discovery cache file inside tmp_path."""
    home = tmp_path / "helpscope-home"
    monkeypatch.setenv("HELPSCOPE_HOME_DIR", str(home))
    return home
