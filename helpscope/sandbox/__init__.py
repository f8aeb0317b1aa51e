"""Sandboxed execution of untrusted executables for help probing."""

from helpscope.sandbox.env import build_sandbox_env
from helpscope.sandbox.limits import build_limit_applier
from helpscope.sandbox.runner import run_sandboxed

__all__ = ["build_limit_applier", "build_sandbox_env", "run_sandboxed"]
