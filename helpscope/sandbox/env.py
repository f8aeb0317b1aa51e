"""Scrubbed environment for help probes.

Help probes run unattended against arbitrary executables, so the child
environment disables pagers, GUI/display access and editor or browser
launches, and pins a dumb 80x24 terminal. ``HELPSCOPE_DISCOVERY=1`` lets
well-behaved tools detect that they are being probed.
"""

import os
import sys
from typing import Optional

DISCOVERY_MARKER = "HELPSCOPE_DISCOVERY"

_PAGERS = {
    "PAGER": "cat",
    "MANPAGER": "cat",
    "GIT_PAGER": "cat",
    "AWS_PAGER": "",
    "SYSTEMD_PAGER": "cat",
    # F=quit if one screen, R=raw control chars, X=no init
    "LESS": "FRX",
}

_DISPLAY = {
    "DISPLAY": "",
    "WAYLAND_DISPLAY": "",
    "DBUS_SESSION_BUS_ADDRESS": "",
    "XDG_RUNTIME_DIR": "",
    "XDG_CURRENT_DESKTOP": "",
    "NO_AT_BRIDGE": "1",
    "QT_QPA_PLATFORM": "offscreen",
    "SDL_AUDIODRIVER": "dummy",
}

_TERMINAL = {
    "TERM": "dumb",
    "COLUMNS": "80",
    "LINES": "24",
    "NO_COLOR": "1",
    "ANSIBLE_NOCOLOR": "1",
    "CI": "1",
}

_LAUNCHERS = {
    "VISUAL": "true",
    "EDITOR": "true",
    "GIT_EDITOR": "true",
    "SUDO_ASKPASS": "/bin/false",
}


def build_sandbox_env(base: Optional[dict[str, str]] = None) -> dict[str, str]:
    """Return `base` (default: os.environ) overlaid with the probe settings."""
    env = dict(os.environ if base is None else base)
    env.update(_PAGERS)
    env.update(_DISPLAY)
    env.update(_TERMINAL)
    env.update(_LAUNCHERS)
    env["BROWSER"] = r"C:\Windows\System32\where.exe" if sys.platform == "win32" else "true"
    env[DISCOVERY_MARKER] = "1"
    return env
