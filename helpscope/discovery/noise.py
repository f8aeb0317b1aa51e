"""Cheap name/path rules that reject candidates before any process is spawned.

Everything rejected here is overwhelmingly not an interactive CLI:
libraries and data files, backups, version-numbered duplicates, GUI app
bundles, Windows interop mounts and background helpers.
"""

import re

_DATA_EXTENSION = re.compile(r"\.(?:so|a|dylib|dll|o|conf|txt|md|json|xml|yml|yaml)$", re.IGNORECASE)
_TRAILING_DIGITS = re.compile(r"\d{2,}$")
_EMBEDDED_VERSION = re.compile(r"[.-]\d+\.\d+")

_BACKUP_SUFFIXES = ("~", ".bak", ".swp")
_INTERNAL_DIRS = ("/System/Library/", "/usr/libexec/")
_APP_BUNDLE_DIRS = (".app/Contents/MacOS/", ".app/Contents/Resources/")
_WINDOWS_APP_DIRS = (
    "\\Program Files\\",
    "\\Program Files (x86)\\",
    "/Program Files/",
    "/Program Files (x86)/",
)
_BACKGROUND_WORDS = ("helper", "agent")

MIN_NAME_LENGTH = 3
SHORT_CAPS_LENGTH = 4


def is_likely_noise(name: str, path: str) -> bool:
    if len(name) < MIN_NAME_LENGTH:
        return True
    if _DATA_EXTENSION.search(name):
        return True
    if name.endswith(_BACKUP_SUFFIXES):
        return True
    # python3.11, node18, gcc-11.2
    if _TRAILING_DIGITS.search(name) or _EMBEDDED_VERSION.search(name):
        return True
    if len(name) <= SHORT_CAPS_LENGTH and name == name.upper():
        return True
    if name.startswith(("_", ".")):
        return True

    if any(d in path for d in _INTERNAL_DIRS):
        return True
    # WSL exposes Windows programs under /mnt/<drive>; they open GUI windows
    if path.startswith("/mnt/"):
        return True
    if name.lower().endswith(".exe"):
        return True
    if any(d in path for d in _APP_BUNDLE_DIRS):
        return True
    if any(d in path for d in _WINDOWS_APP_DIRS):
        return True

    lowered = name.lower()
    return any(word in lowered for word in _BACKGROUND_WORDS)
