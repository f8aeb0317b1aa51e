"""On-disk discovery cache.

The file holds ``{timestamp, path_hash, clis}`` as JSON. An entry is valid
while its age is within the TTL and its `path_hash` matches the current
search path. Unreadable or malformed files are logged and treated as a
miss.
"""

import hashlib
import json
import logging
import time
from pathlib import Path
from typing import Callable, Optional

from pydantic import BaseModel, ValidationError

from helpscope.discovery.types import DiscoveredCLI, HelpQuality, InstallCategory

logger = logging.getLogger(__name__)


class DiscoveredCLIRecord(BaseModel):
    name: str
    path: str
    score: int
    has_help: bool
    help_quality: HelpQuality
    category: InstallCategory

    @classmethod
    def from_cli(cls, cli: DiscoveredCLI) -> "DiscoveredCLIRecord":
        return cls(**cli.to_dict())

    def to_cli(self) -> DiscoveredCLI:
        return DiscoveredCLI(
            name=self.name,
            path=self.path,
            score=self.score,
            has_help=self.has_help,
            help_quality=self.help_quality,
            category=self.category,
        )


class CachedDiscovery(BaseModel):
    # Epoch seconds
    timestamp: float
    path_hash: str
    clis: list[DiscoveredCLIRecord]


def hash_search_path(search_path: str) -> str:
    return hashlib.sha256(search_path.encode("utf-8")).hexdigest()[:16]


class DiscoveryCache:
    def __init__(
        self,
        path: Path,
        clock: Callable[[], float] = time.time,
    ) -> None:
        self.path = Path(path)
        self._clock = clock

    def load(self) -> Optional[CachedDiscovery]:
        """Read the cache file. Returns None when missing or malformed."""
        try:
            raw = self.path.read_text(encoding="utf-8")
        except FileNotFoundError:
            return None
        except (OSError, UnicodeDecodeError) as exc:
            logger.warning("Could not read discovery cache %s: %s", self.path, exc)
            return None

        try:
            return CachedDiscovery.model_validate_json(raw)
        except ValidationError as exc:
            logger.warning(
                "Ignoring malformed discovery cache %s (%d errors)",
                self.path,
                exc.error_count(),
            )
            return None

    def is_valid(self, cached: CachedDiscovery, search_path: str, ttl: float) -> bool:
        age = self._clock() - cached.timestamp
        if age > ttl:
            return False
        return cached.path_hash == hash_search_path(search_path)

    def get(self, search_path: str, ttl: float) -> Optional[list[DiscoveredCLI]]:
        """Return the cached, unfiltered CLI list for `search_path`, if fresh."""
        cached = self.load()
        if cached is None or not self.is_valid(cached, search_path, ttl):
            return None

        clis = [record.to_cli() for record in cached.clis]
        logger.info("Loaded %d CLIs from discovery cache", len(clis))
        return clis

    def save(self, clis: list[DiscoveredCLI], search_path: str) -> None:
        """Write `clis` for `search_path`. I/O failures are logged, not raised."""
        payload = CachedDiscovery(
            timestamp=self._clock(),
            path_hash=hash_search_path(search_path),
            clis=[DiscoveredCLIRecord.from_cli(cli) for cli in clis],
        )
        try:
            self.path.parent.mkdir(parents=True, exist_ok=True)
            self.path.write_text(
                json.dumps(payload.model_dump(mode="json"), indent=2), encoding="utf-8"
            )
        except OSError as exc:
            logger.warning("Could not write discovery cache %s: %s", self.path, exc)
