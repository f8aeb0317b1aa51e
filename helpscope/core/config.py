from pathlib import Path

from pydantic import field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict


def _default_home_dir() -> Path:
    return Path.home() / ".config" / "helpscope"


class Settings(BaseSettings):
    """Engine settings loaded from environment variables.

    Every field can be overridden with a ``HELPSCOPE_``-prefixed variable,
    e.g. ``HELPSCOPE_DISCOVERY_TIMEOUT=3.5`` or ``HELPSCOPE_HOME_DIR=/tmp/hs``.

    Durations are in seconds. The probe resource limits apply to every
    help probe spawned by discovery; a memory limit of 0 leaves the
    address space unlimited (Node-based CLIs map several GB of virtual
    memory at startup).
    """

    model_config = SettingsConfigDict(
        env_prefix="HELPSCOPE_",
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Per-user directory for the discovery cache file
    home_dir: Path = _default_home_dir()

    # Introspector
    structure_cache_ttl: float = 300.0

    # Discoverer
    discovery_cache_ttl: float = 24 * 60 * 60.0
    discovery_timeout: float = 2.0
    discovery_max_concurrent: int = 8
    discovery_limit: int = 100
    discovery_min_score: int = 0

    # Resource limits for spawned help probes
    probe_cpu_seconds: int = 10
    probe_memory_bytes: int = 0

    # Logging
    debug: bool = False

    @field_validator("home_dir", mode="before")
    @classmethod
    def expand_home_dir(cls, v):
        return Path(v).expanduser() if v else _default_home_dir()

    @field_validator(
        "structure_cache_ttl",
        "discovery_cache_ttl",
        "discovery_timeout",
    )
    @classmethod
    def must_be_positive(cls, v: float) -> float:
        if v <= 0:
            raise ValueError("must be greater than zero")
        return v

    @field_validator("discovery_max_concurrent")
    @classmethod
    def at_least_one_worker(cls, v: int) -> int:
        if v < 1:
            raise ValueError("must be at least 1")
        return v

    @property
    def discovery_cache_path(self) -> Path:
        return self.home_dir / "cli-discovery-cache.json"


def get_settings() -> Settings:
    return Settings()
