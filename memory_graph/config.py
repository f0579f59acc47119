"""Configuration and backing-file bootstrap."""

import logging
import os
import sys
from dataclasses import dataclass
from pathlib import Path

from .constants import (
    DEFAULT_HTTP_HOST,
    DEFAULT_HTTP_PORT,
    DEFAULT_MEMORY_DIR,
    IO_RETRIES,
    IO_RETRY_DELAY_SECONDS,
    LEGACY_MEMORY_FILENAME,
    MEMORY_FILENAME,
)

logger = logging.getLogger(__name__)

LOG_FORMAT = '%(asctime)s - %(name)s - %(levelname)s - %(message)s'


def _env_bool(name: str, default: bool = False) -> bool:
    value = os.getenv(name)
    if value is None:
        return default
    return value.strip().lower() in ("1", "true", "yes", "on")


def resolve_memory_path(value: str | None, base_dir: Path = DEFAULT_MEMORY_DIR) -> Path:
    """Absolute paths are used as-is; relative ones resolve against base_dir."""
    if not value:
        return base_dir / MEMORY_FILENAME
    path = Path(value).expanduser()
    return path if path.is_absolute() else base_dir / path


@dataclass(frozen=True)
class MemoryConfig:
    """Memory graph configuration."""
    memory_path: Path = DEFAULT_MEMORY_DIR / MEMORY_FILENAME
    custom_path: bool = False
    log_level: str = "INFO"
    io_retries: int = IO_RETRIES
    io_retry_delay: float = IO_RETRY_DELAY_SECONDS
    stamp_requested_endpoints: bool = False
    http_host: str = DEFAULT_HTTP_HOST
    http_port: int = DEFAULT_HTTP_PORT

    @classmethod
    def from_env(cls) -> "MemoryConfig":
        """Create configuration from environment variables."""
        custom = os.getenv("MEMORY_FILE_PATH")
        return cls(
            memory_path=resolve_memory_path(custom),
            custom_path=bool(custom),
            log_level=os.getenv("MEMORY_LOG_LEVEL", "INFO").upper(),
            io_retries=int(os.getenv("MEMORY_IO_RETRIES", str(IO_RETRIES))),
            io_retry_delay=float(os.getenv("MEMORY_IO_RETRY_DELAY", str(IO_RETRY_DELAY_SECONDS))),
            stamp_requested_endpoints=_env_bool("MEMORY_STAMP_REQUESTED_ENDPOINTS"),
            http_host=os.getenv("MEMORY_HTTP_HOST", DEFAULT_HTTP_HOST),
            http_port=int(os.getenv("MEMORY_HTTP_PORT", str(DEFAULT_HTTP_PORT))),
        )


def ensure_memory_path(config: MemoryConfig) -> Path:
    """
    Return the backing file path, migrating a legacy memory.json if needed.

    Migration only happens for the default location: when memory.json exists
    beside it and memory.jsonl does not, the old file is renamed.
    """
    path = config.memory_path
    if config.custom_path:
        return path

    legacy = path.with_name(LEGACY_MEMORY_FILENAME)
    if legacy.exists() and not path.exists():
        logger.info(f"Found legacy {legacy.name}, migrating to {path.name}")
        legacy.rename(path)
        logger.info(f"Migrated {legacy} to {path}")
    return path


def configure_logging(level: str):
    """Log to stderr (never stdout: the stdio transport owns it)."""
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format=LOG_FORMAT,
        stream=sys.stderr,
    )
