# ============================================================================
# stegforge/base/config.py
# Application Configuration Management
# ============================================================================
#
# PURPOSE:
# Process-wide defaults for scans, storage and logging. Values come from
# STEGFORGE_* environment variables with safe fallbacks; CLI flags override
# them per scan through RunOptions.
#
# ============================================================================

from __future__ import annotations

import logging
import os
import tempfile
from dataclasses import dataclass, field
from pathlib import Path
from typing import List, Optional

from stegforge.errors import ConfigError

logger = logging.getLogger(__name__)

DEFAULT_TOOL_TIMEOUT_SECONDS = 60
DEFAULT_MAX_OUTPUT_LINES = 30


def _default_output_dir() -> Path:
    return Path(tempfile.gettempdir()) / "stegforge-output"


@dataclass(frozen=True)
class ScanConfig:
    # Wall-clock limit for a single tool, in seconds
    tool_timeout_seconds: float = DEFAULT_TOOL_TIMEOUT_SECONDS

    # Where tools drop extracted artifacts (foremost carvings, bit planes, ...)
    output_dir: Path = field(default_factory=_default_output_dir)

    # Lines of tool output shown per result before truncation
    max_output_lines: int = DEFAULT_MAX_OUTPUT_LINES


@dataclass(frozen=True)
class StorageConfig:
    base_dir: Path = field(default_factory=lambda: Path.home() / ".stegforge")
    wordlists_dir: str = "wordlists"

    @property
    def wordlists_path(self) -> Path:
        return self.base_dir / self.wordlists_dir


@dataclass(frozen=True)
class LogConfig:
    level: str = "WARNING"
    format: str = "%(asctime)s [%(levelname)s] %(name)s: %(message)s"
    file_path: Optional[Path] = None
    max_file_size_mb: int = 10
    backup_count: int = 3


@dataclass
class StegForgeConfig:
    scan: ScanConfig = field(default_factory=ScanConfig)
    storage: StorageConfig = field(default_factory=StorageConfig)
    log: LogConfig = field(default_factory=LogConfig)

    @classmethod
    def from_env(cls) -> "StegForgeConfig":
        scan = ScanConfig(
            tool_timeout_seconds=_env_number("STEGFORGE_TOOL_TIMEOUT", DEFAULT_TOOL_TIMEOUT_SECONDS, float),
            output_dir=Path(os.getenv("STEGFORGE_OUTPUT_DIR") or _default_output_dir()),
            max_output_lines=_env_number("STEGFORGE_MAX_OUTPUT_LINES", DEFAULT_MAX_OUTPUT_LINES, int),
        )

        base_dir = Path(os.getenv("STEGFORGE_DATA_DIR", str(Path.home() / ".stegforge")))
        storage = StorageConfig(base_dir=base_dir)

        log_file = os.getenv("STEGFORGE_LOG_FILE")
        log = LogConfig(
            level=os.getenv("STEGFORGE_LOG_LEVEL", "WARNING"),
            file_path=Path(log_file) if log_file else None,
        )

        return cls(scan=scan, storage=storage, log=log)


def _env_number(name: str, default, cast):
    raw = os.getenv(name)
    if not raw:
        return default
    try:
        return cast(raw)
    except ValueError as exc:
        raise ConfigError(
            f"{name} must be a number, got {raw!r}",
            details={"variable": name, "value": raw},
        ) from exc


_config: Optional[StegForgeConfig] = None


def get_config() -> StegForgeConfig:
    global _config
    if _config is None:
        _config = StegForgeConfig.from_env()
    return _config


def set_config(config: Optional[StegForgeConfig]) -> None:
    global _config
    _config = config


def setup_logging(config: Optional[StegForgeConfig] = None, verbose: bool = False) -> None:
    cfg = config or get_config()

    handlers: List[logging.Handler] = [logging.StreamHandler()]

    if cfg.log.file_path is not None:
        from logging.handlers import RotatingFileHandler
        cfg.log.file_path.parent.mkdir(parents=True, exist_ok=True)
        file_handler = RotatingFileHandler(
            cfg.log.file_path,
            maxBytes=cfg.log.max_file_size_mb * 1024 * 1024,
            backupCount=cfg.log.backup_count,
        )
        handlers.append(file_handler)

    level = logging.DEBUG if verbose else getattr(logging, cfg.log.level.upper(), logging.WARNING)
    logging.basicConfig(
        level=level,
        format=cfg.log.format,
        handlers=handlers,
        force=True,
    )
