"""Per-scan run options handed to the registry, the filter and the executor."""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Iterable, Optional, Tuple

from stegforge.base.config import DEFAULT_TOOL_TIMEOUT_SECONDS, get_config


def _normalize_names(names: Optional[Iterable[str]]) -> Tuple[str, ...]:
    # "--skip a,b --skip c" arrives as ["a,b", "c"]
    out = []
    for entry in names or ():
        for part in str(entry).split(","):
            part = part.strip()
            if part:
                out.append(part)
    return tuple(out)


@dataclass(frozen=True)
class RunOptions:
    """
    Immutable knobs for one scan.

    Attributes:
        password: Passphrase hint for steghide/openstego extraction
        only: Tool names to run exclusively (empty means all)
        skip: Tool names to exclude; wins over ``only``
        output_dir: Artifact directory (None means the configured default)
        timeout: Per-tool timeout in seconds (None or <= 0 means 60s)
        verbose: Show full output and executed commands
    """

    password: str = ""
    only: Tuple[str, ...] = field(default_factory=tuple)
    skip: Tuple[str, ...] = field(default_factory=tuple)
    output_dir: Optional[Path] = None
    timeout: Optional[float] = None
    verbose: bool = False

    def __post_init__(self):
        # frozen: normalize through object.__setattr__
        object.__setattr__(self, "only", _normalize_names(self.only))
        object.__setattr__(self, "skip", _normalize_names(self.skip))
        if self.output_dir is not None:
            object.__setattr__(self, "output_dir", Path(self.output_dir))

    @property
    def effective_timeout(self) -> float:
        if self.timeout is None or self.timeout <= 0:
            return float(DEFAULT_TOOL_TIMEOUT_SECONDS)
        return float(self.timeout)

    @property
    def output_path(self) -> Path:
        if self.output_dir is not None:
            return self.output_dir
        return get_config().scan.output_dir
