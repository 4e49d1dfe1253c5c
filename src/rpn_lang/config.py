"""Engine limits, with defaults taken from the environment."""

from __future__ import annotations

import os
from dataclasses import dataclass
from typing import Final

_DEFAULT_MAX_DEPTH: Final[int] = max(1, int(os.environ.get("RPN_LANG_MAX_DEPTH", "1000")))
_DEFAULT_WORKERS: Final[int | None] = int(os.environ["RPN_LANG_WORKERS"]) if os.environ.get("RPN_LANG_WORKERS") else None


@dataclass(frozen=True)
class EngineConfig:
    max_depth: int = _DEFAULT_MAX_DEPTH
    workers: int | None = _DEFAULT_WORKERS

    def __post_init__(self) -> None:
        if self.max_depth < 1:
            raise ValueError("max_depth must be positive")
        if self.workers is not None and self.workers < 1:
            raise ValueError("workers must be positive")
