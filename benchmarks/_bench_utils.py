"""Shared benchmark runtime helpers."""

from __future__ import annotations

import math
import os
import platform
import time
from typing import Any

from rpn_lang.config import EngineConfig


def host_metadata(config: EngineConfig) -> dict[str, Any]:
    return {
        "platform": platform.platform(),
        "python": platform.python_version(),
        "cpu_count": os.cpu_count(),
        "max_depth": config.max_depth,
        "workers": config.workers,
    }


def calibrate_repeats(
    fn,
    *,
    baseline_repeats: int,
    target_sample_ms: float,
    min_repeats: int,
    max_repeats: int = 10_000,
) -> int:
    trial = max(2, min_repeats // 4)
    start_ns = time.perf_counter_ns()
    for _ in range(trial):
        fn()
    elapsed_ns = time.perf_counter_ns() - start_ns
    per_call_ns = max(elapsed_ns / trial, 1_000.0)
    target_ns = max(target_sample_ms, 1.0) * 1e6
    dynamic = int(math.ceil(target_ns / per_call_ns))
    return int(max(baseline_repeats, min_repeats, min(dynamic, max_repeats)))
