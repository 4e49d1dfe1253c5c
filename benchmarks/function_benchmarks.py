"""Benchmark recursive, iterative and parallel evaluation at fixed sizes."""

from __future__ import annotations

import argparse
import json
import statistics
import time
from dataclasses import asdict, dataclass
from datetime import UTC, datetime
from pathlib import Path

from rpn_lang import Engine, EngineConfig
from _bench_utils import calibrate_repeats, host_metadata

PROFILE_CONFIG: dict[str, dict[str, float | int]] = {
    "quick": {"samples": 3, "warmup": 1, "target_sample_ms": 10.0, "min_repeats": 2},
    "full": {"samples": 7, "warmup": 2, "target_sample_ms": 40.0, "min_repeats": 4},
}

_DEFINITIONS = (
    "$1 $0 1 - $1 $0 + sum 1 $0 ~ ? sum|2",
    "$0 1 - $1 $0 + $1 1 $0 ~ isum@2",
    "$1 $0 $1 + $2 1 - $0 1 $2 ~ fibi@3",
    "0 1 $0 fibi fib|1",
    "$0 $0 1 - fibr $0 2 - fibr + 2 $0 ~ ? fibr|1",
)


@dataclass(frozen=True)
class BenchCase:
    section: str
    name: str
    template: str


@dataclass(frozen=True)
class BenchRow:
    section: str
    name: str
    source: str
    n: int
    status: str
    mean_ms: float | None
    stdev_ms: float | None
    p50_ms: float | None
    p95_ms: float | None
    repeats: int
    samples: int
    error: str | None


CASES = (
    BenchCase("recursive", "sum", "{n} 0 sum ="),
    BenchCase("iterative", "isum", "{n} 0 isum ="),
    BenchCase("iterative", "fib", "{n} fib ="),
    BenchCase("parallel", "fibr_flush", "{n} fibr"),
)


def _sizes_from_arg(raw: str) -> tuple[int, ...]:
    out = [int(part) for part in raw.split(",") if part.strip()]
    if not out:
        raise ValueError("at least one size must be provided")
    return tuple(out)


def _source_for(case: BenchCase, n: int) -> str:
    if case.section == "parallel":
        # Eight independent naive-fibonacci entries, evaluated by one '>'.
        entry = case.template.format(n=max(2, min(n, 18)))
        return " ".join([entry] * 8) + " >"
    return case.template.format(n=n)


def _run_case(case: BenchCase, n: int, config: EngineConfig, *, samples: int, warmup: int, target_sample_ms: float, min_repeats: int) -> BenchRow:
    engine = Engine(config)
    for line in _DEFINITIONS:
        engine.feed(line)
    source = _source_for(case, n)

    def _call():
        return engine.feed(source)

    try:
        for _ in range(warmup):
            _call()
        repeats = calibrate_repeats(_call, baseline_repeats=1, target_sample_ms=target_sample_ms, min_repeats=min_repeats)
        per_call_ms: list[float] = []
        for _ in range(samples):
            start = time.perf_counter()
            for _ in range(repeats):
                _call()
            per_call_ms.append(((time.perf_counter() - start) / repeats) * 1e3)
        return BenchRow(
            section=case.section,
            name=case.name,
            source=source,
            n=n,
            status="ok",
            mean_ms=statistics.mean(per_call_ms),
            stdev_ms=statistics.stdev(per_call_ms),
            p50_ms=statistics.median(per_call_ms),
            p95_ms=statistics.quantiles(per_call_ms, n=20, method="inclusive")[18],
            repeats=repeats,
            samples=len(per_call_ms),
            error=None,
        )
    except Exception as err:  # pragma: no cover - benchmark resilience
        return BenchRow(
            section=case.section,
            name=case.name,
            source=source,
            n=n,
            status="error",
            mean_ms=None,
            stdev_ms=None,
            p50_ms=None,
            p95_ms=None,
            repeats=0,
            samples=0,
            error=f"{type(err).__name__}: {err}",
        )


def _print_summary(rows: list[BenchRow]) -> None:
    print("function benchmark summary")
    print("section    case          n       mean(ms)   p95(ms)   status")
    print("---------  ------------  ------  ---------  --------  ------")
    for row in rows:
        mean_text = "-" if row.mean_ms is None else f"{row.mean_ms:9.4f}"
        p95_text = "-" if row.p95_ms is None else f"{row.p95_ms:8.4f}"
        print(f"{row.section:9} {row.name:12} {row.n:6d}  {mean_text:>9}  {p95_text:>8}  {row.status}")
    print()


def main() -> None:
    parser = argparse.ArgumentParser(description=__doc__)
    parser.add_argument("--profile", choices=sorted(PROFILE_CONFIG), default="quick", help="fixed benchmark profile presets")
    parser.add_argument("--ns", default="10,500,5000", help="comma-separated n sizes")
    parser.add_argument("--max-depth", type=int, default=1000, help="recursion limit for recursive functions")
    parser.add_argument("--workers", type=int, default=None, help="threads used by the '>' command")
    parser.add_argument("--json-out", default="", help="optional path for machine-readable output")
    args = parser.parse_args()

    profile = PROFILE_CONFIG[args.profile]
    config = EngineConfig(max_depth=args.max_depth, workers=args.workers)
    ns = _sizes_from_arg(args.ns)

    print(f"sizes: {ns}")
    print(f"profile: {args.profile} {profile}")
    print()

    rows: list[BenchRow] = []
    for n in ns:
        for case in CASES:
            rows.append(
                _run_case(
                    case,
                    n,
                    config,
                    samples=int(profile["samples"]),
                    warmup=int(profile["warmup"]),
                    target_sample_ms=float(profile["target_sample_ms"]),
                    min_repeats=int(profile["min_repeats"]),
                )
            )
        print(f"completed n={n} ({len(CASES)} cases)")

    print()
    _print_summary(rows)

    if args.json_out:
        out_path = Path(args.json_out)
        out_path.parent.mkdir(parents=True, exist_ok=True)
        payload = {
            "generated_at_utc": datetime.now(UTC).isoformat(),
            "profile": args.profile,
            "host": host_metadata(config),
            "rows": [asdict(row) for row in rows],
        }
        out_path.write_text(json.dumps(payload, indent=2), encoding="utf-8")
        print(f"wrote {out_path}")


if __name__ == "__main__":
    main()
