"""Fork-join evaluation of independent stack entries."""

from __future__ import annotations

import logging
from collections.abc import Sequence
from concurrent.futures import Future, ThreadPoolExecutor, wait

from .ast import Expr
from .config import EngineConfig
from .errors import is_fatal
from .evaluator import Evaluator
from .table import TableSnapshot
from .values import Rational

logger = logging.getLogger(__name__)


def evaluate_all(
    exprs: Sequence[Expr],
    snapshot: TableSnapshot,
    config: EngineConfig | None = None,
) -> list[Rational]:
    """Evaluate every expression against one snapshot, results in input order.

    Entries run concurrently; none of them can write to the table, so they
    all observe the functions and variables ``snapshot`` held when the pass
    started. After every entry has finished, a fatal failure from any entry
    is raised first, otherwise the first failure in input order.
    """
    config = EngineConfig() if config is None else config
    if not exprs:
        return []

    def task(expr: Expr) -> Rational:
        return Evaluator(snapshot, config.max_depth).run(expr)

    if len(exprs) == 1:
        return [task(exprs[0])]

    logger.debug("parallel pass over %d entries (table generation %d)", len(exprs), snapshot.generation)
    with ThreadPoolExecutor(max_workers=config.workers, thread_name_prefix="rpn-eval") as pool:
        futures: list[Future[Rational]] = [pool.submit(task, expr) for expr in exprs]
        wait(futures)

    failures = [exc for exc in (future.exception() for future in futures) if exc is not None]
    for exc in failures:
        if is_fatal(exc):
            raise exc
    if failures:
        raise failures[0]
    return [future.result() for future in futures]
