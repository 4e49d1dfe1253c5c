"""Tree-walking evaluator over an immutable table snapshot.

Evaluation runs on an explicit work list instead of the Python call stack,
so neither expression nesting nor user-function recursion consumes
interpreter frames. The only depth limit is the recursive-call counter
checked against ``max_depth``.
"""

from __future__ import annotations

import operator
from collections.abc import Callable, Sequence
from typing import Final

from .ast import Arg, Call, Expr, Literal, Name, Op
from .config import EngineConfig
from .errors import ArgumentOutOfRange, ResourceExhausted, UnknownFunction
from .table import FunctionDef, Mode, TableSnapshot
from .values import Rational

_BINARY_OPS: Final[dict[str, Callable[[Rational, Rational], Rational]]] = {
    "+": operator.add,
    "-": operator.sub,
    "*": operator.mul,
    "/": operator.truediv,
    "~": Rational.positive_sub,
    "\\": operator.floordiv,
    "^": operator.pow,
}

# Work-list step kinds.
_EVAL: Final = "eval"
_APPLY: Final = "apply"
_SELECT: Final = "select"
_CALL: Final = "call"
_RETURN: Final = "return"
_TEST: Final = "test"
_CHECK: Final = "check"
_NEXT: Final = "next"


def _take(values: list[Rational], count: int) -> tuple[Rational, ...]:
    start = len(values) - count
    taken = tuple(values[start:])
    del values[start:]
    return taken


class Evaluator:
    """Evaluates trees for one task; the depth counter is not shared."""

    def __init__(self, snapshot: TableSnapshot, max_depth: int) -> None:
        self.snapshot = snapshot
        self.max_depth = max_depth
        self.depth = 0

    def run(self, expr: Expr) -> Rational:
        return self.evaluate(expr, ())

    def call(self, name: str, values: Sequence[Rational]) -> Rational:
        return self.evaluate(Call(name, tuple(Literal(value) for value in values)), ())

    def evaluate(self, expr: Expr, args: Sequence[Rational]) -> Rational:
        base = self.depth
        work: list[tuple] = [(_EVAL, expr, tuple(args))]
        values: list[Rational] = []
        try:
            while work:
                step = work.pop()
                kind = step[0]

                if kind == _EVAL:
                    self._expand(step[1], step[2], work, values)

                elif kind == _APPLY:
                    op = step[1]
                    if op == "_":
                        b, e, m = _take(values, 3)
                        values.append(b.pow_mod(e, m))
                    else:
                        a, b = _take(values, 2)
                        values.append(_BINARY_OPS[op](a, b))

                elif kind == _SELECT:
                    # Only the selected branch is ever evaluated.
                    _, taken, untaken, frame = step
                    work.append((_EVAL, untaken if values.pop().is_zero() else taken, frame))

                elif kind == _CALL:
                    self._enter(step[1], _take(values, step[2]), work)

                elif kind == _RETURN:
                    self.depth -= 1

                elif kind == _TEST:
                    _, definition, frame = step
                    work.append((_CHECK, definition, frame))
                    work.append((_EVAL, definition.predicate, frame))

                elif kind == _CHECK:
                    _, definition, frame = step
                    if not values.pop().is_zero():
                        work.append((_EVAL, definition.terminal, frame))
                        continue
                    work.append((_NEXT, definition))
                    work.extend((_EVAL, item, frame) for item in reversed(definition.inits))

                elif kind == _NEXT:
                    definition = step[1]
                    work.append((_TEST, definition, _take(values, definition.arity)))
        finally:
            self.depth = base
        (result,) = values
        return result

    def _expand(self, expr: Expr, frame: tuple[Rational, ...], work: list[tuple], values: list[Rational]) -> None:
        if isinstance(expr, Literal):
            values.append(expr.value)
            return

        if isinstance(expr, Arg):
            if expr.index >= len(frame):
                raise ArgumentOutOfRange(expr.index, len(frame))
            values.append(frame[expr.index])
            return

        if isinstance(expr, Op):
            if expr.op == "?":
                taken, untaken, predicate = expr.operands
                work.append((_SELECT, taken, untaken, frame))
                work.append((_EVAL, predicate, frame))
                return
            work.append((_APPLY, expr.op))
            work.extend((_EVAL, item, frame) for item in reversed(expr.operands))
            return

        if isinstance(expr, Name):
            value = self.snapshot.variable(expr.value)
            if value is not None:
                values.append(value)
            else:
                work.append((_CALL, expr.value, 0))
            return

        if isinstance(expr, Call):
            work.append((_CALL, expr.name, len(expr.args)))
            work.extend((_EVAL, item, frame) for item in reversed(expr.args))
            return

        raise TypeError(f"Unsupported expression node {type(expr).__name__}")

    def _enter(self, name: str, frame: tuple[Rational, ...], work: list[tuple]) -> None:
        definition: FunctionDef | None = self.snapshot.function(name, len(frame))
        if definition is None:
            raise UnknownFunction(name, len(frame))
        if definition.mode is Mode.ITERATIVE:
            work.append((_TEST, definition, frame))
            return
        if self.depth >= self.max_depth:
            raise ResourceExhausted(self.max_depth)
        self.depth += 1
        work.append((_RETURN,))
        work.append((_EVAL, definition.body, frame))


def evaluate(expr: Expr, snapshot: TableSnapshot, config: EngineConfig | None = None) -> Rational:
    """Evaluate one expression tree against ``snapshot``."""
    config = EngineConfig() if config is None else config
    return Evaluator(snapshot, config.max_depth).run(expr)
