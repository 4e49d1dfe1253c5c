"""Command processor: owns the stack and serializes every table write."""

from __future__ import annotations

import logging
import threading
from typing import Union

from .ast import OPERATOR_ARITY, Expr
from .config import EngineConfig
from .dispatcher import evaluate_all
from .errors import InvalidInFunctionBody, RPNError, StackUnderflow
from .evaluator import Evaluator
from .lexer import Token, tokenize
from .parser import ArityOf, build, expression_start, split_expressions, with_declared
from .table import FunctionDef, SymbolTable, TableSnapshot
from .values import Rational, render_bytes

logger = logging.getLogger(__name__)

Output = Union[Rational, bytes, str]


def _leaf_weight(token: Token) -> int:
    # Net expressions a token adds when every name is counted as a leaf.
    if token.kind == "OP":
        return 1 - OPERATOR_ARITY[token.text]
    return 1


class Stack:
    """Pushed expression tokens, bottom first."""

    def __init__(self) -> None:
        self.tokens: list[Token] = []
        self._leaves = 0

    def __len__(self) -> int:
        return len(self.tokens)

    def push(self, token: Token) -> None:
        self.tokens.append(token)
        self._leaves += _leaf_weight(token)

    def pop_from(self, start: int) -> list[Token]:
        run = self.tokens[start:]
        del self.tokens[start:]
        self._leaves -= sum(_leaf_weight(token) for token in run)
        return run

    def replace(self, tokens: list[Token]) -> None:
        self.tokens[:] = tokens
        self._leaves = sum(_leaf_weight(token) for token in self.tokens)

    def clear(self) -> None:
        self.tokens.clear()
        self._leaves = 0

    def expression_count(self) -> int:
        """Complete expressions on the stack, counting every name as a leaf.

        Operators are only pushed onto enough operands, so this is the
        running sum of token weights and an upper bound on the expressions
        available under the declared arities.
        """
        return self._leaves

    def listing(self, arity_of: ArityOf) -> list[str]:
        """Unevaluated expressions from top to bottom.

        Tokens below the last complete expression are listed as one trailing
        fragment.
        """
        out: list[str] = []
        end = len(self.tokens)
        while end > 0:
            try:
                start = expression_start(self.tokens, arity_of, end)
            except StackUnderflow:
                start = 0
            out.append(" ".join(token.display() for token in self.tokens[start:end]))
            end = start
        return out


class Engine:
    """Stack machine front door: ``push`` expression tokens, ``run_command`` commands.

    A failing command leaves the stack and the table exactly as they were.
    """

    def __init__(self, config: EngineConfig | None = None, table: SymbolTable | None = None) -> None:
        self.config = EngineConfig() if config is None else config
        self.table = SymbolTable() if table is None else table
        self.stack = Stack()
        self._lock = threading.RLock()

    def push(self, token: Token) -> None:
        if token.is_command:
            raise InvalidInFunctionBody(f"Command {token.display()!r} cannot be pushed as an expression")
        with self._lock:
            if token.kind == "OP":
                needed = OPERATOR_ARITY[token.text]
                # Names counted as leaves give an upper bound on what is available.
                if self.stack.expression_count() < needed:
                    raise StackUnderflow(f"Operator {token.text!r} needs {needed} operands")
            self.stack.push(token)

    def run_command(self, token: Token) -> list[Output]:
        if not token.is_command:
            raise ValueError(f"{token.display()!r} is not a command")
        with self._lock:
            saved = list(self.stack.tokens)
            try:
                return self._dispatch(token)
            except RPNError:
                self.stack.replace(saved)
                raise

    def feed(self, source: str) -> list[Output]:
        """Tokenize ``source`` and route every token; outputs in emission order."""
        outputs: list[Output] = []
        for token in tokenize(source):
            if token.is_command:
                outputs.extend(self.run_command(token))
            else:
                self.push(token)
        return outputs

    def _dispatch(self, token: Token) -> list[Output]:
        snapshot = self.table.snapshot()
        symbol = token.text

        if symbol == "=" and token.value is not None:
            value = self._evaluate(self._pop_expression(snapshot), snapshot)
            self.table.bind_variable(token.value, value)
            return []

        if symbol == "=":
            return [self._evaluate(self._pop_expression(snapshot), snapshot)]

        if symbol == "#":
            value = self._evaluate(self._pop_expression(snapshot), snapshot)
            self.stack.push(Token.literal(value))
            return [value]

        if symbol == "<":
            value = self._evaluate(self._pop_expression(snapshot), snapshot)
            self.stack.push(Token.literal(value))
            self.stack.push(Token.literal(value))
            return []

        if symbol == "&":
            value = self._evaluate(self._pop_expression(snapshot), snapshot)
            return [render_bytes(value)]

        if symbol == ">":
            return self._flush(snapshot)

        if symbol == ":":
            return list(self.stack.listing(snapshot.arity_of))

        if symbol == "!":
            self.stack.pop_from(expression_start(self.stack.tokens, snapshot.arity_of))
            return []

        if symbol == "%":
            self.stack.clear()
            return []

        if symbol == "|":
            self._declare_recursive(*token.value, snapshot)
            return []

        if symbol == "@":
            self._declare_iterative(*token.value, snapshot)
            return []

        raise ValueError(f"Unknown command {symbol!r}")

    def _pop_expression(self, snapshot: TableSnapshot, arity_of: ArityOf | None = None, arity: int = 0) -> Expr:
        arity_of = snapshot.arity_of if arity_of is None else arity_of
        start = expression_start(self.stack.tokens, arity_of)
        return build(self.stack.pop_from(start), arity_of, arity)

    def _evaluate(self, expr: Expr, snapshot: TableSnapshot) -> Rational:
        return Evaluator(snapshot, self.config.max_depth).run(expr)

    def _flush(self, snapshot: TableSnapshot) -> list[Output]:
        tokens = self.stack.tokens
        spans = split_expressions(tokens, snapshot.arity_of)
        exprs = [build(tokens[start:end], snapshot.arity_of) for start, end in spans]
        self.stack.clear()
        return list(evaluate_all(exprs, snapshot, self.config))

    def _declare_recursive(self, name: str, arity: int, snapshot: TableSnapshot) -> None:
        arity_of = with_declared(snapshot.arity_of, name, arity)
        body = self._pop_expression(snapshot, arity_of, arity)
        self.table.define(FunctionDef.recursive(name, arity, body))

    def _declare_iterative(self, name: str, arity: int, snapshot: TableSnapshot) -> None:
        arity_of = with_declared(snapshot.arity_of, name, arity)
        tokens = self.stack.tokens
        spans = split_expressions(tokens, arity_of, count=arity + 2)
        parts = [build(tokens[start:end], arity_of, arity) for start, end in reversed(spans)]
        self.stack.pop_from(spans[-1][0])
        *inits, terminal, predicate = parts
        self.table.define(FunctionDef.iterative(name, arity, tuple(inits), terminal, predicate))
