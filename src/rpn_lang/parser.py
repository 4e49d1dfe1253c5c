"""Grouping of flat stack tokens into expression trees.

Stack entries are kept as the postfix tokens they were pushed as. How many
operands a name consumes depends on the functions declared when a command
runs, so grouping happens on demand against an ``arity_of`` lookup:
``expression_start`` walks back from the top to find where one complete
expression begins and ``build`` folds such a run into an immutable tree.
"""

from __future__ import annotations

from collections.abc import Callable, Sequence
from typing import Optional

from .ast import OPERATOR_ARITY, Arg, Call, Expr, Literal, Name, Op
from .errors import ArgumentOutOfRange, InvalidInFunctionBody, StackUnderflow
from .lexer import Token

ArityOf = Callable[[str], Optional[int]]


def _consumes(token: Token, arity_of: ArityOf) -> int:
    if token.kind in {"NUMBER", "ARG"}:
        return 0
    if token.kind == "OP":
        return OPERATOR_ARITY[token.text]
    if token.kind == "NAME":
        arity = arity_of(token.text)
        return 0 if arity is None else arity
    raise InvalidInFunctionBody(f"Command {token.display()!r} cannot be part of an expression")


def with_declared(arity_of: ArityOf, name: str, arity: int) -> ArityOf:
    """Overlay a pending declaration so a body can refer to itself."""

    def lookup(candidate: str) -> int | None:
        if candidate == name:
            return arity
        return arity_of(candidate)

    return lookup


def expression_start(tokens: Sequence[Token], arity_of: ArityOf, end: int | None = None) -> int:
    """Index where the complete expression ending at ``end`` begins."""
    i = len(tokens) if end is None else end
    need = 1
    while need > 0:
        if i == 0:
            raise StackUnderflow("Incomplete expression")
        i -= 1
        need += _consumes(tokens[i], arity_of) - 1
    return i


def split_expressions(
    tokens: Sequence[Token],
    arity_of: ArityOf,
    count: int | None = None,
) -> list[tuple[int, int]]:
    """Spans of the top ``count`` expressions (all when None), top first."""
    spans: list[tuple[int, int]] = []
    end = len(tokens)
    while end > 0 and (count is None or len(spans) < count):
        start = expression_start(tokens, arity_of, end)
        spans.append((start, end))
        end = start
    if count is not None and len(spans) < count:
        raise StackUnderflow(f"Expected {count} expressions, found {len(spans)}")
    return spans


def build(tokens: Sequence[Token], arity_of: ArityOf, arity: int = 0) -> Expr:
    """Fold a postfix token run into one tree; ``$N`` must satisfy N < arity."""
    operands: list[Expr] = []

    for token in tokens:
        if token.kind == "NUMBER":
            operands.append(Literal(token.value))
            continue

        if token.kind == "ARG":
            if token.value >= arity:
                raise ArgumentOutOfRange(token.value, arity)
            operands.append(Arg(token.value))
            continue

        if token.kind == "OP":
            needed = OPERATOR_ARITY[token.text]
            if len(operands) < needed:
                raise StackUnderflow(f"Operator {token.text!r} needs {needed} operands, found {len(operands)}")
            items = tuple(operands[len(operands) - needed :])
            del operands[len(operands) - needed :]
            operands.append(Op(token.text, items))
            continue

        if token.kind == "NAME":
            declared = arity_of(token.text)
            if declared is None:
                operands.append(Name(token.text))
                continue
            if len(operands) < declared:
                raise StackUnderflow(f"Function {token.text!r} needs {declared} arguments, found {len(operands)}")
            items = tuple(operands[len(operands) - declared :]) if declared else ()
            if declared:
                del operands[len(operands) - declared :]
            operands.append(Call(token.text, items))
            continue

        raise InvalidInFunctionBody(f"Command {token.display()!r} cannot be part of an expression")

    if len(operands) != 1:
        raise StackUnderflow(f"Token run forms {len(operands)} expressions, expected exactly one")
    return operands[0]
