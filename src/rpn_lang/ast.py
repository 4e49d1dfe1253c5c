"""Immutable expression trees built from stack tokens."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Final, Union

from .values import Rational


@dataclass(frozen=True)
class Literal:
    value: Rational


@dataclass(frozen=True)
class Name:
    """Variable reference, or a zero-argument call resolved at evaluation."""

    value: str


@dataclass(frozen=True)
class Arg:
    index: int


@dataclass(frozen=True)
class Op:
    op: str
    operands: tuple["Expr", ...]


@dataclass(frozen=True)
class Call:
    name: str
    args: tuple["Expr", ...]


Expr = Union[Literal, Name, Arg, Op, Call]

OPERATOR_ARITY: Final[dict[str, int]] = {
    "+": 2,
    "-": 2,
    "*": 2,
    "/": 2,
    "~": 2,
    "\\": 2,
    "^": 2,
    "_": 3,
    "?": 3,
}


def to_postfix(expr: Expr) -> str:
    """Render a tree back to the postfix text it was built from."""
    out: list[str] = []
    # Pending nodes, plus the operator or function name each one closes.
    pending: list[Expr | str] = [expr]
    while pending:
        node = pending.pop()
        if isinstance(node, str):
            out.append(node)
        elif isinstance(node, Literal):
            out.append(str(node.value))
        elif isinstance(node, Name):
            out.append(node.value)
        elif isinstance(node, Arg):
            out.append(f"${node.index}")
        elif isinstance(node, Op):
            pending.append(node.op)
            pending.extend(reversed(node.operands))
        elif isinstance(node, Call):
            pending.append(node.name)
            pending.extend(reversed(node.args))
        else:
            raise TypeError(f"Unsupported expression node {type(node).__name__}")
    return " ".join(out)
