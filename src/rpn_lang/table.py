"""Process-wide symbol table with copy-on-write snapshots."""

from __future__ import annotations

import logging
import threading
from collections.abc import Mapping
from dataclasses import dataclass, field
from enum import Enum
from types import MappingProxyType

from .ast import Expr, to_postfix
from .values import Rational

logger = logging.getLogger(__name__)


class Mode(str, Enum):
    RECURSIVE = "recursive"
    ITERATIVE = "iterative"


@dataclass(frozen=True)
class FunctionDef:
    name: str
    arity: int
    mode: Mode
    body: Expr | None = None
    inits: tuple[Expr, ...] = ()
    terminal: Expr | None = None
    predicate: Expr | None = None

    @classmethod
    def recursive(cls, name: str, arity: int, body: Expr) -> "FunctionDef":
        return cls(name=name, arity=arity, mode=Mode.RECURSIVE, body=body)

    @classmethod
    def iterative(
        cls,
        name: str,
        arity: int,
        inits: tuple[Expr, ...],
        terminal: Expr,
        predicate: Expr,
    ) -> "FunctionDef":
        if len(inits) != arity:
            raise ValueError(f"iterative {name!r} needs {arity} step expressions, got {len(inits)}")
        return cls(
            name=name,
            arity=arity,
            mode=Mode.ITERATIVE,
            inits=inits,
            terminal=terminal,
            predicate=predicate,
        )

    @property
    def key(self) -> tuple[str, int]:
        return (self.name, self.arity)

    def source(self) -> str:
        if self.mode is Mode.RECURSIVE:
            return f"{to_postfix(self.body)} {self.name}|{self.arity}"
        parts = [*(to_postfix(item) for item in self.inits), to_postfix(self.terminal), to_postfix(self.predicate)]
        return f"{' '.join(parts)} {self.name}@{self.arity}"


def _frozen(data: dict) -> Mapping:
    return MappingProxyType(data)


@dataclass(frozen=True)
class TableSnapshot:
    """Immutable view of the table; safe to share between evaluation threads."""

    variables: Mapping[str, Rational] = field(default_factory=lambda: _frozen({}))
    functions: Mapping[tuple[str, int], FunctionDef] = field(default_factory=lambda: _frozen({}))
    latest_arity: Mapping[str, int] = field(default_factory=lambda: _frozen({}))
    generation: int = 0

    def variable(self, name: str) -> Rational | None:
        return self.variables.get(name)

    def function(self, name: str, arity: int) -> FunctionDef | None:
        return self.functions.get((name, arity))

    def arity_of(self, name: str) -> int | None:
        return self.latest_arity.get(name)

    def arities(self, name: str) -> tuple[int, ...]:
        return tuple(sorted(arity for fn_name, arity in self.functions if fn_name == name))


class SymbolTable:
    """Single-writer table; every write publishes a new snapshot."""

    def __init__(self) -> None:
        self._snapshot = TableSnapshot()
        self._write_lock = threading.Lock()

    def snapshot(self) -> TableSnapshot:
        return self._snapshot

    def arity_of(self, name: str) -> int | None:
        return self._snapshot.arity_of(name)

    def bind_variable(self, name: str, value: Rational) -> None:
        with self._write_lock:
            current = self._snapshot
            variables = dict(current.variables)
            variables[name] = value
            functions = {key: fn for key, fn in current.functions.items() if key[0] != name}
            latest = {key: arity for key, arity in current.latest_arity.items() if key != name}
            self._publish(variables, functions, latest)
        logger.debug("bound variable %s = %s", name, value)

    def define(self, definition: FunctionDef) -> None:
        with self._write_lock:
            current = self._snapshot
            variables = {key: value for key, value in current.variables.items() if key != definition.name}
            functions = dict(current.functions)
            replaced = definition.key in functions
            functions[definition.key] = definition
            latest = dict(current.latest_arity)
            latest[definition.name] = definition.arity
            self._publish(variables, functions, latest)
        logger.debug(
            "%s %s function %s|%d",
            "redefined" if replaced else "defined",
            definition.mode.value,
            definition.name,
            definition.arity,
        )

    def _publish(self, variables: dict, functions: dict, latest: dict) -> None:
        self._snapshot = TableSnapshot(
            variables=_frozen(variables),
            functions=_frozen(functions),
            latest_arity=_frozen(latest),
            generation=self._snapshot.generation + 1,
        )

    def variables(self) -> dict[str, Rational]:
        return dict(self._snapshot.variables)

    def functions(self) -> tuple[FunctionDef, ...]:
        return tuple(self._snapshot.functions.values())
