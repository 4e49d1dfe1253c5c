from __future__ import annotations

import unittest

from rpn_lang.ast import Arg, Literal, Op
from rpn_lang.table import FunctionDef, Mode, SymbolTable
from rpn_lang.values import ONE, Rational


def _double() -> FunctionDef:
    return FunctionDef.recursive("double", 1, Op("*", (Arg(0), Literal(Rational(2)))))


class SymbolTableTests(unittest.TestCase):
    def test_starts_empty(self) -> None:
        table = SymbolTable()
        self.assertEqual(table.variables(), {})
        self.assertEqual(table.functions(), ())
        self.assertEqual(table.snapshot().generation, 0)

    def test_functions_keyed_by_name_and_arity(self) -> None:
        table = SymbolTable()
        one = _double()
        two = FunctionDef.recursive("double", 2, Op("+", (Arg(0), Arg(1))))
        table.define(one)
        table.define(two)
        snapshot = table.snapshot()
        self.assertIs(snapshot.function("double", 1), one)
        self.assertIs(snapshot.function("double", 2), two)
        self.assertIsNone(snapshot.function("double", 3))
        self.assertEqual(snapshot.arities("double"), (1, 2))
        self.assertEqual(snapshot.arity_of("double"), 2)

    def test_redefinition_replaces_entry(self) -> None:
        table = SymbolTable()
        table.define(_double())
        replacement = FunctionDef.recursive("double", 1, Op("+", (Arg(0), Arg(0))))
        table.define(replacement)
        self.assertEqual(len(table.functions()), 1)
        self.assertIs(table.snapshot().function("double", 1), replacement)

    def test_snapshots_are_not_affected_by_later_writes(self) -> None:
        table = SymbolTable()
        before = table.snapshot()
        table.define(_double())
        table.bind_variable("x", ONE)
        after = table.snapshot()
        self.assertIsNone(before.function("double", 1))
        self.assertIsNone(before.variable("x"))
        self.assertEqual(after.variable("x"), ONE)
        self.assertEqual(after.generation, before.generation + 2)
        with self.assertRaises(TypeError):
            after.variables["y"] = ONE  # type: ignore[index]

    def test_variable_and_function_names_exclude_each_other(self) -> None:
        table = SymbolTable()
        table.define(_double())
        table.bind_variable("double", Rational(4))
        snapshot = table.snapshot()
        self.assertIsNone(snapshot.function("double", 1))
        self.assertIsNone(snapshot.arity_of("double"))
        self.assertEqual(snapshot.variable("double"), 4)

        table.define(_double())
        self.assertIsNone(table.snapshot().variable("double"))

    def test_iterative_definition_shape(self) -> None:
        definition = FunctionDef.iterative("count", 1, (Arg(0),), Arg(0), Literal(ONE))
        self.assertIs(definition.mode, Mode.ITERATIVE)
        self.assertEqual(definition.key, ("count", 1))
        self.assertEqual(definition.source(), "$0 $0 1 count@1")
        with self.assertRaises(ValueError):
            FunctionDef.iterative("bad", 2, (Arg(0),), Arg(0), Literal(ONE))

    def test_recursive_source(self) -> None:
        self.assertEqual(_double().source(), "$0 2 * double|1")


if __name__ == "__main__":
    unittest.main()
