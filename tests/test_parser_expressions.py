from __future__ import annotations

import unittest

from rpn_lang.ast import Arg, Call, Literal, Name, Op, to_postfix
from rpn_lang.errors import ArgumentOutOfRange, InvalidInFunctionBody, StackUnderflow
from rpn_lang.lexer import tokenize
from rpn_lang.parser import build, expression_start, split_expressions, with_declared
from rpn_lang.values import Rational


def _arities(**known: int):
    return known.get


class ParserExpressionTests(unittest.TestCase):
    def test_operator_folds_operands(self) -> None:
        expr = build(tokenize("3 4 +"), _arities())
        self.assertEqual(expr, Op("+", (Literal(Rational(3)), Literal(Rational(4)))))

    def test_ternary_and_modpow_take_three(self) -> None:
        expr = build(tokenize("2 3 0 ?"), _arities())
        self.assertIsInstance(expr, Op)
        self.assertEqual(len(expr.operands), 3)
        self.assertEqual(to_postfix(build(tokenize("4 13 497 _"), _arities())), "4 13 497 _")

    def test_known_function_consumes_its_arity(self) -> None:
        expr = build(tokenize("5 9 zero"), _arities(zero=2))
        self.assertEqual(expr, Call("zero", (Literal(Rational(5)), Literal(Rational(9)))))

    def test_zero_arity_function_is_a_call(self) -> None:
        self.assertEqual(build(tokenize("five"), _arities(five=0)), Call("five", ()))

    def test_unknown_name_is_a_leaf(self) -> None:
        self.assertEqual(build(tokenize("x"), _arities()), Name("x"))

    def test_expression_start_uses_arities(self) -> None:
        tokens = tokenize("1 2 3 f")
        self.assertEqual(expression_start(tokens, _arities(f=2)), 1)
        self.assertEqual(expression_start(tokens, _arities()), 3)

    def test_incomplete_expression_underflows(self) -> None:
        with self.assertRaises(StackUnderflow):
            expression_start(tokenize("3 +"), _arities())
        with self.assertRaises(StackUnderflow):
            build(tokenize("3 +"), _arities())
        with self.assertRaises(StackUnderflow):
            build(tokenize("3 f"), _arities(f=2))

    def test_build_rejects_multiple_expressions(self) -> None:
        with self.assertRaises(StackUnderflow):
            build(tokenize("1 2"), _arities())

    def test_argument_range_checked_against_arity(self) -> None:
        self.assertEqual(build(tokenize("$1"), _arities(), arity=2), Arg(1))
        with self.assertRaises(ArgumentOutOfRange) as ctx:
            build(tokenize("$1"), _arities(), arity=1)
        self.assertEqual((ctx.exception.index, ctx.exception.arity), (1, 1))
        with self.assertRaises(ArgumentOutOfRange):
            build(tokenize("$0 1 +"), _arities())

    def test_commands_are_invalid_in_bodies(self) -> None:
        with self.assertRaises(InvalidInFunctionBody):
            build(tokenize("1 ="), _arities())
        with self.assertRaises(InvalidInFunctionBody):
            expression_start(tokenize("1 #"), _arities())

    def test_split_expressions_top_first(self) -> None:
        tokens = tokenize("1 2 3 +")
        self.assertEqual(split_expressions(tokens, _arities()), [(1, 4), (0, 1)])
        self.assertEqual(split_expressions(tokens, _arities(), count=1), [(1, 4)])
        with self.assertRaises(StackUnderflow):
            split_expressions(tokens, _arities(), count=3)

    def test_pending_declaration_overlay(self) -> None:
        lookup = with_declared(_arities(g=3), "f", 1)
        self.assertEqual(lookup("f"), 1)
        self.assertEqual(lookup("g"), 3)
        self.assertIsNone(lookup("h"))
        body = build(tokenize("$0 1 + f"), lookup, arity=1)
        self.assertEqual(body, Call("f", (Op("+", (Arg(0), Literal(Rational(1)))),)))

    def test_postfix_rendering(self) -> None:
        source = "$2 $1 $0 $1 + $2 1 ~ fib 2/3 ?"
        expr = build(tokenize(source), _arities(fib=3), arity=3)
        self.assertEqual(to_postfix(expr), source)


if __name__ == "__main__":
    unittest.main()
