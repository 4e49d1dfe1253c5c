from __future__ import annotations

import unittest

from rpn_lang.errors import MalformedLiteral, UnrecognizedToken
from rpn_lang.lexer import Token, tokenize
from rpn_lang.values import Rational, encode_bytes


class LexerTokenTests(unittest.TestCase):
    def _kinds(self, source: str) -> list[tuple[str, str]]:
        return [(tok.kind, tok.text) for tok in tokenize(source)]

    def test_arithmetic_line(self) -> None:
        self.assertEqual(
            self._kinds("3 4 + ="),
            [("NUMBER", "3"), ("NUMBER", "4"), ("OP", "+"), ("CMD", "=")],
        )

    def test_whitespace_not_required_between_tokens(self) -> None:
        self.assertEqual(self._kinds("3 4+"), [("NUMBER", "3"), ("NUMBER", "4"), ("OP", "+")])
        self.assertEqual(self._kinds("3 4-"), [("NUMBER", "3"), ("NUMBER", "4"), ("OP", "-")])

    def test_signed_and_fractional_literals(self) -> None:
        tokens = tokenize("-5 +7 6/4 -1/3")
        self.assertEqual([tok.value for tok in tokens], [Rational(-5), Rational(7), Rational(3, 2), Rational(-1, 3)])
        self.assertEqual([tok.text for tok in tokens], ["-5", "+7", "6/4", "-1/3"])

    def test_trailing_slash_is_malformed(self) -> None:
        with self.assertRaises(MalformedLiteral) as ctx:
            tokenize("1 3/ 4")
        self.assertEqual(ctx.exception.pos, 2)

    def test_zero_denominator_literal_is_malformed(self) -> None:
        with self.assertRaises(MalformedLiteral):
            tokenize("3/0")

    def test_slash_after_space_is_division(self) -> None:
        self.assertEqual(self._kinds("3 /"), [("NUMBER", "3"), ("OP", "/")])

    def test_argument_references(self) -> None:
        tokens = tokenize("$0 $12")
        self.assertEqual([(tok.kind, tok.value) for tok in tokens], [("ARG", 0), ("ARG", 12)])

    def test_declarations_carry_name_and_arity(self) -> None:
        plain, iterative = tokenize("f|1 fib_aux@3")
        self.assertEqual((plain.kind, plain.text, plain.value), ("CMD", "|", ("f", 1)))
        self.assertEqual((iterative.kind, iterative.text, iterative.value), ("CMD", "@", ("fib_aux", 3)))

    def test_variable_bind_versus_emit(self) -> None:
        bind, emit = tokenize("=total =")
        self.assertEqual((bind.text, bind.value), ("=", "total"))
        self.assertEqual((emit.text, emit.value), ("=", None))

    def test_identifier_shapes(self) -> None:
        self.assertEqual(
            self._kinds("a-b c_d x2 a _ b"),
            [("NAME", "a-b"), ("NAME", "c_d"), ("NAME", "x2"), ("NAME", "a"), ("OP", "_"), ("NAME", "b")],
        )

    def test_every_operator_and_command(self) -> None:
        ops = [tok.text for tok in tokenize("+ - * / ~ \\ ^ _ ?")]
        self.assertEqual(ops, ["+", "-", "*", "/", "~", "\\", "^", "_", "?"])
        commands = tokenize("= # : > < ! % &")
        self.assertTrue(all(tok.is_command for tok in commands))
        self.assertEqual([tok.text for tok in commands], ["=", "#", ":", ">", "<", "!", "%", "&"])

    def test_comments_run_to_end_of_line(self) -> None:
        self.assertEqual(self._kinds("1 2 ; 3 + ="), [("NUMBER", "1"), ("NUMBER", "2")])
        self.assertEqual(self._kinds("1 ; note\n2"), [("NUMBER", "1"), ("NUMBER", "2")])

    def test_string_literals_become_numbers(self) -> None:
        (token,) = tokenize('"hi"')
        self.assertEqual(token.kind, "NUMBER")
        self.assertEqual(token.value, encode_bytes(b"hi"))
        (escaped,) = tokenize('"a\\n\\41\\""')
        self.assertEqual(escaped.value, encode_bytes(b'a\nA"'))

    def test_bad_strings(self) -> None:
        with self.assertRaises(MalformedLiteral):
            tokenize('"open')
        with self.assertRaises(MalformedLiteral):
            tokenize('"\\q"')

    def test_unrecognized_characters(self) -> None:
        with self.assertRaises(UnrecognizedToken):
            tokenize("1 [ 2")
        with self.assertRaises(UnrecognizedToken):
            tokenize("$x")
        with self.assertRaises(UnrecognizedToken):
            tokenize("f|")

    def test_spans(self) -> None:
        tokens = tokenize("12 ab")
        self.assertEqual([(tok.pos, tok.end) for tok in tokens], [(0, 2), (3, 5)])

    def test_literal_token_display(self) -> None:
        token = Token.literal(Rational(-3, 4))
        self.assertEqual(token.kind, "NUMBER")
        self.assertEqual(token.display(), "-3/4")
        self.assertEqual(tokenize("$3")[0].display(), "$3")


if __name__ == "__main__":
    unittest.main()
