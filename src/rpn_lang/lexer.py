"""Tokenization of rpn-lang source text."""

from __future__ import annotations

import string
from dataclasses import dataclass
from typing import Final

from .errors import MalformedLiteral, UnrecognizedToken
from .values import Rational, encode_bytes


@dataclass(frozen=True)
class Token:
    kind: str
    text: str
    pos: int
    end: int
    value: object = None

    @classmethod
    def literal(cls, value: Rational) -> "Token":
        text = str(value)
        return cls("NUMBER", text, -1, -1, value)

    @property
    def is_command(self) -> bool:
        return self.kind == "CMD"

    def display(self) -> str:
        if self.kind == "NUMBER":
            return str(self.value)
        if self.kind == "ARG":
            return f"${self.value}"
        return self.text


OPERATORS: Final[frozenset[str]] = frozenset("+-*/~\\^_?")
COMMANDS: Final[frozenset[str]] = frozenset("=#:><!%&")

_WHITESPACE: Final = frozenset(" \t\n\r\f\v")
_DIGITS: Final = frozenset(string.digits)
_LETTERS: Final = frozenset(string.ascii_letters)
_ALNUM: Final = _LETTERS | _DIGITS
_SIMPLE_ESCAPES: Final[dict[str, int]] = {"n": 10, "r": 13, "t": 9, "\\": 92, '"': 34}
_HEX: Final = frozenset(string.hexdigits)


def _scan_digits(source: str, start: int) -> int:
    i = start
    while i < len(source) and source[i] in _DIGITS:
        i += 1
    return i


def _scan_identifier(source: str, start: int) -> int:
    # Dashes and underscores are allowed only between alphanumerics.
    i = start + 1
    while i < len(source):
        ch = source[i]
        if ch in _ALNUM:
            i += 1
        elif ch in "-_" and i + 1 < len(source) and source[i + 1] in _ALNUM:
            i += 2
        else:
            break
    return i


def _scan_number(source: str, start: int) -> tuple[Rational, int]:
    i = start
    if source[i] in "+-":
        i += 1
    i = _scan_digits(source, i)
    if i < len(source) and source[i] == "/":
        den_end = _scan_digits(source, i + 1)
        if den_end == i + 1:
            raise MalformedLiteral(f"Missing denominator in literal {source[start : i + 1]!r}", start)
        i = den_end
    return Rational.parse(source[start:i], start), i


def _scan_string(source: str, start: int) -> tuple[Rational, int]:
    assert source[start] == '"'
    i = start + 1
    out = bytearray()
    while i < len(source):
        ch = source[i]
        if ch == '"':
            return encode_bytes(bytes(out)), i + 1
        if ch == "\\":
            if i + 1 >= len(source):
                break
            esc = source[i + 1]
            if esc in _SIMPLE_ESCAPES:
                out.append(_SIMPLE_ESCAPES[esc])
                i += 2
                continue
            digits = source[i + 1 : i + 3]
            if len(digits) != 2 or not all(d in _HEX for d in digits):
                raise MalformedLiteral(f"Invalid escape sequence \\{esc}", i)
            out.append(int(digits, 16))
            i += 3
            continue
        out.extend(ch.encode("utf-8"))
        i += 1
    raise MalformedLiteral("Unterminated string literal", start)


def _declaration(source: str, start: int, name_end: int) -> tuple[Token, int] | None:
    if name_end >= len(source) or source[name_end] not in "|@":
        return None
    arity_end = _scan_digits(source, name_end + 1)
    if arity_end == name_end + 1:
        return None
    name = source[start:name_end]
    arity = int(source[name_end + 1 : arity_end])
    symbol = source[name_end]
    return Token("CMD", symbol, start, arity_end, (name, arity)), arity_end


def tokenize(source: str) -> list[Token]:
    tokens: list[Token] = []
    i = 0

    while i < len(source):
        ch = source[i]

        if ch in _WHITESPACE:
            i += 1
            continue

        if ch == ";":
            while i < len(source) and source[i] not in {"\n", "\r"}:
                i += 1
            continue

        if ch == '"':
            value, end = _scan_string(source, i)
            tokens.append(Token("NUMBER", source[i:end], i, end, value))
            i = end
            continue

        if ch in _DIGITS or (ch in "+-" and i + 1 < len(source) and source[i + 1] in _DIGITS):
            value, end = _scan_number(source, i)
            tokens.append(Token("NUMBER", source[i:end], i, end, value))
            i = end
            continue

        if ch == "$":
            end = _scan_digits(source, i + 1)
            if end == i + 1:
                raise UnrecognizedToken("Argument reference without index", i)
            tokens.append(Token("ARG", source[i:end], i, end, int(source[i + 1 : end])))
            i = end
            continue

        if ch in _LETTERS:
            end = _scan_identifier(source, i)
            declared = _declaration(source, i, end)
            if declared is not None:
                token, end = declared
                tokens.append(token)
            else:
                tokens.append(Token("NAME", source[i:end], i, end))
            i = end
            continue

        if ch == "=" and i + 1 < len(source) and source[i + 1] in _LETTERS:
            end = _scan_identifier(source, i + 1)
            tokens.append(Token("CMD", "=", i, end, source[i + 1 : end]))
            i = end
            continue

        if ch in OPERATORS:
            tokens.append(Token("OP", ch, i, i + 1))
            i += 1
            continue

        if ch in COMMANDS:
            tokens.append(Token("CMD", ch, i, i + 1))
            i += 1
            continue

        raise UnrecognizedToken(f"Unexpected character {ch!r}", i)

    return tokens
