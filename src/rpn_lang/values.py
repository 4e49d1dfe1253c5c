"""Exact rational value model and the byte-string codec layered on it."""

from __future__ import annotations

import logging
import math
import re
from fractions import Fraction
from typing import Final

from .errors import DivisionByZero, MalformedLiteral, ModulusZero

logger = logging.getLogger(__name__)

_LITERAL_RE: Final = re.compile(r"^(?P<num>[+-]?[0-9]+)(?:/(?P<den>[0-9]+))?$")


class Rational:
    """Language number: a ``Fraction`` with the interpreter's error mapping and rendering."""

    __slots__ = ("_value",)

    def __init__(self, numerator: int = 0, denominator: int = 1) -> None:
        if isinstance(numerator, bool) or not isinstance(numerator, int):
            raise TypeError(f"numerator must be int, got {type(numerator).__name__}")
        if isinstance(denominator, bool) or not isinstance(denominator, int):
            raise TypeError(f"denominator must be int, got {type(denominator).__name__}")
        if denominator == 0:
            raise DivisionByZero("Division by zero")
        self._value = Fraction(numerator, denominator)

    @classmethod
    def from_fraction(cls, value: Fraction) -> "Rational":
        out = cls.__new__(cls)
        out._value = value
        return out

    @classmethod
    def parse(cls, text: str, pos: int | None = None) -> "Rational":
        match = _LITERAL_RE.match(text)
        if match is None:
            raise MalformedLiteral(f"Invalid numeric literal {text!r}", pos)
        den_text = match.group("den")
        if den_text is not None and int(den_text) == 0:
            raise MalformedLiteral(f"Zero denominator in literal {text!r}", pos)
        return cls.from_fraction(Fraction(text))

    @classmethod
    def coerce(cls, value: "Rational | int") -> "Rational":
        if isinstance(value, Rational):
            return value
        return cls(value)

    @property
    def numerator(self) -> int:
        return self._value.numerator

    @property
    def denominator(self) -> int:
        return self._value.denominator

    def as_fraction(self) -> Fraction:
        return self._value

    def is_zero(self) -> bool:
        return self._value == 0

    def is_integer(self) -> bool:
        return self._value.denominator == 1

    def __bool__(self) -> bool:
        return self._value != 0

    def __eq__(self, other: object) -> bool:
        if isinstance(other, Rational):
            return self._value == other._value
        if isinstance(other, int) and not isinstance(other, bool):
            return self._value == other
        return NotImplemented

    def __hash__(self) -> int:
        return hash(self._value)

    def __lt__(self, other: "Rational | int") -> bool:
        return self._value < Rational.coerce(other)._value

    def __le__(self, other: "Rational | int") -> bool:
        return self._value <= Rational.coerce(other)._value

    def __repr__(self) -> str:
        return f"Rational({str(self)!r})"

    def __str__(self) -> str:
        return str(self._value)

    def __add__(self, other: "Rational") -> "Rational":
        return Rational.from_fraction(self._value + other._value)

    def __sub__(self, other: "Rational") -> "Rational":
        return Rational.from_fraction(self._value - other._value)

    def __mul__(self, other: "Rational") -> "Rational":
        return Rational.from_fraction(self._value * other._value)

    def __truediv__(self, other: "Rational") -> "Rational":
        if other.is_zero():
            raise DivisionByZero(f"Division of {self} by zero")
        return Rational.from_fraction(self._value / other._value)

    def __floordiv__(self, other: "Rational") -> "Rational":
        if other.is_zero():
            raise DivisionByZero(f"Division of {self} by zero")
        return Rational(self._value // other._value)

    def __neg__(self) -> "Rational":
        return Rational.from_fraction(-self._value)

    def __abs__(self) -> "Rational":
        return Rational.from_fraction(abs(self._value))

    def __pow__(self, exponent: "Rational") -> "Rational":
        return Rational.from_fraction(self._value ** exponent.floor_abs("exponent"))

    def positive_sub(self, other: "Rational") -> "Rational":
        diff = self._value - other._value
        return Rational.from_fraction(diff) if diff > 0 else ZERO

    def floor(self) -> "Rational":
        return Rational(math.floor(self._value))

    def floor_abs(self, role: str = "value") -> int:
        n = math.floor(abs(self._value))
        if self._value < 0 or not self.is_integer():
            logger.debug("%s %s coerced to %d", role, self, n)
        return n

    def pow_mod(self, exponent: "Rational", modulus: "Rational") -> "Rational":
        base = math.floor(self._value)
        e = exponent.floor_abs("exponent")
        m = modulus.floor_abs("modulus")
        if m == 0:
            raise ModulusZero(f"Modular exponentiation of {self} with modulus zero")
        return Rational(pow(base, e, m))


ZERO: Final[Rational] = Rational(0)
ONE: Final[Rational] = Rational(1)


def encode_bytes(data: bytes) -> Rational:
    """Pack bytes into an integer, first byte least significant."""
    return Rational(int.from_bytes(data, "little"))


def render_bytes(value: Rational) -> bytes | Rational:
    """Render an integer as its base-256 digits, least significant first.

    A value whose denominator is not 1 has no byte-string rendering and is
    handed back unchanged so callers can report the fraction form.
    """
    if not value.is_integer():
        return value
    magnitude = abs(value.numerator)
    return magnitude.to_bytes((magnitude.bit_length() + 7) // 8, "little")
