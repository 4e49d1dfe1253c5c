"""Structured error types for lexing, stack and runtime failures."""

from __future__ import annotations


class RPNError(Exception):
    """Base class for structured rpn-lang errors."""


class RPNSyntaxError(RPNError):
    """Lexing failure; the offending source text is rejected as a whole."""

    def __init__(self, message: str, pos: int | None = None) -> None:
        self.message = message
        self.pos = pos
        super().__init__(message if pos is None else f"{message} at index {pos}")


class MalformedLiteral(RPNSyntaxError):
    """Numeric or string literal that cannot be turned into a value."""


class UnrecognizedToken(RPNSyntaxError):
    """Character that starts no known token."""


class RPNRuntimeError(RPNError):
    """Recoverable failure of a single command or evaluation."""


class StackUnderflow(RPNRuntimeError):
    """Operator or command applied with too few complete expressions."""


class UnknownFunction(RPNRuntimeError):
    def __init__(self, name: str, arity: int) -> None:
        self.name = name
        self.arity = arity
        super().__init__(f"Undefined name {name!r} with arity {arity}")


class InvalidInFunctionBody(RPNRuntimeError):
    """Command token offered where only expression tokens are allowed."""


class DivisionByZero(RPNRuntimeError, ZeroDivisionError):
    pass


class ModulusZero(RPNRuntimeError, ZeroDivisionError):
    pass


class ArgumentOutOfRange(RPNRuntimeError):
    def __init__(self, index: int, arity: int) -> None:
        self.index = index
        self.arity = arity
        if arity == 0:
            message = f"Argument ${index} is only allowed inside a function body"
        else:
            message = f"Argument ${index} out of range for arity {arity}"
        super().__init__(message)


class ResourceExhausted(RPNError):
    """Recursion depth limit reached; fatal for the running process."""

    def __init__(self, depth: int) -> None:
        self.depth = depth
        super().__init__(f"Recursion depth limit of {depth} exceeded")


def is_fatal(err: BaseException) -> bool:
    return isinstance(err, ResourceExhausted)
