"""rpn-lang public API."""

from .config import EngineConfig
from .dispatcher import evaluate_all
from .engine import Engine, Output, Stack
from .errors import (
    ArgumentOutOfRange,
    DivisionByZero,
    InvalidInFunctionBody,
    MalformedLiteral,
    ModulusZero,
    ResourceExhausted,
    RPNError,
    RPNRuntimeError,
    RPNSyntaxError,
    StackUnderflow,
    UnknownFunction,
    UnrecognizedToken,
)
from .evaluator import Evaluator, evaluate
from .lexer import Token, tokenize
from .table import FunctionDef, Mode, SymbolTable, TableSnapshot
from .values import Rational, encode_bytes, render_bytes

__all__ = [
    "Engine",
    "EngineConfig",
    "Output",
    "Stack",
    "Token",
    "tokenize",
    "Rational",
    "encode_bytes",
    "render_bytes",
    "FunctionDef",
    "Mode",
    "SymbolTable",
    "TableSnapshot",
    "Evaluator",
    "evaluate",
    "evaluate_all",
    "RPNError",
    "RPNSyntaxError",
    "RPNRuntimeError",
    "MalformedLiteral",
    "UnrecognizedToken",
    "StackUnderflow",
    "UnknownFunction",
    "InvalidInFunctionBody",
    "DivisionByZero",
    "ModulusZero",
    "ArgumentOutOfRange",
    "ResourceExhausted",
]
