"""Evaluator for arithmetic expressions over binary operators."""

from __future__ import annotations

import sys

from .sexpr import LispError, ParseError, Symbol, parse, to_source

__all__ = ["evaluate", "interpret", "main"]


def _int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _truncdiv(lhs: int, rhs: int) -> int:
    if rhs == 0:
        raise LispError("division by zero")
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


_OPERATORS = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _truncdiv,
}


def evaluate(expr) -> int:
    """Evaluate an expression built from integers and ``+ - * /``."""
    if isinstance(expr, bool):
        raise LispError(f"expression expected. got: '{expr}'")
    if isinstance(expr, int):
        return _int32(expr)
    if isinstance(expr, list) and expr:
        head = expr[0]
        if isinstance(head, Symbol):
            if len(expr) != 3:
                raise LispError(f"only binary operators supported. got '{to_source(expr)}'")
            operator = _OPERATORS.get(head[:1])
            if operator is None:
                raise LispError(f"unknown operator: '{head}'")
            return _int32(operator(evaluate(expr[1]), evaluate(expr[2])))
        if len(expr) > 1:
            raise LispError(f"operator expected: '{to_source(expr)}'")
        return evaluate(head)
    raise LispError(f"expression expected. got: '{to_source(expr)}'")


def interpret(text: str) -> int:
    """Parse ``text`` and evaluate its first form."""
    forms = parse(text)
    if not forms:
        raise ParseError("invalid syntax")
    return evaluate(forms[0])


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) > 1:
        print("Usage: arith [source.lisp]", file=sys.stderr)
        return 1
    try:
        if args:
            with open(args[0], encoding="utf-8") as handle:
                text = handle.read()
        else:
            text = sys.stdin.read()
    except OSError:
        print(f"Fatal: can't open file '{args[0]}'", file=sys.stderr)
        return 1
    try:
        value = interpret(text)
    except LispError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    print(f"Result: {value}")
    return 0