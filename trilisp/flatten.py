"""Compiler from nested arithmetic with ``let`` to flat three-address ``let`` lines."""

from __future__ import annotations

import itertools
import sys
from collections.abc import Iterator

from .sexpr import LispError, Symbol, parse, to_source

__all__ = ["CompileError", "compile_expr", "compile_program", "compile_file", "main"]

_OPERATOR_CHARS = frozenset("+-*/")


class CompileError(LispError):
    """Raised when an expression cannot be flattened."""


def _operand(expr, counter: Iterator[int], lines: list[str]) -> str:
    if isinstance(expr, (int, Symbol)) and not isinstance(expr, bool):
        return to_source(expr)
    name = f"__tmp_{next(counter)}"
    lines.extend(compile_expr(expr, name, counter))
    return name


def compile_expr(expr, result_name: str, counter: Iterator[int] | None = None) -> list[str]:
    """Flatten ``expr`` into lines that leave its value in ``result_name``."""
    if counter is None:
        counter = itertools.count()
    if not isinstance(expr, list) or not expr:
        raise CompileError(f"compilation flow shouldn't be here. '{to_source(expr)}'")
    head = expr[0]
    if isinstance(head, Symbol) and head == "let":
        if len(expr) != 3 or not isinstance(expr[1], list) or len(expr[1]) != 2:
            raise CompileError(f"malformed let: '{to_source(expr)}'")
        (name, value), body = expr[1], expr[2]
        return compile_expr(value, str(name), counter) + compile_expr(body, result_name, counter)
    if not isinstance(head, Symbol) or head[:1] not in _OPERATOR_CHARS:
        raise CompileError(f"unsupported operator: '{to_source(head)}'")
    if len(expr) != 3:
        raise CompileError(f"operator '{head}' needs exactly two arguments")
    lines: list[str] = []
    left = _operand(expr[1], counter, lines)
    right = _operand(expr[2], counter, lines)
    lines.append(f"(let {result_name} ({head} {left} {right}))")
    return lines


def compile_program(program: list) -> str:
    """Flatten the first form of a parsed program into ``res``."""
    if not program:
        raise CompileError("no program")
    lines = compile_expr(program[0], "res", itertools.count())
    return "(" + "".join(line + "\n" for line in lines) + ")"


def compile_file(path: str, out_path: str) -> None:
    """Compile the program in ``path`` and write the result to ``out_path``."""
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError as exc:
        raise CompileError(f"can't open file '{path}'") from exc
    output = compile_program(parse(text))
    try:
        with open(out_path, "w", encoding="utf-8") as handle:
            handle.write(output)
    except OSError as exc:
        raise CompileError(f"can't open file '{out_path}'") from exc


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) != 2:
        print("Usage: flatten input_file output_file", file=sys.stderr)
        return 1
    try:
        compile_file(args[0], args[1])
    except LispError as exc:
        print(f"Fatal: {exc}", file=sys.stderr)
        return 1
    return 0