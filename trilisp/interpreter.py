"""Tree-rewriting interpreter for a small Lisp with ``defun``, ``let`` and ``cond``.

Values are the parsed expressions themselves: integers, symbols, strings,
lists and ``None`` for nil.  ``let`` and function calls substitute the
unevaluated argument expressions into the body (call by name).
"""

from __future__ import annotations

import re
import sys
from dataclasses import dataclass
from typing import Callable, TextIO

from .sexpr import LispError, String, Symbol, parse, to_source

__all__ = ["Interpreter", "run_script", "main"]

CALL_STACK_SIZE = 1024

_TRACE_NAMES = frozenset(
    {
        "quote", "+", "-", "*", "/", "<", ">", "==", "<=", ">=", "and", "or",
        "not", "car", "cdr", "cons", "cond", "print", "let", "defun",
    }
)
_ATOI = re.compile(r"\s*([+-]?\d+)")


def _int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def _truncdiv(lhs: int, rhs: int) -> int:
    if rhs == 0:
        raise LispError("division by zero")
    quotient = abs(lhs) // abs(rhs)
    return quotient if (lhs < 0) == (rhs < 0) else -quotient


_ARITHMETIC: dict[str, Callable[[int, int], int]] = {
    "+": lambda a, b: a + b,
    "-": lambda a, b: a - b,
    "*": lambda a, b: a * b,
    "/": _truncdiv,
}
_COMPARISON: dict[str, Callable[[int, int], bool]] = {
    "<": lambda a, b: a < b,
    ">": lambda a, b: a > b,
    "==": lambda a, b: a == b,
}


@dataclass(frozen=True)
class _Pair:
    """A cons cell whose tail is not a list."""

    car: object
    cdr: object


@dataclass(frozen=True)
class _Function:
    params: tuple[str, ...]
    body: object


def _number(value) -> int:
    """Read a value as an integer the way ``atoi`` reads its text."""
    if isinstance(value, int) and not isinstance(value, bool):
        return _int32(value)
    if isinstance(value, Symbol):
        match = _ATOI.match(value)
        return _int32(int(match.group(1))) if match else 0
    if isinstance(value, String):
        return 0
    raise LispError(f"number expected, got '{_render(value)}'")


def _is_false(value) -> bool:
    """Falsity as used by ``not``, ``and`` and ``or``."""
    if value is None:
        return True
    if isinstance(value, int):
        return value == 0
    if isinstance(value, Symbol):
        return value.startswith("0") or value == "nil"
    return False


def _is_true(value) -> bool:
    """Truth as used by ``cond``; every non-numeric value is true."""
    if value is None:
        return False
    if isinstance(value, int):
        return value != 0
    return True


def _render(value) -> str:
    if value is None:
        return "nil"
    if isinstance(value, _Pair):
        return f"({_render(value.car)} . {_render(value.cdr)})"
    if isinstance(value, list):
        return "(" + " ".join(_render(item) for item in value) + ")"
    return to_source(value)


def _car(value):
    if isinstance(value, list) and value:
        return value[0]
    if isinstance(value, _Pair):
        return value.car
    return None


def _cdr(value):
    if isinstance(value, list) and len(value) > 1:
        return value[1:]
    if isinstance(value, _Pair):
        return value.cdr
    return None


def _cons(head, tail):
    if tail is None:
        return [head]
    if isinstance(tail, list):
        return [head, *tail]
    return _Pair(head, tail)


def _rebinds(let_form: list, name: str) -> bool:
    bindings = let_form[1] if len(let_form) > 1 else None
    return isinstance(bindings, list) and any(
        isinstance(decl, list) and decl and decl[0] == name for decl in bindings
    )


def _substitute(expr, name: str, value):
    """Replace free occurrences of ``name`` in ``expr`` by ``value``."""
    if isinstance(expr, Symbol):
        return value if expr == name else expr
    if isinstance(expr, list):
        if expr and isinstance(expr[0], Symbol) and expr[0] == "let" and _rebinds(expr, name):
            return expr
        return [_substitute(item, name, value) for item in expr]
    if isinstance(expr, _Pair):
        return _Pair(_substitute(expr.car, name, value), _substitute(expr.cdr, name, value))
    return expr


class Interpreter:
    """Runs programs made of ``defun`` forms and top-level expressions."""

    def __init__(self, out: TextIO | None = None) -> None:
        self.out = out if out is not None else sys.stdout
        self.functions: dict[str, _Function] = {}
        self._trace: list[str] = []

    def run(self, program):
        """Run a program given as text or parsed forms; return the last statement's value."""
        forms = parse(program) if isinstance(program, str) else program
        self.functions = {}
        self._trace = []
        result = None
        for stmt in forms:
            if isinstance(stmt, list) and stmt and isinstance(stmt[0], Symbol) and stmt[0] == "defun":
                self._trace = []
                self._define(stmt)
                result = None
            else:
                result = self.evaluate(stmt)
        return result

    def evaluate(self, expr):
        """Evaluate one expression with the functions defined so far."""
        self._trace = []
        try:
            return self._eval(expr)
        except RecursionError:
            raise LispError("maximum recursion depth exceeded") from None

    def format_trace(self) -> str:
        """Describe the calls that were active when the last error was raised."""
        lines = ["Backtrace (most recent call last):"]
        lines.extend(" " * depth + f"in '{name}':" for depth, name in enumerate(self._trace))
        return "\n".join(lines) + "\n"

    def _define(self, stmt: list) -> None:
        self._trace.append("defun")
        if len(stmt) < 4 or not isinstance(stmt[1], Symbol) or not isinstance(stmt[2], list):
            raise LispError("malformed function definition")
        if not all(isinstance(param, Symbol) for param in stmt[2]):
            raise LispError("malformed function definition")
        name = str(stmt[1])
        if name in self.functions:
            raise LispError("function already defined")
        self.functions[name] = _Function(tuple(str(p) for p in stmt[2]), stmt[3])
        self._trace.pop()

    def _eval(self, expr):
        if not isinstance(expr, list):
            return expr
        if not expr:
            return None
        head = expr[0]
        if isinstance(head, list):
            head = self._eval(head)
        if not isinstance(head, Symbol):
            raise LispError(f"operator expected, got '{_render(head)}'")
        if len(self._trace) >= CALL_STACK_SIZE:
            raise LispError("call stack overflow")
        self._trace.append(str(head) if head in _TRACE_NAMES else "<defined>")
        result = self._apply(str(head), expr[1:])
        self._trace.pop()
        return result

    def _operands(self, op: str, args: list, count: int) -> list:
        if len(args) < count:
            raise LispError(f"'{op}' expects {count} arguments")
        return [self._eval(arg) for arg in args[:count]]

    def _apply(self, op: str, args: list):
        if op == "quote":
            return args[0] if args else None
        if op in _ARITHMETIC:
            lhs, rhs = self._operands(op, args, 2)
            return _int32(_ARITHMETIC[op](_number(lhs), _number(rhs)))
        if op in _COMPARISON:
            lhs, rhs = self._operands(op, args, 2)
            return int(_COMPARISON[op](_number(lhs), _number(rhs)))
        if op == "and":
            lhs, rhs = self._operands(op, args, 2)
            return int(not _is_false(lhs) and not _is_false(rhs))
        if op == "or":
            lhs, rhs = self._operands(op, args, 2)
            return int(not _is_false(lhs) or not _is_false(rhs))
        if op == "not":
            (value,) = self._operands(op, args, 1)
            return int(_is_false(value))
        if op == "car":
            return _car(args[0]) if args else None
        if op == "cdr":
            return _cdr(args[0]) if args else None
        if op == "cons":
            head, tail = self._operands(op, args, 2)
            return _cons(head, tail)
        if op == "cond":
            return self._cond(args)
        if op == "print":
            (value,) = self._operands(op, args, 1)
            self._print(value)
            return None
        if op == "let":
            return self._let(args)
        return self._call(op, args)

    def _cond(self, clauses: list):
        for clause in clauses:
            if not isinstance(clause, list) or len(clause) < 2:
                raise LispError("malformed cond clause")
            if _is_true(self._eval(clause[0])):
                return self._eval(clause[1])
        return None

    def _let(self, args: list):
        if len(args) < 2 or not isinstance(args[0], list):
            raise LispError("malformed let")
        body = args[1]
        for decl in args[0]:
            if not isinstance(decl, list) or len(decl) < 2 or not isinstance(decl[0], Symbol):
                raise LispError("malformed let binding")
            body = _substitute(body, str(decl[0]), decl[1])
        return self._eval(body)

    def _call(self, name: str, args: list):
        func = self.functions.get(name)
        if func is None:
            raise LispError("Call to undefined function")
        if len(args) != len(func.params):
            raise LispError("Call args num mismatch")
        bindings = [[Symbol(param), arg] for param, arg in zip(func.params, args)]
        return self._eval([Symbol("let"), bindings, func.body])

    def _print(self, value) -> None:
        if value is None:
            self.out.write("nil\n")
        elif isinstance(value, int):
            self.out.write(f"{value}\n")
        elif isinstance(value, String):
            self.out.write(str(value))
        else:
            self.out.write(_render(value) + "\n")


def run_script(path: str, args=()) -> int:
    """Run the script at ``path``; report errors on stderr and return an exit status."""
    args = list(args)
    try:
        with open(path, encoding="utf-8") as handle:
            text = handle.read()
    except OSError:
        print(f"Fatal: couldn't open file '{path}'", file=sys.stderr)
        return 1
    if len(args) == 1:
        try:
            with open(args[0], encoding="utf-8") as handle:
                parse(handle.read())
        except OSError:
            print(f"Failed to open file '{args[0]}', skipping.", file=sys.stderr)
        except LispError as exc:
            print(f"Fatal: {exc}.", file=sys.stderr)
            return 1
    interpreter = Interpreter()
    try:
        interpreter.run(text)
    except LispError as exc:
        sys.stderr.write(interpreter.format_trace())
        print(f"Fatal: {exc}.", file=sys.stderr)
        return 1
    return 0


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if not args:
        print("Usage: trilisp script.lisp [...]", file=sys.stderr)
        return 1
    return run_script(args[0], args[1:])