"""Interpreter for a multi-function control-flow-graph language with calls and phi nodes."""

from __future__ import annotations

import sys
from dataclasses import dataclass
from itertools import takewhile

from . import tri_if
from .sexpr import LispError, ParseError, Symbol, parse

__all__ = ["eval_binary_op", "interpret_module", "interpret", "main"]

_ARITHMETIC = frozenset({"+", "-", "*", "/", ">", "<", "=", "==", ">=", "<="})
_ZERO_NAMES = frozenset({"nil", "void"})
_MISSING = object()


def _int32(value: int) -> int:
    return (value + 2**31) % 2**32 - 2**31


def eval_binary_op(op: str, lhs: int, rhs: int) -> int:
    """Apply a binary operator with 32-bit signed integer semantics; ``=`` means ``==``."""
    return tri_if.eval_binary_op("==" if op == "=" else op, lhs, rhs)


def _is_form(expr, name: str) -> bool:
    return isinstance(expr, list) and bool(expr) and isinstance(expr[0], Symbol) and expr[0] == name


def _is_phi_let(instr) -> bool:
    return (
        _is_form(instr, "let")
        and len(instr) == 3
        and isinstance(instr[1], Symbol)
        and _is_form(instr[2], "phi")
    )


def _get_var(variables: dict, name: str) -> int:
    try:
        return variables[name]
    except KeyError:
        raise LispError(f"undefined variable '{name}'") from None


@dataclass(frozen=True)
class _Function:
    name: str
    params: tuple[str, ...]
    body: list


def _parse_function(func) -> _Function:
    if not _is_form(func, "func") or len(func) < 2 or not isinstance(func[1], Symbol):
        raise LispError("malformed function definition")
    name = str(func[1])
    rest = func[2:]
    params: list[str] = []
    for index, item in enumerate(rest):
        if isinstance(item, Symbol):
            params.append(str(item))
        elif isinstance(item, list):
            return _Function(name, tuple(params), rest[index:])
        else:
            raise LispError("malformed function definition")
    return _Function(name, tuple(params), [])


class _Machine:
    """Holds the function table of one module while it runs."""

    def __init__(self, functions: dict[str, _Function]) -> None:
        self.functions = functions

    def eval_expr(self, expr, variables: dict) -> int:
        if isinstance(expr, int) and not isinstance(expr, bool):
            return _int32(expr)
        if isinstance(expr, Symbol):
            if expr in _ZERO_NAMES:
                return 0
            return _get_var(variables, expr)
        if isinstance(expr, list):
            if _is_form(expr, "phi"):
                raise LispError("phi is only allowed in let instructions")
            if _is_form(expr, "call"):
                return self._eval_call(expr, variables)
            if len(expr) != 3 or not isinstance(expr[0], Symbol):
                raise LispError("malformed expression")
            lhs = self.eval_expr(expr[1], variables)
            rhs = self.eval_expr(expr[2], variables)
            return eval_binary_op(expr[0], lhs, rhs)
        raise LispError("unexpected expression type")

    def _eval_call(self, expr: list, variables: dict) -> int:
        if len(expr) < 2 or not isinstance(expr[1], Symbol):
            raise LispError("malformed call expression")
        callee, args = str(expr[1]), expr[2:]
        if callee in _ARITHMETIC:
            if len(args) != 2:
                raise LispError(f"arithmetic call '{callee}' must have 2 args")
            lhs = self.eval_expr(args[0], variables)
            rhs = self.eval_expr(args[1], variables)
            return eval_binary_op(callee, lhs, rhs)
        func = self.functions.get(callee)
        if func is None:
            raise LispError(f"unknown function '{callee}'")
        return self.call(func, args, variables)

    def call(self, func: _Function, arg_exprs: list, caller_vars: dict) -> int:
        variables: dict[str, int] = {}
        args = iter(arg_exprs)
        for param in func.params:
            arg = next(args, _MISSING)
            if arg is _MISSING:
                raise LispError(f"call to '{func.name}' has too few arguments")
            variables[param] = self.eval_expr(arg, caller_vars)
        if next(args, _MISSING) is not _MISSING:
            raise LispError(f"call to '{func.name}' has too many arguments")
        if not func.body:
            raise LispError(f"function '{func.name}' has no body")
        return self._run_cfg(func.body, variables)

    def _eval_phi(self, expr: list, prev_block: str | None, variables: dict) -> int:
        if len(expr) < 2:
            raise LispError("malformed phi node")
        if prev_block is None:
            raise LispError("phi requires a predecessor block")
        for source in expr[1:]:
            if not isinstance(source, list) or len(source) != 2 or not isinstance(source[0], Symbol):
                raise LispError("malformed phi input")
            if source[0] == prev_block:
                return self.eval_expr(source[1], variables)
        raise LispError(f"phi has no input for predecessor '{prev_block}'")

    def _execute_block(
        self, block: list, prev_block: str | None, variables: dict
    ) -> tuple[str | None, int | None]:
        """Run one block; return ``(next_label, None)`` or ``(None, returned_value)``."""
        instructions = block[1:]
        phis = list(takewhile(_is_phi_let, instructions))
        # All phi nodes read the values from before the block was entered.
        variables.update(
            {instr[1]: self._eval_phi(instr[2], prev_block, variables) for instr in phis}
        )

        for instr in instructions[len(phis):]:
            if not isinstance(instr, list) or not instr or not isinstance(instr[0], Symbol):
                raise LispError("malformed instruction")
            if _is_form(instr, "let"):
                if len(instr) != 3 or not isinstance(instr[1], Symbol):
                    raise LispError("malformed let instruction")
                if _is_form(instr[2], "phi"):
                    raise LispError("phi nodes must be at the start of a block")
                variables[instr[1]] = self.eval_expr(instr[2], variables)
            elif _is_form(instr, "goto"):
                if len(instr) != 2 or not isinstance(instr[1], Symbol):
                    raise LispError("malformed goto")
                return str(instr[1]), None
            elif _is_form(instr, "if-goto") or _is_form(instr, "goto-if"):
                if (
                    len(instr) != 5
                    or not all(isinstance(part, Symbol) for part in instr[1:])
                    or instr[3] != "else"
                ):
                    raise LispError("malformed if-goto")
                _, cond, then_block, _, else_block = instr
                return str(then_block if _get_var(variables, cond) else else_block), None
            elif _is_form(instr, "return"):
                if len(instr) != 2:
                    raise LispError("malformed return")
                return None, self.eval_expr(instr[1], variables)
            else:
                raise LispError(f"unsupported instruction '{instr[0]}'")
        raise LispError(f"basic block '{block[0]}' has no terminator")

    def _run_cfg(self, blocks: list, variables: dict) -> int:
        table: dict[str, list] = {}
        for block in blocks:
            if not isinstance(block, list) or not block or not isinstance(block[0], Symbol):
                raise LispError("malformed basic block")
            if block[0] in table:
                raise LispError(f"duplicate basic block '{block[0]}'")
            table[block[0]] = block

        current, prev_label = blocks[0], None
        while True:
            next_label, value = self._execute_block(current, prev_label, variables)
            if next_label is None:
                return value
            if next_label not in table:
                raise LispError(f"unknown basic block '{next_label}'")
            prev_label, current = str(current[0]), table[next_label]


def interpret_module(forms) -> int:
    """Run the ``main`` function of a module given as a list of ``func`` forms."""
    if not isinstance(forms, list) or not forms:
        raise LispError("program must be a list of functions")
    functions: dict[str, _Function] = {}
    for form in forms:
        func = _parse_function(form)
        if func.name in functions:
            raise LispError(f"duplicate function '{func.name}'")
        functions[func.name] = func
        if func.name == "main" and func.params:
            raise LispError("function 'main' must not have arguments")
    main_func = functions.get("main")
    if main_func is None:
        raise LispError("function 'main' not found")
    return _Machine(functions).call(main_func, [], {})


def interpret(text: str) -> int:
    """Parse ``text`` and run the module held by its first form."""
    forms = parse(text)
    if not forms:
        raise ParseError("invalid syntax")
    return interpret_module(forms[0])


def main(argv=None) -> int:
    args = sys.argv[1:] if argv is None else list(argv)
    if len(args) > 1:
        print("Usage: tri_call [source.lisp]", file=sys.stderr)
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