"""S-expression reader and writer shared by the interpreters and the compiler."""

from __future__ import annotations

import re
from typing import Union

__all__ = ["Symbol", "String", "LispError", "ParseError", "parse", "to_source"]


class Symbol(str):
    """A bare name such as ``let``, ``+`` or ``x``."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"Symbol({str.__repr__(self)})"


class String(str):
    """A string literal, holding its decoded text."""

    __slots__ = ()

    def __repr__(self) -> str:
        return f"String({str.__repr__(self)})"


class LispError(Exception):
    """Raised when a program cannot be read, compiled or run."""


class ParseError(LispError):
    """Raised when source text is not a well-formed S-expression."""


Expr = Union[int, Symbol, String, list]

_LEXEME = re.compile(
    r"""\s+|;[^\n]*
        |(?P<open>\()
        |(?P<close>\))
        |(?P<string>"(?:\\.|[^"\\])*")
        |(?P<bad>")
        |(?P<atom>[^\s()";]+)""",
    re.S | re.X,
)
_INTEGER = re.compile(r"-?\d+")
_ESCAPES = {"n": "\n", "t": "\t", "r": "\r", "\\": "\\", '"': '"'}
_ENCODE = {"\\": "\\\\", '"': '\\"', "\n": "\\n", "\t": "\\t", "\r": "\\r"}


def _unescape(body: str) -> str:
    return re.sub(r"\\(.)", lambda m: _ESCAPES.get(m.group(1), " "), body, flags=re.S)


def _atom(text: str) -> Expr:
    if _INTEGER.fullmatch(text):
        return int(text)
    return Symbol(text)


def parse(text: str) -> list:
    """Read every top-level form in ``text`` and return them as a list."""
    stack: list[list] = [[]]
    for match in _LEXEME.finditer(text):
        kind = match.lastgroup
        if kind is None:
            continue
        if kind == "open":
            stack.append([])
        elif kind == "close":
            if len(stack) == 1:
                raise ParseError("unexpected ')'")
            finished = stack.pop()
            stack[-1].append(finished)
        elif kind == "string":
            stack[-1].append(String(_unescape(match.group()[1:-1])))
        elif kind == "bad":
            raise ParseError("unterminated string literal")
        else:
            stack[-1].append(_atom(match.group()))
    if len(stack) > 1:
        raise ParseError("unclosed '('")
    return stack[0]


def to_source(expr: Expr) -> str:
    """Render an expression back into source text."""
    if isinstance(expr, list):
        return "(" + " ".join(to_source(item) for item in expr) + ")"
    if isinstance(expr, String):
        return '"' + "".join(_ENCODE.get(ch, ch) for ch in expr) + '"'
    if isinstance(expr, int):
        return str(expr)
    return str(expr)