"""Small Lisp dialects: a shared reader, interpreters and an expression flattener."""

__version__ = "0.1.0"

__all__ = ["sexpr", "arith", "flatten", "tri_if", "tri_call", "interpreter"]