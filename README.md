# trilisp

trilisp is a set of small Lisp dialects. Each dialect has its own interpreter
or compiler stage, and all of them use the same S-expression reader,
`trilisp.sexpr`.

## Installation

```
pip install .
```

To run the test suite:

```
pip install ".[test]"
pytest
```

## Commands

When a command succeeds it exits with status 0. When it fails it writes a
`Fatal: ...` message to standard error and exits with status 1.

### `trilisp-arith [source.lisp]`

Evaluates the first expression in the file, or in standard input if no file is
given, and prints `Result: <n>`. An expression is made of integer constants
and the binary operators `+ - * /`. Arithmetic uses 32-bit signed integers,
and division truncates toward zero.

```
$ echo "(+ 1 (* 2 3))" | trilisp-arith
Result: 7
```

### `trilisp-flatten input_file output_file`

Compiles the first expression of `input_file` into a flat list of
three-address `let` instructions and writes the list to `output_file`. The
expression is a nested arithmetic expression that may also contain
`(let (name value) body)`. Intermediate results are stored in temporaries
named `__tmp_0`, `__tmp_1`, … and the final value is stored in `res`. The
output is wrapped in one pair of parentheses, with one instruction per line:

```
((let __tmp_0 (* 2 3))
(let res (+ 1 __tmp_0))
)
```

### `trilisp-tri-if [source.lisp]`

Interprets a module written as a list of `(func name block...)` forms, runs
`main`, and prints `Result: <n>`. Each block is labelled:

- it may begin with phi nodes, `(let x (phi (pred value) ...))`. These are
  evaluated together, using the values from before the block was entered and
  the input of the block control came from;
- it continues with `(let x expr)` instructions. An expression is an integer,
  a variable, a binary operation `(op a b)`, or `(call op a b)`. The operators
  are `+ - * / > < == >= <=`;
- it ends with one of `(goto label)`, `(if-goto cond then else other)` (also
  spelled `goto-if`), or `(return expr)`.

Execution starts at the first block. Values are 32-bit signed integers.
Dividing by zero is an error.

### `trilisp-tri-call [source.lisp]`

Uses the same block language as `trilisp-tri-if`, with these additions:

- functions can take parameters: `(func name p1 p2 block...)`;
- functions can call each other: `(call name arg...)`;
- `=` is a synonym for `==`;
- the names `nil` and `void` evaluate to 0.

`main` must take no parameters.

### `trilisp-run script.lisp [args_file]`

Runs a Lisp script. A script may contain `defun`, `let`, `cond`, `quote`,
`cons`, `car`, `cdr`, `print`, `+ - * /`, `< > ==`, `and`, `or` and `not`.
Top-level statements run in order.

`let` and function calls work by substitution: the argument expressions
themselves, not yet evaluated, are put into the body.

`print` writes numbers, lists and `nil` followed by a newline. It writes
strings as they are, with no newline added.

If a second argument is given, that file is read and checked for syntax.
Its contents are not used.

If evaluation fails, the command writes a backtrace of the active calls and
the error to standard error.

## Library use

```python
from trilisp import sexpr, arith, flatten, tri_if, tri_call
from trilisp.interpreter import Interpreter

forms = sexpr.parse("(+ 1 2)")
print(sexpr.to_source(forms[0]))               # (+ 1 2)
print(arith.interpret("(- 10 (/ 8 2))"))       # 6
print(flatten.compile_program(sexpr.parse("(+ 1 (* 2 3))")))
print(tri_if.interpret("((func main (entry (return (+ 2 3)))))"))  # 5

interp = Interpreter()
interp.run("(defun sq (x) (* x x)) (print (sq 7))")   # prints 49
```

- `sexpr.parse(text)` returns a list of top-level forms. In a form, integers
  become `int`, names become `Symbol`, string literals become `String`, and
  lists become `list`.
- `sexpr.to_source(expr)` writes a form back out as text.
- `tri_if.interpret_module(forms)` and `tri_call.interpret_module(forms)`
  run a module that has already been parsed.
- `eval_binary_op(op, lhs, rhs)` applies one operator with 32-bit semantics.
- `Interpreter(out)` writes `print` output to `out`, or to standard output if
  none is given. `Interpreter.run(program)` accepts text or parsed forms and
  returns the value of the last statement. `Interpreter.evaluate(expr)`
  evaluates a single expression. `Interpreter.format_trace()` describes the
  calls that were active when the last error occurred.

Errors are raised as `sexpr.LispError` or one of its subclasses,
`sexpr.ParseError` and `flatten.CompileError`.

## What it does not do

The package only interprets these dialects and flattens arithmetic
expressions. It cannot compile `defun` programs into the basic-block language
or into native code. None of its commands produces an executable.