import itertools

import pytest

from trilisp import arith, tri_if
from trilisp.flatten import CompileError, compile_expr, compile_file, compile_program, main
from trilisp.sexpr import parse


def _run_flat(flat):
    body = flat[1:-1]
    return tri_if.interpret(f"((func main (entry {body} (return res))))")


def test_simple_expression_output():
    assert compile_program(parse("(+ a b)")) == "((let res (+ a b))\n)"


@pytest.mark.parametrize(
    "text",
    ["(+ (* 2 3) (- 10 4))", "(- (/ 100 (+ 3 4)) (* (- 1 8) 5))", "(* 6 7)"],
)
def test_flattened_program_computes_same_value(text):
    flat = compile_program(parse(text))
    assert _run_flat(flat) == arith.interpret(text)


def test_temporaries_are_unique():
    lines = compile_expr(parse("(+ (* 1 2) (- (+ 3 4) (/ 5 6)))")[0], "res")
    targets = [line.split()[1] for line in lines]
    assert len(targets) == len(set(targets))
    assert targets[-1] == "res"
    assert sum(t.startswith("__tmp_") for t in targets) == len(lines) - 1


def test_counter_is_used_for_names():
    lines = compile_expr(parse("(+ (* a b) c)")[0], "out", itertools.count(10))
    assert lines[0].startswith("(let __tmp_10 ")
    assert lines[-1] == "(let out (+ __tmp_10 c))"


def test_let_binding():
    flat = compile_program(parse("(let (x (- 5 0)) (* x 1))"))
    assert flat.startswith("((let x ")
    assert _run_flat(flat) == 5


@pytest.mark.parametrize("text", ["(% 1 2)", "5", "(+ 1)", '(+ "s" 1)'])
def test_errors(text):
    with pytest.raises(CompileError):
        compile_program(parse(text))


def test_empty_program():
    with pytest.raises(CompileError):
        compile_program([])


def test_compile_file_writes_output(tmp_path):
    src = tmp_path / "in.lisp"
    dst = tmp_path / "out.lisp"
    src.write_text("(* (+ a 1) b)")
    compile_file(str(src), str(dst))
    assert dst.read_text() == compile_program(parse("(* (+ a 1) b)"))


def test_main_usage(capsys):
    assert main(["only-one"]) == 1
    assert "Usage" in capsys.readouterr().err