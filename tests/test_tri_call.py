import io
import math

import pytest

from trilisp import tri_call
from trilisp.sexpr import LispError, ParseError, parse
from trilisp.tri_call import eval_binary_op, interpret, interpret_module

IDENTITY = """
((func id x (entry (return x)))
 (func main (entry (let r (call id 42)) (return r))))
"""

FACT = """
((func fact n
   (entry (let c (<= n 1)) (if-goto c base else rec))
   (base (return 1))
   (rec (let m (- n 1)) (let r (call fact m)) (return (* n r))))
 (func main (entry (return (call fact 6)))))
"""

SUM_LOOP = """
((func sum limit
   (entry (goto loop))
   (loop (let i (phi (entry 0) (loop i2)))
         (let acc (phi (entry 0) (loop acc2)))
         (let i2 (+ i 1))
         (let acc2 (+ acc i2))
         (let c (< i2 limit))
         (goto-if c loop else done))
   (done (return acc2)))
 (func main (entry (return (call sum 10)))))
"""


def test_identity_call_returns_argument():
    assert interpret(IDENTITY) == 42


def test_recursive_factorial():
    assert interpret(FACT) == math.factorial(6)


def test_phi_loop_sums_range():
    assert interpret(SUM_LOOP) == sum(range(11))


def test_interpret_module_takes_parsed_forms():
    assert interpret_module(parse(IDENTITY)[0]) == interpret(IDENTITY)


def test_equals_alias_matches_double_equals():
    for lhs, rhs in [(3, 3), (3, 4), (-1, -1)]:
        assert eval_binary_op("=", lhs, rhs) == eval_binary_op("==", lhs, rhs)


def test_call_with_equals_operator():
    program = "((func main (entry (return (call = 5 5)))))"
    assert interpret(program) == eval_binary_op("==", 5, 5)


def test_wraps_to_int32():
    assert eval_binary_op("+", 2**31 - 1, 1) == -(2**31)


def test_division_truncates_toward_zero():
    assert eval_binary_op("/", -7, 2) == -3


def test_division_by_zero():
    with pytest.raises(LispError, match="division by zero"):
        eval_binary_op("/", 1, 0)


def test_unsupported_operator():
    with pytest.raises(LispError, match="unsupported operator '%'"):
        eval_binary_op("%", 1, 2)


def test_nil_and_void_are_zero():
    program = "((func main (entry (return (+ nil void)))))"
    assert interpret(program) == 0


def test_callee_cannot_see_caller_variables():
    program = """
    ((func peek (entry (return secret_value)))
     (func main (entry (let secret_value 5) (return (call peek)))))
    """
    with pytest.raises(LispError, match="undefined variable 'secret_value'"):
        interpret(program)


def test_too_few_arguments():
    program = "((func f a b (entry (return a))) (func main (entry (return (call f 1)))))"
    with pytest.raises(LispError, match="too few arguments"):
        interpret(program)


def test_too_many_arguments():
    program = "((func f a (entry (return a))) (func main (entry (return (call f 1 2)))))"
    with pytest.raises(LispError, match="too many arguments"):
        interpret(program)


def test_unknown_function():
    program = "((func main (entry (return (call nowhere 1)))))"
    with pytest.raises(LispError, match="unknown function 'nowhere'"):
        interpret(program)


def test_arithmetic_call_arity():
    program = "((func main (entry (return (call + 1)))))"
    with pytest.raises(LispError, match="must have 2 args"):
        interpret(program)


def test_main_with_arguments_rejected():
    with pytest.raises(LispError, match="must not have arguments"):
        interpret("((func main x (entry (return x))))")


def test_missing_main():
    with pytest.raises(LispError, match="'main' not found"):
        interpret("((func other (entry (return 1))))")


def test_duplicate_function():
    program = "((func main (entry (return 1))) (func main (entry (return 2))))"
    with pytest.raises(LispError, match="duplicate function 'main'"):
        interpret(program)


def test_function_without_body():
    with pytest.raises(LispError, match="has no body"):
        interpret("((func f a) (func main (entry (return (call f 1)))))")


def test_malformed_definition():
    with pytest.raises(LispError, match="malformed function definition"):
        interpret("((func main 3 (entry (return 1))))")


def test_block_without_terminator():
    with pytest.raises(LispError, match="has no terminator"):
        interpret("((func main (entry (let x 1))))")


def test_unknown_block():
    with pytest.raises(LispError, match="unknown basic block 'missing'"):
        interpret("((func main (entry (goto missing))))")


def test_phi_in_entry_needs_predecessor():
    with pytest.raises(LispError, match="requires a predecessor"):
        interpret("((func main (entry (let x (phi (a 1))) (return x))))")


def test_phi_after_other_instruction():
    program = "((func main (entry (let y 1) (let x (phi (a 1))) (return x))))"
    with pytest.raises(LispError, match="must be at the start"):
        interpret(program)


def test_empty_text_is_parse_error():
    with pytest.raises(ParseError):
        interpret("")


def test_main_reads_file(tmp_path, capsys):
    source = tmp_path / "prog.lisp"
    source.write_text(IDENTITY, encoding="utf-8")
    assert tri_call.main([str(source)]) == 0
    assert capsys.readouterr().out == "Result: 42\n"


def test_main_reads_stdin(monkeypatch, capsys):
    monkeypatch.setattr("sys.stdin", io.StringIO(IDENTITY))
    assert tri_call.main([]) == 0
    assert capsys.readouterr().out == "Result: 42\n"


def test_main_reports_errors(tmp_path, capsys):
    source = tmp_path / "bad.lisp"
    source.write_text("((func other (entry (return 1))))", encoding="utf-8")
    assert tri_call.main([str(source)]) == 1
    assert "Fatal: function 'main' not found" in capsys.readouterr().err


def test_main_missing_file(tmp_path, capsys):
    missing = tmp_path / "absent.lisp"
    assert tri_call.main([str(missing)]) == 1
    assert "can't open file" in capsys.readouterr().err


def test_main_usage(capsys):
    assert tri_call.main(["a", "b"]) == 1
    assert "Usage" in capsys.readouterr().err