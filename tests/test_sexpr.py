import pytest

from trilisp.sexpr import ParseError, String, Symbol, parse, to_source


def test_parse_mixed_atoms():
    forms = parse('(a 1 "s")')
    assert forms == [["a", 1, "s"]]
    head, number, text = forms[0]
    assert isinstance(head, Symbol) and head == "a"
    assert isinstance(text, String) and text == "s"
    assert number == 1


def test_parse_negative_number_and_operator():
    assert parse("-5 -") == [-5, "-"]
    assert isinstance(parse("-")[0], Symbol)


def test_parse_empty_text():
    assert parse("   \n ") == []


def test_parse_skips_comments():
    assert parse("; comment\n(+ 1 2) ; tail") == parse("(+ 1 2)")


def test_parse_string_escapes():
    assert parse(r'"a\nb"') == ["a\nb"]
    assert parse(r'"q\"x"') == ['q"x']


@pytest.mark.parametrize(
    "text",
    ["(+ 1 2)", "(let (x 5) (* x x))", "((func main (entry (return 0))))", '(print "hi there")', "()"],
)
def test_source_round_trip(text):
    assert to_source(parse(text)[0]) == text


@pytest.mark.parametrize(
    "expr",
    [
        [Symbol("f"), [Symbol("g"), -3], String('tab\there "q" \\')],
        [[[]], 7, String("")],
    ],
)
def test_parse_inverts_to_source(expr):
    assert parse(to_source(expr)) == [expr]


@pytest.mark.parametrize("text", ["(a", ")", '"abc', "(a))"])
def test_parse_errors(text):
    with pytest.raises(ParseError):
        parse(text)