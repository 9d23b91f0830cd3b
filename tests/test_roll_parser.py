"""Unit tests for the precedence climbing parser."""

import pytest

from dicebot.roll import BestOf, Dice, ParseError, Variable
from dicebot.roll_lexer import tokenize
from dicebot.roll_parser import parse, parse_string


def no_variables(name: str):
    raise AssertionError("unexpected lookup of %s" % name)


@pytest.mark.parametrize(
    "text, rendered, low, high",
    [
        ("3d6 + 2", "(+ 3d6 2)", 3 * 1 + 2, 3 * 6 + 2),
        ("1 + 2 + 3", "(+ (+ 1 2) 3)", 6, 6),
        ("(1+2)+3", "(+ (+ 1 2) 3)", 6, 6),
        ("1 + 2 * 3", "(+ 1 (* 2 3))", 7, 7),
        ("(1 + 2)", "(+ 1 2)", 3, 3),
        ("1 * (2 + 3)", "(* 1 (+ 2 3))", 5, 5),
        ("-1 + 2", "(+ (- 1) 2)", 1, 1),
        ("+-1", "(+ (- 1))", -1, -1),
        ("-2 * 3", "(* (- 2) 3)", -6, -6),
        ("10 / 2 - 1", "(- (/ 10 2) 1)", 4, 4),
        ("2 - 3 - 4", "(- (- 2 3) 4)", -5, -5),
        ("d20", "1d20", 1, 20),
        ("2d", "2d6", 2 * 1, 2 * 6),
        ("best 3 of 4d6", "best 3 of 4d6", 3, 18),
        ("best of 2d20 + 1", "(+ best of 2d20 1)", 2, 21),
    ],
)
def test_parse(text: str, rendered: str, low: int, high: int) -> None:
    expr = parse(tokenize(text))
    assert expr.render() == rendered
    assert repr(expr) == rendered
    for _ in range(100):
        assert low <= parse_string(text).evaluate(no_variables) <= high


def test_parse_variable() -> None:
    expr = parse_string("Str + 1")
    assert expr.render() == "(+ Str 1)"
    assert isinstance(expr.lhs, Variable)
    assert expr.lhs.name == "Str"


def test_parse_dice_fields() -> None:
    expr = parse_string("best 2 of 3d8")
    assert isinstance(expr, BestOf)
    assert expr.keep == 2
    assert isinstance(expr.of, Dice)
    assert (expr.of.count, expr.of.sides) == (3, 8)


def test_parse_dice_limits() -> None:
    assert parse_string("100d1").evaluate(no_variables) == 100
    assert parse_string("1d1").evaluate(no_variables) == 1


@pytest.mark.parametrize(
    "text, message, position",
    [
        ("", "Empty input", 0),
        ("   ", "Empty input", 0),
        ("(1", "Expected )", 2),
        ("(1 2", "Expected )", 3),
        ("1)", "Unexpected input", 1),
        ("1 2", "Unexpected input", 2),
        ("3**3", "Unexpected input", 2),
        ("1 +", "Unexpected input", 3),
        ("*2", "Unexpected input", 0),
        ("2(3)", "Unexpected input", 1),
        ("0d6", "Can't roll zero dice", 0),
        ("1 + 101d6", "Can't roll more than 100 dice", 4),
        ("3d0", "Can't roll zero-sided dice", 2),
        ("best 0 of 3d6", "Can't keep zero dice", 5),
        ("best 4 of 3d6", "Can't keep more than 3 dice", 5),
        ("best 3 of 3d6", "It doesn't make sense to keep 3 of 3 dice", 5),
        ("best 1 of d6", "It doesn't make sense to keep 1 of 1 dice", 5),
        ("best of d6", "It doesn't make sense to keep 1 of 1 dice", 0),
        ("best of 101d6", "Can't roll more than 100 dice", 8),
        ("best 2 of 0d6", "Can't roll zero dice", 10),
        ("best of 3d0", "Can't roll zero-sided dice", 10),
    ],
)
def test_parse_errors(text: str, message: str, position: int) -> None:
    with pytest.raises(ParseError) as e:
        parse_string(text)
    assert e.value.message == message
    assert e.value.position == position


def test_parse_error_text() -> None:
    with pytest.raises(ParseError, match="Expected \\) near position 2"):
        parse(tokenize("(1"))


@pytest.mark.parametrize(
    "text",
    ["-" * 1500 + "1", "(" * 800 + "1" + ")" * 800, "1 * " * 60 + "-" * 60 + "2"],
)
def test_parse_too_deep(text: str) -> None:
    with pytest.raises(ParseError) as e:
        parse_string(text)
    assert e.value.message == "Expression too complex"


def test_parse_too_deep_position() -> None:
    with pytest.raises(ParseError) as e:
        parse_string("-" * 1500 + "1")
    assert e.value.position == 50

    with pytest.raises(ParseError) as e:
        parse_string("(" * 800 + "1" + ")" * 800)
    assert e.value.position == 50


def test_parse_nesting_within_limit() -> None:
    text = "(" * 20 + "1" + ")" * 20
    assert parse_string(text).render() == "1"
    assert parse_string("-" * 40 + "3").evaluate(no_variables) == 3


def test_long_flat_chain_is_not_nested() -> None:
    assert parse_string(" + ".join(["1"] * 500)).render().count("+") == 499
