import operator
import typing

import dicebot.roll as roll
from dicebot.roll import ParseError
from dicebot.roll_lexer import Token, TokenType, tokenize

MAX_DICE = 100

# Unary operators bind to a single primary, not to a whole additive chain.
PREFIX_BINDING_POWER = 100


class Parser:
    """Precedence climbing parser over the output of `tokenize`."""

    def __init__(self, tokens: typing.List[Token]) -> None:
        self.tokens = tokens
        self.position = 0
        self.depth = 0

    def peek(self) -> Token:
        return self.tokens[self.position]

    def next(self) -> Token:
        token = self.tokens[self.position]
        self.position += 1
        return token

    def parse_expression(self, rbp: int) -> roll.Expression:
        if self.depth >= roll.MAX_DEPTH:
            raise ParseError("Expression too complex", self.peek().position)

        self.depth += 1
        try:
            token = self.next()
            left = _PRATT[token.type].nud(self, token)

            while rbp < _PRATT[self.peek().type].lbp:
                token = self.next()
                left = _PRATT[token.type].led(self, token, left)

            return left
        finally:
            self.depth -= 1


Nud = typing.Callable[[Parser, Token], roll.Expression]
Led = typing.Callable[[Parser, Token, roll.Expression], roll.Expression]


class _Pratt(typing.NamedTuple):
    lbp: int
    nud: Nud
    led: Led


def _error_nud(parser: Parser, token: Token) -> roll.Expression:
    raise ParseError("Unexpected input", token.position)


def _error_led(parser: Parser, token: Token, left: roll.Expression) -> roll.Expression:
    raise ParseError("Unexpected input", token.position)


def _paren_nud(parser: Parser, token: Token) -> roll.Expression:
    inner = parser.parse_expression(0)
    if parser.peek().type != TokenType.RIGHT_PAREN:
        raise ParseError("Expected )", parser.peek().position)
    parser.next()
    return roll.Paren(inner)


def _number_nud(parser: Parser, token: Token) -> roll.Expression:
    return roll.Number(int(token.text))


def _make_dice(token: Token, count_group: int, sides_group: int) -> roll.Dice:
    count = 1
    count_text = token.group(count_group)
    if count_text:
        count = int(count_text)
        if count == 0:
            raise ParseError("Can't roll zero dice", token.group_position(count_group))
        if count > MAX_DICE:
            raise ParseError(
                "Can't roll more than %s dice" % MAX_DICE,
                token.group_position(count_group),
            )

    sides = 6
    sides_text = token.group(sides_group)
    if sides_text:
        sides = int(sides_text)
        if sides == 0:
            raise ParseError(
                "Can't roll zero-sided dice", token.group_position(sides_group)
            )

    return roll.Dice(count, sides)


def _dice_nud(parser: Parser, token: Token) -> roll.Expression:
    return _make_dice(token, 1, 2)


def _identifier_nud(parser: Parser, token: Token) -> roll.Expression:
    return roll.Variable(token.text)


def _best_of_nud(parser: Parser, token: Token) -> roll.Expression:
    keep = 1
    keep_text = token.group(1)
    if keep_text:
        keep = int(keep_text)
        if keep == 0:
            raise ParseError("Can't keep zero dice", token.group_position(1))

    dice = _make_dice(token, 3, 4)
    if keep > dice.count:
        raise ParseError(
            "Can't keep more than %s dice" % dice.count, token.group_position(1)
        )
    if keep == dice.count:
        raise ParseError(
            "It doesn't make sense to keep %s of %s dice" % (keep, keep),
            token.group_position(1),
        )

    return roll.BestOf(keep, dice)


def _prefix(op: typing.Callable[[int], int]) -> Nud:
    def nud(parser: Parser, token: Token) -> roll.Expression:
        value = parser.parse_expression(PREFIX_BINDING_POWER)
        return roll.UnaryOp(token.text, op, value)

    return nud


def _infix(op: typing.Callable[[int, int], int]) -> Led:
    def led(parser: Parser, token: Token, left: roll.Expression) -> roll.Expression:
        right = parser.parse_expression(_PRATT[token.type].lbp)
        return roll.BinaryOp(token.text, op, left, right)

    return led


_PRATT: typing.Dict[TokenType, _Pratt] = {
    TokenType.LEFT_PAREN: _Pratt(0, _paren_nud, _error_led),
    TokenType.RIGHT_PAREN: _Pratt(0, _error_nud, _error_led),
    TokenType.PLUS: _Pratt(10, _prefix(operator.pos), _infix(operator.add)),
    TokenType.MINUS: _Pratt(10, _prefix(operator.neg), _infix(operator.sub)),
    TokenType.MULTIPLY: _Pratt(20, _error_nud, _infix(operator.mul)),
    TokenType.DIVIDE: _Pratt(20, _error_nud, _infix(roll.divide)),
    TokenType.NUMBER: _Pratt(0, _number_nud, _error_led),
    TokenType.DICE: _Pratt(0, _dice_nud, _error_led),
    TokenType.IDENTIFIER: _Pratt(0, _identifier_nud, _error_led),
    TokenType.BEST_OF: _Pratt(0, _best_of_nud, _error_led),
    TokenType.END: _Pratt(0, _error_nud, _error_led),
}


def parse(tokens: typing.List[Token]) -> roll.Expression:
    if not tokens or tokens[0].type == TokenType.END:
        raise ParseError("Empty input", 0)

    parser = Parser(tokens)
    result = parser.parse_expression(0)

    token = parser.peek()
    if token.type != TokenType.END:
        raise ParseError("Unexpected input", token.position)

    return result


def parse_string(text: str) -> roll.Expression:
    return parse(tokenize(text))
