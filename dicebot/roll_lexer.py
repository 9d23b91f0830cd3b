import enum
import re
import typing

from dicebot.roll import ParseError


class TokenType(enum.Enum):
    LEFT_PAREN = enum.auto()
    RIGHT_PAREN = enum.auto()
    PLUS = enum.auto()
    MINUS = enum.auto()
    MULTIPLY = enum.auto()
    DIVIDE = enum.auto()
    NUMBER = enum.auto()
    DICE = enum.auto()
    IDENTIFIER = enum.auto()
    BEST_OF = enum.auto()
    END = enum.auto()


class Token(typing.NamedTuple):
    type: TokenType
    text: str
    position: int
    groups: typing.Tuple[typing.Optional[str], ...] = ()
    offsets: typing.Tuple[typing.Optional[int], ...] = ()

    def group(self, n: int) -> typing.Optional[str]:
        return self.groups[n - 1]

    def group_position(self, n: int) -> int:
        offset = self.offsets[n - 1]
        return self.position if offset is None else offset


OPERATORS: typing.Dict[str, TokenType] = {
    "(": TokenType.LEFT_PAREN,
    ")": TokenType.RIGHT_PAREN,
    "+": TokenType.PLUS,
    "-": TokenType.MINUS,
    "*": TokenType.MULTIPLY,
    "/": TokenType.DIVIDE,
}

# A bare "d" is left to the identifier pattern; "2d" and "d6" are dice.
_DICE = r"(?=[0-9]|d[0-9])([0-9]*)d([0-9]*)"

# Dice comes before identifier, so that "d6" is a die and not a name.
PATTERNS: typing.List[typing.Tuple[TokenType, re.Pattern]] = [
    (TokenType.NUMBER, re.compile(r"[0-9]+")),
    (TokenType.DICE, re.compile(_DICE, re.IGNORECASE)),
    (
        TokenType.BEST_OF,
        re.compile(r"best\s+(?:([0-9]+)\s+)?of\s+(%s)" % _DICE, re.IGNORECASE),
    ),
    (TokenType.IDENTIFIER, re.compile(r"[a-z_][a-z0-9_]*", re.IGNORECASE)),
]


def _longest_match(
    text: str, position: int
) -> typing.Tuple[typing.Optional[TokenType], typing.Optional[re.Match]]:
    token_type = None
    longest = None
    for pattern_type, pattern in PATTERNS:
        match = pattern.match(text, position)
        if match is not None and (longest is None or match.end() > longest.end()):
            token_type = pattern_type
            longest = match
    return token_type, longest


def tokenize(text: str) -> typing.List[Token]:
    tokens: typing.List[Token] = []

    i = 0
    while i < len(text):
        c = text[i]
        if c.isspace():
            i += 1
            continue

        if c in OPERATORS:
            tokens.append(Token(OPERATORS[c], c, i))
            i += 1
            continue

        token_type, match = _longest_match(text, i)
        if token_type is None or match is None:
            raise ParseError("Input not matched", i)

        offsets = tuple(
            None if match.start(n) < 0 else match.start(n)
            for n in range(1, len(match.groups()) + 1)
        )
        tokens.append(Token(token_type, match.group(0), i, match.groups(), offsets))
        i = match.end()

    tokens.append(Token(TokenType.END, "", len(text)))
    return tokens
