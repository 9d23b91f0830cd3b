import logging
import re
import typing

import dicebot.roll_parser as roll_parser
from dicebot.moves import Move
from dicebot.roll import DiceRollError, Expression, ParseError
from dicebot.variables import VariableStore, channel_scope, server_scope, user_scope

logger = logging.getLogger(__name__)

USAGE = (
    "Type `!roll d<x>` to roll a *x*-sided die\n"
    "Type `!roll <n>d<x>` to roll any number of *x*-sided dice"
    " (`!roll 3d6` rolls three regular six-sided dice)\n"
    "Type `!roll best <k> of <n>d<x>` to keep only the *k* highest dice"
    " (`!roll best 3 of 4d6`)\n"
    "You can use simple mathematical expressions too. For example, `d20 + 4`"
    " rolls a twenty-sided dice and adds four to the result.\n"
    "The bot understands addition, subtraction, multiplication, division"
    " and brackets.\n"
    "Type `!roll save <expr> as <name>` to remember an expression, and use"
    " `<name>` in later rolls. Add `for channel` or `for server` to share it."
)

_SAVE_RE = re.compile(
    r"\Asave\s+(.*)\s+as\s+([A-Za-z_][A-Za-z0-9_]*)"
    r"(?:\s+for\s+(me|channel|server))?\Z",
    re.DOTALL,
)


class MessageContext(typing.NamedTuple):
    user_id: str
    user_name: str
    channel_id: str
    server_id: typing.Optional[str] = None


def escape_markdown(text: str) -> str:
    for s in ("*", "~", "_", "`"):
        text = text.replace(s, "\\" + s)
    return text


class Bot:
    def __init__(
        self,
        store: VariableStore,
        moves: typing.Optional[typing.Dict[str, Move]] = None,
    ) -> None:
        self.store = store
        self.moves = moves or {}

    def scopes(self, context: MessageContext) -> typing.List[str]:
        result = [user_scope(context.user_id), channel_scope(context.channel_id)]
        if context.server_id is not None:
            result.append(server_scope(context.server_id))
        return result

    def lookup_variable(self, context: MessageContext, name: str) -> Expression:
        for scope in self.scopes(context):
            value = self.store.read_value(name.lower(), scope)
            if value is not None:
                return roll_parser.parse_string(value)
        raise DiceRollError("Undefined variable `%s`" % name)

    def evaluate(self, context: MessageContext, text: str) -> typing.Tuple[int, str]:
        expr = roll_parser.parse_string(text)

        def lookup(name: str) -> Expression:
            return self.lookup_variable(context, name)

        value = expr.evaluate(lookup)
        return value, expr.explain(lookup)

    def format_result(self, text: str, value: int, explanation: str) -> str:
        result = escape_markdown(text) + " => "
        if text != explanation and str(value) != explanation:
            result += "**%s** => " % escape_markdown(explanation)
        return result + "**%s**" % escape_markdown(str(value))

    def handle_error(
        self, command: str, error: typing.Optional[BaseException] = None
    ) -> str:
        message = "Sorry, I don't understand how to parse '%s'" % escape_markdown(
            command
        )
        if error is None:
            return message
        if isinstance(error, ParseError):
            return message + "\n```\n%s\n%s^-- %s\n```" % (
                command,
                " " * error.position,
                error.message,
            )
        return message + ": %s" % error

    def roll_dice(self, context: MessageContext, text: str) -> str:
        try:
            value, explanation = self.evaluate(context, text)
        except DiceRollError as e:
            return self.handle_error(text, e)
        return self.format_result(text, value, explanation)

    def save(
        self, context: MessageContext, text: str, name: str, target: str = "me"
    ) -> str:
        try:
            roll_parser.parse_string(text)
        except DiceRollError as e:
            return self.handle_error(text, e)

        if target == "channel":
            scope = channel_scope(context.channel_id)
        elif target == "server" and context.server_id is not None:
            scope = server_scope(context.server_id)
        else:
            scope = user_scope(context.user_id)

        self.store.store_value(name.lower(), scope, text)
        logger.info("Saved %r as %r in %s", text, name, scope)
        return "Saved **%s** as `%s`" % (text, name)

    def roll_command(self, context: MessageContext, command: str) -> str:
        command = command.strip()
        if command == "" or command == "help":
            return USAGE

        if command.split(None, 1)[0] == "save":
            match = _SAVE_RE.match(command)
            if match is None:
                return self.handle_error(command)
            return self.save(context, match[1], match[2], match[3] or "me")

        return self.roll_dice(context, command)

    def make_move(self, context: MessageContext, name: str) -> str:
        move = self.moves.get(name.lower())
        if move is None:
            return self.handle_error(name, DiceRollError("unknown move"))

        lines = ["%s makes a move: %s!" % (context.user_name, move.name)]
        lines.append(move.description)
        if move.roll:
            try:
                value, explanation = self.evaluate(context, move.roll)
            except DiceRollError as e:
                lines.append(self.handle_error(move.roll, e))
                return "\n".join(lines)

            lines.append(self.format_result(move.roll, value, explanation))
            outcome = move.outcome(value)
            if outcome:
                lines.append(outcome)
        return "\n".join(lines)

    def move_command(self, context: MessageContext, command: str) -> str:
        command = command.strip()
        if command == "":
            if not self.moves:
                return "I don't know any moves."
            return "I know the following moves: %s" % ", ".join(
                sorted(move.name for move in self.moves.values())
            )
        return self.make_move(context, command)
