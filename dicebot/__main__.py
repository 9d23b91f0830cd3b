import logging
import os
import shutil
import sys
import typing

import discord
import discord.ext.commands as commands
import yaml

from dicebot.bot import USAGE, Bot, MessageContext
from dicebot.moves import load_moves
from dicebot.variables import VariableStore

logger = logging.getLogger(__name__)

intents = discord.Intents.default()
intents.message_content = True

client = commands.Bot(
    command_prefix="!",
    intents=intents,
    activity=discord.Game(name="!roll help"),
    help_command=None,
)


settings: typing.Dict[str, typing.Any] = {}
dice_bot: typing.Optional[Bot] = None


def get_context(ctx: commands.Context) -> MessageContext:
    return MessageContext(
        user_id=str(ctx.author.id),
        user_name=ctx.author.display_name,
        channel_id=str(ctx.channel.id),
        server_id=None if ctx.guild is None else str(ctx.guild.id),
    )


async def send_reply(ctx: commands.Context, make_reply: typing.Callable[[], str]):
    try:
        await ctx.send(make_reply())
    except BaseException as e:
        try:
            await ctx.send("An internal error occured. Sorry!")
        except BaseException:
            pass
        raise e


@client.event
async def on_ready():
    logger.info("We have logged in as %s", client.user)


@client.command(
    name="roll",
    brief="roll dice",
    description=USAGE,
)
async def roll_(ctx: commands.Context, *, command: str = ""):
    logger.info("Received roll from %s: %s", ctx.author, command)
    await send_reply(ctx, lambda: dice_bot.roll_command(get_context(ctx), command))


@client.command(
    name="move",
    brief="make a move",
    description="""!move [<name>]

Parameters:
    name - Optional. The move to make.

Result:
    Rolls the dice for the move and tells you how it went. With no name,
    lists the moves the bot knows.
""",
)
async def move(ctx: commands.Context, *, command: str = ""):
    logger.info("Received move from %s: %s", ctx.author, command)
    await send_reply(ctx, lambda: dice_bot.move_command(get_context(ctx), command))


def main(argv: typing.List[str] = sys.argv) -> int:
    settings_file = argv[1] if len(argv) > 1 else "settings.yaml"
    if not os.path.exists(settings_file):
        shutil.copy(
            os.path.join(os.path.dirname(__file__), "settings.default.yaml"),
            settings_file,
        )
        print(
            "%s not detected!"
            " A default one has been provided."
            " Please edit that file and re-run this program." % settings_file
        )
        return 1

    global settings
    with open(settings_file) as f:
        settings = yaml.safe_load(f)

    moves = {}
    if settings.get("moves"):
        moves = load_moves(settings["moves"])

    global dice_bot
    dice_bot = Bot(VariableStore.load(settings.get("variables", "variables.yaml")), moves)

    client.shard_id = settings.get("shard_id")
    client.shard_count = settings.get("shard_count")

    client.run(settings["token"])
    return 0


if __name__ == "__main__":
    sys.exit(main())
