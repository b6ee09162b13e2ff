from __future__ import annotations

from ..games.guess import GuessingGame
from ..logging import get_logger
from .registry import (
    Command,
    CommandContext,
    CommandRegistry,
    guild_only,
    owners_only,
)

logger = get_logger(__name__)


async def ping(ctx: CommandContext) -> None:
    await ctx.reply("Pong!")


async def nick(ctx: CommandContext) -> None:
    guild_id = ctx.message.guild_id
    if guild_id is None:
        raise RuntimeError("nick needs a guild; register it with guild_only")
    requested = ctx.args_text
    if requested.lower() == "reset":
        await ctx.transport.set_nickname(guild_id=guild_id, nickname=None)
        logger.info("nick.reset", guild_id=guild_id)
        await ctx.reply_ping("Reset my nickname")
        return
    await ctx.transport.set_nickname(guild_id=guild_id, nickname=requested)
    logger.info("nick.changed", guild_id=guild_id, nickname=requested)
    await ctx.reply_ping(f'Changed my nickname to `"{requested}"`')


def render_help(registry: CommandRegistry, prefix: str, name: str | None = None) -> str:
    if name is not None:
        command = registry.resolve(name)
        if command is None:
            return f"No command called `{name}`."
        usage = f"{prefix}{command.name}"
        if command.usage:
            usage = f"{usage} {command.usage}"
        lines = [f"**{command.name}**", f"Usage: `{usage}`"]
        if command.description:
            lines.append(command.description)
        notes = [
            "server only" if r.kind == "guild_only" else "owners only"
            for r in command.restrictions
        ]
        if notes:
            lines.append(f"_({', '.join(notes)})_")
        return "\n".join(lines)

    lines = ["**Commands**"]
    for command in registry.list_commands():
        summary = f" - {command.description}" if command.description else ""
        lines.append(f"`{prefix}{command.name}`{summary}")
    lines.append(f"\nSend `{prefix}help <command>` for details.")
    return "\n".join(lines)


async def help_command(ctx: CommandContext) -> None:
    name = ctx.args[0] if ctx.args else None
    await ctx.reply(render_help(ctx.registry, ctx.prefix, name))


def make_ngg(game: GuessingGame):
    async def ngg(ctx: CommandContext) -> None:
        await game.play(
            author_id=ctx.message.author_id,
            channel_id=ctx.message.channel_id,
            send=ctx.reply,
        )

    return ngg


def build_registry(game: GuessingGame) -> CommandRegistry:
    registry = CommandRegistry()
    registry.register(
        Command(name="ngg", handler=make_ngg(game), description="Guess the number")
    )
    registry.register(Command(name="ping", handler=ping, description="Pong!"))
    registry.register(
        Command(
            name="nick",
            handler=nick,
            min_args=1,
            restrictions=(guild_only, owners_only),
            description="Change or reset the bot's nickname",
            usage="<name>|reset",
        )
    )
    registry.register(
        Command(
            name="help",
            handler=help_command,
            description="List commands or describe one",
            usage="[command]",
        )
    )
    return registry
