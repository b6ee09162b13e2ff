"""Discord transport and message conversion."""

from __future__ import annotations

from typing import TYPE_CHECKING

from ..model import IncomingMessage
from ..transport import MessageRef, TransportError
from .client import DiscordBotClient

if TYPE_CHECKING:
    import discord

__all__ = [
    "DiscordTransport",
    "incoming_from_discord",
]


def incoming_from_discord(message: discord.Message) -> IncomingMessage:
    guild = message.guild
    return IncomingMessage(
        text=message.content or "",
        author_id=message.author.id,
        channel_id=message.channel.id,
        guild_id=guild.id if guild is not None else None,
        message_id=message.id,
        author_is_bot=bool(message.author.bot),
    )


class DiscordTransport:
    """Transport implementation for Discord.

    The client logs and swallows API errors; here they become
    :class:`TransportError` so a failed send is never mistaken for success.
    """

    def __init__(self, bot: DiscordBotClient) -> None:
        self._bot = bot

    async def close(self) -> None:
        await self._bot.close()

    async def send(
        self,
        *,
        channel_id: int,
        text: str,
        reply_to: int | None = None,
    ) -> MessageRef:
        sent = await self._bot.send_message(
            channel_id=channel_id,
            content=text,
            reply_to_message_id=reply_to,
        )
        if sent is None:
            raise TransportError(f"could not send a message to channel {channel_id}")
        return MessageRef(channel_id=sent.channel_id, message_id=sent.message_id)

    async def set_nickname(self, *, guild_id: int, nickname: str | None) -> None:
        changed = await self._bot.edit_own_nickname(guild_id=guild_id, nickname=nickname)
        if not changed:
            raise TransportError(f"could not change the nickname in guild {guild_id}")
