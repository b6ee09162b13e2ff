"""Discord API client wrapper."""

from __future__ import annotations

import asyncio
import contextlib
from collections.abc import Callable
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any

import discord

from ..logging import get_logger

if TYPE_CHECKING:
    from collections.abc import Coroutine

    MessageHandler = Callable[[discord.Message], Coroutine[Any, Any, None]]

logger = get_logger(__name__)


@dataclass(frozen=True, slots=True)
class SentMessage:
    """Result of sending a message."""

    message_id: int
    channel_id: int


class DiscordBotClient:
    """Wrapper around the Pycord bot for mbot."""

    def __init__(self, token: str) -> None:
        self._token = token
        self._message_handler: MessageHandler | None = None
        # Defer bot creation until inside async context
        self._bot: discord.Bot | None = None
        self._ready_event: asyncio.Event | None = None
        self._start_task: asyncio.Task[None] | None = None

    def _ensure_bot(self) -> discord.Bot:
        """Create the bot if not already created. Must be called from async context."""
        if self._bot is not None:
            return self._bot

        intents = discord.Intents.default()
        intents.message_content = True
        intents.guilds = True
        intents.messages = True

        self._bot = discord.Bot(intents=intents)
        self._ready_event = asyncio.Event()

        @self._bot.event
        async def on_ready() -> None:
            assert self._ready_event is not None
            assert self._bot is not None
            user = self._bot.user
            logger.info(
                "discord.ready",
                user=user.name if user else None,
                user_id=user.id if user else None,
            )
            self._ready_event.set()

        @self._bot.event
        async def on_message(message: discord.Message) -> None:
            assert self._bot is not None
            if message.author == self._bot.user:
                return
            if self._message_handler is not None:
                await self._message_handler(message)

        return self._bot

    @property
    def bot(self) -> discord.Bot:
        """Get the underlying Pycord bot. Creates it if needed."""
        return self._ensure_bot()

    @property
    def user(self) -> discord.User | None:
        if self._bot is None:
            return None
        return self._bot.user

    @property
    def user_id(self) -> int | None:
        user = self.user
        return user.id if user is not None else None

    def set_message_handler(self, handler: MessageHandler) -> None:
        self._message_handler = handler

    async def start(self) -> None:
        """Start the bot and wait until ready.

        Login failures (bad token, network) are raised instead of leaving the
        caller waiting for a ready event that never comes.
        """
        bot = self._ensure_bot()
        assert self._ready_event is not None

        async def _run_bot() -> None:
            try:
                await bot.start(self._token)
            except asyncio.CancelledError:
                pass
            except RuntimeError as e:
                # Suppress "Session is closed" error during shutdown
                if "Session is closed" not in str(e):
                    raise

        self._start_task = asyncio.create_task(_run_bot(), name="discord-bot-start")
        ready = asyncio.create_task(self._ready_event.wait())
        done, _ = await asyncio.wait(
            {self._start_task, ready}, return_when=asyncio.FIRST_COMPLETED
        )
        if ready not in done:
            ready.cancel()
            # re-raises the login error, if any
            self._start_task.result()
            raise RuntimeError("Discord client stopped before becoming ready.")

    async def close(self) -> None:
        """Close the bot connection."""
        if self._bot is not None:
            await self._bot.close()
            if self._start_task is not None and not self._start_task.done():
                self._start_task.cancel()
                with contextlib.suppress(asyncio.CancelledError):
                    await self._start_task

    async def wait_until_closed(self) -> None:
        if self._start_task is not None:
            with contextlib.suppress(asyncio.CancelledError):
                await self._start_task

    async def send_message(
        self,
        *,
        channel_id: int,
        content: str,
        reply_to_message_id: int | None = None,
    ) -> SentMessage | None:
        """Send a message to a channel."""
        assert self._bot is not None
        channel = self._bot.get_channel(channel_id)
        if channel is None:
            try:
                channel = await self._bot.fetch_channel(channel_id)
            except discord.NotFound:
                logger.error("send_message.channel_not_found", channel_id=channel_id)
                return None
            except discord.HTTPException as e:
                logger.error(
                    "send_message.fetch_channel_error",
                    channel_id=channel_id,
                    error=str(e),
                )
                return None

        if not isinstance(channel, discord.abc.Messageable):
            logger.error(
                "send_message.not_messageable",
                channel_id=channel_id,
                channel_type=type(channel).__name__,
            )
            return None

        kwargs: dict[str, Any] = {"content": content}
        if reply_to_message_id is not None:
            kwargs["reference"] = discord.MessageReference(
                message_id=reply_to_message_id,
                channel_id=channel_id,
            )
            kwargs["mention_author"] = True

        try:
            message = await channel.send(**kwargs)
        except discord.HTTPException as e:
            logger.error(
                "send_message.send_error",
                channel_id=channel_id,
                error=str(e),
                status=getattr(e, "status", None),
            )
            return None
        return SentMessage(message_id=message.id, channel_id=message.channel.id)

    async def edit_own_nickname(self, *, guild_id: int, nickname: str | None) -> bool:
        """Change (or with ``None`` reset) the bot's nickname in a guild."""
        assert self._bot is not None
        guild = self._bot.get_guild(guild_id)
        if guild is None:
            logger.error("edit_nickname.guild_not_found", guild_id=guild_id)
            return False
        try:
            await guild.me.edit(nick=nickname)
        except discord.HTTPException as e:
            logger.error(
                "edit_nickname.error",
                guild_id=guild_id,
                error=str(e),
                status=getattr(e, "status", None),
            )
            return False
        return True
