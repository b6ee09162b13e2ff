"""Tests for Discord client module."""

from __future__ import annotations

from typing import Any
from unittest.mock import AsyncMock, MagicMock

import discord
import pytest

from mbot.discord.client import DiscordBotClient, SentMessage


class TestDiscordBotClientInitialization:
    """Test DiscordBotClient initialization."""

    def test_creates_client_with_token(self) -> None:
        client = DiscordBotClient("test-token")
        assert client._token == "test-token"
        assert client._bot is None

    def test_user_is_none_before_bot_created(self) -> None:
        client = DiscordBotClient("test-token")
        assert client.user is None
        assert client.user_id is None


class TestDiscordBotClientMessageHandler:
    def test_set_message_handler(self) -> None:
        client = DiscordBotClient("test-token")

        async def handler(message: Any) -> None:
            pass

        client.set_message_handler(handler)
        assert client._message_handler is handler


class TestDiscordBotClientClose:
    @pytest.mark.anyio
    async def test_close_without_bot_does_nothing(self) -> None:
        client = DiscordBotClient("test-token")
        await client.close()
        assert client._bot is None


class TestDiscordBotClientSendMessage:
    """Test DiscordBotClient send_message method."""

    @pytest.mark.anyio
    async def test_returns_none_if_channel_not_found(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        mock_bot.get_channel = MagicMock(return_value=None)
        mock_bot.fetch_channel = AsyncMock(
            side_effect=discord.NotFound(MagicMock(), "")
        )

        result = await client.send_message(channel_id=999, content="Hello")

        assert result is None

    @pytest.mark.anyio
    async def test_returns_none_if_not_messageable(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        mock_bot.get_channel = MagicMock(return_value=MagicMock())

        result = await client.send_message(channel_id=123, content="Hello")

        assert result is None

    @pytest.mark.anyio
    async def test_sends_reply_with_reference(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        channel = MagicMock(spec=discord.TextChannel)
        sent = MagicMock()
        sent.id = 55
        sent.channel.id = 123
        channel.send = AsyncMock(return_value=sent)
        mock_bot.get_channel = MagicMock(return_value=channel)

        result = await client.send_message(
            channel_id=123, content="Hello", reply_to_message_id=9
        )

        assert result == SentMessage(message_id=55, channel_id=123)
        kwargs = channel.send.await_args.kwargs
        assert kwargs["content"] == "Hello"
        assert kwargs["reference"].message_id == 9
        assert kwargs["mention_author"] is True

    @pytest.mark.anyio
    async def test_returns_none_on_http_error(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        channel = MagicMock(spec=discord.TextChannel)
        response = MagicMock()
        response.status = 500
        channel.send = AsyncMock(side_effect=discord.HTTPException(response, "boom"))
        mock_bot.get_channel = MagicMock(return_value=channel)

        result = await client.send_message(channel_id=123, content="Hello")

        assert result is None


class TestDiscordBotClientNickname:
    @pytest.mark.anyio
    async def test_returns_false_without_guild(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        mock_bot.get_guild = MagicMock(return_value=None)

        assert await client.edit_own_nickname(guild_id=1, nickname="x") is False

    @pytest.mark.anyio
    async def test_edits_own_member(self) -> None:
        client = DiscordBotClient("test-token")
        mock_bot = MagicMock()
        client._bot = mock_bot
        guild = MagicMock()
        guild.me.edit = AsyncMock()
        mock_bot.get_guild = MagicMock(return_value=guild)

        assert await client.edit_own_nickname(guild_id=1, nickname=None) is True
        guild.me.edit.assert_awaited_once_with(nick=None)
