from __future__ import annotations

from dataclasses import dataclass
from typing import Protocol

from .model import ChannelId, GuildId, MessageId


class TransportError(RuntimeError):
    pass


@dataclass(frozen=True, slots=True)
class MessageRef:
    channel_id: ChannelId
    message_id: MessageId


class Transport(Protocol):
    async def send(
        self,
        *,
        channel_id: ChannelId,
        text: str,
        reply_to: MessageId | None = None,
    ) -> MessageRef: ...

    async def set_nickname(self, *, guild_id: GuildId, nickname: str | None) -> None: ...
