"""Value types shared by the dispatcher, the correlator and the games."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Literal, TypeAlias

UserId: TypeAlias = int
ChannelId: TypeAlias = int
GuildId: TypeAlias = int
MessageId: TypeAlias = int


@dataclass(frozen=True, slots=True)
class IncomingMessage:
    """One inbound chat message as delivered by the gateway."""

    text: str
    author_id: UserId
    channel_id: ChannelId
    guild_id: GuildId | None = None
    message_id: MessageId | None = None
    author_is_bot: bool = False

    @property
    def conversation_key(self) -> tuple[UserId, ChannelId]:
        return (self.author_id, self.channel_id)


@dataclass(frozen=True, slots=True)
class UnknownCommand:
    name: str


@dataclass(frozen=True, slots=True)
class NotEnoughArguments:
    min: int
    given: int


RestrictionKind: TypeAlias = Literal["guild_only", "owners_only"]


@dataclass(frozen=True, slots=True)
class RestrictionViolated:
    kind: RestrictionKind


@dataclass(frozen=True, slots=True)
class HandlerFailed:
    cause: Exception


DispatchError: TypeAlias = (
    UnknownCommand | NotEnoughArguments | RestrictionViolated | HandlerFailed
)

OutcomeKind: TypeAlias = Literal["ignored", "mention", "handled", "failed"]


@dataclass(frozen=True, slots=True)
class DispatchOutcome:
    kind: OutcomeKind
    command: str | None = None
    error: DispatchError | None = None


IGNORED = DispatchOutcome(kind="ignored")
