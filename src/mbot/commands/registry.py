from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterator
from dataclasses import dataclass, field

from ..logging import get_logger
from ..model import ChannelId, GuildId, IncomingMessage, RestrictionKind, UserId
from ..transport import MessageRef, Transport

logger = get_logger(__name__)


class RegistryError(RuntimeError):
    pass


class DuplicateCommandError(RegistryError):
    def __init__(self, name: str) -> None:
        super().__init__(f"Command {name!r} is already registered.")
        self.name = name


@dataclass(frozen=True, slots=True)
class RestrictionContext:
    author_id: UserId
    channel_id: ChannelId
    guild_id: GuildId | None
    owners: frozenset[UserId]


@dataclass(frozen=True, slots=True)
class Restriction:
    kind: RestrictionKind
    check: Callable[[RestrictionContext], bool]

    def allows(self, ctx: RestrictionContext) -> bool:
        return self.check(ctx)


guild_only = Restriction("guild_only", lambda ctx: ctx.guild_id is not None)
owners_only = Restriction("owners_only", lambda ctx: ctx.author_id in ctx.owners)


@dataclass(frozen=True, slots=True)
class CommandContext:
    """Everything a handler gets to see about one invocation."""

    message: IncomingMessage
    command: str
    args: tuple[str, ...]
    args_text: str
    transport: Transport
    registry: CommandRegistry
    prefix: str

    async def reply(self, text: str) -> MessageRef:
        return await self.transport.send(
            channel_id=self.message.channel_id, text=text
        )

    async def reply_ping(self, text: str) -> MessageRef:
        return await self.transport.send(
            channel_id=self.message.channel_id,
            text=text,
            reply_to=self.message.message_id,
        )


CommandHandler = Callable[[CommandContext], Awaitable[None]]


@dataclass(frozen=True, slots=True)
class Command:
    name: str
    handler: CommandHandler
    min_args: int = 0
    restrictions: tuple[Restriction, ...] = ()
    description: str = ""
    usage: str = ""

    def first_violation(self, ctx: RestrictionContext) -> Restriction | None:
        for restriction in self.restrictions:
            if not restriction.allows(ctx):
                return restriction
        return None


@dataclass(slots=True)
class CommandRegistry:
    _commands: dict[str, Command] = field(default_factory=dict)

    def register(self, command: Command) -> Command:
        key = command.name.lower()
        if key in self._commands:
            raise DuplicateCommandError(command.name)
        self._commands[key] = command
        logger.debug("registry.registered", command=key, min_args=command.min_args)
        return command

    def resolve(self, name: str) -> Command | None:
        return self._commands.get(name.lower())

    def list_commands(self) -> list[Command]:
        return list(self._commands.values())

    def __iter__(self) -> Iterator[Command]:
        return iter(self._commands.values())

    def __len__(self) -> int:
        return len(self._commands)
