"""Turn one inbound message into at most one command invocation."""

from __future__ import annotations

from collections.abc import Awaitable, Callable, Iterable

from ..logging import get_logger
from ..model import (
    IGNORED,
    DispatchError,
    DispatchOutcome,
    HandlerFailed,
    IncomingMessage,
    NotEnoughArguments,
    RestrictionViolated,
    UnknownCommand,
)
from ..transport import Transport
from .parse import is_self_mention, parse_prefixed_command, split_command_args
from .registry import CommandContext, CommandRegistry, RestrictionContext

logger = get_logger(__name__)

ErrorHook = Callable[[Transport, IncomingMessage, DispatchError, str], Awaitable[None]]

_RESTRICTION_TEXT = {
    "guild_only": "`{command}` can only be used in a server.",
    "owners_only": "`{command}` is restricted to the bot owners.",
}


def format_dispatch_error(error: DispatchError, command: str, *, prefix: str) -> str:
    match error:
        case NotEnoughArguments(min=minimum, given=given):
            return (
                f"Not enough arguments in {command}!\n"
                f"minimum required {minimum}/supplied arguments {given}"
            )
        case UnknownCommand(name=name):
            return f"Unknown command `{name}`. Send `{prefix}help` for a list."
        case RestrictionViolated(kind=kind):
            return _RESTRICTION_TEXT[kind].format(command=command)
        case HandlerFailed(cause=cause):
            return f"Unhandled error in {command}: {cause}"
    raise TypeError(f"unsupported dispatch error {error!r}")


def make_error_reporter(prefix: str) -> ErrorHook:
    """Build the default error hook; send failures propagate to the caller."""

    async def _hook(
        transport: Transport,
        message: IncomingMessage,
        error: DispatchError,
        command: str,
    ) -> None:
        await transport.send(
            channel_id=message.channel_id,
            text=format_dispatch_error(error, command, prefix=prefix),
        )

    return _hook


class Dispatcher:
    def __init__(
        self,
        *,
        registry: CommandRegistry,
        transport: Transport,
        prefix: str,
        owners: Iterable[int] = (),
        bot_id: int | None = None,
        on_error: ErrorHook | None = None,
    ) -> None:
        self.registry = registry
        self.transport = transport
        self.prefix = prefix
        self.owners = frozenset(owners)
        self.bot_id = bot_id
        self._on_error = on_error or make_error_reporter(prefix)

    async def dispatch(self, message: IncomingMessage) -> DispatchOutcome:
        if message.author_is_bot:
            return IGNORED

        text = message.text
        if is_self_mention(text, self.bot_id):
            await self.transport.send(
                channel_id=message.channel_id,
                text=f"Prefix is `{self.prefix}`",
            )
            return DispatchOutcome(kind="mention")

        name, args_text = parse_prefixed_command(text, self.prefix)
        if name is None:
            return IGNORED

        command = self.registry.resolve(name)
        if command is None:
            logger.info("dispatch.unknown_command", command=name)
            return await self._fail(message, UnknownCommand(name=name), name)

        violation = command.first_violation(
            RestrictionContext(
                author_id=message.author_id,
                channel_id=message.channel_id,
                guild_id=message.guild_id,
                owners=self.owners,
            )
        )
        if violation is not None:
            logger.info(
                "dispatch.restricted",
                command=command.name,
                kind=violation.kind,
                author_id=message.author_id,
            )
            return await self._fail(
                message, RestrictionViolated(kind=violation.kind), command.name
            )

        args = split_command_args(args_text)
        if len(args) < command.min_args:
            return await self._fail(
                message,
                NotEnoughArguments(min=command.min_args, given=len(args)),
                command.name,
            )

        ctx = CommandContext(
            message=message,
            command=command.name,
            args=args,
            args_text=args_text,
            transport=self.transport,
            registry=self.registry,
            prefix=self.prefix,
        )
        logger.info(
            "dispatch.invoke",
            command=command.name,
            args=len(args),
            author_id=message.author_id,
            channel_id=message.channel_id,
        )
        try:
            await command.handler(ctx)
        except Exception as exc:
            logger.warning(
                "dispatch.handler_failed",
                command=command.name,
                error=str(exc),
                error_type=exc.__class__.__name__,
            )
            return await self._fail(message, HandlerFailed(cause=exc), command.name)
        return DispatchOutcome(kind="handled", command=command.name)

    async def _fail(
        self, message: IncomingMessage, error: DispatchError, command: str
    ) -> DispatchOutcome:
        await self._on_error(self.transport, message, error, command)
        return DispatchOutcome(kind="failed", command=command, error=error)
