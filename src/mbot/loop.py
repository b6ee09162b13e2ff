"""Wire the gateway, the correlator and the dispatcher together."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable
from dataclasses import dataclass

import discord

from .commands.builtin import build_registry
from .commands.dispatch import Dispatcher
from .commands.registry import CommandRegistry
from .correlator import Correlator
from .discord.bridge import DiscordTransport, incoming_from_discord
from .discord.client import DiscordBotClient
from .games.guess import GuessConfig, GuessingGame
from .intake import MessageIntake
from .logging import get_logger
from .settings import MbotSettings
from .transport import Transport

logger = get_logger(__name__)

__all__ = ["BotRuntime", "build_runtime", "make_message_handler", "run_main_loop"]


@dataclass(frozen=True, slots=True)
class BotRuntime:
    correlator: Correlator
    registry: CommandRegistry
    dispatcher: Dispatcher
    intake: MessageIntake
    game: GuessingGame


def guess_config(settings: MbotSettings) -> GuessConfig:
    guess = settings.guess
    return GuessConfig(
        low=guess.low,
        high=guess.high,
        max_attempts=guess.max_attempts,
        timeout_s=guess.timeout_s,
        cancel_keywords=tuple(guess.cancel_keywords),
    )


def build_runtime(
    settings: MbotSettings,
    transport: Transport,
    *,
    bot_id: int | None = None,
    rng: random.Random | None = None,
) -> BotRuntime:
    correlator = Correlator()
    game = GuessingGame(
        correlator=correlator,
        config=guess_config(settings),
        rng=rng or random.Random(),
    )
    registry = build_registry(game)
    dispatcher = Dispatcher(
        registry=registry,
        transport=transport,
        prefix=settings.prefix,
        owners=settings.owner_ids,
        bot_id=bot_id,
    )
    intake = MessageIntake(
        correlator=correlator,
        dispatcher=dispatcher,
        dispatch_during_wait=settings.dispatch_during_wait,
    )
    return BotRuntime(
        correlator=correlator,
        registry=registry,
        dispatcher=dispatcher,
        intake=intake,
        game=game,
    )


def make_message_handler(
    runtime: BotRuntime, client: DiscordBotClient
) -> Callable[[discord.Message], Awaitable[None]]:
    """Bridge gateway messages into the runtime's intake."""

    async def handle_message(message: discord.Message) -> None:
        # on_message can fire before start() returns
        if runtime.dispatcher.bot_id is None:
            runtime.dispatcher.bot_id = client.user_id
        await runtime.intake.handle(incoming_from_discord(message))

    return handle_message


async def run_main_loop(settings: MbotSettings, *, token: str) -> None:
    """Run the bot until the gateway connection ends."""
    client = DiscordBotClient(token)
    transport = DiscordTransport(client)
    runtime = build_runtime(settings, transport)

    logger.info(
        "loop.config",
        prefix=settings.prefix,
        owners=len(settings.owners),
        dispatch_during_wait=settings.dispatch_during_wait,
        commands=[command.name for command in runtime.registry],
    )
    if not settings.owners:
        logger.warning("loop.no_owners", disabled=["nick"])

    # py-cord already runs each on_message event in its own task
    client.set_message_handler(make_message_handler(runtime, client))

    try:
        await client.start()
        runtime.dispatcher.bot_id = client.user_id
        logger.info("bot.ready", user=client.user.name if client.user else "unknown")
        await client.wait_until_closed()
    finally:
        await transport.close()
