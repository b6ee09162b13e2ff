from __future__ import annotations

from .commands.dispatch import Dispatcher
from .correlator import Correlator
from .logging import bind_run_context, clear_context, get_logger
from .model import IGNORED, DispatchOutcome, IncomingMessage

logger = get_logger(__name__)


class MessageIntake:
    """Single entry point for every inbound message.

    Pending correlator waits see a message before the dispatcher does, so a
    reply such as ``5`` is never mistaken for a command.
    """

    def __init__(
        self,
        *,
        correlator: Correlator,
        dispatcher: Dispatcher,
        dispatch_during_wait: bool = True,
    ) -> None:
        self.correlator = correlator
        self.dispatcher = dispatcher
        self.dispatch_during_wait = dispatch_during_wait

    async def route(self, message: IncomingMessage) -> DispatchOutcome | None:
        """Returns None when a pending wait consumed the message."""
        if message.author_is_bot:
            return IGNORED
        if self.correlator.offer(message):
            return None
        if not self.dispatch_during_wait and self.correlator.is_pending(
            message.author_id, message.channel_id
        ):
            logger.debug(
                "intake.dropped_during_wait",
                author_id=message.author_id,
                channel_id=message.channel_id,
            )
            return IGNORED
        return await self.dispatcher.dispatch(message)

    async def handle(self, message: IncomingMessage) -> None:
        bind_run_context(
            channel_id=message.channel_id,
            author_id=message.author_id,
            message_id=message.message_id,
        )
        try:
            outcome = await self.route(message)
        except Exception:
            # only a failed error report gets here; other messages keep flowing
            logger.exception("intake.dispatch_failed")
        else:
            if outcome is not None and outcome.kind != "ignored":
                logger.debug(
                    "intake.handled",
                    kind=outcome.kind,
                    command=outcome.command,
                )
        finally:
            clear_context()
