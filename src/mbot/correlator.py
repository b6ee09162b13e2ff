"""Correlate follow-up messages with a command that is waiting for them.

A command registers a :class:`CorrelationFilter` and suspends in
:meth:`Correlator.await_match`. The message intake calls :meth:`Correlator.offer`
for every inbound message before dispatching it; a message accepted by a
pending filter is handed to the waiting command and never dispatched.
"""

from __future__ import annotations

from collections.abc import Callable
from dataclasses import dataclass, field

import anyio

from .logging import get_logger
from .model import ChannelId, IncomingMessage, UserId

logger = get_logger(__name__)

ContentPredicate = Callable[[str], bool]
WaitKey = tuple[UserId, ChannelId]


class WaitAlreadyPendingError(RuntimeError):
    def __init__(self, key: WaitKey) -> None:
        super().__init__(
            f"a reply is already awaited from user {key[0]} in channel {key[1]}"
        )
        self.key = key


@dataclass(frozen=True, slots=True)
class CorrelationFilter:
    author_id: UserId
    channel_id: ChannelId
    predicate: ContentPredicate
    timeout_s: float

    @property
    def key(self) -> WaitKey:
        return (self.author_id, self.channel_id)

    def accepts(self, message: IncomingMessage) -> bool:
        return (
            message.author_id == self.author_id
            and message.channel_id == self.channel_id
            and self.predicate(message.text)
        )


@dataclass(frozen=True, slots=True)
class Matched:
    message: IncomingMessage


@dataclass(frozen=True, slots=True)
class TimedOut:
    pass


CorrelationResult = Matched | TimedOut


@dataclass(slots=True)
class _PendingWait:
    filter: CorrelationFilter
    delivered: anyio.Event = field(default_factory=anyio.Event)
    message: IncomingMessage | None = None


class Correlator:
    """Owns the mapping of pending waits, keyed by (author, channel).

    All lookups and mutations of the mapping happen without an intervening
    checkpoint, so a message can never be matched against a wait that is
    half registered or already resolved.
    """

    def __init__(self) -> None:
        self._pending: dict[WaitKey, _PendingWait] = {}

    def is_pending(self, author_id: UserId, channel_id: ChannelId) -> bool:
        return (author_id, channel_id) in self._pending

    def __len__(self) -> int:
        return len(self._pending)

    async def await_match(self, flt: CorrelationFilter) -> CorrelationResult:
        key = flt.key
        if key in self._pending:
            raise WaitAlreadyPendingError(key)
        wait = _PendingWait(filter=flt)
        self._pending[key] = wait
        logger.debug(
            "correlator.waiting",
            author_id=flt.author_id,
            channel_id=flt.channel_id,
            timeout_s=flt.timeout_s,
        )
        try:
            with anyio.move_on_after(flt.timeout_s):
                await wait.delivered.wait()
        finally:
            # offer() removes the entry on delivery; only clean up our own wait
            if self._pending.get(key) is wait:
                del self._pending[key]

        # a delivery that raced the timer still wins: offer() already told the
        # intake the message was consumed
        if wait.message is not None:
            return Matched(wait.message)
        logger.info(
            "correlator.timed_out",
            author_id=flt.author_id,
            channel_id=flt.channel_id,
        )
        return TimedOut()

    def offer(self, message: IncomingMessage) -> bool:
        """Deliver ``message`` to a matching pending wait.

        Returns True when the message was consumed and must not be dispatched.
        """
        wait = self._pending.get(message.conversation_key)
        if wait is None or wait.message is not None:
            return False
        if not wait.filter.accepts(message):
            return False
        wait.message = message
        del self._pending[message.conversation_key]
        wait.delivered.set()
        logger.debug(
            "correlator.matched",
            author_id=message.author_id,
            channel_id=message.channel_id,
            message_id=message.message_id,
        )
        return True
