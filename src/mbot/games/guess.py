"""Turn-based number guessing played over the correlator."""

from __future__ import annotations

import random
from collections.abc import Awaitable, Callable, Collection
from dataclasses import dataclass, field
from enum import Enum

from ..correlator import (
    CorrelationFilter,
    Correlator,
    Matched,
    TimedOut,
    WaitKey,
)
from ..logging import get_logger
from ..model import ChannelId, UserId

logger = get_logger(__name__)

Send = Callable[[str], Awaitable[object]]

INTRO_TEXT = "Guess the number!"
PROMPT_TEXT = "Please send your guess"
TIMEOUT_TEXT = "You ran out of time! Game over!"
CANCELLED_TEXT = "Game over!"
PARSE_ERROR_TEXT = "An error occurred, send another **number.**"
ALREADY_RUNNING_TEXT = "You already have a game running here."


class Outcome(str, Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    LOST_OUT_OF_ATTEMPTS = "lost_out_of_attempts"
    CANCELLED = "cancelled"
    TIMED_OUT = "timed_out"

    @property
    def terminal(self) -> bool:
        return self is not Outcome.IN_PROGRESS


class Comparison(str, Enum):
    LESS = "less"
    GREATER = "greater"
    EQUAL = "equal"


def classify(guess: int, secret: int) -> Comparison:
    if guess < secret:
        return Comparison.LESS
    if guess > secret:
        return Comparison.GREATER
    return Comparison.EQUAL


class GameFinishedError(RuntimeError):
    pass


@dataclass(slots=True)
class GameState:
    secret: int
    max_attempts: int = 7
    attempts: int = 0
    outcome: Outcome = Outcome.IN_PROGRESS

    def __setattr__(self, name: str, value: object) -> None:
        if name == "secret" and hasattr(self, "secret"):
            raise AttributeError("the secret cannot change once drawn")
        object.__setattr__(self, name, value)

    def _require_in_progress(self) -> None:
        if self.outcome.terminal:
            raise GameFinishedError(f"game already ended: {self.outcome.value}")

    def record_guess(self, guess: int) -> Comparison:
        self._require_in_progress()
        self.attempts += 1
        result = classify(guess, self.secret)
        if result is Comparison.EQUAL:
            self.outcome = Outcome.WON
        elif self.attempts >= self.max_attempts:
            self.outcome = Outcome.LOST_OUT_OF_ATTEMPTS
        return result

    def cancel(self) -> None:
        self._require_in_progress()
        self.outcome = Outcome.CANCELLED

    def time_out(self) -> None:
        self._require_in_progress()
        self.outcome = Outcome.TIMED_OUT


def make_guess_predicate(cancel_keywords: Collection[str]) -> Callable[[str], bool]:
    keywords = frozenset(word.casefold() for word in cancel_keywords)

    def _accepts(content: str) -> bool:
        # all() over an empty string is True; that reply then fails parsing
        return all(ch.isnumeric() for ch in content) or content.casefold() in keywords

    return _accepts


def parse_guess(content: str) -> int | None:
    try:
        value = int(content.strip())
    except ValueError:
        return None
    if value < 0:
        return None
    return value


def format_guess_reply(guess: int, result: Comparison, state: GameState) -> str:
    lines = [f"You guessed: {guess}"]
    if result is Comparison.LESS:
        lines.append("Too small!")
    elif result is Comparison.GREATER:
        lines.append("Too big!")
    else:
        lines.append("You win!")
    if state.attempts == state.max_attempts:
        if state.outcome is Outcome.LOST_OUT_OF_ATTEMPTS:
            lines.append("You're out of attempts!")
    elif state.outcome is Outcome.IN_PROGRESS:
        lines.append(f"{state.attempts}/{state.max_attempts}")
    return "\n".join(lines)


@dataclass(frozen=True, slots=True)
class GuessConfig:
    low: int = 1
    high: int = 100
    max_attempts: int = 7
    timeout_s: float = 15.0
    cancel_keywords: tuple[str, ...] = ("cancel", "stop", "quit", "exit")


@dataclass(slots=True)
class GuessingGame:
    """Runs sessions; at most one per (author, channel) at a time."""

    correlator: Correlator
    config: GuessConfig = field(default_factory=GuessConfig)
    rng: random.Random = field(default_factory=random.Random)
    _active: set[WaitKey] = field(default_factory=set)

    def is_active(self, author_id: UserId, channel_id: ChannelId) -> bool:
        return (author_id, channel_id) in self._active

    def draw_secret(self) -> int:
        return self.rng.randint(self.config.low, self.config.high)

    async def play(
        self,
        *,
        author_id: UserId,
        channel_id: ChannelId,
        send: Send,
        secret: int | None = None,
    ) -> GameState | None:
        """Play one session; returns None when one is already running."""
        key = (author_id, channel_id)
        if key in self._active:
            await send(ALREADY_RUNNING_TEXT)
            return None
        self._active.add(key)
        try:
            return await self._run(
                author_id=author_id,
                channel_id=channel_id,
                send=send,
                secret=secret,
            )
        finally:
            self._active.discard(key)

    async def _run(
        self,
        *,
        author_id: UserId,
        channel_id: ChannelId,
        send: Send,
        secret: int | None,
    ) -> GameState:
        cfg = self.config
        await send(INTRO_TEXT)
        state = GameState(
            secret=self.draw_secret() if secret is None else secret,
            max_attempts=cfg.max_attempts,
        )
        logger.info(
            "game.started",
            author_id=author_id,
            channel_id=channel_id,
            max_attempts=state.max_attempts,
        )
        keywords = frozenset(word.casefold() for word in cfg.cancel_keywords)
        flt = CorrelationFilter(
            author_id=author_id,
            channel_id=channel_id,
            predicate=make_guess_predicate(keywords),
            timeout_s=cfg.timeout_s,
        )

        while not state.outcome.terminal:
            await send(PROMPT_TEXT)
            result = await self.correlator.await_match(flt)
            if isinstance(result, TimedOut):
                state.time_out()
                await send(TIMEOUT_TEXT)
                break
            assert isinstance(result, Matched)
            content = result.message.text
            if content.casefold() in keywords:
                state.cancel()
                await send(CANCELLED_TEXT)
                break
            guess = parse_guess(content)
            if guess is None:
                await send(PARSE_ERROR_TEXT)
                continue
            comparison = state.record_guess(guess)
            await send(format_guess_reply(guess, comparison, state))

        logger.info(
            "game.finished",
            author_id=author_id,
            channel_id=channel_id,
            outcome=state.outcome.value,
            attempts=state.attempts,
        )
        return state
