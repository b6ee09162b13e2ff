from .guess import (
    Comparison,
    GameFinishedError,
    GameState,
    GuessConfig,
    GuessingGame,
    Outcome,
    classify,
)

__all__ = [
    "Comparison",
    "GameFinishedError",
    "GameState",
    "GuessConfig",
    "GuessingGame",
    "Outcome",
    "classify",
]
