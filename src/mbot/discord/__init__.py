from .bridge import DiscordTransport, incoming_from_discord
from .client import DiscordBotClient, SentMessage

__all__ = [
    "DiscordBotClient",
    "DiscordTransport",
    "SentMessage",
    "incoming_from_discord",
]
