from __future__ import annotations

from .config import BotConfig, UserMapping
from .webhook import DiscordWebhook, Embed, EmbedField, Footer, MessageKind, Thumbnail

__all__ = [
    "BotConfig",
    "DiscordWebhook",
    "Embed",
    "EmbedField",
    "Footer",
    "MessageKind",
    "Thumbnail",
    "UserMapping",
]
