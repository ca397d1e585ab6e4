from __future__ import annotations

from .base import Notifier
from .discord import DiscordWebhookNotifier

__all__ = ["DiscordWebhookNotifier", "Notifier"]
