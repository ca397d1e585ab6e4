"""Periodic reminders for the player whose turn is active.

The first reminder goes out one interval after the turn started, each later
one an interval after the previous reminder. A failed send leaves the state
alone so the next tick tries again.
"""
from __future__ import annotations

import logging
from typing import TYPE_CHECKING, Optional

from ..util.mask import mask_id
from ..util.time import format_duration_minutes
from .turns import ActiveTurn, TurnState

if TYPE_CHECKING:
    from ..ports.notify.base import Notifier

logger = logging.getLogger("turnbot.reminders")


class ReminderScheduler:
    def __init__(self, interval_ms: int) -> None:
        self.interval_ms = max(1, int(interval_ms))

    def due(self, active: Optional[ActiveTurn], *, now_ms: int) -> bool:
        if active is None:
            return False
        anchor = active.last_reminded_at_ms
        if anchor is None:
            anchor = active.started_at_ms
        return now_ms - anchor >= self.interval_ms

    def tick(self, state: TurnState, notifier: "Notifier", *, now_ms: int) -> bool:
        """Send a reminder if one is due. Returns True when one was delivered."""
        active = state.active
        if not self.due(active, now_ms=now_ms):
            return False
        assert active is not None

        minutes_elapsed = max(0, (now_ms - active.started_at_ms) // 60000)
        ctx = {
            "player": active.player.username,
            "recipient": mask_id(active.player.discord_id),
            "turn": active.turn_number,
        }
        logger.info(
            f"Sending turn reminder to {active.player.username} ({mask_id(active.player.discord_id)}) - "
            f"{format_duration_minutes(minutes_elapsed)} elapsed since turn start",
            extra=ctx,
        )
        if not notifier.send_reminder(active, minutes_elapsed=minutes_elapsed):
            logger.error("Failed to send reminder", extra=ctx)
            return False

        active.last_reminded_at_ms = now_ms
        return True
