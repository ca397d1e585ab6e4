"""
Base class for outbound turn notifications.
"""

from __future__ import annotations

from abc import ABC, abstractmethod

from ...kernel.turns import ActiveTurn, RenameNeeded, TurnAdvance


class Notifier(ABC):
    """
    Delivers the three message kinds the monitor emits.

    Every method blocks until the message is delivered or retries are
    exhausted, and returns True on delivery (including "accepted, not
    confirmed"). Transport problems are reported as False, never raised.
    """

    platform: str = "unknown"

    @abstractmethod
    def send_turn(self, advance: TurnAdvance) -> bool:
        """Ping the acting player with the name to save under."""
        pass

    @abstractmethod
    def send_rename(self, rename: RenameNeeded) -> bool:
        """Ask `rename.target` to rename a misnamed save file."""
        pass

    @abstractmethod
    def send_reminder(self, active: ActiveTurn, *, minutes_elapsed: int) -> bool:
        """Remind the active player that the turn is still theirs."""
        pass
