"""Polling loop for the save directory.

One TurnMonitor owns the file tracker, the turn engine (and through it the
turn state) and the reminder scheduler. Each tick:

1. list the directory (allowed extensions only)
2. update debounce state; collect files that just stabilized
3. run turn inference on each and dispatch notifications
4. check whether the active player is due a reminder

Ticks never overlap. Shutdown is cooperative: `run_forever` checks the stop
event between ticks, so a webhook call in flight finishes under its own
timeout.
"""
from __future__ import annotations

import logging
import threading
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional

from ..contracts.v1 import BotConfig
from ..kernel.reminders import ReminderScheduler
from ..kernel.scanner import FileEntry, ScanError, scan_directory
from ..kernel.tracker import FileTracker
from ..kernel.turns import Outcome, RenameNeeded, TurnAdvance, TurnEngine, TurnState, outcome_kind
from ..ports.notify.base import Notifier
from ..util.mask import mask_id
from ..util.time import monotonic_ms

logger = logging.getLogger("turnbot.monitor")

Scanner = Callable[[Path], List[FileEntry]]


@dataclass
class TickResult:
    scanned: bool = True
    eligible: List[str] = field(default_factory=list)
    outcomes: List[Outcome] = field(default_factory=list)
    reminded: bool = False


class TurnMonitor:
    def __init__(
        self,
        config: BotConfig,
        notifier: Notifier,
        *,
        scanner: Optional[Scanner] = None,
        clock: Callable[[], int] = monotonic_ms,
    ) -> None:
        self.config = config
        self.notifier = notifier
        self.watch_path = Path(config.watch_directory)
        self.tracker = FileTracker(config.debounce_ms)
        self.engine = TurnEngine(config)
        self.reminders = ReminderScheduler(config.reminder_interval_ms)
        self._scanner = scanner or self._scan
        self._clock = clock
        self._seeded = False

    def _scan(self, path: Path) -> List[FileEntry]:
        return scan_directory(path, self.config.allowed_extensions)

    @property
    def state(self) -> TurnState:
        return self.engine.state

    def seed(self, *, now_ms: Optional[int] = None) -> None:
        """Mark everything already in the directory as processed.

        Raises:
            ScanError: the directory cannot be read at startup.
        """
        now = self._clock() if now_ms is None else now_ms
        snapshot = self._scanner(self.watch_path)
        self.tracker.seed(snapshot, now_ms=now)
        for entry in snapshot:
            self.engine.observe_turn_number(entry.name)
        self._seeded = True
        logger.info(
            f"Started monitoring directory: {self.watch_path} (polling every {self.config.poll_interval_sec}s)",
            extra={"turn": self.engine.current_turn},
        )

    def tick(self, *, now_ms: Optional[int] = None) -> TickResult:
        now = self._clock() if now_ms is None else now_ms
        result = TickResult()

        try:
            snapshot = self._scanner(self.watch_path)
        except ScanError as e:
            logger.warning(f"Error reading directory, skipping scan this tick: {e}")
            result.scanned = False
            snapshot = None

        if snapshot is not None:
            result.eligible = self.tracker.observe(snapshot, now_ms=now)
            for name in result.eligible:
                outcome = self.engine.accept(name)
                if outcome is None:
                    continue
                result.outcomes.append(outcome)
                self._dispatch(outcome, now_ms=now)

        result.reminded = self.reminders.tick(self.engine.state, self.notifier, now_ms=now)
        return result

    def _dispatch(self, outcome: Outcome, *, now_ms: int) -> None:
        if isinstance(outcome, TurnAdvance):
            if self.notifier.send_turn(outcome):
                self.engine.start_turn(outcome, now_ms=now_ms)
            else:
                logger.error(
                    f"Turn notification for {outcome.acting.username} failed; turn state unchanged",
                    extra={
                        "file": outcome.filename,
                        "player": outcome.acting.username,
                        "recipient": mask_id(outcome.acting.discord_id),
                        "outcome": outcome_kind(outcome),
                    },
                )
            return

        if isinstance(outcome, RenameNeeded) and outcome.target is not None:
            target = outcome.target
            logger.info(
                f"Sending rename notification to previous user {target.username} ({mask_id(target.discord_id)}) "
                f"for incorrectly named file {outcome.filename}",
                extra={"file": outcome.filename, "player": target.username, "recipient": mask_id(target.discord_id)},
            )
            if not self.notifier.send_rename(outcome):
                logger.error(
                    f"Rename notification for {outcome.filename} failed",
                    extra={"file": outcome.filename, "outcome": outcome_kind(outcome)},
                )

    def run_forever(self, stop_event: threading.Event) -> None:
        if not self._seeded:
            self.seed()
        interval = float(self.config.poll_interval_sec)
        while not stop_event.wait(interval):
            try:
                self.tick()
            except Exception:
                logger.exception("Unexpected error during tick; continuing")
        logger.info("Shutting down monitor...")
