"""File tracker: debounce new save files and forget deleted ones.

A file is handed to turn inference exactly once, after its size has stayed
unchanged for the whole debounce window. Keys are lower-cased names, so
`PBEM1_turn2_Bob.se1` and `pbem1_turn2_bob.se1` are the same file.
"""
from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Dict, Iterable, List, Optional

from .scanner import FileEntry

logger = logging.getLogger("turnbot.tracker")


@dataclass
class FileRecord:
    name: str
    first_seen_ms: int
    stabilized: bool
    last_size: int


class FileTracker:
    def __init__(self, debounce_ms: int) -> None:
        self.debounce_ms = max(0, int(debounce_ms))
        self._records: Dict[str, FileRecord] = {}

    def __len__(self) -> int:
        return len(self._records)

    def __contains__(self, name: object) -> bool:
        return isinstance(name, str) and name.lower() in self._records

    def get(self, name: str) -> Optional[FileRecord]:
        return self._records.get(name.lower())

    def seed(self, snapshot: Iterable[FileEntry], *, now_ms: int) -> None:
        """Record files present at startup as already processed."""
        for entry in snapshot:
            self._records[entry.name.lower()] = FileRecord(
                name=entry.name,
                first_seen_ms=now_ms,
                stabilized=True,
                last_size=entry.size,
            )
        logger.info(f"Initialized with {len(self._records)} existing files")

    def observe(self, snapshot: Iterable[FileEntry], *, now_ms: int) -> List[str]:
        """Reconcile with a fresh listing; return names that became eligible this tick."""
        eligible: List[str] = []
        present: set[str] = set()

        for entry in snapshot:
            key = entry.name.lower()
            if key in present:
                continue
            present.add(key)

            rec = self._records.get(key)
            if rec is None:
                self._records[key] = FileRecord(
                    name=entry.name,
                    first_seen_ms=now_ms,
                    stabilized=False,
                    last_size=entry.size,
                )
                logger.info(f"New save file detected: {entry.name}, starting debounce period", extra={"file": entry.name})
                continue

            if rec.stabilized:
                continue

            if entry.size != rec.last_size:
                logger.info(
                    f"File {entry.name} size changed ({rec.last_size} -> {entry.size}), restarting debounce window",
                    extra={"file": entry.name},
                )
                rec.last_size = entry.size
                rec.first_seen_ms = now_ms
                continue

            if now_ms - rec.first_seen_ms < self.debounce_ms:
                continue

            rec.stabilized = True
            eligible.append(rec.name)
            logger.info(
                f"File {rec.name} stable for {self.debounce_ms // 1000}s, processing now",
                extra={"file": rec.name},
            )

        for key in [k for k in self._records if k not in present]:
            rec = self._records.pop(key)
            logger.info(f"Removed tracking for deleted file: {rec.name}", extra={"file": rec.name})

        return eligible
