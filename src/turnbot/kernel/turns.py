"""Turn inference.

Turns a stabilized save-file name into one of four outcomes:

- TurnAdvance: the file names a player; that player is up next and is told
  which name to save under for the player after them.
- RenameNeeded: the file does not start with the game name. If a player name
  occurs in it, the player before that one in the cycle is asked to rename.
- Unmatched: correct prefix but no known player name.
- Ignored: the name contains one of the configured ignore substrings.

The engine owns TurnState. The turn counter only ever moves forward: either
to a larger turn number found in a file name, or by one when the last
player in the cycle hands over.
"""
from __future__ import annotations

import logging
import os
import re
from dataclasses import dataclass, field
from typing import Optional, Sequence, Union

from ..contracts.v1 import BotConfig, UserMapping
from ..util.mask import mask_id
from .players import find_player_in_name, next_index, previous_index
from .scanner import has_allowed_extension

logger = logging.getLogger("turnbot.turns")

_TURN_PATTERNS = (
    re.compile(r"(?:^|_)turn(\d+)(?:_|$)"),
    re.compile(r"(?:^|_)player_?turn(\d+)(?:_|$)"),
)


def extract_turn_number(filename: str) -> Optional[int]:
    """Turn number from `..._turn<N>_...` or `..._turn<N>`; None if absent.

    The extension is ignored, so `pbem1_bob_turn3.se1` yields 3.
    """
    stem = os.path.splitext(filename.lower())[0]
    for rx in _TURN_PATTERNS:
        m = rx.search(stem)
        if m:
            n = int(m.group(1))
            return n if n > 0 else None
    return None


@dataclass(frozen=True)
class TurnAdvance:
    filename: str
    acting: UserMapping
    next_player: UserMapping
    previous_player: UserMapping
    save_instruction_turn: int
    wrapped: bool = False


@dataclass(frozen=True)
class RenameNeeded:
    filename: str
    turn_number: int
    matched: Optional[UserMapping] = None
    target: Optional[UserMapping] = None


@dataclass(frozen=True)
class Unmatched:
    filename: str


@dataclass(frozen=True)
class Ignored:
    filename: str
    pattern: str


Outcome = Union[TurnAdvance, RenameNeeded, Unmatched, Ignored]


@dataclass
class ActiveTurn:
    player: UserMapping
    next_player: UserMapping
    turn_number: int
    started_at_ms: int
    last_reminded_at_ms: Optional[int] = None


@dataclass
class TurnState:
    current_turn: int = 1
    active: Optional[ActiveTurn] = field(default=None)


class TurnEngine:
    def __init__(self, config: BotConfig, state: Optional[TurnState] = None) -> None:
        self.config = config
        self.state = state or TurnState()
        self._game_prefix = config.game_name.lower()

    @property
    def players(self) -> Sequence[UserMapping]:
        return self.config.players

    @property
    def current_turn(self) -> int:
        return self.state.current_turn

    def observe_turn_number(self, filename: str) -> bool:
        """Advance the counter if `filename` carries a larger turn number."""
        n = extract_turn_number(filename)
        if n is None or n <= self.state.current_turn:
            return False
        self.state.current_turn = n
        logger.info(
            f"Updated current turn to {n} based on filename: {filename}",
            extra={"file": filename, "turn": n},
        )
        return True

    def _ignore_match(self, lower: str) -> Optional[str]:
        for pattern in self.config.ignore_patterns:
            if pattern and pattern in lower:
                return pattern
        return None

    def accept(self, filename: str) -> Optional[Outcome]:
        """Classify one stabilized file. Returns None for disallowed extensions."""
        if not has_allowed_extension(filename, self.config.allowed_extensions):
            return None

        self.observe_turn_number(filename)
        lower = filename.lower()

        pattern = self._ignore_match(lower)
        if pattern is not None:
            logger.info(
                f"Ignoring file {filename} based on ignore pattern {pattern!r}",
                extra={"file": filename, "outcome": "ignored"},
            )
            return Ignored(filename=filename, pattern=pattern)

        players = self.players
        count = len(players)
        idx = find_player_in_name(players, filename)

        if not lower.startswith(self._game_prefix):
            logger.warning(
                f"File {filename} doesn't match configured game name '{self.config.game_name}'",
                extra={"file": filename, "outcome": "rename"},
            )
            if idx is None:
                logger.warning(
                    f"Cannot identify any user for incorrectly named file: {filename}. Cannot determine who to notify.",
                    extra={"file": filename, "outcome": "rename"},
                )
                return RenameNeeded(filename=filename, turn_number=self.state.current_turn)
            target = players[previous_index(idx, count)]
            return RenameNeeded(
                filename=filename,
                turn_number=self.state.current_turn,
                matched=players[idx],
                target=target,
            )

        if idx is None:
            logger.warning(
                f"Cannot match any user to save file: {filename}",
                extra={"file": filename, "outcome": "unmatched"},
            )
            return Unmatched(filename=filename)

        acting = players[idx]
        nxt = players[next_index(idx, count)]
        prev = players[previous_index(idx, count)]

        wrapped = idx == count - 1
        save_turn = self.state.current_turn
        if wrapped:
            save_turn = self.state.current_turn + 1
            logger.info(
                f"Last player ({acting.username}) finished turn {self.state.current_turn}, next save will start turn {save_turn}",
                extra={"player": acting.username, "turn": save_turn},
            )
            self.state.current_turn = save_turn

        logger.info(
            f"Turn {self.state.current_turn}: It's {acting.username}'s turn (save from {prev.username}). "
            f"Next up: {nxt.username} (for turn {save_turn})",
            extra={"file": filename, "player": acting.username, "turn": save_turn, "outcome": "advance"},
        )
        return TurnAdvance(
            filename=filename,
            acting=acting,
            next_player=nxt,
            previous_player=prev,
            save_instruction_turn=save_turn,
            wrapped=wrapped,
        )

    def start_turn(self, advance: TurnAdvance, *, now_ms: int) -> ActiveTurn:
        """Replace the active turn after the turn notification was delivered."""
        active = ActiveTurn(
            player=advance.acting,
            next_player=advance.next_player,
            turn_number=advance.save_instruction_turn,
            started_at_ms=now_ms,
        )
        self.state.active = active
        logger.info(
            f"Started tracking turn for {advance.acting.username} ({mask_id(advance.acting.discord_id)})",
            extra={"player": advance.acting.username, "recipient": mask_id(advance.acting.discord_id)},
        )
        return active


def outcome_kind(outcome: Optional[Outcome]) -> str:
    if isinstance(outcome, TurnAdvance):
        return "advance"
    if isinstance(outcome, RenameNeeded):
        return "rename"
    if isinstance(outcome, Unmatched):
        return "unmatched"
    if isinstance(outcome, Ignored):
        return "ignored"
    return "filtered"

