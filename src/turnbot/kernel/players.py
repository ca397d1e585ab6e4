"""Player list parsing and cyclic turn order."""
from __future__ import annotations

from typing import List, Optional, Sequence, Tuple

from ..contracts.v1 import UserMapping


class ConfigError(ValueError):
    """Configuration is malformed; monitoring must not start."""


def parse_user_mappings(raw: str) -> Tuple[UserMapping, ...]:
    """Parse `"1 Alice 1111,2 Bob 2222"` into players sorted by order."""
    text = str(raw or "").strip()
    if not text:
        raise ConfigError("USER_MAPPINGS is empty")

    players: List[UserMapping] = []
    seen: set[int] = set()
    for entry in text.split(","):
        item = entry.strip()
        if not item:
            continue
        parts = item.split()
        if len(parts) != 3:
            raise ConfigError(f"invalid user mapping {item!r}: expected '<order> <username> <id>'")
        try:
            order = int(parts[0])
        except ValueError:
            raise ConfigError(f"invalid user mapping {item!r}: order must be an integer") from None
        if order in seen:
            raise ConfigError(f"duplicate order {order} in user mappings")
        seen.add(order)
        players.append(UserMapping(order=order, username=parts[1], discord_id=parts[2]))

    if not players:
        raise ConfigError("USER_MAPPINGS contains no entries")
    players.sort(key=lambda p: p.order)
    return tuple(players)


def validate_players(players: Sequence[UserMapping]) -> Tuple[UserMapping, ...]:
    """Sort explicit player entries (e.g. from YAML) and reject duplicates."""
    if not players:
        raise ConfigError("at least one player is required")
    orders = [p.order for p in players]
    if len(set(orders)) != len(orders):
        raise ConfigError("duplicate order in players list")
    return tuple(sorted(players, key=lambda p: p.order))


def next_index(index: int, count: int) -> int:
    return (index + 1) % count


def previous_index(index: int, count: int) -> int:
    return (index - 1 + count) % count


def find_player_in_name(players: Sequence[UserMapping], filename: str) -> Optional[int]:
    """Index of the first player whose username occurs in `filename`.

    Matching is a case-insensitive substring test in configured order, so
    a name contained in another player's name can win if it comes first.
    """
    lower = filename.lower()
    for i, player in enumerate(players):
        if player.username.lower() in lower:
            return i
    return None
