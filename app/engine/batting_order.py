"""
Next-batsman resolution from a declared batting order.
"""
from dataclasses import dataclass, field, replace
from typing import Callable, Optional, Sequence, Tuple

# (striker, non_striker)
Crease = Tuple[str, str]

NextBatsmanResolver = Callable[[frozenset, Sequence[str], Crease], Optional[str]]


def next_batsman(
    out_batsmen: frozenset,
    batting_order: Sequence[str],
    crease: Crease,
) -> Optional[str]:
    """
    First player in batting order who is neither out nor at the crease.
    Returns None once the order is exhausted (all out).
    """
    for player_id in batting_order:
        if player_id in out_batsmen or player_id in crease:
            continue
        return player_id
    return None


@dataclass(frozen=True)
class Lineup:
    """Batting order plus the dismissals seen so far in the innings"""
    batting_order: Tuple[str, ...]
    out: frozenset = field(default_factory=frozenset)
    resolver: NextBatsmanResolver = next_batsman

    def __post_init__(self):
        object.__setattr__(self, "batting_order", tuple(self.batting_order))
        object.__setattr__(self, "out", frozenset(self.out))

    def next_batsman(self, crease: Crease) -> Optional[str]:
        return self.resolver(self.out, self.batting_order, crease)

    def dismiss(self, player_id: str) -> "Lineup":
        return replace(self, out=self.out | {player_id})

    @property
    def wickets(self) -> int:
        return len(self.out)
