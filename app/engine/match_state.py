"""
Match state replay - who is on strike, who is bowling and where the innings
is in its over, derived purely from the ordered ball log.
"""
from dataclasses import dataclass, replace
from typing import Callable, Optional, Sequence, Tuple

from app.engine.batting_order import Crease, Lineup
from app.engine.deliveries import BallEvent, WicketType

BALLS_PER_OVER = 6


@dataclass(frozen=True)
class MatchState:
    """Crease occupants and over progress before the next delivery"""
    striker: str
    non_striker: str
    bowler: str
    over: int = 1  # 1-based
    ball_in_over: int = 1  # ball about to be bowled
    legal_balls_in_over: int = 0

    @classmethod
    def opening(cls, striker: str, non_striker: str, bowler: str) -> "MatchState":
        return cls(striker=striker, non_striker=non_striker, bowler=bowler)

    @property
    def crease(self) -> Crease:
        return (self.striker, self.non_striker)

    @property
    def overs_display(self) -> str:
        return f"{self.over - 1}.{self.legal_balls_in_over}"


@dataclass(frozen=True)
class ReplayResult:
    state: MatchState
    lineup: Lineup
    applied: int

    @property
    def all_out(self) -> bool:
        """A dismissed batsman is still in a crease slot: nobody was left to replace them"""
        return any(player_id in self.lineup.out for player_id in self.state.crease)


@dataclass(frozen=True)
class UndoResult:
    state: MatchState
    removed: BallEvent
    remaining: Tuple[BallEvent, ...]

    @property
    def history_empty(self) -> bool:
        """Nothing left to replay; the opening batsmen and bowler must be picked again"""
        return not self.remaining


class NothingToUndoError(ValueError):
    pass


def apply_ball(
    state: MatchState,
    event: BallEvent,
    next_batsman: Callable[[Crease], Optional[str]],
) -> MatchState:
    """
    Apply one delivery. The steps run in a fixed order: wicket or strike
    rotation first, then the legal ball count, then the end-of-over swap.
    """
    striker, non_striker = state.striker, state.non_striker
    over, legal_balls = state.over, state.legal_balls_in_over
    legal = event.is_legal
    total_runs = event.total_runs

    if event.is_wicket:
        incoming = next_batsman((striker, non_striker))
        # None means all out: the crease is left untouched
        if incoming is not None:
            if event.wicket_type == WicketType.RUN_OUT and total_runs % 2 == 1:
                striker, non_striker = non_striker, incoming
            else:
                # The striker is assumed to be the batsman dismissed
                striker = incoming
    elif legal and total_runs % 2 == 1:
        striker, non_striker = non_striker, striker

    if legal:
        legal_balls += 1

    if legal_balls == BALLS_PER_OVER:
        over += 1
        legal_balls = 0
        striker, non_striker = non_striker, striker

    return replace(
        state,
        striker=striker,
        non_striker=non_striker,
        bowler=event.bowler_id,
        over=over,
        ball_in_over=legal_balls + 1,
        legal_balls_in_over=legal_balls,
    )


def replay(
    events: Sequence[BallEvent],
    initial_state: MatchState,
    lineup: Lineup,
) -> ReplayResult:
    """
    Fold apply_ball over the events in recorded order. Dismissals are added
    to the lineup as they are replayed so each wicket sees the out set as it
    stood at that ball.
    """
    state = initial_state
    for event in events:
        state = apply_ball(state, event, lineup.next_batsman)
        if event.is_wicket:
            lineup = lineup.dismiss(event.striker_id)
    return ReplayResult(state=state, lineup=lineup, applied=len(events))


def calculate_match_state(
    events: Sequence[BallEvent],
    initial_state: MatchState,
    lineup: Lineup,
) -> MatchState:
    return replay(events, initial_state, lineup).state


def preview_next_state(
    committed_state: MatchState,
    hypothetical_event: BallEvent,
    lineup: Lineup,
) -> MatchState:
    """State after a pending ball; nothing is recorded"""
    return apply_ball(committed_state, hypothetical_event, lineup.next_batsman)


def undo_last(
    events: Sequence[BallEvent],
    initial_state: MatchState,
    lineup: Lineup,
) -> UndoResult:
    """Replay everything but the last ball from the innings opening state"""
    if not events:
        raise NothingToUndoError("No balls to undo")
    remaining = tuple(events[:-1])
    return UndoResult(
        state=calculate_match_state(remaining, initial_state, lineup),
        removed=events[-1],
        remaining=remaining,
    )
