"""
Innings Engine - Replays the stored ball log of one innings
"""
import logging
from typing import Optional, Sequence
from sqlalchemy.orm import Session

from app.models.match import Match, Innings, Ball, MatchStatus
from app.engine.batting_order import Lineup
from app.engine.deliveries import BallEvent
from app.engine.match_state import (
    MatchState, ReplayResult, UndoResult,
    preview_next_state, replay, undo_last,
)

logger = logging.getLogger(__name__)


class InningsCompleteError(Exception):
    """No batsman left to replace a dismissal; no further balls can be bowled"""
    pass


class InningsStartedError(Exception):
    pass


class StrikerMismatchError(Exception):
    """A ball names a batsman who is not on strike in the replayed state"""
    pass


class MatchClosedError(Exception):
    pass


class InningsEngine:
    """
    Backend call site of the replay engine.

    State is never stored: every read replays the whole innings from its
    opening configuration, and every write is followed by a fresh replay.
    """

    def __init__(self, session: Session, match: Match, innings: Innings):
        self.session = session
        self.match = match
        self.innings = innings

    @classmethod
    def start(
        cls,
        session: Session,
        match: Match,
        innings_number: int,
        batting_order: Sequence[str],
        striker_id: str,
        non_striker_id: str,
        bowler_id: str,
    ) -> "InningsEngine":
        """
        Record the opening striker, non-striker and bowler for an innings.
        An innings with no balls yet may be reopened with a new selection.
        """
        if match.is_closed:
            raise MatchClosedError(f"Match is {match.status.value}")
        innings = match.innings_by_number(innings_number)
        if innings is not None and cls(session, match, innings).balls():
            raise InningsStartedError(f"Innings {innings_number} already has balls recorded")
        if innings is None:
            innings = Innings(match_id=match.id, innings_number=innings_number)

        innings.batting_order = list(batting_order)
        innings.opening_striker_id = striker_id
        innings.opening_non_striker_id = non_striker_id
        innings.opening_bowler_id = bowler_id
        session.add(innings)
        match.current_innings = innings_number
        match.status = MatchStatus.LIVE
        session.commit()
        session.refresh(match)
        logger.info("Match %s innings %s opened: %s & %s v %s",
                    match.id, innings_number, striker_id, non_striker_id, bowler_id)
        return cls(session, match, innings)

    @classmethod
    def for_match(cls, session: Session, match: Match) -> Optional["InningsEngine"]:
        """Engine for the match's current innings. None if not started."""
        if match.current_innings is None:
            return None
        innings = match.innings_by_number(match.current_innings)
        if innings is None:
            return None
        return cls(session, match, innings)

    @property
    def innings_number(self) -> int:
        return self.innings.innings_number

    def opening_state(self) -> MatchState:
        return MatchState.opening(
            self.innings.opening_striker_id,
            self.innings.opening_non_striker_id,
            self.innings.opening_bowler_id,
        )

    def opening_lineup(self) -> Lineup:
        return Lineup(batting_order=tuple(self.innings.batting_order or ()))

    def balls(self) -> list[Ball]:
        return self.session.query(Ball).filter_by(
            match_id=self.match.id,
            innings_number=self.innings_number,
        ).order_by(Ball.sequence).all()

    def events(self) -> list[BallEvent]:
        return [ball.to_event() for ball in self.balls()]

    def current(self) -> ReplayResult:
        return replay(self.events(), self.opening_state(), self.opening_lineup())

    def _check_striker(self, event: BallEvent, state: MatchState):
        # Wickets add the ball's striker to the out set, so it must be the
        # batsman the replay has on strike
        if event.striker_id != state.striker:
            raise StrikerMismatchError(
                f"{event.striker_id} is not on strike, {state.striker} is facing"
            )

    def preview(self, event: BallEvent) -> MatchState:
        committed = self.current()
        self._check_striker(event, committed.state)
        return preview_next_state(committed.state, event, committed.lineup)

    def record(self, event: BallEvent) -> tuple[Ball, ReplayResult]:
        """Append a ball to the log and replay the innings including it"""
        if self.match.is_closed:
            raise MatchClosedError(f"Match is {self.match.status.value}")

        balls = self.balls()
        committed = replay([b.to_event() for b in balls], self.opening_state(), self.opening_lineup())
        if committed.all_out:
            raise InningsCompleteError(f"Innings {self.innings_number} is complete, all out")
        self._check_striker(event, committed.state)

        ball = Ball(
            match_id=self.match.id,
            innings_number=self.innings_number,
            sequence=(balls[-1].sequence + 1) if balls else 1,
            over=committed.state.over,
            ball_number=committed.state.ball_in_over,
            striker_id=event.striker_id,
            bowler_id=event.bowler_id,
            runs=event.runs_off_bat,
            extras=event.extra_type,
            extra_runs=event.extra_runs,
            is_wicket=event.is_wicket,
            wicket_type=event.wicket_type,
        )
        self.session.add(ball)
        self.session.commit()
        self.session.refresh(ball)

        result = self.current()
        logger.info("Match %s innings %s: recorded %r, now %s (%s)",
                    self.match.id, self.innings_number, event,
                    result.state.overs_display, result.state.striker)
        return ball, result

    def undo_preview(self) -> UndoResult:
        """What an undo would leave behind; the log is not touched"""
        return undo_last(self.events(), self.opening_state(), self.opening_lineup())

    def undo(self) -> UndoResult:
        """Delete the last ball and replay what remains"""
        if self.match.is_closed:
            raise MatchClosedError(f"Match is {self.match.status.value}")
        balls = self.balls()
        result = undo_last([b.to_event() for b in balls], self.opening_state(), self.opening_lineup())

        last = balls[-1]
        label = f"{last.over}.{last.ball_number}"
        self.session.delete(last)
        self.session.commit()
        logger.info("Match %s innings %s: undid ball %s, %d balls remain",
                    self.match.id, self.innings_number, label, len(result.remaining))
        return result
