"""
Delivery definitions for the replay engine.
A BallEvent is one recorded delivery; the event log for an innings is an
ordered tuple of these.
"""
import enum
from dataclasses import dataclass
from typing import Optional, Union


class ExtraType(str, enum.Enum):
    NONE = "none"
    WIDE = "wide"
    NO_BALL = "no-ball"
    BYE = "bye"
    LEG_BYE = "leg-bye"


class WicketType(str, enum.Enum):
    BOWLED = "bowled"
    LBW = "lbw"
    CAUGHT = "caught"
    STUMPED = "stumped"
    RUN_OUT = "run-out"
    HIT_WICKET = "hit-wicket"
    HANDLED_BALL = "handled-ball"
    OBSTRUCTING_FIELD = "obstructing-field"


LEGAL_EXTRAS = frozenset({ExtraType.NONE, ExtraType.BYE, ExtraType.LEG_BYE})


def is_legal(extra_type: Union[ExtraType, str]) -> bool:
    """Only legal deliveries count toward the six-ball over"""
    return ExtraType(extra_type) in LEGAL_EXTRAS


@dataclass(frozen=True)
class BallEvent:
    """A single delivery as recorded by the scorer"""
    striker_id: str
    bowler_id: str
    runs_off_bat: int = 0
    extra_type: ExtraType = ExtraType.NONE
    extra_runs: int = 0
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None

    # Display only; the transition derives over progress from the sequence
    innings: Optional[int] = None
    over: Optional[int] = None
    ball_in_over: Optional[int] = None

    @property
    def total_runs(self) -> int:
        return self.runs_off_bat + self.extra_runs

    @property
    def is_legal(self) -> bool:
        return is_legal(self.extra_type)

    @property
    def is_run_out(self) -> bool:
        return self.is_wicket and self.wicket_type == WicketType.RUN_OUT

    def __repr__(self):
        outcome = "W" if self.is_wicket else str(self.total_runs)
        if self.extra_type != ExtraType.NONE:
            outcome = f"{outcome}{ExtraType(self.extra_type).value}"
        return f"<Ball {self.striker_id} v {self.bowler_id}: {outcome}>"
