"""
Pydantic schemas for API request/response models
"""
from pydantic import BaseModel, Field, model_validator
from typing import Optional
from datetime import datetime

from app.engine.deliveries import BallEvent, ExtraType, WicketType
from app.engine.match_state import MatchState
from app.models.match import MatchStatus


# Match Schemas
class MatchCreate(BaseModel):
    name: str
    venue: str = ""
    overs: int = Field(default=20, gt=0)


class MatchResponse(BaseModel):
    id: int
    name: str
    venue: str
    overs: int
    status: MatchStatus
    current_innings: Optional[int] = None
    created_at: datetime

    class Config:
        from_attributes = True


class StartInningsRequest(BaseModel):
    innings_number: int = Field(default=1, ge=1, le=4)
    batting_order: list[str]
    striker_id: str = Field(min_length=1)
    non_striker_id: str = Field(min_length=1)
    bowler_id: str = Field(min_length=1)

    @model_validator(mode="after")
    def check_openers(self):
        if self.striker_id == self.non_striker_id:
            raise ValueError("Striker and non-striker must be different players")
        return self


# Ball Schemas
class BallRequest(BaseModel):
    """A delivery as entered by the scorer, validated before it reaches the engine"""
    striker_id: str = Field(min_length=1)
    bowler_id: str = Field(min_length=1)
    runs: int = Field(default=0, ge=0)
    extras: ExtraType = ExtraType.NONE
    extra_runs: int = Field(default=0, ge=0)
    is_wicket: bool = False
    wicket_type: Optional[WicketType] = None

    @model_validator(mode="after")
    def check_wicket(self):
        if self.is_wicket and self.wicket_type is None:
            raise ValueError("wicket_type is required when is_wicket is set")
        if not self.is_wicket and self.wicket_type is not None:
            raise ValueError("wicket_type given for a ball that is not a wicket")
        return self

    def to_event(self) -> BallEvent:
        return BallEvent(
            striker_id=self.striker_id,
            bowler_id=self.bowler_id,
            runs_off_bat=self.runs,
            extra_type=self.extras,
            extra_runs=self.extra_runs,
            is_wicket=self.is_wicket,
            wicket_type=self.wicket_type,
        )


class BallResponse(BaseModel):
    id: int
    innings_number: int
    sequence: int
    over: int
    ball_number: int
    striker_id: str
    bowler_id: str
    runs: int
    extras: ExtraType
    extra_runs: int
    is_legal: bool
    is_wicket: bool
    wicket_type: Optional[WicketType] = None
    created_at: datetime

    class Config:
        from_attributes = True


# State Schemas
class MatchStateResponse(BaseModel):
    striker: str
    non_striker: str
    bowler: str
    over: int
    ball_in_over: int
    legal_balls_in_over: int
    overs: str

    @classmethod
    def from_state(cls, state: MatchState) -> "MatchStateResponse":
        return cls(
            striker=state.striker,
            non_striker=state.non_striker,
            bowler=state.bowler,
            over=state.over,
            ball_in_over=state.ball_in_over,
            legal_balls_in_over=state.legal_balls_in_over,
            overs=state.overs_display,
        )


class CurrentStateResponse(BaseModel):
    match_id: int
    innings_number: int
    state: MatchStateResponse
    balls_recorded: int
    wickets: int
    all_out: bool


class BallResultResponse(BaseModel):
    ball: BallResponse
    current: CurrentStateResponse


class UndoResponse(BaseModel):
    removed_ball: str
    current: CurrentStateResponse
    should_show_innings_setup: bool


class UndoPreviewResponse(BaseModel):
    """State an undo would leave; nothing has been removed yet"""
    last_ball: str
    state: MatchStateResponse
    history_empty: bool


# Innings Schemas
class InningsResponse(BaseModel):
    innings_number: int
    batting_order: list[str]
    opening_striker_id: str
    opening_non_striker_id: str
    opening_bowler_id: str
    balls_recorded: int
