import logging
from fastapi import APIRouter, Depends, HTTPException
from sqlalchemy.orm import Session
from typing import Optional

from app.database import get_db
from app.models.match import Match, Ball, MatchStatus
from app.engine.innings_engine import (
    InningsEngine, InningsCompleteError, InningsStartedError,
    MatchClosedError, StrikerMismatchError,
)
from app.engine.match_state import NothingToUndoError, ReplayResult
from app.api.schemas import (
    MatchCreate, MatchResponse, StartInningsRequest,
    BallRequest, BallResponse, BallResultResponse,
    MatchStateResponse, CurrentStateResponse, UndoResponse,
    UndoPreviewResponse, InningsResponse,
)

logger = logging.getLogger(__name__)

router = APIRouter(prefix="/matches", tags=["Live Scoring"])


def _get_match(match_id: int, db: Session) -> Match:
    match = db.query(Match).filter_by(id=match_id).first()
    if not match:
        raise HTTPException(status_code=404, detail="Match not found")
    return match


def _get_engine(match: Match, db: Session) -> InningsEngine:
    engine = InningsEngine.for_match(db, match)
    if engine is None:
        raise HTTPException(status_code=404, detail="Innings not started")
    return engine


def _current_state_response(engine: InningsEngine, result: ReplayResult) -> CurrentStateResponse:
    return CurrentStateResponse(
        match_id=engine.match.id,
        innings_number=engine.innings_number,
        state=MatchStateResponse.from_state(result.state),
        balls_recorded=result.applied,
        wickets=result.lineup.wickets,
        all_out=result.all_out,
    )


@router.post("", response_model=MatchResponse)
def create_match(request: MatchCreate, db: Session = Depends(get_db)):
    match = Match(name=request.name, venue=request.venue, overs=request.overs)
    db.add(match)
    db.commit()
    db.refresh(match)
    logger.info("Created match %s: %s", match.id, match.name)
    return match


@router.get("/{match_id}", response_model=MatchResponse)
def get_match(match_id: int, db: Session = Depends(get_db)):
    return _get_match(match_id, db)


@router.post("/{match_id}/start", response_model=CurrentStateResponse)
def start_innings(match_id: int, request: StartInningsRequest, db: Session = Depends(get_db)):
    """Open an innings with the selected striker, non-striker and bowler"""
    match = _get_match(match_id, db)
    try:
        engine = InningsEngine.start(
            db, match,
            innings_number=request.innings_number,
            batting_order=request.batting_order,
            striker_id=request.striker_id,
            non_striker_id=request.non_striker_id,
            bowler_id=request.bowler_id,
        )
    except (InningsStartedError, MatchClosedError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return _current_state_response(engine, engine.current())


@router.post("/{match_id}/balls", response_model=BallResultResponse)
def record_ball(match_id: int, request: BallRequest, db: Session = Depends(get_db)):
    match = _get_match(match_id, db)
    engine = _get_engine(match, db)
    try:
        ball, result = engine.record(request.to_event())
    except (InningsCompleteError, MatchClosedError, StrikerMismatchError) as e:
        raise HTTPException(status_code=400, detail=str(e))
    return BallResultResponse(
        ball=BallResponse.model_validate(ball),
        current=_current_state_response(engine, result),
    )


@router.get("/{match_id}/balls", response_model=list[BallResponse])
def get_balls(match_id: int, innings_number: Optional[int] = None, db: Session = Depends(get_db)):
    match = _get_match(match_id, db)
    query = db.query(Ball).filter_by(match_id=match.id)
    if innings_number is not None:
        query = query.filter_by(innings_number=innings_number)
    return query.order_by(Ball.innings_number, Ball.sequence).all()


@router.get("/{match_id}/current-state", response_model=CurrentStateResponse)
def get_current_state(match_id: int, db: Session = Depends(get_db)):
    match = _get_match(match_id, db)
    engine = _get_engine(match, db)
    return _current_state_response(engine, engine.current())


@router.post("/{match_id}/next-state", response_model=MatchStateResponse)
def preview_next_state(match_id: int, request: BallRequest, db: Session = Depends(get_db)):
    """State the pending ball would produce; nothing is recorded"""
    match = _get_match(match_id, db)
    engine = _get_engine(match, db)
    try:
        state = engine.preview(request.to_event())
    except StrikerMismatchError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return MatchStateResponse.from_state(state)


@router.post("/{match_id}/undo", response_model=UndoResponse)
def undo_last_ball(match_id: int, db: Session = Depends(get_db)):
    match = _get_match(match_id, db)
    engine = _get_engine(match, db)
    try:
        undone = engine.undo()
    except (NothingToUndoError, MatchClosedError) as e:
        raise HTTPException(status_code=400, detail=str(e))

    # Replay again from the log so the response reflects what is stored
    current = engine.current()
    return UndoResponse(
        removed_ball=repr(undone.removed),
        current=_current_state_response(engine, current),
        should_show_innings_setup=undone.history_empty and engine.innings_number > 1,
    )


@router.get("/{match_id}/undo-preview", response_model=UndoPreviewResponse)
def preview_undo(match_id: int, db: Session = Depends(get_db)):
    """State the scorer would be left with if the last ball were undone"""
    match = _get_match(match_id, db)
    engine = _get_engine(match, db)
    try:
        undone = engine.undo_preview()
    except NothingToUndoError as e:
        raise HTTPException(status_code=400, detail=str(e))
    return UndoPreviewResponse(
        last_ball=repr(undone.removed),
        state=MatchStateResponse.from_state(undone.state),
        history_empty=undone.history_empty,
    )


@router.get("/{match_id}/innings", response_model=list[InningsResponse])
def get_innings(match_id: int, db: Session = Depends(get_db)):
    match = _get_match(match_id, db)
    return [
        InningsResponse(
            innings_number=innings.innings_number,
            batting_order=innings.batting_order or [],
            opening_striker_id=innings.opening_striker_id,
            opening_non_striker_id=innings.opening_non_striker_id,
            opening_bowler_id=innings.opening_bowler_id,
            balls_recorded=len(InningsEngine(db, match, innings).balls()),
        )
        for innings in match.innings
    ]


def _close_match(match: Match, status: MatchStatus, db: Session) -> Match:
    if match.is_closed:
        raise HTTPException(status_code=400, detail=f"Match is already {match.status.value}")
    match.status = status
    db.commit()
    db.refresh(match)
    logger.info("Match %s %s", match.id, status.value)
    return match


@router.post("/{match_id}/end", response_model=MatchResponse)
def end_match(match_id: int, db: Session = Depends(get_db)):
    return _close_match(_get_match(match_id, db), MatchStatus.COMPLETED, db)


@router.post("/{match_id}/abandon", response_model=MatchResponse)
def abandon_match(match_id: int, db: Session = Depends(get_db)):
    return _close_match(_get_match(match_id, db), MatchStatus.ABANDONED, db)
