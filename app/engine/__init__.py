from app.engine.deliveries import BallEvent, ExtraType, WicketType, is_legal
from app.engine.batting_order import Lineup, next_batsman
from app.engine.match_state import (
    MatchState,
    NothingToUndoError,
    apply_ball,
    calculate_match_state,
    preview_next_state,
    replay,
    undo_last,
)

__all__ = [
    "BallEvent",
    "ExtraType",
    "WicketType",
    "is_legal",
    "Lineup",
    "next_batsman",
    "MatchState",
    "NothingToUndoError",
    "apply_ball",
    "calculate_match_state",
    "preview_next_state",
    "replay",
    "undo_last",
]
