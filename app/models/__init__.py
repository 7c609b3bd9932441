from app.models.match import Match, Innings, Ball

__all__ = [
    "Match",
    "Innings",
    "Ball",
]
