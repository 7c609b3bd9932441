from typing import Optional, List
from sqlalchemy import String, Integer, ForeignKey, Enum, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
import enum
from app.database import Base
from app.engine.deliveries import BallEvent, ExtraType, WicketType, is_legal as is_legal_delivery


class MatchStatus(enum.Enum):
    SCHEDULED = "scheduled"
    LIVE = "live"
    COMPLETED = "completed"
    ABANDONED = "abandoned"


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    venue: Mapped[str] = mapped_column(String(100), default="")
    overs: Mapped[int] = mapped_column(Integer, default=20)

    status: Mapped[MatchStatus] = mapped_column(Enum(MatchStatus), default=MatchStatus.SCHEDULED)
    current_innings: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    innings: Mapped[List["Innings"]] = relationship(
        "Innings", back_populates="match", order_by="Innings.innings_number"
    )

    @property
    def is_closed(self) -> bool:
        return self.status in (MatchStatus.COMPLETED, MatchStatus.ABANDONED)

    def innings_by_number(self, innings_number: int) -> Optional["Innings"]:
        return next((i for i in self.innings if i.innings_number == innings_number), None)

    def __repr__(self):
        return f"<Match {self.name} ({self.status.value})>"


class Innings(Base):
    __tablename__ = "innings"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id"))
    match: Mapped["Match"] = relationship("Match", back_populates="innings")

    innings_number: Mapped[int] = mapped_column(Integer)  # 1 or 2

    # Declared batting order, player ids
    batting_order: Mapped[list] = mapped_column(JSON, default=list)

    # Opening configuration, the replay starts from here
    opening_striker_id: Mapped[str] = mapped_column(String(64))
    opening_non_striker_id: Mapped[str] = mapped_column(String(64))
    opening_bowler_id: Mapped[str] = mapped_column(String(64))

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("match_id", "innings_number", name="unique_match_innings"),
    )

    def __repr__(self):
        return f"<Innings {self.innings_number} of match {self.match_id}>"


class Ball(Base):
    __tablename__ = "balls"

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id"))
    innings_number: Mapped[int] = mapped_column(Integer)

    # Authoritative order within the innings
    sequence: Mapped[int] = mapped_column(Integer)

    # Display only, taken from the replayed state when recorded
    over: Mapped[int] = mapped_column(Integer)
    ball_number: Mapped[int] = mapped_column(Integer)

    striker_id: Mapped[str] = mapped_column(String(64))
    bowler_id: Mapped[str] = mapped_column(String(64))

    runs: Mapped[int] = mapped_column(Integer, default=0)
    extras: Mapped[ExtraType] = mapped_column(
        Enum(ExtraType, values_callable=lambda e: [m.value for m in e]), default=ExtraType.NONE
    )
    extra_runs: Mapped[int] = mapped_column(Integer, default=0)

    is_wicket: Mapped[bool] = mapped_column(default=False)
    wicket_type: Mapped[Optional[WicketType]] = mapped_column(
        Enum(WicketType, values_callable=lambda e: [m.value for m in e]), nullable=True
    )

    created_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    __table_args__ = (
        UniqueConstraint("match_id", "innings_number", "sequence", name="unique_ball_sequence"),
    )

    @property
    def is_legal(self) -> bool:
        return is_legal_delivery(self.extras)

    def to_event(self) -> BallEvent:
        return BallEvent(
            striker_id=self.striker_id,
            bowler_id=self.bowler_id,
            runs_off_bat=self.runs,
            extra_type=self.extras,
            extra_runs=self.extra_runs,
            is_wicket=self.is_wicket,
            wicket_type=self.wicket_type,
            innings=self.innings_number,
            over=self.over,
            ball_in_over=self.ball_number,
        )

    def __repr__(self):
        return f"<Ball {self.over}.{self.ball_number}: {self.runs} runs>"
