from typing import Optional, List
from sqlalchemy import String, Integer, Float, ForeignKey, Enum, DateTime, JSON, UniqueConstraint
from sqlalchemy.orm import Mapped, mapped_column, relationship
from datetime import datetime
from app.database import Base
from app.engine.outcome import DismissalKind, ExtraKind
from app.engine.state import InningsStatus, MatchStatus, TossDecision, WinType


class Match(Base):
    __tablename__ = "matches"

    id: Mapped[int] = mapped_column(primary_key=True)

    # Teams and their selected players (list of player ids)
    team_a_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    team_b_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    team_a: Mapped["Team"] = relationship("Team", foreign_keys=[team_a_id])
    team_b: Mapped["Team"] = relationship("Team", foreign_keys=[team_b_id])
    team_a_players: Mapped[list] = mapped_column(JSON, default=list)
    team_b_players: Mapped[list] = mapped_column(JSON, default=list)

    # Match info
    total_overs: Mapped[int] = mapped_column(Integer, default=20)
    venue: Mapped[str] = mapped_column(String(100), default="TBD")
    match_date: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    # Toss
    toss_winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    toss_decision: Mapped[Optional[TossDecision]] = mapped_column(Enum(TossDecision), nullable=True)

    # Status
    status: Mapped[MatchStatus] = mapped_column(Enum(MatchStatus), default=MatchStatus.UPCOMING)
    current_innings: Mapped[int] = mapped_column(Integer, default=1)

    # Result
    winner_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    win_margin: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    win_type: Mapped[Optional[WinType]] = mapped_column(Enum(WinType), nullable=True)
    result_summary: Mapped[Optional[str]] = mapped_column(String(200), nullable=True)

    # Relationships
    innings: Mapped[List["Innings"]] = relationship(
        "Innings", back_populates="match", order_by="Innings.innings_number"
    )

    def __repr__(self):
        return f"<Match {self.team_a.short_name} vs {self.team_b.short_name}>"


class Innings(Base):
    __tablename__ = "innings"
    __table_args__ = (
        UniqueConstraint("match_id", "innings_number", name="unique_match_innings"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    match_id: Mapped[int] = mapped_column(ForeignKey("matches.id"))
    match: Mapped["Match"] = relationship("Match", back_populates="innings")

    batting_team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))
    bowling_team_id: Mapped[int] = mapped_column(ForeignKey("teams.id"))

    innings_number: Mapped[int] = mapped_column(Integer)  # 1 or 2
    total_overs: Mapped[int] = mapped_column(Integer)

    # Score
    total_runs: Mapped[int] = mapped_column(Integer, default=0)
    wickets: Mapped[int] = mapped_column(Integer, default=0)
    total_balls: Mapped[int] = mapped_column(Integer, default=0)
    current_over: Mapped[int] = mapped_column(Integer, default=0)
    current_over_balls: Mapped[int] = mapped_column(Integer, default=0)
    extras: Mapped[dict] = mapped_column(JSON, default=dict)
    run_rate: Mapped[float] = mapped_column(Float, default=0.0)
    required_run_rate: Mapped[Optional[float]] = mapped_column(Float, nullable=True)

    # Target (for 2nd innings)
    target: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    status: Mapped[InningsStatus] = mapped_column(Enum(InningsStatus), default=InningsStatus.NOT_STARTED)

    # Players at the crease; None while a selection is pending
    striker_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    non_striker_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    current_bowler_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    # Stat lines, in batting order / order of first bowling
    batters: Mapped[list] = mapped_column(JSON, default=list)
    bowlers: Mapped[list] = mapped_column(JSON, default=list)
    fall_of_wickets: Mapped[list] = mapped_column(JSON, default=list)

    overs: Mapped[List["Over"]] = relationship(
        "Over", back_populates="innings", order_by="Over.over_number", cascade="all, delete-orphan"
    )
    ball_events: Mapped[List["Delivery"]] = relationship(
        "Delivery", back_populates="innings", order_by="Delivery.sequence"
    )

    @property
    def overs_display(self) -> str:
        return f"{self.total_balls // 6}.{self.total_balls % 6}"

    def __repr__(self):
        return f"<Innings {self.innings_number}: {self.total_runs}/{self.wickets} ({self.overs_display})>"


class Over(Base):
    __tablename__ = "overs"
    __table_args__ = (
        UniqueConstraint("innings_id", "over_number", name="unique_innings_over"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    innings_id: Mapped[int] = mapped_column(ForeignKey("innings.id"))
    innings: Mapped["Innings"] = relationship("Innings", back_populates="overs")

    over_number: Mapped[int] = mapped_column(Integer)  # 0-based
    bowler_id: Mapped[int] = mapped_column(Integer)

    runs: Mapped[int] = mapped_column(Integer, default=0)
    wickets: Mapped[int] = mapped_column(Integer, default=0)
    wides: Mapped[int] = mapped_column(Integer, default=0)
    no_balls: Mapped[int] = mapped_column(Integer, default=0)
    legal_balls: Mapped[int] = mapped_column(Integer, default=0)
    is_maiden: Mapped[bool] = mapped_column(default=False)
    is_complete: Mapped[bool] = mapped_column(default=False)

    def __repr__(self):
        return f"<Over {self.over_number}: {self.runs}-{self.wickets} ({self.legal_balls} balls)>"


class Delivery(Base):
    """Ball event row - inserted once, afterwards only is_undone changes"""
    __tablename__ = "ball_events"
    __table_args__ = (
        UniqueConstraint("innings_id", "sequence", name="unique_innings_sequence"),
    )

    id: Mapped[int] = mapped_column(primary_key=True)
    innings_id: Mapped[int] = mapped_column(ForeignKey("innings.id"))
    innings: Mapped["Innings"] = relationship("Innings", back_populates="ball_events")

    sequence: Mapped[int] = mapped_column(Integer)
    over_number: Mapped[int] = mapped_column(Integer)
    ball_number: Mapped[int] = mapped_column(Integer)  # legal balls in the over, 1-6

    # Players involved
    striker_id: Mapped[int] = mapped_column(Integer)
    non_striker_id: Mapped[int] = mapped_column(Integer)
    bowler_id: Mapped[int] = mapped_column(Integer)

    # Runs
    batter_runs: Mapped[int] = mapped_column(Integer, default=0)
    extras_runs: Mapped[int] = mapped_column(Integer, default=0)
    total_runs: Mapped[int] = mapped_column(Integer, default=0)
    is_legal: Mapped[bool] = mapped_column(default=True)

    # Extras as entered
    extra_type: Mapped[Optional[ExtraKind]] = mapped_column(Enum(ExtraKind), nullable=True)
    extra_input_runs: Mapped[int] = mapped_column(Integer, default=0)

    # Wicket
    dismissal_type: Mapped[Optional[DismissalKind]] = mapped_column(Enum(DismissalKind), nullable=True)
    dismissed_player_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    dismissed_by_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)
    fielder_id: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    completed_over: Mapped[bool] = mapped_column(default=False)
    is_undone: Mapped[bool] = mapped_column(default=False)
    recorded_at: Mapped[datetime] = mapped_column(DateTime, default=datetime.utcnow)

    def __repr__(self):
        return f"<Ball {self.over_number}.{self.ball_number}: {self.total_runs} runs>"
