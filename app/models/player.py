from typing import Optional
from sqlalchemy import String, Integer, ForeignKey, Enum
from sqlalchemy.orm import Mapped, mapped_column, relationship
import enum
from app.database import Base


class PlayerRole(enum.Enum):
    BATSMAN = "batsman"
    BOWLER = "bowler"
    ALL_ROUNDER = "all_rounder"
    WICKET_KEEPER = "wicket_keeper"


class Player(Base):
    __tablename__ = "players"

    id: Mapped[int] = mapped_column(primary_key=True)
    name: Mapped[str] = mapped_column(String(100))
    role: Mapped[PlayerRole] = mapped_column(Enum(PlayerRole), default=PlayerRole.BATSMAN)
    jersey_number: Mapped[Optional[int]] = mapped_column(Integer, nullable=True)

    team_id: Mapped[Optional[int]] = mapped_column(ForeignKey("teams.id"), nullable=True)
    team: Mapped[Optional["Team"]] = relationship("Team", back_populates="players")

    def __repr__(self):
        return f"<Player {self.name} ({self.role.value})>"
