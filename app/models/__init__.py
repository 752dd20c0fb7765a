from app.models.player import Player
from app.models.team import Team
from app.models.match import Match, Innings, Over, Delivery

__all__ = [
    "Player",
    "Team",
    "Match",
    "Innings",
    "Over",
    "Delivery",
]
