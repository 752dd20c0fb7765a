"""
Team Generator - demo franchises with Faker-named squads for trying the scorer
"""
from typing import Optional
from faker import Faker
from sqlalchemy.orm import Session

from app.models.player import Player, PlayerRole
from app.models.team import Team

fake = Faker("en_IN")

FRANCHISE_TEAMS = [
    {"name": "Mumbai Titans", "short_name": "MT"},
    {"name": "Chennai Kings", "short_name": "CK"},
    {"name": "Bangalore Warriors", "short_name": "BW"},
    {"name": "Kolkata Knights", "short_name": "KK"},
    {"name": "Delhi Capitals", "short_name": "DC"},
    {"name": "Hyderabad Sunrisers", "short_name": "HS"},
    {"name": "Rajasthan Royals", "short_name": "RR"},
    {"name": "Punjab Lions", "short_name": "PL"},
]

# Batting order shape of an XI: openers and middle order, keeper, all-rounders, bowlers
SQUAD_ROLES = (
    [PlayerRole.BATSMAN] * 4
    + [PlayerRole.WICKET_KEEPER]
    + [PlayerRole.ALL_ROUNDER] * 2
    + [PlayerRole.BOWLER] * 4
)


class TeamGenerator:
    """Creates demo teams and squads"""

    @classmethod
    def create_team(cls, index: int = 0, seed: Optional[int] = None) -> Team:
        """
        Build one franchise with an eleven-player squad.

        Args:
            index: Position in FRANCHISE_TEAMS
            seed: Seed for Faker so names are reproducible

        Returns:
            Team with its players attached (not yet saved to DB)
        """
        if seed is not None:
            fake.seed_instance(seed)
        data = FRANCHISE_TEAMS[index % len(FRANCHISE_TEAMS)]
        team = Team(name=data["name"], short_name=data["short_name"])
        team.players = [
            Player(name=fake.name_male(), role=role, jersey_number=number)
            for number, role in enumerate(SQUAD_ROLES, start=1)
        ]
        return team

    @classmethod
    def create_fixture_teams(cls, session: Session, seed: Optional[int] = None) -> tuple[Team, Team]:
        """Save two demo teams and return them with IDs"""
        home = cls.create_team(0, seed)
        away = cls.create_team(1)
        session.add_all([home, away])
        session.commit()
        session.refresh(home)
        session.refresh(away)
        return home, away

