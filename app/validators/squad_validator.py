from app.engine.errors import RuleViolation

MIN_SQUAD = 2
MAX_SQUAD = 11


class SquadValidator:
    @staticmethod
    def validate(team_id: int, player_ids: list[int], players: list) -> dict:
        """
        Validate a match squad selection.

        Rules:
        1. Between 2 and 11 players (enough to open the batting)
        2. No player picked twice
        3. Every player belongs to the team
        """
        errors = []

        if not MIN_SQUAD <= len(player_ids) <= MAX_SQUAD:
            errors.append(f"Squad must have {MIN_SQUAD} to {MAX_SQUAD} players, got {len(player_ids)}")

        if len(set(player_ids)) != len(player_ids):
            errors.append("Squad contains duplicate players")

        outsiders = sorted(p.id for p in players if p.team_id != team_id)
        if outsiders:
            errors.append(f"Players not in team {team_id}: {', '.join(str(i) for i in outsiders)}")

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "size": len(set(player_ids)),
        }

    @staticmethod
    def check(team_id: int, player_ids: list[int], players: list) -> None:
        result = SquadValidator.validate(team_id, player_ids, players)
        if not result["valid"]:
            raise RuleViolation("; ".join(result["errors"]))
