from typing import Optional

from app.engine.errors import ValidationError
from app.engine.outcome import BallInput, DismissalKind, ExtraKind, ExtrasInput, WicketInput

MAX_RUNS = 7


class BallInputValidator:
    @staticmethod
    def validate(
        runs: int = 0,
        extras_type: Optional[str] = None,
        extras_runs: int = 0,
        wicket_type: Optional[str] = None,
        dismissed_player_id: Optional[int] = None,
        bowler_id: Optional[int] = None,
        fielder_id: Optional[int] = None,
    ) -> dict:
        """
        Validate raw ball input as entered by a scorer.

        Rules:
        1. Batter runs and extras runs are whole numbers from 0 to 7
        2. Extras type, if given, is wide / no_ball / bye / leg_bye / penalty
        3. Wicket type, if given, is a known dismissal
        4. Penalty runs are awarded on their own, never with batter runs
        """
        errors = []

        for label, value in (("Runs", runs), ("Extras runs", extras_runs)):
            if not isinstance(value, int) or isinstance(value, bool) or not 0 <= value <= MAX_RUNS:
                errors.append(f"{label} must be between 0 and {MAX_RUNS}, got {value!r}")

        extra_kind = None
        if extras_type:
            try:
                extra_kind = ExtraKind(extras_type)
            except ValueError:
                errors.append(f"Unknown extras type: {extras_type}")

        dismissal = None
        if wicket_type:
            try:
                dismissal = DismissalKind(wicket_type)
            except ValueError:
                errors.append(f"Unknown wicket type: {wicket_type}")

        if extra_kind == ExtraKind.PENALTY and runs:
            errors.append("Penalty runs cannot be combined with batter runs")

        ball = None
        if not errors:
            ball = BallInput(
                runs=runs,
                extras=ExtrasInput(extra_kind, extras_runs) if extra_kind else None,
                wicket=WicketInput(
                    dismissal=dismissal,
                    batter_id=dismissed_player_id,
                    bowler_id=bowler_id,
                    fielder_id=fielder_id,
                ) if dismissal else None,
            )

        return {
            "valid": len(errors) == 0,
            "errors": errors,
            "ball": ball,
        }

    @staticmethod
    def parse(**raw) -> BallInput:
        """Validate and return the BallInput, or raise ValidationError listing every problem"""
        result = BallInputValidator.validate(**raw)
        if not result["valid"]:
            raise ValidationError("; ".join(result["errors"]), result["errors"])
        return result["ball"]
