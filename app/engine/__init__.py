from app.engine.errors import (
    ScoringError, InvalidState, ValidationError, RuleViolation, NotFound, NothingToUndo,
)
from app.engine.outcome import (
    BallInput, ExtrasInput, WicketInput, ExtraKind, DismissalKind, resolve_outcome,
)
from app.engine.state import (
    MatchState, InningsState, TeamSide, MatchStatus, InningsStatus, TossDecision, WinType,
)
from app.engine.aggregator import record_ball
from app.engine.undo import undo_last_ball
from app.engine.replay import replay_innings, verify_innings
from app.engine.match_engine import ScoringResult, ScoringEvent

__all__ = [
    "ScoringError",
    "InvalidState",
    "ValidationError",
    "RuleViolation",
    "NotFound",
    "NothingToUndo",
    "BallInput",
    "ExtrasInput",
    "WicketInput",
    "ExtraKind",
    "DismissalKind",
    "resolve_outcome",
    "MatchState",
    "InningsState",
    "TeamSide",
    "MatchStatus",
    "InningsStatus",
    "TossDecision",
    "WinType",
    "record_ball",
    "undo_last_ball",
    "replay_innings",
    "verify_innings",
    "ScoringResult",
    "ScoringEvent",
]
