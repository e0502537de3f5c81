"""Paper soccer game package."""

from .types import GoalSide, Move, Outcome, OutcomeKind, Player, Position
from .geometry import (
    BOARD_PRESETS,
    GameConfig,
    adjacent,
    goal_rows,
    goal_side,
    in_bounds,
    incident_degree,
    is_border_segment,
    preset_config,
    segment_key,
)
from .engine import (
    GameState,
    apply_move,
    is_legal_step,
    is_terminal,
    legal_moves,
    new_game,
    replay,
    winner,
)
from .agents import (
    DIFFICULTY_PRESETS,
    Agent,
    DifficultySettings,
    MoveAnalysis,
    RandomAgent,
    SearchAgent,
    SearchStats,
    TranspositionCache,
    choose_move,
    evaluate_state,
    preset_difficulty,
    score_move,
    search,
)
from .game_controller import GameController

__all__ = [
    "Agent",
    "BOARD_PRESETS",
    "DIFFICULTY_PRESETS",
    "DifficultySettings",
    "GameConfig",
    "GameController",
    "GameState",
    "GoalSide",
    "Move",
    "MoveAnalysis",
    "Outcome",
    "OutcomeKind",
    "Player",
    "Position",
    "RandomAgent",
    "SearchAgent",
    "SearchStats",
    "TranspositionCache",
    "adjacent",
    "apply_move",
    "choose_move",
    "evaluate_state",
    "goal_rows",
    "goal_side",
    "in_bounds",
    "incident_degree",
    "is_border_segment",
    "is_legal_step",
    "is_terminal",
    "legal_moves",
    "new_game",
    "preset_config",
    "preset_difficulty",
    "replay",
    "score_move",
    "search",
    "segment_key",
    "winner",
]
