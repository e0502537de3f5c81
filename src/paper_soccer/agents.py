"""Agents for playing paper soccer.

The search agent scores every legal move with a one-ply heuristic and, above
the easy tier, refines the best candidates with minimax and alpha-beta pruning.
Scores are from the agent's point of view: higher is better for the agent.
"""

from __future__ import annotations

import logging
import random
import time
from dataclasses import dataclass, replace
from enum import Enum
from typing import Dict, List, Optional, Union

from . import engine
from .engine import GameState
from .geometry import goal_center, goal_side, incident_degree
from .types import GoalSide, OutcomeKind, Player, Position

logger = logging.getLogger(__name__)

WIN_SCORE = 100000.0
LOSS_SCORE = -WIN_SCORE
TIE_EPSILON = 1e-3


@dataclass(frozen=True)
class DifficultySettings:
    """Tuning table for one difficulty tier.

    ``candidate_limit`` of ``None`` searches every candidate. Easy play replaces
    search with ``score * noise_factor + uniform(0, noise_range)``.
    """

    name: str
    search_depth: int
    depth_weight: float
    candidate_limit: Optional[int]
    noise_factor: float = 0.0
    noise_range: float = 0.0


DIFFICULTY_PRESETS: Dict[str, DifficultySettings] = {
    "easy": DifficultySettings("easy", search_depth=0, depth_weight=0.0, candidate_limit=None, noise_factor=0.55, noise_range=160.0),
    "normal": DifficultySettings("normal", search_depth=2, depth_weight=0.6, candidate_limit=8),
    "hard": DifficultySettings("hard", search_depth=4, depth_weight=0.75, candidate_limit=None),
}


def preset_difficulty(name: str) -> DifficultySettings:
    preset = name.lower()
    if preset not in DIFFICULTY_PRESETS:
        raise ValueError(f"Unknown difficulty '{name}'")
    return DIFFICULTY_PRESETS[preset]


@dataclass
class MoveAnalysis:
    """One-ply evaluation of a candidate target."""

    move: Position
    score: float
    next_state: GameState


@dataclass
class SearchStats:
    """Aggregated statistics from a single move choice."""

    nodes: int = 0
    cache_hits: int = 0
    cache_stores: int = 0
    cache_cutoffs: int = 0
    extensions: int = 0
    depth_reached: int = 0
    elapsed_ms: float = 0.0


class TranspositionCache:
    """Search memo keyed by :meth:`GameState.key`, owned by one move choice."""

    class Bound(str, Enum):
        EXACT = "EXACT"
        LOWER = "LOWER"
        UPPER = "UPPER"

    @dataclass
    class Entry:
        value: float
        depth: int
        bound: "TranspositionCache.Bound"

    def __init__(self) -> None:
        self._table: Dict[tuple, "TranspositionCache.Entry"] = {}
        self.hits = 0
        self.stores = 0

    def __len__(self) -> int:
        return len(self._table)

    def lookup(self, key: tuple, depth: int) -> Optional["TranspositionCache.Entry"]:
        """Return the entry for ``key`` if it was searched at least ``depth`` deep."""

        entry = self._table.get(key)
        if entry is None or entry.depth < depth:
            return None
        self.hits += 1
        return entry

    def store(self, key: tuple, depth: int, value: float, bound: "TranspositionCache.Bound") -> None:
        existing = self._table.get(key)
        if existing and existing.depth > depth:
            return
        self._table[key] = self.Entry(value=value, depth=depth, bound=bound)
        self.stores += 1


def _moves(state: GameState):
    if state.legal or state.is_terminal:
        return state.legal
    return engine.legal_moves(state.config, state.position, state.segments)


def _goal_reachable(state: GameState, moves, player: Player) -> bool:
    side = player.target_side
    return any(goal_side(state.config, m) is side for m in moves)


def _progress(state: GameState, x: int, player: Player) -> int:
    """Columns covered from ``player``'s own goal line toward its target."""

    return x if player.target_side is GoalSide.RIGHT else state.config.width - x


def evaluate_state(state: GameState, agent: Player = Player.TWO) -> float:
    """Static evaluation of ``state`` for ``agent``."""

    winner = state.winner
    if winner is not None:
        return WIN_SCORE if winner is agent else LOSS_SCORE
    if state.outcome.kind is OutcomeKind.DRAW:
        return 0.0

    config = state.config
    pos = state.position
    opponent = agent.opponent()
    progress = _progress(state, pos.x, agent)

    score = (progress - config.width / 2) * 26
    score -= abs(goal_center(config) - pos.y) * 9
    score += (progress - (config.width - progress)) * 4

    edge_x = min(pos.x, config.width - pos.x)
    edge_y = min(pos.y, config.height - pos.y)
    score += edge_x * 3.5
    score += edge_y * 2.5

    moves = _moves(state)
    mobility = len(moves)
    score += (1 if state.turn is agent else -1) * mobility * 3.5
    score -= mobility * 1.6

    if _goal_reachable(state, moves, agent):
        score += 200
    if _goal_reachable(state, moves, opponent):
        score -= 220 + 260

    if edge_x <= 1 or edge_y <= 1:
        score -= 45
    return score


def score_move(state: GameState, target: Position, player: Player) -> MoveAnalysis:
    """Play ``target`` for ``player`` on a copy and score the result one ply deep."""

    config = state.config
    result, _ = engine.apply_move(state, target)
    opponent = player.opponent()

    if result.winner is not None:
        score = WIN_SCORE if result.winner is player else LOSS_SCORE
        return MoveAnalysis(move=target, score=score, next_state=result)

    if result.outcome.kind is OutcomeKind.DRAW:
        # Leaving the opponent stuck beats getting stuck ourselves.
        score = -200.0 + (20.0 if result.turn is opponent else 0.0)
        return MoveAnalysis(move=target, score=score, next_state=result)

    direction = 1 if player.target_side is GoalSide.RIGHT else -1
    target_x = config.width if direction == 1 else 0
    own_goal_x = 0 if direction == 1 else config.width

    score = (target.x - state.position.x) * direction * 42.0
    score -= abs(target_x - target.x) * 6
    score -= abs(goal_center(config) - target.y) * 9
    score += abs(target.x - own_goal_x) * 3.5
    score += min(target.y, config.height - target.y) * 4
    if abs(target.x - own_goal_x) <= 1:
        score -= 45

    replies = result.legal
    if result.extra_turn:
        score += 18
        score += len(replies) * 1.8
        if _goal_reachable(result, replies, player):
            score += 120
        counters = sum(1 for follow in replies if goal_side(config, follow) is opponent.target_side)
        score -= counters * 90
    else:
        if _goal_reachable(result, replies, opponent):
            score -= 160
        score -= len(replies) * 2.4
        if replies and all(incident_degree(config, follow, result.segments) >= 4 for follow in replies):
            score += 55

    return MoveAnalysis(move=target, score=score, next_state=result)


def should_extend(state: GameState) -> bool:
    """Volatile positions get one extra ply at the search horizon."""

    if state.is_terminal:
        return False
    if state.extra_turn:
        return True
    moves = _moves(state)
    if len(moves) <= 2:
        return True
    return any(goal_side(state.config, m) is not None for m in moves)


def _time_check(deadline: Optional[float]) -> None:
    if deadline is not None and time.monotonic() > deadline:
        raise TimeoutError


def search(
    state: GameState,
    depth: int,
    alpha: float = float("-inf"),
    beta: float = float("inf"),
    allow_extension: bool = True,
    cache: Optional[TranspositionCache] = None,
    agent: Player = Player.TWO,
    stats: Optional[SearchStats] = None,
    deadline: Optional[float] = None,
) -> float:
    """Minimax value of ``state`` for ``agent`` with alpha-beta pruning.

    ``agent`` maximizes and the opponent minimizes; a bounce keeps the same
    side to move. At the horizon a volatile position is searched one more ply
    when ``allow_extension`` is set; the extension itself never extends again.
    Raises ``TimeoutError`` once ``deadline`` (a ``time.monotonic`` value) passes.
    """

    _time_check(deadline)
    if stats is not None:
        stats.nodes += 1

    alpha_orig, beta_orig = alpha, beta
    key = state.key() if cache is not None else None
    if cache is not None:
        entry = cache.lookup(key, depth)
        if entry is not None:
            if entry.bound is TranspositionCache.Bound.EXACT:
                return entry.value
            if entry.bound is TranspositionCache.Bound.LOWER:
                alpha = max(alpha, entry.value)
            else:
                beta = min(beta, entry.value)
            if alpha >= beta:
                if stats is not None:
                    stats.cache_cutoffs += 1
                return entry.value

    if depth <= 0 or state.is_terminal:
        if depth <= 0 and allow_extension and should_extend(state):
            if stats is not None:
                stats.extensions += 1
            value = search(state, 1, alpha, beta, False, cache, agent, stats, deadline)
        else:
            value = evaluate_state(state, agent)
        _store(cache, key, depth, value, alpha_orig, beta_orig)
        return value

    moves = _moves(state)
    if not moves:
        if state.config.stalemate_as_draw:
            return 0.0
        return LOSS_SCORE if state.turn is agent else WIN_SCORE

    maximizing = state.turn is agent
    value = float("-inf") if maximizing else float("inf")
    for target in moves:
        child, _ = engine.apply_move(state, target)
        child_value = search(child, depth - 1, alpha, beta, allow_extension, cache, agent, stats, deadline)
        if maximizing:
            value = max(value, child_value)
            alpha = max(alpha, value)
        else:
            value = min(value, child_value)
            beta = min(beta, value)
        if alpha >= beta:
            break

    _store(cache, key, depth, value, alpha_orig, beta_orig)
    return value


def _store(
    cache: Optional[TranspositionCache],
    key: Optional[tuple],
    depth: int,
    value: float,
    alpha: float,
    beta: float,
) -> None:
    if cache is None or key is None:
        return
    if value <= alpha:
        bound = TranspositionCache.Bound.UPPER
    elif value >= beta:
        bound = TranspositionCache.Bound.LOWER
    else:
        bound = TranspositionCache.Bound.EXACT
    cache.store(key, depth, value, bound)


def _resolve_settings(difficulty: Union[str, DifficultySettings]) -> DifficultySettings:
    if isinstance(difficulty, DifficultySettings):
        return difficulty
    return preset_difficulty(difficulty)


def _pick_best(
    candidates: List[MoveAnalysis],
    depth: int,
    settings: DifficultySettings,
    cache: TranspositionCache,
    agent: Player,
    stats: Optional[SearchStats],
    deadline: Optional[float],
) -> MoveAnalysis:
    chosen: Optional[MoveAnalysis] = None
    best_score = float("-inf")
    for analysis in candidates:
        total = analysis.score
        if depth > 0 and not analysis.next_state.is_terminal:
            value = search(
                analysis.next_state,
                depth - 1,
                allow_extension=True,
                cache=cache,
                agent=agent,
                stats=stats,
                deadline=deadline,
            )
            total += value * settings.depth_weight
        if total > best_score + TIE_EPSILON:
            best_score = total
            chosen = analysis
        elif chosen is not None and abs(total - best_score) <= TIE_EPSILON:
            if analysis.score > chosen.score + TIE_EPSILON:
                chosen = analysis
    return chosen if chosen is not None else candidates[0]


def choose_move(
    state: GameState,
    difficulty: Union[str, DifficultySettings] = "normal",
    stalemate_as_draw: Optional[bool] = None,
    rng: Optional[random.Random] = None,
    time_budget_ms: Optional[int] = None,
    stats: Optional[SearchStats] = None,
) -> MoveAnalysis:
    """Pick a move for the player to act in ``state``.

    ``stalemate_as_draw`` overrides the rule in ``state.config`` for the
    look-ahead. ``rng`` drives easy-tier noise; pass a seeded ``random.Random``
    for reproducible choices. With ``time_budget_ms`` the search deepens one ply
    at a time and keeps the deepest completed result.

    The caller must not ask for a move in a finished or blocked position.
    """

    start = time.monotonic()
    if stalemate_as_draw is not None and stalemate_as_draw != state.config.stalemate_as_draw:
        state = replace(state, config=replace(state.config, stalemate_as_draw=stalemate_as_draw))

    moves = _moves(state)
    if state.is_terminal or not moves:
        raise ValueError("No legal moves available")

    settings = _resolve_settings(difficulty)
    agent = state.turn
    analyses = [score_move(state, target, agent) for target in moves]

    if settings.search_depth <= 0:
        generator = rng or random.Random()
        chosen = analyses[0]
        best_score = float("-inf")
        for analysis in analyses:
            jittered = analysis.score * settings.noise_factor + generator.random() * settings.noise_range
            if jittered > best_score:
                best_score = jittered
                chosen = analysis
    else:
        ordered = sorted(analyses, key=lambda a: a.score, reverse=True)
        if settings.candidate_limit is not None:
            ordered = ordered[: settings.candidate_limit]
        cache = TranspositionCache()
        if time_budget_ms is None:
            chosen = _pick_best(ordered, settings.search_depth, settings, cache, agent, stats, None)
            if stats is not None:
                stats.depth_reached = settings.search_depth
        else:
            deadline = start + time_budget_ms / 1000.0
            chosen = ordered[0]
            for depth in range(1, settings.search_depth + 1):
                try:
                    chosen = _pick_best(ordered, depth, settings, cache, agent, stats, deadline)
                except TimeoutError:
                    break
                if stats is not None:
                    stats.depth_reached = depth
        if stats is not None:
            stats.cache_hits = cache.hits
            stats.cache_stores = cache.stores

    if stats is not None:
        stats.elapsed_ms = (time.monotonic() - start) * 1000.0
    if logger.isEnabledFor(logging.DEBUG):
        for analysis in sorted(analyses, key=lambda a: a.score, reverse=True):
            logger.debug("candidate %s score=%.1f", analysis.move, analysis.score)
        logger.debug("%s chose %s (score=%.1f)", settings.name, chosen.move, chosen.score)
    return chosen


class Agent:
    """Base class for agents."""

    def choose_move(self, state: GameState, time_budget_ms: Optional[int] = None) -> Position:  # noqa: D401
        """Return the target vertex to move the ball to."""

        raise NotImplementedError


class RandomAgent(Agent):
    """Agent that selects a random legal move with reproducible seeding."""

    def __init__(self, seed: Optional[int] = None):
        self._rng = random.Random(seed)

    def choose_move(self, state: GameState, time_budget_ms: Optional[int] = None) -> Position:
        moves = _moves(state)
        if state.is_terminal or not moves:
            raise ValueError("No legal moves available")
        return self._rng.choice(list(moves))


class SearchAgent(Agent):
    """Agent playing at one of the difficulty tiers."""

    def __init__(
        self,
        difficulty: Union[str, DifficultySettings] = "normal",
        seed: Optional[int] = None,
        stalemate_as_draw: Optional[bool] = None,
    ):
        self.settings = _resolve_settings(difficulty)
        self.stalemate_as_draw = stalemate_as_draw
        self._rng = random.Random(seed)
        self.last_stats: Optional[SearchStats] = None
        self.last_analysis: Optional[MoveAnalysis] = None

    def choose_move(self, state: GameState, time_budget_ms: Optional[int] = None) -> Position:
        stats = SearchStats()
        analysis = choose_move(
            state,
            self.settings,
            stalemate_as_draw=self.stalemate_as_draw,
            rng=self._rng,
            time_budget_ms=time_budget_ms,
            stats=stats,
        )
        self.last_stats = stats
        self.last_analysis = analysis
        return analysis.move
