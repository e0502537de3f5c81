"""Rule engine for paper soccer.

Rules:
- The ball starts at the centre vertex; Player ONE moves first unless told otherwise.
- A move draws a segment to one of the 8 neighbouring vertices. The target must be in
  bounds, the segment must not run along a boundary line and must not be drawn yet.
- Landing on a boundary vertex, or on a vertex already touched by a drawn segment,
  bounces: the same player moves again.
- Landing in a goal ends the game; the goal side decides the scorer.
- A player left without a legal move loses (or draws when ``stalemate_as_draw`` is set).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import FrozenSet, Iterable, Optional, Tuple

from .geometry import (
    DIRECTIONS,
    GameConfig,
    adjacent,
    center,
    goal_side,
    in_bounds,
    incident_degree,
    is_border_segment,
    is_boundary,
    iter_segments,
    segment_bit,
)
from .types import IN_PROGRESS, Move, Outcome, Player, Position, Segment


@dataclass(frozen=True)
class GameState:
    """Immutable game state.

    ``segments`` is a bitset over segment ids (see :func:`geometry.segment_bit`),
    so deriving a child state costs one integer ``|``. ``legal`` caches the legal
    targets from ``position`` and is empty once the game is over.
    """

    config: GameConfig
    position: Position
    segments: int = 0
    turn: Player = Player.ONE
    extra_turn: bool = False
    outcome: Outcome = IN_PROGRESS
    legal: Tuple[Position, ...] = ()
    move_count: int = 0
    _key_cache: Optional[Tuple] = field(default=None, init=False, repr=False, compare=False)

    @property
    def is_terminal(self) -> bool:
        return self.outcome.is_terminal

    @property
    def winner(self) -> Optional[Player]:
        return self.outcome.winner

    def segment_keys(self) -> FrozenSet[Segment]:
        """Return the drawn segments as canonical position pairs."""

        return frozenset(iter_segments(self.config, self.segments))

    def key(self) -> Tuple:
        """Return a hashable key: position, segment set, player, flags, mobility, outcome."""

        if self._key_cache is None:
            object.__setattr__(
                self,
                "_key_cache",
                (
                    self.position.x,
                    self.position.y,
                    self.segments,
                    self.turn.value,
                    self.extra_turn,
                    len(self.legal),
                    self.outcome.kind.value,
                    None if self.outcome.player is None else self.outcome.player.value,
                ),
            )
        return self._key_cache


def is_legal_step(config: GameConfig, src: Position, dst: Position, segments: int) -> bool:
    """Single legality predicate shared by move generation and move application."""

    if not adjacent(src, dst):
        return False
    if not in_bounds(config, src) or not in_bounds(config, dst):
        return False
    if is_border_segment(config, src, dst):
        return False
    return not segments & segment_bit(config, src, dst)


def legal_moves(config: GameConfig, position: Position, segments: int) -> Tuple[Position, ...]:
    """Return every legal target from ``position`` in a fixed direction order."""

    return tuple(
        target
        for target in (position.offset(dx, dy) for dx, dy in DIRECTIONS)
        if is_legal_step(config, position, target, segments)
    )


def will_bounce(config: GameConfig, target: Position, segments: int) -> bool:
    """Whether landing on ``target`` grants another move.

    ``segments`` must be the set *before* the move's own segment is drawn.
    """

    if is_boundary(config, target):
        return True
    return incident_degree(config, target, segments) >= 1


def new_game(config: GameConfig, first: Player = Player.ONE) -> GameState:
    """Create the initial state: ball at the centre, nothing drawn."""

    start = center(config)
    return GameState(
        config=config,
        position=start,
        turn=first,
        legal=legal_moves(config, start, 0),
    )


def apply_move(state: GameState, target: Position) -> Tuple[GameState, bool]:
    """Move the ball to ``target``.

    Returns ``(new_state, True)`` when the move was played, or the unchanged
    state and ``False`` when it was rejected.
    """

    config = state.config
    if state.is_terminal:
        return state, False
    if not is_legal_step(config, state.position, target, state.segments):
        return state, False

    bounce = will_bounce(config, target, state.segments)
    segments = state.segments | segment_bit(config, state.position, target)
    move_count = state.move_count + 1

    side = goal_side(config, target)
    if side is not None:
        return (
            GameState(
                config=config,
                position=target,
                segments=segments,
                turn=state.turn,
                extra_turn=False,
                outcome=Outcome.won(side.scorer),
                legal=(),
                move_count=move_count,
            ),
            True,
        )

    turn = state.turn if bounce else state.turn.opponent()
    legal = legal_moves(config, target, segments)
    if not legal:
        outcome = Outcome.draw() if config.stalemate_as_draw else Outcome.blocked(turn)
        return (
            GameState(
                config=config,
                position=target,
                segments=segments,
                turn=turn,
                extra_turn=False,
                outcome=outcome,
                legal=(),
                move_count=move_count,
            ),
            True,
        )

    return (
        GameState(
            config=config,
            position=target,
            segments=segments,
            turn=turn,
            extra_turn=bounce,
            legal=legal,
            move_count=move_count,
        ),
        True,
    )


def replay(config: GameConfig, moves: Iterable[Move], first: Player = Player.ONE) -> Tuple[GameState, int]:
    """Rebuild a state by replaying ``moves`` from the initial position.

    Replay stops at the first move that does not start at the ball or is not
    legal; the remaining moves are ignored. Returns the state and how many moves
    were applied so callers can detect truncation.
    """

    state = new_game(config, first=first)
    applied = 0
    for move in moves:
        if move.from_pos != state.position:
            break
        state, ok = apply_move(state, move.to_pos)
        if not ok:
            break
        applied += 1
    return state, applied


def winner(state: GameState) -> Optional[Player]:
    """Return the winner if the game is decided."""

    return state.outcome.winner


def is_terminal(state: GameState) -> bool:
    """Whether the state represents a finished game."""

    return state.outcome.is_terminal
