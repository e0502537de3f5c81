"""Core data structures for paper soccer.

Rule reminders:
- The field is a grid of vertices (x, y) with 0 <= x <= width and 0 <= y <= height.
- Player ONE attacks the LEFT goal (x = 0); Player TWO attacks the RIGHT goal (x = width).
- A segment is drawn for every move and can never be reused.
"""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Optional, Tuple


class GoalSide(Enum):
    """Goal mouths on the two short sides of the field."""

    LEFT = "LEFT"
    RIGHT = "RIGHT"

    @property
    def scorer(self) -> "Player":
        """Player credited with a goal on this side."""

        return Player.ONE if self is GoalSide.LEFT else Player.TWO


class Player(Enum):
    """Players in the game. Values match the 0/1 player index."""

    ONE = 0
    TWO = 1

    def opponent(self) -> "Player":
        """Return the opposing player."""

        return Player.ONE if self is Player.TWO else Player.TWO

    @property
    def target_side(self) -> GoalSide:
        """Goal this player attacks."""

        return GoalSide.LEFT if self is Player.ONE else GoalSide.RIGHT

    @property
    def own_side(self) -> GoalSide:
        """Goal this player defends."""

        return GoalSide.RIGHT if self is Player.ONE else GoalSide.LEFT


@dataclass(frozen=True, order=True)
class Position:
    """A grid vertex. Ordering is lexicographic on (x, y)."""

    x: int
    y: int

    def __iter__(self):
        yield self.x
        yield self.y

    def offset(self, dx: int, dy: int) -> "Position":
        return Position(self.x + dx, self.y + dy)


Segment = Tuple[Position, Position]


@dataclass(frozen=True)
class Move:
    """A single ball move; ``from_pos`` is the ball position when the move is played."""

    from_pos: Position
    to_pos: Position


class OutcomeKind(Enum):
    IN_PROGRESS = "in_progress"
    WON = "won"
    BLOCKED = "blocked"
    DRAW = "draw"


@dataclass(frozen=True)
class Outcome:
    """Game result.

    ``player`` is the winner for ``WON`` and the player left without a move for
    ``BLOCKED``; it is ``None`` otherwise.
    """

    kind: OutcomeKind = OutcomeKind.IN_PROGRESS
    player: Optional[Player] = None

    @classmethod
    def won(cls, player: Player) -> "Outcome":
        return cls(OutcomeKind.WON, player)

    @classmethod
    def blocked(cls, loser: Player) -> "Outcome":
        return cls(OutcomeKind.BLOCKED, loser)

    @classmethod
    def draw(cls) -> "Outcome":
        return cls(OutcomeKind.DRAW)

    @property
    def is_terminal(self) -> bool:
        return self.kind is not OutcomeKind.IN_PROGRESS

    @property
    def winner(self) -> Optional[Player]:
        """Winning player, counting a blocked opponent as a win."""

        if self.kind is OutcomeKind.WON:
            return self.player
        if self.kind is OutcomeKind.BLOCKED and self.player is not None:
            return self.player.opponent()
        return None

    @property
    def blocked_loser(self) -> Optional[Player]:
        return self.player if self.kind is OutcomeKind.BLOCKED else None


IN_PROGRESS = Outcome()
