"""Board geometry and topology for paper soccer.

Everything here is a pure function of a :class:`GameConfig` and grid
coordinates. Drawn segments are passed around as an ``int`` bitset where each
undirected segment owns one bit (see :func:`segment_bit`).
"""

from __future__ import annotations

from dataclasses import dataclass
from functools import lru_cache
from typing import Optional, Tuple

from .types import GoalSide, Position, Segment

# Fixed enumeration order for neighbours: dx outer, dy inner.
DIRECTIONS: Tuple[Tuple[int, int], ...] = tuple(
    (dx, dy) for dx in (-1, 0, 1) for dy in (-1, 0, 1) if (dx, dy) != (0, 0)
)
# Offsets from the smaller endpoint of a canonical segment to the larger one.
_FORWARD: Tuple[Tuple[int, int], ...] = ((0, 1), (1, -1), (1, 0), (1, 1))


@dataclass(frozen=True)
class GameConfig:
    """Immutable per-game settings.

    ``width`` and ``height`` count grid cells, so vertices run from 0 to
    ``width`` and 0 to ``height`` inclusive. ``goal_width`` is the number of
    goal rows on each vertical border. ``stalemate_as_draw`` turns a player
    left without a legal move into a draw instead of a loss.
    """

    width: int = 10
    height: int = 8
    goal_width: int = 2
    stalemate_as_draw: bool = False

    def __post_init__(self) -> None:
        if self.width < 2 or self.height < 2:
            raise ValueError(f"board must be at least 2x2, got {self.width}x{self.height}")
        if not 1 <= self.goal_width <= self.height - 1:
            raise ValueError(
                f"goal_width must be between 1 and {self.height - 1}, got {self.goal_width}"
            )


BOARD_PRESETS = {
    "small": (10, 8),
    "medium": (14, 10),
    "large": (18, 12),
}


def preset_config(name: str, goal_width: int = 2, stalemate_as_draw: bool = False) -> GameConfig:
    """Return the board for a named size preset."""

    preset = name.lower()
    if preset not in BOARD_PRESETS:
        raise ValueError(f"Unknown board preset '{name}'")
    width, height = BOARD_PRESETS[preset]
    return GameConfig(width=width, height=height, goal_width=goal_width, stalemate_as_draw=stalemate_as_draw)


def center(config: GameConfig) -> Position:
    return Position(config.width // 2, config.height // 2)


def adjacent(a: Position, b: Position) -> bool:
    """Chebyshev distance exactly one."""

    dx = abs(a.x - b.x)
    dy = abs(a.y - b.y)
    if dx == 0 and dy == 0:
        return False
    return dx <= 1 and dy <= 1


def in_bounds(config: GameConfig, p: Position) -> bool:
    return 0 <= p.x <= config.width and 0 <= p.y <= config.height


def is_boundary(config: GameConfig, p: Position) -> bool:
    return p.x == 0 or p.x == config.width or p.y == 0 or p.y == config.height


def is_border_segment(config: GameConfig, a: Position, b: Position) -> bool:
    """Whether a-b runs along one of the four boundary lines."""

    if a.y == 0 and b.y == 0:
        return True
    if a.y == config.height and b.y == config.height:
        return True
    if a.x == 0 and b.x == 0:
        return True
    if a.x == config.width and b.x == config.width:
        return True
    return False


def segment_key(a: Position, b: Position) -> Segment:
    """Canonical undirected identity of the segment a-b."""

    return (a, b) if a <= b else (b, a)


def segment_bit(config: GameConfig, a: Position, b: Position) -> int:
    """Bit owned by the segment a-b inside a segment bitset.

    Ids are laid out per smaller endpoint: four forward directions per vertex.
    """

    lo, hi = segment_key(a, b)
    step = (hi.x - lo.x, hi.y - lo.y)
    index = (lo.x * (config.height + 1) + lo.y) * 4 + _FORWARD.index(step)
    return 1 << index


def segment_from_index(config: GameConfig, index: int) -> Segment:
    vertex, direction = divmod(index, 4)
    x, y = divmod(vertex, config.height + 1)
    dx, dy = _FORWARD[direction]
    return Position(x, y), Position(x + dx, y + dy)


def iter_segments(config: GameConfig, segments: int):
    """Yield the canonical keys of all segments set in ``segments``."""

    index = 0
    while segments:
        if segments & 1:
            yield segment_from_index(config, index)
        segments >>= 1
        index += 1


def has_segment(config: GameConfig, segments: int, a: Position, b: Position) -> bool:
    return bool(segments & segment_bit(config, a, b))


@lru_cache(maxsize=64)
def goal_rows(height: int, goal_width: int) -> Tuple[int, ...]:
    """Goal rows: a floor-centred span of ``goal_width`` rows inside (0, height).

    10x8 with goal width 2 gives rows (3, 4); goal width 3 gives (2, 3, 4).
    """

    raw_start = (height - goal_width) // 2
    max_start = max(1, height - goal_width)
    start = min(max(raw_start, 1), max_start)
    return tuple(y for y in range(start, start + goal_width) if 1 <= y <= height - 1)


def goal_center(config: GameConfig) -> float:
    rows = goal_rows(config.height, config.goal_width)
    if not rows:
        return config.height / 2
    return sum(rows) / len(rows)


def goal_side(config: GameConfig, p: Position) -> Optional[GoalSide]:
    """Return the goal containing ``p`` or ``None``."""

    if p.x != 0 and p.x != config.width:
        return None
    if p.y not in goal_rows(config.height, config.goal_width):
        return None
    return GoalSide.LEFT if p.x == 0 else GoalSide.RIGHT


def incident_degree(config: GameConfig, p: Position, segments: int) -> int:
    """Number of drawn segments touching ``p``."""

    degree = 0
    for dx, dy in DIRECTIONS:
        q = p.offset(dx, dy)
        if not in_bounds(config, q):
            continue
        if segments & segment_bit(config, p, q):
            degree += 1
    return degree
