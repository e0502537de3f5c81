import pytest

from paper_soccer import engine
from paper_soccer.agents import (
    SearchStats,
    TranspositionCache,
    evaluate_state,
    search,
    should_extend,
)
from paper_soccer.geometry import GameConfig, segment_bit
from paper_soccer.types import Player, Position


def state_at(config, position, segments=0, turn=Player.TWO) -> engine.GameState:
    return engine.GameState(
        config=config,
        position=position,
        segments=segments,
        turn=turn,
        legal=engine.legal_moves(config, position, segments),
    )


def plain_minimax(state, depth, agent):
    if depth <= 0 or state.is_terminal:
        return evaluate_state(state, agent)
    values = [plain_minimax(engine.apply_move(state, t)[0], depth - 1, agent) for t in state.legal]
    return max(values) if state.turn is agent else min(values)


def sample_states():
    config = GameConfig(width=8, height=6, goal_width=2)
    opening = engine.new_game(config, first=Player.TWO)
    played = opening
    for target in (Position(5, 3), Position(5, 2), Position(4, 3)):
        played, _ = engine.apply_move(played, target)
    near_goal = state_at(config, Position(6, 2), segment_bit(config, Position(6, 2), Position(7, 3)))
    return [opening, played, near_goal]


@pytest.mark.parametrize("depth", [1, 2, 3])
def test_alpha_beta_matches_plain_minimax(depth):
    for state in sample_states():
        expected = plain_minimax(state, depth, Player.TWO)
        assert search(state, depth, allow_extension=False, agent=Player.TWO) == expected
        assert search(state, depth, allow_extension=False, agent=Player.ONE) == plain_minimax(state, depth, Player.ONE)


@pytest.mark.parametrize("depth", [2, 3])
def test_cached_search_matches_plain_minimax(depth):
    for state in sample_states():
        cache = TranspositionCache()
        value = search(state, depth, allow_extension=False, cache=cache, agent=Player.TWO)
        assert value == plain_minimax(state, depth, Player.TWO)
        assert len(cache) > 0


def test_depth_zero_returns_static_evaluation():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    assert not should_extend(state)
    assert search(state, 0, agent=Player.TWO) == evaluate_state(state, Player.TWO)


def test_volatile_horizon_extends_once():
    config = GameConfig()
    state = state_at(config, Position(9, 4))
    assert should_extend(state)

    stats = SearchStats()
    extended = search(state, 0, allow_extension=True, agent=Player.TWO, stats=stats)
    assert stats.extensions == 1
    assert extended == search(state, 1, allow_extension=False, agent=Player.TWO)
    assert extended != evaluate_state(state, Player.TWO)

    plain = search(state, 0, allow_extension=False, agent=Player.TWO)
    assert plain == evaluate_state(state, Player.TWO)


def test_should_extend_flags():
    config = GameConfig()
    bounced = engine.GameState(
        config=config,
        position=Position(5, 4),
        turn=Player.ONE,
        extra_turn=True,
        legal=engine.legal_moves(config, Position(5, 4), 0),
    )
    assert should_extend(bounced)

    edge = state_at(config, Position(1, 0))
    assert len(edge.legal) == 3
    assert not should_extend(edge)
    corner = state_at(config, Position(0, 0))
    assert corner.legal == (Position(1, 1),)
    assert should_extend(corner)

    won, _ = engine.apply_move(state_at(config, Position(9, 4)), Position(10, 4))
    assert not should_extend(won)


def test_cache_respects_depth():
    cache = TranspositionCache()
    cache.store(("k",), 3, 12.5, TranspositionCache.Bound.EXACT)
    assert cache.lookup(("k",), 2).value == 12.5
    assert cache.lookup(("k",), 3).value == 12.5
    assert cache.lookup(("k",), 4) is None

    cache.store(("k",), 1, -4.0, TranspositionCache.Bound.EXACT)
    assert cache.lookup(("k",), 3).value == 12.5
    assert cache.hits == 3
    assert cache.stores == 1


def test_search_does_not_mutate_input():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    before = (state.position, state.segments, state.turn, state.legal)
    search(state, 2, cache=TranspositionCache(), agent=Player.TWO)
    assert (state.position, state.segments, state.turn, state.legal) == before
