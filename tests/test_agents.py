import random
from dataclasses import replace

import pytest

from paper_soccer import engine
from paper_soccer.agents import (
    DIFFICULTY_PRESETS,
    LOSS_SCORE,
    TIE_EPSILON,
    WIN_SCORE,
    DifficultySettings,
    MoveAnalysis,
    RandomAgent,
    SearchAgent,
    SearchStats,
    TranspositionCache,
    _pick_best,
    choose_move,
    evaluate_state,
    preset_difficulty,
    score_move,
    search,
)
from paper_soccer.geometry import GameConfig, goal_side
from paper_soccer.types import GoalSide, Outcome, Player, Position


def state_at(config, position, segments=0, turn=Player.TWO) -> engine.GameState:
    return engine.GameState(
        config=config,
        position=position,
        segments=segments,
        turn=turn,
        legal=engine.legal_moves(config, position, segments),
    )


def test_random_agent_seed_reproducible():
    state = engine.new_game(GameConfig())
    assert RandomAgent(seed=123).choose_move(state) == RandomAgent(seed=123).choose_move(state)


@pytest.mark.parametrize("difficulty", ["easy", "normal", "hard"])
def test_every_tier_takes_an_immediate_goal(difficulty):
    config = GameConfig()
    state = state_at(config, Position(9, 4), turn=Player.TWO)
    analysis = choose_move(state, difficulty, rng=random.Random(1))
    assert goal_side(config, analysis.move) is GoalSide.RIGHT
    assert analysis.score == WIN_SCORE


def test_player_one_scores_left():
    config = GameConfig()
    state = state_at(config, Position(1, 3), turn=Player.ONE)
    analysis = choose_move(state, "normal")
    assert goal_side(config, analysis.move) is GoalSide.LEFT


def test_easy_tier_is_deterministic_with_seeded_rng():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    first = choose_move(state, "easy", rng=random.Random(7)).move
    second = choose_move(state, "easy", rng=random.Random(7)).move
    assert first == second


def test_choose_move_rejects_finished_games():
    config = GameConfig()
    won, _ = engine.apply_move(state_at(config, Position(9, 4)), Position(10, 4))
    with pytest.raises(ValueError):
        choose_move(won, "normal")
    with pytest.raises(ValueError):
        RandomAgent(seed=1).choose_move(won)


def test_evaluation_perspective():
    config = GameConfig()
    won, _ = engine.apply_move(state_at(config, Position(9, 4)), Position(10, 4))
    assert evaluate_state(won, Player.TWO) == WIN_SCORE
    assert evaluate_state(won, Player.ONE) == LOSS_SCORE

    drawn = engine.GameState(config=config, position=Position(5, 4), outcome=Outcome.draw())
    assert evaluate_state(drawn, Player.TWO) == 0.0

    near_right = state_at(config, Position(8, 4))
    near_left = state_at(config, Position(2, 4))
    assert evaluate_state(near_right, Player.TWO) > evaluate_state(near_left, Player.TWO)
    assert evaluate_state(near_left, Player.ONE) > evaluate_state(near_right, Player.ONE)


def test_score_move_prefers_progress():
    config = GameConfig()
    state = engine.new_game(config, first=Player.TWO)
    forward = score_move(state, Position(6, 4), Player.TWO)
    backward = score_move(state, Position(4, 4), Player.TWO)
    assert forward.score > backward.score
    assert forward.next_state.position == Position(6, 4)
    assert state.position == Position(5, 4)


def test_score_move_punishes_opening_own_goal():
    config = GameConfig()
    state = state_at(config, Position(2, 4), turn=Player.TWO)
    toward_own_goal = score_move(state, Position(1, 4), Player.TWO)
    away = score_move(state, Position(3, 4), Player.TWO)
    assert away.score > toward_own_goal.score


def test_score_move_win_and_loss():
    config = GameConfig()
    state = state_at(config, Position(1, 4), turn=Player.TWO)
    own_goal = score_move(state, Position(0, 4), Player.TWO)
    assert own_goal.score == LOSS_SCORE
    assert own_goal.next_state.winner is Player.ONE


def test_difficulty_presets():
    assert preset_difficulty("Normal") is DIFFICULTY_PRESETS["normal"]
    assert DIFFICULTY_PRESETS["easy"].search_depth == 0
    assert DIFFICULTY_PRESETS["normal"].candidate_limit == 8
    assert DIFFICULTY_PRESETS["hard"].search_depth > DIFFICULTY_PRESETS["normal"].search_depth
    with pytest.raises(ValueError):
        preset_difficulty("impossible")


def test_custom_settings_are_accepted():
    settings = DifficultySettings("probe", search_depth=1, depth_weight=0.5, candidate_limit=2)
    state = engine.new_game(GameConfig(), first=Player.TWO)
    analysis = choose_move(state, settings)
    assert analysis.move in state.legal


def test_search_agent_records_stats():
    agent = SearchAgent("normal", seed=3)
    state = engine.new_game(GameConfig(), first=Player.TWO)
    move = agent.choose_move(state)
    assert move in state.legal
    assert agent.last_stats is not None
    assert agent.last_stats.nodes > 0
    assert agent.last_stats.depth_reached == 2
    assert agent.last_analysis.move == move


def test_time_budget_still_returns_a_legal_move():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    stats = SearchStats()
    analysis = choose_move(state, "hard", time_budget_ms=0, stats=stats)
    assert analysis.move in state.legal
    assert stats.depth_reached <= DIFFICULTY_PRESETS["hard"].search_depth


def test_stalemate_override_does_not_touch_input_state():
    config = GameConfig()
    state = engine.new_game(config, first=Player.TWO)
    analysis = choose_move(state, "normal", stalemate_as_draw=True)
    assert analysis.next_state.config.stalemate_as_draw
    assert not state.config.stalemate_as_draw


TIE_SETTINGS = DifficultySettings("tie", search_depth=1, depth_weight=0.5, candidate_limit=None)


def strong_and_weak_replies():
    """Two follow-up states for TWO whose searched values differ clearly."""

    config = GameConfig()
    strong = state_at(config, Position(8, 4), turn=Player.ONE)
    weak = state_at(config, Position(2, 4), turn=Player.ONE)
    v_strong = search(strong, 0, agent=Player.TWO)
    v_weak = search(weak, 0, agent=Player.TWO)
    assert v_strong > v_weak + 10
    return strong, weak, TIE_SETTINGS.depth_weight * (v_strong - v_weak)


def pick(candidates):
    return _pick_best(candidates, 1, TIE_SETTINGS, TranspositionCache(), Player.TWO, None, None)


def test_near_tie_prefers_higher_one_ply_score():
    strong, weak, gap = strong_and_weak_replies()
    # Combined totals differ by half an epsilon; the weak reply has the higher raw score.
    a = MoveAnalysis(move=Position(6, 4), score=100.0, next_state=strong)
    b = MoveAnalysis(move=Position(4, 4), score=100.0 + gap + TIE_EPSILON / 2, next_state=weak)
    assert pick([a, b]).move == Position(4, 4)
    assert pick([b, a]).move == Position(4, 4)


def test_clear_margin_replaces_best_despite_lower_raw_score():
    strong, weak, gap = strong_and_weak_replies()
    a = MoveAnalysis(move=Position(6, 4), score=100.0, next_state=strong)
    b = MoveAnalysis(move=Position(4, 4), score=100.0 + gap - 1.0, next_state=weak)
    assert b.score > a.score
    assert pick([b, a]).move == Position(6, 4)


def test_candidate_limit_searches_only_the_top_candidates():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    ranked = sorted((score_move(state, t, Player.TWO) for t in state.legal), key=lambda a: a.score, reverse=True)

    narrow = SearchStats()
    limited = DifficultySettings("narrow", search_depth=1, depth_weight=0.6, candidate_limit=1)
    analysis = choose_move(state, limited, stats=narrow)
    assert analysis.move == ranked[0].move

    wide = SearchStats()
    choose_move(state, replace(limited, candidate_limit=None), stats=wide)
    assert narrow.nodes < wide.nodes


def test_turn_only_flips_the_mobility_sign():
    config = GameConfig()
    for position in (Position(8, 4), Position(1, 4)):
        ours = state_at(config, position, turn=Player.TWO)
        theirs = state_at(config, position, turn=Player.ONE)
        mobility = len(ours.legal)
        gap = evaluate_state(ours, Player.TWO) - evaluate_state(theirs, Player.TWO)
        assert gap == pytest.approx(2 * 3.5 * mobility)


def test_pick_best_falls_back_to_first_candidate():
    state = engine.new_game(GameConfig(), first=Player.TWO)
    hopeless = [
        MoveAnalysis(move=target, score=float("-inf"), next_state=state)
        for target in state.legal[:2]
    ]
    chosen = _pick_best(hopeless, 0, TIE_SETTINGS, TranspositionCache(), Player.TWO, None, None)
    assert chosen is hopeless[0]
