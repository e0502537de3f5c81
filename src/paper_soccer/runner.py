"""CLI runner for paper soccer self-play.

Usage examples:
- Single game: ``python -m paper_soccer.runner --mode game --one hard --two normal --seed 42``
- Match: ``python -m paper_soccer.runner --mode match --games 10 --one normal --two easy --board medium``
"""

from __future__ import annotations

import argparse
import logging
import time
from dataclasses import dataclass
from typing import Dict, List, Optional

from .agents import Agent, RandomAgent, SearchAgent, SearchStats
from .game_controller import GameController
from .geometry import BOARD_PRESETS, GameConfig, goal_rows, incident_degree, preset_config
from .engine import GameState
from .types import Outcome, OutcomeKind, Player, Position

AGENT_CHOICES = ["random", "easy", "normal", "hard"]


@dataclass
class GameSummary:
    outcome: Outcome
    plies: int
    move_times: Dict[Player, List[float]]
    search_stats: Dict[Player, List[SearchStats]]


def _build_agent(name: str, seed: Optional[int]) -> Agent:
    if name == "random":
        return RandomAgent(seed=seed)
    if name in {"easy", "normal", "hard"}:
        return SearchAgent(name, seed=seed)
    raise ValueError(f"Unknown agent '{name}'")


def format_board(state: GameState) -> str:
    """Vertex map: ``@`` ball, ``*`` touched vertex, ``G`` goal vertex, ``.`` free."""

    config = state.config
    goals = goal_rows(config.height, config.goal_width)
    lines: List[str] = []
    for y in range(config.height + 1):
        cells = []
        for x in range(config.width + 1):
            if (x, y) == (state.position.x, state.position.y):
                cells.append("@")
            elif x in (0, config.width) and y in goals:
                cells.append("G")
            elif incident_degree(config, Position(x, y), state.segments):
                cells.append("*")
            else:
                cells.append(".")
        lines.append(" ".join(cells))
    return "\n".join(lines)


def describe_outcome(outcome: Outcome) -> str:
    if outcome.kind is OutcomeKind.WON:
        return f"{outcome.player.name} scores"
    if outcome.kind is OutcomeKind.BLOCKED:
        return f"{outcome.player.name} is blocked, {outcome.winner.name} wins"
    if outcome.kind is OutcomeKind.DRAW:
        return "draw (no legal move)"
    return "unfinished"


def play_game(
    config: GameConfig,
    one_agent: Agent,
    two_agent: Agent,
    first: Player = Player.ONE,
    time_budget_ms: Optional[int] = None,
    max_plies: int = 2000,
    emit_moves: bool = False,
    show_board: bool = False,
    collect_stats: bool = False,
) -> GameSummary:
    controller = GameController(config, player_one_agent=one_agent, player_two_agent=two_agent, first=first)
    move_times: Dict[Player, List[float]] = {Player.ONE: [], Player.TWO: []}
    search_stats: Dict[Player, List[SearchStats]] = {Player.ONE: [], Player.TWO: []}

    plies = 0
    while controller.is_agent_turn() and plies < max_plies:
        player = controller.state.turn
        agent = one_agent if player is Player.ONE else two_agent
        start = time.monotonic()
        move = controller.step_ai(time_budget_ms=time_budget_ms)
        move_times[player].append((time.monotonic() - start) * 1000.0)
        plies += 1

        if emit_moves:
            bounce = " (bounce)" if controller.state.extra_turn else ""
            print(f"Ply {plies}: {player.name} -> ({move.x},{move.y}){bounce}")
        if show_board:
            print(format_board(controller.state))
            print()
        stats = getattr(agent, "last_stats", None)
        if collect_stats and stats is not None:
            search_stats[player].append(stats)

    return GameSummary(
        outcome=controller.state.outcome,
        plies=plies,
        move_times=move_times,
        search_stats=search_stats,
    )


def _average(values):
    return 0.0 if not values else sum(values) / len(values)


def play_match(
    config: GameConfig,
    one_agent: Agent,
    two_agent: Agent,
    games: int,
    time_budget_ms: Optional[int],
    verbose: bool,
    show_stats: bool,
) -> Dict[str, int]:
    """Alternate the starting player over ``games`` games and tally results."""

    tally = {"ONE": 0, "TWO": 0, "draw": 0, "unfinished": 0}
    for game_index in range(games):
        first = Player.ONE if game_index % 2 == 0 else Player.TWO
        if verbose:
            print(f"=== Game {game_index + 1} (first: {first.name}) ===")
        summary = play_game(
            config,
            one_agent,
            two_agent,
            first=first,
            time_budget_ms=time_budget_ms,
            emit_moves=verbose,
            collect_stats=show_stats,
        )
        winner = summary.outcome.winner
        if winner is not None:
            tally[winner.name] += 1
        elif summary.outcome.is_terminal:
            tally["draw"] += 1
        else:
            tally["unfinished"] += 1
        print(f"Result: {describe_outcome(summary.outcome)} after {summary.plies} plies")
        if show_stats:
            for side in (Player.ONE, Player.TWO):
                records = summary.search_stats[side]
                if not records:
                    continue
                print(
                    f"{side.name} search stats: samples={len(records)} "
                    f"avg_nodes={_average([s.nodes for s in records]):.1f} "
                    f"avg_depth={_average([s.depth_reached for s in records]):.2f} "
                    f"cache_hits={sum(s.cache_hits for s in records)} "
                    f"extensions={sum(s.extensions for s in records)} "
                    f"avg_ms={_average(summary.move_times[side]):.2f}"
                )
    print(f"Score ONE-TWO: {tally['ONE']}-{tally['TWO']} draws={tally['draw']}")
    return tally


def parse_args(argv: Optional[List[str]] = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Paper soccer self-play runner")
    parser.add_argument("--mode", choices=["game", "match"], default="game")
    parser.add_argument("--one", choices=AGENT_CHOICES, default="normal", help="Agent for Player ONE (attacks left)")
    parser.add_argument("--two", choices=AGENT_CHOICES, default="easy", help="Agent for Player TWO (attacks right)")
    parser.add_argument("--board", choices=sorted(BOARD_PRESETS), default=None, help="Board size preset")
    parser.add_argument("--width", type=int, default=None)
    parser.add_argument("--height", type=int, default=None)
    parser.add_argument("--goal-width", type=int, default=2)
    parser.add_argument("--stalemate-draw", action="store_true", help="A blocked player draws instead of losing")
    parser.add_argument("--games", type=int, default=2)
    parser.add_argument("--seed", type=int, default=None)
    parser.add_argument("--time-budget-ms", type=int, default=None, help="Soft per-move search budget")
    parser.add_argument("--verbose", action="store_true")
    parser.add_argument("--stats", action="store_true", help="Print search stats")
    parser.add_argument("--log-level", default="WARNING", choices=["DEBUG", "INFO", "WARNING", "ERROR"])
    return parser.parse_args(argv)


def config_from_args(args: argparse.Namespace) -> GameConfig:
    if args.board is not None:
        return preset_config(args.board, goal_width=args.goal_width, stalemate_as_draw=args.stalemate_draw)
    defaults = GameConfig()
    return GameConfig(
        width=args.width if args.width is not None else defaults.width,
        height=args.height if args.height is not None else defaults.height,
        goal_width=args.goal_width,
        stalemate_as_draw=args.stalemate_draw,
    )


def main(argv: Optional[List[str]] = None) -> None:
    args = parse_args(argv)
    logging.basicConfig(level=getattr(logging, args.log_level), format="%(levelname)s %(name)s: %(message)s")

    try:
        config = config_from_args(args)
    except ValueError as exc:
        print(f"Invalid configuration: {exc}")
        raise SystemExit(1)

    one_agent = _build_agent(args.one, seed=args.seed)
    two_agent = _build_agent(args.two, seed=None if args.seed is None else args.seed + 1)

    if args.mode == "game":
        summary = play_game(
            config,
            one_agent,
            two_agent,
            time_budget_ms=args.time_budget_ms,
            emit_moves=True,
            show_board=args.verbose,
            collect_stats=args.stats,
        )
        print(f"Game result: {describe_outcome(summary.outcome)} after {summary.plies} plies")
    else:
        play_match(
            config,
            one_agent,
            two_agent,
            games=args.games,
            time_budget_ms=args.time_budget_ms,
            verbose=args.verbose,
            show_stats=args.stats,
        )


if __name__ == "__main__":
    main()
