"""Game controller utilities for UI-driven or scripted play.

This module keeps UI concerns separate from core game logic so the
underlying sequencing and validation can be tested without driving a GUI.
The controller owns the only mutable game: every change goes through
``apply_move``, ``undo``, ``reset`` or ``reconfigure``.
"""
from __future__ import annotations

import logging
import random
from typing import List, Optional, Tuple

from . import engine
from .agents import Agent, SearchAgent
from .engine import GameState
from .geometry import GameConfig
from .types import Move, Player, Position

logger = logging.getLogger(__name__)


class GameController:
    """Manage a single paper soccer game, including agents and history."""

    def __init__(
        self,
        config: Optional[GameConfig] = None,
        player_one_agent: Optional[Agent] = None,
        player_two_agent: Optional[Agent] = None,
        first: Optional[Player] = None,
        random_first: bool = False,
        rng: Optional[random.Random] = None,
    ) -> None:
        self.config = config or GameConfig()
        self.player_one_agent = player_one_agent
        self.player_two_agent = player_two_agent
        self.random_first = random_first
        self._rng = rng or random.Random()
        self._first = Player.ONE
        self.state: GameState
        self.history: List[Move]
        self.reset(first=first)

    def reset(self, first: Optional[Player] = None) -> None:
        """Start over on the current board."""

        if first is not None:
            self._first = first
        elif self.random_first:
            self._first = self._rng.choice([Player.ONE, Player.TWO])
        self.state = engine.new_game(self.config, first=self._first)
        self.history = []
        logger.debug("new game on %dx%d, %s to move", self.config.width, self.config.height, self._first.name)

    def reconfigure(self, config: GameConfig) -> None:
        """Switch to a new board. Always starts a fresh game with Player ONE to move."""

        self.config = config
        self.reset(first=Player.ONE)
        logger.info(
            "reconfigured to %dx%d goal=%d stalemate_as_draw=%s",
            config.width,
            config.height,
            config.goal_width,
            config.stalemate_as_draw,
        )

    @property
    def first_player(self) -> Player:
        return self._first

    def get_state(self) -> GameState:
        return self.state

    def get_config(self) -> GameConfig:
        return self.config

    def get_history(self) -> List[Move]:
        return list(self.history)

    def legal_moves(self) -> Tuple[Position, ...]:
        return self.state.legal

    def apply_move(self, target: Position) -> bool:
        """Move the ball to ``target``; ``False`` leaves the game untouched."""

        source = self.state.position
        new_state, applied = engine.apply_move(self.state, target)
        if not applied:
            return False
        self.history.append(Move(from_pos=source, to_pos=target))
        self.state = new_state
        return True

    def undo(self) -> bool:
        """Take back the last move by replaying the rest of the history."""

        if not self.history:
            return False
        self.load_history(self.history[:-1])
        return True

    def load_history(self, moves: List[Move]) -> int:
        """Replace the game with ``moves`` replayed from the start.

        Replay stops at the first invalid move; returns how many moves were kept.
        """

        state, applied = engine.replay(self.config, moves, first=self._first)
        if applied < len(moves):
            logger.warning("history truncated at move %d of %d", applied + 1, len(moves))
        self.state = state
        self.history = list(moves[:applied])
        return applied

    def _current_agent(self) -> Optional[Agent]:
        return self.player_one_agent if self.state.turn is Player.ONE else self.player_two_agent

    def is_agent_turn(self) -> bool:
        return not self.state.is_terminal and self._current_agent() is not None

    def compute_ai_move(self, time_budget_ms: Optional[int] = None) -> Position:
        if self.state.is_terminal:
            raise ValueError("game is over")
        agent = self._current_agent()
        if agent is None:
            raise ValueError("No agent configured for current player")
        move = agent.choose_move(self.state, time_budget_ms=time_budget_ms)
        if move not in self.state.legal:
            logger.warning("%s proposed illegal move %s, falling back", agent.__class__.__name__, move)
            fallback = SearchAgent("easy", seed=self._rng.randrange(2**31))
            move = fallback.choose_move(self.state)
        return move

    def step_ai(self, time_budget_ms: Optional[int] = None) -> Position:
        move = self.compute_ai_move(time_budget_ms=time_budget_ms)
        self.apply_move(move)
        return move
