"""Benchmark harness for comparing CPU difficulty levels."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass

from . import scoreboard
from .cpu import play_ai_turn
from .state import Difficulty, GameState, Seat, TurnPhase, init_game

logger = logging.getLogger(__name__)

__all__ = ["AgentBreakdown", "HeadToHeadReport", "run_head_to_head"]

TURN_LIMIT = 400


@dataclass(frozen=True, slots=True)
class AgentBreakdown:
    """Aggregate statistics collected for a single agent across a benchmark."""

    difficulty: Difficulty
    wins: int
    score: int


@dataclass(frozen=True, slots=True)
class HeadToHeadReport:
    """Summary of a head-to-head benchmark between two difficulties."""

    history: scoreboard.MatchHistory
    first: AgentBreakdown
    second: AgentBreakdown
    draws: int


def _play_game(
    game_number: int,
    seats: dict[Seat, Difficulty],
    rng: random.Random,
) -> tuple[GameState, scoreboard.GameSummary]:
    game_state = init_game(difficulty=seats[Seat.CPU], seed=rng.randrange(2**32))

    for _ in range(TURN_LIMIT):
        if game_state.winner is not None:
            break
        seat = game_state.turn
        play_ai_turn(game_state, seats[seat])
        if game_state.winner is None and game_state.turn == seat and game_state.phase == TurnPhase.DRAW:
            logger.info("Game %d stalled: nothing left to draw", game_number)
            break
    else:
        logger.info("Game %d reached the turn limit", game_number)

    winner = game_state.winner
    score = -len(game_state.players[winner.other].hand) if winner is not None else 0
    summary = scoreboard.GameSummary(
        game_number=game_number,
        winner=winner,
        score=score,
        rounds=game_state.round,
    )
    return game_state, summary


def run_head_to_head(
    games: int,
    first: Difficulty,
    second: Difficulty,
    *,
    seed: int = 123,
) -> HeadToHeadReport:
    """Play ``games`` AI-vs-AI games, alternating which difficulty opens."""

    if games <= 0:
        raise ValueError("games must be positive")

    rng = random.Random(seed)
    history = scoreboard.MatchHistory()
    stats = {"first": {"wins": 0, "score": 0}, "second": {"wins": 0, "score": 0}}

    for game_number in range(1, games + 1):
        if game_number % 2 == 1:
            seats = {Seat.HUMAN: first, Seat.CPU: second}
            labels = {Seat.HUMAN: "first", Seat.CPU: "second"}
        else:
            seats = {Seat.HUMAN: second, Seat.CPU: first}
            labels = {Seat.HUMAN: "second", Seat.CPU: "first"}

        _, summary = _play_game(game_number, seats, rng)
        history.record(summary)
        if summary.winner is not None:
            bucket = stats[labels[summary.winner]]
            bucket["wins"] += 1
            bucket["score"] += summary.score

    return HeadToHeadReport(
        history=history,
        first=AgentBreakdown(difficulty=first, wins=stats["first"]["wins"], score=stats["first"]["score"]),
        second=AgentBreakdown(
            difficulty=second, wins=stats["second"]["wins"], score=stats["second"]["score"]
        ),
        draws=history.draws,
    )
