"""CPU turn orchestration built on the public action functions."""

from __future__ import annotations

import logging
import random
from dataclasses import dataclass, field

from . import actions
from .cards import Card
from .evaluation import evaluate_hand_progress
from .rules import DEFAULT_THRESHOLDS
from .solver import AiMove, calculate_cpu_move
from .state import Difficulty, GameState, Seat, TurnPhase
from .threats import extendable_melds

logger = logging.getLogger(__name__)

__all__ = ["CpuTurnResult", "process_cpu_turn", "play_ai_turn"]


@dataclass(slots=True)
class CpuTurnResult:
    """Summary of a completed AI turn."""

    winner: Seat | None = None
    score: int | None = None
    discarded_card: Card | None = None
    draw_source: str | None = None
    melds_played: list[list[Card]] = field(default_factory=list)


class _PlanFailed(RuntimeError):
    """Raised when a planned step is rejected by the rules."""


def _wants_discard_pickup(state: GameState, difficulty: Difficulty) -> bool:
    if state.round < DEFAULT_THRESHOLDS.meld_round or difficulty is Difficulty.EASY:
        return False
    if not state.discard_pile:
        return False

    player = state.active
    top = state.discard_pile[-1]
    hand = player.hand
    with_top = [*hand, top]
    plan = calculate_cpu_move(
        with_top,
        player.has_opened,
        state.melds,
        difficulty,
        rng=random.Random(0),
        allow_swaps=False,
    )
    if not any(card.id == top.id for meld in plan.melds_to_play for card in meld):
        return False

    before = evaluate_hand_progress(hand, player.has_opened, state.melds)
    after = evaluate_hand_progress(with_top, player.has_opened, state.melds)
    logger.debug("Discard pickup of %s: distance %d -> %d", top.label(), before, after)
    return after < before


def _check(result: actions.ActionResult) -> actions.ActionResult:
    if not result.success:
        raise _PlanFailed(result.msg or "rejected")
    return result


def _lay_off_obligations(state: GameState) -> None:
    """Add any card the turn obliges us to meld onto the table."""

    obligated = set(state.swapped_joker_ids)
    if state.drawn_from_discard_id is not None and not state.discard_card_used:
        obligated.add(state.drawn_from_discard_id)

    for card in [card for card in state.active.hand if card.id in obligated]:
        for meld_index in extendable_melds(state.melds, card):
            if actions.add_to_existing_meld(state, meld_index, [card]).success:
                break


def _execute(state: GameState, move: AiMove) -> actions.ActionResult:
    for swap in move.joker_swaps:
        _check(actions.attempt_joker_swap(state, swap.meld_index, swap.hand_card_id))

    for meld in move.melds_to_play:
        result = _check(actions.attempt_meld(state, meld))
        if result.winner is not None:
            return result

    _lay_off_obligations(state)
    if state.winner is not None:
        return actions.ActionResult(success=True, winner=state.winner, score=-len(state.opponent.hand))

    if move.discard_card is None:
        raise _PlanFailed("nothing left to discard")
    return _check(actions.attempt_discard(state, move.discard_card.id))


def _plans(state: GameState, difficulty: Difficulty, rng: random.Random) -> list[AiMove]:
    """Return candidate plans from the most ambitious to a bare discard."""

    player = state.active
    exclude = [state.drawn_from_discard_id] if state.drawn_from_discard_id is not None else []

    def plan(**options) -> AiMove:
        return calculate_cpu_move(
            player.hand,
            player.has_opened,
            state.melds,
            difficulty,
            rng=rng,
            opponent_hand_size=len(state.opponent.hand),
            exclude=exclude,
            **options,
        )

    bare = dict(allow_swaps=False, allow_melds=False)
    if state.round < DEFAULT_THRESHOLDS.meld_round:
        return [plan(**bare)]

    full = plan()
    plans = [full]
    if full.joker_swaps:
        plans.append(plan(allow_swaps=False))
    if full.melds_to_play:
        plans.append(plan(**bare))
    return plans


def _try_plans(state: GameState, difficulty: Difficulty, rng: random.Random) -> tuple[AiMove, actions.ActionResult] | None:
    for move in _plans(state, difficulty, rng):
        trial = state.clone()
        try:
            _execute(trial, move)
        except _PlanFailed as exc:
            logger.debug("%s plan rejected in dry run: %s", state.turn.label, exc)
            continue
        return move, _execute(state, move)
    return None


def play_ai_turn(
    state: GameState,
    difficulty: Difficulty | None = None,
    rng: random.Random | None = None,
) -> CpuTurnResult:
    """Play a whole turn for the seat on move using the AI planner."""

    if state.winner is not None:
        return CpuTurnResult(winner=state.winner)
    difficulty = difficulty or state.difficulty
    rng = rng or state.deck.rng
    seat = state.turn
    melds_before = len(state.melds)

    draw_source: str | None = None
    if state.phase == TurnPhase.DRAW:
        draw_source = actions.DISCARD if _wants_discard_pickup(state, difficulty) else actions.STOCK
        drawn = actions.draw_card(state, draw_source)
        if not drawn.success and draw_source == actions.DISCARD:
            draw_source = actions.STOCK
            drawn = actions.draw_card(state, draw_source)
        if not drawn.success:
            logger.info("%s cannot draw: %s", seat.label, drawn.msg)
            return CpuTurnResult(draw_source=None)

    outcome = _try_plans(state, difficulty, rng)
    if outcome is None and draw_source == actions.DISCARD:
        actions.undo_draw(state)
        draw_source = actions.STOCK
        if not actions.draw_card(state, draw_source).success:
            return CpuTurnResult(draw_source=None)
        outcome = _try_plans(state, difficulty, rng)
    if outcome is None:
        raise RuntimeError(f"no legal plan for {seat.label}")

    move, result = outcome
    melds_played = [list(meld) for meld in state.melds[melds_before:]]
    logger.debug(
        "%s drew from %s, played %d meld(s)",
        seat.label,
        draw_source or "-",
        len(melds_played),
    )
    return CpuTurnResult(
        winner=result.winner,
        score=result.score,
        discarded_card=result.card if move.discard_card is not None else None,
        draw_source=draw_source,
        melds_played=melds_played,
    )


def process_cpu_turn(state: GameState) -> CpuTurnResult:
    """Play the CPU seat's turn at the game's configured difficulty."""

    if state.turn != Seat.CPU:
        raise ValueError("it is not the CPU's turn")
    return play_ai_turn(state, state.difficulty)
