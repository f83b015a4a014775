"""Turn state machine: every player action on a Jolly ``GameState``.

Each public action takes the game state explicitly, mutates it in place on
success and returns an :class:`ActionResult`. Rule violations are raised
internally as :class:`~jolly.rules.RuleViolation` subclasses before anything
is mutated and converted into failed results at the boundary, so a rejected
action always leaves the state untouched.
"""

from __future__ import annotations

import functools
import logging
from dataclasses import dataclass
from typing import Callable, Iterable, Sequence, TypeVar

from .cards import Card, Representation, sort_hand
from .rules import (
    DEFAULT_THRESHOLDS,
    BoundsError,
    InvalidMeldError,
    MeldKind,
    MustMeldConstraintError,
    OpeningRequirementError,
    PhaseError,
    ResourceExhaustionError,
    RoundGateError,
    RuleViolation,
    clear_representations,
    has_pure_run,
    meets_opening,
    melds_points,
    organize_meld,
    validate_meld,
)
from .state import GameState, Seat, TurnAddition, TurnPhase

logger = logging.getLogger(__name__)

__all__ = [
    "ActionResult",
    "draw_card",
    "undo_draw",
    "attempt_meld",
    "add_to_existing_meld",
    "attempt_joker_swap",
    "cancel_turn_melds",
    "attempt_discard",
    "attempt_jolly_hand",
    "undo_jolly",
    "reorder_hand",
    "sort_hand_action",
    "opening_ready",
]

STOCK = "stock"
DISCARD = "discard"


@dataclass(slots=True)
class ActionResult:
    """Outcome of a player action."""

    success: bool
    msg: str | None = None
    card: Card | None = None
    winner: Seat | None = None
    score: int | None = None
    error: str | None = None

    @classmethod
    def failure(cls, exc: RuleViolation) -> "ActionResult":
        return cls(success=False, msg=str(exc), error=type(exc).__name__)


F = TypeVar("F", bound=Callable[..., ActionResult])


def _action(func: F) -> F:
    """Convert rule violations raised by ``func`` into failed results."""

    @functools.wraps(func)
    def wrapper(state: GameState, *args, **kwargs) -> ActionResult:
        try:
            return func(state, *args, **kwargs)
        except RuleViolation as exc:
            logger.debug("%s rejected for %s: %s", func.__name__, state.turn.value, exc)
            return ActionResult.failure(exc)

    return wrapper  # type: ignore[return-value]


def _require_live(state: GameState) -> None:
    if state.winner is not None:
        raise PhaseError("Game is over.")


def _require_action_phase(state: GameState, msg: str = "Must draw a card first.") -> None:
    _require_live(state)
    if state.phase != TurnPhase.ACTION:
        raise PhaseError(msg)


def _require_meld_round(state: GameState, what: str) -> None:
    if state.round < DEFAULT_THRESHOLDS.meld_round:
        raise RoundGateError(f"Cannot {what} until Round {DEFAULT_THRESHOLDS.meld_round}.")


def _require_in_hand(hand: Sequence[Card], cards: Iterable[Card]) -> list[Card]:
    held = {card.id: card for card in hand}
    resolved: list[Card] = []
    for card in cards:
        if card.id not in held:
            raise BoundsError(f"{card.label()} is not in hand.")
        resolved.append(held[card.id])
    if len({card.id for card in resolved}) != len(resolved):
        raise InvalidMeldError("The same card was selected twice.")
    return resolved


def _remove_from_hand(state: GameState, cards: Iterable[Card]) -> None:
    ids = {card.id for card in cards}
    state.active.hand = [card for card in state.active.hand if card.id not in ids]


def _turn_meld_cards(state: GameState) -> list[list[Card]]:
    return [state.melds[index] for index in state.turn_melds if index < len(state.melds)]


def _recalculate_turn_points(state: GameState) -> None:
    total = melds_points(_turn_meld_cards(state))
    for addition in state.turn_additions:
        total += sum(card.value() for card in addition.cards)
    state.turn_points = total


def opening_ready(state: GameState) -> bool:
    """Return whether this turn's melds satisfy the opening requirement."""

    return meets_opening(state.turn_points, _turn_meld_cards(state))


def _require_opening_ready(state: GameState, purpose: str) -> None:
    if state.turn_points < DEFAULT_THRESHOLDS.opening_points:
        raise OpeningRequirementError(
            f"Must have {DEFAULT_THRESHOLDS.opening_points}+ points to open before {purpose}. "
            f"Current: {state.turn_points}"
        )
    if not has_pure_run(_turn_meld_cards(state)):
        raise OpeningRequirementError("Opening requires at least 1 Pure Run.")


def _discharge_obligations(state: GameState, cards: Iterable[Card]) -> None:
    """Mark the discard pickup as used when it is among ``cards``.

    Swapped Jokers stay in ``swapped_joker_ids`` for the whole turn; the
    obligation holds for as long as one of them is still in hand.
    """

    ids = {card.id for card in cards}
    if state.drawn_from_discard_id is not None and state.drawn_from_discard_id in ids:
        state.discard_card_used = True


def _pending_swapped_jokers(state: GameState) -> list[int]:
    held = {card.id for card in state.active.hand}
    return [jid for jid in state.swapped_joker_ids if jid in held]


def _snapshot_representations(cards: Iterable[Card]) -> list[tuple[Card, Representation | None]]:
    return [(card, card.representation) for card in cards if card.is_joker]


def _restore_representations(snapshot: Iterable[tuple[Card, Representation | None]]) -> None:
    for card, rep in snapshot:
        card.representation = rep


def _commit_opening(state: GameState) -> None:
    player = state.active
    player.has_opened = True
    player.has_pure_run = player.has_pure_run or has_pure_run(_turn_meld_cards(state))
    state.turn_melds = []
    state.turn_additions = []
    logger.info("%s opened with %d points", state.turn.label, state.turn_points)


def _end_turn(state: GameState) -> None:
    """Hand the table over to the other seat; a finished CPU turn closes the round."""

    if state.turn == Seat.CPU:
        state.round += 1
    state.turn = state.turn.other
    state.phase = TurnPhase.DRAW
    state.reset_turn_state()


def _declare_winner(state: GameState) -> ActionResult:
    state.winner = state.turn
    score = -len(state.opponent.hand)
    logger.info("%s wins in round %d (score %d)", state.turn.label, state.round, score)
    return ActionResult(success=True, winner=state.turn, score=score)


@_action
def draw_card(state: GameState, source: str) -> ActionResult:
    """Draw from the ``"stock"`` or the ``"discard"`` pile."""

    _require_live(state)
    if state.phase != TurnPhase.DRAW:
        raise PhaseError("Already drew a card.")

    if source == STOCK:
        if state.deck.is_empty():
            if not state.discard_pile:
                raise ResourceExhaustionError("Deck Empty: stock and discard pile are both empty.")
            state.deck.set_cards(state.discard_pile)
            state.deck.shuffle()
            state.discard_pile = []
            logger.debug("Stock exhausted; reshuffled %d discards", len(state.deck))
        card = state.deck.draw()
        if card is None:  # pragma: no cover - reshuffle always yields a card
            raise ResourceExhaustionError("Deck Empty.")
    elif source == DISCARD:
        _require_meld_round(state, "draw from discard")
        if not state.discard_pile:
            raise ResourceExhaustionError("Discard pile is empty.")
        card = state.discard_pile.pop()
        state.drawn_from_discard_id = card.id
    else:
        raise ValueError(f"Unknown draw source {source}")

    card.selected = False
    state.active.hand.append(card)
    if state.turn == Seat.CPU:
        sort_hand(state.active.hand)
    state.phase = TurnPhase.ACTION
    return ActionResult(success=True, card=card)


@_action
def undo_draw(state: GameState) -> ActionResult:
    """Put a card taken from the discard pile back, if nothing was done with it."""

    _require_action_phase(state, "Not in action phase.")
    if state.drawn_from_discard_id is None:
        raise PhaseError("Did not draw from discard.")
    if state.turn_melds:
        raise PhaseError("Cannot undo after melding.")
    if state.turn_additions:
        raise PhaseError("Cannot undo after adding to melds.")
    if state.swapped_joker_ids:
        raise PhaseError("Cannot undo after swapping Jokers.")

    hand = state.active.hand
    index = next((i for i, card in enumerate(hand) if card.id == state.drawn_from_discard_id), None)
    if index is None:
        raise BoundsError("Card not found in hand.")

    card = hand.pop(index)
    card.selected = False
    state.discard_pile.append(card)
    state.drawn_from_discard_id = None
    state.discard_card_used = False
    state.phase = TurnPhase.DRAW
    return ActionResult(success=True, card=card)


@_action
def attempt_meld(state: GameState, cards: Sequence[Card]) -> ActionResult:
    """Lay a new meld from the acting hand."""

    _require_action_phase(state)
    _require_meld_round(state, "meld")
    selection = _require_in_hand(state.active.hand, cards)

    snapshot = _snapshot_representations(selection)
    clear_representations(selection)
    result = validate_meld(selection)
    if not result.valid:
        _restore_representations(snapshot)
        raise InvalidMeldError("Invalid Meld. Check suits/ranks/adjacency.")

    going_out = len(selection) == len(state.active.hand)
    if going_out and not state.active.has_opened:
        turn_melds = [*_turn_meld_cards(state), selection]
        points = melds_points(turn_melds)
        points += sum(card.value() for addition in state.turn_additions for card in addition.cards)
        if not meets_opening(points, turn_melds):
            _restore_representations(snapshot)
            raise OpeningRequirementError(
                "Cannot win without opening requirements "
                f"({DEFAULT_THRESHOLDS.opening_points}pts + Pure Run)."
            )

    _discharge_obligations(state, selection)
    organized = organize_meld(selection)
    for card in organized:
        card.selected = False
    state.melds.append(organized)
    state.turn_melds.append(len(state.melds) - 1)
    _recalculate_turn_points(state)
    _remove_from_hand(state, selection)

    if going_out:
        if not state.active.has_opened:
            _commit_opening(state)
        return _declare_winner(state)
    return ActionResult(success=True)


@_action
def add_to_existing_meld(state: GameState, meld_index: int, cards: Sequence[Card]) -> ActionResult:
    """Extend the table meld at ``meld_index`` with cards from the acting hand."""

    _require_action_phase(state)
    if not 0 <= meld_index < len(state.melds):
        raise BoundsError("No meld at that position.")
    selection = _require_in_hand(state.active.hand, cards)
    if not selection:
        raise InvalidMeldError("Select cards to add.")

    created_this_turn = meld_index in state.turn_melds
    if not created_this_turn and not state.active.has_opened:
        _require_opening_ready(state, "adding to existing melds")

    target = state.melds[meld_index]
    snapshot = _snapshot_representations([*target, *selection])
    clear_representations(selection)
    organized = organize_meld([*target, *selection])
    if not validate_meld(organized).valid:
        _restore_representations(snapshot)
        clear_representations(selection)
        raise InvalidMeldError("Cannot add cards to this meld.")

    going_out = len(selection) == len(state.active.hand)
    if going_out and not state.active.has_opened:
        turn_melds = [
            organized if index == meld_index else state.melds[index]
            for index in state.turn_melds
            if index < len(state.melds)
        ]
        points = melds_points(turn_melds)
        points += sum(card.value() for addition in state.turn_additions for card in addition.cards)
        if not created_this_turn:
            points += sum(card.value() for card in selection)
        if not meets_opening(points, turn_melds):
            _restore_representations(snapshot)
            clear_representations(selection)
            raise OpeningRequirementError(
                "Cannot win without opening requirements "
                f"({DEFAULT_THRESHOLDS.opening_points}pts + Pure Run)."
            )

    _discharge_obligations(state, selection)
    if not created_this_turn:
        state.turn_additions.append(TurnAddition(meld_index=meld_index, cards=list(selection)))
    for card in selection:
        card.selected = False
    state.melds[meld_index] = organized
    _recalculate_turn_points(state)
    _remove_from_hand(state, selection)

    if not state.active.hand:
        if not state.active.has_opened:
            _commit_opening(state)
        return _declare_winner(state)
    return ActionResult(success=True)


@_action
def attempt_joker_swap(state: GameState, meld_index: int, hand_card_id: int) -> ActionResult:
    """Replace a table Joker with the exact card it represents."""

    _require_action_phase(state)
    if not state.active.has_opened:
        raise OpeningRequirementError("Must open before swapping Jokers.")
    if not 0 <= meld_index < len(state.melds):
        raise BoundsError("No meld at that position.")

    meld = list(state.melds[meld_index])
    joker_index = next((i for i, card in enumerate(meld) if card.is_joker), None)
    if joker_index is None:
        raise InvalidMeldError("No Joker in selected meld.")
    joker = meld[joker_index]
    rep = joker.representation
    if rep is None:
        raise InvalidMeldError("Joker position not set.")

    hand_card = next((card for card in state.active.hand if card.id == hand_card_id), None)
    if hand_card is None:
        raise BoundsError("Card not in hand.")
    if hand_card.is_joker or hand_card.rank is not rep.rank or hand_card.suit is not rep.suit:
        raise InvalidMeldError(
            f"Joker represents {rep.label()}. You need that exact card to swap."
        )

    current = validate_meld(meld)
    if not current.valid:
        raise InvalidMeldError("Invalid meld.")
    if current.kind is MeldKind.SET and len(meld) < 4:
        raise InvalidMeldError("Can only swap Joker from a complete Set (4 cards).")

    snapshot = _snapshot_representations(meld)
    meld[joker_index] = hand_card
    organized = organize_meld(meld)
    if not validate_meld(organized).valid:
        _restore_representations(snapshot)
        raise InvalidMeldError("Card does not fit in meld.")

    state.melds[meld_index] = organized
    _remove_from_hand(state, [hand_card])
    hand_card.selected = False
    joker.representation = None
    joker.selected = False
    state.active.hand.append(joker)
    state.swapped_joker_ids.append(joker.id)
    if state.turn == Seat.CPU:
        sort_hand(state.active.hand)
    return ActionResult(success=True, card=joker)


def cancel_turn_melds(state: GameState) -> None:
    """Take back every meld and addition made this turn."""

    hand = state.active.hand
    for addition in reversed(state.turn_additions):
        ids = {card.id for card in addition.cards}
        if addition.meld_index < len(state.melds):
            remaining = [card for card in state.melds[addition.meld_index] if card.id not in ids]
            state.melds[addition.meld_index] = organize_meld(remaining)
        clear_representations(addition.cards)
        hand.extend(addition.cards)
    state.turn_additions = []

    for index in sorted(state.turn_melds, reverse=True):
        if index >= len(state.melds):
            continue
        cards = state.melds.pop(index)
        clear_representations(cards)
        hand.extend(cards)

    for card in hand:
        card.selected = False
    if state.turn == Seat.CPU:
        sort_hand(hand)
    state.turn_melds = []
    state.turn_points = 0
    state.discard_card_used = False


@_action
def attempt_discard(state: GameState, card_id: int) -> ActionResult:
    """Discard ``card_id`` and end the turn, committing the opening if due."""

    _require_action_phase(state, "Must draw/act before discarding.")
    player = state.active
    if state.is_jolly_turn and len(player.hand) > 1:
        raise MustMeldConstraintError("Jolly Hand must meld ALL cards to win.")
    if not any(card.id == card_id for card in player.hand):
        raise BoundsError("Card not found")

    opening_due = not player.has_opened and bool(state.turn_melds)
    if opening_due:
        if state.turn_points < DEFAULT_THRESHOLDS.opening_points:
            raise OpeningRequirementError(
                f"Opening melds must sum to {DEFAULT_THRESHOLDS.opening_points}+. "
                f"Current: {state.turn_points}"
            )
        if not has_pure_run(_turn_meld_cards(state)):
            raise OpeningRequirementError("Opening requires at least 1 Pure Run (Straight Flush).")

    if state.drawn_from_discard_id is not None and not state.discard_card_used:
        raise MustMeldConstraintError("Must meld the card picked from discard pile.")
    pending = _pending_swapped_jokers(state)
    if card_id in pending:
        raise MustMeldConstraintError("Cannot discard a Swapped Joker. Must meld it.")
    if pending:
        raise MustMeldConstraintError("Must meld the Swapped Joker(s).")

    will_open = player.has_opened or opening_due
    if len(player.hand) == 1 and not will_open:
        raise OpeningRequirementError(
            "Cannot win without opening requirements "
            f"({DEFAULT_THRESHOLDS.opening_points}pts + Pure Run)."
        )

    if opening_due:
        _commit_opening(state)

    index = next(i for i, card in enumerate(player.hand) if card.id == card_id)
    card = player.hand.pop(index)
    card.selected = False
    state.discard_pile.append(card)

    if not player.hand:
        result = _declare_winner(state)
        result.card = card
        return result

    _end_turn(state)
    return ActionResult(success=True, card=card)


@_action
def attempt_jolly_hand(state: GameState) -> ActionResult:
    """Take the bottom card and commit to melding the whole hand this turn."""

    _require_live(state)
    _require_meld_round(state, "take Jolly Hand")
    player = state.active
    if player.has_opened:
        raise OpeningRequirementError("Cannot take Jolly Hand after opening.")
    if len(player.hand) != DEFAULT_THRESHOLDS.jolly_hand_size:
        raise BoundsError(
            f"Need exactly {DEFAULT_THRESHOLDS.jolly_hand_size} cards to take Jolly Hand."
        )
    if state.bottom_card is None:
        raise ResourceExhaustionError("No bottom card available.")
    if state.phase != TurnPhase.DRAW:
        raise PhaseError("Can only take Jolly Hand at start of turn.")

    card = state.bottom_card
    state.bottom_card = None
    player.hand.append(card)
    state.phase = TurnPhase.ACTION
    state.is_jolly_turn = True
    state.jolly_card_id = card.id
    return ActionResult(success=True, card=card, msg="Jolly Hand! You must meld ALL cards now to win.")


@_action
def undo_jolly(state: GameState) -> ActionResult:
    """Return the Jolly card to the bottom if nothing has been played yet."""

    _require_action_phase(state, "Not in action phase.")
    if not state.is_jolly_turn:
        raise PhaseError("Not a Jolly turn.")
    if state.turn_melds or state.turn_additions or state.swapped_joker_ids:
        raise PhaseError("Cannot undo Jolly Hand after melding.")

    hand = state.active.hand
    index = next(
        (i for i, card in enumerate(hand) if card.id == state.jolly_card_id),
        len(hand) - 1,
    )
    card = hand.pop(index)
    card.selected = False
    state.bottom_card = card
    state.is_jolly_turn = False
    state.jolly_card_id = None
    state.phase = TurnPhase.DRAW
    return ActionResult(success=True, card=card)


@_action
def reorder_hand(state: GameState, from_index: int, to_index: int) -> ActionResult:
    """Move a card within the acting hand; bad positions leave the hand alone."""

    hand = state.active.hand
    if not 0 <= from_index < len(hand):
        raise BoundsError("No card at that position.")
    card = hand.pop(from_index)
    hand.insert(max(0, min(to_index, len(hand))), card)
    return ActionResult(success=True, card=card)


@_action
def sort_hand_action(state: GameState) -> ActionResult:
    sort_hand(state.active.hand)
    return ActionResult(success=True)
