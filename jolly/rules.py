"""Rule utilities and constants for Jolly."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Final, Iterable, Sequence

from .cards import (
    ACE_LOW_ORDER,
    Card,
    Rank,
    Representation,
    Suit,
    position_value,
    rank_at,
    rank_value,
)

__all__ = [
    "MeldKind",
    "MeldResult",
    "Thresholds",
    "DealPattern",
    "DEFAULT_THRESHOLDS",
    "DEFAULT_DEAL_PATTERN",
    "RuleViolation",
    "PhaseError",
    "RoundGateError",
    "OpeningRequirementError",
    "MustMeldConstraintError",
    "InvalidMeldError",
    "BoundsError",
    "ResourceExhaustionError",
    "validate_meld",
    "organize_meld",
    "joker_assignments",
    "clear_representations",
    "is_pure_run",
    "has_pure_run",
    "meets_opening",
]

MAX_SET_SIZE = 4
MIN_MELD_SIZE = 3
KING_ORDER = Rank.KING.order
ACE_HIGH_ORDER = Rank.ACE.order
LOW_ACE_PARTNERS = frozenset({Rank.TWO, Rank.THREE, Rank.FOUR, Rank.FIVE})


class MeldKind(str, Enum):
    """The two shapes a legal meld can take."""

    SET = "set"
    RUN = "run"


@dataclass(frozen=True, slots=True)
class MeldResult:
    """Outcome of validating a candidate meld."""

    valid: bool
    points: int = 0
    kind: MeldKind | None = None
    is_pure: bool = False


INVALID: Final[MeldResult] = MeldResult(valid=False)


@dataclass(frozen=True, slots=True)
class Thresholds:
    """Threshold values that gate melding and opening."""

    opening_points: int = 36
    meld_round: int = 3
    jolly_hand_size: int = 12


@dataclass(frozen=True, slots=True)
class DealPattern:
    """Initial hand sizes and the depth of the bottom Joker cut."""

    human_cards: int = 13
    cpu_cards: int = 12
    cut_depth: int = 3


DEFAULT_THRESHOLDS: Final[Thresholds] = Thresholds()
DEFAULT_DEAL_PATTERN: Final[DealPattern] = DealPattern()


class RuleViolation(RuntimeError):
    """Base class for actions rejected by the rules engine."""


class PhaseError(RuleViolation):
    """Raised when an action is attempted in the wrong draw/action phase."""


class RoundGateError(RuleViolation):
    """Raised when melding, discard pickup or Jolly is tried before round 3."""


class OpeningRequirementError(RuleViolation):
    """Raised when the opening points or pure run requirement is not met."""


class MustMeldConstraintError(RuleViolation):
    """Raised when a discard-pickup or swapped-Joker obligation is unmet."""


class InvalidMeldError(RuleViolation):
    """Raised when cards do not form a legal Set or Run."""


class BoundsError(RuleViolation):
    """Raised for out-of-range meld or hand positions."""


class ResourceExhaustionError(RuleViolation):
    """Raised when both the stock and the discard pile are empty."""


@dataclass(frozen=True, slots=True)
class _RunLayout:
    """Positions occupied by a run under one Ace interpretation."""

    ace_low: bool
    suit: Suit
    naturals: tuple[tuple[int, Card], ...]
    gap_slots: tuple[int, ...]
    end_slots: tuple[int, ...]

    def positions(self) -> list[int]:
        natural_positions = [position for position, _ in self.naturals]
        return sorted(natural_positions + list(self.gap_slots) + list(self.end_slots))

    def points(self) -> int:
        return sum(position_value(position) for position in self.positions())


def _split(cards: Sequence[Card]) -> tuple[list[Card], list[Card]]:
    naturals = [card for card in cards if not card.is_joker]
    jokers = [card for card in cards if card.is_joker]
    return naturals, jokers


def _is_set_shape(naturals: Sequence[Card], size: int) -> bool:
    if size > MAX_SET_SIZE:
        return False
    if any(card.rank is not naturals[0].rank for card in naturals):
        return False
    suits = [card.suit for card in naturals]
    return len(set(suits)) == len(suits)


def _layout_for(naturals: Sequence[Card], joker_count: int, ace_low: bool) -> _RunLayout | None:
    def position(card: Card) -> int:
        if ace_low and card.rank is Rank.ACE:
            return ACE_LOW_ORDER
        return card.order()

    ordered = sorted(naturals, key=position)
    positions = [position(card) for card in ordered]

    gap_slots: list[int] = []
    for lower, upper in zip(positions, positions[1:]):
        step = upper - lower
        # A Joker covers one missing rank at a time.
        if step < 1 or step > 2:
            return None
        if step == 2:
            gap_slots.append(lower + 1)
    if len(gap_slots) > joker_count:
        return None

    low_bound, high_bound = (ACE_LOW_ORDER, KING_ORDER) if ace_low else (0, ACE_HIGH_ORDER)
    open_ends: list[int] = []
    if positions[-1] + 1 <= high_bound:
        open_ends.append(positions[-1] + 1)
    if positions[0] - 1 >= low_bound:
        open_ends.append(positions[0] - 1)

    leftover = joker_count - len(gap_slots)
    if leftover > len(open_ends):
        return None

    return _RunLayout(
        ace_low=ace_low,
        suit=ordered[0].suit,
        naturals=tuple(zip(positions, ordered)),
        gap_slots=tuple(gap_slots),
        end_slots=tuple(open_ends[:leftover]),
    )


def _run_layout(naturals: Sequence[Card], joker_count: int) -> _RunLayout | None:
    if any(card.suit is not naturals[0].suit for card in naturals):
        return None

    interpretations = [False]
    ranks = {card.rank for card in naturals}
    if Rank.ACE in ranks and ranks & LOW_ACE_PARTNERS:
        interpretations.append(True)

    for ace_low in interpretations:
        layout = _layout_for(naturals, joker_count, ace_low)
        if layout is not None:
            return layout
    return None


def validate_meld(cards: Sequence[Card]) -> MeldResult:
    """Validate ``cards`` as a Set or a Run and score them."""

    if len(cards) < MIN_MELD_SIZE:
        return INVALID
    naturals, jokers = _split(cards)
    if not naturals:
        return INVALID

    is_pure = not jokers
    if _is_set_shape(naturals, len(cards)):
        return MeldResult(
            valid=True,
            points=rank_value(naturals[0].rank) * len(cards),
            kind=MeldKind.SET,
            is_pure=is_pure,
        )

    layout = _run_layout(naturals, len(jokers))
    if layout is None:
        return INVALID
    return MeldResult(valid=True, points=layout.points(), kind=MeldKind.RUN, is_pure=is_pure)


def _kept_representations(naturals: Sequence[Card], jokers: Sequence[Card]) -> dict[int, Representation]:
    """Return Joker representations that do not collide with a natural card."""

    natural_keys = {(card.rank, card.suit) for card in naturals}
    kept: dict[int, Representation] = {}
    for joker in jokers:
        rep = joker.representation
        if rep is not None and (rep.rank, rep.suit) not in natural_keys:
            kept[joker.id] = rep
    return kept


def _arrange_set(
    naturals: Sequence[Card], jokers: Sequence[Card], kept: dict[int, Representation]
) -> tuple[list[Card], dict[int, Representation]]:
    rank = naturals[0].rank
    claimed = {card.suit for card in naturals}
    assignments: dict[int, Representation] = {}

    pending: list[Card] = []
    for joker in jokers:
        rep = kept.get(joker.id)
        if rep is not None and rep.rank is rank and rep.suit not in claimed:
            assignments[joker.id] = rep
            claimed.add(rep.suit)
        else:
            pending.append(joker)

    for joker in pending:
        free = next((suit for suit in Suit.standard() if suit not in claimed), None)
        if free is None:
            break
        assignments[joker.id] = Representation(rank, free)
        claimed.add(free)

    def suit_index(card: Card) -> int:
        if card.is_joker:
            rep = assignments.get(card.id)
            return rep.suit.index if rep is not None else Suit.JOKER.index
        return card.suit.index

    ordered = sorted([*naturals, *jokers], key=suit_index)
    return ordered, assignments


def _arrange_run(
    layout: _RunLayout, jokers: Sequence[Card], kept: dict[int, Representation]
) -> tuple[list[Card], dict[int, Representation]]:
    slots = [*layout.gap_slots, *layout.end_slots]
    slot_owner: dict[int, Card] = {}

    remaining: list[Card] = []
    for joker in jokers:
        rep = kept.get(joker.id)
        matched = None
        if rep is not None and rep.suit is layout.suit:
            matched = next(
                (slot for slot in slots if slot not in slot_owner and rank_at(slot) is rep.rank),
                None,
            )
        if matched is None:
            remaining.append(joker)
        else:
            slot_owner[matched] = joker

    for slot in slots:
        if slot in slot_owner or not remaining:
            continue
        slot_owner[slot] = remaining.pop(0)

    assignments = {
        joker.id: Representation(rank_at(slot), layout.suit) for slot, joker in slot_owner.items()
    }
    placed: list[tuple[int, Card]] = list(layout.naturals)
    placed.extend((slot, joker) for slot, joker in slot_owner.items())
    placed.sort(key=lambda entry: entry[0])
    return [card for _, card in placed], assignments


def _arrange(cards: Sequence[Card]) -> tuple[list[Card], dict[int, Representation | None]]:
    naturals, jokers = _split(cards)
    kept = _kept_representations(naturals, jokers)
    cleared: dict[int, Representation | None] = {
        joker.id: kept.get(joker.id) for joker in jokers
    }

    result = validate_meld(cards)
    if not result.valid:
        return list(cards), cleared

    if result.kind is MeldKind.SET:
        ordered, assignments = _arrange_set(naturals, jokers, kept)
    else:
        layout = _run_layout(naturals, len(jokers))
        if layout is None:  # pragma: no cover - validate_meld already accepted it
            return list(cards), cleared
        ordered, assignments = _arrange_run(layout, jokers, kept)

    final: dict[int, Representation | None] = {joker.id: None for joker in jokers}
    final.update(assignments)
    return ordered, final


def joker_assignments(cards: Sequence[Card]) -> dict[int, Representation]:
    """Return the identity each Joker would take, without touching the cards."""

    _, assignments = _arrange(cards)
    return {card_id: rep for card_id, rep in assignments.items() if rep is not None}


def organize_meld(cards: Sequence[Card]) -> list[Card]:
    """Assign Joker representations and return the canonical display order.

    Natural cards are never modified. A Joker whose representation collides
    with a natural card in the same meld is cleared and reassigned. Invalid
    input is returned in its original order with only collisions cleared.
    """

    ordered, assignments = _arrange(cards)
    for card in cards:
        if card.is_joker:
            card.representation = assignments.get(card.id)
    return ordered


def clear_representations(cards: Iterable[Card]) -> None:
    for card in cards:
        if card.is_joker:
            card.representation = None


def is_pure_run(cards: Sequence[Card]) -> bool:
    result = validate_meld(cards)
    return result.valid and result.kind is MeldKind.RUN and result.is_pure


def has_pure_run(melds: Iterable[Sequence[Card]]) -> bool:
    """Return ``True`` when at least one of ``melds`` is a Joker-free run."""

    return any(is_pure_run(meld) for meld in melds)


def meets_opening(
    points: int,
    melds: Iterable[Sequence[Card]],
    thresholds: Thresholds = DEFAULT_THRESHOLDS,
) -> bool:
    """Return whether ``points`` and ``melds`` satisfy the opening requirement."""

    return points >= thresholds.opening_points and has_pure_run(melds)


def melds_points(melds: Iterable[Sequence[Card]]) -> int:
    total = 0
    for meld in melds:
        result = validate_meld(meld)
        if result.valid:
            total += result.points
    return total
