"""Win-distance evaluation used to steer CPU decisions."""

from __future__ import annotations

from typing import Sequence

from . import encoding, rules, solver
from .cards import Card

Table = tuple[tuple[Card, ...], ...]

UNOPENED_PENALTY = 2


def _without(cards: Sequence[Card], card_id: int) -> tuple[Card, ...]:
    return tuple(card for card in cards if card.id != card_id)


def _swap_states(hand: Sequence[Card], table: Sequence[Sequence[Card]]) -> list[tuple[tuple[Card, ...], Table]]:
    """Return every (hand, table) reachable by swapping table Jokers for hand cards."""

    start = (tuple(hand), tuple(tuple(meld) for meld in table))
    seen = {encoding.table_key(encoding.mask_from_cards(start[0]), start[1])}
    states = [start]
    stack = [start]
    while stack:
        cards, melds = stack.pop()
        for meld_index, meld in enumerate(melds):
            assignments = rules.joker_assignments(meld)
            if not assignments:
                continue
            if rules.validate_meld(meld).kind is rules.MeldKind.SET and len(meld) < 4:
                continue
            for joker in (card for card in meld if card.id in assignments):
                rep = assignments[joker.id]
                for natural in cards:
                    if natural.is_joker or natural.rank is not rep.rank or natural.suit is not rep.suit:
                        continue
                    swapped = tuple(natural if card.id == joker.id else card for card in meld)
                    if not rules.validate_meld(swapped).valid:
                        continue
                    next_hand = (*_without(cards, natural.id), joker)
                    next_table = melds[:meld_index] + (swapped,) + melds[meld_index + 1 :]
                    key = encoding.table_key(encoding.mask_from_cards(next_hand), next_table)
                    if key in seen:
                        continue
                    seen.add(key)
                    states.append((next_hand, next_table))
                    stack.append((next_hand, next_table))
    return states


def _fewest_after_lay_off(
    hand: Sequence[Card],
    melds: Sequence[Sequence[Card]],
    memo: dict[tuple[int, ...], int],
) -> int:
    """Return the smallest hand reachable by adding cards onto ``melds``."""

    def search(cards: tuple[Card, ...], table: Table) -> int:
        if not cards:
            return 0
        key = encoding.table_key(encoding.mask_from_cards(cards), table)
        cached = memo.get(key)
        if cached is not None:
            return cached

        best = len(cards)
        for card in cards:
            for index, meld in enumerate(table):
                extended = (*meld, card)
                if not rules.validate_meld(extended).valid:
                    continue
                result = search(_without(cards, card.id), table[:index] + (extended,) + table[index + 1 :])
                best = min(best, result)
                if best == 0:
                    break
            if best == 0:
                break
        memo[key] = best
        return best

    return search(tuple(hand), tuple(tuple(meld) for meld in melds))


def _distance(
    hand: Sequence[Card],
    has_opened: bool,
    table: Sequence[Sequence[Card]],
    memo: dict[tuple[int, ...], int],
) -> int:
    """Minimise over every non-overlapping meld selection and its lay-offs."""

    candidates = solver.enumerate_melds(hand)
    masks = [encoding.mask_from_cards(meld) for meld in candidates]
    best = len(hand) + (0 if has_opened else UNOPENED_PENALTY)

    def score(used: int, chosen: list[list[Card]]) -> int:
        remaining = [card for card in hand if not encoding.overlaps(used, 1 << card.id)]
        if not has_opened and not solver.meets_opening(chosen):
            return len(remaining) + UNOPENED_PENALTY
        left = _fewest_after_lay_off(remaining, [*table, *chosen], memo)
        return 0 if left <= 1 else left

    def choose(index: int, used: int, chosen: list[list[Card]]) -> None:
        nonlocal best
        if best == 0:
            return
        if index == len(candidates):
            best = min(best, score(used, chosen))
            return
        if not encoding.overlaps(used, masks[index]):
            choose(index + 1, used | masks[index], [*chosen, candidates[index]])
        choose(index + 1, used, chosen)

    choose(0, 0, [])
    return best


def evaluate_hand_progress(
    hand: Sequence[Card],
    has_opened: bool,
    table: Sequence[Sequence[Card]] = (),
) -> int:
    """Return how many cards stand between ``hand`` and going out.

    Zero means the hand can be melded down to a single discard this turn.
    An unopened hand that cannot meet the opening requirement is charged a
    fixed penalty on top of its leftover cards.
    """

    if has_opened:
        states = _swap_states(hand, table)
    else:
        states = [(tuple(hand), tuple(tuple(meld) for meld in table))]
    memo: dict[tuple[int, ...], int] = {}
    return min(_distance(cards, has_opened, melds, memo) for cards, melds in states)
