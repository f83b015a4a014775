"""Meld search and move planning for the CPU player."""

from __future__ import annotations

import itertools
import logging
import random
from dataclasses import dataclass, field
from functools import lru_cache
from typing import Iterable, Sequence

import numpy as np

from . import encoding, rules
from .cards import ACE_LOW_ORDER, Card, Rank, Suit
from .state import Difficulty
from .threats import discard_threat

logger = logging.getLogger(__name__)

__all__ = [
    "JokerSwap",
    "AiMove",
    "enumerate_melds",
    "select_best_melds",
    "meets_opening",
    "choose_discard",
    "find_joker_swaps",
    "calculate_cpu_move",
]

MIN_RUN_WINDOW = 3
MAX_RUN_WINDOW = 5
RANK_PARTNER_WEIGHT = 5.0
SUIT_NEIGHBOUR_WEIGHT = 3.0
VALUE_WEIGHT = 0.5
NEIGHBOUR_REACH = 2
MEDIUM_SWAP_CHANCE = 0.5


@dataclass(frozen=True, slots=True)
class JokerSwap:
    """Replace table Joker ``joker_id`` in ``meld_index`` with ``hand_card_id``."""

    meld_index: int
    hand_card_id: int
    joker_id: int


@dataclass(slots=True)
class AiMove:
    """A full CPU plan for the action phase of one turn."""

    melds_to_play: list[list[Card]] = field(default_factory=list)
    discard_card: Card | None = None
    joker_swaps: list[JokerSwap] = field(default_factory=list)


def _run_positions(card: Card) -> list[int]:
    if card.rank is Rank.ACE:
        return [ACE_LOW_ORDER, card.order()]
    return [card.order()]


def _set_candidates(naturals: Sequence[Card], jokers: Sequence[Card]) -> Iterable[list[Card]]:
    by_rank: dict[Rank, list[Card]] = {}
    for card in naturals:
        by_rank.setdefault(card.rank, []).append(card)

    for group in by_rank.values():
        for size in (3, 4):
            for combo in itertools.combinations(group, size):
                yield list(combo)
        for size in (2, 3):
            for combo in itertools.combinations(group, size):
                for joker in jokers:
                    yield [*combo, joker]


def _run_candidates(naturals: Sequence[Card], jokers: Sequence[Card]) -> Iterable[list[Card]]:
    for suit in Suit.standard():
        slots: dict[int, list[Card]] = {}
        for card in naturals:
            if card.suit is suit:
                for position in _run_positions(card):
                    slots.setdefault(position, []).append(card)
        if not slots:
            continue

        for start in range(ACE_LOW_ORDER, Rank.ACE.order + 1):
            for length in range(MIN_RUN_WINDOW, MAX_RUN_WINDOW + 1):
                window = range(start, start + length)
                if window[-1] > Rank.ACE.order:
                    break
                present = [position for position in window if position in slots]
                missing = length - len(present)
                if missing > 1:
                    continue
                for combo in itertools.product(*(slots[position] for position in present)):
                    if missing == 0:
                        yield list(combo)
                    else:
                        for joker in jokers:
                            yield [*combo, joker]


def enumerate_melds(hand: Sequence[Card]) -> list[list[Card]]:
    """Return every valid candidate meld the heuristics consider for ``hand``.

    Sets are all three and four card same-rank combinations plus pairs and
    triples completed by a single Joker. Runs are same-suit windows of three
    to five positions with at most one position filled by a Joker.
    """

    naturals = [card for card in hand if not card.is_joker]
    jokers = [card for card in hand if card.is_joker]

    seen: set[frozenset[int]] = set()
    candidates: list[list[Card]] = []
    for meld in itertools.chain(_set_candidates(naturals, jokers), _run_candidates(naturals, jokers)):
        key = frozenset(card.id for card in meld)
        if len(key) != len(meld) or key in seen:
            continue
        if not rules.validate_meld(meld).valid:
            continue
        seen.add(key)
        candidates.append(meld)
    return candidates


def select_best_melds(candidates: Sequence[Sequence[Card]], has_opened: bool) -> list[list[Card]]:
    """Pick the non-overlapping subset of ``candidates`` covering the most cards.

    Ties prefer a selection containing a pure run while the player has not
    opened, then more melds, then more points.
    """

    masks = [encoding.mask_from_cards(meld) for meld in candidates]
    results = [rules.validate_meld(meld) for meld in candidates]
    pure_runs = [
        not has_opened and result.kind is rules.MeldKind.RUN and result.is_pure for result in results
    ]
    # cards no later candidate touches never affect the rest of the search
    reachable = [0] * (len(candidates) + 1)
    for index in range(len(candidates) - 1, -1, -1):
        reachable[index] = reachable[index + 1] | masks[index]

    @lru_cache(maxsize=None)
    def search(index: int, used: int, pure: bool) -> tuple[tuple[int, bool, int, int], tuple[int, ...]]:
        if index == len(candidates):
            return (0, pure, 0, 0), ()

        best_score, best_chosen = search(index + 1, used & reachable[index + 1], pure)
        if not encoding.overlaps(used, masks[index]):
            taken = (used | masks[index]) & reachable[index + 1]
            sub_score, sub_chosen = search(index + 1, taken, pure or pure_runs[index])
            score = (
                sub_score[0] + len(candidates[index]),
                sub_score[1],
                sub_score[2] + 1,
                sub_score[3] + results[index].points,
            )
            if score > best_score:
                best_score, best_chosen = score, (index, *sub_chosen)
        return best_score, best_chosen

    _, chosen = search(0, 0, False)
    return [list(candidates[index]) for index in chosen]


def meets_opening(melds: Sequence[Sequence[Card]]) -> bool:
    """Return whether ``melds`` together are a legal opening."""

    return rules.meets_opening(rules.melds_points(melds), melds)


def _synergy_grid(hand: Sequence[Card]) -> np.ndarray:
    grid = np.zeros((len(Suit.standard()), len(Rank.ordered())), dtype=np.int8)
    for card in hand:
        if not card.is_joker:
            grid[card.suit.index, card.order()] += 1
    return grid


def _synergy(grid: np.ndarray, card: Card) -> float:
    suit, order = card.suit.index, card.order()
    rank_partners = int(grid[:, order].sum()) - 1

    low = max(0, order - NEIGHBOUR_REACH)
    high = min(grid.shape[1], order + NEIGHBOUR_REACH + 1)
    suit_neighbours = int(grid[suit, low:high].sum()) - 1
    if card.rank is Rank.ACE:
        # a low Ace also sits next to the 2 and the 3
        suit_neighbours += int(grid[suit, :NEIGHBOUR_REACH].sum())

    return (
        RANK_PARTNER_WEIGHT * rank_partners
        + SUIT_NEIGHBOUR_WEIGHT * suit_neighbours
        - VALUE_WEIGHT * card.value()
    )


def choose_discard(
    hand: Sequence[Card],
    difficulty: Difficulty,
    table: Sequence[Sequence[Card]] = (),
    opponent_hand_size: int | None = None,
    rng: random.Random | None = None,
    exclude: Iterable[int] = (),
) -> Card | None:
    """Return the card the CPU should throw away, or ``None`` for an empty hand."""

    excluded = set(exclude)
    pool = [card for card in hand if card.id not in excluded]
    if not pool:
        return None
    naturals = [card for card in pool if not card.is_joker]
    if not naturals:
        return pool[0]

    if difficulty is Difficulty.EASY:
        return (rng or random.Random()).choice(naturals)

    grid = _synergy_grid(hand)
    scores: list[tuple[float, int, Card]] = []
    for card in naturals:
        score = _synergy(grid, card)
        if difficulty is Difficulty.HARD and table:
            score += discard_threat(table, card, opponent_hand_size)
        scores.append((score, card.id, card))
    scores.sort(key=lambda entry: (entry[0], entry[1]))
    return scores[0][2]


def find_joker_swaps(hand: Sequence[Card], table: Sequence[Sequence[Card]]) -> list[JokerSwap]:
    """Propose swaps for table Sets holding three naturals and one Joker."""

    swaps: list[JokerSwap] = []
    claimed: set[int] = set()
    for meld_index, meld in enumerate(table):
        jokers = [card for card in meld if card.is_joker]
        naturals = [card for card in meld if not card.is_joker]
        if len(jokers) != 1 or len(naturals) != 3:
            continue
        if rules.validate_meld(meld).kind is not rules.MeldKind.SET:
            continue
        rank = naturals[0].rank
        missing = [suit for suit in Suit.standard() if suit not in {card.suit for card in naturals}]
        if not missing:
            continue
        match = next(
            (
                card
                for card in hand
                if card.id not in claimed and card.rank is rank and card.suit is missing[0]
            ),
            None,
        )
        if match is None:
            continue
        claimed.add(match.id)
        swaps.append(JokerSwap(meld_index=meld_index, hand_card_id=match.id, joker_id=jokers[0].id))
    return swaps


def _swapped_hand(hand: Sequence[Card], table: Sequence[Sequence[Card]], swaps: Sequence[JokerSwap]) -> list[Card]:
    given = {swap.hand_card_id for swap in swaps}
    freed = [
        card
        for swap in swaps
        for card in table[swap.meld_index]
        if card.id == swap.joker_id
    ]
    return [card for card in hand if card.id not in given] + freed


def calculate_cpu_move(
    hand: Sequence[Card],
    has_opened: bool,
    table: Sequence[Sequence[Card]] = (),
    difficulty: Difficulty = Difficulty.MEDIUM,
    *,
    rng: random.Random | None = None,
    opponent_hand_size: int | None = None,
    exclude: Iterable[int] = (),
    allow_swaps: bool = True,
    allow_melds: bool = True,
) -> AiMove:
    """Plan the swaps, melds and discard for a hand after its draw."""

    rng = rng or random.Random()
    swaps: list[JokerSwap] = []
    if allow_swaps and has_opened and difficulty is not Difficulty.EASY:
        swaps = find_joker_swaps(hand, table)
        if swaps and difficulty is Difficulty.MEDIUM and rng.random() >= MEDIUM_SWAP_CHANCE:
            swaps = []

    working = _swapped_hand(hand, table, swaps)
    melds: list[list[Card]] = []
    if allow_melds:
        melds = select_best_melds(enumerate_melds(working), has_opened)
        if difficulty is Difficulty.EASY:
            melds = melds[:1]
        if melds and not has_opened and not meets_opening(melds):
            melds = []

    melded = {card.id for meld in melds for card in meld}
    remaining = [card for card in working if card.id not in melded]
    excluded = set(exclude) | {swap.joker_id for swap in swaps}
    discard = choose_discard(
        remaining,
        difficulty,
        table,
        opponent_hand_size,
        rng,
        exclude=excluded,
    )
    logger.debug(
        "Planned %d meld(s), %d swap(s), discard %s",
        len(melds),
        len(swaps),
        discard.label() if discard else "-",
    )
    return AiMove(melds_to_play=melds, discard_card=discard, joker_swaps=swaps)
