"""Helpers for tracking multi-game Jolly match results."""

from __future__ import annotations

from dataclasses import dataclass, field

from .state import Seat

__all__ = ["GameSummary", "SeatTotal", "MatchHistory"]


@dataclass(frozen=True, slots=True)
class GameSummary:
    """Summary captured after a single game.

    ``winner`` is ``None`` when the game hit the turn limit. ``score`` is the
    winner's score: minus the number of cards left in the loser's hand.
    """

    game_number: int
    winner: Seat | None
    score: int
    rounds: int


@dataclass(frozen=True, slots=True)
class SeatTotal:
    """Aggregate totals for one seat across all recorded games."""

    seat: Seat
    wins: int
    score: int


@dataclass(slots=True)
class MatchHistory:
    """Mutable tracker that accumulates game summaries for a match."""

    games: list[GameSummary] = field(default_factory=list)
    _wins: dict[Seat, int] = field(init=False, repr=False)
    _score: dict[Seat, int] = field(init=False, repr=False)

    def __post_init__(self) -> None:
        self._wins = {seat: 0 for seat in Seat}
        self._score = {seat: 0 for seat in Seat}

    def record(self, summary: GameSummary) -> None:
        """Record ``summary`` and update cumulative totals."""

        if summary.rounds <= 0:
            raise ValueError("a game lasts at least one round")
        self.games.append(summary)
        if summary.winner is not None:
            self._wins[summary.winner] += 1
            self._score[summary.winner] += summary.score

    @property
    def draws(self) -> int:
        return sum(1 for game in self.games if game.winner is None)

    def totals(self) -> list[SeatTotal]:
        """Return the cumulative totals for each seat, human seat first."""

        return [SeatTotal(seat=seat, wins=self._wins[seat], score=self._score[seat]) for seat in Seat]
