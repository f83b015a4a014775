"""Top-level package for the Jolly rummy engine."""

from . import actions, cards, cpu, encoding, evaluation, rules, solver, state

__all__ = [
    "actions",
    "cards",
    "cpu",
    "encoding",
    "evaluation",
    "rules",
    "solver",
    "state",
]
