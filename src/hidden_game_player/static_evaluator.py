"""
Static evaluator contract.

The engines call the evaluator at the search horizon and on terminal
positions (minimax) or to score a rollout (MCTS). Scores are from ALICE's
perspective: higher is better for ALICE.
"""

import math
from abc import ABC, abstractmethod
from numbers import Real

import numpy as np

from hidden_game_player.exceptions import ConfigurationError, ContractViolation


class StaticEvaluator(ABC):
    """Abstract position evaluator."""

    @abstractmethod
    def evaluate(self, state) -> float:
        """Score of `state` from ALICE's perspective."""

    @abstractmethod
    def alice_wins_value(self) -> float:
        """Score of a position won by ALICE. No score is higher."""

    @abstractmethod
    def bob_wins_value(self) -> float:
        """Score of a position won by BOB. No score is lower."""


class FunctionEvaluator(StaticEvaluator):
    """Wraps a plain `state -> float` callable."""

    def __init__(self, fn, alice_wins_value: float = 1.0, bob_wins_value: float = -1.0):
        self.fn = fn
        self._alice_wins = float(alice_wins_value)
        self._bob_wins = float(bob_wins_value)
        check_win_values(self)

    def evaluate(self, state) -> float:
        return self.fn(state)

    def alice_wins_value(self) -> float:
        return self._alice_wins

    def bob_wins_value(self) -> float:
        return self._bob_wins


def checked_score(value) -> float:
    """Validate an evaluator result and return it as a float."""
    if isinstance(value, (bool, np.bool_)) or not isinstance(value, (Real, np.number)):
        raise ContractViolation(f"Static evaluator returned {value!r}, expected a number")
    value = float(value)
    if math.isnan(value):
        raise ContractViolation("Static evaluator returned NaN")
    return value


def check_win_values(evaluator: StaticEvaluator):
    """Raise ConfigurationError unless ALICE's win value is above BOB's."""
    alice, bob = evaluator.alice_wins_value(), evaluator.bob_wins_value()
    if not alice > bob:
        raise ConfigurationError(
            f"alice_wins_value ({alice}) must be greater than bob_wins_value ({bob})"
        )


def normalize(evaluator: StaticEvaluator, score: float) -> float:
    """Map `score` onto [-1, 1] using the evaluator's win values."""
    alice, bob = evaluator.alice_wins_value(), evaluator.bob_wins_value()
    scaled = 2.0 * (score - bob) / (alice - bob) - 1.0
    return float(np.clip(scaled, -1.0, 1.0))
