"""
Default configuration for the search engines.

Each engine accepts explicit keyword arguments or one of these dicts (with
overrides) through its `from_config()` constructor. Values are validated when
the engine is built, never during search.
"""

import math
from numbers import Real

from hidden_game_player.exceptions import ConfigurationError


# Transposition table
TRANSPOSITION_TABLE_CONFIG = {
    # Maximum number of entries
    'capacity': 1_000_000,

    # Entries not referenced for more than this many calls to age() are dropped
    'max_age': 10,
}

# Minimax / alpha-beta
GAME_TREE_CONFIG = {
    # Number of plies searched below the root
    'max_depth': 6,

    # Reject successors where the same player is still to move
    'require_alternation': True,
}

# Monte Carlo Tree Search
MCTS_CONFIG = {
    # Exploration constant of the UCT formula
    'C': math.sqrt(2),

    # Iterations (selection/expansion/rollout/backprop cycles) per decision
    'num_searches': 1000,

    # Random plies played before the static evaluator scores a rollout
    'rollout_depth': 0,

    # Playouts without a static evaluator that run longer than this raise ContractViolation
    'max_rollout_plies': 1000,

    # Seed for rollout randomness (None = nondeterministic)
    'seed': None,

    'require_alternation': True,
}


def merge_config(defaults: dict, overrides: dict = None) -> dict:
    """
    Copy of `defaults` updated with `overrides`.

    Raises:
        ConfigurationError: if `overrides` contains a key `defaults` does not know
    """
    config = dict(defaults)
    if overrides:
        unknown = sorted(set(overrides) - set(defaults))
        if unknown:
            raise ConfigurationError(f"Unknown configuration keys: {', '.join(unknown)}")
        config.update(overrides)
    return config


def validate_positive_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value <= 0:
        raise ConfigurationError(f"{name} must be a positive integer, got {value!r}")
    return value


def validate_non_negative_int(name: str, value) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 0:
        raise ConfigurationError(f"{name} must be a non-negative integer, got {value!r}")
    return value


def validate_positive_number(name: str, value) -> float:
    if (isinstance(value, bool) or not isinstance(value, Real)
            or not math.isfinite(value) or value <= 0):
        raise ConfigurationError(f"{name} must be a positive number, got {value!r}")
    return float(value)
