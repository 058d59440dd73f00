"""
Game state contract shared by both search engines.

A concrete game supplies states that can report a 64-bit fingerprint and
whose turn it is. Scores are always expressed from ALICE's point of view;
`perspective()` is the only place where a player is turned into a
comparison direction.
"""

from abc import ABC, abstractmethod
from enum import IntEnum

import numpy as np

from hidden_game_player.exceptions import ContractViolation


FINGERPRINT_MASK = (1 << 64) - 1


class PlayerId(IntEnum):
    """IDs of the two players. The values can be used as indices."""
    ALICE = 0
    BOB = 1

    def other(self) -> 'PlayerId':
        """Returns the other player."""
        return PlayerId.BOB if self is PlayerId.ALICE else PlayerId.ALICE


def perspective(player) -> int:
    """+1 for the maximizing player (ALICE), -1 for the minimizing player (BOB)."""
    return 1 if as_player(player) is PlayerId.ALICE else -1


def is_better(player, candidate: float, incumbent: float) -> bool:
    """True if `candidate` is strictly better than `incumbent` for `player`."""
    sign = perspective(player)
    return sign * candidate > sign * incumbent


def as_player(value) -> PlayerId:
    """Convert a `whose_turn()` result (PlayerId, 0 or 1) into a PlayerId."""
    if isinstance(value, PlayerId):
        return value
    if isinstance(value, bool) or value not in (0, 1):
        raise ContractViolation(f"whose_turn() returned {value!r}, expected 0 or 1")
    return PlayerId(value)


def checked_fingerprint(state) -> int:
    """Fingerprint of `state`, verified to be an unsigned 64-bit integer."""
    fingerprint = state.fingerprint()
    if isinstance(fingerprint, (bool, np.bool_)) or not isinstance(fingerprint, (int, np.integer)):
        raise ContractViolation(f"fingerprint() returned {fingerprint!r}, expected an integer")
    fingerprint = int(fingerprint)
    if fingerprint < 0 or fingerprint > FINGERPRINT_MASK:
        raise ContractViolation(f"fingerprint {fingerprint} is not a 64-bit value")
    return fingerprint


class GameState(ABC):
    """
    Abstract game state consumed by the search engines.

    Equal positions must produce equal fingerprints; the engines merge
    transpositions by fingerprint, never by object identity. States are
    treated as immutable by the engines.
    """

    @abstractmethod
    def fingerprint(self) -> int:
        """Returns a 64-bit fingerprint identifying this position."""

    @abstractmethod
    def whose_turn(self) -> PlayerId:
        """Returns the player about to move."""


class PlayoutState(GameState):
    """
    A state that can score a finished playout.

    Required by MonteCarloTreeSearch when no static evaluator is given:
    random playouts run until `is_terminal()` and are scored by `outcome()`.
    """

    @abstractmethod
    def is_terminal(self) -> bool:
        """True if the game is over in this position."""

    @abstractmethod
    def outcome(self) -> float:
        """
        Result of the game in [-1, 1] from ALICE's perspective.

        1 is a win for ALICE, -1 a win for BOB and 0 a draw. Only called on
        terminal positions.
        """
