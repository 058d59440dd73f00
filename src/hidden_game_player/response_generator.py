"""
Response generator contract.

The generator is the only way the engines discover branching. Given a state
and a depth it returns the successor states in the order they should be
tried; the engines never reorder them.
"""

from abc import ABC, abstractmethod

from hidden_game_player.exceptions import ContractViolation
from hidden_game_player.game_state import as_player


class ResponseGenerator(ABC):
    """Abstract successor generator."""

    @abstractmethod
    def generate(self, state, depth: int):
        """
        Successors of `state`, best candidates first.

        Args:
            state: Position to respond to
            depth: Remaining search depth (minimax) or ply of the node (MCTS)

        Returns:
            A finite sequence of successor states. Empty if the game is over.
        """


class CallableResponseGenerator(ResponseGenerator):
    """Adapts a `(state, depth) -> iterable` function."""

    def __init__(self, fn):
        self.fn = fn

    def generate(self, state, depth: int):
        return self.fn(state, depth)


def as_response_generator(obj) -> ResponseGenerator:
    """Accept a ResponseGenerator or a plain callable."""
    if isinstance(obj, ResponseGenerator):
        return obj
    if callable(obj):
        return CallableResponseGenerator(obj)
    raise TypeError(f"Expected a ResponseGenerator or a callable, got {type(obj).__name__}")


def checked_responses(generator: ResponseGenerator, state, depth: int,
                      require_alternation: bool = True) -> list:
    """
    Call the generator and validate what it returns.

    Returns:
        The responses as a list, in generator order

    Raises:
        ContractViolation: if the result is not a sequence of states or, with
            `require_alternation`, a response is not the opponent's turn
    """
    raw = generator.generate(state, depth)
    if raw is None:
        raise ContractViolation("Response generator returned None instead of a sequence")
    try:
        responses = list(raw)
    except TypeError:
        raise ContractViolation(
            f"Response generator returned {type(raw).__name__}, expected a sequence"
        ) from None

    if not responses:
        return responses

    mover = as_player(state.whose_turn())
    for response in responses:
        if not (hasattr(response, 'fingerprint') and hasattr(response, 'whose_turn')):
            raise ContractViolation(
                f"Response generator produced {response!r}, which is not a game state"
            )
        if require_alternation and as_player(response.whose_turn()) is mover:
            raise ContractViolation(
                f"Response generator produced a successor where {mover.name} "
                f"is still to move"
            )
    return responses
