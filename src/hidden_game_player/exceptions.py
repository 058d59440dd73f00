"""
Error types raised by the search engines.

Terminal positions and a full transposition table are normal outcomes and
never raise. Everything here is reported to the caller as-is; nothing is
retried inside the engines.
"""


class SearchError(Exception):
    """Base class for all hidden_game_player errors."""


class ConfigurationError(SearchError, ValueError):
    """Invalid construction parameter (depth, iteration count, capacity, ...)."""


class ContractViolation(SearchError, RuntimeError):
    """A caller-supplied collaborator broke its contract."""


class TerminalStateError(SearchError):
    """A move was requested from a state that has no successors."""

    def __init__(self, state, message: str = "State has no legal successors"):
        super().__init__(message)
        self.state = state
