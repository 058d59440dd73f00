"""
Generic search engines for two-player hidden-information games.

This package contains the game-independent decision-making core:
- Game state, static evaluator and response generator contracts
- Transposition table with relevance-based eviction
- Minimax search with alpha-beta pruning (GameTree)
- Monte Carlo Tree Search with UCT selection (MonteCarloTreeSearch)

The torch-backed ValueNetworkEvaluator lives in
`hidden_game_player.neural_evaluator` and is imported on demand.
"""

from hidden_game_player.exceptions import (
    SearchError, ConfigurationError, ContractViolation, TerminalStateError
)
from hidden_game_player.game_state import (
    PlayerId, GameState, PlayoutState, perspective, is_better
)
from hidden_game_player.static_evaluator import StaticEvaluator, FunctionEvaluator
from hidden_game_player.response_generator import ResponseGenerator, as_response_generator
from hidden_game_player.zobrist import ZobristHasher
from hidden_game_player.transposition_table import TranspositionTable, BoundType, TTEntry
from hidden_game_player.game_tree import GameTree, SearchResult
from hidden_game_player.mcts import MonteCarloTreeSearch, MCTSResult
from hidden_game_player.instrumentation import SearchObserver, StatsCollector, ConsoleReporter

__all__ = [
    'SearchError',
    'ConfigurationError',
    'ContractViolation',
    'TerminalStateError',
    'PlayerId',
    'GameState',
    'PlayoutState',
    'perspective',
    'is_better',
    'StaticEvaluator',
    'FunctionEvaluator',
    'ResponseGenerator',
    'as_response_generator',
    'ZobristHasher',
    'TranspositionTable',
    'BoundType',
    'TTEntry',
    'GameTree',
    'SearchResult',
    'MonteCarloTreeSearch',
    'MCTSResult',
    'SearchObserver',
    'StatsCollector',
    'ConsoleReporter',
]
