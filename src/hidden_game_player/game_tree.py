"""
Minimax game tree search with alpha-beta pruning.

The game-specific components (response generator, static evaluator) are
provided at run-time. Values are always from ALICE's perspective: ALICE
maximizes, BOB minimizes, and `perspective()` decides which side a node is
on.

Algorithm overview:

    def search(state, depth, alpha, beta):
        if entry := tt.lookup(state, depth):
            exact -> return it, bounds -> narrow the window
        if depth == 0 or no responses:
            return static_eval(state)

        best = worst value for the player to move
        for response in responses:             # generator order
            value = search(response, depth-1, alpha, beta)
            if strictly better: best = value
            raise alpha (ALICE) or lower beta (BOB)
            if alpha >= beta or best is a win:
                break                          # cutoff

        tt.store(state, best, depth, bound_from(best, window at entry))
        return best
"""

import math
import time
from dataclasses import dataclass, field
from typing import Any, Optional

from hidden_game_player.config import GAME_TREE_CONFIG, merge_config, validate_positive_int
from hidden_game_player.game_state import PlayerId, as_player, checked_fingerprint, is_better
from hidden_game_player.instrumentation import SearchObserver
from hidden_game_player.response_generator import as_response_generator, checked_responses
from hidden_game_player.static_evaluator import StaticEvaluator, check_win_values, checked_score
from hidden_game_player.transposition_table import BoundType, TranspositionTable


@dataclass
class SearchResult:
    """Result of a minimax search."""
    response: Optional[Any]
    value: float
    depth: int
    nodes_searched: int
    cutoffs: int
    tt_hits: int
    time_ms: int
    tt_stats: dict = field(default_factory=dict)


class GameTree:
    """
    Depth-bounded minimax search with alpha-beta pruning and a transposition table.

    Ties between equally valued responses are broken by generator order: the
    first one seen wins. This is deterministic but otherwise arbitrary.
    """

    def __init__(
        self,
        transposition_table: TranspositionTable,
        static_evaluator: StaticEvaluator,
        response_generator,
        max_depth: int,
        require_alternation: bool = True,
        observer: SearchObserver = None
    ):
        """
        Initialize the game tree.

        Args:
            transposition_table: Table shared across searches
            static_evaluator: Scores horizon and terminal positions
            response_generator: ResponseGenerator or `(state, depth) -> states`
            max_depth: Number of plies searched below the root
            require_alternation: Reject responses where the same player moves again
            observer: Instrumentation hooks (no-op by default)
        """
        self.max_depth = validate_positive_int('max_depth', max_depth)
        check_win_values(static_evaluator)
        self.transposition_table = transposition_table
        self.static_evaluator = static_evaluator
        self.response_generator = as_response_generator(response_generator)
        self.require_alternation = require_alternation
        self.observer = observer or SearchObserver()

        # Search statistics (reset by each search)
        self.nodes_searched = 0
        self.cutoffs = 0
        self.tt_hits = 0

    @classmethod
    def from_config(cls, transposition_table, static_evaluator, response_generator,
                    config: dict = None, observer: SearchObserver = None):
        config = merge_config(GAME_TREE_CONFIG, config)
        return cls(
            transposition_table, static_evaluator, response_generator,
            max_depth=config['max_depth'],
            require_alternation=config['require_alternation'],
            observer=observer,
        )

    def find_best_response(self, state):
        """
        Best successor of `state`, or None if it has none.

        The state itself is not modified; recording the response on it is up
        to the caller.
        """
        return self.search(state).response

    def search(self, state) -> SearchResult:
        """
        Search `state` to `max_depth` plies.

        Returns:
            SearchResult with the chosen response and its value. If the state
            has no successors, the response is None and the value is the
            static evaluation of the state.
        """
        start = time.time()
        self.nodes_searched = 0
        self.cutoffs = 0
        self.tt_hits = 0

        response, value = self._search_root(state)

        result = SearchResult(
            response=response,
            value=value,
            depth=self.max_depth,
            nodes_searched=self.nodes_searched,
            cutoffs=self.cutoffs,
            tt_hits=self.tt_hits,
            time_ms=int((time.time() - start) * 1000),
            tt_stats=self.transposition_table.get_stats(),
        )
        self.observer.on_search_completed(result)
        return result

    def _search_root(self, state):
        """Root node search (full window). Returns (best_response, value)."""
        self.nodes_searched += 1
        fingerprint = checked_fingerprint(state)
        player = as_player(state.whose_turn())
        self.observer.on_node_visited(fingerprint, self.max_depth)

        responses = self._generate(state, self.max_depth)
        if not responses:
            return None, self._evaluate(state)

        alpha, beta = -math.inf, math.inf
        best_response = None
        best_value = -math.inf if player is PlayerId.ALICE else math.inf

        for response in responses:
            value = self._search(response, self.max_depth - 1, alpha, beta)
            if best_response is None or is_better(player, value, best_value):
                best_response = response
                best_value = value
                if player is PlayerId.ALICE:
                    alpha = max(alpha, value)
                else:
                    beta = min(beta, value)
            if self._is_win(player, best_value):
                break

        self.transposition_table.store(fingerprint, best_value, self.max_depth, BoundType.EXACT)
        return best_response, best_value

    def _search(self, state, depth: int, alpha: float, beta: float) -> float:
        """
        Minimax value of `state` searched `depth` plies deep.

        Args:
            state: Position to evaluate
            depth: Remaining depth
            alpha: Best value ALICE can already guarantee
            beta: Best value BOB can already guarantee

        Returns:
            Value from ALICE's perspective (exact inside the window, a bound
            outside it)
        """
        self.nodes_searched += 1
        fingerprint = checked_fingerprint(state)
        player = as_player(state.whose_turn())
        self.observer.on_node_visited(fingerprint, depth)

        # Probe transposition table
        entry = self.transposition_table.lookup(fingerprint, depth)
        if entry is not None:
            self.tt_hits += 1
            cached = entry.cutoff_score(alpha, beta)
            if cached is not None:
                return cached
            alpha, beta = entry.narrow(alpha, beta)

        if depth <= 0:
            return self._evaluate(state)

        responses = self._generate(state, depth)
        if not responses:
            return self._evaluate(state)

        window_alpha, window_beta = alpha, beta
        best_value = -math.inf if player is PlayerId.ALICE else math.inf

        for response in responses:
            value = self._search(response, depth - 1, alpha, beta)
            if is_better(player, value, best_value):
                best_value = value

            if player is PlayerId.ALICE:
                alpha = max(alpha, value)
            else:
                beta = min(beta, value)

            if alpha >= beta:
                self.cutoffs += 1
                self.observer.on_cutoff(fingerprint, depth)
                break
            if self._is_win(player, best_value):
                break

        # Determine bound type for TT
        if best_value <= window_alpha:
            bound = BoundType.UPPER   # Failed low
        elif best_value >= window_beta:
            bound = BoundType.LOWER   # Failed high
        else:
            bound = BoundType.EXACT

        self.transposition_table.store(fingerprint, best_value, depth, bound)
        return best_value

    def _generate(self, state, depth: int) -> list:
        return checked_responses(
            self.response_generator, state, depth, self.require_alternation
        )

    def _evaluate(self, state) -> float:
        return checked_score(self.static_evaluator.evaluate(state))

    def _is_win(self, player: PlayerId, value: float) -> bool:
        """True if `value` is a decided win for `player`; nothing can beat it."""
        if player is PlayerId.ALICE:
            return value >= self.static_evaluator.alice_wins_value()
        return value <= self.static_evaluator.bob_wins_value()
