"""
Monte Carlo Tree Search with UCT selection.

Each iteration runs four phases:

1. Selection: descend from the root through fully expanded nodes, always
   taking the child with the highest UCT score
       Q + C * sqrt(ln(N_parent) / N_child)
2. Expansion: materialize the next untried successor of the selected node
3. Rollout: score the new node, either with the static evaluator (after an
   optional number of random plies) or by a random playout until
   `state.is_terminal()`, scored by `state.outcome()`
4. Backpropagation: add the reward to every node on the path, measured for
   the player who moved into that node

The tree lives in an arena (`SearchTree.nodes`); nodes refer to their parent
and children by index.
"""

import math
import time
from dataclasses import dataclass
from typing import Any, Optional

import numpy as np
from tqdm import tqdm

from hidden_game_player.config import (
    MCTS_CONFIG, merge_config, validate_non_negative_int,
    validate_positive_int, validate_positive_number
)
from hidden_game_player.exceptions import ContractViolation, TerminalStateError
from hidden_game_player.game_state import as_player, checked_fingerprint, perspective
from hidden_game_player.instrumentation import SearchObserver
from hidden_game_player.response_generator import as_response_generator, checked_responses
from hidden_game_player.static_evaluator import (
    StaticEvaluator, check_win_values, checked_score, normalize
)


class Node:
    def __init__(self, state, index, parent=None, ply=0, visit_count=0):
        self.state = state
        self.index = index
        self.parent = parent
        self.ply = ply
        self.fingerprint = checked_fingerprint(state)
        self.player = as_player(state.whose_turn())

        self.children = []
        # None until the node is first reached; then the successors not yet expanded
        self.untried = None

        self.visit_count = visit_count
        self.value_sum = 0.0

    def is_fully_expanded(self):
        return self.untried is not None and len(self.untried) == 0

    def average_value(self):
        if self.visit_count == 0:
            return 0.0
        return self.value_sum / self.visit_count


class SearchTree:
    """Arena of MCTS nodes addressed by integer handles."""

    def __init__(self, root_state):
        self.nodes = []
        # The root counts as visited once before the first iteration
        self.add(root_state, visit_count=1)

    @property
    def root(self) -> Node:
        return self.nodes[0]

    def __getitem__(self, handle: int) -> Node:
        return self.nodes[handle]

    def __len__(self) -> int:
        return len(self.nodes)

    def add(self, state, parent: Optional[int] = None, visit_count: int = 0) -> int:
        handle = len(self.nodes)
        ply = 0 if parent is None else self.nodes[parent].ply + 1
        self.nodes.append(Node(state, handle, parent, ply, visit_count))
        if parent is not None:
            self.nodes[parent].children.append(handle)
        return handle

    def get_ucb(self, parent: Node, child: Node, exploration_constant: float) -> float:
        if child.visit_count == 0:
            return math.inf
        exploration = math.sqrt(math.log(parent.visit_count) / child.visit_count)
        return child.average_value() + exploration_constant * exploration

    def select(self, handle: int, exploration_constant: float) -> int:
        """Child of `handle` with the highest UCT score (first one on ties)."""
        parent = self.nodes[handle]
        best_child = None
        best_ucb = -math.inf

        for child_handle in parent.children:
            ucb = self.get_ucb(parent, self.nodes[child_handle], exploration_constant)
            if best_child is None or ucb > best_ucb:
                best_child = child_handle
                best_ucb = ucb

        return best_child


@dataclass
class MCTSResult:
    """Result of an MCTS search. Per-child lists follow generator order."""
    response: Any
    children: list
    visit_counts: list
    average_values: list
    iterations: int
    root_visits: int
    tree_size: int
    time_ms: int


class MonteCarloTreeSearch:
    """
    UCT search over the successors produced by a response generator.

    The answer is the most visited root child; ties go to the higher average
    value, then to generator order.
    """

    def __init__(
        self,
        response_generator,
        static_evaluator: StaticEvaluator = None,
        exploration_constant: float = math.sqrt(2),
        iteration_count: int = 1000,
        rollout_depth: int = 0,
        max_rollout_plies: int = 1000,
        seed: Optional[int] = None,
        require_alternation: bool = True,
        observer: SearchObserver = None,
        show_progress: bool = False
    ):
        """
        Initialize MCTS.

        Args:
            response_generator: ResponseGenerator or `(state, ply) -> states`
            static_evaluator: Scores rollouts directly; None means random
                playouts until `state.is_terminal()`, scored by `state.outcome()`
            exploration_constant: C in the UCT formula
            iteration_count: Iterations per decision
            rollout_depth: Random plies played before the evaluator scores a rollout
            max_rollout_plies: Longest playout allowed without an evaluator
            seed: Seed for rollout randomness
            require_alternation: Reject responses where the same player moves again
            observer: Instrumentation hooks (no-op by default)
            show_progress: Show a tqdm progress bar over iterations
        """
        self.exploration_constant = validate_positive_number(
            'exploration_constant', exploration_constant
        )
        self.iteration_count = validate_positive_int('iteration_count', iteration_count)
        self.rollout_depth = validate_non_negative_int('rollout_depth', rollout_depth)
        self.max_rollout_plies = validate_positive_int('max_rollout_plies', max_rollout_plies)
        if static_evaluator is not None:
            check_win_values(static_evaluator)

        self.response_generator = as_response_generator(response_generator)
        self.static_evaluator = static_evaluator
        self.seed = seed
        self.require_alternation = require_alternation
        self.observer = observer or SearchObserver()
        self.show_progress = show_progress

    @classmethod
    def from_config(cls, response_generator, static_evaluator=None, config: dict = None,
                    observer: SearchObserver = None, show_progress: bool = False):
        config = merge_config(MCTS_CONFIG, config)
        return cls(
            response_generator,
            static_evaluator,
            exploration_constant=config['C'],
            iteration_count=config['num_searches'],
            rollout_depth=config['rollout_depth'],
            max_rollout_plies=config['max_rollout_plies'],
            seed=config['seed'],
            require_alternation=config['require_alternation'],
            observer=observer,
            show_progress=show_progress,
        )

    def find_best_response(self, state):
        """
        Most promising successor of `state`.

        Raises:
            TerminalStateError: if `state` has no successors
        """
        return self.search(state).response

    def search(self, state) -> MCTSResult:
        """Run `iteration_count` iterations from `state`."""
        start = time.time()
        rng = np.random.default_rng(self.seed)
        tree = SearchTree(state)

        root = tree.root
        root.untried = self._generate(root.state, root.ply)
        if not root.untried:
            raise TerminalStateError(state)

        iterations = range(self.iteration_count)
        if self.show_progress:
            iterations = tqdm(iterations, desc="MCTS", leave=False)

        for i in iterations:
            # 1. Selection
            handle = self._select(tree)

            # 2. Expansion
            handle = self._expand(tree, handle)

            # 3. Rollout
            node = tree[handle]
            reward = self._rollout(node.state, node.ply, rng)

            # 4. Backpropagation
            self._backpropagate(tree, handle, reward)
            self.observer.on_iteration_completed(i + 1, root.visit_count)

        result = self._result(tree, start)
        self.observer.on_search_completed(result)
        return result

    def _select(self, tree: SearchTree) -> int:
        handle = 0
        while True:
            node = tree[handle]
            if node.untried is None:
                node.untried = self._generate(node.state, node.ply)
            if not node.is_fully_expanded() or not node.children:
                return handle
            handle = tree.select(handle, self.exploration_constant)

    def _expand(self, tree: SearchTree, handle: int) -> int:
        node = tree[handle]
        if not node.untried:
            return handle  # Terminal
        return tree.add(node.untried.pop(0), parent=handle)

    def _rollout(self, state, ply: int, rng) -> float:
        """Reward in [-1, 1] from ALICE's perspective."""
        if self.static_evaluator is not None:
            for _ in range(self.rollout_depth):
                responses = self._generate(state, ply)
                if not responses:
                    break
                state = responses[rng.integers(len(responses))]
                ply += 1
            score = checked_score(self.static_evaluator.evaluate(state))
            return normalize(self.static_evaluator, score)

        if not (hasattr(state, 'is_terminal') and hasattr(state, 'outcome')):
            raise ContractViolation(
                "MCTS without a static evaluator needs states with is_terminal() and outcome()"
            )

        plies = 0
        while not state.is_terminal():
            if plies == self.max_rollout_plies:
                raise ContractViolation(
                    f"Playout did not reach a terminal state within {plies} plies"
                )
            responses = self._generate(state, ply)
            if not responses:
                raise ContractViolation(
                    "Response generator returned no successors for a non-terminal state"
                )
            state = responses[rng.integers(len(responses))]
            ply += 1
            plies += 1

        return float(np.clip(checked_score(state.outcome()), -1.0, 1.0))

    def _backpropagate(self, tree: SearchTree, handle: int, reward: float):
        while handle is not None:
            node = tree[handle]
            # Value is measured for the player who moved into this node
            mover = tree[node.parent].player if node.parent is not None else node.player
            node.visit_count += 1
            node.value_sum += perspective(mover) * reward
            handle = node.parent

    def _generate(self, state, ply: int) -> list:
        return checked_responses(
            self.response_generator, state, ply, self.require_alternation
        )

    def _result(self, tree: SearchTree, start: float) -> MCTSResult:
        root = tree.root
        children = [tree[handle] for handle in root.children]

        best = None
        for child in children:
            if best is None or (
                (child.visit_count, child.average_value())
                > (best.visit_count, best.average_value())
            ):
                best = child

        return MCTSResult(
            response=best.state,
            children=[child.state for child in children],
            visit_counts=[child.visit_count for child in children],
            average_values=[child.average_value() for child in children],
            iterations=self.iteration_count,
            root_visits=root.visit_count,
            tree_size=len(tree),
            time_ms=int((time.time() - start) * 1000),
        )
