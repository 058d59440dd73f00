"""
Unit tests for Monte Carlo Tree Search.

Tests verify:
1. Visit accounting (root children visits sum to the iteration count)
2. Rewards are credited to the player who moved into a node
3. The dominant move wins, with and without a static evaluator
4. Terminal roots and bad configurations are rejected
"""

import math
from dataclasses import dataclass

import pytest

from hidden_game_player import (
    ConfigurationError, ContractViolation, FunctionEvaluator, MonteCarloTreeSearch,
    PlayerId, PlayoutState, StatsCollector, TerminalStateError
)
from hidden_game_player.mcts import SearchTree

from toy_games import (
    TREE_EVALUATOR, TTT_EVALUATOR, CountingEvaluator, CountingGenerator,
    TicTacToeState, TreeState, random_tree, tree_responses, ttt_responses
)

ALICE, BOB = PlayerId.ALICE, PlayerId.BOB

UNIT_EVALUATOR = FunctionEvaluator(lambda state: state.value)


def one_good_move(player=ALICE):
    """Three terminal replies; only the middle one is good for `player`."""
    good = 1.0 if player is ALICE else -1.0
    children = (
        TreeState(2, player.other(), -good),
        TreeState(3, player.other(), good),
        TreeState(4, player.other(), -good),
    )
    return TreeState(1, player, children=children), children[1]


@dataclass(frozen=True)
class EndlessState(PlayoutState):
    """A game that never ends: every position has exactly one reply."""
    n: int
    player: PlayerId

    def fingerprint(self) -> int:
        return self.n

    def whose_turn(self) -> PlayerId:
        return self.player

    def is_terminal(self) -> bool:
        return False

    def outcome(self) -> float:
        return 0.9


def endless_responses(state, depth):
    return [EndlessState(state.n + 1, state.player.other())]


class TestVisitAccounting:

    @pytest.mark.parametrize('iterations', [1, 7, 50, 200])
    def test_children_visits_sum_to_iterations(self, iterations):
        mcts = MonteCarloTreeSearch(ttt_responses, iteration_count=iterations, seed=0)
        result = mcts.search(TicTacToeState())

        assert sum(result.visit_counts) == iterations
        assert result.root_visits == iterations + 1
        assert result.iterations == iterations

    def test_one_child_expanded_per_iteration(self):
        mcts = MonteCarloTreeSearch(ttt_responses, iteration_count=5, seed=0)
        result = mcts.search(TicTacToeState())

        # 9 untried moves at the root: every iteration expands a new one
        assert len(result.children) == 5
        assert result.visit_counts == [1, 1, 1, 1, 1]
        assert result.tree_size == 6

    def test_unvisited_children_selected_first(self):
        tree = SearchTree(TreeState(1, ALICE))
        first = tree.add(TreeState(2, BOB), parent=0)
        second = tree.add(TreeState(3, BOB), parent=0)
        tree[first].visit_count = 10
        tree[first].value_sum = 10.0

        assert tree.select(0, math.sqrt(2)) == second


class TestDecisions:

    @pytest.mark.parametrize('player', [ALICE, BOB])
    def test_dominant_move_with_evaluator(self, player):
        root, good = one_good_move(player)
        mcts = MonteCarloTreeSearch(tree_responses, UNIT_EVALUATOR, iteration_count=100, seed=0)
        result = mcts.search(root)

        assert result.response is good
        assert max(result.visit_counts) == result.visit_counts[1]
        # Averages are measured for the player who moved into the child
        assert result.average_values[1] == 1.0
        assert result.average_values[0] == -1.0

    @pytest.mark.parametrize('player', [ALICE, BOB])
    def test_dominant_move_with_playouts(self, player):
        root, good = one_good_move(player)
        mcts = MonteCarloTreeSearch(tree_responses, iteration_count=100, seed=0)
        assert mcts.find_best_response(root) is good

    def test_more_iterations_find_the_win(self):
        # X to move and win on square 2; random playouts must discover it
        state = TicTacToeState.from_string('XX.OO....', ALICE)
        for seed in range(5):
            mcts = MonteCarloTreeSearch(ttt_responses, iteration_count=1000, seed=seed)
            response = mcts.find_best_response(state)
            assert state.moved_square(response) == 2

    def test_bob_blocks_with_evaluator_rollouts(self):
        state = TicTacToeState.from_string('XX..O....', BOB)
        mcts = MonteCarloTreeSearch(
            ttt_responses, TTT_EVALUATOR, iteration_count=2000, rollout_depth=9, seed=1
        )
        response = mcts.find_best_response(state)
        assert state.moved_square(response) == 2

    def test_ties_go_to_generator_order(self):
        children = tuple(TreeState(i, BOB, 0.0) for i in range(2, 5))
        root = TreeState(1, ALICE, children=children)
        mcts = MonteCarloTreeSearch(tree_responses, UNIT_EVALUATOR, iteration_count=6)
        result = mcts.search(root)

        assert result.visit_counts == [2, 2, 2]
        assert result.response is children[0]

    def test_equal_visits_prefer_higher_average(self):
        children = (TreeState(2, BOB, 0.0), TreeState(3, BOB, 1.0))
        root = TreeState(1, ALICE, children=children)
        mcts = MonteCarloTreeSearch(tree_responses, UNIT_EVALUATOR, iteration_count=2)
        result = mcts.search(root)

        assert result.visit_counts == [1, 1]
        assert result.response is children[1]

    def test_same_seed_same_statistics(self):
        state = TicTacToeState()
        first = MonteCarloTreeSearch(ttt_responses, iteration_count=300, seed=42).search(state)
        second = MonteCarloTreeSearch(ttt_responses, iteration_count=300, seed=42).search(state)

        assert first.visit_counts == second.visit_counts
        assert first.average_values == second.average_values
        assert first.response == second.response


class TestRollouts:

    def test_evaluator_scores_expanded_node_directly(self):
        evaluator = CountingEvaluator(UNIT_EVALUATOR)
        root, _ = one_good_move()
        MonteCarloTreeSearch(tree_responses, evaluator, iteration_count=3).search(root)

        assert evaluator.evaluated == [2, 3, 4]

    def test_rollout_depth_plays_random_plies_first(self):
        grandchild = TreeState(3, ALICE, 0.5)
        child = TreeState(2, BOB, 0.0, children=(grandchild,))
        root = TreeState(1, ALICE, children=(child,))
        evaluator = CountingEvaluator(UNIT_EVALUATOR)

        mcts = MonteCarloTreeSearch(tree_responses, evaluator, iteration_count=1, rollout_depth=1)
        result = mcts.search(root)

        assert evaluator.evaluated == [3]
        assert result.average_values == [0.5]

    def test_evaluator_scores_are_normalized(self):
        root = TreeState(1, ALICE, children=(TreeState(2, BOB, 500.0),))
        mcts = MonteCarloTreeSearch(tree_responses, TREE_EVALUATOR, iteration_count=1)
        # 500 on a [-1000, 1000] scale
        assert mcts.search(root).average_values == [0.5]

    def test_playout_without_outcome_is_a_contract_violation(self):
        class NoOutcome:
            def __init__(self, player, children=()):
                self.player = player
                self.children = children

            def fingerprint(self):
                return id(self)

            def whose_turn(self):
                return self.player

        root = NoOutcome(ALICE, children=(NoOutcome(BOB),))
        mcts = MonteCarloTreeSearch(tree_responses, iteration_count=1)
        with pytest.raises(ContractViolation):
            mcts.search(root)

    def test_playout_stops_at_terminal_state(self):
        class Decided(TreeState):
            def is_terminal(self):
                return True

        # Moves remain after the decided position; the playout must not take them
        child = Decided(2, BOB, 1.0, children=(TreeState(3, ALICE, -1.0),))
        root = TreeState(1, ALICE, children=(child,))
        generator = CountingGenerator()

        result = MonteCarloTreeSearch(generator, iteration_count=1).search(root)
        assert result.average_values == [1.0]
        assert generator.calls == [(1, 0)]

    def test_playout_exceeding_ply_cap_raises(self):
        mcts = MonteCarloTreeSearch(endless_responses, iteration_count=1, max_rollout_plies=2)
        with pytest.raises(ContractViolation, match='terminal'):
            mcts.search(EndlessState(0, ALICE))

    def test_evaluator_rollouts_ignore_ply_cap(self):
        evaluator = FunctionEvaluator(lambda state: 0.9)
        mcts = MonteCarloTreeSearch(endless_responses, evaluator, iteration_count=5,
                                    rollout_depth=3, max_rollout_plies=1)
        assert mcts.search(EndlessState(0, ALICE)).average_values == [pytest.approx(0.9)]

    def test_dead_end_before_terminal_state_raises(self):
        class Stuck(TreeState):
            def is_terminal(self):
                return False

        root = TreeState(1, ALICE, children=(Stuck(2, BOB, 0.5),))
        with pytest.raises(ContractViolation, match='non-terminal'):
            MonteCarloTreeSearch(tree_responses, iteration_count=1).search(root)

    def test_random_tree_search_runs(self):
        root = random_tree(4, branching=3, depth=6)
        result = MonteCarloTreeSearch(tree_responses, iteration_count=300, seed=3).search(root)

        assert result.response in root.children
        assert sum(result.visit_counts) == 300


class TestContracts:

    def test_terminal_root_raises(self):
        generator = CountingGenerator()
        mcts = MonteCarloTreeSearch(generator, UNIT_EVALUATOR, iteration_count=10)

        with pytest.raises(TerminalStateError) as info:
            mcts.search(TreeState(1, ALICE, 1.0))
        assert info.value.state.id == 1
        assert generator.calls == [(1, 0)]

    def test_finished_tic_tac_toe_raises(self):
        state = TicTacToeState.from_string('XXXOO....', BOB)
        with pytest.raises(TerminalStateError):
            MonteCarloTreeSearch(ttt_responses, iteration_count=10).find_best_response(state)

    @pytest.mark.parametrize('kwargs', [
        {'exploration_constant': 0},
        {'exploration_constant': -1.0},
        {'exploration_constant': math.inf},
        {'iteration_count': 0},
        {'iteration_count': -5},
        {'rollout_depth': -1},
        {'max_rollout_plies': 0},
    ])
    def test_invalid_configuration(self, kwargs):
        with pytest.raises(ConfigurationError):
            MonteCarloTreeSearch(tree_responses, **kwargs)

    def test_same_player_to_move_is_rejected(self):
        root = TreeState(1, ALICE, children=(TreeState(2, ALICE, 1.0),))
        with pytest.raises(ContractViolation):
            MonteCarloTreeSearch(tree_responses, UNIT_EVALUATOR, iteration_count=5).search(root)

    def test_from_config(self):
        mcts = MonteCarloTreeSearch.from_config(
            tree_responses, UNIT_EVALUATOR, {'C': 0.5, 'num_searches': 25, 'seed': 9}
        )
        assert mcts.exploration_constant == 0.5
        assert mcts.iteration_count == 25
        assert mcts.seed == 9

        with pytest.raises(ConfigurationError):
            MonteCarloTreeSearch.from_config(tree_responses, config={'temperature': 1.0})


class TestInstrumentation:

    def test_observer_sees_every_iteration(self):
        observer = StatsCollector()
        root, _ = one_good_move()
        mcts = MonteCarloTreeSearch(tree_responses, UNIT_EVALUATOR, iteration_count=20,
                                    observer=observer)
        result = mcts.search(root)

        assert observer.get_stats() == {'iterations': 20, 'searches': 1}
        assert observer.results == [result]

    def test_progress_bar_does_not_change_result(self):
        state = TicTacToeState()
        quiet = MonteCarloTreeSearch(ttt_responses, iteration_count=50, seed=5).search(state)
        shown = MonteCarloTreeSearch(ttt_responses, iteration_count=50, seed=5,
                                     show_progress=True).search(state)

        assert quiet.visit_counts == shown.visit_counts
