"""
Optional search instrumentation.

Engines call an observer at fixed points. The default observer does nothing,
so instrumented and plain searches run the same code path. Observers only
read; they never influence the search.
"""

from collections import Counter


class SearchObserver:
    """No-op observer. Subclass and override the hooks you need."""

    def on_node_visited(self, fingerprint: int, depth: int):
        pass

    def on_cutoff(self, fingerprint: int, depth: int):
        pass

    def on_entry_evicted(self, entry):
        pass

    def on_iteration_completed(self, iteration: int, root_visits: int):
        pass

    def on_search_completed(self, result):
        pass


class StatsCollector(SearchObserver):
    """Counts hook invocations."""

    def __init__(self):
        self.counts = Counter()
        self.results = []

    def on_node_visited(self, fingerprint, depth):
        self.counts['nodes_visited'] += 1

    def on_cutoff(self, fingerprint, depth):
        self.counts['cutoffs'] += 1

    def on_entry_evicted(self, entry):
        self.counts['evictions'] += 1

    def on_iteration_completed(self, iteration, root_visits):
        self.counts['iterations'] += 1

    def on_search_completed(self, result):
        self.counts['searches'] += 1
        self.results.append(result)

    def get_stats(self) -> dict:
        return dict(self.counts)

    def reset(self):
        self.counts.clear()
        self.results = []


class ConsoleReporter(SearchObserver):
    """Prints a summary line for each completed search."""

    def __init__(self, verbose: bool = False):
        """
        Args:
            verbose: Also report every transposition table eviction
        """
        self.verbose = verbose

    def on_entry_evicted(self, entry):
        if self.verbose:
            print(f"♻️  Evicted {entry.fingerprint:#018x} "
                  f"(depth {entry.depth}, {entry.bound.name})")

    def on_search_completed(self, result):
        if hasattr(result, 'nodes_searched'):
            print(f"🔍 Minimax depth {result.depth}: value {result.value:+.3f}, "
                  f"{result.nodes_searched} nodes, {result.cutoffs} cutoffs, "
                  f"{result.tt_hits} TT hits, {result.time_ms} ms")
        else:
            best = max(result.visit_counts) if result.visit_counts else 0
            print(f"🌲 MCTS {result.iterations} iterations: "
                  f"{len(result.children)} root moves, best visited {best}x, "
                  f"tree size {result.tree_size}, {result.time_ms} ms")
