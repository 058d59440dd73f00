"""
Zobrist fingerprints for board-like game states.

Helper for game implementations: it produces the 64-bit fingerprints the
search engines and the transposition table key on.

Implementation:
- Pre-generate random 64-bit keys for each (square, piece kind) combination
- Hash = XOR of the keys of all occupied squares
- Incremental update: hash ^= key[square][kind]
- One extra key is XORed in when BOB is to move
"""

import numpy as np

from hidden_game_player.game_state import PlayerId, as_player


_KEY_LIMIT = (1 << 64) - 1


class ZobristHasher:
    """
    Zobrist hashing for positions made of pieces on squares.

    Features:
    - Deterministic key generation (seeded RNG for reproducibility)
    - Fast incremental updates (XOR)
    """

    def __init__(self, num_squares: int, num_piece_kinds: int = 2, seed: int = 42):
        """
        Args:
            num_squares: Number of squares (cells, slots, ...) on the board
            num_piece_kinds: Number of distinct pieces that can occupy a square
            seed: Random seed for reproducibility
        """
        if num_squares <= 0 or num_piece_kinds <= 0:
            raise ValueError("num_squares and num_piece_kinds must be positive")
        self.num_squares = num_squares
        self.num_piece_kinds = num_piece_kinds

        rng = np.random.default_rng(seed)
        self.zobrist_table = rng.integers(
            0, _KEY_LIMIT, size=(num_squares, num_piece_kinds),
            dtype=np.uint64, endpoint=False
        )
        self.side_to_move_hash = int(rng.integers(0, _KEY_LIMIT, dtype=np.uint64))

    def _key(self, square: int, kind: int) -> int:
        if not 0 <= square < self.num_squares:
            raise ValueError(f"Square {square} out of range")
        if not 0 <= kind < self.num_piece_kinds:
            raise ValueError(f"Piece kind {kind} out of range")
        return int(self.zobrist_table[square, kind])

    def hash_position(self, pieces, player=PlayerId.ALICE) -> int:
        """
        Compute the fingerprint of a position.

        Args:
            pieces: Either an iterable of (square, kind) pairs, or a 1-D array
                with one entry per square holding a kind or -1 for empty
            player: Player to move

        Returns:
            64-bit fingerprint (int)
        """
        hash_value = 0
        if isinstance(pieces, np.ndarray):
            if pieces.shape != (self.num_squares,):
                raise ValueError(f"Expected {self.num_squares} squares, got shape {pieces.shape}")
            for square in np.flatnonzero(pieces >= 0):
                hash_value ^= self._key(int(square), int(pieces[square]))
        else:
            for square, kind in pieces:
                hash_value ^= self._key(square, kind)

        if as_player(player) is PlayerId.BOB:
            hash_value ^= self.side_to_move_hash
        return hash_value

    def toggle(self, current_hash: int, square: int, kind: int) -> int:
        """Add or remove one piece (the same XOR either way)."""
        return current_hash ^ self._key(square, kind)

    def toggle_side(self, current_hash: int) -> int:
        """Flip the side to move."""
        return current_hash ^ self.side_to_move_hash
