"""
Neural network evaluator for the search engines.

Wraps a trained torch value network as a StaticEvaluator. The network sees
the position from the point of view of the player to move; scores handed to
the engines are converted to ALICE's perspective.
"""

import numpy as np
import torch

from hidden_game_player.exceptions import ConfigurationError, ContractViolation
from hidden_game_player.game_state import as_player, perspective
from hidden_game_player.static_evaluator import StaticEvaluator


OUTPUT_MODES = ('value', 'wdl')


def wdl_to_score(wdl_probs):
    """
    Convert WDL probabilities to evaluation score.

    Args:
        wdl_probs: [p_win, p_draw, p_loss]

    Returns:
        Score in range [-1, 1]
    """
    p_win, p_draw, p_loss = wdl_probs
    # Expected value: win=1, draw=0, loss=-1
    return float(p_win - p_loss)


class ValueNetworkEvaluator(StaticEvaluator):
    """
    Static evaluator backed by a torch network.

    The model may return a value tensor, WDL logits, or a (policy, value)
    tuple in which case the last element is used.
    """

    def __init__(self, model, encode, device='cpu', output='value'):
        """
        Initialize the evaluator.

        Args:
            model: torch.nn.Module mapping a batch of encoded states to values
            encode: Function state -> np.ndarray (one network input, no batch axis)
            device: Device for inference ('cuda' or 'cpu')
            output: 'value' for a scalar head in [-1, 1], 'wdl' for 3 logits
        """
        if output not in OUTPUT_MODES:
            raise ConfigurationError(f"output must be one of {OUTPUT_MODES}, got {output!r}")

        self.device = torch.device(device if device != 'cuda' or torch.cuda.is_available() else 'cpu')
        self.model = model.to(self.device)
        self.model.eval()
        self.encode = encode
        self.output = output

    def evaluate(self, state) -> float:
        """
        Evaluate position from ALICE's perspective.

        Returns:
            eval_score: Scalar evaluation in range [-1, 1]
        """
        return float(self.evaluate_batch([state])[0])

    def evaluate_batch(self, states) -> np.ndarray:
        """
        Batch evaluation for multiple positions.

        Args:
            states: List of game states

        Returns:
            eval_scores: Numpy array of evaluations (ALICE's perspective)
        """
        if not states:
            return np.zeros(0, dtype=np.float32)

        encoded = np.stack([np.asarray(self.encode(state), dtype=np.float32) for state in states])

        # Batch inference
        with torch.no_grad():
            state_tensor = torch.from_numpy(encoded).to(self.device)
            output = self.model(state_tensor)
            if isinstance(output, (tuple, list)):
                output = output[-1]
            scores = self._to_scores(output, len(states))

        signs = np.array([perspective(as_player(state.whose_turn())) for state in states],
                         dtype=np.float32)
        return scores * signs

    def _to_scores(self, output, batch_size: int) -> np.ndarray:
        if self.output == 'wdl':
            wdl_probs = torch.softmax(output.reshape(batch_size, 3), dim=1).cpu().numpy()
            return np.array([wdl_to_score(probs) for probs in wdl_probs], dtype=np.float32)

        values = output.reshape(-1).cpu().numpy().astype(np.float32)
        if values.shape[0] != batch_size:
            raise ContractViolation(
                f"Value network returned {values.shape[0]} values for {batch_size} states"
            )
        return np.clip(values, -1.0, 1.0)

    def alice_wins_value(self) -> float:
        return 1.0

    def bob_wins_value(self) -> float:
        return -1.0
