"""
Epsilon-greedy action selection.

With probability ``exploration_rate`` a uniformly random action is taken,
otherwise the action with the highest predicted Q-value. The agent starts at
rate 1.0 so it visibly wanders before any training, and the controller drops
the rate straight to 0.0 after the first fit; it is never decayed gradually.
"""

import numpy as np

from cheese_rl.agent.q_network import QFunction


class ExplorationPolicy:
    """
    Chooses actions from a QFunction with a controllable random rate.

    Attributes:
        q_function: Source of the Q-value predictions
        rng: Generator behind the exploration coin flip and random actions
        action_size: Number of discrete actions
    """

    def __init__(
        self,
        q_function: QFunction,
        rng: np.random.Generator | None = None,
        action_size: int = 2
    ):
        self.q_function = q_function
        self.rng = rng if rng is not None else np.random.default_rng()
        self.action_size = action_size

    def greedy_action(self, state) -> int:
        """Index of the largest predicted Q-value, ties go to the lower index."""
        q_values = self.q_function.predict(state)
        # np.argmax returns the first maximum
        return int(np.argmax(q_values))

    def choose_action(self, state, exploration_rate: float) -> int:
        """
        Select an action for ``state``.

        Args:
            state: Encoded state
            exploration_rate: Probability of a random action, 0.0 to 1.0

        Returns:
            Action index (0 = left, 1 = right)
        """
        if self.rng.random() < exploration_rate:
            return int(self.rng.integers(self.action_size))
        return self.greedy_action(state)
