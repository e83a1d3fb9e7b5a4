"""
State Encoder: Observation -> Network Input
===========================================

The game board is a single row of cells. Only one thing matters for picking
between the two moves: is the cheese to the left or to the right of the mouse?
So the whole observation collapses to a single binary feature:

    cells = ['⬜', '🧀', '⬜', '🐭', '⬜', '🐱']
                     ^ cheese       ^ mouse
    mouse index 3 > cheese index 1  ->  state = 0  (cheese is to the left)

    cells = ['🐱', '⬜', '🐭', '⬜', '🧀']
    mouse index 2 < cheese index 4  ->  state = 1  (cheese is to the right)

One input neuron is enough for the Q-function to learn that "left" means
action 0 and "right" means action 1.
"""

from typing import Final, Sequence

from cheese_rl.errors import MissingFeatureError

TARGET_LEFT: Final[int] = 0
TARGET_RIGHT: Final[int] = 1


class StateEncoder:
    """
    Encodes the relative direction of a target symbol seen from an agent symbol.

    Attributes:
        target: Symbol of the entity to chase (the cheese)
        agent: Symbol of the entity being controlled (the mouse)

    Example:
        >>> encoder = StateEncoder(target='🧀', agent='🐭')
        >>> encoder.encode(['🧀', '⬜', '🐭'])
        0
    """

    def __init__(self, target: str, agent: str):
        self.target = target
        self.agent = agent

    def locate(self, cells: Sequence[str], symbol: str) -> int:
        """Index of the first cell holding ``symbol``."""
        try:
            return list(cells).index(symbol)
        except ValueError:
            raise MissingFeatureError(symbol) from None

    def encode(self, cells: Sequence[str]) -> int:
        """
        Build the encoded state for the current observation.

        Args:
            cells: Ordered board cells, each holding one symbol

        Returns:
            0 if the target is to the agent's left, 1 otherwise

        Raises:
            MissingFeatureError: If the target or the agent is not on the board
        """
        target_index = self.locate(cells, self.target)
        agent_index = self.locate(cells, self.agent)
        return TARGET_LEFT if agent_index > target_index else TARGET_RIGHT
