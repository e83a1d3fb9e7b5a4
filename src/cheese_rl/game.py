"""
One-row cheese game the agent learns on.

The mouse starts in the middle of the board with the cheese at one end and
the cat at the other. Walking onto the cheese scores a point, walking onto the
cat loses one; either way a new round starts.
"""

import logging
from typing import Final

import numpy as np

from cheese_rl import config

_log: Final[logging.Logger] = logging.getLogger(__name__)

PLAYER: Final[str] = '🐭'
CHEESE: Final[str] = '🧀'
CAT: Final[str] = '🐱'
EMPTY: Final[str] = '⬜'

MOVE_LEFT: Final[int] = 0
MOVE_RIGHT: Final[int] = 1


class CheeseGame:
    """
    Game state: positions on the board and the score.

    Attributes:
        width: Number of cells
        player: Index of the mouse
        cheese: Index of the cheese
        cat: Index of the cat
        score: Cheese caught minus times caught by the cat
        rounds: Rounds finished so far
    """

    def __init__(self, width: int = config.BOARD_WIDTH, rng: np.random.Generator | None = None):
        if width < 3:
            raise ValueError(f'board needs at least 3 cells, got {width}')
        self.width = width
        self.rng = rng if rng is not None else np.random.default_rng()
        self.score = 0
        self.rounds = 0
        self.new_round()

    def new_round(self) -> None:
        """Put the mouse in the middle and the cheese and cat at random ends."""
        self.player = self.width // 2
        if self.rng.random() < 0.5:
            self.cheese, self.cat = 0, self.width - 1
        else:
            self.cheese, self.cat = self.width - 1, 0
        _log.debug('round %d: cheese at %d, cat at %d', self.rounds, self.cheese, self.cat)

    @property
    def cells(self) -> list[str]:
        cells = [EMPTY] * self.width
        cells[self.cheese] = CHEESE
        cells[self.cat] = CAT
        cells[self.player] = PLAYER
        return cells

    def step(self, action: int) -> int:
        """
        Move the mouse one cell.

        Args:
            action: MOVE_LEFT (0) or MOVE_RIGHT (1)

        Returns:
            Score change caused by the move: +1, -1 or 0
        """
        if action == MOVE_LEFT:
            self.player = max(self.player - 1, 0)
        elif action == MOVE_RIGHT:
            self.player = min(self.player + 1, self.width - 1)
        else:
            raise ValueError(f'unknown action {action!r}')

        change = 0
        if self.player == self.cheese:
            change = 1
        elif self.player == self.cat:
            change = -1

        if change:
            self.score += change
            self.rounds += 1
            self.new_round()
        return change

    def render(self) -> str:
        return f"{''.join(self.cells)}  score: {self.score}"


def create_game(width: int = config.BOARD_WIDTH, seed: int | None = None) -> CheeseGame:
    """Create a game with its own seeded random generator."""
    return CheeseGame(width=width, rng=np.random.default_rng(seed))
