"""Hyperparameters for the cheese-chasing Q-learning agent.

Every value here is a tunable constant, not something derived. Constructors
across the package take the matching keyword argument and default to these.

Replay Memory:
    REPLAY_CAPACITY (int): Transitions collected before a training fit runs.

Q-Learning:
    DISCOUNT_FACTOR (float): Weight of the best next-state Q-value in a target.
    FIT_EPOCHS (int): Optimisation passes over the drained memory per fit.
    LEARNING_RATE (float): SGD step size of the neural Q-function.

Exploration:
    EXPLORATION_START (float): Probability of a random action before training.
    EXPLORATION_TRAINED (float): Probability after the first completed fit.

Validation:
    WIN_STREAK_TO_CONVERGE (int): Consecutive cheese catches after which
        training stops for the rest of the session.

Rewards:
    GOAL_REWARD (float): Score went up (cheese caught).
    ADVERSE_REWARD (float): Score went down (caught by the cat).
    STEP_REWARD (float): Score unchanged, cost of wandering.

Game:
    BOARD_WIDTH (int): Number of cells on the board.
"""

from typing import Final

REPLAY_CAPACITY: Final[int] = 100

DISCOUNT_FACTOR: Final[float] = 0.95
FIT_EPOCHS: Final[int] = 100
LEARNING_RATE: Final[float] = 0.01

EXPLORATION_START: Final[float] = 1.0
EXPLORATION_TRAINED: Final[float] = 0.0

WIN_STREAK_TO_CONVERGE: Final[int] = 20

# +/-100 usually converges in one or two fits; +/-1 can stall training
GOAL_REWARD: Final[float] = 100.0
ADVERSE_REWARD: Final[float] = -100.0
STEP_REWARD: Final[float] = -1.0

BOARD_WIDTH: Final[int] = 12
