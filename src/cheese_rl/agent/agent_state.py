"""
Agent state and its pure transition functions.

The controller keeps a single immutable AgentState and replaces it every tick.
Each function below takes the current value and returns the next one, so the
training/validation state machine can be tested without a game or a network.

    COLLECTING --memory full, fit ok--> VALIDATING --20 wins--> CONVERGED
        ^                                   |
        +------------- one loss ------------+
"""

import enum
from dataclasses import dataclass, replace

from cheese_rl import config


class Phase(enum.Enum):
    COLLECTING = 'collecting'
    VALIDATING = 'validating'
    CONVERGED = 'converged'


@dataclass(frozen=True)
class AgentState:
    """
    Everything the controller carries from one tick to the next.

    Attributes:
        exploration_rate: Probability of a random action
        wins_in_row: Consecutive score increases while validating
        is_training: False once the agent has converged, for good
        is_validating: True between a successful fit and the next loss
        previous_state: Encoded state of the last tick, None before the first
        previous_action: Action taken on the last tick
        previous_score: Score observed on the last tick
    """

    exploration_rate: float = config.EXPLORATION_START
    wins_in_row: int = 0
    is_training: bool = True
    is_validating: bool = False
    previous_state: int | None = None
    previous_action: int = 0
    previous_score: float = 0

    @property
    def phase(self) -> Phase:
        if not self.is_training:
            return Phase.CONVERGED
        if self.is_validating:
            return Phase.VALIDATING
        return Phase.COLLECTING


def compute_reward(old_score: float, new_score: float) -> float:
    """Reward for the move made between two score observations."""
    if new_score > old_score:
        return config.GOAL_REWARD
    if new_score < old_score:
        return config.ADVERSE_REWARD
    return config.STEP_REWARD


def after_validation_tick(
    state: AgentState,
    old_score: float,
    new_score: float,
    win_streak: int = config.WIN_STREAK_TO_CONVERGE
) -> AgentState:
    """
    Count a validating tick.

    A score increase extends the streak, a decrease drops back to collecting
    with the streak reset, an unchanged score leaves everything as it is.
    Reaching ``win_streak`` converges the agent.
    """
    if new_score > old_score:
        state = replace(state, wins_in_row=state.wins_in_row + 1)
    elif new_score < old_score:
        state = replace(state, is_validating=False, wins_in_row=0)

    if state.wins_in_row == win_streak:
        state = converge(state)
    return state


def converge(state: AgentState) -> AgentState:
    """Stop training permanently."""
    return replace(state, is_training=False, is_validating=False, wins_in_row=0)


def after_fit(state: AgentState) -> AgentState:
    """Enter validation and switch exploration off."""
    return replace(state, is_validating=True, exploration_rate=config.EXPLORATION_TRAINED)


def remember(state: AgentState, encoded_state: int, action: int, score: float) -> AgentState:
    """Carry this tick's observation over to the next one."""
    return replace(state, previous_state=encoded_state, previous_action=action, previous_score=score)
