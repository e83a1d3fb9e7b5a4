"""
Training Controller: The Per-Tick Decision Loop
===============================================

## Overview

The controller is the agent the game talks to. Every tick the game calls
``act()`` and moves the mouse by the returned action. Behind that call the
controller:
1. Encodes the board into the direction bit
2. Picks an action (epsilon-greedy)
3. Labels the PREVIOUS move with the reward implied by the score change
4. Stores that transition and drives the training state machine
5. Remembers this tick's state, action and score

## Why is the Reward One Tick Late?

The effect of a move is only visible after the game has applied it. When
``act()`` runs on tick t, the score it reads is the result of the action
returned on tick t-1. So the transition stored on tick t is:

    (state[t-1], action[t-1], reward(score[t-1] -> score[t]), state[t], terminal)

The very first tick has no previous move, so nothing is stored.

## State Machine

    COLLECTING   exploring, filling the replay memory
        │  memory full
        ▼
    TRAINING     fit on the drained memory (within the same tick)
        │  fit ok                        │  FitError
        ▼                                ▼
    VALIDATING   greedy play,        back to COLLECTING
                 counting wins
        │  20 wins in a row      │  one loss
        ▼                        ▼
    CONVERGED                COLLECTING
    greedy play only, no more learning

## Q-Learning Targets

For each drained transition the target for the taken action is:

    terminal:      Q(s, a) = reward
    otherwise:     Q(s, a) = reward + gamma * max_a' Q(s', a')

The untaken action keeps its current prediction, so the loss does not push
it anywhere.
"""

import logging
from typing import Final, Protocol, Sequence

import numpy as np

from cheese_rl import config
from cheese_rl.agent.agent_state import (
    AgentState,
    Phase,
    after_fit,
    after_validation_tick,
    compute_reward,
    remember,
)
from cheese_rl.agent.exploration import ExplorationPolicy
from cheese_rl.agent.q_network import QFunction, TorchQFunction
from cheese_rl.agent.replay_buffer import Experience, ReplayMemory, unpack
from cheese_rl.agent.state_encoder import StateEncoder
from cheese_rl.errors import FitError

_log: Final[logging.Logger] = logging.getLogger(__name__)


class Environment(Protocol):
    """What the controller reads from the game every tick."""

    @property
    def cells(self) -> Sequence[str]: ...

    @property
    def score(self) -> float: ...


def build_training_batch(
    experiences: list[Experience],
    q_function: QFunction,
    discount: float
) -> tuple[np.ndarray, np.ndarray]:
    """
    Turn transitions into (inputs, targets) for QFunction.fit.

    Uses the current parameters for every prediction, so this must run
    before the fit it feeds.

    Returns:
        inputs of shape (batch_size,) and targets of shape (batch_size, 2)
    """
    states, actions, rewards, next_states, terminals = unpack(experiences)
    targets = []
    for state, action, reward, next_state, terminal in zip(
            states, actions, rewards, next_states, terminals):
        # Terminal: no future reward, the target is the immediate reward
        q = reward
        if not terminal:
            # Bellman: reward plus discounted best Q-value of the next state
            q = reward + discount * np.max(q_function.predict(next_state))
        q_values = np.array(q_function.predict(state), dtype=np.float64)
        # Only the taken action moves, the other keeps its prediction
        q_values[action] = q
        targets.append(q_values)
    return states, np.array(targets)


class TrainingController:
    """
    Q-learning agent that trains online until it wins often enough.

    Key Components:
        encoder: Builds the state from the game board
        q_function: Learned Q-values (owned exclusively by this controller)
        policy: Epsilon-greedy selector over q_function
        memory: Transitions waiting for the next fit
        state: Immutable AgentState, replaced every tick

    Example Usage:
        >>> agent = TrainingController(game, rng=np.random.default_rng(0))
        >>> while True:
        ...     game.step(agent.act())
    """

    def __init__(
        self,
        environment: Environment,
        q_function: QFunction | None = None,
        encoder: StateEncoder | None = None,
        rng: np.random.Generator | None = None,
        discount: float = config.DISCOUNT_FACTOR,
        capacity: int = config.REPLAY_CAPACITY,
        win_streak: int = config.WIN_STREAK_TO_CONVERGE,
        target: str = '🧀',
        agent: str = '🐭'
    ):
        """
        Args:
            environment: Game exposing ``cells`` and ``score``
            q_function: Backend for predict/fit, a seeded TorchQFunction if None
            encoder: State encoder, built from ``target``/``agent`` if None
            rng: Random source for exploration and fit shuffling
            discount: Weight of future reward in the Q-learning target
            capacity: Transitions collected before each fit
            win_streak: Consecutive wins needed to stop training
            target: Board symbol of the entity to reach
            agent: Board symbol of the controlled entity
        """
        self.environment = environment
        self.rng = rng if rng is not None else np.random.default_rng()
        self.q_function = q_function if q_function is not None else TorchQFunction(
            rng=self.rng, seed=int(self.rng.integers(2**31)))
        self.encoder = encoder if encoder is not None else StateEncoder(target=target, agent=agent)
        self.policy = ExplorationPolicy(self.q_function, rng=self.rng)
        self.memory = ReplayMemory(capacity)
        self.discount = discount
        self.win_streak = win_streak
        self.state = AgentState()
        self.fits_done = 0

    @property
    def phase(self) -> Phase:
        return self.state.phase

    def act(self) -> int:
        """
        Decide the action for the current tick.

        Returns:
            0 to move towards lower cell indices, 1 towards higher ones

        Raises:
            MissingFeatureError: If the board lacks the target or the agent
        """
        if not self.state.is_training:
            return self.policy.greedy_action(self.encoder.encode(self.environment.cells))
        return self.handle_training()

    def handle_training(self) -> int:
        """Collect one transition, drive the state machine, return the action."""
        # STEP 1: encode the board and pick this tick's move (epsilon-greedy)
        encoded = self.encoder.encode(self.environment.cells)
        action = self.policy.choose_action(encoded, self.state.exploration_rate)

        # The score now is the result of the move returned on the previous tick
        score = self.environment.score
        previous = self.state

        # STEP 2: label the previous move, skipped on the first tick of a session
        if previous.previous_state is not None:
            self.memory.append(Experience(
                state=previous.previous_state,
                action=previous.previous_action,
                reward=compute_reward(previous.previous_score, score),
                next_state=encoded,
                terminal=previous.previous_score != score
            ))

        # STEP 3: drive the state machine
        if previous.is_validating:
            # Greedy play is being checked: count wins, one loss resets
            self.state = after_validation_tick(previous, previous.previous_score, score, self.win_streak)
            if not self.state.is_training:
                self.memory.clear()
            self._log_validation(previous, self.state)
        elif self.memory.is_full():
            # Collecting and the memory is full: fit now, within this tick
            self.state = self.train()

        # STEP 4: carry state, action and score over to the next tick
        self.state = remember(self.state, encoded, action, score)
        return action

    def train(self) -> AgentState:
        """
        Fit on the whole memory and return the state that follows.

        The memory is drained whether or not the fit succeeds. A failed fit
        leaves the agent collecting with its exploration rate untouched.
        """
        # Memory is emptied before the fit so a failing batch is never reused
        experiences = self.memory.drain()

        # Targets come from the pre-fit parameters
        inputs, targets = build_training_batch(experiences, self.q_function, self.discount)
        try:
            loss = self.q_function.fit(inputs, targets)
        except FitError:
            _log.exception('fit on %d transitions failed, collecting again', len(experiences))
            return self.state

        self.fits_done += 1
        _log.info('fit %d on %d transitions done (loss %.4f), validating', self.fits_done, len(experiences), loss)
        return after_fit(self.state)

    def _log_validation(self, before: AgentState, after: AgentState) -> None:
        if not after.is_training:
            _log.info('won %d in a row, training finished', self.win_streak)
        elif before.is_validating and not after.is_validating:
            _log.debug('lost after %d wins, collecting again', before.wins_in_row)
        elif after.wins_in_row != before.wins_in_row:
            _log.debug('%d wins in a row', after.wins_in_row)
