"""
Q-Learning Agent for the Cheese Game
====================================

This package implements a small online Q-learning agent: a mouse on a
one-row board that learns to walk towards the cheese and away from the cat.

## The Loop

The agent learns by interacting with the game, one tick at a time:
1. Observe the board and encode it as a STATE
2. Pick an ACTION (0 = left, 1 = right)
3. See the score change on the next tick and turn it into a REWARD
4. Store the transition and, once enough are stored, LEARN from them all

## Training Phases

- **Collecting**: play randomly and remember 100 transitions
- **Training**: fit the Q-function on those transitions, once
- **Validating**: play greedily; a single loss means back to collecting
- **Converged**: 20 wins in a row, learning stops for the session

## In Cheese Game Context:

- **State** (1 element): Is the cheese left (0) or right (1) of the mouse?
- **Actions** (2 options): Move left (0), move right (1)
- **Rewards**: +100 cheese caught, -100 caught by the cat, -1 per step
- **Goal**: Catch the cheese 20 times in a row

Module Components:
    TrainingController: Per-tick decision loop and training state machine
    ExplorationPolicy: Epsilon-greedy action selection
    QFunction: Interface of the Q-value approximator
    TorchQFunction: Single linear layer trained with SGD
    LeastSquaresQFunction: Closed-form linear alternative
    ReplayMemory: Transitions waiting for the next fit
    StateEncoder: Board -> direction bit
"""

from cheese_rl.agent.agent_state import AgentState, Phase
from cheese_rl.agent.controller import TrainingController
from cheese_rl.agent.exploration import ExplorationPolicy
from cheese_rl.agent.q_network import LeastSquaresQFunction, QFunction, QNetwork, TorchQFunction
from cheese_rl.agent.replay_buffer import Experience, ReplayMemory
from cheese_rl.agent.state_encoder import StateEncoder

__all__ = [
    "AgentState",
    "Phase",
    "TrainingController",
    "ExplorationPolicy",
    "QFunction",
    "QNetwork",
    "TorchQFunction",
    "LeastSquaresQFunction",
    "Experience",
    "ReplayMemory",
    "StateEncoder",
]
