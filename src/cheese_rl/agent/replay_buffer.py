"""
Replay Memory for Batched Q-Learning
====================================

## Why Collect Before Learning?

Fitting after every single move would train on one highly correlated sample
at a time: the mouse walks left, left, left... and the network forgets
everything it knew about walking right. Instead the agent collects a batch
of transitions and fits on all of them at once.

## What is a Transition?

    (state, action, reward, next_state, terminal)

Example:
    state = 1            # cheese to the right
    action = 1           # moved right
    reward = 100.0       # caught the cheese
    next_state = 0       # new round, cheese now to the left
    terminal = True      # the score changed on this step

## Lifecycle

Unlike a classic DQN ring buffer that is sampled over and over, this memory
is consumed wholesale: once it holds `capacity` transitions the controller
drains it, fits on the whole batch, and starts collecting from empty again.
"""

from collections import deque
from typing import Iterator, NamedTuple

import numpy as np

from cheese_rl import config


class Experience(NamedTuple):
    """One step of interaction with the game. Immutable."""

    state: int
    action: int
    reward: float
    next_state: int
    terminal: bool


class ReplayMemory:
    """
    Bounded, append-only buffer of transitions.

    Backed by a deque with ``maxlen=capacity``: the buffer can never hold more
    than ``capacity`` transitions. Appends made while nothing drains the
    buffer (during validation) push the oldest transitions out.

    Attributes:
        buffer: The deque of stored Experience tuples
        capacity: Number of transitions that makes the memory full

    Example Usage:
        >>> memory = ReplayMemory(capacity=100)
        >>> memory.append(Experience(1, 1, -1.0, 1, False))
        >>> if memory.is_full():
        ...     batch = memory.drain()
    """

    def __init__(self, capacity: int = config.REPLAY_CAPACITY):
        if capacity < 1:
            raise ValueError(f'capacity must be positive, got {capacity}')
        self.capacity = capacity
        self.buffer: deque[Experience] = deque(maxlen=capacity)

    def append(self, experience: Experience) -> None:
        """Add a transition at the tail."""
        self.buffer.append(experience)

    def is_full(self) -> bool:
        return len(self.buffer) >= self.capacity

    def drain(self) -> list[Experience]:
        """
        Return every stored transition in insertion order and empty the buffer.

        This is the only way the memory shrinks apart from clear().
        """
        batch = list(self.buffer)
        self.buffer.clear()
        return batch

    def clear(self) -> None:
        self.buffer.clear()

    def __len__(self) -> int:
        return len(self.buffer)

    def __iter__(self) -> Iterator[Experience]:
        return iter(self.buffer)


def unpack(batch: list[Experience]) -> tuple[np.ndarray, ...]:
    """
    Transpose a list of transitions into column arrays.

    Returns:
        (states, actions, rewards, next_states, terminals)
    """
    if not batch:
        return tuple(np.array([]) for _ in Experience._fields)
    states, actions, rewards, next_states, terminals = zip(*batch)
    return (
        np.array(states),
        np.array(actions),
        np.array(rewards, dtype=np.float64),
        np.array(next_states),
        np.array(terminals, dtype=bool)
    )
