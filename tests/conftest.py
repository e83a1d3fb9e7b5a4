"""Shared fakes for the agent tests."""

import numpy as np
import pytest

from cheese_rl.agent.q_network import QFunction
from cheese_rl.errors import FitError


class FakeEnvironment:
    """Board and score set directly by the test."""

    def __init__(self, cells=None, score=0):
        self.cells = cells if cells is not None else ['🧀', '⬜', '🐭', '⬜', '🐱']
        self.score = score


class StubQFunction(QFunction):
    """Fixed predictions per state, records every fit."""

    def __init__(self, predictions=None, fail=False):
        self.predictions = predictions if predictions is not None else {0: [0.0, 1.0], 1: [0.0, 1.0]}
        self.fail = fail
        self.fit_calls = []

    def predict(self, state):
        return np.array(self.predictions[int(np.asarray(state).ravel()[0])], dtype=np.float64)

    def fit(self, inputs, targets):
        self.fit_calls.append((np.asarray(inputs), np.asarray(targets)))
        if self.fail:
            raise FitError('loss diverged')
        return 0.0


@pytest.fixture
def make_environment():
    """Factory for FakeEnvironment."""
    return FakeEnvironment


@pytest.fixture
def make_q_function():
    """Factory for StubQFunction."""
    return StubQFunction
