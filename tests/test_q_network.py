"""
Q-FUNCTION BACKENDS - Unit Tests
"""

import numpy as np
import pytest
import torch

from cheese_rl.agent.q_network import LeastSquaresQFunction, QNetwork, TorchQFunction
from cheese_rl.errors import FitError

INPUTS = np.array([0, 1, 0, 1])
TARGETS = np.array([[10.0, -10.0], [-10.0, 10.0], [10.0, -10.0], [-10.0, 10.0]])


def mse(q_function, inputs, targets):
    predictions = np.array([q_function.predict(state) for state in inputs])
    return float(np.mean((predictions - targets) ** 2))


class TestQNetwork:

    def test_single_linear_layer(self):
        net = QNetwork(state_size=1, action_size=2)
        layers = list(net.children())
        assert len(layers) == 1
        assert isinstance(layers[0], torch.nn.Linear)
        assert (layers[0].in_features, layers[0].out_features) == (1, 2)

    def test_output_shape(self):
        net = QNetwork()
        assert net(torch.tensor([[0.0], [1.0], [1.0]])).shape == (3, 2)


class TestTorchQFunction:

    def setup_method(self):
        self.q_function = TorchQFunction(seed=0, rng=np.random.default_rng(0), device='cpu')

    def test_predict_shape(self):
        q_values = self.q_function.predict(1)
        assert isinstance(q_values, np.ndarray)
        assert q_values.shape == (2,)

    def test_predict_is_deterministic(self):
        assert np.array_equal(self.q_function.predict(0), self.q_function.predict(0))

    def test_seeded_initialisation_is_reproducible(self):
        other = TorchQFunction(seed=0, device='cpu')
        assert np.allclose(self.q_function.predict(1), other.predict(1))

    def test_seed_leaves_global_generator_alone(self):
        torch.manual_seed(123)
        expected = torch.rand(1)
        torch.manual_seed(123)
        TorchQFunction(seed=5, device='cpu')
        assert torch.equal(torch.rand(1), expected)

    def test_fit_reduces_squared_error(self):
        before = mse(self.q_function, INPUTS, TARGETS)
        loss = self.q_function.fit(INPUTS, TARGETS)
        after = mse(self.q_function, INPUTS, TARGETS)
        assert after < before
        assert loss == pytest.approx(after, rel=0.1)

    def test_fit_learns_direction(self):
        q_function = TorchQFunction(seed=1, learning_rate=0.1, epochs=300, device='cpu')
        q_function.fit(INPUTS, TARGETS)
        assert np.argmax(q_function.predict(0)) == 0
        assert np.argmax(q_function.predict(1)) == 1

    def test_runs_configured_epochs(self, monkeypatch):
        q_function = TorchQFunction(seed=0, epochs=7, device='cpu')
        steps = []
        original = q_function.optimizer.step
        monkeypatch.setattr(q_function.optimizer, 'step', lambda *a, **kw: steps.append(1) or original(*a, **kw))
        q_function.fit(INPUTS, TARGETS)
        assert len(steps) == 7

    def test_mini_batches(self, monkeypatch):
        q_function = TorchQFunction(seed=0, epochs=3, batch_size=2, device='cpu')
        steps = []
        original = q_function.optimizer.step
        monkeypatch.setattr(q_function.optimizer, 'step', lambda *a, **kw: steps.append(1) or original(*a, **kw))
        q_function.fit(INPUTS, TARGETS)
        assert len(steps) == 6

    def test_empty_batch_raises(self):
        with pytest.raises(FitError):
            self.q_function.fit([], np.empty((0, 2)))

    def test_mismatched_targets_raise(self):
        with pytest.raises(FitError):
            self.q_function.fit(INPUTS, TARGETS[:2])

    def test_diverging_loss_raises(self):
        targets = TARGETS.copy()
        targets[0, 0] = np.nan
        with pytest.raises(FitError):
            self.q_function.fit(INPUTS, targets)

    def test_diverging_fit_keeps_previous_parameters(self):
        q_function = TorchQFunction(seed=0, learning_rate=1e6, device='cpu')
        before = [q_function.predict(0), q_function.predict(1)]

        with pytest.raises(FitError):
            q_function.fit(INPUTS, TARGETS)

        assert np.array_equal(q_function.predict(0), before[0])
        assert np.array_equal(q_function.predict(1), before[1])

    def test_fit_after_failure_learns_normally(self):
        q_function = TorchQFunction(seed=0, learning_rate=1e6, device='cpu')
        with pytest.raises(FitError):
            q_function.fit(INPUTS, TARGETS)

        for group in q_function.optimizer.param_groups:
            group['lr'] = 0.01
        before = mse(q_function, INPUTS, TARGETS)
        loss = q_function.fit(INPUTS, TARGETS)

        assert np.isfinite(loss)
        assert mse(q_function, INPUTS, TARGETS) < before

    def test_fit_error_is_runtime_error(self):
        with pytest.raises(RuntimeError):
            self.q_function.fit([], np.empty((0, 2)))


class TestLeastSquaresQFunction:

    def setup_method(self):
        self.q_function = LeastSquaresQFunction()

    def test_ties_before_fit(self):
        assert self.q_function.predict(0).tolist() == [0.0, 0.0]
        assert self.q_function.predict(1).tolist() == [0.0, 0.0]

    def test_fit_is_exact_for_linear_targets(self):
        loss = self.q_function.fit(INPUTS, TARGETS)
        assert loss == pytest.approx(0.0, abs=1e-9)
        assert self.q_function.predict(0) == pytest.approx([10.0, -10.0])
        assert self.q_function.predict(1) == pytest.approx([-10.0, 10.0])

    def test_fit_averages_conflicting_targets(self):
        self.q_function.fit([1, 1], [[0.0, 100.0], [0.0, -1.0]])
        assert self.q_function.predict(1)[1] == pytest.approx(49.5)

    def test_empty_batch_raises(self):
        with pytest.raises(FitError):
            self.q_function.fit([], np.empty((0, 2)))

    def test_non_finite_solution_raises(self):
        with pytest.raises(FitError):
            self.q_function.fit([0, 1], [[np.inf, 0.0], [0.0, 0.0]])
