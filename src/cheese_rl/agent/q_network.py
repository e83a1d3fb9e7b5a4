"""
Q-Function: Action Values for the Encoded State
===============================================

## What is a Q-Value?

Q(s, a) is the expected total discounted reward of taking action 'a' in
state 's' and acting well afterwards. The agent only has two actions:

    Q(state, 0)   # move left  (towards lower cell index)
    Q(state, 1)   # move right (towards higher cell index)

Example once trained, with the cheese to the right (state = 1):
    Q(1, 0) = -42.7
    Q(1, 1) =  88.3   <- BEST, move right

## Interface

The controller only ever needs two operations, so any numeric backend that
provides them can be swapped in:

    predict(state)           -> np.ndarray of shape (2,)
    fit(inputs, targets)     -> final loss

## Network Architecture

    Input (1 neuron)   direction of the cheese: 0 = left, 1 = right
         │
         ▼
    Output (2 neurons) [Q(s, left), Q(s, right)]

A single linear layer, no hidden layer and no activation. The true value
function is nearly linear in a 1-bit input, so anything deeper only slows the
fit down.
"""

import copy
import logging
from abc import ABC, abstractmethod
from typing import Final, Sequence

import numpy as np
import torch
import torch.nn as nn
import torch.optim as optim

from cheese_rl import config
from cheese_rl.errors import FitError

_log: Final[logging.Logger] = logging.getLogger(__name__)


def _as_batch(inputs: Sequence[float] | np.ndarray) -> np.ndarray:
    """Reshape a batch of scalar or vector states into (batch_size, state_size)."""
    batch = np.asarray(inputs, dtype=np.float32)
    if batch.ndim == 1:
        batch = batch[:, np.newaxis]
    return batch


class QFunction(ABC):
    """Maps an encoded state to one Q-value per action."""

    @abstractmethod
    def predict(self, state) -> np.ndarray:
        """Q-values for ``state`` as an array of shape (action_size,)."""

    @abstractmethod
    def fit(self, inputs, targets) -> float:
        """
        Move the parameters towards ``targets`` for the given ``inputs``.

        Runs to completion before returning. Raises FitError when the
        optimisation cannot produce usable parameters.
        """


class QNetwork(nn.Module):
    """
    Linear layer from state features to Q-values.

    Attributes:
        fc: Fully-connected layer, output = input @ W + b

    Example:
        >>> net = QNetwork(state_size=1, action_size=2)
        >>> net(torch.tensor([[1.0]]))  # tensor of shape (1, 2)
    """

    def __init__(self, state_size: int = 1, action_size: int = 2):
        super(QNetwork, self).__init__()
        # No activation: Q-values can be any real number
        self.fc = nn.Linear(state_size, action_size)

    def forward(self, x: torch.Tensor) -> torch.Tensor:
        return self.fc(x)


class TorchQFunction(QFunction):
    """
    Q-function backed by a QNetwork trained with plain SGD on squared error.

    Each fit runs a fixed number of epochs over the whole batch. The sample
    order is reshuffled every epoch so consecutive transitions are not seen in
    the order they were collected.

    Attributes:
        network: The QNetwork holding the learned parameters
        optimizer: SGD over the network parameters
        epochs: Passes over the batch per fit
        batch_size: Mini-batch size, None for the whole batch
    """

    def __init__(
        self,
        state_size: int = 1,
        action_size: int = 2,
        learning_rate: float = config.LEARNING_RATE,
        epochs: int = config.FIT_EPOCHS,
        batch_size: int | None = None,
        rng: np.random.Generator | None = None,
        seed: int | None = None,
        device: str | None = None
    ):
        """
        Args:
            state_size: Number of input features (1 for the direction bit)
            action_size: Number of actions (2: left, right)
            learning_rate: SGD step size
            epochs: Optimisation passes per fit
            batch_size: Mini-batch size, None means the full batch per step
            rng: Source of the per-epoch shuffles
            seed: Seeds the weight initialisation without touching the global
                  torch generator
            device: 'cuda', 'cpu' or None for auto-detect
        """
        self.action_size = action_size
        self.epochs = epochs
        self.batch_size = batch_size
        self.rng = rng if rng is not None else np.random.default_rng(seed)

        if device is None:
            self.device = torch.device("cuda" if torch.cuda.is_available() else "cpu")
        else:
            self.device = torch.device(device)

        if seed is None:
            network = QNetwork(state_size, action_size)
        else:
            with torch.random.fork_rng(devices=[]):
                torch.manual_seed(seed)
                network = QNetwork(state_size, action_size)
        self.network = network.to(self.device)

        self.optimizer = optim.SGD(self.network.parameters(), lr=learning_rate)
        self.loss_fn = nn.MSELoss()

    def predict(self, state) -> np.ndarray:
        self.network.eval()
        with torch.no_grad():
            state_tensor = torch.as_tensor(_as_batch([state])).to(self.device)
            return self.network(state_tensor).squeeze(0).cpu().numpy()

    def fit(self, inputs, targets) -> float:
        """
        Fit the network on a batch of (state, target Q-vector) pairs.

        Args:
            inputs: Encoded states, shape (batch_size,) or (batch_size, state_size)
            targets: Target Q-values, shape (batch_size, action_size)

        Returns:
            Loss of the last optimisation step

        Raises:
            FitError: On an empty batch, a non-finite loss, or a backend failure
        """
        x = torch.as_tensor(_as_batch(inputs)).to(self.device)
        y = torch.as_tensor(np.asarray(targets, dtype=np.float32)).to(self.device)
        if len(x) == 0:
            raise FitError('cannot fit an empty batch')
        if y.shape != (len(x), self.action_size):
            raise FitError(f'targets of shape {tuple(y.shape)} do not match {len(x)} inputs')

        # None means one optimisation step per epoch over the whole batch
        batch_size = self.batch_size or len(x)

        # A failed fit rolls back to this snapshot, keeping pre-fit parameters
        network_state = copy.deepcopy(self.network.state_dict())
        optimizer_state = copy.deepcopy(self.optimizer.state_dict())

        self.network.train()
        loss_value = 0.0
        try:
            for epoch in range(self.epochs):
                # Fresh sample order every epoch breaks the collection order
                order = torch.as_tensor(self.rng.permutation(len(x))).to(self.device)
                for start in range(0, len(x), batch_size):
                    idx = order[start:start + batch_size]

                    # MSE between predicted and target Q-vectors
                    loss = self.loss_fn(self.network(x[idx]), y[idx])
                    if not torch.isfinite(loss):
                        raise FitError(f'loss diverged at epoch {epoch}')

                    # PyTorch accumulates gradients, clear them before backprop
                    self.optimizer.zero_grad()
                    loss.backward()
                    self.optimizer.step()
                    loss_value = loss.item()
        except FitError:
            self._restore(network_state, optimizer_state)
            raise
        except RuntimeError as e:
            self._restore(network_state, optimizer_state)
            raise FitError(f'fit failed: {e}') from e
        finally:
            self.network.eval()

        _log.debug('fit %d samples over %d epochs, loss %.4f', len(x), self.epochs, loss_value)
        return loss_value

    def _restore(self, network_state: dict, optimizer_state: dict) -> None:
        """Roll parameters and optimizer back to a snapshot taken before a fit."""
        self.network.load_state_dict(network_state)
        self.optimizer.load_state_dict(optimizer_state)


class LeastSquaresQFunction(QFunction):
    """
    Closed-form linear Q-function.

    Solves Q = [state, 1] @ W for all actions at once with numpy's
    least-squares solver. Parameters start at zero, so every action ties
    before the first fit.
    """

    def __init__(self, state_size: int = 1, action_size: int = 2):
        self.action_size = action_size
        self.weights = np.zeros((state_size + 1, action_size))

    def _design(self, batch: np.ndarray) -> np.ndarray:
        batch = batch.astype(np.float64)
        return np.hstack([batch, np.ones((len(batch), 1))])

    def predict(self, state) -> np.ndarray:
        return (self._design(_as_batch([state])) @ self.weights)[0]

    def fit(self, inputs, targets) -> float:
        x = self._design(_as_batch(inputs))
        y = np.asarray(targets, dtype=np.float64)
        if len(x) == 0:
            raise FitError('cannot fit an empty batch')
        if not np.all(np.isfinite(y)):
            raise FitError('targets are not finite')
        try:
            weights, *_ = np.linalg.lstsq(x, y, rcond=None)
        except np.linalg.LinAlgError as e:
            raise FitError(f'least-squares fit failed: {e}') from e
        self.weights = weights
        return float(np.mean((x @ weights - y) ** 2))
