"""Exceptions raised by the agent and its Q-function backends."""


class AgentError(Exception):
    """Base class for every error raised by cheese_rl."""


class MissingFeatureError(AgentError, LookupError):
    """An entity needed to encode the state is not present in the observation."""

    def __init__(self, symbol: str):
        super().__init__(f'{symbol!r} not found in observation')
        self.symbol = symbol


class FitError(AgentError, RuntimeError):
    """A Q-function fit did not complete (e.g. the loss diverged)."""
