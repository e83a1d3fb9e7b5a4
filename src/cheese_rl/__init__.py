"""Online Q-learning agent that teaches a mouse to chase cheese."""

from cheese_rl.errors import AgentError, FitError, MissingFeatureError

__version__ = "0.1.0"

__all__ = ["AgentError", "FitError", "MissingFeatureError"]
