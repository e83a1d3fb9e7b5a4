"""
Training loop for the Q-learning agent on the cheese game.
"""

import logging
from typing import List

import numpy as np

from .agent.agent_state import Phase
from .agent.controller import TrainingController
from .agent.q_network import LeastSquaresQFunction, QFunction, TorchQFunction
from .game import create_game


def make_q_function(backend: str, rng: np.random.Generator, seed: int | None = None) -> QFunction:
    """Build the Q-function backend named by ``backend`` ('torch' or 'lstsq')."""
    if backend == "torch":
        return TorchQFunction(rng=rng, seed=seed)
    if backend == "lstsq":
        return LeastSquaresQFunction()
    raise ValueError(f"unknown backend {backend!r}")


def train(
    max_ticks: int = 5_000,
    play_after_converged: int = 50,
    render_interval: int = 100,
    seed: int | None = None,
    backend: str = "torch",
    render: bool = False,
    verbose: bool = False
) -> List[int]:
    """
    Let the agent play the cheese game until it has learned it.

    Each tick the agent picks a move and the game applies it. The agent
    collects transitions, fits, validates, and stops learning once it catches
    the cheese 20 times in a row. The loop then keeps going for
    ``play_after_converged`` ticks so the learned policy can be watched.

    Args:
        max_ticks: Hard limit on game ticks
        play_after_converged: Ticks to keep playing once training stopped
        render_interval: Ticks between progress prints
        seed: Seed for the game, exploration and weight initialisation
        backend: 'torch' for the SGD network, 'lstsq' for least squares
        render: Print the board every tick
        verbose: Show debug logging from the agent

    Returns:
        Score after every tick (for plotting learning curves)
    """
    if not verbose:
        logging.getLogger('cheese_rl').setLevel(logging.WARNING)

    rng = np.random.default_rng(seed)
    game = create_game(seed=seed)
    agent = TrainingController(game, q_function=make_q_function(backend, rng, seed), rng=rng)

    scores = []
    converged_at = None

    print(f"Training Q-learning agent ({backend}) on a {game.width}-cell board")
    print(f"Max ticks: {max_ticks}")
    print("-" * 60)

    for tick in range(max_ticks):
        action = agent.act()
        game.step(action)
        scores.append(game.score)

        if render:
            print(game.render())

        if converged_at is None and agent.phase is Phase.CONVERGED:
            converged_at = tick
            print(f"Converged at tick {tick} after {agent.fits_done} fit(s)")

        if tick % render_interval == 0:
            print(
                f"Tick {tick:5d} | "
                f"Score: {game.score:5d} | "
                f"Phase: {agent.phase.value:10s} | "
                f"Exploration: {agent.state.exploration_rate:.2f} | "
                f"Wins in row: {agent.state.wins_in_row:2d} | "
                f"Memory: {len(agent.memory):3d}"
            )

        if converged_at is not None and tick - converged_at >= play_after_converged:
            break

    print("-" * 60)
    if converged_at is None:
        print(f"Stopped after {len(scores)} ticks without converging. Score: {game.score}")
    else:
        print(f"Training complete! Score: {game.score}")

    return scores


if __name__ == "__main__":
    logging.basicConfig(level=logging.INFO, format="%(asctime)s %(name)s %(levelname)s %(message)s")

    # Training configuration
    MAX_TICKS = 5_000
    SEED = 42

    scores = train(
        max_ticks=MAX_TICKS,
        render_interval=250,
        seed=SEED,
        verbose=True
    )
