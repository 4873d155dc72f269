"""
Prior importance sampling.

Draws θ ~ p(θ), simulates, and weights each draw by its likelihood:

    w_i ∝ p(D | θ_i),   log Z ≈ logsumexp(log p(D | θ_i)) - log N
"""

import math
import torch
import pyro
import logging
from typing import Any, Dict, Optional
from tqdm import tqdm

from .algorithms import SimulatorInferenceAlgorithm, solve
from .solution import SimulatorInferenceSolution
from .storage import SimulationArrayStorage

logger = logging.getLogger(__name__)


class PriorImportanceSampling(SimulatorInferenceAlgorithm):
    """
    Importance sampling with the joint prior as proposal.

    Every draw runs the forward simulation once; inputs and observable
    outputs are recorded in the solution's storage.

    Parameters
    ----------
    n_samples : int
        Number of prior draws
    seed : Optional[int]
        Random seed (None = leave the global RNG untouched)
    progress : bool
        Whether to show a progress bar
    """

    def __init__(
        self,
        n_samples: int = 1000,
        seed: Optional[int] = None,
        progress: bool = True,
    ):
        if n_samples < 1:
            raise ValueError(f"n_samples must be positive, got {n_samples}")
        self.n_samples = n_samples
        self.seed = seed
        self.progress = progress

    def solve(
        self,
        problem,
        storage: SimulationArrayStorage,
        **solve_kwargs,
    ) -> SimulatorInferenceSolution:
        if self.seed is not None:
            pyro.set_rng_seed(self.seed)

        solution = SimulatorInferenceSolution(problem, self, storage, result=None)
        return self.extend(solution, self.n_samples, **solve_kwargs)

    def extend(
        self,
        solution: SimulatorInferenceSolution,
        n_samples: int,
        **solve_kwargs,
    ) -> SimulatorInferenceSolution:
        """
        Append ``n_samples`` further draws to ``solution`` in place.

        Parameters
        ----------
        solution : SimulatorInferenceSolution
            Solution produced by this algorithm (or a fresh one)
        n_samples : int
            Number of additional draws

        Returns
        -------
        solution : SimulatorInferenceSolution
            The same object, with an updated ``result``

        Raises
        ------
        ValueError
            If ``n_samples`` is not positive
        """
        if n_samples < 1:
            raise ValueError(f"n_samples must be positive, got {n_samples}")

        problem = solution.prob

        samples = []
        logliks = []

        iterator = range(n_samples)
        if self.progress:
            iterator = tqdm(iterator, desc="Importance sampling")

        with torch.no_grad():
            for _ in iterator:
                theta = problem.prior.sample()
                forward_sol = problem.simulate(theta, **solve_kwargs)
                loglik, _ = problem.logjoint_from_solution(forward_sol, theta)

                outputs = {name: obs.retrieve() for name, obs in forward_sol.observables.items()}
                solution.storage.store(theta.data, outputs)

                samples.append(theta.data)
                logliks.append(loglik)

        samples = torch.stack(samples)
        logliks = torch.stack(logliks)

        previous = solution.result
        if previous is not None:
            samples = torch.cat([previous["samples"], samples])
            logliks = torch.cat([previous["loglik"], logliks])

        solution.result = self._weights(samples, logliks)

        logger.info(
            f"Importance sampling: {len(logliks)} draws, "
            f"ESS = {solution.result['ess']:.1f}, "
            f"log evidence = {solution.result['log_evidence']:.3f}"
        )

        return solution

    @staticmethod
    def _weights(samples: torch.Tensor, logliks: torch.Tensor) -> Dict[str, Any]:
        n = logliks.shape[0]
        log_norm = torch.logsumexp(logliks, dim=0)
        log_weights = logliks - log_norm
        weights = log_weights.exp()
        ess = 1.0 / (weights ** 2).sum()

        return {
            "samples": samples,
            "loglik": logliks,
            "log_weights": log_weights,
            "weights": weights,
            "ess": float(ess),
            "log_evidence": float(log_norm - math.log(n)),
        }


def quick_sample(
    problem,
    **kwargs,
) -> SimulatorInferenceSolution:
    """
    Quick importance-sampling run with sensible defaults for exploration.

    Parameters
    ----------
    problem : SimulatorInferenceProblem
        Problem to solve
    **kwargs
        Override defaults (n_samples, seed, progress)

    Returns
    -------
    solution : SimulatorInferenceSolution
    """
    defaults = {
        'n_samples': 500,
        'seed': None,
        'progress': False,
    }

    defaults.update(kwargs)

    return solve(problem, PriorImportanceSampling(**defaults))
