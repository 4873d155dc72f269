"""
Synthetic inference problems for validation.

Ground truth is known, so we can check how well it is recovered.
"""

import numpy as np
import torch
import pyro.distributions as dist
from scipy import linalg
from typing import Any, Dict, Optional, Tuple
import logging

from ..forward import DirectSolver, SimulatorForwardProblem, SimulatorObservable
from ..likelihoods import GaussianLikelihood, IsotropicGaussianLikelihood
from ..inference.problem import SimulatorInferenceProblem

logger = logging.getLogger(__name__)


class LinearGaussianProblemGenerator:
    """
    Generate linear-Gaussian inference problems with known ground truth.

    Process:
    1. Draw a random design matrix A and true parameters θ*
    2. Simulate y = A θ*
    3. Observe D = y + noise
    4. Later: try to recover θ* from D

    Parameters
    ----------
    n_params : int
        Number of model parameters
    n_obs : int
        Number of observations
    noise_scale : float
        Standard deviation of the observation noise
    learn_noise : bool
        If True, the noise scale is a free parameter with a LogNormal prior
    dtype : torch.dtype
        Floating point type of all tensors
    """

    def __init__(
        self,
        n_params: int = 2,
        n_obs: int = 10,
        noise_scale: float = 1.0,
        learn_noise: bool = False,
        dtype: torch.dtype = torch.float64,
    ):
        self.n_params = n_params
        self.n_obs = n_obs
        self.noise_scale = noise_scale
        self.learn_noise = learn_noise
        self.dtype = dtype

    def generate(
        self,
        seed: Optional[int] = None,
    ) -> Tuple[SimulatorInferenceProblem, Dict[str, Any]]:
        """
        Generate one synthetic problem.

        Returns
        -------
        problem : SimulatorInferenceProblem
            Inference problem with likelihood named 'y'
        ground_truth : Dict[str, Any]
            True parameters, design matrix and data

        Examples
        --------
        >>> gen = LinearGaussianProblemGenerator(n_params=3, n_obs=20)
        >>> problem, truth = gen.generate(seed=42)
        >>> problem.logprob(truth['theta'])
        """
        if seed is not None:
            np.random.seed(seed)
            torch.manual_seed(seed)

        logger.info("Generating synthetic linear-Gaussian problem...")

        # 1. Design and ground truth
        design = torch.randn(self.n_obs, self.n_params, dtype=self.dtype)
        theta_true = torch.randn(self.n_params, dtype=self.dtype)

        def linear_model(p):
            return design @ p

        # 2. Simulate and add noise
        y_true = linear_model(theta_true)
        data = y_true + self.noise_scale * torch.randn(self.n_obs, dtype=self.dtype)

        # 3. Assemble the problem
        obs = SimulatorObservable("y")
        forward_prob = SimulatorForwardProblem(linear_model, obs, p=theta_true)
        prior = dist.Normal(torch.zeros(self.n_params, dtype=self.dtype), 1.0).to_event(1)

        if self.learn_noise:
            scale_prior = dist.LogNormal(
                torch.tensor(0.0, dtype=self.dtype),
                torch.tensor(1.0, dtype=self.dtype),
            )
            likelihood = IsotropicGaussianLikelihood(obs, data, scale_prior)
        else:
            likelihood = GaussianLikelihood(obs, data, scale=self.noise_scale)

        problem = SimulatorInferenceProblem(
            forward_prob,
            prior,
            likelihood,
            forward_solver=DirectSolver(),
            metadata={"generator": type(self).__name__, "seed": seed},
        )

        ground_truth = {
            'theta': theta_true,
            'design': design,
            'y_true': y_true,
            'data': data,
            'noise_scale': self.noise_scale,
        }

        logger.info(f"Generated: {self.n_params} parameters × {self.n_obs} observations")

        return problem, ground_truth


def generate_linear_gaussian_problem(
    n_params: int = 2,
    n_obs: int = 10,
    noise_scale: float = 1.0,
    learn_noise: bool = False,
    seed: Optional[int] = None,
) -> Tuple[SimulatorInferenceProblem, Dict[str, Any]]:
    """
    Convenience function to generate a synthetic linear-Gaussian problem.

    Parameters
    ----------
    n_params : int
        Number of model parameters
    n_obs : int
        Number of observations
    noise_scale : float
        Observation noise standard deviation
    learn_noise : bool
        Whether the noise scale is a free parameter
    seed : Optional[int]
        Random seed

    Returns
    -------
    problem : SimulatorInferenceProblem
        Inference problem
    ground_truth : Dict[str, Any]
        True values
    """
    gen = LinearGaussianProblemGenerator(
        n_params=n_params,
        n_obs=n_obs,
        noise_scale=noise_scale,
        learn_noise=learn_noise,
    )
    return gen.generate(seed=seed)


def analytic_posterior(
    ground_truth: Dict[str, Any],
    prior_scale: float = 1.0,
) -> Dict[str, np.ndarray]:
    """
    Exact posterior of a fixed-noise linear-Gaussian problem.

    For D = A θ + ε, ε ~ N(0, σ² I) and θ ~ N(0, τ² I):

        Σ_post = (AᵀA / σ² + I / τ²)⁻¹
        μ_post = Σ_post Aᵀ D / σ²

    Parameters
    ----------
    ground_truth : Dict[str, Any]
        As returned by ``generate_linear_gaussian_problem``
    prior_scale : float
        Prior standard deviation τ

    Returns
    -------
    posterior : Dict[str, np.ndarray]
        'mean' and 'cov'
    """
    A = np.asarray(ground_truth['design'], dtype=float)
    D = np.asarray(ground_truth['data'], dtype=float)
    sigma2 = float(ground_truth['noise_scale']) ** 2

    precision = A.T @ A / sigma2 + np.eye(A.shape[1]) / prior_scale ** 2
    factor = linalg.cho_factor(precision)

    mean = linalg.cho_solve(factor, A.T @ D / sigma2)
    cov = linalg.cho_solve(factor, np.eye(A.shape[1]))

    return {
        'mean': mean,
        'cov': cov,
    }
