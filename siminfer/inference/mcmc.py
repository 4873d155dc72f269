"""
Markov chain Monte Carlo via pyro's HMC/NUTS kernels.

The chain runs in unconstrained space on the potential

    U(x) = -log p(D, f⁻¹(x)) - log |det J_f⁻¹(x)|

i.e. the negative of ``problem.logdensity``. The simulator must be
differentiable in torch for gradient-based kernels.
"""

import torch
import pyro
import logging
from pyro.infer.mcmc import HMC, MCMC, NUTS
from typing import Optional

from .algorithms import SimulatorInferenceAlgorithm
from .solution import SimulatorInferenceSolution
from .storage import SimulationArrayStorage

logger = logging.getLogger(__name__)

_KERNELS = {
    "nuts": NUTS,
    "hmc": HMC,
}


class MCMCSampler(SimulatorInferenceAlgorithm):
    """
    Gradient-based MCMC on the problem's log-density.

    Retained draws are recorded in storage in constrained space, together
    with the observables of one forward simulation per draw.

    Parameters
    ----------
    kernel : str
        'nuts' or 'hmc'
    num_samples : int
        Number of retained samples
    warmup_steps : int
        Number of adaptation steps
    seed : Optional[int]
        Random seed
    progress : bool
        Whether to show pyro's progress bar
    **kernel_kwargs
        Passed to the pyro kernel (e.g. step_size, max_tree_depth)
    """

    def __init__(
        self,
        kernel: str = "nuts",
        num_samples: int = 500,
        warmup_steps: int = 200,
        seed: Optional[int] = None,
        progress: bool = True,
        **kernel_kwargs,
    ):
        if kernel not in _KERNELS:
            raise ValueError(f"Unknown kernel: {kernel} (available: {list(_KERNELS)})")
        self.kernel = kernel
        self.num_samples = num_samples
        self.warmup_steps = warmup_steps
        self.seed = seed
        self.progress = progress
        self.kernel_kwargs = kernel_kwargs

    def solve(
        self,
        problem,
        storage: SimulationArrayStorage,
        **solve_kwargs,
    ) -> SimulatorInferenceSolution:
        if self.seed is not None:
            pyro.set_rng_seed(self.seed)

        def potential_fn(params):
            return -problem.logdensity(params["u"], **solve_kwargs)

        kernel = _KERNELS[self.kernel](potential_fn=potential_fn, **self.kernel_kwargs)
        mcmc = MCMC(
            kernel,
            num_samples=self.num_samples,
            warmup_steps=self.warmup_steps,
            initial_params={"u": problem.u0.data.clone()},
            disable_progbar=not self.progress,
        )

        logger.info(f"Running {self.kernel.upper()} for {self.warmup_steps} + {self.num_samples} steps...")
        mcmc.run()

        unconstrained = mcmc.get_samples()["u"].detach()
        # one more forward solve per retained draw, to record its outputs
        with torch.no_grad():
            samples = problem.bijector().inv(unconstrained)
            for theta in samples:
                forward_sol = problem.simulate(theta, **solve_kwargs)
                outputs = {name: obs.retrieve() for name, obs in forward_sol.observables.items()}
                storage.store(theta, outputs)

        result = {
            "samples": samples,
            "unconstrained_samples": unconstrained,
            "diagnostics": mcmc.diagnostics(),
            "mcmc": mcmc,
        }

        return SimulatorInferenceSolution(problem, self, storage, result=result)
