"""
Count-data likelihood: D ~ Poisson(rate = simulator output).
"""

import torch
import pyro.distributions as dist
from typing import Optional

from .base import SimulatorLikelihood
from ..forward.observables import SimulatorObservable


class PoissonLikelihood(SimulatorLikelihood):
    """
    Poisson likelihood for count observations.

    The observable output is used as the Poisson rate and must be
    non-negative; a small constant keeps it away from zero.

    Parameters
    ----------
    obs : SimulatorObservable
        Observable giving the expected counts
    data : torch.Tensor
        Observed counts (stored as floating point)
    name : Optional[str]
        Likelihood name (default: the observable name)
    """

    eps = 1e-8

    def __init__(
        self,
        obs: SimulatorObservable,
        data: torch.Tensor,
        name: Optional[str] = None,
    ):
        data = torch.as_tensor(data)
        if not data.is_floating_point():
            data = data.to(torch.get_default_dtype())
        super().__init__(obs, data, prior=None, name=name)

    def predictive_distribution(self, params: torch.Tensor) -> dist.Distribution:
        rate = self.obs.retrieve()
        return dist.Poisson(rate + self.eps).to_event(rate.dim())
