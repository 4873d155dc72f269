"""
Base likelihood: p(D | simulator output, likelihood parameters).
"""

import copy
import torch
import pyro.distributions as dist
from typing import Optional

from ..forward.observables import SimulatorObservable


class SimulatorLikelihood:
    """
    Likelihood of observed data given one simulator observable.

    Subclasses implement ``predictive_distribution``; the log-likelihood
    is the summed log-density of ``data`` under it.

    Parameters
    ----------
    obs : SimulatorObservable
        Observable whose latest output parameterizes the likelihood
    data : torch.Tensor
        Observed data, same shape as the observable output
    prior : Optional[dist.Distribution]
        Prior over the likelihood's own parameters (e.g. noise scale).
        None if the likelihood has no free parameters.
    name : Optional[str]
        Likelihood name (default: the observable name)
    """

    _fields = ("obs", "data", "prior", "name")

    def __init__(
        self,
        obs: SimulatorObservable,
        data: torch.Tensor,
        prior: Optional[dist.Distribution] = None,
        name: Optional[str] = None,
    ):
        self.obs = obs
        self.data = torch.as_tensor(data)
        self.prior = prior
        self.name = name if name is not None else obs.name

    def predictive_distribution(self, params: torch.Tensor) -> dist.Distribution:
        """
        Distribution of the data given the current observable output.

        Parameters
        ----------
        params : torch.Tensor
            This likelihood's component of the parameter vector
            (empty when ``prior`` is None)
        """
        raise NotImplementedError

    def loglikelihood(self, params: torch.Tensor) -> torch.Tensor:
        """
        Evaluate log p(data | observable, params).

        Returns
        -------
        loglik : torch.Tensor
            0-dim tensor
        """
        return self.predictive_distribution(params).log_prob(self.data).sum()

    def remake(self, **overrides) -> "SimulatorLikelihood":
        """Copy with overridden fields (e.g. ``obs`` bound to another forward solution)."""
        unknown = set(overrides) - set(self._fields)
        if unknown:
            raise TypeError(
                f"Unknown fields for {type(self).__name__}: {sorted(unknown)}"
            )
        new = copy.copy(self)
        for key, value in overrides.items():
            setattr(new, key, value)
        return new

    def __repr__(self) -> str:
        return (
            f"{type(self).__name__}(name={self.name!r}, obs={self.obs.name!r}, "
            f"data_shape={tuple(self.data.shape)})"
        )
