"""
Gaussian noise models.

Observation model: D ~ Normal(y(θ), σ), with σ either fixed or
learned jointly with the model parameters.
"""

import torch
import pyro.distributions as dist
from typing import Optional, Union

from .base import SimulatorLikelihood
from ..forward.observables import SimulatorObservable


def _normal(loc: torch.Tensor, scale) -> dist.Distribution:
    scale = torch.as_tensor(scale)
    dtype = torch.promote_types(loc.dtype, scale.dtype)
    if not dtype.is_floating_point:
        dtype = torch.get_default_dtype()
    return dist.Normal(loc.to(dtype), scale.to(dtype)).to_event(loc.dim())


class GaussianLikelihood(SimulatorLikelihood):
    """
    Normal likelihood with fixed noise scale.

    Parameters
    ----------
    obs : SimulatorObservable
        Observable compared to the data
    data : torch.Tensor
        Observed data
    scale : float or torch.Tensor
        Noise standard deviation (broadcast against the observable)
    name : Optional[str]
        Likelihood name (default: the observable name)
    """

    _fields = SimulatorLikelihood._fields + ("scale",)

    def __init__(
        self,
        obs: SimulatorObservable,
        data: torch.Tensor,
        scale: Union[float, torch.Tensor] = 1.0,
        name: Optional[str] = None,
    ):
        super().__init__(obs, data, prior=None, name=name)
        self.scale = scale

    def predictive_distribution(self, params: torch.Tensor) -> dist.Distribution:
        loc = self.obs.retrieve()
        return _normal(loc, self.scale)


class IsotropicGaussianLikelihood(SimulatorLikelihood):
    """
    Normal likelihood with a single learned noise scale.

    The scale prior joins the joint prior under this likelihood's name,
    so the parameter vector carries a ``<name>`` component holding σ.

    Parameters
    ----------
    obs : SimulatorObservable
        Observable compared to the data
    data : torch.Tensor
        Observed data
    scale_prior : dist.Distribution
        Prior over σ; must have positive support and a scalar sample
    name : Optional[str]
        Likelihood name (default: the observable name)
    """

    def __init__(
        self,
        obs: SimulatorObservable,
        data: torch.Tensor,
        scale_prior: dist.Distribution,
        name: Optional[str] = None,
    ):
        if scale_prior.batch_shape.numel() * scale_prior.event_shape.numel() != 1:
            raise ValueError("scale_prior must have a scalar sample shape")
        super().__init__(obs, data, prior=scale_prior, name=name)

    def predictive_distribution(self, params: torch.Tensor) -> dist.Distribution:
        loc = self.obs.retrieve()
        scale = params.reshape(())
        return _normal(loc, scale)
