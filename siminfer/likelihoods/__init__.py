"""
Likelihood module: p(D | θ) for each named observable.

Each likelihood declares a name, an observable, observed data and
(optionally) a prior over its own parameters.
"""

from .base import SimulatorLikelihood
from .gaussian import GaussianLikelihood, IsotropicGaussianLikelihood
from .counts import PoissonLikelihood

__all__ = [
    "SimulatorLikelihood",
    "GaussianLikelihood",
    "IsotropicGaussianLikelihood",
    "PoissonLikelihood",
]
