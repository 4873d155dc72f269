"""
siminfer: Simulation-based Bayesian inference

Evaluates the log-joint density log p(D | θ) + log p(θ) for a forward
simulator, a prior and a set of named likelihoods, and hands it to
samplers in unconstrained space.
"""

__version__ = "0.1.0"

from . import forward
from . import likelihoods
from . import priors
from . import inference
from . import validation

from .exceptions import (
    SimulatorInferenceError,
    ShapeMismatchError,
    ParameterMismatchError,
    DuplicateLikelihoodError,
    ObservableNotComputedError,
)
from .parameters import ParameterVector
from .forward import SimulatorForwardProblem, SimulatorObservable, DirectSolver
from .likelihoods import (
    SimulatorLikelihood,
    GaussianLikelihood,
    IsotropicGaussianLikelihood,
    PoissonLikelihood,
)
from .priors import JointPrior
from .inference import (
    SimulatorInferenceProblem,
    SimulatorInferenceSolution,
    SimulationArrayStorage,
    PriorImportanceSampling,
    MCMCSampler,
    solve,
)

__all__ = [
    "forward",
    "likelihoods",
    "priors",
    "inference",
    "validation",
    "SimulatorInferenceError",
    "ShapeMismatchError",
    "ParameterMismatchError",
    "DuplicateLikelihoodError",
    "ObservableNotComputedError",
    "ParameterVector",
    "SimulatorForwardProblem",
    "SimulatorObservable",
    "DirectSolver",
    "SimulatorLikelihood",
    "GaussianLikelihood",
    "IsotropicGaussianLikelihood",
    "PoissonLikelihood",
    "JointPrior",
    "SimulatorInferenceProblem",
    "SimulatorInferenceSolution",
    "SimulationArrayStorage",
    "PriorImportanceSampling",
    "MCMCSampler",
    "solve",
]
