"""
Inference module: the inference problem, its log-joint density, and
algorithms that solve it.

Given observed data D and a forward simulator, evaluates and samples
the posterior p(θ | D) ∝ p(D | θ) p(θ).
"""

from .problem import SimulatorInferenceProblem, LogJoint
from .solution import SimulatorInferenceSolution
from .storage import SimulationArrayStorage
from .algorithms import SimulatorInferenceAlgorithm, solve
from .importance import PriorImportanceSampling, quick_sample
from .mcmc import MCMCSampler

__all__ = [
    "SimulatorInferenceProblem",
    "LogJoint",
    "SimulatorInferenceSolution",
    "SimulationArrayStorage",
    "SimulatorInferenceAlgorithm",
    "solve",
    "PriorImportanceSampling",
    "quick_sample",
    "MCMCSampler",
]
