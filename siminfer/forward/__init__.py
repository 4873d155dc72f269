"""
Forward problem module: the simulator side of the inference problem.

This module implements the forward model θ → observables:
- SimulatorForwardProblem bundles a black-box simulator with named observables
- init_solver/solve run it at given parameters
- SimulatorForwardSolution exposes the computed observables
"""

from .observables import SimulatorObservable
from .problem import SimulatorForwardProblem, SimulatorForwardSolution
from .solver import DirectSolver, SimulatorForwardSolver, init_solver, solve

__all__ = [
    "SimulatorObservable",
    "SimulatorForwardProblem",
    "SimulatorForwardSolution",
    "SimulatorForwardSolver",
    "DirectSolver",
    "init_solver",
    "solve",
]
