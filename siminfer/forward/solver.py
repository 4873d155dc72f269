"""
Forward solvers: run a forward problem at given parameters.

Usage mirrors a two-step init/solve protocol:

    solver = init_solver(forward_prob, DirectSolver(), p=theta)
    forward_sol = solver.solve()
"""

import torch
import logging
from typing import Any, Dict, Optional

from .problem import SimulatorForwardProblem, SimulatorForwardSolution

logger = logging.getLogger(__name__)


class DirectSolver:
    """
    Solver configuration that calls the simulator directly.

    Parameters
    ----------
    no_grad : bool
        Run the simulator under ``torch.no_grad()``
    **default_kwargs
        Keyword arguments passed to every simulator call
    """

    def __init__(
        self,
        no_grad: bool = False,
        **default_kwargs,
    ):
        self.no_grad = no_grad
        self.default_kwargs = default_kwargs

    def solve(
        self,
        simulator,
        p: Optional[torch.Tensor],
        **kwargs,
    ) -> Any:
        call_kwargs = dict(self.default_kwargs)
        call_kwargs.update(kwargs)
        if self.no_grad:
            with torch.no_grad():
                return simulator(p, **call_kwargs)
        return simulator(p, **call_kwargs)

    def __repr__(self) -> str:
        return f"DirectSolver(no_grad={self.no_grad}, default_kwargs={self.default_kwargs})"


class SimulatorForwardSolver:
    """
    Initialized forward solver: a forward problem bound to parameters and a solver.

    The solver owns its observables: results of ``solve()`` never alias
    the observables of the problem it was initialized from.

    Parameters
    ----------
    prob : SimulatorForwardProblem
        Forward problem with ``p`` already set
    alg : Optional[Any]
        Solver configuration exposing ``solve(simulator, p, **kwargs)``;
        None calls the simulator directly
    solve_kwargs : Dict
        Extra keyword arguments for the simulator call
    """

    def __init__(
        self,
        prob: SimulatorForwardProblem,
        alg: Optional[Any] = None,
        solve_kwargs: Optional[Dict[str, Any]] = None,
    ):
        self.prob = prob
        self.alg = alg
        self.solve_kwargs = dict(solve_kwargs or {})
        self.sol = None

    def step(self) -> Any:
        """Run the simulator once and return the raw state."""
        if self.alg is None:
            return self.prob.simulator(self.prob.p, **self.solve_kwargs)
        return self.alg.solve(self.prob.simulator, self.prob.p, **self.solve_kwargs)

    def solve(self) -> SimulatorForwardSolution:
        """
        Run the simulation to completion and update all observables.

        Solver errors propagate to the caller unchanged.

        Returns
        -------
        forward_sol : SimulatorForwardSolution
        """
        logger.debug(f"Running forward simulation with {type(self.alg).__name__}")
        state = self.step()

        for obs in self.prob.observables.values():
            obs.observe(state)

        self.sol = state
        return SimulatorForwardSolution(self.prob, state)


def init_solver(
    prob: SimulatorForwardProblem,
    alg: Optional[Any] = None,
    p: Optional[torch.Tensor] = None,
    **solve_kwargs,
) -> SimulatorForwardSolver:
    """
    Initialize a forward solver.

    Parameters
    ----------
    prob : SimulatorForwardProblem
        Forward problem
    alg : Optional[Any]
        Solver configuration (None = call the simulator directly)
    p : Optional[torch.Tensor]
        Parameters to simulate at; None keeps ``prob.p``
    **solve_kwargs
        Passed through to the simulator

    Returns
    -------
    solver : SimulatorForwardSolver
    """
    # fresh observables so each solution owns its outputs
    overrides = {"observables": tuple(obs.clone() for obs in prob.observables.values())}
    if p is not None:
        overrides["p"] = p
    prob = prob.remake(**overrides)
    return SimulatorForwardSolver(prob, alg, solve_kwargs)


def solve(
    prob: SimulatorForwardProblem,
    alg: Optional[Any] = None,
    **kwargs,
) -> SimulatorForwardSolution:
    """Initialize and run a forward solver in one call."""
    return init_solver(prob, alg, **kwargs).solve()
