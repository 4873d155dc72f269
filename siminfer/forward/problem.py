"""
Forward problem: the parametric simulator plus its observables.

Implements the forward model f: θ → state, whose observables
are compared against data by the likelihoods.
"""

import torch
from collections import OrderedDict
from typing import Any, Callable, Dict, Optional

from .observables import SimulatorObservable


class SimulatorForwardProblem:
    """
    Forward simulation specification.

    Parameters
    ----------
    simulator : Callable
        Black-box model called as ``simulator(p, **kwargs)``; returns
        the raw simulator state
    *observables : SimulatorObservable
        Named outputs extracted from the state. If none are given, a
        single identity observable named ``y`` is used.
    p : Optional[torch.Tensor]
        Model parameters the problem is (or was last) evaluated at
    metadata : Optional[Dict]
        Free-form user data
    """

    def __init__(
        self,
        simulator: Callable[..., Any],
        *observables: SimulatorObservable,
        p: Optional[torch.Tensor] = None,
        metadata: Optional[Dict[str, Any]] = None,
    ):
        if not observables:
            observables = (SimulatorObservable("y"),)

        named = OrderedDict()
        for obs in observables:
            if obs.name in named:
                raise ValueError(f"Duplicate observable name: '{obs.name}'")
            named[obs.name] = obs

        self.simulator = simulator
        self.observables = named
        self.p = None if p is None else torch.as_tensor(p)
        self.metadata = dict(metadata) if metadata is not None else {}

    @property
    def prob(self) -> Callable[..., Any]:
        """The underlying simulator."""
        return self.simulator

    @property
    def names(self):
        return tuple(self.observables.keys())

    def remake(self, **overrides) -> "SimulatorForwardProblem":
        """
        Copy with overrides (``simulator``, ``observables``, ``p``, ``metadata``).

        Observable objects are shared with the original problem;
        ``init_solver`` clones them before simulating.
        """
        unknown = set(overrides) - {"simulator", "observables", "p", "metadata"}
        if unknown:
            raise TypeError(f"Unknown forward problem fields: {sorted(unknown)}")

        observables = overrides.get("observables", self.observables)
        if isinstance(observables, dict):
            observables = tuple(observables.values())

        return SimulatorForwardProblem(
            overrides.get("simulator", self.simulator),
            *observables,
            p=overrides.get("p", self.p),
            metadata=overrides.get("metadata", self.metadata),
        )

    def __repr__(self) -> str:
        sim_name = getattr(self.simulator, "__name__", type(self.simulator).__name__)
        return (
            f"SimulatorForwardProblem(simulator={sim_name}, "
            f"observables={list(self.observables)})"
        )


class SimulatorForwardSolution:
    """
    Result of one forward simulation.

    Parameters
    ----------
    prob : SimulatorForwardProblem
        Forward problem (with ``p`` set to the simulated parameters)
    sol : Any
        Raw simulator state
    """

    def __init__(
        self,
        prob: SimulatorForwardProblem,
        sol: Any,
    ):
        self.prob = prob
        self.sol = sol

    @property
    def observables(self) -> Dict[str, SimulatorObservable]:
        return self.prob.observables

    def __repr__(self) -> str:
        return f"SimulatorForwardSolution(observables={list(self.observables)})"
