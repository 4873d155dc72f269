"""
Observables: named views of the simulator output.

Each observable reduces the raw simulator state to the tensor a
likelihood compares against data.
"""

import copy
import torch
from typing import Any, Callable, Optional

from ..exceptions import ObservableNotComputedError


def _identity(state):
    return state


class SimulatorObservable:
    """
    Named output of a forward simulation.

    Parameters
    ----------
    name : str
        Observable name; likelihoods are matched to observables by name
    func : Callable
        Maps the raw simulator state to the observed quantity
        (default: identity)
    """

    def __init__(
        self,
        name: str,
        func: Optional[Callable[[Any], Any]] = None,
    ):
        self.name = name
        self.func = func if func is not None else _identity
        self._output = None

    def observe(self, state: Any) -> torch.Tensor:
        """
        Compute and store the observable from a simulator state.

        Parameters
        ----------
        state : Any
            Raw simulator state returned by the forward solver

        Returns
        -------
        output : torch.Tensor
            Observed quantity
        """
        self._output = torch.as_tensor(self.func(state))
        return self._output

    def retrieve(self) -> torch.Tensor:
        """Return the most recently observed output."""
        if self._output is None:
            raise ObservableNotComputedError(
                f"Observable '{self.name}' has not been computed; run the forward problem first"
            )
        return self._output

    def clone(self) -> "SimulatorObservable":
        """Copy with the same name and function and no stored output."""
        new = copy.copy(self)
        new._output = None
        return new

    @property
    def is_computed(self) -> bool:
        return self._output is not None

    def __repr__(self) -> str:
        return f"SimulatorObservable(name={self.name!r})"
