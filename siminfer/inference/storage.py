"""
In-memory storage of simulator inputs and outputs.

Inference algorithms record every simulated parameter vector together
with the observables it produced; solutions read them back through
``getinputs``/``getoutputs``.
"""

import torch
import numpy as np
import pandas as pd
from collections import OrderedDict
from typing import Dict, List, Mapping, Optional, Sequence


class SimulationArrayStorage:
    """
    Array-backed record of simulator inputs and outputs.

    Inputs are flat parameter tensors; outputs are mappings from
    observable name to tensor. Stored values are detached copies.
    """

    def __init__(self):
        self._inputs: List[torch.Tensor] = []
        self._outputs: "OrderedDict[str, List[torch.Tensor]]" = OrderedDict()

    def store(
        self,
        inputs: torch.Tensor,
        outputs: Optional[Mapping[str, torch.Tensor]] = None,
    ):
        """
        Record one simulation.

        Parameters
        ----------
        inputs : torch.Tensor
            Flat parameter vector
        outputs : Optional[Mapping[str, torch.Tensor]]
            Observable name -> output; every record must provide the
            same observables
        """
        outputs = outputs or {}
        if self._inputs and set(outputs) != set(self._outputs):
            raise ValueError(
                f"Output names {sorted(outputs)} do not match stored names {sorted(self._outputs)}"
            )

        self._inputs.append(torch.as_tensor(inputs).detach().clone().reshape(-1))
        for name, value in outputs.items():
            self._outputs.setdefault(name, []).append(torch.as_tensor(value).detach().clone())

    def __len__(self) -> int:
        return len(self._inputs)

    @property
    def output_names(self):
        return tuple(self._outputs.keys())

    def getinputs(self, *selectors) -> torch.Tensor:
        """
        Stacked inputs of shape (N, d), indexed by ``selectors``.

        Examples
        --------
        >>> storage.getinputs()             # all records
        >>> storage.getinputs(slice(-10, None))
        >>> storage.getinputs(slice(None), 0)   # first parameter of every record
        """
        if not self._inputs:
            raise IndexError("storage is empty")
        stacked = torch.stack(self._inputs)
        return stacked[selectors] if selectors else stacked

    def getoutputs(self, *selectors) -> Dict[str, torch.Tensor]:
        """Observable name -> stacked outputs of shape (N, ...), indexed by ``selectors``."""
        if not self._inputs:
            raise IndexError("storage is empty")
        out = {}
        for name, values in self._outputs.items():
            stacked = torch.stack(values)
            out[name] = stacked[selectors] if selectors else stacked
        return out

    def clear(self):
        """Release all stored records."""
        self._inputs.clear()
        self._outputs.clear()

    def to_dataframe(self, labels: Optional[Sequence[str]] = None) -> pd.DataFrame:
        """
        Inputs as a DataFrame, one row per simulation.

        Parameters
        ----------
        labels : Optional[Sequence[str]]
            Column names (e.g. ``problem.u0.labels()``); defaults to
            ``theta_0, theta_1, ...``
        """
        if not self._inputs:
            return pd.DataFrame(columns=list(labels) if labels is not None else [])

        values = torch.stack(self._inputs).cpu().numpy()
        if labels is None:
            labels = [f"theta_{i}" for i in range(values.shape[1])]
        if len(labels) != values.shape[1]:
            raise ValueError(f"Expected {values.shape[1]} labels, got {len(labels)}")

        return pd.DataFrame(np.asarray(values), columns=list(labels))

    def __repr__(self) -> str:
        return f"SimulationArrayStorage(n={len(self)}, outputs={list(self._outputs)})"
