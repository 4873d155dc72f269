"""
Structured parameter vectors.

A ParameterVector is a flat 1-D tensor with named, shaped components laid
out back to back. It is the common currency between the joint prior, the
inference problem and the likelihoods:

    theta = ParameterVector.from_components({"model": torch.zeros(2), "obs": torch.ones(())})
    theta.model        # view of elements 0:2
    theta.obs          # 0-dim view of element 2
"""

import math
import torch
import numpy as np
from collections import OrderedDict
from typing import Dict, List, Mapping, Optional, Tuple, Union

from .exceptions import ShapeMismatchError


def _numel(shape: torch.Size) -> int:
    return int(math.prod(shape))


class ParameterVector:
    """
    Flat parameter tensor with an ordered component layout.

    Parameters
    ----------
    data : torch.Tensor
        Flat 1-D tensor holding all components back to back
    layout : Mapping[str, torch.Size]
        Ordered mapping from component name to component shape
    """

    def __init__(
        self,
        data: torch.Tensor,
        layout: Mapping[str, Tuple[int, ...]],
    ):
        layout = OrderedDict((name, torch.Size(shape)) for name, shape in layout.items())
        data = torch.as_tensor(data)
        total = sum(_numel(shape) for shape in layout.values())

        if data.dim() != 1 or data.numel() != total:
            raise ShapeMismatchError(
                f"Expected a flat vector with {total} elements, got shape {tuple(data.shape)}"
            )

        offsets = {}
        start = 0
        for name, shape in layout.items():
            n = _numel(shape)
            offsets[name] = (start, start + n)
            start += n

        object.__setattr__(self, "_data", data)
        object.__setattr__(self, "_layout", layout)
        object.__setattr__(self, "_offsets", offsets)

    @classmethod
    def from_components(
        cls,
        components: Mapping[str, torch.Tensor],
        dtype: Optional[torch.dtype] = None,
    ) -> "ParameterVector":
        """
        Build a vector from a mapping of named tensors.

        Parameters
        ----------
        components : Mapping[str, torch.Tensor]
            Ordered component values
        dtype : Optional[torch.dtype]
            Target dtype (None = promote across components)

        Returns
        -------
        vector : ParameterVector
        """
        values = OrderedDict((name, torch.as_tensor(v)) for name, v in components.items())

        if dtype is None:
            dtype = torch.get_default_dtype()
            floating = [v.dtype for v in values.values() if v.is_floating_point()]
            if floating:
                dtype = floating[0]
                for d in floating[1:]:
                    dtype = torch.promote_types(dtype, d)

        layout = OrderedDict((name, v.shape) for name, v in values.items())
        chunks = [v.reshape(-1).to(dtype) for v in values.values()]
        data = torch.cat(chunks) if chunks else torch.zeros(0, dtype=dtype)

        return cls(data, layout)

    # ---- accessors ----

    @property
    def data(self) -> torch.Tensor:
        return self._data

    @property
    def layout(self) -> "OrderedDict[str, torch.Size]":
        return OrderedDict(self._layout)

    @property
    def names(self) -> Tuple[str, ...]:
        return tuple(self._layout.keys())

    @property
    def dtype(self) -> torch.dtype:
        return self._data.dtype

    def component(self, name: str) -> torch.Tensor:
        """Return a reshaped view of one component."""
        a, b = self._offsets[name]
        return self._data[a:b].reshape(self._layout[name])

    def __getattr__(self, name: str) -> torch.Tensor:
        # only reached when normal lookup fails
        if name.startswith("_"):
            raise AttributeError(name)
        offsets = object.__getattribute__(self, "_offsets")
        if name in offsets:
            return self.component(name)
        raise AttributeError(
            f"ParameterVector has no component {name!r}; components are {self.names}"
        )

    def __setattr__(self, name, value):
        raise AttributeError("ParameterVector is immutable; use with_data() to build a new one")

    def __getitem__(self, key: Union[str, int, slice]) -> torch.Tensor:
        if isinstance(key, str):
            if key not in self._offsets:
                raise KeyError(key)
            return self.component(key)
        return self._data[key]

    def __contains__(self, name: str) -> bool:
        return name in self._offsets

    def __len__(self) -> int:
        return self._data.numel()

    def as_dict(self) -> Dict[str, torch.Tensor]:
        """Return name -> component view."""
        return {name: self.component(name) for name in self._layout}

    # ---- construction helpers ----

    def zeros_like(self) -> "ParameterVector":
        """Additive identity with the same layout."""
        return ParameterVector(torch.zeros_like(self._data), self._layout)

    def with_data(self, values) -> "ParameterVector":
        """
        Materialize a raw vector into this layout.

        Parameters
        ----------
        values : torch.Tensor, np.ndarray, list or ParameterVector
            Flat values with exactly len(self) elements

        Returns
        -------
        vector : ParameterVector
            New vector sharing this layout

        Raises
        ------
        ShapeMismatchError
            If the element count or component layout differs
        """
        if isinstance(values, ParameterVector):
            if values.layout != self._layout:
                raise ShapeMismatchError(
                    f"Component layout {dict(values.layout)} does not match {dict(self._layout)}"
                )
            values = values.data

        data = torch.as_tensor(values, dtype=self._data.dtype)

        if data.dim() != 1 or data.numel() != len(self):
            raise ShapeMismatchError(
                f"Expected a flat vector with {len(self)} elements, got shape {tuple(data.shape)}"
            )

        return ParameterVector(data, self._layout)

    def detach(self) -> "ParameterVector":
        return ParameterVector(self._data.detach(), self._layout)

    def numpy(self) -> np.ndarray:
        return self._data.detach().cpu().numpy()

    def labels(self) -> List[str]:
        """
        Flat element labels, e.g. ['model[0]', 'model[1]', 'obs'].

        Scalar components are labelled by their name alone, others by
        name and (multi-)index.
        """
        labels = []
        for name, shape in self._layout.items():
            if len(shape) == 0:
                labels.append(name)
                continue
            for idx in np.ndindex(*shape):
                labels.append(f"{name}[{','.join(str(i) for i in idx)}]")
        return labels

    # ---- comparison / display ----

    def __eq__(self, other) -> bool:
        if not isinstance(other, ParameterVector):
            return NotImplemented
        return (
            self._layout == other._layout
            and self._data.dtype == other._data.dtype
            and torch.equal(self._data, other._data)
        )

    __hash__ = None

    def __repr__(self) -> str:
        parts = [
            f"{name}={self.component(name).detach().cpu().tolist()}"
            for name in self._layout
        ]
        return f"ParameterVector({', '.join(parts)})"
