"""
Tests for structured parameter vectors.
"""

import numpy as np
import pytest
import torch

from siminfer import ParameterVector, ShapeMismatchError


def _vector():
    return ParameterVector.from_components({
        "model": torch.tensor([1.0, 2.0], dtype=torch.float64),
        "noise": torch.tensor(0.5, dtype=torch.float64),
        "empty": torch.zeros(0),
    })


def test_component_access():
    theta = _vector()

    assert len(theta) == 3
    assert theta.names == ("model", "noise", "empty")
    assert torch.equal(theta.model, torch.tensor([1.0, 2.0], dtype=torch.float64))
    assert theta["noise"].shape == ()
    assert theta.empty.numel() == 0
    assert theta.dtype == torch.float64


def test_unknown_component():
    theta = _vector()

    with pytest.raises(AttributeError):
        theta.missing
    with pytest.raises(KeyError):
        theta["missing"]


def test_labels():
    assert _vector().labels() == ["model[0]", "model[1]", "noise"]


def test_zeros_like_keeps_layout():
    theta = _vector()
    zero = theta.zeros_like()

    assert zero.layout == theta.layout
    assert torch.count_nonzero(zero.data) == 0


def test_with_data_accepts_arrays_and_lists():
    theta = _vector()

    from_list = theta.with_data([0.0, 1.0, 2.0])
    from_numpy = theta.with_data(np.array([0.0, 1.0, 2.0]))

    assert from_list == from_numpy
    assert from_list.dtype == torch.float64
    assert float(from_list.noise) == 2.0


def test_with_data_rejects_wrong_size():
    theta = _vector()

    with pytest.raises(ShapeMismatchError):
        theta.with_data(torch.zeros(4))
    with pytest.raises(ShapeMismatchError):
        theta.with_data(torch.zeros(2))
    with pytest.raises(ShapeMismatchError):
        theta.with_data(torch.zeros(3, 1))


def test_with_data_rejects_other_layout():
    theta = _vector()
    other = ParameterVector.from_components({"model": torch.zeros(3, dtype=torch.float64)})

    with pytest.raises(ShapeMismatchError):
        theta.with_data(other)


def test_immutable():
    theta = _vector()

    with pytest.raises(AttributeError):
        theta.model = torch.zeros(2)


if __name__ == "__main__":
    pytest.main([__file__, "-v"])
