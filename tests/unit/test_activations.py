import warnings

import numpy as np
import pytest

from bpnn.core import activations as act
from bpnn.core.errors import ShapeMismatch, UnknownActivation


@pytest.mark.parametrize("name", ["sigmoid", "identity", "tanh", "relu"])
def test_derivative_matches_finite_difference(name):
    pair = act.get(name)
    z = np.array([-2.0, -0.7, 0.3, 1.1, 2.5])
    eps = 1e-6
    numeric = (pair.fn(z + eps) - pair.fn(z - eps)) / (2 * eps)
    assert np.allclose(pair.deriv(z), numeric, atol=1e-6)


def test_sigmoid_values_and_saturation():
    assert act.sigmoid(np.array(0.0)) == pytest.approx(0.5)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        out = act.sigmoid(np.array([-1000.0, 1000.0]))
    assert np.allclose(out, [0.0, 1.0])


def test_linear_is_an_alias_of_identity():
    assert act.parse("linear") is act.Activation.IDENTITY
    assert act.parse(act.Activation.TANH) is act.Activation.TANH
    assert "linear" in act.names()


def test_unknown_activation_lists_available_names():
    with pytest.raises(UnknownActivation) as info:
        act.parse("Sigmoid")
    assert "sigmoid" in str(info.value)
    assert isinstance(info.value, KeyError)
    assert isinstance(info.value, ValueError)


def test_resolve_defaults_and_broadcasts():
    assert [p.name for p in act.resolve(None, 3)] == ["sigmoid"] * 3
    assert [p.name for p in act.resolve("tanh", 2)] == ["tanh", "tanh"]
    assert [p.name for p in act.resolve(["tanh", "linear"], 2)] == ["tanh", "identity"]


def test_resolve_rejects_wrong_count():
    with pytest.raises(ShapeMismatch):
        act.resolve(["sigmoid"], 2)
