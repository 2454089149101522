import warnings

import numpy as np
import pytest

from bpnn.core.errors import ShapeMismatch, UnknownActivation
from bpnn.core.initializer import initialize, reset_deltas
from bpnn.core.propagation import LearningMode, back_propagate, forward_propagate


def _forward(topology, state, x, activations=None):
    forward_propagate(topology, x, state.z, state.a, state.bias, state.weights, activations)


def _backward(topology, state, y, lr, momentum=1.0, mode="", activations=None):
    back_propagate(
        topology,
        y,
        state.z,
        state.a,
        state.bias,
        state.delta_bias,
        state.weights,
        state.delta_weights,
        lr,
        momentum,
        mode,
        activations,
    )


def _error(state, y):
    return float(0.5 * np.sum((state.a[-1] - np.asarray(y)) ** 2))


def test_forward_matches_hand_computation():
    topology = [2, 1]
    state = initialize(topology, rng=0)
    state.weights[0][...] = [[0.5], [-1.0]]
    state.bias[0][...] = [0.25]
    _forward(topology, state, [2.0, 1.0], activations=["identity"])
    assert state.z[0] == pytest.approx([0.25])
    assert state.a[1] == pytest.approx([0.25])
    assert state.a[0] == pytest.approx([2.0, 1.0])

    _forward(topology, state, [2.0, 1.0])
    assert state.a[1] == pytest.approx([1.0 / (1.0 + np.exp(-0.25))])


def test_forward_writes_in_place_and_is_repeatable():
    topology = [3, 4, 2]
    state = initialize(topology, rng=3)
    x = np.array([0.1, -0.4, 0.8])
    x_before = x.copy()
    a_ids = [id(buf) for buf in state.a]
    _forward(topology, state, x, activations=["tanh", "sigmoid"])
    first = [buf.copy() for buf in state.a + state.z]
    _forward(topology, state, x, activations=["tanh", "sigmoid"])
    second = [buf.copy() for buf in state.a + state.z]
    assert all(np.array_equal(p, q) for p, q in zip(first, second))
    assert [id(buf) for buf in state.a] == a_ids
    assert np.array_equal(x, x_before)


def test_forward_rejects_bad_input_and_names():
    topology = [2, 2, 1]
    state = initialize(topology, rng=0)
    with pytest.raises(ShapeMismatch):
        _forward(topology, state, [1.0, 2.0, 3.0])
    with pytest.raises(UnknownActivation):
        _forward(topology, state, [1.0, 2.0], activations=["sigmoid", "softplus"])
    with pytest.raises(ShapeMismatch):
        _forward(topology, state, [1.0, 2.0], activations=["sigmoid"])


def test_forward_rejects_unsized_state_without_writing():
    topology = [2, 2, 1]
    state = initialize(topology, rng=0)
    short_z = state.z[:1]
    with pytest.raises(ShapeMismatch):
        forward_propagate(topology, [1.0, 1.0], short_z, state.a, state.bias, state.weights)
    assert not state.a[0].any()

    other = initialize([2, 3, 1], rng=0)
    with pytest.raises(ShapeMismatch):
        forward_propagate(topology, [1.0, 1.0], state.z, state.a, state.bias, other.weights)


def test_online_step_matches_hand_computation():
    topology = [1, 1]
    state = initialize(topology, rng=0)
    state.weights[0][...] = 0.5
    state.bias[0][...] = 0.0
    _forward(topology, state, [2.0], activations="identity")
    _backward(topology, state, [0.0], lr=0.1, momentum=0.0, mode="online", activations="identity")
    # output 1.0, error signal 1.0, dE/dw = 2.0, dE/db = 1.0
    assert state.delta_weights[0] == pytest.approx([[-0.2]])
    assert state.delta_bias[0] == pytest.approx([-0.1])
    assert state.weights[0] == pytest.approx([[0.3]])
    assert state.bias[0] == pytest.approx([-0.1])


def test_momentum_blends_previous_step():
    topology = [1, 1]
    state = initialize(topology, rng=0)
    state.weights[0][...] = 0.5
    state.bias[0][...] = 0.0
    state.delta_weights[0][...] = 0.4
    state.delta_bias[0][...] = 0.2
    _forward(topology, state, [2.0], activations="identity")
    _backward(topology, state, [0.0], lr=0.1, momentum=0.5, mode="", activations="identity")
    assert state.delta_weights[0] == pytest.approx([[0.5 * 0.4 - 0.2]])
    assert state.delta_bias[0] == pytest.approx([0.5 * 0.2 - 0.1])
    assert state.weights[0] == pytest.approx([[0.5]])


def test_hidden_error_uses_weights_before_update():
    topology = [1, 1, 1]
    state = initialize(topology, rng=0)
    state.weights[0][...] = 1.0
    state.weights[1][...] = 2.0
    state.bias[0][...] = 0.0
    state.bias[1][...] = 0.0
    _forward(topology, state, [1.0], activations="identity")
    _backward(topology, state, [0.0], lr=0.1, momentum=0.0, mode="online", activations="identity")
    # output 2.0 -> output signal 2.0, hidden signal 2.0 * 2.0 = 4.0
    assert state.delta_weights[1] == pytest.approx([[-0.2]])
    assert state.delta_weights[0] == pytest.approx([[-0.4]])


def test_online_reduces_error_on_a_repeated_example():
    topology = [2, 2, 1]
    state = initialize(topology, rng=np.random.default_rng(11))
    x, y = [0.3, 0.7], [0.1]
    _forward(topology, state, x)
    errors = [_error(state, y)]
    for _ in range(500):
        _backward(topology, state, y, lr=0.1, momentum=0.0, mode="online")
        _forward(topology, state, x)
        errors.append(_error(state, y))
    assert errors[-1] < errors[0]
    assert all(later <= earlier + 1e-12 for earlier, later in zip(errors, errors[1:]))


def test_accumulate_then_flush_equals_summed_online_steps():
    topology = [2, 3, 1]
    base = initialize(topology, rng=5)
    examples = [([0.0, 1.0], [1.0]), ([1.0, 0.0], [1.0]), ([1.0, 1.0], [0.0])]
    lr = 0.3

    expected_w = [w.copy() for w in base.weights]
    expected_b = [b.copy() for b in base.bias]
    for x, y in examples:
        single = base.copy()
        _forward(topology, single, x)
        _backward(topology, single, y, lr=lr, momentum=0.0, mode="online")
        for idx in range(len(expected_w)):
            expected_w[idx] += single.weights[idx] - base.weights[idx]
            expected_b[idx] += single.bias[idx] - base.bias[idx]

    batch = base.copy()
    reset_deltas(batch)
    for x, y in examples:
        _forward(topology, batch, x)
        _backward(topology, batch, y, lr=lr, momentum=1.0, mode="")
    for idx in range(len(base.weights)):
        assert np.array_equal(batch.weights[idx], base.weights[idx])
    _backward(topology, batch, examples[-1][1], lr=lr, mode="batch")

    for idx in range(len(expected_w)):
        assert np.allclose(batch.weights[idx], expected_w[idx])
        assert np.allclose(batch.bias[idx], expected_b[idx])


def test_batch_mode_applies_stored_deltas_without_recomputing():
    topology = [2, 2, 1]
    state = initialize(topology, rng=2)
    for d in state.delta_weights + state.delta_bias:
        d.fill(0.25)
    weights_before = [w.copy() for w in state.weights]
    bias_before = [b.copy() for b in state.bias]
    _forward(topology, state, [1.0, 0.0])
    _backward(topology, state, [1.0], lr=10.0, momentum=0.0, mode=LearningMode.BATCH)
    for idx in range(2):
        assert np.allclose(state.weights[idx], weights_before[idx] + 0.25)
        assert np.allclose(state.bias[idx], bias_before[idx] + 0.25)
        assert np.all(state.delta_weights[idx] == 0.25)


@pytest.mark.parametrize("mode", ["Online", "BATCH", "mini-batch"])
def test_unrecognised_modes_only_accumulate(mode):
    with pytest.warns(UserWarning, match="Unrecognised learning mode"):
        assert LearningMode.parse(mode) is LearningMode.ACCUMULATE
    topology = [2, 2, 1]
    state = initialize(topology, rng=4)
    weights_before = [w.copy() for w in state.weights]
    _forward(topology, state, [1.0, 1.0])
    with pytest.warns(UserWarning):
        _backward(topology, state, [0.0], lr=0.5, momentum=1.0, mode=mode)
    assert all(np.array_equal(w, wb) for w, wb in zip(state.weights, weights_before))
    assert any(d.any() for d in state.delta_weights)


def test_short_target_raises_without_mutation():
    topology = [2, 2, 2]
    state = initialize(topology, rng=9)
    _forward(topology, state, [0.5, 0.5])
    snapshot = state.copy()
    with pytest.raises(ShapeMismatch):
        _backward(topology, state, [1.0], lr=0.5, momentum=0.0, mode="online")
    for before, after in zip(snapshot.astuple(), state.astuple()):
        assert all(np.array_equal(p, q) for p, q in zip(before, after))


def test_unknown_activation_in_backward_raises_before_mutation():
    topology = [2, 1]
    state = initialize(topology, rng=9)
    _forward(topology, state, [0.5, 0.5])
    weights_before = state.weights[0].copy()
    with pytest.raises(UnknownActivation):
        _backward(topology, state, [1.0], lr=0.5, mode="online", activations=["swish"])
    assert np.array_equal(state.weights[0], weights_before)


def test_empty_mode_accumulates_silently():
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert LearningMode.parse("") is LearningMode.ACCUMULATE
        assert LearningMode.parse(LearningMode.ACCUMULATE) is LearningMode.ACCUMULATE
