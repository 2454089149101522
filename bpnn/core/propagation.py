"""Forward and backward passes over a caller-owned :class:`NetworkState`."""

from __future__ import annotations

import warnings
from enum import Enum
from typing import List, Sequence, Union

import numpy as np

from .activations import ActivationLike, ActivationPair, resolve
from .errors import ShapeMismatch
from .initializer import validate_topology
from .types import Array, Topology


class LearningMode(str, Enum):
    """How :func:`back_propagate` treats the computed parameter steps.

    ``ONLINE`` stores the step and applies it at once, ``BATCH`` applies
    the steps already stored without computing a new one, and
    ``ACCUMULATE`` stores the step without touching the parameters.
    """

    ONLINE = "online"
    BATCH = "batch"
    ACCUMULATE = ""

    @classmethod
    def parse(cls, value: Union[str, "LearningMode", None]) -> "LearningMode":
        """Map ``value`` to a mode.

        Matching is case sensitive and every string other than ``"online"``
        or ``"batch"`` selects ``ACCUMULATE``. Mini-batch training relies on
        this: pass ``""`` for every example but the last, then ``"batch"``.
        Non-empty strings that fall through emit a ``UserWarning``.
        """

        if isinstance(value, cls):
            return value
        if value == cls.ONLINE.value:
            return cls.ONLINE
        if value == cls.BATCH.value:
            return cls.BATCH
        if value:
            warnings.warn(
                f"Unrecognised learning mode {value!r}; accumulating without applying",
                UserWarning,
                stacklevel=3,
            )
        return cls.ACCUMULATE


def _as_vector(values, width: int, what: str) -> Array:
    vec = np.asarray(values, dtype=np.float64).reshape(-1)
    if vec.shape[0] != width:
        raise ShapeMismatch(f"{what} has {vec.shape[0]} values but the layer has {width} neurons")
    return vec


def _check_layers(name: str, buffers: Sequence[Array], shapes: List[tuple]) -> None:
    if len(buffers) != len(shapes):
        raise ShapeMismatch(f"{name} holds {len(buffers)} layers, topology needs {len(shapes)}")
    for idx, (buf, shape) in enumerate(zip(buffers, shapes)):
        if not isinstance(buf, np.ndarray):
            raise ShapeMismatch(f"{name}[{idx}] must be a numpy array, got {type(buf).__name__}")
        if buf.shape != shape:
            raise ShapeMismatch(f"{name}[{idx}] has shape {buf.shape}, expected {shape}")


def _check_state(widths: Topology, **buffers: Sequence[Array]) -> None:
    vector_shapes = [(w,) for w in widths[1:]]
    matrix_shapes = [(i, o) for i, o in zip(widths[:-1], widths[1:])]
    expected = {
        "a": [(w,) for w in widths],
        "z": vector_shapes,
        "bias": vector_shapes,
        "delta_bias": vector_shapes,
        "weights": matrix_shapes,
        "delta_weights": matrix_shapes,
    }
    for name, buf in buffers.items():
        _check_layers(name, buf, expected[name])


def forward_propagate(
    topology: Sequence[int],
    inputs,
    z: List[Array],
    a: List[Array],
    bias: List[Array],
    weights: List[Array],
    activations: ActivationLike | Sequence[ActivationLike] | None = None,
) -> None:
    """Fill ``z`` and ``a`` layer by layer for ``inputs``.

    ``z[L-1] = bias[L-1] + a[L-1] @ weights[L-1]`` and ``a[L] = f_L(z[L-1])``
    for every non-input layer ``L``; ``a[0]`` receives a copy of ``inputs``.
    Only ``z`` and ``a`` are written, in place.
    """

    widths = validate_topology(topology)
    pairs = resolve(activations, len(widths) - 1)
    x = _as_vector(inputs, widths[0], "input")
    _check_state(widths, z=z, a=a, bias=bias, weights=weights)

    a[0][...] = x
    for idx, pair in enumerate(pairs):
        z[idx][...] = bias[idx] + a[idx] @ weights[idx]
        a[idx + 1][...] = pair.fn(z[idx])


def error_signals(
    target: Array,
    z: Sequence[Array],
    a: Sequence[Array],
    weights: Sequence[Array],
    pairs: Sequence[ActivationPair],
) -> List[Array]:
    """Return the local gradient of every non-input layer, from the output backwards.

    Hidden signals use the weights as they were before any update.
    """

    last = len(weights) - 1
    signals: List[Array] = [np.empty(0)] * len(weights)
    signals[last] = (a[-1] - target) * pairs[last].deriv(z[last])
    for idx in reversed(range(last)):
        signals[idx] = (weights[idx + 1] @ signals[idx + 1]) * pairs[idx].deriv(z[idx])
    return signals


def apply_deltas(
    bias: List[Array],
    delta_bias: Sequence[Array],
    weights: List[Array],
    delta_weights: Sequence[Array],
) -> None:
    for idx in range(len(weights)):
        weights[idx] += delta_weights[idx]
        bias[idx] += delta_bias[idx]


def back_propagate(
    topology: Sequence[int],
    target,
    z: List[Array],
    a: List[Array],
    bias: List[Array],
    delta_bias: List[Array],
    weights: List[Array],
    delta_weights: List[Array],
    learning_rate: float,
    momentum_factor: float = 1.0,
    learning_mode: Union[str, LearningMode] = "",
    activations: ActivationLike | Sequence[ActivationLike] | None = None,
) -> None:
    """Back propagate the error of the last forward pass for ``target``.

    The step stored for every parameter is
    ``momentum_factor * previous_step - learning_rate * dE/dparam`` with
    ``E = 0.5 * sum((a_out - target) ** 2)``. What happens next depends on
    ``learning_mode`` (see :class:`LearningMode`): ``"online"`` stores and
    applies the step, ``"batch"`` only applies the steps already stored,
    anything else only stores it. With the default ``momentum_factor`` of
    1.0 repeated accumulation sums the steps of a mini-batch.

    All arguments are validated before any buffer is written.
    """

    widths = validate_topology(topology)
    pairs = resolve(activations, len(widths) - 1)
    y = _as_vector(target, widths[-1], "target")
    _check_state(
        widths,
        z=z,
        a=a,
        bias=bias,
        delta_bias=delta_bias,
        weights=weights,
        delta_weights=delta_weights,
    )
    mode = LearningMode.parse(learning_mode)

    if mode is LearningMode.BATCH:
        apply_deltas(bias, delta_bias, weights, delta_weights)
        return

    lr = float(learning_rate)
    momentum = float(momentum_factor)
    signals = error_signals(y, z, a, weights, pairs)
    for idx, signal in enumerate(signals):
        delta_weights[idx][...] = momentum * delta_weights[idx] - lr * np.outer(a[idx], signal)
        delta_bias[idx][...] = momentum * delta_bias[idx] - lr * signal

    if mode is LearningMode.ONLINE:
        apply_deltas(bias, delta_bias, weights, delta_weights)


__all__ = [
    "LearningMode",
    "apply_deltas",
    "back_propagate",
    "error_signals",
    "forward_propagate",
]
