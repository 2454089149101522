"""Allocation and randomisation of the per-layer parameter buffers."""

from __future__ import annotations

import numbers
from typing import Sequence

import numpy as np

from .errors import InvalidTopology
from .types import Array, NetworkState, Topology

RAND_MAX = 2**31 - 1


def validate_topology(topology: Sequence[int]) -> Topology:
    """Return ``topology`` as a tuple of ints or raise :class:`InvalidTopology`."""

    try:
        widths = list(topology)
    except TypeError as exc:
        raise InvalidTopology(f"Topology must be a sequence of ints, got {topology!r}") from exc
    if len(widths) < 2:
        raise InvalidTopology(
            f"Topology needs at least an input and an output layer, got {widths!r}"
        )
    for idx, width in enumerate(widths):
        if isinstance(width, bool) or not isinstance(width, numbers.Integral):
            raise InvalidTopology(f"Layer {idx} width must be an int, got {width!r}")
        if width <= 0:
            raise InvalidTopology(f"Layer {idx} width must be positive, got {width}")
    return tuple(int(w) for w in widths)


def _as_generator(rng: np.random.Generator | int | None) -> np.random.Generator:
    if isinstance(rng, np.random.Generator):
        return rng
    return np.random.default_rng(rng)


def _draw(
    rng: np.random.Generator,
    shape: tuple[int, ...],
    amplitude: float,
    finesse: int,
    dtype: np.dtype,
) -> Array:
    raw = rng.integers(0, RAND_MAX, size=shape, endpoint=True)
    return (amplitude * (raw % finesse) / finesse).astype(dtype)


def initialize(
    topology: Sequence[int],
    amplitude: float = 1.0,
    finesse: int = 1000,
    rng: np.random.Generator | int | None = None,
    *,
    dtype: np.dtype | type = np.float64,
) -> NetworkState:
    """Allocate and randomise every buffer of a network with ``topology``.

    Biases and weights are drawn uniformly from ``[0, amplitude)`` with a
    resolution of ``1 / finesse``: each value is
    ``amplitude * (draw % finesse) / finesse`` for an integer ``draw`` in
    ``[0, RAND_MAX]``. Per layer the bias vector is drawn first, then the
    incoming weight matrix row by row. Pre-activations, activations and
    both delta accumulators start at zero.

    ``rng`` may be a :class:`numpy.random.Generator` or a seed; identical
    seeds give identical parameters.
    """

    widths = validate_topology(topology)
    if isinstance(finesse, bool) or not isinstance(finesse, numbers.Integral) or finesse < 1:
        raise InvalidTopology(f"finesse must be a positive int, got {finesse!r}")
    generator = _as_generator(rng)
    dtype = np.dtype(dtype)

    z: list[Array] = []
    a: list[Array] = [np.zeros(widths[0], dtype=dtype)]
    bias: list[Array] = []
    delta_bias: list[Array] = []
    weights: list[Array] = []
    delta_weights: list[Array] = []
    for in_dim, out_dim in zip(widths[:-1], widths[1:]):
        a.append(np.zeros(out_dim, dtype=dtype))
        z.append(np.zeros(out_dim, dtype=dtype))
        bias.append(_draw(generator, (out_dim,), amplitude, int(finesse), dtype))
        delta_bias.append(np.zeros(out_dim, dtype=dtype))
        weights.append(_draw(generator, (in_dim, out_dim), amplitude, int(finesse), dtype))
        delta_weights.append(np.zeros((in_dim, out_dim), dtype=dtype))
    return NetworkState(
        z=z,
        a=a,
        bias=bias,
        delta_bias=delta_bias,
        weights=weights,
        delta_weights=delta_weights,
    )


def reset_deltas(state: NetworkState) -> None:
    """Zero both delta accumulators in place."""

    for buf in state.delta_bias:
        buf.fill(0.0)
    for buf in state.delta_weights:
        buf.fill(0.0)


__all__ = ["RAND_MAX", "initialize", "reset_deltas", "validate_topology"]
