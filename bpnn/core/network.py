"""Stateful convenience wrapper around the functional core."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import List, Sequence, Union

import numpy as np

from . import activations as act
from .initializer import initialize, reset_deltas, validate_topology
from .propagation import LearningMode, back_propagate, forward_propagate
from .types import Array, ModelDescription, NetworkState, Topology


@dataclass
class Network:
    """A topology, its per-layer activations and the state they share."""

    topology: Topology
    activations: List[act.Activation]
    state: NetworkState = field(repr=False)

    @classmethod
    def create(
        cls,
        topology: Sequence[int],
        activations: act.ActivationLike | Sequence[act.ActivationLike] | None = None,
        *,
        amplitude: float = 1.0,
        finesse: int = 1000,
        seed: int | np.random.Generator | None = None,
    ) -> "Network":
        widths = validate_topology(topology)
        # parse names before drawing so a bad name leaves the rng untouched
        pairs = act.resolve(activations, len(widths) - 1)
        state = initialize(widths, amplitude=amplitude, finesse=finesse, rng=seed)
        return cls(
            topology=widths,
            activations=[act.parse(pair.name) for pair in pairs],
            state=state,
        )

    @property
    def output(self) -> Array:
        return self.state.a[-1]

    def forward(self, inputs) -> Array:
        s = self.state
        forward_propagate(self.topology, inputs, s.z, s.a, s.bias, s.weights, self.activations)
        return s.a[-1].copy()

    def backward(
        self,
        target,
        learning_rate: float,
        momentum_factor: float = 1.0,
        learning_mode: Union[str, LearningMode] = "",
    ) -> None:
        s = self.state
        back_propagate(
            self.topology,
            target,
            s.z,
            s.a,
            s.bias,
            s.delta_bias,
            s.weights,
            s.delta_weights,
            learning_rate,
            momentum_factor=momentum_factor,
            learning_mode=learning_mode,
            activations=self.activations,
        )

    def predict(self, inputs) -> Array:
        """Run ``forward`` on every row of a 2-D batch."""

        rows = np.atleast_2d(np.asarray(inputs, dtype=np.float64))
        return np.stack([self.forward(row) for row in rows])

    def reset_deltas(self) -> None:
        reset_deltas(self.state)

    def describe(self) -> ModelDescription:
        return ModelDescription(
            topology=list(self.topology),
            activations=[a.value for a in self.activations],
        )

    def parameter_count(self) -> int:
        return int(sum(w.size for w in self.state.weights) + sum(b.size for b in self.state.bias))


__all__ = ["Network"]
