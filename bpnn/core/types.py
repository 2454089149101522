"""Core typing contracts for BPNN."""

from __future__ import annotations

from dataclasses import dataclass
from typing import List, Sequence, Tuple

import numpy as np

Array = np.ndarray
Topology = Tuple[int, ...]


@dataclass(frozen=True)
class Sample:
    """A single ``(input, target)`` training pair."""

    inputs: Array
    targets: Array


@dataclass(frozen=True)
class Batch:
    """A mini-batch of samples stacked row-wise."""

    inputs: Array
    targets: Array

    def samples(self) -> List[Sample]:
        return [Sample(x, y) for x, y in zip(self.inputs, self.targets)]


@dataclass
class NetworkState:
    """Caller-owned buffers shared by the forward and backward passes.

    Attributes
    ----------
    z:
        Pre-activation vector of every non-input layer.
    a:
        Post-activation vector of every layer; ``a[0]`` holds the raw input.
    bias, delta_bias:
        Bias vector of every non-input layer and its pending update.
    weights, delta_weights:
        Row-major ``(width[m], width[m + 1])`` matrix for every adjacent
        layer pair and its pending update.
    """

    z: List[Array]
    a: List[Array]
    bias: List[Array]
    delta_bias: List[Array]
    weights: List[Array]
    delta_weights: List[Array]

    def astuple(self) -> Tuple[List[Array], ...]:
        return (self.z, self.a, self.bias, self.delta_bias, self.weights, self.delta_weights)

    def copy(self) -> "NetworkState":
        return NetworkState(*([arr.copy() for arr in group] for group in self.astuple()))


@dataclass(frozen=True)
class ModelDescription:
    """Description of the feed-forward network architecture."""

    topology: Sequence[int]
    activations: Sequence[str]


@dataclass(frozen=True)
class RunResult:
    """Summary returned by :meth:`bpnn.training.trainer.Trainer.run`."""

    epochs: int
    steps: int
    final_loss: float
    metrics_path: str = ""
    manifest_path: str = ""
    summary_path: str = ""
