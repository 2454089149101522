"""Loss registry used to report training progress."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Callable, Dict, Iterable

import numpy as np

from ..core.types import Array

LossFn = Callable[[Array, Array], float]


@dataclass(frozen=True)
class Loss:
    """Named loss averaged over the rows of a prediction batch."""

    name: str
    fn: LossFn

    def __call__(self, predictions: Array, targets: Array) -> float:
        preds = np.atleast_2d(np.asarray(predictions, dtype=np.float64))
        targs = np.atleast_2d(np.asarray(targets, dtype=np.float64))
        return self.fn(preds, targs)


class LossRegistry:
    """Central registry for loss functions."""

    def __init__(self) -> None:
        self._registry: Dict[str, Loss] = {}

    def register(self, name: str, fn: LossFn) -> None:
        self._registry[name] = Loss(name, fn)

    def names(self) -> Iterable[str]:
        return sorted(self._registry)

    def resolve(self, name: str) -> Loss:
        if name not in self._registry:
            available = ", ".join(sorted(self._registry))
            raise KeyError(f"Unknown loss {name!r}. Available losses: {available}")
        return self._registry[name]


REGISTRY = LossRegistry()


def _sse(pred: Array, target: Array) -> float:
    # the objective minimised by back_propagate, per sample
    return float(np.mean(0.5 * np.sum(np.square(pred - target), axis=1)))


def _mse(pred: Array, target: Array) -> float:
    return float(np.mean(np.square(pred - target)))


def _mae(pred: Array, target: Array) -> float:
    return float(np.mean(np.abs(pred - target)))


REGISTRY.register("sse", _sse)
REGISTRY.register("mse", _mse)
REGISTRY.register("mae", _mae)

__all__ = ["Loss", "LossRegistry", "REGISTRY"]
