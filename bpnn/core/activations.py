"""Activation functions paired with their exact derivatives."""

from __future__ import annotations

from dataclasses import dataclass
from enum import Enum
from typing import Callable, Dict, Iterable, List, Sequence, Union

import numpy as np

from .errors import ShapeMismatch, UnknownActivation
from .types import Array

DEFAULT_ACTIVATION = "sigmoid"


class Activation(str, Enum):
    SIGMOID = "sigmoid"
    IDENTITY = "identity"
    TANH = "tanh"
    RELU = "relu"


ActivationLike = Union[str, Activation]


@dataclass(frozen=True)
class ActivationPair:
    """Nonlinearity and its derivative, both evaluated on pre-activations."""

    name: str
    fn: Callable[[Array], Array]
    deriv: Callable[[Array], Array]

    def __call__(self, z: Array) -> Array:
        return self.fn(z)


def sigmoid(z: Array) -> Array:
    # np.exp overflows for large negative z; the result saturates to 0 anyway
    with np.errstate(over="ignore"):
        return 1.0 / (1.0 + np.exp(-z))


def sigmoid_deriv(z: Array) -> Array:
    s = sigmoid(z)
    return s * (1.0 - s)


def identity(z: Array) -> Array:
    return np.array(z, dtype=float, copy=True)


def identity_deriv(z: Array) -> Array:
    return np.ones_like(z, dtype=float)


def tanh(z: Array) -> Array:
    return np.tanh(z)


def tanh_deriv(z: Array) -> Array:
    return 1.0 - np.tanh(z) ** 2


def relu(z: Array) -> Array:
    """Return the ReLU activation."""

    return np.maximum(z, 0.0)


def relu_deriv(z: Array) -> Array:
    return (z > 0).astype(float)


_TABLE: Dict[Activation, ActivationPair] = {
    Activation.SIGMOID: ActivationPair("sigmoid", sigmoid, sigmoid_deriv),
    Activation.IDENTITY: ActivationPair("identity", identity, identity_deriv),
    Activation.TANH: ActivationPair("tanh", tanh, tanh_deriv),
    Activation.RELU: ActivationPair("relu", relu, relu_deriv),
}

_ALIASES: Dict[str, Activation] = {"linear": Activation.IDENTITY}


def names() -> List[str]:
    return sorted([member.value for member in Activation] + list(_ALIASES))


def parse(name: ActivationLike) -> Activation:
    """Map ``name`` to an :class:`Activation` member."""

    if isinstance(name, Activation):
        return name
    if name in _ALIASES:
        return _ALIASES[name]
    try:
        return Activation(name)
    except ValueError as exc:
        available = ", ".join(names())
        raise UnknownActivation(
            f"Unknown activation {name!r}. Available activations: {available}"
        ) from exc


def get(name: ActivationLike) -> ActivationPair:
    return _TABLE[parse(name)]


def resolve(
    activations: ActivationLike | Sequence[ActivationLike] | None,
    n_layers: int,
) -> List[ActivationPair]:
    """Return one :class:`ActivationPair` per non-input layer.

    ``None`` selects the sigmoid for every layer and a single name is
    broadcast; a sequence must name exactly ``n_layers`` functions.
    """

    if activations is None:
        activations = DEFAULT_ACTIVATION
    if isinstance(activations, (str, Activation)):
        return [get(activations)] * n_layers
    chosen: Iterable[ActivationLike] = list(activations)
    pairs = [get(name) for name in chosen]
    if len(pairs) != n_layers:
        raise ShapeMismatch(
            f"Expected {n_layers} activation names (one per non-input layer), got {len(pairs)}"
        )
    return pairs


__all__ = [
    "Activation",
    "ActivationPair",
    "DEFAULT_ACTIVATION",
    "get",
    "identity",
    "names",
    "parse",
    "relu",
    "resolve",
    "sigmoid",
    "tanh",
]
