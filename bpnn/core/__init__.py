"""Core numerical primitives for BPNN."""

from . import activations, errors, types
from .activations import Activation
from .errors import InvalidTopology, NetworkError, ShapeMismatch, UnknownActivation
from .initializer import initialize, reset_deltas
from .network import Network
from .propagation import LearningMode, back_propagate, forward_propagate
from .types import NetworkState

__all__ = [
    "Activation",
    "InvalidTopology",
    "LearningMode",
    "Network",
    "NetworkError",
    "NetworkState",
    "ShapeMismatch",
    "UnknownActivation",
    "activations",
    "back_propagate",
    "errors",
    "forward_propagate",
    "initialize",
    "reset_deltas",
    "types",
]
