"""BPNN public API."""

from .core import activations  # noqa: F401
from .core import types  # noqa: F401
from .core.activations import Activation
from .core.errors import InvalidTopology, NetworkError, ShapeMismatch, UnknownActivation
from .core.initializer import initialize, reset_deltas
from .core.network import Network
from .core.propagation import LearningMode, back_propagate, forward_propagate
from .core.types import NetworkState
from .training.pipelines import load_preset, presets, run_pipeline
from .training.trainer import MomentumSGD, Trainer

__all__ = [
    "Activation",
    "InvalidTopology",
    "LearningMode",
    "MomentumSGD",
    "Network",
    "NetworkError",
    "NetworkState",
    "ShapeMismatch",
    "Trainer",
    "UnknownActivation",
    "activations",
    "back_propagate",
    "forward_propagate",
    "initialize",
    "load_preset",
    "presets",
    "reset_deltas",
    "run_pipeline",
    "types",
]
