"""Error taxonomy for the BPNN numerical core."""

from __future__ import annotations


class NetworkError(ValueError):
    """Base class for precondition violations raised by the core."""


class InvalidTopology(NetworkError):
    """Raised when a topology cannot describe a feed-forward network."""


class ShapeMismatch(NetworkError):
    """Raised when a vector or state container disagrees with the topology."""


class UnknownActivation(NetworkError, KeyError):
    """Raised when an activation name is not registered."""

    def __str__(self) -> str:  # KeyError would otherwise repr() the message
        return str(self.args[0]) if self.args else ""


__all__ = ["NetworkError", "InvalidTopology", "ShapeMismatch", "UnknownActivation"]
