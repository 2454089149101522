"""Training loops, losses, metrics and pipelines."""

from .trainer import MomentumSGD, Trainer, evaluate

__all__ = ["MomentumSGD", "Trainer", "evaluate"]
