"""Metric helpers for the trainer."""

from __future__ import annotations

from typing import Dict, List, Sequence

import numpy as np

from ..core.types import Array


def default_metrics(task_type: str) -> List[str]:
    if task_type == "regression":
        return ["mae", "rmse", "max_abs_error"]
    if task_type == "binary":
        return ["accuracy", "max_abs_error"]
    if task_type == "multiclass":
        return ["accuracy"]
    raise ValueError(f"Unknown task type: {task_type}")


def compute_metric(name: str, predictions: Array, targets: Array) -> float:
    key = name.lower()
    diff = predictions - targets
    if key == "mae":
        return float(np.mean(np.abs(diff)))
    if key == "rmse":
        return float(np.sqrt(np.mean(diff**2)))
    if key == "max_abs_error":
        return float(np.max(np.abs(diff)))
    if key == "accuracy":
        if predictions.shape[1] > 1:
            hits = np.argmax(predictions, axis=1) == np.argmax(targets, axis=1)
        else:
            hits = (predictions >= 0.5) == (targets >= 0.5)
        return float(np.mean(hits))
    raise ValueError(f"Unknown metric: {name}")


def compute_metrics(
    names: Sequence[str],
    predictions: Array,
    targets: Array,
) -> Dict[str, float]:
    preds = np.atleast_2d(predictions)
    targs = np.atleast_2d(targets)
    return {name: compute_metric(name, preds, targs) for name in names}


__all__ = ["compute_metric", "compute_metrics", "default_metrics"]
