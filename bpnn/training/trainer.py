"""Deterministic training loops over a :class:`~bpnn.core.network.Network`."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Dict, Mapping, Sequence


from ..core.network import Network
from ..core.propagation import LearningMode
from ..core.types import Array, Batch, RunResult
from ..data.registry import DatasetSpec
from .losses import REGISTRY as LOSS_REGISTRY
from .metrics import compute_metrics, default_metrics


@dataclass
class MomentumSGD:
    """Gradient descent with momentum, driven through ``back_propagate``.

    ``learning_mode`` is ``"online"`` (update after every example) or
    ``"batch"`` (accumulate over a mini-batch, then flush once).
    ``momentum_factor`` blends successive online steps; mini-batch
    accumulation always sums the per-example steps.
    """

    learning_rate: float
    momentum_factor: float = 0.0
    learning_mode: str = "online"

    def __post_init__(self) -> None:
        if self.learning_mode not in {LearningMode.ONLINE.value, LearningMode.BATCH.value}:
            raise ValueError(
                f"learning_mode must be one of {{'online', 'batch'}}, got {self.learning_mode!r}"
            )

    @property
    def online(self) -> bool:
        return self.learning_mode == LearningMode.ONLINE.value

    def step(self, network: Network, target: Array) -> None:
        network.backward(target, self.learning_rate, self.momentum_factor, LearningMode.ONLINE)

    def accumulate(self, network: Network, target: Array) -> None:
        # factor 1.0 keeps a running sum in the delta buffers
        network.backward(target, self.learning_rate, 1.0, LearningMode.ACCUMULATE)

    def flush(self, network: Network, target: Array) -> None:
        network.backward(target, self.learning_rate, self.momentum_factor, LearningMode.BATCH)


def evaluate(
    network: Network,
    dataset: DatasetSpec,
    *,
    loss: str = "sse",
    metric_names: Sequence[str] = (),
) -> Dict[str, float]:
    """Return the loss and ``metric_names`` of ``network`` on ``dataset``."""

    predictions = network.predict(dataset.inputs)
    metrics = {"loss": LOSS_REGISTRY.resolve(loss)(predictions, dataset.targets)}
    metrics.update(compute_metrics(metric_names, predictions, dataset.targets))
    return metrics


class Trainer:
    """Run deterministic epoch loops and report metrics to callbacks."""

    def __init__(
        self,
        network: Network,
        optimizer: MomentumSGD,
        callbacks: Sequence[object] | None = None,
    ) -> None:
        self.network = network
        self.optimizer = optimizer
        self.callbacks = list(callbacks or [])
        self.history: list[Mapping[str, float]] = []

    def run(
        self,
        dataset: DatasetSpec,
        epochs: int,
        *,
        seed: int = 0,
        batch_size: int | None = None,
        shuffle: bool = False,
        loss: str = "sse",
        metric_names: Sequence[str] | str = "default",
        target_loss: float | None = None,
        split_loggers: Mapping[str, Sequence[object]] | None = None,
    ) -> RunResult:
        if epochs < 1:
            raise ValueError(f"epochs must be positive, got {epochs}")
        if batch_size is not None and batch_size < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        if (dataset.d_in, dataset.d_out) != (
            self.network.topology[0],
            self.network.topology[-1],
        ):
            raise ValueError(
                f"Dataset {dataset.name!r} is {dataset.d_in}->{dataset.d_out} but the "
                f"network topology is {list(self.network.topology)}"
            )
        if isinstance(metric_names, str):
            if metric_names == "default" or metric_names.strip() == "":
                metric_names = default_metrics(dataset.task_type)
            else:
                metric_names = [m.strip() for m in metric_names.split(",") if m.strip()]
        loss_fn = LOSS_REGISTRY.resolve(loss)
        split_loggers = split_loggers or {}

        steps = 0
        completed = 0
        metrics: Mapping[str, float] = {}
        for epoch in range(1, epochs + 1):
            batches = dataset.iter_batches(
                None if self.optimizer.online else batch_size,
                shuffle=shuffle,
                seed=seed + epoch,
            )
            for batch in batches:
                steps += self._run_batch(batch)
            completed = epoch

            metrics = evaluate(
                self.network, dataset, loss=loss_fn.name, metric_names=metric_names
            )
            self.history.append(metrics)
            self._emit_epoch("train", epoch, metrics, split_loggers)
            if target_loss is not None and metrics["loss"] <= target_loss:
                break

        return RunResult(
            epochs=completed,
            steps=steps,
            final_loss=float(metrics.get("loss", float("nan"))),
        )

    # ------------------------------------------------------------------
    # Internal helpers

    def _run_batch(self, batch: Batch) -> int:
        """Train on ``batch`` and return the number of backward calls."""

        network = self.network
        if self.optimizer.online:
            for inputs, targets in zip(batch.inputs, batch.targets):
                network.forward(inputs)
                self.optimizer.step(network, targets)
            return int(batch.inputs.shape[0])

        network.reset_deltas()
        for inputs, targets in zip(batch.inputs, batch.targets):
            network.forward(inputs)
            self.optimizer.accumulate(network, targets)
        self.optimizer.flush(network, batch.targets[-1])
        return int(batch.inputs.shape[0]) + 1

    def _emit_epoch(
        self,
        split: str,
        epoch: int,
        metrics: Mapping[str, float],
        loggers: Mapping[str, Sequence[object]],
    ) -> None:
        for callback in self.callbacks:
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
        for callback in loggers.get(split, []):
            if hasattr(callback, "on_epoch"):
                callback.on_epoch(epoch, metrics)  # type: ignore[attr-defined]
            elif callable(callback):
                callback(epoch, metrics)


__all__ = ["MomentumSGD", "Trainer", "evaluate"]
