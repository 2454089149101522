"""Dataset registry and metadata contracts."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Iterable, Iterator, MutableMapping

import numpy as np

from ..core.types import Array, Batch, Sample

TASK_TYPES = frozenset({"regression", "binary", "multiclass"})


@dataclass(frozen=True)
class DatasetSpec:
    """An in-memory table of ``(input, target)`` rows.

    Attributes
    ----------
    name:
        Registry identifier.
    inputs, targets:
        2-D arrays with one sample per row.
    task_type:
        One of ``{"regression", "binary", "multiclass"}``; selects the
        default metrics reported during training.
    provenance:
        Options the dataset was built with, written to the run manifest.
    """

    name: str
    inputs: Array
    targets: Array
    task_type: str
    provenance: Dict[str, Any] = field(default_factory=dict)

    @property
    def d_in(self) -> int:
        return int(self.inputs.shape[1])

    @property
    def d_out(self) -> int:
        return int(self.targets.shape[1])

    def __len__(self) -> int:
        return int(self.inputs.shape[0])

    def order(self, *, shuffle: bool = False, seed: int | None = None) -> Array:
        indices = np.arange(len(self))
        if shuffle:
            np.random.default_rng(seed).shuffle(indices)
        return indices

    def iter_samples(self, *, shuffle: bool = False, seed: int | None = None) -> Iterator[Sample]:
        for idx in self.order(shuffle=shuffle, seed=seed):
            yield Sample(inputs=self.inputs[idx], targets=self.targets[idx])

    def iter_batches(
        self,
        batch_size: int | None,
        *,
        shuffle: bool = False,
        seed: int | None = None,
    ) -> Iterator[Batch]:
        """Yield consecutive batches; ``None`` yields the whole table once."""

        indices = self.order(shuffle=shuffle, seed=seed)
        if batch_size is not None and int(batch_size) < 1:
            raise ValueError(f"batch_size must be positive, got {batch_size}")
        size = len(self) if batch_size is None else int(batch_size)
        for start in range(0, len(indices), size):
            chunk = indices[start : start + size]
            yield Batch(inputs=self.inputs[chunk], targets=self.targets[chunk])


DatasetFactory = Callable[..., DatasetSpec]


_REGISTRY: MutableMapping[str, DatasetFactory] = {}


def register_dataset(
    name: str | None = None,
    factory: DatasetFactory | None = None,
) -> Callable[[DatasetFactory], DatasetFactory] | DatasetFactory:
    """Register a dataset factory.

    ``register_dataset`` can be used both as a decorator::

        @register_dataset("xor")
        def make_xor(**kwargs):
            ...

    or directly::

        register_dataset("xor", make_xor)
    """

    def _decorator(func: DatasetFactory) -> DatasetFactory:
        _REGISTRY[str(name or func.__name__)] = func
        return func

    if factory is not None:
        return _decorator(factory)
    if name is None:
        raise TypeError("register_dataset requires a name when used without a decorator")
    return _decorator


def get_dataset(dataset: str, /, **options: Any) -> DatasetSpec:
    """Build the :class:`DatasetSpec` registered as ``dataset``."""

    if dataset not in _REGISTRY:
        available = ", ".join(available_datasets())
        raise KeyError(f"Unknown dataset: {dataset!r}. Available datasets: {available}")
    spec = _REGISTRY[dataset](**options)
    _validate_spec(spec)
    return spec


def available_datasets() -> Iterable[str]:
    """Return the sorted list of available dataset identifiers."""

    return sorted(_REGISTRY)


def _validate_spec(spec: DatasetSpec) -> None:
    if spec.task_type not in TASK_TYPES:
        raise ValueError(f"Invalid task type: {spec.task_type}")
    if spec.inputs.ndim != 2 or spec.targets.ndim != 2:
        raise ValueError(f"Dataset {spec.name!r} must hold 2-D inputs and targets")
    if spec.inputs.shape[0] != spec.targets.shape[0]:
        raise ValueError(
            f"Dataset {spec.name!r} has {spec.inputs.shape[0]} inputs "
            f"but {spec.targets.shape[0]} targets"
        )
    if len(spec) == 0:
        raise ValueError(f"Dataset {spec.name!r} is empty")


__all__ = [
    "DatasetSpec",
    "TASK_TYPES",
    "available_datasets",
    "get_dataset",
    "register_dataset",
]
