"""Small built-in datasets suited to sigmoid outputs."""

from __future__ import annotations

import numpy as np

from .registry import DatasetSpec, register_dataset

_CORNERS = np.array([[0, 0], [0, 1], [1, 0], [1, 1]], dtype=np.float64)

_GATES = {
    "xor": [0, 1, 1, 0],
    "and": [0, 0, 0, 1],
    "or": [0, 1, 1, 1],
}


def _truth_table(gate: str, **_: object) -> DatasetSpec:
    targets = np.asarray(_GATES[gate], dtype=np.float64).reshape(-1, 1)
    return DatasetSpec(
        name=gate,
        inputs=_CORNERS.copy(),
        targets=targets,
        task_type="binary",
        provenance={"type": "truth_table", "gate": gate},
    )


def make_xor(**options: object) -> DatasetSpec:
    return _truth_table("xor", **options)


def make_and(**options: object) -> DatasetSpec:
    return _truth_table("and", **options)


def make_or(**options: object) -> DatasetSpec:
    return _truth_table("or", **options)


@register_dataset("sine")
def make_sine(
    *,
    n_points: int = 32,
    freq: float = 1.0,
    noise: float = 0.0,
    seed: int = 0,
    **_: object,
) -> DatasetSpec:
    """``sin(freq * pi * x)`` on ``[-1, 1]``, rescaled into ``[0.1, 0.9]``."""

    rng = np.random.default_rng(seed)
    x = np.linspace(-1.0, 1.0, int(n_points)).reshape(-1, 1)
    y = np.sin(freq * np.pi * x)
    if noise > 0:
        y = y + noise * rng.standard_normal(size=y.shape)
    y = 0.5 + 0.4 * np.clip(y, -1.0, 1.0)
    return DatasetSpec(
        name="sine",
        inputs=x,
        targets=y,
        task_type="regression",
        provenance={
            "type": "sine",
            "n_points": int(n_points),
            "freq": float(freq),
            "noise": float(noise),
            "seed": int(seed),
        },
    )


register_dataset("xor", make_xor)
register_dataset("and", make_and)
register_dataset("or", make_or)

__all__ = ["make_and", "make_or", "make_sine", "make_xor"]
