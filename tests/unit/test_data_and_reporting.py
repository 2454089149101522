import csv
import json
from pathlib import Path

import numpy as np
import pytest

from bpnn.data import available_datasets, get_dataset, register_dataset
from bpnn.data import registry
from bpnn.data.registry import DatasetSpec
from bpnn.reporting.metrics import CsvSink, JsonlSink
from bpnn.reporting.plots import PlotAdapter
from bpnn.reporting.summary import compute_auc, write_summary


def test_truth_tables():
    xor = get_dataset("xor")
    assert xor.inputs.shape == (4, 2)
    assert xor.targets.ravel().tolist() == [0.0, 1.0, 1.0, 0.0]
    assert get_dataset("and").targets.ravel().tolist() == [0.0, 0.0, 0.0, 1.0]
    assert xor.task_type == "binary"
    assert {"xor", "and", "or", "sine"} <= set(available_datasets())


def test_sine_is_seeded_and_bounded():
    a = get_dataset("sine", n_points=16, noise=0.1, seed=4)
    b = get_dataset("sine", n_points=16, noise=0.1, seed=4)
    assert np.array_equal(a.targets, b.targets)
    assert a.targets.min() >= 0.1 and a.targets.max() <= 0.9
    assert len(a) == 16


def test_iter_batches_and_shuffle():
    spec = get_dataset("xor")
    sizes = [batch.inputs.shape[0] for batch in spec.iter_batches(3)]
    assert sizes == [3, 1]
    assert [b.inputs.shape[0] for b in spec.iter_batches(None)] == [4]
    first = spec.order(shuffle=True, seed=1)
    assert sorted(first.tolist()) == [0, 1, 2, 3]
    assert np.array_equal(first, spec.order(shuffle=True, seed=1))


def test_unknown_and_invalid_datasets(monkeypatch):
    monkeypatch.setattr(registry, "_REGISTRY", dict(registry._REGISTRY))
    with pytest.raises(KeyError):
        get_dataset("mnist")

    @register_dataset("broken")
    def _broken(**_):
        return DatasetSpec("broken", np.zeros((2, 1)), np.zeros((3, 1)), "regression")

    with pytest.raises(ValueError):
        get_dataset("broken")


def test_sinks_and_summary(tmp_path):
    jsonl = JsonlSink(tmp_path / "m.jsonl", split="train", seed=3, sha="abc")
    table = CsvSink(tmp_path / "m.csv")
    for epoch, loss in enumerate([0.5, 0.25, 0.125], start=1):
        jsonl.on_epoch(epoch, {"loss": loss})
        table.on_epoch(epoch, {"loss": loss})

    records = [json.loads(line) for line in (tmp_path / "m.jsonl").read_text().splitlines()]
    assert records[0] == {"epoch": 1, "split": "train", "seed": 3, "sha": "abc", "loss": 0.5}
    with (tmp_path / "m.csv").open() as handle:
        rows = list(csv.DictReader(handle))
    assert [float(r["loss"]) for r in rows] == [0.5, 0.25, 0.125]

    path = write_summary(tmp_path / "m.jsonl", tmp_path / "s.json", tail=2)
    summary = json.loads(Path(path).read_text())
    loss = summary["metrics"]["loss"]
    assert loss["first"] == 0.5 and loss["last"] == 0.125 and loss["min"] == 0.125
    assert loss["tail_auc"] == pytest.approx(compute_auc([0.25, 0.125]))
    assert "sha" not in summary["metrics"] and "seed" not in summary["metrics"]


def test_compute_auc():
    assert compute_auc([]) == 0.0
    assert compute_auc([1.0, 1.0, 1.0]) == pytest.approx(2.0)


def test_plot_adapter_headless(tmp_path):
    adapter = PlotAdapter(tmp_path, enable_plots=True)
    adapter.on_epoch(1, {"loss": 1.0})
    adapter.on_epoch(2, {"loss": 0.5})
    assert adapter.close() == tmp_path / "loss.png"
    assert (tmp_path / "loss.png").exists()
    assert adapter.losses == [1.0, 0.5]
    off = PlotAdapter(tmp_path / "off")
    off.on_epoch(1, {"loss": 1.0})
    assert off.close() is None
    assert not (tmp_path / "off").exists()


def test_plot_adapter_draws_target_and_zero_loss(tmp_path):
    adapter = PlotAdapter(tmp_path / "run", enable_plots=True, target_loss=0.1)
    adapter.on_epoch(1, {"accuracy": 1.0})
    adapter.on_epoch(2, {"loss": 0.0})
    assert adapter.epochs == [2]
    assert adapter.close() == tmp_path / "run" / "loss.png"
    assert (tmp_path / "run" / "loss.png").exists()


def test_iter_batches_rejects_non_positive_size():
    spec = get_dataset("xor")
    with pytest.raises(ValueError, match="batch_size"):
        list(spec.iter_batches(-1))
    assert [len(b.inputs) for b in spec.iter_batches(None)] == [4]
