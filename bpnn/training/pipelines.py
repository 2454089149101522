"""Pipeline assembly: presets, config resolution and single training runs."""

from __future__ import annotations

import json
import time
from copy import deepcopy
from pathlib import Path
from typing import Dict, List, Mapping, Sequence

from ..core.network import Network
from ..core.types import RunResult
from ..data import registry
from ..reporting.artifacts import write_manifest
from ..reporting.metrics import CsvSink, JsonlSink
from ..reporting.plots import PlotAdapter
from ..reporting.summary import write_summary
from .trainer import MomentumSGD, Trainer

_PRESETS: Dict[str, Mapping[str, object]] = {
    "xor-online": {
        "data": {"name": "xor", "options": {}},
        "model": {"hidden": [2], "activations": "sigmoid", "amplitude": 1.0, "finesse": 1000},
        "train": {
            "epochs": 10000,
            "learning_rate": 0.5,
            "momentum_factor": 0.0,
            "learning_mode": "online",
            "seed": 0,
            "target_loss": 0.001,
            "run_dir": "runs/xor-online",
            "enable_plots": False,
        },
    },
    "xor-minibatch": {
        "data": {"name": "xor", "options": {}},
        "model": {"hidden": [3], "activations": "sigmoid"},
        "train": {
            "epochs": 5000,
            "learning_rate": 0.5,
            "momentum_factor": 1.0,
            "learning_mode": "batch",
            "batch_size": 2,
            "shuffle": True,
            "seed": 1,
            "run_dir": "runs/xor-minibatch",
            "enable_plots": False,
        },
    },
    "and-online": {
        "data": {"name": "and", "options": {}},
        "model": {"hidden": [], "activations": "sigmoid"},
        "train": {
            "epochs": 2000,
            "learning_rate": 0.5,
            "momentum_factor": 0.0,
            "learning_mode": "online",
            "seed": 0,
            "run_dir": "runs/and-online",
            "enable_plots": False,
        },
    },
    "sine-regression": {
        "data": {"name": "sine", "options": {"n_points": 32, "freq": 1.0, "seed": 0}},
        "model": {
            "hidden": [8],
            "activations": ["tanh", "sigmoid"],
            "amplitude": 0.5,
            "finesse": 1000,
        },
        "train": {
            "epochs": 2000,
            "learning_rate": 0.1,
            "momentum_factor": 0.5,
            "learning_mode": "online",
            "shuffle": True,
            "seed": 3,
            "run_dir": "runs/sine-regression",
            "enable_plots": False,
        },
    },
    "xor-seed-sweep": {
        "sweep": {"seeds": [0, 1, 2], "learning_rates": [0.5, 1.0]},
        "data": {"name": "xor", "options": {}},
        "model": {"hidden": [2]},
        "train": {
            "epochs": 2000,
            "momentum_factor": 0.0,
            "learning_mode": "online",
            "run_dir": "runs/xor-sweep",
            "enable_plots": False,
        },
    },
}

REQUIRED_SECTIONS = frozenset({"data", "model", "train"})

_PRESET_DIR = Path(__file__).resolve().parents[2] / "configs" / "presets"
_FILE_PRESETS_CACHE: Dict[str, Mapping[str, object]] | None = None


def read_config_file(path: Path) -> Mapping[str, object]:
    """Decode a JSON or YAML config file into a mapping."""

    text = path.read_text()
    suffix = path.suffix.lower()
    if suffix in {".yaml", ".yml"}:
        import yaml

        data = yaml.safe_load(text) or {}
    elif suffix == ".json":
        data = json.loads(text or "{}")
    else:
        raise ValueError(f"Unsupported config file type: {path.suffix}")

    if not isinstance(data, Mapping):
        raise TypeError(f"Config {path.name} must decode to a mapping")
    return data


def _file_presets() -> Dict[str, Mapping[str, object]]:
    global _FILE_PRESETS_CACHE
    if _FILE_PRESETS_CACHE is None:
        found: Dict[str, Mapping[str, object]] = {}
        if _PRESET_DIR.exists():
            for file in sorted(_PRESET_DIR.iterdir()):
                if file.suffix.lower() not in {".yaml", ".yml", ".json"}:
                    continue
                data = read_config_file(file)
                missing = REQUIRED_SECTIONS - set(data)
                if missing:
                    missing_str = ", ".join(sorted(missing))
                    raise KeyError(f"Preset {file.name} is missing required sections: {missing_str}")
                found[file.stem] = json.loads(json.dumps(data))
        _FILE_PRESETS_CACHE = found
    return {name: deepcopy(cfg) for name, cfg in _FILE_PRESETS_CACHE.items()}


def presets() -> Mapping[str, Mapping[str, object]]:
    combined: Dict[str, Mapping[str, object]] = {}
    combined.update({name: deepcopy(cfg) for name, cfg in _PRESETS.items()})
    combined.update(_file_presets())
    return combined


def load_preset(name: str) -> Mapping[str, object]:
    file_overrides = _file_presets()
    if name in file_overrides:
        return file_overrides[name]
    try:
        return deepcopy(_PRESETS[name])
    except KeyError as exc:
        raise KeyError(f"Unknown preset: {name}") from exc


def run_pipeline(config: Mapping[str, object]) -> RunResult | List[RunResult]:
    missing = REQUIRED_SECTIONS - set(config)
    if missing:
        raise KeyError(f"Config is missing required sections: {', '.join(sorted(missing))}")
    if "sweep" in config:
        return _run_sweep(config)
    return _train_single(config)


def _run_sweep(config: Mapping[str, object]) -> List[RunResult]:
    sweep_cfg = dict(config["sweep"])  # type: ignore[arg-type]
    base_train = dict(config["train"])  # type: ignore[arg-type]
    base_dir = Path(str(base_train.get("run_dir", "runs/sweep")))
    seeds = sweep_cfg.get("seeds", [base_train.get("seed", 0)])
    rates = sweep_cfg.get("learning_rates", [base_train.get("learning_rate", 0.1)])
    results: List[RunResult] = []
    for lr in rates:
        for seed in seeds:
            cfg = deepcopy(dict(config))
            cfg.pop("sweep", None)
            cfg["train"].update(
                {
                    "seed": int(seed),
                    "learning_rate": float(lr),
                    "run_dir": str(base_dir / f"lr{lr}_s{seed}"),
                }
            )
            results.append(_train_single(cfg))
    return results


def build_topology(model_cfg: Mapping[str, object], d_in: int, d_out: int) -> List[int]:
    if "topology" in model_cfg:
        topology = [int(w) for w in model_cfg["topology"]]  # type: ignore[union-attr]
        if topology[0] != d_in or topology[-1] != d_out:
            raise ValueError(
                f"Configured topology {topology} does not match the dataset ({d_in}->{d_out})"
            )
        return topology
    hidden = [int(h) for h in model_cfg.get("hidden", [])]  # type: ignore[union-attr]
    return [d_in, *hidden, d_out]


def _train_single(config: Mapping[str, object]) -> RunResult:
    data_cfg = dict(config["data"])  # type: ignore[arg-type]
    model_cfg = dict(config["model"])  # type: ignore[arg-type]
    train_cfg = dict(config["train"])  # type: ignore[arg-type]

    dataset = registry.get_dataset(str(data_cfg["name"]), **dict(data_cfg.get("options", {})))
    topology = build_topology(model_cfg, dataset.d_in, dataset.d_out)
    seed = int(train_cfg.get("seed", 0))

    network = Network.create(
        topology,
        model_cfg.get("activations"),  # type: ignore[arg-type]
        amplitude=float(model_cfg.get("amplitude", 1.0)),
        finesse=int(model_cfg.get("finesse", 1000)),
        seed=seed,
    )
    optimizer = MomentumSGD(
        learning_rate=float(train_cfg.get("learning_rate", 0.1)),
        momentum_factor=float(train_cfg.get("momentum_factor", 0.0)),
        learning_mode=str(train_cfg.get("learning_mode", "online")),
    )
    loss_name = str(train_cfg.get("loss", "sse"))
    metrics_cfg = train_cfg.get("metrics", "default")
    if isinstance(metrics_cfg, str):
        metric_names = metrics_cfg
    else:
        metric_names = ",".join(str(item) for item in metrics_cfg)  # type: ignore[union-attr]
    batch_size = train_cfg.get("batch_size")
    target_loss = train_cfg.get("target_loss")

    run_dir = _resolve_run_dir(train_cfg, dataset.name)
    run_dir.mkdir(parents=True, exist_ok=True)

    _print_startup_summary(
        dataset_name=dataset.name,
        topology=topology,
        activations=network.describe().activations,
        loss=loss_name,
        optimizer=optimizer,
        param_count=network.parameter_count(),
    )

    jsonl = JsonlSink(run_dir / "metrics.jsonl", split="train", seed=seed)
    csv_sink = CsvSink(run_dir / "metrics.csv", split="train")
    plots = PlotAdapter(
        run_dir,
        enable_plots=bool(train_cfg.get("enable_plots", False)),
        target_loss=float(target_loss) if target_loss is not None else None,
    )

    trainer = Trainer(network=network, optimizer=optimizer)
    result = trainer.run(
        dataset,
        epochs=int(train_cfg.get("epochs", 1)),
        seed=seed,
        batch_size=int(batch_size) if batch_size is not None else None,
        shuffle=bool(train_cfg.get("shuffle", False)),
        loss=loss_name,
        metric_names=metric_names,
        target_loss=float(target_loss) if target_loss is not None else None,
        split_loggers={"train": [jsonl, csv_sink, plots]},
    )
    plots.close()

    resolved = _safe_config(config, topology)
    manifest = write_manifest(
        run_dir / "manifest.json",
        config=resolved,
        topology=topology,
        dataset_provenance=dataset.provenance,
    )
    summary_tail = int(train_cfg.get("summary_tail", 32))
    summary_path = write_summary(jsonl.path, run_dir / "summary.json", tail=summary_tail)
    (run_dir / "config.json").write_text(json.dumps(resolved, indent=2))

    return RunResult(
        epochs=result.epochs,
        steps=result.steps,
        final_loss=result.final_loss,
        metrics_path=str(jsonl.path),
        manifest_path=manifest,
        summary_path=summary_path,
    )


def _resolve_run_dir(train_cfg: Mapping[str, object], dataset: str) -> Path:
    if "run_dir" in train_cfg:
        return Path(str(train_cfg["run_dir"]))
    timestamp = time.strftime("%Y%m%d-%H%M%S")
    return Path("runs") / timestamp / dataset


def _safe_config(config: Mapping[str, object], topology: Sequence[int]) -> Mapping[str, object]:
    copied = json.loads(json.dumps(config))
    copied.setdefault("model", {})["topology"] = list(topology)
    return copied


def _print_startup_summary(
    *,
    dataset_name: str,
    topology: Sequence[int],
    activations: Sequence[str],
    loss: str,
    optimizer: MomentumSGD,
    param_count: int,
) -> None:
    print("=== BPNN run ===")
    print(f"Dataset       : {dataset_name}")
    print(f"Topology      : {list(topology)}")
    print(f"Activations   : {list(activations)}")
    print(f"Loss          : {loss}")
    print(f"Learning mode : {optimizer.learning_mode}")
    print(f"Learning rate : {optimizer.learning_rate}")
    print(f"Momentum      : {optimizer.momentum_factor}")
    print(f"Parameters    : {param_count}")
    print("================")


__all__ = ["build_topology", "load_preset", "presets", "read_config_file", "run_pipeline"]
