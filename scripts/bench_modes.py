"""Compare online and mini-batch learning on a truth-table dataset."""

from __future__ import annotations

import argparse
import csv
import json
import sys
from pathlib import Path
from statistics import mean, pstdev

MODES = [("online", None), ("batch", 2), ("batch", 4)]


def _label(mode: str, batch_size: int | None) -> str:
    return mode if batch_size is None else f"{mode}/{batch_size}"


def _fmt_mu_sigma(vals):
    mu = mean(vals)
    sd = pstdev(vals) if len(vals) > 1 else 0.0
    return f"{mu:.4f} ± {sd:.4f}"


def main(argv=None):
    root = Path(__file__).resolve().parents[1]
    if str(root) not in sys.path:
        sys.path.insert(0, str(root))

    from bpnn.core.network import Network
    from bpnn.data import get_dataset
    from bpnn.training.trainer import MomentumSGD, Trainer

    ap = argparse.ArgumentParser(description=__doc__)
    ap.add_argument("--dataset", default="xor")
    ap.add_argument("--hidden", nargs="+", type=int, default=[3])
    ap.add_argument("--seeds", nargs="+", type=int, default=[0, 1, 2])
    ap.add_argument("--epochs", type=int, default=500)
    ap.add_argument("--lr", type=float, default=0.5)
    ap.add_argument("--out", type=str, default=".artifacts/bench")
    args = ap.parse_args(argv)

    dataset = get_dataset(args.dataset)
    topology = [dataset.d_in, *args.hidden, dataset.d_out]
    out = Path(args.out)
    out.mkdir(parents=True, exist_ok=True)

    runs = []
    for mode, batch_size in MODES:
        for seed in args.seeds:
            network = Network.create(topology, seed=seed)
            optimizer = MomentumSGD(args.lr, learning_mode=mode)
            trainer = Trainer(network, optimizer)
            result = trainer.run(
                dataset, args.epochs, seed=seed, batch_size=batch_size, metric_names=["accuracy"]
            )
            runs.append(
                {
                    "mode": _label(mode, batch_size),
                    "seed": seed,
                    "final_loss": result.final_loss,
                    "final_acc": trainer.history[-1]["accuracy"],
                    "steps": result.steps,
                }
            )
    (out / "results.jsonl").write_text("\n".join(json.dumps(r) for r in runs), encoding="utf-8")

    labels = [_label(m, b) for m, b in MODES]
    csv_path = out / "bench_modes.csv"
    with csv_path.open("w", newline="", encoding="utf-8") as f:
        w = csv.writer(f)
        w.writerow(["mode", "seeds", "epochs", "final_loss_mu", "final_loss_sd", "steps"])
        for label in labels:
            losses = [r["final_loss"] for r in runs if r["mode"] == label]
            steps = [r["steps"] for r in runs if r["mode"] == label]
            w.writerow(
                [
                    label,
                    len(losses),
                    args.epochs,
                    f"{mean(losses):.4f}",
                    f"{pstdev(losses) if len(losses) > 1 else 0.0:.4f}",
                    steps[0],
                ]
            )

    md_path = out / "bench_modes.md"
    lines = [
        f"### Learning modes on `{args.dataset}`, topology `{topology}`",
        "",
        f"- Seeds: `{args.seeds}`; Epochs: `{args.epochs}`; LR: `{args.lr}`",
        "",
        "| Mode | Final Loss (μ±σ) | Final Acc (μ±σ) | Seeds |",
        "|---|---:|---:|---:|",
    ]
    for label in labels:
        losses = [r["final_loss"] for r in runs if r["mode"] == label]
        accs = [r["final_acc"] for r in runs if r["mode"] == label]
        lines.append(
            f"| {label.upper()} | {_fmt_mu_sigma(losses)} | {_fmt_mu_sigma(accs)} | {len(losses)} |"
        )
    md_path.write_text("\n".join(lines), encoding="utf-8")
    print("Wrote:", csv_path, md_path)


if __name__ == "__main__":
    main()
