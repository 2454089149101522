"""Loss curve rendering for training runs."""

from __future__ import annotations

from pathlib import Path
from typing import List, Mapping


class PlotAdapter:
    """Record the per-epoch loss and draw it to ``loss.png`` on close.

    Nothing is recorded or written unless ``enable_plots`` is set. A
    ``target_loss`` is drawn as a dashed horizontal line.
    """

    def __init__(
        self,
        run_dir: str | Path,
        enable_plots: bool = False,
        target_loss: float | None = None,
    ):
        self.path = Path(run_dir) / "loss.png"
        self.enable_plots = enable_plots
        self.target_loss = target_loss
        self.epochs: List[int] = []
        self.losses: List[float] = []

    def on_epoch(self, epoch: int, metrics: Mapping[str, float]) -> None:
        if self.enable_plots and "loss" in metrics:
            self.epochs.append(int(epoch))
            self.losses.append(float(metrics["loss"]))

    def close(self) -> Path | None:
        if not self.epochs:
            return None
        import matplotlib

        matplotlib.use("Agg", force=True)
        import matplotlib.pyplot as plt

        fig, ax = plt.subplots()
        ax.plot(self.epochs, self.losses, label="train")
        if self.target_loss is not None:
            ax.axhline(self.target_loss, linestyle="--", color="grey", label="target")
        # log scale needs strictly positive values
        if min(self.losses) > 0.0:
            ax.set_yscale("log")
        ax.set_xlabel("epoch")
        ax.set_ylabel("loss")
        ax.legend()
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fig.savefig(self.path)
        plt.close(fig)
        return self.path


__all__ = ["PlotAdapter"]
