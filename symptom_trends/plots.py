from __future__ import annotations
import os
import matplotlib
matplotlib.use("Agg")
import matplotlib.pyplot as plt


def plot_location(merged, path: str, title: str = "") -> str:
    """Weekly positivity (right axis) against hits and hit_vac (left axes); writes a PNG."""
    fig, axes = plt.subplots(2, 1, figsize=(12, 8), sharex=True)
    x = merged["week"].astype(int)
    y = merged["avg_positive"].astype(float)

    for ax, col, color in ((axes[0], "hits", "blue"), (axes[1], "hit_vac", "red")):
        ax.plot(x, merged[col].astype(float), label=col, color=color, alpha=0.7, linewidth=1)
        ax.set_ylabel(col, color=color)
        ax.grid(True, alpha=0.3)

        ax2 = ax.twinx()
        ax2.plot(x, y, label="positive rate", color="green", alpha=0.8, linewidth=2)
        ax2.set_ylabel("positive rate", color="green")

        lines1, labels1 = ax.get_legend_handles_labels()
        lines2, labels2 = ax2.get_legend_handles_labels()
        ax.legend(lines1 + lines2, labels1 + labels2, loc="upper left")

    axes[1].set_xlabel("week")
    if title:
        fig.suptitle(title, fontweight="bold")
    plt.tight_layout()

    os.makedirs(os.path.dirname(path) or ".", exist_ok=True)
    plt.savefig(path, dpi=120)
    plt.close(fig)
    return path
